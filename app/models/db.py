from sqlalchemy import (
    Column, String, Integer, DateTime, Boolean, Text
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class ActivityLogDB(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor = Column(String, nullable=True)       # principal email, None for system
    action = Column(String, nullable=False)     # e.g. container_stop
    resource = Column(String, nullable=False)  # container id
    details = Column(Text, nullable=True)      # JSON
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ClientDB(Base):
    __tablename__ = "clients"

    id = Column(String, primary_key=True)      # tenant id, first token of the container name
    name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    container_quota = Column(Integer, nullable=True)  # overrides the configured quota
    created_at = Column(DateTime(timezone=True), server_default=func.now())
