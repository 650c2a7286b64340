from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Client:
    """Tenant aggregate computed from a snapshot, never persisted."""
    id: str
    used_containers: int
    container_quota: int


@dataclass
class ClientProfile:
    id: str
    name: str | None = None
    email: str | None = None
    is_active: bool = True
    container_quota: int | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class ClientView:
    id: str
    name: str
    email: str | None
    created_at: datetime | None
    is_active: bool
    container_quota: int
    used_containers: int
