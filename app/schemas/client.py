from pydantic import Field
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.domain.client import ClientView
from app.schemas.container import CamelModel


class ClientResponse(CamelModel):
    id: str
    name: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    is_active: bool = True
    container_quota: int
    used_containers: int

    @classmethod
    def from_view(cls, view: ClientView) -> "ClientResponse":
        return cls(
            id=view.id,
            name=view.name,
            email=view.email,
            created_at=view.created_at,
            is_active=view.is_active,
            container_quota=view.container_quota,
            used_containers=view.used_containers,
        )


class ClientListResponse(CamelModel):
    success: bool = True
    data: List[ClientResponse]


class ClientProfileRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    is_active: bool = True
    container_quota: Optional[int] = Field(None, ge=0, description="Overrides the configured quota")


class ActivityResponse(CamelModel):
    id: Optional[int] = None
    action: str
    resource: str
    user_id: Optional[str] = None
    timestamp: datetime
    details: Dict[str, Any] = Field(default_factory=dict)


class StatsData(CamelModel):
    total_clients: int
    active_clients: int
    total_containers: int
    running_containers: int
    stopped_containers: int
    generation: int
    recent_activity: List[ActivityResponse] = Field(default_factory=list)


class StatsResponse(CamelModel):
    success: bool = True
    data: StatsData
