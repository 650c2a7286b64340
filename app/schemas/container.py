from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import List, Literal, Optional

from app.domain.container import Container


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PortResponse(CamelModel):
    container_port: int
    host_port: Optional[int] = None


class ContainerResponse(CamelModel):
    id: str
    name: str
    client_id: str
    service_type: str
    status: Literal["running", "exited", "created", "restarting", "removing", "unknown"]
    image: str
    ports: List[PortResponse] = Field(default_factory=list)
    created_at: datetime
    url: Optional[str] = None

    @classmethod
    def from_domain(cls, container: Container) -> "ContainerResponse":
        return cls(
            id=container.id,
            name=container.name,
            client_id=container.tenant_id,
            service_type=container.service_type,
            status=container.status.value,
            image=container.image,
            ports=[
                PortResponse(container_port=p.container_port, host_port=p.host_port)
                for p in container.ports
            ],
            created_at=container.created_at,
            url=container.url,
        )


class ContainerListResponse(CamelModel):
    success: bool = True
    data: List[ContainerResponse]


class ActionData(CamelModel):
    container_id: str
    action: str


class ActionResponse(CamelModel):
    success: bool = True
    message: str
    data: ActionData


class RefreshResponse(CamelModel):
    success: bool = True
    generation: int
    containers: int
