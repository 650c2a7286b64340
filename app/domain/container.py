from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from app.domain.client import Client

UNKNOWN_TENANT = "unknown"
DEFAULT_SERVICE_TYPE = "custom"


class ContainerStatus(str, Enum):
    RUNNING = "running"
    EXITED = "exited"
    CREATED = "created"
    RESTARTING = "restarting"
    REMOVING = "removing"
    UNKNOWN = "unknown"

    @classmethod
    def from_runtime(cls, value: str | None) -> "ContainerStatus":
        # paused / dead and anything newer fall back to unknown
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.UNKNOWN


class ContainerAction(str, Enum):
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    REMOVE = "remove"


@dataclass(frozen=True)
class PortMapping:
    container_port: int
    host_port: int | None = None
    protocol: str = "tcp"


@dataclass(frozen=True)
class Container:
    id: str
    name: str
    image: str
    status: ContainerStatus
    tenant_id: str = UNKNOWN_TENANT
    service_type: str = DEFAULT_SERVICE_TYPE
    ports: Tuple[PortMapping, ...] = ()
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    url: str | None = None
    labels: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class Snapshot:
    """One generation of the registry's view. Never mutated after construction."""
    generation: int = 0
    containers: Tuple[Container, ...] = ()
    taken_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get(self, container_id: str) -> Optional[Container]:
        return next((c for c in self.containers if c.id == container_id), None)

    def containers_matching(
        self,
        tenant_id: str | None = None,
        service_type: str | None = None,
    ) -> list[Container]:
        return [
            c for c in self.containers
            if (tenant_id is None or c.tenant_id == tenant_id)
            and (service_type is None or c.service_type == service_type)
        ]

    def clients(self, quota_for: Callable[[str], int]) -> list[Client]:
        usage = Counter(
            c.tenant_id for c in self.containers if c.tenant_id != UNKNOWN_TENANT
        )
        return [
            Client(id=tenant_id, used_containers=count, container_quota=quota_for(tenant_id))
            for tenant_id, count in sorted(usage.items())
        ]
