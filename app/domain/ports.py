from typing import Any, Dict, List, Protocol

from app.domain.activity import Activity
from app.domain.client import ClientProfile
from app.domain.container import Container


class ContainerRuntime(Protocol):
    # -------------------------------
    # Discovery
    # -------------------------------
    async def list_containers(self) -> List[Container]:
        """List tenant containers, platform-internal ones excluded. Raises RuntimeUnavailable."""
        ...

    async def ping(self) -> bool:
        """Check whether the runtime answers."""
        ...

    # -------------------------------
    # Lifecycle, each raises RuntimeActionError
    # -------------------------------
    async def start_container(self, container_id: str) -> None: ...

    async def stop_container(self, container_id: str) -> None: ...

    async def restart_container(self, container_id: str) -> None: ...

    async def remove_container(self, container_id: str) -> None: ...


class TenantAttribution(Protocol):
    def attribute(self, raw_name: str) -> str:
        """Tenant id for a container name, "unknown" when it cannot be derived."""
        ...

    def classify(self, raw_name: str) -> str:
        """Service type for a container name, "custom" when it cannot be derived."""
        ...


class QuotaProvider(Protocol):
    def quota_for(self, tenant_id: str) -> int: ...


class EventPublisher(Protocol):
    def publish(self, event: str, payload: Dict[str, Any]) -> None: ...


class ActivityRepository(Protocol):
    async def create(self, activity: Activity) -> None:
        pass

    async def list_recent(self, limit: int = 20) -> List[Activity]:
        pass


class ClientProfileRepository(Protocol):
    async def get(self, client_id: str) -> ClientProfile | None:
        pass

    async def list(self) -> List[ClientProfile]:
        pass

    async def upsert(self, profile: ClientProfile) -> None:
        pass
