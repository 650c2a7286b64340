from typing import Dict, List

from app.core.logger import get_logger
from app.domain.client import ClientProfile, ClientView
from app.domain.container import Snapshot
from app.domain.ports import ClientProfileRepository, QuotaProvider

logger = get_logger(__name__)


class ClientService:
    """Joins snapshot aggregates with the optional profiles stored for each tenant."""

    def __init__(self, profiles: ClientProfileRepository, quotas: QuotaProvider):
        self.profiles = profiles
        self.quotas = quotas

    async def _load_profiles(self) -> Dict[str, ClientProfile]:
        try:
            return {p.id: p for p in await self.profiles.list()}
        except Exception as e:
            logger.warning(f"[CLIENT PROFILES] Falling back to defaults: {e}")
            return {}

    async def list_clients(self, snapshot: Snapshot) -> List[ClientView]:
        profiles = await self._load_profiles()
        views = []
        for client in snapshot.clients(self.quotas.quota_for):
            profile = profiles.get(client.id)
            first_seen = min(
                (c.created_at for c in snapshot.containers if c.tenant_id == client.id),
                default=None,
            )
            quota = client.container_quota
            if profile and profile.container_quota is not None:
                quota = profile.container_quota

            views.append(ClientView(
                id=client.id,
                name=(profile.name if profile and profile.name else client.id),
                email=profile.email if profile else None,
                created_at=(profile.created_at if profile and profile.created_at else first_seen),
                is_active=profile.is_active if profile else True,
                container_quota=quota,
                used_containers=client.used_containers,
            ))
        return views

    async def save_profile(self, profile: ClientProfile) -> None:
        await self.profiles.upsert(profile)
