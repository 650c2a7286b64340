from typing import Dict

from app.core.config import Settings


class SettingsQuotaProvider:
    """Container quotas from configuration: CONTAINER_QUOTAS overrides, else the default."""

    def __init__(self, settings: Settings | None = None):
        settings = settings or Settings()
        self.default_quota = settings.DEFAULT_CONTAINER_QUOTA
        self.quotas: Dict[str, int] = dict(settings.CONTAINER_QUOTAS)

    def quota_for(self, tenant_id: str) -> int:
        return self.quotas.get(tenant_id, self.default_quota)
