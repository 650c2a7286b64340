from typing import Dict, List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Tenant Container Admin Plane"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./app.db",
        description="Async database URL used for activity logs and client profiles"
    )

    # Docker runtime
    DOCKER_BASE_URL: Optional[str] = Field(
        default=None,
        description="Docker daemon URL, falls back to the DOCKER_HOST environment when unset"
    )
    RUNTIME_TIMEOUT_SECONDS: float = 10.0
    STOP_TIMEOUT_SECONDS: int = 10
    FORCE_REMOVE: bool = False

    INFRASTRUCTURE_MARKERS: List[str] = Field(
        default_factory=lambda: ["mgmt"],
        description="Name tokens that mark platform-internal containers"
    )
    INFRASTRUCTURE_LABEL: str = "platform.role=infrastructure"
    PUBLIC_HOST: str = "localhost"

    # Tenants
    DEFAULT_CONTAINER_QUOTA: int = 5
    CONTAINER_QUOTAS: Dict[str, int] = Field(
        default_factory=dict,
        description="Per-tenant container quota overrides"
    )

    # Refresh cadence, 0 disables the background loop
    REFRESH_INTERVAL_SECONDS: float = 0.0
    REFRESH_AFTER_ACTION: bool = True

    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    model_config = ConfigDict(
        env_file=".env"
    )
