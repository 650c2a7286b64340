import re
from typing import Iterable, Tuple

from app.core.logger import get_logger
from app.domain.container import DEFAULT_SERVICE_TYPE, UNKNOWN_TENANT
from app.domain.errors import AttributionAmbiguous

logger = get_logger(__name__)

KNOWN_SERVICE_TYPES = ("web", "api", "worker", "database", "cache")

# <tenant>-<serviceType>-<suffix>, the suffix may itself contain hyphens
_NAME_PATTERN = re.compile(r"^(?P<tenant>[A-Za-z0-9]+)-(?P<type>[A-Za-z0-9]+)-(?P<suffix>[^\s]+)$")


def parse_name(raw_name: str) -> Tuple[str, str, str]:
    """
    Split a container name into (tenant, service_type_token, suffix).
    Raises AttributionAmbiguous when the name does not follow the convention.
    """
    name = (raw_name or "").lstrip("/")
    match = _NAME_PATTERN.match(name)
    if not match or any(not token for token in match.group("suffix").split("-")):
        raise AttributionAmbiguous(raw_name)
    return match.group("tenant"), match.group("type"), match.group("suffix")


class NamingConventionAttribution:
    """Derives tenant and service type from the container name alone."""

    def __init__(self, service_types: Iterable[str] = KNOWN_SERVICE_TYPES):
        self.service_types = tuple(t.lower() for t in service_types)

    def attribute(self, raw_name: str) -> str:
        try:
            tenant, _, _ = parse_name(raw_name)
        except AttributionAmbiguous:
            logger.debug(f"Container name {raw_name!r} does not match the naming convention")
            return UNKNOWN_TENANT
        return tenant

    def classify(self, raw_name: str) -> str:
        tokens = [t.lower() for t in (raw_name or "").lstrip("/").split("-")]
        if len(tokens) < 2:
            return DEFAULT_SERVICE_TYPE

        # second token first, then whatever follows it (client1-nginx-web -> web)
        for token in tokens[1:]:
            if token in self.service_types:
                return token
        return DEFAULT_SERVICE_TYPE
