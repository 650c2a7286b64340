from datetime import datetime, timezone
from unittest.mock import MagicMock

from app.domain.container import Container, ContainerStatus, PortMapping


def make_container(
    container_id: str,
    name: str,
    status: ContainerStatus = ContainerStatus.RUNNING,
    host_port: int | None = None,
) -> Container:
    """A container as the runtime gateway returns it, before attribution."""
    ports = (PortMapping(80, host_port),) if host_port else ()
    return Container(
        id=container_id,
        name=name,
        image="nginx:alpine",
        status=status,
        ports=ports,
        created_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
        url=f"http://localhost:{host_port}" if host_port else None,
    )


def fake_docker_container(container_id, name, status="running", ports=None, labels=None):
    """Stand-in for docker.models.containers.Container."""
    raw = MagicMock()
    raw.id = container_id
    raw.name = name
    raw.status = status
    raw.labels = labels or {}
    raw.attrs = {
        "Created": "2024-01-02T10:11:12.123456789Z",
        "State": {"Status": status},
        "Config": {"Image": "nginx:alpine", "Labels": labels or {}},
        "NetworkSettings": {"Ports": ports or {}},
    }
    return raw
