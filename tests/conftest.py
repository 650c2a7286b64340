import pytest
from unittest.mock import AsyncMock

from app.domain.container import ContainerStatus

from tests.factories import make_container


@pytest.fixture
def runtime():
    runtime = AsyncMock()
    runtime.list_containers = AsyncMock(return_value=[
        make_container("c1", "client1-web-a", host_port=8080),
        make_container("c2", "client2-worker-b", status=ContainerStatus.EXITED),
    ])
    runtime.ping = AsyncMock(return_value=True)
    return runtime
