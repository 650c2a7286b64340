import time
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

import docker
from docker.errors import APIError, DockerException, NotFound
from requests.exceptions import ConnectionError as RequestsConnectionError

from app.core.config import Settings
from app.domain.container import ContainerStatus, PortMapping
from app.domain.errors import RuntimeActionError, RuntimeUnavailable
from app.services.docker_runtime import DockerSDKRuntime, _parse_created, _parse_ports

from tests.factories import fake_docker_container


def make_runtime(docker_client, **overrides):
    settings = Settings(**overrides)
    return DockerSDKRuntime(settings, client_factory=lambda: docker_client)


@pytest.mark.asyncio
async def test_list_containers_maps_records_and_excludes_infrastructure():
    docker_client = MagicMock()
    docker_client.containers.list.return_value = [
        fake_docker_container(
            "c1", "client1-web-a",
            ports={"80/tcp": [{"HostIp": "0.0.0.0", "HostPort": "8080"}, {"HostIp": "::", "HostPort": "8080"}]},
        ),
        fake_docker_container("c2", "client2-worker-b", status="exited"),
        fake_docker_container("c3", "mgmt-internal"),
        fake_docker_container("c4", "proxy", labels={"platform.role": "infrastructure"}),
    ]
    runtime = make_runtime(docker_client)

    containers = await runtime.list_containers()

    assert [c.id for c in containers] == ["c1", "c2"]
    web = containers[0]
    assert web.status == ContainerStatus.RUNNING
    assert web.ports == (PortMapping(80, 8080),)
    assert web.url == "http://localhost:8080"
    assert web.image == "nginx:alpine"
    assert web.created_at == datetime(2024, 1, 2, 10, 11, 12, 123456, tzinfo=timezone.utc)
    # attribution is the registry's job
    assert web.tenant_id == "unknown"
    assert containers[1].status == ContainerStatus.EXITED
    assert containers[1].url is None
    docker_client.containers.list.assert_called_once_with(all=True, ignore_removed=True)


@pytest.mark.asyncio
async def test_paused_container_maps_to_unknown_status():
    docker_client = MagicMock()
    docker_client.containers.list.return_value = [fake_docker_container("c1", "client1-web-a", status="paused")]
    runtime = make_runtime(docker_client)

    containers = await runtime.list_containers()

    assert containers[0].status == ContainerStatus.UNKNOWN


@pytest.mark.asyncio
async def test_list_containers_raises_runtime_unavailable_when_daemon_unreachable():
    docker_client = MagicMock()
    docker_client.containers.list.side_effect = RequestsConnectionError("connection refused")
    runtime = make_runtime(docker_client)

    with pytest.raises(RuntimeUnavailable):
        await runtime.list_containers()


@pytest.mark.asyncio
async def test_client_creation_failure_is_runtime_unavailable():
    def factory():
        raise DockerException("Error while fetching server API version")

    runtime = DockerSDKRuntime(Settings(), client_factory=factory)

    with pytest.raises(RuntimeUnavailable):
        await runtime.list_containers()
    assert await runtime.ping() is False


@pytest.mark.asyncio
async def test_list_containers_times_out():
    docker_client = MagicMock()
    docker_client.containers.list.side_effect = lambda **kwargs: time.sleep(0.5)
    runtime = make_runtime(docker_client, RUNTIME_TIMEOUT_SECONDS=0.05)

    with pytest.raises(RuntimeUnavailable):
        await runtime.list_containers()


@pytest.mark.asyncio
async def test_stop_container_forwards_command():
    docker_client = MagicMock()
    docker_container = MagicMock()
    docker_client.containers.get.return_value = docker_container
    runtime = make_runtime(docker_client, STOP_TIMEOUT_SECONDS=3)

    await runtime.stop_container("c1")

    docker_client.containers.get.assert_called_once_with("c1")
    docker_container.stop.assert_called_once_with(timeout=3)


@pytest.mark.asyncio
async def test_start_restart_remove_forward_commands():
    docker_client = MagicMock()
    docker_container = MagicMock()
    docker_client.containers.get.return_value = docker_container
    runtime = make_runtime(docker_client, FORCE_REMOVE=True)

    await runtime.start_container("c1")
    await runtime.restart_container("c1")
    await runtime.remove_container("c1")

    docker_container.start.assert_called_once_with()
    docker_container.restart.assert_called_once()
    docker_container.remove.assert_called_once_with(force=True)


@pytest.mark.asyncio
async def test_not_found_is_wrapped_with_context():
    docker_client = MagicMock()
    docker_client.containers.get.side_effect = NotFound("404", explanation="No such container: c1")
    runtime = make_runtime(docker_client)

    with pytest.raises(RuntimeActionError) as exc_info:
        await runtime.stop_container("c1")

    error = exc_info.value
    assert error.action == "stop"
    assert error.container_id == "c1"
    assert "not found" in error.reason
    assert "No such container: c1" in str(error)


@pytest.mark.asyncio
async def test_api_error_is_wrapped():
    docker_client = MagicMock()
    docker_client.containers.get.return_value.remove.side_effect = APIError(
        "409", explanation="You cannot remove a running container"
    )
    runtime = make_runtime(docker_client)

    with pytest.raises(RuntimeActionError) as exc_info:
        await runtime.remove_container("c1")

    assert exc_info.value.reason == "You cannot remove a running container"


@pytest.mark.asyncio
async def test_action_timeout_is_runtime_action_error():
    docker_client = MagicMock()
    docker_client.containers.get.return_value.restart.side_effect = lambda **kwargs: time.sleep(0.5)
    runtime = make_runtime(docker_client, RUNTIME_TIMEOUT_SECONDS=0.05, STOP_TIMEOUT_SECONDS=0)

    with pytest.raises(RuntimeActionError) as exc_info:
        await runtime.restart_container("c1")

    assert exc_info.value.reason == "timeout"
    in_flight = exc_info.value.in_flight
    assert in_flight is not None and not in_flight.done()
    await in_flight


@pytest.mark.asyncio
async def test_stop_waits_for_the_stop_grace_period():
    docker_client = MagicMock()
    docker_client.containers.get.return_value.stop.side_effect = lambda **kwargs: time.sleep(0.2)
    runtime = make_runtime(docker_client, RUNTIME_TIMEOUT_SECONDS=0.05, STOP_TIMEOUT_SECONDS=2)

    await runtime.stop_container("c1")

    docker_client.containers.get.return_value.stop.assert_called_once_with(timeout=2)


@pytest.mark.asyncio
async def test_container_removed_during_listing_is_skipped():
    docker_client = docker.DockerClient(base_url="tcp://127.0.0.1:2375", version="1.41")
    docker_client.api.containers = MagicMock(return_value=[{"Id": "c1"}, {"Id": "gone"}])

    def inspect_container(container_id):
        if container_id == "gone":
            raise NotFound("No such container: gone")
        return {
            "Id": "c1",
            "Name": "/client1-web-a",
            "Created": "2024-01-02T10:11:12.123456789Z",
            "State": {"Status": "running"},
            "Config": {"Image": "nginx:alpine", "Labels": {}},
            "NetworkSettings": {"Ports": {}},
        }

    docker_client.api.inspect_container = MagicMock(side_effect=inspect_container)
    runtime = make_runtime(docker_client)

    containers = await runtime.list_containers()

    assert [(c.id, c.name) for c in containers] == [("c1", "client1-web-a")]


def test_parse_ports_keeps_unpublished_ports_in_order():
    ports = _parse_ports({
        "443/tcp": [{"HostIp": "0.0.0.0", "HostPort": "8443"}],
        "80/tcp": None,
        "53/udp": [{"HostIp": "0.0.0.0", "HostPort": "5353"}],
    })

    assert ports == (
        PortMapping(53, 5353, "udp"),
        PortMapping(80, None, "tcp"),
        PortMapping(443, 8443, "tcp"),
    )


def test_parse_created_handles_missing_and_nanoseconds():
    assert _parse_created("2024-01-16T00:00:00Z") == datetime(2024, 1, 16, tzinfo=timezone.utc)
    assert _parse_created(None).tzinfo is not None
