import asyncio
import functools
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import docker
from docker.errors import APIError, DockerException, NotFound
from requests.exceptions import Timeout as RequestTimeout

from app.core.config import Settings
from app.core.logger import get_logger
from app.domain.container import Container, ContainerAction, ContainerStatus, PortMapping
from app.domain.errors import RuntimeActionError, RuntimeUnavailable
from app.domain.ports import ContainerRuntime

logger = get_logger(__name__)


def _parse_created(value: Optional[str]) -> datetime:
    """Docker reports RFC 3339 with nanoseconds, e.g. 2024-01-02T10:11:12.123456789Z."""
    if not value:
        return datetime.now(timezone.utc)
    text = value.rstrip("Z")
    if "." in text:
        head, frac = text.split(".", 1)
        text = f"{head}.{frac[:6]}"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return datetime.now(timezone.utc)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _parse_ports(raw_ports: Optional[Dict[str, Any]]) -> Tuple[PortMapping, ...]:
    """
    Flatten NetworkSettings.Ports ({"80/tcp": [{"HostIp": ..., "HostPort": "8080"}]})
    into ordered mappings. Unpublished ports keep host_port=None.
    """
    mappings: List[PortMapping] = []
    for key, bindings in (raw_ports or {}).items():
        port, _, protocol = key.partition("/")
        try:
            container_port = int(port)
        except ValueError:
            continue
        host_ports = []
        for binding in bindings or []:
            host_port = binding.get("HostPort")
            if host_port and int(host_port) not in host_ports:
                host_ports.append(int(host_port))
        if not host_ports:
            mappings.append(PortMapping(container_port, None, protocol or "tcp"))
        for host_port in host_ports:
            mappings.append(PortMapping(container_port, host_port, protocol or "tcp"))
    return tuple(sorted(mappings, key=lambda m: (m.container_port, m.host_port or 0)))


class DockerSDKRuntime(ContainerRuntime):
    def __init__(self, settings: Settings | None = None, client_factory: Callable[[], Any] | None = None):
        self.settings = settings or Settings()
        self._client_factory = client_factory or self._default_client
        self._docker_client = None

    def _default_client(self):
        timeout = int(self.settings.RUNTIME_TIMEOUT_SECONDS)
        if self.settings.DOCKER_BASE_URL:
            return docker.DockerClient(base_url=self.settings.DOCKER_BASE_URL, timeout=timeout)
        return docker.from_env(timeout=timeout)

    @property
    def docker_client(self):
        # Created lazily so the app can boot while the daemon is down
        if self._docker_client is None:
            try:
                self._docker_client = self._client_factory()
            except DockerException as e:
                raise RuntimeUnavailable(f"Cannot connect to Docker daemon: {e}")
        return self._docker_client

    async def _call(self, func, *args, **kwargs):
        return await asyncio.wait_for(
            asyncio.to_thread(func, *args, **kwargs),
            timeout=self.settings.RUNTIME_TIMEOUT_SECONDS,
        )

    # -------------------------------
    # Discovery
    # -------------------------------
    async def list_containers(self) -> List[Container]:
        try:
            # ignore_removed skips ids that vanish between the list and the per-id inspect
            raw_containers = await self._call(
                self.docker_client.containers.list, all=True, ignore_removed=True
            )
        except (asyncio.TimeoutError, RequestTimeout):
            raise RuntimeUnavailable(
                f"Docker did not answer within {self.settings.RUNTIME_TIMEOUT_SECONDS}s"
            )
        except (DockerException, OSError) as e:
            # requests' ConnectionError is an OSError
            raise RuntimeUnavailable(f"Docker list failed: {e}")

        containers = []
        for raw in raw_containers:
            if self.is_infrastructure(raw.name, raw.labels):
                continue
            containers.append(self.to_container(raw))
        return containers

    async def ping(self) -> bool:
        try:
            return bool(await self._call(self.docker_client.ping))
        except (RuntimeUnavailable, asyncio.TimeoutError, DockerException, OSError):
            return False

    def is_infrastructure(self, name: str, labels: Optional[Dict[str, str]] = None) -> bool:
        tokens = name.lstrip("/").lower().replace("_", "-").split("-")
        markers = {m.lower() for m in self.settings.INFRASTRUCTURE_MARKERS}
        if markers.intersection(tokens):
            return True
        key, _, value = self.settings.INFRASTRUCTURE_LABEL.partition("=")
        return bool(key) and (labels or {}).get(key) == value

    def to_container(self, raw) -> Container:
        """Map a docker.models.containers.Container to the internal model."""
        attrs = raw.attrs or {}
        state = attrs.get("State")
        status = state.get("Status") if isinstance(state, dict) else raw.status
        ports = _parse_ports((attrs.get("NetworkSettings") or {}).get("Ports"))

        published = next((p for p in ports if p.host_port), None)
        url = f"http://{self.settings.PUBLIC_HOST}:{published.host_port}" if published else None

        return Container(
            id=raw.id,
            name=raw.name.lstrip("/"),
            image=(attrs.get("Config") or {}).get("Image") or attrs.get("Image", ""),
            status=ContainerStatus.from_runtime(status),
            ports=ports,
            created_at=_parse_created(attrs.get("Created")),
            url=url,
            labels=dict(raw.labels or {}),
        )

    # -------------------------------
    # Container lifecycle
    # -------------------------------
    async def start_container(self, container_id: str) -> None:
        await self._run_action(ContainerAction.START, container_id, lambda c: c.start())

    async def stop_container(self, container_id: str) -> None:
        await self._run_action(
            ContainerAction.STOP, container_id,
            lambda c: c.stop(timeout=self.settings.STOP_TIMEOUT_SECONDS),
            grace=self.settings.STOP_TIMEOUT_SECONDS,
        )

    async def restart_container(self, container_id: str) -> None:
        await self._run_action(
            ContainerAction.RESTART, container_id,
            lambda c: c.restart(timeout=self.settings.STOP_TIMEOUT_SECONDS),
            grace=self.settings.STOP_TIMEOUT_SECONDS,
        )

    async def remove_container(self, container_id: str) -> None:
        await self._run_action(
            ContainerAction.REMOVE, container_id,
            lambda c: c.remove(force=self.settings.FORCE_REMOVE),
        )

    async def _run_action(self, action: ContainerAction, container_id: str, command, grace: float = 0) -> None:
        """
        Forward one command and wait for Docker's acknowledgement, not for the state change.

        grace extends the wait for commands that let the container shut down first
        (stop, restart). When the wait runs out the worker thread keeps going; the
        RuntimeActionError carries its future as in_flight.
        """
        def _execute():
            container = self.docker_client.containers.get(container_id)
            command(container)

        work = asyncio.ensure_future(asyncio.to_thread(_execute))
        try:
            await asyncio.wait_for(
                asyncio.shield(work),
                timeout=self.settings.RUNTIME_TIMEOUT_SECONDS + grace,
            )
        except asyncio.TimeoutError:
            work.add_done_callback(functools.partial(self._log_late_result, action, container_id))
            raise RuntimeActionError(action.value, container_id, "timeout", in_flight=work)
        except RequestTimeout:
            raise RuntimeActionError(action.value, container_id, "timeout")
        except NotFound as e:
            raise RuntimeActionError(
                action.value, container_id, f"container not found ({e.explanation or e})"
            )
        except APIError as e:
            raise RuntimeActionError(action.value, container_id, str(e.explanation or e))
        except (DockerException, OSError) as e:
            raise RuntimeUnavailable(f"Docker {action.value} failed: {e}")
        logger.info(f"Docker acknowledged {action.value} for container {container_id}")

    @staticmethod
    def _log_late_result(action: ContainerAction, container_id: str, work: asyncio.Future) -> None:
        if work.cancelled():
            return
        error = work.exception()
        if error is None:
            logger.info(f"Docker finished {action.value} for container {container_id} after the timeout")
        else:
            logger.warning(f"Docker {action.value} for container {container_id} failed after the timeout: {error}")
