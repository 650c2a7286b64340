# app/services/dispatcher.py
import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from app.core.logger import get_logger
from app.domain.container import ContainerAction
from app.domain.errors import (
    ActionInProgress,
    ControlPlaneError,
    InvalidAction,
    RuntimeActionError,
    RuntimeUnavailable,
)
from app.domain.ports import ContainerRuntime, EventPublisher
from app.services.activity import ActivityRecorder
from app.services.events import CONTAINER_UPDATED
from app.services.registry import ContainerRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class ActionOutcome:
    container_id: str
    action: str
    success: bool
    message: str


class ActionDispatcher:
    """
    Forwards lifecycle actions to the runtime with at most one action in flight
    per container. A second request for a busy container is rejected, not queued.
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        registry: Optional[ContainerRegistry] = None,
        publisher: Optional[EventPublisher] = None,
        activity: Optional[ActivityRecorder] = None,
        refresh_after_action: bool = True,
    ):
        self.runtime = runtime
        self.registry = registry
        self.publisher = publisher
        self.activity = activity
        self.refresh_after_action = refresh_after_action
        self._locks: Dict[str, asyncio.Lock] = {}
        self._pending: Dict[str, str] = {}
        self._handlers: Dict[ContainerAction, Callable[[str], Awaitable[None]]] = {
            ContainerAction.START: runtime.start_container,
            ContainerAction.STOP: runtime.stop_container,
            ContainerAction.RESTART: runtime.restart_container,
            ContainerAction.REMOVE: runtime.remove_container,
        }

    def pending_action(self, container_id: str) -> Optional[str]:
        return self._pending.get(container_id)

    @staticmethod
    def parse_action(action: str) -> ContainerAction:
        try:
            return ContainerAction(action)
        except ValueError:
            raise InvalidAction(action)

    async def dispatch(self, container_id: str, action: str, actor: str | None = None) -> ActionOutcome:
        parsed = self.parse_action(action)

        lock = self._locks.setdefault(container_id, asyncio.Lock())
        if lock.locked():
            logger.warning(
                f"Rejecting {parsed.value} on {container_id}: {self._pending.get(container_id)} in progress"
            )
            raise ActionInProgress(container_id, self._pending.get(container_id, "unknown"))

        # acquiring a free asyncio.Lock does not yield, so check-and-acquire is atomic
        await lock.acquire()
        self._pending[container_id] = parsed.value
        known = self.registry.snapshot().get(container_id) if self.registry is not None else None
        in_flight = None
        try:
            await self._handlers[parsed](container_id)
        except RuntimeActionError as e:
            in_flight = e.in_flight
            logger.warning(f"{parsed.value} on {container_id} failed: {e}")
            raise
        except ControlPlaneError as e:
            logger.warning(f"{parsed.value} on {container_id} failed: {e}")
            raise
        finally:
            if in_flight is not None and not in_flight.done():
                # Docker is still executing the abandoned command
                logger.warning(f"{parsed.value} on {container_id} still running in Docker, holding the container")
                in_flight.add_done_callback(lambda _: self._release(container_id, lock))
            else:
                self._release(container_id, lock)

        await self._after_success(container_id, parsed, actor, known.name if known is not None else None)
        return ActionOutcome(
            container_id=container_id,
            action=parsed.value,
            success=True,
            message=f"Container {parsed.value} successful",
        )

    def _release(self, container_id: str, lock: asyncio.Lock) -> None:
        self._pending.pop(container_id, None)
        if self._locks.get(container_id) is lock:
            del self._locks[container_id]
        lock.release()

    async def _after_success(
        self,
        container_id: str,
        action: ContainerAction,
        actor: str | None,
        name: str | None = None,
    ):
        if self.publisher is not None:
            self.publisher.publish(CONTAINER_UPDATED, {"id": container_id, "action": action.value})

        if self.activity is not None:
            details = {"action": action.value}
            if name:
                details["name"] = name
            self.activity.record(actor, f"container_{action.value}", container_id, details)

        if self.registry is not None and self.refresh_after_action:
            try:
                await self.registry.refresh()
            except RuntimeUnavailable as e:
                logger.warning(f"Refresh after {action.value} on {container_id} failed: {e}")
