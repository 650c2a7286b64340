import asyncio
from typing import Any, Dict, List, Set

from app.core.logger import get_logger
from app.domain.activity import Activity
from app.domain.ports import ActivityRepository

logger = get_logger(__name__)


class ActivityRecorder:
    """
    Best-effort audit trail. record() returns immediately; the write runs as a
    background task and a failing repository only produces a warning.
    """

    def __init__(self, repo: ActivityRepository):
        self.repo = repo
        self._tasks: Set[asyncio.Task] = set()

    def record(
        self,
        actor: str | None,
        action: str,
        resource: str,
        details: Dict[str, Any] | None = None,
    ) -> None:
        activity = Activity(action=action, resource=resource, actor=actor, details=details or {})
        try:
            task = asyncio.get_running_loop().create_task(self._write(activity))
        except RuntimeError:
            logger.warning(f"[AUDIT] No running loop, activity {action} on {resource} not recorded")
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _write(self, activity: Activity) -> None:
        try:
            await self.repo.create(activity)
        except Exception as e:
            logger.warning(f"[AUDIT ERROR] {activity.action} on {activity.resource}: {e}")

    async def drain(self) -> None:
        """Wait for outstanding writes, used at shutdown."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def recent(self, limit: int = 20) -> List[Activity]:
        try:
            return await self.repo.list_recent(limit)
        except Exception as e:
            logger.warning(f"[AUDIT ERROR] Could not read recent activity: {e}")
            return []
