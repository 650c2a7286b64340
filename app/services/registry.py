# app/services/registry.py
import asyncio
import dataclasses
import itertools
from typing import List, Optional

from app.core.logger import get_logger
from app.domain.client import Client
from app.domain.container import Container, Snapshot
from app.domain.ports import ContainerRuntime, EventPublisher, QuotaProvider, TenantAttribution
from app.services.events import CONTAINER_REMOVED, CONTAINER_UPDATED

logger = get_logger(__name__)


class ContainerRegistry:
    """
    Holds the current Snapshot of runtime containers.

    refresh() builds a complete new Snapshot and swaps the reference; readers
    take the reference once and never observe a half-built generation.
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        attribution: TenantAttribution,
        quotas: QuotaProvider,
        publisher: Optional[EventPublisher] = None,
    ):
        self.runtime = runtime
        self.attribution = attribution
        self.quotas = quotas
        self.publisher = publisher
        self._snapshot = Snapshot()
        self._generations = itertools.count(1)
        self._refresh_task: asyncio.Task | None = None

    # -------------------------------
    # Reads
    # -------------------------------
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def list_containers(
        self,
        tenant_id: str | None = None,
        service_type: str | None = None,
    ) -> List[Container]:
        return self._snapshot.containers_matching(tenant_id, service_type)

    def list_clients(self) -> List[Client]:
        return self._snapshot.clients(self.quotas.quota_for)

    # -------------------------------
    # Refresh
    # -------------------------------
    async def refresh(self) -> List[Container]:
        """
        Query the runtime and install a new snapshot. Raises RuntimeUnavailable and
        keeps the previous snapshot when the runtime call fails.
        """
        generation = next(self._generations)
        raw = await self.runtime.list_containers()

        containers = tuple(
            dataclasses.replace(
                c,
                tenant_id=self.attribution.attribute(c.name),
                service_type=self.attribution.classify(c.name),
            )
            for c in raw
        )

        previous = self._snapshot
        if generation < previous.generation:
            # a refresh that started later already landed
            logger.debug(f"Discarding stale refresh generation {generation} < {previous.generation}")
            return list(previous.containers)

        current = Snapshot(generation=generation, containers=containers)
        self._snapshot = current
        logger.info(f"Snapshot generation {generation} installed with {len(containers)} containers")

        self._publish_changes(previous, current)
        return list(current.containers)

    def _publish_changes(self, previous: Snapshot, current: Snapshot) -> None:
        if self.publisher is None:
            return
        before = {c.id: c for c in previous.containers}
        after = {c.id: c for c in current.containers}

        for container_id, container in after.items():
            if before.get(container_id) != container:
                self.publisher.publish(CONTAINER_UPDATED, {
                    "id": container.id,
                    "name": container.name,
                    "clientId": container.tenant_id,
                    "status": container.status.value,
                })
        for container_id in before.keys() - after.keys():
            self.publisher.publish(CONTAINER_REMOVED, {"id": container_id})

    # --------------------------------------------------------
    #
    #       PERIODIC REFRESH
    #
    # --------------------------------------------------------
    def start_refresh_loop(self, interval: float = 10.0):
        """
        Start background refresh so the snapshot follows the runtime without requests.
        """
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh_loop(interval))

    async def stop_refresh_loop(self):
        if self._refresh_task is None:
            return
        self._refresh_task.cancel()
        try:
            await self._refresh_task
        except asyncio.CancelledError:
            pass
        self._refresh_task = None

    async def _refresh_loop(self, interval: float):
        while True:
            try:
                await self.refresh()
            except Exception as e:
                logger.warning(f"[REFRESH ERROR] {e}")
            await asyncio.sleep(interval)
