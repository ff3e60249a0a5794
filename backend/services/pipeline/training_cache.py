"""Training lifecycle: owns the installed ModelSnapshot.

States::

    UNINITIALIZED --start()--> TRAINING --done--> READY
    READY --refresh()--> REFRESHING --done--> READY

Readers await readiness once, then read the installed snapshot, which is
immutable. A refresh builds a new snapshot off the event loop and swaps the
reference when done; in-flight requests keep the snapshot they already hold.
At most one training run is in flight; concurrent refreshes share it.
"""

import asyncio
import logging
from enum import Enum

from services.pipeline.regression_model import (
    ModelSnapshot,
    TrainingConfig,
    degenerate_snapshot,
    train_snapshot,
)
from services.pipeline.snapshot_store import SnapshotStore
from services.population import PopulationSource

logger = logging.getLogger(__name__)


class CacheState(str, Enum):
    UNINITIALIZED = "uninitialized"
    TRAINING = "training"
    READY = "ready"
    REFRESHING = "refreshing"


class TrainingCache:
    def __init__(
        self,
        population: PopulationSource,
        config: TrainingConfig = TrainingConfig(),
        store: SnapshotStore | None = None,
    ) -> None:
        self._population = population
        self._config = config
        self._store = store
        self._snapshot: ModelSnapshot | None = None
        self._ready = asyncio.Event()
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[ModelSnapshot] | None = None
        self._version = 0
        self.state = CacheState.UNINITIALIZED

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def start(self) -> None:
        """Schedule the initial training run. Must be called inside a running loop."""
        if self.state is not CacheState.UNINITIALIZED:
            return
        self.state = CacheState.TRAINING
        self._task = asyncio.create_task(self._run(bootstrap=True))

    async def wait_ready(self) -> None:
        if self.state is CacheState.UNINITIALIZED:
            self.start()
        await self._ready.wait()

    async def snapshot(self) -> ModelSnapshot:
        await self.wait_ready()
        assert self._snapshot is not None
        return self._snapshot

    async def refresh(self) -> ModelSnapshot:
        """Retrain from the current population and install the result."""
        if self._task is not None and not self._task.done():
            logger.info("Training already in flight, joining it")
            return await asyncio.shield(self._task)

        self.state = CacheState.REFRESHING if self._snapshot is not None else CacheState.TRAINING
        self._task = asyncio.create_task(self._run(bootstrap=False))
        return await asyncio.shield(self._task)

    async def close(self) -> None:
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self, bootstrap: bool) -> ModelSnapshot:
        async with self._lock:
            try:
                snapshot = await self._build(bootstrap)
            except Exception:
                if self._snapshot is not None:
                    logger.exception("Refresh failed, keeping snapshot v%d", self._version)
                    self.state = CacheState.READY
                    return self._snapshot
                logger.exception("Training failed, falling back to degenerate snapshot")
                snapshot = degenerate_snapshot(version=self._version + 1)
            self._install(snapshot)
            return snapshot

    async def _build(self, bootstrap: bool) -> ModelSnapshot:
        records = await self._population.list_all_compensation_records()

        warm = None
        if bootstrap and self._store is not None:
            warm = await asyncio.to_thread(self._store.load)

        snapshot = await asyncio.to_thread(
            train_snapshot, records, self._config, self._version + 1, warm
        )

        if snapshot.report is not None and self._store is not None:
            await asyncio.to_thread(self._store.save, snapshot)
        return snapshot

    def _install(self, snapshot: ModelSnapshot) -> None:
        self._snapshot = snapshot
        self._version = snapshot.version
        self.state = CacheState.READY
        self._ready.set()
        logger.info(
            "Snapshot v%d installed (%d records, %d locations%s)",
            snapshot.version,
            len(snapshot.records),
            len(snapshot.vocabulary),
            ", degenerate" if snapshot.degenerate else "",
        )
