"""Process-wide scoring service, created lazily on first use.

A module global built on first access, with ``clear()`` for tests. The
training cache inside it is started from the app lifespan.
"""

import logging

from config import settings
from services.pipeline.orchestrator import ScoringService
from services.pipeline.regression_model import TrainingConfig
from services.pipeline.snapshot_store import SnapshotStore
from services.pipeline.training_cache import TrainingCache
from services.population import PopulationSource, get_population_source

logger = logging.getLogger(__name__)

_service: ScoringService | None = None
_population: PopulationSource | None = None


def get_population() -> PopulationSource:
    global _population
    if _population is None:
        _population = get_population_source(settings.population_csv)
    return _population


def _create_service() -> ScoringService:
    store = SnapshotStore(settings.model_dir) if settings.model_persistence else None
    cache = TrainingCache(
        population=get_population(),
        config=TrainingConfig.from_settings(settings),
        store=store,
    )
    return ScoringService(cache)


def get_service() -> ScoringService:
    """Get the scoring service, creating it on first access."""
    global _service
    if _service is None:
        _service = _create_service()
    return _service


async def preload() -> ScoringService:
    """Create the service and start background training (e.g. at startup)."""
    svc = get_service()
    svc.cache.start()
    return svc


async def shutdown() -> None:
    if _service is not None:
        await _service.cache.close()


def clear() -> None:
    """Drop the service and population. Useful for testing."""
    global _service, _population
    _service = None
    _population = None
