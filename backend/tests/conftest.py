"""Shared test configuration, pytest markers and population fixtures."""

import pytest
import torch.nn as nn

from models.schemas.compensation_record import CompensationRecord
from services.pipeline.feature_encoder import LocationVocabulary, NormalizationRange
from services.pipeline.regression_model import ModelSnapshot, TrainingConfig

LOCATIONS = ["Paris", "Lyon", "Nantes", "Bordeaux", "Lille"]


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: trains the real regression model (slower)"
    )


def linear_compensation(location_index: int, xp: float) -> float:
    return 30000 + 2500 * xp + 4000 * location_index


@pytest.fixture
def synthetic_records() -> list[CompensationRecord]:
    """100 records: 5 locations x 20 experience levels, linear compensation."""
    records = []
    for i in range(100):
        loc_idx = i % 5
        xp = float(i // 5)
        records.append(CompensationRecord(
            location=LOCATIONS[loc_idx],
            total_xp=xp,
            compensation=linear_compensation(loc_idx, xp),
        ))
    return records


@pytest.fixture
def fast_config() -> TrainingConfig:
    return TrainingConfig(max_epochs=20, seed=0)


@pytest.fixture
def constant_snapshot():
    """Factory: snapshot whose network always outputs ``norm``."""

    def _make(records=(), norm=0.5, output_range=(40000.0, 60000.0), locations=("other",)):
        vocabulary = LocationVocabulary(tuple(locations))
        net = nn.Sequential(nn.Linear(len(vocabulary) + 1, 1))
        nn.init.zeros_(net[0].weight)
        nn.init.constant_(net[0].bias, norm)
        net.eval()
        return ModelSnapshot(
            vocabulary=vocabulary,
            xp_range=NormalizationRange(0.0, 20.0),
            output_range=NormalizationRange(*output_range),
            network=net,
            records=tuple(records),
            version=1,
        )

    return _make
