"""Compensation regression model: a small feed-forward network in PyTorch.

Maps an encoded profile (one-hot location + normalized experience) to a
normalized compensation in [0, 1]. Training produces an immutable
``ModelSnapshot`` bundling the weights with the vocabulary and ranges they
were trained against.

Populations smaller than ``min_records`` skip training and get a degenerate
snapshot: fallback-only vocabulary, [0, 1] ranges and a single untrained
linear layer, so prediction is still defined.
"""

import copy
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np
import torch
import torch.nn as nn

from models.schemas.compensation_record import CompensationRecord
from services.pipeline.feature_encoder import (
    LocationVocabulary,
    NormalizationRange,
    build_vocabulary,
    denormalize,
    encode,
    encode_batch,
    encode_targets,
    make_range,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainingConfig:
    min_records: int = 5
    hidden_units: tuple[int, ...] = (64, 16)
    learning_rate: float = 0.01
    batch_size: int = 32
    max_epochs: int = 200
    patience: int = 10
    min_delta: float = 1e-6
    validation_split: float = 0.1
    restore_best_weights: bool = False
    timeout_seconds: float | None = None
    seed: int | None = None

    @classmethod
    def from_settings(cls, settings: Any) -> "TrainingConfig":
        return cls(
            min_records=settings.min_training_records,
            hidden_units=tuple(settings.hidden_units),
            learning_rate=settings.learning_rate,
            batch_size=settings.batch_size,
            max_epochs=settings.max_epochs,
            patience=settings.patience,
            min_delta=settings.min_delta,
            validation_split=settings.validation_split,
            restore_best_weights=settings.restore_best_weights,
            timeout_seconds=settings.training_timeout_seconds,
            seed=settings.training_seed,
        )


@dataclass
class TrainingReport:
    epochs_run: int = 0
    best_val_loss: float = math.inf
    final_loss: float = math.inf  # MAE on the validation split (or train)
    final_mse: float = math.inf
    stopped_early: bool = False
    timed_out: bool = False
    history: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class PersistedWeights:
    """Network weights read back from the snapshot store."""
    state_dict: dict[str, torch.Tensor]
    input_dim: int
    hidden_units: tuple[int, ...]

    def matches(self, input_dim: int, hidden_units: tuple[int, ...]) -> bool:
        return self.input_dim == input_dim and tuple(self.hidden_units) == tuple(hidden_units)


def build_network(input_dim: int, hidden_units: Sequence[int] = (64, 16)) -> nn.Sequential:
    """ReLU MLP with a single linear output unit."""
    layers: list[nn.Module] = []
    prev = input_dim
    for units in hidden_units:
        layers.extend([nn.Linear(prev, units), nn.ReLU()])
        prev = units
    layers.append(nn.Linear(prev, 1))
    return nn.Sequential(*layers)


def build_degenerate_network(input_dim: int = 2) -> nn.Sequential:
    # Default init only; this model is never fitted.
    return nn.Sequential(nn.Linear(input_dim, 1))


@dataclass(frozen=True)
class ModelSnapshot:
    """Weights + vocabulary + ranges, valid together as a unit.

    Snapshots are never mutated after installation; a refresh builds a new
    one and swaps the reference.
    """
    vocabulary: LocationVocabulary
    xp_range: NormalizationRange
    output_range: NormalizationRange
    network: nn.Module
    records: tuple[CompensationRecord, ...] = ()
    version: int = 0
    degenerate: bool = False
    hidden_units: tuple[int, ...] = ()
    report: TrainingReport | None = None

    @property
    def input_dim(self) -> int:
        return len(self.vocabulary) + 1

    def encode(self, location: str | None, total_xp: float | None) -> np.ndarray:
        return encode(location, total_xp, self.vocabulary, self.xp_range)

    def predict(self, location: str | None, total_xp: float | None) -> float:
        """Expected compensation for a profile, in output units."""
        x = torch.from_numpy(self.encode(location, total_xp)).unsqueeze(0)
        with torch.no_grad():
            norm = float(self.network(x).item())
        return self._to_compensation(norm)

    def predict_many(self, profiles: Sequence[tuple[str | None, float | None]]) -> np.ndarray:
        if not profiles:
            return np.zeros(0, dtype=np.float64)
        x = torch.from_numpy(
            np.stack([self.encode(loc, xp) for loc, xp in profiles])
        )
        with torch.no_grad():
            norm = self.network(x).squeeze(1).numpy()
        return np.array([self._to_compensation(float(v)) for v in norm])

    def _to_compensation(self, norm: float) -> float:
        if not math.isfinite(norm):
            norm = 0.0
        norm = max(0.0, min(1.0, norm))
        return denormalize(norm, self.output_range)


def fit_network(
    network: nn.Module,
    x: np.ndarray,
    y: np.ndarray,
    config: TrainingConfig,
) -> TrainingReport:
    """Train with Adam on MAE, early stopping on the held-out split.

    The validation rows are drawn once per run; training rows are reshuffled
    into mini-batches every epoch. When the split would leave fewer than two
    validation rows, the training loss drives early stopping.
    """
    generator = torch.Generator()
    if config.seed is not None:
        generator.manual_seed(config.seed)

    n = len(x)
    x_t = torch.from_numpy(np.asarray(x, dtype=np.float32))
    y_t = torch.from_numpy(np.asarray(y, dtype=np.float32))

    perm = torch.randperm(n, generator=generator)
    n_val = int(round(n * config.validation_split))
    if n_val >= 2 and n - n_val >= 1:
        val_idx, train_idx = perm[:n_val], perm[n_val:]
    else:
        val_idx, train_idx = None, perm

    optimizer = torch.optim.Adam(network.parameters(), lr=config.learning_rate)
    mae = nn.L1Loss()
    mse = nn.MSELoss()

    report = TrainingReport()
    best_state: dict[str, torch.Tensor] | None = None
    wait = 0
    deadline = time.monotonic() + config.timeout_seconds if config.timeout_seconds else None

    for epoch in range(config.max_epochs):
        network.train()
        order = train_idx[torch.randperm(len(train_idx), generator=generator)]
        running = 0.0
        for start in range(0, len(order), config.batch_size):
            idx = order[start:start + config.batch_size]
            optimizer.zero_grad()
            loss = mae(network(x_t[idx]), y_t[idx])
            loss.backward()
            optimizer.step()
            running += loss.item() * len(idx)
        train_loss = running / max(1, len(order))

        network.eval()
        with torch.no_grad():
            if val_idx is not None:
                pred = network(x_t[val_idx])
                val_loss = mae(pred, y_t[val_idx]).item()
                val_mse = mse(pred, y_t[val_idx]).item()
            else:
                pred = network(x_t[train_idx])
                val_loss = train_loss
                val_mse = mse(pred, y_t[train_idx]).item()

        report.epochs_run = epoch + 1
        report.final_loss = val_loss
        report.final_mse = val_mse
        report.history.append(val_loss)

        if val_loss + config.min_delta < report.best_val_loss:
            report.best_val_loss = val_loss
            wait = 0
            if config.restore_best_weights:
                best_state = copy.deepcopy(network.state_dict())
        else:
            wait += 1
            if wait >= config.patience:
                logger.info("Early stopping @%d (best val_loss=%.5f)", epoch, report.best_val_loss)
                report.stopped_early = True
                break

        if deadline is not None and time.monotonic() > deadline:
            logger.warning("Training timed out after %d epochs", epoch + 1)
            report.timed_out = True
            break

    if config.restore_best_weights and best_state is not None:
        network.load_state_dict(best_state)
    network.eval()
    return report


def degenerate_snapshot(
    records: Sequence[CompensationRecord] = (),
    version: int = 0,
) -> ModelSnapshot:
    vocabulary = LocationVocabulary()
    network = build_degenerate_network(len(vocabulary) + 1)
    network.eval()
    return ModelSnapshot(
        vocabulary=vocabulary,
        xp_range=NormalizationRange(0.0, 1.0),
        output_range=NormalizationRange(0.0, 1.0),
        network=network,
        records=tuple(records),
        version=version,
        degenerate=True,
    )


def train_snapshot(
    records: Sequence[CompensationRecord],
    config: TrainingConfig = TrainingConfig(),
    version: int = 0,
    warm_state: PersistedWeights | None = None,
) -> ModelSnapshot:
    """Build a snapshot from the population.

    ``warm_state`` (weights loaded from disk) is reused only when its shape
    matches the vocabulary computed from the current population; vocabulary
    and ranges are always recomputed.
    """
    records = tuple(records)
    if len(records) < config.min_records:
        logger.info(
            "Only %d records (< %d), using degenerate snapshot",
            len(records), config.min_records,
        )
        return degenerate_snapshot(records, version)

    vocabulary = build_vocabulary(records)
    xp_range = make_range([r.total_xp if r.total_xp is not None else 0.0 for r in records])
    output_range = make_range([r.compensation for r in records])
    input_dim = len(vocabulary) + 1
    hidden_units = tuple(config.hidden_units)

    report = None
    if warm_state is not None and warm_state.matches(input_dim, hidden_units):
        network = build_network(input_dim, hidden_units)
        network.load_state_dict(warm_state.state_dict)
        logger.info("Reusing persisted weights (%d inputs)", input_dim)
    else:
        if warm_state is not None:
            logger.info(
                "Persisted weights expect %d inputs, population needs %d; retraining",
                warm_state.input_dim, input_dim,
            )
        if config.seed is not None:
            torch.manual_seed(config.seed)
        network = build_network(input_dim, hidden_units)
        x = encode_batch(records, vocabulary, xp_range)
        y = encode_targets(records, output_range)
        report = fit_network(network, x, y, config)
        logger.info(
            "Trained on %d records, %d locations: %d epochs, val MAE %.4f, val MSE %.4f",
            len(records), len(vocabulary), report.epochs_run,
            report.final_loss, report.final_mse,
        )

    network.eval()
    return ModelSnapshot(
        vocabulary=vocabulary,
        xp_range=xp_range,
        output_range=output_range,
        network=network,
        records=records,
        version=version,
        degenerate=False,
        hidden_units=hidden_units,
        report=report,
    )
