"""Optional on-disk store for trained network weights.

Used only to warm-start after a restart. Every failure is logged and
swallowed: the engine keeps working with in-memory snapshots.
"""

import logging
from pathlib import Path

import torch

from services.pipeline.regression_model import ModelSnapshot, PersistedWeights

logger = logging.getLogger(__name__)

MODEL_FILENAME = "model.pt"


class SnapshotStore:
    def __init__(self, model_dir: str | Path) -> None:
        self.path = Path(model_dir) / MODEL_FILENAME

    def save(self, snapshot: ModelSnapshot) -> bool:
        if snapshot.degenerate:
            return False
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            torch.save(
                {
                    "state_dict": snapshot.network.state_dict(),
                    "input_dim": snapshot.input_dim,
                    "hidden_units": list(snapshot.hidden_units),
                    "locations": list(snapshot.vocabulary.locations),
                },
                self.path,
            )
            logger.info("Model saved to %s", self.path)
            return True
        except Exception as e:
            logger.warning("Could not save model to %s: %s", self.path, e)
            return False

    def load(self) -> PersistedWeights | None:
        if not self.path.exists():
            logger.info("No persisted model at %s", self.path)
            return None
        try:
            payload = torch.load(self.path, map_location="cpu", weights_only=True)
            weights = PersistedWeights(
                state_dict=payload["state_dict"],
                input_dim=int(payload["input_dim"]),
                hidden_units=tuple(int(u) for u in payload["hidden_units"]),
            )
            logger.info("Model loaded from %s", self.path)
            return weights
        except Exception as e:
            logger.warning("Could not load model from %s: %s", self.path, e)
            return None
