"""Similarity between profiles and coherence-aligned salary closeness.

Two notions live here:

- feature similarity: Gaussian kernels on location index distance and
  experience gap, weighted 0.6 / 0.4;
- coherence-aligned similarity: how close an observed compensation is to the
  compensation the model predicts for the *target* profile, using the same
  relative-error metric as the target's own coherence score.

Location distance is the absolute difference of vocabulary indices, which
follows discovery order in the population rather than geography.
"""

import math
from typing import Sequence

import numpy as np

from models.schemas.compensation_record import CompensationRecord
from services.pipeline.feature_encoder import LocationVocabulary
from services.score_calcul import clamp01

W_LOCATION = 0.6
W_XP = 0.4
SIGMA_XP = 2.0  # years


def feature_similarity(
    a: tuple[str | None, float | None],
    b: tuple[str | None, float | None],
    vocabulary: LocationVocabulary,
) -> float:
    """Similarity of two (location, total_xp) profiles in [0, 1]."""
    d_loc = abs(vocabulary.index_of(a[0]) - vocabulary.index_of(b[0]))
    location_sim = math.exp(-(d_loc * d_loc) / 2)

    dx = (a[1] or 0.0) - (b[1] or 0.0)
    xp_sim = math.exp(-(dx * dx) / (2 * SIGMA_XP * SIGMA_XP))

    return clamp01(W_LOCATION * location_sim + W_XP * xp_sim)


def relative_error_score(actual: float, predicted: float) -> float:
    """``1 - |actual - predicted| / actual`` in [0, 1]; 0 when actual <= 0."""
    if actual <= 0:
        return 0.0
    return clamp01(1 - abs(actual - predicted) / actual)


def coherence_score(actual: float, predicted: float) -> float:
    """Coherence of a declared compensation with the model's prediction."""
    return relative_error_score(actual, predicted)


def similarity_to_prediction(comparison_actual: float, target_predicted: float) -> float:
    return relative_error_score(comparison_actual, target_predicted)


def similarity_scores(
    records: Sequence[CompensationRecord],
    target_predicted: float,
) -> np.ndarray:
    """Coherence-aligned similarity of every record against one prediction."""
    actual = np.array([r.compensation for r in records], dtype=np.float64)
    if actual.size == 0:
        return actual
    scores = np.zeros_like(actual)
    positive = actual > 0
    scores[positive] = 1 - np.abs(actual[positive] - target_predicted) / actual[positive]
    return np.clip(scores, 0.0, 1.0)
