import numpy as np
import pytest

from models.schemas.compensation_record import CompensationRecord
from services.pipeline.feature_encoder import LocationVocabulary
from services.pipeline.similarity_engine import (
    W_LOCATION,
    W_XP,
    coherence_score,
    feature_similarity,
    relative_error_score,
    similarity_scores,
    similarity_to_prediction,
)

VOCAB = LocationVocabulary(("other", "Paris", "Lyon", "Nantes"))


class TestFeatureSimilarity:
    def test_identical_profiles(self):
        assert feature_similarity(("Lyon", 4.0), ("Lyon", 4.0), VOCAB) == pytest.approx(1.0)

    def test_decays_with_experience_gap(self):
        near = feature_similarity(("Lyon", 4.0), ("Lyon", 5.0), VOCAB)
        far = feature_similarity(("Lyon", 4.0), ("Lyon", 12.0), VOCAB)
        assert 1.0 > near > far >= W_LOCATION

    def test_location_uses_index_distance(self):
        adjacent = feature_similarity(("Paris", 3.0), ("Lyon", 3.0), VOCAB)
        distant = feature_similarity(("Paris", 3.0), ("Nantes", 3.0), VOCAB)
        assert adjacent == pytest.approx(W_LOCATION * np.exp(-0.5) + W_XP)
        assert distant < adjacent

    def test_unknown_locations_share_fallback(self):
        assert feature_similarity(("Tokyo", 0.0), ("Berlin", 0.0), VOCAB) == pytest.approx(1.0)

    def test_bounded(self):
        s = feature_similarity(("other", 0.0), ("Nantes", 40.0), VOCAB)
        assert 0.0 <= s <= 1.0


class TestCoherence:
    def test_exact_prediction(self):
        assert coherence_score(50000, 50000) == 1.0

    def test_relative_error(self):
        assert coherence_score(50000, 40000) == pytest.approx(0.8)

    def test_clamped_to_zero(self):
        assert coherence_score(10000, 50000) == 0.0

    @pytest.mark.parametrize("actual", [0, -100])
    def test_non_positive_actual(self, actual):
        assert coherence_score(actual, 50000) == 0.0

    def test_comparison_similarity_same_metric(self):
        assert similarity_to_prediction(40000, 50000) == pytest.approx(0.75)


class TestSimilarityScores:
    def test_vectorised_matches_scalar(self):
        records = [
            CompensationRecord(compensation=50000),
            CompensationRecord(compensation=40000),
            CompensationRecord(compensation=0),
            CompensationRecord(compensation=200000),
        ]
        scores = similarity_scores(records, 50000)
        expected = [similarity_to_prediction(r.compensation, 50000) for r in records]
        assert scores.tolist() == pytest.approx(expected)
        assert ((scores >= 0) & (scores <= 1)).all()

    def test_empty(self):
        assert similarity_scores([], 50000).size == 0


def test_relative_error_is_symmetric_around_actual():
    assert relative_error_score(50000, 45000) == relative_error_score(50000, 55000)


def test_infinite_salary_is_incoherent():
    assert relative_error_score(float("inf"), 50000) == 0.0
    assert coherence_score(float("inf"), float("inf")) == 0.0
