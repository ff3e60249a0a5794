import numpy as np
import pytest

from models.schemas.compensation_record import CompensationRecord
from services.pipeline.feature_encoder import (
    FALLBACK_LOCATION,
    LocationVocabulary,
    NormalizationRange,
    build_vocabulary,
    denormalize,
    encode,
    encode_batch,
    encode_targets,
    make_range,
    normalize,
)


class TestNormalize:
    def test_bounds(self):
        rng = NormalizationRange(10.0, 30.0)
        assert normalize(10.0, rng) == 0.0
        assert normalize(30.0, rng) == 1.0
        assert normalize(20.0, rng) == pytest.approx(0.5)

    def test_out_of_range_saturates(self):
        rng = NormalizationRange(0.0, 10.0)
        assert normalize(-5.0, rng) == 0.0
        assert normalize(50.0, rng) == 1.0

    def test_zero_width_range_is_defined(self):
        value = normalize(3.0, NormalizationRange(3.0, 3.0))
        assert 0.0 <= value <= 1.0

    def test_denormalize_inverts(self):
        rng = NormalizationRange(30000.0, 90000.0)
        assert denormalize(normalize(45000.0, rng), rng) == pytest.approx(45000.0)


class TestMakeRange:
    def test_min_max(self):
        assert make_range([3.0, 1.0, 7.0]) == NormalizationRange(1.0, 7.0)

    def test_degenerate_range_widened(self):
        assert make_range([5.0, 5.0]) == NormalizationRange(5.0, 6.0)

    def test_empty(self):
        assert make_range([]) == NormalizationRange(0.0, 1.0)


class TestVocabulary:
    def test_fallback_first_and_discovery_order(self):
        records = [
            CompensationRecord(location="Lyon", compensation=1),
            CompensationRecord(location="Paris", compensation=1),
            CompensationRecord(location="Lyon", compensation=1),
            CompensationRecord(location=None, compensation=1),
            CompensationRecord(location="other", compensation=1),
        ]
        vocab = build_vocabulary(records)
        assert vocab.locations == (FALLBACK_LOCATION, "Lyon", "Paris")

    def test_empty_population_keeps_fallback(self):
        vocab = build_vocabulary([])
        assert vocab.locations == (FALLBACK_LOCATION,)
        assert vocab.index_of("anywhere") == 0

    def test_unknown_location_maps_to_fallback(self):
        vocab = LocationVocabulary(("other", "Lyon"))
        assert vocab.index_of("Lyon") == 1
        assert vocab.index_of("Tokyo") == 0
        assert vocab.index_of("") == 0
        assert vocab.index_of(None) == 0

    def test_rejects_vocabulary_without_fallback(self):
        with pytest.raises(ValueError):
            LocationVocabulary(("Lyon",))


class TestEncode:
    def test_one_hot_plus_xp(self):
        vocab = LocationVocabulary(("other", "Lyon", "Paris"))
        vec = encode("Paris", 5.0, vocab, NormalizationRange(0.0, 10.0))
        assert vec.dtype == np.float32
        assert vec.tolist() == [0.0, 0.0, 1.0, 0.5]

    def test_missing_xp_defaults_to_zero(self):
        vocab = LocationVocabulary(("other",))
        vec = encode("x", None, vocab, NormalizationRange(0.0, 10.0))
        assert vec.tolist() == [1.0, 0.0]

    def test_all_features_in_unit_interval(self):
        vocab = LocationVocabulary(("other", "Lyon"))
        vec = encode("Lyon", 99.0, vocab, NormalizationRange(0.0, 10.0))
        assert ((vec >= 0) & (vec <= 1)).all()

    def test_batch_shapes(self):
        vocab = LocationVocabulary(("other", "Lyon"))
        records = [
            CompensationRecord(location="Lyon", total_xp=2, compensation=40000),
            CompensationRecord(location="Nice", total_xp=4, compensation=50000),
        ]
        x = encode_batch(records, vocab, NormalizationRange(0.0, 4.0))
        y = encode_targets(records, NormalizationRange(40000.0, 50000.0))
        assert x.shape == (2, 3)
        assert y.shape == (2, 1)
        assert y[:, 0].tolist() == [0.0, 1.0]

    def test_empty_batch(self):
        x = encode_batch([], LocationVocabulary(), NormalizationRange())
        assert x.shape == (0, 2)
