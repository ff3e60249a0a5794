"""Tests for the scoring service (the engine's public operations)."""

import pytest

from models.responses import AnalysisResponse, DiagnosticResult
from models.schemas.profile import Profile
from services.pipeline.orchestrator import ScoringService
from services.pipeline.training_cache import TrainingCache
from services.population import InMemoryPopulation
from services.repositories import AnalysisNotFound


@pytest.fixture
def service(synthetic_records, fast_config) -> ScoringService:
    return ScoringService(TrainingCache(InMemoryPopulation(synthetic_records), fast_config))


TARGET = Profile(location="Lyon", total_xp=10, compensation=59000, email="jane@example.com")


class TestScoringService:
    @pytest.mark.asyncio
    async def test_predict_within_population_range(self, service):
        predicted = await service.predict(TARGET)
        assert 30000 <= predicted <= 93500

    @pytest.mark.asyncio
    async def test_coherence_bounds(self, service):
        score = await service.coherence_score(TARGET)
        assert 0.0 <= score <= 1.0
        assert await service.coherence_score(TARGET.model_copy(update={"compensation": 0})) == 0.0

    @pytest.mark.asyncio
    async def test_missing_xp_defaults_to_zero(self, service):
        without = await service.predict(Profile(location="Lyon", compensation=1))
        with_zero = await service.predict(Profile(location="Lyon", total_xp=0, compensation=1))
        assert without == pytest.approx(with_zero)

    @pytest.mark.asyncio
    async def test_feature_similarity_uses_snapshot_vocabulary(self, service):
        assert await service.feature_similarity(TARGET, TARGET) == pytest.approx(1.0)
        other = Profile(location="Lille", total_xp=10, compensation=1)
        assert await service.feature_similarity(TARGET, other) < 1.0

    @pytest.mark.asyncio
    async def test_statistics_records_request(self, service):
        result = await service.statistics(TARGET)
        assert isinstance(result, DiagnosticResult)
        assert 0.0 <= result.coherence_score <= 1.0
        assert sum(b.count for b in result.chart_data.histogram) == 100
        assert result.meta.locations[0] == "other"

        recorded = await service.scores.find_all()
        assert recorded == [TARGET]

    @pytest.mark.asyncio
    async def test_analyze_save_and_lookup(self, service):
        saved = await service.analyze_and_save(TARGET)
        assert isinstance(saved, AnalysisResponse)

        stored = await service.get_analysis(saved.id)
        assert stored.input["email"] == "jane@example.com"
        assert stored.output["coherence_score"] == pytest.approx(saved.coherence_score)

        by_email = await service.find_by_email("jane@example.com")
        assert [a.id for a in by_email] == [saved.id]
        assert await service.find_by_email("nobody@example.com") == []

    @pytest.mark.asyncio
    async def test_unknown_analysis_raises(self, service):
        with pytest.raises(AnalysisNotFound):
            await service.get_analysis("does-not-exist")

    @pytest.mark.asyncio
    async def test_score_statistics(self, service):
        await service.statistics(TARGET)
        await service.statistics(TARGET.model_copy(update={"compensation": 41000, "email": None}))
        stats = await service.score_statistics()
        assert stats.number_of_scores == 2
        assert stats.average_compensation == 50000
        assert stats.number_of_users == 1

    @pytest.mark.asyncio
    async def test_refresh_model_ack(self, service):
        await service.predict(TARGET)
        ack = await service.refresh_model()
        assert ack.status == "ok"
        assert ack.version == 2
        assert ack.degenerate is False


class TestColdStart:
    @pytest.mark.asyncio
    async def test_empty_population_still_answers(self, fast_config):
        service = ScoringService(TrainingCache(InMemoryPopulation(), fast_config))
        result = await service.statistics(TARGET)
        assert result.meta.degenerate
        assert 0.0 <= result.coherence_score <= 1.0
        assert result.salary_position.percentile == 0
