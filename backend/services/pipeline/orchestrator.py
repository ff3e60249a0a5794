"""Scoring service: the engine's public operations.

Flow for one request:
    profile
      ├─ TrainingCache.snapshot()          → ModelSnapshot (awaits readiness)
      ├─ snapshot.predict(profile)         → expected compensation
      ├─ similarity_engine.coherence_score → [0, 1]
      └─ statistics_assembler              → DiagnosticResult
                       ↓
         ScoreRepository / AnalysisRepository (attribution only)
"""

import logging
from typing import Any

from models.responses import (
    AnalysisResponse,
    AnalysisSummary,
    DiagnosticResult,
    RefreshResponse,
    ScoreStatistics,
    StoredAnalysis,
)
from models.schemas.profile import Profile
from services.pipeline.similarity_engine import coherence_score, feature_similarity
from services.pipeline.statistics_assembler import assemble_statistics, global_score_statistics
from services.pipeline.training_cache import TrainingCache
from services.repositories import AnalysisRepository, ScoreRepository

logger = logging.getLogger(__name__)


class ScoringService:
    def __init__(
        self,
        cache: TrainingCache,
        scores: ScoreRepository | None = None,
        analyses: AnalysisRepository | None = None,
    ) -> None:
        self.cache = cache
        self.scores = scores or ScoreRepository()
        self.analyses = analyses or AnalysisRepository()

    async def predict(self, profile: Profile) -> float:
        snapshot = await self.cache.snapshot()
        return snapshot.predict(profile.location, profile.xp)

    async def coherence_score(self, profile: Profile) -> float:
        predicted = await self.predict(profile)
        return coherence_score(profile.compensation, predicted)

    async def feature_similarity(self, a: Profile, b: Profile) -> float:
        snapshot = await self.cache.snapshot()
        return feature_similarity((a.location, a.xp), (b.location, b.xp), snapshot.vocabulary)

    async def statistics(self, profile: Profile) -> DiagnosticResult:
        """Full diagnostic; the request is recorded in the score sink first."""
        snapshot = await self.cache.snapshot()
        await self.scores.create(profile)
        return assemble_statistics(profile, snapshot)

    async def analyze_and_save(self, profile: Profile) -> AnalysisResponse:
        output = await self.statistics(profile)
        analysis_id = await self.analyses.save(
            input={
                "location": profile.location or None,
                "total_xp": profile.total_xp,
                "compensation": profile.compensation,
                "email": profile.email,
            },
            output=output.model_dump(mode="json"),
        )
        return AnalysisResponse(id=analysis_id, **output.model_dump())

    async def get_analysis(self, analysis_id: str) -> StoredAnalysis:
        # AnalysisNotFound propagates to the caller
        row = await self.analyses.get(analysis_id)
        return StoredAnalysis(**row)

    async def find_by_email(self, email: str) -> list[AnalysisSummary]:
        rows = await self.analyses.find_by_email(email)
        return [AnalysisSummary(**row) for row in rows]

    async def score_statistics(self) -> ScoreStatistics:
        return global_score_statistics(await self.scores.find_all())

    async def refresh_model(self) -> RefreshResponse:
        snapshot = await self.cache.refresh()
        return RefreshResponse(status="ok", version=snapshot.version, degenerate=snapshot.degenerate)

    async def status(self) -> dict[str, Any]:
        return {"state": self.cache.state.value, "version": self.cache.version}
