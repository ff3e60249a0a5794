from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from api.dependencies import get_population_source, get_scoring_service
from config import settings
from models.requests import SalaryRequest, ScoreRequest
from models.responses import (
    AnalysisResponse,
    AnalysisSummary,
    CoherenceResponse,
    DiagnosticResult,
    RefreshResponse,
    ScoreStatistics,
    StoredAnalysis,
)
from models.schemas.compensation_record import CompensationRecord
from services.pipeline.orchestrator import ScoringService
from services.repositories import AnalysisNotFound

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


@router.get("/health")
async def health(service: ScoringService = Depends(get_scoring_service)):
    return {"status": "ok", "model": await service.status()}


@router.post("/scores/coherence", response_model=CoherenceResponse)
@limiter.limit(settings.rate_limit)
async def coherence(
    request: Request,
    body: ScoreRequest,
    service: ScoringService = Depends(get_scoring_service),
):
    score = await service.coherence_score(body.to_profile())
    return CoherenceResponse(coherence_score=score)


@router.post("/scores/statistics", response_model=DiagnosticResult)
@limiter.limit(settings.rate_limit)
async def statistics(
    request: Request,
    body: ScoreRequest,
    service: ScoringService = Depends(get_scoring_service),
):
    return await service.statistics(body.to_profile())


@router.post("/scores/analyze", response_model=AnalysisResponse)
@limiter.limit(settings.rate_limit)
async def analyze(
    request: Request,
    body: ScoreRequest,
    service: ScoringService = Depends(get_scoring_service),
):
    return await service.analyze_and_save(body.to_profile())


@router.get("/scores/analyze/{analysis_id}", response_model=StoredAnalysis)
async def get_analysis(analysis_id: str, service: ScoringService = Depends(get_scoring_service)):
    try:
        return await service.get_analysis(analysis_id)
    except AnalysisNotFound:
        raise HTTPException(status_code=404, detail="Analysis not found")


@router.get("/scores/email", response_model=list[AnalysisSummary])
async def find_by_email(email: str, service: ScoringService = Depends(get_scoring_service)):
    return await service.find_by_email(email)


@router.get("/scores/stats", response_model=ScoreStatistics)
async def score_stats(service: ScoringService = Depends(get_scoring_service)):
    return await service.score_statistics()


@router.post("/scores/refresh", response_model=RefreshResponse)
async def refresh(service: ScoringService = Depends(get_scoring_service)):
    return await service.refresh_model()


@router.get("/salaries", response_model=list[CompensationRecord])
async def list_salaries(population=Depends(get_population_source)):
    return await population.list_all_compensation_records()


@router.post("/salaries", response_model=CompensationRecord)
async def create_salary(body: SalaryRequest, population=Depends(get_population_source)):
    if not hasattr(population, "add_record"):
        raise HTTPException(status_code=405, detail="Population source is read-only")
    return await population.add_record(body.to_record())
