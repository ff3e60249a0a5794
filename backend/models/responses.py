from typing import Any

from pydantic import BaseModel


class Diagnostic(BaseModel):
    band: str = ""  # fully_aligned | broadly_coherent | mild_mismatch | atypical
    title: str = ""
    icon: str = ""
    description: str = ""


class EstimatedGap(BaseModel):
    predicted: int = 0
    actual: int = 0
    difference: int = 0
    percentage: float = 0.0
    comment: str = ""


class SalaryPosition(BaseModel):
    percentile: int = 0
    rank_label: str = ""
    comparison: str = ""


class PeerComparison(BaseModel):
    near_count: int = 0
    far_count: int = 0
    similar_percentage: int = 0


class SimilarityConfig(BaseModel):
    w_location: float = 0.0
    w_xp: float = 0.0
    sigma_xp: float = 0.0


class SimilarityStats(BaseModel):
    mean: float = 0.0
    std: float = 0.0
    median: float = 0.0
    quartiles: list[float] = []  # [Q1, Q2, Q3]
    percentiles: dict[str, float] = {}  # p10, p25, p50, p75, p90


class HistogramBucket(BaseModel):
    range: str
    count: int = 0


class XpAverage(BaseModel):
    xp: int
    average: int


class XpMedian(BaseModel):
    xp: int
    median: int


class ChartData(BaseModel):
    average_by_xp: list[XpAverage] = []
    median_by_xp: list[XpMedian] = []
    histogram: list[HistogramBucket] = []


class SnapshotMeta(BaseModel):
    locations: list[str] = []
    input_min_max: dict[str, tuple[float, float]] = {}
    output_min_max: tuple[float, float] = (0.0, 1.0)
    snapshot_version: int = 0
    degenerate: bool = False


class DiagnosticResult(BaseModel):
    """Per-request coherence diagnostic. Not persisted by the engine."""
    diagnostic: Diagnostic = Diagnostic()
    estimated_gap: EstimatedGap = EstimatedGap()
    salary_position: SalaryPosition = SalaryPosition()
    peer_comparison: PeerComparison = PeerComparison()
    similarity_config: SimilarityConfig = SimilarityConfig()
    coherence_score: float = 0.0
    mean_score: float = 0.0
    std_score: float = 0.0
    similarity_stats: SimilarityStats = SimilarityStats()
    chart_data: ChartData = ChartData()
    meta: SnapshotMeta = SnapshotMeta()


class CoherenceResponse(BaseModel):
    coherence_score: float = 0.0


class AnalysisResponse(DiagnosticResult):
    id: str


class StoredAnalysis(BaseModel):
    id: str
    input: dict[str, Any]
    output: dict[str, Any]
    created_at: str


class AnalysisSummary(BaseModel):
    id: str
    input: dict[str, Any]


class ScoreStatistics(BaseModel):
    number_of_scores: int = 0
    average_compensation: float = 0.0
    median_compensation: float = 0.0
    number_of_users: int = 0


class RefreshResponse(BaseModel):
    status: str = "ok"
    version: int = 0
    degenerate: bool = False
