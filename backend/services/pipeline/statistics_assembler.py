"""Statistics & diagnostic assembly for one scoring request.

Given a target profile and an installed snapshot (which carries the
population it was trained on), builds:

    1. coherence-aligned similarity of every record vs the target prediction
    2. mean / std / median / quartiles / percentiles of those scores
    3. the target's coherence score and predicted compensation
    4. percentile rank of the declared compensation in the population
    5. near/far peer comparison at a 0.5 similarity threshold
    6. a 10-bucket similarity histogram
    7. average and median compensation per completed year of experience
    8. diagnostic band, estimated gap and salary position texts
"""

import logging
from typing import Iterable

from models.responses import (
    ChartData,
    Diagnostic,
    DiagnosticResult,
    EstimatedGap,
    PeerComparison,
    SalaryPosition,
    ScoreStatistics,
    SimilarityConfig,
    SimilarityStats,
    SnapshotMeta,
)
from models.schemas.profile import Profile
from services import score_calcul
from services.pipeline.regression_model import ModelSnapshot
from services.pipeline.similarity_engine import (
    SIGMA_XP,
    W_LOCATION,
    W_XP,
    coherence_score,
    similarity_scores,
)

logger = logging.getLogger(__name__)

NEAR_THRESHOLD = 0.5
HISTOGRAM_BUCKETS = 10

# (lower bound, band, title, icon, description), checked with strict ">"
_BANDS = [
    (0.9, "fully_aligned", "Fully aligned", "👌",
     "Your salary is fully consistent with your background."),
    (0.7, "broadly_coherent", "Broadly coherent", "✅",
     "Your salary is broadly consistent with your background."),
    (0.4, "mild_mismatch", "Mild mismatch", "🤔",
     "Your salary seems a little off compared to your profile."),
]
_ATYPICAL = ("atypical", "Atypical", "🔎",
             "Your salary is very atypical compared to your profile.")

# (minimum percentile rank, label), checked with ">="
_RANK_LABELS = [
    (90, "top 10%"),
    (75, "top 25%"),
    (50, "upper-mid"),
    (25, "lower-mid"),
]
_BOTTOM_LABEL = "bottom band"


def assemble_statistics(target: Profile, snapshot: ModelSnapshot) -> DiagnosticResult:
    records = snapshot.records
    predicted = snapshot.predict(target.location, target.xp)
    actual = target.compensation

    scores = similarity_scores(records, predicted)
    mean_score = score_calcul.calculate_mean(scores)
    std_score = score_calcul.calculate_std(scores, mean_score)

    coherence = coherence_score(actual, predicted)

    salary_values = sorted(r.compensation for r in records)
    percentile_rank = score_calcul.get_percentile_rank(salary_values, actual)

    near = int((scores > NEAR_THRESHOLD).sum())
    far = len(scores) - near
    similar_percentage = score_calcul.round_half_up(far / max(1, near + far) * 100)

    logger.debug(
        "Scored %s/%.1fy: predicted=%.0f actual=%.0f coherence=%.3f (snapshot v%d)",
        target.location, target.xp, predicted, actual, coherence, snapshot.version,
    )

    return DiagnosticResult(
        diagnostic=build_diagnostic(coherence),
        estimated_gap=build_estimated_gap(predicted, actual),
        salary_position=build_salary_position(percentile_rank, similar_percentage),
        peer_comparison=PeerComparison(
            near_count=near,
            far_count=far,
            similar_percentage=similar_percentage,
        ),
        similarity_config=SimilarityConfig(w_location=W_LOCATION, w_xp=W_XP, sigma_xp=SIGMA_XP),
        coherence_score=coherence,
        mean_score=mean_score,
        std_score=std_score,
        similarity_stats=SimilarityStats(
            mean=mean_score,
            std=std_score,
            median=score_calcul.calculate_median(scores),
            quartiles=score_calcul.calculate_quartiles(scores),
            percentiles=score_calcul.calculate_common_percentiles(scores),
        ),
        chart_data=ChartData(
            average_by_xp=score_calcul.average_by_experience(records),
            median_by_xp=score_calcul.median_by_experience(records),
            histogram=score_calcul.build_histogram(scores, HISTOGRAM_BUCKETS),
        ),
        meta=SnapshotMeta(
            locations=list(snapshot.vocabulary.locations),
            input_min_max={"xp": snapshot.xp_range.as_tuple()},
            output_min_max=snapshot.output_range.as_tuple(),
            snapshot_version=snapshot.version,
            degenerate=snapshot.degenerate,
        ),
    )


# ---------------------------------------------------------------------------
# Template builders
# ---------------------------------------------------------------------------

def build_diagnostic(coherence: float) -> Diagnostic:
    for bound, band, title, icon, description in _BANDS:
        if coherence > bound:
            return Diagnostic(band=band, title=title, icon=icon, description=description)
    band, title, icon, description = _ATYPICAL
    return Diagnostic(band=band, title=title, icon=icon, description=description)


def build_estimated_gap(predicted: float, actual: float) -> EstimatedGap:
    if actual > predicted:
        comment = "You earn more than estimated for your profile."
    elif actual < predicted:
        comment = "You earn less than estimated for your profile."
    else:
        comment = "You earn exactly what is expected."

    return EstimatedGap(
        predicted=score_calcul.round_half_up(predicted),
        actual=score_calcul.round_half_up(actual),
        difference=score_calcul.round_half_up(actual - predicted),
        percentage=score_calcul.round_half_up((actual - predicted) / max(1.0, predicted) * 100, 1),
        comment=comment,
    )


def rank_label(percentile_rank: int) -> str:
    for minimum, label in _RANK_LABELS:
        if percentile_rank >= minimum:
            return label
    return _BOTTOM_LABEL


def build_salary_position(percentile_rank: int, similar_percentage: int) -> SalaryPosition:
    return SalaryPosition(
        percentile=percentile_rank,
        rank_label=rank_label(percentile_rank),
        comparison=(
            "Among profiles close to yours (location & experience), "
            f"you earn more than {similar_percentage}% of them."
        ),
    )


def global_score_statistics(profiles: Iterable[Profile]) -> ScoreStatistics:
    """Aggregate over every scored request recorded so far."""
    profiles = list(profiles)
    compensations = [p.compensation for p in profiles]
    return ScoreStatistics(
        number_of_scores=len(profiles),
        average_compensation=score_calcul.calculate_mean(compensations),
        median_compensation=score_calcul.calculate_median(compensations),
        number_of_users=len({p.email for p in profiles if p.email}),
    )
