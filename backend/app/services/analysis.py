"""Experiment analysis: per-variant stats, best performer and significance."""
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from app.models.experiment import Experiment, GoalMetric
from app.models.outcome import OutcomeEvent
from app.services.metrics import compute_variant_metrics
from app.services.significance import calculate_significance


@dataclass
class VariantStats:
    """Statistics for one variant, recomputed from its events."""
    variant_id: UUID
    name: str
    is_control: bool
    conversion_rate: float  # percent of impressions
    avg_view_time: float
    engagement_score: float
    bounce_rate: float
    impressions: int
    conversions: int


@dataclass
class AnalysisReport:
    """Result of comparing the control against the best performer."""
    winner: Optional[UUID]
    confidence: float
    improvement: float
    sample_size: int
    is_statistically_significant: bool
    goal_metric: GoalMetric
    control_variant_id: Optional[UUID] = None
    best_variant_id: Optional[UUID] = None
    variant_stats: List[VariantStats] = field(default_factory=list)


GOAL_METRIC_ACCESSORS: Dict[GoalMetric, Callable[[VariantStats], float]] = {
    GoalMetric.ENGAGEMENT: attrgetter("engagement_score"),
    GoalMetric.COMPLETION: attrgetter("conversion_rate"),
    GoalMetric.VIEW_TIME: attrgetter("avg_view_time"),
}


def goal_metric_accessor(goal_metric: Optional[GoalMetric]) -> Callable[[VariantStats], float]:
    """Accessor for the statistic a goal metric compares; engagement by default."""
    return GOAL_METRIC_ACCESSORS.get(goal_metric, GOAL_METRIC_ACCESSORS[GoalMetric.ENGAGEMENT])


def build_variant_stats(variant, events) -> VariantStats:
    metrics = compute_variant_metrics(events)
    impressions = variant.impressions or 0
    conversion_rate = metrics.conversions / impressions * 100 if impressions > 0 else 0.0

    return VariantStats(
        variant_id=variant.id,
        name=variant.name,
        is_control=variant.is_control,
        conversion_rate=conversion_rate,
        avg_view_time=metrics.avg_view_time,
        engagement_score=metrics.engagement_score,
        bounce_rate=metrics.bounce_rate,
        impressions=impressions,
        conversions=metrics.conversions
    )


def pick_best(stats: List[VariantStats], metric: Callable[[VariantStats], float]) -> VariantStats:
    """First variant holding the maximal metric value."""
    best = stats[0]
    for candidate in stats[1:]:
        if metric(candidate) > metric(best):
            best = candidate
    return best


class AnalysisService:
    """Builds analysis reports for experiments."""

    def __init__(self, db: Session):
        self.db = db

    def analyze(self, experiment_id: UUID) -> AnalysisReport:
        """
        Compare the control against the best performer on the goal metric.

        The significance test is always on conversion rates; the goal metric
        only decides which variant is best and how improvement is measured.
        A winner is declared only for a significant, positive improvement.

        Raises:
            NotFoundError: Experiment does not exist
        """
        experiment = self.db.get(Experiment, experiment_id)
        if not experiment:
            raise NotFoundError("Experiment not found", resource="experiment", resource_id=experiment_id)

        events_by_variant: Dict[UUID, list] = {v.id: [] for v in experiment.variants}
        events = self.db.query(OutcomeEvent).filter(OutcomeEvent.experiment_id == experiment_id).all()
        for event in events:
            events_by_variant.setdefault(event.variant_id, []).append(event)

        stats = [build_variant_stats(v, events_by_variant[v.id]) for v in experiment.variants]
        sample_size = sum(s.impressions for s in stats)

        if not stats:
            return AnalysisReport(
                winner=None,
                confidence=0.0,
                improvement=0.0,
                sample_size=0,
                is_statistically_significant=False,
                goal_metric=experiment.goal_metric
            )

        control = next((s for s in stats if s.is_control), stats[0])
        metric = goal_metric_accessor(experiment.goal_metric)
        best = pick_best(stats, metric)

        significance = calculate_significance(
            control.conversion_rate / 100, control.impressions,
            best.conversion_rate / 100, best.impressions,
            experiment.confidence_level
        )

        control_value = metric(control)
        improvement = (metric(best) - control_value) / control_value * 100 if control_value > 0 else 0.0

        winner = best.variant_id if significance.is_significant and improvement > 0 else None

        return AnalysisReport(
            winner=winner,
            confidence=significance.confidence,
            improvement=improvement,
            sample_size=sample_size,
            is_statistically_significant=significance.is_significant,
            goal_metric=experiment.goal_metric,
            control_variant_id=control.variant_id,
            best_variant_id=best.variant_id,
            variant_stats=stats
        )
