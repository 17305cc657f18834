"""Outcome recording and per-variant metrics aggregation."""
from dataclasses import dataclass
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.exceptions import ExperimentNotActive, NotFoundError, ValidationError, VariantNotFound
from app.middleware.logging import get_logger
from app.models.experiment import Experiment, ExperimentStatus
from app.models.outcome import OutcomeEvent
from app.models.variant import Variant

logger = get_logger()

# Sessions shorter than this without engagement count as bounces
BOUNCE_VIEW_TIME_SECONDS = 10


@dataclass(frozen=True)
class VariantMetrics:
    """Derived statistics for one variant."""
    total_events: int
    conversions: int
    avg_view_time: float
    engagement_score: float
    bounce_rate: float


def compute_variant_metrics(events: Iterable) -> VariantMetrics:
    """
    Recompute variant statistics from its full event set.

    Independent of event order, so retried or out-of-order writes converge.
    """
    total = 0
    conversions = 0
    engaged = 0
    bounced = 0
    view_time = 0.0

    for event in events:
        total += 1
        seconds = event.view_time or 0.0
        view_time += seconds
        if event.completed:
            conversions += 1
        if event.engaged:
            engaged += 1
        elif seconds < BOUNCE_VIEW_TIME_SECONDS:
            bounced += 1

    if total == 0:
        return VariantMetrics(0, 0, 0.0, 0.0, 0.0)

    return VariantMetrics(
        total_events=total,
        conversions=conversions,
        avg_view_time=view_time / total,
        engagement_score=engaged / total * 100,
        bounce_rate=bounced / total * 100
    )


@dataclass
class OutcomeEventData:
    """Outcome reported by the caller for a visitor session."""
    session_id: str
    variant_id: UUID
    engaged: bool = False
    completed: bool = False
    view_time: float = 0.0
    interactions: int = 0
    drop_off_slide: Optional[int] = None


def validate_event(event) -> None:
    """Reject malformed event fields."""
    if not event.session_id:
        raise ValidationError("session_id is required", field="session_id", value=event.session_id)
    if event.view_time is None or event.view_time < 0:
        raise ValidationError("view_time must be >= 0", field="view_time", value=event.view_time)
    if event.interactions is None or event.interactions < 0:
        raise ValidationError("interactions must be >= 0", field="interactions", value=event.interactions)
    if event.drop_off_slide is not None and event.drop_off_slide < 0:
        raise ValidationError("drop_off_slide must be >= 0", field="drop_off_slide", value=event.drop_off_slide)


class MetricsService:
    """Records outcome events and keeps variant statistics current."""

    def __init__(self, db: Session):
        self.db = db

    def record_result(self, experiment_id: UUID, event) -> OutcomeEvent:
        """
        Append an outcome event and recompute its variant.

        Args:
            experiment_id: Experiment the event belongs to
            event: Object with session_id, variant_id, engaged, completed,
                view_time, interactions and drop_off_slide attributes

        Returns:
            The persisted OutcomeEvent

        Raises:
            NotFoundError: Experiment does not exist
            ExperimentNotActive: Experiment is not running
            VariantNotFound: Variant is not part of the experiment
            ValidationError: Malformed event fields
        """
        experiment = self.db.get(Experiment, experiment_id)
        if not experiment:
            raise NotFoundError("Experiment not found", resource="experiment", resource_id=experiment_id)

        if experiment.status != ExperimentStatus.RUNNING:
            raise ExperimentNotActive(experiment_id, experiment.status.value)

        if not any(v.id == event.variant_id for v in experiment.variants):
            raise VariantNotFound(event.variant_id, experiment_id)

        validate_event(event)

        outcome = OutcomeEvent(
            experiment_id=experiment_id,
            variant_id=event.variant_id,
            session_id=event.session_id,
            engaged=event.engaged,
            completed=event.completed,
            view_time=event.view_time,
            interactions=event.interactions,
            drop_off_slide=event.drop_off_slide
        )

        try:
            self.db.add(outcome)
            self.db.flush()
            metrics = self._apply_metrics(event.variant_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(outcome)

        logger.info(
            "result_recorded",
            experiment_id=str(experiment_id),
            variant_id=str(event.variant_id),
            session_id=event.session_id,
            completed=event.completed,
            variant_events=metrics.total_events
        )

        # Informational only; completion stays an explicit caller action
        recorded = self.db.query(func.count(OutcomeEvent.id)).filter(
            OutcomeEvent.experiment_id == experiment_id
        ).scalar()
        if recorded >= experiment.sample_size:
            logger.info(
                "experiment_sample_size_reached",
                experiment_id=str(experiment_id),
                sample_size=experiment.sample_size,
                recorded_events=recorded
            )

        return outcome

    def recompute_variant(self, variant_id: UUID) -> VariantMetrics:
        """Recompute and persist a variant's statistics from its events."""
        try:
            metrics = self._apply_metrics(variant_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return metrics

    def _apply_metrics(self, variant_id: UUID) -> VariantMetrics:
        variant = self.db.get(Variant, variant_id)
        if not variant:
            raise NotFoundError("Variant not found", resource="variant", resource_id=variant_id)

        events = self.db.query(OutcomeEvent).filter(OutcomeEvent.variant_id == variant_id).all()
        metrics = compute_variant_metrics(events)

        variant.conversions = metrics.conversions
        variant.avg_view_time = metrics.avg_view_time
        variant.engagement_score = metrics.engagement_score
        variant.bounce_rate = metrics.bounce_rate
        return metrics
