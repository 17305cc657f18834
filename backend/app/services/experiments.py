"""Experiment lifecycle service for A/B testing."""
from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.exceptions import (
    AlreadyCompleted,
    InvalidStateTransition,
    NotFoundError,
    OwnershipError,
    ValidationError,
)
from app.middleware.logging import get_logger
from app.models.experiment import Experiment, ExperimentStatus, GoalMetric
from app.models.outcome import OutcomeEvent
from app.models.variant import Variant
from app.services.analysis import AnalysisReport, AnalysisService
from app.services.ownership import user_owns_project

logger = get_logger()

MIN_VARIANTS = 2
WEIGHT_TOTAL = 100.0
WEIGHT_TOLERANCE = 0.1
RECENT_EVENTS_LIMIT = 100


def validate_variants(variants: List) -> None:
    """
    Check a variant set before an experiment is created.

    Raises:
        ValidationError: Fewer than two variants, weights not summing to
            100 (+/- 0.1), a weight outside 0-100, or more than one control
    """
    if len(variants) < MIN_VARIANTS:
        raise ValidationError(
            f"An experiment requires at least {MIN_VARIANTS} variants",
            field="variants",
            value=len(variants)
        )

    for variant in variants:
        if not 0 <= variant.traffic_weight <= WEIGHT_TOTAL:
            raise ValidationError(
                "Traffic weight must be between 0 and 100",
                field="traffic_weight",
                value=variant.traffic_weight
            )

    total = sum(v.traffic_weight for v in variants)
    if abs(total - WEIGHT_TOTAL) > WEIGHT_TOLERANCE:
        raise ValidationError("Traffic weights must sum to 100", field="traffic_weight", value=total)

    controls = sum(1 for v in variants if v.is_control)
    if controls > 1:
        raise ValidationError("At most one variant may be the control", field="is_control", value=controls)


class ExperimentService:
    """Creates experiments and drives their lifecycle.

    Transitions:
        draft -> running -> (paused <-> running) -> completed

    Every transition is a compare-and-swap on the stored status, so two
    concurrent callers can never both move the same experiment.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_experiment(self, owner_id: UUID, project_id: UUID, data) -> Experiment:
        """
        Create an experiment with its variants in draft status.

        Args:
            owner_id: User creating the experiment
            project_id: Project the experiment belongs to
            data: Object with name, description, goal_metric, sample_size,
                confidence_level and variants (each with name, description,
                theme_config, is_control, traffic_weight)

        Returns:
            Created Experiment instance

        Raises:
            OwnershipError: Project missing or owned by another user
            ValidationError: Invalid variant set or parameters
        """
        if not user_owns_project(self.db, project_id, owner_id):
            raise OwnershipError()

        validate_variants(list(data.variants))

        if not 0 < data.confidence_level < 1:
            raise ValidationError(
                "confidence_level must be between 0 and 1",
                field="confidence_level",
                value=data.confidence_level
            )
        if data.sample_size < 1:
            raise ValidationError("sample_size must be positive", field="sample_size", value=data.sample_size)
        try:
            goal_metric = GoalMetric(data.goal_metric)
        except ValueError:
            raise ValidationError("Unknown goal metric", field="goal_metric", value=data.goal_metric)

        experiment = Experiment(
            user_id=owner_id,
            project_id=project_id,
            name=data.name,
            description=data.description,
            goal_metric=goal_metric,
            sample_size=data.sample_size,
            confidence_level=data.confidence_level,
            status=ExperimentStatus.DRAFT
        )
        experiment.variants = [
            Variant(
                name=v.name,
                description=v.description,
                theme_config=v.theme_config or {},
                is_control=v.is_control,
                traffic_weight=v.traffic_weight,
                position=position
            )
            for position, v in enumerate(data.variants)
        ]

        try:
            self.db.add(experiment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(experiment)

        logger.info(
            "experiment_created",
            experiment_id=str(experiment.id),
            project_id=str(project_id),
            variants=len(experiment.variants),
            goal_metric=experiment.goal_metric.value
        )
        return experiment

    def get_experiment(self, experiment_id: UUID, owner_id: Optional[UUID] = None) -> Experiment:
        """
        Get an experiment by id.

        When owner_id is given, experiments owned by someone else are
        reported as missing.
        """
        experiment = self.db.get(Experiment, experiment_id)
        if not experiment or (owner_id is not None and experiment.user_id != owner_id):
            raise NotFoundError("Experiment not found", resource="experiment", resource_id=experiment_id)
        return experiment

    def list_experiments(
        self,
        owner_id: UUID,
        project_id: Optional[UUID] = None,
        limit: int = 10
    ) -> List[Experiment]:
        """Get a user's experiments, newest first."""
        query = self.db.query(Experiment).filter(Experiment.user_id == owner_id)
        if project_id:
            query = query.filter(Experiment.project_id == project_id)
        return query.order_by(Experiment.created_at.desc()).limit(limit).all()

    def recent_events(self, experiment_id: UUID, limit: int = RECENT_EVENTS_LIMIT) -> List[OutcomeEvent]:
        """Get an experiment's most recent outcome events, newest first."""
        return (
            self.db.query(OutcomeEvent)
            .filter(OutcomeEvent.experiment_id == experiment_id)
            .order_by(OutcomeEvent.created_at.desc())
            .limit(limit)
            .all()
        )

    def start(self, experiment_id: UUID) -> Experiment:
        """Start a draft experiment."""
        return self._transition(
            experiment_id, "start",
            sources=[ExperimentStatus.DRAFT],
            target=ExperimentStatus.RUNNING,
            started_at=datetime.utcnow()
        )

    def pause(self, experiment_id: UUID) -> Experiment:
        """Pause a running experiment."""
        return self._transition(
            experiment_id, "pause",
            sources=[ExperimentStatus.RUNNING],
            target=ExperimentStatus.PAUSED
        )

    def resume(self, experiment_id: UUID) -> Experiment:
        """Resume a paused experiment."""
        return self._transition(
            experiment_id, "resume",
            sources=[ExperimentStatus.PAUSED],
            target=ExperimentStatus.RUNNING
        )

    def complete(self, experiment_id: UUID) -> Experiment:
        """
        Complete an experiment and commit the winner from a final analysis.

        The winner may be None when no significant positive improvement exists.

        Raises:
            AlreadyCompleted: Experiment was already completed
        """
        experiment = self.get_experiment(experiment_id)
        if experiment.status == ExperimentStatus.COMPLETED:
            raise AlreadyCompleted(experiment_id)

        report: AnalysisReport = AnalysisService(self.db).analyze(experiment_id)

        swapped = self._compare_and_swap(
            experiment_id,
            sources=[s for s in ExperimentStatus if s != ExperimentStatus.COMPLETED],
            target=ExperimentStatus.COMPLETED,
            ended_at=datetime.utcnow(),
            winner_variant_id=report.winner
        )
        if not swapped:
            raise AlreadyCompleted(experiment_id)

        logger.info(
            "experiment_completed",
            experiment_id=str(experiment_id),
            winner_variant_id=str(report.winner) if report.winner else None,
            confidence=round(report.confidence, 4),
            improvement=round(report.improvement, 2),
            sample_size=report.sample_size
        )
        return self.get_experiment(experiment_id)

    def delete_experiment(self, experiment_id: UUID) -> None:
        """
        Delete an experiment with its variants, assignments and events.

        The status check is a guarded UPDATE in the same transaction as the
        delete, so a concurrent start either lands first and is seen, or
        waits on the row lock until the experiment is gone.

        Raises:
            InvalidStateTransition: Experiment is running
        """
        experiment = self.get_experiment(experiment_id)
        deletable = [s for s in ExperimentStatus if s != ExperimentStatus.RUNNING]

        try:
            claimed = self.db.execute(
                update(Experiment)
                .where(Experiment.id == experiment_id, Experiment.status.in_(deletable))
                .values(status=Experiment.status)
                .execution_options(synchronize_session=False)
            ).rowcount == 1
            if claimed:
                self.db.delete(experiment)
                self.db.commit()
            else:
                self.db.rollback()
        except Exception:
            self.db.rollback()
            raise

        if not claimed:
            experiment = self.get_experiment(experiment_id)
            raise InvalidStateTransition(
                "Cannot delete a running experiment",
                current_status=experiment.status.value,
                operation="delete"
            )

        logger.info("experiment_deleted", experiment_id=str(experiment_id))

    def _transition(
        self,
        experiment_id: UUID,
        operation: str,
        sources: Iterable[ExperimentStatus],
        target: ExperimentStatus,
        **values
    ) -> Experiment:
        sources = list(sources)
        experiment = self.get_experiment(experiment_id)
        current = experiment.status

        if current not in sources or not self._compare_and_swap(experiment_id, sources, target, **values):
            # Re-read in case a concurrent transition moved it
            self.db.refresh(experiment)
            raise InvalidStateTransition(
                f"Cannot {operation} an experiment in {experiment.status.value} status",
                current_status=experiment.status.value,
                operation=operation
            )

        logger.info(
            "experiment_transition",
            experiment_id=str(experiment_id),
            operation=operation,
            from_status=current.value,
            to_status=target.value
        )
        return self.get_experiment(experiment_id)

    def _compare_and_swap(
        self,
        experiment_id: UUID,
        sources: List[ExperimentStatus],
        target: ExperimentStatus,
        **values
    ) -> bool:
        """Move to target only if the stored status is still one of sources."""
        try:
            result = self.db.execute(
                update(Experiment)
                .where(Experiment.id == experiment_id, Experiment.status.in_(sources))
                .values(status=target, **values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                return False
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return True
