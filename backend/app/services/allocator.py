"""Traffic allocation with sticky session assignments."""
import random
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import ExperimentNotActive, NotFoundError
from app.middleware.logging import get_logger
from app.models.assignment import ExposureAssignment
from app.models.experiment import Experiment, ExperimentStatus
from app.models.variant import Variant

logger = get_logger()


def select_variant(variants: Sequence[Variant], r: float) -> Variant:
    """
    Pick a variant for a draw ``r`` in [0, 100) by cumulative traffic weight.

    Variants must already be in their stable (creation) order. When float
    weights sum slightly short of 100 and ``r`` lands past the last bucket,
    the first variant is returned.

    Example:
        >>> # weights [50, 30, 20]
        >>> select_variant(variants, 65.0).name  # "variant_a"
    """
    cumulative = 0.0
    for variant in variants:
        cumulative += variant.traffic_weight
        if r <= cumulative:
            return variant

    return variants[0]


class TrafficAllocator:
    """Assigns visitor sessions to experiment variants."""

    def __init__(self, db: Session, rng: Optional[random.Random] = None):
        self.db = db
        self.rng = rng or random.Random()

    def allocate(self, experiment_id: UUID, session_id: str) -> Variant:
        """
        Return the variant a session should see, creating the sticky assignment
        on first contact.

        Re-visits return the stored variant without touching any counter. A
        first visit inserts the assignment and bumps the variant's impressions
        and the experiment's sample count in the same transaction.

        Args:
            experiment_id: Experiment identifier
            session_id: Visitor session identifier

        Returns:
            The assigned Variant

        Raises:
            NotFoundError: Experiment does not exist
            ExperimentNotActive: Experiment is not running
        """
        experiment = self.db.get(Experiment, experiment_id)
        if not experiment:
            raise NotFoundError("Experiment not found", resource="experiment", resource_id=experiment_id)

        if experiment.status != ExperimentStatus.RUNNING:
            raise ExperimentNotActive(experiment_id, experiment.status.value)

        existing = self._find_assignment(experiment_id, session_id)
        if existing:
            return self.db.get(Variant, existing.variant_id)

        variants = list(experiment.variants)
        variant = select_variant(variants, self.rng.random() * 100)
        variant_id = variant.id

        try:
            self.db.add(ExposureAssignment(
                experiment_id=experiment_id,
                session_id=session_id,
                variant_id=variant_id
            ))
            self.db.flush()
        except IntegrityError:
            # Another request assigned this session first; its choice wins
            self.db.rollback()
            winner = self._find_assignment(experiment_id, session_id)
            if not winner:
                raise
            logger.info(
                "assignment_conflict_resolved",
                experiment_id=str(experiment_id),
                session_id=session_id,
                discarded_variant_id=str(variant_id),
                variant_id=str(winner.variant_id)
            )
            return self.db.get(Variant, winner.variant_id)

        try:
            self.db.execute(
                update(Variant)
                .where(Variant.id == variant_id)
                .values(impressions=Variant.impressions + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.execute(
                update(Experiment)
                .where(Experiment.id == experiment_id)
                .values(current_sample_count=Experiment.current_sample_count + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "variant_allocated",
            experiment_id=str(experiment_id),
            session_id=session_id,
            variant_id=str(variant_id),
            variant=variant.name
        )

        return self.db.get(Variant, variant_id)

    def _find_assignment(self, experiment_id: UUID, session_id: str) -> Optional[ExposureAssignment]:
        return self.db.query(ExposureAssignment).filter(
            ExposureAssignment.experiment_id == experiment_id,
            ExposureAssignment.session_id == session_id
        ).first()
