"""Exposure assignment model."""
from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from app.database import Base


class ExposureAssignment(Base):
    """Sticky mapping of a visitor session to a variant."""

    __tablename__ = "exposure_assignments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    experiment_id = Column(Uuid, ForeignKey("experiments.id", ondelete="CASCADE"), nullable=False)
    session_id = Column(String(255), nullable=False)
    variant_id = Column(Uuid, ForeignKey("variants.id", ondelete="CASCADE"), nullable=False)
    assigned_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Insert-if-absent relies on this constraint
    __table_args__ = (
        UniqueConstraint("experiment_id", "session_id", name="uq_assignment_experiment_session"),
    )

    # Relationships
    experiment = relationship("Experiment", back_populates="assignments")
    variant = relationship("Variant")

    def __repr__(self):
        return f"<ExposureAssignment {self.session_id} -> {self.variant_id}>"
