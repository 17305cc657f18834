"""Outcome event model."""
from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from app.database import Base


class OutcomeEvent(Base):
    """Append-only outcome recorded for a visitor session."""

    __tablename__ = "outcome_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    experiment_id = Column(Uuid, ForeignKey("experiments.id", ondelete="CASCADE"), nullable=False, index=True)
    variant_id = Column(Uuid, ForeignKey("variants.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = Column(String(255), nullable=False, index=True)

    engaged = Column(Boolean, default=False, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    view_time = Column(Float, default=0.0, nullable=False)  # seconds
    interactions = Column(Integer, default=0, nullable=False)
    drop_off_slide = Column(Integer)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    experiment = relationship("Experiment", back_populates="events")
    variant = relationship("Variant")

    def __repr__(self):
        return f"<OutcomeEvent {self.id} completed={self.completed}>"
