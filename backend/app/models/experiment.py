"""Experiment model."""
from sqlalchemy import Column, String, Text, Integer, Float, DateTime, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
import enum

from app.database import Base


class ExperimentStatus(str, enum.Enum):
    """Experiment lifecycle status."""
    DRAFT = "draft"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class GoalMetric(str, enum.Enum):
    """Variant statistic that defines the best performer."""
    ENGAGEMENT = "engagement"
    COMPLETION = "completion"
    VIEW_TIME = "view_time"


class Experiment(Base):
    """A/B experiment with its lifecycle state and exposure counter."""

    __tablename__ = "experiments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    goal_metric = Column(SQLEnum(GoalMetric), default=GoalMetric.ENGAGEMENT, nullable=False)
    status = Column(SQLEnum(ExperimentStatus), default=ExperimentStatus.DRAFT, nullable=False, index=True)

    sample_size = Column(Integer, default=100, nullable=False)  # informational target
    confidence_level = Column(Float, default=0.95, nullable=False)
    current_sample_count = Column(Integer, default=0, nullable=False)
    winner_variant_id = Column(Uuid)

    started_at = Column(DateTime)
    ended_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    variants = relationship(
        "Variant",
        back_populates="experiment",
        cascade="all, delete-orphan",
        order_by="Variant.position"
    )
    assignments = relationship("ExposureAssignment", back_populates="experiment", cascade="all, delete-orphan")
    events = relationship("OutcomeEvent", back_populates="experiment", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Experiment {self.id} status={self.status.value}>"
