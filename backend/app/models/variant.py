"""Variant model."""
from sqlalchemy import Column, String, Text, Integer, Float, Boolean, DateTime, ForeignKey, Uuid, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from app.database import Base


class Variant(Base):
    """One arm of an experiment with its derived statistics."""

    __tablename__ = "variants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    experiment_id = Column(Uuid, ForeignKey("experiments.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    theme_config = Column(JSON, default=dict)
    is_control = Column(Boolean, default=False, nullable=False)
    traffic_weight = Column(Float, nullable=False)  # percentage, 0-100
    position = Column(Integer, nullable=False)  # creation order

    # Counters maintained by the allocator and the metrics aggregator
    impressions = Column(Integer, default=0, nullable=False)
    conversions = Column(Integer, default=0, nullable=False)
    avg_view_time = Column(Float, default=0.0, nullable=False)
    engagement_score = Column(Float, default=0.0, nullable=False)  # 0-100
    bounce_rate = Column(Float, default=0.0, nullable=False)  # 0-100

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    experiment = relationship("Experiment", back_populates="variants")

    def __repr__(self):
        return f"<Variant {self.name} weight={self.traffic_weight}>"
