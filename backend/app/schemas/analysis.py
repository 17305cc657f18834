"""Analysis report schemas."""
from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID

from app.models.experiment import GoalMetric


class VariantStatsResponse(BaseModel):
    variant_id: UUID
    name: str
    is_control: bool
    conversion_rate: float
    avg_view_time: float
    engagement_score: float
    bounce_rate: float
    impressions: int
    conversions: int

    class Config:
        from_attributes = True


class AnalysisResponse(BaseModel):
    """Control vs best performer comparison."""

    winner: Optional[UUID] = None
    confidence: float
    improvement: float
    sample_size: int
    is_statistically_significant: bool
    goal_metric: GoalMetric
    control_variant_id: Optional[UUID] = None
    best_variant_id: Optional[UUID] = None
    variant_stats: List[VariantStatsResponse]

    class Config:
        from_attributes = True
