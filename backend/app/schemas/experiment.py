"""Experiment request/response schemas."""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
from uuid import UUID

from app.models.experiment import ExperimentStatus, GoalMetric
from app.schemas.outcome import OutcomeEventResponse


class VariantCreate(BaseModel):
    """Variant definition supplied at experiment creation."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    theme_config: Dict[str, Any] = Field(default_factory=dict, description="Opaque variant content")
    is_control: bool = False
    traffic_weight: float = Field(50.0, description="Traffic percentage (0-100)")


class ExperimentCreate(BaseModel):
    """Request to create an experiment."""

    project_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    goal_metric: GoalMetric = GoalMetric.ENGAGEMENT
    sample_size: int = Field(100, description="Target exposures (informational)")
    confidence_level: float = Field(0.95, description="Required confidence, between 0 and 1")
    variants: List[VariantCreate]

    class Config:
        json_schema_extra = {
            "example": {
                "project_id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Hero colour test",
                "goal_metric": "completion",
                "sample_size": 200,
                "confidence_level": 0.95,
                "variants": [
                    {"name": "Control", "is_control": True, "traffic_weight": 50},
                    {"name": "Variant A", "traffic_weight": 50, "theme_config": {"primary": "#2563eb"}}
                ]
            }
        }


class VariantResponse(BaseModel):
    """Variant with its current counters."""

    id: UUID
    name: str
    description: Optional[str] = None
    theme_config: Optional[Dict[str, Any]] = None
    is_control: bool
    traffic_weight: float
    impressions: int
    conversions: int
    avg_view_time: float
    engagement_score: float
    bounce_rate: float

    class Config:
        from_attributes = True


class ExperimentResponse(BaseModel):
    """Experiment with its variants."""

    id: UUID
    project_id: UUID
    name: str
    description: Optional[str] = None
    goal_metric: GoalMetric
    status: ExperimentStatus
    sample_size: int
    confidence_level: float
    current_sample_count: int
    winner_variant_id: Optional[UUID] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    created_at: datetime
    variants: List[VariantResponse]

    class Config:
        from_attributes = True


class ExperimentDetailResponse(ExperimentResponse):
    """Experiment with its variants and most recent outcome events, newest first."""

    recent_events: List[OutcomeEventResponse] = Field(default_factory=list)
