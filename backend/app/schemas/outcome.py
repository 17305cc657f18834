"""Visitor allocation and outcome schemas."""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID


class OutcomeEventRequest(BaseModel):
    """Outcome reported for a visitor session."""

    session_id: str = Field(..., min_length=1, max_length=255)
    variant_id: UUID
    engaged: bool = False
    completed: bool = False
    view_time: float = Field(0.0, ge=0, description="Seconds spent on the variant")
    interactions: int = Field(0, ge=0)
    drop_off_slide: Optional[int] = Field(None, ge=0)

    class Config:
        json_schema_extra = {
            "example": {
                "session_id": "sess_8f2c1a",
                "variant_id": "123e4567-e89b-12d3-a456-426614174001",
                "engaged": True,
                "completed": False,
                "view_time": 42.5,
                "interactions": 3,
                "drop_off_slide": 7
            }
        }


class ResultResponse(BaseModel):
    """Response after recording an outcome."""

    status: str = Field(default="success")
    event_id: UUID


class AllocationResponse(BaseModel):
    """Variant assigned to a visitor session."""

    experiment_id: UUID
    session_id: str
    variant_id: UUID
    name: str
    theme_config: Optional[dict] = None


class OutcomeEventResponse(BaseModel):
    """Recorded outcome event."""

    id: UUID
    variant_id: UUID
    session_id: str
    engaged: bool
    completed: bool
    view_time: float
    interactions: int
    drop_off_slide: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
