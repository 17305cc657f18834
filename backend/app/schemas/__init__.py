"""Pydantic schemas for request/response validation."""
from app.schemas.experiment import (
    ExperimentCreate, ExperimentResponse, ExperimentDetailResponse, VariantCreate, VariantResponse
)
from app.schemas.outcome import OutcomeEventRequest, OutcomeEventResponse, ResultResponse, AllocationResponse
from app.schemas.analysis import AnalysisResponse, VariantStatsResponse

__all__ = [
    "ExperimentCreate", "ExperimentResponse", "ExperimentDetailResponse", "VariantCreate", "VariantResponse",
    "OutcomeEventRequest", "OutcomeEventResponse", "ResultResponse", "AllocationResponse",
    "AnalysisResponse", "VariantStatsResponse",
]
