"""Database models."""
from app.models.user import User
from app.models.project import Project
from app.models.experiment import Experiment, ExperimentStatus, GoalMetric
from app.models.variant import Variant
from app.models.assignment import ExposureAssignment
from app.models.outcome import OutcomeEvent

__all__ = [
    "User", "Project", "Experiment", "ExperimentStatus", "GoalMetric",
    "Variant", "ExposureAssignment", "OutcomeEvent",
]
