"""Error taxonomy for the experiment engine.

Every error is raised synchronously to the caller of the violated operation.
The HTTP layer maps them to responses through ``status_code``.
"""
from typing import Any, Dict, Optional


class ExperimentEngineError(Exception):
    """Base exception for the experiment engine."""

    status_code = 400

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "ENGINE_ERROR"
        self.details = details or {}


class ValidationError(ExperimentEngineError):
    """Raised for bad variant sets, weight sums or malformed event fields."""

    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[Any] = None):
        super().__init__(message, "VALIDATION_ERROR", {"field": field, "value": value})
        self.field = field
        self.value = value


class NotFoundError(ExperimentEngineError):
    """Raised when an experiment, variant or session reference does not resolve."""

    status_code = 404

    def __init__(self, message: str, resource: Optional[str] = None,
                 resource_id: Optional[Any] = None, error_code: str = "NOT_FOUND"):
        super().__init__(
            message, error_code,
            {"resource": resource, "id": str(resource_id) if resource_id is not None else None}
        )
        self.resource = resource
        self.resource_id = resource_id


class VariantNotFound(NotFoundError):
    """Raised when an event names a variant outside the experiment."""

    def __init__(self, variant_id: Any, experiment_id: Any):
        super().__init__(
            f"Variant {variant_id} does not belong to experiment {experiment_id}",
            resource="variant",
            resource_id=variant_id,
            error_code="VARIANT_NOT_FOUND"
        )
        self.experiment_id = experiment_id


class InvalidStateTransition(ExperimentEngineError):
    """Raised when a lifecycle operation is illegal from the current status."""

    status_code = 409

    def __init__(self, message: str, current_status: Optional[str] = None,
                 operation: Optional[str] = None, error_code: str = "INVALID_STATE_TRANSITION"):
        super().__init__(
            message, error_code,
            {"current_status": current_status, "operation": operation}
        )
        self.current_status = current_status
        self.operation = operation


class ExperimentNotActive(ExperimentEngineError):
    """Raised when allocation or result recording hits a non-running experiment."""

    status_code = 409

    def __init__(self, experiment_id: Any, current_status: Optional[str] = None):
        super().__init__(
            f"Experiment {experiment_id} is not running",
            "EXPERIMENT_NOT_ACTIVE",
            {"experiment_id": str(experiment_id), "current_status": current_status}
        )
        self.current_status = current_status


class AlreadyCompleted(InvalidStateTransition):
    """Raised when completion is attempted twice."""

    def __init__(self, experiment_id: Any):
        super().__init__(
            f"Experiment {experiment_id} is already completed",
            current_status="completed",
            operation="complete",
            error_code="ALREADY_COMPLETED"
        )
        self.experiment_id = experiment_id


class OwnershipError(ExperimentEngineError):
    """Raised when the caller does not own the underlying project."""

    status_code = 403

    def __init__(self, message: str = "Project not found or not owned by caller"):
        super().__init__(message, "OWNERSHIP_ERROR")
