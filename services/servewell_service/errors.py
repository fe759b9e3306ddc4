"""Domain errors for the matching and approval workflow.

Each error is an ``HTTPException`` carrying a stable ``code`` so the service
layer can raise it directly and the API renders it without translation.
"""

from fastapi import HTTPException, status


class WorkflowError(HTTPException):
    """Base class for every ServeWell domain error."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "WORKFLOW_ERROR"

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class NotFoundError(WorkflowError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class InvalidTransitionError(WorkflowError):
    """A state-machine guard rejected the requested transition."""

    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_TRANSITION"


class CapacityExceededError(WorkflowError):
    """The opportunity has no seat left for this approval."""

    status_code = status.HTTP_409_CONFLICT
    code = "CAPACITY_EXCEEDED"


class BackgroundCheckRequiredError(WorkflowError):
    """Approval is blocked until the volunteer holds a passed background check."""

    status_code = status.HTTP_409_CONFLICT
    code = "BACKGROUND_CHECK_REQUIRED"


class ScoringUnavailableError(WorkflowError):
    """Neither the oracle nor the fallback scorer could produce a score."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "SCORING_UNAVAILABLE"
