"""Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; the handlers registered in
``taskflow.main`` turn them into ``{"detail": message}`` responses.
"""


class TaskflowError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidInputError(TaskflowError):
    status_code = 400


class ConflictError(TaskflowError):
    status_code = 400


class InvariantViolationError(TaskflowError):
    """A mutation would break a workspace invariant (last owner, default workspace)."""
    status_code = 400


class AccessDeniedError(TaskflowError):
    status_code = 403


class NotFoundError(TaskflowError):
    status_code = 404
