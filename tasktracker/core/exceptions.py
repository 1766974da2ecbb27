"""
Platform-wide exception hierarchy.

Services raise these types; the application registers one error handler per
type, so every blueprint gets the same HTTP status and machine-readable code.

Usage:
    from tasktracker.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Task", resource_id=42)
    raise ValidationError("Task title is required", details={"title": "required"})
"""


class UnauthenticatedError(Exception):
    """Raised when no valid session/token identifies the caller. Maps to 401."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ForbiddenError(Exception):
    """Raised when the caller is authenticated but lacks role or assignment.

    Maps to HTTP 403. Raised before any mutation so no side effects exist.

    Args:
        action: What was attempted (e.g. "task.update"). Logged, not returned.
        user_id: The acting principal's id, for log context.
    """

    def __init__(self, action: str, user_id: int | None = None, message: str = "Forbidden") -> None:
        self.action = action
        self.user_id = user_id
        super().__init__(message)


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable model name (e.g. "Task", "Project").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is missing or malformed. Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown (field name → description).
        code: Machine-readable error code; the handler falls back to
              ERR_VALIDATION_INVALID when omitted.
    """

    def __init__(self, message: str, details: dict | None = None, code: str | None = None) -> None:
        self.details = details or {}
        self.code = code
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value. Maps to 409.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")
