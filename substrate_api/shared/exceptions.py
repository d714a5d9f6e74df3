# substrate_api/shared/exceptions.py
from typing import Any, Dict, Optional


class ApiException(Exception):
    """
    Base exception for every failure a request handler can report.

    Subclasses set ``status_code``, ``code`` and a default ``message``. The
    dispatcher converts any ApiException into failure data, so handlers
    raise these freely without worrying about the transport.
    """

    status_code: int = 400
    code: str = "BAD_REQUEST"
    message: str = "Request failed"

    def __init__(
        self, message: Optional[str] = None, details: Optional[Any] = None
    ) -> None:
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


# Resource Not Found Exceptions
class NotFoundError(ApiException):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class EndpointNotFoundError(NotFoundError):
    def __init__(self, method: str, path: str) -> None:
        super().__init__(f"Unknown endpoint: {method} {path}")


class UserNotFoundError(NotFoundError):
    def __init__(self, identifier: str) -> None:
        super().__init__(f"User not found: {identifier}")


# Authentication & Authorization Exceptions
class UnauthorizedError(ApiException):
    status_code = 401
    code = "UNAUTHORIZED"
    message = "Authentication required"


class InvalidTokenError(UnauthorizedError):
    def __init__(self) -> None:
        super().__init__("Missing or invalid token")


class ForbiddenError(ApiException):
    status_code = 403
    code = "FORBIDDEN"
    message = "Not authorized"


class InsufficientPermissionsError(ForbiddenError):
    def __init__(self, required: str) -> None:
        super().__init__(f"Insufficient permissions: {required} required")


# Routing Exceptions
class InvalidMethodError(ApiException):
    status_code = 405
    code = "METHOD_NOT_ALLOWED"
    message = "Method not allowed"

    def __init__(self, method: str, path: str) -> None:
        super().__init__(f"Method {method} not allowed for {path}")


# Validation / Request Exceptions
class RequestValidationError(ApiException):
    status_code = 422
    code = "VALIDATION_ERROR"
    message = "Invalid request data"


class ConflictError(ApiException):
    status_code = 409
    code = "CONFLICT"
    message = "Resource conflict"


class RevisionMismatchError(ConflictError):
    def __init__(self, entity_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Revision mismatch for {entity_id}: expected {expected}, found {actual}",
            details={"expectedRevision": expected, "currentRevision": actual},
        )


class InternalError(ApiException):
    status_code = 500
    code = "INTERNAL_ERROR"
    message = "Internal error"
