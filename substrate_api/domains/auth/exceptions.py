"""
Domain-specific exceptions for authentication.
"""

from substrate_api.shared.exceptions import ConflictError, UnauthorizedError


class EmailAlreadyExistsError(ConflictError):
    """Raised when registering an email that already has an account."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Email already registered: {email}")


class InvalidCredentialsError(UnauthorizedError):
    message = "Invalid credentials"
