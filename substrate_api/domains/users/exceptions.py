"""
Domain-specific exceptions for the current user's account.
"""

from substrate_api.shared.exceptions import ConflictError


class EmailInUseError(ConflictError):
    def __init__(self, email: str) -> None:
        super().__init__(f"Email already in use: {email}")


class InvitationExpiredError(ConflictError):
    def __init__(self, invitation_id: str) -> None:
        super().__init__(f"Invitation has expired: {invitation_id}")


class InvitationNotPendingError(ConflictError):
    def __init__(self, invitation_id: str, status: str) -> None:
        super().__init__(f"Invitation {invitation_id} is already {status}")
