"""
Domain-specific exceptions for teams.
"""

from substrate_api.shared.exceptions import (
    ConflictError,
    NotFoundError,
    RequestValidationError,
)


class TeamNotFoundError(NotFoundError):
    def __init__(self, team_id: str) -> None:
        super().__init__(f"Team not found: {team_id}")


class TeamMemberNotFoundError(NotFoundError):
    message = "Team member not found"


class TeamMemberAlreadyExistsError(ConflictError):
    message = "User is already a member of this team"


class NotAnOrganizationMemberError(RequestValidationError):
    """Raised when a team lead or team member is outside the organization."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id} is not a member of this organization")
