"""
Domain-specific exceptions for projects.
"""

from substrate_api.shared.exceptions import (
    ConflictError,
    InsufficientPermissionsError,
    NotFoundError,
    RequestValidationError,
)


class ProjectNotFoundError(NotFoundError):
    """Raised when a project does not exist or is not visible to the caller."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project not found: {project_id}")


class ProjectSlugConflictError(ConflictError):
    def __init__(self, slug: str) -> None:
        super().__init__(f"Project slug already exists in organization: {slug}")


class ProjectLimitReachedError(ConflictError):
    """Raised when the organization's plan allows no more projects."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Project limit reached: plan allows {limit} projects",
            details={"maxProjects": limit},
        )


class ProjectStatusConflictError(ConflictError):
    """Raised for archive/restore on a project already in the target state."""


class ProjectMemberNotFoundError(NotFoundError):
    message = "Project member not found"


class ProjectMemberAlreadyExistsError(ConflictError):
    message = "User is already a member of this project"


class LastProjectOwnerError(RequestValidationError):
    message = "Cannot remove or demote the last project owner"


class RoleAboveRequesterError(InsufficientPermissionsError):
    """Raised when granting a role ranked above the requester's own."""

    def __init__(self, role: str) -> None:
        super().__init__(f"{role} role or higher")


class InvitationNotFoundError(NotFoundError):
    def __init__(self, invitation_id: str) -> None:
        super().__init__(f"Invitation not found: {invitation_id}")


class InvitationConflictError(ConflictError):
    """Raised when the invitee is already a member or already invited."""
