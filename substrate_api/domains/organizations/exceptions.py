"""
Domain-specific exceptions for organizations.
"""

from substrate_api.shared.exceptions import (
    ConflictError,
    NotFoundError,
    RequestValidationError,
)


class OrganizationNotFoundError(NotFoundError):
    """Raised when an organization is not found or not visible."""

    def __init__(self, org_id: str) -> None:
        super().__init__(f"Organization not found: {org_id}")


class OrganizationSlugConflictError(ConflictError):
    """Raised when an organization slug is already taken."""

    def __init__(self, slug: str) -> None:
        super().__init__(f"Organization slug already exists: {slug}")


class OrganizationNotEmptyError(ConflictError):
    """Raised when deleting an organization that still owns projects."""

    message = "Organization still has projects; delete or transfer them first"


class MemberNotFoundError(NotFoundError):
    """Raised when an organization member is not found."""

    message = "Member not found"


class MemberAlreadyExistsError(ConflictError):
    """Raised when a user is already a member of the organization."""

    message = "User is already a member of this organization"


class CannotRemoveSelfError(RequestValidationError):
    message = "Cannot remove yourself from the organization"


class LastOwnerError(RequestValidationError):
    message = "Cannot remove or demote the last owner"


class SoleProjectOwnerError(RequestValidationError):
    """Raised when removing a member who is the only owner of a project."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"User is the last owner of project {project_id}")
