"""
Authorization guard used by every handler that mutates or discloses
tenant-scoped data.

The guard fails closed. Without an active principal every check raises
UnauthorizedError. A caller with no membership in the organization or
project gets NotFoundError, so existence is never confirmed to outsiders;
a member lacking the permission gets ForbiddenError.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from substrate_api.shared.exceptions import (
    InsufficientPermissionsError,
    NotFoundError,
    UnauthorizedError,
)

from .models import Permission, UserRole
from .services import has_permission, is_at_least, role_has_permission

if TYPE_CHECKING:
    from substrate_api.core.context import RequestContext
    from substrate_api.core.entities import (
        Organization,
        OrganizationMember,
        Project,
        ProjectMember,
        User,
    )


@dataclass(frozen=True)
class ProjectAccess:
    user: "User"
    project: "Project"
    member: "ProjectMember"


@dataclass(frozen=True)
class OrganizationAccess:
    user: "User"
    organization: "Organization"
    member: "OrganizationMember"


def require_principal(ctx: "RequestContext") -> "User":
    """
    Return the active principal.

    Raises:
        UnauthorizedError: If nobody is logged in
    """
    user = ctx.principal
    if user is None:
        raise UnauthorizedError()
    return user


def require_project_permission(
    ctx: "RequestContext", project_id: str, *permissions: Permission
) -> ProjectAccess:
    """
    Validate the principal is a project member holding every permission.

    Args:
        ctx: Request context
        project_id: Project identity from the path
        *permissions: Permissions required for the operation

    Returns:
        ProjectAccess with the principal, project and membership

    Raises:
        UnauthorizedError: If nobody is logged in
        NotFoundError: If the project does not exist or the principal is not
            a member of it
        InsufficientPermissionsError: If a permission is missing
    """
    user = require_principal(ctx)
    project = ctx.store.projects.get(project_id)
    member = (
        ctx.store.project_members.find_one(project_id=project_id, user_id=user.id)
        if project
        else None
    )
    if project is None or member is None:
        raise NotFoundError(f"Project not found: {project_id}")

    missing = [p.value for p in permissions if not has_permission(member, p)]
    if missing:
        raise InsufficientPermissionsError(", ".join(missing))

    return ProjectAccess(user=user, project=project, member=member)


def require_organization_member(
    ctx: "RequestContext", org_id: str
) -> OrganizationAccess:
    """
    Validate the principal belongs to the organization.

    Raises:
        UnauthorizedError: If nobody is logged in
        NotFoundError: If the organization does not exist or the principal
            is not a member of it
    """
    user = require_principal(ctx)
    organization = ctx.store.organizations.get(org_id)
    member = (
        ctx.store.organization_members.find_one(
            organization_id=org_id, user_id=user.id
        )
        if organization
        else None
    )
    if organization is None or member is None:
        raise NotFoundError(f"Organization not found: {org_id}")
    return OrganizationAccess(user=user, organization=organization, member=member)


def require_organization_role(
    ctx: "RequestContext", org_id: str, minimum: UserRole
) -> OrganizationAccess:
    access = require_organization_member(ctx, org_id)
    if not is_at_least(access.member.role, minimum):
        raise InsufficientPermissionsError(f"{minimum.value} role")
    return access


def require_organization_permission(
    ctx: "RequestContext", org_id: str, permission: Permission
) -> OrganizationAccess:
    access = require_organization_member(ctx, org_id)
    if not role_has_permission(access.member.role, permission):
        raise InsufficientPermissionsError(permission.value)
    return access
