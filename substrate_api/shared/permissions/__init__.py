"""
Shared permission system for role-based access control.

This module provides the static role table, the pure permission
composition functions and the authorization guard used by every domain.

Usage:
    from substrate_api.shared.permissions import (
        Permission,
        require_project_permission,
    )

    @router.post("/{project_id}/archive")
    async def archive_project(ctx: RequestContext, project_id: str) -> Project:
        access = require_project_permission(
            ctx, project_id, Permission.PROJECT_WRITE
        )
        ...
"""

from .dependencies import (
    OrganizationAccess,
    ProjectAccess,
    require_organization_member,
    require_organization_permission,
    require_organization_role,
    require_principal,
    require_project_permission,
)
from .models import ROLE_DEFINITIONS, ROLE_PERMISSIONS, Permission, UserRole
from .services import (
    base_permissions,
    effective_permissions,
    has_all_permissions,
    has_any_permission,
    has_permission,
    is_at_least,
    role_level,
)

__all__ = [
    "OrganizationAccess",
    "Permission",
    "ProjectAccess",
    "ROLE_DEFINITIONS",
    "ROLE_PERMISSIONS",
    "UserRole",
    "base_permissions",
    "effective_permissions",
    "has_all_permissions",
    "has_any_permission",
    "has_permission",
    "is_at_least",
    "require_organization_member",
    "require_organization_permission",
    "require_organization_role",
    "require_principal",
    "require_project_permission",
    "role_level",
]
