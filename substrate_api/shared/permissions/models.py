from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet


class UserRole(str, Enum):
    owner = "owner"
    admin = "admin"
    engineer = "engineer"
    security = "security"
    product = "product"
    readonly = "readonly"


class Permission(str, Enum):
    """
    Defines all permissions available in the system.

    Permissions follow the pattern: RESOURCE_ACTION, with wire values of the
    form ``resource:action``.
    """

    # Project management
    PROJECT_READ = "project:read"
    PROJECT_WRITE = "project:write"
    PROJECT_DELETE = "project:delete"
    PROJECT_INVITE = "project:invite"

    # Connector management
    CONNECTOR_READ = "connector:read"
    CONNECTOR_INSTALL = "connector:install"
    CONNECTOR_CONFIGURE = "connector:configure"
    CONNECTOR_REMOVE = "connector:remove"

    # Policy management
    POLICY_READ = "policy:read"
    POLICY_WRITE = "policy:write"
    POLICY_ENFORCE = "policy:enforce"

    # Knowledge graph
    GRAPH_READ = "graph:read"
    GRAPH_EXPLORE = "graph:explore"
    GRAPH_ANALYZE = "graph:analyze"

    # Drift and violations
    DRIFT_READ = "drift:read"
    DRIFT_RESOLVE = "drift:resolve"

    # User management
    USER_READ = "user:read"
    USER_MANAGE = "user:manage"

    # Reports and insights
    INSIGHTS_READ = "insights:read"
    INSIGHTS_EXECUTIVE = "insights:executive"
    INSIGHTS_TECHNICAL = "insights:technical"


@dataclass(frozen=True)
class RoleDefinition:
    id: UserRole
    name: str
    description: str
    level: int
    permissions: FrozenSet[Permission]


ROLE_DEFINITIONS: Dict[UserRole, RoleDefinition] = {
    UserRole.owner: RoleDefinition(
        id=UserRole.owner,
        name="Owner",
        description="Full control over the project",
        level=100,
        # Owners have all permissions
        permissions=frozenset(Permission),
    ),
    UserRole.admin: RoleDefinition(
        id=UserRole.admin,
        name="Admin",
        description="Can manage project settings and members",
        level=80,
        # Admins have everything except deleting the project
        permissions=frozenset(Permission) - {Permission.PROJECT_DELETE},
    ),
    UserRole.engineer: RoleDefinition(
        id=UserRole.engineer,
        name="Engineer",
        description="Can view and analyze, limited configuration access",
        level=60,
        permissions=frozenset(
            {
                Permission.PROJECT_READ,
                Permission.CONNECTOR_READ,
                Permission.CONNECTOR_CONFIGURE,
                Permission.POLICY_READ,
                Permission.GRAPH_READ,
                Permission.GRAPH_EXPLORE,
                Permission.GRAPH_ANALYZE,
                Permission.DRIFT_READ,
                Permission.DRIFT_RESOLVE,
                Permission.USER_READ,
                Permission.INSIGHTS_READ,
                Permission.INSIGHTS_TECHNICAL,
            }
        ),
    ),
    UserRole.security: RoleDefinition(
        id=UserRole.security,
        name="Security",
        description="Security-focused access with policy management",
        level=60,
        permissions=frozenset(
            {
                Permission.PROJECT_READ,
                Permission.CONNECTOR_READ,
                Permission.POLICY_READ,
                Permission.POLICY_WRITE,
                Permission.POLICY_ENFORCE,
                Permission.GRAPH_READ,
                Permission.GRAPH_EXPLORE,
                Permission.GRAPH_ANALYZE,
                Permission.DRIFT_READ,
                Permission.DRIFT_RESOLVE,
                Permission.USER_READ,
                Permission.INSIGHTS_READ,
                Permission.INSIGHTS_EXECUTIVE,
                Permission.INSIGHTS_TECHNICAL,
            }
        ),
    ),
    UserRole.product: RoleDefinition(
        id=UserRole.product,
        name="Product",
        description="Read-only access with executive insights",
        level=40,
        permissions=frozenset(
            {
                Permission.PROJECT_READ,
                Permission.CONNECTOR_READ,
                Permission.POLICY_READ,
                Permission.GRAPH_READ,
                Permission.GRAPH_EXPLORE,
                Permission.DRIFT_READ,
                Permission.USER_READ,
                Permission.INSIGHTS_READ,
                Permission.INSIGHTS_EXECUTIVE,
            }
        ),
    ),
    UserRole.readonly: RoleDefinition(
        id=UserRole.readonly,
        name="Read-only",
        description="View-only access to project data",
        level=20,
        permissions=frozenset(
            {
                Permission.PROJECT_READ,
                Permission.CONNECTOR_READ,
                Permission.POLICY_READ,
                Permission.GRAPH_READ,
                Permission.DRIFT_READ,
                Permission.INSIGHTS_READ,
            }
        ),
    ),
}

ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[Permission]] = {
    role: definition.permissions for role, definition in ROLE_DEFINITIONS.items()
}
