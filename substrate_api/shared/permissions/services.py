from typing import FrozenSet, Iterable, Optional, Protocol, Sequence

from .models import ROLE_DEFINITIONS, ROLE_PERMISSIONS, Permission, UserRole


class PermissionHolder(Protocol):
    role: UserRole
    custom_permissions: Sequence[Permission]


def base_permissions(role: UserRole) -> FrozenSet[Permission]:
    """Return the fixed permission set of a role."""
    return ROLE_PERMISSIONS[role]


def effective_permissions(
    role: UserRole, custom_permissions: Optional[Iterable[Permission]] = None
) -> FrozenSet[Permission]:
    """
    Compose the effective permissions of a role and optional custom grants.

    The result is the set union of the role's base permissions and the
    grants, so it never narrows the base set and does not depend on the
    order or multiplicity of the grants.

    Args:
        role: The member's role
        custom_permissions: Extra grants held by the member

    Returns:
        Frozen set of effective permissions
    """
    base = base_permissions(role)
    if not custom_permissions:
        return base
    return base | frozenset(custom_permissions)


def has_permission(member: Optional[PermissionHolder], permission: Permission) -> bool:
    """
    Check if a member holds a specific permission.

    Args:
        member: Project member (or None when the caller has no membership)
        permission: The permission to validate

    Returns:
        True if the member has the permission, False otherwise
    """
    if member is None:
        return False
    return permission in effective_permissions(member.role, member.custom_permissions)


def has_any_permission(
    member: Optional[PermissionHolder], permissions: Iterable[Permission]
) -> bool:
    if member is None:
        return False
    return any(has_permission(member, p) for p in permissions)


def has_all_permissions(
    member: Optional[PermissionHolder], permissions: Iterable[Permission]
) -> bool:
    if member is None:
        return False
    return all(has_permission(member, p) for p in permissions)


def role_has_permission(role: UserRole, permission: Permission) -> bool:
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def role_level(role: UserRole) -> int:
    return ROLE_DEFINITIONS[role].level


def is_at_least(role: UserRole, minimum: UserRole) -> bool:
    """Coarse comparison on role levels, e.g. "is at least admin"."""
    return role_level(role) >= role_level(minimum)
