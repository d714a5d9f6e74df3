# substrate_api/domains/organizations/routes.py
from substrate_api.core.context import RequestContext
from substrate_api.core.entities import Organization
from substrate_api.core.enums import Plan, UserRole
from substrate_api.core.routing import Router
from substrate_api.domains.auth.models import SessionState
from substrate_api.domains.organizations.models import (
    InviteMemberRequest,
    OrganizationCreate,
    OrganizationMemberResponse,
    OrganizationUpdate,
    OrganizationWithStats,
    UpdateMemberRoleRequest,
)
from substrate_api.domains.organizations.service import OrganizationService
from substrate_api.shared.pagination import Page, paginate
from substrate_api.shared.permissions import (
    Permission,
    require_organization_member,
    require_organization_permission,
    require_organization_role,
    require_principal,
)

router = Router(prefix="/organizations", tags=["Organizations"])


@router.get("")
async def list_organizations(ctx: RequestContext) -> Page[OrganizationWithStats]:
    """List the organizations the principal belongs to, with stats."""
    user = require_principal(ctx)
    service = OrganizationService(ctx.store)
    organizations = await service.list_for_user(user.id)
    return paginate(organizations, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.post("", status_code=201)
async def create_organization(ctx: RequestContext) -> Organization:
    """
    Create a new organization and add the current user as owner.
    """
    user = require_principal(ctx)
    data = ctx.parse_body(OrganizationCreate)
    service = OrganizationService(ctx.store)
    return await service.create_organization(
        data, user, Plan(ctx.settings.DEFAULT_ORGANIZATION_PLAN)
    )


@router.get("/slug/{slug}")
async def get_organization_by_slug(
    ctx: RequestContext, slug: str
) -> OrganizationWithStats:
    user = require_principal(ctx)
    return await OrganizationService(ctx.store).get_by_slug(slug, user.id)


@router.post("/switch/{org_id}")
async def switch_organization(ctx: RequestContext, org_id: str) -> SessionState:
    """
    Switch the user's active organization.

    Verifies the user is a member of the target organization and returns the
    updated session state.
    """
    access = require_organization_member(ctx, org_id)
    service = OrganizationService(ctx.store)
    return await service.switch_organization(access.user, org_id)


@router.get("/{org_id}")
async def get_organization(ctx: RequestContext, org_id: str) -> OrganizationWithStats:
    access = require_organization_member(ctx, org_id)
    return OrganizationService(ctx.store).with_stats(access.organization)


@router.patch("/{org_id}")
async def update_organization(ctx: RequestContext, org_id: str) -> Organization:
    """
    Update organization details and settings. Requires the admin role.
    """
    access = require_organization_role(ctx, org_id, UserRole.admin)
    data = ctx.parse_body(OrganizationUpdate)
    service = OrganizationService(ctx.store)
    return await service.update_organization(access.organization, data)


@router.delete("/{org_id}")
async def delete_organization(ctx: RequestContext, org_id: str) -> None:
    """
    Delete an organization. Owner only; rejected while projects remain.
    """
    access = require_organization_role(ctx, org_id, UserRole.owner)
    await OrganizationService(ctx.store).delete_organization(access.organization)


@router.get("/{org_id}/members")
async def get_organization_members(
    ctx: RequestContext, org_id: str
) -> Page[OrganizationMemberResponse]:
    """
    Get all members of an organization.

    Access is restricted to members holding user:read.
    """
    require_organization_permission(ctx, org_id, Permission.USER_READ)
    members = await OrganizationService(ctx.store).get_organization_members(org_id)
    return paginate(members, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.post("/{org_id}/members", status_code=201)
async def add_organization_member(
    ctx: RequestContext, org_id: str
) -> OrganizationMemberResponse:
    access = require_organization_permission(ctx, org_id, Permission.USER_MANAGE)
    data = ctx.parse_body(InviteMemberRequest)
    service = OrganizationService(ctx.store)
    return await service.add_member(org_id, data, access.user)


@router.patch("/{org_id}/members/{user_id}")
async def update_organization_member(
    ctx: RequestContext, org_id: str, user_id: str
) -> OrganizationMemberResponse:
    """
    Change a member's role.

    Business rules:
    - Only owners can grant or revoke the owner role
    - The last owner cannot be demoted
    """
    access = require_organization_permission(ctx, org_id, Permission.USER_MANAGE)
    data = ctx.parse_body(UpdateMemberRoleRequest)
    service = OrganizationService(ctx.store)
    return await service.update_member_role(org_id, user_id, data.role, access.member)


@router.delete("/{org_id}/members/{user_id}")
async def remove_organization_member(
    ctx: RequestContext, org_id: str, user_id: str
) -> None:
    """
    Remove a member from the organization.

    Business rules:
    - Cannot remove yourself from the organization
    - Cannot remove the last owner (maintains organization access)
    """
    access = require_organization_permission(ctx, org_id, Permission.USER_MANAGE)
    await OrganizationService(ctx.store).remove_member(org_id, user_id, access.member)
