# substrate_api/domains/teams/routes.py
from substrate_api.core.context import RequestContext
from substrate_api.core.routing import Router
from substrate_api.domains.teams.models import (
    AddTeamMemberRequest,
    TeamCreate,
    TeamMemberResponse,
    TeamResponse,
    TeamUpdate,
)
from substrate_api.domains.teams.service import TeamService
from substrate_api.shared.pagination import Page, paginate
from substrate_api.shared.permissions import (
    Permission,
    require_organization_member,
    require_organization_permission,
)

router = Router(prefix="/organizations/{org_id}/teams", tags=["Teams"])


@router.get("")
async def list_teams(ctx: RequestContext, org_id: str) -> Page[TeamResponse]:
    """List the organization's teams with derived member counts."""
    require_organization_member(ctx, org_id)
    teams = await TeamService(ctx.store, org_id).list_teams()
    return paginate(teams, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.post("", status_code=201)
async def create_team(ctx: RequestContext, org_id: str) -> TeamResponse:
    require_organization_permission(ctx, org_id, Permission.USER_MANAGE)
    data = ctx.parse_body(TeamCreate)
    return await TeamService(ctx.store, org_id).create_team(data)


@router.get("/{team_id}")
async def get_team(ctx: RequestContext, org_id: str, team_id: str) -> TeamResponse:
    require_organization_member(ctx, org_id)
    return await TeamService(ctx.store, org_id).get_team(team_id)


@router.patch("/{team_id}")
async def update_team(ctx: RequestContext, org_id: str, team_id: str) -> TeamResponse:
    require_organization_permission(ctx, org_id, Permission.USER_MANAGE)
    data = ctx.parse_body(TeamUpdate)
    return await TeamService(ctx.store, org_id).update_team(team_id, data)


@router.delete("/{team_id}")
async def delete_team(ctx: RequestContext, org_id: str, team_id: str) -> None:
    require_organization_permission(ctx, org_id, Permission.USER_MANAGE)
    await TeamService(ctx.store, org_id).delete_team(team_id)


@router.get("/{team_id}/members")
async def list_team_members(
    ctx: RequestContext, org_id: str, team_id: str
) -> Page[TeamMemberResponse]:
    require_organization_permission(ctx, org_id, Permission.USER_READ)
    members = await TeamService(ctx.store, org_id).list_members(team_id)
    return paginate(members, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.post("/{team_id}/members", status_code=201)
async def add_team_member(
    ctx: RequestContext, org_id: str, team_id: str
) -> TeamMemberResponse:
    require_organization_permission(ctx, org_id, Permission.USER_MANAGE)
    data = ctx.parse_body(AddTeamMemberRequest)
    return await TeamService(ctx.store, org_id).add_member(team_id, data)


@router.delete("/{team_id}/members/{user_id}")
async def remove_team_member(
    ctx: RequestContext, org_id: str, team_id: str, user_id: str
) -> None:
    require_organization_permission(ctx, org_id, Permission.USER_MANAGE)
    await TeamService(ctx.store, org_id).remove_member(team_id, user_id)
