# substrate_api/domains/projects/routes.py
from substrate_api.core.context import RequestContext
from substrate_api.core.entities import Project, ProjectActivity
from substrate_api.core.enums import UserRole
from substrate_api.core.routing import Router
from substrate_api.domains.dashboards.models import (
    ArchitectSummary,
    ExecutiveSummary,
    SecuritySummary,
)
from substrate_api.domains.dashboards.service import DashboardService
from substrate_api.domains.projects.models import (
    AddProjectMemberRequest,
    CreateInvitationRequest,
    InvitationResponse,
    ProjectCreate,
    ProjectMemberResponse,
    ProjectUpdate,
    ProjectWithRole,
    TransferProjectRequest,
    UpdateProjectMemberRequest,
)
from substrate_api.domains.projects.service import ProjectService
from substrate_api.shared.pagination import Page, paginate
from substrate_api.shared.permissions import (
    Permission,
    require_organization_permission,
    require_organization_role,
    require_principal,
    require_project_permission,
)

router = Router(prefix="/projects", tags=["Projects"])


@router.get("")
async def list_projects(ctx: RequestContext) -> Page[ProjectWithRole]:
    """
    List the caller's projects.

    Accepts organizationId and status filters; other parameters are ignored.
    """
    user = require_principal(ctx)
    service = ProjectService(ctx.store, ctx.settings)
    projects = await service.list_projects(user.id, ctx.params)
    return paginate(projects, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.post("", status_code=201)
async def create_project(ctx: RequestContext) -> Project:
    """
    Create a project in an organization.

    Requires an organization role holding project:write. The creator becomes
    the project's owner.
    """
    require_principal(ctx)
    data = ctx.parse_body(ProjectCreate)
    access = require_organization_permission(
        ctx, data.organization_id, Permission.PROJECT_WRITE
    )
    service = ProjectService(ctx.store, ctx.settings)
    return await service.create_project(data, access.organization, access.user)


@router.get("/{project_id}")
async def get_project(ctx: RequestContext, project_id: str) -> Project:
    access = require_project_permission(ctx, project_id, Permission.PROJECT_READ)
    return access.project


@router.patch("/{project_id}")
async def update_project(ctx: RequestContext, project_id: str) -> Project:
    access = require_project_permission(ctx, project_id, Permission.PROJECT_WRITE)
    data = ctx.parse_body(ProjectUpdate)
    service = ProjectService(ctx.store, ctx.settings)
    return await service.update_project(access.project, data, access.user)


@router.delete("/{project_id}")
async def delete_project(ctx: RequestContext, project_id: str) -> None:
    access = require_project_permission(ctx, project_id, Permission.PROJECT_DELETE)
    await ProjectService(ctx.store, ctx.settings).delete_project(access.project)


@router.post("/{project_id}/archive")
async def archive_project(ctx: RequestContext, project_id: str) -> Project:
    access = require_project_permission(ctx, project_id, Permission.PROJECT_WRITE)
    service = ProjectService(ctx.store, ctx.settings)
    return await service.archive_project(access.project, access.user)


@router.post("/{project_id}/restore")
async def restore_project(ctx: RequestContext, project_id: str) -> Project:
    access = require_project_permission(ctx, project_id, Permission.PROJECT_WRITE)
    service = ProjectService(ctx.store, ctx.settings)
    return await service.restore_project(access.project, access.user)


@router.post("/{project_id}/transfer")
async def transfer_project(ctx: RequestContext, project_id: str) -> Project:
    """
    Move a project to another organization.

    Requires project:delete on the project and the admin role in the target
    organization.
    """
    access = require_project_permission(ctx, project_id, Permission.PROJECT_DELETE)
    data = ctx.parse_body(TransferProjectRequest)
    target = require_organization_role(ctx, data.organization_id, UserRole.admin)
    service = ProjectService(ctx.store, ctx.settings)
    return await service.transfer_project(
        access.project, target.organization, access.user
    )


# Members


@router.get("/{project_id}/members")
async def list_project_members(
    ctx: RequestContext, project_id: str
) -> Page[ProjectMemberResponse]:
    require_project_permission(ctx, project_id, Permission.USER_READ)
    members = await ProjectService(ctx.store, ctx.settings).list_members(project_id)
    return paginate(members, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.get("/{project_id}/members/me")
async def get_my_membership(
    ctx: RequestContext, project_id: str
) -> ProjectMemberResponse:
    """The caller's own membership, including effective permissions."""
    access = require_project_permission(ctx, project_id)
    return await ProjectService(ctx.store, ctx.settings).get_member(access.member)


@router.post("/{project_id}/members", status_code=201)
async def add_project_member(
    ctx: RequestContext, project_id: str
) -> ProjectMemberResponse:
    access = require_project_permission(ctx, project_id, Permission.PROJECT_INVITE)
    data = ctx.parse_body(AddProjectMemberRequest)
    service = ProjectService(ctx.store, ctx.settings)
    return await service.add_member(access.project, data, access.member)


@router.patch("/{project_id}/members/{user_id}")
async def update_project_member(
    ctx: RequestContext, project_id: str, user_id: str
) -> ProjectMemberResponse:
    access = require_project_permission(ctx, project_id, Permission.USER_MANAGE)
    data = ctx.parse_body(UpdateProjectMemberRequest)
    service = ProjectService(ctx.store, ctx.settings)
    return await service.update_member(
        access.project, user_id, data, access.member, access.user
    )


@router.delete("/{project_id}/members/{user_id}")
async def remove_project_member(
    ctx: RequestContext, project_id: str, user_id: str
) -> None:
    access = require_project_permission(ctx, project_id, Permission.USER_MANAGE)
    service = ProjectService(ctx.store, ctx.settings)
    await service.remove_member(access.project, user_id, access.member, access.user)


# Invitations


@router.get("/{project_id}/invitations")
async def list_project_invitations(
    ctx: RequestContext, project_id: str
) -> Page[InvitationResponse]:
    require_project_permission(ctx, project_id, Permission.PROJECT_INVITE)
    service = ProjectService(ctx.store, ctx.settings)
    invitations = await service.list_invitations(project_id)
    return paginate(invitations, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.post("/{project_id}/invitations", status_code=201)
async def create_project_invitation(
    ctx: RequestContext, project_id: str
) -> InvitationResponse:
    access = require_project_permission(ctx, project_id, Permission.PROJECT_INVITE)
    data = ctx.parse_body(CreateInvitationRequest)
    service = ProjectService(ctx.store, ctx.settings)
    return await service.create_invitation(
        access.project, data, access.member, access.user
    )


@router.delete("/{project_id}/invitations/{invitation_id}")
async def revoke_project_invitation(
    ctx: RequestContext, project_id: str, invitation_id: str
) -> None:
    access = require_project_permission(ctx, project_id, Permission.PROJECT_INVITE)
    service = ProjectService(ctx.store, ctx.settings)
    await service.revoke_invitation(access.project, invitation_id)


# Activity and summaries


@router.get("/{project_id}/activity")
async def list_project_activity(
    ctx: RequestContext, project_id: str
) -> Page[ProjectActivity]:
    """
    Project activity, newest first. Filters: type, severity; limit windows
    the result.
    """
    require_project_permission(ctx, project_id, Permission.PROJECT_READ)
    service = ProjectService(ctx.store, ctx.settings)
    entries = await service.list_activity(project_id, ctx.params)
    return paginate(entries, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.get("/{project_id}/executive")
async def get_executive_summary(ctx: RequestContext, project_id: str) -> ExecutiveSummary:
    access = require_project_permission(
        ctx, project_id, Permission.INSIGHTS_EXECUTIVE
    )
    return DashboardService(ctx.store).executive_summary(access.project)


@router.get("/{project_id}/architect")
async def get_architect_summary(ctx: RequestContext, project_id: str) -> ArchitectSummary:
    access = require_project_permission(
        ctx, project_id, Permission.INSIGHTS_TECHNICAL
    )
    return DashboardService(ctx.store).architect_summary(access.project)


@router.get("/{project_id}/security")
async def get_security_summary(ctx: RequestContext, project_id: str) -> SecuritySummary:
    access = require_project_permission(
        ctx, project_id, Permission.INSIGHTS_TECHNICAL
    )
    return DashboardService(ctx.store).security_summary(access.project)
