# substrate_api/domains/dashboards/routes.py
from substrate_api.core.context import RequestContext
from substrate_api.core.entities import WorkspaceContext
from substrate_api.core.routing import Router
from substrate_api.domains.auth.service import SessionService
from substrate_api.domains.dashboards.models import (
    ArchitectSummary,
    ExecutiveSummary,
    ProjectDashboard,
    SecuritySummary,
    UpdateDashboardViewRequest,
)
from substrate_api.domains.dashboards.service import DashboardService
from substrate_api.shared.permissions import Permission, require_project_permission

router = Router(prefix="/dashboard", tags=["Dashboards"])


@router.get("/{project_id}")
async def get_project_dashboard(ctx: RequestContext, project_id: str) -> ProjectDashboard:
    """
    The dashboard in the caller's saved view, with only the summaries and
    widgets the caller's permissions allow.
    """
    access = require_project_permission(ctx, project_id, Permission.INSIGHTS_READ)
    view = SessionService(ctx.store).get_context(access.user.id).dashboard_view
    return DashboardService(ctx.store).project_dashboard(
        access.project, access.member, view
    )


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


@router.patch("/{project_id}/view")
async def update_dashboard_view(
    ctx: RequestContext, project_id: str
) -> WorkspaceContext:
    """
    Save the caller's dashboard view and make this project their current one.
    """
    access = require_project_permission(ctx, project_id, Permission.PROJECT_READ)
    data = ctx.parse_body(UpdateDashboardViewRequest)
    return SessionService(ctx.store).save_context(
        access.user.id,
        {
            "dashboard_view": data.view,
            "current_organization_id": access.project.organization_id,
            "current_project_id": access.project.id,
        },
    )
