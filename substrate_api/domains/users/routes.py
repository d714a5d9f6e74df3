# substrate_api/domains/users/routes.py
from substrate_api.core.context import RequestContext
from substrate_api.core.entities import User, UserPreferences, WorkspaceContext
from substrate_api.core.routing import Router
from substrate_api.domains.auth.sessions import DeviceSessionResponse
from substrate_api.domains.auth.service import SessionService
from substrate_api.domains.organizations.models import OrganizationWithStats
from substrate_api.domains.organizations.service import OrganizationService
from substrate_api.domains.projects.models import (
    InvitationResponse,
    ProjectMemberResponse,
    ProjectWithRole,
)
from substrate_api.domains.projects.service import ProjectService
from substrate_api.domains.users.models import (
    ChangePasswordRequest,
    PreferencesUpdate,
    UserUpdate,
    WorkspaceContextUpdate,
)
from substrate_api.domains.users.service import UserService
from substrate_api.shared.pagination import Page, paginate
from substrate_api.shared.permissions import require_principal

router = Router(prefix="/users/me", tags=["Users"])


@router.get("")
async def get_current_user(ctx: RequestContext) -> User:
    return require_principal(ctx)


@router.patch("")
async def update_current_user(ctx: RequestContext) -> User:
    user = require_principal(ctx)
    data = ctx.parse_body(UserUpdate)
    return await UserService(ctx.store, ctx.settings).update_profile(user, data)


@router.put("/password")
async def change_password(ctx: RequestContext) -> None:
    user = require_principal(ctx)
    ctx.parse_body(ChangePasswordRequest)
    await UserService(ctx.store, ctx.settings).change_password(user)


@router.get("/preferences")
async def get_preferences(ctx: RequestContext) -> UserPreferences:
    return require_principal(ctx).preferences


@router.put("/preferences")
async def update_preferences(ctx: RequestContext) -> UserPreferences:
    """Merge the given preferences; omitted fields keep their values."""
    user = require_principal(ctx)
    data = ctx.parse_body(PreferencesUpdate)
    return await UserService(ctx.store, ctx.settings).update_preferences(user, data)


@router.get("/context")
async def get_workspace_context(ctx: RequestContext) -> WorkspaceContext:
    user = require_principal(ctx)
    return SessionService(ctx.store).get_context(user.id)


@router.put("/context")
async def update_workspace_context(ctx: RequestContext) -> WorkspaceContext:
    user = require_principal(ctx)
    data = ctx.parse_body(WorkspaceContextUpdate)
    return await UserService(ctx.store, ctx.settings).update_context(user, data)


@router.get("/sessions")
async def list_sessions(ctx: RequestContext) -> Page[DeviceSessionResponse]:
    user = require_principal(ctx)
    sessions = ctx.sessions.list_for_user(user.id)
    return paginate(sessions, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.delete("/sessions/{session_id}")
async def revoke_session(ctx: RequestContext, session_id: str) -> None:
    """
    Revoke one of the caller's device sessions.

    Revoking a session owned by someone else is forbidden.
    """
    user = require_principal(ctx)
    ctx.sessions.revoke(session_id, user.id)


@router.get("/organizations")
async def list_my_organizations(ctx: RequestContext) -> Page[OrganizationWithStats]:
    user = require_principal(ctx)
    organizations = await OrganizationService(ctx.store).list_for_user(user.id)
    return paginate(organizations, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.get("/projects")
async def list_my_projects(ctx: RequestContext) -> Page[ProjectWithRole]:
    user = require_principal(ctx)
    service = ProjectService(ctx.store, ctx.settings)
    projects = await service.list_projects(user.id, ctx.params)
    return paginate(projects, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.get("/invitations")
async def list_my_invitations(ctx: RequestContext) -> Page[InvitationResponse]:
    """Pending, unexpired invitations addressed to the caller's email."""
    user = require_principal(ctx)
    invitations = await UserService(ctx.store, ctx.settings).list_invitations(user)
    return paginate(invitations, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.post("/invitations/{invitation_id}/accept")
async def accept_invitation(
    ctx: RequestContext, invitation_id: str
) -> ProjectMemberResponse:
    user = require_principal(ctx)
    service = UserService(ctx.store, ctx.settings)
    return await service.accept_invitation(user, invitation_id)


@router.post("/invitations/{invitation_id}/decline")
async def decline_invitation(
    ctx: RequestContext, invitation_id: str
) -> InvitationResponse:
    user = require_principal(ctx)
    service = UserService(ctx.store, ctx.settings)
    return await service.decline_invitation(user, invitation_id)
