# substrate_api/domains/auth/routes.py
from substrate_api.core.context import RequestContext
from substrate_api.core.routing import Router
from substrate_api.domains.auth.models import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
)
from substrate_api.domains.auth.service import AuthService
from substrate_api.domains.auth.types import AccessToken

router = Router(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=201)
async def register(ctx: RequestContext) -> AuthResponse:
    """
    Register a user and, when organizationName is given, their first
    organization with the user as owner. The new user becomes the active
    principal.
    """
    service = AuthService(ctx.store, ctx.sessions, ctx.settings)
    return await service.register(ctx.parse_body(RegisterRequest))


@router.post("/login")
async def login(ctx: RequestContext) -> AuthResponse:
    service = AuthService(ctx.store, ctx.sessions, ctx.settings)
    return await service.login(ctx.parse_body(LoginRequest))


@router.post("/logout")
async def logout(ctx: RequestContext) -> None:
    service = AuthService(ctx.store, ctx.sessions, ctx.settings)
    await service.logout()


@router.post("/refresh")
async def refresh(ctx: RequestContext) -> AccessToken:
    service = AuthService(ctx.store, ctx.sessions, ctx.settings)
    return await service.refresh(ctx.parse_body(RefreshRequest).refresh_token)


# Account recovery is delivered by email outside this backend; these
# endpoints only validate the request and acknowledge it.
@router.post("/forgot-password")
async def forgot_password(ctx: RequestContext) -> None:
    ctx.parse_body(ForgotPasswordRequest)


@router.post("/reset-password")
async def reset_password(ctx: RequestContext) -> None:
    ctx.parse_body(ResetPasswordRequest)


@router.post("/verify-email")
async def verify_email(ctx: RequestContext) -> None:
    ctx.parse_body(VerifyEmailRequest)
