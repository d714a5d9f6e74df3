import logging
from typing import Any, Mapping, Optional

from substrate_api.core.entities import (
    Organization,
    OrganizationMember,
    User,
    WorkspaceContext,
)
from substrate_api.core.enums import Plan, UserRole
from substrate_api.core.settings import Settings
from substrate_api.core.store import ResourceStore
from substrate_api.domains.auth.exceptions import (
    EmailAlreadyExistsError,
    InvalidCredentialsError,
)
from substrate_api.domains.auth.models import (
    AuthResponse,
    LoginRequest,
    OrganizationMembership,
    RegisterRequest,
    SessionState,
)
from substrate_api.domains.auth.sessions import SessionRegistry
from substrate_api.domains.auth.tokens import decode_session_token, issue_token_pair
from substrate_api.domains.auth.types import AccessToken
from substrate_api.domains.organizations.exceptions import (
    OrganizationSlugConflictError,
)
from substrate_api.domains.organizations.models import build_organization
from substrate_api.shared.exceptions import InvalidTokenError
from substrate_api.shared.utils import slugify

logger = logging.getLogger(__name__)


class SessionService:
    """Service for session-related operations"""

    def __init__(self, store: ResourceStore):
        self.store = store

    def get_context(self, user_id: str) -> WorkspaceContext:
        """Return the saved workspace context, or an unsaved default."""
        context = self.store.contexts.find_one(user_id=user_id)
        return context or WorkspaceContext(user_id=user_id)

    def save_context(
        self, user_id: str, changes: Mapping[str, Any]
    ) -> WorkspaceContext:
        context = self.store.contexts.find_one(user_id=user_id)
        if context is None:
            return self.store.contexts.insert(
                WorkspaceContext.model_validate({"user_id": user_id, **changes})
            )
        return self.store.contexts.merge(context.id, changes)

    async def get_session_state(self, user: User) -> SessionState:
        """
        Get complete session state for a user including all organization memberships

        Args:
            user: The active principal

        Returns:
            SessionState with user info, current org, and all org memberships
        """
        context = self.get_context(user.id)
        memberships = self.store.organization_members.list(user_id=user.id)

        organizations = []
        current: Optional[Organization] = None
        current_role: Optional[UserRole] = None

        for membership in memberships:
            organization = self.store.organizations.get(membership.organization_id)
            if organization is None:
                continue
            organizations.append(
                OrganizationMembership(
                    id=organization.id, name=organization.name, role=membership.role
                )
            )

            # Use the saved current organization if available, otherwise the first
            if context.current_organization_id == organization.id or current is None:
                current = organization
                current_role = membership.role

        return SessionState(
            user_id=user.id,
            user_email=user.email,
            user_display_name=user.name,
            organization_id=current.id if current else None,
            organization_name=current.name if current else None,
            role=current_role,
            plan=current.plan if current else None,
            current_project_id=context.current_project_id,
            dashboard_view=context.dashboard_view,
            organizations=organizations,
        )


class AuthService:
    def __init__(
        self, store: ResourceStore, sessions: SessionRegistry, settings: Settings
    ):
        self.store = store
        self.sessions = sessions
        self.settings = settings

    async def register(self, data: RegisterRequest) -> AuthResponse:
        """
        Create a user, and optionally their first organization, then log in.

        The user, organization, owner membership and workspace context are
        written together after every check has passed, so a failed
        registration leaves nothing behind.

        Args:
            data: Registration request

        Returns:
            AuthResponse with the user, tokens and the new organization

        Raises:
            EmailAlreadyExistsError: If the email is already registered
            OrganizationSlugConflictError: If the organization slug is taken
        """
        if self.store.users.find_one(email=data.email):
            raise EmailAlreadyExistsError(data.email)

        organization: Optional[Organization] = None
        if data.organization_name:
            name = data.organization_name.strip()
            slug = slugify(name)
            if self.store.organizations.find_one(slug=slug):
                raise OrganizationSlugConflictError(slug)
            organization = build_organization(
                name, slug, Plan(self.settings.DEFAULT_ORGANIZATION_PLAN)
            )

        user = self.store.users.insert(User(email=data.email, name=data.name.strip()))
        if organization is not None:
            organization = self.store.organizations.insert(organization)
            self.store.organization_members.insert(
                OrganizationMember(
                    user_id=user.id,
                    organization_id=organization.id,
                    role=UserRole.owner,
                )
            )
        self.store.contexts.insert(
            WorkspaceContext(
                user_id=user.id,
                current_organization_id=organization.id if organization else None,
                dashboard_view=user.preferences.default_view,
            )
        )

        session = self.sessions.open(user.id, data.device, data.browser)
        logger.info(
            f"Registered user {user.id}"
            + (f" with organization {organization.id}" if organization else "")
        )
        return AuthResponse(
            user=user,
            tokens=issue_token_pair(self.settings, user.id, session.id),
            organization=organization,
        )

    async def login(self, data: LoginRequest) -> AuthResponse:
        """
        Open a device session for an existing user.

        Credentials are validated upstream; only the account's existence is
        checked here.

        Raises:
            InvalidCredentialsError: If no account has this email
        """
        user = self.store.users.find_one(email=data.email)
        if user is None:
            logger.warning("Login attempt for unknown email")
            raise InvalidCredentialsError()

        session = self.sessions.open(user.id, data.device, data.browser)
        return AuthResponse(
            user=user, tokens=issue_token_pair(self.settings, user.id, session.id)
        )

    async def logout(self) -> None:
        user_id = self.sessions.current_user_id
        self.sessions.close_current()
        if user_id:
            logger.info(f"User {user_id} logged out")

    async def refresh(self, refresh_token: str) -> AccessToken:
        """
        Exchange a refresh token for a new access token.

        Raises:
            InvalidTokenError: If the token is invalid, is not a refresh token,
                or its device session has been closed or revoked
        """
        payload = decode_session_token(self.settings, refresh_token, "refresh")
        session = self.sessions.get(payload.sid)
        if session is None or session.user_id != payload.sub:
            raise InvalidTokenError()

        self.sessions.touch(session.id)
        tokens = issue_token_pair(self.settings, payload.sub, session.id)
        return AccessToken(
            access_token=tokens.access_token, expires_in=tokens.expires_in
        )
