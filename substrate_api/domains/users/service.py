import logging
from typing import List

from substrate_api.core.entities import (
    ProjectInvitation,
    User,
    UserPreferences,
    WorkspaceContext,
)
from substrate_api.core.enums import InvitationStatus
from substrate_api.core.settings import Settings
from substrate_api.core.store import ResourceStore
from substrate_api.domains.auth.service import SessionService
from substrate_api.domains.organizations.exceptions import OrganizationNotFoundError
from substrate_api.domains.projects.exceptions import (
    InvitationConflictError,
    InvitationNotFoundError,
    ProjectNotFoundError,
)
from substrate_api.domains.projects.models import (
    InvitationResponse,
    ProjectMemberResponse,
)
from substrate_api.domains.projects.service import (
    ProjectService,
    effective_invitation,
)
from substrate_api.domains.users.exceptions import (
    EmailInUseError,
    InvitationExpiredError,
    InvitationNotPendingError,
)
from substrate_api.domains.users.models import (
    PreferencesUpdate,
    UserUpdate,
    WorkspaceContextUpdate,
)
from substrate_api.shared.exceptions import RequestValidationError

logger = logging.getLogger(__name__)


class UserService:
    """The current user's profile, preferences, context and invitations."""

    def __init__(self, store: ResourceStore, settings: Settings):
        self.store = store
        self.settings = settings

    async def update_profile(self, user: User, data: UserUpdate) -> User:
        """
        Raises:
            EmailInUseError: If the new email belongs to another account
        """
        changes = data.model_dump(exclude_unset=True, exclude={"expected_revision"})
        if changes.get("email"):
            other = self.store.users.find_one(email=changes["email"])
            if other and other.id != user.id:
                raise EmailInUseError(changes["email"])
        for key in ("name", "email"):
            if key in changes and changes[key] is None:
                del changes[key]
        return self.store.users.merge(user.id, changes, data.expected_revision)

    async def change_password(self, user: User) -> None:
        # Credentials are held upstream; the request body is validated only.
        logger.info(f"Password change requested for user {user.id}")

    async def update_preferences(
        self, user: User, data: PreferencesUpdate
    ) -> UserPreferences:
        changes = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        updated = self.store.users.merge(user.id, {"preferences": changes})
        return updated.preferences

    async def update_context(
        self, user: User, data: WorkspaceContextUpdate
    ) -> WorkspaceContext:
        """
        Save the workspace selection.

        Selecting a project also selects its organization.

        Raises:
            OrganizationNotFoundError: If the user is not in the organization
            ProjectNotFoundError: If the user is not on the project
            RequestValidationError: If the project is outside the organization
        """
        changes = data.model_dump(exclude_unset=True)
        if changes.get("dashboard_view") is None:
            changes.pop("dashboard_view", None)

        project_id = changes.get("current_project_id")
        if project_id:
            project = self.store.projects.get(project_id)
            if project is None or not self.store.project_members.find_one(
                project_id=project_id, user_id=user.id
            ):
                raise ProjectNotFoundError(project_id)
            org_id = changes.get("current_organization_id") or project.organization_id
            if org_id != project.organization_id:
                raise RequestValidationError(
                    f"Project {project_id} does not belong to organization {org_id}"
                )
            changes["current_organization_id"] = org_id

        org_id = changes.get("current_organization_id")
        if org_id and not self.store.organization_members.find_one(
            organization_id=org_id, user_id=user.id
        ):
            raise OrganizationNotFoundError(org_id)

        sessions = SessionService(self.store)
        if "current_organization_id" in changes and "current_project_id" not in changes:
            # Drop a saved project that belongs to another organization
            saved = self.store.projects.get(
                sessions.get_context(user.id).current_project_id or ""
            )
            if saved is None or saved.organization_id != org_id:
                changes["current_project_id"] = None

        return sessions.save_context(user.id, changes)

    # Invitations

    def _own_invitation(self, user: User, invitation_id: str) -> ProjectInvitation:
        invitation = self.store.invitations.get(invitation_id)
        if invitation is None or invitation.email != user.email:
            raise InvitationNotFoundError(invitation_id)
        return invitation

    def _ensure_pending(self, invitation: ProjectInvitation) -> None:
        status = effective_invitation(invitation).status
        if status == InvitationStatus.expired:
            raise InvitationExpiredError(invitation.id)
        if status != InvitationStatus.pending:
            raise InvitationNotPendingError(invitation.id, status.value)

    async def list_invitations(self, user: User) -> List[InvitationResponse]:
        projects = ProjectService(self.store, self.settings)
        return [
            projects.invitation_response(invitation)
            for invitation in self.store.invitations.list(email=user.email)
            if effective_invitation(invitation).status == InvitationStatus.pending
        ]

    async def accept_invitation(
        self, user: User, invitation_id: str
    ) -> ProjectMemberResponse:
        """
        Accept a pending invitation.

        The project membership, the organization membership when missing,
        and the accepted status are written together.

        Raises:
            InvitationNotFoundError: If the invitation is not addressed to the user
            InvitationExpiredError: If the invitation has expired
            InvitationNotPendingError: If it was already accepted or declined
            InvitationConflictError: If the user is already a project member
        """
        invitation = self._own_invitation(user, invitation_id)
        self._ensure_pending(invitation)
        project = self.store.projects.get(invitation.project_id)
        if project is None:
            raise InvitationNotFoundError(invitation_id)
        if self.store.project_members.find_one(project_id=project.id, user_id=user.id):
            raise InvitationConflictError("You are already a member of this project")

        projects = ProjectService(self.store, self.settings)
        member = projects.grant_membership(
            project, user, invitation.role, invitation.invited_by
        )
        self.store.invitations.merge(
            invitation.id, {"status": InvitationStatus.accepted}
        )
        logger.info(f"User {user.id} accepted invitation {invitation_id}")
        return await projects.get_member(member)

    async def decline_invitation(
        self, user: User, invitation_id: str
    ) -> InvitationResponse:
        invitation = self._own_invitation(user, invitation_id)
        self._ensure_pending(invitation)
        declined = self.store.invitations.merge(
            invitation.id, {"status": InvitationStatus.declined}
        )
        logger.info(f"User {user.id} declined invitation {invitation_id}")
        return ProjectService(self.store, self.settings).invitation_response(declined)
