# substrate_api/domains/projects/service.py
import logging
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional

from substrate_api.core.entities import (
    ActivityTarget,
    Organization,
    OrganizationMember,
    Project,
    ProjectActivity,
    ProjectInvitation,
    ProjectMember,
    ProjectSettings,
    User,
)
from substrate_api.core.enums import (
    ActivityType,
    InvitationStatus,
    ProjectStatus,
    Severity,
    UserRole,
)
from substrate_api.core.settings import Settings
from substrate_api.core.store import ResourceStore, deep_merge
from substrate_api.domains.projects.exceptions import (
    InvitationConflictError,
    InvitationNotFoundError,
    LastProjectOwnerError,
    ProjectLimitReachedError,
    ProjectMemberAlreadyExistsError,
    ProjectMemberNotFoundError,
    ProjectSlugConflictError,
    ProjectStatusConflictError,
    RoleAboveRequesterError,
)
from substrate_api.domains.projects.models import (
    AddProjectMemberRequest,
    CreateInvitationRequest,
    InvitationResponse,
    ProjectCreate,
    ProjectMemberResponse,
    ProjectUpdate,
    ProjectWithRole,
    UpdateProjectMemberRequest,
)
from substrate_api.shared.exceptions import (
    InsufficientPermissionsError,
    UserNotFoundError,
)
from substrate_api.shared.permissions import Permission, has_permission, is_at_least
from substrate_api.shared.utils import slugify, utcnow

logger = logging.getLogger(__name__)

# Query parameters accepted as list filters, mapped to entity fields
PROJECT_FILTERS = {"organizationId": "organization_id", "status": "status"}
ACTIVITY_FILTERS = {"type": "type", "severity": "severity"}


def select_filters(params: Mapping[str, Any], accepted: Mapping[str, str]) -> Dict[str, Any]:
    """Pick recognised filter parameters; anything else is ignored."""
    return {field: params[key] for key, field in accepted.items() if key in params}


def effective_invitation(invitation: ProjectInvitation) -> ProjectInvitation:
    """Report a pending invitation past its expiry as expired."""
    if (
        invitation.status == InvitationStatus.pending
        and invitation.expires_at <= utcnow()
    ):
        return invitation.model_copy(update={"status": InvitationStatus.expired})
    return invitation


def member_target(user: User) -> ActivityTarget:
    return ActivityTarget(type="user", id=user.id, name=user.name)


class ProjectService:
    def __init__(self, store: ResourceStore, settings: Settings):
        self.store = store
        self.settings = settings

    def _ensure_slug_available(
        self, organization_id: str, slug: str, exclude_id: Optional[str] = None
    ) -> None:
        existing = self.store.projects.find_one(
            organization_id=organization_id, slug=slug
        )
        if existing and existing.id != exclude_id:
            raise ProjectSlugConflictError(slug)

    def _ensure_capacity(self, organization: Organization) -> None:
        limit = organization.limits.max_projects
        if self.store.projects.count(organization_id=organization.id) >= limit:
            raise ProjectLimitReachedError(limit)

    @staticmethod
    def _ensure_status_transition(project: Project, status: ProjectStatus) -> None:
        # Updates only activate a project in setup; archive and restore have
        # their own endpoints
        if project.status == ProjectStatus.archived:
            raise ProjectStatusConflictError(
                f"Project is archived; use restore to reactivate it: {project.id}"
            )
        if not (
            project.status == ProjectStatus.setup and status == ProjectStatus.active
        ):
            raise ProjectStatusConflictError(
                f"Cannot change project status from {project.status.value} "
                f"to {status.value}: {project.id}"
            )

    # Projects

    async def list_projects(
        self, user_id: str, params: Mapping[str, Any]
    ) -> List[ProjectWithRole]:
        """
        List projects the user is a member of.

        Args:
            user_id: The principal's user ID
            params: Request parameters; organizationId and status filter the
                list, other keys are ignored

        Returns:
            Projects with the user's role on each, in creation order
        """
        roles = {
            membership.project_id: membership.role
            for membership in self.store.project_members.list(user_id=user_id)
        }
        return [
            ProjectWithRole(**project.model_dump(), role=roles[project.id])
            for project in self.store.projects.list(
                filters=select_filters(params, PROJECT_FILTERS),
                predicate=lambda p: p.id in roles,
            )
        ]

    async def create_project(
        self, data: ProjectCreate, organization: Organization, creator: User
    ) -> Project:
        """
        Create a project with the creator as its owner member.

        The project, the owner membership and the project.created activity
        entry are written together after every check has passed.

        Raises:
            ProjectLimitReachedError: If the plan's project limit is reached
            ProjectSlugConflictError: If the slug is taken in the organization
        """
        self._ensure_capacity(organization)
        slug = slugify(data.slug or data.name)
        self._ensure_slug_available(organization.id, slug)

        settings = ProjectSettings()
        if data.settings is not None:
            settings = ProjectSettings.model_validate(
                deep_merge(
                    settings.model_dump(), data.settings.model_dump(exclude_unset=True)
                )
            )

        project = self.store.projects.insert(
            Project(
                organization_id=organization.id,
                name=data.name,
                slug=slug,
                description=data.description,
                settings=settings,
            )
        )
        self.store.project_members.insert(
            ProjectMember(user_id=creator.id, project_id=project.id, role=UserRole.owner)
        )
        self.store.record_activity(
            project,
            ActivityType.PROJECT_CREATED,
            actor=creator,
            target=ActivityTarget(type="project", id=project.id, name=project.name),
        )
        logger.info(f"Project {project.id} created in organization {organization.id}")
        return project

    async def update_project(
        self, project: Project, data: ProjectUpdate, actor: User
    ) -> Project:
        """
        Apply a partial update; nested settings are merged, not replaced.

        Replaying the same update leaves the project unchanged and records
        no further activity.

        Raises:
            ProjectSlugConflictError: If a new slug is taken
            ProjectStatusConflictError: If the status change is not setup to
                active
            RevisionMismatchError: If expectedRevision is stale
        """
        changes = data.model_dump(exclude_unset=True, exclude={"expected_revision"})
        if changes.get("slug") is not None:
            changes["slug"] = slugify(changes["slug"])
            self._ensure_slug_available(
                project.organization_id, changes["slug"], exclude_id=project.id
            )
        for key in ("settings", "status"):
            if key in changes and changes[key] is None:
                del changes[key]
        status = changes.get("status")
        if status is not None and status != project.status:
            self._ensure_status_transition(project, status)

        updated = self.store.projects.merge(project.id, changes, data.expected_revision)
        if updated.revision != project.revision:
            self.store.record_activity(
                updated,
                ActivityType.PROJECT_UPDATED,
                actor=actor,
                target=ActivityTarget(type="project", id=updated.id, name=updated.name),
                metadata={"fields": sorted(changes)},
            )
        return updated

    async def delete_project(self, project: Project) -> None:
        """
        Delete a project with its members, invitations, connectors and sync jobs.

        Activity entries are kept as an audit trail.
        """
        for member in self.store.project_members.list(project_id=project.id):
            self.store.project_members.remove(member.id)
        for invitation in self.store.invitations.list(project_id=project.id):
            self.store.invitations.remove(invitation.id)
        for connector in self.store.connectors.list(project_id=project.id):
            self.store.connectors.remove(connector.id)
        for job in self.store.sync_jobs.list(project_id=project.id):
            self.store.sync_jobs.remove(job.id)
        for context in self.store.contexts.list(current_project_id=project.id):
            self.store.contexts.merge(context.id, {"current_project_id": None})
        self.store.projects.remove(project.id)
        logger.info(f"Project {project.id} deleted")

    async def archive_project(self, project: Project, actor: User) -> Project:
        """
        Archive a project.

        Raises:
            ProjectStatusConflictError: If the project is already archived
        """
        if project.status == ProjectStatus.archived:
            raise ProjectStatusConflictError(f"Project is already archived: {project.id}")

        archived = self.store.projects.merge(
            project.id, {"status": ProjectStatus.archived}
        )
        self.store.record_activity(
            archived,
            ActivityType.PROJECT_ARCHIVED,
            actor=actor,
            target=ActivityTarget(type="project", id=archived.id, name=archived.name),
            severity=Severity.warning,
        )
        logger.info(f"Project {project.id} archived by user {actor.id}")
        return archived

    async def restore_project(self, project: Project, actor: User) -> Project:
        """
        Restore an archived project to active.

        Raises:
            ProjectStatusConflictError: If the project is not archived
        """
        if project.status != ProjectStatus.archived:
            raise ProjectStatusConflictError(f"Project is not archived: {project.id}")

        restored = self.store.projects.merge(project.id, {"status": ProjectStatus.active})
        self.store.record_activity(
            restored,
            ActivityType.PROJECT_UPDATED,
            actor=actor,
            target=ActivityTarget(type="project", id=restored.id, name=restored.name),
            metadata={"status": ProjectStatus.active.value},
        )
        logger.info(f"Project {project.id} restored by user {actor.id}")
        return restored

    async def transfer_project(
        self, project: Project, target: Organization, actor: User
    ) -> Project:
        """
        Move a project, with its pending invitations, to another organization.

        Project members who do not belong to the target organization join it
        with the readonly role.

        Raises:
            ProjectLimitReachedError: If the target organization is full
            ProjectSlugConflictError: If the slug is taken in the target
        """
        if target.id == project.organization_id:
            return project
        self._ensure_capacity(target)
        self._ensure_slug_available(target.id, project.slug)

        source_id = project.organization_id
        moved = self.store.projects.reassign_parent(
            project.id, "organization_id", target.id
        )
        for invitation in self.store.invitations.list(project_id=project.id):
            self.store.invitations.reassign_parent(
                invitation.id, "organization_id", target.id
            )
        for member in self.store.project_members.list(project_id=project.id):
            self._ensure_organization_member(target.id, member.user_id, actor.id)
        self.store.record_activity(
            moved,
            ActivityType.PROJECT_UPDATED,
            actor=actor,
            target=ActivityTarget(type="project", id=moved.id, name=moved.name),
            metadata={"fromOrganizationId": source_id, "toOrganizationId": target.id},
        )
        logger.info(f"Project {project.id} transferred from {source_id} to {target.id}")
        return moved

    # Members

    def _member_response(self, member: ProjectMember) -> ProjectMemberResponse:
        return ProjectMemberResponse(
            **member.model_dump(), user=self.store.users.get(member.user_id)
        )

    def _get_member(self, project_id: str, user_id: str) -> ProjectMember:
        member = self.store.project_members.find_one(
            project_id=project_id, user_id=user_id
        )
        if member is None:
            raise ProjectMemberNotFoundError()
        return member

    def _owner_count(self, project_id: str) -> int:
        return self.store.project_members.count(
            project_id=project_id, role=UserRole.owner
        )

    @staticmethod
    def _ensure_can_grant(requester: ProjectMember, role: UserRole) -> None:
        if not is_at_least(requester.role, role):
            raise RoleAboveRequesterError(role.value)

    @staticmethod
    def _ensure_can_grant_permissions(
        requester: ProjectMember, permissions: List[Permission]
    ) -> None:
        # Custom grants are limited to what the requester holds
        for permission in permissions:
            if not has_permission(requester, permission):
                raise InsufficientPermissionsError(permission.value)

    def _ensure_organization_member(
        self, organization_id: str, user_id: str, invited_by: Optional[str]
    ) -> None:
        """Join the user to the organization as readonly unless already a member."""
        if self.store.organization_members.find_one(
            organization_id=organization_id, user_id=user_id
        ):
            return
        self.store.organization_members.insert(
            OrganizationMember(
                user_id=user_id,
                organization_id=organization_id,
                role=UserRole.readonly,
                invited_by=invited_by,
            )
        )

    async def list_members(self, project_id: str) -> List[ProjectMemberResponse]:
        members = self.store.project_members.list(project_id=project_id)
        return [self._member_response(member) for member in members]

    async def get_member(self, member: ProjectMember) -> ProjectMemberResponse:
        return self._member_response(member)

    def grant_membership(
        self,
        project: Project,
        user: User,
        role: UserRole,
        invited_by: Optional[str],
        custom_permissions: Optional[List[Any]] = None,
    ) -> ProjectMember:
        """
        Add a user to a project, joining its organization first if needed.

        Both memberships and the member.joined activity are written together.
        A user joining the organization this way gets the readonly role.
        """
        self._ensure_organization_member(project.organization_id, user.id, invited_by)
        member = self.store.project_members.insert(
            ProjectMember(
                user_id=user.id,
                project_id=project.id,
                role=role,
                custom_permissions=custom_permissions or [],
                invited_by=invited_by,
            )
        )
        self.store.record_activity(
            project,
            ActivityType.MEMBER_JOINED,
            actor=user,
            target=member_target(user),
            metadata={"role": role.value},
        )
        return member

    async def add_member(
        self, project: Project, data: AddProjectMemberRequest, requester: ProjectMember
    ) -> ProjectMemberResponse:
        """
        Add an existing user to the project.

        Raises:
            UserNotFoundError: If the user does not exist
            RoleAboveRequesterError: If the role outranks the requester's
            InsufficientPermissionsError: If a custom grant is one the
                requester does not hold
            ProjectMemberAlreadyExistsError: If the user is already a member
        """
        if data.user_id:
            user = self.store.users.get(data.user_id)
        else:
            user = self.store.users.find_one(email=(data.email or "").strip().lower())
        if user is None:
            raise UserNotFoundError(data.user_id or data.email or "")
        self._ensure_can_grant(requester, data.role)
        self._ensure_can_grant_permissions(requester, data.custom_permissions)
        if self.store.project_members.find_one(project_id=project.id, user_id=user.id):
            raise ProjectMemberAlreadyExistsError()

        member = self.grant_membership(
            project, user, data.role, requester.user_id, data.custom_permissions
        )
        return self._member_response(member)

    async def update_member(
        self,
        project: Project,
        user_id: str,
        data: UpdateProjectMemberRequest,
        requester: ProjectMember,
        actor: User,
    ) -> ProjectMemberResponse:
        """
        Change a member's role or custom permissions.

        Raises:
            ProjectMemberNotFoundError: If the user is not a member
            RoleAboveRequesterError: If either role outranks the requester's
            InsufficientPermissionsError: If a custom grant is one the
                requester does not hold
            LastProjectOwnerError: If the change would leave no owner
        """
        member = self._get_member(project.id, user_id)
        changes = data.model_dump(exclude_unset=True, exclude={"expected_revision"})
        role = changes.get("role")
        if role is not None or data.custom_permissions is not None:
            self._ensure_can_grant(requester, member.role)
        if data.custom_permissions is not None:
            self._ensure_can_grant_permissions(requester, data.custom_permissions)
        if role is not None:
            self._ensure_can_grant(requester, role)
            if (
                member.role == UserRole.owner
                and role != UserRole.owner
                and self._owner_count(project.id) <= 1
            ):
                raise LastProjectOwnerError()
        changes = {key: value for key, value in changes.items() if value is not None}

        updated = self.store.project_members.merge(
            member.id, changes, data.expected_revision
        )
        if updated.role != member.role:
            user = self.store.users.get(user_id)
            self.store.record_activity(
                project,
                ActivityType.MEMBER_ROLE_CHANGED,
                actor=actor,
                target=member_target(user) if user else None,
                metadata={"from": member.role.value, "to": updated.role.value},
            )
        return self._member_response(updated)

    async def remove_member(
        self, project: Project, user_id: str, requester: ProjectMember, actor: User
    ) -> None:
        """
        Remove a member from the project.

        Raises:
            ProjectMemberNotFoundError: If the user is not a member
            RoleAboveRequesterError: If the member outranks the requester
            LastProjectOwnerError: If the member is the last owner
        """
        member = self._get_member(project.id, user_id)
        self._ensure_can_grant(requester, member.role)
        if member.role == UserRole.owner and self._owner_count(project.id) <= 1:
            raise LastProjectOwnerError()

        self.store.project_members.remove(member.id)
        user = self.store.users.get(user_id)
        self.store.record_activity(
            project,
            ActivityType.MEMBER_REMOVED,
            actor=actor,
            target=member_target(user) if user else None,
            severity=Severity.warning,
        )

    # Invitations

    def invitation_response(self, invitation: ProjectInvitation) -> InvitationResponse:
        project = self.store.projects.get(invitation.project_id)
        return InvitationResponse(
            **effective_invitation(invitation).model_dump(),
            project_name=project.name if project else None,
        )

    async def list_invitations(self, project_id: str) -> List[InvitationResponse]:
        invitations = self.store.invitations.list(project_id=project_id)
        return [self.invitation_response(invitation) for invitation in invitations]

    async def create_invitation(
        self,
        project: Project,
        data: CreateInvitationRequest,
        requester: ProjectMember,
        actor: User,
    ) -> InvitationResponse:
        """
        Invite an email address to the project.

        Raises:
            RoleAboveRequesterError: If the role outranks the requester's
            InvitationConflictError: If the invitee is already a member or has
                a pending invitation
        """
        self._ensure_can_grant(requester, data.role)
        invitee = self.store.users.find_one(email=data.email)
        if invitee and self.store.project_members.find_one(
            project_id=project.id, user_id=invitee.id
        ):
            raise InvitationConflictError(f"{data.email} is already a project member")
        pending = [
            invitation
            for invitation in self.store.invitations.list(
                project_id=project.id, email=data.email
            )
            if effective_invitation(invitation).status == InvitationStatus.pending
        ]
        if pending:
            raise InvitationConflictError(f"{data.email} already has a pending invitation")

        invitation = self.store.invitations.insert(
            ProjectInvitation(
                project_id=project.id,
                organization_id=project.organization_id,
                email=data.email,
                role=data.role,
                invited_by=actor.id,
                expires_at=utcnow() + timedelta(days=self.settings.INVITATION_TTL_DAYS),
                message=data.message,
            )
        )
        self.store.record_activity(
            project,
            ActivityType.MEMBER_INVITED,
            actor=actor,
            target=ActivityTarget(type="invitation", id=invitation.id, name=data.email),
            metadata={"role": data.role.value},
        )
        logger.info(f"Invitation {invitation.id} created for project {project.id}")
        return self.invitation_response(invitation)

    async def revoke_invitation(self, project: Project, invitation_id: str) -> None:
        invitation = self.store.invitations.get(invitation_id)
        if invitation is None or invitation.project_id != project.id:
            raise InvitationNotFoundError(invitation_id)
        self.store.invitations.remove(invitation.id)
        logger.info(f"Invitation {invitation_id} revoked")

    # Activity

    async def list_activity(
        self, project_id: str, params: Mapping[str, Any]
    ) -> List[ProjectActivity]:
        """
        Project activity, newest first.

        Args:
            project_id: Project ID
            params: type and severity filter the entries; limit (or perPage)
                windows them through the list envelope
        """
        entries = self.store.activity.list(
            filters=select_filters(params, ACTIVITY_FILTERS), project_id=project_id
        )
        # Stable sort over reversed insertion order keeps the latest write
        # first among entries sharing a timestamp
        return sorted(reversed(entries), key=lambda a: a.created_at, reverse=True)
