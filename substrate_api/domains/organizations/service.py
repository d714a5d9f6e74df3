# substrate_api/domains/organizations/service.py
import logging
from typing import List, Optional

from substrate_api.core.entities import Organization, OrganizationMember, User
from substrate_api.core.enums import Plan, UserRole
from substrate_api.core.store import ResourceStore
from substrate_api.domains.auth.models import SessionState
from substrate_api.domains.auth.service import SessionService
from substrate_api.domains.organizations.exceptions import (
    CannotRemoveSelfError,
    LastOwnerError,
    MemberAlreadyExistsError,
    MemberNotFoundError,
    OrganizationNotEmptyError,
    OrganizationNotFoundError,
    OrganizationSlugConflictError,
    SoleProjectOwnerError,
)
from substrate_api.domains.organizations.models import (
    InviteMemberRequest,
    OrganizationCreate,
    OrganizationMemberResponse,
    OrganizationStats,
    OrganizationUpdate,
    OrganizationWithStats,
    build_organization,
)
from substrate_api.shared.exceptions import (
    InsufficientPermissionsError,
    UserNotFoundError,
)
from substrate_api.shared.permissions import is_at_least
from substrate_api.shared.utils import slugify

logger = logging.getLogger(__name__)


class OrganizationService:
    def __init__(self, store: ResourceStore):
        self.store = store

    def _ensure_slug_available(
        self, slug: str, exclude_id: Optional[str] = None
    ) -> None:
        existing = self.store.organizations.find_one(slug=slug)
        if existing and existing.id != exclude_id:
            raise OrganizationSlugConflictError(slug)

    def with_stats(self, organization: Organization) -> OrganizationWithStats:
        stats = self.store.organization_stats(organization.id)
        return OrganizationWithStats(
            **organization.model_dump(),
            stats=OrganizationStats.model_validate(stats),
        )

    async def list_for_user(self, user_id: str) -> List[OrganizationWithStats]:
        organizations = []
        for membership in self.store.organization_members.list(user_id=user_id):
            organization = self.store.organizations.get(membership.organization_id)
            if organization:
                organizations.append(self.with_stats(organization))
        return organizations

    async def create_organization(
        self, data: OrganizationCreate, owner: User, plan: Plan
    ) -> Organization:
        """
        Create a new organization and add the current user as owner.

        The organization and its owner membership are written together, so
        an organization is never visible without an owning member.

        Raises:
            OrganizationSlugConflictError: If the slug is already taken
        """
        slug = slugify(data.slug or data.name)
        self._ensure_slug_available(slug)

        organization = self.store.organizations.insert(
            build_organization(data.name, slug, plan, data.description)
        )
        self.store.organization_members.insert(
            OrganizationMember(
                user_id=owner.id,
                organization_id=organization.id,
                role=UserRole.owner,
            )
        )
        logger.info(f"Organization {organization.id} created by user {owner.id}")
        return organization

    async def get_by_slug(self, slug: str, user_id: str) -> OrganizationWithStats:
        organization = self.store.organizations.find_one(slug=slug)
        if organization is None or not self.store.organization_members.find_one(
            organization_id=organization.id, user_id=user_id
        ):
            raise OrganizationNotFoundError(slug)
        return self.with_stats(organization)

    async def switch_organization(self, user: User, organization_id: str) -> SessionState:
        """
        Switch the user's active organization.

        The caller's membership is checked by the route. The current project
        is cleared when it belongs to another organization.
        """
        session_service = SessionService(self.store)
        context = session_service.get_context(user.id)
        project = (
            self.store.projects.get(context.current_project_id)
            if context.current_project_id
            else None
        )
        keep_project = project is not None and project.organization_id == organization_id

        session_service.save_context(
            user.id,
            {
                "current_organization_id": organization_id,
                "current_project_id": project.id if keep_project else None,
            },
        )
        logger.info(f"User {user.id} switched to organization {organization_id}")
        return await session_service.get_session_state(user)

    async def update_organization(
        self, organization: Organization, data: OrganizationUpdate
    ) -> Organization:
        """
        Apply a partial update; nested settings are merged, not replaced.

        Raises:
            OrganizationSlugConflictError: If a new slug is already taken
            RevisionMismatchError: If expectedRevision is stale
        """
        changes = data.model_dump(exclude_unset=True, exclude={"expected_revision"})
        if changes.get("slug") is not None:
            changes["slug"] = slugify(changes["slug"])
            self._ensure_slug_available(changes["slug"], exclude_id=organization.id)
        if "settings" in changes and changes["settings"] is None:
            del changes["settings"]

        updated = self.store.organizations.merge(
            organization.id, changes, data.expected_revision
        )
        logger.info(
            f"Organization {organization.id} updated (revision {updated.revision})"
        )
        return updated

    async def delete_organization(self, organization: Organization) -> None:
        """
        Delete an organization with its memberships and teams.

        Raises:
            OrganizationNotEmptyError: If the organization still owns projects
        """
        if self.store.projects.count(organization_id=organization.id):
            raise OrganizationNotEmptyError()

        for team in self.store.teams.list(organization_id=organization.id):
            for team_member in self.store.team_members.list(team_id=team.id):
                self.store.team_members.remove(team_member.id)
            self.store.teams.remove(team.id)
        for member in self.store.organization_members.list(
            organization_id=organization.id
        ):
            self.store.organization_members.remove(member.id)
        for context in self.store.contexts.list(
            current_organization_id=organization.id
        ):
            self.store.contexts.merge(
                context.id,
                {"current_organization_id": None, "current_project_id": None},
            )
        self.store.organizations.remove(organization.id)
        logger.info(f"Organization {organization.id} deleted")

    async def get_organization_members(
        self, organization_id: str
    ) -> List[OrganizationMemberResponse]:
        """
        Get all members of an organization with their user records.

        Args:
            organization_id: The organization ID to get members for

        Returns:
            List of organization members, oldest membership first
        """
        members = self.store.organization_members.list(organization_id=organization_id)
        return [self._member_response(member) for member in members]

    def _member_response(self, member: OrganizationMember) -> OrganizationMemberResponse:
        return OrganizationMemberResponse(
            **member.model_dump(), user=self.store.users.get(member.user_id)
        )

    def _get_member(self, organization_id: str, user_id: str) -> OrganizationMember:
        member = self.store.organization_members.find_one(
            organization_id=organization_id, user_id=user_id
        )
        if member is None:
            raise MemberNotFoundError()
        return member

    def _owner_count(self, organization_id: str) -> int:
        return self.store.organization_members.count(
            organization_id=organization_id, role=UserRole.owner
        )

    async def add_member(
        self, organization_id: str, data: InviteMemberRequest, invited_by: User
    ) -> OrganizationMemberResponse:
        """
        Add an existing user to the organization.

        Raises:
            UserNotFoundError: If no user has the email
            MemberAlreadyExistsError: If the user is already a member
        """
        email = data.email.strip().lower()
        user = self.store.users.find_one(email=email)
        if user is None:
            raise UserNotFoundError(email)
        if self.store.organization_members.find_one(
            organization_id=organization_id, user_id=user.id
        ):
            raise MemberAlreadyExistsError()

        member = self.store.organization_members.insert(
            OrganizationMember(
                user_id=user.id,
                organization_id=organization_id,
                role=data.role,
                invited_by=invited_by.id,
            )
        )
        logger.info(
            f"User {user.id} added to organization {organization_id} as {data.role.value}"
        )
        return self._member_response(member)

    async def update_member_role(
        self,
        organization_id: str,
        user_id: str,
        role: UserRole,
        requester: OrganizationMember,
    ) -> OrganizationMemberResponse:
        """
        Change a member's organization role.

        Business rules:
        - Only owners can grant or revoke the owner role
        - The last owner cannot be demoted

        Raises:
            MemberNotFoundError: If the user is not a member
            InsufficientPermissionsError: If a non-owner touches the owner role
            LastOwnerError: If the change would leave no owner
        """
        member = self._get_member(organization_id, user_id)
        touches_owner = UserRole.owner in (role, member.role)
        if touches_owner and not is_at_least(requester.role, UserRole.owner):
            raise InsufficientPermissionsError(f"{UserRole.owner.value} role")
        if (
            member.role == UserRole.owner
            and role != UserRole.owner
            and self._owner_count(organization_id) <= 1
        ):
            raise LastOwnerError()

        updated = self.store.organization_members.merge(member.id, {"role": role})
        return self._member_response(updated)

    async def remove_member(
        self, organization_id: str, user_id: str, requester: OrganizationMember
    ) -> None:
        """
        Remove a member from the organization, its teams and its projects.

        Business rules:
        - Cannot remove yourself from the organization
        - Cannot remove the last owner (maintains organization access)
        - Only owners can remove another owner
        - Cannot remove the last owner of any of the organization's projects

        Raises:
            MemberNotFoundError: If the user is not a member
            CannotRemoveSelfError: If the requester targets themselves
            LastOwnerError: If the member is the last owner
            SoleProjectOwnerError: If the member is a project's last owner
        """
        member = self._get_member(organization_id, user_id)
        if user_id == requester.user_id:
            raise CannotRemoveSelfError()
        if member.role == UserRole.owner:
            if not is_at_least(requester.role, UserRole.owner):
                raise InsufficientPermissionsError(f"{UserRole.owner.value} role")
            if self._owner_count(organization_id) <= 1:
                raise LastOwnerError()

        project_ids = {
            project.id
            for project in self.store.projects.list(organization_id=organization_id)
        }
        project_memberships = self.store.project_members.list(
            user_id=user_id, predicate=lambda pm: pm.project_id in project_ids
        )
        for membership in project_memberships:
            if (
                membership.role == UserRole.owner
                and self.store.project_members.count(
                    project_id=membership.project_id, role=UserRole.owner
                )
                <= 1
            ):
                raise SoleProjectOwnerError(membership.project_id)

        for membership in project_memberships:
            self.store.project_members.remove(membership.id)
        teams = self.store.teams.list(organization_id=organization_id)
        team_ids = {team.id for team in teams}
        for team_member in self.store.team_members.list(
            user_id=user_id, predicate=lambda tm: tm.team_id in team_ids
        ):
            self.store.team_members.remove(team_member.id)
        for team in teams:
            if team.lead_id == user_id:
                self.store.teams.merge(team.id, {"lead_id": None})
        for context in self.store.contexts.list(
            user_id=user_id, current_organization_id=organization_id
        ):
            self.store.contexts.merge(
                context.id, {"current_organization_id": None, "current_project_id": None}
            )
        self.store.organization_members.remove(member.id)
        logger.info(f"User {user_id} removed from organization {organization_id}")
