import logging
from typing import List, Optional

from substrate_api.core.entities import Team, TeamMember
from substrate_api.core.store import ResourceStore
from substrate_api.domains.teams.exceptions import (
    NotAnOrganizationMemberError,
    TeamMemberAlreadyExistsError,
    TeamMemberNotFoundError,
    TeamNotFoundError,
)
from substrate_api.domains.teams.models import (
    AddTeamMemberRequest,
    TeamCreate,
    TeamMemberResponse,
    TeamResponse,
    TeamUpdate,
)

logger = logging.getLogger(__name__)


class TeamService:
    """Teams within one organization."""

    def __init__(self, store: ResourceStore, organization_id: str):
        self.store = store
        self.organization_id = organization_id

    def _require_org_member(self, user_id: Optional[str]) -> None:
        if user_id and not self.store.organization_members.find_one(
            organization_id=self.organization_id, user_id=user_id
        ):
            raise NotAnOrganizationMemberError(user_id)

    def _get_team(self, team_id: str) -> Team:
        team = self.store.teams.get(team_id)
        if team is None or team.organization_id != self.organization_id:
            raise TeamNotFoundError(team_id)
        return team

    def _response(self, team: Team) -> TeamResponse:
        return TeamResponse(
            **team.model_dump(),
            member_count=self.store.team_members.count(team_id=team.id),
            lead=self.store.users.get(team.lead_id) if team.lead_id else None,
        )

    async def list_teams(self) -> List[TeamResponse]:
        teams = self.store.teams.list(organization_id=self.organization_id)
        return [self._response(team) for team in teams]

    async def get_team(self, team_id: str) -> TeamResponse:
        return self._response(self._get_team(team_id))

    async def create_team(self, data: TeamCreate) -> TeamResponse:
        """
        Create a team. The lead, when given, must belong to the organization.

        Raises:
            NotAnOrganizationMemberError: If the lead is not an org member
        """
        self._require_org_member(data.lead_id)
        team = self.store.teams.insert(
            Team(
                organization_id=self.organization_id,
                name=data.name,
                description=data.description,
                color=data.color,
                lead_id=data.lead_id,
            )
        )
        logger.info(f"Team {team.id} created in organization {self.organization_id}")
        return self._response(team)

    async def update_team(self, team_id: str, data: TeamUpdate) -> TeamResponse:
        team = self._get_team(team_id)
        changes = data.model_dump(exclude_unset=True, exclude={"expected_revision"})
        if "lead_id" in changes:
            self._require_org_member(changes["lead_id"])
        updated = self.store.teams.merge(team.id, changes, data.expected_revision)
        return self._response(updated)

    async def delete_team(self, team_id: str) -> None:
        team = self._get_team(team_id)
        for member in self.store.team_members.list(team_id=team.id):
            self.store.team_members.remove(member.id)
        self.store.teams.remove(team.id)
        logger.info(f"Team {team.id} deleted")

    def _member_response(self, member: TeamMember) -> TeamMemberResponse:
        return TeamMemberResponse(
            **member.model_dump(), user=self.store.users.get(member.user_id)
        )

    async def list_members(self, team_id: str) -> List[TeamMemberResponse]:
        team = self._get_team(team_id)
        return [
            self._member_response(member)
            for member in self.store.team_members.list(team_id=team.id)
        ]

    async def add_member(
        self, team_id: str, data: AddTeamMemberRequest
    ) -> TeamMemberResponse:
        """
        Add an organization member to a team.

        Raises:
            TeamNotFoundError: If the team is not in this organization
            NotAnOrganizationMemberError: If the user is outside the organization
            TeamMemberAlreadyExistsError: If the user is already on the team
        """
        team = self._get_team(team_id)
        self._require_org_member(data.user_id)
        if self.store.team_members.find_one(team_id=team.id, user_id=data.user_id):
            raise TeamMemberAlreadyExistsError()

        member = self.store.team_members.insert(
            TeamMember(team_id=team.id, user_id=data.user_id, role=data.role)
        )
        return self._member_response(member)

    async def remove_member(self, team_id: str, user_id: str) -> None:
        team = self._get_team(team_id)
        member = self.store.team_members.find_one(team_id=team.id, user_id=user_id)
        if member is None:
            raise TeamMemberNotFoundError()
        self.store.team_members.remove(member.id)
