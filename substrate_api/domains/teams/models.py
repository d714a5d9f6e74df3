# substrate_api/domains/teams/models.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from substrate_api.core.entities import Team, TeamMember, User
from substrate_api.core.enums import TeamRole


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TeamCreate(_RequestModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    color: Optional[str] = None
    lead_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Team name cannot be blank")
        return v.strip()


class TeamUpdate(_RequestModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    lead_id: Optional[str] = None
    expected_revision: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Team name cannot be blank")
        return v.strip() if v else v


class TeamResponse(Team):
    member_count: int = 0
    lead: Optional[User] = None


class AddTeamMemberRequest(_RequestModel):
    user_id: str
    role: TeamRole = TeamRole.member


class TeamMemberResponse(TeamMember):
    user: Optional[User] = None
