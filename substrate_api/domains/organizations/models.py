# substrate_api/domains/organizations/models.py
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from substrate_api.core.entities import (
    CamelModel,
    Organization,
    OrganizationLimits,
    OrganizationMember,
    User,
)
from substrate_api.core.enums import Plan, UserRole

PLAN_LIMITS: Dict[Plan, OrganizationLimits] = {
    Plan.free: OrganizationLimits(
        max_projects=3, max_users=1, max_connectors_per_project=3, storage_gb=10
    ),
    Plan.team: OrganizationLimits(
        max_projects=25, max_users=50, max_connectors_per_project=10, storage_gb=100
    ),
    Plan.enterprise: OrganizationLimits(
        max_projects=50, max_users=100, max_connectors_per_project=10, storage_gb=500
    ),
}


def build_organization(
    name: str, slug: str, plan: Plan, description: Optional[str] = None
) -> Organization:
    """Unsaved organization with default settings and the plan's limits."""
    return Organization(
        name=name,
        slug=slug,
        description=description,
        plan=plan,
        limits=PLAN_LIMITS[plan],
    )


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrganizationCreate(_RequestModel):
    name: str = Field(min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Organization name cannot be blank")
        return v.strip()


class OrganizationSettingsUpdate(_RequestModel):
    allow_public_projects: Optional[bool] = None
    require_approval_for_connectors: Optional[bool] = None
    default_project_role: Optional[UserRole] = None
    sso_enabled: Optional[bool] = None
    audit_log_retention_days: Optional[int] = Field(default=None, ge=1)


class OrganizationUpdate(_RequestModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    avatar: Optional[str] = None
    settings: Optional[OrganizationSettingsUpdate] = None
    expected_revision: Optional[int] = None


class OrganizationStats(CamelModel):
    total_projects: int
    total_members: int
    total_teams: int


class OrganizationWithStats(Organization):
    stats: OrganizationStats


class InviteMemberRequest(_RequestModel):
    email: str
    role: UserRole = UserRole.readonly
    message: Optional[str] = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: UserRole) -> UserRole:
        if v == UserRole.owner:
            raise ValueError("Owners cannot be invited; promote an existing member")
        return v


class UpdateMemberRoleRequest(_RequestModel):
    role: UserRole


class OrganizationMemberResponse(OrganizationMember):
    user: Optional[User] = None
