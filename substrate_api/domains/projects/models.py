# substrate_api/domains/projects/models.py
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from substrate_api.core.entities import (
    Project,
    ProjectInvitation,
    ProjectMember,
    User,
)
from substrate_api.core.enums import (
    Permission,
    ProjectStatus,
    ProjectVisibility,
    UserRole,
)


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AlertThresholdsUpdate(_RequestModel):
    critical_violations: Optional[int] = Field(default=None, ge=0)
    high_violations: Optional[int] = Field(default=None, ge=0)
    drift_percentage: Optional[int] = Field(default=None, ge=0, le=100)


class ProjectSettingsUpdate(_RequestModel):
    visibility: Optional[ProjectVisibility] = None
    default_branch: Optional[str] = None
    auto_sync_enabled: Optional[bool] = None
    sync_interval_minutes: Optional[int] = Field(default=None, ge=1)
    alert_thresholds: Optional[AlertThresholdsUpdate] = None


class ProjectCreate(_RequestModel):
    organization_id: str
    name: str = Field(min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    settings: Optional[ProjectSettingsUpdate] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Project name cannot be blank")
        return v.strip()


class ProjectUpdate(_RequestModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    settings: Optional[ProjectSettingsUpdate] = None
    expected_revision: Optional[int] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[ProjectStatus]) -> Optional[ProjectStatus]:
        if v == ProjectStatus.archived:
            raise ValueError("Use the archive endpoint to archive a project")
        return v


class TransferProjectRequest(_RequestModel):
    organization_id: str


class AddProjectMemberRequest(_RequestModel):
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: UserRole = UserRole.readonly
    custom_permissions: List[Permission] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_target(self) -> "AddProjectMemberRequest":
        if not self.user_id and not self.email:
            raise ValueError("Either userId or email is required")
        return self


class UpdateProjectMemberRequest(_RequestModel):
    role: Optional[UserRole] = None
    custom_permissions: Optional[List[Permission]] = None
    expected_revision: Optional[int] = None


class CreateInvitationRequest(_RequestModel):
    email: str
    role: UserRole = UserRole.readonly
    message: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        local, _, domain = v.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        return v


class ProjectMemberResponse(ProjectMember):
    user: Optional[User] = None


class ProjectWithRole(Project):
    """A project as listed for one user, with that user's role on it."""

    role: UserRole


class InvitationResponse(ProjectInvitation):
    project_name: Optional[str] = None
