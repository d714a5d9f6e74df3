# substrate_api/domains/users/models.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from substrate_api.core.enums import (
    DashboardView,
    EmailDigest,
    NotificationFrequency,
    Theme,
)


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserUpdate(_RequestModel):
    name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    expected_revision: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Name cannot be blank")
        return v.strip() if v else v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().lower()
        local, _, domain = v.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        return v


class ChangePasswordRequest(_RequestModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)

    @model_validator(mode="after")
    def validate_new_password(self) -> "ChangePasswordRequest":
        if self.new_password == self.current_password:
            raise ValueError("New password must differ from the current password")
        return self


class NotificationPreferencesUpdate(_RequestModel):
    drift_alerts: Optional[NotificationFrequency] = None
    policy_violations: Optional[NotificationFrequency] = None
    connector_sync: Optional[bool] = None
    email_digest: Optional[EmailDigest] = None


class PreferencesUpdate(_RequestModel):
    theme: Optional[Theme] = None
    default_view: Optional[DashboardView] = None
    notifications: Optional[NotificationPreferencesUpdate] = None


class WorkspaceContextUpdate(_RequestModel):
    """Selection the dashboard restores across sessions; nulls clear a field."""

    current_organization_id: Optional[str] = None
    current_project_id: Optional[str] = None
    dashboard_view: Optional[DashboardView] = None
