# substrate_api/domains/auth/models.py
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from substrate_api.core.entities import Organization, User
from substrate_api.core.enums import DashboardView, Plan, UserRole

from .types import TokenPair


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    local, _, domain = value.partition("@")
    if not local or "." not in domain:
        raise ValueError("Invalid email address")
    return value


class RegisterRequest(_RequestModel):
    email: str
    password: str = Field(min_length=1)
    name: str = Field(min_length=1)
    organization_name: Optional[str] = None
    device: Optional[str] = None
    browser: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("organization_name")
    @classmethod
    def validate_organization_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Organization name cannot be blank")
        return v


class LoginRequest(_RequestModel):
    email: str
    password: str
    device: Optional[str] = None
    browser: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class RefreshRequest(_RequestModel):
    refresh_token: str


class ForgotPasswordRequest(_RequestModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class ResetPasswordRequest(_RequestModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=1)


class VerifyEmailRequest(_RequestModel):
    token: str = Field(min_length=1)


class AuthResponse(_RequestModel):
    user: User
    tokens: TokenPair
    organization: Optional[Organization] = None


class OrganizationMembership(_RequestModel):
    id: str
    name: str
    role: UserRole


class SessionState(_RequestModel):
    user_id: str
    user_email: str
    user_display_name: Optional[str]
    organization_id: Optional[str]
    organization_name: Optional[str]
    role: Optional[UserRole]
    plan: Optional[Plan]
    current_project_id: Optional[str] = None
    dashboard_view: DashboardView = DashboardView.engineer
    organizations: List[OrganizationMembership]
