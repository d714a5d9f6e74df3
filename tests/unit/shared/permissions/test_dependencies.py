"""
Tests for the shared authorization guards.
"""

import pytest

from substrate_api.core.context import RequestContext
from substrate_api.core.entities import OrganizationMember, ProjectMember, User
from substrate_api.core.enums import UserRole
from substrate_api.core.settings import Settings
from substrate_api.domains.auth.sessions import SessionRegistry
from substrate_api.shared.exceptions import (
    ForbiddenError,
    InsufficientPermissionsError,
    NotFoundError,
    UnauthorizedError,
)
from substrate_api.shared.permissions import (
    Permission,
    require_organization_member,
    require_organization_permission,
    require_organization_role,
    require_principal,
    require_project_permission,
)


class TestRequireProjectPermission:
    """Test the project permission guard."""

    @pytest.fixture
    def sessions(self) -> SessionRegistry:
        return SessionRegistry()

    @pytest.fixture
    def ctx(self, store, sessions, test_settings: Settings) -> RequestContext:
        return RequestContext(
            store=store,
            sessions=sessions,
            settings=test_settings,
            method="GET",
            path="/",
        )

    @pytest.fixture
    def readonly_user(self, store, sample_organization, sample_project) -> User:
        user = store.users.insert(User(email="viewer@example.com", name="Viewer"))
        store.organization_members.insert(
            OrganizationMember(
                user_id=user.id,
                organization_id=sample_organization.id,
                role=UserRole.readonly,
            )
        )
        store.project_members.insert(
            ProjectMember(
                user_id=user.id, project_id=sample_project.id, role=UserRole.readonly
            )
        )
        return user

    def test_requires_a_principal(self, ctx, sample_project):
        with pytest.raises(UnauthorizedError):
            require_principal(ctx)
        with pytest.raises(UnauthorizedError):
            require_project_permission(ctx, sample_project.id, Permission.PROJECT_READ)

    def test_owner_success(self, ctx, sessions, sample_user, sample_project):
        sessions.open(sample_user.id)

        access = require_project_permission(
            ctx, sample_project.id, Permission.PROJECT_DELETE
        )

        assert access.user.id == sample_user.id
        assert access.project.id == sample_project.id
        assert access.member.role == UserRole.owner

    def test_missing_permission_is_forbidden(
        self, ctx, sessions, readonly_user, sample_project
    ):
        sessions.open(readonly_user.id)

        with pytest.raises(InsufficientPermissionsError) as exc_info:
            require_project_permission(ctx, sample_project.id, Permission.PROJECT_WRITE)

        assert isinstance(exc_info.value, ForbiddenError)
        assert exc_info.value.status_code == 403
        assert "project:write" in exc_info.value.message

    def test_non_member_sees_not_found(self, ctx, sessions, store, sample_project):
        outsider = store.users.insert(User(email="out@example.com", name="Outsider"))
        sessions.open(outsider.id)

        with pytest.raises(NotFoundError) as exc_info:
            require_project_permission(ctx, sample_project.id, Permission.PROJECT_READ)

        assert exc_info.value.message == f"Project not found: {sample_project.id}"

    def test_unknown_project_matches_non_member(self, ctx, sessions, sample_user):
        sessions.open(sample_user.id)

        with pytest.raises(NotFoundError) as exc_info:
            require_project_permission(ctx, "proj-404", Permission.PROJECT_READ)

        assert exc_info.value.message == "Project not found: proj-404"

    def test_membership_only_check(self, ctx, sessions, readonly_user, sample_project):
        sessions.open(readonly_user.id)
        access = require_project_permission(ctx, sample_project.id)
        assert access.member.role == UserRole.readonly


class TestRequireOrganizationAccess:
    """Test the organization guards."""

    @pytest.fixture
    def ctx(self, store, test_settings: Settings) -> RequestContext:
        return RequestContext(
            store=store,
            sessions=SessionRegistry(),
            settings=test_settings,
            method="GET",
            path="/",
        )

    def test_member_success(self, ctx, sample_user, sample_organization):
        ctx.sessions.open(sample_user.id)
        access = require_organization_member(ctx, sample_organization.id)
        assert access.organization.id == sample_organization.id
        assert access.member.role == UserRole.owner

    def test_non_member_not_found(self, ctx, store, sample_organization):
        outsider = store.users.insert(User(email="out@example.com", name="Outsider"))
        ctx.sessions.open(outsider.id)
        with pytest.raises(NotFoundError):
            require_organization_member(ctx, sample_organization.id)

    def test_role_and_permission(self, ctx, store, sample_organization):
        viewer = store.users.insert(User(email="viewer@example.com", name="Viewer"))
        store.organization_members.insert(
            OrganizationMember(
                user_id=viewer.id,
                organization_id=sample_organization.id,
                role=UserRole.readonly,
            )
        )
        ctx.sessions.open(viewer.id)

        with pytest.raises(InsufficientPermissionsError):
            require_organization_role(ctx, sample_organization.id, UserRole.admin)
        with pytest.raises(InsufficientPermissionsError):
            require_organization_permission(
                ctx, sample_organization.id, Permission.USER_MANAGE
            )
        access = require_organization_permission(
            ctx, sample_organization.id, Permission.PROJECT_READ
        )
        assert access.user.id == viewer.id
