"""
Tests for the current user's account: profile, preferences, workspace
context, device sessions and invitations.
"""

from datetime import timedelta

import pytest

from substrate_api.core.enums import InvitationStatus, UserRole
from substrate_api.shared.utils import utcnow
from tests.helpers.request_testing import RequestTestHelper


class TestProfile:
    @pytest.mark.asyncio
    async def test_get_profile(self, as_owner):
        result = await RequestTestHelper.expect_ok(as_owner, "GET", "/users/me")

        assert result.data["id"] == "user-1"
        assert result.data["email"] == "john.doe@acme-corp.com"

    @pytest.mark.asyncio
    async def test_update_profile(self, as_owner):
        result = await RequestTestHelper.expect_ok(
            as_owner,
            "PATCH",
            "/users/me",
            body={"name": "  Johnny Doe ", "email": "Johnny@Acme-Corp.com"},
        )

        assert result.data["name"] == "Johnny Doe"
        assert result.data["email"] == "johnny@acme-corp.com"
        assert result.data["revision"] == 2

    @pytest.mark.asyncio
    async def test_email_in_use(self, as_owner):
        failure = await RequestTestHelper.expect_failure(
            as_owner,
            "PATCH",
            "/users/me",
            409,
            "CONFLICT",
            body={"email": "maria.garcia@acme-corp.com"},
        )
        assert "maria.garcia@acme-corp.com" in failure.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"name": " "}, {"email": "no-at-sign"}])
    async def test_invalid_profile(self, as_owner, body):
        await RequestTestHelper.expect_failure(
            as_owner, "PATCH", "/users/me", 422, "VALIDATION_ERROR", body=body
        )

    @pytest.mark.asyncio
    async def test_change_password(self, as_owner):
        result = await RequestTestHelper.expect_ok(
            as_owner,
            "PUT",
            "/users/me/password",
            body={"currentPassword": "old-secret", "newPassword": "new-secret-1"},
        )
        assert result.data is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"currentPassword": "old-secret", "newPassword": "short"},
            {"currentPassword": "same-secret", "newPassword": "same-secret"},
            {"newPassword": "new-secret-1"},
        ],
    )
    async def test_invalid_password_change(self, as_owner, body):
        await RequestTestHelper.expect_failure(
            as_owner, "PUT", "/users/me/password", 422, body=body
        )

    @pytest.mark.asyncio
    async def test_requires_login(self, demo_backend):
        await RequestTestHelper.expect_failure(
            demo_backend, "GET", "/users/me", 401, "UNAUTHORIZED"
        )


class TestPreferences:
    @pytest.mark.asyncio
    async def test_get_preferences(self, as_owner):
        result = await RequestTestHelper.expect_ok(
            as_owner, "GET", "/users/me/preferences"
        )

        assert result.data["theme"] == "dark"
        assert result.data["notifications"]["driftAlerts"] == "immediate"

    @pytest.mark.asyncio
    async def test_nested_update_is_merged(self, as_owner):
        result = await RequestTestHelper.expect_ok(
            as_owner,
            "PUT",
            "/users/me/preferences",
            body={"theme": "light", "notifications": {"emailDigest": "daily"}},
        )

        assert result.data["theme"] == "light"
        assert result.data["defaultView"] == "engineer"
        assert result.data["notifications"] == {
            "driftAlerts": "immediate",
            "policyViolations": "digest",
            "connectorSync": True,
            "emailDigest": "daily",
        }
        assert as_owner.store.users.get("user-1").preferences.theme.value == "light"

    @pytest.mark.asyncio
    async def test_unknown_theme(self, as_owner):
        await RequestTestHelper.expect_failure(
            as_owner, "PUT", "/users/me/preferences", 422, body={"theme": "neon"}
        )


class TestWorkspaceContext:
    @pytest.mark.asyncio
    async def test_default_context(self, as_owner):
        result = await RequestTestHelper.expect_ok(as_owner, "GET", "/users/me/context")

        assert result.data["userId"] == "user-1"
        assert result.data["currentOrganizationId"] is None
        assert result.data["dashboardView"] == "engineer"

    @pytest.mark.asyncio
    async def test_selecting_project_selects_its_organization(self, as_owner):
        result = await RequestTestHelper.expect_ok(
            as_owner, "PUT", "/users/me/context", body={"currentProjectId": "proj-4"}
        )

        assert result.data["currentProjectId"] == "proj-4"
        assert result.data["currentOrganizationId"] == "org-2"

    @pytest.mark.asyncio
    async def test_project_outside_organization(self, as_owner):
        await RequestTestHelper.expect_failure(
            as_owner,
            "PUT",
            "/users/me/context",
            422,
            body={"currentOrganizationId": "org-2", "currentProjectId": "proj-1"},
        )

    @pytest.mark.asyncio
    async def test_project_without_membership(self, as_engineer):
        await RequestTestHelper.expect_failure(
            as_engineer,
            "PUT",
            "/users/me/context",
            404,
            body={"currentProjectId": "proj-2"},
        )

    @pytest.mark.asyncio
    async def test_organization_without_membership(self, as_engineer):
        await RequestTestHelper.expect_failure(
            as_engineer,
            "PUT",
            "/users/me/context",
            404,
            body={"currentOrganizationId": "org-2"},
        )

    @pytest.mark.asyncio
    async def test_context_survives_logout(self, as_owner):
        await RequestTestHelper.expect_ok(
            as_owner, "PUT", "/users/me/context", body={"dashboardView": "architect"}
        )
        await RequestTestHelper.expect_ok(as_owner, "POST", "/auth/logout")
        as_owner.sessions.open("user-1")

        result = await RequestTestHelper.expect_ok(as_owner, "GET", "/users/me/context")
        assert result.data["dashboardView"] == "architect"


class TestDeviceSessions:
    @pytest.mark.asyncio
    async def test_list_sessions(self, as_owner):
        result = await RequestTestHelper.expect_ok(as_owner, "GET", "/users/me/sessions")

        assert len(result.data) == 1
        session = result.data[0]
        assert session["device"] == "MacBook Pro"
        assert session["browser"] == "Chrome"
        assert session["isCurrent"] is True

    @pytest.mark.asyncio
    async def test_revoke_other_device(self, as_owner):
        other = as_owner.sessions.open("user-1", "iPhone", "Safari")
        current = as_owner.sessions.open("user-1")

        await RequestTestHelper.expect_ok(
            as_owner, "DELETE", f"/users/me/sessions/{other.id}"
        )

        listed = await RequestTestHelper.expect_ok(as_owner, "GET", "/users/me/sessions")
        ids = [s["id"] for s in listed.data]
        assert other.id not in ids
        assert current.id in ids
        assert as_owner.sessions.current_user_id == "user-1"

    @pytest.mark.asyncio
    async def test_cannot_revoke_another_users_session(self, demo_backend):
        marias = demo_backend.sessions.open("user-2")
        demo_backend.sessions.open("user-1")

        await RequestTestHelper.expect_failure(
            demo_backend, "DELETE", f"/users/me/sessions/{marias.id}", 403
        )
        assert demo_backend.sessions.get(marias.id) is not None

    @pytest.mark.asyncio
    async def test_unknown_session(self, as_owner):
        await RequestTestHelper.expect_failure(
            as_owner, "DELETE", "/users/me/sessions/session-missing", 404
        )


class TestMemberships:
    @pytest.mark.asyncio
    async def test_my_organizations(self, as_engineer):
        result = await RequestTestHelper.expect_ok(
            as_engineer, "GET", "/users/me/organizations"
        )
        assert [org["id"] for org in result.data] == ["org-1"]

    @pytest.mark.asyncio
    async def test_my_projects(self, as_security):
        result = await RequestTestHelper.expect_ok(
            as_security, "GET", "/users/me/projects"
        )
        assert [(p["id"], p["role"]) for p in result.data] == [("proj-1", "security")]

    @pytest.mark.asyncio
    async def test_user_without_memberships(self, as_outsider):
        organizations = await RequestTestHelper.expect_ok(
            as_outsider, "GET", "/users/me/organizations"
        )
        projects = await RequestTestHelper.expect_ok(
            as_outsider, "GET", "/users/me/projects"
        )
        assert organizations.data == []
        assert projects.data == []


class TestInvitations:
    @pytest.mark.asyncio
    async def test_list_pending(self, as_outsider):
        result = await RequestTestHelper.expect_ok(
            as_outsider, "GET", "/users/me/invitations"
        )

        assert [inv["id"] for inv in result.data] == ["inv-1"]
        assert result.data[0]["projectName"] == "Payment Platform"
        assert result.data[0]["role"] == "engineer"

    @pytest.mark.asyncio
    async def test_accept(self, as_outsider):
        result = await RequestTestHelper.expect_ok(
            as_outsider, "POST", "/users/me/invitations/inv-1/accept"
        )

        assert result.data["projectId"] == "proj-1"
        assert result.data["role"] == "engineer"
        assert result.data["user"]["name"] == "Jane Smith"

        store = as_outsider.store
        assert store.invitations.get("inv-1").status == InvitationStatus.accepted
        org_member = store.organization_members.find_one(
            organization_id="org-1", user_id="user-4"
        )
        assert org_member.role == UserRole.readonly

        listed = await RequestTestHelper.expect_ok(
            as_outsider, "GET", "/users/me/invitations"
        )
        assert listed.data == []

        project = await RequestTestHelper.expect_ok(
            as_outsider, "GET", "/projects/proj-1"
        )
        assert project.data["id"] == "proj-1"

    @pytest.mark.asyncio
    async def test_accept_twice(self, as_outsider):
        await RequestTestHelper.expect_ok(
            as_outsider, "POST", "/users/me/invitations/inv-1/accept"
        )
        failure = await RequestTestHelper.expect_failure(
            as_outsider, "POST", "/users/me/invitations/inv-1/accept", 409
        )
        assert failure.message == "Invitation inv-1 is already accepted"

    @pytest.mark.asyncio
    async def test_decline(self, as_outsider):
        result = await RequestTestHelper.expect_ok(
            as_outsider, "POST", "/users/me/invitations/inv-1/decline"
        )

        assert result.data["status"] == "declined"
        assert as_outsider.store.project_members.count(user_id="user-4") == 0

        await RequestTestHelper.expect_failure(
            as_outsider, "POST", "/users/me/invitations/inv-1/accept", 409
        )

    @pytest.mark.asyncio
    async def test_expired(self, as_outsider):
        as_outsider.store.invitations.merge(
            "inv-1", {"expires_at": utcnow() - timedelta(minutes=1)}
        )

        failure = await RequestTestHelper.expect_failure(
            as_outsider, "POST", "/users/me/invitations/inv-1/accept", 409
        )
        assert failure.message == "Invitation has expired: inv-1"

    @pytest.mark.asyncio
    async def test_invitation_addressed_to_someone_else(self, as_owner):
        await RequestTestHelper.expect_failure(
            as_owner, "POST", "/users/me/invitations/inv-1/accept", 404
        )
