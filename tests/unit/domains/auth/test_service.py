"""
Tests for registration, login, logout and token refresh.
"""

import jwt
import pytest

from substrate_api.core.enums import UserRole
from substrate_api.domains.auth.tokens import decode_session_token, issue_token_pair
from substrate_api.shared.exceptions import InvalidTokenError
from tests.helpers.request_testing import RequestTestHelper


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_with_organization(self, backend):
        result = await RequestTestHelper.register(
            backend, "Alice@X.com", "Alice", organization_name="Acme"
        )

        user = result.data["user"]
        organization = result.data["organization"]
        assert user["email"] == "alice@x.com"
        assert organization["slug"] == "acme"
        assert organization["plan"] == "free"
        assert organization["limits"]["maxProjects"] == 3
        assert result.data["tokens"]["tokenType"] == "Bearer"

        # The new user is the active principal and owns the organization
        assert backend.sessions.current_user_id == user["id"]
        member = backend.store.organization_members.find_one(user_id=user["id"])
        assert member.role == UserRole.owner
        assert member.organization_id == organization["id"]

    @pytest.mark.asyncio
    async def test_register_without_organization(self, backend):
        result = await RequestTestHelper.register(backend, "bob@x.com", "Bob")

        assert result.data["organization"] is None
        assert len(backend.store.organizations) == 0

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, backend):
        await RequestTestHelper.register(backend, "alice@x.com", "Alice", "Acme")

        failure = await RequestTestHelper.expect_failure(
            backend,
            "POST",
            "/auth/register",
            409,
            "CONFLICT",
            body={"email": "ALICE@x.com", "password": "pw", "name": "Other"},
        )

        assert "alice@x.com" in failure.message
        assert len(backend.store.users) == 1

    @pytest.mark.asyncio
    async def test_organization_slug_conflict_leaves_nothing_behind(self, backend):
        await RequestTestHelper.register(backend, "alice@x.com", "Alice", "Acme")

        await RequestTestHelper.expect_failure(
            backend,
            "POST",
            "/auth/register",
            409,
            body={
                "email": "carol@x.com",
                "password": "pw",
                "name": "Carol",
                "organizationName": "acme",
            },
        )

        assert backend.store.users.find_one(email="carol@x.com") is None
        assert len(backend.store.organizations) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"password": "pw", "name": "No Email"},
            {"email": "not-an-email", "password": "pw", "name": "Bad"},
            {"email": "ok@x.com", "password": "", "name": "Empty"},
        ],
    )
    async def test_invalid_body(self, backend, body):
        failure = await RequestTestHelper.expect_failure(
            backend, "POST", "/auth/register", 422, "VALIDATION_ERROR", body=body
        )
        assert failure.details


class TestLoginLogout:
    @pytest.mark.asyncio
    async def test_login_opens_a_session(self, demo_backend):
        result = await RequestTestHelper.expect_ok(
            demo_backend,
            "POST",
            "/auth/login",
            body={"email": "john.doe@acme-corp.com", "password": "anything"},
        )

        assert result.data["user"]["id"] == "user-1"
        assert demo_backend.sessions.current_user_id == "user-1"

    @pytest.mark.asyncio
    async def test_unknown_email(self, demo_backend):
        failure = await RequestTestHelper.expect_failure(
            demo_backend,
            "POST",
            "/auth/login",
            401,
            "UNAUTHORIZED",
            body={"email": "nobody@acme-corp.com", "password": "pw"},
        )
        assert failure.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_logout_is_idempotent(self, as_owner):
        await RequestTestHelper.expect_ok(as_owner, "POST", "/auth/logout")
        assert as_owner.sessions.current_user_id is None

        result = await RequestTestHelper.expect_ok(as_owner, "POST", "/auth/logout")
        assert result.data is None

        await RequestTestHelper.expect_failure(
            as_owner, "GET", "/users/me", 401, "UNAUTHORIZED"
        )


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_returns_new_access_token(self, demo_backend):
        login = await RequestTestHelper.expect_ok(
            demo_backend,
            "POST",
            "/auth/login",
            body={"email": "john.doe@acme-corp.com", "password": "pw"},
        )

        result = await RequestTestHelper.expect_ok(
            demo_backend,
            "POST",
            "/auth/refresh",
            body={"refreshToken": login.data["tokens"]["refreshToken"]},
        )

        assert set(result.data) == {"accessToken", "expiresIn", "tokenType"}
        payload = decode_session_token(
            demo_backend.settings, result.data["accessToken"], "access"
        )
        assert payload.sub == "user-1"

    @pytest.mark.asyncio
    async def test_refresh_after_logout_fails(self, demo_backend):
        login = await RequestTestHelper.expect_ok(
            demo_backend,
            "POST",
            "/auth/login",
            body={"email": "john.doe@acme-corp.com", "password": "pw"},
        )
        await RequestTestHelper.expect_ok(demo_backend, "POST", "/auth/logout")

        await RequestTestHelper.expect_failure(
            demo_backend,
            "POST",
            "/auth/refresh",
            401,
            body={"refreshToken": login.data["tokens"]["refreshToken"]},
        )

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, demo_backend):
        login = await RequestTestHelper.expect_ok(
            demo_backend,
            "POST",
            "/auth/login",
            body={"email": "john.doe@acme-corp.com", "password": "pw"},
        )

        await RequestTestHelper.expect_failure(
            demo_backend,
            "POST",
            "/auth/refresh",
            401,
            body={"refreshToken": login.data["tokens"]["accessToken"]},
        )


class TestTokens:
    def test_token_pair_round_trip(self, test_settings):
        pair = issue_token_pair(test_settings, "user-1", "session-abc")

        access = decode_session_token(test_settings, pair.access_token, "access")
        refresh = decode_session_token(test_settings, pair.refresh_token, "refresh")

        assert access.sid == refresh.sid == "session-abc"
        assert pair.expires_in == test_settings.ACCESS_TOKEN_TTL_SECONDS

    def test_wrong_secret_is_rejected(self, test_settings):
        token = jwt.encode(
            {"sub": "user-1", "sid": "s", "typ": "access"},
            "another-secret-key-that-is-long-enough",
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            decode_session_token(test_settings, token)

    def test_expired_token_is_rejected(self, test_settings):
        token = jwt.encode(
            {"sub": "user-1", "sid": "s", "typ": "access", "exp": 1},
            test_settings.JWT_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            decode_session_token(test_settings, token)


class TestAccountHelpers:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path,body",
        [
            ("/auth/forgot-password", {"email": "john.doe@acme-corp.com"}),
            ("/auth/reset-password", {"token": "t", "password": "new"}),
            ("/auth/verify-email", {"token": "t"}),
        ],
    )
    async def test_acknowledged_without_data(self, backend, path, body):
        result = await RequestTestHelper.expect_ok(backend, "POST", path, body=body)
        assert result.data is None

    @pytest.mark.asyncio
    async def test_forgot_password_validates_email(self, backend):
        await RequestTestHelper.expect_failure(
            backend, "POST", "/auth/forgot-password", 422, body={"email": "nope"}
        )
