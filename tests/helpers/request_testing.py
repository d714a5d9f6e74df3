"""
Helper utilities for standardized request testing across domains.
"""

from typing import Any, Dict, Optional

from substrate_api.core.dispatcher import ApiFailure, ApiResponse, Dispatcher


class RequestTestHelper:
    """
    Helper class for standardized dispatcher testing patterns.

    Every request goes through ``Dispatcher.request`` so tests exercise
    routing, guards, validation and serialization together.
    """

    @staticmethod
    async def expect_ok(
        backend: Dispatcher,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        status_code: int = 200,
    ) -> ApiResponse:
        """
        Send a request and assert it succeeded with the given status.

        Returns:
            The successful response
        """
        result = await backend.request(method, path, body=body, params=params)
        assert isinstance(result, ApiResponse), (
            f"{method} {path} failed: {result.status_code} {result.code} {result.message}"
        )
        assert result.status_code == status_code
        return result

    @staticmethod
    async def expect_failure(
        backend: Dispatcher,
        method: str,
        path: str,
        status_code: int,
        code: Optional[str] = None,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> ApiFailure:
        """
        Send a request and assert it failed with the given status and code.

        Returns:
            The failure, for further assertions on message and details
        """
        result = await backend.request(method, path, body=body, params=params)
        assert isinstance(result, ApiFailure), f"{method} {path} unexpectedly succeeded"
        assert result.ok is False
        assert result.status_code == status_code, result.message
        if code is not None:
            assert result.code == code
        return result

    @staticmethod
    async def register(
        backend: Dispatcher,
        email: str,
        name: str,
        organization_name: Optional[str] = None,
    ) -> ApiResponse:
        """Register a user; the new user becomes the active principal."""
        body: Dict[str, Any] = {"email": email, "password": "secret", "name": name}
        if organization_name:
            body["organizationName"] = organization_name
        return await RequestTestHelper.expect_ok(
            backend, "POST", "/auth/register", body=body, status_code=201
        )
