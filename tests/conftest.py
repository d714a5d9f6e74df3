"""
Global pytest configuration and fixtures for the Substrate API test suite.
"""

import os

import pytest

from substrate_api.core.settings import Settings

# Import fixtures from fixture modules
from tests.fixtures.backend_fixtures import *  # noqa: F403, F401
from tests.fixtures.store_fixtures import *  # noqa: F403, F401

# Set test environment variables
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only-32-chars"


@pytest.fixture
def test_jwt_secret() -> str:
    """JWT secret for generating test tokens."""
    return "test-secret-key-for-testing-only-32-chars"


@pytest.fixture
def test_settings(test_jwt_secret: str) -> Settings:
    """Settings for an empty backend with fast, deterministic defaults."""
    return Settings(
        JWT_SECRET=test_jwt_secret,
        SEED_DEMO_DATA=False,
        SYNC_JOB_DURATION_SECONDS=30,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def demo_settings(test_settings: Settings) -> Settings:
    """Settings for a backend loaded with the demo tenant."""
    return test_settings.model_copy(update={"SEED_DEMO_DATA": True})


# Standard identities from the demo tenant
@pytest.fixture
def owner_id() -> str:
    """John Doe: owner of both demo organizations and every demo project."""
    return "user-1"


@pytest.fixture
def engineer_id() -> str:
    """Maria Garcia: org-1 admin, engineer on proj-1."""
    return "user-2"


@pytest.fixture
def security_id() -> str:
    """Sam Okafor: org-1 readonly, security on proj-1."""
    return "user-3"


@pytest.fixture
def outsider_id() -> str:
    """Jane Smith: no memberships, one pending invitation to proj-1."""
    return "user-4"
