"""
Tests for the connector marketplace and installed connectors.
"""

import pytest

from substrate_api.domains.connectors.catalog import get_definition, search_definitions
from substrate_api.domains.connectors.service import ConnectorService
from tests.helpers.request_testing import RequestTestHelper

GITHUB_INSTALL = {
    "projectId": "proj-2",
    "definitionId": "github",
    "credentials": {"token": "ghp_example"},
    "config": {"organizations": ["acme-corp"]},
}


class TestMarketplace:
    @pytest.mark.asyncio
    async def test_list_catalog(self, as_engineer):
        result = await RequestTestHelper.expect_ok(
            as_engineer, "GET", "/connectors/marketplace"
        )

        assert [d["id"] for d in result.data] == [
            "github",
            "jira",
            "confluence",
            "slack",
            "sonarqube",
        ]
        assert result.meta["total"] == 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params,expected",
        [
            ({"category": "vcs"}, ["github"]),
            ({"search": "JIRA"}, ["jira"]),
            ({"search": "popular"}, ["github", "jira"]),
            ({"category": "docs", "search": "slack"}, []),
        ],
    )
    async def test_filters(self, as_engineer, params, expected):
        result = await RequestTestHelper.expect_ok(
            as_engineer, "GET", "/connectors/marketplace", params=params
        )
        assert [d["id"] for d in result.data] == expected

    @pytest.mark.asyncio
    async def test_categories(self, as_engineer):
        result = await RequestTestHelper.expect_ok(
            as_engineer, "GET", "/connectors/marketplace/categories"
        )
        assert [c["id"] for c in result.data] == ["vcs", "its", "docs", "comm", "security"]

    @pytest.mark.asyncio
    async def test_definition(self, as_engineer):
        result = await RequestTestHelper.expect_ok(
            as_engineer, "GET", "/connectors/marketplace/github"
        )

        assert result.data["sync"]["minIntervalMinutes"] == 5
        assert result.data["sync"]["defaultIntervalMinutes"] == 15
        assert result.data["auth"]["requiredFields"] == ["token"]

    @pytest.mark.asyncio
    async def test_unknown_definition(self, as_engineer):
        await RequestTestHelper.expect_failure(
            as_engineer, "GET", "/connectors/marketplace/gitlab", 404
        )

    @pytest.mark.asyncio
    async def test_requires_login(self, demo_backend):
        await RequestTestHelper.expect_failure(
            demo_backend, "GET", "/connectors/marketplace", 401
        )

    def test_entity_types_come_from_entity_capabilities(self):
        assert get_definition("github").entity_types == [
            "Repository",
            "PullRequest",
            "Issue",
            "Commit",
            "Branch",
        ]
        assert get_definition("sonarqube").entity_types == []

    def test_search_returns_a_copy(self):
        results = search_definitions()
        results.clear()
        assert len(search_definitions()) == 5


class TestInstall:
    @pytest.mark.asyncio
    async def test_install(self, as_owner):
        result = await RequestTestHelper.expect_ok(
            as_owner, "POST", "/connectors", body=GITHUB_INSTALL, status_code=201
        )

        connector = result.data
        assert connector["projectId"] == "proj-2"
        assert connector["name"] == "GitHub"
        assert connector["status"] == "installed"
        assert connector["installedBy"] == "user-1"
        assert connector["syncConfig"]["intervalMinutes"] == 15
        assert connector["syncConfig"]["realtimeEnabled"] is True
        assert "Repository" in connector["syncConfig"]["entityTypes"]
        assert connector["definition"]["id"] == "github"
        assert "credentials" not in connector

        installed = as_owner.store.activity.list(
            project_id="proj-2", type="connector.installed"
        )
        assert installed[-1].metadata == {"definitionId": "github"}

    @pytest.mark.asyncio
    async def test_missing_credentials(self, as_owner):
        failure = await RequestTestHelper.expect_failure(
            as_owner,
            "POST",
            "/connectors",
            422,
            "VALIDATION_ERROR",
            body={**GITHUB_INSTALL, "credentials": {}},
        )
        assert failure.details == {"missing": ["token"]}

    @pytest.mark.asyncio
    async def test_partial_credentials(self, as_owner):
        failure = await RequestTestHelper.expect_failure(
            as_owner,
            "POST",
            "/connectors",
            422,
            body={
                "projectId": "proj-2",
                "definitionId": "jira",
                "credentials": {"baseUrl": "https://acme.atlassian.net", "email": "x@y.io"},
            },
        )
        assert failure.details == {"missing": ["apiToken"]}

    @pytest.mark.asyncio
    async def test_interval_below_minimum(self, as_owner):
        failure = await RequestTestHelper.expect_failure(
            as_owner,
            "POST",
            "/connectors",
            422,
            body={**GITHUB_INSTALL, "syncConfig": {"intervalMinutes": 2}},
        )
        assert failure.message == "Sync interval must be between 5 and 1440 minutes"

    @pytest.mark.asyncio
    async def test_realtime_disabled_without_support(self, as_owner):
        result = await RequestTestHelper.expect_ok(
            as_owner,
            "POST",
            "/connectors",
            body={
                "projectId": "proj-2",
                "definitionId": "confluence",
                "credentials": {
                    "baseUrl": "https://acme.atlassian.net",
                    "email": "x@y.io",
                    "apiToken": "t",
                },
                "syncConfig": {"realtimeEnabled": True},
            },
            status_code=201,
        )
        assert result.data["syncConfig"]["realtimeEnabled"] is False
        assert result.data["syncConfig"]["intervalMinutes"] == 60

    @pytest.mark.asyncio
    async def test_connector_limit(self, as_owner):
        # org-2 is on the free plan: three connectors per project
        for _ in range(3):
            await RequestTestHelper.expect_ok(
                as_owner,
                "POST",
                "/connectors",
                body={**GITHUB_INSTALL, "projectId": "proj-4"},
                status_code=201,
            )

        failure = await RequestTestHelper.expect_failure(
            as_owner,
            "POST",
            "/connectors",
            409,
            "CONFLICT",
            body={**GITHUB_INSTALL, "projectId": "proj-4"},
        )
        assert failure.details == {"maxConnectorsPerProject": 3}
        assert as_owner.store.connectors.count(project_id="proj-4") == 3

    @pytest.mark.asyncio
    async def test_unknown_definition(self, as_owner):
        await RequestTestHelper.expect_failure(
            as_owner,
            "POST",
            "/connectors",
            404,
            body={**GITHUB_INSTALL, "definitionId": "gitlab"},
        )

    @pytest.mark.asyncio
    async def test_engineer_cannot_install(self, as_engineer):
        await RequestTestHelper.expect_failure(
            as_engineer,
            "POST",
            "/connectors",
            403,
            body={**GITHUB_INSTALL, "projectId": "proj-1"},
        )


class TestInstalledConnectors:
    @pytest.mark.asyncio
    async def test_list(self, as_owner):
        result = await RequestTestHelper.expect_ok(as_owner, "GET", "/connectors")

        assert [c["id"] for c in result.data] == ["conn-1", "conn-2", "conn-3"]
        assert result.data[0]["definition"]["name"] == "GitHub"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params,expected",
        [
            ({"definitionId": "jira"}, ["conn-2"]),
            ({"status": "error"}, ["conn-3"]),
            ({"projectId": "proj-2"}, []),
        ],
    )
    async def test_filters(self, as_owner, params, expected):
        result = await RequestTestHelper.expect_ok(
            as_owner, "GET", "/connectors", params=params
        )
        assert [c["id"] for c in result.data] == expected

    @pytest.mark.asyncio
    async def test_outsider(self, as_outsider):
        result = await RequestTestHelper.expect_ok(as_outsider, "GET", "/connectors")
        assert result.data == []

        failure = await RequestTestHelper.expect_failure(
            as_outsider, "GET", "/connectors/conn-1", 404
        )
        assert failure.message == "Connector not found: conn-1"

    @pytest.mark.asyncio
    async def test_get(self, as_engineer):
        result = await RequestTestHelper.expect_ok(as_engineer, "GET", "/connectors/conn-1")

        assert result.data["stats"]["entitiesTotal"] == 247
        assert result.data["syncConfig"]["realtimeEnabled"] is True

    @pytest.mark.asyncio
    async def test_update_merges_sync_config(self, as_engineer):
        result = await RequestTestHelper.expect_ok(
            as_engineer,
            "PATCH",
            "/connectors/conn-2",
            body={"syncConfig": {"intervalMinutes": 60}},
        )

        sync_config = result.data["syncConfig"]
        assert sync_config["intervalMinutes"] == 60
        assert sync_config["webhookConfigured"] is True
        assert sync_config["entityTypes"] == ["Ticket", "Epic", "Sprint"]
        configured = as_engineer.store.activity.list(
            project_id="proj-1", type="connector.configured"
        )
        assert configured[-1].target.id == "conn-2"

    @pytest.mark.asyncio
    async def test_update_rejects_interval(self, as_engineer):
        await RequestTestHelper.expect_failure(
            as_engineer,
            "PATCH",
            "/connectors/conn-1",
            422,
            body={"syncConfig": {"intervalMinutes": 2}},
        )

    @pytest.mark.asyncio
    async def test_security_cannot_configure(self, as_security):
        await RequestTestHelper.expect_failure(
            as_security, "PATCH", "/connectors/conn-1", 403, body={"name": "Mine"}
        )

    @pytest.mark.asyncio
    async def test_remove(self, as_owner):
        await RequestTestHelper.expect_ok(as_owner, "DELETE", "/connectors/conn-2")

        assert as_owner.store.connectors.get("conn-2") is None
        removed = as_owner.store.activity.list(
            project_id="proj-1", type="connector.removed"
        )
        assert removed[-1].severity.value == "warning"

    @pytest.mark.asyncio
    async def test_engineer_cannot_remove(self, as_engineer):
        await RequestTestHelper.expect_failure(
            as_engineer, "DELETE", "/connectors/conn-2", 403
        )


class TestHealth:
    @pytest.mark.asyncio
    async def test_error_connector_is_unhealthy(self, as_engineer):
        result = await RequestTestHelper.expect_ok(
            as_engineer, "GET", "/connectors/conn-3/health"
        )

        assert result.data["status"] == "unhealthy"
        auth_check = result.data["checks"][0]
        assert auth_check["status"] == "fail"
        assert auth_check["message"] == (
            "Connection timeout - unable to reach SonarQube server"
        )

    @pytest.mark.asyncio
    async def test_healthy_connector(self, as_engineer):
        result = await RequestTestHelper.expect_ok(
            as_engineer, "GET", "/connectors/conn-1/health"
        )

        assert result.data["status"] == "healthy"
        assert result.data["checks"][1]["responseTimeMs"] == 150

    def test_frequent_failures_degrade(self, demo_backend):
        store = demo_backend.store
        connector = store.connectors.merge(
            "conn-2", {"stats": {"sync_attempts": 100, "sync_failures": 11}}
        )

        health = ConnectorService(store, demo_backend.settings).health(connector)

        assert health.status == "degraded"
