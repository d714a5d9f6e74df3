"""
Tests for role-aware dashboard summaries.

Figures come from the demo Payment Platform project: 247 components,
892 dependencies, 12 policies, 3 open violations, one critical drift and
one policy violation warning in its activity log.
"""

import pytest

from substrate_api.core.enums import ActivityType, Severity, UserRole
from substrate_api.domains.dashboards.service import DashboardService
from tests.helpers.request_testing import RequestTestHelper


class TestSummaries:
    @pytest.mark.asyncio
    async def test_executive_summary(self, as_security):
        result = await RequestTestHelper.expect_ok(
            as_security, "GET", "/dashboard/proj-1/executive"
        )

        summary = result.data
        assert summary["overallHealth"]["score"] == 87
        assert summary["overallHealth"]["trend"] == "degrading"
        assert summary["complianceStatus"]["overall"] == 94
        assert summary["complianceStatus"]["openViolations"] == 3
        assert [issue["id"] for issue in summary["criticalIssues"]] == ["act-5"]

        metrics = {m["label"]: m for m in summary["keyMetrics"]}
        assert metrics["Components"]["value"] == 247
        assert metrics["Open Violations"]["trend"] == "up"

    @pytest.mark.asyncio
    async def test_architect_summary(self, as_engineer):
        result = await RequestTestHelper.expect_ok(
            as_engineer, "GET", "/dashboard/proj-1/architect"
        )

        summary = result.data
        assert summary["systemHealth"]["dependenciesPerComponent"] == 3.61
        assert summary["drift"] == {"detected": 1, "resolved": 0, "open": 1}
        assert [v["id"] for v in summary["topViolations"]] == ["act-2"]
        assert summary["policiesCount"] == 12

    @pytest.mark.asyncio
    async def test_security_summary(self, as_security):
        result = await RequestTestHelper.expect_ok(
            as_security, "GET", "/dashboard/proj-1/security"
        )

        summary = result.data
        assert summary["findings"] == {"critical": 1, "warning": 1, "info": 0}
        assert summary["securityScore"] == 74
        assert [f["id"] for f in summary["recentFindings"]] == ["act-2", "act-5"]

    @pytest.mark.asyncio
    async def test_summaries_are_mirrored_under_projects(self, as_security):
        dashboard = await RequestTestHelper.expect_ok(
            as_security, "GET", "/dashboard/proj-1/security"
        )
        project = await RequestTestHelper.expect_ok(
            as_security, "GET", "/projects/proj-1/security"
        )
        assert dashboard.data == project.data

    @pytest.mark.asyncio
    async def test_engineer_cannot_see_executive_summary(self, as_engineer):
        failure = await RequestTestHelper.expect_failure(
            as_engineer, "GET", "/dashboard/proj-1/executive", 403, "FORBIDDEN"
        )
        assert "insights:executive" in failure.message

    @pytest.mark.asyncio
    async def test_resolution_improves_trend(self, as_owner):
        store = as_owner.store
        project = store.projects.get("proj-1")
        for _ in range(3):
            store.record_activity(project, ActivityType.DRIFT_RESOLVED)

        result = await RequestTestHelper.expect_ok(
            as_owner, "GET", "/dashboard/proj-1/executive"
        )
        assert result.data["overallHealth"]["trend"] == "improving"

    def test_project_without_components(self, demo_backend):
        project = demo_backend.store.projects.get("proj-3")

        summary = DashboardService(demo_backend.store).architect_summary(project)

        assert summary.system_health.dependencies_per_component == 0.0
        assert summary.drift.open == 0

    def test_security_score_is_clamped(self, demo_backend):
        store = demo_backend.store
        project = store.projects.get("proj-2")
        for _ in range(8):
            store.record_activity(
                project, ActivityType.DRIFT_DETECTED, severity=Severity.critical
            )

        summary = DashboardService(store).security_summary(project)

        assert summary.security_score == 0


class TestProjectDashboard:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "user_id,widget_count,has_executive,has_technical",
        [
            ("user-1", 7, True, True),
            ("user-2", 6, False, True),
            ("user-3", 7, True, True),
        ],
    )
    async def test_contents_follow_permissions(
        self, demo_backend, user_id, widget_count, has_executive, has_technical
    ):
        demo_backend.sessions.open(user_id)

        result = await RequestTestHelper.expect_ok(demo_backend, "GET", "/dashboard/proj-1")

        dashboard = result.data
        assert len(dashboard["widgets"]) == widget_count
        assert (dashboard["executive"] is not None) is has_executive
        assert (dashboard["architect"] is not None) is has_technical
        assert (dashboard["security"] is not None) is has_technical
        assert dashboard["recentActivity"][0]["id"] == "act-1"

    def test_readonly_widgets(self, demo_backend, member_factory):
        member = member_factory(UserRole.readonly)

        widgets = DashboardService(demo_backend.store).widgets_for(member)

        assert [w.id for w in widgets] == [
            "health-score",
            "policy-violations",
            "drift-alerts",
            "connector-status",
            "recent-activity",
        ]

    def test_custom_permission_unlocks_widget(self, demo_backend, member_factory):
        member = member_factory(UserRole.readonly, ["graph:explore"])

        widgets = DashboardService(demo_backend.store).widgets_for(member)

        assert "dependency-graph" in [w.id for w in widgets]

    @pytest.mark.asyncio
    async def test_outsider_gets_not_found(self, as_outsider):
        await RequestTestHelper.expect_failure(
            as_outsider, "GET", "/dashboard/proj-1", 404
        )

    @pytest.mark.asyncio
    async def test_view_defaults_to_engineer(self, as_owner):
        result = await RequestTestHelper.expect_ok(as_owner, "GET", "/dashboard/proj-1")
        assert result.data["view"] == "engineer"


class TestDashboardView:
    @pytest.mark.asyncio
    async def test_save_view(self, as_owner):
        result = await RequestTestHelper.expect_ok(
            as_owner, "PATCH", "/dashboard/proj-2/view", body={"view": "executive"}
        )

        assert result.data["dashboardView"] == "executive"
        assert result.data["currentProjectId"] == "proj-2"
        assert result.data["currentOrganizationId"] == "org-1"

        dashboard = await RequestTestHelper.expect_ok(
            as_owner, "GET", "/dashboard/proj-2"
        )
        assert dashboard.data["view"] == "executive"

    @pytest.mark.asyncio
    async def test_unknown_view(self, as_owner):
        await RequestTestHelper.expect_failure(
            as_owner,
            "PATCH",
            "/dashboard/proj-1/view",
            422,
            "VALIDATION_ERROR",
            body={"view": "marketing"},
        )
