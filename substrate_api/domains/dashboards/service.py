"""
Role-aware dashboard summaries.

Every figure is derived from the project's stats and its activity log, so
summaries always agree with what the rest of the API reports.
"""

import logging
from typing import List, Optional

from substrate_api.core.entities import Project, ProjectActivity, ProjectMember
from substrate_api.core.enums import ActivityType, DashboardView, Permission, Severity
from substrate_api.core.store import ResourceStore
from substrate_api.domains.dashboards.models import (
    ArchitectSummary,
    ComplianceStatus,
    DashboardWidget,
    DriftStatus,
    ExecutiveSummary,
    Finding,
    FindingCounts,
    KeyMetric,
    OverallHealth,
    ProjectDashboard,
    SecuritySummary,
    SystemHealth,
    WidgetPosition,
)
from substrate_api.shared.permissions import has_all_permissions, has_permission

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10
TOP_FINDINGS_LIMIT = 5

FINDING_TYPES = (ActivityType.POLICY_VIOLATION_DETECTED, ActivityType.DRIFT_DETECTED)
RESOLUTION_TYPES = (ActivityType.POLICY_VIOLATION_RESOLVED, ActivityType.DRIFT_RESOLVED)

WIDGETS = [
    DashboardWidget(
        id="health-score",
        type="metric",
        title="Health Score",
        required_permissions=[Permission.INSIGHTS_READ],
        default_position=WidgetPosition(x=0, y=0, w=3, h=2),
    ),
    DashboardWidget(
        id="key-metrics",
        type="metrics",
        title="Key Metrics",
        required_permissions=[Permission.INSIGHTS_EXECUTIVE],
        default_position=WidgetPosition(x=3, y=0, w=9, h=2),
    ),
    DashboardWidget(
        id="dependency-graph",
        type="graph",
        title="Dependency Graph",
        required_permissions=[Permission.GRAPH_READ, Permission.GRAPH_EXPLORE],
        default_position=WidgetPosition(x=0, y=2, w=8, h=6),
    ),
    DashboardWidget(
        id="policy-violations",
        type="list",
        title="Policy Violations",
        required_permissions=[Permission.POLICY_READ],
        default_position=WidgetPosition(x=8, y=2, w=4, h=3),
    ),
    DashboardWidget(
        id="drift-alerts",
        type="list",
        title="Drift Alerts",
        required_permissions=[Permission.DRIFT_READ],
        default_position=WidgetPosition(x=8, y=5, w=4, h=3),
    ),
    DashboardWidget(
        id="connector-status",
        type="status",
        title="Connector Status",
        required_permissions=[Permission.CONNECTOR_READ],
        default_position=WidgetPosition(x=0, y=8, w=6, h=2),
    ),
    DashboardWidget(
        id="recent-activity",
        type="feed",
        title="Recent Activity",
        required_permissions=[Permission.PROJECT_READ],
        default_position=WidgetPosition(x=6, y=8, w=6, h=2),
    ),
]


def _finding(entry: ProjectActivity) -> Finding:
    metadata = entry.metadata or {}
    title = metadata.get("title") or (
        entry.target.name if entry.target else entry.type.value
    )
    return Finding(
        id=entry.id,
        title=title,
        type=entry.type.value,
        severity=entry.severity,
        detected_at=entry.created_at,
        location=metadata.get("location"),
    )


class DashboardService:
    def __init__(self, store: ResourceStore):
        self.store = store

    def recent_activity(
        self, project_id: str, limit: Optional[int] = None
    ) -> List[ProjectActivity]:
        entries = self.store.activity.list(project_id=project_id)
        newest_first = sorted(reversed(entries), key=lambda a: a.created_at, reverse=True)
        return newest_first[:limit] if limit else newest_first

    def _count(self, project_id: str, *types: ActivityType) -> int:
        entries = self.store.activity.list(
            project_id=project_id, predicate=lambda a: a.type in types
        )
        return len(entries)

    def _findings(self, project_id: str) -> List[Finding]:
        return [
            _finding(entry)
            for entry in self.recent_activity(project_id)
            if entry.type in FINDING_TYPES
        ]

    def _trend(self, project_id: str) -> str:
        detected = self._count(project_id, *FINDING_TYPES)
        resolved = self._count(project_id, *RESOLUTION_TYPES)
        if resolved > detected:
            return "improving"
        if detected > resolved:
            return "degrading"
        return "stable"

    def executive_summary(self, project: Project) -> ExecutiveSummary:
        stats = project.stats
        policy_change = self._count(project.id, ActivityType.POLICY_CREATED) - self._count(
            project.id, ActivityType.POLICY_DELETED
        )
        violation_change = self._count(
            project.id, ActivityType.POLICY_VIOLATION_DETECTED
        ) - self._count(project.id, ActivityType.POLICY_VIOLATION_RESOLVED)

        return ExecutiveSummary(
            overall_health=OverallHealth(
                score=stats.health_score,
                trend=self._trend(project.id),
                summary=(
                    f"{stats.policies_count} policies enforced across "
                    f"{stats.total_nodes} components with "
                    f"{stats.active_violations} open violations"
                ),
            ),
            key_metrics=[
                KeyMetric(label="Components", value=stats.total_nodes),
                KeyMetric(label="Dependencies", value=stats.total_edges),
                KeyMetric(
                    label="Active Policies",
                    value=stats.policies_count,
                    change=policy_change,
                    trend=_direction(policy_change),
                ),
                KeyMetric(
                    label="Open Violations",
                    value=stats.active_violations,
                    change=violation_change,
                    trend=_direction(violation_change),
                ),
            ],
            critical_issues=[
                finding
                for finding in self._findings(project.id)
                if finding.severity == Severity.critical
            ][:TOP_FINDINGS_LIMIT],
            compliance_status=ComplianceStatus(
                overall=max(0, 100 - 2 * stats.active_violations),
                open_violations=stats.active_violations,
                policies_enforced=stats.policies_count,
                last_audited=stats.last_sync_at,
            ),
        )

    def architect_summary(self, project: Project) -> ArchitectSummary:
        stats = project.stats
        detected = self._count(project.id, ActivityType.DRIFT_DETECTED)
        resolved = self._count(project.id, ActivityType.DRIFT_RESOLVED)
        return ArchitectSummary(
            system_health=SystemHealth(
                components=stats.total_nodes,
                dependencies=stats.total_edges,
                dependencies_per_component=(
                    round(stats.total_edges / stats.total_nodes, 2)
                    if stats.total_nodes
                    else 0.0
                ),
                health_score=stats.health_score,
            ),
            top_violations=[
                finding
                for finding in self._findings(project.id)
                if finding.type == ActivityType.POLICY_VIOLATION_DETECTED.value
            ][:TOP_FINDINGS_LIMIT],
            drift=DriftStatus(
                detected=detected, resolved=resolved, open=max(0, detected - resolved)
            ),
            policies_count=stats.policies_count,
        )

    def security_summary(self, project: Project) -> SecuritySummary:
        stats = project.stats
        findings = self._findings(project.id)
        counts = FindingCounts(
            critical=sum(1 for f in findings if f.severity == Severity.critical),
            warning=sum(1 for f in findings if f.severity == Severity.warning),
            info=sum(1 for f in findings if f.severity == Severity.info),
        )
        score = 100 - 15 * counts.critical - 5 * counts.warning - 2 * stats.active_violations
        return SecuritySummary(
            security_score=min(100, max(0, score)),
            findings=counts,
            open_violations=stats.active_violations,
            policies_count=stats.policies_count,
            recent_findings=findings[:TOP_FINDINGS_LIMIT],
        )

    def widgets_for(self, member: ProjectMember) -> List[DashboardWidget]:
        return [
            widget
            for widget in WIDGETS
            if has_all_permissions(member, widget.required_permissions)
        ]

    def project_dashboard(
        self, project: Project, member: ProjectMember, view: DashboardView
    ) -> ProjectDashboard:
        """
        Assemble the dashboard for one member.

        Each summary is included only when the member may see it: the
        executive summary needs insights:executive, the architect and
        security summaries need insights:technical.
        """
        technical = has_permission(member, Permission.INSIGHTS_TECHNICAL)
        return ProjectDashboard(
            project=project,
            view=view,
            executive=(
                self.executive_summary(project)
                if has_permission(member, Permission.INSIGHTS_EXECUTIVE)
                else None
            ),
            architect=self.architect_summary(project) if technical else None,
            security=self.security_summary(project) if technical else None,
            recent_activity=self.recent_activity(project.id, RECENT_ACTIVITY_LIMIT),
            widgets=self.widgets_for(member),
        )


def _direction(change: int) -> str:
    if change > 0:
        return "up"
    if change < 0:
        return "down"
    return "neutral"
