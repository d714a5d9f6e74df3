# substrate_api/domains/dashboards/models.py
from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from substrate_api.core.entities import CamelModel, Project, ProjectActivity
from substrate_api.core.enums import DashboardView, Permission, Severity

Trend = Literal["improving", "stable", "degrading"]


class OverallHealth(CamelModel):
    score: int
    trend: Trend
    summary: str


class KeyMetric(CamelModel):
    label: str
    value: Union[int, str]
    change: Optional[int] = None
    trend: Literal["up", "down", "neutral"] = "neutral"


class Finding(CamelModel):
    """A detected violation or drift, taken from the activity log."""

    id: str
    title: str
    type: str
    severity: Severity
    detected_at: datetime
    location: Optional[str] = None


class ComplianceStatus(CamelModel):
    overall: int
    open_violations: int
    policies_enforced: int
    last_audited: Optional[datetime] = None


class ExecutiveSummary(CamelModel):
    overall_health: OverallHealth
    key_metrics: List[KeyMetric]
    critical_issues: List[Finding]
    compliance_status: ComplianceStatus


class SystemHealth(CamelModel):
    components: int
    dependencies: int
    dependencies_per_component: float
    health_score: int


class DriftStatus(CamelModel):
    detected: int
    resolved: int
    open: int


class ArchitectSummary(CamelModel):
    system_health: SystemHealth
    top_violations: List[Finding]
    drift: DriftStatus
    policies_count: int


class FindingCounts(CamelModel):
    critical: int = 0
    warning: int = 0
    info: int = 0


class SecuritySummary(CamelModel):
    security_score: int
    findings: FindingCounts
    open_violations: int
    policies_count: int
    recent_findings: List[Finding]


class WidgetPosition(CamelModel):
    x: int
    y: int
    w: int
    h: int


class DashboardWidget(CamelModel):
    id: str
    type: str
    title: str
    description: Optional[str] = None
    required_permissions: List[Permission] = Field(default_factory=list)
    default_position: WidgetPosition


class ProjectDashboard(CamelModel):
    project: Project
    view: DashboardView
    executive: Optional[ExecutiveSummary] = None
    architect: Optional[ArchitectSummary] = None
    security: Optional[SecuritySummary] = None
    recent_activity: List[ProjectActivity]
    widgets: List[DashboardWidget]


class UpdateDashboardViewRequest(BaseModel):
    view: DashboardView

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
