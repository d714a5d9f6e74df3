"""
Entity definitions for the in-memory resource store.

Attributes are snake_case; serialized output uses camelCase aliases so the
dashboard receives the same JSON shape it always has.
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from substrate_api.shared.permissions.services import effective_permissions
from substrate_api.shared.utils import utcnow

from .enums import (
    ActivityType,
    ConnectorStatus,
    DashboardView,
    EmailDigest,
    InvitationStatus,
    NotificationFrequency,
    Permission,
    Plan,
    ProjectStatus,
    ProjectVisibility,
    Severity,
    SyncJobStatus,
    SyncTrigger,
    TeamRole,
    Theme,
    UserRole,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class Entity(CamelModel):
    """Base for every stored record. Identity and timestamps are store-owned."""

    # Fields naming the owning parent; a plain replace may never change them.
    parent_fields: ClassVar[Tuple[str, ...]] = ()

    id: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    revision: int = 0


# Users
class NotificationPreferences(CamelModel):
    drift_alerts: NotificationFrequency = NotificationFrequency.digest
    policy_violations: NotificationFrequency = NotificationFrequency.digest
    connector_sync: bool = True
    email_digest: EmailDigest = EmailDigest.weekly


class UserPreferences(CamelModel):
    theme: Theme = Theme.dark
    default_view: DashboardView = DashboardView.engineer
    notifications: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )


class User(Entity):
    email: str
    name: str
    avatar: Optional[str] = None
    preferences: UserPreferences = Field(default_factory=UserPreferences)


class WorkspaceContext(Entity):
    """Per-user workspace selection the dashboard restores across sessions."""

    parent_fields: ClassVar[Tuple[str, ...]] = ("user_id",)

    user_id: str
    current_organization_id: Optional[str] = None
    current_project_id: Optional[str] = None
    dashboard_view: DashboardView = DashboardView.engineer


# Organizations
class OrganizationSettings(CamelModel):
    allow_public_projects: bool = False
    require_approval_for_connectors: bool = False
    default_project_role: UserRole = UserRole.owner
    sso_enabled: bool = False
    audit_log_retention_days: int = 30


class OrganizationLimits(CamelModel):
    max_projects: int = 3
    max_users: int = 1
    max_connectors_per_project: int = 3
    storage_gb: int = Field(default=10, alias="storageGB")


class Organization(Entity):
    name: str
    slug: str
    description: Optional[str] = None
    avatar: Optional[str] = None
    plan: Plan = Plan.free
    settings: OrganizationSettings = Field(default_factory=OrganizationSettings)
    limits: OrganizationLimits = Field(default_factory=OrganizationLimits)


class OrganizationMember(Entity):
    parent_fields: ClassVar[Tuple[str, ...]] = ("organization_id", "user_id")

    user_id: str
    organization_id: str
    role: UserRole
    joined_at: datetime = Field(default_factory=utcnow)
    invited_by: Optional[str] = None


# Projects
class AlertThresholds(CamelModel):
    critical_violations: int = 1
    high_violations: int = 5
    drift_percentage: int = 10


class ProjectSettings(CamelModel):
    visibility: ProjectVisibility = ProjectVisibility.private
    default_branch: str = "main"
    auto_sync_enabled: bool = True
    sync_interval_minutes: int = 60
    alert_thresholds: AlertThresholds = Field(default_factory=AlertThresholds)


class ProjectStats(CamelModel):
    total_nodes: int = 0
    total_edges: int = 0
    policies_count: int = 0
    active_violations: int = 0
    last_sync_at: Optional[datetime] = None
    health_score: int = 100


class Project(Entity):
    parent_fields: ClassVar[Tuple[str, ...]] = ("organization_id",)

    organization_id: str
    name: str
    slug: str
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.setup
    settings: ProjectSettings = Field(default_factory=ProjectSettings)
    stats: ProjectStats = Field(default_factory=ProjectStats)


class ProjectMember(Entity):
    parent_fields: ClassVar[Tuple[str, ...]] = ("project_id", "user_id")

    user_id: str
    project_id: str
    role: UserRole
    custom_permissions: List[Permission] = Field(default_factory=list)
    joined_at: datetime = Field(default_factory=utcnow)
    invited_by: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def permissions(self) -> List[Permission]:
        granted = effective_permissions(self.role, self.custom_permissions)
        return sorted(granted, key=lambda p: p.value)


class ProjectInvitation(Entity):
    parent_fields: ClassVar[Tuple[str, ...]] = ("project_id", "organization_id")

    project_id: str
    organization_id: str
    email: str
    role: UserRole
    invited_by: str
    status: InvitationStatus = InvitationStatus.pending
    expires_at: datetime
    message: Optional[str] = None


class ActivityActor(CamelModel):
    user_id: str
    name: str
    avatar: Optional[str] = None


class ActivityTarget(CamelModel):
    type: str
    id: str
    name: str


class ProjectActivity(Entity):
    parent_fields: ClassVar[Tuple[str, ...]] = ("project_id", "organization_id")

    project_id: str
    organization_id: str
    type: ActivityType
    actor: ActivityActor
    target: Optional[ActivityTarget] = None
    metadata: Optional[Dict[str, Any]] = None
    severity: Severity = Severity.info


# Teams
class Team(Entity):
    parent_fields: ClassVar[Tuple[str, ...]] = ("organization_id",)

    organization_id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    lead_id: Optional[str] = None


class TeamMember(Entity):
    parent_fields: ClassVar[Tuple[str, ...]] = ("team_id", "user_id")

    team_id: str
    user_id: str
    role: TeamRole = TeamRole.member
    joined_at: datetime = Field(default_factory=utcnow)


# Connectors
class SyncConfig(CamelModel):
    enabled: bool = True
    interval_minutes: int = 60
    realtime_enabled: bool = False
    webhook_configured: bool = False
    entity_types: List[str] = Field(default_factory=list)


class ConnectorStats(CamelModel):
    entities_total: int = 0
    entities_by_type: Dict[str, int] = Field(default_factory=dict)
    relationships_total: int = 0
    sync_attempts: int = 0
    sync_failures: int = 0
    last_sync_duration: int = 0
    avg_sync_duration: int = 0


class InstalledConnector(Entity):
    parent_fields: ClassVar[Tuple[str, ...]] = ("project_id",)

    project_id: str
    definition_id: str
    name: str
    config: Dict[str, Any] = Field(default_factory=dict)
    status: ConnectorStatus = ConnectorStatus.installed
    status_message: Optional[str] = None
    sync_config: SyncConfig = Field(default_factory=SyncConfig)
    stats: ConnectorStats = Field(default_factory=ConnectorStats)
    installed_by: str
    last_synced_at: Optional[datetime] = None
    last_sync_job_id: Optional[str] = None


class SyncProgress(CamelModel):
    phase: str = "queued"
    percent: int = 0
    entities_processed: int = 0
    entities_total: int = 0


class SyncResults(CamelModel):
    entities_created: int = 0
    entities_updated: int = 0
    entities_deleted: int = 0
    relationships_created: int = 0
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class SyncJob(Entity):
    parent_fields: ClassVar[Tuple[str, ...]] = ("connector_id", "project_id")

    connector_id: Optional[str] = None
    project_id: Optional[str] = None
    type: str = "reality"
    status: SyncJobStatus = SyncJobStatus.pending
    trigger: SyncTrigger = SyncTrigger.manual
    triggered_by: Optional[str] = None
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    progress: SyncProgress = Field(default_factory=SyncProgress)
    results: Optional[SyncResults] = None
    error: Optional[str] = None
