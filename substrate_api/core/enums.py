from enum import Enum

from substrate_api.shared.permissions.models import Permission, UserRole

__all__ = [
    "ActivityType",
    "ConnectorStatus",
    "DashboardView",
    "EmailDigest",
    "InvitationStatus",
    "NotificationFrequency",
    "Permission",
    "Plan",
    "ProjectStatus",
    "ProjectVisibility",
    "Severity",
    "SyncJobStatus",
    "SyncTrigger",
    "TeamRole",
    "Theme",
    "UserRole",
]


class Plan(str, Enum):
    free = "free"
    team = "team"
    enterprise = "enterprise"


class ProjectStatus(str, Enum):
    setup = "setup"
    active = "active"
    archived = "archived"


class ProjectVisibility(str, Enum):
    private = "private"
    organization = "organization"


class InvitationStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    expired = "expired"
    declined = "declined"


class Severity(str, Enum):
    info = "info"
    warning = "warning"
    critical = "critical"


class ActivityType(str, Enum):
    PROJECT_CREATED = "project.created"
    PROJECT_UPDATED = "project.updated"
    PROJECT_ARCHIVED = "project.archived"
    MEMBER_INVITED = "member.invited"
    MEMBER_JOINED = "member.joined"
    MEMBER_ROLE_CHANGED = "member.role_changed"
    MEMBER_REMOVED = "member.removed"
    CONNECTOR_INSTALLED = "connector.installed"
    CONNECTOR_CONFIGURED = "connector.configured"
    CONNECTOR_REMOVED = "connector.removed"
    CONNECTOR_SYNCED = "connector.synced"
    POLICY_CREATED = "policy.created"
    POLICY_UPDATED = "policy.updated"
    POLICY_DELETED = "policy.deleted"
    POLICY_VIOLATION_DETECTED = "policy.violation_detected"
    POLICY_VIOLATION_RESOLVED = "policy.violation_resolved"
    DRIFT_DETECTED = "drift.detected"
    DRIFT_RESOLVED = "drift.resolved"
    GRAPH_SYNCED = "graph.synced"
    INSIGHT_GENERATED = "insight.generated"


class Theme(str, Enum):
    dark = "dark"
    light = "light"
    system = "system"


class DashboardView(str, Enum):
    executive = "executive"
    architect = "architect"
    security = "security"
    engineer = "engineer"
    product = "product"


class NotificationFrequency(str, Enum):
    immediate = "immediate"
    digest = "digest"
    none = "none"


class EmailDigest(str, Enum):
    daily = "daily"
    weekly = "weekly"
    none = "none"


class TeamRole(str, Enum):
    lead = "lead"
    member = "member"


class ConnectorStatus(str, Enum):
    available = "available"
    installing = "installing"
    installed = "installed"
    configuring = "configuring"
    error = "error"
    updating = "updating"
    deprecated = "deprecated"


class SyncJobStatus(str, Enum):
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


class SyncTrigger(str, Enum):
    scheduled = "scheduled"
    manual = "manual"
    webhook = "webhook"
