"""
Demo tenant used by the dashboard in demo mode.

Acme Corporation (enterprise) owns three projects; John Doe also has a
free personal workspace with one project. Identities are fixed so the
dashboard's deep links keep working across restarts.
"""

import logging
from datetime import datetime, timedelta, timezone

from substrate_api.core.entities import (
    ActivityActor,
    ActivityTarget,
    AlertThresholds,
    ConnectorStats,
    InstalledConnector,
    NotificationPreferences,
    Organization,
    OrganizationLimits,
    OrganizationMember,
    OrganizationSettings,
    Project,
    ProjectActivity,
    ProjectInvitation,
    ProjectMember,
    ProjectSettings,
    ProjectStats,
    SyncConfig,
    User,
    UserPreferences,
)
from substrate_api.core.enums import (
    ActivityType,
    ConnectorStatus,
    NotificationFrequency,
    Plan,
    ProjectStatus,
    ProjectVisibility,
    Severity,
    UserRole,
)
from substrate_api.core.store import ResourceStore
from substrate_api.shared.utils import utcnow

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = ActivityActor(user_id="system", name="System")


def _at(iso: str) -> datetime:
    return datetime.fromisoformat(iso).replace(tzinfo=timezone.utc)


def _seed_users(store: ResourceStore) -> None:
    store.users.insert(
        User(
            id="user-1",
            email="john.doe@acme-corp.com",
            name="John Doe",
            created_at=_at("2024-01-15T10:00:00"),
            updated_at=_at("2024-06-01T14:30:00"),
            preferences=UserPreferences(
                notifications=NotificationPreferences(
                    drift_alerts=NotificationFrequency.immediate
                )
            ),
        ),
        stamp=False,
    )
    for user_id, name, email, joined in [
        ("user-2", "Maria Garcia", "maria.garcia@acme-corp.com", "2023-06-15T10:00:00"),
        ("user-3", "Sam Okafor", "sam.okafor@acme-corp.com", "2024-02-15T11:00:00"),
        ("user-4", "Jane Smith", "jane.smith@acme-corp.com", "2024-06-14T09:00:00"),
    ]:
        store.users.insert(
            User(
                id=user_id,
                email=email,
                name=name,
                created_at=_at(joined),
                updated_at=_at(joined),
            ),
            stamp=False,
        )


def _seed_organizations(store: ResourceStore) -> None:
    store.organizations.insert(
        Organization(
            id="org-1",
            name="Acme Corporation",
            slug="acme-corp",
            description="Primary organization for Acme Corporation",
            plan=Plan.enterprise,
            created_at=_at("2023-01-01T00:00:00"),
            updated_at=_at("2024-06-01T00:00:00"),
            settings=OrganizationSettings(
                require_approval_for_connectors=True,
                default_project_role=UserRole.engineer,
                sso_enabled=True,
                audit_log_retention_days=365,
            ),
            limits=OrganizationLimits(
                max_projects=50,
                max_users=100,
                max_connectors_per_project=10,
                storage_gb=500,
            ),
        ),
        stamp=False,
    )
    store.organizations.insert(
        Organization(
            id="org-2",
            name="Personal Workspace",
            slug="personal",
            description="Personal projects and experiments",
            plan=Plan.free,
            created_at=_at("2024-01-15T10:00:00"),
            updated_at=_at("2024-06-01T00:00:00"),
            settings=OrganizationSettings(allow_public_projects=True),
        ),
        stamp=False,
    )

    for member_id, user_id, org_id, role, joined in [
        ("org-member-1", "user-1", "org-1", UserRole.owner, "2023-01-01T00:00:00"),
        ("org-member-2", "user-2", "org-1", UserRole.admin, "2023-06-15T10:00:00"),
        ("org-member-3", "user-1", "org-2", UserRole.owner, "2024-01-15T10:00:00"),
        ("org-member-4", "user-3", "org-1", UserRole.readonly, "2024-02-15T11:00:00"),
    ]:
        store.organization_members.insert(
            OrganizationMember(
                id=member_id,
                user_id=user_id,
                organization_id=org_id,
                role=role,
                joined_at=_at(joined),
                created_at=_at(joined),
                updated_at=_at(joined),
            ),
            stamp=False,
        )


def _seed_projects(store: ResourceStore) -> None:
    projects = [
        Project(
            id="proj-1",
            organization_id="org-1",
            name="Payment Platform",
            slug="payment-platform",
            description="Core payment processing system with PCI compliance",
            status=ProjectStatus.active,
            created_at=_at("2024-01-20T10:00:00"),
            updated_at=_at("2024-06-15T08:30:00"),
            settings=ProjectSettings(sync_interval_minutes=15),
            stats=ProjectStats(
                total_nodes=247,
                total_edges=892,
                policies_count=12,
                active_violations=3,
                last_sync_at=_at("2024-06-15T08:30:00"),
                health_score=87,
            ),
        ),
        Project(
            id="proj-2",
            organization_id="org-1",
            name="Customer Portal",
            slug="customer-portal",
            description="Customer-facing web portal and mobile API",
            status=ProjectStatus.active,
            created_at=_at("2024-02-10T14:00:00"),
            updated_at=_at("2024-06-14T16:45:00"),
            settings=ProjectSettings(
                visibility=ProjectVisibility.organization,
                sync_interval_minutes=30,
                alert_thresholds=AlertThresholds(
                    critical_violations=2, high_violations=10, drift_percentage=15
                ),
            ),
            stats=ProjectStats(
                total_nodes=156,
                total_edges=423,
                policies_count=8,
                active_violations=0,
                last_sync_at=_at("2024-06-14T16:45:00"),
                health_score=94,
            ),
        ),
        Project(
            id="proj-3",
            organization_id="org-1",
            name="Data Pipeline",
            slug="data-pipeline",
            description="ETL pipeline for analytics and reporting",
            status=ProjectStatus.setup,
            created_at=_at("2024-06-10T09:00:00"),
            updated_at=_at("2024-06-10T09:00:00"),
            settings=ProjectSettings(auto_sync_enabled=False),
            stats=ProjectStats(health_score=0),
        ),
        Project(
            id="proj-4",
            organization_id="org-2",
            name="My Side Project",
            slug="side-project",
            description="Personal learning and experimentation",
            status=ProjectStatus.active,
            created_at=_at("2024-03-01T10:00:00"),
            updated_at=_at("2024-06-01T12:00:00"),
            settings=ProjectSettings(
                alert_thresholds=AlertThresholds(
                    critical_violations=5, high_violations=20, drift_percentage=30
                ),
            ),
            stats=ProjectStats(
                total_nodes=42,
                total_edges=89,
                policies_count=3,
                active_violations=1,
                last_sync_at=_at("2024-06-01T12:00:00"),
                health_score=76,
            ),
        ),
    ]
    for project in projects:
        store.projects.insert(project, stamp=False)

    for member_id, user_id, project_id, role, joined, invited_by in [
        ("member-1", "user-1", "proj-1", UserRole.owner, "2024-01-20T10:00:00", None),
        ("member-2", "user-2", "proj-1", UserRole.engineer, "2024-02-01T09:00:00", "user-1"),
        ("member-3", "user-3", "proj-1", UserRole.security, "2024-02-15T11:00:00", "user-1"),
        ("member-4", "user-1", "proj-2", UserRole.owner, "2024-02-10T14:00:00", None),
        ("member-5", "user-1", "proj-3", UserRole.owner, "2024-06-10T09:00:00", None),
        ("member-6", "user-1", "proj-4", UserRole.owner, "2024-03-01T10:00:00", None),
    ]:
        store.project_members.insert(
            ProjectMember(
                id=member_id,
                user_id=user_id,
                project_id=project_id,
                role=role,
                joined_at=_at(joined),
                invited_by=invited_by,
                created_at=_at(joined),
                updated_at=_at(joined),
            ),
            stamp=False,
        )


def _seed_invitations(store: ResourceStore) -> None:
    now = utcnow()
    store.invitations.insert(
        ProjectInvitation(
            id="inv-1",
            project_id="proj-1",
            organization_id="org-1",
            email="jane.smith@acme-corp.com",
            role=UserRole.engineer,
            invited_by="user-1",
            expires_at=now + timedelta(days=5),
            message="Join us on the Payment Platform",
            created_at=now - timedelta(hours=2),
            updated_at=now - timedelta(hours=2),
        ),
        stamp=False,
    )


def _seed_activity(store: ResourceStore) -> None:
    now = utcnow()
    john = ActivityActor(user_id="user-1", name="John Doe")
    entries = [
        (
            "act-6",
            ActivityType.CONNECTOR_INSTALLED,
            john,
            ActivityTarget(type="Connector", id="conn-2", name="Jira"),
            Severity.info,
            None,
            timedelta(days=1),
        ),
        (
            "act-5",
            ActivityType.DRIFT_DETECTED,
            SYSTEM_ACTOR,
            ActivityTarget(type="Service", id="svc-1", name="payment-gateway"),
            Severity.critical,
            None,
            timedelta(hours=6),
        ),
        (
            "act-4",
            ActivityType.GRAPH_SYNCED,
            SYSTEM_ACTOR,
            None,
            Severity.info,
            {"entitiesProcessed": 247, "relationshipsCreated": 892},
            timedelta(hours=4),
        ),
        (
            "act-3",
            ActivityType.MEMBER_INVITED,
            john,
            ActivityTarget(type="User", id="user-4", name="Jane Smith"),
            Severity.info,
            None,
            timedelta(hours=2),
        ),
        (
            "act-2",
            ActivityType.POLICY_VIOLATION_DETECTED,
            SYSTEM_ACTOR,
            ActivityTarget(
                type="Policy", id="policy-1", name="API Authentication Required"
            ),
            Severity.warning,
            {"violationCount": 3},
            timedelta(minutes=30),
        ),
        (
            "act-1",
            ActivityType.CONNECTOR_SYNCED,
            john,
            ActivityTarget(type="Connector", id="conn-1", name="GitHub"),
            Severity.info,
            None,
            timedelta(minutes=5),
        ),
    ]
    # Oldest first so the log stays in append order
    for activity_id, activity_type, actor, target, severity, metadata, age in entries:
        store.activity.insert(
            ProjectActivity(
                id=activity_id,
                project_id="proj-1",
                organization_id="org-1",
                type=activity_type,
                actor=actor,
                target=target,
                severity=severity,
                metadata=metadata,
                created_at=now - age,
                updated_at=now - age,
            ),
            stamp=False,
        )


def _seed_connectors(store: ResourceStore) -> None:
    connectors = [
        InstalledConnector(
            id="conn-1",
            project_id="proj-1",
            definition_id="github",
            name="Acme GitHub",
            config={
                "organizations": ["acme-corp"],
                "repositories": [],
                "includeForks": False,
                "includeArchived": False,
            },
            sync_config=SyncConfig(
                interval_minutes=15,
                realtime_enabled=True,
                webhook_configured=True,
                entity_types=["Repository", "PullRequest", "Issue"],
            ),
            stats=ConnectorStats(
                entities_total=247,
                entities_by_type={"Repository": 12, "PullRequest": 89, "Issue": 146},
                relationships_total=892,
                sync_attempts=342,
                sync_failures=3,
                last_sync_duration=45000,
                avg_sync_duration=42000,
            ),
            installed_by="user-1",
            created_at=_at("2024-01-20T10:00:00"),
            updated_at=_at("2024-06-15T08:30:00"),
            last_synced_at=_at("2024-06-15T08:30:00"),
        ),
        InstalledConnector(
            id="conn-2",
            project_id="proj-1",
            definition_id="jira",
            name="Acme Jira",
            config={
                "projects": ["PAY", "WEB"],
                "issueTypes": ["Story", "Bug", "Task", "Epic"],
            },
            sync_config=SyncConfig(
                interval_minutes=30,
                webhook_configured=True,
                entity_types=["Ticket", "Epic", "Sprint"],
            ),
            stats=ConnectorStats(
                entities_total=523,
                entities_by_type={"Ticket": 412, "Epic": 23, "Sprint": 88},
                relationships_total=289,
                sync_attempts=156,
                last_sync_duration=23000,
                avg_sync_duration=25000,
            ),
            installed_by="user-1",
            created_at=_at("2024-01-25T14:00:00"),
            updated_at=_at("2024-06-14T16:00:00"),
            last_synced_at=_at("2024-06-14T16:00:00"),
        ),
        InstalledConnector(
            id="conn-3",
            project_id="proj-1",
            definition_id="sonarqube",
            name="Acme SonarQube",
            config={
                "projects": ["payment-platform", "customer-portal"],
                "minSeverity": "MAJOR",
            },
            status=ConnectorStatus.error,
            status_message="Connection timeout - unable to reach SonarQube server",
            sync_config=SyncConfig(entity_types=["CodeQuality", "Vulnerability"]),
            installed_by="user-1",
            created_at=_at("2024-02-01T09:00:00"),
            updated_at=_at("2024-06-10T10:00:00"),
            last_synced_at=_at("2024-06-10T10:00:00"),
        ),
    ]
    for connector in connectors:
        store.connectors.insert(connector, stamp=False)


def seed_demo_data(store: ResourceStore) -> None:
    """Load the demo tenant into an empty store."""
    if len(store.users):
        raise ValueError("Demo data can only be loaded into an empty store")

    _seed_users(store)
    _seed_organizations(store)
    _seed_projects(store)
    _seed_invitations(store)
    _seed_activity(store)
    _seed_connectors(store)
    logger.info(
        f"Seeded demo data: {len(store.organizations)} organizations, "
        f"{len(store.projects)} projects, {len(store.users)} users"
    )
