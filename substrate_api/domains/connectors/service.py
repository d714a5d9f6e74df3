import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from substrate_api.core.entities import (
    ActivityTarget,
    InstalledConnector,
    Project,
    SyncConfig,
    SyncJob,
    SyncProgress,
    User,
)
from substrate_api.core.enums import (
    ActivityType,
    ConnectorStatus,
    Permission,
    Severity,
    SyncJobStatus,
    SyncTrigger,
)
from substrate_api.core.settings import Settings
from substrate_api.core.store import ResourceStore, deep_merge
from substrate_api.domains.connectors.catalog import get_definition
from substrate_api.domains.connectors.exceptions import (
    ConnectorDefinitionNotFoundError,
    ConnectorLimitReachedError,
    MissingCredentialsError,
    SyncIntervalError,
)
from substrate_api.domains.connectors.models import (
    ConnectorDefinition,
    ConnectorHealth,
    HealthCheck,
    InstallConnectorRequest,
    InstalledConnectorResponse,
    SyncConfigUpdate,
    UpdateConnectorRequest,
)
from substrate_api.domains.projects.service import select_filters
from substrate_api.shared.permissions import has_permission
from substrate_api.shared.utils import utcnow

logger = logging.getLogger(__name__)

CONNECTOR_FILTERS = {
    "projectId": "project_id",
    "status": "status",
    "definitionId": "definition_id",
}
SYNC_JOB_FILTERS = {
    "projectId": "project_id",
    "connectorId": "connector_id",
    "status": "status",
}
ACTIVE_JOB_STATUSES = (SyncJobStatus.pending, SyncJobStatus.running)
PLACEHOLDER_PERCENT = 45


def connector_target(connector: InstalledConnector) -> ActivityTarget:
    return ActivityTarget(type="connector", id=connector.id, name=connector.name)


def readable_project_ids(
    store: ResourceStore, user_id: str, permission: Permission
) -> List[str]:
    """Projects on which the user's membership grants the permission."""
    return [
        member.project_id
        for member in store.project_members.list(user_id=user_id)
        if has_permission(member, permission)
    ]


class ConnectorService:
    def __init__(self, store: ResourceStore, settings: Settings):
        self.store = store
        self.settings = settings

    def response(self, connector: InstalledConnector) -> InstalledConnectorResponse:
        return InstalledConnectorResponse(
            **connector.model_dump(), definition=get_definition(connector.definition_id)
        )

    def _validated_sync_config(
        self,
        definition: ConnectorDefinition,
        current: SyncConfig,
        update: Optional[SyncConfigUpdate],
    ) -> Dict[str, Any]:
        merged = current.model_dump()
        if update is not None:
            merged = deep_merge(merged, update.model_dump(exclude_unset=True))
        interval = merged["interval_minutes"]
        limits = definition.sync
        if not limits.min_interval_minutes <= interval <= limits.max_interval_minutes:
            raise SyncIntervalError(
                limits.min_interval_minutes, limits.max_interval_minutes
            )
        if merged["realtime_enabled"] and not limits.supports_realtime:
            merged["realtime_enabled"] = False
        return merged

    async def list_connectors(
        self, user_id: str, params: Mapping[str, Any]
    ) -> List[InstalledConnectorResponse]:
        """
        List installed connectors on projects where the user holds
        connector:read. Accepts projectId, status and definitionId filters.
        """
        project_ids = set(
            readable_project_ids(self.store, user_id, Permission.CONNECTOR_READ)
        )
        connectors = self.store.connectors.list(
            filters=select_filters(params, CONNECTOR_FILTERS),
            predicate=lambda c: c.project_id in project_ids,
        )
        return [self.response(connector) for connector in connectors]

    async def install_connector(
        self, project: Project, data: InstallConnectorRequest, actor: User
    ) -> InstalledConnectorResponse:
        """
        Install a marketplace connector on a project.

        Credentials are checked for completeness and are not stored.

        Raises:
            ConnectorDefinitionNotFoundError: If the definition is unknown
            ConnectorLimitReachedError: If the plan's per-project limit is reached
            MissingCredentialsError: If required credential fields are absent
            SyncIntervalError: If the sync interval is out of range
        """
        definition = get_definition(data.definition_id)
        if definition is None:
            raise ConnectorDefinitionNotFoundError(data.definition_id)

        organization = self.store.organizations.get_or_raise(project.organization_id)
        limit = organization.limits.max_connectors_per_project
        if self.store.connectors.count(project_id=project.id) >= limit:
            raise ConnectorLimitReachedError(limit)

        missing = [
            field for field in definition.auth.required_fields
            if not data.credentials.get(field)
        ]
        if definition.auth.required and missing:
            raise MissingCredentialsError(missing)

        defaults = SyncConfig(
            interval_minutes=definition.sync.default_interval_minutes,
            realtime_enabled=definition.sync.supports_realtime,
            entity_types=definition.entity_types,
        )
        sync_config = self._validated_sync_config(definition, defaults, data.sync_config)

        connector = self.store.connectors.insert(
            InstalledConnector(
                project_id=project.id,
                definition_id=definition.id,
                name=data.name or definition.name,
                config=data.config,
                status=ConnectorStatus.installed,
                sync_config=SyncConfig.model_validate(sync_config),
                installed_by=actor.id,
            )
        )
        self.store.record_activity(
            project,
            ActivityType.CONNECTOR_INSTALLED,
            actor=actor,
            target=connector_target(connector),
            metadata={"definitionId": definition.id},
        )
        logger.info(
            f"Connector {connector.id} ({definition.id}) installed on project {project.id}"
        )
        return self.response(connector)

    async def update_connector(
        self,
        connector: InstalledConnector,
        project: Project,
        data: UpdateConnectorRequest,
        actor: User,
    ) -> InstalledConnectorResponse:
        """Partial update; config and syncConfig are merged into the current values."""
        changes = data.model_dump(
            exclude_unset=True, exclude={"expected_revision", "sync_config"}
        )
        if changes.get("name") is None:
            changes.pop("name", None)
        if changes.get("config") is None:
            changes.pop("config", None)
        if data.sync_config is not None:
            definition = get_definition(connector.definition_id)
            if definition is None:
                raise ConnectorDefinitionNotFoundError(connector.definition_id)
            changes["sync_config"] = self._validated_sync_config(
                definition, connector.sync_config, data.sync_config
            )

        updated = self.store.connectors.merge(
            connector.id, changes, data.expected_revision
        )
        if updated.revision != connector.revision:
            self.store.record_activity(
                project,
                ActivityType.CONNECTOR_CONFIGURED,
                actor=actor,
                target=connector_target(updated),
            )
        return self.response(updated)

    async def remove_connector(
        self, connector: InstalledConnector, project: Project, actor: User
    ) -> None:
        for job in self.store.sync_jobs.list(connector_id=connector.id):
            self.store.sync_jobs.remove(job.id)
        self.store.connectors.remove(connector.id)
        self.store.record_activity(
            project,
            ActivityType.CONNECTOR_REMOVED,
            actor=actor,
            target=connector_target(connector),
            severity=Severity.warning,
        )
        logger.info(f"Connector {connector.id} removed from project {project.id}")

    def health(self, connector: InstalledConnector) -> ConnectorHealth:
        """Health derived from the connector's status and sync history."""
        failing = connector.status == ConnectorStatus.error
        stats = connector.stats
        if failing:
            status = "unhealthy"
        elif stats.sync_failures and stats.sync_failures * 10 > stats.sync_attempts:
            status = "degraded"
        else:
            status = "healthy"

        return ConnectorHealth(
            connector_id=connector.id,
            status=status,
            last_check_at=utcnow(),
            checks=[
                HealthCheck(
                    name="Authentication",
                    status="fail" if failing else "pass",
                    message=connector.status_message,
                ),
                HealthCheck(
                    name="API Connectivity",
                    status="fail" if failing else "pass",
                    response_time_ms=None if failing else 150,
                ),
            ],
        )


class SyncService:
    """
    Sync jobs are entities that advance with elapsed time.

    A job starts pending, runs while less than SYNC_JOB_DURATION_SECONDS have
    elapsed, then completes (or fails when its connector is in error). Each
    poll advances the stored job; nothing runs in the background.
    """

    def __init__(self, store: ResourceStore, settings: Settings):
        self.store = store
        self.settings = settings

    def _active_job(self, predicate: Callable[[SyncJob], bool]) -> Optional[SyncJob]:
        for job in self.store.sync_jobs.list(predicate=predicate):
            job = self.advance(job)
            if job.status in ACTIVE_JOB_STATUSES:
                return job
        return None

    async def start_connector_sync(
        self,
        connector: InstalledConnector,
        actor: User,
        trigger: SyncTrigger = SyncTrigger.manual,
    ) -> SyncJob:
        """Start a sync, or return the connector's job already in flight."""
        active = self._active_job(lambda j: j.connector_id == connector.id)
        if active is not None:
            return active

        job = self.store.sync_jobs.insert(
            SyncJob(
                connector_id=connector.id,
                project_id=connector.project_id,
                trigger=trigger,
                triggered_by=actor.id,
                progress=SyncProgress(entities_total=connector.stats.entities_total),
            )
        )
        self.store.connectors.merge(connector.id, {"last_sync_job_id": job.id})
        logger.info(f"Sync job {job.id} started for connector {connector.id}")
        return job

    async def start_project_sync(self, project: Project, actor: User) -> SyncJob:
        """Start a project-wide reality sync over all of its connectors."""
        active = self._active_job(
            lambda j: j.project_id == project.id and j.connector_id is None
        )
        if active is not None:
            return active

        total = sum(
            c.stats.entities_total
            for c in self.store.connectors.list(project_id=project.id)
        )
        job = self.store.sync_jobs.insert(
            SyncJob(
                project_id=project.id,
                triggered_by=actor.id,
                progress=SyncProgress(entities_total=total),
            )
        )
        logger.info(f"Sync job {job.id} started for project {project.id}")
        return job

    def placeholder(self, job_id: str) -> SyncJob:
        """In-progress stand-in returned when polling an unknown job."""
        return SyncJob(
            id=job_id,
            status=SyncJobStatus.running,
            progress=SyncProgress(phase="processing", percent=PLACEHOLDER_PERCENT),
        )

    def advance(self, job: SyncJob) -> SyncJob:
        if job.status not in ACTIVE_JOB_STATUSES:
            return job

        now = utcnow()
        duration = self.settings.SYNC_JOB_DURATION_SECONDS
        elapsed = (now - job.started_at).total_seconds()
        if elapsed >= duration:
            return self._finish(job, now)

        percent = min(99, int(elapsed / duration * 100))
        if percent <= 0:
            return job
        total = job.progress.entities_total
        return self.store.sync_jobs.merge(
            job.id,
            {
                "status": SyncJobStatus.running,
                "progress": {
                    "phase": "fetching" if percent < 50 else "processing",
                    "percent": percent,
                    "entities_processed": total * percent // 100,
                },
            },
        )

    def _finish(self, job: SyncJob, now: datetime) -> SyncJob:
        connector = self.store.connectors.get(job.connector_id) if job.connector_id else None
        project = self.store.projects.get(job.project_id) if job.project_id else None
        duration_ms = int((now - job.started_at).total_seconds() * 1000)

        if connector is not None and connector.status == ConnectorStatus.error:
            failed = self.store.sync_jobs.merge(
                job.id,
                {
                    "status": SyncJobStatus.failed,
                    "completed_at": now,
                    "progress": {"phase": "failed"},
                    "error": connector.status_message or "Connector is in an error state",
                },
            )
            self.store.connectors.merge(
                connector.id,
                {
                    "stats": {
                        "sync_attempts": connector.stats.sync_attempts + 1,
                        "sync_failures": connector.stats.sync_failures + 1,
                    }
                },
            )
            if project is not None:
                self.store.record_activity(
                    project,
                    ActivityType.CONNECTOR_SYNCED,
                    target=connector_target(connector),
                    severity=Severity.warning,
                    metadata={"jobId": job.id, "status": SyncJobStatus.failed.value},
                )
            logger.warning(f"Sync job {job.id} failed: {failed.error}")
            return failed

        total = job.progress.entities_total
        completed = self.store.sync_jobs.merge(
            job.id,
            {
                "status": SyncJobStatus.completed,
                "completed_at": now,
                "progress": {
                    "phase": "completed",
                    "percent": 100,
                    "entities_processed": total,
                },
                "results": {"entities_updated": total},
            },
        )

        if connector is not None:
            stats = connector.stats
            attempts = stats.sync_attempts + 1
            self.store.connectors.merge(
                connector.id,
                {
                    "last_synced_at": now,
                    "stats": {
                        "sync_attempts": attempts,
                        "last_sync_duration": duration_ms,
                        "avg_sync_duration": (
                            stats.avg_sync_duration * stats.sync_attempts + duration_ms
                        )
                        // attempts,
                    },
                },
            )
        if project is not None:
            project = self.store.projects.merge(
                project.id, {"stats": {"last_sync_at": now}}
            )
            self.store.record_activity(
                project,
                ActivityType.CONNECTOR_SYNCED if connector else ActivityType.GRAPH_SYNCED,
                target=connector_target(connector) if connector else None,
                metadata={"jobId": job.id, "entitiesProcessed": total},
            )
        logger.info(f"Sync job {job.id} completed")
        return completed

    async def list_jobs(
        self, project_ids: List[str], params: Mapping[str, Any]
    ) -> List[SyncJob]:
        visible = set(project_ids)
        jobs = self.store.sync_jobs.list(
            filters=select_filters(params, SYNC_JOB_FILTERS),
            predicate=lambda j: j.project_id in visible,
        )
        return [self.advance(job) for job in jobs]
