# substrate_api/domains/connectors/routes.py
from typing import List

from substrate_api.core.context import RequestContext
from substrate_api.core.entities import SyncJob
from substrate_api.core.routing import Router
from substrate_api.domains.connectors.catalog import (
    CATEGORIES,
    get_definition,
    search_definitions,
)
from substrate_api.domains.connectors.dependencies import require_connector_permission
from substrate_api.domains.connectors.exceptions import (
    ConnectorDefinitionNotFoundError,
    SyncJobNotFoundError,
)
from substrate_api.domains.connectors.models import (
    ConnectorCategory,
    ConnectorDefinition,
    ConnectorHealth,
    InstallConnectorRequest,
    InstalledConnectorResponse,
    TriggerSyncRequest,
    UpdateConnectorRequest,
)
from substrate_api.domains.connectors.service import (
    ConnectorService,
    SyncService,
    readable_project_ids,
)
from substrate_api.shared.exceptions import NotFoundError
from substrate_api.shared.pagination import Page, paginate
from substrate_api.shared.permissions import (
    Permission,
    require_principal,
    require_project_permission,
)

router = Router(prefix="/connectors", tags=["Connectors"])


@router.get("")
async def list_connectors(ctx: RequestContext) -> Page[InstalledConnectorResponse]:
    """
    Installed connectors on the caller's projects.

    Accepts projectId, status and definitionId filters.
    """
    user = require_principal(ctx)
    service = ConnectorService(ctx.store, ctx.settings)
    connectors = await service.list_connectors(user.id, ctx.params)
    return paginate(connectors, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.post("", status_code=201)
async def install_connector(ctx: RequestContext) -> InstalledConnectorResponse:
    require_principal(ctx)
    data = ctx.parse_body(InstallConnectorRequest)
    access = require_project_permission(
        ctx, data.project_id, Permission.CONNECTOR_INSTALL
    )
    service = ConnectorService(ctx.store, ctx.settings)
    return await service.install_connector(access.project, data, access.user)


# Marketplace


@router.get("/marketplace")
async def list_marketplace(ctx: RequestContext) -> Page[ConnectorDefinition]:
    """The connector catalog, filtered by category and search text."""
    require_principal(ctx)
    definitions = search_definitions(
        category=ctx.params.get("category"), search=ctx.params.get("search")
    )
    return paginate(definitions, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@router.get("/marketplace/categories")
async def list_categories(ctx: RequestContext) -> List[ConnectorCategory]:
    require_principal(ctx)
    return CATEGORIES


@router.get("/marketplace/{definition_id}")
async def get_marketplace_definition(
    ctx: RequestContext, definition_id: str
) -> ConnectorDefinition:
    require_principal(ctx)
    definition = get_definition(definition_id)
    if definition is None:
        raise ConnectorDefinitionNotFoundError(definition_id)
    return definition


# Installed connectors


@router.get("/{connector_id}")
async def get_connector(
    ctx: RequestContext, connector_id: str
) -> InstalledConnectorResponse:
    connector, _ = require_connector_permission(
        ctx, connector_id, Permission.CONNECTOR_READ
    )
    return ConnectorService(ctx.store, ctx.settings).response(connector)


@router.patch("/{connector_id}")
async def update_connector(
    ctx: RequestContext, connector_id: str
) -> InstalledConnectorResponse:
    connector, access = require_connector_permission(
        ctx, connector_id, Permission.CONNECTOR_CONFIGURE
    )
    data = ctx.parse_body(UpdateConnectorRequest)
    service = ConnectorService(ctx.store, ctx.settings)
    return await service.update_connector(connector, access.project, data, access.user)


@router.delete("/{connector_id}")
async def remove_connector(ctx: RequestContext, connector_id: str) -> None:
    connector, access = require_connector_permission(
        ctx, connector_id, Permission.CONNECTOR_REMOVE
    )
    service = ConnectorService(ctx.store, ctx.settings)
    await service.remove_connector(connector, access.project, access.user)


@router.get("/{connector_id}/health")
async def get_connector_health(
    ctx: RequestContext, connector_id: str
) -> ConnectorHealth:
    connector, _ = require_connector_permission(
        ctx, connector_id, Permission.CONNECTOR_READ
    )
    return ConnectorService(ctx.store, ctx.settings).health(connector)


@router.post("/{connector_id}/sync", status_code=202)
async def trigger_connector_sync(ctx: RequestContext, connector_id: str) -> SyncJob:
    """
    Start a sync job and return it immediately; poll the job for progress.
    """
    connector, access = require_connector_permission(
        ctx, connector_id, Permission.CONNECTOR_CONFIGURE
    )
    service = SyncService(ctx.store, ctx.settings)
    return await service.start_connector_sync(connector, access.user)


@router.get("/{connector_id}/sync/{job_id}")
async def get_connector_sync_job(
    ctx: RequestContext, connector_id: str, job_id: str
) -> SyncJob:
    connector, _ = require_connector_permission(
        ctx, connector_id, Permission.CONNECTOR_READ
    )
    service = SyncService(ctx.store, ctx.settings)
    job = ctx.store.sync_jobs.get(job_id)
    if job is None:
        return service.placeholder(job_id)
    if job.connector_id != connector.id:
        raise SyncJobNotFoundError(job_id)
    return service.advance(job)


# Sync jobs

sync_router = Router(prefix="/sync", tags=["Sync"])


@sync_router.post("", status_code=202)
async def trigger_sync(ctx: RequestContext) -> SyncJob:
    """
    Trigger a sync for one connector (connectorId) or for a whole project's
    architecture graph (projectId).
    """
    require_principal(ctx)
    data = ctx.parse_body(TriggerSyncRequest)
    service = SyncService(ctx.store, ctx.settings)
    if data.connector_id:
        connector, access = require_connector_permission(
            ctx, data.connector_id, Permission.CONNECTOR_CONFIGURE
        )
        return await service.start_connector_sync(connector, access.user)

    access = require_project_permission(
        ctx, data.project_id, Permission.CONNECTOR_CONFIGURE
    )
    return await service.start_project_sync(access.project, access.user)


@sync_router.get("")
async def list_sync_jobs(ctx: RequestContext) -> Page[SyncJob]:
    user = require_principal(ctx)
    project_ids = readable_project_ids(ctx.store, user.id, Permission.CONNECTOR_READ)
    service = SyncService(ctx.store, ctx.settings)
    jobs = await service.list_jobs(project_ids, ctx.params)
    return paginate(jobs, ctx.params, ctx.settings.DEFAULT_PAGE_SIZE)


@sync_router.get("/{job_id}")
async def get_sync_job(ctx: RequestContext, job_id: str) -> SyncJob:
    """Poll a sync job. Unknown ids report a running placeholder."""
    require_principal(ctx)
    service = SyncService(ctx.store, ctx.settings)
    job = ctx.store.sync_jobs.get(job_id)
    if job is None:
        return service.placeholder(job_id)
    try:
        require_project_permission(ctx, job.project_id, Permission.CONNECTOR_READ)
    except NotFoundError:
        raise SyncJobNotFoundError(job_id)
    return service.advance(job)
