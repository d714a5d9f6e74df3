from typing import Tuple

from substrate_api.core.context import RequestContext
from substrate_api.core.entities import InstalledConnector
from substrate_api.domains.connectors.exceptions import ConnectorNotFoundError
from substrate_api.shared.exceptions import NotFoundError
from substrate_api.shared.permissions import (
    Permission,
    ProjectAccess,
    require_principal,
    require_project_permission,
)


def require_connector_permission(
    ctx: RequestContext, connector_id: str, permission: Permission
) -> Tuple[InstalledConnector, ProjectAccess]:
    """
    Resolve a connector and check the caller's permission on its project.

    Returns:
        The connector and the caller's access to its project

    Raises:
        UnauthorizedError: If nobody is logged in
        ConnectorNotFoundError: If the connector does not exist or the caller
            is not a member of its project
        InsufficientPermissionsError: If the permission is missing
    """
    require_principal(ctx)
    connector = ctx.store.connectors.get(connector_id)
    if connector is None:
        raise ConnectorNotFoundError(connector_id)
    try:
        access = require_project_permission(ctx, connector.project_id, permission)
    except NotFoundError:
        raise ConnectorNotFoundError(connector_id)
    return connector, access
