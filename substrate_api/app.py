import logging
from typing import Optional

from substrate_api.core.dispatcher import Dispatcher
from substrate_api.core.settings import Settings
from substrate_api.core.settings import settings as default_settings
from substrate_api.core.store import ResourceStore
from substrate_api.domains.auth.routes import router as auth_router
from substrate_api.domains.auth.sessions import SessionRegistry
from substrate_api.domains.connectors.routes import router as connectors_router
from substrate_api.domains.connectors.routes import sync_router
from substrate_api.domains.dashboards.routes import router as dashboards_router
from substrate_api.domains.organizations.routes import router as organizations_router
from substrate_api.domains.projects.routes import router as projects_router
from substrate_api.domains.teams.routes import router as teams_router
from substrate_api.domains.users.routes import router as users_router
from substrate_api.seed import seed_demo_data

logger = logging.getLogger(__name__)


def build_backend(
    settings: Optional[Settings] = None, store: Optional[ResourceStore] = None
) -> Dispatcher:
    """
    Assemble a ready-to-serve backend.

    Args:
        settings: Settings override; defaults to the environment-loaded instance
        store: Existing store to serve from; a fresh one is created otherwise

    Returns:
        Dispatcher with every domain router included
    """
    settings = settings or default_settings
    logging.basicConfig(level=settings.LOG_LEVEL)

    if store is None:
        store = ResourceStore()
        if settings.SEED_DEMO_DATA:
            seed_demo_data(store)

    dispatcher = Dispatcher(store=store, sessions=SessionRegistry(), settings=settings)

    # Include routers
    dispatcher.include_router(auth_router)
    dispatcher.include_router(users_router)
    dispatcher.include_router(organizations_router)
    dispatcher.include_router(teams_router)
    dispatcher.include_router(projects_router)
    dispatcher.include_router(dashboards_router)
    dispatcher.include_router(connectors_router)
    dispatcher.include_router(sync_router)

    logger.info(f"Backend ready with {len(store.users)} users")
    return dispatcher
