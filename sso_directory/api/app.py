"""
Main API application module for the directory cache.

This module is the composition root: the lifespan builds the remote client,
the snapshot cache and the refresh scheduler, and shares them through
``app.state``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from sso_directory import __version__
from sso_directory.api.exception_handlers import setup_exception_handlers
from sso_directory.api.routers import directory, groups, users
from sso_directory.client import RemoteDirectoryClient
from sso_directory.services import (
    DirectoryGroupProvider,
    DirectorySnapshotCache,
    RefreshScheduler,
)
from sso_directory.settings import Settings, settings as default_settings
from sso_directory.utils.logger import logger


def create_app(
    app_settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use (defaults to the global settings)
        transport: Optional httpx transport for the remote client, mainly for tests
        start_scheduler: Start the periodic refresh loop on startup

    Returns:
        Configured FastAPI application
    """
    config = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        client = RemoteDirectoryClient.from_settings(config, transport=transport)
        cache = DirectorySnapshotCache()
        scheduler = RefreshScheduler(client, cache, refresh_interval=config.refresh_interval)

        app.state.directory_client = client
        app.state.directory_cache = cache
        app.state.refresh_scheduler = scheduler
        app.state.group_provider = DirectoryGroupProvider(client)

        if start_scheduler:
            await scheduler.start()

        logger.info("Application startup complete")

        try:
            yield
        finally:
            await scheduler.stop()
            await client.close()
            logger.info("Application shutdown")

    app = FastAPI(
        title="SSO Directory",
        description="Read-only cache of the SSO user directory",
        version=__version__,
        debug=config.debug,
        lifespan=lifespan,
        root_path=config.root_url if config.root_url != "/" else "",
    )

    setup_exception_handlers(app)

    app.include_router(directory.router, prefix="/api/directory")
    app.include_router(users.router, prefix="/api/users")
    app.include_router(groups.router, prefix="/api/groups")

    return app


app = create_app()
