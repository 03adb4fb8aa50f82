"""
Common dependencies for the directory API endpoints.

The cache, scheduler and providers are created by the application lifespan
and stored on ``app.state``; these helpers hand them to the endpoints.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Query, Request

from sso_directory.services import (
    DirectoryGroupProvider,
    DirectorySnapshotCache,
    DirectoryUserProvider,
    RefreshScheduler,
)


@dataclass(frozen=True, slots=True)
class Pagination:
    skip: int
    limit: int | None


def get_cache(request: Request) -> DirectorySnapshotCache:
    cache: DirectorySnapshotCache = request.app.state.directory_cache
    return cache


def get_scheduler(request: Request) -> RefreshScheduler:
    scheduler: RefreshScheduler = request.app.state.refresh_scheduler
    return scheduler


def get_user_provider(
    cache: Annotated[DirectorySnapshotCache, Depends(get_cache)],
) -> DirectoryUserProvider:
    return DirectoryUserProvider(cache)


def get_group_provider(request: Request) -> DirectoryGroupProvider:
    provider: DirectoryGroupProvider = request.app.state.group_provider
    return provider


def common_parameters(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int | None = Query(None, ge=0, description="Maximum number of items to return"),
) -> Pagination:
    """
    Get common query parameters for pagination.

    Args:
        skip: Number of items to skip
        limit: Maximum number of items to return

    Returns:
        Pagination parameters
    """
    return Pagination(skip=skip, limit=limit)


CacheDep = Annotated[DirectorySnapshotCache, Depends(get_cache)]
SchedulerDep = Annotated[RefreshScheduler, Depends(get_scheduler)]
UserProviderDep = Annotated[DirectoryUserProvider, Depends(get_user_provider)]
GroupProviderDep = Annotated[DirectoryGroupProvider, Depends(get_group_provider)]
PaginationDep = Annotated[Pagination, Depends(common_parameters)]
