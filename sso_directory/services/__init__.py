"""Directory cache services: snapshot cache, refresh scheduler and providers."""

from sso_directory.services.directory_cache import SEARCH_FIELDS, DirectorySnapshotCache
from sso_directory.services.providers import DirectoryGroupProvider, DirectoryUserProvider
from sso_directory.services.refresh import RefreshScheduler, RefreshState

__all__ = [
    "SEARCH_FIELDS",
    "DirectoryGroupProvider",
    "DirectorySnapshotCache",
    "DirectoryUserProvider",
    "RefreshScheduler",
    "RefreshState",
]
