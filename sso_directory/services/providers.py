"""
Read-only user and group providers exposed to the host directory service.

Users are served from the snapshot cache. Groups are looked up on demand
through the remote client. Every write operation is rejected.
"""

from collections.abc import Iterable
from datetime import datetime

from sso_directory.client import RemoteDirectoryClient
from sso_directory.exceptions import ReadOnlyDirectoryError
from sso_directory.models import DirectoryGroup, DirectoryUser
from sso_directory.services.directory_cache import SEARCH_FIELDS, DirectorySnapshotCache


class DirectoryUserProvider:
    """User provider backed by a ``DirectorySnapshotCache``."""

    def __init__(self, cache: DirectorySnapshotCache):
        self._cache = cache

    def load_user(self, username: str) -> DirectoryUser:
        """Load a user by identifier.

        Raises:
            UserNotFoundError: If the user is not in the current snapshot
        """
        return self._cache.get_user(username)

    def get_user_count(self) -> int:
        return self._cache.count()

    def get_users(
        self, start_index: int | None = None, num_results: int | None = None
    ) -> list[DirectoryUser]:
        """Return all users, or one page of them when ``start_index`` is given.

        Without ``num_results`` the page runs to the end of the directory.
        """
        if start_index is None:
            return self._cache.list_users()
        return self._cache.page(start_index, num_results)

    def get_usernames(self) -> set[str]:
        return self._cache.list_usernames()

    def get_search_fields(self) -> frozenset[str]:
        return SEARCH_FIELDS

    def find_users(
        self,
        fields: Iterable[str],
        query: str | None,
        start_index: int | None = None,
        num_results: int | None = None,
    ) -> list[DirectoryUser]:
        return self._cache.search(fields, query, start_index or 0, num_results)

    @property
    def is_read_only(self) -> bool:
        return self._cache.read_only

    @property
    def is_name_required(self) -> bool:
        return False

    @property
    def is_email_required(self) -> bool:
        return False

    # Write operations are not supported by a mirrored directory.

    def create_user(
        self, username: str, password: str, name: str | None = None, email: str | None = None
    ) -> DirectoryUser:
        raise ReadOnlyDirectoryError("Create new user not implemented by this user provider")

    def delete_user(self, username: str) -> None:
        raise ReadOnlyDirectoryError("Delete a user not implemented by this user provider")

    def set_name(self, username: str, name: str) -> None:
        raise ReadOnlyDirectoryError("Setting user name not implemented by this user provider")

    def set_email(self, username: str, email: str) -> None:
        raise ReadOnlyDirectoryError("Setting user email not implemented by this user provider")

    def set_creation_date(self, username: str, creation_date: datetime) -> None:
        raise ReadOnlyDirectoryError(
            "Setting user creation date unsupported by this user provider"
        )

    def set_modification_date(self, username: str, modification_date: datetime) -> None:
        raise ReadOnlyDirectoryError(
            "Setting user modification date unsupported by this user provider"
        )


class DirectoryGroupProvider:
    """Group provider that queries the remote service on every call."""

    def __init__(self, client: RemoteDirectoryClient):
        self._client = client

    async def get_group(self, name: str) -> DirectoryGroup:
        return await self._client.fetch_group(name)

    async def get_group_names(self) -> list[str]:
        return await self._client.fetch_all_group_names()

    async def get_groups(self, username: str) -> list[str]:
        return await self._client.fetch_user_groups(username)

    async def get_group_members(self, name: str) -> list[str]:
        return await self._client.fetch_group_members(name)

    @property
    def is_read_only(self) -> bool:
        return True

    def create_group(self, name: str) -> DirectoryGroup:
        raise ReadOnlyDirectoryError("Create new group not implemented by this group provider")

    def delete_group(self, name: str) -> None:
        raise ReadOnlyDirectoryError("Delete a group not implemented by this group provider")

    def add_member(self, group_name: str, username: str) -> None:
        raise ReadOnlyDirectoryError("Adding group members not implemented by this group provider")

    def delete_member(self, group_name: str, username: str) -> None:
        raise ReadOnlyDirectoryError(
            "Removing group members not implemented by this group provider"
        )
