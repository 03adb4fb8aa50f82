"""In-process snapshot cache of the remote user directory."""

import threading
from collections.abc import Callable, Iterable, Sequence
from operator import attrgetter

from sso_directory.exceptions import UserNotFoundError
from sso_directory.models import DirectoryUser, Snapshot
from sso_directory.utils.logger import logger

SEARCH_FIELD_UIN = "uin"
SEARCH_FIELD_NAME = "name"
SEARCH_FIELD_PHONE = "phone"
SEARCH_FIELDS = frozenset({SEARCH_FIELD_UIN, SEARCH_FIELD_NAME, SEARCH_FIELD_PHONE})

# First requested field wins; the others are not inspected.
SEARCH_FIELD_PRECEDENCE = (SEARCH_FIELD_UIN, SEARCH_FIELD_NAME, SEARCH_FIELD_PHONE)

_FIELD_VALUES: dict[str, Callable[[DirectoryUser], str]] = {
    SEARCH_FIELD_UIN: lambda user: user.identifier,
    SEARCH_FIELD_NAME: attrgetter("name"),
    SEARCH_FIELD_PHONE: attrgetter("phone"),
}


def _slice(
    items: Sequence[DirectoryUser], start_index: int, num_results: int | None
) -> list[DirectoryUser]:
    if start_index < 0:
        raise ValueError("start_index must not be negative")
    if num_results is None:
        return list(items[start_index:])
    if num_results < 0:
        raise ValueError("num_results must not be negative")
    return list(items[start_index : start_index + num_results])


def _normalize_query(query: str | None) -> str | None:
    """Strip one leading and one trailing ``*`` and lowercase the query.

    Returns None for a missing or blank query.
    """
    if query is None or not query.strip():
        return None
    if query.endswith("*"):
        query = query[:-1]
    if query.startswith("*"):
        query = query[1:]
    return query.lower()


class DirectorySnapshotCache:
    """Holds the live ``Snapshot`` and serves every directory read.

    The lock guards only the snapshot reference: readers take it long enough
    to capture the current snapshot, then scan their captured copy without it.
    ``install`` takes it long enough to swap the reference. A refresh never
    waits for a running search, and a search keeps working on the snapshot it
    started with.
    """

    def __init__(self, snapshot: Snapshot | None = None):
        self._lock = threading.Lock()
        self._snapshot = snapshot if snapshot is not None else Snapshot.empty()
        self._refresh_count = 0

    @property
    def snapshot(self) -> Snapshot:
        """The currently installed snapshot."""
        with self._lock:
            return self._snapshot

    @property
    def refresh_count(self) -> int:
        """Number of snapshots installed since start."""
        with self._lock:
            return self._refresh_count

    @property
    def read_only(self) -> bool:
        return True

    def install(self, snapshot: Snapshot) -> int:
        """Publish ``snapshot`` as the live snapshot.

        Returns:
            The refresh counter after the install
        """
        with self._lock:
            self._snapshot = snapshot
            self._refresh_count += 1
            refresh_count = self._refresh_count

        logger.info(f"Installed directory snapshot #{refresh_count} with {len(snapshot)} users")
        return refresh_count

    def get_user(self, uin: str | int) -> DirectoryUser:
        """Look up a user by identifier.

        Raises:
            UserNotFoundError: If the identifier is not in the current snapshot
        """
        user = self.snapshot.by_id.get(str(uin))
        if user is None:
            raise UserNotFoundError(uin)
        return user

    def count(self) -> int:
        return len(self.snapshot.by_id)

    def list_users(self) -> list[DirectoryUser]:
        return list(self.snapshot.users)

    def list_usernames(self) -> set[str]:
        return set(self.snapshot.by_id)

    def page(self, start_index: int, num_results: int | None = None) -> list[DirectoryUser]:
        """Return up to ``num_results`` users starting at ``start_index``.

        An out-of-range ``start_index`` yields an empty list. Without
        ``num_results`` the page runs to the end of the directory.
        """
        return _slice(self.snapshot.users, start_index, num_results)

    def search(
        self,
        fields: Iterable[str],
        query: str | None,
        start_index: int = 0,
        num_results: int | None = None,
    ) -> list[DirectoryUser]:
        """Case-insensitive substring search over one user field.

        ``query`` may carry one leading and one trailing ``*``; both are
        stripped before matching. Only one field is inspected: ``uin`` when
        requested, else ``name``, else ``phone``; an empty ``fields`` searches
        ``phone``. Unknown fields yield no matches.

        Args:
            fields: Requested search fields, a subset of ``SEARCH_FIELDS``
            query: Search text
            start_index: Offset into the match list
            num_results: Maximum number of matches to return (all when None)

        Returns:
            Matching users in snapshot order
        """
        requested = set(fields)
        needle = _normalize_query(query)
        if needle is None or not requested <= SEARCH_FIELDS:
            return []

        field = next((f for f in SEARCH_FIELD_PRECEDENCE if f in requested), SEARCH_FIELD_PHONE)
        value = _FIELD_VALUES[field]

        users = self.snapshot.users
        matches = [user for user in users if needle in value(user).lower()]
        return _slice(matches, start_index, num_results)
