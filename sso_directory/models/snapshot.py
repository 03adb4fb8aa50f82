"""Immutable directory snapshot."""

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from sso_directory.models.user import DirectoryUser


@dataclass(frozen=True, slots=True)
class Snapshot:
    """One complete copy of the remote directory.

    ``users`` keeps the remote enumeration order and backs offset paging and
    search. ``by_id`` maps ``str(uin)`` to the user and is always derived from
    the same ``users`` tuple, so the two can never come from different fetches.
    When the remote listing repeats a uin, the mapping keeps the last record.
    """

    users: tuple[DirectoryUser, ...]
    by_id: Mapping[str, DirectoryUser] = field(repr=False)
    created_at: float

    @classmethod
    def build(cls, users: Iterable[DirectoryUser]) -> "Snapshot":
        """Create a snapshot from an ordered sequence of users."""
        ordered = tuple(users)
        by_id = MappingProxyType({user.identifier: user for user in ordered})
        return cls(users=ordered, by_id=by_id, created_at=time.time())

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls.build(())

    def __len__(self) -> int:
        return len(self.by_id)
