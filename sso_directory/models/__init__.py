"""
Data models for the SSO directory cache.
"""

from .group import DirectoryGroup
from .snapshot import Snapshot
from .user import DirectoryUser, Sex

__all__ = [
    "DirectoryGroup",
    "DirectoryUser",
    "Sex",
    "Snapshot",
]
