"""
Exceptions for the SSO directory cache.

Remote failures are split by cause: the service could not be reached
(``TransportError``), it answered with an HTTP error (``RemoteServiceError``)
or it answered with something that is not a valid envelope
(``MalformedResponseError``). Lookups of absent records raise ``NotFoundError``.
"""

from typing import Self


class DirectoryError(Exception):
    """Base exception for all directory-cache errors."""

    def with_context(self, detail: str) -> Self:
        """Add context information to the exception.

        Args:
            detail: Additional details about the error

        Returns:
            Self with updated message
        """
        self.args = (detail,)
        return self


class RemoteError(DirectoryError):
    """Base exception for failures talking to the remote SSO service."""

    pass


class TransportError(RemoteError):
    """The remote service could not be reached (refused, timeout, DNS)."""

    pass


class RemoteServiceError(RemoteError):
    """The remote service answered with a non-success HTTP status."""

    def __init__(self, status_code: int, status_text: str = "", body: str | None = None):
        self.status_code = status_code
        self.status_text = status_text
        self.body = body

        message = f"SSO server returned HTTP error code:{status_code} - {status_text}"
        if body and body.strip():
            message += f"\n{body}"
        super().__init__(message)


class MalformedResponseError(RemoteError):
    """The response envelope is missing fields or carries a non-zero statecode."""

    def __init__(self, message: str, statecode: int | None = None):
        self.statecode = statecode
        super().__init__(message)


class NotFoundError(DirectoryError):
    """Raised when a record is absent from the directory."""

    pass


class UserNotFoundError(NotFoundError):
    """Raised when a user identifier is not in the current snapshot."""

    def __init__(self, uin: str | int | None = None):
        self.uin = uin
        if uin is not None:
            super().__init__(f"User : '{uin}'")
        else:
            super().__init__("User not found")


class GroupNotFoundError(NotFoundError):
    """Raised when the remote service has no group with the requested name."""

    def __init__(self, name: str | None = None):
        self.name = name
        if name is not None:
            super().__init__(f"Group : '{name}'")
        else:
            super().__init__("Group not found")


class ReadOnlyDirectoryError(DirectoryError):
    """Raised by every write operation; the directory is mirrored read-only."""

    pass
