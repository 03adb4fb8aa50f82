"""
Remote SSO directory client.

This module talks to the SSO REST service: it authenticates users and
enumerates the paginated ``users`` and ``groups`` collections. Every listing
is fetched to completion or not at all; a failing or malformed page aborts
the whole enumeration.
"""

from collections.abc import Callable
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from sso_directory.exceptions import (
    GroupNotFoundError,
    MalformedResponseError,
    RemoteServiceError,
    TransportError,
)
from sso_directory.models import DirectoryGroup, DirectoryUser
from sso_directory.settings import Settings
from sso_directory.utils.logger import logger

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 100

JSON_HEADERS = {"Accept": "application/json", "Accept-Charset": "UTF-8"}


def _quote(value: str) -> str:
    return quote(value, safe="")


class RemoteDirectoryClient:
    """Async client for the remote SSO directory service.

    The client holds no cache state. It is constructed once by the composition
    root and shared by reference with the refresh scheduler and group provider.

    Example:
        ```python
        async with RemoteDirectoryClient("http://sso.local/api/", "app", "secret") as client:
            users = await client.fetch_all_users()
        ```
    """

    def __init__(
        self,
        base_url: str,
        application_name: str = "",
        application_password: str = "",
        page_size: int = DEFAULT_PAGE_SIZE,
        max_connections: int = 20,
        connect_timeout: float = 5.0,
        read_timeout: float = 20.0,
        proxy: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the SSO service; endpoint paths resolve against it
            application_name: Application name sent as HTTP Basic user
            application_password: Application password sent as HTTP Basic password
            page_size: Number of items requested per page
            max_connections: Connection pool size
            connect_timeout: Connect timeout in seconds
            read_timeout: Socket read timeout in seconds
            proxy: Optional proxy URL (credentials may be embedded)
            transport: Optional httpx transport, mainly for tests
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive")

        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.page_size = page_size

        auth = None
        if application_name or application_password:
            auth = httpx.BasicAuth(application_name, application_password)

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=auth,
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_connections,
            ),
            proxy=proxy,
            transport=transport,
        )

        logger.debug(
            f"HTTP client config: server={self.base_url} max_connections={max_connections} "
            f"read_timeout={read_timeout} connect_timeout={connect_timeout} "
            f"proxy={'yes' if proxy else 'no'} application={application_name!r}"
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "RemoteDirectoryClient":
        """Build a client from application settings."""
        return cls(
            base_url=settings.sso_server_url,
            application_name=settings.application_name,
            application_password=settings.application_password,
            page_size=settings.page_size,
            max_connections=settings.http_max_connections,
            connect_timeout=settings.http_connect_timeout,
            read_timeout=settings.http_socket_timeout,
            proxy=settings.proxy_url,
            transport=transport,
        )

    async def __aenter__(self) -> "RemoteDirectoryClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one request and translate failures.

        Raises:
            TransportError: If the service cannot be reached or times out
            RemoteServiceError: If the service answers with a non-2xx status
        """
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"Error occurred while consuming SSO REST service: {e!r}")
            raise TransportError(f"Cannot reach SSO service at {self.base_url}: {e!s}") from e

        if not response.is_success:
            raise RemoteServiceError(response.status_code, response.reason_phrase, response.text)

        return response

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._request("GET", path, params=params, headers=JSON_HEADERS)
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response from '{path}' is not valid JSON") from e

    @staticmethod
    def _unwrap(payload: Any, path: str) -> Any:
        """Return the ``body`` of a ``{statecode, body}`` envelope."""
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Response from '{path}' is not a JSON object")

        statecode = payload.get("statecode", -1)
        if not isinstance(statecode, int) or isinstance(statecode, bool):
            raise MalformedResponseError(f"Response from '{path}' has an invalid statecode")
        if statecode != 0:
            raise MalformedResponseError(
                f"Response from '{path}' carries statecode={statecode}", statecode=statecode
            )

        body = payload.get("body")
        if body is None:
            raise MalformedResponseError(f"Response from '{path}' has no body")
        return body

    @classmethod
    def _unwrap_list(cls, payload: Any, path: str) -> list[Any]:
        body = cls._unwrap(payload, path)
        if not isinstance(body, dict) or not isinstance(body.get("list"), list):
            raise MalformedResponseError(f"Response from '{path}' has no body.list array")
        return body["list"]

    @staticmethod
    def _parse_items(items: list[Any], parse: Callable[[Any], T], path: str) -> list[T]:
        try:
            return [parse(item) for item in items]
        except ValidationError as e:
            raise MalformedResponseError(
                f"Response from '{path}' contains an invalid entry: {e.error_count()} error(s)"
            ) from e

    async def _fetch_all_pages(
        self,
        path: str,
        parse: Callable[[Any], T],
        params: dict[str, Any] | None = None,
    ) -> list[T]:
        """Enumerate a paginated collection to completion.

        Pages are requested at offsets 0, page_size, 2*page_size, ... until a
        page shorter than ``page_size`` comes back. Any failure discards the
        pages already received.
        """
        results: list[T] = []
        offset = 0

        while True:
            page_params = {**(params or {}), "maxItemPerPage": self.page_size, "fromIndex": offset}
            logger.debug(f"Fetching '{path}' page at offset {offset}")

            try:
                payload = await self._get_json(path, params=page_params)
                items = self._parse_items(self._unwrap_list(payload, path), parse, path)
            except MalformedResponseError as e:
                raise e.with_context(f"{e} (page at offset {offset})")
            results.extend(items)

            if len(items) < self.page_size:
                break
            offset += self.page_size

        return results

    async def authenticate(self, username: str, password: str) -> None:
        """Check user credentials against the ``login`` endpoint.

        Args:
            username: User login
            password: User password

        Raises:
            RemoteServiceError: If the service answers with anything but HTTP 200
            TransportError: If the service cannot be reached. Both derive from
                ``RemoteError``; catch that to handle any failed login.
        """
        logger.debug(f"authenticate '{username}'")

        response = await self._request(
            "POST", "login", data={"uid": username, "password": password}
        )
        if response.status_code != 200:
            raise RemoteServiceError(response.status_code, response.reason_phrase, response.text)

        logger.info(f"authenticated user: {username}")

    async def fetch_all_users(self) -> list[DirectoryUser]:
        """Fetch every user of the remote directory, in remote order."""
        logger.debug("fetching all SSO users")
        return await self._fetch_all_pages("users", DirectoryUser.model_validate)

    async def fetch_all_group_names(self) -> list[str]:
        """Fetch the names of all remote groups."""
        logger.debug("fetching all SSO groups")
        groups = await self._fetch_all_pages("groups", DirectoryGroup.model_validate)
        return [group.name for group in groups]

    async def fetch_user_groups(self, username: str) -> list[str]:
        """Fetch the names of the groups (nested included) of a user."""
        logger.debug(f"fetching all SSO groups for user: {username}")
        groups = await self._fetch_all_pages(
            "groups/nested", DirectoryGroup.model_validate, params={"username": username}
        )
        return [group.name for group in groups]

    async def fetch_group(self, name: str) -> DirectoryGroup:
        """Fetch the description of one group.

        Raises:
            GroupNotFoundError: If the service answers 404 for this group
        """
        logger.debug(f"Get group: {name}")
        path = f"groups/{_quote(name)}"
        try:
            payload = await self._get_json(path)
        except RemoteServiceError as e:
            if e.status_code == 404:
                raise GroupNotFoundError(name) from e
            raise

        body = self._unwrap(payload, path)
        try:
            return DirectoryGroup.model_validate(body)
        except ValidationError as e:
            raise MalformedResponseError(f"Response from '{path}' is not a group") from e

    async def fetch_group_members(self, name: str) -> list[str]:
        """Fetch the identifiers of the users that belong to a group."""
        logger.debug(f"Get all members for group: {name}")
        members = await self._fetch_all_pages(
            f"group/{_quote(name)}/users", DirectoryUser.model_validate
        )
        return [member.identifier for member in members]
