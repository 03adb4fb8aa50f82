"""Shared fixtures: a fake SSO service served through ``httpx.MockTransport``."""

from collections.abc import AsyncGenerator, Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio

from sso_directory.client import RemoteDirectoryClient
from sso_directory.models import DirectoryUser, Snapshot
from sso_directory.services import DirectorySnapshotCache
from sso_directory.settings import Settings

BASE_URL = "http://sso.test/api/"


def make_user_payload(
    uin: int, name: str | None = None, phone: str = "", sex: int = 0
) -> dict[str, Any]:
    """Build one entry of the remote ``users`` listing."""
    return {
        "uin": uin,
        "name": name if name is not None else f"user{uin}",
        "phone": phone,
        "avatar_id": f"avatar-{uin}",
        "sex": sex,
    }


def make_user(uin: int, name: str | None = None, phone: str = "") -> DirectoryUser:
    return DirectoryUser.model_validate(make_user_payload(uin, name, phone))


def envelope(items: list[Any], statecode: int = 0) -> dict[str, Any]:
    """Wrap items the way the SSO service does."""
    return {"statecode": statecode, "body": {"list": items}}


class FakeSSOServer:
    """In-memory SSO service.

    Serves ``users``, ``groups``, ``groups/nested``, ``groups/{name}``,
    ``group/{name}/users`` and ``login`` with offset pagination. Individual
    pages can be overridden with ``page_overrides[(path, offset)]``; the value
    is either an ``httpx.Response`` or an exception to raise.
    """

    def __init__(
        self,
        users: list[dict[str, Any]] | None = None,
        groups: list[dict[str, Any]] | None = None,
        memberships: dict[str, list[str]] | None = None,
        members: dict[str, list[dict[str, Any]]] | None = None,
        passwords: dict[str, str] | None = None,
    ) -> None:
        self.users = users or []
        self.groups = groups or []
        self.memberships = memberships or {}
        self.members = members or {}
        self.passwords = passwords or {}
        self.page_overrides: dict[tuple[str, int], httpx.Response | Exception] = {}
        self.requests: list[httpx.Request] = []

    def page_requests(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == f"/api/{path}"]

    @staticmethod
    def _page(items: list[Any], request: httpx.Request) -> httpx.Response:
        size = int(request.url.params["maxItemPerPage"])
        offset = int(request.url.params["fromIndex"])
        return httpx.Response(200, json=envelope(items[offset : offset + size]))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api/")

        if "fromIndex" in request.url.params:
            override = self.page_overrides.get((path, int(request.url.params["fromIndex"])))
            if isinstance(override, Exception):
                raise override
            if override is not None:
                return override

        if path == "login" and request.method == "POST":
            form = dict(httpx.QueryParams(request.content.decode()))
            if self.passwords.get(form.get("uid", "")) == form.get("password"):
                return httpx.Response(200)
            return httpx.Response(401, text="bad credentials")

        if path == "users":
            return self._page(self.users, request)

        if path == "groups":
            return self._page(self.groups, request)

        if path == "groups/nested":
            username = request.url.params["username"]
            names = self.memberships.get(username, [])
            return self._page([{"name": name} for name in names], request)

        if path.startswith("groups/"):
            name = path.removeprefix("groups/")
            for group in self.groups:
                if group["name"] == name:
                    return httpx.Response(200, json={"statecode": 0, "body": group})
            return httpx.Response(404, text="no such group")

        if path.startswith("group/") and path.endswith("/users"):
            name = path.split("/")[1]
            return self._page(self.members.get(name, []), request)

        return httpx.Response(404)


@pytest.fixture
def sso_server() -> FakeSSOServer:
    """A fake SSO service with a handful of users and groups."""
    return FakeSSOServer(
        users=[
            make_user_payload(1001, "John", "555-0101", sex=1),
            make_user_payload(1002, "Bob", "555-0102", sex=1),
            make_user_payload(1003, "Johanna", "555-0103", sex=2),
        ],
        groups=[
            {"name": "admins", "description": "Administrators"},
            {"name": "staff", "description": "Everybody"},
        ],
        memberships={"1001": ["admins", "staff"]},
        members={"staff": [make_user_payload(1001, "John"), make_user_payload(1002, "Bob")]},
        passwords={"john": "secret"},
    )


@pytest_asyncio.fixture
async def make_client() -> AsyncGenerator[Callable[..., RemoteDirectoryClient], None]:
    """Factory for clients talking to a fake server; closes them afterwards."""
    clients: list[RemoteDirectoryClient] = []

    def factory(
        handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any
    ) -> RemoteDirectoryClient:
        client = RemoteDirectoryClient(BASE_URL, transport=httpx.MockTransport(handler), **kwargs)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.close()


@pytest_asyncio.fixture
async def client(
    sso_server: FakeSSOServer, make_client: Callable[..., RemoteDirectoryClient]
) -> RemoteDirectoryClient:
    """Client wired to the default fake SSO server."""
    return make_client(sso_server, application_name="directory", application_password="app-pass")


@pytest.fixture
def cache() -> DirectorySnapshotCache:
    """Cache preloaded with John, Bob and Johanna."""
    cache = DirectorySnapshotCache()
    cache.install(
        Snapshot.build(
            [
                make_user(1001, "John", "555-0101"),
                make_user(1002, "Bob", "555-0102"),
                make_user(1003, "Johanna", "555-0103"),
            ]
        )
    )
    return cache


@pytest.fixture
def test_settings() -> Settings:
    """Settings pointing at the fake SSO service."""
    return Settings(
        sso_server_url=BASE_URL,
        application_name="directory",
        application_password="app-pass",
        users_cache_ttl_seconds=3600,
    )
