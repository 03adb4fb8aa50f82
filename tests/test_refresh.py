"""Tests for RefreshScheduler.

Tests cover:
- Successful ticks install a new snapshot
- Failed, malformed and empty fetches keep the previous snapshot
- Ticks never overlap
- Start/stop of the background loop
"""

import asyncio
from collections.abc import Callable
from unittest.mock import patch

import httpx
import pytest
from conftest import FakeSSOServer, envelope, make_user, make_user_payload

from sso_directory.client import RemoteDirectoryClient
from sso_directory.models import Snapshot
from sso_directory.services import DirectorySnapshotCache, RefreshScheduler, RefreshState
from sso_directory.settings import settings

pytestmark = pytest.mark.asyncio

ClientFactory = Callable[..., RemoteDirectoryClient]


@pytest.fixture
def stale_cache() -> DirectorySnapshotCache:
    """Cache holding a previous snapshot of two users."""
    cache = DirectorySnapshotCache()
    cache.install(Snapshot.build([make_user(1, "Old One"), make_user(2, "Old Two")]))
    return cache


class TestRefreshOnce:
    """One refresh tick."""

    async def test_success_installs_snapshot(
        self, client: RemoteDirectoryClient, stale_cache: DirectorySnapshotCache
    ) -> None:
        scheduler = RefreshScheduler(client, stale_cache, refresh_interval=60)

        assert await scheduler.refresh_once() is True

        assert stale_cache.count() == 3
        assert [u.name for u in stale_cache.list_users()] == ["John", "Bob", "Johanna"]
        assert stale_cache.refresh_count == 2
        assert scheduler.state is RefreshState.IDLE
        assert scheduler.last_success_at is not None
        assert scheduler.last_error is None

    async def test_transport_error_keeps_previous_snapshot(
        self, make_client: ClientFactory, stale_cache: DirectorySnapshotCache
    ) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        scheduler = RefreshScheduler(make_client(refuse), stale_cache, refresh_interval=60)
        before = stale_cache.count()

        assert await scheduler.refresh_once() is False

        assert stale_cache.count() == before
        assert stale_cache.refresh_count == 1
        assert scheduler.state is RefreshState.IDLE
        assert scheduler.last_error is not None

    async def test_malformed_page_never_installs(
        self, make_client: ClientFactory, stale_cache: DirectorySnapshotCache
    ) -> None:
        """A bad page in the middle of the enumeration installs nothing."""
        server = FakeSSOServer(users=[make_user_payload(uin) for uin in range(1, 251)])
        server.page_overrides[("users", 100)] = httpx.Response(200, json=envelope([], statecode=1))
        scheduler = RefreshScheduler(make_client(server), stale_cache, refresh_interval=60)

        with patch.object(stale_cache, "install", wraps=stale_cache.install) as install:
            assert await scheduler.refresh_once() is False

        install.assert_not_called()
        assert stale_cache.count() == 2

    async def test_http_error_keeps_previous_snapshot(
        self, make_client: ClientFactory, stale_cache: DirectorySnapshotCache
    ) -> None:
        client = make_client(lambda request: httpx.Response(500, text="boom"))
        scheduler = RefreshScheduler(client, stale_cache, refresh_interval=60)

        assert await scheduler.refresh_once() is False

        assert [u.name for u in stale_cache.list_users()] == ["Old One", "Old Two"]
        assert "500" in (scheduler.last_error or "")

    async def test_empty_result_keeps_previous_snapshot(
        self, make_client: ClientFactory, stale_cache: DirectorySnapshotCache
    ) -> None:
        scheduler = RefreshScheduler(make_client(FakeSSOServer()), stale_cache, refresh_interval=60)

        assert await scheduler.refresh_once() is False

        assert stale_cache.count() == 2
        assert stale_cache.refresh_count == 1

    async def test_unexpected_error_propagates_and_resets_state(
        self, client: RemoteDirectoryClient, stale_cache: DirectorySnapshotCache
    ) -> None:
        scheduler = RefreshScheduler(client, stale_cache, refresh_interval=60)

        with patch.object(client, "fetch_all_users", side_effect=RuntimeError("bug")):
            with pytest.raises(RuntimeError):
                await scheduler.refresh_once()

        assert scheduler.state is RefreshState.IDLE
        assert stale_cache.count() == 2


class TestTickSerialization:
    """Only one refresh may be in flight."""

    async def test_overlapping_tick_is_skipped(
        self, client: RemoteDirectoryClient, stale_cache: DirectorySnapshotCache
    ) -> None:
        release = asyncio.Event()
        calls = 0

        async def slow_fetch() -> list:
            nonlocal calls
            calls += 1
            await release.wait()
            return [make_user(7, "Seven")]

        scheduler = RefreshScheduler(client, stale_cache, refresh_interval=60)

        with patch.object(client, "fetch_all_users", side_effect=slow_fetch):
            first = asyncio.create_task(scheduler.refresh_once())
            await asyncio.sleep(0)
            assert scheduler.state is RefreshState.FETCHING

            assert await scheduler.refresh_once() is False

            release.set()
            assert await first is True

        assert calls == 1
        assert stale_cache.count() == 1
        assert stale_cache.refresh_count == 2

    async def test_readers_see_old_snapshot_while_fetching(
        self, client: RemoteDirectoryClient, stale_cache: DirectorySnapshotCache
    ) -> None:
        """Network I/O happens before the cache is touched."""
        release = asyncio.Event()

        async def slow_fetch() -> list:
            await release.wait()
            return [make_user(7, "Seven")]

        scheduler = RefreshScheduler(client, stale_cache, refresh_interval=60)

        with patch.object(client, "fetch_all_users", side_effect=slow_fetch):
            task = asyncio.create_task(scheduler.refresh_once())
            await asyncio.sleep(0)

            assert [u.name for u in stale_cache.list_users()] == ["Old One", "Old Two"]

            release.set()
            await task

        assert [u.name for u in stale_cache.list_users()] == ["Seven"]


class TestBackgroundLoop:
    """start() / stop() of the periodic loop."""

    async def test_first_tick_runs_immediately(
        self, client: RemoteDirectoryClient, stale_cache: DirectorySnapshotCache
    ) -> None:
        scheduler = RefreshScheduler(client, stale_cache, refresh_interval=3600)

        await scheduler.start()
        try:
            for _ in range(100):
                if stale_cache.refresh_count == 2:
                    break
                await asyncio.sleep(0.01)
        finally:
            await scheduler.stop()

        assert stale_cache.count() == 3
        assert scheduler.is_running is False

    async def test_loop_repeats_and_survives_failures(
        self, make_client: ClientFactory, stale_cache: DirectorySnapshotCache
    ) -> None:
        server = FakeSSOServer(users=[make_user_payload(1, "A")])
        server.page_overrides[("users", 0)] = httpx.Response(502)
        scheduler = RefreshScheduler(make_client(server), stale_cache, refresh_interval=0.01)

        await scheduler.start()
        try:
            for _ in range(100):
                if len(server.page_requests("users")) >= 3:
                    break
                await asyncio.sleep(0.01)
        finally:
            await scheduler.stop()

        assert len(server.page_requests("users")) >= 3
        assert stale_cache.count() == 2

    async def test_explicit_interval_is_kept(
        self, client: RemoteDirectoryClient, stale_cache: DirectorySnapshotCache
    ) -> None:
        assert RefreshScheduler(client, stale_cache, refresh_interval=0).refresh_interval == 0
        assert RefreshScheduler(client, stale_cache).refresh_interval == settings.refresh_interval

    async def test_start_twice_is_a_no_op(
        self, client: RemoteDirectoryClient, stale_cache: DirectorySnapshotCache
    ) -> None:
        scheduler = RefreshScheduler(client, stale_cache, refresh_interval=3600)

        await scheduler.start()
        task = scheduler._task
        await scheduler.start()
        assert scheduler._task is task

        await scheduler.stop()
        assert scheduler._task is None
