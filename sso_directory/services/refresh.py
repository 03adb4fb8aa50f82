"""Background service that keeps the directory snapshot fresh."""

import asyncio
import contextlib
import enum
import time

from sso_directory.client import RemoteDirectoryClient
from sso_directory.exceptions import RemoteError
from sso_directory.models import Snapshot
from sso_directory.services.directory_cache import DirectorySnapshotCache
from sso_directory.settings import settings
from sso_directory.utils.logger import logger


class RefreshState(str, enum.Enum):
    """States of one refresh tick."""

    IDLE = "idle"
    FETCHING = "fetching"
    INSTALLING = "installing"
    FAILED_FETCH = "failed_fetch"


class RefreshScheduler:
    """Periodic full refresh of a ``DirectorySnapshotCache``.

    Follows the same pattern as the other background services: an
    ``asyncio.Task`` loop that runs one tick, then sleeps ``refresh_interval``
    seconds. The first tick runs immediately on ``start``. The scheduler is
    the only writer of the cache; a failed or empty fetch leaves the current
    snapshot in place.
    """

    def __init__(
        self,
        client: RemoteDirectoryClient,
        cache: DirectorySnapshotCache,
        refresh_interval: float | None = None,
    ):
        """Initialize the scheduler.

        Args:
            client: Client used to enumerate the remote directory
            cache: Cache receiving the new snapshots
            refresh_interval: Interval between refreshes in seconds
        """
        self._client = client
        self._cache = cache
        self.refresh_interval = (
            refresh_interval if refresh_interval is not None else settings.refresh_interval
        )
        self.is_running = False
        self.state = RefreshState.IDLE
        self.last_success_at: float | None = None
        self.last_error: str | None = None
        self._refresh_lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start the background refresh loop."""
        if self.is_running:
            logger.warning("Directory refresh service already running")
            return

        self.is_running = True
        self._task = asyncio.create_task(self._refresh_loop())
        logger.info(f"Directory refresh service started (interval: {self.refresh_interval}s)")

    async def stop(self) -> None:
        """Stop the background refresh loop."""
        self.is_running = False
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("Directory refresh service stopped")

    async def _refresh_loop(self) -> None:
        """Main refresh loop. A new interval applies from the next sleep on."""
        while self.is_running:
            try:
                await self.refresh_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception(f"Unexpected error in directory refresh: {e}")
            await asyncio.sleep(self.refresh_interval)

    async def refresh_once(self) -> bool:
        """Run one refresh tick.

        A tick that starts while another one is still fetching is skipped.

        Returns:
            True if a new snapshot was installed
        """
        if self._refresh_lock.locked():
            logger.warning("Directory refresh already in progress, skipping this tick")
            return False

        async with self._refresh_lock:
            return await self._refresh()

    async def _refresh(self) -> bool:
        logger.info("running directory sync...")
        try:
            return await self._fetch_and_install()
        finally:
            self.state = RefreshState.IDLE

    async def _fetch_and_install(self) -> bool:
        self.state = RefreshState.FETCHING
        try:
            users = await self._client.fetch_all_users()
        except RemoteError as e:
            self.state = RefreshState.FAILED_FETCH
            self.last_error = str(e)
            logger.error(f"Failure to fetch all SSO users, keeping previous snapshot: {e}")
            return False

        if not users:
            logger.warning("SSO returned no users, keeping previous snapshot")
            return False

        self.state = RefreshState.INSTALLING
        self._cache.install(Snapshot.build(users))
        self.last_success_at = time.time()
        self.last_error = None

        logger.info(f"directory sync done, returned {len(users)} users")
        return True
