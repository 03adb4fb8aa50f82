"""
Directory status and manual refresh endpoints.
"""

from typing import Any

from fastapi import APIRouter

from sso_directory.api.dependencies import CacheDep, SchedulerDep

router = APIRouter(tags=["directory"])


@router.get("/status")
async def get_status(cache: CacheDep, scheduler: SchedulerDep) -> dict[str, Any]:
    """Snapshot and refresh diagnostics."""
    snapshot = cache.snapshot
    return {
        "read_only": cache.read_only,
        "user_count": len(snapshot),
        "snapshot_created_at": snapshot.created_at,
        "refresh_count": cache.refresh_count,
        "refresh_interval": scheduler.refresh_interval,
        "state": scheduler.state.value,
        "last_success_at": scheduler.last_success_at,
        "last_error": scheduler.last_error,
    }


@router.post("/refresh")
async def refresh_now(cache: CacheDep, scheduler: SchedulerDep) -> dict[str, Any]:
    """Run one refresh now. Skipped if a refresh is already running."""
    installed = await scheduler.refresh_once()
    return {
        "installed": installed,
        "user_count": cache.count(),
        "refresh_count": cache.refresh_count,
    }
