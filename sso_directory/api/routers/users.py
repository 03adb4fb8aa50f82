"""
Read-only user lookup endpoints served from the snapshot cache.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Query

from sso_directory.api.dependencies import (
    GroupProviderDep,
    PaginationDep,
    UserProviderDep,
)
from sso_directory.models import DirectoryUser

router = APIRouter(tags=["users"])


@router.get("/", response_model=list[DirectoryUser])
async def list_users(
    provider: UserProviderDep,
    pagination: PaginationDep,
) -> list[DirectoryUser]:
    """List users in directory order with pagination."""
    if pagination.skip == 0 and pagination.limit is None:
        return provider.get_users()
    return provider.get_users(pagination.skip, pagination.limit)


@router.get("/count")
async def count_users(provider: UserProviderDep) -> dict[str, int]:
    """Number of users in the current snapshot."""
    return {"count": provider.get_user_count()}


@router.get("/usernames", response_model=list[str])
async def list_usernames(provider: UserProviderDep) -> list[str]:
    """All user identifiers, sorted."""
    return sorted(provider.get_usernames())


@router.get("/search", response_model=list[DirectoryUser])
async def search_users(
    provider: UserProviderDep,
    pagination: PaginationDep,
    q: Annotated[str, Query(description="Substring to look for; one leading/trailing * is ignored")],
    fields: Annotated[
        list[str] | None, Query(description="Fields to search: uin, name, phone")
    ] = None,
) -> list[DirectoryUser]:
    """Search users by substring on one field (uin, then name, then phone).

    Defaults to the name field.
    """
    return provider.find_users(set(fields or ["name"]), q, pagination.skip, pagination.limit)


@router.get("/{uin}", response_model=DirectoryUser)
async def get_user(uin: str, provider: UserProviderDep) -> DirectoryUser:
    """Get user by identifier."""
    return provider.load_user(uin)


@router.get("/{uin}/groups", response_model=list[str])
async def get_user_groups(
    uin: str, users: UserProviderDep, groups: GroupProviderDep
) -> list[str]:
    """Names of the groups a user belongs to, fetched from the SSO service."""
    users.load_user(uin)
    return await groups.get_groups(uin)


# Write endpoints exist only to reject writes explicitly.
@router.post("/", response_model=DirectoryUser)
async def create_user(
    provider: UserProviderDep, payload: Annotated[dict[str, Any], Body()]
) -> DirectoryUser:
    """Always rejected: the directory is read-only."""
    return provider.create_user(
        payload.get("uin", ""), payload.get("password", ""), payload.get("name")
    )


@router.patch("/{uin}")
async def update_user(
    uin: str, provider: UserProviderDep, payload: Annotated[dict[str, Any], Body()]
) -> None:
    """Always rejected: the directory is read-only."""
    provider.set_name(uin, payload.get("name", ""))


@router.delete("/{uin}")
async def delete_user(uin: str, provider: UserProviderDep) -> None:
    """Always rejected: the directory is read-only."""
    provider.delete_user(uin)
