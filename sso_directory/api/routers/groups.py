"""
Group endpoints; every call goes to the SSO service.
"""

from fastapi import APIRouter

from sso_directory.api.dependencies import GroupProviderDep
from sso_directory.models import DirectoryGroup

router = APIRouter(tags=["groups"])


@router.get("/", response_model=list[str])
async def list_group_names(provider: GroupProviderDep) -> list[str]:
    """Names of all groups."""
    return await provider.get_group_names()


@router.get("/{name}", response_model=DirectoryGroup)
async def get_group(name: str, provider: GroupProviderDep) -> DirectoryGroup:
    """Get a group by name."""
    return await provider.get_group(name)


@router.get("/{name}/members", response_model=list[str])
async def get_group_members(name: str, provider: GroupProviderDep) -> list[str]:
    """Identifiers of the members of a group."""
    return await provider.get_group_members(name)
