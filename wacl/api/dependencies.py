"""FastAPI dependency helpers."""

import logging
from typing import Any, Awaitable, Callable

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from wacl.acl.group_listing import GroupFetcher
from wacl.acl.modes import AccessMode
from wacl.acl.permission_set import PermissionSet
from wacl.config import AclSettings, get_settings

logger = logging.getLogger(__name__)

PermissionsLoader = Callable[[str], Awaitable[PermissionSet]]


class AccessDecision(BaseModel):
    """Result of an access check for a request."""

    allowed: bool = Field(description="Whether access is allowed")
    mode: AccessMode = Field(description="Access mode that was checked")
    resource_url: str = Field(description="Resource that was accessed")
    agent_id: str | None = Field(default=None, description="Requesting agent, None if anonymous")


def agent_from_state(request: Request) -> str | None:
    """Agent id placed on ``request.state.agent_id`` by authentication."""
    return getattr(request.state, "agent_id", None)


def resource_url_for(request: Request) -> str:
    """Request url without query string or fragment."""
    return str(request.url.replace(query="", fragment=""))


def require_access(
    mode: AccessMode | str,
    permissions_loader: PermissionsLoader,
    agent_loader: Callable[..., Any] = agent_from_state,
    group_loader: GroupFetcher | None = None,
    settings: AclSettings | None = None,
):
    """FastAPI dependency to require an access mode on the requested resource.

    Usage:
        client = PolicyClient(store)

        @app.get("/docs/{name}")
        async def read_doc(
            name: str,
            _: AccessDecision = Depends(require_access(AccessMode.READ, client.get_permissions)),
        ):
            pass
    """
    mode = AccessMode.parse(mode)

    async def check(
        request: Request,
        agent_id: str | None = Depends(agent_loader),
    ) -> AccessDecision:
        config = settings or get_settings()
        resource_url = resource_url_for(request)
        host = config.server_host or f"{request.url.scheme}://{request.url.netloc}"

        permission_set = await permissions_loader(resource_url)
        allowed = await permission_set.check_access(
            resource_url,
            agent_id,
            mode,
            group_loader=group_loader,
            strict_origin=config.strict_origin,
            origin=request.headers.get("origin"),
            host=host,
        )

        if not allowed:
            logger.info(
                "Access DENIED: agent=%s mode=%s resource=%s",
                agent_id, mode.short_name, resource_url,
            )
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED if agent_id is None else status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "unauthorized" if agent_id is None else "forbidden",
                    "message": f"{mode.short_name} access to {resource_url} not granted",
                    "mode": mode.short_name,
                },
            )

        return AccessDecision(allowed=True, mode=mode, resource_url=resource_url, agent_id=agent_id)

    return check
