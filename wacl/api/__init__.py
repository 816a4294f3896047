"""FastAPI integration.

Usage:
    from wacl.api import require_access

    @app.put("/docs/{name}")
    async def write_doc(
        name: str,
        _: AccessDecision = Depends(require_access(AccessMode.WRITE, client.get_permissions)),
    ):
        pass
"""

from wacl.api.dependencies import (
    AccessDecision,
    agent_from_state,
    require_access,
    resource_url_for,
)

__all__ = [
    "AccessDecision",
    "agent_from_state",
    "require_access",
    "resource_url_for",
]
