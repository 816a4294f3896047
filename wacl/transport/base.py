"""Abstract policy store.

All policy stores must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Any

from wacl.acl.permission_set import DEFAULT_ACL_SUFFIX


class PolicyStore(ABC):
    """Reads, writes and deletes policy documents.

    Implementations:
    - HttpPolicyStore: remote documents over HTTP
    - MemoryPolicyStore: in-process documents for development and tests

    Errors propagate unchanged; this layer does not retry.
    """

    acl_suffix: str = DEFAULT_ACL_SUFFIX

    @abstractmethod
    async def get(self, url: str) -> str | None:
        """Return the document at url, or None if there is none."""
        pass

    @abstractmethod
    async def put(self, url: str, document: str, content_type: str) -> Any:
        """Store a document at url."""
        pass

    @abstractmethod
    async def delete(self, url: str) -> Any:
        """Delete the document at url."""
        pass

    async def policy_url_for(self, resource_url: str) -> str:
        """Url of the policy document governing a resource."""
        if resource_url.endswith(self.acl_suffix):
            return resource_url
        return resource_url + self.acl_suffix
