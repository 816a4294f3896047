"""In-memory policy store for development and tests."""

import logging
from typing import Any

from wacl.acl.group_listing import GroupListing
from wacl.acl.permission_set import DEFAULT_ACL_SUFFIX
from wacl.codec.json_codec import PolicyCodec
from wacl.transport.base import PolicyStore

logger = logging.getLogger(__name__)


class MemoryPolicyStore(PolicyStore):
    """Keeps documents in a dict keyed by url.

    Also serves group listing documents, so it can act as the group loader
    of a resolution:

        store.documents["https://example.com/groups"] = listing_json
        await ps.check_access(url, agent_id, mode, group_loader=store.fetch_group)
    """

    def __init__(self, documents: dict[str, str] | None = None, acl_suffix: str = DEFAULT_ACL_SUFFIX):
        self.documents: dict[str, str] = dict(documents or {})
        self.content_types: dict[str, str] = {}
        self.acl_suffix = acl_suffix
        self.codec = PolicyCodec(acl_suffix)

    async def get(self, url: str) -> str | None:
        return self.documents.get(url)

    async def put(self, url: str, document: str, content_type: str) -> Any:
        self.documents[url] = document
        self.content_types[url] = content_type
        logger.info("Stored policy document %s", url)
        return url

    async def delete(self, url: str) -> Any:
        if url not in self.documents:
            raise KeyError(url)
        del self.documents[url]
        self.content_types.pop(url, None)
        logger.info("Deleted policy document %s", url)
        return url

    async def fetch_group(self, group_id: str, **options: Any) -> GroupListing | None:
        listing_url = group_id.split("#", 1)[0]
        document = self.documents.get(listing_url)
        if document is None:
            return None
        return self.codec.parse_group_listing(document, group_id, listing_url)
