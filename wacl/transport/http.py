"""HTTP transport.

Fetches group listings and reads/writes policy documents with httpx.
"""

import logging
from typing import Any
from urllib.parse import urljoin

import httpx

from wacl.acl.errors import PolicyDocumentError
from wacl.acl.group_listing import GroupListing
from wacl.codec.json_codec import PolicyCodec
from wacl.config import AclSettings, get_settings
from wacl.transport.base import PolicyStore

logger = logging.getLogger(__name__)

ACCEPT_JSON = "application/json, application/ld+json;q=0.9"


def build_client(settings: AclSettings | None = None) -> httpx.AsyncClient:
    """Create an async client with the configured timeouts."""
    settings = settings or get_settings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout, connect=settings.connect_timeout),
        follow_redirects=True,
    )


class HttpGroupFetcher:
    """Group loader for ``PermissionSet.check_access()``.

    Ordinary failures (not found, unreachable, malformed listing) are
    logged and reported as None, which denies access through the group.

    Usage:
        fetcher = HttpGroupFetcher()
        allowed = await ps.check_access(url, agent_id, AccessMode.READ, group_loader=fetcher)
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        codec: PolicyCodec | None = None,
        settings: AclSettings | None = None,
    ):
        self._owns_client = client is None
        self._http_client = client or build_client(settings)
        self.codec = codec or PolicyCodec()

    async def __call__(self, group_id: str, **options: Any) -> GroupListing | None:
        listing_url = group_id.split("#", 1)[0]
        headers = {"Accept": ACCEPT_JSON, **options.get("headers", {})}

        try:
            response = await self._http_client.get(listing_url, headers=headers)
            if response.status_code == httpx.codes.NOT_FOUND:
                logger.warning("Group listing not found: %s", listing_url)
                return None
            response.raise_for_status()
            return self.codec.parse_group_listing(response.text, group_id, listing_url)
        except httpx.HTTPError as e:
            logger.warning("Failed to fetch group listing %s: %s", listing_url, e)
            return None
        except PolicyDocumentError as e:
            logger.warning("Malformed group listing %s: %s", listing_url, e.message)
            return None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()


class HttpPolicyStore(PolicyStore):
    """Policy documents stored on a remote server.

    Policy document urls are discovered from the resource's
    ``Link: <...>; rel="acl"`` header, falling back to the suffix rule.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        settings: AclSettings | None = None,
    ):
        settings = settings or get_settings()
        self.acl_suffix = settings.acl_suffix
        self._owns_client = client is None
        self._http_client = client or build_client(settings)

    async def get(self, url: str) -> str | None:
        response = await self._http_client.get(url, headers={"Accept": ACCEPT_JSON})
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        return response.text

    async def put(self, url: str, document: str, content_type: str) -> httpx.Response:
        response = await self._http_client.put(
            url,
            content=document.encode("utf-8"),
            headers={"Content-Type": content_type},
        )
        response.raise_for_status()
        logger.info("Saved policy document %s", url)
        return response

    async def delete(self, url: str) -> httpx.Response:
        response = await self._http_client.delete(url)
        response.raise_for_status()
        logger.info("Deleted policy document %s", url)
        return response

    async def policy_url_for(self, resource_url: str) -> str:
        if resource_url.endswith(self.acl_suffix):
            return resource_url
        response = await self._http_client.head(resource_url)
        link = response.links.get("acl")
        if link and link.get("url"):
            return urljoin(resource_url, link["url"])
        logger.debug("No acl link for %s, using suffix rule", resource_url)
        return await super().policy_url_for(resource_url)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()
