"""Group listings.

A group principal's membership roster, fetched on demand while resolving
access.
"""

import logging
from typing import Any, Awaitable, Callable, Iterable

logger = logging.getLogger(__name__)


class GroupListing:
    """Members of one group, keyed by agent id.

    Attributes:
        id: Group id as it appears in the policy
            (e.g. ``https://example.com/groups#management``)
        uid: Optional opaque group label
        members: Agent ids of the group's members
        listing_url: Document the group is described in
    """

    def __init__(
        self,
        id: str | None = None,
        uid: str | None = None,
        members: Iterable[str] | None = None,
        listing_url: str | None = None,
    ):
        self.id = id
        self.uid = uid
        self.members: set[str] = set(members or ())
        self.listing_url = listing_url or (id.split("#", 1)[0] if id else None)

    @classmethod
    async def load_from(
        cls,
        group_id: str,
        fetcher: "GroupFetcher",
        **options: Any,
    ) -> "GroupListing | None":
        """Load a group listing through the injected fetcher.

        Fetch and parse failures are logged and reported as None. Callers
        treat a missing listing as having no members, which denies access
        through that group without failing the whole resolution.
        """
        try:
            listing = await fetcher(group_id, **options)
        except Exception as e:
            logger.warning("Failed to load group listing %s: %s", group_id, e)
            return None

        if listing is None:
            logger.warning("Group listing %s not available", group_id)
            return None
        if listing.id is None:
            listing.id = group_id
        return listing

    @classmethod
    def from_document(
        cls,
        group_id: str,
        document: str | bytes | dict[str, Any],
        listing_url: str | None = None,
    ) -> "GroupListing":
        """Build the listing of one group from a group listing document.

        Raises:
            PolicyDocumentError: If the document is malformed
        """
        from wacl.codec.json_codec import PolicyCodec

        return PolicyCodec().parse_group_listing(document, group_id, listing_url)

    def add_member(self, agent_id: str) -> "GroupListing":
        self.members.add(agent_id)
        return self

    def has_member(self, agent_id: str) -> bool:
        return agent_id in self.members

    @property
    def count(self) -> int:
        return len(self.members)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self.members

    def __repr__(self) -> str:
        return f"<GroupListing {self.id} members={self.count}>"


GroupFetcher = Callable[..., Awaitable[GroupListing | None]]
