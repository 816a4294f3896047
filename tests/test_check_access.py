"""Tests for access resolution."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from wacl.acl import (
    AccessMode,
    GroupListing,
    MissingDependency,
    Permission,
    PermissionSet,
)

ALICE = "https://alice.example.com/#me"
BOB = "https://bob.example.com/profile/card#me"
CAROL = "https://carol.example.com/#me"
CONTAINER_URL = "https://alice.example.com/docs/"
CONTAINER_ACL_URL = "https://alice.example.com/docs/.acl"
FILE1 = "https://alice.example.com/docs/file1"
FILE2 = "https://alice.example.com/docs/file2"
GROUP = "https://alice.example.com/work-groups#Accounting"


def listing_fetcher(**listings):
    """Fetcher returning prepared listings by group id."""
    async def fetch(group_id, **options):
        return listings.get(group_id)
    return fetch


class TestDirectAccess:
    """Test public and individual grants."""

    @pytest.mark.asyncio
    async def test_direct_grant(self):
        """A direct Read grant allows Read on that resource only."""
        ps = PermissionSet(FILE1, FILE1 + ".acl")
        ps.add_permission(ALICE, AccessMode.READ)

        assert await ps.check_access(FILE1, ALICE, AccessMode.READ)
        assert not await ps.check_access(FILE1, ALICE, AccessMode.WRITE)
        assert not await ps.check_access("https://alice.example.com/other/file2", ALICE, AccessMode.READ)

    @pytest.mark.asyncio
    async def test_append_implied_by_write(self):
        """Write grants Append."""
        ps = PermissionSet(FILE1, FILE1 + ".acl")
        ps.add_permission(ALICE, AccessMode.WRITE)
        assert await ps.check_access(FILE1, ALICE, AccessMode.APPEND)

    @pytest.mark.asyncio
    async def test_other_agent_denied(self):
        """Grants are per agent."""
        ps = PermissionSet(CONTAINER_URL, CONTAINER_ACL_URL)
        ps.add_permission(ALICE, [AccessMode.READ, AccessMode.WRITE])
        assert await ps.check_access(CONTAINER_URL, ALICE, AccessMode.WRITE)
        assert not await ps.check_access(CONTAINER_URL, "https://someone.else.com/", AccessMode.WRITE)

    @pytest.mark.asyncio
    async def test_inherited_grant(self):
        """A container's inherited grant applies to its contents."""
        ps = PermissionSet(CONTAINER_URL, CONTAINER_ACL_URL)
        ps.add_permission_for(CONTAINER_URL, True, ALICE, AccessMode.READ)

        assert await ps.check_access(FILE1, ALICE, AccessMode.READ)
        assert not await ps.check_access(FILE1, BOB, AccessMode.READ)

    @pytest.mark.asyncio
    async def test_direct_wins_over_inherited(self):
        """A direct permission on the resource hides inherited ones."""
        ps = PermissionSet(CONTAINER_URL, CONTAINER_ACL_URL)
        ps.add_permission_for(CONTAINER_URL, True, ALICE, [AccessMode.READ, AccessMode.WRITE])
        ps.add_permission_for(FILE1, False, ALICE, AccessMode.READ)

        assert not await ps.check_access(FILE1, ALICE, AccessMode.WRITE)
        assert await ps.check_access(FILE2, ALICE, AccessMode.WRITE)

    @pytest.mark.asyncio
    async def test_most_specific_container_wins(self):
        """The longest matching container applies."""
        ps = PermissionSet(CONTAINER_URL, CONTAINER_ACL_URL)
        ps.add_permission_for("https://alice.example.com/", True, ALICE, [AccessMode.READ, AccessMode.WRITE])
        ps.add_permission_for(CONTAINER_URL, True, ALICE, AccessMode.READ)

        assert not await ps.check_access(FILE1, ALICE, AccessMode.WRITE)
        assert await ps.check_access("https://alice.example.com/photos/cat.jpg", ALICE, AccessMode.WRITE)

    @pytest.mark.asyncio
    async def test_public_access(self):
        """Public grants allow any agent, inherited or direct."""
        ps = PermissionSet(CONTAINER_URL, CONTAINER_ACL_URL)
        ps.add_single_permission(Permission(CONTAINER_URL, inherited=True).set_public().add_mode(AccessMode.READ))
        assert await ps.check_access(FILE1, "https://someone.else.com/", AccessMode.READ)

        ps = PermissionSet()
        ps.add_single_permission(Permission(FILE1).set_public().add_mode(AccessMode.READ))
        assert await ps.check_access(FILE1, "https://someone.else.com/", AccessMode.READ)
        assert await ps.check_access(FILE1, None, AccessMode.READ)
        assert not await ps.check_access(FILE1, None, AccessMode.WRITE)

    @pytest.mark.asyncio
    async def test_control_grants_policy_document(self):
        """Control on a resource gives full access to its policy document."""
        ps = PermissionSet(FILE1, FILE1 + ".acl")
        ps.add_permission(ALICE, [AccessMode.READ, AccessMode.CONTROL])

        assert await ps.check_access(FILE1 + ".acl", ALICE, AccessMode.WRITE)
        assert await ps.check_access(FILE1 + ".acl", ALICE, AccessMode.READ)
        assert not await ps.check_access(FILE1, ALICE, AccessMode.WRITE)
        assert not await ps.check_access(FILE1 + ".acl", BOB, AccessMode.READ)

    def test_sync_fast_path(self):
        """Public and individual checks do not need an event loop."""
        ps = PermissionSet(FILE1)
        ps.add_permission(ALICE, AccessMode.READ)
        assert ps.check_access_sync(FILE1, ALICE, AccessMode.READ)
        assert not ps.check_access_sync(FILE1, BOB, AccessMode.READ)


class TestOriginEnforcement:
    """Test strict origin checking."""

    @pytest.fixture
    def permission_set(self):
        ps = PermissionSet(FILE1, FILE1 + ".acl", strict_origin=True, host="https://alice.example.com")
        ps.add_permission(ALICE, AccessMode.READ)
        return ps

    @pytest.mark.asyncio
    async def test_foreign_origin_denied(self, permission_set):
        """An unlisted cross origin is denied even though the mode is granted."""
        assert not await permission_set.check_access(
            FILE1, ALICE, AccessMode.READ, origin="https://evil.example"
        )

    @pytest.mark.asyncio
    async def test_listed_origin_allowed(self, permission_set):
        """Listing the origin on the permission flips the decision."""
        permission_set.permission_for(ALICE).add_origin("https://app.example")
        assert await permission_set.check_access(FILE1, ALICE, AccessMode.READ, origin="https://app.example")

    @pytest.mark.asyncio
    async def test_same_origin_and_no_origin(self, permission_set):
        """Same-origin and origin-less requests are not restricted."""
        assert await permission_set.check_access(
            FILE1, ALICE, AccessMode.READ, origin="https://alice.example.com"
        )
        assert await permission_set.check_access(FILE1, ALICE, AccessMode.READ)

    @pytest.mark.asyncio
    async def test_enforcement_disabled(self, permission_set):
        """Origins are ignored unless strict origin is on."""
        assert await permission_set.check_access(
            FILE1, ALICE, AccessMode.READ, strict_origin=False, origin="https://evil.example"
        )

    @pytest.mark.asyncio
    async def test_public_ignores_origin(self):
        """Public grants are not origin restricted."""
        ps = PermissionSet(FILE1, strict_origin=True, origin="https://evil.example", host="https://h.example")
        ps.add_public_permission(AccessMode.READ)
        assert await ps.check_access(FILE1, ALICE, AccessMode.READ)


class TestGroupAccess:
    """Test access through group membership."""

    @pytest.fixture
    def permission_set(self):
        ps = PermissionSet(FILE2, FILE2 + ".acl")
        ps.add_group_permission(GROUP, AccessMode.WRITE)
        return ps

    @pytest.mark.asyncio
    async def test_member_granted(self, permission_set):
        """A listed member gets the group's modes; Write implies Append."""
        fetcher = AsyncMock(return_value=GroupListing(GROUP, members=[BOB]))

        assert await permission_set.check_access(FILE2, BOB, AccessMode.APPEND, group_loader=fetcher)
        fetcher.assert_awaited_once_with(GROUP)
        assert permission_set.groups_for_member(BOB) == [GROUP]

    @pytest.mark.asyncio
    async def test_non_member_denied(self, permission_set):
        """Agents not in the listing are denied."""
        fetcher = listing_fetcher(**{GROUP: GroupListing(GROUP, members=[BOB])})
        assert not await permission_set.check_access(FILE2, CAROL, AccessMode.APPEND, group_loader=fetcher)

    @pytest.mark.asyncio
    async def test_absent_listing_denies(self, permission_set):
        """An absent listing is a deny, not an error."""
        fetcher = AsyncMock(return_value=None)
        assert not await permission_set.check_access(FILE2, BOB, AccessMode.APPEND, group_loader=fetcher)

    @pytest.mark.asyncio
    async def test_failing_fetch_denies(self, permission_set):
        """A failing fetch is a deny, not an error."""
        fetcher = AsyncMock(side_effect=TimeoutError("slow"))
        assert not await permission_set.check_access(FILE2, BOB, AccessMode.WRITE, group_loader=fetcher)

    @pytest.mark.asyncio
    async def test_listings_are_cached(self, permission_set):
        """Loaded listings are reused by later checks."""
        fetcher = AsyncMock(return_value=GroupListing(GROUP, members=[BOB]))
        assert await permission_set.check_access(FILE2, BOB, AccessMode.WRITE, group_loader=fetcher)
        assert await permission_set.check_access(FILE2, BOB, AccessMode.WRITE, group_loader=fetcher)
        assert fetcher.await_count == 1

    @pytest.mark.asyncio
    async def test_missing_loader(self, permission_set):
        """Group grants need a loader unless listings are cached."""
        with pytest.raises(MissingDependency):
            await permission_set.check_access(FILE2, BOB, AccessMode.WRITE)

        permission_set.add_group_listing(GroupListing(GROUP, members=[BOB]))
        assert await permission_set.check_access(FILE2, BOB, AccessMode.WRITE)

    @pytest.mark.asyncio
    async def test_one_failing_group_does_not_block_others(self):
        """An unreachable listing only affects its own group."""
        other_group = "https://other.example.com/groups#Sales"
        ps = PermissionSet(FILE2)
        ps.add_group_permission(GROUP, AccessMode.READ)
        ps.add_group_permission(other_group, AccessMode.READ)

        async def fetch(group_id, **options):
            if group_id == GROUP:
                raise ConnectionError("unreachable")
            return GroupListing(other_group, members=[BOB])

        assert await ps.check_access(FILE2, BOB, AccessMode.READ, group_loader=fetch)

    @pytest.mark.asyncio
    async def test_groups_load_concurrently(self):
        """Listings of distinct groups are fetched at the same time."""
        groups = [f"https://example.com/groups#g{i}" for i in range(3)]
        ps = PermissionSet(FILE2)
        for group_id in groups:
            ps.add_group_permission(group_id, AccessMode.READ)

        in_flight = 0
        peak = 0

        async def fetch(group_id, **options):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return GroupListing(group_id, members=[BOB] if group_id == groups[-1] else [])

        assert await ps.check_access(FILE2, BOB, AccessMode.READ, group_loader=fetch)
        assert peak == len(groups)

    @pytest.mark.asyncio
    async def test_group_origin_check(self, permission_set):
        """Group grants are origin restricted like agent grants."""
        permission_set.strict_origin = True
        permission_set.host = "https://alice.example.com"
        fetcher = AsyncMock(return_value=GroupListing(GROUP, members=[BOB]))

        assert not await permission_set.check_access(
            FILE2, BOB, AccessMode.WRITE, group_loader=fetcher, origin="https://app.example"
        )
        permission_set.permission_for(GROUP).add_origin("https://app.example")
        assert await permission_set.check_access(
            FILE2, BOB, AccessMode.WRITE, group_loader=fetcher, origin="https://app.example"
        )
