"""JSON policy codec.

Converts policy documents to and from PermissionSets, and group listing
documents to GroupListings.
"""

import hashlib
import json
import logging
from typing import Any
from urllib.parse import urljoin

from pydantic import ValidationError

from wacl.acl.errors import AclError, InvalidArgument, PolicyDocumentError
from wacl.acl.group_listing import GroupListing
from wacl.acl.modes import (
    ACL_NAMESPACE,
    EVERYONE,
    FOAF_NAMESPACE,
    VCARD_NAMESPACE,
    AccessMode,
)
from wacl.acl.permission import MAILTO_PREFIX, Permission
from wacl.acl.permission_set import DEFAULT_ACL_SUFFIX, PermissionSet
from wacl.codec.models import (
    AuthorizationDocument,
    GroupListingDocument,
    PolicyDocument,
)

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPES = ("application/json", "application/ld+json")

_PREFIXES = {
    "acl:": ACL_NAMESPACE,
    "foaf:": FOAF_NAMESPACE,
    "vcard:": VCARD_NAMESPACE,
}

_GROUP_TYPES = ("Group", "vcard:Group", VCARD_NAMESPACE + "Group")


def fragment_for(permission: Permission) -> str:
    """Stable fragment id for a serialized permission."""
    principal_id, resource_url, access_type = permission.identity_key()
    digest = hashlib.sha1(f"{principal_id}-{resource_url}-{access_type.value}".encode("utf-8"))
    return "#" + digest.hexdigest()[:12]


class PolicyCodec:
    """Reads and writes JSON policy documents.

    Usage:
        codec = PolicyCodec()
        ps = codec.parse(document, "https://example.com/docs/.acl", is_container=True)
        document = codec.serialize(ps)
    """

    def __init__(self, acl_suffix: str = DEFAULT_ACL_SUFFIX):
        self.acl_suffix = acl_suffix

    # Policy documents

    def parse(
        self,
        document: str | bytes | dict[str, Any],
        base_url: str,
        *,
        resource_url: str | None = None,
        acl_url: str | None = None,
        is_container: bool = False,
        **set_options: Any,
    ) -> PermissionSet:
        """Parse a policy document into a PermissionSet.

        Each authorization yields one Permission per principal and resource:
        ``accessTo`` resources become direct permissions, ``default`` (and
        ``defaultForNew``) containers inherited ones. ``mailto:`` agents are
        kept as mail aliases of the authorization's agents.

        Args:
            document: JSON text or already decoded JSON
            base_url: Url the document was loaded from; relative ids are
                resolved against it
            resource_url: Resource the policy applies to (derived from
                base_url by dropping the policy suffix if omitted)
            acl_url: Url of the policy document (defaults to base_url)
            is_container: Whether the resource is a container
            **set_options: Passed through to PermissionSet

        Raises:
            PolicyDocumentError: If the document is malformed
        """
        policy = self._load(document, PolicyDocument)
        acl_url = acl_url or base_url
        if resource_url is None and acl_url.endswith(self.acl_suffix):
            resource_url = acl_url[: -len(self.acl_suffix)]

        set_options.setdefault("codec", self)
        permission_set = PermissionSet(resource_url, acl_url, is_container, **set_options)
        for authorization in policy.authorizations:
            self._add_authorization(permission_set, authorization, base_url)
        return permission_set

    def _add_authorization(
        self,
        permission_set: PermissionSet,
        authorization: AuthorizationDocument,
        base_url: str,
    ) -> None:
        try:
            modes = [AccessMode.parse(self._expand(mode)) for mode in authorization.mode]
        except AclError as e:
            raise PolicyDocumentError(f"Invalid mode in authorization {authorization.id}: {e.message}") from e
        if not modes:
            logger.debug("Skipping authorization %s with no modes", authorization.id)
            return

        mail_aliases = [a for a in authorization.agent if a.startswith(MAILTO_PREFIX)]
        principals: list[str | GroupListing] = [
            self._resolve(a, base_url)
            for a in authorization.agent
            if not a.startswith(MAILTO_PREFIX)
        ]
        for agent_class in authorization.agent_class:
            if self._resolve(agent_class, base_url) == EVERYONE:
                principals.append(EVERYONE)
            else:
                logger.debug("Ignoring unsupported agent class %s", agent_class)
        principals.extend(
            GroupListing(id=self._resolve(group, base_url))
            for group in authorization.agent_group
        )

        inherited = authorization.default + authorization.default_for_new
        for principal in principals:
            for url in authorization.access_to:
                permission_set.add_permission_for(
                    self._resolve(url, base_url), False, principal,
                    modes, authorization.origin, mail_aliases,
                )
            for url in inherited:
                permission_set.add_permission_for(
                    self._resolve(url, base_url), True, principal,
                    modes, authorization.origin, mail_aliases,
                )

    def serialize(self, permission_set: PermissionSet, content_type: str = "application/json") -> str:
        """Serialize a PermissionSet into a JSON policy document.

        Invalid and virtual permissions are skipped.

        Raises:
            InvalidArgument: If the content type is not a JSON type
        """
        if content_type not in JSON_CONTENT_TYPES:
            raise InvalidArgument(f"Unsupported policy content type: {content_type}")

        authorizations = [
            self._authorization_for(permission)
            for permission in permission_set.all_permissions()
            if permission.is_valid()
        ]
        policy = PolicyDocument(authorizations=authorizations)
        return policy.model_dump_json(by_alias=True, indent=2)

    def _authorization_for(self, permission: Permission) -> AuthorizationDocument:
        agents: list[str] = []
        if permission.is_agent():
            agents.append(permission.agent)
            agents.extend(MAILTO_PREFIX + alias for alias in permission.mail_aliases)

        return AuthorizationDocument(
            id=fragment_for(permission),
            agent=agents,
            agent_group=[permission.group] if permission.is_group() and not permission.is_public() else [],
            agent_class=[EVERYONE] if permission.is_public() else [],
            access_to=[] if permission.is_inherited() else [permission.resource_url],
            default=[permission.resource_url] if permission.is_inherited() else [],
            mode=[mode.value for mode in permission.all_modes()],
            origin=permission.all_origins(),
        )

    # Group listings

    def parse_group_listing(
        self,
        document: str | bytes | dict[str, Any],
        group_id: str,
        listing_url: str | None = None,
    ) -> GroupListing:
        """Build the listing of one group from a group listing document.

        A document may describe several groups; only ``group_id`` is read.
        A document that does not mention the group yields an empty listing.

        Raises:
            PolicyDocumentError: If the document is malformed
        """
        listing_url = listing_url or group_id.split("#", 1)[0]
        data = self._decode(document)
        if isinstance(data, dict) and "groups" not in data and "id" in data:
            data = {"groups": [data]}
        listing_document = self._validate(data, GroupListingDocument)

        listing = GroupListing(id=group_id, listing_url=listing_url)
        for group in listing_document.groups:
            if self._resolve(group.id, listing_url) != group_id:
                continue
            if group.type not in _GROUP_TYPES:
                logger.warning("Possibly invalid group %s, missing type vcard:Group", group_id)
            listing.uid = group.uid
            for member in group.members:
                listing.add_member(self._resolve(member, listing_url))
            return listing

        logger.warning("Group %s not described in %s", group_id, listing_url)
        return listing

    # Helpers

    def _load(self, document: str | bytes | dict[str, Any], model: type) -> Any:
        return self._validate(self._decode(document), model)

    @staticmethod
    def _decode(document: str | bytes | dict[str, Any]) -> Any:
        if isinstance(document, (str, bytes)):
            try:
                return json.loads(document)
            except ValueError as e:
                raise PolicyDocumentError(f"Policy document is not valid JSON: {e}") from e
        return document

    @staticmethod
    def _validate(data: Any, model: type) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise PolicyDocumentError(f"Invalid {model.__name__}: {e}") from e

    @staticmethod
    def _expand(value: str) -> str:
        for prefix, namespace in _PREFIXES.items():
            if value.startswith(prefix):
                return namespace + value[len(prefix):]
        return value

    def _resolve(self, value: str, base_url: str) -> str:
        return urljoin(base_url, self._expand(value))
