"""Policy document codec.

Usage:
    from wacl.codec import PolicyCodec

    codec = PolicyCodec()
    permission_set = codec.parse(document, acl_url)
    document = codec.serialize(permission_set)
"""

from wacl.codec.json_codec import JSON_CONTENT_TYPES, PolicyCodec, fragment_for
from wacl.codec.models import (
    AuthorizationDocument,
    GroupDocument,
    GroupListingDocument,
    PolicyDocument,
)

__all__ = [
    "PolicyCodec",
    "JSON_CONTENT_TYPES",
    "fragment_for",
    "AuthorizationDocument",
    "PolicyDocument",
    "GroupDocument",
    "GroupListingDocument",
]
