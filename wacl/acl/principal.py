"""Principals a permission can be granted to."""

from dataclasses import dataclass
from enum import Enum

from wacl.acl.errors import InvalidArgument
from wacl.acl.modes import EVERYONE


class PrincipalKind(str, Enum):
    """Kind of identity a permission is granted to."""

    AGENT = "agent"
    GROUP = "group"
    PUBLIC = "public"


@dataclass(frozen=True)
class Principal:
    """Exactly one of Agent(id), Group(id) or Public.

    A group (or agent) equal to the well-known ``EVERYONE`` identifier is
    normalized to Public, so both spellings resolve and compare the same.

    Usage:
        Principal.agent("https://alice.example.com/#me")
        Principal.group("https://example.com/groups#dev")
        Principal.public()
    """

    kind: PrincipalKind
    id: str

    @classmethod
    def agent(cls, agent_id: str) -> "Principal":
        if agent_id == EVERYONE:
            return cls.public()
        return cls(PrincipalKind.AGENT, _require_id(agent_id))

    @classmethod
    def group(cls, group_id: str) -> "Principal":
        if group_id == EVERYONE:
            return cls.public()
        return cls(PrincipalKind.GROUP, _require_id(group_id))

    @classmethod
    def public(cls) -> "Principal":
        return cls(PrincipalKind.PUBLIC, EVERYONE)

    @property
    def is_agent(self) -> bool:
        return self.kind == PrincipalKind.AGENT

    @property
    def is_group(self) -> bool:
        return self.kind == PrincipalKind.GROUP

    @property
    def is_public(self) -> bool:
        return self.kind == PrincipalKind.PUBLIC

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


def _require_id(value: str) -> str:
    if not value or not isinstance(value, str):
        raise InvalidArgument(f"Invalid principal id: {value!r}")
    return value
