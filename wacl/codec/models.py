"""Policy document models.

JSON rendition of Web Access Control documents. Field aliases follow the
ACL vocabulary terms (``accessTo``, ``agentGroup`` ...). Any multi-valued
term also accepts a single string.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

ACL_CONTEXT = "http://www.w3.org/ns/auth/acl"


def _listify(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


class AuthorizationDocument(BaseModel):
    """One ``acl:Authorization`` block.

    May name several agents, groups and resources. Parsing splits it into
    one Permission per principal and resource.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = Field(default=None, description="Fragment id, e.g. '#owner'")
    type: str = Field(default="Authorization")
    agent: list[str] = Field(default_factory=list, description="Agent ids and mailto: aliases")
    agent_group: list[str] = Field(default_factory=list, alias="agentGroup")
    agent_class: list[str] = Field(default_factory=list, alias="agentClass")
    access_to: list[str] = Field(default_factory=list, alias="accessTo")
    default: list[str] = Field(default_factory=list, description="Containers whose contents inherit")
    default_for_new: list[str] = Field(default_factory=list, alias="defaultForNew")
    mode: list[str] = Field(default_factory=list)
    origin: list[str] = Field(default_factory=list)

    @field_validator(
        "agent",
        "agent_group",
        "agent_class",
        "access_to",
        "default",
        "default_for_new",
        "mode",
        "origin",
        mode="before",
    )
    @classmethod
    def _as_list(cls, value: Any) -> Any:
        return _listify(value)


class PolicyDocument(BaseModel):
    """A whole policy document."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    context: str = Field(default=ACL_CONTEXT, alias="@context")
    authorizations: list[AuthorizationDocument] = Field(default_factory=list)


class GroupDocument(BaseModel):
    """A ``vcard:Group`` and its members."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    type: str | None = Field(default=None, description="Expected to be 'Group'")
    uid: str | None = Field(default=None, alias="hasUID")
    members: list[str] = Field(default_factory=list, alias="hasMember")

    @field_validator("members", mode="before")
    @classmethod
    def _as_list(cls, value: Any) -> Any:
        return _listify(value)


class GroupListingDocument(BaseModel):
    """A group listing document, which may describe several groups."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    groups: list[GroupDocument] = Field(default_factory=list)
