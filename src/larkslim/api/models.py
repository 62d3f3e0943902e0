"""Data models for the Lark open API.

This module contains the token record, the response envelopes returned by the
platform, and the rich-text (post) content tree sent by callers.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, RootModel

# Envelope messages that mean success
SUCCESS_MESSAGES = frozenset({"ok", "success"})


@dataclass(frozen=True)
class TokenInfo:
    """Tenant access token with expiration tracking.

    Attributes:
        token: The access token string.
        expires_at: Unix timestamp after which the token must not be used.
            Already includes the configured safety skew.
        ttl: Lifetime in seconds reported by the platform.
    """

    token: str
    expires_at: float
    ttl: int = 0

    def is_expired(self, now: float | None = None) -> bool:
        """Check if the token can no longer be attached to outbound calls."""
        if now is None:
            now = time.time()
        return now >= self.expires_at


# ----------------------------------------------------------------------
# Response envelopes
# ----------------------------------------------------------------------


class APIResponse(BaseModel):
    """Common envelope carried by every open API response."""

    model_config = ConfigDict(extra="ignore")

    code: int = 0
    msg: str = ""

    @property
    def ok(self) -> bool:
        return self.msg in SUCCESS_MESSAGES


class AccessTokenResponse(APIResponse):
    expire: int = 0
    tenant_access_token: str = ""


class ChatMember(BaseModel):
    model_config = ConfigDict(extra="ignore")

    open_id: str = ""


class Group(BaseModel):
    """Group chat information."""

    model_config = ConfigDict(extra="ignore")

    avatar: str = ""
    chat_id: str = ""
    description: str = ""
    name: str = ""
    owner_open_id: str = ""
    owner_user_id: str = ""
    members: list[ChatMember] = Field(default_factory=list)


class UserInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    open_id: str = ""


class _ChatIdData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    chat_id: str = ""


class GroupResponse(APIResponse):
    data: _ChatIdData = Field(default_factory=_ChatIdData)


class GroupInfoResponse(APIResponse):
    data: Group = Field(default_factory=Group)


class _GroupsData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    groups: list[Group] = Field(default_factory=list)
    has_more: bool = False
    page_token: str = ""


class GroupsResponse(APIResponse):
    data: _GroupsData = Field(default_factory=_GroupsData)


class _MessageData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message_id: str = ""


class MessageResponse(APIResponse):
    data: _MessageData = Field(default_factory=_MessageData)


class _UserInfosData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_infos: list[UserInfo] = Field(default_factory=list)


class UserInfoResponse(APIResponse):
    data: _UserInfosData = Field(default_factory=_UserInfosData)


class _ImageData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    image_key: str = ""


class ImageResponse(APIResponse):
    data: _ImageData = Field(default_factory=_ImageData)


def format_groups(groups: Iterable[Group]) -> str:
    """Render groups as numbered ``"1. name: chat_id"`` lines."""
    lines = [f"{i}. {group.name}: {group.chat_id}" for i, group in enumerate(groups, start=1)]
    return "\n".join(lines) if lines else "no groups"


def format_users(users: Iterable[UserInfo]) -> str:
    """Render users as numbered ``"1. name: open_id"`` lines."""
    lines = [f"{i}. {user.name}: {user.open_id}" for i, user in enumerate(users, start=1)]
    return "\n".join(lines) if lines else "no users"


# ----------------------------------------------------------------------
# Rich text content
# ----------------------------------------------------------------------


class PostTag(BaseModel):
    """A tagged content span inside a post line.

    Empty fields are omitted on serialization, so
    ``PostTag(tag="text", text="Name: ")`` becomes
    ``{"tag": "text", "text": "Name: "}``.
    """

    tag: str = ""
    un_escape: bool = False
    text: str = ""
    href: str = ""
    user_id: str = ""
    image_key: str = ""
    width: int = 0
    height: int = 0

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_defaults=True)


class PostOfLocale(BaseModel):
    """Title and lines of a post for one locale."""

    title: str = ""
    content: list[list[PostTag]] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "content": [[tag.to_dict() for tag in line] for line in self.content],
        }


class Post(RootModel[dict[str, PostOfLocale]]):
    """Rich text message keyed by locale code (``zh_cn``, ``en_us``, ...).

    Example:
        ```python
        post = Post(
            {
                "zh_cn": PostOfLocale(
                    title="post",
                    content=[[PostTag(tag="text", text="Name: ")]],
                )
            }
        )
        ```
    """

    def to_dict(self) -> dict[str, Any]:
        return {locale: body.to_dict() for locale, body in self.root.items()}
