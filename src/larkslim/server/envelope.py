"""Inbound callback envelopes.

Every decoded callback body normalizes to one of three shapes:

- ``URLVerification``: the challenge handshake sent when a callback URL is configured
- ``EventCallback``: a subscribed event, with its fields flattened into ``EventDetail``
- ``CardAction``: the legacy interactive card callback carrying an ``action`` value
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from ..core.exceptions import MalformedEnvelope, TokenMismatch, UnknownEnvelope

URL_VERIFICATION = "url_verification"
EVENT_CALLBACK = "event_callback"

_LEADING_MENTIONS = re.compile(r"^\s*(?:@\S+\s*)+")


def strip_leading_mentions(text: str) -> str:
    """Remove ``@mention`` tokens at the start of a message text."""
    return _LEADING_MENTIONS.sub("", text, count=1).strip()


@dataclass(frozen=True)
class EventDetail:
    """Flattened fields of an ``event_callback`` event."""

    chat_id: str = ""
    type: str = ""
    msg_type: str = ""
    text: str = ""
    text_without_at_bot: str = ""
    open_id: str = ""
    user_open_id: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_mapping(cls, event: Mapping[str, Any] | None) -> EventDetail:
        event = event or {}
        text = _as_str(event.get("text"))
        without_at = event.get("text_without_at_bot")
        return cls(
            chat_id=_as_str(event.get("open_chat_id")),
            type=_as_str(event.get("type")),
            msg_type=_as_str(event.get("msg_type")),
            text=text,
            text_without_at_bot=(
                _as_str(without_at) if without_at is not None else strip_leading_mentions(text)
            ),
            open_id=_as_str(event.get("open_id")),
            user_open_id=_as_str(event.get("user_open_id")),
            raw=dict(event),
        )


@dataclass(frozen=True)
class URLVerification:
    challenge: Any
    token: str | None = None


@dataclass(frozen=True)
class EventCallback:
    token: str | None
    event: EventDetail


@dataclass(frozen=True)
class CardAction:
    action: Any


InboundEnvelope = Union[URLVerification, EventCallback, CardAction]


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def parse_body(body: bytes | str) -> dict[str, Any]:
    """Parse a callback body into a JSON object.

    Raises:
        MalformedEnvelope: The body is not JSON or not a JSON object.
    """
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError) as exc:
        raise MalformedEnvelope(f"invalid JSON body: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedEnvelope("callback body is not a JSON object")
    return payload


def classify(
    body: bytes | str | Mapping[str, Any],
    verification_token: str | None = None,
) -> InboundEnvelope:
    """Classify a decoded callback body.

    Args:
        body: Plaintext JSON body, or an already parsed mapping.
        verification_token: When set, event callbacks must carry this token.

    Raises:
        MalformedEnvelope: The body is not a JSON object.
        TokenMismatch: An event callback carries the wrong token.
        UnknownEnvelope: The shape is not recognized.
    """
    payload = dict(body) if isinstance(body, Mapping) else parse_body(body)

    envelope_type = payload.get("type")
    token = payload.get("token")
    token = token if isinstance(token, str) else None

    if envelope_type == URL_VERIFICATION:
        return URLVerification(challenge=payload.get("challenge"), token=token)

    if envelope_type == EVENT_CALLBACK:
        if verification_token and token != verification_token:
            raise TokenMismatch()
        event = payload.get("event")
        return EventCallback(
            token=token,
            event=EventDetail.from_mapping(event if isinstance(event, Mapping) else None),
        )

    if "action" in payload:
        return CardAction(action=payload["action"])

    raise UnknownEnvelope(envelope_type if isinstance(envelope_type, str) else None)
