"""Message API operations.

This module provides message sending:
- Plain text messages
- Rich text (post) messages
- Interactive cards
- Image messages
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..core.logger import get_logger
from .models import MessageResponse, Post
from .request import JSONBody

logger = get_logger("api.message")


def resolve_target(target: str) -> dict[str, str]:
    """Map a message target to the request field that addresses it.

    ``oc_`` identifiers are chats, ``ou_`` identifiers are open IDs, anything
    containing ``@`` is an email address and everything else is a user ID.

    Raises:
        ValueError: If the target is empty.
    """
    target = target.strip()
    if not target:
        raise ValueError("empty message target")
    if target.startswith("oc_"):
        return {"chat_id": target}
    if target.startswith("ou_"):
        return {"open_id": target}
    if "@" in target:
        return {"email": target}
    return {"user_id": target}


class LarkMessageMixin:
    """Mixin providing message sending for the Lark API.

    Every ``target`` may be an open_id, user_id, email or chat_id.

    This mixin should be used with a class that has:
    - self.request(path, body, response_model, ...) -> APIResponse
    """

    SEND_MESSAGE_URL = "/message/v4/send/"

    def request(self, *args: Any, **kwargs: Any) -> Any:
        """Execute an API call. To be implemented by main class."""
        raise NotImplementedError

    def _send(self, target: str, msg_type: str, payload: dict[str, Any]) -> str:
        body = {**resolve_target(target), "msg_type": msg_type, **payload}
        data = self.request(self.SEND_MESSAGE_URL, JSONBody(body), MessageResponse)
        logger.debug("Sent %s message %s", msg_type, data.data.message_id)
        return data.data.message_id

    def send_message(self, target: str, text: str) -> str:
        """Send a plain text message.

        Returns:
            The message_id of the sent message.
        """
        return self._send(target, "text", {"content": {"text": text}})

    def send_post(self, target: str, post: Post | Mapping[str, Any]) -> str:
        """Send a rich text message."""
        if isinstance(post, Post):
            post_body: Any = post.to_dict()
        else:
            post_body = dict(post)
        return self._send(target, "post", {"content": {"post": post_body}})

    def send_card(self, target: str, card: Mapping[str, Any]) -> str:
        """Send an interactive card. The card is serialized verbatim."""
        return self._send(target, "interactive", {"card": dict(card)})

    def send_image_message(self, target: str, image_key: str) -> str:
        """Send an image previously uploaded with ``upload_message_image``."""
        return self._send(target, "image", {"content": {"image_key": image_key}})
