"""Chat management API operations.

This module provides group chat operations:
- List and inspect chats
- Create, update and disband chats
- Add/remove chat members
"""

from __future__ import annotations

from typing import Any

from ..core.logger import get_logger
from .models import APIResponse, Group, GroupInfoResponse, GroupResponse, GroupsResponse
from .request import JSONBody

logger = get_logger("api.chat")


class LarkChatMixin:
    """Mixin providing chat management functionality for the Lark API.

    This mixin should be used with a class that has:
    - self.request(path, body, response_model, ...) -> APIResponse
    """

    LIST_CHATS_URL = "/chat/v4/list/"
    CHAT_INFO_URL = "/chat/v4/info/"
    CREATE_CHAT_URL = "/chat/v4/create/"
    UPDATE_CHAT_URL = "/chat/v4/update/"
    DISBAND_CHAT_URL = "/chat/v4/disband/"
    ADD_CHATTER_URL = "/chat/v4/chatter/add/"
    DELETE_CHATTER_URL = "/chat/v4/chatter/delete/"

    def request(self, *args: Any, **kwargs: Any) -> Any:
        """Execute an API call. To be implemented by main class."""
        raise NotImplementedError

    def list_all_chats(self) -> list[Group]:
        """List the chats the bot belongs to (first 200)."""
        data = self.request(self.LIST_CHATS_URL, JSONBody({"page_size": "200"}), GroupsResponse)
        return data.data.groups

    def get_chat_info(self, chat_id: str) -> Group:
        """Get chat information including its members."""
        data = self.request(self.CHAT_INFO_URL, JSONBody({"chat_id": chat_id}), GroupInfoResponse)
        return data.data

    def create_chat(self, name: str, open_ids: list[str] | str) -> str:
        """Create a group chat.

        Args:
            name: Chat name.
            open_ids: Initial member open_id(s).

        Returns:
            The new chat_id.
        """
        if isinstance(open_ids, str):
            open_ids = [open_ids]
        data = self.request(
            self.CREATE_CHAT_URL,
            JSONBody({"name": name, "open_ids": list(open_ids)}),
            GroupResponse,
        )
        logger.info("Chat created: %s", data.data.chat_id)
        return data.data.chat_id

    def update_chat(
        self,
        chat_id: str,
        name: str | None = None,
        owner_open_id: str | None = None,
    ) -> None:
        """Update chat name and/or owner. Does nothing if neither is given."""
        body: dict[str, Any] = {}
        if name is not None:
            body["name"] = name
        if owner_open_id is not None:
            body["owner_open_id"] = owner_open_id
        if not body:
            return
        body["chat_id"] = chat_id
        self.request(self.UPDATE_CHAT_URL, JSONBody(body), APIResponse)

    def destroy_chat(self, chat_id: str) -> None:
        """Disband a chat."""
        self.request(self.DISBAND_CHAT_URL, JSONBody({"chat_id": chat_id}), APIResponse)
        logger.info("Chat disbanded: %s", chat_id)

    def add_users_to_chat(self, chat_id: str, open_ids: list[str]) -> None:
        self.request(
            self.ADD_CHATTER_URL,
            JSONBody({"chat_id": chat_id, "open_ids": list(open_ids)}),
            GroupResponse,
        )

    def remove_users_from_chat(self, chat_id: str, open_ids: list[str]) -> None:
        self.request(
            self.DELETE_CHATTER_URL,
            JSONBody({"chat_id": chat_id, "open_ids": list(open_ids)}),
            APIResponse,
        )
