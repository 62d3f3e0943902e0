"""User information API operations."""

from __future__ import annotations

from typing import Any

from .models import UserInfo, UserInfoResponse


class LarkUserMixin:
    """Mixin providing user lookups for the Lark API.

    This mixin should be used with a class that has:
    - self.request(path, body, response_model, ...) -> APIResponse
    """

    BATCH_GET_USER_URL = "/contact/v1/user/batch_get"

    def request(self, *args: Any, **kwargs: Any) -> Any:
        """Execute an API call. To be implemented by main class."""
        raise NotImplementedError

    def get_user_info(self, open_ids: list[str]) -> list[UserInfo]:
        """Look up users by open_id.

        Args:
            open_ids: Open IDs to resolve.

        Returns:
            User records in the order returned by the platform.

        Example:
            ```python
            for user in api.get_user_info(["ou_xxx"]):
                print(user.name)
            ```
        """
        data = self.request(
            self.BATCH_GET_USER_URL,
            None,
            UserInfoResponse,
            method="GET",
            params=[("open_ids", open_id) for open_id in open_ids],
        )
        return data.data.user_infos
