"""Tenant access token operations for the Lark API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..core.exceptions import ProtocolError
from .models import AccessTokenResponse
from .request import protected_credentials

if TYPE_CHECKING:
    from .token import TokenManager


class LarkAuthMixin:
    """Mixin providing token management for the Lark API.

    This mixin should be used with a class that has:
    - self.app_id: str
    - self.app_secret: str
    - self._tokens: TokenManager
    - self.request(...)
    """

    TENANT_TOKEN_URL = "/auth/v3/tenant_access_token/internal/"

    app_id: str
    app_secret: str
    _tokens: TokenManager

    def request(self, *args: Any, **kwargs: Any) -> Any:
        """Execute an API call. To be implemented by main class."""
        raise NotImplementedError

    def get_access_token(self) -> int:
        """Fetch a new tenant access token and cache it.

        This is the token supplier the webhook receiver calls from its
        background refresh loop.

        Returns:
            Token lifetime in seconds reported by the platform.
        """
        return self._tokens.refresh()

    def tenant_access_token(self) -> str:
        """Return the cached token, fetching one if none is valid."""
        return self._tokens.get()

    def _fetch_access_token(self) -> tuple[str, int]:
        data = self.request(
            self.TENANT_TOKEN_URL,
            protected_credentials(self.app_id, self.app_secret),
            AccessTokenResponse,
            authenticated=False,
        )
        if not data.tenant_access_token:
            raise ProtocolError("Token response carried no tenant_access_token")
        return data.tenant_access_token, data.expire
