"""Lark open API client.

This module provides the main LarkAPI client class that combines all endpoint
groups through mixins and owns the outbound request pipeline.
"""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from ..core.config import DEFAULT_BASE_URL, APIConfig
from ..core.exceptions import APIError, ProtocolError, TransportError
from ..core.logger import get_logger
from .auth import LarkAuthMixin
from .chat import LarkChatMixin
from .media import LarkMediaMixin
from .message import LarkMessageMixin
from .models import APIResponse
from .request import RequestBody
from .token import TokenManager
from .user import LarkUserMixin

logger = get_logger("api")

ResponseT = TypeVar("ResponseT", bound=APIResponse)


class LarkAPI(
    LarkAuthMixin,
    LarkChatMixin,
    LarkUserMixin,
    LarkMessageMixin,
    LarkMediaMixin,
):
    """Lark open API client.

    Every call except the token request itself attaches the cached tenant
    access token, refreshing it transparently when it has expired. The client
    is safe to share between threads.

    Example:
        ```python
        with LarkAPI(app_id="cli_xxx", app_secret="xxx") as api:
            for group in api.list_all_chats():
                print(group.name, group.chat_id)

            api.send_message("oc_xxx", "Hello!")
        ```
    """

    BASE_URL = DEFAULT_BASE_URL

    def __init__(
        self,
        app_id: str,
        app_secret: str,
        timeout: float = 10.0,
        base_url: str | None = None,
        token_skew: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the API client.

        Args:
            app_id: Lark application ID.
            app_secret: Lark application secret.
            timeout: HTTP request timeout in seconds.
            base_url: Override base URL (for testing or regional endpoints).
            token_skew: Seconds before expiry at which cached tokens are refreshed.
            transport: Optional httpx transport (for testing).
        """
        self.app_id = app_id
        self.app_secret = app_secret
        self.timeout = timeout
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )
        self._tokens = TokenManager(self._fetch_access_token, skew=token_skew)

    @classmethod
    def from_config(cls, config: APIConfig) -> LarkAPI:
        """Create a client from an ``APIConfig``.

        Raises:
            ValueError: If the credential is incomplete.
        """
        if not config.app_id:
            raise ValueError("empty app id")
        app_secret = config.secret_value()
        if not app_secret:
            raise ValueError("empty app secret")
        return cls(
            app_id=config.app_id,
            app_secret=app_secret,
            timeout=config.timeout,
            base_url=config.base_url,
            token_skew=config.token_skew,
        )

    def __enter__(self) -> LarkAPI:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __repr__(self) -> str:
        return f"LarkAPI(app_id={self.app_id!r}, base_url={self.base_url!r})"

    def request(
        self,
        path: str,
        body: RequestBody | None = None,
        response_model: type[ResponseT] = APIResponse,  # type: ignore[assignment]
        *,
        method: str = "POST",
        params: Any = None,
        authenticated: bool = True,
    ) -> ResponseT:
        """Execute one open API call.

        Args:
            path: Endpoint path relative to the base URL.
            body: Request body variant, or None for no body.
            response_model: Pydantic model the payload is validated into.
            method: HTTP method.
            params: Query string parameters.
            authenticated: Attach the tenant access token. Only the token
                request itself passes False.

        Returns:
            The validated response model.

        Raises:
            TransportError: Network failure or timeout.
            ProtocolError: Non-2xx status or unreadable envelope.
            APIError: The envelope message is neither "ok" nor "success".
        """
        kwargs: dict[str, Any] = body.to_httpx() if body is not None else {}
        headers: dict[str, str] = dict(kwargs.pop("headers", {}))
        if authenticated:
            headers["Authorization"] = f"Bearer {self._tokens.get()}"

        if body is not None:
            logger.debug("request body: %s", body.describe())

        try:
            response = self._client.request(
                method, path, params=params, headers=headers, **kwargs
            )
        except httpx.TimeoutException as exc:
            raise TransportError(f"{method} {path} timed out", exc) from exc
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {path} failed: {exc}", exc) from exc

        logger.debug("%s%s -> %s", self.base_url, path, response.status_code)
        logger.debug("response body: %s", response.text)
        return self._parse_response(path, response, response_model)

    @staticmethod
    def _parse_response(
        path: str, response: httpx.Response, response_model: type[ResponseT]
    ) -> ResponseT:
        status = response.status_code
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProtocolError(f"Invalid JSON from {path} (HTTP {status})", status) from exc
        if not isinstance(payload, dict):
            raise ProtocolError(f"Unexpected response shape from {path}", status)

        try:
            envelope = APIResponse.model_validate(payload)
        except ValidationError as exc:
            raise ProtocolError(f"Invalid response envelope from {path}: {exc}", status) from exc

        if not response.is_success:
            detail = envelope.msg or response.reason_phrase
            raise ProtocolError(f"HTTP {status} from {path}: {detail}", status)
        if not envelope.ok:
            raise APIError(envelope.msg, envelope.code)

        try:
            return response_model.model_validate(payload)
        except ValidationError as exc:
            raise ProtocolError(f"Invalid response data from {path}: {exc}", status) from exc
