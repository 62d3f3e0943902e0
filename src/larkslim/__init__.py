"""larkslim: a slim Lark (Feishu) open API SDK and webhook receiver.

Provides:
- LarkAPI: authenticated REST calls (chats, users, messages, image upload)
  with a self-refreshing tenant access token
- LarkServer: a webhook receiver that verifies, decrypts and dispatches
  event and card callbacks

Example:
    ```python
    from larkslim import LarkAPI, LarkServer, ServerConfig

    api = LarkAPI(app_id="cli_xxx", app_secret="xxx")
    api.send_message("oc_xxx", "Hello!")

    server = LarkServer(
        ServerConfig(encryption_key="xxx", verification_token="xxx"),
        token_supplier=api.get_access_token,
        event_handler=lambda event: print(event.text),
    )
    server.serve()
    ```
"""

from importlib.metadata import PackageNotFoundError, version

from .api import LarkAPI, Post, PostOfLocale, PostTag
from .core import (
    APIConfig,
    APIError,
    LarkConfig,
    LarkError,
    LoggingConfig,
    ServerConfig,
    get_logger,
    setup_logging,
)
from .server import EventDetail, LarkServer

__all__ = [
    "__version__",
    "LarkAPI",
    "LarkServer",
    "EventDetail",
    "Post",
    "PostOfLocale",
    "PostTag",
    "LarkConfig",
    "APIConfig",
    "ServerConfig",
    "LoggingConfig",
    "LarkError",
    "APIError",
    "get_logger",
    "setup_logging",
]

try:  # pragma: no cover - best-effort during development
    __version__ = version("larkslim")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
