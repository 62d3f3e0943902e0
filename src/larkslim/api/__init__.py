"""Lark open API module.

Components:
- client.py: LarkAPI client and the outbound request pipeline
- token.py: Tenant access token cache
- request.py: Request body variants
- auth.py: Token operations
- chat.py: Chat management
- user.py: User lookups
- message.py: Message sending
- media.py: Image uploads
- models.py: Response and content models
"""

from .auth import LarkAuthMixin
from .chat import LarkChatMixin
from .client import LarkAPI
from .media import LarkMediaMixin
from .message import LarkMessageMixin, resolve_target
from .models import (
    APIResponse,
    Group,
    Post,
    PostOfLocale,
    PostTag,
    TokenInfo,
    UserInfo,
    format_groups,
    format_users,
)
from .request import JSONBody, MultipartBody, ProtectedBody, RawBody, RequestBody
from .token import TokenManager
from .user import LarkUserMixin

__all__ = [
    # Main client
    "LarkAPI",
    "TokenManager",
    # Request bodies
    "RequestBody",
    "JSONBody",
    "RawBody",
    "ProtectedBody",
    "MultipartBody",
    # Models
    "APIResponse",
    "TokenInfo",
    "Group",
    "UserInfo",
    "Post",
    "PostOfLocale",
    "PostTag",
    "format_groups",
    "format_users",
    "resolve_target",
    # Mixins (for advanced usage)
    "LarkAuthMixin",
    "LarkChatMixin",
    "LarkUserMixin",
    "LarkMessageMixin",
    "LarkMediaMixin",
]
