"""CLI command handlers package."""

from .image import cmd_upload_image
from .message import cmd_msg
from .serve import cmd_serve

__all__ = [
    "cmd_msg",
    "cmd_serve",
    "cmd_upload_image",
]
