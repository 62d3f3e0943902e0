"""Image upload API operations."""

from __future__ import annotations

import mimetypes
from typing import IO, Any, Literal

from ..core.logger import get_logger
from .models import ImageResponse
from .request import MultipartBody

logger = get_logger("api.media")

ImageType = Literal["message", "avatar"]

IMAGE_TYPES: tuple[str, ...] = ("message", "avatar")


def _guess_content_type(data: bytes, filename: str) -> str:
    if data.startswith(b"\x89PNG"):
        return "image/png"
    if data.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"


class LarkMediaMixin:
    """Mixin providing image uploads for the Lark API.

    This mixin should be used with a class that has:
    - self.request(path, body, response_model, ...) -> APIResponse
    """

    UPLOAD_IMAGE_URL = "/image/v4/put/"

    def request(self, *args: Any, **kwargs: Any) -> Any:
        """Execute an API call. To be implemented by main class."""
        raise NotImplementedError

    def upload_image(
        self,
        image: bytes | IO[bytes],
        image_type: ImageType = "message",
        filename: str = "image",
    ) -> str:
        """Upload an image.

        Args:
            image: Image content as bytes or a binary file object.
            image_type: "message" for chat images, "avatar" for avatars.
            filename: File name reported in the multipart form.

        Returns:
            Image key for use in messages.

        Raises:
            ValueError: If image_type is unknown.
        """
        if image_type not in IMAGE_TYPES:
            raise ValueError(f"unknown image type: {image_type}")
        content = image if isinstance(image, bytes) else image.read()
        body = MultipartBody(
            data={"image_type": image_type},
            files={"image": (filename, content, _guess_content_type(content, filename))},
        )
        data = self.request(self.UPLOAD_IMAGE_URL, body, ImageResponse)
        logger.info("Image uploaded: %s", data.data.image_key)
        return data.data.image_key

    def upload_message_image(self, image: bytes | IO[bytes]) -> str:
        return self.upload_image(image, "message")

    def upload_avatar_image(self, image: bytes | IO[bytes]) -> str:
        return self.upload_image(image, "avatar")
