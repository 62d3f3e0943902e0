"""Request body variants accepted by the outbound request pipeline.

Each variant knows how to turn itself into ``httpx`` request arguments and how
to describe itself in debug logs.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

from ..core.logger import FILTERED


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


@dataclass(frozen=True)
class JSONBody:
    """A value sent as a JSON document."""

    value: Any

    def to_httpx(self) -> dict[str, Any]:
        return {
            "content": _dump(self.value).encode("utf-8"),
            "headers": {"Content-Type": "application/json; charset=utf-8"},
        }

    def describe(self) -> str:
        return _dump(self.value)


@dataclass(frozen=True)
class RawBody:
    """Pre-encoded bytes sent as-is."""

    content: bytes
    content_type: str = "application/json; charset=utf-8"

    def to_httpx(self) -> dict[str, Any]:
        return {"content": self.content, "headers": {"Content-Type": self.content_type}}

    def describe(self) -> str:
        return self.content.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class ProtectedBody:
    """A JSON value whose logged form differs from what goes over the wire.

    Attributes:
        original: Value sent to the platform.
        filtered: Redacted value written to debug logs.
    """

    original: Any
    filtered: Any

    def to_httpx(self) -> dict[str, Any]:
        return JSONBody(self.original).to_httpx()

    def describe(self) -> str:
        return _dump(self.filtered)


@dataclass(frozen=True)
class MultipartBody:
    """A multipart form upload.

    Attributes:
        data: Plain form fields.
        files: Mapping of field name to ``(filename, content, content_type)``.
    """

    data: dict[str, str] = field(default_factory=dict)
    files: dict[str, tuple[str, bytes, str]] = field(default_factory=dict)

    def to_httpx(self) -> dict[str, Any]:
        return {"data": self.data, "files": self.files}

    def describe(self) -> str:
        parts = [f"{name}={value}" for name, value in self.data.items()]
        parts += [f"{name}=<{len(spec[1])} bytes>" for name, spec in self.files.items()]
        return "multipart: " + ", ".join(parts)


RequestBody = Union[JSONBody, RawBody, ProtectedBody, MultipartBody]


def protected_credentials(app_id: str, app_secret: str) -> ProtectedBody:
    """Build the token request body with the secret redacted from logs."""
    return ProtectedBody(
        original={"app_id": app_id, "app_secret": app_secret},
        filtered={"app_id": app_id, "app_secret": FILTERED},
    )
