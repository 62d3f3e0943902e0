"""Test configuration hooks."""

from __future__ import annotations

import pytest

from larkslim.api import LarkAPI
from larkslim.core.config import DEFAULT_BASE_URL

TOKEN_URL = f"{DEFAULT_BASE_URL}/auth/v3/tenant_access_token/internal/"


@pytest.fixture
def api():
    """A LarkAPI client closed after the test."""
    client = LarkAPI(app_id="cli_test", app_secret="s3cret")
    yield client
    client.close()


@pytest.fixture
def token_response():
    """Register one successful tenant token response."""

    def _add(httpx_mock, token: str = "t-123", expire: int = 7200) -> None:
        httpx_mock.add_response(
            url=TOKEN_URL,
            method="POST",
            json={"code": 0, "msg": "ok", "tenant_access_token": token, "expire": expire},
        )

    return _add


