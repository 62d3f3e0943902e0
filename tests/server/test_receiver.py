"""Tests for the webhook receiver routes."""

import json
import logging
import socket
import time
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from fastapi import Response
from fastapi.testclient import TestClient

from larkslim.core.config import ServerConfig
from larkslim.server import LarkServer
from larkslim.server.app import NONCE_HEADER, SIGNATURE_HEADER, TIMESTAMP_HEADER
from larkslim.server.crypto import compute_signature, encrypt
from larkslim.server.envelope import EventDetail

TOKEN = "verify-token"
KEY = "encrypt-key"


@pytest.fixture
def event_handler():
    """Mock event handler."""
    return MagicMock()


@pytest.fixture
def card_handler():
    """Mock card handler."""
    return MagicMock(return_value=None)


@pytest.fixture
def plain_config():
    """Receiver config without token or encryption."""
    return ServerConfig()


@pytest.fixture
def secure_config():
    """Receiver config with token and encryption."""
    return ServerConfig(verification_token=TOKEN, encryption_key=KEY)


def _client(config, card_handler=None, event_handler=None) -> TestClient:
    server = LarkServer(config, card_handler=card_handler, event_handler=event_handler)
    return TestClient(server.app)


def _signed_headers(body: bytes, token: str = TOKEN) -> dict[str, str]:
    return {
        TIMESTAMP_HEADER: "1600000000",
        NONCE_HEADER: "nonce-1",
        SIGNATURE_HEADER: compute_signature("1600000000", "nonce-1", token, body),
        "Content-Type": "application/json",
    }


def _encrypted(payload: dict) -> bytes:
    return json.dumps({"encrypt": encrypt(KEY, json.dumps(payload))}).encode()


def _message_event(token: str = TOKEN) -> dict:
    return {
        "type": "event_callback",
        "token": token,
        "event": {
            "type": "message",
            "msg_type": "text",
            "open_chat_id": "oc_1",
            "open_id": "ou_1",
            "text": "hello",
        },
    }


class TestEventRoute:
    """Tests for the event callback route."""

    def test_challenge(self, plain_config, event_handler):
        client = _client(plain_config, event_handler=event_handler)

        response = client.post(
            "/events/", json={"type": "url_verification", "challenge": "c-123"}
        )

        assert response.status_code == 200
        assert response.json() == {"challenge": "c-123"}
        event_handler.assert_not_called()

    def test_encrypted_challenge(self, secure_config):
        client = _client(secure_config)
        body = _encrypted({"type": "url_verification", "challenge": "c-1", "token": TOKEN})

        response = client.post("/events/", content=body)

        assert response.status_code == 200
        assert response.json() == {"challenge": "c-1"}

    def test_challenge_with_wrong_token(self, secure_config):
        client = _client(secure_config)
        body = _encrypted({"type": "url_verification", "challenge": "c-1", "token": "bad"})

        response = client.post("/events/", content=body)

        assert response.status_code == 204

    def test_plain_event(self, plain_config, event_handler):
        client = _client(plain_config, event_handler=event_handler)

        response = client.post("/events/", json=_message_event())

        assert response.status_code == 204
        event_handler.assert_called_once()
        detail = event_handler.call_args.args[0]
        assert isinstance(detail, EventDetail)
        assert detail.chat_id == "oc_1"
        assert detail.text == "hello"
        assert detail.text_without_at_bot == "hello"

    def test_encrypted_event(self, secure_config, event_handler):
        client = _client(secure_config, event_handler=event_handler)

        response = client.post("/events/", content=_encrypted(_message_event()))

        assert response.status_code == 204
        event_handler.assert_called_once()
        assert event_handler.call_args.args[0].open_id == "ou_1"

    def test_wrong_token_never_reaches_handler(self, secure_config, event_handler):
        client = _client(secure_config, event_handler=event_handler)

        response = client.post("/events/", content=_encrypted(_message_event("bad")))

        assert response.status_code == 204
        event_handler.assert_not_called()

    def test_undecryptable_body(self, secure_config, event_handler):
        client = _client(secure_config, event_handler=event_handler)

        response = client.post("/events/", json={"encrypt": "not base64!!"})

        assert response.status_code == 204
        event_handler.assert_not_called()

    def test_missing_encrypt_field(self, secure_config, event_handler):
        client = _client(secure_config, event_handler=event_handler)

        response = client.post("/events/", json=_message_event())

        assert response.status_code == 204
        event_handler.assert_not_called()

    def test_invalid_json(self, plain_config, event_handler):
        client = _client(plain_config, event_handler=event_handler)

        response = client.post("/events/", content=b"not json")

        assert response.status_code == 204
        event_handler.assert_not_called()

    def test_unknown_envelope(self, plain_config, event_handler):
        client = _client(plain_config, event_handler=event_handler)

        response = client.post("/events/", json={"schema": "2.0"})

        assert response.status_code == 204
        event_handler.assert_not_called()

    def test_handler_failure_still_acknowledged(self, plain_config, caplog):
        handler = MagicMock(side_effect=RuntimeError("boom"))
        client = _client(plain_config, event_handler=handler)

        response = client.post("/events/", json=_message_event())

        assert response.status_code == 204
        assert "Event handler failure: boom" in caplog.text

    def test_event_without_handler(self, plain_config):
        client = _client(plain_config)

        response = client.post("/events/", json=_message_event())

        assert response.status_code == 204


class TestCardRoute:
    """Tests for the card callback route."""

    def test_unsigned_card_without_token(self, plain_config, card_handler):
        client = _client(plain_config, card_handler=card_handler)

        response = client.post("/cards/", json={"action": {"value": {"key": "v"}}})

        assert response.status_code == 200
        assert response.content == b""
        card_handler.assert_called_once_with({"value": {"key": "v"}})

    def test_signed_card(self, secure_config, card_handler):
        client = _client(secure_config, card_handler=card_handler)
        body = json.dumps({"open_id": "ou_1", "action": {"value": 1}}).encode()

        response = client.post("/cards/", content=body, headers=_signed_headers(body))

        assert response.status_code == 200
        card_handler.assert_called_once_with({"value": 1})

    def test_signature_mismatch_rejected(self, secure_config, card_handler):
        client = _client(secure_config, card_handler=card_handler)
        body = json.dumps({"action": {"value": 1}}).encode()
        headers = _signed_headers(body, token="other")

        response = client.post("/cards/", content=body, headers=headers)

        assert response.status_code == 204
        card_handler.assert_not_called()

    def test_missing_signature_rejected(self, secure_config, card_handler):
        client = _client(secure_config, card_handler=card_handler)

        response = client.post("/cards/", json={"action": {"value": 1}})

        assert response.status_code == 204
        card_handler.assert_not_called()

    def test_card_challenge(self, plain_config, card_handler):
        client = _client(plain_config, card_handler=card_handler)

        response = client.post("/cards/", json={"type": "url_verification", "challenge": "x"})

        assert response.status_code == 200
        assert response.json() == {"challenge": "x"}
        card_handler.assert_not_called()

    def test_handler_returns_mapping(self, plain_config):
        client = _client(plain_config, card_handler=lambda action: {"header": {"title": "done"}})

        response = client.post("/cards/", json={"action": {}})

        assert response.status_code == 200
        assert response.json() == {"header": {"title": "done"}}

    def test_handler_returns_response(self, plain_config):
        client = _client(
            plain_config,
            card_handler=lambda action: Response("custom", status_code=202),
        )

        response = client.post("/cards/", json={"action": {}})

        assert response.status_code == 202
        assert response.text == "custom"

    def test_handler_failure(self, plain_config):
        handler = MagicMock(side_effect=ValueError("bad card"))
        client = _client(plain_config, card_handler=handler)

        response = client.post("/cards/", json={"action": {}})

        assert response.status_code == 204

    def test_invalid_json(self, plain_config, card_handler):
        client = _client(plain_config, card_handler=card_handler)

        response = client.post("/cards/", content=b"{")

        assert response.status_code == 204
        card_handler.assert_not_called()

    @pytest.mark.parametrize(
        "result",
        [["not", "a", "mapping"], "text", {"value": object()}],
        ids=["list", "string", "unserializable"],
    )
    def test_unusable_handler_result(self, plain_config, caplog, result):
        client = _client(plain_config, card_handler=lambda action: result)

        response = client.post("/cards/", json={"action": {"value": 1}})

        assert response.status_code == 204
        assert "Card handler failure" in caplog.text

    def test_body_without_action(self, plain_config, card_handler):
        client = _client(plain_config, card_handler=card_handler)

        response = client.post("/cards/", json={"open_id": "ou_1"})

        assert response.status_code == 200
        assert response.content == b""
        card_handler.assert_not_called()

    def test_action_without_handler(self, plain_config):
        client = _client(plain_config)

        response = client.post("/cards/", json={"action": {"value": 1}})

        assert response.status_code == 200
        assert response.content == b""


class TestOtherRoutes:
    @pytest.mark.parametrize("method", ["GET", "POST", "HEAD"])
    def test_health(self, plain_config, method):
        client = _client(plain_config)

        response = client.request(method, "/204/")

        assert response.status_code == 204

    @pytest.mark.parametrize("path", ["/", "/unknown", "/events/extra", "/cards"])
    def test_unknown_path(self, plain_config, path):
        client = _client(plain_config)

        response = client.post(path)

        assert response.status_code == 404
        assert response.text == "404 page not found\n"

    def test_custom_paths(self, event_handler):
        config = ServerConfig(events_path="/lark/events", cards_path="/lark/cards")
        client = _client(config, event_handler=event_handler)

        assert client.post("/lark/events", json=_message_event()).status_code == 204
        assert client.post("/events/", json=_message_event()).status_code == 404
        event_handler.assert_called_once()


class TestRequestHandling:
    """Tests for behaviour shared by the callback routes."""

    def test_requests_logged(self, plain_config, caplog):
        caplog.set_level(logging.DEBUG, logger="larkslim.server")
        client = _client(plain_config)

        client.post("/events/", json={"type": "url_verification", "challenge": "c"})
        client.get("/204/")

        assert "POST /events/" in caplog.text
        assert "GET /204/" in caplog.text

    @pytest.mark.parametrize("path", ["/events/", "/cards/"])
    def test_body_read_failure(self, plain_config, event_handler, card_handler, caplog, path):
        client = _client(plain_config, card_handler=card_handler, event_handler=event_handler)
        failing_read = AsyncMock(side_effect=RuntimeError("client disconnected"))

        with patch("starlette.requests.Request.body", new=failing_read):
            response = client.post(path, json={"action": {}, "type": "event_callback"})

        assert response.status_code == 204
        assert "client disconnected" in caplog.text
        event_handler.assert_not_called()
        card_handler.assert_not_called()


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _wait_until(condition, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.05)
    return False


class TestLifecycle:
    def test_initial_state(self, plain_config):
        server = LarkServer(plain_config)

        assert server.is_running is False
        assert server._refresher is None

    def test_refresher_created_with_supplier(self, plain_config):
        server = LarkServer(plain_config, token_supplier=lambda: 7200)

        assert server._refresher is not None
        assert server._refresher.is_running is False

    def test_stop_without_start(self, plain_config):
        server = LarkServer(plain_config)

        server.stop()

        assert server.is_running is False

    def test_start_serves_and_stop_shuts_down(self):
        port = _free_port()
        supplier = MagicMock(return_value=7200)
        server = LarkServer(ServerConfig(host="127.0.0.1", port=port), token_supplier=supplier)

        server.start()
        try:
            assert server.is_running is True
            assert _wait_until(lambda: server._server is not None and server._server.started)
            assert _wait_until(lambda: supplier.call_count == 1)

            with httpx.Client(trust_env=False, timeout=5) as http:
                response = http.post(
                    f"http://127.0.0.1:{port}/events/",
                    json={"type": "url_verification", "challenge": "abc123"},
                )

            assert response.status_code == 200
            assert response.json() == {"challenge": "abc123"}
            assert server._refresher.is_running is True
        finally:
            server.stop()

        assert server.is_running is False
        assert server._refresher.is_running is False
        assert supplier.call_count == 1
