"""FastAPI-based receiver for Lark event and card callbacks."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable, Mapping
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from ..core.config import ServerConfig
from ..core.exceptions import (
    ClassificationError,
    CryptoError,
    DecodeError,
    SignatureMismatch,
    TokenMismatch,
    UnknownEnvelope,
)
from ..core.logger import get_logger
from .crypto import decrypt, verify_signature
from .envelope import (
    CardAction,
    EventCallback,
    EventDetail,
    URLVerification,
    classify,
    parse_body,
)
from .refresher import TokenRefresher, TokenSupplier

logger = get_logger("server")

# Returns a Response, a JSON-serializable mapping, or None
CardHandler = Callable[[Any], Any]
EventHandler = Callable[[EventDetail], None]

TIMESTAMP_HEADER = "X-Lark-Request-Timestamp"
NONCE_HEADER = "X-Lark-Request-Nonce"
SIGNATURE_HEADER = "X-Lark-Signature"


def _no_content() -> Response:
    return Response(status_code=204)


def _challenge(value: Any) -> JSONResponse:
    return JSONResponse({"challenge": value})


def _card_response(result: Any) -> Response:
    """Turn a card handler result into the callback response.

    Raises:
        TypeError: The result is neither a Response, a mapping, nor None,
            or the mapping is not JSON-serializable.
    """
    if isinstance(result, Response):
        return result
    if result is None:
        return Response(status_code=200)
    if not isinstance(result, Mapping):
        raise TypeError(f"card handler returned {type(result).__name__}, expected a mapping")
    return JSONResponse(dict(result))


class LarkServer:
    """Serve Lark callbacks and keep the access token fresh.

    Routes:
    - ``cards_path``: signed interactive card callbacks
    - ``events_path``: (optionally encrypted) event subscriptions
    - ``health_path``: always 204
    - anything else: 404

    Failures while handling a callback are logged and acknowledged with 204 so
    the platform does not keep retrying.

    Example:
        ```python
        api = LarkAPI(app_id="cli_xxx", app_secret="xxx")
        server = LarkServer(
            ServerConfig(verification_token="xxx"),
            token_supplier=api.get_access_token,
            event_handler=lambda event: api.send_message(event.chat_id, event.text),
        )
        server.serve()
        ```
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        token_supplier: TokenSupplier | None = None,
        card_handler: CardHandler | None = None,
        event_handler: EventHandler | None = None,
    ) -> None:
        """Initialize the receiver.

        Args:
            config: Receiver configuration.
            token_supplier: Refreshes the access token and returns its TTL;
                drives the background refresh loop when set.
            card_handler: Called with the raw ``action`` value of card callbacks.
                May return a Response, a JSON-serializable mapping, or None.
            event_handler: Called with the event detail of event callbacks.
        """
        self._config = config or ServerConfig()
        self._card_handler = card_handler
        self._event_handler = event_handler
        self._refresher = TokenRefresher(token_supplier) if token_supplier else None
        self._app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None

        self._create_routes()

    @property
    def app(self) -> FastAPI:
        return self._app

    # ------------------------------------------------------------------
    # FastAPI setup
    # ------------------------------------------------------------------
    def _create_routes(self) -> None:
        config = self._config

        @self._app.middleware("http")
        async def log_request(request: Request, call_next: Callable[..., Any]) -> Any:
            logger.debug("%s %s", request.method, request.url.path)
            return await call_next(request)

        @self._app.post(config.cards_path)
        async def receive_card(request: Request) -> Response:
            try:
                body = await request.body()
            except Exception as exc:
                return self._reject("Failed to read card callback body", exc)
            return await run_in_threadpool(self.handle_card, request.headers, body)

        @self._app.post(config.events_path)
        async def receive_event(request: Request) -> Response:
            try:
                body = await request.body()
            except Exception as exc:
                return self._reject("Failed to read event callback body", exc)
            return await run_in_threadpool(self.handle_event, body)

        @self._app.api_route(config.health_path, methods=["GET", "HEAD", "POST"])
        async def health() -> Response:
            return _no_content()

        @self._app.api_route(
            "/{path:path}",
            methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        )
        async def not_found(path: str) -> Response:
            return Response("404 page not found\n", status_code=404, media_type="text/plain")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    @staticmethod
    def _reject(reason: str, exc: Exception) -> Response:
        logger.error("%s: %s", reason, exc)
        return _no_content()

    def handle_card(self, headers: Mapping[str, str], body: bytes) -> Response:
        """Process a card callback body and build the HTTP response."""
        token = self._config.verification_token
        if token:
            signed = verify_signature(
                headers.get(TIMESTAMP_HEADER, ""),
                headers.get(NONCE_HEADER, ""),
                token,
                body,
                headers.get(SIGNATURE_HEADER, ""),
            )
            if not signed:
                return self._reject("Rejected card callback", SignatureMismatch("wrong signature"))

        try:
            payload = parse_body(body)
        except ClassificationError as exc:
            return self._reject("Rejected card callback", exc)
        logger.debug("card callback: %s", body.decode("utf-8", errors="replace"))

        try:
            envelope = classify(payload)
        except UnknownEnvelope:
            return Response(status_code=200)

        if isinstance(envelope, URLVerification):
            return _challenge(envelope.challenge)

        if isinstance(envelope, CardAction) and self._card_handler is not None:
            try:
                return _card_response(self._card_handler(envelope.action))
            except Exception as exc:
                logger.error("Card handler failure: %s", exc, exc_info=True)
                return _no_content()

        return Response(status_code=200)

    def handle_event(self, body: bytes) -> Response:
        """Process an event callback body and build the HTTP response."""
        key = self._config.encryption_key
        if key:
            try:
                body = self._decrypt_body(key, body)
            except (CryptoError, ClassificationError) as exc:
                return self._reject("Failed to decrypt event callback", exc)

        token = self._config.verification_token
        try:
            envelope = classify(body, verification_token=token)
        except UnknownEnvelope as exc:
            logger.debug("Ignoring event callback: %s", exc)
            return _no_content()
        except ClassificationError as exc:
            return self._reject("Rejected event callback", exc)
        logger.debug("event callback: %s", envelope)

        if isinstance(envelope, URLVerification):
            if token and envelope.token != token:
                return self._reject("Rejected url verification", TokenMismatch())
            return _challenge(envelope.challenge)

        if isinstance(envelope, EventCallback) and self._event_handler is not None:
            try:
                self._event_handler(envelope.event)
            except Exception as exc:
                logger.error("Event handler failure: %s", exc, exc_info=True)

        return _no_content()

    @staticmethod
    def _decrypt_body(key: str, body: bytes) -> bytes:
        payload = parse_body(body)
        encrypted = payload.get("encrypt")
        if not isinstance(encrypted, str) or not encrypted:
            raise DecodeError("missing encrypt field")
        return decrypt(key, encrypted)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _build_server(self) -> uvicorn.Server:
        config = uvicorn.Config(
            self._app,
            host=self._config.host,
            port=self._config.port,
            log_level="warning",
        )
        return uvicorn.Server(config)

    def serve(self) -> None:
        """Run the receiver in the foreground until interrupted."""
        if self._refresher:
            self._refresher.start()
        logger.info("listening %s:%s", self._config.host, self._config.port)
        try:
            self._build_server().run()
        finally:
            if self._refresher:
                self._refresher.stop()

    def start(self) -> None:
        """Run the receiver on a background thread."""
        if self._thread:
            return

        if self._refresher:
            self._refresher.start()
        self._server = self._build_server()

        def _run() -> None:
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            try:
                server = self._server
                if server is None:
                    logger.error("Receiver thread started without a uvicorn server instance")
                    return
                loop.run_until_complete(server.serve())
            finally:
                loop.close()

        self._thread = threading.Thread(target=_run, name="larkslim-server", daemon=True)
        self._thread.start()
        logger.info("listening %s:%s", self._config.host, self._config.port)

    def stop(self) -> None:
        if self._server:
            self._server.should_exit = True
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
        if self._refresher:
            self._refresher.stop()
        logger.info("Receiver stopped")

    @property
    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())
