"""
Middleware that tags every request with an id and logs its outcome.

Uses pure ASGI instead of BaseHTTPMiddleware so responses are streamed
through untouched.
"""
import logging
import time
import uuid
from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware:
    """
    Pure ASGI middleware assigning ``request.state.request_id``.

    An incoming ``X-Request-ID`` header is honoured; otherwise a new id is
    generated. The id is echoed in the response headers.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        incoming = headers.get(REQUEST_ID_HEADER.lower().encode("latin-1"))
        request_id = incoming.decode("latin-1")[:128] if incoming else uuid.uuid4().hex

        scope.setdefault("state", {})["request_id"] = request_id

        started = time.perf_counter()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.debug(
                f"{scope.get('method')} {scope.get('path')} -> {status_code} "
                f"({elapsed_ms:.1f} ms) [{request_id}]"
            )
