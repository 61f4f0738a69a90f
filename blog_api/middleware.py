import json
import logging
import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from blog_api.errors import CODE_SERVER_ERROR, INTERNAL_ERROR_MESSAGE, fail

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Middleware (pure ASGI)
# ---------------------------------------------------------------------------

class AccessLogMiddleware:
    """
    Pure ASGI middleware that logs one line per HTTP request (method,
    path, status, duration) and adds an ``X-Response-Time-Ms`` header.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.info(
                "request",
                extra={
                    "method": scope["method"],
                    "path": scope["path"],
                    "query": scope.get("query_string", b"").decode("latin-1"),
                    "status": status_code,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )


class RecoveryMiddleware:
    """
    Pure ASGI middleware that turns any exception escaping a handler into
    a 500 JSON envelope instead of crashing the request.

    The exception and its stack trace are logged; the client only sees a
    generic message.  When the response has already started there is
    nothing left to send, so the error is only logged.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            logger.exception(
                "unhandled error",
                extra={"path": scope["path"], "method": scope["method"]},
            )
            if response_started:
                return
            body = json.dumps(fail(CODE_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)).encode()
            await send(
                {
                    "type": "http.response.start",
                    "status": 500,
                    "headers": [
                        (b"content-type", b"application/json"),
                        (b"content-length", str(len(body)).encode()),
                    ],
                }
            )
            await send({"type": "http.response.body", "body": body})
