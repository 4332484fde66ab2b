"""Request ID middleware.

Generates or forwards X-Request-ID, exposes it to log records for the
lifetime of the request and echoes it on the response. Client values are
sanitized (length + character set) to prevent log injection. Raw ASGI.
"""

import re
import uuid
from typing import Callable

from app.shared.telemetry.logging import request_id_var

REQUEST_ID_MAX_LENGTH = 64
REQUEST_ID_ALLOWED_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")


def _header(scope: dict, name: str) -> str | None:
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace").strip()
    return None


def resolve_request_id(raw: str | None) -> str:
    """Keep a safe client-supplied id; otherwise mint a new one."""
    if raw and REQUEST_ID_ALLOWED_PATTERN.match(raw):
        return raw
    return uuid.uuid4().hex


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = resolve_request_id(_header(scope, header_name))
        scope.setdefault("state", {})["request_id"] = request_id
        token = request_id_var.set(request_id)

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (header_name.encode(), request_id.encode()),
                ]
            await send(message)

        try:
            await app(scope, receive, send_wrapper)
        finally:
            request_id_var.reset(token)

    return asgi_app
