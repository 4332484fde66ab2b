"""Request timeout middleware.

A sync run bounds itself with its own deadline; this is the outer guard in
case something below it hangs. Sends 504 when the request overruns. Raw ASGI.
"""

import asyncio
import json
from typing import Callable

from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def TimeoutMiddleware(app: Callable, timeout_seconds: int) -> Callable:
    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        response_started = False

        async def send_wrapper(message: dict) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(app(scope, receive, send_wrapper), timeout=timeout_seconds)
        except TimeoutError:
            logger.warning(
                "Request timed out after %ss: %s %s",
                timeout_seconds,
                scope.get("method", ""),
                scope.get("path", ""),
            )
            if response_started:
                return
            body = json.dumps(
                {
                    "error": "GATEWAY_TIMEOUT",
                    "message": f"Request timed out after {timeout_seconds} seconds",
                    "details": {"timeout_seconds": timeout_seconds},
                }
            ).encode()
            await send(
                {
                    "type": "http.response.start",
                    "status": 504,
                    "headers": [(b"content-type", b"application/json")],
                }
            )
            await send({"type": "http.response.body", "body": body, "more_body": False})

    return asgi_app
