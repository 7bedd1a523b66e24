"""
Middleware that tags every HTTP request with a request ID.

The ID is taken from an incoming X-Request-ID header when present, bound
into the structlog context for the request, and echoed on the response.
"""

import uuid

from starlette.datastructures import Headers

from response_cache.logging import bind_context

REQUEST_ID_HEADER = "x-request-id"


class RequestIDMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = request_id

        bind_context(request_id=request_id)

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                headers = message.setdefault("headers", [])
                headers.append((REQUEST_ID_HEADER.encode(), request_id.encode()))
            await send(message)

        await self.app(scope, receive, send_wrapper)
