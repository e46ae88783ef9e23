"""
User Registry — Request ID Middleware
======================================

What:  Tags every request with an ID that shows up in the X-Request-ID
       response header, in each error body, and in the access log.
How:   A client-sent X-Request-ID is reused when it looks like an ID;
       anything else is replaced by a fresh 8-character one. The value
       lives in a ContextVar so exception handlers can read it without
       access to the request.

Accepted client IDs:
    1-64 characters of letters, digits, '.', '_' or '-'. Longer or odd
    values are dropped rather than echoed into headers and log lines.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

HEADER = "X-Request-ID"

_CLIENT_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,64}")

# Coroutine-local: concurrent requests on one event loop each see their own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(client_value: Optional[str]) -> str:
    """Return the client's ID if it is usable, otherwise a generated one."""
    if client_value and _CLIENT_ID_PATTERN.fullmatch(client_value):
        return client_value
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Outermost middleware; everything after it can read request_id_var."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(HEADER))
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[HEADER] = rid
        return response
