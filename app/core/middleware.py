from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.context import set_run_id


class RunContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        """
        Sets run_id into contextvars for the lifetime of the request.

        Priority:
        1. Path segment: /v1/runs/{run_id}/...
        2. Header: X-Run-Id
        """
        run_id = None

        parts = [p for p in request.url.path.split("/") if p]
        if len(parts) >= 3 and parts[0] == "v1" and parts[1] == "runs":
            run_id = parts[2]

        if not run_id:
            run_id = request.headers.get("X-Run-Id")

        try:
            if run_id:
                set_run_id(str(run_id))
            response = await call_next(request)
            return response
        finally:
            # always clear context
            set_run_id(None)
