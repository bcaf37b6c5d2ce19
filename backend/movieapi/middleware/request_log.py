from __future__ import annotations

import logging
import time
import uuid

from fastapi import FastAPI, Request

logger = logging.getLogger("movieapi.access")

REQUEST_ID_HEADER = "X-Request-ID"


def generate_request_id(existing: str | None = None) -> str:
    if existing and existing.strip():
        return existing.strip()
    return uuid.uuid4().hex


def register_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_log_middleware(request: Request, call_next):
        """
        One access-log line per request, tagged with a request id that is
        taken from X-Request-ID when the client sends one and echoed back.
        """
        request_id = generate_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "%s %s %s %.1fms request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response
