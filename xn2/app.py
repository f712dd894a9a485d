from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from xer.runner import Runner

logger = logging.getLogger("xn2.app")


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        start = time.monotonic()
        response = await call_next(request)
        logger.info(
            "request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "latency_seconds": round(time.monotonic() - start, 6),
                "client_ip": request.client.host if request.client else "",
            },
        )
        return response


def create_app(runner: Runner, debug: bool = False) -> FastAPI:
    app = FastAPI(
        title="xn2",
        docs_url="/docs" if debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if debug else None,
    )
    app.state.runner = runner
    app.add_middleware(AccessLogMiddleware)

    @app.get("/metrics")
    def metrics() -> Response:
        payload = generate_latest(runner.registry)
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz")
    def healthz() -> JSONResponse:
        return JSONResponse(content={"status": "ok", "sets": len(runner.sets)})

    return app
