"""
FastAPI service skeleton for the container metrics collector.

Subclasses add their routes and lifecycle hooks on ``self.app``; this
class owns configuration, logging, self-metrics, request correlation
and error translation.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from typing import Optional
import time

from shared.config import CollectorConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context, request_id_var
from shared.metrics import get_metrics_collector
from shared.errors import CollectorError, ErrorResponse

REQUEST_ID_HEADER = "x-request-id"


def route_label(request: Request) -> str:
    """Route template for metric labels; unmatched paths share one label."""
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, config: Optional[CollectorConfig] = None):
        self.service_name = service_name
        self.config = config or get_config()
        self.port = self.config.port

        configure_logging(service_name, self.config.log_level, self.config.log_format)
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name)

        self.app = FastAPI(
            title="Container Metrics Collector",
            description="Republishes Prometheus metrics of labelled containers",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url=None,
        )
        self._install_request_middleware()
        self._install_common_routes()
        self._install_error_handlers()

    def _install_request_middleware(self):
        @self.app.middleware("http")
        async def correlate_and_time(request: Request, call_next):
            request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
            started = time.perf_counter()
            try:
                response = await call_next(request)
            finally:
                clear_context()
            elapsed = time.perf_counter() - started

            response.headers[REQUEST_ID_HEADER] = request_id
            self.metrics.record_http_request(
                method=request.method,
                endpoint=route_label(request),
                status_code=response.status_code,
                duration=elapsed,
            )
            self.logger.debug(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                request_id=request_id,
                duration_ms=round(elapsed * 1000, 2),
            )
            return response

    def _install_common_routes(self):
        @self.app.get("/health", response_class=PlainTextResponse)
        async def health_check():
            """Liveness probe. Independent of collection state."""
            return PlainTextResponse("OK")

    def _install_error_handlers(self):
        @self.app.exception_handler(CollectorError)
        async def collector_error(request: Request, exc: CollectorError):
            self.logger.error("Request failed", code=exc.code, message=exc.message, details=exc.details)
            return JSONResponse(
                status_code=500,
                content=exc.to_response(request_id_var.get()).model_dump(),
            )

        @self.app.exception_handler(Exception)
        async def unexpected_error(request: Request, exc: Exception):
            self.logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=True)
            body = ErrorResponse(code="INTERNAL_ERROR", message="Internal server error")
            return JSONResponse(status_code=500, content=body.model_dump())

    def run(self):
        """Serve the app with uvicorn until interrupted."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower(),
            access_log=False,
        )
