from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from relief_proxy.cache import SnapshotCache
from relief_proxy.dependencies import (
    get_emergency_cache,
    get_feed_metrics,
    get_redis_manager,
    get_relief_cache,
    get_scheduler,
    get_settings,
)
from relief_proxy.errors import ApiError, ConfigurationError, NoDataAvailableError
from relief_proxy.middleware import ObservabilityMiddleware
from relief_proxy.observability import (
    CompositeApiMetricsCollector,
    InMemoryApiMetricsCollector,
    PrometheusApiMetricsCollector,
    PrometheusFeedMetrics,
    get_trace_id,
)
from relief_proxy.response import error_response, no_data_payload, success_response
from relief_proxy.routers.emergencies import router as emergencies_router
from relief_proxy.routers.relief_actions import router as relief_actions_router
from relief_proxy.telemetry import configure_logging, configure_otel, configure_probe_access_log_filter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    await get_scheduler().close()
    redis_manager = get_redis_manager()
    if redis_manager is not None:
        await redis_manager.close()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Relief Proxy", version="0.1.0", lifespan=lifespan)
    configure_logging(settings.LOG_LEVEL)
    configure_otel(service_name=settings.SERVICE_NAME)
    configure_probe_access_log_filter()
    app.state.api_metrics = InMemoryApiMetricsCollector()
    app.state.prom_metrics = PrometheusApiMetricsCollector()
    app.state.composite_metrics = CompositeApiMetricsCollector(
        [app.state.api_metrics, app.state.prom_metrics]
    )
    app.add_middleware(ObservabilityMiddleware, collector=app.state.composite_metrics)
    app.include_router(emergencies_router)
    app.include_router(relief_actions_router)

    @app.get("/healthz")
    async def healthz() -> dict:
        return success_response({"status": "ok"}, meta={})

    @app.get("/readyz")
    async def readyz(
        emergency_cache: SnapshotCache = Depends(get_emergency_cache),
        relief_cache: SnapshotCache = Depends(get_relief_cache),
    ) -> dict:
        feeds = {cache.name: cache.state.value for cache in (emergency_cache, relief_cache)}
        return success_response({"status": "ready", "feeds": feeds}, meta={})

    @app.get("/metrics")
    async def metrics(feed_metrics: PrometheusFeedMetrics = Depends(get_feed_metrics)) -> Response:
        payload = app.state.prom_metrics.render() + feed_metrics.render()
        return Response(content=payload, media_type="text/plain; version=0.0.4")

    @app.exception_handler(ApiError)
    async def handle_api_error(_: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_response(exc.code, exc.message))

    @app.exception_handler(NoDataAvailableError)
    async def handle_no_data(_: Request, exc: NoDataAvailableError) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content=no_data_payload(exc),
            headers={"Cache-Control": "no-store"},
        )

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error(
            "feed_misconfigured",
            extra={"path": request.url.path, "trace_id": get_trace_id(), "error": str(exc)},
        )
        return JSONResponse(status_code=500, content=error_response("CONFIGURATION_ERROR", str(exc)))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        message = "; ".join(err["msg"] for err in exc.errors())
        return JSONResponse(
            status_code=422,
            content=error_response("VALIDATION_ERROR", message),
        )

    return app


app = create_app()
