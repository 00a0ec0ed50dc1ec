"""
Transaction Time - measures the time between the two events of a transaction.

Features:
- Order-independent pairing of events by uid
- Aging sweep dropping transactions that never complete
- WebSocket stream of completed transactions
- Structured logging with request ids
- Prometheus metrics
- Health checks (liveness and readiness)
"""
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from .config import get_settings
from .logging import setup_logging, get_logger
from .api.router import router
from .api.ws_router import router as ws_router
from .middleware import RequestIdMiddleware, MetricsMiddleware, ErrorHandlerMiddleware
from .health import HealthChecker
from .services.pipeline import metrics, transaction_filter, scheduler

settings = get_settings()

setup_logging(json_output=settings.LOG_JSON, service_name="transaction-time", level=settings.LOG_LEVEL)
logger = get_logger()

health_checker = HealthChecker(transaction_filter, service_name="transaction-time", version="0.1.0")

app = FastAPI(
    title="Transaction Time",
    version="0.1.0",
    description="Correlates event pairs by uid and measures the time between them",
)

# Last added runs first: request id, then error handling, then metrics
app.add_middleware(MetricsMiddleware, metrics=metrics)
app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(RequestIdMiddleware)

app.include_router(router)
app.include_router(ws_router)

metrics_app = make_asgi_app(registry=metrics.registry)
app.mount("/metrics", metrics_app)


@app.get("/health")
async def health():
    """Liveness probe."""
    return health_checker.liveness()


@app.get("/health/ready")
async def health_ready():
    """
    Readiness probe.

    Returns:
        200: Service is ready to handle traffic
        503: Service is not ready
    """
    metrics.update_system_metrics()
    result = health_checker.readiness()
    status_code = 200 if result["status"] == "ready" else 503
    return JSONResponse(result, status_code=status_code)


@app.on_event("startup")
async def startup_event():
    logger.info(
        "service_starting",
        version="0.1.0",
        env=settings.ENV,
        uid_field=settings.UID_FIELD,
        flush_enabled=settings.FLUSH_ENABLED,
    )
    if settings.FLUSH_ENABLED:
        scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("service_stopping", pending=transaction_filter.pending_count)
    scheduler.shutdown()
    metrics.app_up.labels(service="transaction-time", version="0.1.0").set(0)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "transaction_time.main:app",
        host="0.0.0.0",
        port=settings.SERVICE_PORT,
    )
