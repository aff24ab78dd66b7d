import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from purchase_guard.advisor.service import PurchaseAdvisor
from purchase_guard.api.v1.router import api_v1_router
from purchase_guard.core.config import settings, validate_settings_for_production
from purchase_guard.core.dependencies import get_advisor
from purchase_guard.core.logging import setup_logging
from purchase_guard.core.metrics import PrometheusMiddleware, metrics_response
from purchase_guard.core.sentry import init_sentry

# Configure logging before anything else
setup_logging()
init_sentry()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings_for_production()
    advisor = get_advisor()
    logger.info("Starting Purchase Guard with %d API key(s)...", len(advisor.key_pool))

    yield

    logger.info("Purchase Guard shut down")


app = FastAPI(
    title="Purchase Guard",
    description="AI purchase advisor with API key rotation and safe fallbacks",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": f"{type(exc).__name__}: {exc}"})


app.add_middleware(PrometheusMiddleware)

# CORS: parse allowed_origins from settings (comma-separated)
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(api_v1_router)


@app.get("/api/v1/health")
async def health(advisor: PurchaseAdvisor = Depends(get_advisor)):
    states = advisor.key_pool.get_all_states()
    healthy = sum(1 for s in states if s["state"] == "healthy")
    return {
        "status": "ok" if healthy else "degraded",
        "keys_total": len(states),
        "keys_healthy": healthy,
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()
