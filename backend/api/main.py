"""FastAPI application for the delivery pooling engine.

This API provides endpoints for:
- Submitting and cancelling pooled delivery requests
- Querying active pools and pool change events
- Customer-facing fare quotes and vehicle recommendations
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import os
import traceback

from backend.api.schemas import ErrorResponse, HealthResponse
from backend.api.routes import pools, fares
from backend.core.pooling import PoolEventBus, PoolEventSubscription, PoolingEngine
from backend.core.pricing.fare_quote import FareQuoteService
from backend.services.delivery_lifecycle import DeliveryLifecycleService
from backend.utils.config import build_fare_service, build_pooling_engine, load_model_config

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_EVENT_SUBSCRIBER = "api"


class AppState:
    """Centralized application state."""

    def __init__(self):
        self.engine: PoolingEngine = None
        self.event_bus: PoolEventBus = None
        self.event_subscription: PoolEventSubscription = None
        self.lifecycle: DeliveryLifecycleService = None
        self.fare_service: FareQuoteService = None

    def initialize(self, config: dict = None):
        """Initialize all components."""
        logger.info("Initializing pooling engine components...")

        cfg = load_model_config() if config is None else config

        self.event_bus = PoolEventBus()
        self.event_subscription = self.event_bus.subscribe(API_EVENT_SUBSCRIBER)
        self.engine = build_pooling_engine(cfg, event_bus=self.event_bus)
        self.lifecycle = DeliveryLifecycleService(self.engine)
        self.fare_service = build_fare_service(cfg)

        logger.info("All components initialized successfully")

    def shutdown(self):
        """Cleanup on shutdown."""
        logger.info("Shutting down pooling engine components...")
        if self.event_bus:
            self.event_bus.unsubscribe(API_EVENT_SUBSCRIBER)
        logger.info("Shutdown complete")


# Create global app state
app_state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    logger.info("Starting Delivery Pooling Engine API")
    app_state.initialize()

    yield

    app_state.shutdown()
    logger.info("Delivery Pooling Engine API shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Delivery Pooling Engine API",
    description="Groups compatible delivery requests into shared-vehicle pools",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(f"Unhandled exception: {exc}")
    logger.error(traceback.format_exc())

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal Server Error",
            detail=str(exc),
        ).model_dump(mode="json"),
    )


def _component_status(healthy: str, unhealthy: str) -> dict:
    return {
        "engine": healthy if app_state.engine else unhealthy,
        "lifecycle": healthy if app_state.lifecycle else unhealthy,
        "fares": healthy if app_state.fare_service else unhealthy,
        "events": healthy if app_state.event_bus else unhealthy,
    }


@app.get("/", response_model=HealthResponse, tags=["Health"])
async def root():
    """Root endpoint - health check."""
    return HealthResponse(
        status="healthy",
        components=_component_status("initialized", "not_initialized"),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Detailed health check."""
    components_status = _component_status("healthy", "unhealthy")

    if not app_state.engine:
        raise HTTPException(status_code=503, detail="Service unhealthy")

    overall_status = "healthy" if all(
        s == "healthy" for s in components_status.values()
    ) else "degraded"

    return HealthResponse(status=overall_status, components=components_status)


# Include routers
app.include_router(pools.router, prefix="/api/v1", tags=["Pools"])
app.include_router(fares.router, prefix="/api/v1", tags=["Fares"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.api.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        reload=False,
    )
