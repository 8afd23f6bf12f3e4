"""FastAPI application for the AI Bootcamp registration API.

This package provides REST endpoints for:
- Health checks
- Event registration and account linking
- Stripe Checkout sessions and the payment success page
- Stripe webhooks
- Registration emails (internal)
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from bootcamp.config import get_settings
from bootcamp.utils.logging import configure_logging, get_logger
from bootcamp_api.exceptions import register_exception_handlers
from bootcamp_api.middleware.correlation import CorrelationIdMiddleware
from bootcamp_api.routes.checkout import router as checkout_router
from bootcamp_api.routes.health import router as health_router
from bootcamp_api.routes.notifications import router as notifications_router
from bootcamp_api.routes.registrations import router as registrations_router
from bootcamp_api.routes.webhooks import router as webhooks_router

configure_logging(get_settings().log_level)
logger = get_logger(__name__)

app = FastAPI(
    title="AI Bootcamp Registration API",
    description="REST API for event registration, Stripe checkout and payment reconciliation",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().app_base_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

# Include routers under /api prefix
app.include_router(health_router, prefix="/api")
app.include_router(registrations_router, prefix="/api")
app.include_router(checkout_router, prefix="/api")
app.include_router(webhooks_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Root health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "bootcamp-api",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run("bootcamp_api.main:app", host=host, port=port, reload=True)
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
