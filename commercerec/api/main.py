"""FastAPI application main module.

This module defines the main FastAPI application instance, its exception
handling and the service endpoints (health, status, metrics, reload) of the
CommerceRec recommendation service.
"""

import logging
from typing import Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from commercerec import __version__
from commercerec.api.dependencies import (
    ServiceState,
    get_optional_state,
    load_state_if_needed,
    reset_state,
)
from commercerec.api.logging_config import RequestLoggingMiddleware, setup_logging
from commercerec.api.metrics import metrics_service
from commercerec.api.routes import ratings, recommend
from commercerec.api.schemas import StatusResponse
from commercerec.config import Settings
from commercerec.exceptions import CommerceRecException

setup_logging(Settings.from_env().log_level)
logger = logging.getLogger(__name__)

# Create FastAPI application instance
app = FastAPI(
    title="CommerceRec API",
    description="Rating-based product recommendations for an e-commerce backend",
    version=__version__,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)
app.include_router(ratings.router)


@app.exception_handler(CommerceRecException)
async def commercerec_exception_handler(
    request: Request, exc: CommerceRecException
) -> JSONResponse:
    """Answer domain errors with their status code and a JSON body."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request rejected",
        extra={
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "status_code": exc.status_code,
            "error": exc.message,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Returns:
        Dictionary with status key set to "ok".
    """
    return {"status": "ok"}


@app.get("/status", response_model=StatusResponse)
def store_status(
    state: Optional[ServiceState] = Depends(get_optional_state),
) -> StatusResponse:
    """Report whether the store is loaded and how much it holds.

    Works even when the data files are missing.
    """
    if state is None:
        return StatusResponse(store_loaded=False)
    return StatusResponse(
        store_loaded=True,
        timestamp_last_loaded=state.loaded_at.isoformat(),
        num_users=state.store.num_users,
        num_items=state.store.num_items,
    )


@app.get("/metrics")
def get_metrics() -> Dict:
    """Recommendation call counts and latency."""
    return metrics_service.get_metrics()


@app.post("/store/reload")
def reload_store() -> Dict[str, str]:
    """Reload the CSV data and start with an empty recommendation cache.

    Raises:
        StorageUnavailableError: If the data files cannot be loaded.
    """
    logger.info("Reloading store...")
    reset_state()
    load_state_if_needed()
    return {"status": "Store reloaded successfully"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "commercerec.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
