# ============================================================================
# ATHEON - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core - FastAPI application entry point
# PURPOSE: Host that reconciles the schema before accepting traffic
# CREATED: 17 OCT 2026
# ============================================================================
"""
Atheon Main Application

FastAPI application that:
1. Loads the database configuration and opens the database
2. Reconciles the declared schema before serving (startup fails on any
   fatal schema error, so the app never reports ready with a broken schema)
3. Exposes liveness, readiness and the last reconciliation summary

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import os
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from __version__ import __version__, BUILD_DATE, EPOCH
from core.config import load_database_options
from core.logging import ComponentType, configure_logging, get_logger
from infrastructure import DatabaseInitializer, create_db_access
from repositories import DestinyRepository, SettingsStorage

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__, ComponentType.API)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Reconciles the schema on startup, closes the database on shutdown.
    """
    logger.info(f"Starting Atheon v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    app.state.ready = False
    app.state.schema_result = None
    cancel_event = threading.Event()

    options = load_database_options()
    db = create_db_access(options)
    app.state.db = db

    try:
        initializer = DatabaseInitializer(db, options)
        app.state.codecs = initializer.registry
        app.state.schema_result = await initializer.initialize_schema_async(cancel_event)
        app.state.destiny = DestinyRepository(db, initializer.registry, initializer.extractor)
        app.state.settings = SettingsStorage(db, initializer.registry, initializer.extractor)
        app.state.ready = True
        logger.info("Schema ready, accepting traffic")

        yield

    finally:
        logger.info("Shutting down Atheon...")
        cancel_event.set()
        app.state.ready = False
        db.close()
        logger.info("Atheon stopped")


# Create FastAPI app
app = FastAPI(
    title="Atheon",
    description="Destiny 2 clan tracking backend",
    version=__version__,
    lifespan=lifespan,
)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Atheon",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
    }


@app.get("/livez")
async def livez():
    return {"status": "alive"}


@app.get("/readyz")
async def readyz():
    """Ready once the schema has been reconciled."""
    if not getattr(app.state, "ready", False):
        return JSONResponse(status_code=503, content={"status": "not_ready"})

    result = app.state.schema_result
    return {
        "status": "ready",
        "dialect": result.dialect,
        "schema": result.to_dict()["summary"],
    }


@app.get("/schema")
async def schema_status():
    """Full result of the startup reconciliation."""
    result = getattr(app.state, "schema_result", None)
    if result is None:
        return JSONResponse(status_code=503, content={"status": "not_initialized"})
    return result.to_dict()


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
