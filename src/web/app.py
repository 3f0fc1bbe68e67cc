"""
FastAPI application factory for the presence monitor reporting API.

Routes:
- /api/status -> driver liveness and latest detection count
- /api/presence -> tracked-entity snapshot with durations
- /api/frame.jpg -> latest annotated frame
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .routes import api
from .state import ReportingState


def create_app(state: Optional[ReportingState] = None) -> FastAPI:
    """Create the FastAPI app bound to a reporting state."""
    app = FastAPI(
        title="Presence Monitor",
        version="0.1.0",
        description="Real-time detection and presence duration reporting",
    )
    app.state.reporting = state if state is not None else ReportingState()
    app.include_router(api.router, prefix="/api")
    return app


def start_server_thread(state: ReportingState, host: str, port: int) -> threading.Thread:
    """Serve the reporting API from a daemon thread."""
    app = create_app(state)
    thread = threading.Thread(
        target=uvicorn.run,
        kwargs={"app": app, "host": host, "port": port, "log_level": "warning"},
        daemon=True,
        name="reporting-api",
    )
    thread.start()
    logging.info(f"Reporting API listening on http://{host}:{port}/api/status")
    return thread
