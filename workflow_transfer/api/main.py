"""FastAPI application entry point."""

import os
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import transfers
from .storage import TransferStore
from ..cli import build_manager
from ..config import load_config
from ..logging_utils import configure_logging
from ..orchestrator import TransferManager
from ..plugins.registry import PluginRegistry, create_default_registry


def default_manager_factory() -> TransferManager:
    """Build a manager from WORKFLOW_TRANSFER_CONFIG and the environment."""
    return build_manager(load_config(os.environ.get("WORKFLOW_TRANSFER_CONFIG")))


def create_app(
    manager_factory: Optional[Callable[[], TransferManager]] = None,
    registry: Optional[PluginRegistry] = None
) -> FastAPI:
    app = FastAPI(
        title="Workflow Transfer API",
        description="API for transferring and validating workflows between n8n instances",
        version="1.0.0",
    )

    # CORS middleware for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.manager_factory = manager_factory or default_manager_factory
    app.state.registry = registry or create_default_registry()
    app.state.transfer_store = TransferStore()

    # Include routers
    app.include_router(transfers.router, prefix="/api", tags=["transfers"])

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


configure_logging(os.environ.get("WORKFLOW_TRANSFER_VERBOSE") == "1")
app = create_app()
