"""Transfer execution and validation endpoints."""

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request

from ..models import (
    IDValidationRequest,
    IDValidationResponse,
    PluginInfo,
    PluginListResponse,
    ProgressResponse,
    TransferCreate,
    TransferResponse,
    TransferStarted,
)
from ..storage import TransferRun, TransferStore
from ...errors import ConfigError, TransferError
from ...models.record import Record
from ...models.transfer import TransferOptions
from ...models.validation import ValidationConfig
from ...services.validation_service import ValidationService

logger = logging.getLogger(__name__)

router = APIRouter()


def _store(request: Request) -> TransferStore:
    return request.app.state.transfer_store


def _get_run(request: Request, transfer_id: str) -> TransferRun:
    run = _store(request).get(transfer_id)
    if not run:
        raise HTTPException(status_code=404, detail="Transfer not found")
    return run


@router.post("/transfers", response_model=TransferStarted)
async def start_transfer(data: TransferCreate, request: Request, background_tasks: BackgroundTasks):
    """Validate options and start a transfer in the background."""
    try:
        options = TransferOptions.from_dict(data.options)
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    manager = request.app.state.manager_factory()
    run = _store(request).add(TransferRun(manager=manager, options=options))

    background_tasks.add_task(run_transfer_task, run)

    return TransferStarted(id=run.id, status="started", created_at=run.created_at)


def _to_response(run: TransferRun) -> TransferResponse:
    result = run.manager.result
    return TransferResponse(
        id=run.id,
        progress=ProgressResponse(**run.manager.get_progress().to_dict()),
        result=result.to_dict() if result else None,
        error=run.error,
        created_at=run.created_at,
    )


@router.get("/transfers", response_model=List[TransferResponse])
async def list_transfers(request: Request):
    """List all transfers started by this process."""
    return [_to_response(run) for run in _store(request).list_all()]


@router.get("/transfers/{transfer_id}", response_model=TransferResponse)
async def get_transfer(transfer_id: str, request: Request):
    """Progress and, once finished, the result of a transfer."""
    return _to_response(_get_run(request, transfer_id))


@router.post("/transfers/{transfer_id}/cancel")
async def cancel_transfer(transfer_id: str, request: Request):
    """Cancel a running transfer."""
    run = _get_run(request, transfer_id)
    if not run.manager.cancel():
        raise HTTPException(
            status_code=400,
            detail=f"Cannot cancel transfer in status: {run.manager.get_progress().status.value}"
        )
    return {"status": "cancelling"}


def run_transfer_task(run: TransferRun):
    """Background task running the transfer to completion."""
    try:
        run.manager.transfer(run.options)
    except TransferError as e:
        run.error = str(e)
        logger.error(f"Transfer {run.id} failed: {e}")


@router.post("/validation/ids", response_model=IDValidationResponse)
async def validate_ids(data: IDValidationRequest):
    """Check posted records for duplicated internal IDs without failing."""
    try:
        config = ValidationConfig.from_dict(data.config)
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    records = [Record.from_dict(item) for item in data.records]
    report = ValidationService(config).validate_non_blocking(records)
    return IDValidationResponse(**report.to_dict())


@router.get("/plugins", response_model=PluginListResponse)
async def list_plugins(request: Request):
    """List registered plugins."""
    plugins = [PluginInfo(**p.get_info()) for p in request.app.state.registry.get_all()]
    return PluginListResponse(plugins=plugins, total=len(plugins))
