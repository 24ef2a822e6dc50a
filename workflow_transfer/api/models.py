"""Pydantic models for API requests and responses."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime


# Request Models
class TransferCreate(BaseModel):
    """Options for a new transfer; keys follow TransferOptions."""
    options: Dict[str, Any] = Field(default_factory=dict)


class IDValidationRequest(BaseModel):
    records: List[Dict[str, Any]]
    config: Dict[str, Any] = Field(default_factory=dict)


# Response Models
class TransferStarted(BaseModel):
    id: str
    status: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ProgressResponse(BaseModel):
    status: str
    processed: int = 0
    total: int = 0
    transferred: int = 0
    skipped: int = 0
    failed: int = 0
    percentage: float = 0.0


class TransferResponse(BaseModel):
    id: str
    progress: ProgressResponse
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: datetime


class DuplicateGroupResponse(BaseModel):
    internal_id: str
    record_ids: List[str]
    count: int
    suggestions: List[str] = Field(default_factory=list)


class IDValidationResponse(BaseModel):
    valid: bool
    total_records: int
    duplicates_found: int
    truncated: bool = False
    duplicates: List[DuplicateGroupResponse] = Field(default_factory=list)
    timestamp: datetime


class PluginInfo(BaseModel):
    name: str
    version: str
    type: str
    enabled: bool
    description: str = ""
    options: Dict[str, Any] = Field(default_factory=dict)


class PluginListResponse(BaseModel):
    plugins: List[PluginInfo]
    total: int
