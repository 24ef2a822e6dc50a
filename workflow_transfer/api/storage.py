"""In-memory store of transfers started through the API."""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from ..models.transfer import TransferOptions
from ..orchestrator import TransferManager


@dataclass
class TransferRun:
    """A transfer started through the API and its manager."""
    manager: TransferManager
    options: TransferOptions
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.utcnow)
    error: Optional[str] = None


class TransferStore:
    """Thread-safe registry of API-started transfers for the process lifetime."""

    def __init__(self):
        self._runs: Dict[str, TransferRun] = {}
        self._lock = threading.Lock()

    def add(self, run: TransferRun) -> TransferRun:
        with self._lock:
            self._runs[run.id] = run
        return run

    def get(self, transfer_id: str) -> Optional[TransferRun]:
        with self._lock:
            return self._runs.get(transfer_id)

    def list_all(self) -> List[TransferRun]:
        with self._lock:
            return list(self._runs.values())
