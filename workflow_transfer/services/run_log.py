"""Structured JSON-lines run log."""

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from ..logging_utils import mask_secrets

logger = logging.getLogger(__name__)


class RunLog:
    """
    Appends one JSON object per line to a log file.

    Every entry is passed through secret masking before it is written.
    A write failure is logged and otherwise ignored.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def write(self, event: str, **fields: Any) -> Dict[str, Any]:
        entry = {"timestamp": datetime.utcnow().isoformat(), "event": event}
        entry.update(fields)
        line = mask_secrets(json.dumps(entry, default=str))

        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
            except OSError as e:
                logger.warning(f"Could not write run log {self.path}: {e}")

        return entry

    def read(self) -> List[Dict[str, Any]]:
        """Load every entry written so far."""
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
