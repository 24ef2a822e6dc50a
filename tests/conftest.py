"""Shared fixtures: in-memory endpoints and record builders."""

import threading
from typing import Dict, List, Optional

import pytest

from workflow_transfer.clients.base import BaseEndpoint
from workflow_transfer.models.record import Record
from workflow_transfer.models.transfer import TransferFilters
from workflow_transfer.orchestrator import TransferManager
from workflow_transfer.plugins.registry import create_default_registry
from workflow_transfer.retry import RetryPolicy


def make_record(
    record_id: str,
    name: str,
    tags: Optional[List[str]] = None,
    nodes: Optional[List[dict]] = None,
    connections: Optional[dict] = None,
    settings: Optional[dict] = None
) -> Record:
    """A workflow with a two-node chain unless nodes are given."""
    if nodes is None:
        nodes = [
            {"id": "n1", "name": "Start", "type": "n8n-nodes-base.manualTrigger"},
            {"id": "n2", "name": "Set", "type": "n8n-nodes-base.set"},
        ]
        if connections is None:
            connections = {"Start": {"main": [[{"node": "Set", "type": "main", "index": 0}]]}}
    body = {"nodes": nodes, "connections": connections or {}}
    if settings is not None:
        body["settings"] = settings
    return Record(id=record_id, name=name, tags=list(tags or []), body=body)


class FakeEndpoint(BaseEndpoint):
    """
    In-memory endpoint.

    ``create_errors`` maps a record name to exceptions raised by successive
    create calls for it; once the list is used up the call succeeds.
    """

    def __init__(
        self,
        name: str,
        records: Optional[List[Record]] = None,
        connectivity_error: Optional[Exception] = None,
        create_errors: Optional[Dict[str, List[Exception]]] = None,
        on_create=None,
        list_error: Optional[Exception] = None
    ):
        super().__init__(name, f"https://{name}.example.com")
        self.records = list(records or [])
        self.connectivity_error = connectivity_error
        self.create_errors = {k: list(v) for k, v in (create_errors or {}).items()}
        self.on_create = on_create
        self.list_error = list_error
        self.connectivity_calls = 0
        self.list_calls = 0
        self.created: List[Record] = []
        self.create_attempts = 0
        self._lock = threading.Lock()

    def test_connectivity(self) -> None:
        self.connectivity_calls += 1
        if self.connectivity_error is not None:
            raise self.connectivity_error

    def list_records(self, filters: Optional[TransferFilters] = None) -> List[Record]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.records)

    def create_or_update_record(self, record: Record) -> str:
        with self._lock:
            self.create_attempts += 1
            errors = self.create_errors.get(record.name)
            error = errors.pop(0) if errors else None
        if self.on_create is not None:
            self.on_create(record)
        if error is not None:
            raise error
        with self._lock:
            self.created.append(record)
            return f"t-{record.id}"


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def retry_policy(sleeps):
    return RetryPolicy(sleep=sleeps.append)


@pytest.fixture
def registry(tmp_path):
    return create_default_registry(output_dir=str(tmp_path / "reports"))


@pytest.fixture
def make_manager(registry, retry_policy):
    """Factory for managers over fake endpoints."""
    def factory(source_records=None, target_records=None, **kwargs):
        source = kwargs.pop("source", None) or FakeEndpoint("source", source_records)
        target = kwargs.pop("target", None) or FakeEndpoint("target", target_records)
        return TransferManager(source, target, registry, retry_policy=retry_policy, **kwargs)
    return factory
