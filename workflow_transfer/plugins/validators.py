"""Validator plugins checking workflow structure."""

import logging
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..models.record import Record, ValidationIssue
from .base import Validator

logger = logging.getLogger(__name__)


def _error(field: str, message: str, **kwargs) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, error_type="integrity", **kwargs)


def _warning(field: str, message: str, **kwargs) -> ValidationIssue:
    return ValidationIssue(
        field=field, message=message, error_type="integrity", severity="warning", **kwargs
    )


class IntegrityValidator(Validator):
    """
    Structural checks on the node graph.

    Errors:
    - no nodes
    - connections pointing at unknown nodes, or missing a target
    - circular dependencies

    Warnings:
    - no connections
    - empty or incomplete credentials
    - disabled nodes
    - orphaned nodes

    Connections may refer to nodes by id or by name.
    """

    name = "integrity"
    description = "Checks nodes, connections, credentials, orphans and cycles"

    def validate(self, record: Record) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        nodes = [n for n in record.nodes if isinstance(n, dict)]

        if not nodes:
            issues.append(_error("nodes", "Record has no nodes; at least one is required"))
            return issues

        known = self._node_keys(nodes)
        edges = self._check_connections(record.body.get("connections"), known, issues)
        self._check_credentials(nodes, issues)
        self._check_orphans(nodes, edges, issues)
        self._check_cycles(edges, issues)

        return issues

    @staticmethod
    def _node_keys(nodes: List[Dict[str, Any]]) -> Dict[str, str]:
        """Map every id and name to the node's canonical key."""
        keys = {}
        for node in nodes:
            canonical = str(node.get("id") or node.get("name"))
            for key in (node.get("id"), node.get("name")):
                if key:
                    keys[str(key)] = canonical
        return keys

    def _iter_connections(
        self,
        source: str,
        connection_types: Any,
        issues: List[ValidationIssue]
    ) -> Iterator[Dict[str, Any]]:
        if not isinstance(connection_types, dict):
            issues.append(_warning("connections", f"Connections of node '{source}' are not a mapping"))
            return
        for connection_type, outputs in connection_types.items():
            if not isinstance(outputs, list):
                issues.append(_warning(
                    "connections",
                    f"Connection type '{connection_type}' of node '{source}' is not a list",
                ))
                continue
            for index, output in enumerate(outputs):
                if output is None:
                    continue
                if not isinstance(output, list):
                    issues.append(_warning(
                        "connections", f"Output {index} of node '{source}' is not a list"
                    ))
                    continue
                for connection in output:
                    if not isinstance(connection, dict):
                        issues.append(_warning(
                            "connections", f"Invalid connection in node '{source}'"
                        ))
                        continue
                    yield connection

    def _check_connections(
        self,
        connections: Any,
        known: Dict[str, str],
        issues: List[ValidationIssue]
    ) -> Dict[str, Set[str]]:
        edges: Dict[str, Set[str]] = {}

        if not connections or not isinstance(connections, dict):
            issues.append(_warning("connections", "Record has no connections defined"))
            return edges

        for source, connection_types in connections.items():
            if source not in known:
                issues.append(_error(
                    "connections", f"Connection from '{source}' references a node that does not exist",
                    value=source,
                ))
                continue

            source_key = known[source]
            targets = edges.setdefault(source_key, set())
            for connection in self._iter_connections(source, connection_types, issues):
                target = connection.get("node")
                if not target:
                    issues.append(_error(
                        "connections", f"Connection in node '{source}' has no target node"
                    ))
                elif target not in known:
                    issues.append(_error(
                        "connections",
                        f"Connection from '{source}' to '{target}' references a node that does not exist",
                        value=target,
                    ))
                else:
                    targets.add(known[target])

        return edges

    def _check_credentials(self, nodes: List[Dict[str, Any]], issues: List[ValidationIssue]) -> None:
        for node in nodes:
            label = f"Node '{node.get('name')}' ({node.get('id')})"
            credentials = node.get("credentials")

            if isinstance(credentials, dict):
                if not credentials:
                    issues.append(_warning("credentials", f"{label} has an empty credentials mapping"))
                for cred_type, cred in credentials.items():
                    if not isinstance(cred, dict):
                        issues.append(_warning(
                            "credentials", f"{label} has invalid credential '{cred_type}'"
                        ))
                    elif not cred.get("id") and not cred.get("name"):
                        issues.append(_warning(
                            "credentials", f"{label} has credential '{cred_type}' without id or name"
                        ))

            if node.get("disabled") is True:
                issues.append(_warning("nodes", f"{label} is disabled"))

    def _check_orphans(
        self,
        nodes: List[Dict[str, Any]],
        edges: Dict[str, Set[str]],
        issues: List[ValidationIssue]
    ) -> None:
        if len(nodes) < 2:
            return

        connected: Set[str] = set()
        for source, targets in edges.items():
            if targets:
                connected.add(source)
                connected.update(targets)

        if not connected:
            issues.append(_warning(
                "connections", f"Record has {len(nodes)} nodes but no connections; all are orphaned"
            ))
            return

        for node in nodes:
            key = str(node.get("id") or node.get("name"))
            if key not in connected:
                issues.append(_warning("nodes", f"Node '{node.get('name')}' is not connected"))

    def _check_cycles(self, edges: Dict[str, Set[str]], issues: List[ValidationIssue]) -> None:
        cycle = self.find_cycle(edges)
        if cycle:
            issues.append(_error(
                "connections", f"Circular dependency detected: {' -> '.join(cycle)}"
            ))

    @staticmethod
    def find_cycle(edges: Dict[str, Set[str]]) -> Optional[List[str]]:
        """Depth-first search with an explicit stack; returns one cycle path or None."""
        done: Set[str] = set()

        for start in sorted(edges):
            if start in done:
                continue
            path = [start]
            on_path = {start}
            stack = [iter(sorted(edges.get(start, ())))]
            while stack:
                target = next(stack[-1], None)
                if target is None:
                    stack.pop()
                    node = path.pop()
                    on_path.discard(node)
                    done.add(node)
                    continue
                if target in on_path:
                    return path[path.index(target):] + [target]
                if target not in done:
                    path.append(target)
                    on_path.add(target)
                    stack.append(iter(sorted(edges.get(target, ()))))
        return None


class WorkflowSchema(BaseModel):
    """Shape a workflow must have to be accepted by the target."""
    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    nodes: List[Any] = Field(min_length=1)
    connections: Any
    tags: List[Any] = Field(default_factory=list)
    active: bool = False
    settings: Optional[Any] = None


class SchemaValidator(Validator):
    """Validates the record against the workflow schema."""

    name = "schema"
    description = "Checks required fields and types of a workflow"

    def validate(self, record: Record) -> List[ValidationIssue]:
        payload = {"name": record.name, "tags": list(record.tags), "active": record.active}
        payload.update(record.body)

        try:
            workflow = WorkflowSchema.model_validate(payload)
        except PydanticValidationError as e:
            return [
                ValidationIssue(
                    field=".".join(str(p) for p in err["loc"]) or "root",
                    message=err["msg"],
                    error_type="schema",
                )
                for err in e.errors()
            ]

        issues = []
        if not workflow.tags:
            issues.append(ValidationIssue(
                field="tags",
                message="Record has no tags",
                error_type="schema",
                severity="warning",
                suggested_fix="Add tags for better organization",
            ))
        if workflow.settings is None:
            issues.append(ValidationIssue(
                field="settings",
                message="Record has no settings; defaults will be used",
                error_type="schema",
                severity="warning",
            ))
        return issues


def summarize(issues: List[ValidationIssue]) -> Tuple[List[ValidationIssue], List[ValidationIssue]]:
    """Split issues into (errors, warnings)."""
    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]
    return errors, warnings
