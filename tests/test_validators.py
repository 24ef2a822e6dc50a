"""Tests for validator plugins."""

from workflow_transfer.plugins.validators import IntegrityValidator, SchemaValidator, summarize
from tests.conftest import make_record


def _messages(issues, severity):
    return [i.message for i in issues if i.severity == severity]


class TestIntegrityValidator:
    def test_valid_chain(self):
        issues = IntegrityValidator().validate(make_record("1", "ok"))
        assert _messages(issues, "error") == []
        assert _messages(issues, "warning") == []

    def test_no_nodes(self):
        issues = IntegrityValidator().validate(make_record("1", "empty", nodes=[]))
        assert len(issues) == 1
        assert issues[0].severity == "error"
        assert issues[0].field == "nodes"

    def test_unknown_target(self):
        record = make_record(
            "1", "bad",
            nodes=[{"id": "n1", "name": "Start"}],
            connections={"Start": {"main": [[{"node": "Ghost"}]]}},
        )
        errors = _messages(IntegrityValidator().validate(record), "error")
        assert errors == ["Connection from 'Start' to 'Ghost' references a node that does not exist"]

    def test_unknown_source(self):
        record = make_record(
            "1", "bad",
            nodes=[{"id": "n1", "name": "Start"}],
            connections={"Ghost": {"main": [[{"node": "Start"}]]}},
        )
        errors = _messages(IntegrityValidator().validate(record), "error")
        assert any("'Ghost'" in e for e in errors)

    def test_connections_by_id(self):
        record = make_record(
            "1", "ids",
            nodes=[{"id": "n1", "name": "Start"}, {"id": "n2", "name": "End"}],
            connections={"n1": {"main": [[{"node": "n2"}]]}},
        )
        assert _messages(IntegrityValidator().validate(record), "error") == []

    def test_cycle(self):
        record = make_record(
            "1", "loop",
            nodes=[{"id": "a", "name": "A"}, {"id": "b", "name": "B"}],
            connections={
                "A": {"main": [[{"node": "B"}]]},
                "B": {"main": [[{"node": "A"}]]},
            },
        )
        errors = _messages(IntegrityValidator().validate(record), "error")
        assert errors == ["Circular dependency detected: a -> b -> a"]

    def test_find_cycle_acyclic(self):
        assert IntegrityValidator.find_cycle({"a": {"b"}, "b": {"c"}, "c": set()}) is None

    def test_find_cycle_long_chain(self):
        edges = {f"n{i:05d}": {f"n{i + 1:05d}"} for i in range(5000)}
        assert IntegrityValidator.find_cycle(edges) is None

        edges["n05000"] = {"n04998"}
        assert IntegrityValidator.find_cycle(edges) == ["n04998", "n04999", "n05000", "n04998"]

    def test_no_connections_warns(self):
        record = make_record("1", "single", nodes=[{"id": "n1", "name": "Start"}], connections={})
        issues = IntegrityValidator().validate(record)
        assert _messages(issues, "error") == []
        assert _messages(issues, "warning") == ["Record has no connections defined"]

    def test_orphaned_node(self):
        record = make_record(
            "1", "orphan",
            nodes=[{"id": "n1", "name": "A"}, {"id": "n2", "name": "B"}, {"id": "n3", "name": "C"}],
            connections={"A": {"main": [[{"node": "B"}]]}},
        )
        warnings = _messages(IntegrityValidator().validate(record), "warning")
        assert warnings == ["Node 'C' is not connected"]

    def test_credential_and_disabled_warnings(self):
        record = make_record(
            "1", "creds",
            nodes=[
                {"id": "n1", "name": "A", "credentials": {"httpAuth": {}}},
                {"id": "n2", "name": "B", "disabled": True},
            ],
            connections={"A": {"main": [[{"node": "B"}]]}},
        )
        warnings = _messages(IntegrityValidator().validate(record), "warning")
        assert "Node 'A' (n1) has credential 'httpAuth' without id or name" in warnings
        assert "Node 'B' (n2) is disabled" in warnings


class TestSchemaValidator:
    def test_valid(self):
        record = make_record("1", "ok", tags=["prod"], settings={})
        assert SchemaValidator().validate(record) == []

    def test_missing_name_and_nodes(self):
        issues = SchemaValidator().validate(make_record("1", "", nodes=[]))
        fields = {i.field for i in issues}
        assert {"name", "nodes"} <= fields
        assert all(i.severity == "error" for i in issues)

    def test_warnings(self):
        issues = SchemaValidator().validate(make_record("1", "ok"))
        assert {i.field for i in issues} == {"tags", "settings"}
        errors, warnings = summarize(issues)
        assert errors == []
        assert len(warnings) == 2
