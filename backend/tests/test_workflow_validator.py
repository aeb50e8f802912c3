"""Tests for the validation engine."""

import pytest

from designer.workflow import (
    NodeNotFoundError,
    NodeType,
    OperatorType,
    ViolationKind,
    WorkflowEdge,
    WorkflowNode,
    WorkflowValidator,
)


def _validator(store):
    return WorkflowValidator(store.get_node)


class TestValidate:
    """Test validate(node_id)."""

    def test_unknown_node_raises(self, store):
        with pytest.raises(NodeNotFoundError):
            _validator(store).validate("ghost")

    def test_deterministic_and_side_effect_free(self, store, operator):
        store.add_node(operator("d", "DECISION", {
            "expression": "x",
            "branches": [{"label": "yes", "target": "ghost"}],
        }))
        before = store.get_node("d")

        validator = _validator(store)
        first = validator.validate("d")
        second = validator.validate("d")

        assert first == second
        assert store.get_node("d") == before
        assert store.list_edges() == []

    def test_decision_dangling_branch_clears_once_target_exists(self, store, operator, node):
        store.add_node(operator("d", "DECISION", {
            "expression": "approved",
            "predicate_language": "python",
            "branches": [{"label": "yes", "target": "reviewer"}],
        }))
        validator = _validator(store)

        violations = validator.validate("d")
        assert [v.kind for v in violations] == [ViolationKind.DANGLING_REFERENCE]

        store.add_node(node("reviewer", "agent"))
        assert validator.validate("d") == []

    def test_error_retry_random_range(self, store, operator):
        store.add_node(operator("r", "ERROR_RETRY", {
            "max_retries": 2,
            "retry_strategy": "random",
            "min_delay_seconds": 5,
            "max_delay_seconds": 2,
        }))
        kinds = [v.kind for v in _validator(store).validate("r")]
        assert kinds == [ViolationKind.CONSTRAINT_VIOLATION]

    def test_violation_carries_node_and_field(self, store, operator):
        store.add_node(operator("loop", "LOOP"))
        (violation,) = _validator(store).validate("loop")
        assert violation.node_id == "loop"
        assert violation.field == "condition_expression"
        assert violation.is_blocking

    def test_coarse_start_node_uses_start_schema(self, store):
        store.add_node(WorkflowNode(id="s", type=NodeType.START))
        (violation,) = _validator(store).validate("s")
        assert violation.field == "trigger_type"

    def test_plain_agent_is_valid(self, store, node):
        store.add_node(node("a", "agent"))
        assert _validator(store).validate("a") == []


class TestEntityChecks:
    def test_operator_without_kind(self, store):
        store.add_node(WorkflowNode(id="op", type=NodeType.OPERATOR))
        violations = _validator(store).validate("op")
        assert [(v.kind, v.field) for v in violations] == [
            (ViolationKind.MISSING_FIELD, "operator_type"),
        ]

    def test_dangling_parent(self, store, node):
        store.add_node(node("t", "tool", parent_id="gone"))
        violations = _validator(store).validate("t")
        assert [(v.kind, v.field) for v in violations] == [
            (ViolationKind.DANGLING_REFERENCE, "parent_id"),
        ]

    def test_parent_must_be_agent(self, store, node):
        store.add_node(node("m", "memory"))
        store.add_node(node("t", "tool", parent_id="m"))
        violations = _validator(store).validate("t")
        assert [(v.kind, v.field) for v in violations] == [
            (ViolationKind.CONSTRAINT_VIOLATION, "parent_id"),
        ]

    def test_self_parent(self, store, node):
        store.add_node(node("a", "agent", parent_id="a"))
        violations = _validator(store).validate("a")
        assert [v.kind for v in violations] == [ViolationKind.CONSTRAINT_VIOLATION]

    def test_versioned_id_without_version(self, store, node):
        store.add_node(node("a", "agent", versioned_id="01HZZZZZZZZZZZZZZZZZZZZZZZ"))
        violations = _validator(store).validate("a")
        assert [(v.kind, v.field) for v in violations] == [
            (ViolationKind.MISSING_FIELD, "version"),
        ]

    def test_entity_checks_come_first(self, store, node, operator):
        store.add_node(node("tool", "tool"))
        store.add_node(operator("loop", "LOOP", parent_id="ghost"))
        fields = [v.field for v in _validator(store).validate("loop")]
        assert fields == ["parent_id", "condition_expression"]


class TestValidateConfig:
    def test_prospective_config_does_not_mutate(self, store, operator):
        store.add_node(operator("t", "TIMEOUT", {"timeout_sec": 10}))
        validator = _validator(store)
        node = store.get_node("t")

        violations = validator.validate_config(node, {"timeout_sec": -5})

        assert [v.field for v in violations] == ["timeout_sec"]
        assert store.get_node("t").config == {"timeout_sec": 10}
        assert validator.validate("t") == []


class TestReferrers:
    def test_finds_cross_references_and_children(self, store, node, operator):
        store.add_node(node("a", "agent"))
        store.add_node(node("t", "tool", parent_id="a"))
        store.add_node(operator("call", "AGENT_CALL", {"call_type": "internal", "agent_id": "a"}))
        store.add_node(operator("seq", "SEQUENCE", {"steps": ["call"]}))
        store.add_node(operator("other", "AGENT_CALL", {"agent_url": "https://x"}))
        store.add_edge(WorkflowEdge(id="e", source="call", target="t"))

        found = _validator(store).referrers({"a"}, store.list_nodes())

        assert sorted(found) == ["call", "t"]

    def test_external_call_does_not_reference_nodes(self, store, operator):
        store.add_node(operator("call", "AGENT_CALL", {"call_type": "external", "agent_id": "a"}))
        assert _validator(store).referrers({"a"}, store.list_nodes()) == []


def test_registry_is_injectable(store, operator):
    """A validator with an empty registry reports missing schemas."""
    from designer.workflow.operators import OperatorRegistry

    store.add_node(operator("loop", "LOOP"))
    validator = WorkflowValidator(store.get_node, OperatorRegistry())
    (violation,) = validator.validate("loop")
    assert violation.kind == ViolationKind.CONSTRAINT_VIOLATION
    assert OperatorType.LOOP.value in violation.message
