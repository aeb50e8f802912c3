"""Tests for the operator connection policy."""

import pytest

from designer.workflow import NodeType, OperatorType, WorkflowEdge, WorkflowNode
from designer.workflow.connection_rules import (
    CONNECTION_POLICY,
    RuntimeType,
    can_connect,
    check_connection,
    validate_workflow,
)


def _op(node_id, kind, name=None):
    return WorkflowNode(
        id=node_id, type=NodeType.OPERATOR, operator_type=OperatorType(kind), name=name,
    )


def _edge(source, target):
    return WorkflowEdge(id=f"{source}-{target}", source=source, target=target)


class TestPolicyTable:
    def test_every_operator_has_a_rule(self):
        assert set(CONNECTION_POLICY) == set(OperatorType)

    def test_start_has_no_incoming_and_end_no_outgoing(self):
        assert CONNECTION_POLICY[OperatorType.START].incoming == frozenset()
        assert CONNECTION_POLICY[OperatorType.END].outgoing == frozenset()

    def test_branching_operators_need_two_branches(self):
        assert CONNECTION_POLICY[OperatorType.DECISION].min_branches == 2
        assert CONNECTION_POLICY[OperatorType.PARALLEL_FORK].min_branches == 2


class TestCheckConnection:
    """Test single-edge policy checks."""

    @pytest.mark.parametrize("source,target", [
        ("START", "AGENT_CALL"),
        ("AGENT_CALL", "TOOL_CALL"),
        ("TOOL_CALL", "MEMORY_WRITE"),
        ("DECISION", "END"),
        ("PARALLEL_JOIN", "DECISION"),
        ("SEQUENCE", "END"),
    ])
    def test_allowed(self, source, target):
        assert check_connection(_op("s", source), _op("t", target))

    def test_outgoing_violation_message(self):
        check = check_connection(_op("s", "TIMEOUT"), _op("t", "AGENT_CALL"))
        assert not check.allowed
        assert check.message.startswith("Connection from TIMEOUT to AGENT_CALL is not allowed")
        assert "Allowed targets are: END, DECISION, ERROR_RETRY" in check.message

    def test_incoming_violation_message(self):
        check = check_connection(_op("s", "DECISION"), _op("t", "MEMORY_WRITE"))
        assert not check.allowed
        assert check.message.startswith("Connection to MEMORY_WRITE from DECISION is not allowed")

    def test_nothing_flows_out_of_end(self):
        assert not check_connection(_op("s", "END"), _op("t", "AGENT_CALL"))

    def test_nothing_flows_into_start(self):
        assert not check_connection(_op("s", "AGENT_CALL"), _op("t", "START"))

    def test_attachments_are_not_policed(self):
        agent = WorkflowNode(id="a", type=NodeType.AGENT)
        tool = WorkflowNode(id="t", type=NodeType.TOOL)
        assert check_connection(agent, tool)
        assert check_connection(_op("end", "END"), agent)

    def test_operator_without_kind(self):
        untyped = WorkflowNode(id="x", type=NodeType.OPERATOR)
        check = check_connection(untyped, _op("t", "END"))
        assert check.message == "Missing operator type"

    def test_coarse_start_node_follows_start_rules(self):
        start = WorkflowNode(id="s", type=NodeType.START)
        assert not check_connection(start, _op("t", "END"))
        assert check_connection(start, _op("t", "AGENT_CALL"))


class TestRuntimeDifferences:
    def test_tool_call_after_decision_depends_on_runtime(self):
        source, target = _op("d", "DECISION"), _op("t", "TOOL_CALL")
        assert check_connection(source, target, RuntimeType.LANGGRAPH)
        check = check_connection(source, target, "autogen")
        assert not check.allowed
        assert "in autogen mode" in check.message

    def test_tool_call_after_agent_call_in_autogen(self):
        assert check_connection(_op("a", "AGENT_CALL"), _op("t", "TOOL_CALL"), "autogen")

    def test_unknown_runtime(self):
        with pytest.raises(ValueError):
            check_connection(_op("a", "AGENT_CALL"), _op("t", "TOOL_CALL"), "crewai")


class TestCanConnect:
    def test_self_connection(self):
        node = _op("a", "AGENT_CALL")
        assert can_connect(node, node, []).message == "Cannot connect a node to itself"

    def test_duplicate_connection(self):
        source, target = _op("a", "AGENT_CALL"), _op("e", "END")
        check = can_connect(source, target, [_edge("a", "e")])
        assert check.message == "Connection already exists"

    def test_new_connection(self):
        assert can_connect(_op("a", "AGENT_CALL"), _op("e", "END"), [])


class TestValidateWorkflow:
    """Test graph-level structure checks."""

    def _linear(self):
        nodes = [_op("s", "START"), _op("a", "AGENT_CALL"), _op("e", "END")]
        edges = [_edge("s", "a"), _edge("a", "e")]
        return nodes, edges

    def test_linear_workflow_is_valid(self):
        assert validate_workflow(*self._linear()) == []

    def test_empty_workflow(self):
        errors = validate_workflow([], [])
        assert "Workflow must have exactly one START node" in errors
        assert "Workflow must have at least one END node" in errors

    def test_two_starts(self):
        nodes, edges = self._linear()
        nodes.append(_op("s2", "START"))
        errors = validate_workflow(nodes, edges)
        assert "Workflow has 2 START nodes, but must have exactly one" in errors

    def test_decision_needs_two_branches(self):
        nodes = [
            _op("s", "START"), _op("a", "AGENT_CALL"),
            _op("d", "DECISION", name="Route"), _op("e", "END"),
        ]
        edges = [_edge("s", "a"), _edge("a", "d"), _edge("d", "e")]
        errors = validate_workflow(nodes, edges)
        assert errors == ["DECISION node 'Route' must have at least 2 outgoing edges"]

    def test_fork_without_join(self):
        nodes = [
            _op("s", "START"), _op("x", "AGENT_CALL"),
            _op("f", "PARALLEL_FORK", name="Fan out"),
            _op("a", "AGENT_CALL"), _op("b", "AGENT_CALL"), _op("e", "END"),
        ]
        edges = [
            _edge("s", "x"), _edge("x", "f"), _edge("f", "a"), _edge("f", "b"),
            _edge("a", "e"), _edge("b", "e"),
        ]
        errors = validate_workflow(nodes, edges)
        assert errors == ["Workflow has 1 PARALLEL_FORK nodes but only 0 PARALLEL_JOIN nodes"]

    def test_autogen_tool_call_source(self):
        nodes = [
            _op("s", "START"), _op("x", "AGENT_CALL"), _op("d", "DECISION"),
            _op("t", "TOOL_CALL", name="Search"), _op("a", "AGENT_CALL"), _op("e", "END"),
        ]
        edges = [
            _edge("s", "x"), _edge("x", "d"), _edge("d", "t"), _edge("d", "a"),
            _edge("a", "t"), _edge("t", "e"),
        ]
        assert validate_workflow(nodes, edges, "langgraph") == []
        errors = validate_workflow(nodes, edges, "autogen")
        assert (
            "In autogen mode, TOOL_CALL node 'Search' can only be reached from AGENT_CALL nodes"
            in errors
        )

    def test_per_edge_policy_reported(self):
        nodes, edges = self._linear()
        nodes.append(_op("m", "MEMORY_WRITE"))
        edges.append(_edge("s", "m"))
        errors = validate_workflow(nodes, edges)
        assert any(e.startswith("Connection to MEMORY_WRITE from START") for e in errors)
