"""
Connection Rules — which operators may be wired to which.

Each operator kind declares the kinds it accepts edges from and the
kinds it may send edges to. The AutoGen runtime is stricter than
LangGraph about tool calls: a TOOL_CALL may only follow an
AGENT_CALL there.

Edges with a non-operator endpoint (agent, tool, memory nodes) are
attachments rather than control flow and are always allowed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

from designer.workflow.workflow_model import (
    NodeType,
    OperatorType,
    WorkflowEdge,
    WorkflowNode,
)


class RuntimeType(str, Enum):
    LANGGRAPH = "langgraph"
    AUTOGEN = "autogen"


_ALL = frozenset(OperatorType)
_NON_TERMINAL = _ALL - {OperatorType.START, OperatorType.END}
_NON_TERMINAL_OR_END = _ALL - {OperatorType.START}


def _kinds(*kinds: Union[str, Iterable[OperatorType]]) -> FrozenSet[OperatorType]:
    out = set()
    for kind in kinds:
        if isinstance(kind, str):
            out.add(OperatorType(kind))
        else:
            out.update(kind)
    return frozenset(out)


@dataclass(frozen=True)
class ConnectionRule:
    incoming: FrozenSet[OperatorType]
    outgoing: FrozenSet[OperatorType]
    min_branches: int = 0
    # runtime -> incoming kinds, overriding ``incoming``
    incoming_by_runtime: Dict[RuntimeType, FrozenSet[OperatorType]] = field(default_factory=dict)

    def allowed_incoming(self, runtime: RuntimeType) -> FrozenSet[OperatorType]:
        return self.incoming_by_runtime.get(runtime, self.incoming)


# Loop-back, error-origin and branch targets are approximated as
# "any non-terminal"; the editor cannot tell which node came earlier.
CONNECTION_POLICY: Dict[OperatorType, ConnectionRule] = {
    OperatorType.START: ConnectionRule(
        incoming=frozenset(),
        outgoing=_NON_TERMINAL,
    ),
    OperatorType.END: ConnectionRule(
        incoming=_ALL,
        outgoing=frozenset(),
    ),
    OperatorType.SEQUENCE: ConnectionRule(
        incoming=_kinds(_NON_TERMINAL, "START"),
        outgoing=_NON_TERMINAL_OR_END,
    ),
    OperatorType.AGENT_CALL: ConnectionRule(
        incoming=_kinds(_NON_TERMINAL, "START"),
        outgoing=_kinds(
            "TOOL_CALL", "DECISION", "MEMORY_READ", "MEMORY_WRITE",
            "PARALLEL_FORK", "HUMAN_PAUSE", "ERROR_RETRY", "TIMEOUT",
            "AGENT_CALL", "LOOP", "END",
        ),
    ),
    OperatorType.TOOL_CALL: ConnectionRule(
        incoming=_NON_TERMINAL,
        outgoing=_kinds(
            "AGENT_CALL", "MEMORY_WRITE", "DECISION", "PARALLEL_FORK",
            "ERROR_RETRY", "TIMEOUT", "END",
        ),
        incoming_by_runtime={RuntimeType.AUTOGEN: _kinds("AGENT_CALL")},
    ),
    OperatorType.MEMORY_READ: ConnectionRule(
        incoming=_kinds("AGENT_CALL", "TOOL_CALL", "PARALLEL_JOIN", "SUB_GRAPH"),
        outgoing=_kinds("AGENT_CALL", "TOOL_CALL", "DECISION", "PARALLEL_FORK", "END"),
    ),
    OperatorType.MEMORY_WRITE: ConnectionRule(
        incoming=_kinds("AGENT_CALL", "TOOL_CALL"),
        outgoing=_kinds("AGENT_CALL", "DECISION", "PARALLEL_FORK", "END"),
    ),
    OperatorType.DECISION: ConnectionRule(
        incoming=_NON_TERMINAL,
        outgoing=_NON_TERMINAL_OR_END,
        min_branches=2,
    ),
    OperatorType.PARALLEL_FORK: ConnectionRule(
        incoming=_NON_TERMINAL,
        outgoing=_NON_TERMINAL,
        min_branches=2,
    ),
    OperatorType.PARALLEL_JOIN: ConnectionRule(
        incoming=_NON_TERMINAL,
        outgoing=_kinds("AGENT_CALL", "TOOL_CALL", "DECISION", "MEMORY_WRITE", "END"),
    ),
    OperatorType.LOOP: ConnectionRule(
        incoming=_NON_TERMINAL,
        outgoing=_kinds(_NON_TERMINAL, "END"),
    ),
    OperatorType.ERROR_RETRY: ConnectionRule(
        incoming=_NON_TERMINAL,
        outgoing=_kinds(_NON_TERMINAL, "END"),
    ),
    OperatorType.TIMEOUT: ConnectionRule(
        incoming=_NON_TERMINAL,
        outgoing=_kinds("ERROR_RETRY", "DECISION", "END"),
    ),
    OperatorType.HUMAN_PAUSE: ConnectionRule(
        incoming=_kinds("AGENT_CALL", "TOOL_CALL"),
        outgoing=_kinds("AGENT_CALL", "DECISION"),
    ),
    OperatorType.SUB_GRAPH: ConnectionRule(
        incoming=_NON_TERMINAL,
        outgoing=_kinds(
            "AGENT_CALL", "TOOL_CALL", "DECISION", "MEMORY_WRITE", "PARALLEL_FORK", "END",
        ),
    ),
}


@dataclass
class ConnectionCheck:
    allowed: bool
    message: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


def _names(kinds: Iterable[OperatorType]) -> str:
    ordered = [t.value for t in OperatorType if t in set(kinds)]
    return ", ".join(ordered) if ordered else "none"


def check_connection(
    source: WorkflowNode,
    target: WorkflowNode,
    runtime: Union[RuntimeType, str] = RuntimeType.LANGGRAPH,
) -> ConnectionCheck:
    """Check one edge against the connection policy."""
    runtime = RuntimeType(runtime)
    source_kind = source.operator_kind
    target_kind = target.operator_kind

    if not _is_flow_node(source) or not _is_flow_node(target):
        return ConnectionCheck(True)
    if source_kind is None or target_kind is None:
        return ConnectionCheck(False, "Missing operator type")

    source_rule = CONNECTION_POLICY.get(source_kind)
    target_rule = CONNECTION_POLICY.get(target_kind)
    if source_rule is None:
        return ConnectionCheck(False, f"No rules defined for source operator type: {source_kind.value}")
    if target_rule is None:
        return ConnectionCheck(False, f"No rules defined for target operator type: {target_kind.value}")

    if target_kind not in source_rule.outgoing:
        return ConnectionCheck(
            False,
            f"Connection from {source_kind.value} to {target_kind.value} is not allowed. "
            f"Allowed targets are: {_names(source_rule.outgoing)}",
        )

    incoming = target_rule.allowed_incoming(runtime)
    if source_kind not in incoming:
        mode = f" in {runtime.value} mode" if target_rule.incoming_by_runtime else ""
        return ConnectionCheck(
            False,
            f"Connection to {target_kind.value} from {source_kind.value} is not allowed{mode}. "
            f"Allowed sources are: {_names(incoming)}",
        )
    return ConnectionCheck(True)


def can_connect(
    source: WorkflowNode,
    target: WorkflowNode,
    edges: Iterable[WorkflowEdge],
    runtime: Union[RuntimeType, str] = RuntimeType.LANGGRAPH,
) -> ConnectionCheck:
    """Check whether a new edge ``source -> target`` may be drawn."""
    if source.id == target.id:
        return ConnectionCheck(False, "Cannot connect a node to itself")
    for edge in edges:
        if edge.source == source.id and edge.target == target.id:
            return ConnectionCheck(False, "Connection already exists")
    return check_connection(source, target, runtime)


def validate_workflow(
    nodes: List[WorkflowNode],
    edges: List[WorkflowEdge],
    runtime: Union[RuntimeType, str] = RuntimeType.LANGGRAPH,
) -> List[str]:
    """Graph-level structure checks. Returns error messages (empty = valid)."""
    runtime = RuntimeType(runtime)
    errors: List[str] = []
    by_id = {n.id: n for n in nodes}

    def of_kind(kind: OperatorType) -> List[WorkflowNode]:
        return [n for n in nodes if n.operator_kind == kind]

    starts = of_kind(OperatorType.START)
    ends = of_kind(OperatorType.END)

    # ── Whole-graph checks ──
    if not starts:
        errors.append("Workflow must have exactly one START node")
    elif len(starts) > 1:
        errors.append(f"Workflow has {len(starts)} START nodes, but must have exactly one")

    if not ends:
        errors.append("Workflow must have at least one END node")

    start_ids = {n.id for n in starts}
    if any(e.target in start_ids for e in edges):
        errors.append("START node cannot have incoming edges")

    end_ids = {n.id for n in ends}
    if any(e.source in end_ids for e in edges):
        errors.append("END node cannot have outgoing edges")

    for kind, rule in CONNECTION_POLICY.items():
        if not rule.min_branches:
            continue
        for node in of_kind(kind):
            outgoing = sum(1 for e in edges if e.source == node.id)
            if outgoing < rule.min_branches:
                errors.append(
                    f"{kind.value} node '{node.display_name}' must have at least "
                    f"{rule.min_branches} outgoing edges"
                )

    forks = of_kind(OperatorType.PARALLEL_FORK)
    joins = of_kind(OperatorType.PARALLEL_JOIN)
    if len(forks) > len(joins):
        errors.append(
            f"Workflow has {len(forks)} PARALLEL_FORK nodes but only "
            f"{len(joins)} PARALLEL_JOIN nodes"
        )

    if runtime == RuntimeType.AUTOGEN:
        for tool_call in of_kind(OperatorType.TOOL_CALL):
            for edge in edges:
                if edge.target != tool_call.id:
                    continue
                source = by_id.get(edge.source)
                if source is not None and source.operator_kind != OperatorType.AGENT_CALL:
                    errors.append(
                        f"In autogen mode, TOOL_CALL node '{tool_call.display_name}' "
                        f"can only be reached from AGENT_CALL nodes"
                    )

    # ── Per-edge policy ──
    for edge in edges:
        source = by_id.get(edge.source)
        target = by_id.get(edge.target)
        if source is None or target is None:
            continue
        result = check_connection(source, target, runtime)
        if not result.allowed and result.message:
            errors.append(result.message)

    return errors


def _is_flow_node(node: WorkflowNode) -> bool:
    return node.operator_kind is not None or node.type == NodeType.OPERATOR
