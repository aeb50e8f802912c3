"""
Workflow Inspector — a structured report of a workflow under edit.

Produces per-node details (kind, config summary, violations),
per-edge details (whether the connection policy allows it), summary
counts, and the combined validation result. The editor shows it in
the "inspect" side panel.
"""

from __future__ import annotations

from collections import Counter
from logging import getLogger
from typing import Any, Dict, List, Optional

from designer.workflow.connection_rules import check_connection
from designer.workflow.errors import Violation
from designer.workflow.operators import OperatorRegistry
from designer.workflow.workflow_model import WorkflowDefinition, WorkflowEdge, WorkflowNode
from designer.workflow.workflow_validator import WorkflowValidator, validation_summary

logger = getLogger(__name__)


# ====================================================================
# Public API
# ====================================================================


def inspect_workflow(
    workflow: WorkflowDefinition,
    validator: Optional[WorkflowValidator] = None,
    runtime: str = "langgraph",
) -> Dict[str, Any]:
    """Inspect a workflow and produce the editor report.

    Returns a dict containing:
        - ``nodes``      : Per-node detail list
        - ``edges``      : Per-edge detail list
        - ``summary``    : High-level stats
        - ``validation`` : Graph errors plus per-node violations
    """
    validator = validator or WorkflowValidator(workflow.get_node)
    graph_errors = workflow.validate_graph(runtime)

    violations = {n.id: validator.validate_node(n) for n in workflow.nodes}
    node_details = _build_node_details(workflow.nodes, violations, validator.registry)
    edge_details = _build_edge_details(workflow, runtime)

    node_violations = {
        d["id"]: d["violations"] for d in node_details if d["violations"]
    }
    all_violations = [v for vs in violations.values() for v in vs]
    valid = not graph_errors and not node_violations
    logger.debug(
        f"Inspected workflow {workflow.id}: {len(graph_errors)} graph error(s), "
        f"{len(node_violations)} invalid node(s)"
    )

    return {
        "nodes": node_details,
        "edges": edge_details,
        "summary": {
            "workflow_name": workflow.name,
            "workflow_id": workflow.id,
            "total_nodes": len(workflow.nodes),
            "total_edges": len(workflow.edges),
            "nodes_by_type": dict(Counter(n.type.value for n in workflow.nodes)),
            "operators": dict(Counter(
                n.operator_kind.value for n in workflow.nodes if n.operator_kind is not None
            )),
            "invalid_nodes": len(node_violations),
            "violations_by_kind": validation_summary(all_violations),
            "is_valid": valid,
        },
        "validation": {
            "valid": valid,
            "errors": graph_errors,
            "node_violations": node_violations,
        },
    }


# ====================================================================
# Node detail builder
# ====================================================================


def _build_node_details(
    nodes: List[WorkflowNode],
    violations: Dict[str, List[Violation]],
    registry: OperatorRegistry,
) -> List[Dict[str, Any]]:
    details = []
    for node in nodes:
        kind = node.operator_kind
        operator = registry.get(kind) if kind is not None else None
        config_summary: Dict[str, Any] = {}
        if operator is not None:
            for param in operator.parameters:
                val = node.config.get(param.name)
                if val is not None:
                    config_summary[param.name] = _truncate(val)
                elif param.default is not None:
                    config_summary[param.name] = f"(default: {_format_default(param.default)})"

        details.append({
            "id": node.id,
            "label": node.display_name,
            "type": node.type.value,
            "operator": kind.value if kind is not None else None,
            "category": operator.category if operator is not None else node.type.value,
            "parent_id": node.parent_id,
            "version": node.version,
            "versioned_id": node.versioned_id,
            "config": config_summary,
            "violations": [v.model_dump(mode="json") for v in violations.get(node.id, [])],
        })
    return details


def _truncate(val: Any) -> Any:
    if isinstance(val, str) and len(val) > 100:
        return val[:100] + "…"
    return val


def _format_default(val: Any) -> str:
    if isinstance(val, str):
        if len(val) > 60:
            return f'"{val[:60]}…"'
        return f'"{val}"'
    return str(val)


# ====================================================================
# Edge detail builder
# ====================================================================


def _build_edge_details(
    workflow: WorkflowDefinition,
    runtime: str,
) -> List[Dict[str, Any]]:
    details = []
    for edge in workflow.edges:
        source = workflow.get_node(edge.source)
        target = workflow.get_node(edge.target)
        details.append(_edge_detail(edge, source, target, runtime))
    return details


def _edge_detail(
    edge: WorkflowEdge,
    source: Optional[WorkflowNode],
    target: Optional[WorkflowNode],
    runtime: str,
) -> Dict[str, Any]:
    if source is None or target is None:
        allowed, message = False, "Edge endpoint missing"
    else:
        check = check_connection(source, target, runtime)
        allowed, message = check.allowed, check.message
    return {
        "id": edge.id,
        "source": edge.source,
        "source_label": source.display_name if source else edge.source,
        "target": edge.target,
        "target_label": target.display_name if target else edge.target,
        "label": edge.label,
        "allowed": allowed,
        "message": message,
    }
