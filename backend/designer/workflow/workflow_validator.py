"""
Workflow Validator — per-node configuration and integrity checks.

The validator is a pure function of its two collaborators: an
``OperatorRegistry`` for schema lookup and a ``NodeLookup`` callable
that resolves cross-references. It never mutates anything, so the
same node validated twice against the same graph yields the same
violations in the same order:

    1. entity checks   (operator kind present, parent, version stamp)
    2. required fields (after defaults are applied)
    3. field types     (pydantic parse of the typed config variant)
    4. operator rules  (cross-references, conditional requirements)
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from designer.workflow.errors import NodeNotFoundError, Violation, ViolationKind
from designer.workflow.operators import (
    NodeLookup,
    OperatorRegistry,
    RuleContext,
    get_operator_registry,
)
from designer.workflow.workflow_model import (
    VERSIONED_NODE_TYPES,
    NodeType,
    WorkflowNode,
)


class WorkflowValidator:
    """Validates nodes against operator schemas and the current graph."""

    def __init__(
        self,
        lookup: NodeLookup,
        registry: Optional[OperatorRegistry] = None,
    ) -> None:
        self.lookup = lookup
        self.registry = registry or get_operator_registry()

    def validate(self, node_id: str) -> List[Violation]:
        """Validate a node of the graph by id.

        Raises:
            NodeNotFoundError: If ``node_id`` is not in the graph.
        """
        node = self.lookup(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return self.validate_node(node)

    def validate_node(self, node: WorkflowNode) -> List[Violation]:
        ctx = RuleContext(node.id, self.lookup)
        self._check_entity(node, ctx)

        kind = node.operator_kind
        if kind is None:
            return ctx.violations
        operator = self.registry.get(kind)
        if operator is None:
            ctx.constraint("operator_type", f"No schema registered for operator {kind.value}")
            return ctx.violations

        ctx.violations.extend(operator.validate(node.id, node.config, self.lookup))
        return ctx.violations

    def validate_config(
        self, node: WorkflowNode, config: Mapping[str, Any],
    ) -> List[Violation]:
        """Validate a prospective config for ``node`` without applying it."""
        return self.validate_node(node.model_copy(update={"config": dict(config)}))

    def validate_many(self, node_ids: Iterable[str]) -> Dict[str, List[Violation]]:
        """Validate several nodes; ids that no longer exist are skipped."""
        results: Dict[str, List[Violation]] = {}
        for node_id in node_ids:
            node = self.lookup(node_id)
            if node is not None:
                results[node_id] = self.validate_node(node)
        return results

    def referrers(
        self, target_ids: Iterable[str], nodes: Iterable[WorkflowNode],
    ) -> List[str]:
        """Ids of nodes whose parent or cross-reference fields name a target."""
        targets = set(target_ids)
        found: List[str] = []
        for node in nodes:
            if node.id in targets:
                continue
            if node.parent_id in targets:
                found.append(node.id)
                continue
            for ids in self.registry.referenced_ids(node).values():
                if targets.intersection(ids):
                    found.append(node.id)
                    break
        return found

    # ── Entity checks ──

    def _check_entity(self, node: WorkflowNode, ctx: RuleContext) -> None:
        if node.type == NodeType.OPERATOR and node.operator_type is None:
            ctx.missing("operator_type", "operator nodes must declare their kind")

        if node.parent_id is not None:
            if node.parent_id == node.id:
                ctx.constraint("parent_id", "A node cannot be its own parent")
            else:
                ctx.require_node_type("parent_id", node.parent_id, NodeType.AGENT)

        if node.type in VERSIONED_NODE_TYPES and node.versioned_id and not node.version:
            ctx.missing("version", "a versioned_id is set")


def validation_summary(violations: Iterable[Violation]) -> Dict[str, int]:
    """Count violations by kind."""
    counts = {kind.value: 0 for kind in ViolationKind}
    for v in violations:
        counts[ViolationKind(v.kind).value] += 1
    return counts
