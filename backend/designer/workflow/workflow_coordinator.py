"""
Workflow Coordinator — the mutation façade used by the editor.

Every mutation follows the same sequence under the store lock:

    apply to store -> cascade -> re-validate affected nodes -> diff

Affected nodes are the mutated node itself plus every node whose
parent or cross-reference fields name it. After a delete the
re-validation is advisory: it reports nodes left pointing at a
removed node, it never blocks the delete.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import Any, Dict, Iterable, List, Mapping, Optional

from designer.config.editor_config import EditorConfig
from designer.utils.identifiers import EntityKind, VersionedEntity, new_versioned_entity
from designer.workflow.connection_rules import ConnectionCheck, can_connect
from designer.workflow.errors import (
    ConfigurationInvalidError,
    ConnectionNotAllowedError,
    NodeNotFoundError,
    Violation,
)
from designer.workflow.operators import OperatorRegistry, get_operator_registry
from designer.workflow.workflow_inspector import inspect_workflow
from designer.workflow.workflow_model import (
    VERSIONED_NODE_TYPES,
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowNode,
)
from designer.workflow.workflow_store import GraphSnapshot, WorkflowGraphStore
from designer.workflow.workflow_validator import WorkflowValidator

logger = getLogger(__name__)


@dataclass
class MutationResult:
    """Diff produced by one coordinator mutation."""
    added_nodes: List[str] = field(default_factory=list)
    updated_nodes: List[str] = field(default_factory=list)
    removed_nodes: List[str] = field(default_factory=list)
    added_edges: List[str] = field(default_factory=list)
    removed_edges: List[str] = field(default_factory=list)
    violations: Dict[str, List[Violation]] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not any(v.is_blocking for vs in self.violations.values() for v in vs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added_nodes": list(self.added_nodes),
            "updated_nodes": list(self.updated_nodes),
            "removed_nodes": list(self.removed_nodes),
            "added_edges": list(self.added_edges),
            "removed_edges": list(self.removed_edges),
            "violations": {
                node_id: [v.model_dump(mode="json") for v in vs]
                for node_id, vs in self.violations.items()
            },
        }


class WorkflowCoordinator:
    """Sequences graph mutations and reports what changed."""

    def __init__(
        self,
        store: Optional[WorkflowGraphStore] = None,
        registry: Optional[OperatorRegistry] = None,
        config: Optional[EditorConfig] = None,
    ) -> None:
        self.config = config or EditorConfig.get_default_instance()
        self.store = store or WorkflowGraphStore(
            reject_dangling_edges=self.config.reject_dangling_edges,
        )
        self.registry = registry or get_operator_registry()

    # ── Reads ──

    def list_nodes(self) -> List[WorkflowNode]:
        return self.store.list_nodes()

    def list_edges(self) -> List[WorkflowEdge]:
        return self.store.list_edges()

    def get_selection(self) -> Optional[str]:
        return self.store.get_selection()

    def select_node(self, node_id: Optional[str]) -> None:
        self.store.select_node(node_id)

    def validator(self, snapshot: Optional[GraphSnapshot] = None) -> WorkflowValidator:
        """Validator bound to ``snapshot`` (a fresh one when omitted)."""
        snapshot = snapshot or self.store.snapshot()
        return WorkflowValidator(snapshot.get_node, self.registry)

    def validate(self, node_id: str) -> List[Violation]:
        """Validate one node against the current graph.

        Raises:
            NodeNotFoundError: If the node does not exist.
        """
        return self.validator().validate(node_id)

    def validate_all(self) -> Dict[str, List[Violation]]:
        snapshot = self.store.snapshot()
        return self.validator(snapshot).validate_many(snapshot.nodes)

    # ── Node mutations ──

    def add_node(self, node: WorkflowNode) -> MutationResult:
        """Insert a node, filling operator defaults and version stamps."""
        prepared = self._prepare_new_node(node)
        with self.store.lock:
            stored = self.store.add_node(prepared)
            result = MutationResult(added_nodes=[stored.id])
            self._revalidate(result, [stored.id])
        return result

    def update_node(self, node_id: str, updates: Mapping[str, Any]) -> MutationResult:
        with self.store.lock:
            self.store.update_node(node_id, updates)
            result = MutationResult(updated_nodes=[node_id])
            self._revalidate(result, [node_id])
        return result

    def remove_node(self, node_id: str) -> MutationResult:
        with self.store.lock:
            cascade = self.store.remove_node(node_id)
            result = MutationResult(
                removed_nodes=list(cascade.removed_nodes),
                removed_edges=list(cascade.removed_edges),
            )
            if cascade.removed_nodes and self.config.revalidate_on_delete:
                self._revalidate(result, [], removed=cascade.removed_nodes)
        return result

    def save_node_config(self, node_id: str, config: Mapping[str, Any]) -> MutationResult:
        """Explicit save: defaults are filled and blocking violations refused.

        Raises:
            NodeNotFoundError: If the node does not exist.
            ConfigurationInvalidError: If the config has blocking violations.
        """
        with self.store.lock:
            snapshot = self.store.snapshot()
            node = snapshot.get_node(node_id)
            if node is None:
                raise NodeNotFoundError(node_id)

            full_config = self._with_defaults(node, config)
            violations = self.validator(snapshot).validate_config(node, full_config)
            blocking = [v for v in violations if v.is_blocking]
            if blocking:
                logger.warning(
                    f"Save refused for node {node_id}: {len(blocking)} blocking violation(s)"
                )
                raise ConfigurationInvalidError(node_id, blocking)

            return self.update_node(node_id, {"config": full_config})

    def rebind_version(self, node_id: str, version: str) -> MutationResult:
        """Stamp a fresh VersionedEntity on an agent or tool node.

        The previous stamp is superseded, never edited.
        """
        with self.store.lock:
            node = self.store.get_node(node_id)
            if node is None:
                raise NodeNotFoundError(node_id)
            if node.type not in VERSIONED_NODE_TYPES:
                raise ValueError(f"Node {node_id} is a {node.type.value} node and carries no version")
            entity = new_versioned_entity(EntityKind(node.type.value), version)
            logger.info(f"Node {node_id} rebound to version {version} ({entity.id})")
            return self.update_node(node_id, _stamp_fields(entity))

    # ── Edge mutations ──

    def add_edge(self, edge: WorkflowEdge) -> MutationResult:
        with self.store.lock:
            if self.config.enforce_connection_rules:
                check = self.can_connect(edge.source, edge.target)
                if not check.allowed:
                    raise ConnectionNotAllowedError(check.message or "Connection not allowed")
            stored = self.store.add_edge(edge)
        return MutationResult(added_edges=[stored.id])

    def remove_edge(self, edge_id: str) -> MutationResult:
        removed = self.store.remove_edge(edge_id)
        return MutationResult(removed_edges=[edge_id] if removed else [])

    def can_connect(self, source_id: str, target_id: str) -> ConnectionCheck:
        """Whether an edge may be drawn under the configured runtime policy.

        Unknown endpoints are reported as not connectable.
        """
        snapshot = self.store.snapshot()
        source = snapshot.get_node(source_id)
        target = snapshot.get_node(target_id)
        if source is None or target is None:
            missing = source_id if source is None else target_id
            return ConnectionCheck(False, f"Node not found: {missing}")
        return can_connect(source, target, snapshot.list_edges(), self.config.runtime_type)

    # ── Whole-graph ──

    def validate_workflow(self) -> List[str]:
        """Graph-level structure errors for the configured runtime."""
        return self.to_definition().validate_graph(self.config.runtime_type)

    def inspect(self) -> Dict[str, Any]:
        snapshot = self.store.snapshot()
        return inspect_workflow(
            self.to_definition(), self.validator(snapshot), self.config.runtime_type,
        )

    def to_definition(self) -> WorkflowDefinition:
        return self.store.to_definition()

    def load(self, definition: WorkflowDefinition) -> Dict[str, List[Violation]]:
        """Replace the graph and return the violations of every node."""
        with self.store.lock:
            self.store.load(definition)
            return self.validate_all()

    # ── Internals ──

    def _prepare_new_node(self, node: WorkflowNode) -> WorkflowNode:
        updates: Dict[str, Any] = {}
        if node.operator_kind is not None:
            updates["config"] = self._with_defaults(node, node.config)
        if node.type in VERSIONED_NODE_TYPES and not node.versioned_id:
            version = node.version or self.config.default_entity_version
            entity = new_versioned_entity(EntityKind(node.type.value), version)
            updates.update(_stamp_fields(entity))
        return node.model_copy(update=updates) if updates else node

    def _with_defaults(self, node: WorkflowNode, config: Mapping[str, Any]) -> Dict[str, Any]:
        kind = node.operator_kind
        if kind is None:
            return dict(config)
        return self.registry.apply_defaults(kind, config)

    def _revalidate(
        self,
        result: MutationResult,
        node_ids: Iterable[str],
        removed: Iterable[str] = (),
    ) -> None:
        snapshot = self.store.snapshot()
        validator = self.validator(snapshot)
        targets = set(node_ids) | set(removed)
        affected = list(node_ids)
        for referrer in validator.referrers(targets, snapshot.list_nodes()):
            if referrer not in affected:
                affected.append(referrer)
        result.violations = validator.validate_many(affected)
        invalid = [node_id for node_id, vs in result.violations.items() if vs]
        if invalid:
            logger.debug(f"Re-validated {len(affected)} node(s); invalid: {', '.join(invalid)}")


def _stamp_fields(entity: VersionedEntity) -> Dict[str, Any]:
    return {
        "version": entity.version,
        "versioned_id": entity.id,
        "created_at": entity.created_at,
    }
