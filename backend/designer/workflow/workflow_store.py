"""
Workflow Graph Store — the live, in-memory graph being edited.

Holds nodes, edges, and the current selection. Every mutation runs
under one re-entrant lock, so a cascade delete is observed either
completely or not at all. Reads return copies; callers can never
mutate stored state through a returned object.

The store enforces structure only (unique ids, edge endpoints,
parent cascade). Node configs are opaque here and interpreted by
``WorkflowValidator``.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, field
from logging import getLogger
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from pydantic import ValidationError

from designer.workflow.errors import (
    DanglingReferenceError,
    DuplicateIdError,
    NodeNotFoundError,
)
from designer.workflow.workflow_model import (
    NodeType,
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowNode,
)

logger = getLogger(__name__)


@dataclass
class CascadeResult:
    """Ids removed by a single ``remove_node`` call."""
    removed_nodes: List[str] = field(default_factory=list)
    removed_edges: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.removed_nodes and not self.removed_edges


@dataclass
class GraphSnapshot:
    """Point-in-time copy of the graph, safe to read without the lock."""
    nodes: Dict[str, WorkflowNode] = field(default_factory=dict)
    edges: Dict[str, WorkflowEdge] = field(default_factory=dict)

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return self.nodes.get(node_id)

    def list_nodes(self) -> List[WorkflowNode]:
        return list(self.nodes.values())

    def list_edges(self) -> List[WorkflowEdge]:
        return list(self.edges.values())


class WorkflowGraphStore:
    """Authoritative holder of the graph under edit."""

    def __init__(self, reject_dangling_edges: bool = True) -> None:
        self.reject_dangling_edges = reject_dangling_edges
        self._lock = threading.RLock()
        self._nodes: Dict[str, WorkflowNode] = {}
        self._edges: Dict[str, WorkflowEdge] = {}
        # parent_id -> child ids, mirrors the children's parent_id fields
        self._children: Dict[str, Set[str]] = {}
        self._selection: Optional[str] = None
        self._header = WorkflowDefinition()

    @property
    def lock(self) -> threading.RLock:
        """Writer lock; hold it to group several calls atomically."""
        return self._lock

    # ── Nodes ──

    def add_node(self, node: WorkflowNode) -> WorkflowNode:
        with self._lock:
            if node.id in self._nodes:
                raise DuplicateIdError("Node", node.id)
            stored = node.model_copy(deep=True)
            self._nodes[stored.id] = stored
            self._index_child(stored)
            logger.info(f"Node added: {stored.display_name} ({stored.id})")
            return stored.model_copy(deep=True)

    def update_node(self, node_id: str, updates: Mapping[str, Any]) -> WorkflowNode:
        """Shallow-merge ``updates`` into a node.

        The merged node is re-validated as a whole; on any failure the
        stored node is left untouched.
        """
        with self._lock:
            current = self._nodes.get(node_id)
            if current is None:
                raise NodeNotFoundError(node_id)
            if "id" in updates and updates["id"] != node_id:
                raise ValueError(f"Node id cannot be changed (node {node_id})")

            merged = current.model_dump()
            merged.update(copy.deepcopy(dict(updates)))
            try:
                updated = WorkflowNode.model_validate(merged)
            except ValidationError as e:
                raise ValueError(f"Invalid update for node {node_id}: {e}") from e

            self._unindex_child(current)
            self._nodes[node_id] = updated
            self._index_child(updated)
            logger.info(f"Node updated: {node_id} (fields: {', '.join(sorted(updates))})")
            return updated.model_copy(deep=True)

    def remove_node(self, node_id: str) -> CascadeResult:
        """Remove a node, its agent-owned children, and touching edges.

        Children are collected one level deep and only when the removed
        node is an agent. Removing an unknown id is a no-op.
        """
        with self._lock:
            node = self._nodes.get(node_id)
            if node is None:
                logger.debug(f"remove_node: {node_id} not present")
                return CascadeResult()

            victims = [node_id]
            if node.type == NodeType.AGENT:
                # a self-parented agent is not its own child
                children = self._children.get(node_id, set()) - {node_id}
                victims.extend(sorted(children))
            victim_set = set(victims)

            edge_ids = [e.id for e in self.edges_touching(victim_set)]
            for edge_id in edge_ids:
                del self._edges[edge_id]
            for victim in victims:
                removed = self._nodes.pop(victim, None)
                if removed is not None:
                    self._unindex_child(removed)

            if self._selection in victim_set:
                self._selection = None

            logger.info(
                f"Node removed: {node_id} "
                f"(cascade: {len(victims) - 1} children, {len(edge_ids)} edges)"
            )
            return CascadeResult(removed_nodes=victims, removed_edges=edge_ids)

    # ── Edges ──

    def add_edge(self, edge: WorkflowEdge) -> WorkflowEdge:
        with self._lock:
            if edge.id in self._edges:
                raise DuplicateIdError("Edge", edge.id)
            if self.reject_dangling_edges:
                missing = [
                    endpoint for endpoint in (edge.source, edge.target)
                    if endpoint not in self._nodes
                ]
                if missing:
                    raise DanglingReferenceError(edge.id, missing)
            stored = edge.model_copy(deep=True)
            self._edges[stored.id] = stored
            logger.info(f"Edge added: {stored.source} -> {stored.target} ({stored.id})")
            return stored.model_copy(deep=True)

    def remove_edge(self, edge_id: str) -> bool:
        with self._lock:
            if self._edges.pop(edge_id, None) is None:
                logger.debug(f"remove_edge: {edge_id} not present")
                return False
            logger.info(f"Edge removed: {edge_id}")
            return True

    # ── Selection ──

    def select_node(self, node_id: Optional[str]) -> None:
        with self._lock:
            self._selection = node_id

    def get_selection(self) -> Optional[str]:
        """Selected node id, or None when the selected node is gone."""
        with self._lock:
            if self._selection is not None and self._selection not in self._nodes:
                self._selection = None
            return self._selection

    # ── Reads ──

    def list_nodes(self) -> List[WorkflowNode]:
        with self._lock:
            return [n.model_copy(deep=True) for n in self._nodes.values()]

    def list_edges(self) -> List[WorkflowEdge]:
        with self._lock:
            return [e.model_copy(deep=True) for e in self._edges.values()]

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        with self._lock:
            node = self._nodes.get(node_id)
            return node.model_copy(deep=True) if node is not None else None

    def get_edge(self, edge_id: str) -> Optional[WorkflowEdge]:
        with self._lock:
            edge = self._edges.get(edge_id)
            return edge.model_copy(deep=True) if edge is not None else None

    def has_node(self, node_id: str) -> bool:
        with self._lock:
            return node_id in self._nodes

    def children_of(self, node_id: str) -> List[str]:
        with self._lock:
            return sorted(self._children.get(node_id, set()))

    def edges_touching(self, node_ids: Iterable[str]) -> List[WorkflowEdge]:
        ids = set(node_ids)
        with self._lock:
            return [
                e.model_copy(deep=True) for e in self._edges.values()
                if e.source in ids or e.target in ids
            ]

    def snapshot(self) -> GraphSnapshot:
        with self._lock:
            return GraphSnapshot(
                nodes={k: n.model_copy(deep=True) for k, n in self._nodes.items()},
                edges={k: e.model_copy(deep=True) for k, e in self._edges.items()},
            )

    # ── Import / export ──

    def to_definition(self) -> WorkflowDefinition:
        """Export the graph as a serialisable WorkflowDefinition."""
        with self._lock:
            definition = self._header.model_copy(update={
                "nodes": [n.model_copy(deep=True) for n in self._nodes.values()],
                "edges": [e.model_copy(deep=True) for e in self._edges.values()],
            })
        definition.touch()
        return definition

    def load(self, definition: WorkflowDefinition) -> None:
        """Replace the whole graph; the store is unchanged on error."""
        nodes: Dict[str, WorkflowNode] = {}
        for node in definition.nodes:
            if node.id in nodes:
                raise DuplicateIdError("Node", node.id)
            nodes[node.id] = node.model_copy(deep=True)

        edges: Dict[str, WorkflowEdge] = {}
        for edge in definition.edges:
            if edge.id in edges:
                raise DuplicateIdError("Edge", edge.id)
            if self.reject_dangling_edges:
                missing = [p for p in (edge.source, edge.target) if p not in nodes]
                if missing:
                    raise DanglingReferenceError(edge.id, missing)
            edges[edge.id] = edge.model_copy(deep=True)

        with self._lock:
            self._nodes = nodes
            self._edges = edges
            self._children = {}
            for node in nodes.values():
                self._index_child(node)
            self._selection = None
            self._header = definition.model_copy(update={"nodes": [], "edges": []})
        logger.info(
            f"Workflow loaded: {definition.name} "
            f"({len(nodes)} nodes, {len(edges)} edges)"
        )

    def clear(self) -> None:
        with self._lock:
            self._nodes.clear()
            self._edges.clear()
            self._children.clear()
            self._selection = None

    # ── Internals ──

    def _index_child(self, node: WorkflowNode) -> None:
        if node.parent_id is not None:
            self._children.setdefault(node.parent_id, set()).add(node.id)

    def _unindex_child(self, node: WorkflowNode) -> None:
        if node.parent_id is None:
            return
        siblings = self._children.get(node.parent_id)
        if siblings is None:
            return
        siblings.discard(node.id)
        if not siblings:
            del self._children[node.parent_id]


# ── Singleton ──

_store_instance: Optional[WorkflowGraphStore] = None


def get_workflow_store() -> WorkflowGraphStore:
    """Return the global WorkflowGraphStore singleton."""
    global _store_instance
    if _store_instance is None:
        from designer.config.editor_config import EditorConfig

        config = EditorConfig.get_default_instance()
        _store_instance = WorkflowGraphStore(
            reject_dangling_edges=config.reject_dangling_edges,
        )
    return _store_instance
