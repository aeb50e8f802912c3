"""
Workflow Data Models — nodes, edges, and graph definitions.

These are the serializable data structures that describe a
user-designed workflow graph. Live graphs are held by
``WorkflowGraphStore``; ``WorkflowDefinition`` is the snapshot the
store exports for the host to persist.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from designer.utils.identifiers import generate_node_id, utc_timestamp


class NodeType(str, Enum):
    """Coarse kind of a node on the canvas."""
    AGENT = "agent"
    TOOL = "tool"
    MEMORY = "memory"
    OPERATOR = "operator"
    START = "start"
    END = "end"


class OperatorType(str, Enum):
    """Control-flow operator kinds."""
    START = "START"
    END = "END"
    SEQUENCE = "SEQUENCE"
    DECISION = "DECISION"
    LOOP = "LOOP"
    PARALLEL_FORK = "PARALLEL_FORK"
    PARALLEL_JOIN = "PARALLEL_JOIN"
    ERROR_RETRY = "ERROR_RETRY"
    TIMEOUT = "TIMEOUT"
    HUMAN_PAUSE = "HUMAN_PAUSE"
    SUB_GRAPH = "SUB_GRAPH"
    AGENT_CALL = "AGENT_CALL"
    TOOL_CALL = "TOOL_CALL"
    MEMORY_READ = "MEMORY_READ"
    MEMORY_WRITE = "MEMORY_WRITE"


# Node types that carry a VersionedEntity stamp
VERSIONED_NODE_TYPES = (NodeType.AGENT, NodeType.TOOL)


class WorkflowNode(BaseModel):
    """A single node placed on the workflow canvas.

    ``config`` is stored as an opaque dict; its shape is defined by
    ``operator_type`` and only interpreted by the validator.
    """

    id: str = Field(default_factory=generate_node_id)
    type: NodeType
    operator_type: Optional[OperatorType] = None
    name: Optional[str] = None
    parent_id: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    position: Dict[str, float] = Field(
        default_factory=lambda: {"x": 0, "y": 0}
    )

    # Version stamp (agent / tool only)
    version: Optional[str] = None
    versioned_id: Optional[str] = None
    created_at: Optional[str] = None

    @model_validator(mode="after")
    def _operator_type_only_on_operators(self) -> "WorkflowNode":
        if self.operator_type is not None and self.type != NodeType.OPERATOR:
            raise ValueError(
                f"operator_type is only valid on operator nodes (got type '{self.type.value}')"
            )
        return self

    @property
    def operator_kind(self) -> Optional[OperatorType]:
        """Operator schema that governs this node's config, if any.

        The coarse ``start`` / ``end`` node types use the START / END
        operator schemas.
        """
        if self.type == NodeType.OPERATOR:
            return self.operator_type
        if self.type == NodeType.START:
            return OperatorType.START
        if self.type == NodeType.END:
            return OperatorType.END
        return None

    @property
    def display_name(self) -> str:
        """Human label, falling back to kind plus a short id prefix."""
        if self.name:
            return self.name
        if self.operator_type is not None:
            kind = self.operator_type.value.replace("_", " ").title()
        else:
            kind = self.type.value.capitalize()
        return f"{kind} {self.id[:8]}"


class WorkflowEdge(BaseModel):
    """A directed edge between two nodes."""

    id: str = Field(default_factory=generate_node_id)
    source: str  # source node ID
    target: str  # target node ID
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    label: str = ""
    animated: bool = False


class WorkflowDefinition(BaseModel):
    """A complete workflow graph snapshot.

    Contains all nodes, edges, and metadata.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Untitled Workflow"
    description: str = ""
    version: str = "1.0.0"
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_timestamp)
    updated_at: str = Field(default_factory=utc_timestamp)

    def touch(self) -> None:
        """Update the ``updated_at`` timestamp."""
        self.updated_at = utc_timestamp()

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Find a node by ID."""
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def get_edges_from(self, node_id: str) -> List[WorkflowEdge]:
        """Get all edges originating from a node."""
        return [e for e in self.edges if e.source == node_id]

    def get_edges_to(self, node_id: str) -> List[WorkflowEdge]:
        """Get all edges pointing to a node."""
        return [e for e in self.edges if e.target == node_id]

    def get_nodes_of_kind(self, kind: OperatorType) -> List[WorkflowNode]:
        """Find all nodes governed by the given operator schema."""
        return [n for n in self.nodes if n.operator_kind == kind]

    def validate_graph(self, runtime: str = "langgraph") -> List[str]:
        """Validate the workflow graph structure.

        Returns a list of error messages (empty = valid).
        """
        from designer.workflow.connection_rules import validate_workflow

        return validate_workflow(self.nodes, self.edges, runtime)
