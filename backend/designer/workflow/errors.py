"""
Workflow Errors — structural exceptions and validation findings.

Structural problems (id collisions, unknown ids, edges to missing
nodes) are raised as exceptions by the graph store. Configuration
problems are *not* exceptions: they are ``Violation`` records
returned by the validator, because a node may be invalid while the
user is still editing it.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class ViolationKind(str, Enum):
    """Classification of a configuration finding."""
    MISSING_FIELD = "missing_field"
    DANGLING_REFERENCE = "dangling_reference"
    CONSTRAINT_VIOLATION = "constraint_violation"


class Violation(BaseModel):
    """A single validation finding for one node."""

    node_id: str
    kind: ViolationKind
    message: str
    field: Optional[str] = None
    severity: str = "error"

    @property
    def is_blocking(self) -> bool:
        return self.severity == "error"


# ============================================================================
# Exceptions
# ============================================================================


class WorkflowGraphError(Exception):
    """Base class for structural graph errors."""


class DuplicateIdError(WorkflowGraphError):
    """Insert collided with an existing node or edge id."""

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} id already exists: {entity_id}")


class NodeNotFoundError(WorkflowGraphError):
    """Update or lookup of a node id that is not in the graph."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class DanglingReferenceError(WorkflowGraphError):
    """An edge endpoint names a node that does not exist."""

    def __init__(self, edge_id: str, missing: List[str]) -> None:
        self.edge_id = edge_id
        self.missing = list(missing)
        super().__init__(
            f"Edge {edge_id} references unknown node(s): {', '.join(self.missing)}"
        )


class ConnectionNotAllowedError(WorkflowGraphError):
    """The connection policy forbids an edge between two operators."""


class ConfigurationInvalidError(WorkflowGraphError):
    """Raised by an explicit save when blocking violations remain."""

    def __init__(self, node_id: str, violations: List[Violation]) -> None:
        self.node_id = node_id
        self.violations = list(violations)
        details = "; ".join(v.message for v in self.violations)
        super().__init__(f"Configuration for node {node_id} is invalid: {details}")
