"""
Workflow Graph Model — authoring-time graph and operator engine.

Holds the graph being edited, validates operator configurations,
and sequences mutations with cascade semantics.

Architecture:
    operators/            — BaseOperator + one schema per operator kind
    workflow_model        — nodes, edges, and workflow definitions
    workflow_store        — in-memory graph with cascade delete
    workflow_validator    — per-node configuration checks
    workflow_coordinator  — mutation façade: apply, cascade, re-validate
    connection_rules      — which operators may be wired together
    workflow_inspector    — structured report for the inspect panel
    templates             — pre-built workflow definitions
"""

from designer.workflow.errors import (
    ConfigurationInvalidError,
    ConnectionNotAllowedError,
    DanglingReferenceError,
    DuplicateIdError,
    NodeNotFoundError,
    Violation,
    ViolationKind,
    WorkflowGraphError,
)
from designer.workflow.workflow_model import (
    NodeType,
    OperatorType,
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowNode,
)
from designer.workflow.operators import (
    BaseOperator,
    OperatorConfig,
    OperatorParameter,
    OperatorRegistry,
    get_operator_registry,
    parse_operator_config,
)
from designer.workflow.workflow_store import (
    CascadeResult,
    GraphSnapshot,
    WorkflowGraphStore,
    get_workflow_store,
)
from designer.workflow.workflow_validator import WorkflowValidator
from designer.workflow.workflow_coordinator import MutationResult, WorkflowCoordinator
from designer.workflow.workflow_inspector import inspect_workflow
from designer.workflow.templates import create_starter_template

__all__ = [
    "ConfigurationInvalidError",
    "ConnectionNotAllowedError",
    "DanglingReferenceError",
    "DuplicateIdError",
    "NodeNotFoundError",
    "Violation",
    "ViolationKind",
    "WorkflowGraphError",
    "NodeType",
    "OperatorType",
    "WorkflowDefinition",
    "WorkflowEdge",
    "WorkflowNode",
    "BaseOperator",
    "OperatorConfig",
    "OperatorParameter",
    "OperatorRegistry",
    "get_operator_registry",
    "parse_operator_config",
    "CascadeResult",
    "GraphSnapshot",
    "WorkflowGraphStore",
    "get_workflow_store",
    "WorkflowValidator",
    "MutationResult",
    "WorkflowCoordinator",
    "inspect_workflow",
    "create_starter_template",
]
