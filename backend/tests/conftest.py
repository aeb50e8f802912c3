"""Shared fixtures for the workflow designer tests."""

import pytest

from designer.config import EditorConfig
from designer.workflow import (
    NodeType,
    OperatorType,
    WorkflowCoordinator,
    WorkflowGraphStore,
    WorkflowNode,
)


@pytest.fixture
def config():
    """Editor settings with built-in defaults (environment ignored)."""
    return EditorConfig()


@pytest.fixture
def store():
    return WorkflowGraphStore()


@pytest.fixture
def coordinator(config):
    return WorkflowCoordinator(config=config)


@pytest.fixture
def operator():
    """Factory for operator nodes."""

    def _make(node_id, kind, config=None, **kwargs):
        return WorkflowNode(
            id=node_id,
            type=NodeType.OPERATOR,
            operator_type=OperatorType(kind),
            config=config or {},
            **kwargs,
        )

    return _make


@pytest.fixture
def node():
    """Factory for agent / tool / memory nodes."""

    def _make(node_id, node_type, **kwargs):
        return WorkflowNode(id=node_id, type=NodeType(node_type), **kwargs)

    return _make
