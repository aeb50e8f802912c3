"""
Pre-built Workflow Templates.

Factory functions returning ready-made ``WorkflowDefinition``
objects. The host loads one into the store for "New workflow".
"""

from __future__ import annotations

from typing import List

from designer.utils.identifiers import generate_edge_id, new_agent_version, new_tool_version
from designer.workflow.workflow_model import (
    NodeType,
    OperatorType,
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowNode,
)


# ============================================================================
# Starter Template
# ============================================================================


def create_starter_template(version: str = "1.0.0") -> WorkflowDefinition:
    """Smallest complete workflow: one agent between START and END.

    Topology::
        START → Ask Assistant (AGENT_CALL, internal) → END

        Assistant (agent)
          ├── Web Search (tool)
          └── Conversation Memory (memory)
    """

    nodes: List[WorkflowNode] = []
    edges: List[WorkflowEdge] = []

    def _add(node: WorkflowNode) -> None:
        nodes.append(node)

    def _edge(src: str, tgt: str, lbl: str = "") -> None:
        edges.append(WorkflowEdge(id=generate_edge_id(src, tgt), source=src, target=tgt, label=lbl))

    # ── Flow ──
    _add(WorkflowNode(
        id="start", type=NodeType.OPERATOR, operator_type=OperatorType.START,
        name="Start", position={"x": 240, "y": 40},
        config={"trigger_type": "human", "resume_capable": False},
    ))
    _add(WorkflowNode(
        id="ask", type=NodeType.OPERATOR, operator_type=OperatorType.AGENT_CALL,
        name="Ask Assistant", position={"x": 240, "y": 180},
        config={"call_type": "internal", "agent_id": "assistant", "stream_response": False},
    ))
    _add(WorkflowNode(
        id="end", type=NodeType.OPERATOR, operator_type=OperatorType.END,
        name="End", position={"x": 240, "y": 320},
        config={"status_code": "success", "emit_transcript": False},
    ))

    _edge("start", "ask")
    _edge("ask", "end")

    # ── Agent and its attachments ──
    agent_stamp = new_agent_version(version)
    _add(WorkflowNode(
        id="assistant", type=NodeType.AGENT, name="Assistant",
        position={"x": 520, "y": 180},
        version=agent_stamp.version, versioned_id=agent_stamp.id,
        created_at=agent_stamp.created_at,
        config={"model": "gpt-4o", "system_prompt": "You are a helpful assistant."},
    ))

    tool_stamp = new_tool_version(version)
    _add(WorkflowNode(
        id="web_search", type=NodeType.TOOL, name="Web Search",
        parent_id="assistant", position={"x": 760, "y": 120},
        version=tool_stamp.version, versioned_id=tool_stamp.id,
        created_at=tool_stamp.created_at,
    ))
    _add(WorkflowNode(
        id="memory", type=NodeType.MEMORY, name="Conversation Memory",
        parent_id="assistant", position={"x": 760, "y": 260},
        config={"memory_type": "conversation_buffer"},
    ))

    _edge("assistant", "web_search", "uses")
    _edge("assistant", "memory", "remembers")

    return WorkflowDefinition(
        name="Starter Workflow",
        description="START → agent call → END, with one tool and one memory attached.",
        nodes=nodes,
        edges=edges,
    )
