"""
Help Content — tooltip text for the editor's fields and nodes.

Purely presentational: nothing here affects graph semantics.
Lookups are keyed by ``(category, key)``.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel

from designer.workflow.operators import get_operator_registry
from designer.workflow.workflow_model import OperatorType

_GUIDE = "/docs/USER_GUIDE.md"


class HelpContent(BaseModel):
    title: str
    description: str
    link: Optional[str] = None


def _help(title: str, description: str, anchor: Optional[str] = None) -> HelpContent:
    return HelpContent(
        title=title,
        description=description,
        link=f"{_GUIDE}#{anchor}" if anchor else None,
    )


# ============================================================================
# Catalog
# ============================================================================


WORKFLOW_HELP: Dict[str, HelpContent] = {
    "workflow_graph": _help(
        "Workflow Graph",
        "Canvas holding the agents, tools, memory stores and operators of the workflow.",
        "creating-workflows",
    ),
    "workflow_details": _help(
        "Workflow Details",
        "Name, description and version of the workflow, plus its JSON form.",
        "saving-and-versioning",
    ),
    "conversation_panel": _help(
        "Conversation Panel",
        "Send test messages through the workflow and read the transcript.",
        "interface-overview",
    ),
}

AGENT_HELP: Dict[str, HelpContent] = {
    "agent_node": _help(
        "Agent Node",
        "An AI agent. Attach tools and memory to it; removing the agent removes them too.",
        "working-with-agents",
    ),
    "agent_name": _help("Agent Name", "Descriptive name shown on the canvas."),
    "agent_id": _help(
        "Agent ID",
        "Stable identifier used by AGENT_CALL operators and generated code.",
    ),
    "agent_version": _help(
        "Agent Version",
        "MAJOR.MINOR.PATCH version. Binding a new version stamps a fresh versioned id.",
    ),
    "agent_prompt": _help(
        "Agent Prompt",
        "System prompt defining the agent's behaviour and constraints.",
        "configuring-agents",
    ),
    "llm_model": _help("LLM Model", "Language model that powers the agent."),
    "max_consecutive_replies": _help(
        "Max Consecutive Replies",
        "Upper bound on replies without user input.",
    ),
}

TOOL_HELP: Dict[str, HelpContent] = {
    "tool_node": _help(
        "Tool Node",
        "A capability an agent can invoke, such as search, SQL or e-mail.",
        "working-with-tools",
    ),
    "tool_type": _help("Tool Type", "Pre-built tool template or a custom tool.", "available-tools"),
    "tool_code": _help(
        "Tool Code",
        "Implementation of the tool. Editing it creates a new tool version.",
        "customizing-tool-code",
    ),
    "tool_version": _help(
        "Tool Version",
        "MAJOR.MINOR.PATCH version. Binding a new version stamps a fresh versioned id.",
    ),
}

MEMORY_HELP: Dict[str, HelpContent] = {
    "memory_node": _help(
        "Memory Node",
        "Storage an agent uses to keep context between turns. Read and written by memory operators.",
        "working-with-memory",
    ),
    "memory_type": _help(
        "Memory Type",
        "How entries are stored and recalled.",
        "memory-types",
    ),
    "conversation_buffer": _help("Conversation Buffer", "Keeps the full conversation history."),
    "sliding_window": _help("Sliding Window", "Keeps only the most recent messages."),
    "summary_memory": _help("Summary Memory", "Keeps a running summary instead of raw messages."),
    "vector_store_memory": _help(
        "Vector Store Memory",
        "Stores embeddings so past entries can be recalled by meaning.",
    ),
}

OPERATOR_HELP: Dict[str, HelpContent] = {
    "operator_node": _help(
        "Operator Node",
        "A control-flow element: branching, looping, parallelism, calls and pauses.",
    ),
    "start": _help("START Operator", "Entry point of the workflow and how it is triggered."),
    "end": _help("END Operator", "Exit point of the workflow."),
    "sequence": _help("SEQUENCE Operator", "Runs the listed steps in order."),
    "decision": _help("DECISION Operator", "Follows the branch whose condition matches."),
    "loop": _help("LOOP Operator", "Repeats while a condition holds, up to a maximum."),
    "parallel_fork": _help("PARALLEL_FORK Operator", "Splits the flow into concurrent branches."),
    "parallel_join": _help("PARALLEL_JOIN Operator", "Gathers parallel branches back into one flow."),
    "error_retry": _help("ERROR_RETRY Operator", "Retries a failed step with a delay strategy."),
    "timeout": _help("TIMEOUT Operator", "Bounds how long a step may run."),
    "human_pause": _help("HUMAN_PAUSE Operator", "Waits for a person to review or respond."),
}

_CATALOG: Dict[str, Dict[str, HelpContent]] = {
    "workflow": WORKFLOW_HELP,
    "agent": AGENT_HELP,
    "tool": TOOL_HELP,
    "memory": MEMORY_HELP,
    "operator": OPERATOR_HELP,
}


# ============================================================================
# Lookup
# ============================================================================


def get_help(category: str, key: str) -> Optional[HelpContent]:
    """Help for ``key`` within ``category``; None when there is none."""
    return _CATALOG.get(category, {}).get(key)


def operator_help(operator_type: Union[OperatorType, str]) -> HelpContent:
    """Help for an operator kind, falling back to its schema description."""
    kind = OperatorType(operator_type)
    content = OPERATOR_HELP.get(kind.value.lower())
    if content is not None:
        return content
    operator = get_operator_registry().get(kind)
    description = operator.description if operator is not None else ""
    return HelpContent(title=f"{kind.value} Operator", description=description)


def list_categories() -> List[str]:
    return list(_CATALOG)
