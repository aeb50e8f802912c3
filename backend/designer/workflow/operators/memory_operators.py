"""
Memory Operators — read from and write to a memory node.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import Field

from designer.workflow.operators.base import (
    BaseOperator,
    OperatorConfigBase,
    OperatorParameter,
    RuleContext,
    collect_ids,
    register_operator,
)
from designer.workflow.workflow_model import NodeType, OperatorType

# read_mode -> field that mode needs
_READ_MODE_FIELDS = {
    "exact": "memory_key",
    "prefix": "key_prefix",
    "semantic": "query",
    "filter": "filter_function",
}

_WRITE_MODE_FIELDS = {
    "set": "memory_key",
    "append": "memory_key",
    "update": "memory_key",
    "custom": "custom_write_function",
    "batch": "batch_entries",
}


def _memory_node_parameter() -> OperatorParameter:
    return OperatorParameter(
        name="memory_node_id",
        label="Memory Node",
        type="node",
        required=True,
        description="Memory node this operator addresses.",
    )


# ============================================================================
# Memory Read
# ============================================================================


class MemoryReadConfig(OperatorConfigBase):
    operator_type: Literal["MEMORY_READ"] = "MEMORY_READ"
    memory_node_id: Optional[str] = None
    read_mode: Optional[Literal["exact", "prefix", "semantic", "filter", "latest"]] = None
    memory_key: Optional[str] = None
    key_prefix: Optional[str] = None
    query: Optional[str] = None
    filter_function: Optional[str] = None
    max_results: Optional[int] = Field(default=None, ge=1)
    similarity_threshold: Optional[float] = Field(default=None, ge=0, le=1)
    entry_count: Optional[int] = Field(default=None, ge=1)
    result_key: Optional[str] = None
    fail_on_missing: bool = False
    default_value: Any = None


@register_operator
class MemoryReadOperator(BaseOperator):
    """Load entries from a memory node into state."""

    operator_type = OperatorType.MEMORY_READ
    label = "Memory Read"
    description = "Read by key, prefix, semantic query, filter, or recency"
    category = "memory"
    config_model = MemoryReadConfig

    parameters = [
        _memory_node_parameter(),
        OperatorParameter(
            name="read_mode",
            label="Read Mode",
            type="select",
            default="exact",
            required=True,
            options=["exact", "prefix", "semantic", "filter", "latest"],
        ),
        OperatorParameter(name="memory_key", label="Memory Key"),
        OperatorParameter(name="key_prefix", label="Key Prefix"),
        OperatorParameter(name="query", label="Semantic Query"),
        OperatorParameter(name="filter_function", label="Filter Function", type="code"),
        OperatorParameter(name="max_results", label="Max Results", type="number", min=1),
        OperatorParameter(
            name="similarity_threshold",
            label="Similarity Threshold",
            type="number",
            min=0,
            max=1,
        ),
        OperatorParameter(name="entry_count", label="Latest Entries", type="number", min=1),
        OperatorParameter(name="result_key", label="Result Key"),
        OperatorParameter(
            name="fail_on_missing",
            label="Fail If Missing",
            type="boolean",
            default=False,
        ),
    ]

    def check(self, config: MemoryReadConfig, ctx: RuleContext) -> None:
        ctx.require_node_type("memory_node_id", config.memory_node_id, NodeType.MEMORY)
        needed = _READ_MODE_FIELDS.get(config.read_mode or "")
        if needed:
            ctx.require_value(needed, getattr(config, needed), f"read_mode is '{config.read_mode}'")

    def referenced_ids(self, config: Mapping[str, Any]) -> Dict[str, List[str]]:
        return {"memory_node_id": collect_ids(config.get("memory_node_id"))}


# ============================================================================
# Memory Write
# ============================================================================


class MemoryWriteConfig(OperatorConfigBase):
    operator_type: Literal["MEMORY_WRITE"] = "MEMORY_WRITE"
    memory_node_id: Optional[str] = None
    write_mode: Optional[Literal["set", "append", "update", "custom", "batch"]] = None
    memory_key: Optional[str] = None
    value_source: Optional[str] = None
    custom_write_function: Optional[str] = None
    batch_entries: Optional[List[Dict[str, Any]]] = None
    max_list_size: Optional[int] = Field(default=None, ge=1)
    ttl_seconds: Optional[int] = Field(default=None, ge=1)
    persist: bool = True
    fail_on_error: bool = True


@register_operator
class MemoryWriteOperator(BaseOperator):
    """Store state values into a memory node."""

    operator_type = OperatorType.MEMORY_WRITE
    label = "Memory Write"
    description = "Set, append, update, batch, or custom-write memory entries"
    category = "memory"
    config_model = MemoryWriteConfig

    parameters = [
        _memory_node_parameter(),
        OperatorParameter(
            name="write_mode",
            label="Write Mode",
            type="select",
            default="set",
            required=True,
            options=["set", "append", "update", "custom", "batch"],
        ),
        OperatorParameter(name="memory_key", label="Memory Key"),
        OperatorParameter(
            name="value_source",
            label="Value Source",
            description="State key whose value is written.",
        ),
        OperatorParameter(
            name="custom_write_function",
            label="Custom Write Function",
            type="code",
        ),
        OperatorParameter(name="batch_entries", label="Batch Entries", type="json"),
        OperatorParameter(
            name="max_list_size",
            label="Max List Size",
            type="number",
            min=1,
            description="Caps list length in append mode.",
        ),
        OperatorParameter(name="ttl_seconds", label="TTL (s)", type="number", min=1),
        OperatorParameter(
            name="persist",
            label="Persist",
            type="boolean",
            default=True,
        ),
    ]

    def check(self, config: MemoryWriteConfig, ctx: RuleContext) -> None:
        ctx.require_node_type("memory_node_id", config.memory_node_id, NodeType.MEMORY)
        needed = _WRITE_MODE_FIELDS.get(config.write_mode or "")
        if needed:
            ctx.require_value(
                needed, getattr(config, needed), f"write_mode is '{config.write_mode}'",
            )

    def referenced_ids(self, config: Mapping[str, Any]) -> Dict[str, List[str]]:
        return {"memory_node_id": collect_ids(config.get("memory_node_id"))}
