"""
Parallel Operators — fan-out and fan-in.

A fork names its branch targets and, optionally, the join that
gathers them; a join may point back at its fork. Both pointers are
checked for kind, not just existence.
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
from designer.workflow.workflow_model import OperatorType


# ============================================================================
# Parallel Fork
# ============================================================================


class ParallelForkConfig(OperatorConfigBase):
    operator_type: Literal["PARALLEL_FORK"] = "PARALLEL_FORK"
    branches: Optional[Dict[str, str]] = None  # branch name -> target node id
    join_node_id: Optional[str] = None
    wait_for_all: bool = True
    timeout_seconds: Optional[float] = Field(default=None, gt=0)
    max_concurrency: Optional[int] = Field(default=None, ge=1)


@register_operator
class ParallelForkOperator(BaseOperator):
    """Start several branches concurrently."""

    operator_type = OperatorType.PARALLEL_FORK
    label = "Parallel Fork"
    description = "Fan out into named branches that run concurrently"
    category = "parallel"
    config_model = ParallelForkConfig

    parameters = [
        OperatorParameter(
            name="branches",
            label="Branches",
            type="json",
            required=True,
            description="Map of branch name to target node id.",
        ),
        OperatorParameter(
            name="join_node_id",
            label="Join Node",
            type="node",
            description="PARALLEL_JOIN node that gathers the branches.",
        ),
        OperatorParameter(
            name="wait_for_all",
            label="Wait For All",
            type="boolean",
            default=True,
        ),
        OperatorParameter(
            name="timeout_seconds",
            label="Timeout (s)",
            type="number",
        ),
        OperatorParameter(
            name="max_concurrency",
            label="Max Concurrency",
            type="number",
            min=1,
        ),
    ]

    def check(self, config: ParallelForkConfig, ctx: RuleContext) -> None:
        for name, target in (config.branches or {}).items():
            if not target:
                ctx.missing("branches", f"branch '{name}' has no target")
                continue
            ctx.require_node("branches", target)
        ctx.require_operator("join_node_id", config.join_node_id, OperatorType.PARALLEL_JOIN)

    def referenced_ids(self, config: Mapping[str, Any]) -> Dict[str, List[str]]:
        branches = config.get("branches")
        targets = list(branches.values()) if isinstance(branches, Mapping) else []
        return {
            "branches": collect_ids(targets),
            "join_node_id": collect_ids(config.get("join_node_id")),
        }


# ============================================================================
# Parallel Join
# ============================================================================


class ParallelJoinConfig(OperatorConfigBase):
    operator_type: Literal["PARALLEL_JOIN"] = "PARALLEL_JOIN"
    fork_node_id: Optional[str] = None
    join_strategy: Optional[Literal["merge", "array", "custom", "last_only"]] = None
    custom_join_function: Optional[str] = None
    result_key: Optional[str] = None
    continue_on_error: bool = False
    min_success_count: Optional[int] = Field(default=None, ge=1)


@register_operator
class ParallelJoinOperator(BaseOperator):
    """Gather the results of a fork's branches."""

    operator_type = OperatorType.PARALLEL_JOIN
    label = "Parallel Join"
    description = "Wait for parallel branches and combine their results"
    category = "parallel"
    config_model = ParallelJoinConfig

    parameters = [
        OperatorParameter(
            name="fork_node_id",
            label="Fork Node",
            type="node",
            description="PARALLEL_FORK node whose branches are joined.",
        ),
        OperatorParameter(
            name="join_strategy",
            label="Join Strategy",
            type="select",
            default="merge",
            required=True,
            options=["merge", "array", "custom", "last_only"],
        ),
        OperatorParameter(
            name="custom_join_function",
            label="Custom Join Function",
            type="code",
            description="Required when join_strategy is 'custom'.",
        ),
        OperatorParameter(
            name="result_key",
            label="Result Key",
        ),
        OperatorParameter(
            name="continue_on_error",
            label="Continue On Error",
            type="boolean",
            default=False,
        ),
        OperatorParameter(
            name="min_success_count",
            label="Min Successful Branches",
            type="number",
            min=1,
        ),
    ]

    def check(self, config: ParallelJoinConfig, ctx: RuleContext) -> None:
        ctx.require_operator("fork_node_id", config.fork_node_id, OperatorType.PARALLEL_FORK)
        if config.join_strategy == "custom":
            ctx.require_value(
                "custom_join_function", config.custom_join_function,
                "join_strategy is 'custom'",
            )

    def referenced_ids(self, config: Mapping[str, Any]) -> Dict[str, List[str]]:
        return {"fork_node_id": collect_ids(config.get("fork_node_id"))}
