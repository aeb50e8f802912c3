"""
Flow Operators — entry/exit, sequencing, branching, looping, and
failure handling.

These operators shape control flow only. Their configs name other
nodes (sequence steps, branch targets, fallbacks) which must exist
in the graph for the config to be valid.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, Field

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
# Start
# ============================================================================


class ChatMessage(BaseModel):
    role: str
    content: str


class StartConfig(OperatorConfigBase):
    operator_type: Literal["START"] = "START"
    trigger_type: Optional[Literal["human", "system", "event", "multi"]] = None
    resume_capable: bool = False
    event_source: Optional[Literal["webhook", "mq", "cron"]] = None
    event_topic: Optional[str] = None  # path, topic or cron spec
    initial_messages: List[ChatMessage] = Field(default_factory=list)
    wait_for_all_start_nodes: Optional[bool] = None


@register_operator
class StartOperator(BaseOperator):
    """Entry point of the workflow."""

    operator_type = OperatorType.START
    label = "Start"
    description = "Entry point: how and when the workflow is triggered"
    category = "flow"
    config_model = StartConfig

    parameters = [
        OperatorParameter(
            name="trigger_type",
            label="Trigger Type",
            type="select",
            required=True,
            options=["human", "system", "event", "multi"],
            description="What starts the workflow.",
            group="trigger",
        ),
        OperatorParameter(
            name="resume_capable",
            label="Resume Capable",
            type="boolean",
            default=False,
            description="Whether a paused run can resume from this start node.",
            group="trigger",
        ),
        OperatorParameter(
            name="event_source",
            label="Event Source",
            type="select",
            options=["webhook", "mq", "cron"],
            description="Source of the triggering event (event triggers only).",
            group="event",
        ),
        OperatorParameter(
            name="event_topic",
            label="Event Topic",
            description="Webhook path, queue topic, or cron spec.",
            group="event",
        ),
        OperatorParameter(
            name="wait_for_all_start_nodes",
            label="Wait For All Start Nodes",
            type="boolean",
            description="Multi-start only: wait until every start node fired.",
            group="multi",
        ),
    ]

    def check(self, config: StartConfig, ctx: RuleContext) -> None:
        if config.trigger_type == "event":
            ctx.require_value(
                "event_topic", config.event_topic, "trigger_type is 'event'",
            )
        elif config.trigger_type == "multi" and config.wait_for_all_start_nodes is None:
            ctx.missing("wait_for_all_start_nodes", "trigger_type is 'multi'")


# ============================================================================
# End
# ============================================================================


class EndConfig(OperatorConfigBase):
    operator_type: Literal["END"] = "END"
    status_code: Optional[str] = None
    emit_transcript: bool = False
    on_terminate_hook: Optional[str] = None  # opaque URL


@register_operator
class EndOperator(BaseOperator):
    """Terminal node of the workflow."""

    operator_type = OperatorType.END
    label = "End"
    description = "Terminate the run and optionally emit the transcript"
    category = "flow"
    config_model = EndConfig

    parameters = [
        OperatorParameter(
            name="status_code",
            label="Status Code",
            description="Final status, e.g. 'success' or 'error'.",
        ),
        OperatorParameter(
            name="emit_transcript",
            label="Emit Transcript",
            type="boolean",
            default=False,
        ),
        OperatorParameter(
            name="on_terminate_hook",
            label="On Terminate Hook",
            description="URL called after the run ends. Not validated.",
        ),
    ]


# ============================================================================
# Sequence
# ============================================================================


class SequenceConfig(OperatorConfigBase):
    operator_type: Literal["SEQUENCE"] = "SEQUENCE"
    steps: Optional[List[str]] = None
    stop_on_error: bool = False
    error_handler_node: Optional[str] = None
    state_key_prefix: Optional[str] = None


@register_operator
class SequenceOperator(BaseOperator):
    """Run a fixed, ordered list of nodes."""

    operator_type = OperatorType.SEQUENCE
    label = "Sequence"
    description = "Execute the listed nodes one after another"
    category = "flow"
    config_model = SequenceConfig

    parameters = [
        OperatorParameter(
            name="steps",
            label="Steps",
            type="node_list",
            required=True,
            description="Ordered node ids to execute.",
        ),
        OperatorParameter(
            name="stop_on_error",
            label="Stop On Error",
            type="boolean",
            default=False,
        ),
        OperatorParameter(
            name="error_handler_node",
            label="Error Handler",
            type="node",
            description="Node to run when a step fails.",
        ),
        OperatorParameter(
            name="state_key_prefix",
            label="State Key Prefix",
            description="Prefix for per-step result keys.",
        ),
    ]

    def check(self, config: SequenceConfig, ctx: RuleContext) -> None:
        for step in config.steps or []:
            if step == ctx.node_id:
                ctx.constraint("steps", "A sequence cannot contain itself")
                continue
            ctx.require_node("steps", step)
        ctx.require_node("error_handler_node", config.error_handler_node)

    def referenced_ids(self, config: Mapping[str, Any]) -> Dict[str, List[str]]:
        return {
            "steps": collect_ids(config.get("steps")),
            "error_handler_node": collect_ids(config.get("error_handler_node")),
        }


# ============================================================================
# Decision
# ============================================================================


class DecisionBranch(BaseModel):
    label: str
    target: str


class DecisionConfig(OperatorConfigBase):
    operator_type: Literal["DECISION"] = "DECISION"
    predicate_language: Optional[Literal["javascript", "python", "jmespath"]] = None
    expression: Optional[str] = None
    confidence_threshold: Optional[float] = Field(default=None, ge=0, le=1)
    branches: List[DecisionBranch] = Field(default_factory=list)
    default_branch: Optional[str] = None
    watch_keys: List[str] = Field(default_factory=list)


@register_operator
class DecisionOperator(BaseOperator):
    """Route to one of several branches based on a predicate."""

    operator_type = OperatorType.DECISION
    label = "Decision"
    description = "Evaluate an expression and follow the matching branch"
    category = "flow"
    config_model = DecisionConfig

    parameters = [
        OperatorParameter(
            name="predicate_language",
            label="Predicate Language",
            type="select",
            default="javascript",
            required=True,
            options=["javascript", "python", "jmespath"],
        ),
        OperatorParameter(
            name="expression",
            label="Expression",
            type="code",
            required=True,
            description="Must evaluate to a truthy value or a branch label.",
        ),
        OperatorParameter(
            name="confidence_threshold",
            label="Confidence Threshold",
            type="number",
            min=0,
            max=1,
        ),
        OperatorParameter(
            name="branches",
            label="Branches",
            type="json",
            description="List of {label, target} pairs.",
            group="routing",
        ),
        OperatorParameter(
            name="default_branch",
            label="Default Branch",
            type="node",
            description="Node to follow when no branch matches.",
            group="routing",
        ),
    ]

    def check(self, config: DecisionConfig, ctx: RuleContext) -> None:
        seen = set()
        for branch in config.branches:
            if branch.label in seen:
                ctx.constraint("branches", f"Duplicate branch label: {branch.label}")
            seen.add(branch.label)
            ctx.require_node("branches", branch.target)
        ctx.require_node("default_branch", config.default_branch)

    def referenced_ids(self, config: Mapping[str, Any]) -> Dict[str, List[str]]:
        targets = [
            b.get("target") for b in config.get("branches") or []
            if isinstance(b, Mapping)
        ]
        return {
            "branches": collect_ids(targets),
            "default_branch": collect_ids(config.get("default_branch")),
        }


# ============================================================================
# Loop
# ============================================================================


class LoopConfig(OperatorConfigBase):
    operator_type: Literal["LOOP"] = "LOOP"
    condition_expression: Optional[str] = None
    max_iterations: Optional[int] = Field(default=None, ge=1)
    loop_delay_sec: Optional[float] = Field(default=None, ge=0)
    break_on_failure: bool = True


@register_operator
class LoopOperator(BaseOperator):
    """Repeat while a condition holds, bounded by ``max_iterations``."""

    operator_type = OperatorType.LOOP
    label = "Loop"
    description = "Repeat the loop body while the condition holds"
    category = "flow"
    config_model = LoopConfig

    parameters = [
        OperatorParameter(
            name="condition_expression",
            label="Condition",
            type="code",
            required=True,
            description="Evaluated before each iteration.",
        ),
        OperatorParameter(
            name="max_iterations",
            label="Max Iterations",
            type="number",
            default=10,
            min=1,
            description="Upper bound that stops runaway loops.",
        ),
        OperatorParameter(
            name="loop_delay_sec",
            label="Delay Between Iterations (s)",
            type="number",
            min=0,
        ),
        OperatorParameter(
            name="break_on_failure",
            label="Break On Failure",
            type="boolean",
            default=True,
        ),
    ]


# ============================================================================
# Error Retry
# ============================================================================


RetryStrategy = Literal["fixed", "exponential", "linear", "random", "custom"]


class ErrorRetryConfig(OperatorConfigBase):
    operator_type: Literal["ERROR_RETRY"] = "ERROR_RETRY"
    max_retries: Optional[int] = Field(default=None, ge=0)
    retry_strategy: Optional[RetryStrategy] = None
    initial_delay_seconds: Optional[float] = Field(default=None, ge=0)
    backoff_factor: Optional[float] = Field(default=None, gt=0)
    min_delay_seconds: Optional[float] = Field(default=None, ge=0)
    max_delay_seconds: Optional[float] = Field(default=None, ge=0)
    custom_retry_function: Optional[str] = None
    retry_all_errors: bool = False
    retryable_error_types: List[str] = Field(default_factory=list)
    on_max_retries_exceeded: Optional[str] = None
    on_failure_node: Optional[str] = None


@register_operator
class ErrorRetryOperator(BaseOperator):
    """Retry the failing step according to a backoff strategy."""

    operator_type = OperatorType.ERROR_RETRY
    label = "Error Retry"
    description = "Retry failed steps with fixed, backoff, random, or custom delays"
    category = "flow"
    config_model = ErrorRetryConfig

    parameters = [
        OperatorParameter(
            name="max_retries",
            label="Max Retries",
            type="number",
            required=True,
            min=0,
        ),
        OperatorParameter(
            name="retry_strategy",
            label="Retry Strategy",
            type="select",
            default="fixed",
            required=True,
            options=["fixed", "exponential", "linear", "random", "custom"],
        ),
        OperatorParameter(
            name="initial_delay_seconds",
            label="Initial Delay (s)",
            type="number",
            min=0,
            group="timing",
        ),
        OperatorParameter(
            name="backoff_factor",
            label="Backoff Factor",
            type="number",
            description="Exponential / linear strategies only.",
            group="timing",
        ),
        OperatorParameter(
            name="min_delay_seconds",
            label="Min Delay (s)",
            type="number",
            min=0,
            description="Random strategy only.",
            group="timing",
        ),
        OperatorParameter(
            name="max_delay_seconds",
            label="Max Delay (s)",
            type="number",
            min=0,
            group="timing",
        ),
        OperatorParameter(
            name="custom_retry_function",
            label="Custom Retry Function",
            type="code",
            description="Custom strategy only: returns the delay for a retry count.",
            group="timing",
        ),
        OperatorParameter(
            name="on_failure_node",
            label="On Failure Node",
            type="node",
            description="Fallback / dead-letter node once retries are exhausted.",
        ),
    ]

    def check(self, config: ErrorRetryConfig, ctx: RuleContext) -> None:
        strategy = config.retry_strategy
        if strategy in ("exponential", "linear"):
            ctx.require_value(
                "backoff_factor", config.backoff_factor, f"retry_strategy is '{strategy}'",
            )
        elif strategy == "random":
            has_min = ctx.require_value(
                "min_delay_seconds", config.min_delay_seconds, "retry_strategy is 'random'",
            )
            has_max = ctx.require_value(
                "max_delay_seconds", config.max_delay_seconds, "retry_strategy is 'random'",
            )
            if has_min and has_max and config.min_delay_seconds > config.max_delay_seconds:
                ctx.constraint(
                    "min_delay_seconds",
                    f"min_delay_seconds ({config.min_delay_seconds}) must not exceed "
                    f"max_delay_seconds ({config.max_delay_seconds})",
                )
        elif strategy == "custom":
            ctx.require_value(
                "custom_retry_function", config.custom_retry_function,
                "retry_strategy is 'custom'",
            )
        ctx.require_node("on_failure_node", config.on_failure_node)

    def referenced_ids(self, config: Mapping[str, Any]) -> Dict[str, List[str]]:
        return {"on_failure_node": collect_ids(config.get("on_failure_node"))}


# ============================================================================
# Timeout
# ============================================================================


class TimeoutConfig(OperatorConfigBase):
    operator_type: Literal["TIMEOUT"] = "TIMEOUT"
    timeout_sec: Optional[float] = Field(default=None, gt=0)
    on_timeout: Optional[Literal["retry", "abort", "fallback_node"]] = None
    fallback_node: Optional[str] = None


@register_operator
class TimeoutOperator(BaseOperator):
    """Bound the wall-clock time of the guarded step."""

    operator_type = OperatorType.TIMEOUT
    label = "Timeout"
    description = "Abort, retry, or fall back when a step runs too long"
    category = "flow"
    config_model = TimeoutConfig

    parameters = [
        OperatorParameter(
            name="timeout_sec",
            label="Timeout (s)",
            type="number",
            required=True,
        ),
        OperatorParameter(
            name="on_timeout",
            label="On Timeout",
            type="select",
            default="abort",
            options=["retry", "abort", "fallback_node"],
        ),
        OperatorParameter(
            name="fallback_node",
            label="Fallback Node",
            type="node",
            description="Required when on_timeout is 'fallback_node'.",
        ),
    ]

    def check(self, config: TimeoutConfig, ctx: RuleContext) -> None:
        if config.on_timeout == "fallback_node":
            ctx.require_value("fallback_node", config.fallback_node, "on_timeout is 'fallback_node'")
        ctx.require_node("fallback_node", config.fallback_node)

    def referenced_ids(self, config: Mapping[str, Any]) -> Dict[str, List[str]]:
        return {"fallback_node": collect_ids(config.get("fallback_node"))}
