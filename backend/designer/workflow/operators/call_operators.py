"""
Call Operators — invoke agents, tools, sub-workflows, and humans.

Internal calls must point at a node of this graph; external, API,
and function calls carry their own endpoint details instead.
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

RequestMethod = Literal["GET", "POST", "PUT"]


def _endpoint_parameters() -> List[OperatorParameter]:
    return [
        OperatorParameter(
            name="api_endpoint",
            label="API Endpoint",
            description="Required for API calls.",
            group="endpoint",
        ),
        OperatorParameter(
            name="api_key",
            label="API Key",
            group="endpoint",
        ),
        OperatorParameter(
            name="request_method",
            label="Request Method",
            type="select",
            options=["GET", "POST", "PUT"],
            group="endpoint",
        ),
        OperatorParameter(
            name="input_mapping",
            label="Input Mapping",
            type="code",
            group="mapping",
        ),
        OperatorParameter(
            name="output_mapping",
            label="Output Mapping",
            type="code",
            group="mapping",
        ),
        OperatorParameter(
            name="timeout_seconds",
            label="Timeout (s)",
            type="number",
        ),
    ]


# ============================================================================
# Agent Call
# ============================================================================


class AgentCallConfig(OperatorConfigBase):
    operator_type: Literal["AGENT_CALL"] = "AGENT_CALL"
    call_type: Optional[Literal["external", "internal", "api"]] = None
    agent_id: Optional[str] = None
    agent_url: Optional[str] = None
    auth_header: Optional[str] = None
    api_endpoint: Optional[str] = None
    api_key: Optional[str] = None
    request_method: Optional[RequestMethod] = None
    input_mapping: Optional[str] = None
    output_mapping: Optional[str] = None
    stream_response: bool = False
    timeout_seconds: Optional[float] = Field(default=None, gt=0)


@register_operator
class AgentCallOperator(BaseOperator):
    """Hand the current state to an agent and merge its reply."""

    operator_type = OperatorType.AGENT_CALL
    label = "Agent Call"
    description = "Call an agent in this workflow, an external agent, or an agent API"
    category = "call"
    config_model = AgentCallConfig

    parameters = [
        OperatorParameter(
            name="call_type",
            label="Agent Call Type",
            type="select",
            default="external",
            required=True,
            options=["external", "internal", "api"],
        ),
        OperatorParameter(
            name="agent_id",
            label="Agent",
            type="node",
            description="Agent node to call (internal calls).",
        ),
        OperatorParameter(
            name="agent_url",
            label="Agent URL",
            description="Required for external calls.",
            group="endpoint",
        ),
        OperatorParameter(
            name="stream_response",
            label="Stream Response",
            type="boolean",
            default=False,
        ),
    ] + _endpoint_parameters()

    def check(self, config: AgentCallConfig, ctx: RuleContext) -> None:
        if config.call_type == "internal":
            if ctx.require_value("agent_id", config.agent_id, "call_type is 'internal'"):
                ctx.require_node_type("agent_id", config.agent_id, NodeType.AGENT)
        elif config.call_type == "external":
            ctx.require_value("agent_url", config.agent_url, "call_type is 'external'")
        elif config.call_type == "api":
            ctx.require_value("api_endpoint", config.api_endpoint, "call_type is 'api'")
            ctx.require_value("request_method", config.request_method, "call_type is 'api'")

    def referenced_ids(self, config: Mapping[str, Any]) -> Dict[str, List[str]]:
        if config.get("call_type") != "internal":
            return {}
        return {"agent_id": collect_ids(config.get("agent_id"))}


# ============================================================================
# Tool Call
# ============================================================================


class ToolCallConfig(OperatorConfigBase):
    operator_type: Literal["TOOL_CALL"] = "TOOL_CALL"
    call_type: Optional[Literal["internal", "external", "api", "function"]] = None
    tool_name: Optional[str] = None
    tool_id: Optional[str] = None
    tool_url: Optional[str] = None
    auth_header: Optional[str] = None
    api_endpoint: Optional[str] = None
    api_key: Optional[str] = None
    request_method: Optional[RequestMethod] = None
    function_definition: Optional[str] = None
    input_mapping: Optional[str] = None
    output_mapping: Optional[str] = None
    cache_results: bool = False
    timeout_seconds: Optional[float] = Field(default=None, gt=0)


@register_operator
class ToolCallOperator(BaseOperator):
    """Invoke a tool and merge its result into state."""

    operator_type = OperatorType.TOOL_CALL
    label = "Tool Call"
    description = "Call a tool node, an external tool, an API, or an inline function"
    category = "call"
    config_model = ToolCallConfig

    parameters = [
        OperatorParameter(
            name="call_type",
            label="Tool Call Type",
            type="select",
            default="internal",
            required=True,
            options=["internal", "external", "api", "function"],
        ),
        OperatorParameter(
            name="tool_name",
            label="Tool Name",
            required=True,
        ),
        OperatorParameter(
            name="tool_id",
            label="Tool",
            type="node",
            description="Tool node to call (internal calls).",
        ),
        OperatorParameter(
            name="tool_url",
            label="Tool URL",
            description="Required for external calls.",
            group="endpoint",
        ),
        OperatorParameter(
            name="function_definition",
            label="Function Definition",
            type="code",
            description="Required for function calls.",
        ),
        OperatorParameter(
            name="cache_results",
            label="Cache Results",
            type="boolean",
            default=False,
        ),
    ] + _endpoint_parameters()

    def check(self, config: ToolCallConfig, ctx: RuleContext) -> None:
        if config.call_type == "internal":
            if ctx.require_value("tool_id", config.tool_id, "call_type is 'internal'"):
                ctx.require_node_type("tool_id", config.tool_id, NodeType.TOOL)
        elif config.call_type == "external":
            ctx.require_value("tool_url", config.tool_url, "call_type is 'external'")
        elif config.call_type == "api":
            ctx.require_value("api_endpoint", config.api_endpoint, "call_type is 'api'")
            ctx.require_value("request_method", config.request_method, "call_type is 'api'")
        elif config.call_type == "function":
            ctx.require_value(
                "function_definition", config.function_definition, "call_type is 'function'",
            )

    def referenced_ids(self, config: Mapping[str, Any]) -> Dict[str, List[str]]:
        if config.get("call_type") != "internal":
            return {}
        return {"tool_id": collect_ids(config.get("tool_id"))}


# ============================================================================
# Sub-Graph
# ============================================================================


class SubGraphConfig(OperatorConfigBase):
    operator_type: Literal["SUB_GRAPH"] = "SUB_GRAPH"
    workflow_id: Optional[str] = None  # external workflow catalog id
    version: Optional[str] = None
    mode: Optional[Literal["inline", "async"]] = None
    isolate_state: bool = True
    input_mapping: Optional[str] = None
    output_mapping: Optional[str] = None
    error_handler: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)


@register_operator
class SubGraphOperator(BaseOperator):
    """Run another saved workflow as a single step."""

    operator_type = OperatorType.SUB_GRAPH
    label = "Sub-Graph"
    description = "Invoke a saved workflow with mapped inputs and outputs"
    category = "call"
    config_model = SubGraphConfig

    parameters = [
        OperatorParameter(
            name="workflow_id",
            label="Workflow Reference",
            required=True,
            description="Id in the workflow catalog. Not resolved against this graph.",
        ),
        OperatorParameter(
            name="version",
            label="Version",
        ),
        OperatorParameter(
            name="mode",
            label="Mode",
            type="select",
            default="inline",
            options=["inline", "async"],
        ),
        OperatorParameter(
            name="isolate_state",
            label="Isolate State",
            type="boolean",
            default=True,
        ),
        OperatorParameter(
            name="input_mapping",
            label="Input Mapping",
            type="code",
            group="mapping",
        ),
        OperatorParameter(
            name="output_mapping",
            label="Output Mapping",
            type="code",
            group="mapping",
        ),
        OperatorParameter(
            name="error_handler",
            label="Error Handler",
            type="code",
        ),
    ]


# ============================================================================
# Human Pause
# ============================================================================


NOTIFYING_CHANNELS = ("email", "slack", "teams", "webhook", "sms")


class HumanPauseConfig(OperatorConfigBase):
    operator_type: Literal["HUMAN_PAUSE"] = "HUMAN_PAUSE"
    message_to_user: Optional[str] = None
    channel: Optional[Literal["web", "email", "slack", "teams", "webhook", "sms"]] = None
    notification_recipients: Optional[str] = None
    expected_response_schema: Optional[Dict[str, Any]] = None
    timeout_sec: Optional[float] = Field(default=None, gt=0)
    escalate_node: Optional[str] = None
    next_node_on_response: Optional[str] = None
    require_approval: bool = True
    allow_modifications: bool = False
    editable_fields: List[str] = Field(default_factory=list)


@register_operator
class HumanPauseOperator(BaseOperator):
    """Suspend the run until a person responds."""

    operator_type = OperatorType.HUMAN_PAUSE
    label = "Human Pause"
    description = "Pause for human input, approval, or edits"
    category = "interaction"
    config_model = HumanPauseConfig

    parameters = [
        OperatorParameter(
            name="message_to_user",
            label="Pause Message",
            required=True,
        ),
        OperatorParameter(
            name="channel",
            label="Notification Channel",
            type="select",
            default="web",
            options=["web", "email", "slack", "teams", "webhook", "sms"],
        ),
        OperatorParameter(
            name="notification_recipients",
            label="Notification Recipients",
            description="Required for every channel except 'web'.",
        ),
        OperatorParameter(
            name="timeout_sec",
            label="Timeout (s)",
            type="number",
            description="Escalate after this long without a response.",
        ),
        OperatorParameter(
            name="escalate_node",
            label="Escalate To",
            type="node",
        ),
        OperatorParameter(
            name="next_node_on_response",
            label="Resume At",
            type="node",
        ),
        OperatorParameter(
            name="require_approval",
            label="Require Explicit Approval",
            type="boolean",
            default=True,
        ),
        OperatorParameter(
            name="allow_modifications",
            label="Allow Data Modifications",
            type="boolean",
            default=False,
        ),
    ]

    def check(self, config: HumanPauseConfig, ctx: RuleContext) -> None:
        if config.channel in NOTIFYING_CHANNELS:
            ctx.require_value(
                "notification_recipients", config.notification_recipients,
                f"channel is '{config.channel}'",
            )
        ctx.require_node("escalate_node", config.escalate_node)
        ctx.require_node("next_node_on_response", config.next_node_on_response)

    def referenced_ids(self, config: Mapping[str, Any]) -> Dict[str, List[str]]:
        return {
            "escalate_node": collect_ids(config.get("escalate_node")),
            "next_node_on_response": collect_ids(config.get("next_node_on_response")),
        }
