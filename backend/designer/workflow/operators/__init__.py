"""
Operator schemas for every control-flow node kind.

Importing this package registers all operators. ``OperatorConfig`` is
the tagged union of the typed config variants, discriminated by
``operator_type``.
"""

from __future__ import annotations

from typing import Annotated, Any, Mapping, Union

from pydantic import Field, TypeAdapter

from designer.workflow.operators.base import (
    BaseOperator,
    NodeLookup,
    OperatorConfigBase,
    OperatorParameter,
    OperatorRegistry,
    RuleContext,
    get_operator_registry,
    is_blank,
    register_operator,
)
from designer.workflow.operators.flow_operators import (
    DecisionConfig,
    EndConfig,
    ErrorRetryConfig,
    LoopConfig,
    SequenceConfig,
    StartConfig,
    TimeoutConfig,
)
from designer.workflow.operators.parallel_operators import (
    ParallelForkConfig,
    ParallelJoinConfig,
)
from designer.workflow.operators.call_operators import (
    AgentCallConfig,
    HumanPauseConfig,
    SubGraphConfig,
    ToolCallConfig,
)
from designer.workflow.operators.memory_operators import (
    MemoryReadConfig,
    MemoryWriteConfig,
)
from designer.workflow.workflow_model import OperatorType

OperatorConfig = Annotated[
    Union[
        StartConfig,
        EndConfig,
        SequenceConfig,
        DecisionConfig,
        LoopConfig,
        ParallelForkConfig,
        ParallelJoinConfig,
        ErrorRetryConfig,
        TimeoutConfig,
        HumanPauseConfig,
        SubGraphConfig,
        AgentCallConfig,
        ToolCallConfig,
        MemoryReadConfig,
        MemoryWriteConfig,
    ],
    Field(discriminator="operator_type"),
]

_config_adapter: TypeAdapter = TypeAdapter(OperatorConfig)


def parse_operator_config(
    operator_type: OperatorType, config: Mapping[str, Any],
) -> OperatorConfigBase:
    """Parse a stored config dict into its typed variant.

    Raises ``pydantic.ValidationError`` on type errors.
    """
    payload = dict(config)
    payload["operator_type"] = OperatorType(operator_type).value
    return _config_adapter.validate_python(payload)


__all__ = [
    "BaseOperator",
    "NodeLookup",
    "OperatorConfig",
    "OperatorConfigBase",
    "OperatorParameter",
    "OperatorRegistry",
    "RuleContext",
    "get_operator_registry",
    "is_blank",
    "parse_operator_config",
    "register_operator",
]
