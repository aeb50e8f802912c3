"""
Operator Base — schema definitions and the operator registry.

Every operator kind is a ``BaseOperator`` subclass registered with
``@register_operator``. A subclass declares:

    - ``parameters``    : UI/field metadata with required flags and defaults
    - ``config_model``  : the strictly-typed pydantic config variant
    - ``check()``       : cross-reference and operator-specific rules
    - ``referenced_ids()`` : which config fields name other nodes

Operators never touch the graph store. Node existence is resolved
through the ``NodeLookup`` callable handed to ``check()``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from logging import getLogger
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Set,
    Type,
)

from pydantic import BaseModel, ConfigDict, ValidationError

from designer.workflow.errors import Violation, ViolationKind
from designer.workflow.workflow_model import NodeType, OperatorType, WorkflowNode

logger = getLogger(__name__)

NodeLookup = Callable[[str], Optional[WorkflowNode]]


# ============================================================================
# Parameter metadata
# ============================================================================


@dataclass
class OperatorParameter:
    """One configurable field of an operator."""
    name: str
    label: str
    type: str = "string"  # string | number | boolean | select | node | node_list | json | code
    default: Any = None
    required: bool = False
    description: str = ""
    options: List[str] = field(default_factory=list)
    min: Optional[float] = None
    max: Optional[float] = None
    group: str = "general"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "type": self.type,
            "default": self.default,
            "required": self.required,
            "description": self.description,
            "options": list(self.options),
            "min": self.min,
            "max": self.max,
            "group": self.group,
        }


class OperatorConfigBase(BaseModel):
    """Base for the per-operator config variants.

    Unknown keys are kept: the editor forms store UI-only helpers
    next to the real fields.
    """

    model_config = ConfigDict(extra="allow")


def is_blank(value: Any) -> bool:
    """True for values a form would show as empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


# ============================================================================
# Rule context
# ============================================================================


class RuleContext:
    """Collects violations for one node while its operator rules run."""

    def __init__(self, node_id: str, lookup: NodeLookup) -> None:
        self.node_id = node_id
        self.lookup = lookup
        self.violations: List[Violation] = []
        # fields already reported as unparseable
        self.skipped: Set[str] = set()

    def add(self, kind: ViolationKind, field_name: Optional[str], message: str) -> None:
        if field_name in self.skipped:
            return
        self.violations.append(Violation(
            node_id=self.node_id, kind=kind, field=field_name, message=message,
        ))

    def missing(self, field_name: str, reason: str = "") -> None:
        suffix = f" ({reason})" if reason else ""
        self.add(ViolationKind.MISSING_FIELD, field_name, f"'{field_name}' is required{suffix}")

    def constraint(self, field_name: Optional[str], message: str) -> None:
        self.add(ViolationKind.CONSTRAINT_VIOLATION, field_name, message)

    def require_value(self, field_name: str, value: Any, reason: str = "") -> bool:
        if is_blank(value):
            self.missing(field_name, reason)
            return False
        return True

    def require_node(self, field_name: str, node_id: Optional[str]) -> Optional[WorkflowNode]:
        """Resolve a cross-reference; report it when it dangles."""
        if is_blank(node_id):
            return None
        node = self.lookup(node_id)
        if node is None:
            self.add(
                ViolationKind.DANGLING_REFERENCE,
                field_name,
                f"'{field_name}' references unknown node: {node_id}",
            )
        return node

    def require_operator(
        self, field_name: str, node_id: Optional[str], kind: OperatorType,
    ) -> Optional[WorkflowNode]:
        node = self.require_node(field_name, node_id)
        if node is not None and node.operator_kind != kind:
            self.constraint(
                field_name,
                f"'{field_name}' must reference a {kind.value} operator "
                f"(node {node_id} is {_describe(node)})",
            )
        return node

    def require_node_type(
        self, field_name: str, node_id: Optional[str], node_type: NodeType,
    ) -> Optional[WorkflowNode]:
        node = self.require_node(field_name, node_id)
        if node is not None and node.type != node_type:
            self.constraint(
                field_name,
                f"'{field_name}' must reference a {node_type.value} node "
                f"(node {node_id} is {_describe(node)})",
            )
        return node


def _describe(node: WorkflowNode) -> str:
    if node.operator_type is not None:
        return f"a {node.operator_type.value} operator"
    return f"a {node.type.value} node"


# ============================================================================
# BaseOperator
# ============================================================================


class BaseOperator:
    """Schema and rules for one operator kind."""

    operator_type: ClassVar[OperatorType]
    label: ClassVar[str] = ""
    description: ClassVar[str] = ""
    category: ClassVar[str] = "flow"
    parameters: ClassVar[List[OperatorParameter]] = []
    config_model: ClassVar[Type[OperatorConfigBase]] = OperatorConfigBase

    # ── Static schema ──

    def get_parameter(self, name: str) -> Optional[OperatorParameter]:
        for p in self.parameters:
            if p.name == name:
                return p
        return None

    def required_fields(self) -> List[str]:
        return [p.name for p in self.parameters if p.required]

    def defaults(self) -> Dict[str, Any]:
        return {
            p.name: copy.deepcopy(p.default)
            for p in self.parameters
            if p.default is not None
        }

    def apply_defaults(self, config: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a copy of ``config`` with defaults filled for absent keys."""
        merged = dict(config)
        for name, value in self.defaults().items():
            if name not in merged:
                merged[name] = value
        return merged

    # ── Validation ──

    def check_required(self, config: Mapping[str, Any], ctx: RuleContext) -> None:
        for name in self.required_fields():
            ctx.require_value(name, config.get(name))

    def parse(self, config: Mapping[str, Any], ctx: RuleContext) -> Optional[OperatorConfigBase]:
        """Parse into the typed variant, reporting field-level type errors.

        Top-level fields that fail are reported, marked skipped on ``ctx``
        and dropped, so the remaining fields still reach ``check()``.
        Returns None only when the reduced config fails as well.
        """
        try:
            return self.config_model.model_validate(dict(config))
        except ValidationError as e:
            bad_fields: Set[str] = set()
            for err in e.errors():
                loc = ".".join(str(part) for part in err["loc"]) or None
                if err["type"] == "missing":
                    ctx.missing(loc or "config")
                else:
                    ctx.constraint(loc, f"'{loc}': {err['msg']}")
                if err["loc"]:
                    bad_fields.add(str(err["loc"][0]))

        ctx.skipped.update(bad_fields)
        remaining = {k: v for k, v in config.items() if k not in bad_fields}
        try:
            return self.config_model.model_validate(remaining)
        except ValidationError as e:
            logger.debug(f"Config for {ctx.node_id} unparseable after dropping {sorted(bad_fields)}: {e}")
            return None

    def check(self, config: Any, ctx: RuleContext) -> None:
        """Operator-specific rules. Subclasses override."""

    def referenced_ids(self, config: Mapping[str, Any]) -> Dict[str, List[str]]:
        """Config fields that name other nodes, with the ids they name."""
        return {}

    def validate(
        self, node_id: str, config: Mapping[str, Any], lookup: NodeLookup,
    ) -> List[Violation]:
        """Full static + referential validation of one config payload."""
        ctx = RuleContext(node_id, lookup)
        merged = self.apply_defaults(config)
        self.check_required(merged, ctx)
        parsed = self.parse(merged, ctx)
        if parsed is not None:
            self.check(parsed, ctx)
        return ctx.violations

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the schema for the node palette."""
        return {
            "operator_type": self.operator_type.value,
            "label": self.label,
            "description": self.description,
            "category": self.category,
            "parameters": [p.to_dict() for p in self.parameters],
        }


def collect_ids(*values: Any) -> List[str]:
    """Flatten ids from scalars and lists, skipping blanks."""
    ids: List[str] = []
    for value in values:
        if isinstance(value, (list, tuple)):
            ids.extend(v for v in value if isinstance(v, str) and v)
        elif isinstance(value, str) and value:
            ids.append(value)
    return ids


# ============================================================================
# Registry
# ============================================================================


class OperatorRegistry:
    """Catalog of operator schemas keyed by ``OperatorType``."""

    def __init__(self) -> None:
        self._operators: Dict[OperatorType, BaseOperator] = {}

    def register(self, operator: BaseOperator) -> None:
        if operator.operator_type in self._operators:
            logger.warning(f"Overwriting operator registration: {operator.operator_type.value}")
        self._operators[operator.operator_type] = operator
        logger.debug(f"Registered operator: {operator.operator_type.value}")

    def get(self, operator_type: OperatorType) -> Optional[BaseOperator]:
        return self._operators.get(operator_type)

    def list_all(self) -> List[BaseOperator]:
        return [self._operators[t] for t in OperatorType if t in self._operators]

    def missing_types(self) -> List[OperatorType]:
        return [t for t in OperatorType if t not in self._operators]

    def ensure_complete(self) -> None:
        """Fail loudly when an operator kind has no registered schema."""
        missing = self.missing_types()
        if missing:
            raise RuntimeError(
                "No operator schema registered for: "
                + ", ".join(t.value for t in missing)
            )

    def apply_defaults(
        self, operator_type: OperatorType, config: Mapping[str, Any],
    ) -> Dict[str, Any]:
        operator = self.get(operator_type)
        if operator is None:
            return dict(config)
        return operator.apply_defaults(config)

    def referenced_ids(self, node: WorkflowNode) -> Dict[str, List[str]]:
        kind = node.operator_kind
        operator = self.get(kind) if kind is not None else None
        if operator is None:
            return {}
        return operator.referenced_ids(operator.apply_defaults(node.config))

    def iter_schemas(self) -> Iterable[Dict[str, Any]]:
        for operator in self.list_all():
            yield operator.to_dict()


_registry: Optional[OperatorRegistry] = None


def get_operator_registry() -> OperatorRegistry:
    """Return the global OperatorRegistry singleton."""
    global _registry
    if _registry is None:
        _registry = OperatorRegistry()
    return _registry


def register_operator(cls: Type[BaseOperator]) -> Type[BaseOperator]:
    """Class decorator: instantiate and register an operator schema."""
    get_operator_registry().register(cls())
    return cls
