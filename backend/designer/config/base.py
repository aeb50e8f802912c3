"""
Config Base — dataclass-backed settings with UI field metadata.

Every settings group is a ``@dataclass`` subclass of ``BaseConfig``
decorated with ``@register_config``. The class describes itself
(name, category, field metadata) through classmethods so a settings
screen can render it without knowing the concrete type.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from logging import getLogger
from typing import Any, Dict, List, Optional, Type

logger = getLogger(__name__)


class FieldType(str, Enum):
    """Widget hint for a config field."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    PASSWORD = "password"


@dataclass
class ConfigField:
    """UI metadata for one config field."""
    name: str
    field_type: FieldType
    label: str
    description: str = ""
    default: Any = None
    required: bool = False
    placeholder: str = ""
    options: List[Dict[str, str]] = field(default_factory=list)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    group: str = "general"
    secure: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.field_type.value,
            "label": self.label,
            "description": self.description,
            "default": self.default,
            "required": self.required,
            "placeholder": self.placeholder,
            "options": self.options,
            "min": self.min_value,
            "max": self.max_value,
            "group": self.group,
            "secure": self.secure,
        }


@dataclass
class BaseConfig:
    """Base for every settings group."""

    @classmethod
    def get_default_instance(cls) -> "BaseConfig":
        return cls()

    @classmethod
    def get_config_name(cls) -> str:
        raise NotImplementedError

    @classmethod
    def get_display_name(cls) -> str:
        return cls.get_config_name()

    @classmethod
    def get_description(cls) -> str:
        return ""

    @classmethod
    def get_category(cls) -> str:
        return "general"

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return []

    def to_dict(self) -> Dict[str, Any]:
        """Current values keyed by field name."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def validate(self) -> List[str]:
        """Check values against the field metadata.

        Returns a list of error messages (empty = valid).
        """
        errors: List[str] = []
        for meta in self.get_fields_metadata():
            errors.extend(field_errors(meta, getattr(self, meta.name, None)))
        return errors

    @classmethod
    def from_env_defaults(cls, defaults: Dict[str, Any]) -> "BaseConfig":
        """Build an instance, dropping overrides its metadata rejects."""
        accepted = dict(defaults)
        for meta in cls.get_fields_metadata():
            if meta.name not in accepted:
                continue
            errors = field_errors(meta, accepted[meta.name])
            if errors:
                value = accepted.pop(meta.name)
                logger.warning(
                    f"Ignoring {cls.get_config_name()}.{meta.name}={value!r}: {'; '.join(errors)}"
                )
        return cls(**accepted)


def field_errors(meta: ConfigField, value: Any) -> List[str]:
    """Error messages for one value checked against its field metadata."""
    if meta.required and value in (None, ""):
        return [f"{meta.label} is required"]
    errors: List[str] = []
    if meta.field_type == FieldType.NUMBER and value is not None:
        if meta.min_value is not None and value < meta.min_value:
            errors.append(f"{meta.label} must be >= {meta.min_value}")
        if meta.max_value is not None and value > meta.max_value:
            errors.append(f"{meta.label} must be <= {meta.max_value}")
    if meta.field_type == FieldType.SELECT and meta.options:
        allowed = {opt["value"] for opt in meta.options}
        if value not in allowed:
            errors.append(
                f"{meta.label} must be one of {', '.join(sorted(allowed))}"
            )
    return errors


# ── Registry ──

_config_registry: Dict[str, Type[BaseConfig]] = {}


def register_config(cls: Type[BaseConfig]) -> Type[BaseConfig]:
    """Class decorator: make a config group discoverable by name."""
    name = cls.get_config_name()
    if name in _config_registry:
        logger.warning(f"Overwriting config registration: {name}")
    _config_registry[name] = cls
    return cls


def get_config_registry() -> Dict[str, Type[BaseConfig]]:
    """Return all registered config classes keyed by config name."""
    return dict(_config_registry)
