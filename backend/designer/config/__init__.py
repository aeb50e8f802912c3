"""Editor settings."""

from designer.config.base import (
    BaseConfig,
    ConfigField,
    FieldType,
    get_config_registry,
    register_config,
)
from designer.config.editor_config import EditorConfig
from designer.config.env_utils import read_env_defaults

__all__ = [
    "BaseConfig",
    "ConfigField",
    "FieldType",
    "get_config_registry",
    "register_config",
    "EditorConfig",
    "read_env_defaults",
]
