"""
Editor Configuration.

Controls graph-store policies, connection checking, default
entity versions, and save retry behaviour for the workflow designer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from designer.config.base import BaseConfig, ConfigField, FieldType, register_config
from designer.config.env_utils import read_env_defaults

RUNTIME_OPTIONS = [
    {"value": "langgraph", "label": "LangGraph"},
    {"value": "autogen", "label": "AutoGen"},
]


@register_config
@dataclass
class EditorConfig(BaseConfig):
    """Workflow designer settings."""

    reject_dangling_edges: bool = True
    enforce_connection_rules: bool = False
    runtime_type: str = "langgraph"
    default_entity_version: str = "1.0.0"
    revalidate_on_delete: bool = True
    save_max_retries: int = 3
    save_retry_delay_seconds: float = 1.0

    _ENV_MAP = {
        "reject_dangling_edges": "DESIGNER_REJECT_DANGLING_EDGES",
        "enforce_connection_rules": "DESIGNER_ENFORCE_CONNECTION_RULES",
        "runtime_type": "DESIGNER_RUNTIME_TYPE",
        "default_entity_version": "DESIGNER_DEFAULT_ENTITY_VERSION",
        "revalidate_on_delete": "DESIGNER_REVALIDATE_ON_DELETE",
        "save_max_retries": "DESIGNER_SAVE_MAX_RETRIES",
        "save_retry_delay_seconds": "DESIGNER_SAVE_RETRY_DELAY_SECONDS",
    }

    @classmethod
    def get_default_instance(cls) -> "EditorConfig":
        defaults = read_env_defaults(cls._ENV_MAP, cls.__dataclass_fields__)
        return cls.from_env_defaults(defaults)

    @classmethod
    def get_config_name(cls) -> str:
        return "editor"

    @classmethod
    def get_display_name(cls) -> str:
        return "Workflow Editor"

    @classmethod
    def get_description(cls) -> str:
        return "Graph integrity policies, target runtime, and save retry behaviour."

    @classmethod
    def get_category(cls) -> str:
        return "general"

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return [
            ConfigField(
                name="reject_dangling_edges",
                field_type=FieldType.BOOLEAN,
                label="Reject Dangling Edges",
                description="Refuse edges whose source or target node does not exist",
                default=True,
                group="integrity",
            ),
            ConfigField(
                name="enforce_connection_rules",
                field_type=FieldType.BOOLEAN,
                label="Enforce Connection Rules",
                description="Refuse operator-to-operator edges the runtime policy forbids",
                default=False,
                group="integrity",
            ),
            ConfigField(
                name="runtime_type",
                field_type=FieldType.SELECT,
                label="Target Runtime",
                description="Runtime whose connection rules apply",
                default="langgraph",
                options=RUNTIME_OPTIONS,
                group="integrity",
            ),
            ConfigField(
                name="default_entity_version",
                field_type=FieldType.STRING,
                label="Default Version",
                description="Version stamped on new agents and tools",
                default="1.0.0",
                required=True,
                group="versioning",
            ),
            ConfigField(
                name="revalidate_on_delete",
                field_type=FieldType.BOOLEAN,
                label="Re-validate on Delete",
                description="Report nodes left with dangling references after a delete",
                default=True,
                group="integrity",
            ),
            ConfigField(
                name="save_max_retries",
                field_type=FieldType.NUMBER,
                label="Save Retries",
                description="Automatic retries for a failed save",
                default=3,
                min_value=0,
                max_value=10,
                group="save",
            ),
            ConfigField(
                name="save_retry_delay_seconds",
                field_type=FieldType.NUMBER,
                label="Save Retry Delay (s)",
                description="Fixed delay between save retries",
                default=1.0,
                min_value=0,
                max_value=60,
                group="save",
            ),
        ]
