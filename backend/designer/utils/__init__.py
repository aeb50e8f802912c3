"""Utility functions for the workflow designer."""

from designer.utils.identifiers import (
    EntityKind,
    VersionedEntity,
    generate_edge_id,
    generate_node_id,
    generate_ulid,
    new_agent_version,
    new_tool_version,
    new_versioned_entity,
    utc_timestamp,
)

__all__ = [
    "EntityKind",
    "VersionedEntity",
    "generate_edge_id",
    "generate_node_id",
    "generate_ulid",
    "new_agent_version",
    "new_tool_version",
    "new_versioned_entity",
    "utc_timestamp",
]
