"""ID generation and timestamp utilities.

Agents and tools are stamped with a ``VersionedEntity`` whenever the
user binds a node to a new template version. The entity id is a ULID:
globally unique without coordination and lexicographically sortable
by creation time, so revisions order correctly even when created
offline on different machines.
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict
from ulid import ULID


class EntityKind(str, Enum):
    """Reusable building blocks that carry versioned ids."""
    AGENT = "agent"
    TOOL = "tool"


class VersionedEntity(BaseModel):
    """An immutable stamp identifying one revision of an agent or tool."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    type: EntityKind
    id: str
    version: str  # free-form, usually MAJOR.MINOR.PATCH
    created_at: str


_ulid_lock = threading.Lock()
_last_ulid: Optional[ULID] = None


def generate_ulid() -> ULID:
    """Return a ULID strictly greater than every ULID generated before it.

    Two calls inside the same millisecond draw independent random
    parts, so the later one may sort first; in that case the previous
    value is bumped by one instead.
    """
    global _last_ulid
    with _ulid_lock:
        candidate = ULID()
        if _last_ulid is not None and int(candidate) <= int(_last_ulid):
            candidate = ULID.from_int(int(_last_ulid) + 1)
        _last_ulid = candidate
        return candidate


def new_versioned_entity(kind: Union[EntityKind, str], version: str) -> VersionedEntity:
    """Stamp a fresh revision of an agent or tool.

    Raises:
        ValueError: If ``kind`` is not ``agent`` or ``tool``.
    """
    entity_kind = EntityKind(kind)
    value = generate_ulid()
    return VersionedEntity(
        type=entity_kind,
        id=str(value),
        version=version,
        created_at=value.datetime.astimezone(timezone.utc).isoformat(),
    )


def new_agent_version(version: str) -> VersionedEntity:
    """Generate a new versioned ID for an agent."""
    return new_versioned_entity(EntityKind.AGENT, version)


def new_tool_version(version: str) -> VersionedEntity:
    """Generate a new versioned ID for a tool."""
    return new_versioned_entity(EntityKind.TOOL, version)


def generate_node_id() -> str:
    """Generate a short node ID (first 8 chars of a UUID4)."""
    return str(uuid.uuid4())[:8]


def generate_edge_id(source: str, target: str) -> str:
    """Generate an edge ID that names both endpoints."""
    return f"e{source}-{target}-{uuid.uuid4().hex[:6]}"


def utc_timestamp() -> str:
    """Generate an ISO8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()
