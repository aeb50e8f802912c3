"""Tests for versioned entity identifiers."""

from datetime import datetime

import pytest
from pydantic import ValidationError
from ulid import ULID

from designer.utils.identifiers import (
    EntityKind,
    generate_edge_id,
    generate_node_id,
    generate_ulid,
    new_agent_version,
    new_tool_version,
    new_versioned_entity,
    utc_timestamp,
)
from designer.workflow import NodeType, WorkflowDefinition, WorkflowEdge, WorkflowNode


class TestNewVersionedEntity:
    """Test the VersionedEntity factory."""

    def test_two_calls_return_distinct_ids(self):
        """Two agent stamps share type and version but never the id."""
        first = new_versioned_entity("agent", "1.0.0")
        second = new_versioned_entity("agent", "1.0.0")
        assert first.id != second.id
        assert first.type == "agent" and second.type == "agent"
        assert first.version == "1.0.0" and second.version == "1.0.0"

    def test_id_is_a_ulid(self):
        entity = new_versioned_entity(EntityKind.TOOL, "2.1.0")
        assert len(entity.id) == 26
        assert str(ULID.from_str(entity.id)) == entity.id

    def test_created_at_matches_ulid_timestamp(self):
        """created_at is the ULID's embedded millisecond timestamp."""
        entity = new_versioned_entity("agent", "1.0.0")
        embedded = ULID.from_str(entity.id).datetime
        parsed = datetime.fromisoformat(entity.created_at)
        assert parsed.utcoffset().total_seconds() == 0
        assert parsed.timestamp() == pytest.approx(embedded.timestamp(), abs=0.001)

    def test_rejects_unknown_kind(self):
        with pytest.raises(ValueError):
            new_versioned_entity("memory", "1.0.0")

    def test_entity_is_frozen(self):
        entity = new_agent_version("1.0.0")
        with pytest.raises(ValidationError):
            entity.version = "2.0.0"

    def test_convenience_wrappers(self):
        assert new_agent_version("1.2.3").type == "agent"
        assert new_tool_version("1.2.3").type == "tool"


class TestUlidOrdering:
    """Test monotonic ULID generation."""

    def test_strictly_increasing(self):
        """Ids generated in a tight loop sort in generation order."""
        values = [generate_ulid() for _ in range(500)]
        assert all(int(a) < int(b) for a, b in zip(values, values[1:]))

    def test_string_form_sorts_like_generation_order(self):
        ids = [new_agent_version("1.0.0").id for _ in range(200)]
        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)


class TestSmallHelpers:
    def test_node_id_is_short(self):
        assert len(generate_node_id()) == 8

    def test_edge_id_names_endpoints(self):
        edge_id = generate_edge_id("a1", "b2")
        assert edge_id.startswith("ea1-b2-")

    def test_utc_timestamp_is_timezone_aware(self):
        assert datetime.fromisoformat(utc_timestamp()).tzinfo is not None

    def test_model_defaults_use_helpers(self):
        assert len(WorkflowNode(type=NodeType.AGENT).id) == 8
        assert len(WorkflowEdge(source="a", target="b").id) == 8
        definition = WorkflowDefinition()
        assert datetime.fromisoformat(definition.created_at).tzinfo is not None
        definition.updated_at = ""
        definition.touch()
        assert datetime.fromisoformat(definition.updated_at).tzinfo is not None
