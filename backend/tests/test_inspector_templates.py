"""Tests for the starter template and the inspect report."""

from designer.utils.identifiers import EntityKind
from designer.workflow import (
    NodeType,
    OperatorType,
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowNode,
    WorkflowValidator,
    create_starter_template,
    inspect_workflow,
)


class TestStarterTemplate:
    def test_graph_is_valid(self):
        definition = create_starter_template()
        assert definition.validate_graph() == []

    def test_every_node_is_valid(self):
        definition = create_starter_template()
        validator = WorkflowValidator(definition.get_node)
        for node in definition.nodes:
            assert validator.validate_node(node) == [], node.id

    def test_agents_and_tools_are_stamped(self):
        definition = create_starter_template(version="2.0.0")
        stamped = [n for n in definition.nodes if n.type in (NodeType.AGENT, NodeType.TOOL)]
        assert {n.id for n in stamped} == {"assistant", "web_search"}
        for node in stamped:
            assert node.version == "2.0.0"
            assert node.versioned_id and node.created_at

    def test_each_call_gets_fresh_stamps(self):
        first = create_starter_template().get_node("assistant").versioned_id
        second = create_starter_template().get_node("assistant").versioned_id
        assert first != second

    def test_edge_ids_name_their_endpoints(self):
        definition = create_starter_template()
        for edge in definition.edges:
            assert edge.id.startswith(f"e{edge.source}-{edge.target}-")
        assert len({e.id for e in definition.edges}) == len(definition.edges)

    def test_attachments_hang_off_the_agent(self):
        definition = create_starter_template()
        children = {n.id for n in definition.nodes if n.parent_id == "assistant"}
        assert children == {"web_search", "memory"}


class TestInspectWorkflow:
    """Test the inspect report structure."""

    def test_report_sections(self):
        report = inspect_workflow(create_starter_template())
        assert set(report) == {"nodes", "edges", "summary", "validation"}
        assert report["validation"] == {"valid": True, "errors": [], "node_violations": {}}

    def test_summary_counts(self):
        summary = inspect_workflow(create_starter_template())["summary"]
        assert summary["workflow_name"] == "Starter Workflow"
        assert summary["total_nodes"] == 6
        assert summary["total_edges"] == 4
        assert summary["nodes_by_type"] == {"operator": 3, "agent": 1, "tool": 1, "memory": 1}
        assert summary["operators"] == {"START": 1, "AGENT_CALL": 1, "END": 1}
        assert summary["invalid_nodes"] == 0
        assert summary["is_valid"] is True

    def test_node_detail_shows_defaults(self):
        definition = WorkflowDefinition(nodes=[
            WorkflowNode(
                id="loop", type=NodeType.OPERATOR, operator_type=OperatorType.LOOP,
                config={"condition_expression": "n < 3"},
            ),
        ])
        (detail,) = inspect_workflow(definition)["nodes"]
        assert detail["operator"] == "LOOP"
        assert detail["category"] == "flow"
        assert detail["label"] == "Loop loop"
        assert detail["config"]["condition_expression"] == "n < 3"
        assert detail["config"]["max_iterations"] == "(default: 10)"

    def test_long_values_are_truncated(self):
        definition = WorkflowDefinition(nodes=[
            WorkflowNode(
                id="loop", type=NodeType.OPERATOR, operator_type=OperatorType.LOOP,
                config={"condition_expression": "x" * 150},
            ),
        ])
        (detail,) = inspect_workflow(definition)["nodes"]
        assert detail["config"]["condition_expression"] == "x" * 100 + "…"

    def test_invalid_nodes_reported(self):
        definition = create_starter_template()
        definition.get_node("ask").config["agent_id"] = "missing"
        report = inspect_workflow(definition)

        assert report["validation"]["valid"] is False
        (violation,) = report["validation"]["node_violations"]["ask"]
        assert violation["kind"] == "dangling_reference"
        assert report["summary"]["violations_by_kind"]["dangling_reference"] == 1

    def test_edge_details(self):
        definition = create_starter_template()
        definition.edges.append(WorkflowEdge(id="bad", source="end", target="ask"))
        details = inspect_workflow(definition)["edges"]
        edges = {e["id"]: e for e in details}
        by_endpoints = {(e["source"], e["target"]): e for e in details}

        assert by_endpoints[("start", "ask")]["allowed"] is True
        assert by_endpoints[("start", "ask")]["source_label"] == "Start"
        assert by_endpoints[("assistant", "memory")]["label"] == "remembers"
        assert edges["bad"]["allowed"] is False
        assert edges["bad"]["message"].startswith("Connection from END to AGENT_CALL")

    def test_missing_endpoint(self):
        definition = create_starter_template()
        definition.edges.append(WorkflowEdge(id="ghost", source="ask", target="nowhere"))
        edges = {e["id"]: e for e in inspect_workflow(definition)["edges"]}
        assert edges["ghost"]["allowed"] is False
        assert edges["ghost"]["target_label"] == "nowhere"

    def test_versions_in_node_details(self):
        nodes = {d["id"]: d for d in inspect_workflow(create_starter_template())["nodes"]}
        assert nodes["assistant"]["version"] == "1.0.0"
        assert nodes["assistant"]["category"] == EntityKind.AGENT.value
        assert nodes["memory"]["versioned_id"] is None
