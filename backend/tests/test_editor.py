"""Tests for the editor action channel and help content."""

from designer.editor import EditorActionChannel, HelpContent, get_help, operator_help
from designer.editor.help_content import OPERATOR_HELP, list_categories
from designer.workflow import OperatorType


class TestEditorActionChannel:
    def test_requests_without_registration(self):
        channel = EditorActionChannel()
        assert channel.request_save() is False
        assert channel.request_cancel() is False
        assert not channel.is_registered

    def test_save_and_cancel_reach_the_editor(self):
        events = []
        channel = EditorActionChannel()
        channel.register(lambda: events.append("save"), lambda: events.append("cancel"))

        assert channel.request_save() is True
        assert channel.request_cancel() is True
        assert events == ["save", "cancel"]

    def test_cancel_without_handler(self):
        channel = EditorActionChannel()
        channel.register(lambda: None)
        assert channel.request_cancel() is False

    def test_dispose_unregisters(self):
        channel = EditorActionChannel()
        dispose = channel.register(lambda: None)
        dispose()
        assert not channel.is_registered
        assert channel.request_save() is False

    def test_stale_disposer_keeps_newer_registration(self):
        events = []
        channel = EditorActionChannel()
        dispose_first = channel.register(lambda: events.append("first"))
        channel.register(lambda: events.append("second"))

        dispose_first()
        channel.request_save()

        assert events == ["second"]

    def test_channels_are_independent(self):
        a, b = EditorActionChannel(), EditorActionChannel()
        a.register(lambda: None)
        assert b.request_save() is False


class TestHelpContent:
    def test_lookup(self):
        content = get_help("agent", "agent_node")
        assert isinstance(content, HelpContent)
        assert content.title == "Agent Node"
        assert content.link == "/docs/USER_GUIDE.md#working-with-agents"

    def test_entry_without_link(self):
        assert get_help("agent", "agent_name").link is None

    def test_missing_entries(self):
        assert get_help("agent", "nope") is None
        assert get_help("nope", "agent_node") is None

    def test_categories(self):
        assert list_categories() == ["workflow", "agent", "tool", "memory", "operator"]

    def test_operator_help_from_catalog(self):
        assert operator_help(OperatorType.LOOP) is OPERATOR_HELP["loop"]
        assert operator_help("DECISION").title == "DECISION Operator"

    def test_operator_help_falls_back_to_schema(self):
        content = operator_help(OperatorType.SUB_GRAPH)
        assert content.title == "SUB_GRAPH Operator"
        assert content.description
        assert content.link is None

    def test_every_operator_has_help(self):
        for kind in OperatorType:
            assert operator_help(kind).description
