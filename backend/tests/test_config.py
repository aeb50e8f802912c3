"""Tests for editor settings and environment overrides."""

from designer.config import EditorConfig, FieldType, get_config_registry, read_env_defaults


def _env(**values):
    fields = EditorConfig.__dataclass_fields__
    return read_env_defaults(EditorConfig._ENV_MAP, fields, environ=values)


class TestReadEnvDefaults:
    def test_unset_variables_are_skipped(self):
        assert _env() == {}

    def test_values_are_coerced_to_field_types(self):
        values = _env(
            DESIGNER_REJECT_DANGLING_EDGES="off",
            DESIGNER_ENFORCE_CONNECTION_RULES="Yes",
            DESIGNER_RUNTIME_TYPE="autogen",
            DESIGNER_SAVE_MAX_RETRIES="5",
            DESIGNER_SAVE_RETRY_DELAY_SECONDS="0.25",
        )
        assert values == {
            "reject_dangling_edges": False,
            "enforce_connection_rules": True,
            "runtime_type": "autogen",
            "save_max_retries": 5,
            "save_retry_delay_seconds": 0.25,
        }

    def test_invalid_values_are_ignored(self, caplog):
        values = _env(
            DESIGNER_REJECT_DANGLING_EDGES="maybe",
            DESIGNER_SAVE_MAX_RETRIES="three",
        )
        assert values == {}
        assert "DESIGNER_SAVE_MAX_RETRIES" in caplog.text

    def test_default_instance_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DESIGNER_DEFAULT_ENTITY_VERSION", "3.1.0")
        monkeypatch.setenv("DESIGNER_REVALIDATE_ON_DELETE", "0")
        config = EditorConfig.get_default_instance()
        assert config.default_entity_version == "3.1.0"
        assert config.revalidate_on_delete is False
        assert config.reject_dangling_edges is True

    def test_default_instance_drops_out_of_range_values(self, monkeypatch, caplog):
        monkeypatch.setenv("DESIGNER_RUNTIME_TYPE", "bogus")
        monkeypatch.setenv("DESIGNER_SAVE_MAX_RETRIES", "-1")
        monkeypatch.setenv("DESIGNER_SAVE_RETRY_DELAY_SECONDS", "0.5")
        config = EditorConfig.get_default_instance()

        assert config.runtime_type == "langgraph"
        assert config.save_max_retries == 3
        assert config.save_retry_delay_seconds == 0.5
        assert config.validate() == []
        assert "editor.runtime_type='bogus'" in caplog.text
        assert "Save Retries must be >= 0" in caplog.text


class TestEditorConfig:
    def test_defaults(self, config):
        assert config.reject_dangling_edges is True
        assert config.enforce_connection_rules is False
        assert config.runtime_type == "langgraph"
        assert config.default_entity_version == "1.0.0"

    def test_metadata_covers_every_field(self):
        names = {f.name for f in EditorConfig.get_fields_metadata()}
        assert names == set(EditorConfig().to_dict())

    def test_metadata_serializes(self):
        (runtime,) = [f for f in EditorConfig.get_fields_metadata() if f.name == "runtime_type"]
        data = runtime.to_dict()
        assert data["type"] == FieldType.SELECT.value
        assert [o["value"] for o in data["options"]] == ["langgraph", "autogen"]

    def test_validate_defaults(self, config):
        assert config.validate() == []

    def test_validate_reports_bad_values(self):
        config = EditorConfig(runtime_type="crewai", save_max_retries=50, default_entity_version="")
        errors = config.validate()
        assert "Target Runtime must be one of autogen, langgraph" in errors
        assert "Save Retries must be <= 10" in errors
        assert "Default Version is required" in errors

    def test_registered_by_name(self):
        assert get_config_registry()["editor"] is EditorConfig
