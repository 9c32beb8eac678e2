"""Tests for configuration loading."""

from pathlib import Path

import pytest

from hubtrigger.config import (
    ConfigValidationError,
    HubTriggerConfig,
    get_search_paths,
    load_config,
)


class TestGetSearchPaths:
    """Tests for get_search_paths function."""

    def test_default_paths(self, monkeypatch):
        monkeypatch.delenv("HUBTRIGGER_CONFIG", raising=False)

        assert get_search_paths() == [Path("~/.hubtrigger/config.yaml").expanduser()]

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("HUBTRIGGER_CONFIG", "/custom/config.yaml")

        paths = get_search_paths()

        assert paths[0] == Path("/custom/config.yaml")
        assert len(paths) == 2


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults_when_no_file(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HUBTRIGGER_CONFIG", str(tmp_path / "absent.yaml"))
        monkeypatch.setenv("HOME", str(tmp_path))

        config = load_config()

        assert config.required_group == "Web agency users"
        assert config.web_extensions == (".jpg", ".jpeg", ".png", ".gif")
        assert config.web_asset_type_identifier == "M.AssetType.Web"
        assert config.claim_type == "MySpecialGroupType"
        assert config.default_group == "Everyone"
        assert config.source is None

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_full_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("""
security:
  required_group: Agency
validation:
  web_extensions: [.JPG, .webp]
precommit:
  web_asset_type_identifier: M.AssetType.Online
media:
  metadata_property: Exif
signin:
  claim_type: groups
  default_group: Guests
events:
  log_path: {log}
""".format(log=tmp_path / "audit.jsonl"))

        config = load_config(str(path))

        assert config.required_group == "Agency"
        assert config.web_extensions == (".jpg", ".webp")
        assert config.web_asset_type_identifier == "M.AssetType.Online"
        assert config.metadata_property == "Exif"
        assert config.claim_type == "groups"
        assert config.default_group == "Guests"
        assert config.event_log_path == tmp_path / "audit.jsonl"
        assert config.source == path

    def test_env_file_used(self, monkeypatch, tmp_path):
        path = tmp_path / "env.yaml"
        path.write_text("signin:\n  default_group: Guests\n")
        monkeypatch.setenv("HUBTRIGGER_CONFIG", str(path))

        assert load_config().default_group == "Guests"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_config(str(path)).required_group == "Web agency users"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("security: [unclosed")

        with pytest.raises(ConfigValidationError, match="invalid YAML"):
            load_config(str(path))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigValidationError, match="mapping"):
            load_config(str(path))

    def test_section_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("security: Agency\n")

        with pytest.raises(ConfigValidationError, match="'security' must be a mapping"):
            load_config(str(path))

    def test_bad_extension(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("validation:\n  web_extensions: [jpg]\n")

        with pytest.raises(ConfigValidationError, match="web_extensions"):
            load_config(str(path))

    def test_empty_group_name(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("security:\n  required_group: ''\n")

        with pytest.raises(ConfigValidationError, match="required_group"):
            load_config(str(path))


class TestHubTriggerConfig:
    """Tests for HubTriggerConfig.validate."""

    def test_defaults_valid(self):
        HubTriggerConfig().validate()

    def test_empty_extensions(self):
        with pytest.raises(ConfigValidationError, match="cannot be empty"):
            HubTriggerConfig(web_extensions=()).validate()
