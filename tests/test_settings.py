"""
Tests for partmount.config.settings module.

This test suite covers:
- Settings loading
- Default settings initialization
- Error handling for corrupted settings files
- Privilege helper preferences
- Tool environment construction
"""

import json

import pytest

from partmount.config import settings


@pytest.fixture
def settings_file(tmp_path, monkeypatch):
    path = tmp_path / "config" / "settings.json"
    monkeypatch.setattr("partmount.config.settings.SETTINGS_PATH", path)
    yield path
    settings.settings_store.values = dict(settings.DEFAULT_SETTINGS)


class TestLoadSettings:
    """Tests for load_settings() function."""

    def test_load_defaults_when_no_file(self, settings_file):
        settings.settings_store.values = {}
        settings.load_settings()

        assert settings.settings_store.values == settings.DEFAULT_SETTINGS

    def test_load_merges_with_defaults(self, settings_file):
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text(json.dumps({"mount_read_only": True}))

        settings.load_settings()

        assert settings.get_bool("mount_read_only") is True
        assert settings.get_setting("command_timeout_seconds") == 60

    def test_corrupted_file_falls_back_to_defaults(self, settings_file):
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text("{not json")

        settings.load_settings()

        assert settings.settings_store.values == settings.DEFAULT_SETTINGS

    def test_non_dict_file_ignored(self, settings_file):
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text(json.dumps(["sudo"]))

        settings.load_settings()

        assert settings.settings_store.values == settings.DEFAULT_SETTINGS


class TestPrivilegeHelpers:
    """Tests for get_privilege_helpers()."""

    def test_default_order(self, settings_file):
        settings.load_settings()

        assert settings.get_privilege_helpers() == ("sudo", "doas")

    def test_single_string_value(self, settings_file):
        settings.load_settings()
        settings.settings_store.values["privilege_helpers"] = "doas"

        assert settings.get_privilege_helpers() == ("doas",)

    def test_invalid_value_falls_back(self, settings_file):
        settings.load_settings()
        settings.settings_store.values["privilege_helpers"] = 42

        assert settings.get_privilege_helpers() == settings.DEFAULT_PRIVILEGE_HELPERS


class TestToolEnvironment:
    """Tests for ToolEnvironment and tool_environment()."""

    def test_as_env_pins_locale_and_color(self):
        env = settings.ToolEnvironment().as_env({"PATH": "/usr/bin", "LANG": "fr_FR.UTF-8"})

        assert env == {
            "PATH": "/usr/bin",
            "LANG": "C",
            "LC_ALL": "C",
            "NO_COLOR": "1",
            "TERM": "dumb",
        }

    def test_as_env_does_not_mutate_base(self):
        base = {"LANG": "fr_FR.UTF-8"}

        settings.ToolEnvironment().as_env(base)

        assert base == {"LANG": "fr_FR.UTF-8"}

    def test_color_left_alone_when_disabled(self):
        env = settings.ToolEnvironment(no_color=False).as_env({})

        assert "NO_COLOR" not in env

    def test_built_from_settings(self, settings_file):
        settings.load_settings()
        settings.settings_store.values["command_timeout_seconds"] = 5
        settings.settings_store.values["tool_locale"] = "C.UTF-8"

        environment = settings.tool_environment()

        assert environment.timeout_seconds == 5
        assert environment.locale == "C.UTF-8"

    @pytest.mark.parametrize("value", [None, 0, -1])
    def test_timeout_disabled(self, settings_file, value):
        settings.load_settings()
        settings.settings_store.values["command_timeout_seconds"] = value

        assert settings.tool_environment().timeout_seconds is None

    def test_invalid_timeout_uses_default(self, settings_file):
        settings.load_settings()
        settings.settings_store.values["command_timeout_seconds"] = "soon"

        assert settings.tool_environment().timeout_seconds == 60
