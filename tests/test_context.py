"""
Tests for the per-invocation CLI context and error messages.
"""

from dockhand.config import Settings
from dockhand.context import (
    ENV_API_VERSION,
    ENV_CONFIG_DIR,
    ENV_ORIGINAL_CLI_COMMAND,
    initialize_cli_context,
)
from dockhand.exceptions import HelpTopicError, InvalidPluginError, PluginNotFoundError


class TestCliContext:
    """Tests for initialize_cli_context()."""

    def test_defaults_from_settings(self, tmp_path):
        settings = Settings(config_dir=tmp_path, api_version="1.44", log_file_enabled=False)

        cli_context = initialize_cli_context(settings)

        assert cli_context.config_dir == tmp_path
        assert cli_context.api_version == "1.44"
        assert cli_context.log_level == "WARNING"
        assert cli_context.debug is False

    def test_flags_override_settings(self, tmp_path):
        settings = Settings(config_dir=tmp_path / "default", log_file_enabled=False)

        cli_context = initialize_cli_context(
            settings, debug=True, log_level="error", config_dir=tmp_path / "flag"
        )

        assert cli_context.config_dir == tmp_path / "flag"
        assert cli_context.log_level == "ERROR"
        assert cli_context.debug is True

    def test_plugin_environment(self, tmp_path, monkeypatch):
        """Test plugins inherit our environment plus the client context."""
        monkeypatch.setenv("SOME_USER_VAR", "kept")
        settings = Settings(config_dir=tmp_path, log_file_enabled=False)

        env = initialize_cli_context(settings).plugin_environment()

        assert env["SOME_USER_VAR"] == "kept"
        assert env[ENV_API_VERSION] == "1.47"
        assert env[ENV_CONFIG_DIR] == str(tmp_path)
        assert ENV_ORIGINAL_CLI_COMMAND in env


class TestPluginErrors:
    """Tests for user-facing plugin error messages."""

    def test_not_found(self):
        error = PluginNotFoundError("nonexistent")

        assert str(error) == (
            "dockhand: 'nonexistent' is not a dockhand command.\nSee 'dockhand --help'"
        )
        assert error.plugin_name == "nonexistent"

    def test_invalid(self):
        error = InvalidPluginError("badmeta", "invalid metadata: empty response")

        assert str(error).startswith(
            "dockhand: 'badmeta' is an invalid dockhand plugin: invalid metadata: empty response"
        )
        assert error.detail == "invalid metadata: empty response"

    def test_help_topic_not_found(self):
        error = HelpTopicError(PluginNotFoundError("nonexistent"))

        assert str(error) == (
            "dockhand help: unknown help topic: 'nonexistent' is not a dockhand command"
        )

    def test_help_topic_invalid(self):
        error = HelpTopicError(InvalidPluginError("badmeta", "broken"))

        assert str(error) == (
            "dockhand help: unknown help topic: 'badmeta' is an invalid dockhand plugin: broken"
        )
        assert error.plugin_name == "badmeta"

    def test_reason(self):
        """Test every error carries the short reason used by `help` errors."""
        not_found = PluginNotFoundError("nonexistent")
        invalid = InvalidPluginError("badmeta", "broken")

        assert not_found.reason == "'nonexistent' is not a dockhand command"
        assert invalid.reason == "'badmeta' is an invalid dockhand plugin: broken"
        assert HelpTopicError(invalid).reason == invalid.reason
