"""Custom exceptions for Dockhand."""

from dockhand.config import TOOL_NAME


class PluginError(Exception):
    """Base class for plugin resolution failures reported to the user."""

    def __init__(self, plugin_name: str, reason: str, message: str):
        self.plugin_name = plugin_name
        # Short description of why the name could not be used
        self.reason = reason
        super().__init__(message)


class PluginNotFoundError(PluginError):
    """Raised when no plugin candidate exists for a command name."""

    def __init__(self, plugin_name: str):
        reason = f"'{plugin_name}' is not a {TOOL_NAME} command"
        super().__init__(
            plugin_name,
            reason,
            f"{TOOL_NAME}: {reason}.\nSee '{TOOL_NAME} --help'",
        )


class InvalidPluginError(PluginError):
    """Raised when a plugin candidate exists but failed validation."""

    def __init__(self, plugin_name: str, detail: str):
        self.detail = detail
        reason = f"'{plugin_name}' is an invalid {TOOL_NAME} plugin: {detail}"
        super().__init__(
            plugin_name,
            reason,
            f"{TOOL_NAME}: {reason}\nSee '{TOOL_NAME} plugins'",
        )


class HelpTopicError(PluginError):
    """Raised when `help <name>` names a missing or invalid plugin."""

    def __init__(self, cause: PluginError):
        self.cause = cause
        super().__init__(
            cause.plugin_name,
            cause.reason,
            f"{TOOL_NAME} help: unknown help topic: {cause.reason}",
        )


class MetadataError(Exception):
    """Raised internally when a plugin's metadata query cannot be used."""

    pass
