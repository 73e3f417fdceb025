"""
Dockhand CLI - Main command-line interface for Dockhand.

Built-in commands are registered on the Typer app. Every other top-level
command name is looked up as a dockhand-<name> plugin on the plugin search
path, validated, and run as a child process.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, NoReturn, Optional, Tuple

import click
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typer.core import TyperGroup

from dockhand import __version__
from dockhand.command_tree import BuiltinCommand, CommandTree, build_command_tree
from dockhand.config import TOOL_NAME, Settings
from dockhand.context import CliContext, initialize_cli_context
from dockhand.exceptions import (
    HelpTopicError,
    InvalidPluginError,
    PluginError,
    PluginNotFoundError,
)
from dockhand.invoker import invoke_plugin
from dockhand.plugins import PluginDescriptor, PluginLoader, PluginResult
from dockhand.router import HELP_COMMAND, PLUGIN_HELP_ARG, Action, Route, classify, decide

logger = logging.getLogger(__name__)

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)

PLUGIN_HELP_PANEL = "Plugin Commands"

_SETTINGS_KEY = "dockhand.settings"
_LOADER_KEY = "dockhand.plugin_loader"


class LogLevel(str, Enum):
    """Values accepted by --log-level."""

    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"
    critical = "critical"


def config_override(ctx: click.Context) -> Optional[Path]:
    """Value of --config for this invocation (click stores it as a string)."""
    value = ctx.find_root().params.get("config")
    return Path(value).expanduser() if value else None


def log_level_override(ctx: click.Context) -> Optional[str]:
    """Value of --log-level for this invocation."""
    value = ctx.find_root().params.get("log_level")
    return LogLevel(value).value if value else None


def get_settings(ctx: click.Context) -> Settings:
    """Settings for this invocation (loaded once, kept on the root context)."""
    root = ctx.find_root()
    if _SETTINGS_KEY not in root.meta:
        root.meta[_SETTINGS_KEY] = Settings()
    return root.meta[_SETTINGS_KEY]


def get_plugin_loader(ctx: click.Context) -> PluginLoader:
    """Plugin loader for this invocation, honoring --config."""
    root = ctx.find_root()
    if _LOADER_KEY not in root.meta:
        root.meta[_LOADER_KEY] = PluginLoader.from_settings(
            get_settings(root), config_dir=config_override(root)
        )
    return root.meta[_LOADER_KEY]


def get_cli_context(ctx: click.Context) -> CliContext:
    """
    Return the invocation's CliContext, initializing it on first use.

    Command routing and the root callback call this before any command runs;
    plugin dispatch calls it again so it never depends on that ordering.
    """
    root = ctx.find_root()
    if not isinstance(root.obj, CliContext):
        root.obj = initialize_cli_context(
            get_settings(root),
            debug=bool(root.params.get("debug")),
            log_level=log_level_override(root),
            config_dir=config_override(root),
        )
    return root.obj


def command_tree(ctx: click.Context, name: Optional[str] = None) -> CommandTree:
    """
    Build the command tree for this invocation.

    Args:
        ctx: Any context of the invocation
        name: Only resolve this command (dispatch); None resolves every
              plugin on the search path (listings)
    """
    root = ctx.find_root()
    builtins = [
        BuiltinCommand(cmd_name, command.get_short_help_str())
        for cmd_name, command in root.command.commands.items()
    ]
    loader = get_plugin_loader(root)

    results: List[PluginResult] = []
    if name is None:
        results = loader.discover_plugins()
    elif name not in root.command.commands:
        result = loader.resolve(name)
        if result is not None:
            results.append(result)

    return build_command_tree(builtins, results)


def route_error(route: Route) -> PluginError:
    """Error to report for a route that cannot be carried out."""
    name = route.request.target or ""
    detail = route.invalid.detail if route.invalid else ""

    if route.action is Action.ERROR_NOT_FOUND:
        return PluginNotFoundError(name)
    if route.action is Action.ERROR_INVALID:
        return InvalidPluginError(name, detail)
    if route.action is Action.HELP_TOPIC_NOT_FOUND:
        return HelpTopicError(PluginNotFoundError(name))
    if route.action is Action.HELP_TOPIC_INVALID:
        return HelpTopicError(InvalidPluginError(name, detail))
    raise ValueError(f"Route {route.action.value} is not an error")


def report_error(error: PluginError) -> NoReturn:
    """Print a plugin error on stderr and exit with status 1."""
    err_console.print(str(error), markup=False)
    raise typer.Exit(1)


class PluginCommand(click.Command):
    """Top-level command backed by a plugin executable."""

    rich_help_panel = PLUGIN_HELP_PANEL

    def __init__(self, descriptor: PluginDescriptor) -> None:
        super().__init__(
            name=descriptor.name,
            help=descriptor.help_text,
            short_help=descriptor.summary,
            add_help_option=False,
        )
        self.descriptor = descriptor

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        # Everything after the command name belongs to the plugin.
        ctx.args = list(args)
        return ctx.args

    def invoke(self, ctx: click.Context) -> NoReturn:
        cli_context = get_cli_context(ctx)
        try:
            result = invoke_plugin(
                self.descriptor,
                args=ctx.args,
                env=cli_context.plugin_environment(),
            )
        except OSError as e:
            # The executable changed after its metadata was validated
            report_error(
                InvalidPluginError(
                    self.descriptor.name, f"failed to run plugin: {e.strerror or e}"
                )
            )
        raise typer.Exit(code=result.exit_code)


class PluginGroup(TyperGroup):
    """
    Root command group that merges plugins into the command set.

    Plugins show up in listings next to built-ins, and every command line
    is routed through dockhand.router before anything runs.
    """

    def list_commands(self, ctx: click.Context) -> List[str]:
        return command_tree(ctx).names()

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        descriptor = get_plugin_loader(ctx).get_descriptor(cmd_name)
        return PluginCommand(descriptor) if descriptor else None

    def resolve_command(
        self, ctx: click.Context, args: List[str]
    ) -> Tuple[Optional[str], Optional[click.Command], List[str]]:
        # Runs before the group callback; logging must be set up first
        get_cli_context(ctx)

        request = classify(args, global_flags=ctx.params)
        route = decide(request, command_tree(ctx, request.target))
        logger.debug(
            f"Routing {request.target!r} ({request.form.value}) to {route.action.value}"
        )

        if route.action is Action.RUN_BUILTIN:
            return super().resolve_command(ctx, args)

        if route.action is Action.TOP_LEVEL_HELP:
            return HELP_COMMAND, self.commands[HELP_COMMAND], []

        if route.action is Action.BUILTIN_HELP:
            return request.target, self.commands[request.target], [PLUGIN_HELP_ARG]

        if route.action in (Action.DISPATCH, Action.DELEGATE_HELP):
            assert isinstance(route.entry, PluginDescriptor)
            return request.target, PluginCommand(route.entry), route.plugin_argv

        report_error(route_error(route))


app = typer.Typer(
    name=TOOL_NAME,
    help="Dockhand - A pluggable toolbox for container workflows",
    cls=PluginGroup,
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False, "--debug", "-D", help="Enable debug mode (writes a debug log file)"
    ),
    log_level: Optional[LogLevel] = typer.Option(
        None, "--log-level", "-l", help="Set the logging level", case_sensitive=False
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", help="Location of client config files"
    ),
) -> None:
    # Pre-run initialization: runs before every built-in and plugin command.
    get_cli_context(ctx)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help(), color=ctx.color)
        raise typer.Exit(0)


@app.command(HELP_COMMAND)
def help_command(ctx: typer.Context) -> None:
    """
    Help about any command.

    Use `dockhand help COMMAND [SUBCOMMAND...]` for help on a specific
    command, including plugin commands.
    """
    click.echo(ctx.find_root().get_help(), color=ctx.color)


@app.command()
def version(ctx: typer.Context) -> None:
    """Show the dockhand version information."""
    cli_context = get_cli_context(ctx)

    console.print(f"{TOOL_NAME} version {__version__}")
    console.print(f"  API version: {cli_context.api_version}")
    console.print(f"  Config: {escape(str(cli_context.config_dir))}")


@app.command("plugins")
def plugins_command(ctx: typer.Context) -> None:
    """
    List CLI plugins found on the plugin search path.

    Valid plugins are shown with their metadata; plugins that failed
    validation are listed afterwards together with the reason.
    """
    tree = command_tree(ctx)

    if not tree.plugins and not tree.invalid:
        console.print("No plugins found")
        return

    if tree.plugins:
        table = Table(title="Plugins")
        table.add_column("Name")
        table.add_column("Version")
        table.add_column("Vendor")
        table.add_column("Description")
        table.add_column("Commands")
        for descriptor in tree.plugins:
            table.add_row(
                escape(descriptor.name),
                escape(descriptor.version or "-"),
                escape(descriptor.vendor),
                escape(descriptor.short_description),
                escape(", ".join(descriptor.subcommands)),
            )
        console.print(table)

    if tree.invalid:
        console.print("[bold]Invalid plugins:[/bold]")
        for name in sorted(tree.invalid):
            invalid = tree.invalid[name]
            console.print(f"  {escape(name)}: {escape(invalid.detail)}", soft_wrap=True)


def main() -> None:
    """Console script entry point."""
    app(prog_name=TOOL_NAME)


if __name__ == "__main__":
    main()
