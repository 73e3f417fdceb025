"""
Invocation routing for top-level commands.

An argument vector (global flags already consumed) is classified into one
of four invocation forms, the target name is looked up in the command
tree, and the (form, target state) pair is resolved through a fixed
decision table. Nothing here runs processes or prints; the CLI layer
carries out the resulting Route.

Note the deliberate asymmetry: `<name> --help` for an unknown or invalid
name falls back to the top-level help, while `help <name>` is an error.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from dockhand.command_tree import BuiltinCommand, CommandEntry, CommandTree
from dockhand.plugins.manifest import InvalidPlugin, PluginDescriptor

HELP_COMMAND = "help"
HELP_FLAGS = frozenset({"--help", "-h"})
END_OF_OPTIONS = "--"

# Help argument appended when asking a plugin to render its own help
PLUGIN_HELP_ARG = "--help"


class InvocationForm(str, Enum):
    """Shape of the command line."""

    NO_ARGS = "no_args"
    HELP_COMMAND = "help_command"
    """`help [target [path...]]`"""

    HELP_FLAG = "help_flag"
    """`target [path...] --help`"""

    PLAIN = "plain"


class TargetState(str, Enum):
    """What the target name resolves to."""

    OMITTED = "omitted"
    BUILTIN = "builtin"
    PLUGIN = "plugin"
    INVALID = "invalid"
    NOT_FOUND = "not_found"


class Action(str, Enum):
    """What the CLI should do."""

    TOP_LEVEL_HELP = "top_level_help"
    RUN_BUILTIN = "run_builtin"
    BUILTIN_HELP = "builtin_help"
    DISPATCH = "dispatch"
    DELEGATE_HELP = "delegate_help"
    ERROR_NOT_FOUND = "error_not_found"
    ERROR_INVALID = "error_invalid"
    HELP_TOPIC_NOT_FOUND = "help_topic_not_found"
    HELP_TOPIC_INVALID = "help_topic_invalid"


DECISION_TABLE: Dict[Tuple[InvocationForm, TargetState], Action] = {
    (InvocationForm.NO_ARGS, TargetState.OMITTED): Action.TOP_LEVEL_HELP,
    # help [target [path...]]
    (InvocationForm.HELP_COMMAND, TargetState.OMITTED): Action.TOP_LEVEL_HELP,
    (InvocationForm.HELP_COMMAND, TargetState.BUILTIN): Action.BUILTIN_HELP,
    (InvocationForm.HELP_COMMAND, TargetState.PLUGIN): Action.DELEGATE_HELP,
    (InvocationForm.HELP_COMMAND, TargetState.INVALID): Action.HELP_TOPIC_INVALID,
    (InvocationForm.HELP_COMMAND, TargetState.NOT_FOUND): Action.HELP_TOPIC_NOT_FOUND,
    # target [path...] --help
    (InvocationForm.HELP_FLAG, TargetState.BUILTIN): Action.RUN_BUILTIN,
    (InvocationForm.HELP_FLAG, TargetState.PLUGIN): Action.DELEGATE_HELP,
    (InvocationForm.HELP_FLAG, TargetState.INVALID): Action.TOP_LEVEL_HELP,
    (InvocationForm.HELP_FLAG, TargetState.NOT_FOUND): Action.TOP_LEVEL_HELP,
    # target [path...] [args...]
    (InvocationForm.PLAIN, TargetState.BUILTIN): Action.RUN_BUILTIN,
    (InvocationForm.PLAIN, TargetState.PLUGIN): Action.DISPATCH,
    (InvocationForm.PLAIN, TargetState.INVALID): Action.ERROR_INVALID,
    (InvocationForm.PLAIN, TargetState.NOT_FOUND): Action.ERROR_NOT_FOUND,
}


@dataclass(frozen=True)
class InvocationRequest:
    """A classified command line."""

    form: InvocationForm
    target: Optional[str] = None
    path: Tuple[str, ...] = ()
    args: Tuple[str, ...] = ()
    global_flags: Mapping[str, Any] = field(default_factory=dict)

    @property
    def argv(self) -> List[str]:
        """Arguments following the target, as typed."""
        return [*self.path, *self.args]


@dataclass(frozen=True)
class Route:
    """Outcome of routing a request."""

    action: Action
    request: InvocationRequest
    entry: Optional[CommandEntry] = None
    invalid: Optional[InvalidPlugin] = None

    @property
    def plugin_argv(self) -> List[str]:
        """Arguments for the plugin process (subcommand path first)."""
        if self.action is Action.DELEGATE_HELP:
            return [*self.request.path, PLUGIN_HELP_ARG]
        return self.request.argv


def _has_help_flag(args: Sequence[str]) -> bool:
    for arg in args:
        if arg == END_OF_OPTIONS:
            return False
        if arg in HELP_FLAGS:
            return True
    return False


def _split_path(args: Sequence[str]) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """Split leading subcommand words from the remaining arguments."""
    index = 0
    while index < len(args) and not args[index].startswith("-"):
        index += 1
    return tuple(args[:index]), tuple(args[index:])


def classify(
    args: Sequence[str],
    global_flags: Optional[Mapping[str, Any]] = None,
) -> InvocationRequest:
    """
    Classify the arguments that follow the global flags.

    Args:
        args: Remaining argv, starting at the command name
        global_flags: Global options already consumed by the tool

    Returns:
        InvocationRequest describing the form, target and subcommand path
    """
    flags = dict(global_flags or {})

    if not args:
        return InvocationRequest(form=InvocationForm.NO_ARGS, global_flags=flags)

    head, rest = args[0], list(args[1:])

    if head == HELP_COMMAND:
        if not rest:
            return InvocationRequest(
                form=InvocationForm.HELP_COMMAND, global_flags=flags
            )
        if rest[0] in HELP_FLAGS:
            # `help --help` asks about the help command itself
            return InvocationRequest(
                form=InvocationForm.HELP_FLAG,
                target=HELP_COMMAND,
                args=tuple(rest),
                global_flags=flags,
            )
        path, extra = _split_path(rest[1:])
        return InvocationRequest(
            form=InvocationForm.HELP_COMMAND,
            target=rest[0],
            path=path,
            args=extra,
            global_flags=flags,
        )

    path, extra = _split_path(rest)
    form = InvocationForm.HELP_FLAG if _has_help_flag(rest) else InvocationForm.PLAIN
    return InvocationRequest(
        form=form, target=head, path=path, args=extra, global_flags=flags
    )


def target_state(tree: CommandTree, target: Optional[str]) -> TargetState:
    """Resolve a target name against the command tree."""
    if target is None:
        return TargetState.OMITTED

    entry = tree.get(target)
    if isinstance(entry, BuiltinCommand):
        return TargetState.BUILTIN
    if isinstance(entry, PluginDescriptor):
        return TargetState.PLUGIN
    if target in tree.invalid:
        return TargetState.INVALID
    return TargetState.NOT_FOUND


def decide(request: InvocationRequest, tree: CommandTree) -> Route:
    """
    Route a request through the decision table.

    Args:
        request: Classified command line
        tree: Command tree containing at least the target's resolution

    Returns:
        Route with the action and the resolved entry or invalid plugin
    """
    state = target_state(tree, request.target)
    action = DECISION_TABLE[(request.form, state)]

    entry = tree.get(request.target) if request.target else None
    invalid = tree.invalid.get(request.target) if request.target else None
    return Route(action=action, request=request, entry=entry, invalid=invalid)
