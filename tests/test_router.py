"""
Tests for invocation routing.
"""

from pathlib import Path

import pytest

from dockhand.command_tree import BuiltinCommand, build_command_tree
from dockhand.plugins.manifest import InvalidPlugin, PluginDescriptor, PluginMetadata
from dockhand.router import (
    DECISION_TABLE,
    Action,
    InvocationForm,
    TargetState,
    classify,
    decide,
    target_state,
)


@pytest.fixture
def tree():
    """Command tree with one built-in, one plugin and one invalid plugin."""
    helloworld = PluginDescriptor(
        name="helloworld",
        path=Path("/plugins/dockhand-helloworld"),
        metadata=PluginMetadata(
            schema_version="0.1.0", vendor="Dockhand Inc.", subcommands=["goodbye"]
        ),
    )
    badmeta = InvalidPlugin(name="badmeta", detail="invalid metadata: empty response")
    return build_command_tree(
        [BuiltinCommand("help"), BuiltinCommand("version")],
        [helloworld, badmeta],
    )


class TestClassify:
    """Tests for classify()."""

    def test_no_args(self):
        request = classify([])

        assert request.form is InvocationForm.NO_ARGS
        assert request.target is None

    def test_help_without_topic(self):
        request = classify(["help"])

        assert request.form is InvocationForm.HELP_COMMAND
        assert request.target is None

    def test_help_with_topic_and_path(self):
        request = classify(["help", "helloworld", "goodbye"])

        assert request.form is InvocationForm.HELP_COMMAND
        assert request.target == "helloworld"
        assert request.path == ("goodbye",)

    def test_help_flag_after_path(self):
        request = classify(["helloworld", "goodbye", "--help"])

        assert request.form is InvocationForm.HELP_FLAG
        assert request.target == "helloworld"
        assert request.path == ("goodbye",)
        assert request.args == ("--help",)

    def test_short_help_flag(self):
        assert classify(["helloworld", "-h"]).form is InvocationForm.HELP_FLAG

    def test_help_flag_after_end_of_options(self):
        """Test a --help after -- belongs to the plugin's positional args."""
        request = classify(["helloworld", "--", "--help"])

        assert request.form is InvocationForm.PLAIN
        assert request.argv == ["--", "--help"]

    def test_help_flag_for_help_command(self):
        """Test `help --help` asks about the help command itself."""
        request = classify(["help", "--help"])

        assert request.form is InvocationForm.HELP_FLAG
        assert request.target == "help"

    def test_plain_keeps_arguments_verbatim(self):
        request = classify(["helloworld", "--who", "Cleveland", "extra"])

        assert request.form is InvocationForm.PLAIN
        assert request.path == ()
        assert request.argv == ["--who", "Cleveland", "extra"]

    def test_global_flags_recorded(self):
        request = classify(["helloworld"], global_flags={"debug": True})

        assert request.global_flags == {"debug": True}


class TestTargetState:
    """Tests for target_state()."""

    @pytest.mark.parametrize(
        "target,expected",
        [
            (None, TargetState.OMITTED),
            ("version", TargetState.BUILTIN),
            ("helloworld", TargetState.PLUGIN),
            ("badmeta", TargetState.INVALID),
            ("nonexistent", TargetState.NOT_FOUND),
        ],
    )
    def test_target_state(self, tree, target, expected):
        assert target_state(tree, target) is expected


class TestDecide:
    """Tests for decide() and the decision table."""

    @pytest.mark.parametrize(
        "args,expected",
        [
            ([], Action.TOP_LEVEL_HELP),
            (["help"], Action.TOP_LEVEL_HELP),
            (["help", "version"], Action.BUILTIN_HELP),
            (["help", "helloworld"], Action.DELEGATE_HELP),
            (["help", "badmeta"], Action.HELP_TOPIC_INVALID),
            (["help", "nonexistent"], Action.HELP_TOPIC_NOT_FOUND),
            (["version", "--help"], Action.RUN_BUILTIN),
            (["helloworld", "--help"], Action.DELEGATE_HELP),
            (["badmeta", "--help"], Action.TOP_LEVEL_HELP),
            (["nonexistent", "--help"], Action.TOP_LEVEL_HELP),
            (["version"], Action.RUN_BUILTIN),
            (["helloworld"], Action.DISPATCH),
            (["badmeta"], Action.ERROR_INVALID),
            (["nonexistent"], Action.ERROR_NOT_FOUND),
            (["help", "--help"], Action.RUN_BUILTIN),
        ],
    )
    def test_decide(self, tree, args, expected):
        assert decide(classify(args), tree).action is expected

    def test_table_covers_every_reachable_pair(self):
        """Test every (form, state) pair that classify() can produce has an action."""
        for form in InvocationForm:
            for state in TargetState:
                omitted = state is TargetState.OMITTED
                if form is InvocationForm.NO_ARGS and not omitted:
                    continue
                if form in (InvocationForm.HELP_FLAG, InvocationForm.PLAIN) and omitted:
                    continue
                assert (form, state) in DECISION_TABLE

    def test_dispatch_route(self, tree):
        route = decide(classify(["helloworld", "--who", "Cleveland"]), tree)

        assert isinstance(route.entry, PluginDescriptor)
        assert route.plugin_argv == ["--who", "Cleveland"]

    def test_delegate_help_route_from_help_command(self, tree):
        """Test `help X path...` becomes `X path... --help`."""
        route = decide(classify(["help", "helloworld", "goodbye"]), tree)

        assert route.plugin_argv == ["goodbye", "--help"]

    def test_delegate_help_route_from_short_flag(self, tree):
        """Test `X path... -h` always asks the plugin with --help."""
        route = decide(classify(["helloworld", "goodbye", "-h"]), tree)

        assert route.plugin_argv == ["goodbye", "--help"]

    def test_invalid_route_carries_detail(self, tree):
        route = decide(classify(["badmeta"]), tree)

        assert route.entry is None
        assert route.invalid.detail == "invalid metadata: empty response"
