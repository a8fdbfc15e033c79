"""
Arbor help sub-command.

HelpCommand is a ready-made "help [command:command]" child. Attach it with
global_=True so every level of the tree can route to it:

    app.command("help", HelpCommand(global_=True))

"app help" prints the parent's help, "app help deploy" the help of the
"deploy" sub-command. Command.help() delegates to show() whenever a help
command is reachable from the node asking.
"""
from .commands import Command
from .faults import FaultCode, UnknownCommandError
from .renderers import render_help
from .types import Type
from .utils import *


class CommandName(Type):
    """
    Sub-command names of the help command's parent.

    Values are kept as given; unknown names are reported by show().
    """

    def __init__(self, command, /):
        self.command = command

    def parse(self, option, argument, value, /):
        return value

    def complete(self):
        target = self.command.parent or self.command
        return tuple(child.name for child in target.get_commands())


class HelpCommand(Command):
    def __new__(cls, name="help", descr="show this help or the help of a sub-command", /, **settings):
        self = super().__new__(cls, name, descr, **settings)
        self.type("command", CommandName(self))
        self.arguments("[command:command]")
        self.action(self._respond)
        return self

    def _respond(self, options, name=None, /):
        self.show(Unset if name is None else name)

    def show(self, command=Unset, /, *, stderr=False):
        """
        Render help.

        Parameters
        - command: a Command to describe, the name of a sub-command of the
          parent, or Unset for the parent itself.
        - stderr: render to stderr instead of stdout.
        """
        target = self.parent or self
        if isinstance(command, str):
            if (child := target.get_command(command, hidden=True)) is None:
                raise self.error(UnknownCommandError(
                    "unknown command %r" % command,
                    title="unknown command",
                    code=FaultCode.UNKNOWN_COMMAND,
                    hint="run '%s help' to see all commands" % " ".join(step.name for step in target.path),
                    input=command,
                ), show_help=False)
            command = child
        elif command is Unset:
            command = target
        elif not isinstance(command, Command):
            raise TypeError("show() argument must be a command or a command name")
        render_help(command, stderr=stderr)


__all__ = (
    "HelpCommand",
    "CommandName",
)
