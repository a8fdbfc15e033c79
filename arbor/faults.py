"""
Arbor faults and their rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing failure,
  grouped by domain (declaration, routing, options, arguments, types,
  delegated handlers).
- CommandException: base type carrying a message plus context options
  (title, code, hint, command, colorful, fancy, debug, exception) and
  rendering itself with rich.
- One subclass per failure kind, so embedding programs can catch exactly
  what they care about.

Rendering
- Compact form: "error: <message>" followed by a " → <hint>" line.
- Debug form (debug=True): a "[ prog | code | Title ]" header, the message
  and the hint, optionally framed in a panel when fancy=True.
- Styles come from a palette merged with __styles__ from __main__; numeric
  codes may be relabelled with a __codes__ mapping in __main__.

Faults are created where they are detected and routed through
Command.error(), which either returns them (throwing mode) or prints them and
terminates the process.
"""
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .internals import palette
from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - declaration (110xx): duplicate names, malformed definitions.
    - routing (111xx): unknown commands, missing executables.
    - options (112xx): problems reported by the flag tokenizer.
    - arguments (113xx): positional matching.
    - types (114xx): coercion and type resolution.
    - delegated (115xx): failures raised by user handlers.

    gaps between codes leave room for additions without renumbering.
    """
    # --- declaration errors ---
    DUPLICATE_DEFINITION        = 11001
    MALFORMED_DEFINITION        = 11002

    # --- routing errors ---
    UNKNOWN_COMMAND             = 11101
    EXECUTABLE_NOT_FOUND        = 11102

    # --- option errors ---
    UNKNOWN_OPTION              = 11201
    MISSING_OPTION_VALUE        = 11202
    DUPLICATE_OPTION            = 11203
    STANDALONE_OPTION           = 11204
    CONFLICTING_OPTION          = 11205
    DEPENDING_OPTION            = 11206
    MISSING_REQUIRED_OPTION     = 11207
    EMPTY_ARGUMENTS             = 11208

    # --- positional errors ---
    MISSING_ARGUMENT            = 11301
    TOO_MANY_ARGUMENTS          = 11302
    NO_ARGUMENTS_ALLOWED        = 11303

    # --- type errors ---
    UNKNOWN_TYPE                = 11401
    INVALID_VALUE               = 11402
    ENVIRONMENT_COERCION        = 11403

    # --- delegated errors ---
    USER_HANDLER                = 11501

    def normalize(self):
        """
        return the host label for this code.

        the host application can provide a __codes__ mapping in __main__ to
        replace numeric ids with its own labels; otherwise the numeric value
        is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base class of every arbor fault.

    The message is a short, lowercase sentence. Context travels in options:
    - title, code, hint: shown when rendered.
    - command: the node that reported the fault (set by Command.error()).
    - colorful, fancy, debug: rendering switches.
    - exception: the original exception for delegated and coercion faults.

    Faults are immutable; copy.replace(fault, **options) returns an enriched
    copy of the same type.
    """

    def __init__(self, message=Unset, /, **options):
        if not isinstance(message, str | Unset):
            raise TypeError(f"{type(self).__name__} message must be a string")
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def hint(self):
        return self.options.get("hint")

    @property
    def command(self):
        return self.options.get("command")

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        styles = palette({
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-label": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        message = text(self.message, "error-message")
        if hint := self.options.get("hint"):
            hint = Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint"))
        else:
            hint = Text("")

        if not self.options.get("debug", False):
            return Group(Text.assemble(text("error", "error-label"), ": ", message), hint)

        command = self.options.get("command")
        prog = getattr(main, "__prog__", command.root.name if command is not None else "arbor")
        code = self.options.get("code")
        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " | ",
            text(code.normalize() if code is not None else "-", "code"),
            " | ",
            text(self.options.get("title", type(self).__name__).title(), "error-title"),
            " ]"
        )

        if self.options.get("fancy", False):
            return Panel(Group(message, hint), title=header, title_align="left", width=console.width - 4)

        return Group(header, message, hint)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


# --- declaration ---
class DuplicateDefinitionError(CommandException): ...
class GrammarError(CommandException): ...

# --- routing ---
class UnknownCommandError(CommandException): ...
class ExecutableNotFoundError(CommandException): ...

# --- options ---
class UnknownOptionError(CommandException): ...
class MissingOptionValueError(CommandException): ...
class DuplicateOptionError(CommandException): ...
class StandaloneOptionError(CommandException): ...
class ConflictingOptionError(CommandException): ...
class DependingOptionError(CommandException): ...
class MissingRequiredOptionError(CommandException): ...
class EmptyArgumentsError(CommandException): ...

# --- positionals ---
class MissingArgumentError(CommandException): ...
class TooManyArgumentsError(CommandException): ...
class NoArgumentsAllowedError(CommandException): ...

# --- types ---
class UnknownTypeError(CommandException): ...
class InvalidValueError(CommandException): ...
class EnvironmentCoercionError(CommandException): ...

# --- delegated ---
class UserHandlerError(CommandException): ...


__all__ = (
    "FaultCode",
    "CommandException",
    "DuplicateDefinitionError",
    "GrammarError",
    "UnknownCommandError",
    "ExecutableNotFoundError",
    "UnknownOptionError",
    "MissingOptionValueError",
    "DuplicateOptionError",
    "StandaloneOptionError",
    "ConflictingOptionError",
    "DependingOptionError",
    "MissingRequiredOptionError",
    "EmptyArgumentsError",
    "MissingArgumentError",
    "TooManyArgumentsError",
    "NoArgumentsAllowedError",
    "UnknownTypeError",
    "InvalidValueError",
    "EnvironmentCoercionError",
    "UserHandlerError",
)
