"""
Arbor command layer: declare, route, parse and dispatch command trees.

What this module provides
- Command: one node of a command tree. Each node owns
  • its children (sub-commands, keyed by primary name, with aliases),
  • option, type and completion registries (with global visibility for
    descendants),
  • positional argument slots, environment bindings and examples,
  • an action handler, a default sub-command, or an executable target.
- ParseResult: (options, args, command) returned by Command.parse().
- command(...): create a root Command, or a decorator turning a handler into
  one.
- invoke(command, tokens): parse and dispatch, the way a script entry point
  does.

Quick start
    from arbor import Command

    app = Command("deploy", "deploy services", version="1.4.0", throw_errors=True)
    app.option("-v, --verbose", "chatty output", global_=True)

    up = app.command("up <service:string> [...extra:string]", "start a service")
    up.option("-p, --port <port:integer>", "listen port", default=8080)

    @up.action
    def start(options, service, extra=()):
        ...

    app.parse(["up", "web", "--port", "9000"])   # start({'port': 9000}, 'web')

Builder handles
- Registration calls return the node they configure: command() returns the
  new child, select() an existing child and reset() the root, so a chain can
  move around the tree without any shared "current node" state.
- option()/type()/complete()/example()/env()/alias()/arguments() return the
  node they were called on; action()/executor() return their callable so they
  work as decorators.

Error policy
- Every fault is routed through Command.error(). When the node or any
  ancestor was built with throw_errors=True, the fault is returned and the
  caller raises it. Otherwise help and the fault are printed to stderr and
  the process exits with status 1. ARBOR_DEBUG=1 adds the fault code and the
  traceback of the original exception.
"""
import collections
import copy
import difflib
import os.path
import shlex
import subprocess
import sys
from collections.abc import Iterable

from rich.traceback import Traceback

from .arguments import parse_definition, split_arguments
from .faults import *
from .faults import console
from .flags import parse_flags
from .internals import IntrospectableType, ancestors
from .options import EnvVariable, Example, OptionDefinition
from .renderers import render_help
from .types import CompleteSettings, TypeSettings, defaults
from .utils import *

ParseResult = collections.namedtuple("ParseResult", ("options", "args", "command"))
ParseResult.__doc__ = """
Outcome of Command.parse(): parsed options keyed by canonical name, matched
positional arguments in declaration order, and the terminal command.
"""


def _sanitize_string(cls, metadata, name, /, *, empty=True):
    if not isinstance(object := metadata[name], str | Unset):
        raise TypeError(f"{cls.__typename__} {name!r} must be a string")
    if isinstance(object, str):
        object = object.strip()
        if not object and not empty:
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
    metadata[name] = object


def _process_metadata(cls, metadata, /):
    """
    Internal: validate the scalar settings of a command in place.
    """
    _sanitize_string(cls, metadata, "name", empty=False)
    _sanitize_string(cls, metadata, "descr")
    _sanitize_string(cls, metadata, "version", empty=False)
    _sanitize_string(cls, metadata, "default", empty=False)
    metadata["descr"] = coalesce(metadata["descr"], "")
    metadata["version"] = coalesce(metadata["version"])
    metadata["default"] = coalesce(metadata["default"])

    for name in ("throw_errors", "colorful", "fancy"):
        if (object := metadata[name]) is not Unset:
            metadata[name] = bool(object)


def _route(command, /):
    return " ".join(step.name for step in command.path)


def _run(argv, /):
    """
    Default executor: run argv as a child process and wait for it.
    """
    return subprocess.run(argv, check=False)


def _tokenize(tokens, /):
    if tokens is Unset:
        return sys.argv[1:]
    if isinstance(tokens, str):
        return shlex.split(tokens)
    if isinstance(tokens, Iterable):
        tokens = list(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError("parse() argument must be a string or an iterable of strings")


class Command(metaclass=IntrospectableType):
    """
    One node of a command tree.

    Settings (constructor and command() keywords)
    - name: primary name; defaults to the script name for roots.
    - descr: one-line description.
    - version: version string; children without one inherit the nearest.
    - hidden: omitted from help and listings (still routable).
    - global_: as a child, also routable from every descendant of its parent.
    - raw: skip option/argument parsing; tokens go straight to the handler.
    - allow_empty: when False, parsing an empty token list fails.
    - throw_errors: faults are raised instead of terminating the process;
      inherited by descendants.
    - default: name of the sub-command executed when no handler is set.
    - colorful, fancy: help and fault rendering; inherited when unset.

    Properties are read-only; containers are returned as copies.
    """

    __introspectable__ = (
        "name",
        "aliases",
        "descr",
        "version",
        "hidden",
        "global_",
        "raw",
        "allow_empty",
        "throw_errors",
        "default",
        "executable",
        "definition",
        "args",
        "parent",
        "children",
        "options",
        "types",
        "completions",
        "envs",
        "examples",
    )

    __displayable__ = (
        "name",
        "aliases",
        "descr",
        "version",
        "definition",
        "options",
        "children",
    )

    def __new__(
            cls,
            name=Unset,
            descr=Unset,
            /,
            *,
            version=Unset,
            hidden=False,
            global_=False,
            raw=False,
            allow_empty=True,
            throw_errors=Unset,
            default=Unset,
            colorful=Unset,
            fancy=Unset,
    ):
        metadata = {
            "name": coalesce(name, os.path.basename(sys.argv[0]) or "arbor"),
            "descr": descr,
            "version": version,
            "hidden": bool(hidden),
            "global_": bool(global_),
            "raw": bool(raw),
            "allow_empty": bool(allow_empty),
            "throw_errors": throw_errors,
            "default": default,
            "colorful": colorful,
            "fancy": fancy,
        }
        _process_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self._aliases = []
        self._parent = None
        self._children = {}
        self._options = []
        self._types = {}
        self._completions = {}
        self._envs = []
        self._examples = []
        self._args = ()
        self._definition = None
        self._executable = False
        self._action = None
        self._executor = None
        self._parsed = False

        for name, handler in defaults().items():
            self.type(name, handler)
        return self

    # ── tree ────────────────────────────────────────────────────────────────

    @property
    def root(self):
        """
        Topmost command of the tree this node belongs to.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Commands from the root down to this node, as a tuple.
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    @property
    def throws(self):
        """
        True when this node or any ancestor was built with throw_errors=True.
        """
        return bool(self._throw_errors) or any(command._throw_errors is True for command in ancestors(self))

    @property
    def colorful(self):
        return bool(coalesce(self._colorful, self.parent.colorful if self.parent else False))

    @property
    def fancy(self):
        return bool(coalesce(self._fancy, self.parent.fancy if self.parent else False))

    # ── builder ─────────────────────────────────────────────────────────────

    def command(self, source, target=Unset, /, *, override=False, **settings):
        """
        Register a sub-command and return it.

        Parameters
        - source: "name [alias...] [definition]", e.g. "copy cp <src> <dst>".
        - target: a description string marks the child executable (its tokens
          run an external program named after the command path); a Command
          is adopted as the child; Unset creates a plain child.
        - override: replace an existing child with the same name.
        - settings: keyword settings for the new child (see Command).

        Raises (through error())
        - DuplicateDefinitionError: name taken by a child or a child's alias.
        - GrammarError: malformed trailing definition.

        A failed call leaves the tree as it was.
        """
        if not isinstance(source, str):
            raise TypeError(f"{type(self).__typename__} command() first argument must be a string")
        names, definition = split_arguments(source)
        if not names:
            raise ValueError(f"{type(self).__typename__} command() first argument must name the command")
        name, *aliases = names

        if isinstance(target, Command):
            if target is self or target in self.path:
                raise ValueError(f"{type(self).__typename__} {target.name!r} cannot be adopted by itself or a descendant")
            if target.parent is not None:
                raise ValueError(f"{type(self).__typename__} {target.name!r} is already attached to {target.parent.name!r}")
            if settings:
                raise TypeError(f"{type(self).__typename__} command() settings cannot apply to an existing command")
            child = target
        elif isinstance(target, str | Unset):
            child = Command(name, coalesce(target, Unset), **settings)
            child._executable = isinstance(target, str)
        else:
            raise TypeError(f"{type(self).__typename__} command() second argument must be a string or a command")

        if existing := self.get_base_command(name, hidden=True):
            if not override:
                raise self.error(DuplicateDefinitionError(
                    "duplicate command name %r" % name,
                    title="duplicate definition",
                    code=FaultCode.DUPLICATE_DEFINITION,
                    hint="pick another name or pass override=True to replace %r" % existing.name,
                ))

        # validate everything before the tree is touched
        siblings = [sibling for sibling in self._children.values() if sibling is not existing]
        aliases = [*child.aliases, *aliases]
        taken = {name}
        for alias in aliases:
            if alias in taken or any(alias == sibling.name or alias in sibling.aliases for sibling in siblings):
                raise self.error(DuplicateDefinitionError(
                    "duplicate command alias %r" % alias,
                    title="duplicate definition",
                    code=FaultCode.DUPLICATE_DEFINITION,
                    hint="pick an alias not used by %r or its siblings" % name,
                ))
            taken.add(alias)

        args = child._args
        if definition:
            try:
                args = parse_definition(definition)
            except GrammarError as fault:
                raise self.error(fault) from None

        if existing:
            self.remove_command(existing.name)
        child._name = name
        child._aliases = aliases
        child._parent = self
        if definition:
            child._args, child._definition = args, definition.strip() or None
        self._children[name] = child
        return child

    def select(self, name, /):
        """
        Return the existing child named name (or aliased so).

        Raises (through error())
        - UnknownCommandError: no such child.
        """
        if child := self.get_base_command(name, hidden=True):
            return child
        raise self.error(self._unknown_command(name))

    def reset(self):
        """
        Return the root of the tree, for chains that continue from the top.
        """
        return self.root

    def rename(self, name, /):
        """
        Change this command's primary name.

        Raises
        - TypeError: the command has already parsed input.
        - DuplicateDefinitionError (through error()): a sibling has the name.
        """
        if self._parsed:
            raise TypeError(f"{type(self).__typename__} {self._name!r} cannot be renamed after parsing")
        metadata = {"name": name}
        _sanitize_string(type(self), metadata, "name", empty=False)
        name = metadata["name"]

        if (parent := self.parent) is not None:
            if (existing := parent.get_base_command(name, hidden=True)) and existing is not self:
                raise self.error(DuplicateDefinitionError(
                    "duplicate command name %r" % name,
                    title="duplicate definition",
                    code=FaultCode.DUPLICATE_DEFINITION,
                    hint="pick a name not used by another sub-command of %r" % parent.name,
                ))
            parent._children = {(name if child is self else key): child for key, child in parent._children.items()}
        self._name = name
        return self

    def alias(self, name, /):
        """
        Add an alternative name this command can be routed by.
        """
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} alias must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{type(self).__typename__} alias cannot be empty")

        taken = name == self._name or name in self._aliases
        if not taken and (parent := self.parent) is not None:
            taken = any(child is not self and (name == child.name or name in child.aliases)
                        for child in parent._children.values())
        if taken:
            raise self.error(DuplicateDefinitionError(
                "duplicate command alias %r" % name,
                title="duplicate definition",
                code=FaultCode.DUPLICATE_DEFINITION,
                hint="pick an alias not used by %r or its siblings" % self._name,
            ))
        self._aliases.append(name)
        return self

    def arguments(self, definition, /):
        """
        Declare positional arguments, e.g. "<source:string> [...targets]".
        """
        try:
            self._args = parse_definition(definition)
        except GrammarError as fault:
            raise self.error(fault) from None
        self._definition = definition.strip() or None
        return self

    def action(self, callback, /):
        """
        Set the handler called as callback(options, *args).

        Returns the callback, so it also works as a decorator: @cmd.action
        """
        if not callable(callback):
            raise TypeError(f"{type(self).__typename__} action must be callable")
        self._action = callback
        return callback

    def executor(self, callback, /):
        """
        Set the callable used to run executable sub-commands of this subtree.

        It receives the argv list and must raise FileNotFoundError when the
        program does not exist. Defaults to subprocess.run.
        """
        if not callable(callback):
            raise TypeError(f"{type(self).__typename__} executor must be callable")
        self._executor = callback
        return callback

    def option(self, flags, descr=Unset, /, **behavior):
        """
        Declare an option, e.g. option("-p, --port <port:integer>", "port").

        See arbor.options.OptionDefinition for the accepted behaviors.

        Raises (through error())
        - DuplicateDefinitionError: a name or alias is already visible here
          (own or inherited global option) and override is not set.
        - GrammarError: malformed flags or definition.
        """
        try:
            option = OptionDefinition(flags, descr, **behavior)
        except CommandException as fault:
            raise self.error(fault) from None

        for name in option.names:
            if existing := self.get_base_option(name, hidden=True):
                if not option.override:
                    raise self.error(self._duplicate_option(name))
                self.remove_option(existing.name)
            elif self.get_global_option(name, hidden=True) and not option.override:
                raise self.error(self._duplicate_option(name))

        self._options.append(option)
        return self

    def type(self, name, handler, /, *, override=False, global_=False):
        """
        Register a type handler; handlers with complete() also register a
        completion under the same name.
        """
        settings = TypeSettings(name, handler, global_=global_)
        if settings.name in self._types and not override:
            raise self.error(DuplicateDefinitionError(
                "duplicate type name %r" % settings.name,
                title="duplicate definition",
                code=FaultCode.DUPLICATE_DEFINITION,
                hint="pass override=True to replace the %r type" % settings.name,
            ))
        self._types[settings.name] = settings

        if callable(complete := getattr(handler, "complete", None)):
            self.complete(settings.name, complete, override=override, global_=global_)
        return self

    def complete(self, name, complete, /, *, override=False, global_=False):
        """
        Register a completion provider returning candidate strings.
        """
        settings = CompleteSettings(name, complete, global_=global_)
        if settings.name in self._completions and not override:
            raise self.error(DuplicateDefinitionError(
                "duplicate completion name %r" % settings.name,
                title="duplicate definition",
                code=FaultCode.DUPLICATE_DEFINITION,
                hint="pass override=True to replace the %r completion" % settings.name,
            ))
        self._completions[settings.name] = settings
        return self

    def example(self, name, descr, /):
        """
        Add a usage example shown in help.
        """
        example = Example(name, descr)
        if self.get_example(example.name):
            raise self.error(DuplicateDefinitionError(
                "duplicate example %r" % example.name,
                title="duplicate definition",
                code=FaultCode.DUPLICATE_DEFINITION,
                hint="give each example a distinct name",
            ))
        self._examples.append(example)
        return self

    def env(self, source, descr=Unset, /):
        """
        Bind environment variables, e.g. env("APP_PORT <port:integer>", "port").
        """
        try:
            env = EnvVariable(source, descr)
        except CommandException as fault:
            raise self.error(fault) from None

        for name in env.names:
            if self.get_env(name):
                raise self.error(DuplicateDefinitionError(
                    "duplicate environment variable %r" % name,
                    title="duplicate definition",
                    code=FaultCode.DUPLICATE_DEFINITION,
                    hint="bind %r only once" % name,
                ))
        self._envs.append(env)
        return self

    # ── options ─────────────────────────────────────────────────────────────

    def get_options(self, hidden=False):
        return self.get_base_options(hidden) + self.get_global_options(hidden)

    def get_base_options(self, hidden=False):
        return [option for option in self._options if hidden or not option.hidden]

    def get_global_options(self, hidden=False):
        """
        Global options declared by ancestors and not shadowed by a nearer
        declaration.
        """
        seen = {name for option in self._options for name in option.names}
        options = []
        for command in ancestors(self):
            for option in command.get_base_options(hidden):
                if option.global_ and not seen.intersection(option.names):
                    options.append(option)
                    seen.update(option.names)
        return options

    def has_options(self, hidden=False):
        return bool(self.get_options(hidden))

    def get_option(self, name, hidden=False):
        return self.get_base_option(name, hidden) or self.get_global_option(name, hidden)

    def get_base_option(self, name, hidden=False):
        return next((option for option in self._options
                     if option.matches(name) and (hidden or not option.hidden)), None)

    def get_global_option(self, name, hidden=False):
        for command in ancestors(self):
            if (option := command.get_base_option(name, hidden)) and option.global_:
                return option
        return None

    def has_option(self, name, hidden=False):
        return self.get_option(name, hidden) is not None

    def remove_option(self, name, /):
        if option := self.get_base_option(name, hidden=True):
            self._options.remove(option)
        return option

    # ── commands ────────────────────────────────────────────────────────────

    def get_commands(self, hidden=False):
        return self.get_base_commands(hidden) + self.get_global_commands(hidden)

    def get_base_commands(self, hidden=False):
        return [child for child in self._children.values() if hidden or not child.hidden]

    def get_global_commands(self, hidden=False):
        seen = {name for child in self._children.values() for name in (child.name, *child.aliases)}
        commands = []
        for command in ancestors(self):
            for child in command.get_base_commands(hidden):
                if child.global_ and child.name not in seen:
                    commands.append(child)
                    seen.add(child.name)
        return commands

    def has_commands(self, hidden=False):
        return bool(self.get_commands(hidden))

    def get_command(self, name, hidden=False):
        return self.get_base_command(name, hidden) or self.get_global_command(name, hidden)

    def get_base_command(self, name, hidden=False):
        """
        Child by primary name, then by alias.
        """
        if (child := self._children.get(name)) is None:
            child = next((child for child in self._children.values() if name in child._aliases), None)
        if child is not None and (hidden or not child.hidden):
            return child
        return None

    def get_global_command(self, name, hidden=False):
        for command in ancestors(self):
            if (child := command.get_base_command(name, hidden)) and child.global_:
                return child
        return None

    def has_command(self, name, hidden=False):
        return self.get_command(name, hidden) is not None

    def remove_command(self, name, /):
        if child := self.get_base_command(name, hidden=True):
            del self._children[child.name]
            child._parent = None
        return child

    # ── types & completions ─────────────────────────────────────────────────

    def _visible(self, attribute, /):
        own = getattr(self, attribute)
        entries = list(own.values())
        seen = set(own)
        for command in ancestors(self):
            for name, settings in getattr(command, attribute).items():
                if settings.global_ and name not in seen:
                    entries.append(settings)
                    seen.add(name)
        return entries[len(own):]

    def get_types(self):
        return self.get_base_types() + self.get_global_types()

    def get_base_types(self):
        return list(self._types.values())

    def get_global_types(self):
        return self._visible("_types")

    def get_type(self, name):
        return self.get_base_type(name) or self.get_global_type(name)

    def get_base_type(self, name):
        return self._types.get(name)

    def get_global_type(self, name):
        for command in ancestors(self):
            if (settings := command._types.get(name)) and settings.global_:
                return settings
        return None

    def has_type(self, name):
        return self.get_type(name) is not None

    def get_completions(self):
        return self.get_base_completions() + self.get_global_completions()

    def get_base_completions(self):
        return list(self._completions.values())

    def get_global_completions(self):
        return self._visible("_completions")

    def get_completion(self, name):
        return self.get_base_completion(name) or self.get_global_completion(name)

    def get_base_completion(self, name):
        return self._completions.get(name)

    def get_global_completion(self, name):
        for command in ancestors(self):
            if (settings := command._completions.get(name)) and settings.global_:
                return settings
        return None

    # ── envs, examples, version ─────────────────────────────────────────────

    def get_envs(self):
        return list(self._envs)

    def get_env(self, name):
        return next((env for env in self._envs if name in env.names), None)

    def has_envs(self):
        return bool(self._envs)

    def get_examples(self):
        return list(self._examples)

    def get_example(self, name):
        return next((example for example in self._examples if example.name == name), None)

    def has_examples(self):
        return bool(self._examples)

    def get_version(self):
        """
        This command's version, or the nearest ancestor's (None if none).
        """
        if self._version is not None:
            return self._version
        return self.parent.get_version() if self.parent else None

    # ── help & errors ───────────────────────────────────────────────────────

    def help(self, *, stderr=False):
        """
        Show help for this command, through a registered help command's
        show() when one is reachable.
        """
        helper = self.get_command("help", hidden=True)
        if helper is not None and callable(getattr(helper, "show", None)):
            return helper.show(self, stderr=stderr)
        return render_help(self, stderr=stderr)

    def error(self, fault, /, show_help=True):
        """
        Route a fault through the error policy.

        Returns the fault (enriched with this command as context) when this
        node or an ancestor throws; callers write `raise self.error(...)`.
        Otherwise prints help (when show_help) and the fault to stderr and
        exits with status 1.
        """
        if not isinstance(fault, CommandException):
            raise TypeError("error() argument must be a command exception")
        if "command" not in fault.options:
            fault = copy.replace(fault, command=self, colorful=self.colorful, fancy=self.fancy)
        if self.throws:
            return fault

        debug = bool(getenv("ARBOR_DEBUG"))
        if show_help:
            self.help(stderr=True)
            console.print()
        console.print(copy.replace(fault, debug=debug))
        if debug and isinstance(exception := fault.options.get("exception"), BaseException):
            console.print(Traceback.from_exception(type(exception), exception, exception.__traceback__))
        sys.exit(1)

    def _unknown_command(self, name, /):
        names = [key for child in self.get_commands() for key in (child.name, *child.aliases)]
        suggestions = difflib.get_close_matches(name, names, 3)
        try:
            hint = "did you mean %r? run '%s --help' to see all commands" % (suggestions[0], _route(self))
        except IndexError:
            hint = "run '%s --help' to see all commands" % _route(self)
        return UnknownCommandError(
            "unknown command %r" % name,
            title="unknown command",
            code=FaultCode.UNKNOWN_COMMAND,
            hint=hint,
            input=name,
            suggestions=suggestions,
        )

    def _duplicate_option(self, name, /):
        return DuplicateDefinitionError(
            "duplicate option name %r" % name,
            title="duplicate definition",
            code=FaultCode.DUPLICATE_DEFINITION,
            hint="pick another flag or pass override=True",
        )

    # ── parsing ─────────────────────────────────────────────────────────────

    def parse(self, tokens=Unset, /, *, dry=False):
        """
        Route tokens to a terminal command, parse them and dispatch.

        Parameters
        - tokens: Unset (sys.argv[1:]), a shell-like string, or an iterable
          of strings.
        - dry: parse and validate only; no handler or executable runs.

        Returns
        - ParseResult(options, args, command).
        """
        tokens = _tokenize(tokens)
        self._parsed = True

        if tokens and (child := self.get_command(tokens[0], hidden=True)):
            return child.parse(tokens[1:], dry=dry)

        if self._executable:
            if not dry:
                self._execute_executable(tokens)
            return ParseResult({}, tokens, self)

        if self._raw:
            if dry:
                return ParseResult({}, tokens, self)
            return self._execute({}, tokens, ())

        given = []
        try:
            flags, unknown = parse_flags(
                tokens,
                options=self.get_options(hidden=True),
                parse=self._coerce,
                allow_empty=self._allow_empty,
                stop_early=True,
                given=given,
            )
        except CommandException as fault:
            raise self.error(fault) from fault.__cause__

        self._validate_env_vars()
        args = self._parse_arguments(unknown, given)

        if dry:
            return ParseResult(flags, args, self)
        return self._execute(flags, args, given)

    def _coerce(self, option, argument, value, /):
        """
        Resolve argument.type and run its handler on value.

        Raises UnknownTypeError or InvalidValueError without routing them;
        callers decide how the fault is reported.
        """
        if (settings := self.get_type(argument.type)) is None:
            raise UnknownTypeError(
                "unknown type %r for argument %r" % (argument.type, argument.name),
                title="unknown type",
                code=FaultCode.UNKNOWN_TYPE,
                hint="register it with .type(%r, handler) or use one of: %s" % (
                    argument.type, ", ".join(settings.name for settings in self.get_types())
                ),
                argument=argument,
            )
        try:
            return settings.parse(option, argument, value)
        except CommandException:
            raise
        except Exception as exception:
            if isinstance(option, OptionDefinition):
                subject = "option '%s'" % next(iter(option.switches))
            elif isinstance(option, EnvVariable):
                subject = "environment variable %r" % option.name
            else:
                subject = "argument %r" % argument.name
            raise InvalidValueError(
                "%s must be of type %r but got %r" % (subject, argument.type, value),
                title="invalid value",
                code=FaultCode.INVALID_VALUE,
                hint=str(exception) or "run '%s --help' to see the expected values" % _route(self),
                option=option,
                argument=argument,
                exception=exception,
            ) from exception

    def _validate_env_vars(self):
        if not self._envs or not permitted():
            return
        for env in self._envs:
            name = next((name for name in env.names if getenv(name)), None)
            if name is None:
                continue
            value = getenv(name)
            try:
                self._coerce(env, env.argument, value)
            except InvalidValueError as fault:
                raise self.error(EnvironmentCoercionError(
                    "environment variable %r must be of type %r but got %r" % (name, env.type, value),
                    title="invalid environment variable",
                    code=FaultCode.ENVIRONMENT_COERCION,
                    hint=fault.hint,
                    env=env,
                    exception=fault.options.get("exception"),
                )) from fault.__cause__
            except UnknownTypeError as fault:
                raise self.error(fault) from None

    def _parse_arguments(self, tokens, given, /):
        """
        Match leftover positional tokens against the declared slots.
        """
        tokens = list(tokens)
        args = []

        if not self._args:
            if tokens:
                if self.has_commands(hidden=True):
                    raise self.error(self._unknown_command(tokens[0]))
                raise self.error(NoArgumentsAllowedError(
                    "no arguments allowed for command %r, got %s" % (self._name, " ".join(map(repr, tokens))),
                    title="no arguments allowed",
                    code=FaultCode.NO_ARGUMENTS_ALLOWED,
                    hint="run '%s --help' to see the accepted options" % _route(self),
                    leftover=tokens,
                ))
            return args

        if not tokens:
            required = [slot.name for slot in self._args if not slot.optional]
            if required and not any((option := self.get_option(name, hidden=True)) and option.standalone
                                    for name in given):
                raise self.error(MissingArgumentError(
                    "missing %s: %s" % (pluralize(len(required), "argument"), ", ".join(required)),
                    title="missing argument",
                    code=FaultCode.MISSING_ARGUMENT,
                    hint="usage: %s %s" % (_route(self), self._definition),
                    missing=required,
                ))
            return args

        for slot in self._args:
            if not tokens:
                if slot.optional:
                    break
                raise self.error(MissingArgumentError(
                    "missing argument: %s" % slot.name,
                    title="missing argument",
                    code=FaultCode.MISSING_ARGUMENT,
                    hint="usage: %s %s" % (_route(self), self._definition),
                    missing=[slot.name],
                ))
            if slot.variadic:
                args.append([self._convert(slot, token) for token in tokens])
                tokens.clear()
            else:
                args.append(self._convert(slot, tokens.pop(0)))

        if tokens:
            raise self.error(TooManyArgumentsError(
                "too many arguments: %s" % " ".join(map(repr, tokens)),
                title="too many arguments",
                code=FaultCode.TOO_MANY_ARGUMENTS,
                hint="usage: %s %s" % (_route(self), self._definition),
                leftover=tokens,
            ))
        return args

    def _convert(self, slot, token, /):
        try:
            if slot.list:
                return [self._coerce(None, slot, part) for part in slot.split(token)]
            return self._coerce(None, slot, token)
        except CommandException as fault:
            raise self.error(fault) from fault.__cause__

    # ── dispatch ────────────────────────────────────────────────────────────

    def _execute(self, options, args, given, /):
        """
        Dispatch parsed input: an option action, else the handler, else the
        default sub-command.
        """
        for name in given:
            if (option := self.get_option(name, hidden=True)) and option.action:
                self._call(option.action, options, args)
                return ParseResult(options, args, self)

        if self._action is not None:
            self._call(self._action, options, args)
        elif self._default is not None:
            if (command := self.get_command(self._default, hidden=True)) is None:
                raise self.error(UnknownCommandError(
                    "default command %r not found" % self._default,
                    title="unknown command",
                    code=FaultCode.UNKNOWN_COMMAND,
                    hint="register %r under %r or change the default" % (self._default, self._name),
                    input=self._default,
                ))
            return command._execute(options, args, given)

        return ParseResult(options, args, self)

    def _call(self, callback, options, args, /):
        try:
            callback(options, *args)
        except CommandException:
            raise
        except Exception as exception:
            raise self.error(UserHandlerError(
                "command %r failed: %s" % (_route(self), str(exception) or type(exception).__name__),
                title="handler error",
                code=FaultCode.USER_HANDLER,
                hint="set ARBOR_DEBUG=1 to see the full traceback",
                exception=exception,
            )) from exception

    def _execute_executable(self, tokens, /):
        names = [step.name for step in self.path]
        names[0] = names[0].removesuffix(".py")
        executable = "-".join(names)

        runner = next((command._executor for command in (self, *ancestors(self))
                       if command._executor is not None), _run)
        for candidate in (executable, executable + ".py"):
            try:
                return runner([candidate, *tokens])
            except FileNotFoundError:
                continue

        raise self.error(ExecutableNotFoundError(
            "sub-command executable not found: %s (.py)" % executable,
            title="executable not found",
            code=FaultCode.EXECUTABLE_NOT_FOUND,
            hint="install %r or %r somewhere on PATH" % (executable, executable + ".py"),
            executable=executable,
        ))


def command(source=Unset, /, *args, **kwargs):
    """
    Create a root Command, or a decorator that builds one around a handler.

    Modes
    - command("name", "descr", **settings) -> Command
    - @command(**settings) / @command
      def name(options, *args): ...
      builds Command(name=<function name>, descr=<docstring>) with the
      function as its action.
    """
    if callable(source) and not isinstance(source, str):
        return command(**kwargs)(source)
    if isinstance(source, str):
        return Command(source, *args, **kwargs)

    @rename("command")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@command() must be applied to a callable")
        settings = {"descr": (callback.__doc__ or "").strip() or Unset} | kwargs
        instance = Command(kwargs.get("name", callback.__name__), settings.pop("descr"),
                           **{key: value for key, value in settings.items() if key != "name"})
        instance.action(callback)
        return instance

    return wrapper


def invoke(object, tokens=Unset, /):
    """
    Parse tokens with a command (or a plain handler wrapped into one).
    """
    if isinstance(object, Command):
        return object.parse(tokens)
    if callable(object):
        return invoke(command(object), tokens)
    target = "argument" if tokens is Unset else "first argument"
    raise TypeError(f"invoke() {target} must be a command or a callable")


__all__ = (
    "Command",
    "ParseResult",
    "command",
    "invoke",
)
