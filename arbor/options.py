r"""
Arbor option, environment and example records.

Overview
- OptionDefinition: one declared flag. Built from a flags string such as
  "-o, --output <file:string>"; the first long flag's name is canonical and
  every other flag is an alias. Without a long flag the first short flag
  names the option. The trailing definition defaults to "[value:boolean]",
  so a bare flag parses to True.
- EnvVariable: one environment binding. Built from "NAME[, NAME...] <def>";
  the definition defaults to "<value:boolean>" and must be a single,
  required, non-variadic slot.
- Example: a named usage example shown in help.

Option behaviors
- standalone: must be the only option given; skips missing-argument checks.
- global_: visible from every descendant command.
- hidden: omitted from help (still parsed).
- override: replace a same-named option instead of failing.
- action: callable(options, *args) run instead of the command handler.
- separator: separator for list-typed slots (copied onto each list slot).
- default: value used when the option is absent.
- required: the option must be given (unless a standalone option is).
- collect: repeated occurrences accumulate into a list.
- value: callable(value, previous) post-processing each occurrence.
- conflicts / depends: option names that may not / must appear alongside.

Validation of Python-level misuse raises TypeError/ValueError; grammar and
duplicate problems raise GrammarError/DuplicateDefinitionError so commands
can route them through their error path.
"""
import copy
import re
from collections.abc import Iterable

from .arguments import parse_definition, split_arguments
from .faults import DuplicateDefinitionError, FaultCode, GrammarError
from .internals import IntrospectableType
from .utils import *

_FLAG = re.compile(r"--?[^\W_][\w-]*")


def _sanitize_descr(cls, metadata, /):
    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    metadata["descr"] = coalesce(descr, "").strip()


def _sanitize_callables(cls, metadata, /, *names):
    for name in names:
        if (object := metadata[name]) is not Unset and not callable(object):
            raise TypeError(f"{cls.__typename__} {name!r} must be callable")
        metadata[name] = coalesce(object)


def _sanitize_names(cls, metadata, /, *names):
    for name in names:
        if isinstance(object := metadata[name], str) or not isinstance(object, Iterable):
            raise TypeError(f"{cls.__typename__} {name!r} must be an iterable of option names")
        sanitized = []
        for item in object:
            if not isinstance(item, str):
                raise TypeError(f"{cls.__typename__} {name!r} must contain only strings")
            sanitized.append(item.lstrip("-"))
        metadata[name] = tuple(sanitized)


def _process_flags(cls, metadata, /):
    """
    Internal: split the flags string into switches, names and slots.

    Sets 'switches' (flags as spelled), 'name', 'aliases', 'definition' and
    'args' in metadata.
    """
    if not isinstance(flags := metadata["flags"], str):
        raise TypeError(f"{cls.__typename__} 'flags' must be a string")

    switches, definition = split_arguments(flags)
    if not switches:
        raise GrammarError(
            "option %r declares no flags" % flags,
            title="malformed definition",
            code=FaultCode.MALFORMED_DEFINITION,
            hint="declare at least one flag, for example '-v, --verbose'",
            definition=flags,
        )

    names = []
    for switch in switches:
        if not _FLAG.fullmatch(switch):
            raise GrammarError(
                "malformed flag %r in %r" % (switch, flags),
                title="malformed definition",
                code=FaultCode.MALFORMED_DEFINITION,
                hint="flags look like '-v' or '--verbose'",
                definition=flags,
            )
        if (name := switch.lstrip("-")) in names:
            raise DuplicateDefinitionError(
                "duplicate option name %r in %r" % (name, flags),
                title="duplicate definition",
                code=FaultCode.DUPLICATE_DEFINITION,
                hint="remove the repeated flag",
                definition=flags,
            )
        names.append(name)

    canonical = next((switch.lstrip("-") for switch in switches if switch.startswith("--")), names[0])
    names.remove(canonical)

    metadata["switches"] = tuple(switches)
    metadata["name"] = canonical
    metadata["aliases"] = tuple(names)
    metadata["definition"] = definition or "[value:boolean]"

    args = parse_definition(metadata["definition"])
    if (separator := metadata["separator"]) is not Unset:
        if not isinstance(separator, str) or not separator:
            raise TypeError(f"{cls.__typename__} 'separator' must be a non-empty string")
        args = tuple(copy.replace(slot, separator=separator) if slot.list else slot for slot in args)
    metadata["separator"] = coalesce(separator)
    metadata["args"] = args


class OptionDefinition(metaclass=IntrospectableType):
    """
    One declared option (see module docs for the behaviors).

    Properties
    - name, aliases: canonical name and alternative names, without dashes.
    - switches: every flag as spelled in the flags string.
    - names: name followed by aliases.
    - flags, definition, args: the source string, its argument definition
      and the parsed ArgumentSlot records.
    """

    __introspectable__ = (
        "name",
        "aliases",
        "switches",
        "descr",
        "flags",
        "definition",
        "args",
        "standalone",
        "global_",
        "hidden",
        "override",
        "action",
        "separator",
        "default",
        "required",
        "collect",
        "value",
        "conflicts",
        "depends",
    )

    __displayable__ = (
        "name",
        "aliases",
        "descr",
        "definition",
        "standalone",
        "global_",
        "hidden",
        "required",
    )

    def __new__(
            cls,
            flags,
            descr=Unset,
            /,
            *,
            standalone=False,
            global_=False,
            hidden=False,
            override=False,
            action=Unset,
            separator=Unset,
            default=Unset,
            required=False,
            collect=False,
            value=Unset,
            conflicts=(),
            depends=(),
    ):
        metadata = {
            "flags": flags,
            "descr": descr,
            "standalone": bool(standalone),
            "global_": bool(global_),
            "hidden": bool(hidden),
            "override": bool(override),
            "action": action,
            "separator": separator,
            "default": default,
            "required": bool(required),
            "collect": bool(collect),
            "value": value,
            "conflicts": conflicts,
            "depends": depends,
        }
        _sanitize_descr(cls, metadata)
        _sanitize_callables(cls, metadata, "action", "value")
        _sanitize_names(cls, metadata, "conflicts", "depends")
        _process_flags(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def names(self):
        return (self._name, *self._aliases)

    @property
    def has_default(self):
        return self._default is not Unset

    def matches(self, name, /):
        """
        True when name (with or without leading dashes) is this option's
        name or one of its aliases.
        """
        return name.lstrip("-") in self.names


class EnvVariable(metaclass=IntrospectableType):
    """
    One environment-variable binding.

    The value of the first set (non-empty) variable among names is coerced
    through the slot's type when a command parses.
    """

    __introspectable__ = (
        "names",
        "descr",
        "definition",
        "argument",
    )

    def __new__(cls, source, descr=Unset, /):
        if not isinstance(source, str):
            raise TypeError(f"{cls.__typename__} 'source' must be a string")

        names, definition = split_arguments(source)
        if not names:
            raise GrammarError(
                "environment variable definition %r declares no names" % source,
                title="malformed definition",
                code=FaultCode.MALFORMED_DEFINITION,
                hint="declare a variable name, for example 'APP_TOKEN <value:string>'",
                definition=source,
            )
        metadata = {
            "names": tuple(names),
            "descr": descr,
            "definition": definition or "<value:boolean>",
        }
        _sanitize_descr(cls, metadata)
        metadata["argument"], = parse_definition(metadata["definition"], env=True)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def name(self):
        return self._names[0]

    @property
    def type(self):
        return self._argument.type


class Example(metaclass=IntrospectableType):
    """
    A named usage example ("name", "command line and explanation").
    """

    __introspectable__ = (
        "name",
        "descr",
    )

    def __new__(cls, name, descr, /):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
        metadata = {"name": name, "descr": descr}
        _sanitize_descr(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


__all__ = (
    "OptionDefinition",
    "EnvVariable",
    "Example",
)
