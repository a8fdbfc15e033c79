r"""
Arbor argument definitions.

Overview
- ArgumentSlot: one declared value position, for a command's positionals, an
  option's values or an environment binding.
- split_arguments(source): split a name/flags string such as
  "-o, --output <file:string>" into its parts and the trailing definition.
- parse_definition(definition): parse the mini-grammar into ordered slots.

Grammar
    definition := token (" " token)*
    token      := "<" body ">"          required
                | "[" body "]"          optional
    body       := ["..."] name ["..."] [":" type ["[]"]]

- type defaults to "string".
- "[]" after the type marks a list slot (values split on a separator).
- "..." before or after the name marks the slot variadic; the marker is
  stripped (only names longer than the marker are inspected).
- tokens whose name is empty are dropped.

Rules (GrammarError otherwise)
- no required slot after an optional one.
- nothing after a variadic slot (at most one, and last).
- environment bindings (env=True): exactly one slot, neither optional nor
  variadic.

Quick example:
    >>> [slot.name for slot in parse_definition("<source:string> [...targets:string]")]
    ['source', 'targets']
    >>> split_arguments("-o, --output <file:string>")
    (['-o', '--output'], '<file:string>')
"""
import re

from .faults import FaultCode, GrammarError
from .internals import IntrospectableType
from .utils import *

_TOKEN = re.compile(r"(?P<open>[<\[])(?P<name>[^:<>\[\]]*)(?::(?P<type>[^:<>\[\]]*)(?P<list>\[\])?)?(?P<close>[>\]])")
_CLOSERS = {"<": ">", "[": "]"}
_VARIADIC = "..."


def _sanitize_slot(cls, metadata, /):
    """
    Internal: validate ArgumentSlot metadata in place.

    - name/type: non-empty strings after trimming.
    - separator: Unset, None or a non-empty string; only meaningful for list slots.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = name

    if not isinstance(type := metadata["type"], str):
        raise TypeError(f"{cls.__typename__} 'type' must be a string")
    elif not (type := type.strip()):
        raise ValueError(f"{cls.__typename__} 'type' cannot be empty")
    metadata["type"] = type

    if not isinstance(separator := metadata["separator"], str | None | Unset):
        raise TypeError(f"{cls.__typename__} 'separator' must be a string")
    elif isinstance(separator, str) and not separator:
        raise ValueError(f"{cls.__typename__} 'separator' cannot be empty")
    metadata["separator"] = coalesce(separator)


class ArgumentSlot(metaclass=IntrospectableType):
    """
    One declared value position.

    Properties
    - name: slot name as declared (variadic marker stripped).
    - type: type name resolved through the command's type registry.
    - optional: declared with square brackets.
    - variadic: consumes every remaining value.
    - list: each value is split on separator (default ",").
    - separator: str | None.
    - definition: the slot rendered back into grammar form.
    """

    __introspectable__ = (
        "name",
        "type",
        "optional",
        "variadic",
        "list",
        "separator",
    )

    def __new__(cls, name, /, type="string", *, optional=False, variadic=False, list=False, separator=Unset):
        metadata = {
            "name": name,
            "type": type,
            "optional": bool(optional),
            "variadic": bool(variadic),
            "list": bool(list),
            "separator": separator,
        }
        _sanitize_slot(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def definition(self):
        open, close = ("[", "]") if self.optional else ("<", ">")
        return "%s%s%s:%s%s%s" % (
            open,
            _VARIADIC if self.variadic else "",
            self.name,
            self.type,
            "[]" if self.list else "",
            close,
        )

    def split(self, value, /):
        """
        Split a raw list value on this slot's separator (default ",").
        """
        return value.split(self.separator or ",")

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        metadata = dict(self.__rich_repr__()) | overrides
        return type(self)(metadata.pop("name"), **metadata)


def split_arguments(source, /):
    """
    Split a name or flags string into its parts and trailing definition.

    Parts are separated by ",", "=" or a space, each optionally followed by
    more spaces. Trailing bracketed parts are peeled off and joined, in order,
    into the definition (None when there is none).

    Examples
    - "-v, --verbose"                 -> (["-v", "--verbose"], None)
    - "--color=<value:string>"        -> (["--color"], "<value:string>")
    - "build b <target> [mode]"       -> (["build", "b"], "<target> [mode]")
    """
    if not isinstance(source, str):
        raise TypeError("split_arguments() argument must be a string")

    parts = re.split(r"[, =] *", source.strip())
    definition = []
    while parts and re.fullmatch(r"[<\[].+[\]>]", parts[-1]):
        definition.insert(0, parts.pop())
    return [part for part in parts if part], " ".join(definition) or None


def parse_definition(definition, /, *, env=False):
    """
    Parse an argument definition into ordered ArgumentSlot records.

    Parameters
    - definition: str, whitespace-separated tokens (see module docs).
    - env: bool, apply the environment binding rules.

    Returns
    - tuple[ArgumentSlot, ...] in declaration order.

    Raises
    - GrammarError: on a malformed token, a required slot after an optional
      one, a slot after a variadic one, or a disallowed environment binding.
    """
    if not isinstance(definition, str):
        raise TypeError("parse_definition() argument must be a string")

    slots = []
    optional = variadic = False

    for token in definition.split():
        if variadic:
            raise GrammarError(
                "argument %r can not follow a variadic argument" % token,
                title="malformed definition",
                code=FaultCode.MALFORMED_DEFINITION,
                hint="move the variadic argument to the end of %r" % definition,
                definition=definition,
            )

        match = _TOKEN.fullmatch(token)
        if not match or _CLOSERS[match["open"]] != match["close"]:
            raise GrammarError(
                "malformed argument %r" % token,
                title="malformed definition",
                code=FaultCode.MALFORMED_DEFINITION,
                hint="use '<name:type>' for required and '[name:type]' for optional arguments",
                definition=definition,
            )

        required = match["open"] == "<"
        if required and optional:
            raise GrammarError(
                "required argument %r can not follow an optional argument" % token,
                title="malformed definition",
                code=FaultCode.MALFORMED_DEFINITION,
                hint="declare required arguments before optional ones in %r" % definition,
                definition=definition,
            )
        optional |= not required

        name = match["name"].strip()
        variadic = False
        if len(name) > len(_VARIADIC):
            if name.startswith(_VARIADIC):
                variadic, name = True, name[len(_VARIADIC):]
            elif name.endswith(_VARIADIC):
                variadic, name = True, name[:-len(_VARIADIC)]

        if not name:
            continue

        slots.append(ArgumentSlot(
            name,
            (match["type"] or "").strip() or "string",
            optional=not required,
            variadic=variadic,
            list=bool(match["list"]),
        ))

    if env:
        _validate_env_slots(definition, slots)

    return tuple(slots)


def _validate_env_slots(definition, slots, /):
    """
    Internal: environment bindings carry exactly one plain, required slot.
    """
    if len(slots) != 1:
        raise GrammarError(
            "environment variable definition %r must declare exactly one argument" % definition,
            title="malformed definition",
            code=FaultCode.MALFORMED_DEFINITION,
            hint="declare a single value, for example '<value:string>'",
            definition=definition,
        )
    slot, = slots
    if slot.optional:
        raise GrammarError(
            "environment variable argument %r can not be optional" % slot.name,
            title="malformed definition",
            code=FaultCode.MALFORMED_DEFINITION,
            hint="use angle brackets, for example '<%s:%s>'" % (slot.name, slot.type),
            definition=definition,
        )
    if slot.variadic:
        raise GrammarError(
            "environment variable argument %r can not be variadic" % slot.name,
            title="malformed definition",
            code=FaultCode.MALFORMED_DEFINITION,
            hint="remove the '...' marker from %r" % definition,
            definition=definition,
        )


__all__ = (
    # Classes
    "ArgumentSlot",

    # Functions
    "split_arguments",
    "parse_definition",
)
