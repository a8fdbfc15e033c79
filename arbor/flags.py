r"""
arbor flag tokenizer.

parse_flags(tokens, options=..., parse=...) turns raw argv tokens into a
mapping of canonical option names to coerced values plus the leftover
positional tokens. commands call it with every option visible at the
terminal node and a coercion callback bound to their type registry.

token forms
- "--name", "--name=value", "-n", "-n=value"
- "-abc": a cluster of short flags; only the last may take a value, unless
  "-abc" itself is a declared short flag.
- "--": ends option parsing; every following token is positional.
- "-" and negative numbers ("-1", "-2.5") are values, not flags.

value consumption, per argument slot of the option
- an inline "=value" feeds the first slot.
- a variadic slot takes every following token up to the next flag.
- a required slot takes the next token unless it is a flag; otherwise
  MissingOptionValueError.
- an optional slot takes the next token only if it is not a flag and, for
  boolean slots, only if it is a boolean literal.
- list slots split each raw value on their separator.
no value at all yields True; one slot yields a scalar, several a list.

after the scan
- defaults fill absent options.
- a standalone option given with other options fails.
- conflicts/depends are checked between given options.
- required options must be present unless a standalone option was given.
"""
import difflib
import re

from .faults import *
from .types import BOOLEAN_LITERALS

_NUMBER = re.compile(r"-(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def isflag(token, /):
    """
    True for tokens that name options ("-x", "--name", "-abc", "--name=v").
    """
    return len(token) > 1 and token.startswith("-") and token != "--" and not _NUMBER.fullmatch(token)


def _accepts(slot, token, /):
    if token == "--" or isflag(token):
        return False
    if slot.optional and slot.type == "boolean":
        return token.strip().lower() in BOOLEAN_LITERALS
    return True


def _convert(option, slot, raw, parse, /):
    if slot.list:
        return [parse(option, slot, part) for part in slot.split(raw)]
    return parse(option, slot, raw)


def _consume(option, switch, inline, tokens, index, parse, /, *, tail=True):
    """
    read the values of one option occurrence.

    returns (value, index) where index points past the consumed tokens.
    tail=False means the occurrence sits inside a short-flag cluster and may
    only use its inline value.
    """
    values = []
    for slot in option.args:
        raws = []
        if inline is not None:
            raws.append(inline)
            inline = None

        if slot.variadic:
            while tail and index < len(tokens) and _accepts(slot, tokens[index]):
                raws.append(tokens[index])
                index += 1
        elif not raws and tail and index < len(tokens) and _accepts(slot, tokens[index]):
            raws.append(tokens[index])
            index += 1

        if not raws:
            if slot.optional:
                break
            raise MissingOptionValueError(
                "missing value for argument %r of option %r" % (slot.name, switch),
                title="missing option value",
                code=FaultCode.MISSING_OPTION_VALUE,
                hint="pass a value, for example '%s=<%s>'" % (switch, slot.type),
                option=option,
                argument=slot,
            )

        if slot.variadic:
            values.append([_convert(option, slot, raw, parse) for raw in raws])
        else:
            values.append(_convert(option, slot, raws[0], parse))

    if inline is not None:
        raise MissingOptionValueError(
            "option %r does not take an inline value" % switch,
            title="unexpected option value",
            code=FaultCode.MISSING_OPTION_VALUE,
            hint="remove everything from '=' (for example: %s)" % switch,
            option=option,
        )

    if not values:
        return True, index
    if len(option.args) == 1:
        return values[0], index
    return values, index


def parse_flags(tokens, /, *, options, parse, allow_empty=True, stop_early=True, given=None):
    """
    tokenize argv tokens against the given option definitions.

    parameters
    - tokens: Iterable[str].
    - options: Iterable[OptionDefinition] visible at the parsing command.
    - parse: callable(option, argument, raw) -> value, the coercion callback.
    - allow_empty: when False, an empty token list fails.
    - stop_early: the first positional token ends option parsing.
    - given: optional list that receives the canonical names of the options
      present in tokens, in order. Defaults never show up there.

    returns
    - (flags, unknown): dict keyed by canonical option name, list of
      leftover positional tokens in order.

    raises
    - the option faults documented in arbor.faults; faults raised by parse
      propagate unchanged.
    """
    tokens = list(tokens)
    options = list(options)

    if not tokens and not allow_empty:
        raise EmptyArgumentsError(
            "no arguments given",
            title="empty arguments",
            code=FaultCode.EMPTY_ARGUMENTS,
            hint="pass at least one option or argument",
        )

    switches = {}
    for option in options:
        for switch in option.switches:
            switches.setdefault(switch, option)

    flags = {}
    given = [] if given is None else given
    unknown = []
    index = 0

    while index < len(tokens):
        token = tokens[index]
        index += 1

        if token == "--":
            unknown.extend(tokens[index:])
            break

        if not isflag(token):
            unknown.append(token)
            if stop_early:
                unknown.extend(tokens[index:])
                break
            continue

        switch, separator, inline = token.partition("=")
        inline = inline if separator else None

        if switch.startswith("--") or switch in switches:
            cluster = [switch]
        else:
            cluster = ["-" + char for char in switch[1:]]

        for position, switch in enumerate(cluster):
            try:
                option = switches[switch]
            except KeyError:
                suggestions = difflib.get_close_matches(switch, switches.keys(), 3)
                try:
                    hint = "did you mean %r?" % suggestions[0]
                except IndexError:
                    hint = "check the available options with '--help'"
                raise UnknownOptionError(
                    "unknown option %r" % switch,
                    title="unknown option",
                    code=FaultCode.UNKNOWN_OPTION,
                    hint=hint,
                    input=switch,
                    suggestions=suggestions,
                ) from None

            last = position == len(cluster) - 1
            value, index = _consume(option, switch, inline if last else None, tokens, index, parse, tail=last)

            if option.value is not None:
                try:
                    value = option.value(value, flags.get(option.name))
                except CommandException:
                    raise
                except Exception as exception:
                    raise InvalidValueError(
                        "invalid value for option %r: %s" % (switch, exception),
                        title="invalid value",
                        code=FaultCode.INVALID_VALUE,
                        hint="check the expected value with '--help'",
                        option=option,
                        exception=exception,
                    ) from exception

            if option.name in given and not option.collect:
                raise DuplicateOptionError(
                    "option %r was given more than once" % switch,
                    title="duplicate option",
                    code=FaultCode.DUPLICATE_OPTION,
                    hint="pass %r only once" % switch,
                    option=option,
                )

            if option.collect:
                flags[option.name] = [*flags.get(option.name, ()), value]
            else:
                flags[option.name] = value

            if option.name not in given:
                given.append(option.name)

    _finalize(options, flags, given)
    return flags, unknown


def _display(option, /):
    return next(switch for switch in option.switches if switch.lstrip("-") == option.name)


def _finalize(options, flags, given, /):
    """
    apply defaults, then check standalone, conflicts, depends and required.
    """
    byname = {option.name: option for option in options}

    def label(name):
        return _display(byname[name]) if name in byname else "--" + name

    for option in options:
        if option.name not in flags and option.has_default:
            flags[option.name] = option.default

    standalone = next((name for name in given if byname[name].standalone), None)
    if standalone is not None and len(given) > 1:
        others = ", ".join(label(name) for name in given if name != standalone)
        raise StandaloneOptionError(
            "option %r can not be combined with other options (%s)" % (label(standalone), others),
            title="standalone option",
            code=FaultCode.STANDALONE_OPTION,
            hint="pass %r on its own" % label(standalone),
            option=byname[standalone],
        )

    for name in given:
        option = byname[name]
        for other in option.conflicts:
            if other in given:
                raise ConflictingOptionError(
                    "option %r conflicts with option %r" % (label(name), label(other)),
                    title="conflicting options",
                    code=FaultCode.CONFLICTING_OPTION,
                    hint="pass only one of %r and %r" % (label(name), label(other)),
                    option=option,
                )
        for other in option.depends:
            if other not in flags:
                raise DependingOptionError(
                    "option %r depends on option %r" % (label(name), label(other)),
                    title="missing dependency",
                    code=FaultCode.DEPENDING_OPTION,
                    hint="add %r to the command line" % label(other),
                    option=option,
                )

    if standalone is None:
        for option in options:
            if option.required and option.name not in flags:
                raise MissingRequiredOptionError(
                    "missing required option %r" % label(option.name),
                    title="missing required option",
                    code=FaultCode.MISSING_REQUIRED_OPTION,
                    hint="add %r to the command line" % label(option.name),
                    option=option,
                )


__all__ = (
    "parse_flags",
    "isflag",
)
