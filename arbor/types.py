"""
Arbor value types.

Overview
- Type: base class for coercion handlers. Subclasses implement
  parse(option, argument, value) and may implement complete() to offer shell
  completions; registering such a handler on a command also registers its
  completions under the same name.
- Built-in handlers: StringType, NumberType, IntegerType, BooleanType,
  registered on every command as "string", "number", "integer", "boolean".
- TypeSettings / CompleteSettings: registry records (name, handler or
  completion callable, global visibility).

Handler contract
- option: the OptionDefinition or EnvVariable being parsed, or None for a
  positional argument.
- argument: the ArgumentSlot receiving the value.
- value: the raw string.
A handler signals a bad value by raising (ValueError by convention); the
command reports it as an InvalidValueError chained to the original error.

Plain callables with the same (option, argument, value) signature are
accepted anywhere a Type instance is.
"""
import re

from .internals import IntrospectableType
from .utils import *

BOOLEAN_LITERALS = {
    "true": True,
    "1": True,
    "false": False,
    "0": False,
}


class Type(metaclass=IntrospectableType):
    """
    Base coercion handler.

    Subclass and override parse(); add complete() returning an iterable of
    candidate strings to take part in shell completion.
    """

    def parse(self, option, argument, value, /):
        raise NotImplementedError(f"{type(self).__typename__} must implement parse()")

    def __repr__(self):
        return f"{type(self).__typename__}()"


class StringType(Type):
    def parse(self, option, argument, value, /):
        return value


class NumberType(Type):
    """
    Integral literals become int, other numeric literals float.
    """

    def parse(self, option, argument, value, /):
        if re.fullmatch(r"[+-]?\d+", value.strip()):
            return int(value)
        try:
            number = float(value)
        except ValueError:
            raise ValueError("%r is not a number" % value) from None
        if number != number or number in (float("inf"), float("-inf")):
            raise ValueError("%r is not a finite number" % value)
        return number


class IntegerType(Type):
    def parse(self, option, argument, value, /):
        if not re.fullmatch(r"[+-]?\d+", value.strip()):
            raise ValueError("%r is not an integer" % value)
        return int(value)


class BooleanType(Type):
    """
    Accepts true/false and 1/0, case-insensitively.
    """

    def parse(self, option, argument, value, /):
        try:
            return BOOLEAN_LITERALS[value.strip().lower()]
        except KeyError:
            raise ValueError("%r is not a boolean (expected true, false, 1 or 0)" % value) from None

    def complete(self):
        return ("true", "false")


def _sanitize_name(cls, metadata, /):
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = name


class TypeSettings(metaclass=IntrospectableType):
    """
    Registry record for a type handler.
    """

    __introspectable__ = (
        "name",
        "handler",
        "global_",
    )

    def __new__(cls, name, handler, /, *, global_=False):
        metadata = {
            "name": name,
            "handler": handler,
            "global_": bool(global_),
        }
        _sanitize_name(cls, metadata)
        if not isinstance(handler, Type) and not callable(handler):
            raise TypeError(f"{cls.__typename__} 'handler' must be a type instance or a callable")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def parse(self, option, argument, value, /):
        """
        Run the handler on a raw value (Type instance or plain callable).
        """
        if isinstance(self.handler, Type):
            return self.handler.parse(option, argument, value)
        return self.handler(option, argument, value)


class CompleteSettings(metaclass=IntrospectableType):
    """
    Registry record for a completion provider.
    """

    __introspectable__ = (
        "name",
        "complete",
        "global_",
    )

    def __new__(cls, name, complete, /, *, global_=False):
        metadata = {
            "name": name,
            "complete": complete,
            "global_": bool(global_),
        }
        _sanitize_name(cls, metadata)
        if not callable(complete):
            raise TypeError(f"{cls.__typename__} 'complete' must be callable")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


def defaults():
    """
    Fresh handlers for the built-in type names, in registration order.
    """
    return {
        "string": StringType(),
        "number": NumberType(),
        "integer": IntegerType(),
        "boolean": BooleanType(),
    }


__all__ = (
    # Classes
    "Type",
    "StringType",
    "NumberType",
    "IntegerType",
    "BooleanType",
    "TypeSettings",
    "CompleteSettings",

    # Constants
    "BOOLEAN_LITERALS",
)
