"""
Arbor utilities (small helpers shared by every layer)

Overview
- UnsetType / Unset
  • Singleton sentinel meaning "value not provided", distinct from None.
  • Falsey, printable as "Unset", and sealed against subclassing.

- coalesce(value, default=None)
  • Replace Unset with a concrete default while keeping None/0/""/[] as given.

- rename(callable, name) / @rename("name")
  • Give generated callables stable __name__/__qualname__ for tracebacks.

- mirror("attr")
  • Read-only property over a private backing field (self._attr); containers
    are returned as fresh copies so callers cannot mutate declared state.

- pluralize(count, word)
  • Pick the singular or plural label for a counted noun in messages.

- getenv(name) / permitted()
  • Environment reads gated by a once-per-process permission probe.

Names not listed in __all__ are internal and may change without notice.
"""
import builtins
import functools
import os
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for values that were not provided.

    Used where None is a legitimate user value (a default of None, an option
    value of None) and the API must still tell "not given" apart. The single
    instance is exposed as Unset.

    Characteristics
    - bool(Unset) is False.
    - repr(Unset) is "Unset".
    - UnsetType() always returns the same instance.
    - Subclassing raises TypeError.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions with the sentinel (e.g. str | Unset in isinstance).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return object unless it is Unset, in which case return default.

    Falsey values are preserved:
    - coalesce(Unset, "x") -> "x"
    - coalesce(None, "x")  -> None
    - coalesce("", "x")    -> ""
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so.

    Forms
    - rename(callable, name) -> callable (updated in place)
    - rename(name)           -> decorator

    Raises
    - TypeError: on wrong arity, a non-string name, a non-callable target, or
      a callable whose names cannot be updated (most built-ins).
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy containers: sequences (except str) become lists, mappings
    become dicts and sets become sets. Anything else is returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    else:
        return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the backing field "_{name}".

    Container values are copied on every read (see _immortalize), so
    `command.options.append(...)` never reaches the registry.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


def pluralize(count, word, /):
    """
    Return word unchanged for a count of one, otherwise its plural.

    Only the regular English forms used by arbor messages are handled
    ("argument" -> "arguments", "alias" -> "aliases").
    """
    if not isinstance(word, str):
        raise TypeError("pluralize() second argument must be a string")
    if count == 1 or not word:
        return word
    if word.endswith(("s", "sh", "ch", "x", "z")):
        return word + "es"
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    return word + "s"


@functools.cache
def permitted():
    """
    Probe once per process whether the environment can be read.

    Restricted interpreters may refuse os.environ access with an OSError; in
    that case every environment binding is skipped.
    """
    try:
        os.environ.get("PATH")
    except OSError:
        return False
    return True


def getenv(name, /):
    """
    Read an environment variable, returning None when unset or unreadable.
    """
    if not isinstance(name, str):
        raise TypeError("getenv() argument must be a string")
    if not permitted():
        return None
    return os.environ.get(name)


Unset = UnsetType()
"""
Singleton "not provided" marker. Pair with coalesce() to materialize defaults.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pluralize",
    "permitted",
    "getenv",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
