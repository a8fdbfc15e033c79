"""
internal plumbing shared by arbor records and commands.

contents
- IntrospectableType: metaclass that gives every declared record (slots,
  options, types, commands) a hyphenated __typename__, read-only mirrored
  properties and stable __repr__/__rich_repr__ implementations.
- palette(defaults): style table for rich rendering, merged with the host
  application's __styles__ override from __main__.
- ancestors(command): walk parent links upward, nearest first.

nothing here is re-exported from the package.
"""
import functools
import operator
import re
from collections import defaultdict

from .utils import Unset, coalesce, mirror, rename


class IntrospectableType(type):
    """
    metaclass for introspectable arbor records.

    responsibilities
    - inject __typename__, derived from the class name (camel-case split with
      hyphens, lowercased), used as the subject of validation messages.
    - expose every name listed in __introspectable__ as a read-only property
      backed by "_{name}" (see mirror()).
    - provide __repr__/__rich_repr__ over __displayable__ when set, otherwise
      over __introspectable__. classes defining their own keep them.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        if "__repr__" not in namespace:
            @rename("__repr__")
            def __repr__(self):
                return f"{type(self).__typename__}({
                    ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
                })"
            self.__repr__ = __repr__

        if "__rich_repr__" not in namespace:
            @rename("__rich_repr__")
            def __rich_repr__(self):
                for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                    yield name, getattr(self, name)
            self.__rich_repr__ = __rich_repr__

        return self


def palette(defaults, /):
    """
    build the style lookup for a renderer.

    unknown keys resolve to "" (no style). the host application may define a
    mapping named __styles__ in __main__ to override any entry.
    """
    return defaultdict(str, dict(defaults) | getattr(__import__("__main__"), "__styles__", {}))


def ancestors(command, /):
    """
    yield the parents of command, nearest first, up to the root.
    """
    while (command := command.parent) is not None:
        yield command
