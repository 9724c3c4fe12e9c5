"""
Quiver utilities (internal helpers shared by flags, commands and the program).

Overview
- UnsetType / Unset
  • Sentinel for "not provided", distinct from None and from the empty string.
- EmptyType / Empty
  • Sentinel for "explicitly empty" flag defaults: the flag is optional and
    resolves to "" when the user leaves it out.
- coalesce(value, default=None)
  • Materialize Unset into a concrete default, preserving every other value.
- rename(callable, name) / @rename("name")
  • Stable __name__/__qualname__ for generated callables.
- mirror("attr")
  • Read-only property over a private backing field (self._attr).
- heading(label, count)
  • Section headers for help text ("FLAG:" vs "FLAGS:").
- columns(rows, indent)
  • Column-aligned name/description listings.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> heading("COMMAND", 2)
    'COMMANDS:'
    >>> columns([("--out, -o", "output file")], "\\t")
    '\\t--out, -o\\toutput file\\n'
"""
import builtins
import functools
import json
import operator
import re
from typing import final


@final
class UnsetType:
    """
    Sentinel type for a value that was not provided.

    Used as the default of optional parameters whenever None, or an empty
    string, would be a meaningful value of its own. Always the same instance,
    falsy, and sealed against subclassing.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g. str | Unset).
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


@final
class EmptyType:
    """
    Sentinel type for a flag default that is explicitly the empty string.

    A flag declared with default="" is mandatory (an empty default reads as
    "no default"), so Empty is the way to say "optional, and empty when absent".
    """

    def __or__(self, other, /):
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

    def __str__(self):
        # What the flag resolves to when it is not supplied.
        return ""

    def __repr__(self):
        return "Empty"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'EmptyType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return object, or default when object is the Unset sentinel.

    Falsy values such as None, 0 or "" are returned unchanged; only Unset is
    replaced.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Assign __name__ and __qualname__ on a callable.

    Two forms are supported:
    - rename(callable, name) renames in place and returns the callable.
    - rename(name) returns a decorator doing the same.
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


def _detach(object):
    """
    Shallow-copy containers so callers cannot mutate declared schema state.

    Lists become tuples, dicts are copied, sets become frozensets; anything
    else (strings, Unset, FlagSet and other custom sequences) is returned as-is.
    """
    if isinstance(object, list):
        return tuple(object)
    elif isinstance(object, dict):
        return dict(object)
    elif isinstance(object, set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Build a read-only property that exposes self._{name}.

    Example
        class Command:
            names = mirror("names")  # served from self._names
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


class SchemaType(type):
    """
    Metaclass for schema declarations (Flag, Command, Program).

    Responsibilities
    - Derive __typename__ from the class name ("FlagSet" -> "flag-set"), used
      in TypeError messages and representations.
    - Publish every name in __introspectable__ as a read-only property mirroring
      the private backing field.
    - Provide __repr__/__rich_repr__ listing the introspectable fields.
    """
    __introspectable__ = ()

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

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def badchar(text, /, *, hyphen=True):
    """
    Return the first character of text that is not a Unicode letter or number
    (hyphens allowed unless hyphen=False), or None when every character is valid.
    """
    for char in text:
        if not char.isalnum() and not (hyphen and char == "-"):
            return char
    return None


def quote(text, /):
    """
    Double-quote text for help and error messages, escaping as JSON does.
    """
    return json.dumps(str(text), ensure_ascii=False)


def heading(label, count, /):
    """
    Help section header for an upper-case label: "FLAG:" for a single entry, "FLAGS:" otherwise.
    """
    return (label if count == 1 else label + "S") + ":"


def columns(rows, indent, /):
    """
    Render (name, description) rows with names padded to the widest one.

    Each row becomes indent + name + padding + indent + description + newline.
    An empty iterable renders as the empty string.
    """
    rows = list(rows)
    width = max((len(name) for name, _ in rows), default=0)
    return "".join(f"{indent}{name:<{width}}{indent}{descr}\n" for name, descr in rows)


Unset = UnsetType()
"""
The single "not provided" sentinel instance.
"""

Empty = EmptyType()
"""
The single "explicitly empty default" sentinel instance.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "badchar",
    "quote",
    "heading",
    "columns",

    # Types
    "UnsetType",
    "EmptyType",
    "SchemaType",

    # Constants
    "Unset",
    "Empty",
)
