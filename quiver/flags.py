"""
Quiver flag declarations and the flag parser.

Overview
- Flag: a named option taking exactly one value, e.g. --output/-o FILE.
  • name: long name, selected by "--name".
  • alias: optional single character, selected by "-alias".
  • metavar: free-form label for documentation ("FILENAME", "URL"); never enforced.
  • descr: one-line description for help output.
  • default: Unset (or "") makes the flag mandatory, Empty resolves to "", and
    any other string is used verbatim when the flag is not supplied.
- FlagSet: an immutable, ordered collection of flags. Order only matters for
  help output.
- Invocation: the (flags, arguments) pair produced by FlagSet.parse().

Parsing contract
- Tokens are scanned once, left to right, by exact match against "--name" and
  "-alias". A matched token consumes the next token as its value, whatever that
  token looks like; values are never rescanned.
- Tokens that select no flag are positional arguments, including unknown
  flag-like tokens such as "--verbose".
- After the scan, defaults fill every flag left unsupplied; a mandatory flag
  without a value is an error. Parsing is all-or-nothing.

Validation
- Construction only checks Python types. Declared names are validated by
  check(), which the program runs once before dispatching anything.

Quick example
    >>> flags = FlagSet(Flag("out", "o", default="a.txt"))
    >>> flags.parse(["-o", "b.txt", "x"])
    Invocation(flags={'out': 'b.txt'}, arguments=('x',))
"""
import logging
from collections.abc import Iterable, Sequence
from typing import NamedTuple

from .faults import *
from .utils import *

logger = logging.getLogger(__name__)


class Invocation(NamedTuple):
    """
    Result of a successful parse: flag values keyed by canonical flag name,
    and the leftover positional arguments in input order.
    """
    flags: dict[str, str]
    arguments: tuple[str, ...]


class Flag(metaclass=SchemaType):
    """
    A single named option that takes one value.

    Properties
    - name, alias, metavar, descr, default mirror the constructor arguments
      (alias and metavar stay Unset when omitted; descr defaults to "").
    - required: True when the flag has no usable default.
    - tokens: the literal tokens that select the flag on the command line.
    """

    __introspectable__ = (
        "name",
        "alias",
        "metavar",
        "descr",
        "default",
    )

    def __init__(self, name, alias=Unset, /, metavar=Unset, descr=Unset, default=Unset):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} 'name' must be a string")
        if not isinstance(alias, str | Unset):
            raise TypeError(f"{type(self).__typename__} 'alias' must be a string")
        if not isinstance(metavar, str | Unset):
            raise TypeError(f"{type(self).__typename__} 'metavar' must be a string")
        if not isinstance(descr, str | Unset):
            raise TypeError(f"{type(self).__typename__} 'descr' must be a string")
        if not isinstance(default, str | Empty | Unset):
            raise TypeError(f"{type(self).__typename__} 'default' must be a string or Empty")

        self._name = name
        self._alias = alias
        self._metavar = metavar
        self._descr = coalesce(descr, "")
        self._default = default

    @property
    def required(self):
        return self._default is Unset or self._default == ""

    @property
    def tokens(self):
        if self._alias is Unset:
            return ("--" + self._name,)
        return ("--" + self._name, "-" + self._alias)

    @property
    def annotated(self):
        """
        Description followed by the quoted default, e.g. 'output file ("a.txt")'.
        """
        if self.required:
            return self._descr
        return f"{self._descr} ({quote(self._default)})"

    def check(self):
        """
        Validate the declaration.

        Raises
        - InvalidNameError: the name is empty.
        - InvalidCharacterError: the name holds something other than letters,
          numbers and hyphens, or the alias is not a single letter or number.
        """
        if not self._name:
            raise InvalidNameError("missing name of flag")

        if (char := badchar(self._name)) is not None:
            raise InvalidCharacterError(
                f"invalid character in flag name: {quote(char)}", flag=self._name, char=char
            )

        if self._alias is not Unset:
            if len(self._alias) != 1 or badchar(self._alias, hyphen=False) is not None:
                raise InvalidCharacterError(
                    f"flag alias is an invalid character: {quote(self._alias)}", flag=self._name, char=self._alias
                )

    def __str__(self):
        return ", ".join(self.tokens) + "\t" + self.annotated


class FlagSet(Sequence):
    """
    Immutable ordered collection of flags with validation and parsing.
    """

    __typename__ = "flag-set"

    def __init__(self, *flags):
        for flag in flags:
            if not isinstance(flag, Flag):
                raise TypeError(f"{self.__typename__} items must be flags")
        self._flags = flags

    def __getitem__(self, index):
        return self._flags[index]

    def __len__(self):
        return len(self._flags)

    def __iter__(self):
        return iter(self._flags)

    def __repr__(self):
        return f"{self.__typename__}({", ".join(map(repr, self._flags))})"

    def __rich_repr__(self):
        yield from self._flags

    def check(self):
        """
        Validate every flag, then make sure names and aliases are unique.

        Names and aliases share one namespace: a flag named "x" collides with
        a later flag aliased "x".

        Raises
        - whatever Flag.check() raises for the first invalid flag.
        - DuplicateFlagError: a name or alias was already seen.
        """
        seen = set()
        for flag in self._flags:
            flag.check()
            for identifier in (flag.name, flag.alias):
                if identifier is Unset:
                    continue
                if identifier in seen:
                    raise DuplicateFlagError(
                        f"duplicate flag name or alias: {quote(identifier)}", flag=flag.name, name=identifier
                    )
                seen.add(identifier)
        logger.debug("flag-set with %d flag(s) passed validation", len(self._flags))

    def get(self, token):
        """
        Return the flag selected by token ("--name" or "-alias"), or None.
        """
        for flag in self._flags:
            if token in flag.tokens:
                return flag
        return None

    def parse(self, tokens):
        """
        Split tokens into flag values and positional arguments.

        Parameters
        - tokens: Iterable[str], the raw tokens (program name excluded).

        Returns
        - Invocation(flags, arguments). flags holds an entry for every declared
          flag, keyed by its name (never its alias); arguments keeps the input
          order of every token that was neither a flag nor a flag value.

        Raises
        - MissingFlagValueError: the last token selects a flag, leaving no value.
        - MissingRequiredFlagError: a mandatory flag was not supplied.
        """
        if not isinstance(tokens, Iterable) or isinstance(tokens, str):
            raise TypeError("parse() argument must be an iterable of strings")

        tokens = list(tokens)
        flags = {}
        arguments = []

        index = 0
        while index < len(tokens):
            token = tokens[index]
            if (flag := self.get(token)) is None:
                arguments.append(token)
                index += 1
                continue
            if index + 1 >= len(tokens):
                raise MissingFlagValueError(
                    f"no corresponding value for flag: {quote(token)}", flag=flag.name, token=token
                )
            # The value is taken verbatim, even when it looks like a flag.
            flags[flag.name] = tokens[index + 1]
            index += 2

        for flag in self._flags:
            if flag.name in flags:
                continue
            if flag.required:
                raise MissingRequiredFlagError(
                    f"no given or default value for flag: {quote(flag.name)}", flag=flag.name
                )
            flags[flag.name] = str(flag.default)

        logger.debug("parsed %d flag(s) and %d argument(s)", len(flags), len(arguments))
        return Invocation(flags, tuple(arguments))

    def help(self, indent):
        """
        Column-aligned flag listing, one line per flag.
        """
        return columns(((", ".join(flag.tokens), flag.annotated) for flag in self._flags), indent)


__all__ = (
    "Invocation",
    "Flag",
    "FlagSet",
)
