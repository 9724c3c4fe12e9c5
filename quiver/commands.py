"""
Quiver commands: named subcommands with their own flags and action.

What this module provides
- Command: one or more names (the first is canonical, the rest are aliases),
  a description, an optional usage override, a FlagSet and an action.
- CommandSet: an immutable, ordered collection of commands resolving a token
  to at most one command by exact name or alias match.
- noop: the action used by commands declared without one.

Actions
- An action is any callable taking (flags, arguments): a dict of flag values
  keyed by flag name and a tuple of positional arguments. It reports failure
  by raising ActionError; its return value is ignored.

Dispatch
- Command.run() receives the tokens following the command name. A leading
  "-h"/"--help" prints the command's help instead of parsing anything;
  otherwise the tokens are parsed against the command's own flags (global
  flags never apply here) and the action is invoked.

Quick example
    >>> build = Command("build", "b", descr="compile the project",
    ...                 flags=FlagSet(Flag("out", "o", default="a.out")),
    ...                 action=lambda flags, arguments: print(flags["out"]))
    >>> build.run(["-o", "main"], prog="tool", echo=print)
    main
"""
import logging
from collections.abc import Sequence

from .faults import *
from .flags import FlagSet
from .utils import *

logger = logging.getLogger(__name__)


def noop(flags, arguments, /):
    """
    Default action of a command: does nothing at all.
    """


class Command(metaclass=SchemaType):
    """
    A named subcommand owning its flag namespace and action.

    Properties
    - names: tuple of every name, canonical first.
    - name: the canonical name (Unset when no name was declared).
    - descr, usage, flags, action mirror the constructor arguments.
    """

    __introspectable__ = (
        "names",
        "descr",
        "usage",
        "flags",
        "action",
    )

    def __init__(self, *names, descr=Unset, usage=Unset, flags=Unset, action=Unset):
        for name in names:
            if not isinstance(name, str):
                raise TypeError(f"{type(self).__typename__} names must be strings")
        if not isinstance(descr, str | Unset):
            raise TypeError(f"{type(self).__typename__} 'descr' must be a string")
        if not isinstance(usage, str | Unset):
            raise TypeError(f"{type(self).__typename__} 'usage' must be a string")
        if not isinstance(flags, FlagSet | Unset):
            raise TypeError(f"{type(self).__typename__} 'flags' must be a flag-set")
        if action is not Unset and not callable(action):
            raise TypeError(f"{type(self).__typename__} 'action' must be callable")

        self._names = list(names)
        self._descr = coalesce(descr, "")
        self._usage = usage
        self._flags = coalesce(flags, FlagSet())
        self._action = action

    @property
    def name(self):
        return self._names[0] if self._names else Unset

    def check(self):
        """
        Validate the names and every declared flag.

        Raises
        - MissingCommandNameError: no name was declared.
        - InvalidNameError: a name is the empty string.
        - InvalidCharacterError: a name holds something other than letters,
          numbers and hyphens.
        - whatever FlagSet.check() raises for the command's flags.
        """
        if not self._names:
            raise MissingCommandNameError("missing name of command")

        for name in self._names:
            if not name:
                raise InvalidNameError("empty name of command", names=tuple(self._names))
            if (char := badchar(name)) is not None:
                raise InvalidCharacterError(
                    f"invalid character in command name: {quote(char)} in {quote(name)}", name=name, char=char
                )

        self._flags.check()

    def run(self, tokens, /, *, prog, echo, default=noop):
        """
        Run the command with the tokens that followed its name.

        Parameters
        - tokens: Sequence[str] after the command name.
        - prog: program name, used by the help text.
        - echo: output sink receiving the help text.
        - default: action used when the command declares none.

        Raises
        - InputError subclasses from FlagSet.parse(); the action is not run.
        - ActionError, or anything else, raised by the action itself.
        """
        tokens = list(tokens)

        if tokens and tokens[0] in ("-h", "--help"):
            logger.debug("help requested for command %r", self.name)
            echo(self.help(prog))
            return

        flags, arguments = self._flags.parse(tokens)
        logger.debug("running command %r", self.name)
        coalesce(self._action, default)(flags, arguments)

    def help(self, prog):
        """
        Render the command help: NAME, DESCRIPTION, USAGE and FLAG(S) sections.
        """
        lines = ["NAME:", f"\t{prog} {self.name}", ""]

        if self._descr:
            lines += ["DESCRIPTION:", f"\t{self._descr}", ""]

        usage = coalesce(self._usage, "[flags and values...] [arguments...]")
        lines += ["USAGE:", f"\t{prog} {self.name} {usage}", ""]

        if self._flags:
            lines += [heading("FLAG", len(self._flags)), self._flags.help("\t")]

        return "\n".join(lines).rstrip("\n")


class CommandSet(Sequence):
    """
    Immutable ordered collection of commands.
    """

    __typename__ = "command-set"

    def __init__(self, *commands):
        for command in commands:
            if not isinstance(command, Command):
                raise TypeError(f"{self.__typename__} items must be commands")
        self._commands = commands

    def __getitem__(self, index):
        return self._commands[index]

    def __len__(self):
        return len(self._commands)

    def __iter__(self):
        return iter(self._commands)

    def __repr__(self):
        return f"{self.__typename__}({", ".join(map(repr, self._commands))})"

    def __rich_repr__(self):
        yield from self._commands

    def check(self):
        """
        Validate every command, then make sure no name repeats across commands.

        Raises
        - whatever Command.check() raises for the first invalid command.
        - DuplicateCommandNameError: a name or alias is used twice.
        """
        seen = set()
        for command in self._commands:
            command.check()
            for name in command.names:
                if name in seen:
                    raise DuplicateCommandNameError(f"duplicate command name {quote(name)}", name=name)
                seen.add(name)
        logger.debug("command-set with %d command(s) passed validation", len(self._commands))

    def get(self, name):
        """
        Return the first command declaring name (canonical or alias), or None.
        """
        for command in self._commands:
            if name in command.names:
                return command
        return None

    def help(self, indent):
        """
        Column-aligned command listing: "name, alias" then the description.
        """
        return columns(((", ".join(command.names), command.descr) for command in self._commands), indent)


__all__ = (
    "Command",
    "CommandSet",
    "noop",
)
