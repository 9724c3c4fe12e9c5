"""
Quiver program: the top-level façade tying flags, commands and actions together.

What this module provides
- Author: name and email shown in the help AUTHOR(S) section.
- Program: global flags, commands, default action and cosmetic metadata, plus
  the dispatch state machine behind Program.run().
- helpless: the fallback action of programs declared without an action.
- invoke(program, prompt): convenience runner accepting a shell-like string.

Dispatch (first match wins)
1. "-h"/"--help" or "-v"/"--version" anywhere in the tokens: print help (the
   command's help when the first token names a command) or version, exit 0.
2. Validate the declared schema; a SchemaError goes to the "setup" reporter.
3. First token names a command: the command runs with the remaining tokens.
   Global flags are not parsed in this branch.
4. Otherwise parse every token against the global flags and run the action,
   or the fallback when no action was declared.

Reporting
- Errors are routed by family to injected reporters: SchemaError → "setup"
  (status 3), InputError → "parse" (status 2), ActionError → "action"
  (status 1). The default reporter, faults.report, prints to stderr and exits.
  A reporter that returns makes run() return the error's status instead.
- Exceptions that are not quiver errors propagate unchanged.

Quick example
    >>> program = Program("greet", "1.0.0",
    ...                   flags=FlagSet(Flag("name", "n", default="world")),
    ...                   action=lambda flags, arguments: print("hello", flags["name"]))
    >>> program.run(["-n", "quiver"])
    hello quiver
    0
"""
import logging
import shlex
import sys
from collections.abc import Iterable, Mapping

from rich.console import Console

from .commands import CommandSet, noop
from .faults import *
from .flags import FlagSet
from .utils import *

logger = logging.getLogger(__name__)

console = Console()

_USAGE = "[global flags...] [command] [flags and values...] [arguments...]"

_GLOBAL_FLAGS = (
    "\t--help, -h  \tshow help (with optional subcommand) and exit",
    "\t--version, -v  \tshow version and exit",
)


def helpless(flags, arguments, /):
    """
    Fallback action of a program without one: asks the user for --help.
    """
    raise MissingCommandError('use the "--help" global flag')


def echo(text, /):
    """
    Default output sink: write text to stdout byte for byte, tabs included.
    """
    console.file.write(text + "\n")
    console.file.flush()


class Author(metaclass=SchemaType):
    """
    An author of the program, rendered as "Name <email>".
    """

    __introspectable__ = (
        "name",
        "email",
    )

    def __init__(self, name, email=Unset, /):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} 'name' must be a string")
        if not isinstance(email, str | Unset):
            raise TypeError(f"{type(self).__typename__} 'email' must be a string")
        self._name = name
        self._email = email

    def __str__(self):
        if not self._email:
            return self._name
        return f"{self._name} <{self._email}>"


class Program(metaclass=SchemaType):
    """
    A command-line program.

    Parameters
    - name, version: required; shown in help and version output.
    - tagline, descr, authors, usage: cosmetic help fields.
    - flags: global FlagSet, parsed only when no command is selected.
    - commands: CommandSet of subcommands.
    - action: invoked with the parsed global flags and arguments.
    - fallback: invoked instead when no action is declared (helpless).
    - default: action of commands declared without one (noop).
    - echo: output sink for help and version text.
    - reporters: mapping of "setup"/"parse"/"action" to callables taking
      (prog, error); missing entries fall back to faults.report.
    """

    __introspectable__ = (
        "name",
        "version",
        "tagline",
        "descr",
        "authors",
        "usage",
        "flags",
        "commands",
        "action",
        "fallback",
        "default",
    )

    def __init__(
            self,
            name,
            version,
            /,
            *,
            tagline=Unset,
            descr=Unset,
            authors=(),
            usage=Unset,
            flags=Unset,
            commands=Unset,
            action=Unset,
            fallback=helpless,
            default=noop,
            echo=echo,
            reporters=Unset,
    ):
        typename = type(self).__typename__
        if not isinstance(name, str):
            raise TypeError(f"{typename} 'name' must be a string")
        if not isinstance(version, str):
            raise TypeError(f"{typename} 'version' must be a string")
        for field, object in (("tagline", tagline), ("descr", descr), ("usage", usage)):
            if not isinstance(object, str | Unset):
                raise TypeError(f"{typename} {field!r} must be a string")
        if not isinstance(authors, Iterable) or isinstance(authors, str):
            raise TypeError(f"{typename} 'authors' must be an iterable of authors")
        authors = list(authors)
        if not all(isinstance(author, Author) for author in authors):
            raise TypeError(f"{typename} 'authors' must be an iterable of authors")
        if not isinstance(flags, FlagSet | Unset):
            raise TypeError(f"{typename} 'flags' must be a flag-set")
        if not isinstance(commands, CommandSet | Unset):
            raise TypeError(f"{typename} 'commands' must be a command-set")
        if action is not Unset and not callable(action):
            raise TypeError(f"{typename} 'action' must be callable")
        for field, object in (("fallback", fallback), ("default", default), ("echo", echo)):
            if not callable(object):
                raise TypeError(f"{typename} {field!r} must be callable")
        if not isinstance(reporters, Mapping | Unset):
            raise TypeError(f"{typename} 'reporters' must be a mapping")
        if unknown := set(coalesce(reporters, {})) - {"setup", "parse", "action"}:
            raise ValueError(f"{typename} 'reporters' has unknown channels: {", ".join(sorted(unknown))}")

        self._name = name
        self._version = version
        self._tagline = coalesce(tagline, "")
        self._descr = coalesce(descr, "")
        self._authors = authors
        self._usage = coalesce(usage, _USAGE)
        self._flags = coalesce(flags, FlagSet())
        self._commands = coalesce(commands, CommandSet())
        self._action = action
        self._fallback = fallback
        self._default = default
        self._echo = echo
        self._reporters = dict.fromkeys(("setup", "parse", "action"), report) | dict(coalesce(reporters, {}))

    def check(self):
        """
        Validate the global flags, then the commands (raises SchemaError).
        """
        self._flags.check()
        self._commands.check()

    def run(self, tokens=Unset, /):
        """
        Dispatch tokens (default: sys.argv[1:]) and return the exit status.

        Returns 0 on success; otherwise the status of the reported error, when
        the reporter returns instead of exiting.
        """
        tokens = list(coalesce(tokens, sys.argv[1:]))

        for token in tokens:
            if token in ("-h", "--help"):
                if (command := self._commands.get(tokens[0])) is not None:
                    logger.debug("help requested for command %r", command.name)
                    self._echo(command.help(self._name))
                else:
                    logger.debug("help requested for %r", self._name)
                    self._echo(self.help())
                return 0
            if token in ("-v", "--version"):
                logger.debug("version requested for %r", self._name)
                self._echo(str(self))
                return 0

        try:
            self.check()
            if tokens and (command := self._commands.get(tokens[0])) is not None:
                logger.debug("dispatching to command %r", command.name)
                command.run(tokens[1:], prog=self._name, echo=self._echo, default=self._default)
            else:
                flags, arguments = self._flags.parse(tokens)
                logger.debug("running %s action", "fallback" if self._action is Unset else "program")
                coalesce(self._action, self._fallback)(flags, arguments)
        except (SchemaError, InputError, ActionError) as error:
            logger.debug("reporting %s through the %r channel", type(error).__name__, error.channel)
            self._reporters[error.channel](self._name, error)
            return error.status

        return 0

    def help(self):
        """
        Render the program help text.

        Sections: NAME, VERSION, DESCRIPTION (optional), AUTHOR(S) (optional),
        USAGE, GLOBAL FLAGS, COMMAND(S) (optional), FLAG(S) (optional).
        """
        lines = ["NAME:", f"\t{self._name} - {self._tagline}" if self._tagline else f"\t{self._name}", ""]
        lines += ["VERSION:", f"\t{self._version}", ""]

        if self._descr:
            lines += ["DESCRIPTION:", f"\t{self._descr}", ""]

        if self._authors:
            lines += [heading("AUTHOR", len(self._authors))]
            lines += [f"\t{author}" for author in self._authors]
            lines += [""]

        lines += ["USAGE:", f"\t{self._name} {self._usage}", ""]
        lines += ["GLOBAL FLAGS:", *_GLOBAL_FLAGS, ""]

        if self._commands:
            lines += [heading("COMMAND", len(self._commands)), self._commands.help("\t")]

        if self._flags:
            lines += [heading("FLAG", len(self._flags)), self._flags.help("\t")]

        return "\n".join(lines).rstrip("\n")

    def __str__(self):
        """
        Version text: "name version".
        """
        return f"{self._name} {self._version}"

    def __invoke__(self, prompt=Unset):
        """
        Run the program from a prompt and return the exit status.

        - Unset: sys.argv[1:].
        - str: split with shlex.split (shell quoting rules).
        - Iterable[str]: used token by token, unchanged.
        """
        if prompt is Unset:
            return self.run()
        if isinstance(prompt, str):
            return self.run(shlex.split(prompt))
        if isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("__invoke__() argument must be a string or an iterable of strings")
            return self.run(tokens)
        raise TypeError("__invoke__() argument must be a string or an iterable of strings")


def invoke(object, prompt=Unset, /):
    """
    Run anything implementing __invoke__ (a Program) and return its exit status.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)
    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method")


__all__ = (
    "Author",
    "Program",
    "helpless",
    "echo",
    "invoke",
)
