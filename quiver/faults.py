"""
Quiver faults: error taxonomy, rendering and reporting.

Scope
- QuiverError: base type carrying a message plus structured options, able to
  render itself with rich and to terminate the process when triggered.
- Three families, one per reporting channel:
  • SchemaError ("setup"): the embedding program declared something invalid
    (bad names, duplicates). Always a programming mistake, exit status 3.
  • InputError ("parse"): the user supplied bad arguments (dangling flag,
    missing mandatory flag, no subcommand). Exit status 2.
  • ActionError ("action"): raised by a handler; opaque to quiver. Exit status 1.
- report(prog, error): the default reporter, renders to stderr and exits.
- trigger(fault, **options): merge runtime options into a fault and fire it.

Message format
- "prog: message", the prefix being skipped when the message already names the
  program. Styling is off unless colorful=True is passed; the host may override
  the palette with a __styles__ mapping in __main__.
"""
import copy
import sys
from collections import defaultdict
from types import MappingProxyType

from rich.console import Console
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class QuiverError(Exception):
    """
    Base class of every fault raised or reported by quiver.

    Class attributes
    - channel: which reporter receives the fault ("setup", "parse" or "action").
    - status: process exit status used by the default reporter.

    Instance attributes
    - message: the human-readable message.
    - options: read-only mapping of structured context (flag=, token=, name=, ...)
      plus rendering options (prog=, colorful=) merged in by trigger().
    """
    channel = Unset
    status = 1

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "separator": "#6B6F7A",  # slate colon
            "error-message": "#FF4DA6",  # pinky message
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)

        def styler(style):
            return styles[style] if colorful else ""

        message = Text(self.message, styler("error-message"))
        if not (prog := self.options.get("prog")) or self.message.startswith(prog + ":"):
            return message
        return Text.assemble(Text(prog, styler("prog-name")), Text(": ", styler("separator")), message)

    def __trigger__(self):
        console.print(self, soft_wrap=True)
        sys.exit(self.status)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class SchemaError(QuiverError):
    channel = "setup"
    status = 3


class InvalidNameError(SchemaError):
    """A flag or command name is empty."""


class InvalidCharacterError(SchemaError):
    """A name or alias holds a character other than a letter, number or hyphen."""


class DuplicateFlagError(SchemaError):
    """Two flags of one set share a name or alias."""


class MissingCommandNameError(SchemaError):
    """A command was declared without any name."""


class DuplicateCommandNameError(SchemaError):
    """Two commands share a name or alias."""


class InputError(QuiverError):
    channel = "parse"
    status = 2


class MissingFlagValueError(InputError):
    """The last token selects a flag, leaving it without a value."""


class MissingRequiredFlagError(InputError):
    """A mandatory flag was not supplied."""


class MissingCommandError(InputError):
    """No action to run: raised by the helpless fallback."""


class ActionError(QuiverError):
    """
    Raised by an action to report a failure.

    Quiver never inspects the message; it is rendered as-is by the action
    reporter. Exceptions of any other type propagate out of Program.run.
    """
    channel = "action"
    status = 1


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see QuiverError).
    - options are merged into a copy of the fault via copy.replace() before
      __trigger__ runs; the original fault is left untouched.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def report(prog, error, /, *, colorful=False):
    """
    Default reporter: print "prog: message" to stderr and exit with error.status.
    """
    if not isinstance(error, QuiverError):
        raise TypeError("report() second argument must be a quiver error")
    trigger(error, prog=prog, colorful=colorful)


__all__ = (
    "QuiverError",
    "SchemaError",
    "InvalidNameError",
    "InvalidCharacterError",
    "DuplicateFlagError",
    "MissingCommandNameError",
    "DuplicateCommandNameError",
    "InputError",
    "MissingFlagValueError",
    "MissingRequiredFlagError",
    "MissingCommandError",
    "ActionError",
    "trigger",
    "report",
)
