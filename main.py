import sys

from rich.pretty import pprint

from quiver import *


def build(flags, arguments):
    if not arguments:
        raise ActionError("nothing to build")
    echo(f"building {", ".join(arguments)} into {flags["out"]}")


program = Program(
    "demo",
    "0.1.0",
    tagline="a quiver demo",
    authors=[Author("Quiver Developers")],
    flags=FlagSet(Flag("config", "c", descr="configuration file", default="demo.toml")),
    commands=CommandSet(
        Command(
            "build",
            "b",
            descr="build the given sources",
            flags=FlagSet(Flag("out", "o", metavar="FILE", descr="output file", default="a.out")),
            action=build,
        ),
        Command("inspect", descr="print the program declaration", action=lambda flags, arguments: pprint(program)),
    ),
)


if __name__ == '__main__':
    sys.exit(program.run())
