"""
Program module behavioral tests (dispatch precedence, reporting, help/version).

Scope
- Help/version tokens anywhere suppress every other dispatch.
- Schema errors are reported on the setup channel before any dispatch.
- Subcommands own their flag namespace; global flags are parsed otherwise.
- Fallback/default actions and per-family reporters with their statuses.
- Program help text, version text, and the invoke() runner.

Conventions
- Test method names follow CamelCase per project convention.
- Output and reporters are injected recorders; the default sink and reporter
  are only exercised against in-memory consoles.
"""
import io
import unittest
from unittest import TestCase, mock

from rich.console import Console

from quiver import faults
from quiver import program as program_module
from quiver import (
    Author,
    Command,
    CommandSet,
    Empty,
    Flag,
    FlagSet,
    Program,
    echo,
    helpless,
    invoke,
    ActionError,
    DuplicateCommandNameError,
    InvalidCharacterError,
    MissingCommandError,
    MissingFlagValueError,
    MissingRequiredFlagError,
)


class ProgramTestCase(TestCase):

    def setUp(self):
        self.output = []
        self.reports = []
        self.calls = []

    def recorder(self, channel):
        return lambda prog, error: self.reports.append((channel, prog, error))

    def action(self, label):
        return lambda flags, arguments: self.calls.append((label, flags, arguments))

    def program(self, **options):
        options.setdefault("echo", self.output.append)
        options.setdefault("reporters", {channel: self.recorder(channel) for channel in ("setup", "parse", "action")})
        options.setdefault("commands", CommandSet(
            Command(
                "build",
                "b",
                descr="build it",
                flags=FlagSet(Flag("out", "o", descr="output file", default="a.out")),
                action=self.action("build"),
            ),
            Command("run", "r", descr="run it", action=self.action("run")),
        ))
        options.setdefault("flags", FlagSet(Flag("config", "c", descr="config file", default="tool.toml")))
        options.setdefault("action", self.action("main"))
        return Program("tool", "1.2.3", **options)


class TestHelpAndVersion(ProgramTestCase):

    def testHelpAnywhere(self):
        program = self.program()
        for tokens in (["--help"], ["-h"], ["x", "y", "--help"], ["-c", "-h"]):
            with self.subTest(tokens=tokens):
                self.output.clear()
                self.assertEqual(program.run(tokens), 0)
                self.assertEqual(self.output, [program.help()])
        self.assertEqual(self.calls, [])
        self.assertEqual(self.reports, [])

    def testCommandHelp(self):
        program = self.program()
        self.assertEqual(program.run(["build", "--help"]), 0)
        self.assertEqual(self.output, [program.commands.get("build").help("tool")])
        self.assertEqual(self.calls, [])

    def testCommandHelpViaAliasAndLaterPosition(self):
        program = self.program()
        self.assertEqual(program.run(["b", "-o", "x", "-h"]), 0)
        self.assertEqual(self.output, [program.commands.get("build").help("tool")])
        self.assertEqual(self.calls, [])

    def testVersionAnywhere(self):
        program = self.program()
        for tokens in (["--version"], ["-v"], ["run", "-v"], ["-c", "x", "--version"]):
            with self.subTest(tokens=tokens):
                self.output.clear()
                self.assertEqual(program.run(tokens), 0)
                self.assertEqual(self.output, ["tool 1.2.3"])
        self.assertEqual(self.calls, [])

    def testFirstReservedTokenWins(self):
        program = self.program()
        program.run(["-v", "-h"])
        self.assertEqual(self.output, ["tool 1.2.3"])

    def testHelpDoesNotRequireValidSchema(self):
        program = self.program(flags=FlagSet(Flag("bad_name")))
        self.assertEqual(program.run(["--help"]), 0)
        self.assertEqual(self.reports, [])

    def testDefaultEchoKeepsTabs(self):
        console = Console(file=io.StringIO())
        program = self.program(echo=echo)
        with mock.patch.object(program_module, "console", console):
            self.assertEqual(program.run(["--help"]), 0)
        written = console.file.getvalue()
        self.assertEqual(written, program.help() + "\n")
        self.assertIn("\t--help, -h  \tshow help (with optional subcommand) and exit\n", written)
        self.assertIn("\t--config, -c\tconfig file (\"tool.toml\")", written)

    def testDefaultEchoWritesVersionLine(self):
        console = Console(file=io.StringIO())
        with mock.patch.object(program_module, "console", console):
            self.program(echo=echo).run(["-v"])
        self.assertEqual(console.file.getvalue(), "tool 1.2.3\n")

    def testVersionText(self):
        self.assertEqual(str(self.program()), "tool 1.2.3")


class TestDispatch(ProgramTestCase):

    def testGlobalParseAndAction(self):
        program = self.program()
        self.assertEqual(program.run(["-c", "alt.toml", "x"]), 0)
        self.assertEqual(self.calls, [("main", {"config": "alt.toml"}, ("x",))])

    def testEmptyTokensRunActionWithDefaults(self):
        self.assertEqual(self.program().run([]), 0)
        self.assertEqual(self.calls, [("main", {"config": "tool.toml"}, ())])

    def testSubcommandDispatch(self):
        self.assertEqual(self.program().run(["build", "-o", "main", "src"]), 0)
        self.assertEqual(self.calls, [("build", {"out": "main"}, ("src",))])

    def testSubcommandAlias(self):
        self.program().run(["r", "fast"])
        self.assertEqual(self.calls, [("run", {}, ("fast",))])

    def testSubcommandIgnoresGlobalFlags(self):
        program = self.program(flags=FlagSet(Flag("config", "c")))
        self.assertEqual(program.run(["run", "-c", "x"]), 0)
        self.assertEqual(self.calls, [("run", {}, ("-c", "x"))])

    def testCommandNameOnlyMatchesFirstToken(self):
        self.program().run(["x", "build"])
        self.assertEqual(self.calls, [("main", {"config": "tool.toml"}, ("x", "build"))])

    def testCommandWithoutActionUsesDefault(self):
        commands = CommandSet(Command("idle"))
        self.assertEqual(self.program(commands=commands).run(["idle", "x"]), 0)
        self.assertEqual(self.calls, [])
        self.program(commands=commands, default=self.action("default")).run(["idle", "x"])
        self.assertEqual(self.calls, [("default", {}, ("x",))])

    def testDefaultsToArgv(self):
        with mock.patch("sys.argv", ["tool", "run", "now"]):
            self.assertEqual(self.program().run(), 0)
        self.assertEqual(self.calls, [("run", {}, ("now",))])


class TestReporting(ProgramTestCase):

    def testSetupErrorBeforeDispatch(self):
        commands = CommandSet(Command("run", "r"), Command("r"))
        self.assertEqual(self.program(commands=commands).run(["run"]), 3)
        (channel, prog, error), = self.reports
        self.assertEqual((channel, prog), ("setup", "tool"))
        self.assertIsInstance(error, DuplicateCommandNameError)
        self.assertEqual(self.calls, [])

    def testGlobalFlagsCheckedFirst(self):
        program = self.program(flags=FlagSet(Flag("bad name")), commands=CommandSet(Command()))
        self.assertEqual(program.run([]), 3)
        self.assertIsInstance(self.reports[0][2], InvalidCharacterError)

    def testParseErrorOnGlobalFlags(self):
        self.assertEqual(self.program().run(["x", "-c"]), 2)
        (channel, _, error), = self.reports
        self.assertEqual(channel, "parse")
        self.assertIsInstance(error, MissingFlagValueError)
        self.assertEqual(self.calls, [])

    def testParseErrorInSubcommand(self):
        commands = CommandSet(Command("deploy", flags=FlagSet(Flag("target")), action=self.action("deploy")))
        self.assertEqual(self.program(commands=commands).run(["deploy"]), 2)
        self.assertIsInstance(self.reports[0][2], MissingRequiredFlagError)
        self.assertEqual(self.calls, [])

    def testFallbackWithoutAction(self):
        self.assertEqual(self.program(action=helpless).run(["x"]), 2)
        (channel, _, error), = self.reports
        self.assertEqual(channel, "parse")
        self.assertIsInstance(error, MissingCommandError)
        self.assertEqual(error.message, 'use the "--help" global flag')

    def testUnsetActionUsesFallback(self):
        program = Program(
            "tool",
            "1.2.3",
            echo=self.output.append,
            fallback=self.action("fallback"),
        )
        self.assertEqual(program.run(["x"]), 0)
        self.assertEqual(self.calls, [("fallback", {}, ("x",))])

    def testActionErrorReportedOnActionChannel(self):
        def fail(flags, arguments):
            raise ActionError("disk full")

        self.assertEqual(self.program(action=fail).run([]), 1)
        (channel, _, error), = self.reports
        self.assertEqual(channel, "action")
        self.assertEqual(str(error), "disk full")

    def testCommandActionErrorReportedOnActionChannel(self):
        def fail(flags, arguments):
            raise ActionError("boom")

        commands = CommandSet(Command("explode", action=fail))
        self.assertEqual(self.program(commands=commands).run(["explode"]), 1)
        self.assertEqual(self.reports[0][0], "action")

    def testForeignExceptionsPropagate(self):
        def crash(flags, arguments):
            raise RuntimeError("bug")

        with self.assertRaises(RuntimeError):
            self.program(action=crash).run([])
        self.assertEqual(self.reports, [])

    def testDefaultReporterExits(self):
        console = Console(file=io.StringIO(), width=200, color_system=None)
        program = self.program(reporters={})
        with mock.patch.object(faults, "console", console):
            with self.assertRaises(SystemExit) as context:
                program.run(["x", "--config"])
        self.assertEqual(context.exception.code, 2)
        self.assertEqual(console.file.getvalue(), 'tool: no corresponding value for flag: "--config"\n')

    def testPartialReportersMergeWithDefault(self):
        def fail(flags, arguments):
            raise ActionError("nope")

        program = self.program(action=fail, reporters={"action": self.recorder("action")})
        self.assertEqual(program.run([]), 1)
        self.assertEqual(self.reports[0][0], "action")

    def testUnknownReporterChannel(self):
        with self.assertRaises(ValueError):
            self.program(reporters={"other": self.recorder("other")})


class TestProgramHelp(ProgramTestCase):

    def testFullHelp(self):
        program = Program(
            "tool",
            "1.2.3",
            tagline="does things",
            descr="A demo.",
            authors=[Author("Ada", "ada@example.com"), Author("Bob")],
            commands=CommandSet(Command("run", "r", descr="run it"), Command("build", descr="build it")),
            flags=FlagSet(Flag("config", "c", descr="config file", default="tool.toml")),
        )
        self.assertEqual(
            program.help(),
            "NAME:\n"
            "\ttool - does things\n"
            "\n"
            "VERSION:\n"
            "\t1.2.3\n"
            "\n"
            "DESCRIPTION:\n"
            "\tA demo.\n"
            "\n"
            "AUTHORS:\n"
            "\tAda <ada@example.com>\n"
            "\tBob\n"
            "\n"
            "USAGE:\n"
            "\ttool [global flags...] [command] [flags and values...] [arguments...]\n"
            "\n"
            "GLOBAL FLAGS:\n"
            "\t--help, -h  \tshow help (with optional subcommand) and exit\n"
            "\t--version, -v  \tshow version and exit\n"
            "\n"
            "COMMANDS:\n"
            "\trun, r\trun it\n"
            "\tbuild \tbuild it\n"
            "\n"
            "FLAG:\n"
            '\t--config, -c\tconfig file ("tool.toml")',
        )

    def testMinimalHelp(self):
        program = Program("tool", "0.1", usage="FILE", authors=[Author("Ada")])
        self.assertEqual(
            program.help(),
            "NAME:\n\ttool\n\n"
            "VERSION:\n\t0.1\n\n"
            "AUTHOR:\n\tAda\n\n"
            "USAGE:\n\ttool FILE\n\n"
            "GLOBAL FLAGS:\n"
            "\t--help, -h  \tshow help (with optional subcommand) and exit\n"
            "\t--version, -v  \tshow version and exit",
        )

    def testPluralFlagsAndSingularCommand(self):
        program = Program(
            "tool",
            "0.1",
            commands=CommandSet(Command("run")),
            flags=FlagSet(Flag("a", default=Empty), Flag("b", default="x")),
        )
        self.assertIn("COMMAND:\n\trun\t\n", program.help())
        self.assertTrue(program.help().endswith('FLAGS:\n\t--a\t ("")\n\t--b\t ("x")'))


class TestConstruction(ProgramTestCase):

    def testTypeChecks(self):
        with self.assertRaises(TypeError):
            Program("tool", 1)
        with self.assertRaises(TypeError):
            Program("tool", "1", authors=["Ada"])
        with self.assertRaises(TypeError):
            Program("tool", "1", flags=[Flag("a")])
        with self.assertRaises(TypeError):
            Program("tool", "1", echo=None)

    def testAuthorString(self):
        self.assertEqual(str(Author("Ada", "ada@example.com")), "Ada <ada@example.com>")
        self.assertEqual(str(Author("Ada")), "Ada")

    def testIntrospection(self):
        program = self.program(authors=[Author("Ada")])
        self.assertEqual(program.name, "tool")
        self.assertEqual(program.version, "1.2.3")
        self.assertEqual([str(author) for author in program.authors], ["Ada"])
        self.assertIsInstance(program.authors, tuple)
        self.assertEqual(program.usage, "[global flags...] [command] [flags and values...] [arguments...]")


class TestInvoke(ProgramTestCase):

    def testShellString(self):
        self.assertEqual(invoke(self.program(), "build -o 'my file' src"), 0)
        self.assertEqual(self.calls, [("build", {"out": "my file"}, ("src",))])

    def testTokenIterable(self):
        self.assertEqual(invoke(self.program(), iter(["run", " spaced "])), 0)
        self.assertEqual(self.calls, [("run", {}, (" spaced ",))])

    def testReturnsReportedStatus(self):
        self.assertEqual(invoke(self.program(), "x -c"), 2)

    def testRejectsNonInvocable(self):
        with self.assertRaises(TypeError):
            invoke(object(), "x")

    def testRejectsNonStringTokens(self):
        with self.assertRaises(TypeError):
            invoke(self.program(), ["run", 3])


if __name__ == "__main__":
    unittest.main()
