"""
CLI runtime tests (conflict checks, invocation flow, hooks).

Scope
- check_conflicts(): kind mismatches and alias collisions at any depth.
- CLI.run()/CLI.invoke(): help, version, faults, handlers and exit statuses.
- Hook dispatch order and configuration extension.

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured by redirecting sys.stdout/sys.stderr (the rich consoles
  resolve their streams at print time).
"""
import asyncio
import copy
import io
import unittest
from contextlib import redirect_stdout, redirect_stderr
from unittest import TestCase

from clibu import CLI, create_cli, check_conflicts, define_config, CommandDef, Hook, HookManager
from clibu import flag, string, number, OptionConflictError, ParsingError, ValidationError, CommandNotFoundError


def greet(context):
    return "hello " + " ".join(context.args)


def crash(context):
    raise RuntimeError("boom")


def refuse(context):
    raise ValidationError("Nothing to deploy")


async def shout(context):
    await asyncio.sleep(0)
    return "HELLO" if context.options.get("loud") else "hello"


CONFIG = define_config({
    "name": "tool",
    "version": "1.2.3",
    "options": {"verbose": flag("Verbose output", alias="v")},
    "commands": {
        "hello": {"description": "Greet user", "run": greet},
        "shout": {"options": {"loud": flag(alias="l")}, "run": shout},
        "quiet": {"run": lambda context: None},
        "idle": {"description": "Nothing to run"},
        "crash": {"run": crash},
        "refuse": {"run": refuse},
        "build": {"options": {"threads": number(required=True)}, "run": greet},
    },
})


def invoke(cli, prompt, /):
    stdout, stderr = io.StringIO(), io.StringIO()
    with redirect_stdout(stdout), redirect_stderr(stderr):
        status = cli.run(prompt)
    return status, stdout.getvalue(), stderr.getvalue()


class TestCheckConflicts(TestCase):

    def testKindMismatch(self):
        config = {
            "name": "tool",
            "options": {"verbose": flag()},
            "commands": {"build": {"options": {"verbose": string()}}},
        }
        with self.assertRaises(OptionConflictError) as context:
            check_conflicts(config)
        self.assertEqual(context.exception.option, "verbose")
        self.assertEqual(context.exception.message, "Option conflict 'verbose': kind mismatch in command 'build'")

    def testAliasCollision(self):
        config = {
            "name": "tool",
            "options": {"verbose": flag(alias="v")},
            "commands": {"build": {"options": {"validate": flag(alias="v")}}},
        }
        with self.assertRaises(OptionConflictError) as context:
            check_conflicts(config)
        self.assertEqual(context.exception.option, "validate")
        self.assertIn("collides with global option 'verbose'", context.exception.message)

    def testSameNameSameAliasAccepted(self):
        check_conflicts({
            "name": "tool",
            "options": {"verbose": flag(alias="v")},
            "commands": {"build": {"options": {"verbose": flag("Louder", alias="v")}}},
        })

    def testNestedCommands(self):
        config = {
            "name": "tool",
            "options": {"verbose": flag()},
            "commands": {"remote": {"commands": {"add": {"options": {"verbose": number()}}}}},
        }
        with self.assertRaises(OptionConflictError) as context:
            check_conflicts(config)
        self.assertIn("'remote add'", context.exception.message)

    def testInheritanceOptOutSkipsChecks(self):
        check_conflicts({
            "name": "tool",
            "options": {"verbose": flag(alias="v")},
            "commands": {"isolated": {"inherit_global": False, "options": {"verbose": string(alias="v")}}},
        })

    def testDuplicateAliasWithinRecord(self):
        with self.assertRaises(OptionConflictError):
            check_conflicts({"name": "tool", "options": {"all": flag(alias="a"), "any": flag(alias="a")}})

    def testConstructionRunsCheck(self):
        with self.assertRaises(OptionConflictError):
            create_cli({
                "name": "tool",
                "options": {"verbose": flag()},
                "commands": {"build": {"options": {"verbose": string()}}},
            })


class TestInvocation(TestCase):

    def setUp(self) -> None:
        self.cli = create_cli(CONFIG, colorful=False)

    def testHandlerResultPrinted(self):
        status, stdout, stderr = invoke(self.cli, ["hello", "--verbose", "world"])
        self.assertEqual(status, 0)
        self.assertEqual(stdout, "hello world\n")
        self.assertEqual(stderr, "")

    def testStringPrompt(self):
        status, stdout, _ = invoke(self.cli, "hello 'big world'")
        self.assertEqual(status, 0)
        self.assertEqual(stdout, "hello big world\n")

    def testAsyncHandler(self):
        status, stdout, _ = invoke(self.cli, ["shout", "-l"])
        self.assertEqual(status, 0)
        self.assertEqual(stdout, "HELLO\n")

    def testNoneResultPrintsNothing(self):
        status, stdout, _ = invoke(self.cli, ["quiet"])
        self.assertEqual(status, 0)
        self.assertEqual(stdout, "")

    def testMissingHandler(self):
        status, stdout, stderr = invoke(self.cli, ["idle"])
        self.assertEqual(status, 1)
        self.assertEqual(stdout, "")
        self.assertIn("Command has no run() handler.", stderr)

    def testParsingFault(self):
        status, _, stderr = invoke(self.cli, ["hello", "--unknown"])
        self.assertEqual(status, 1)
        self.assertIn("[E_PARSE]", stderr)

    def testValidationFault(self):
        status, _, stderr = invoke(self.cli, ["build"])
        self.assertEqual(status, 1)
        self.assertIn("[E_VALIDATE] Required option missing: --threads", stderr)

    def testUnknownCommand(self):
        status, _, stderr = invoke(self.cli, ["deploy"])
        self.assertEqual(status, 1)
        self.assertIn("[E_COMMAND_NOT_FOUND] Command not found: deploy", stderr)

    def testEmptyArgv(self):
        status, _, stderr = invoke(self.cli, [])
        self.assertEqual(status, 1)
        self.assertIn("Command not found: <empty>", stderr)

    def testFaultsPropagateOutsideShell(self):
        cli = create_cli(CONFIG, shell=False)
        with self.assertRaises(ParsingError):
            cli.run(["hello", "--unknown"])
        with self.assertRaises(CommandNotFoundError):
            cli.run(["deploy"])

    def testHandlerExceptionReported(self):
        status, stdout, stderr = invoke(self.cli, ["crash"])
        self.assertEqual(status, 1)
        self.assertEqual(stdout, "")
        self.assertIn("[E_HANDLER] Command 'crash' failed: RuntimeError: boom", stderr)

    def testHandlerFaultReported(self):
        status, _, stderr = invoke(self.cli, ["refuse"])
        self.assertEqual(status, 1)
        self.assertIn("[E_VALIDATE] Nothing to deploy", stderr)

    def testHandlerExceptionPropagatesOutsideShell(self):
        cli = create_cli(CONFIG, shell=False)
        with self.assertRaises(RuntimeError):
            cli.run(["crash"])
        with self.assertRaises(ValidationError):
            cli.run(["refuse"])

    def testRejectsNonStringTokens(self):
        with self.assertRaises(TypeError):
            self.cli.run(["hello", 1])


class TestBuiltinFlags(TestCase):

    def setUp(self) -> None:
        self.cli = create_cli(CONFIG, colorful=False)

    def testVersion(self):
        for prompt in (["--version"], ["hello", "-V"]):
            with self.subTest(prompt=prompt):
                status, stdout, _ = invoke(self.cli, prompt)
                self.assertEqual(status, 0)
                self.assertEqual(stdout, "tool 1.2.3\n")

    def testMissingVersion(self):
        cli = create_cli({"name": "bare", "commands": {"x": {}}}, colorful=False)
        self.assertEqual(invoke(cli, ["-V"])[1], "bare (no version)\n")

    def testRootHelp(self):
        status, stdout, _ = invoke(self.cli, ["--help"])
        self.assertEqual(status, 0)
        self.assertIn("COMMANDS:", stdout)
        self.assertIn("(Use <command> --help for option details)", stdout)

    def testCommandHelp(self):
        status, stdout, _ = invoke(self.cli, ["shout", "-h"])
        self.assertEqual(status, 0)
        self.assertIn("tool shout [options]", stdout)
        self.assertIn("--loud (-l)", stdout)

    def testHelpForUnknownPathFallsBack(self):
        status, stdout, _ = invoke(self.cli, ["deploy", "--help"])
        self.assertEqual(status, 0)
        self.assertIn("COMMANDS:", stdout)

    def testHelpWinsOverVersion(self):
        status, stdout, _ = invoke(self.cli, ["--version", "--help"])
        self.assertEqual(status, 0)
        self.assertIn("USAGE:", stdout)

    def testHelpMethod(self):
        self.assertEqual(self.cli.help(), create_cli(CONFIG).help(()))
        self.assertIn("COMMAND:", self.cli.help(["hello"]))


class Recorder(Hook):

    def __init__(self, events, tag):
        self.events = events
        self.tag = tag

    def on_register(self, config):
        self.events.append((self.tag, "register", config.name))

    def on_parse(self, argv):
        self.events.append((self.tag, "parse", argv))

    async def on_before_run(self, context):
        self.events.append((self.tag, "before", context.command.names))

    def on_after_run(self, context, result):
        self.events.append((self.tag, "after", result))


class Extender(Hook):

    def extend_config(self, config):
        return copy.replace(config, commands=dict(config.commands) | {"ping": CommandDef(run=lambda context: "pong")})


class TestHooks(TestCase):

    def testEventOrder(self):
        events = []
        cli = create_cli(CONFIG, hooks=[Recorder(events, "a"), Recorder(events, "b")], colorful=False)
        status, _, _ = invoke(cli, ["hello", "x"])
        self.assertEqual(status, 0)
        self.assertEqual(events, [
            ("a", "register", "tool"),
            ("b", "register", "tool"),
            ("a", "parse", ("hello", "x")),
            ("b", "parse", ("hello", "x")),
            ("a", "before", ("hello",)),
            ("b", "before", ("hello",)),
            ("a", "after", "hello x"),
            ("b", "after", "hello x"),
        ])

    def testNoRunHooksOnFault(self):
        events = []
        cli = create_cli(CONFIG, hooks=[Recorder(events, "a")], colorful=False)
        invoke(cli, ["build"])
        self.assertNotIn("before", [event for _, event, _ in events])

    def testExtendConfig(self):
        cli = create_cli(CONFIG, hooks=[Extender()], colorful=False)
        self.assertIn("ping", cli.config.commands)
        self.assertEqual(invoke(cli, ["ping"])[1], "pong\n")

    def testFailingHookReported(self):
        class Failing(Hook):
            def on_before_run(self, context):
                raise KeyError("missing")

        events = []
        cli = create_cli(CONFIG, hooks=[Failing(), Recorder(events, "a")], colorful=False)
        status, stdout, stderr = invoke(cli, ["hello", "x"])
        self.assertEqual(status, 1)
        self.assertEqual(stdout, "")
        self.assertIn("[E_HANDLER] Command 'hello' failed: KeyError", stderr)
        self.assertNotIn("after", [event for _, event, _ in events])

    def testRejectsNonHooks(self):
        with self.assertRaises(TypeError):
            HookManager([object()])

    def testRejectsBadExtension(self):
        class Broken(Hook):
            def extend_config(self, config):
                return {"name": "other"}

        with self.assertRaises(TypeError):
            CLI(CONFIG, hooks=[Broken()])


if __name__ == "__main__":
    unittest.main()
