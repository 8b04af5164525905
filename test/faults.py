"""
Fault taxonomy tests (codes, messages, rendering, trigger, replacement).

Conventions
- Test method names follow CamelCase per project convention.
"""
import copy
import io
import sys
import unittest
from contextlib import redirect_stderr
from unittest import TestCase, mock

from rich.console import Console

from clibu import FaultCode, CommandException, ParsingError, ValidationError
from clibu import CommandNotFoundError, OptionConflictError, HandlerError, trigger, getdoc


def render(renderable, /):
    buffer = io.StringIO()
    Console(file=buffer, width=200, color_system=None).print(renderable)
    return buffer.getvalue()


class TestCodes(TestCase):

    def testStableCodes(self):
        self.assertEqual(ParsingError("x").code, "E_PARSE")
        self.assertEqual(ValidationError("x").code, "E_VALIDATE")
        self.assertEqual(CommandNotFoundError(["a"]).code, "E_COMMAND_NOT_FOUND")
        self.assertEqual(OptionConflictError("a").code, "E_OPTION_CONFLICT")
        self.assertEqual(HandlerError("x").code, "E_HANDLER")

    def testHierarchy(self):
        for fault in (ParsingError("x"), ValidationError("x"), CommandNotFoundError(["a"]), OptionConflictError("a")):
            with self.subTest(fault=type(fault).__name__):
                self.assertIsInstance(fault, CommandException)

    def testHostRelabelling(self):
        with mock.patch.object(sys.modules["__main__"], "__codes__", {FaultCode.PARSE: "PARSE"}, create=True):
            self.assertEqual(FaultCode.PARSE.normalize(), "PARSE")
        self.assertEqual(FaultCode.PARSE.normalize(), "E_PARSE")

    def testGetdoc(self):
        self.assertIsNone(getdoc(FaultCode.VALIDATE))
        with mock.patch.object(sys.modules["__main__"], "__docs__", {FaultCode.VALIDATE: "bad value"}, create=True):
            self.assertEqual(getdoc(FaultCode.VALIDATE), "bad value")
        with self.assertRaises(TypeError):
            getdoc("E_VALIDATE")


class TestMessages(TestCase):

    def testCommandNotFound(self):
        fault = CommandNotFoundError(("remote", "rename"))
        self.assertEqual(str(fault), "Command not found: remote rename")
        self.assertEqual(fault.path, ("remote", "rename"))

    def testOptionConflict(self):
        fault = OptionConflictError("verbose", "kind mismatch in command 'build'")
        self.assertEqual(fault.message, "Option conflict 'verbose': kind mismatch in command 'build'")
        self.assertEqual(fault.option, "verbose")
        self.assertEqual(OptionConflictError("verbose").message, "Option conflict 'verbose'")

    def testHandlerErrorKeepsException(self):
        error = RuntimeError("boom")
        fault = copy.replace(HandlerError("Command 'go' failed", exception=error), shell=True)
        self.assertIs(fault.exception, error)
        self.assertIsNone(HandlerError("x").exception)

    def testMessageMustBeString(self):
        with self.assertRaises(TypeError):
            ParsingError(42)


class TestRendering(TestCase):

    def testPlain(self):
        output = render(ParsingError("Unknown option: --x", hint="did you mean '--y'?"))
        self.assertIn("[E_PARSE] Unknown option: --x", output)
        self.assertIn("did you mean '--y'?", output)

    def testFancy(self):
        output = render(copy.replace(ValidationError("Required option missing: --mode"), fancy=True))
        self.assertIn("E_VALIDATE", output)
        self.assertIn("Validation Error", output)
        self.assertIn("Required option missing: --mode", output)


class TestTrigger(TestCase):

    def testRaisesOutsideShell(self):
        with self.assertRaises(ParsingError) as context:
            trigger(ParsingError("boom"), hint="h")
        self.assertEqual(context.exception.hint, "h")

    def testPrintsInShell(self):
        buffer = io.StringIO()
        with redirect_stderr(buffer):
            trigger(CommandNotFoundError(["deploy"]), shell=True, colorful=False)
        self.assertIn("[E_COMMAND_NOT_FOUND] Command not found: deploy", buffer.getvalue())

    def testReplaceKeepsArguments(self):
        fault = copy.replace(CommandNotFoundError(["a", "b"]), hint="x")
        self.assertEqual(fault.path, ("a", "b"))
        self.assertEqual(fault.hint, "x")
        conflict = copy.replace(OptionConflictError("v", "detail"), shell=True)
        self.assertEqual(conflict.detail, "detail")
        self.assertTrue(conflict.options["shell"])

    def testRejectsNonTriggerables(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("x"))


if __name__ == "__main__":
    unittest.main()
