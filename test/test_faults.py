"""
Faults module tests (codes, replacement, triggering, host hooks).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import unittest
from unittest import TestCase, mock

from clilib import faults
from clilib.faults import (
    FaultCode,
    CommandException,
    OptionParseError,
    MissingOptionError,
    trigger,
    getdoc,
)


class TestFaults(TestCase):

    def testEveryKindDerivesFromBase(self):
        for name in faults.__all__:
            object = getattr(faults, name)
            if isinstance(object, type) and name.endswith("Error"):
                self.assertTrue(issubclass(object, CommandException), name)

    def testCodesAreUnique(self):
        self.assertEqual(len(set(FaultCode)), len(FaultCode))

    def testNormalizeUsesHostMapping(self):
        self.assertEqual(FaultCode.OPTION_PARSE.normalize(), "21302")
        with mock.patch("__main__.__codes__", {FaultCode.OPTION_PARSE: "E-PARSE"}, create=True):
            self.assertEqual(FaultCode.OPTION_PARSE.normalize(), "E-PARSE")

    def testGetdocUsesHostMapping(self):
        self.assertIsNone(getdoc(FaultCode.OUT_OF_BOUNDS))
        with mock.patch("__main__.__docs__", {FaultCode.OUT_OF_BOUNDS: "bounds"}, create=True):
            self.assertEqual(getdoc(FaultCode.OUT_OF_BOUNDS), "bounds")
        with self.assertRaises(TypeError):
            getdoc(21304)

    def testReplaceMergesOptions(self):
        fault = OptionParseError("boom", code=FaultCode.OPTION_PARSE, expected=1)
        changed = copy.replace(fault, actual=0)
        self.assertIsInstance(changed, OptionParseError)
        self.assertEqual(str(changed), "boom")
        self.assertEqual(dict(changed.options), {"code": FaultCode.OPTION_PARSE, "expected": 1, "actual": 0})
        self.assertNotIn("actual", fault.options)

    def testOptionsAreReadOnly(self):
        fault = MissingOptionError("missing", name="x")
        with self.assertRaises(TypeError):
            fault.options["name"] = "y"

    def testTriggerRaisesReplacedFault(self):
        with self.assertRaises(MissingOptionError) as context:
            trigger(MissingOptionError("missing"), name="x")
        self.assertEqual(context.exception.options["name"], "x")

    def testTriggerInShellModeExits(self):
        with mock.patch.object(faults.console, "print") as printer:
            with self.assertRaises(SystemExit) as context:
                trigger(MissingOptionError("missing"), shell=True)
        self.assertEqual(context.exception.code, 1)
        printer.assert_called_once()

    def testTriggerRejectsPlainExceptions(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("nope"))

    def testPlainRenderingWithoutTool(self):
        fault = OptionParseError("boom", code=FaultCode.OPTION_PARSE, hint="try again")
        with faults.console.capture() as capture:
            faults.console.print(fault)
        output = capture.get()
        self.assertIn("clilib", output)
        self.assertIn("boom", output)
        self.assertIn("try again", output)


if __name__ == "__main__":
    unittest.main()
