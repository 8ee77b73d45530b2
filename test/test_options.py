"""
Options module behavioral tests (naming rules, schema checks, mutation).

Scope
- Validate the naming rules for short names, long names and synonyms.
- Validate arity, bounds and relational consistency checks.
- Validate rebuilding through copy.replace and value recording.
- Validate plain argument bounds.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Option, PlainArgument, ArgumentType, OptionValue).
"""

from __future__ import annotations

import copy
import unittest
from unittest import TestCase

from clilib import Option, PlainArgument, ArgumentType, OptionValue
from clilib.faults import (
    FaultCode,
    InvalidNameError,
    OptionDefinitionError,
    OutOfBoundsError,
)


class TestOptionNames(TestCase):
    """Naming rules enforced on construction."""

    def testValidLongNamesAccepted(self):
        for name in ("ab", "output", "dry-run", "x1", "été"):
            self.assertEqual(Option(long=name).long, name)

    def testInvalidLongNamesRejected(self):
        for name in ("", "o", "1abc", "-abc", "*abc", "/abc", ".abc", " abc", "\tabc", "ab cd", "ab\ncd"):
            with self.subTest(name=name), self.assertRaises(InvalidNameError):
                Option(long=name)

    def testShortNameMustBeSingleCharacter(self):
        self.assertEqual(Option("o").short, "o")
        with self.assertRaises(InvalidNameError):
            Option("out")
        with self.assertRaises(InvalidNameError):
            Option("")

    def testShortNameCannotBeDigitOrReserved(self):
        for name in ("1", "-", "*", " ", "\0"):
            with self.subTest(name=name), self.assertRaises(InvalidNameError):
                Option(name)

    def testNullNameRaisesInvalidName(self):
        with self.assertRaises(InvalidNameError) as context:
            Option(None, "output")
        self.assertEqual(context.exception.code, FaultCode.INVALID_NAME)
        self.assertEqual(context.exception.options["kind"], "short")

    def testNonStringNameRaisesTypeError(self):
        with self.assertRaises(TypeError):
            Option(5)

    def testOptionRequiresAtLeastOneName(self):
        with self.assertRaises(OptionDefinitionError):
            Option()

    def testNameCannotRepeatSynonym(self):
        with self.assertRaises(InvalidNameError):
            Option("o", "output", synonyms=("out", "o"))
        with self.assertRaises(InvalidNameError):
            Option("o", "output", synonyms=("output",))

    def testRepeatedSynonymRejected(self):
        with self.assertRaises(InvalidNameError):
            Option("o", synonyms=("out", "out"))

    def testSynonymsFollowNamingRules(self):
        with self.assertRaises(InvalidNameError):
            Option("o", synonyms=("9out",))
        self.assertEqual(Option("o", synonyms=["x", "out"]).synonyms, ("x", "out"))

    def testNamesCollectsEveryAlias(self):
        option = Option("o", "output", synonyms=("out",))
        self.assertEqual(option.names, {"o", "output", "out"})
        self.assertEqual(Option(long="output").names, {"output"})


class TestOptionSchema(TestCase):
    """Arity, bounds and relational consistency."""

    def testDefaults(self):
        option = Option("v")
        self.assertIsNone(option.long)
        self.assertEqual(option.type, ArgumentType.STRING)
        self.assertEqual(option.nargs, 0)
        self.assertFalse(option.parametric)
        self.assertIsNone(option.minval)
        self.assertIsNone(option.maxval)
        self.assertIsNone(option.descr)
        self.assertEqual(option.values, ())

    def testNegativeArgumentCountRejected(self):
        with self.assertRaises(OptionDefinitionError) as context:
            Option("o", nargs=-1)
        self.assertEqual(context.exception.options["nargs"], -1)

    def testParametricWithZeroArityRejected(self):
        with self.assertRaises(OptionDefinitionError):
            Option("o", parametric=True)

    def testInconsistentBoundsRejected(self):
        with self.assertRaises(OptionDefinitionError):
            Option("o", nargs=1, parametric=True, minval=5, maxval=1)
        self.assertEqual(Option("o", minval=3, maxval=3).minval, 3)

    def testBooleanBoundsRejected(self):
        with self.assertRaises(TypeError):
            Option("o", minval=True)

    def testTypeMustBeArgumentType(self):
        with self.assertRaises(TypeError):
            Option("o", type=int)

    def testEmptyDescriptionRejected(self):
        with self.assertRaises(ValueError):
            Option("o", descr="   ")
        self.assertEqual(Option("o", descr="  output file ").descr, "output file")

    def testRequiredAndIncompatibleOverlapByIdentity(self):
        other = Option("a")
        with self.assertRaises(OptionDefinitionError):
            Option("b", requires=[other], incompatible=[other])

    def testRequiredAndIncompatibleOverlapByName(self):
        with self.assertRaises(OptionDefinitionError):
            Option("b", requires=[Option("a")], incompatible=[Option("a", "alpha")])
        with self.assertRaises(OptionDefinitionError):
            Option("b", requires=[Option(long="alpha")], incompatible=[Option("z", "alpha")])

    def testDisjointRelationsAccepted(self):
        first, second = Option("a"), Option("c")
        option = Option("b", requires=[first], incompatible=[second])
        self.assertEqual(option.requires, (first,))
        self.assertEqual(option.incompatible, (second,))

    def testRelationsMustContainOptions(self):
        with self.assertRaises(TypeError):
            Option("b", requires=["a"])

    def testDuplicateRelationsRejected(self):
        other = Option("a")
        with self.assertRaises(ValueError):
            Option("b", requires=[other, other])


class TestOptionMutation(TestCase):
    """Rebuilding through copy.replace and value storage."""

    def testReplaceBuildsValidatedCopy(self):
        option = Option("o", "output", nargs=1, parametric=True)
        changed = copy.replace(option, nargs=2)
        self.assertIsNot(changed, option)
        self.assertEqual(changed.nargs, 2)
        self.assertEqual(changed.names, option.names)
        self.assertEqual(option.nargs, 1)

    def testReplaceKeepsUnsetFields(self):
        option = Option(long="output")
        self.assertIsNone(copy.replace(option, descr="where to write").short)

    def testReplaceRejectsInvalidResult(self):
        option = Option("o", "output", nargs=1, parametric=True)
        with self.assertRaises(OptionDefinitionError):
            copy.replace(option, nargs=0)
        with self.assertRaises(InvalidNameError):
            copy.replace(option, long="1st")

    def testSchemaIsReadOnly(self):
        option = Option("o")
        with self.assertRaises(AttributeError):
            option.nargs = 3

    def testRecordAndClear(self):
        option = Option("o", nargs=2, parametric=True)
        option.record(OptionValue(ArgumentType.STRING, "a"))
        option.record(OptionValue(ArgumentType.STRING, "b"))
        self.assertEqual([value.data for value in option.values], ["a", "b"])
        option.clear()
        self.assertEqual(option.values, ())

    def testRecordRequiresOptionValue(self):
        with self.assertRaises(TypeError):
            Option("o").record("a")

    def testStringRendering(self):
        self.assertEqual(str(Option("o", "output")), "--output")
        self.assertEqual(str(Option("o")), "-o")
        self.assertEqual(str(OptionValue(ArgumentType.INTEGER, 42)), "42")
        self.assertIn("output", repr(Option("o", "output")))


class TestPlainArgument(TestCase):
    """Bounds of unnamed arguments."""

    def testUnboundedPlainAccepted(self):
        plain = PlainArgument("anything goes")
        self.assertEqual(str(plain), "anything goes")
        self.assertIsNone(plain.minval)

    def testNumericPlainUsesValueBounds(self):
        self.assertEqual(PlainArgument("7", 0, 10).value, "7")
        with self.assertRaises(OutOfBoundsError):
            PlainArgument("42", 0, 10)

    def testTextPlainUsesLengthBounds(self):
        self.assertEqual(PlainArgument("abc", 1, 3).value, "abc")
        with self.assertRaises(OutOfBoundsError):
            PlainArgument("abcd", 1, 3)
        with self.assertRaises(OutOfBoundsError):
            PlainArgument("abc", maxval=2)

    def testInconsistentBoundsRejected(self):
        with self.assertRaises(OptionDefinitionError):
            PlainArgument("abc", 5, 1)

    def testPlainValueMustBeString(self):
        with self.assertRaises(TypeError):
            PlainArgument(42)


if __name__ == "__main__":
    unittest.main()
