"""
Utility helpers tests (sentinel, coalesce, integer parsing, ordinals).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from clilib.utils import Unset, UnsetType, coalesce, integer, inbounds, ordinal, rename


class TestUnset(TestCase):

    def testSingletonAndFalsey(self):
        self.assertIs(UnsetType(), Unset)
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testNotSubclassable(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnionInIsinstance(self):
        self.assertTrue(isinstance(Unset, int | Unset))
        self.assertTrue(isinstance(3, int | Unset))
        self.assertFalse(isinstance("3", int | Unset))

    def testCoalescePreservesFalseyValues(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 5), 0)


class TestHelpers(TestCase):

    def testIntegerIsStrict(self):
        self.assertEqual(integer("0042"), 42)
        self.assertEqual(integer("-7"), -7)
        self.assertEqual(integer("+7"), 7)
        for text in ("", " 1", "1_000", "٣", "4.2", "0x10", "-"):
            with self.subTest(text=text):
                self.assertIs(integer(text), Unset)

    def testInboundsTreatsNoneAsOpen(self):
        self.assertTrue(inbounds(5))
        self.assertTrue(inbounds(5, 5, 5))
        self.assertFalse(inbounds(4, 5))
        self.assertFalse(inbounds(6, None, 5))

    def testOrdinal(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(103), "103rd")
        self.assertEqual(ordinal(113), "113th")

    def testRename(self):
        @rename("renamed")
        def function():
            pass
        self.assertEqual(function.__name__, "renamed")
        with self.assertRaises(TypeError):
            rename(1, 2, 3)


if __name__ == "__main__":
    unittest.main()
