"""
Argument grammar tests (slots, definition parsing, name splitting).

Scope
- Validate slot parsing: required/optional, types, list and variadic markers.
- Validate grammar rejections: required after optional, slots after a
  variadic one, malformed tokens, environment restrictions.
- Validate split_arguments on command names and option flags.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import unittest
from unittest import TestCase

from arbor import ArgumentSlot, GrammarError, parse_definition, split_arguments


class TestParseDefinition(TestCase):
    """Behavioral tests for the argument mini-grammar."""

    def testRequiredAndOptionalKeepOrder(self):
        slots = parse_definition("<source:string> [target:number]")
        self.assertEqual([slot.name for slot in slots], ["source", "target"])
        self.assertEqual([slot.type for slot in slots], ["string", "number"])
        self.assertEqual([slot.optional for slot in slots], [False, True])

    def testTypeDefaultsToString(self):
        slot, = parse_definition("<name>")
        self.assertEqual(slot.type, "string")
        self.assertFalse(slot.list)
        self.assertFalse(slot.variadic)

    def testVariadicPrefixIsStripped(self):
        slot, = parse_definition("<...files:string>")
        self.assertEqual(slot.name, "files")
        self.assertTrue(slot.variadic)

    def testVariadicSuffixIsStripped(self):
        head, tail = parse_definition("<head> [rest...]")
        self.assertFalse(head.variadic)
        self.assertEqual(tail.name, "rest")
        self.assertTrue(tail.variadic)

    def testShortNamesAreNotVariadic(self):
        slot, = parse_definition("<...>")
        self.assertEqual(slot.name, "...")
        self.assertFalse(slot.variadic)

    def testListSuffixMarksListSlot(self):
        slot, = parse_definition("<tags:string[]>")
        self.assertTrue(slot.list)
        self.assertEqual(slot.split("a,b,c"), ["a", "b", "c"])

    def testEmptyDefinitionHasNoSlots(self):
        self.assertEqual(parse_definition(""), ())
        self.assertEqual(parse_definition("   "), ())

    def testEmptyNamesAreDropped(self):
        slots = parse_definition("<name> [:string]")
        self.assertEqual([slot.name for slot in slots], ["name"])

    def testRequiredAfterOptionalRejected(self):
        with self.assertRaises(GrammarError):
            parse_definition("[optional] <required>")

    def testSecondVariadicRejected(self):
        with self.assertRaises(GrammarError):
            parse_definition("<...first> <...second>")

    def testArgumentAfterVariadicRejected(self):
        with self.assertRaises(GrammarError):
            parse_definition("[...files] [last]")

    def testUnbracketedTokenRejected(self):
        with self.assertRaises(GrammarError):
            parse_definition("<source> target")

    def testMismatchedBracketsRejected(self):
        with self.assertRaises(GrammarError):
            parse_definition("<source]")

    def testNonStringDefinitionRejected(self):
        with self.assertRaises(TypeError):
            parse_definition(None)  # type: ignore[arg-type]

    def testGrammarErrorCarriesCode(self):
        with self.assertRaises(GrammarError) as context:
            parse_definition("[a] <b>")
        self.assertEqual(context.exception.code, 11002)
        self.assertIn("optional", context.exception.message)


class TestEnvironmentDefinition(TestCase):
    """Environment bindings carry exactly one plain required slot."""

    def testSingleRequiredSlotAccepted(self):
        slot, = parse_definition("<port:integer>", env=True)
        self.assertEqual(slot.type, "integer")

    def testOptionalSlotRejected(self):
        with self.assertRaises(GrammarError):
            parse_definition("[port:integer]", env=True)

    def testVariadicSlotRejected(self):
        with self.assertRaises(GrammarError):
            parse_definition("<...ports:integer>", env=True)

    def testSeveralSlotsRejected(self):
        with self.assertRaises(GrammarError):
            parse_definition("<host> <port>", env=True)


class TestArgumentSlot(TestCase):
    """Slot records: validation, rendering and replacement."""

    def testDefinitionRendersBack(self):
        slot = ArgumentSlot("files", "string", optional=True, variadic=True, list=True)
        self.assertEqual(slot.definition, "[...files:string[]]")

    def testEmptyNameRejected(self):
        with self.assertRaises(ValueError):
            ArgumentSlot("  ")

    def testNonStringTypeRejected(self):
        with self.assertRaises(TypeError):
            ArgumentSlot("name", 3)  # type: ignore[arg-type]

    def testReplaceKeepsOtherFields(self):
        slot = ArgumentSlot("tags", "string", list=True)
        replaced = copy.replace(slot, separator=";")
        self.assertEqual(replaced.separator, ";")
        self.assertEqual(replaced.name, "tags")
        self.assertTrue(replaced.list)
        self.assertEqual(replaced.split("a;b"), ["a", "b"])
        self.assertIsNone(slot.separator)

    def testReprUsesTypename(self):
        self.assertTrue(repr(ArgumentSlot("name")).startswith("argument-slot("))


class TestSplitArguments(TestCase):
    """Name and flag strings split into parts plus a definition."""

    def testFlagsWithoutDefinition(self):
        self.assertEqual(split_arguments("-v, --verbose"), (["-v", "--verbose"], None))

    def testFlagsWithDefinition(self):
        self.assertEqual(split_arguments("-o, --output <file:string>"), (["-o", "--output"], "<file:string>"))

    def testEqualsSeparatedDefinition(self):
        self.assertEqual(split_arguments("--color=<value:string>"), (["--color"], "<value:string>"))

    def testCommandWithAliasesAndArguments(self):
        self.assertEqual(split_arguments("build b <target> [mode]"), (["build", "b"], "<target> [mode]"))

    def testNonStringRejected(self):
        with self.assertRaises(TypeError):
            split_arguments(["build"])  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
