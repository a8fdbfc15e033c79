"""
Flag tokenizer tests (token forms, value consumption, post-scan checks).

Scope
- Validate long/short/inline/clustered forms and the "--" terminator.
- Validate value consumption for required, optional, boolean, variadic and
  list slots.
- Validate defaults, collect/value behaviors and the standalone, conflicts,
  depends and required checks.

Conventions
- Test method names follow CamelCase per project convention.
- Options are built directly; coercion uses the built-in handlers.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from arbor import (
    BooleanType,
    ConflictingOptionError,
    DependingOptionError,
    DuplicateOptionError,
    EmptyArgumentsError,
    IntegerType,
    InvalidValueError,
    MissingOptionValueError,
    MissingRequiredOptionError,
    NumberType,
    OptionDefinition,
    StandaloneOptionError,
    StringType,
    UnknownOptionError,
    isflag,
    parse_flags,
)

HANDLERS = {
    "string": StringType(),
    "number": NumberType(),
    "integer": IntegerType(),
    "boolean": BooleanType(),
}


def coerce(option, argument, value):
    return HANDLERS[argument.type].parse(option, argument, value)


def scan(tokens, *options, **settings):
    return parse_flags(tokens, options=options, parse=coerce, **settings)


class TestTokenForms(TestCase):
    """Recognized token shapes."""

    def testIsFlag(self):
        self.assertTrue(isflag("-v"))
        self.assertTrue(isflag("--verbose"))
        self.assertTrue(isflag("--name=value"))
        self.assertFalse(isflag("-"))
        self.assertFalse(isflag("--"))
        self.assertFalse(isflag("-1"))
        self.assertFalse(isflag("-2.5"))
        self.assertFalse(isflag("value"))

    def testBareFlagIsTrue(self):
        flags, unknown = scan(["--verbose"], OptionDefinition("-v, --verbose"))
        self.assertEqual(flags, {"verbose": True})
        self.assertEqual(unknown, [])

    def testShortAliasUsesCanonicalName(self):
        flags, _ = scan(["-v"], OptionDefinition("-v, --verbose"))
        self.assertEqual(flags, {"verbose": True})

    def testShortOnlyOptionIsNamedByShortFlag(self):
        flags, _ = scan(["-q"], OptionDefinition("-q"))
        self.assertEqual(flags, {"q": True})

    def testInlineValue(self):
        flags, _ = scan(["--port=8080"], OptionDefinition("-p, --port <port:integer>"))
        self.assertEqual(flags, {"port": 8080})

    def testShortInlineValue(self):
        flags, _ = scan(["-p=8080"], OptionDefinition("-p, --port <port:integer>"))
        self.assertEqual(flags, {"port": 8080})

    def testSpacedValue(self):
        flags, unknown = scan(["--name", "web", "rest"], OptionDefinition("--name <name:string>"))
        self.assertEqual(flags, {"name": "web"})
        self.assertEqual(unknown, ["rest"])

    def testClusterOfShortFlags(self):
        flags, _ = scan(
            ["-abc", "value"],
            OptionDefinition("-a"),
            OptionDefinition("-b"),
            OptionDefinition("-c <value:string>"),
        )
        self.assertEqual(flags, {"a": True, "b": True, "c": "value"})

    def testTerminatorMakesRestPositional(self):
        flags, unknown = scan(["--", "--verbose", "x"], OptionDefinition("--verbose"))
        self.assertEqual(flags, {})
        self.assertEqual(unknown, ["--verbose", "x"])

    def testStopEarlyOnFirstPositional(self):
        flags, unknown = scan(["file", "--verbose"], OptionDefinition("--verbose"))
        self.assertEqual(flags, {})
        self.assertEqual(unknown, ["file", "--verbose"])

    def testNoStopEarlyKeepsScanning(self):
        flags, unknown = scan(["file", "--verbose"], OptionDefinition("--verbose"), stop_early=False)
        self.assertEqual(flags, {"verbose": True})
        self.assertEqual(unknown, ["file"])

    def testNegativeNumberIsValue(self):
        flags, _ = scan(["--offset", "-3"], OptionDefinition("--offset <offset:number>"))
        self.assertEqual(flags, {"offset": -3})

    def testUnknownOptionSuggests(self):
        with self.assertRaises(UnknownOptionError) as context:
            scan(["--verbos"], OptionDefinition("--verbose"))
        self.assertIn("--verbose", context.exception.hint)

    def testEmptyInputRejectedWhenNotAllowed(self):
        with self.assertRaises(EmptyArgumentsError):
            scan([], OptionDefinition("--verbose"), allow_empty=False)


class TestValueConsumption(TestCase):
    """Slots take values from inline parts and following tokens."""

    def testMissingRequiredValue(self):
        with self.assertRaises(MissingOptionValueError):
            scan(["--name"], OptionDefinition("--name <name:string>"))

    def testRequiredValueDoesNotTakeFlag(self):
        with self.assertRaises(MissingOptionValueError):
            scan(["--name", "--verbose"], OptionDefinition("--name <name:string>"), OptionDefinition("--verbose"))

    def testOptionalBooleanTakesOnlyLiterals(self):
        flags, unknown = scan(["--force", "file"], OptionDefinition("--force"))
        self.assertEqual(flags, {"force": True})
        self.assertEqual(unknown, ["file"])

        flags, unknown = scan(["--force", "false", "file"], OptionDefinition("--force"))
        self.assertEqual(flags, {"force": False})
        self.assertEqual(unknown, ["file"])

    def testVariadicTakesUntilNextFlag(self):
        flags, _ = scan(
            ["--files", "a", "b", "--verbose"],
            OptionDefinition("--files <...files:string>"),
            OptionDefinition("--verbose"),
        )
        self.assertEqual(flags, {"files": ["a", "b"], "verbose": True})

    def testListSlotSplitsOnSeparator(self):
        flags, _ = scan(["--ports", "80;443"], OptionDefinition("--ports <ports:integer[]>", separator=";"))
        self.assertEqual(flags, {"ports": [80, 443]})

    def testSeveralSlotsGiveList(self):
        flags, _ = scan(["--size", "3", "4"], OptionDefinition("--size <width:integer> <height:integer>"))
        self.assertEqual(flags, {"size": [3, 4]})

    def testClusterInlineValueFeedsLastFlagOnly(self):
        with self.assertRaises(MissingOptionValueError):
            scan(["-ab=1"], OptionDefinition("-a"), OptionDefinition("-b <b:integer> <c:integer>"))

    def testCoercionFailurePropagates(self):
        with self.assertRaises(ValueError):
            scan(["--port", "http"], OptionDefinition("--port <port:integer>"))


class TestBehaviors(TestCase):
    """Defaults, collect, value and the post-scan checks."""

    def testDefaultFillsAbsentOption(self):
        flags, _ = scan([], OptionDefinition("--port <port:integer>", default=8080))
        self.assertEqual(flags, {"port": 8080})

    def testGivenExcludesDefaults(self):
        given = []
        flags, _ = scan(
            ["-v"],
            OptionDefinition("-v, --verbose"),
            OptionDefinition("--port <port:integer>", default=8080),
            given=given,
        )
        self.assertEqual(flags, {"verbose": True, "port": 8080})
        self.assertEqual(given, ["verbose"])

    def testRepeatRejectedWithoutCollect(self):
        with self.assertRaises(DuplicateOptionError):
            scan(["--tag", "a", "--tag", "b"], OptionDefinition("--tag <tag:string>"))

    def testCollectAccumulates(self):
        flags, _ = scan(["--tag", "a", "--tag", "b"], OptionDefinition("--tag <tag:string>", collect=True))
        self.assertEqual(flags, {"tag": ["a", "b"]})

    def testValueReceivesPrevious(self):
        option = OptionDefinition(
            "-v, --verbose",
            collect=True,
            value=lambda value, previous: len(previous or ()) + 1,
        )
        flags, _ = scan(["-v", "-v", "-v"], option)
        self.assertEqual(flags, {"verbose": [1, 2, 3]})

    def testValueFailureIsInvalidValue(self):
        def reject(value, previous):
            raise RuntimeError("nope")

        with self.assertRaises(InvalidValueError) as context:
            scan(["--mode", "x"], OptionDefinition("--mode <mode:string>", value=reject))
        self.assertIsInstance(context.exception.__cause__, RuntimeError)

    def testStandaloneCombinedRejected(self):
        with self.assertRaises(StandaloneOptionError):
            scan(["--help", "--verbose"], OptionDefinition("--help", standalone=True), OptionDefinition("--verbose"))

    def testStandaloneSkipsRequired(self):
        flags, _ = scan(
            ["--help"],
            OptionDefinition("--help", standalone=True),
            OptionDefinition("--token <token:string>", required=True),
        )
        self.assertEqual(flags, {"help": True})

    def testMissingRequiredOption(self):
        with self.assertRaises(MissingRequiredOptionError):
            scan([], OptionDefinition("--token <token:string>", required=True))

    def testConflictingOptions(self):
        with self.assertRaises(ConflictingOptionError):
            scan(
                ["--json", "--yaml"],
                OptionDefinition("--json", conflicts=["yaml"]),
                OptionDefinition("--yaml"),
            )

    def testDependingOptions(self):
        with self.assertRaises(DependingOptionError):
            scan(["--key", "k"], OptionDefinition("--key <key:string>", depends=["--cert"]), OptionDefinition("--cert <cert:string>"))

    def testDependencySatisfiedByDefault(self):
        flags, _ = scan(
            ["--key", "k"],
            OptionDefinition("--key <key:string>", depends=["cert"]),
            OptionDefinition("--cert <cert:string>", default="cert.pem"),
        )
        self.assertEqual(flags, {"key": "k", "cert": "cert.pem"})


if __name__ == "__main__":
    unittest.main()
