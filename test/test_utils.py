"""
Tests for the shared helpers in arbor.utils.

This module verifies:
- The Unset sentinel: singleton identity, falsy semantics, representation,
  union support and finality.
- coalesce() materializing defaults while keeping falsy values.
- rename() in both call forms.
- mirror() returning copies of container fields.
- pluralize() and getenv().
"""
import copy
import os
import unittest
from unittest import TestCase, mock

from arbor.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` sentinel.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the same object reference on every call.
        """
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsy(self) -> None:
        """
        The sentinel is falsy but not equal to other falsy values.
        """
        self.assertFalse(Unset)
        self.assertNotEqual(Unset, None)
        self.assertNotEqual(Unset, False)  # noqa: E712

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testUnionWithTypes(self) -> None:
        """
        `str | Unset` is usable as an isinstance() target.
        """
        self.assertIsInstance("text", str | Unset)
        self.assertIsInstance(Unset, str | Unset)
        self.assertNotIsInstance(3, str | Unset)

    def testCopyPreservesSingleton(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testFinalClass(self) -> None:
        """
        The class is final: attempts to subclass must fail with TypeError.
        """
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})


class HelperTest(TestCase):
    """
    Test suite for the small helpers.
    """

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "x"), "x")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "x"))
        self.assertEqual(coalesce("", "x"), "")
        self.assertEqual(coalesce(0, 1), 0)

    def testRenameDirect(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testRenameDecorator(self) -> None:
        @rename("decorated")
        def function():
            pass

        self.assertEqual(function.__name__, "decorated")

    def testRenameRejectsBadArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename(len, "name")
        with self.assertRaises(TypeError):
            rename()

    def testMirrorCopiesContainers(self) -> None:
        class Record:
            items = mirror("items")

            def __init__(self):
                self._items = [["nested"]]

        record = Record()
        record.items[0].append("changed")
        record.items.append("added")
        self.assertEqual(record.items, [["nested"]])
        with self.assertRaises(AttributeError):
            record.items = []

    def testPluralize(self) -> None:
        self.assertEqual(pluralize(1, "argument"), "argument")
        self.assertEqual(pluralize(2, "argument"), "arguments")
        self.assertEqual(pluralize(0, "alias"), "aliases")
        self.assertEqual(pluralize(3, "entry"), "entries")
        self.assertEqual(pluralize(3, "key"), "keys")

    def testGetenv(self) -> None:
        with mock.patch.dict(os.environ, {"ARBOR_TEST_VALUE": "on"}):
            self.assertEqual(getenv("ARBOR_TEST_VALUE"), "on")
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertIsNone(getenv("ARBOR_TEST_VALUE"))
        self.assertTrue(permitted())


if __name__ == '__main__':
    # Allow running this test module directly: `python -m pytest` or `python test_utils.py`.
    unittest.main()
