# Copyright Red Hat
#
# tests/diff/test_hashing.py - Value hashing and handler name tests.
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest

from schemadrift.diff.hashing import (
    ValueHasher,
    camel_case,
    handler_names,
    value_hash,
)
from schemadrift.diff.optypes import OpType


class TestValueHasher(unittest.TestCase):
    def test_unknown_algorithm(self):
        with self.assertRaises(ValueError):
            ValueHasher("crc32")

    def test_equal_values_hash_equal(self):
        self.assertEqual(
            value_hash({"a": 1, "b": {"c": [1, 2]}}),
            value_hash({"b": {"c": [1, 2]}, "a": 1}),
        )
        self.assertEqual(value_hash({"a": 1, "b": None}), value_hash({"a": 1}))
        self.assertEqual(value_hash(1), value_hash(1.0))

    def test_types_hash_differently(self):
        hashes = {value_hash(v) for v in (1, "1", True, [1], {"1": 1}, None)}
        self.assertEqual(len(hashes), 6)

    def test_algorithms(self):
        self.assertEqual(len(ValueHasher("md5").hash("x")), 32)
        self.assertEqual(len(ValueHasher("sha1").hash("x")), 40)
        self.assertEqual(len(ValueHasher().hash("x")), 64)
        self.assertEqual(len(ValueHasher("sha512").hash("x")), 128)

    def test_callables_hash_by_name(self):
        def validator(value):
            return bool(value)

        self.assertEqual(value_hash({"v": validator}), value_hash({"v": validator}))
        self.assertNotEqual(value_hash({"v": validator}), value_hash({"v": len}))


class TestHandlerNames(unittest.TestCase):
    def test_camel_case(self):
        self.assertEqual(camel_case("name"), "Name")
        self.assertEqual(camel_case("allow_chat"), "AllowChat")
        self.assertEqual(camel_case("profile.shape.name"), "ProfileShapeName")
        self.assertEqual(camel_case("a__b..c"), "ABC")
        self.assertEqual(camel_case("name", namespace="user"), "UserName")
        self.assertEqual(camel_case(""), "")

    def test_add_remove_update(self):
        self.assertEqual(handler_names(OpType.ADD, key="admin"), ("addAdmin", "rollbackAdmin"))
        self.assertEqual(
            handler_names(OpType.REMOVE, key="profile.name"),
            ("removeProfileName", "rollbackProfileName"),
        )
        self.assertEqual(handler_names(OpType.UPDATE, key="x"), ("updateX", "rollbackX"))

    def test_move_rename(self):
        self.assertEqual(
            handler_names(OpType.RENAME, old_key="allow_chat", new_key="allow_chats"),
            ("renameAllowChatAllowChats", "rollbackAllowChatAllowChats"),
        )
        self.assertEqual(
            handler_names(OpType.MOVE, old_key="a", new_key="c.b"),
            ("moveAToCB", "rollbackAToCB"),
        )
