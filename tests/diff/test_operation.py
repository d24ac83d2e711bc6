# Copyright Red Hat
#
# tests/diff/test_operation.py - Operation and OperationList tests.
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
import json
import unittest

from schemadrift.diff.operation import Operation, OperationList
from schemadrift.diff.optypes import OpType


def _ops():
    return OperationList(
        [
            Operation(OpType.REMOVE, key="name", value="bob", fn="removeName", rollback="rollbackName"),
            Operation(OpType.ADD, key="admin", value=False, fn="addAdmin", rollback="rollbackAdmin"),
            Operation(
                OpType.UPDATE,
                key="age",
                old_value=1,
                new_value=2,
                fn="updateAge",
                rollback="rollbackAge",
            ),
            Operation(
                OpType.RENAME,
                old_key="allow_chat",
                new_key="allow_chats",
                value=True,
                fn="renameAllowChatAllowChats",
                rollback="rollbackAllowChatAllowChats",
            ),
        ]
    )


class TestOperation(unittest.TestCase):
    def test_operation__str__(self):
        ops = _ops()
        self.assertEqual(str(ops[0]), "remove name")
        self.assertEqual(str(ops[2]), "update age: 1 -> 2")
        self.assertEqual(str(ops[3]), "rename allow_chat -> allow_chats")

    def test_operation__repr__(self):
        self.assertIn("key='name'", repr(_ops()[0]))

    def test_to_dict_omits_unset(self):
        op_dict = _ops()[1].to_dict()
        self.assertEqual(
            op_dict,
            {
                "type": "add",
                "key": "admin",
                "value": False,
                "fn": "addAdmin",
                "rollback": "rollbackAdmin",
            },
        )

    def test_from_dict(self):
        for op in _ops():
            self.assertEqual(Operation.from_dict(op.to_dict()), op)

    def test_json(self):
        self.assertEqual(json.loads(_ops()[3].json()), _ops()[3].to_dict())

    def test_reverse_add_remove(self):
        op = _ops()[1]
        op.reverse()
        self.assertEqual(op.type, OpType.REMOVE)
        self.assertEqual(op.fn, "rollbackAdmin")
        self.assertEqual(op.rollback, "addAdmin")
        self.assertEqual(op.value, False)

    def test_reverse_update(self):
        op = _ops()[2]
        op.reverse()
        self.assertEqual((op.old_value, op.new_value), (2, 1))

    def test_reverse_rename(self):
        op = _ops()[3]
        op.reverse()
        self.assertEqual((op.old_key, op.new_key), ("allow_chats", "allow_chat"))


class TestOperationList(unittest.TestCase):
    def test_len_iter_getitem(self):
        ops = _ops()
        self.assertEqual(len(ops), 4)
        self.assertEqual([op.type for op in ops], [OpType.REMOVE, OpType.ADD, OpType.UPDATE, OpType.RENAME])
        self.assertEqual(ops[1].key, "admin")

    def test_equality(self):
        self.assertEqual(_ops(), _ops())
        self.assertEqual(_ops(), list(_ops()))
        self.assertNotEqual(_ops(), OperationList())

    def test_properties(self):
        ops = _ops()
        self.assertEqual(len(ops.added), 1)
        self.assertEqual(len(ops.removed), 1)
        self.assertEqual(len(ops.updated), 1)
        self.assertEqual(len(ops.renamed), 1)
        self.assertEqual(ops.moved, [])

    def test_keys(self):
        self.assertEqual(_ops().keys(), ["name", "admin", "age", "allow_chats"])

    def test_to_list_from_list(self):
        ops = _ops()
        self.assertEqual(OperationList.from_list(ops.to_list()), ops)
        self.assertEqual(json.loads(ops.json()), ops.to_list())

    def test_double_reverse(self):
        ops = _ops()
        ops.reverse().reverse()
        self.assertEqual(ops, _ops())

    def test_reverse_order(self):
        ops = _ops().reverse()
        self.assertEqual(ops[0].type, OpType.RENAME)
        self.assertEqual(ops[-1].type, OpType.ADD)
        self.assertEqual(ops[-1].key, "name")

    def test_summary(self):
        summary = _ops().summary()
        self.assertIn("Total operations: 4", summary)
        self.assertIn("rename: 1", summary)
        self.assertNotIn("move:", summary)

    def test__str__(self):
        self.assertEqual(str(_ops()).splitlines()[1], "add admin")
