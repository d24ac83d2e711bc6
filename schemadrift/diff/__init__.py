# Copyright Red Hat
#
# schemadrift/diff/__init__.py - Schema drift tree diff package
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree diff package.

Provides structural comparison of trees as ordered lists of add, remove,
update, move and rename operations, and application and reversal of those
lists. The main entry points are ``create_diff()``, ``apply_diff()`` and
``reverse_diff()``.
"""
from .engine import DiffEngine, create_diff
from .equals import TYPES, equals, is_primitive, is_tree
from .hashing import ValueHasher, camel_case, handler_names, value_hash
from .operation import Operation, OperationList
from .options import DiffOptions
from .optypes import OpType
from .patch import (
    ChangeHandler,
    Position,
    apply_diff,
    make_change_handler,
    resolve,
    reverse_diff,
)
from .similarity import SubtreeMatch, find_subtree, levenshtein

__all__ = [
    "ChangeHandler",
    "DiffEngine",
    "DiffOptions",
    "OpType",
    "Operation",
    "OperationList",
    "Position",
    "SubtreeMatch",
    "TYPES",
    "ValueHasher",
    "apply_diff",
    "camel_case",
    "create_diff",
    "equals",
    "find_subtree",
    "handler_names",
    "is_primitive",
    "is_tree",
    "levenshtein",
    "make_change_handler",
    "resolve",
    "reverse_diff",
    "value_hash",
]
