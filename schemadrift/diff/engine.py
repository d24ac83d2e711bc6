# Copyright Red Hat
#
# schemadrift/diff/engine.py - Schema drift tree diff engine
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree diff engine
"""
from copy import deepcopy
from typing import Any, List, Optional
import logging

from schemadrift import SCHEMADRIFT_SUBSYSTEM_DIFF

from .equals import equals, is_primitive, is_tree
from .hashing import ValueHasher, handler_names
from .operation import Operation, OperationList
from .optypes import OpType
from .options import DiffOptions
from .similarity import find_subtree

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SCHEMADRIFT_SUBSYSTEM_DIFF}, **kwargs)


def _full_key(key: str, child: str) -> str:
    return f"{key}.{child}" if key else child


def _index_of(operations: List[Operation], operation: Operation) -> int:
    return next(i for i, op in enumerate(operations) if op is operation)


def _discard(operations: List[Operation], operation: Operation):
    del operations[_index_of(operations, operation)]


def _unique_handler_names(operations: List[Operation]):
    """
    Give every operation in ``operations`` distinct ``fn`` and ``rollback``
    names. Distinct key paths can map to the same name (``a_b.c`` and
    ``a.b.c`` both give ``ABC``): later duplicates get a numeric suffix.
    """
    taken = {name for op in operations for name in (op.fn, op.rollback) if name}
    seen = set()
    for operation in operations:
        for attr in ("fn", "rollback"):
            name = getattr(operation, attr)
            if not name:
                continue
            if name in seen:
                suffix = 2
                while f"{name}{suffix}" in taken:
                    suffix += 1
                _log_debug_diff(
                    "Handler name %s already used: renaming to %s%d", name, name, suffix
                )
                name = f"{name}{suffix}"
                setattr(operation, attr, name)
                taken.add(name)
            seen.add(name)


class DiffEngine:
    """
    Core class for generating tree comparisons.

    ``compute_diff()`` walks two trees level by level and returns an
    ``OperationList`` that turns the first tree into the second when
    applied with ``apply_diff()``.
    """

    def __init__(self, options: Optional[DiffOptions] = None):
        """
        Initialise a new ``DiffEngine``.

        :param options: Options controlling rename and move detection.
        :type options: ``Optional[DiffOptions]``
        """
        self.options = options or DiffOptions()
        self.hasher = ValueHasher(self.options.hash_algorithm)

    def _candidate(self, op_type: OpType, key: str, value: Any) -> Operation:
        """
        Build an add or remove operation for ``value`` at ``key``. Non
        primitive values are relocation candidates and are marked unstable.
        """
        fn, rollback = handler_names(op_type, key=key)
        return Operation(
            op_type,
            key=key,
            value=deepcopy(value),
            fn=fn,
            rollback=rollback,
            stable=False if not is_primitive(value) else None,
            value_hash=self.hasher.hash(value),
        )

    @staticmethod
    def _relocation(
        op_type: OpType, removal: Operation, new_key: str
    ) -> Operation:
        fn, rollback = handler_names(op_type, old_key=removal.key, new_key=new_key)
        return Operation(
            op_type,
            old_key=removal.key,
            new_key=new_key,
            value=deepcopy(removal.value),
            fn=fn,
            rollback=rollback,
        )

    def _detect_renames(self, operations: List[Operation]):
        """
        Collapse add/remove pairs within a single tree level that carry the
        same value into rename operations, inserted at the earlier of the
        two positions.

        :param operations: The operations for one tree level.
        :type operations: ``List[Operation]``
        """
        removals = [op for op in operations if op.type == OpType.REMOVE]
        for removal in removals:
            addition = next(
                (
                    op
                    for op in operations
                    if op.type == OpType.ADD and op.value_hash == removal.value_hash
                ),
                None,
            )
            if addition is None:
                continue
            index = min(
                _index_of(operations, removal), _index_of(operations, addition)
            )
            rename = self._relocation(OpType.RENAME, removal, addition.key)
            _discard(operations, removal)
            _discard(operations, addition)
            operations.insert(index, rename)
            _log_debug_diff("Detected rename %s -> %s", removal.key, addition.key)

    def _detect_moves(self, operations: List[Operation]):
        """
        Collapse unmatched relocation candidates into move operations when
        a removed subtree reappears byte-for-byte as an added subtree under
        a different parent. Other near matches are reported but never
        acted upon.

        :param operations: The complete operation list.
        :type operations: ``List[Operation]``
        """
        removals = [
            op for op in operations if op.type == OpType.REMOVE and op.stable is False
        ]
        additions = [
            op for op in operations if op.type == OpType.ADD and op.stable is False
        ]

        for removal in removals:
            if not additions:
                break

            best = None
            best_addition = None
            for addition in additions:
                match = find_subtree(removal.value, addition.value)
                if match is None:
                    continue
                if best is None or match.distance < best.distance:
                    best = match
                    best_addition = addition

            if best is None:
                continue

            if best.distance == 0 and best.path == "":
                index = min(
                    _index_of(operations, removal),
                    _index_of(operations, best_addition),
                )
                move = self._relocation(OpType.MOVE, removal, best_addition.key)
                _discard(operations, removal)
                _discard(operations, best_addition)
                operations.insert(index, move)
                additions.remove(best_addition)
                _log_debug_diff(
                    "Detected move %s -> %s", removal.key, best_addition.key
                )
            else:
                _log_info(
                    "Possible relocation of '%s' to '%s%s' (distance=%d): "
                    "leaving as separate remove and add",
                    removal.key,
                    best_addition.key,
                    best.path,
                    best.distance,
                )

    def _diff_level(self, tree_a: Any, tree_b: Any, key: str = "") -> List[Operation]:
        """
        Compute the operations that turn ``tree_a`` into ``tree_b`` at the
        key path ``key``, recursing into keys present on both sides.
        """
        if equals(tree_a, tree_b):
            return []

        if tree_a is None:
            return [self._candidate(OpType.ADD, key, tree_b)]

        if tree_b is None:
            return [self._candidate(OpType.REMOVE, key, tree_a)]

        if not is_tree(tree_a) or not is_tree(tree_b):
            fn, rollback = handler_names(OpType.UPDATE, key=key)
            return [
                Operation(
                    OpType.UPDATE,
                    key=key,
                    old_value=deepcopy(tree_a),
                    new_value=deepcopy(tree_b),
                    fn=fn,
                    rollback=rollback,
                )
            ]

        keys = sorted(
            {k for k, v in tree_a.items() if v is not None}
            | {k for k, v in tree_b.items() if v is not None}
        )
        operations = [
            self._candidate(OpType.REMOVE, _full_key(key, k), tree_a[k])
            for k in keys
            if tree_b.get(k) is None
        ]
        operations.extend(
            self._candidate(OpType.ADD, _full_key(key, k), tree_b[k])
            for k in keys
            if tree_a.get(k) is None
        )

        if self.options.detect_renames:
            self._detect_renames(operations)

        for k in keys:
            if tree_a.get(k) is not None and tree_b.get(k) is not None:
                operations.extend(self._diff_level(tree_a[k], tree_b[k], _full_key(key, k)))

        return operations

    def compute_diff(self, tree_a: Any, tree_b: Any) -> OperationList:
        """
        Compute the difference between ``tree_a`` and ``tree_b``.

        Within each tree level removals are emitted before additions, each
        in sorted key order, followed by the operations for keys that are
        present on both sides.

        :param tree_a: The original tree.
        :param tree_b: The target tree.
        :returns: The operations that turn ``tree_a`` into ``tree_b``.
        :rtype: ``OperationList``
        """
        if equals(tree_a, tree_b):
            return OperationList()

        operations = self._diff_level(tree_a, tree_b)

        if self.options.detect_moves:
            self._detect_moves(operations)

        _unique_handler_names(operations)

        _log_debug_diff(
            "Computed %d operations (%s)",
            len(operations),
            ", ".join(str(op) for op in operations),
        )
        return OperationList(operations)


def create_diff(
    tree_a: Any, tree_b: Any, options: Optional[DiffOptions] = None
) -> OperationList:
    """
    Compute the difference between ``tree_a`` and ``tree_b``.

    :param tree_a: The original tree.
    :param tree_b: The target tree.
    :param options: Optional diff options.
    :type options: ``Optional[DiffOptions]``
    :returns: The operations that turn ``tree_a`` into ``tree_b``.
    :rtype: ``OperationList``
    """
    return DiffEngine(options).compute_diff(tree_a, tree_b)


__all__ = [
    "DiffEngine",
    "create_diff",
]
