# Copyright Red Hat
#
# schemadrift/diff/operation.py - Schema drift diff operations
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree diff operation data model.
"""
from copy import deepcopy
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union
import json

from .optypes import OpType

#: Operation fields in serialization order
_OPERATION_FIELDS = (
    "key",
    "old_key",
    "new_key",
    "value",
    "old_value",
    "new_value",
    "fn",
    "rollback",
    "stable",
    "value_hash",
)


class Operation:
    """
    A single structural change between two trees.
    """

    # pylint: disable=too-many-instance-attributes
    # pylint: disable=too-many-arguments
    def __init__(
        self,
        op_type: OpType,
        key: Optional[str] = None,
        value: Any = None,
        old_value: Any = None,
        new_value: Any = None,
        old_key: Optional[str] = None,
        new_key: Optional[str] = None,
        fn: Optional[str] = None,
        rollback: Optional[str] = None,
        stable: Optional[bool] = None,
        value_hash: Optional[str] = None,
    ):
        """
        Initialise a new ``Operation``.

        :param op_type: The type of this operation.
        :type op_type: ``OpType``
        :param key: The dotted key path for add, remove and update.
        :type key: ``Optional[str]``
        :param value: The added or removed value.
        :param old_value: The previous value for an update.
        :param new_value: The replacement value for an update.
        :param old_key: The source key path for move and rename.
        :type old_key: ``Optional[str]``
        :param new_key: The destination key path for move and rename.
        :type new_key: ``Optional[str]``
        :param fn: The handler name for this operation.
        :type fn: ``Optional[str]``
        :param rollback: The rollback handler name for this operation.
        :type rollback: ``Optional[str]``
        :param stable: ``False`` while this operation is a relocation
                       candidate.
        :type stable: ``Optional[bool]``
        :param value_hash: The digest of ``value`` used to pair relocation
                           candidates.
        :type value_hash: ``Optional[str]``
        """
        self.type = OpType(op_type)
        self.key = key
        self.value = value
        self.old_value = old_value
        self.new_value = new_value
        self.old_key = old_key
        self.new_key = new_key
        self.fn = fn
        self.rollback = rollback
        self.stable = stable
        self.value_hash = value_hash

    def __str__(self) -> str:
        """
        Return a human readable string representation of this operation.

        :returns: A human readable string.
        :rtype: ``str``
        """
        if self.type in (OpType.MOVE, OpType.RENAME):
            return f"{self.type.value} {self.old_key} -> {self.new_key}"
        if self.type == OpType.UPDATE:
            return f"update {self.key}: {self.old_value!r} -> {self.new_value!r}"
        return f"{self.type.value} {self.key}"

    def __repr__(self) -> str:
        """
        Return a machine readable string representation of this operation.

        :returns: ``Operation`` constructor style string.
        :rtype: ``str``
        """
        args = ", ".join(
            f"{name}={value!r}" for name, value in self.to_dict().items() if name != "type"
        )
        return f"Operation({self.type}, {args})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Operation):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this operation to a JSON compatible dictionary. Fields that
        are not set are omitted.

        :returns: A dictionary mapping field names to values.
        :rtype: ``Dict[str, Any]``
        """
        op_dict = {"type": self.type.value}
        for name in _OPERATION_FIELDS:
            value = getattr(self, name)
            if value is not None:
                op_dict[name] = deepcopy(value)
        return op_dict

    @classmethod
    def from_dict(cls, op_dict: Dict[str, Any]) -> "Operation":
        """
        Initialise an ``Operation`` from a dictionary as returned by
        ``to_dict()``.

        :param op_dict: The operation dictionary.
        :type op_dict: ``Dict[str, Any]``
        :returns: A new ``Operation`` instance.
        :rtype: ``Operation``
        """
        kwargs = {
            name: deepcopy(op_dict[name]) for name in _OPERATION_FIELDS if name in op_dict
        }
        return cls(OpType(op_dict["type"]), **kwargs)

    def json(self, pretty: bool = False) -> str:
        """
        Return a JSON representation of this operation.

        :param pretty: ``True`` to indent the output.
        :type pretty: ``bool``
        :returns: A JSON string.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)

    def reverse(self):
        """
        Reverse this operation in place: swap the handler names, turn an
        add into a remove (and vice versa), and swap the old and new values
        and keys.
        """
        self.fn, self.rollback = self.rollback, self.fn
        if self.type == OpType.ADD:
            self.type = OpType.REMOVE
        elif self.type == OpType.REMOVE:
            self.type = OpType.ADD
        elif self.type == OpType.UPDATE:
            self.old_value, self.new_value = self.new_value, self.old_value
        elif self.type in (OpType.MOVE, OpType.RENAME):
            self.old_key, self.new_key = self.new_key, self.old_key


class OperationList:
    """
    Ordered container of tree diff operations with formatting methods.
    """

    def __init__(self, operations: Optional[Iterable[Operation]] = None):
        self._operations: List[Operation] = list(operations or [])

    def __repr__(self) -> str:
        """
        Return a machine-readable representation of this instance.

        :returns: ``OperationList`` constructor style string.
        :rtype: ``str``
        """
        return f"OperationList({self._operations!r})"

    def __str__(self) -> str:
        return "\n".join(str(op) for op in self._operations)

    # List-like interface
    def __iter__(self) -> Iterator[Operation]:
        """
        Implement iter(self).
        """
        return iter(self._operations)

    def __len__(self):
        """
        Implement len(self).
        """
        return len(self._operations)

    def __getitem__(self, index: int) -> Operation:
        """
        Return self[index]

        :param index: The index to return.
        :type index: ``int``
        """
        return self._operations[index]

    def __eq__(self, other) -> bool:
        if isinstance(other, OperationList):
            return self._operations == other._operations
        if isinstance(other, list):
            return self._operations == other
        return NotImplemented

    def reverse(self) -> "OperationList":
        """
        Reverse this list in place: reverse the operation order and reverse
        each operation. Reversing twice restores the original list.

        :returns: This ``OperationList``.
        :rtype: ``OperationList``
        """
        self._operations.reverse()
        for operation in self._operations:
            operation.reverse()
        return self

    def _of_type(self, op_type: OpType) -> List[Operation]:
        return [op for op in self._operations if op.type == op_type]

    # Summary properties
    @property
    def added(self) -> List[Operation]:
        """
        Return add operations in this ``OperationList``.

        :returns: Operations with ``OpType.ADD`` type.
        :rtype: ``List[Operation]``
        """
        return self._of_type(OpType.ADD)

    @property
    def removed(self) -> List[Operation]:
        """
        Return remove operations in this ``OperationList``.

        :returns: Operations with ``OpType.REMOVE`` type.
        :rtype: ``List[Operation]``
        """
        return self._of_type(OpType.REMOVE)

    @property
    def updated(self) -> List[Operation]:
        """
        Return update operations in this ``OperationList``.

        :returns: Operations with ``OpType.UPDATE`` type.
        :rtype: ``List[Operation]``
        """
        return self._of_type(OpType.UPDATE)

    @property
    def moved(self) -> List[Operation]:
        """
        Return move operations in this ``OperationList``.

        :returns: Operations with ``OpType.MOVE`` type.
        :rtype: ``List[Operation]``
        """
        return self._of_type(OpType.MOVE)

    @property
    def renamed(self) -> List[Operation]:
        """
        Return rename operations in this ``OperationList``.

        :returns: Operations with ``OpType.RENAME`` type.
        :rtype: ``List[Operation]``
        """
        return self._of_type(OpType.RENAME)

    # Output formats
    def keys(self) -> List[str]:
        """
        Return the key paths changed by this ``OperationList``: the
        destination key for moves and renames.

        :returns: Key path list.
        :rtype: ``List[str]``
        """
        return [op.new_key if op.key is None else op.key for op in self._operations]

    def to_list(self) -> List[Dict[str, Any]]:
        """
        Convert this ``OperationList`` to a list of operation dictionaries.

        :returns: A list of ``Operation.to_dict()`` values.
        :rtype: ``List[Dict[str, Any]]``
        """
        return [op.to_dict() for op in self._operations]

    @classmethod
    def from_list(
        cls, op_list: Iterable[Union[Dict[str, Any], Operation]]
    ) -> "OperationList":
        """
        Initialise an ``OperationList`` from a list of operation
        dictionaries as returned by ``to_list()``.

        :param op_list: The operation dictionaries.
        :returns: A new ``OperationList`` instance.
        :rtype: ``OperationList``
        """
        return cls(
            op if isinstance(op, Operation) else Operation.from_dict(op)
            for op in op_list
        )

    def json(self, pretty: bool = False) -> str:
        """
        Return a JSON representation of this ``OperationList``.

        :param pretty: ``True`` to indent the output.
        :type pretty: ``bool``
        :returns: A JSON string.
        :rtype: ``str``
        """
        return json.dumps(self.to_list(), indent=4 if pretty else None)

    def summary(self) -> str:
        """
        Return a summary of the operations in this ``OperationList``.

        :returns: A multi-line summary string.
        :rtype: ``str``
        """
        lines = [f"Total operations: {len(self)}"]
        for op_type in OpType:
            count = len(self._of_type(op_type))
            if count:
                lines.append(f"  {op_type.value}: {count}")
        return "\n".join(lines)


__all__ = [
    "Operation",
    "OperationList",
]
