# Copyright Red Hat
#
# schemadrift/diff/patch.py - Schema drift tree patch engine
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree patch engine.

Applies an ``OperationList`` to a concrete tree, with a ``ChangeHandler``
controlling which keys are skipped, how key paths are rewritten, and how
values are transformed on the way in.
"""
from collections import namedtuple
from copy import deepcopy
from typing import Any, Callable, Dict, Iterable, Optional, Union
import logging

from schemadrift import SCHEMADRIFT_SUBSYSTEM_PATCH, StructuralMismatchError

from .equals import is_tree
from .operation import Operation, OperationList
from .optypes import OpType

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_patch(msg, *args, **kwargs):
    """A wrapper for patch subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SCHEMADRIFT_SUBSYSTEM_PATCH}, **kwargs)


#: A resolved key path: the mapping holding the leaf, and the leaf's name.
Position = namedtuple("Position", ["level", "prop_name"])

#: Handler hook: called as ``hook(operation, position)``, or as
#: ``hook(operation, old_position, new_position)`` for moves and renames.
Hook = Callable[..., None]


def resolve(target: Any, key_path: str, create: bool = True) -> Optional[Position]:
    """
    Resolve the parent mapping of ``key_path`` within ``target``.

    :param target: The tree to resolve ``key_path`` in.
    :param key_path: A dotted key path.
    :type key_path: ``str``
    :param create: ``True`` to create missing intermediate trees.
    :type create: ``bool``
    :returns: The resolved ``Position``, or ``None`` if an intermediate tree
              is missing and ``create`` is ``False``.
    :rtype: ``Optional[Position]``
    :raises StructuralMismatchError: If a key path component addresses a
                                     value that is not a tree.
    """
    nesting = key_path.split(".")
    prop_name = nesting.pop()
    level = target
    if not is_tree(level):
        raise StructuralMismatchError(
            f"Cannot resolve '{key_path}': target is not a tree ({type(level).__name__})"
        )
    for term in nesting:
        child = level.get(term)
        if child is None:
            if not create:
                return None
            child = level[term] = {}
        elif not is_tree(child):
            raise StructuralMismatchError(
                f"Cannot resolve '{key_path}': '{term}' holds a "
                f"{type(child).__name__}, not a tree"
            )
        level = child
    return Position(level, prop_name)


def _never_ignore(_key: str, _op_type: OpType) -> bool:
    return False


def _identity_key(key: str) -> str:
    return key


def _identity_value(_key: str, value: Any) -> Any:
    return value


class ChangeHandler:
    """
    Apply single operations to a tree under a set of policies:

    * ``ignore_key(key, op_type)``: return ``True`` to skip the operation
      for ``key``.
    * ``filter_key_string(key)``: return the key path to apply the
      operation at, or a false value to skip it.
    * ``transform_value(key, value)``: return the value to assign for an
      add or update.

    Handler hooks are looked up by the operation's ``fn`` name in the
    ``hooks`` mapping. ``compute_diff()`` gives each operation of a diff a
    distinct ``fn`` name. A hook runs after an add has been assigned, and
    before a remove, update, move or rename changes the tree, so that it
    can capture the outgoing value.
    """

    def __init__(
        self,
        ignore_key: Optional[Callable[[str, OpType], bool]] = None,
        filter_key_string: Optional[Callable[[str], Optional[str]]] = None,
        transform_value: Optional[Callable[[str, Any], Any]] = None,
        hooks: Optional[Dict[str, Hook]] = None,
    ):
        self.ignore_key = ignore_key or _never_ignore
        self.filter_key_string = filter_key_string or _identity_key
        self.transform_value = transform_value or _identity_value
        self.hooks: Dict[str, Hook] = dict(hooks or {})

    def hook_for(self, operation: Operation) -> Optional[Hook]:
        """
        Return the hook registered for ``operation``, if any.

        :param operation: The operation being applied.
        :type operation: ``Operation``
        :returns: The hook callable or ``None``.
        """
        if not operation.fn:
            return None
        return self.hooks.get(operation.fn)

    def _target_key(self, key: str, op_type: OpType) -> Optional[str]:
        if self.ignore_key(key, op_type):
            return None
        return self.filter_key_string(key) or None

    def _add(self, target: Any, operation: Operation):
        key = self._target_key(operation.key, operation.type)
        if not key:
            return
        position = resolve(target, key)
        value = self.transform_value(operation.key, operation.value)
        position.level[position.prop_name] = deepcopy(value)
        if hook := self.hook_for(operation):
            hook(operation, position)

    def _remove(self, target: Any, operation: Operation):
        key = self._target_key(operation.key, operation.type)
        if not key:
            return
        position = resolve(target, key, create=False)
        if position is None:
            return
        if hook := self.hook_for(operation):
            hook(operation, position)
        position.level.pop(position.prop_name, None)

    def _update(self, target: Any, operation: Operation):
        key = self._target_key(operation.key, operation.type)
        if not key:
            return
        position = resolve(target, key)
        if hook := self.hook_for(operation):
            hook(operation, position)
        value = self.transform_value(operation.key, operation.new_value)
        position.level[position.prop_name] = deepcopy(value)

    def _relocate(self, target: Any, operation: Operation):
        old_key = self._target_key(operation.old_key, operation.type)
        new_key = self._target_key(operation.new_key, operation.type)
        if not old_key or not new_key:
            return
        old_position = resolve(target, old_key, create=False)
        if old_position is None or old_position.prop_name not in old_position.level:
            _log_debug_patch(
                "Skipping %s: '%s' not present", operation.type.value, old_key
            )
            return
        new_position = resolve(target, new_key)
        if hook := self.hook_for(operation):
            hook(operation, old_position, new_position)
        value = old_position.level.pop(old_position.prop_name)
        new_position.level[new_position.prop_name] = value

    def __call__(self, target: Any, operation: Operation):
        """
        Apply ``operation`` to ``target`` in place.

        :param target: The tree to modify.
        :param operation: The operation to apply.
        :type operation: ``Operation``
        """
        _log_debug_patch("Applying %s", operation)
        if operation.type == OpType.ADD:
            self._add(target, operation)
        elif operation.type == OpType.REMOVE:
            self._remove(target, operation)
        elif operation.type == OpType.UPDATE:
            self._update(target, operation)
        else:
            self._relocate(target, operation)


def make_change_handler(
    ignore_key: Optional[Callable[[str, OpType], bool]] = None,
    filter_key_string: Optional[Callable[[str], Optional[str]]] = None,
    transform_value: Optional[Callable[[str, Any], Any]] = None,
    hooks: Optional[Dict[str, Hook]] = None,
) -> ChangeHandler:
    """
    Create a ``ChangeHandler``. Omitted policies default to the identity:
    no keys are ignored, key paths are used as-is, and values are assigned
    unchanged.

    :returns: A new ``ChangeHandler``.
    :rtype: ``ChangeHandler``
    """
    return ChangeHandler(
        ignore_key=ignore_key,
        filter_key_string=filter_key_string,
        transform_value=transform_value,
        hooks=hooks,
    )


def apply_diff(
    operations: Union[OperationList, Iterable[Operation]],
    target: Any,
    change_handler: Optional[ChangeHandler] = None,
) -> Any:
    """
    Apply ``operations`` to ``target`` in order, modifying it in place.

    :param operations: The operations to apply.
    :type operations: ``OperationList``
    :param target: The tree to modify.
    :param change_handler: An optional change handler (the default handler
                           applies operations unchanged).
    :type change_handler: ``Optional[ChangeHandler]``
    :returns: ``target``
    :raises StructuralMismatchError: If an operation addresses a key path
                                     through a value that is not a tree.
    """
    change_handler = change_handler or make_change_handler()
    for operation in operations:
        change_handler(target, operation)
    return target


def reverse_diff(operations: OperationList) -> OperationList:
    """
    Reverse ``operations`` in place so that it rolls back the changes it
    previously described. Reversing twice restores the original list.

    :param operations: The operations to reverse.
    :type operations: ``OperationList``
    :returns: ``operations``
    :rtype: ``OperationList``
    """
    if isinstance(operations, OperationList):
        return operations.reverse()
    operations.reverse()
    for operation in operations:
        operation.reverse()
    return operations


__all__ = [
    "ChangeHandler",
    "Position",
    "apply_diff",
    "make_change_handler",
    "resolve",
    "reverse_diff",
]
