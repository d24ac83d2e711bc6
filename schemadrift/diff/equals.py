# Copyright Red Hat
#
# schemadrift/diff/equals.py - Schema drift equality and type predicates
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Deep structural equality and primitive type predicates.

Keys whose value is ``None`` are treated as absent when comparing trees, and
in non-strict mode primitive values are compared with coercion: ``1`` equals
``"1"`` and ``True`` equals ``1``.
"""
from collections.abc import Iterable, Mapping
from numbers import Number
from typing import Any, Callable, Dict, Optional, Sequence

#: Sequence types that are treated as opaque primitive values
_SEQUENCE_TYPES = (list, tuple)


def _is_number(value: Any) -> bool:
    """
    Return ``True`` if ``value`` is a number that is not a ``bool``.
    """
    return isinstance(value, Number) and not isinstance(value, bool)


def is_primitive(value: Any) -> bool:
    """
    Return ``True`` if ``value`` is a primitive for diff purposes: a
    boolean, number, string, ``None`` or a list or tuple of values.

    :param value: The value to test.
    :returns: ``True`` if ``value`` is primitive, or ``False`` otherwise.
    :rtype: ``bool``
    """
    if value is None:
        return True
    return isinstance(value, (bool, Number, str) + _SEQUENCE_TYPES)


def is_tree(value: Any) -> bool:
    """
    Return ``True`` if ``value`` is a tree (a string keyed mapping).

    :param value: The value to test.
    :returns: ``True`` if ``value`` is a ``Mapping``, or ``False`` otherwise.
    :rtype: ``bool``
    """
    return isinstance(value, Mapping)


def _to_number(value: Any) -> Optional[float]:
    """
    Convert ``value`` to a float using loose equality rules, or return
    ``None`` if no numeric interpretation exists.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        try:
            return float(stripped)
        except ValueError:
            return None
    return None


def _loose_equals(value_a: Any, value_b: Any) -> bool:
    """
    Compare two primitives with coercion.
    """
    if value_a is None or value_b is None:
        return value_a is None and value_b is None
    if isinstance(value_a, str) and isinstance(value_b, str):
        return value_a == value_b
    number_a = _to_number(value_a)
    number_b = _to_number(value_b)
    if number_a is None or number_b is None:
        return value_a == value_b
    return number_a == number_b


def _defined_items(tree: Mapping) -> Dict[str, Any]:
    return {key: value for key, value in tree.items() if value is not None}


def _sequence_equals(seq_a: Sequence, seq_b: Sequence, strict: bool) -> bool:
    if len(seq_a) != len(seq_b):
        return False
    return all(equals(a, b, strict) for a, b in zip(seq_a, seq_b))


def _tree_equals(tree_a: Mapping, tree_b: Mapping, strict: bool) -> bool:
    items_a = _defined_items(tree_a)
    items_b = _defined_items(tree_b)
    if items_a.keys() != items_b.keys():
        return False
    return all(equals(items_a[key], items_b[key], strict) for key in items_a)


def equals(value_a: Any, value_b: Any, strict: bool = True) -> bool:
    """
    Deep structural equality.

    Trees compare equal when they hold equal values for the same set of
    keys: key order is irrelevant and keys holding ``None`` are ignored.
    Lists and tuples compare element-wise in order. In strict mode a
    ``bool`` never equals a number.

    :param value_a: The first value.
    :param value_b: The second value.
    :param strict: ``False`` to compare primitives with coercion.
    :type strict: ``bool``
    :returns: ``True`` if the values are equal, or ``False`` otherwise.
    :rtype: ``bool``
    """
    if value_a is value_b:
        return True

    if is_tree(value_a) and is_tree(value_b):
        return _tree_equals(value_a, value_b, strict)

    if isinstance(value_a, _SEQUENCE_TYPES) and isinstance(value_b, _SEQUENCE_TYPES):
        return _sequence_equals(value_a, value_b, strict)

    if is_tree(value_a) or is_tree(value_b):
        return False

    if isinstance(value_a, _SEQUENCE_TYPES) or isinstance(value_b, _SEQUENCE_TYPES):
        return False

    if not strict:
        return _loose_equals(value_a, value_b)

    if isinstance(value_a, bool) != isinstance(value_b, bool):
        return False

    return value_a == value_b


def _is_boolean(value: Any, strict: bool = True, _choices=None) -> bool:
    if isinstance(value, bool):
        return True
    if strict:
        return False
    if _is_number(value):
        return value in (0, 1)
    if isinstance(value, str):
        return value.lower() in ("true", "false")
    return False


def _is_number_type(value: Any, strict: bool = True, _choices=None) -> bool:
    if _is_number(value):
        return True
    if strict or not isinstance(value, str):
        return False
    try:
        float(value)
    except ValueError:
        return False
    return True


def _is_string(value: Any, strict: bool = True, _choices=None) -> bool:
    if isinstance(value, str):
        return True
    if strict:
        return False
    return isinstance(value, (bool, Number))


def _is_array(value: Any, strict: bool = True, _choices=None) -> bool:
    if isinstance(value, _SEQUENCE_TYPES):
        return True
    if strict:
        return False
    return isinstance(value, Iterable) and not isinstance(value, (str, Mapping))


def _is_object(value: Any, _strict: bool = True, _choices=None) -> bool:
    return is_tree(value)


def _is_mixed(value: Any, strict: bool = True, choices=None) -> bool:
    return any(equals(value, choice, strict) for choice in (choices or ()))


#: Type predicates, keyed by schema type name. Each takes
#: ``(value, strict=True, choices=None)``.
TYPES: Dict[str, Callable[..., bool]] = {
    "boolean": _is_boolean,
    "number": _is_number_type,
    "string": _is_string,
    "array": _is_array,
    "object": _is_object,
    "mixed": _is_mixed,
}

#: Default values for the primitive schema types
TYPE_DEFAULTS: Dict[str, Any] = {
    "boolean": False,
    "number": 0,
    "string": "",
}

__all__ = [
    "TYPES",
    "TYPE_DEFAULTS",
    "equals",
    "is_primitive",
    "is_tree",
]
