# Copyright Red Hat
#
# schemadrift/schema/conforms.py - Schema drift conformance checks
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Schema conformance validation.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from schemadrift import META_KEY, SHAPE_KEY
from schemadrift.diff.equals import TYPES, equals, is_tree

from .schema import Schema


@dataclass
class ValidationResult:
    """
    The outcome of a validation: ``passed`` is ``False`` if any errors
    were recorded.
    """

    #: ``True`` if no errors were found
    passed: bool = True
    #: Non-fatal findings
    warnings: List[str] = field(default_factory=list)
    #: Validation failures
    errors: List[str] = field(default_factory=list)

    def __bool__(self):
        return self.passed

    def warn(self, msg: str):
        """Record a warning."""
        self.warnings.append(msg)

    def error(self, msg: str):
        """Record an error and mark this result as failed."""
        self.errors.append(msg)
        self.passed = False


def coerce(value: Any, type_name: Optional[str], choices=None) -> Any:
    """
    Coerce ``value`` to schema type ``type_name``, or to the matching
    member of ``choices``.

    :param value: The value to coerce.
    :param type_name: The schema type name.
    :type type_name: ``Optional[str]``
    :param choices: The permitted values, if any.
    :returns: The coerced value.
    """
    if type_name == "boolean":
        if isinstance(value, str):
            return value.lower() == "true"
        if not isinstance(value, bool) and value in (0, 1):
            return bool(value)
    elif type_name == "number":
        if isinstance(value, str):
            number = float(value)
            return int(number) if number.is_integer() and "." not in value else number
    elif type_name == "string":
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    if choices:
        return next((c for c in choices if equals(value, c, strict=False)), value)
    return value


def _field_label(prefix: Optional[str], name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _check_value(
    definition: Mapping,
    obj: Mapping,
    name: str,
    label: str,
    strict: bool,
    allow_incomplete: bool,
    results: ValidationResult,
):
    # pylint: disable=too-many-arguments
    value = obj[name]
    type_name = definition.get("type")
    choices = definition.get("choices")
    shape = definition.get(SHAPE_KEY)

    if choices:
        if TYPES["mixed"](value, True, choices):
            return
        if not strict and TYPES["mixed"](value, False, choices):
            obj[name] = value = coerce(value, type_name, choices)
        else:
            joined = ",".join(str(c) for c in choices)
            results.error(
                f"{label}: value [{value}] is not in the list of permitted values [{joined}]"
            )
            return

    if shape is not None:
        if isinstance(shape, Schema):
            shape = shape.tree()
        if not is_tree(value):
            results.error(f"{label}: value is not an object.")
            return
        conforms(shape, value, strict, allow_incomplete, results, label)
        return

    if not type_name or type_name not in TYPES:
        return

    if TYPES[type_name](value, True, choices):
        return

    if not strict and TYPES[type_name](value, False, choices):
        obj[name] = coerce(value, type_name)
    else:
        results.error(f"{label}: value is not a valid {type_name}.")


def conforms(
    schema: Union[Schema, Mapping],
    obj: Mapping,
    strict: bool = True,
    allow_incomplete: bool = False,
    results: Optional[ValidationResult] = None,
    prefix: Optional[str] = None,
) -> ValidationResult:
    """
    Check whether ``obj`` conforms to ``schema``.

    Keys not defined by the schema are reported as warnings. A missing
    required field is an error unless it has a default, or unless
    ``allow_incomplete`` is set and the field is not ``configurable``, in
    which case it is a warning. In non-strict mode values that can be
    coerced to the field's type or to one of its choices are rewritten in
    place.

    :param schema: The schema or schema tree.
    :param obj: The data object to check.
    :type obj: ``Mapping``
    :param strict: ``False`` to accept and coerce compatible values.
    :type strict: ``bool``
    :param allow_incomplete: ``True`` to permit missing required fields that
                             are not ``configurable``.
    :type allow_incomplete: ``bool``
    :param results: An existing result to add findings to.
    :param prefix: The key path of ``obj`` within the top-level object.
    :returns: The validation result.
    :rtype: ``ValidationResult``
    """
    # pylint: disable=too-many-arguments
    if results is None:
        results = ValidationResult()
    tree = schema.tree() if isinstance(schema, Schema) else schema

    for key in obj:
        if key not in tree or key == META_KEY:
            results.warn(f"{_field_label(prefix, key)}: not-in-schema property.")

    for name, definition in tree.items():
        if name == META_KEY or not is_tree(definition):
            continue
        meta = definition.get(META_KEY) or {}
        label = _field_label(prefix, name)

        if obj.get(name) is None:
            if meta.get("required"):
                if definition.get("default") is not None:
                    results.warn(f"{label}: missing (required, but with default value specified).")
                elif allow_incomplete and not meta.get("configurable"):
                    results.warn(
                        f"{label}: missing (required, permitted through allow_incomplete)."
                    )
                else:
                    results.error(f"{label}: required field missing.")
            else:
                results.warn(f"{label}: missing (but not required).")
            continue

        _check_value(definition, obj, name, label, strict, allow_incomplete, results)

    return results


def inflate(obj: dict) -> dict:
    """
    Convert a flat object with dotted keys (``{"a.b": 1}``) into a nested
    object (``{"a": {"b": 1}}``) in place. Objects that already contain
    nested values are left unchanged.

    :param obj: The object to inflate.
    :type obj: ``dict``
    :returns: ``obj``
    """
    if any(is_tree(value) for value in obj.values()):
        return obj
    if not any("." in key for key in obj):
        return obj
    flat = dict(obj)
    obj.clear()
    for key, value in flat.items():
        level = obj
        *nesting, leaf = key.split(".")
        for term in nesting:
            level = level.setdefault(term, {})
        level[leaf] = value
    return obj


def validate(
    schema: Union[Schema, Mapping],
    obj: dict,
    strict: bool = True,
    allow_incomplete: bool = False,
) -> ValidationResult:
    """
    Inflate ``obj`` if it is a flat dotted-key payload and check whether it
    conforms to ``schema``.

    :param schema: The schema or schema tree.
    :param obj: The data object to check.
    :type obj: ``dict``
    :param strict: ``False`` to accept and coerce compatible values.
    :type strict: ``bool``
    :param allow_incomplete: ``True`` to permit missing required fields that
                             are not ``configurable``.
    :type allow_incomplete: ``bool``
    :returns: The validation result.
    :rtype: ``ValidationResult``
    """
    inflate(obj)
    return conforms(schema, obj, strict, allow_incomplete)


__all__ = [
    "ValidationResult",
    "coerce",
    "conforms",
    "inflate",
    "validate",
]
