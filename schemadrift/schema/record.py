# Copyright Red Hat
#
# schemadrift/schema/record.py - Schema drift typed records
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Typed record wrapper with validated assignment.
"""
from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Dict, Iterator, Optional, Tuple, Union
import logging

from schemadrift import (
    META_KEY,
    SHAPE_KEY,
    SCHEMADRIFT_SUBSYSTEM_SCHEMA,
    UndefinedKeyError,
    ValidationError,
)
from schemadrift.diff.equals import TYPES, equals, is_tree

from .conforms import ValidationResult, conforms, inflate, validate
from .schema import Schema, schema_to_data

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_schema(msg, *args, **kwargs):
    """A wrapper for schema subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SCHEMADRIFT_SUBSYSTEM_SCHEMA}, **kwargs)


def _flatten(
    obj: Mapping, tree: Optional[Mapping], prefix: str = ""
) -> Iterator[Tuple[str, Any]]:
    """
    Yield (path, value) for each leaf of ``obj``, descending only into
    values whose field definition in ``tree`` has a nested shape.
    """
    for key, value in obj.items():
        path = f"{prefix}.{key}" if prefix else key
        definition = tree.get(key) if is_tree(tree) else None
        shape = definition.get(SHAPE_KEY) if is_tree(definition) else None
        if is_tree(value) and is_tree(shape):
            yield from _flatten(value, shape, path)
        else:
            yield (path, value)


class Record:
    """
    A data record bound to a schema. Values are only assigned through
    ``set()`` (or ``assign()``), which validates each value against its
    field definition first.
    """

    def __init__(self, schema: Union[Schema, Mapping], data: Optional[Mapping] = None):
        """
        Initialise a new ``Record`` from schema defaults, then assign each
        value in ``data``.

        :param schema: The record's schema or schema tree.
        :param data: Initial values, as a nested or flat dotted-key object.
        :type data: ``Optional[Mapping]``
        :raises ValidationError: If a value in ``data`` fails validation.
        """
        self.schema = schema if isinstance(schema, Schema) else None
        self._tree = schema.tree() if isinstance(schema, Schema) else deepcopy(dict(schema))
        self._values = schema_to_data(self._tree)
        self._defaults = deepcopy(self._values)
        if data:
            for path, value in _flatten(inflate(deepcopy(dict(data))), self._tree):
                self.assign(path, value)

    def __repr__(self) -> str:
        return f"Record({self.value()!r})"

    def _definition(self, path: str) -> Dict[str, Any]:
        """
        Return the field definition for dotted ``path``.

        :raises UndefinedKeyError: If ``path`` is not defined by the schema.
        """
        level = self._tree
        definition = None
        for term in path.split("."):
            if level is None or term == META_KEY or term not in level:
                raise UndefinedKeyError(f"{path}: not defined by schema")
            definition = level[term]
            shape = definition.get(SHAPE_KEY) if is_tree(definition) else None
            level = shape if is_tree(shape) else None
        return definition

    def _position(self, path: str) -> Tuple[Dict[str, Any], str]:
        *nesting, leaf = path.split(".")
        level = self._values
        for term in nesting:
            if not is_tree(level.get(term)):
                level[term] = {}
            level = level[term]
        return (level, leaf)

    def get(self, path: str) -> Any:
        """
        Return the value at dotted ``path``.

        :param path: The field key path.
        :type path: ``str``
        :returns: The current value.
        :raises UndefinedKeyError: If ``path`` is not defined by the schema.
        """
        self._definition(path)
        level, leaf = self._position(path)
        return deepcopy(level.get(leaf))

    def check(self, path: str, value: Any) -> ValidationResult:
        """
        Validate ``value`` for the field at ``path`` without assigning it.

        :param path: The field key path.
        :type path: ``str``
        :param value: The candidate value.
        :returns: The validation result.
        :rtype: ``ValidationResult``
        """
        result = ValidationResult()
        try:
            definition = self._definition(path)
        except UndefinedKeyError as err:
            result.error(str(err))
            return result

        meta = definition.get(META_KEY) or {}
        shape = definition.get(SHAPE_KEY)
        if value is None:
            if meta.get("required"):
                result.error(f"{path}: required field cannot be unset.")
            return result

        if is_tree(shape):
            if not is_tree(value):
                result.error(f"{path}: value is not an object.")
                return result
            return conforms(shape, deepcopy(value), True, False, result, path)

        choices = definition.get("choices")
        type_name = definition.get("type")
        if choices and not TYPES["mixed"](value, True, choices):
            joined = ",".join(str(c) for c in choices)
            result.error(
                f"{path}: value [{value}] is not in the list of permitted values [{joined}]"
            )
        elif type_name in TYPES and not TYPES[type_name](value, True, choices):
            result.error(f"{path}: value is not a valid {type_name}.")

        validator = meta.get("validate")
        if result.passed and callable(validator) and not validator(value):
            result.error(f"{path}: value [{value}] failed custom validation.")
        return result

    def set(self, path: str, value: Any) -> ValidationResult:
        """
        Validate ``value`` for the field at ``path`` and assign it if it
        passes.

        :param path: The field key path.
        :type path: ``str``
        :param value: The new value.
        :returns: The validation result.
        :rtype: ``ValidationResult``
        """
        result = self.check(path, value)
        if result.passed:
            level, leaf = self._position(path)
            level[leaf] = deepcopy(value)
            _log_debug_schema("Set %s=%r", path, value)
        return result

    def assign(self, path: str, value: Any):
        """
        Like ``set()``, but raise on validation failure.

        :raises ValidationError: If ``value`` fails validation.
        """
        result = self.set(path, value)
        if not result.passed:
            raise ValidationError(
                f"Cannot assign {path}: {'; '.join(result.errors)}", result.errors
            )

    def _assign_payload(self, payload: Mapping):
        for path, value in _flatten(payload, self._tree):
            try:
                self._definition(path)
            except UndefinedKeyError:
                _log_warn("Ignoring %s: not defined by schema", path)
                continue
            self.assign(path, value)

    def reset(self, payload: Optional[Mapping] = None):
        """
        Reset every field that has a default, or that is not required, to
        its default value. Required fields without a default keep their
        current value. If ``payload`` is given its values are assigned
        after the reset.

        :param payload: Values to assign after resetting, as a nested or
                        flat dotted-key object.
        :type payload: ``Optional[Mapping]``
        :raises ValidationError: If a value in ``payload`` fails validation.
        """

        def _reset(tree: Mapping, values: Dict[str, Any], defaults: Mapping):
            for name, definition in tree.items():
                if name == META_KEY or not is_tree(definition):
                    continue
                shape = definition.get(SHAPE_KEY)
                if is_tree(shape):
                    if not is_tree(values.get(name)):
                        values[name] = {}
                    _reset(shape, values[name], defaults.get(name) or {})
                    continue
                meta = definition.get(META_KEY) or {}
                if definition.get("default") is not None or not meta.get("required"):
                    values[name] = deepcopy(defaults.get(name))

        _reset(self._tree, self._values, self._defaults)
        _log_debug_schema("Reset record to defaults")
        if payload:
            self._assign_payload(inflate(deepcopy(dict(payload))))

    def update_from_submission(self, data: Mapping) -> ValidationResult:
        """
        Validate a submitted payload in non-strict mode and assign its
        coerced values. ``data`` is usually a flat object keyed by dotted
        key paths, as produced by a form submission:

            {"admin": "true", "profile.name": "bob"}

        Keys that the schema does not define are ignored.

        :param data: The submitted values.
        :type data: ``Mapping``
        :returns: The validation result, including any warnings.
        :rtype: ``ValidationResult``
        :raises ValidationError: If the submission does not pass
                                 validation. Nothing is assigned.
        """
        payload = deepcopy(dict(data))
        result = validate(self._tree, payload, strict=False)
        if not result.passed:
            raise ValidationError(
                "Submitted data did not pass validation"
                + (f" for {self.schema.name} schema" if self.schema else ""),
                result.errors,
            )
        self._assign_payload(payload)
        return result

    def validate(self, allow_incomplete: bool = False) -> ValidationResult:
        """
        Validate the complete record against its schema.

        :param allow_incomplete: ``True`` to permit missing required fields
                                 that are not ``configurable``.
        :type allow_incomplete: ``bool``
        :returns: The validation result.
        :rtype: ``ValidationResult``
        """
        return conforms(self._tree, self.value(), True, allow_incomplete)

    def value(self) -> Dict[str, Any]:
        """
        Return a plain copy of the complete record.

        :returns: The record values.
        :rtype: ``Dict[str, Any]``
        """
        return deepcopy(self._values)

    @property
    def data(self) -> Dict[str, Any]:
        """
        The values that differ from the schema defaults, as a nested
        object.
        """

        def _deltas(values: Mapping, defaults: Mapping) -> Dict[str, Any]:
            deltas = {}
            for key, value in values.items():
                default = defaults.get(key) if is_tree(defaults) else None
                if is_tree(value) and is_tree(default):
                    nested = _deltas(value, default)
                    if nested:
                        deltas[key] = nested
                elif not equals(value, default):
                    deltas[key] = deepcopy(value)
            return deltas

        return _deltas(self._values, self._defaults)


__all__ = [
    "Record",
]
