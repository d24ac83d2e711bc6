# Copyright Red Hat
#
# schemadrift/schema/schema.py - Schema drift schema descriptors
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Schema descriptors and schema-to-data projection.

A schema tree maps field names to field definitions. A field definition is
a dictionary with any of ``__meta``, ``type``, ``default``, ``choices`` and
``shape``, where ``shape`` holds either a nested schema tree or another
``Schema`` instance. The top-level ``__meta`` describes the schema itself
(``name``, ``distinct``, ``recordname``, ``form``).
"""
from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union
import logging

from schemadrift import (
    META_KEY,
    SHAPE_KEY,
    SCHEMADRIFT_SUBSYSTEM_SCHEMA,
    SchemaDriftError,
    SchemaNotFoundError,
)
from schemadrift.config import DEFAULT_COSMETIC_KEYS
from schemadrift.diff.engine import create_diff
from schemadrift.diff.equals import is_tree
from schemadrift.diff.operation import OperationList
from schemadrift.diff.optypes import OpType
from schemadrift.diff.patch import ChangeHandler, Hook, apply_diff

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Link stub metadata key naming the linked schema
LINK_SCHEMA = "schema"

#: Link stub metadata key naming the linked schema's collection
LINK_SCHEMA_NAME = "schemaName"

#: Link stub metadata key holding the linked schema version
LINK_VERSION = "version"

_LINK_KEYS = (LINK_SCHEMA, LINK_SCHEMA_NAME, LINK_VERSION)


def _log_debug_schema(msg, *args, **kwargs):
    """A wrapper for schema subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SCHEMADRIFT_SUBSYSTEM_SCHEMA}, **kwargs)


class Schema:
    """
    A named schema: a schema tree plus an optional stored version.
    """

    def __init__(self, name: str, fields: Mapping, version: Optional[int] = None):
        """
        Initialise a new ``Schema``.

        :param name: The logical schema name, for example ``User``.
        :type name: ``str``
        :param fields: The schema tree.
        :type fields: ``Mapping``
        :param version: The stored version of this schema, if known.
        :type version: ``Optional[int]``
        """
        if not name:
            raise SchemaDriftError("Schema name must not be empty")
        self.name = name
        self.fields = fields
        self.version = version

    def __repr__(self) -> str:
        return f"Schema({self.name!r}, {{...}}, version={self.version!r})"

    def __str__(self) -> str:
        version = f" v{self.version}" if self.version is not None else ""
        return f"{self.name}{version} ({self.collection})"

    @property
    def meta(self) -> Dict[str, Any]:
        """
        The schema's top-level metadata.
        """
        return dict(self.fields.get(META_KEY) or {})

    @property
    def collection(self) -> str:
        """
        The store collection for this schema: ``__meta.name``, or the
        lower-cased schema name.
        """
        return self.meta.get("name") or self.name.lower()

    @property
    def distinct(self) -> bool:
        """
        ``True`` if this schema is persisted independently of the schemas
        that embed it.
        """
        return bool(self.meta.get("distinct", True))

    def field_items(self) -> Iterable[Tuple[str, Any]]:
        """
        Iterate over ``(name, definition)`` for each field of this schema.
        """
        return ((key, value) for key, value in self.fields.items() if key != META_KEY)

    def tree(self) -> Dict[str, Any]:
        """
        Return a deep copy of this schema's tree with every embedded
        ``Schema`` expanded in place.

        :returns: The expanded schema tree.
        :rtype: ``Dict[str, Any]``
        """
        return _expand(self.fields)

    def schema_set(self) -> List["Schema"]:
        """
        Return this schema and every schema embedded in it, embedded
        schemas first (depth first), without duplicates.

        :returns: The list of schemas.
        :rtype: ``List[Schema]``
        """
        ordered: List[Schema] = []
        seen = set()

        def _visit(schema: Schema, stack: Tuple[str, ...]):
            if schema.name in stack:
                raise SchemaDriftError(
                    f"Schema {schema.name} embeds itself: {' -> '.join(stack)}"
                )
            for sub in _embedded(schema.fields):
                _visit(sub, stack + (schema.name,))
            if schema.name not in seen:
                seen.add(schema.name)
                ordered.append(schema)

        _visit(self, ())
        return ordered

    def unlinked_tree(self, versions: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
        """
        Return the persistable form of this schema: distinct embedded
        schemas are replaced by link stubs, non-distinct ones are expanded
        in place, and callables are dropped.

        :param versions: The schema versions to record in link stubs, keyed
                         by schema name.
        :type versions: ``Optional[Dict[str, int]]``
        :returns: The unlinked schema tree.
        :rtype: ``Dict[str, Any]``
        """
        return strip_callables(_unlink(self.fields, versions or {}))

    def record_name_for(self, instance: Mapping) -> str:
        """
        Return the record name for a data ``instance`` of this schema using
        the key path or callable in ``__meta.recordname``.

        :param instance: The data instance.
        :type instance: ``Mapping``
        :returns: The record name.
        :rtype: ``str``
        """
        indicator = self.meta.get("recordname")
        if not indicator:
            raise SchemaDriftError(f"Schema {self.name} has no recordname binding")
        if callable(indicator):
            return str(indicator(instance))
        value = instance
        for term in indicator.split("."):
            if not is_tree(value) or term not in value:
                raise SchemaDriftError(
                    f"Record has no value for {self.name} recordname '{indicator}'"
                )
            value = value[term]
        return str(value)


def _embedded(tree: Mapping) -> List[Schema]:
    """
    Return the schemas embedded as ``shape`` values directly within
    ``tree`` or within its nested plain shapes.
    """
    found = []
    for key, definition in tree.items():
        if key == META_KEY or not is_tree(definition):
            continue
        shape = definition.get(SHAPE_KEY)
        if isinstance(shape, Schema):
            found.append(shape)
        elif is_tree(shape):
            found.extend(_embedded(shape))
    return found


def _field_meta(definition: Mapping) -> Dict[str, Any]:
    return dict(definition.get(META_KEY) or {})


def _expand(tree: Mapping) -> Dict[str, Any]:
    expanded = {}
    for key, definition in tree.items():
        if key == META_KEY or not is_tree(definition):
            expanded[key] = deepcopy(definition)
            continue
        shape = definition.get(SHAPE_KEY)
        if isinstance(shape, Schema):
            field = {k: deepcopy(v) for k, v in definition.items() if k != SHAPE_KEY}
            field[META_KEY] = {**deepcopy(shape.meta), **_field_meta(definition)}
            field[SHAPE_KEY] = _expand(dict(shape.field_items()))
            expanded[key] = field
        elif is_tree(shape):
            field = {k: deepcopy(v) for k, v in definition.items() if k != SHAPE_KEY}
            field[SHAPE_KEY] = _expand(shape)
            expanded[key] = field
        else:
            expanded[key] = deepcopy(definition)
    return expanded


def _unlink(tree: Mapping, versions: Dict[str, int]) -> Dict[str, Any]:
    unlinked = {}
    for key, definition in tree.items():
        if key == META_KEY or not is_tree(definition):
            unlinked[key] = deepcopy(definition)
            continue
        shape = definition.get(SHAPE_KEY)
        if isinstance(shape, Schema) and shape.distinct:
            link = {
                **_field_meta(definition),
                LINK_SCHEMA: shape.name,
                LINK_SCHEMA_NAME: shape.collection,
            }
            if shape.name in versions:
                link[LINK_VERSION] = versions[shape.name]
            stub = {
                k: deepcopy(v)
                for k, v in definition.items()
                if k not in (SHAPE_KEY, META_KEY)
            }
            stub[META_KEY] = link
            unlinked[key] = stub
        elif isinstance(shape, Schema):
            field = {k: deepcopy(v) for k, v in definition.items() if k != SHAPE_KEY}
            field[META_KEY] = {**deepcopy(shape.meta), **_field_meta(definition)}
            field[SHAPE_KEY] = _unlink(dict(shape.field_items()), versions)
            unlinked[key] = field
        elif is_tree(shape):
            field = {k: deepcopy(v) for k, v in definition.items() if k != SHAPE_KEY}
            field[SHAPE_KEY] = _unlink(shape, versions)
            unlinked[key] = field
        else:
            unlinked[key] = deepcopy(definition)
    return unlinked


def is_link(definition: Any) -> bool:
    """
    Return ``True`` if ``definition`` is a link stub standing in for a
    distinct embedded schema.
    """
    if not is_tree(definition) or SHAPE_KEY in definition:
        return False
    meta = definition.get(META_KEY)
    return is_tree(meta) and LINK_SCHEMA in meta and LINK_SCHEMA_NAME in meta


def find_links(tree: Mapping) -> List[Dict[str, Any]]:
    """
    Return the metadata of every link stub in the unlinked schema tree
    ``tree``.

    :param tree: An unlinked schema tree.
    :type tree: ``Mapping``
    :returns: A list of link stub metadata dictionaries.
    :rtype: ``List[Dict[str, Any]]``
    """
    links = []
    for key, definition in tree.items():
        if key == META_KEY or not is_tree(definition):
            continue
        if is_link(definition):
            links.append(dict(definition[META_KEY]))
        elif is_tree(definition.get(SHAPE_KEY)):
            links.extend(find_links(definition[SHAPE_KEY]))
    return links


def link_schema(tree: Mapping, resolver: Callable[[Dict[str, Any]], Mapping]) -> Dict[str, Any]:
    """
    Return a copy of the unlinked schema tree ``tree`` with every link
    stub replaced by the linked schema's tree.

    :param tree: An unlinked schema tree.
    :type tree: ``Mapping``
    :param resolver: A callable that accepts link stub metadata and returns
                     the (unlinked) stored tree of the linked schema.
    :type resolver: ``Callable[[Dict[str, Any]], Mapping]``
    :returns: The linked schema tree.
    :rtype: ``Dict[str, Any]``
    """
    linked = {}
    for key, definition in tree.items():
        if key == META_KEY or not is_tree(definition):
            linked[key] = deepcopy(definition)
        elif is_link(definition):
            link = dict(definition[META_KEY])
            sub_tree = resolver(link)
            if sub_tree is None:
                raise SchemaNotFoundError(
                    f"Cannot link {key}: no stored schema {link[LINK_SCHEMA]}"
                )
            sub_tree = link_schema(sub_tree, resolver)
            field_meta = {k: v for k, v in link.items() if k not in _LINK_KEYS}
            linked[key] = {
                **{k: deepcopy(v) for k, v in definition.items() if k != META_KEY},
                META_KEY: {**deepcopy(sub_tree.get(META_KEY) or {}), **field_meta},
                SHAPE_KEY: {k: v for k, v in sub_tree.items() if k != META_KEY},
            }
        elif is_tree(definition.get(SHAPE_KEY)):
            field = {k: deepcopy(v) for k, v in definition.items() if k != SHAPE_KEY}
            field[SHAPE_KEY] = link_schema(definition[SHAPE_KEY], resolver)
            linked[key] = field
        else:
            linked[key] = deepcopy(definition)
    return linked


def strip_callables(value: Any) -> Any:
    """
    Return a deep copy of ``value`` with every callable removed.
    """
    if is_tree(value):
        return {
            key: strip_callables(item)
            for key, item in value.items()
            if not callable(item)
        }
    if isinstance(value, (list, tuple)):
        return [strip_callables(item) for item in value if not callable(item)]
    return deepcopy(value)


def strip_cosmetic(tree: Any, cosmetic_keys: Iterable[str] = DEFAULT_COSMETIC_KEYS) -> Any:
    """
    Return a deep copy of ``tree`` without callables and without the
    ``__meta`` keys named in ``cosmetic_keys``. Differences in these values
    do not affect stored data.

    :param tree: The schema tree to filter.
    :param cosmetic_keys: The metadata keys to drop.
    :type cosmetic_keys: ``Iterable[str]``
    :returns: The filtered tree.
    """
    cosmetic_keys = tuple(cosmetic_keys)

    def _strip(value: Any, in_meta: bool) -> Any:
        if is_tree(value):
            return {
                key: _strip(item, key == META_KEY)
                for key, item in value.items()
                if not callable(item) and not (in_meta and key in cosmetic_keys)
            }
        if isinstance(value, (list, tuple)):
            return [_strip(item, False) for item in value if not callable(item)]
        return deepcopy(value)

    return _strip(tree, False)


def field_to_data(definition: Any) -> Any:
    """
    Project a single field definition onto a data value: the nested data
    for a shaped field, the ``default`` if one is set, otherwise ``None``.

    :param definition: The field definition.
    :returns: The data value.
    """
    if not is_tree(definition):
        return definition
    shape = definition.get(SHAPE_KEY)
    if isinstance(shape, Schema):
        return schema_to_data(dict(shape.field_items()))
    if is_tree(shape):
        return schema_to_data(shape)
    return deepcopy(definition.get("default"))


def schema_to_data(shape: Mapping) -> Dict[str, Any]:
    """
    Project a schema tree onto a data tree using ``field_to_data()`` for
    every field.

    :param shape: The schema tree.
    :type shape: ``Mapping``
    :returns: The data tree.
    :rtype: ``Dict[str, Any]``
    """
    return {
        key: field_to_data(definition)
        for key, definition in shape.items()
        if key != META_KEY
    }


def create_default(schema: Union[Schema, Mapping]) -> Dict[str, Any]:
    """
    Create a data instance containing only the fields of ``schema`` that
    have a default value (including nested shapes).

    :param schema: The schema or schema tree.
    :returns: The default data instance.
    :rtype: ``Dict[str, Any]``
    """
    tree = schema.tree() if isinstance(schema, Schema) else schema
    instance = {}
    for key, definition in tree.items():
        if key == META_KEY or not is_tree(definition):
            continue
        shape = definition.get(SHAPE_KEY)
        if definition.get("default") is not None:
            instance[key] = deepcopy(definition["default"])
        elif isinstance(shape, Schema) or is_tree(shape):
            instance[key] = create_default(shape)
    return instance


def _parse_schema_key(key: str) -> Tuple[bool, List[str]]:
    """
    Walk a schema key path as alternating field names and field attributes.

    :returns: A 2-tuple of whether the key addresses field metadata rather
              than a whole field (or a whole shape), and the data key path
              components.
    """
    data_path = []
    expect_field = True
    for segment in key.split("."):
        if expect_field:
            if segment == META_KEY:
                return (True, data_path)
            data_path.append(segment)
            expect_field = False
        elif segment == SHAPE_KEY:
            expect_field = True
        else:
            return (True, data_path)
    return (False, data_path)


def _schema_ignore_key(key: str, _op_type: OpType) -> bool:
    ignore, _ = _parse_schema_key(key)
    return ignore


def _schema_filter_key_string(key: str) -> Optional[str]:
    _, data_path = _parse_schema_key(key)
    return ".".join(data_path) or None


def _schema_transform_value(key: str, value: Any) -> Any:
    copied = deepcopy(value)
    if key.split(".")[-1] == SHAPE_KEY:
        return schema_to_data(copied)
    return field_to_data(copied)


def make_schema_change_handler(hooks: Optional[Dict[str, Hook]] = None) -> ChangeHandler:
    """
    Create the schema-projection ``ChangeHandler``, which applies an
    operation list computed between two schema trees to a data tree.

    Keys that address schema metadata (``__meta``, ``type``, ``default``,
    ``choices``) are ignored, ``shape`` segments are dropped from key
    paths, and added field definitions are converted to data values.

    :param hooks: Handler hooks keyed by operation ``fn`` name.
    :type hooks: ``Optional[Dict[str, Hook]]``
    :returns: A new ``ChangeHandler``.
    :rtype: ``ChangeHandler``
    """
    return ChangeHandler(
        ignore_key=_schema_ignore_key,
        filter_key_string=_schema_filter_key_string,
        transform_value=_schema_transform_value,
        hooks=hooks,
    )


def migrate(data: Any, *args, hooks: Optional[Dict[str, Hook]] = None) -> Any:
    """
    Migrate ``data`` in place, either with an operation list
    (``migrate(data, operations)``) or between two schemas
    (``migrate(data, old_schema, new_schema)``).

    :param data: The data tree to migrate.
    :param hooks: Handler hooks keyed by operation ``fn`` name.
    :type hooks: ``Optional[Dict[str, Hook]]``
    :returns: ``data``
    """
    if len(args) == 1:
        operations = args[0]
        if not isinstance(operations, OperationList):
            operations = OperationList.from_list(operations)
    elif len(args) == 2:
        old, new = (a.tree() if isinstance(a, Schema) else a for a in args)
        operations = create_diff(strip_callables(old), strip_callables(new))
    else:
        raise TypeError("migrate() takes an operation list or two schemas")

    _log_debug_schema("Migrating data with %d operations", len(operations))
    return apply_diff(operations, data, make_schema_change_handler(hooks))


__all__ = [
    "Schema",
    "create_default",
    "field_to_data",
    "find_links",
    "is_link",
    "link_schema",
    "make_schema_change_handler",
    "migrate",
    "schema_to_data",
    "strip_callables",
    "strip_cosmetic",
]
