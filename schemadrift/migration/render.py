# Copyright Red Hat
#
# schemadrift/migration/render.py - Schema drift migration rendering
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Render operation lists into executable migration scripts.

A rendered script exposes the operations it applies as ``OPERATIONS``, one
hook function per operation (collected in ``HOOKS``), and a
``migrate(data)`` entry point that applies the operations to a stored
record with the schema-projection change handler.
"""
from pprint import pformat
from typing import List, Set
import keyword
import logging

from schemadrift import (
    SCHEMADRIFT_SUBSYSTEM_MIGRATION,
    DuplicateHandlerError,
    NothingToMigrateError,
)
from schemadrift.diff.operation import Operation, OperationList
from schemadrift.diff.optypes import OpType
from schemadrift.schema.schema import Schema

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Names defined at module level by every rendered script
_RESERVED_NAMES = frozenset(
    ("OPERATIONS", "HOOKS", "SCHEMA", "FROM_VERSION", "TO_VERSION", "migrate", "main")
)

_SCRIPT_HEADER = '''"""
Migration for {name} from version {old} to version {new}.

Generated by schemadrift. Each operation below has a hook function that
runs as the operation is applied to a stored record: fill in any hook that
needs more than the default projection (for example deriving the fields of
a new nested object from data that is about to be removed) before running
this script against stored data:

    python {filename} RECORD.json [RECORD.json ...]
"""
import json
import sys

from schemadrift.diff.operation import OperationList
from schemadrift.diff.patch import apply_diff
from schemadrift.schema.schema import make_schema_change_handler

SCHEMA = {name!r}
FROM_VERSION = {old}
TO_VERSION = {new}

OPERATIONS = {operations}
'''

_SCRIPT_FOOTER = '''

def migrate(data):
    """
    Apply this migration to the record ``data`` in place and return it.
    """
    operations = OperationList.from_list(OPERATIONS)
    return apply_diff(operations, data, make_schema_change_handler(HOOKS))


def main(paths):
    """
    Migrate the JSON record files in ``paths`` in place.
    """
    for path in paths:
        with open(path, "r", encoding="utf8") as fp:
            record = json.load(fp)
        migrate(record)
        with open(path, "w", encoding="utf8") as fp:
            json.dump(record, fp, indent=2)


if __name__ == "__main__":
    main(sys.argv[1:])
'''

_HOOK_DOCS = {
    OpType.ADD: "``{key}`` has been added and holds its schema default.",
    OpType.REMOVE: (
        "``{key}`` is about to be removed: its current value is\n"
        "    ``position.level[position.prop_name]``."
    ),
    OpType.UPDATE: "``{key}`` is about to be updated.",
    OpType.MOVE: "``{old_key}`` is about to move to ``{new_key}``.",
    OpType.RENAME: "``{old_key}`` is about to be renamed to ``{new_key}``.",
}


def migration_name(name: str, old_version: int, new_version: int) -> str:
    """
    Return the artifact name for a migration of schema ``name``.

    :param name: The schema name.
    :type name: ``str``
    :param old_version: The version migrated from.
    :type old_version: ``int``
    :param new_version: The version migrated to.
    :type new_version: ``int``
    :returns: The migration name, ``<name>.v<old>.to.v<new>``.
    :rtype: ``str``
    """
    return f"{name}.v{old_version}.to.v{new_version}"


def hook_name(operation: Operation, index: int, used: Set[str]) -> str:
    """
    Return the Python function name for the hook of ``operation``: its
    ``fn`` name if that is a usable identifier, or ``_hook_<index>``.
    """
    name = operation.fn
    if (
        name
        and name.isidentifier()
        and not keyword.iskeyword(name)
        and name not in _RESERVED_NAMES
        and name not in used
    ):
        return name
    return f"_hook_{index}"


def _render_hook(operation: Operation, name: str) -> str:
    doc = _HOOK_DOCS[operation.type].format(
        key=operation.key, old_key=operation.old_key, new_key=operation.new_key
    )
    if operation.type in (OpType.MOVE, OpType.RENAME):
        args = "operation, old_position, new_position"
        title = f"{operation.type.value} {operation.old_key} -> {operation.new_key}"
    else:
        args = "operation, position"
        title = f"{operation.type.value} {operation.key}"
    return f'def {name}({args}):\n    """\n    {title}\n\n    {doc}\n    """\n'


def make_migration(
    old_schema: Schema, new_schema: Schema, operations: OperationList
) -> str:
    """
    Render ``operations`` into a migration script for the transition from
    ``old_schema`` to ``new_schema``.

    :param old_schema: The stored schema being migrated from.
    :type old_schema: ``Schema``
    :param new_schema: The schema being migrated to.
    :type new_schema: ``Schema``
    :param operations: The operations between the two schema versions.
    :type operations: ``OperationList``
    :returns: The Python source of the migration script.
    :rtype: ``str``
    :raises NothingToMigrateError: If ``operations`` is empty.
    :raises DuplicateHandlerError: If two operations share an ``fn`` name.
    """
    if not len(operations):
        raise NothingToMigrateError(
            f"No changes between {old_schema.name} v{old_schema.version} "
            f"and v{new_schema.version}"
        )

    old, new = old_schema.version, new_schema.version
    filename = migration_name(new_schema.name, old, new) + ".py"
    parts: List[str] = [
        _SCRIPT_HEADER.format(
            name=new_schema.name,
            old=old,
            new=new,
            filename=filename,
            operations=pformat(operations.to_list(), indent=1, width=88, sort_dicts=False),
        )
    ]

    used: Set[str] = set()
    hooks = []
    for index, operation in enumerate(operations):
        name = hook_name(operation, index, used)
        used.add(name)
        if operation.fn:
            if any(fn == operation.fn for fn, _ in hooks):
                raise DuplicateHandlerError(
                    f"Operation {index} reuses handler name {operation.fn}"
                )
            hooks.append((operation.fn, name))
        parts.append("\n\n" + _render_hook(operation, name))

    hook_lines = "".join(f"    {fn!r}: {name},\n" for fn, name in hooks)
    parts.append(f"\n\nHOOKS = {{\n{hook_lines}}}\n")
    parts.append(_SCRIPT_FOOTER)

    _log.debug(
        "Rendered migration %s with %d operations",
        filename,
        len(operations),
        extra={"subsystem": SCHEMADRIFT_SUBSYSTEM_MIGRATION},
    )
    return "".join(parts)


__all__ = [
    "hook_name",
    "make_migration",
    "migration_name",
]
