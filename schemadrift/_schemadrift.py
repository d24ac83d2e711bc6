# Copyright Red Hat
#
# schemadrift/_schemadrift.py - Schema drift global definitions
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level schemadrift package.
"""
from typing import Iterable, Optional
import logging

_log = logging.getLogger("schemadrift")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# Schemadrift debugging subsystem mask
SCHEMADRIFT_DEBUG_DIFF = 1
SCHEMADRIFT_DEBUG_PATCH = 2
SCHEMADRIFT_DEBUG_SCHEMA = 4
SCHEMADRIFT_DEBUG_MIGRATION = 8
SCHEMADRIFT_DEBUG_STORE = 16
SCHEMADRIFT_DEBUG_ALL = (
    SCHEMADRIFT_DEBUG_DIFF
    | SCHEMADRIFT_DEBUG_PATCH
    | SCHEMADRIFT_DEBUG_SCHEMA
    | SCHEMADRIFT_DEBUG_MIGRATION
    | SCHEMADRIFT_DEBUG_STORE
)

# Schemadrift debugging subsystem names
SCHEMADRIFT_SUBSYSTEM_DIFF = "schemadrift.diff"
SCHEMADRIFT_SUBSYSTEM_PATCH = "schemadrift.patch"
SCHEMADRIFT_SUBSYSTEM_SCHEMA = "schemadrift.schema"
SCHEMADRIFT_SUBSYSTEM_MIGRATION = "schemadrift.migration"
SCHEMADRIFT_SUBSYSTEM_STORE = "schemadrift.store"

_DEBUG_MASK_TO_SUBSYSTEM = {
    SCHEMADRIFT_DEBUG_DIFF: SCHEMADRIFT_SUBSYSTEM_DIFF,
    SCHEMADRIFT_DEBUG_PATCH: SCHEMADRIFT_SUBSYSTEM_PATCH,
    SCHEMADRIFT_DEBUG_SCHEMA: SCHEMADRIFT_SUBSYSTEM_SCHEMA,
    SCHEMADRIFT_DEBUG_MIGRATION: SCHEMADRIFT_SUBSYSTEM_MIGRATION,
    SCHEMADRIFT_DEBUG_STORE: SCHEMADRIFT_SUBSYSTEM_STORE,
}

_debug_subsystems = set()

#: Reserved key holding schema metadata
META_KEY = "__meta"

#: Field attribute holding a nested schema
SHAPE_KEY = "shape"

_DEFAULT_LOG_LEVEL = logging.WARNING


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        # Always pass non-DEBUG messages.
        if record.levelno != logging.DEBUG:
            return True

        # Always pass DEBUG messages that aren't for a specific subsystem.
        if not hasattr(record, "subsystem"):
            return True

        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems: Iterable[str]):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask() -> int:
    """
    Return the current debug mask for the ``schemadrift`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled_subsystems = set(_debug_subsystems)
    sd_log = logging.getLogger("schemadrift")

    for handler in sd_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                enabled_subsystems.update(f.enabled_subsystems)

    mask_map = {v: k for k, v in _DEBUG_MASK_TO_SUBSYSTEM.items()}
    mask = 0
    for subsystem_name in enabled_subsystems:
        mask |= mask_map.get(subsystem_name, 0)
    return mask


def set_debug_mask(mask: int):
    """
    Set the debug mask for the ``schemadrift`` package.

    :param mask: the logical OR of the ``SCHEMADRIFT_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > SCHEMADRIFT_DEBUG_ALL:
        raise ValueError(f"Invalid schemadrift debug mask: {mask}")

    enabled_subsystems = []
    for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items():
        if mask & flag:
            enabled_subsystems.append(subsystem_name)

    sd_log = logging.getLogger("schemadrift")
    for handler in sd_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


def setup_logging(level: Optional[int] = None, debug_mask: int = 0):
    """
    Set up schemadrift logging: install a console handler with subsystem
    filtering on the ``schemadrift`` logger.

    :param level: The log level to use (default ``logging.WARNING``, or
                  ``logging.DEBUG`` if ``debug_mask`` is non-zero).
    :type level: ``Optional[int]``
    :param debug_mask: The debug subsystems to enable.
    :type debug_mask: ``int``
    """
    if level is None:
        level = logging.DEBUG if debug_mask else _DEFAULT_LOG_LEVEL

    sd_log = logging.getLogger("schemadrift")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    sd_log.setLevel(level)
    if sd_log.hasHandlers():
        sd_log.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SubsystemFilter("schemadrift"))
    sd_log.addHandler(console_handler)

    set_debug_mask(debug_mask)


#
# Schemadrift exception types
#


class SchemaDriftError(Exception):
    """
    Base class for schemadrift errors.
    """


class StructuralMismatchError(SchemaDriftError):
    """
    A key path addressed a primitive value where a tree was required
    while applying a diff.
    """


class SchemaMismatchError(SchemaDriftError):
    """
    One or more registered schemas differ from their stored versions.
    Migration artifacts have been written for every schema named in
    ``names``.
    """

    def __init__(self, names):
        self.names = list(names)
        super().__init__(
            "Schema mismatch for: " + ", ".join(self.names)
            + " (run the generated migrations and register again)"
        )


class SchemaNotFoundError(SchemaDriftError):
    """
    The requested schema has not been registered.
    """


class StoreNotReadyError(SchemaDriftError):
    """
    No schema store is configured, or the configured store is not ready.
    """


class NothingToMigrateError(SchemaDriftError):
    """
    A migration was requested for an empty operation list.
    """


class RecordNotFoundError(SchemaDriftError):
    """
    The requested record does not exist in the store.
    """


class RecordParseError(SchemaDriftError):
    """
    A stored record or schema file could not be parsed.
    """


class UndefinedKeyError(SchemaDriftError):
    """
    A record key path is not defined by the record's schema.
    """


class DuplicateHandlerError(SchemaDriftError):
    """
    Two operations in one operation list share a handler name.
    """


class ValidationError(SchemaDriftError):
    """
    A value failed schema validation. The individual failure messages
    are available as ``errors``.
    """

    def __init__(self, message, errors=None):
        self.errors = list(errors or [])
        super().__init__(message)


__all__ = [
    "SCHEMADRIFT_DEBUG_DIFF",
    "SCHEMADRIFT_DEBUG_PATCH",
    "SCHEMADRIFT_DEBUG_SCHEMA",
    "SCHEMADRIFT_DEBUG_MIGRATION",
    "SCHEMADRIFT_DEBUG_STORE",
    "SCHEMADRIFT_DEBUG_ALL",
    "SCHEMADRIFT_SUBSYSTEM_DIFF",
    "SCHEMADRIFT_SUBSYSTEM_PATCH",
    "SCHEMADRIFT_SUBSYSTEM_SCHEMA",
    "SCHEMADRIFT_SUBSYSTEM_MIGRATION",
    "SCHEMADRIFT_SUBSYSTEM_STORE",
    "META_KEY",
    "SHAPE_KEY",
    "SubsystemFilter",
    "get_debug_mask",
    "set_debug_mask",
    "setup_logging",
    # Exceptions
    "SchemaDriftError",
    "StructuralMismatchError",
    "SchemaMismatchError",
    "SchemaNotFoundError",
    "StoreNotReadyError",
    "NothingToMigrateError",
    "RecordNotFoundError",
    "RecordParseError",
    "UndefinedKeyError",
    "DuplicateHandlerError",
    "ValidationError",
]
