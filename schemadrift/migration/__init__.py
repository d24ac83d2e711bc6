# Copyright Red Hat
#
# schemadrift/migration/__init__.py - Schema drift migration package
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Migration package.

Provides the schema registry that detects drift between declared and
stored schemas, the stores that persist schema versions, records and
migration scripts, and rendering of operation lists into migration
scripts.
"""
from .registry import Migration, SchemaRegistry
from .render import hook_name, make_migration, migration_name
from .store import FileSystemStore, MemoryStore, NullStore, SchemaStore

__all__ = [
    "FileSystemStore",
    "MemoryStore",
    "Migration",
    "NullStore",
    "SchemaRegistry",
    "SchemaStore",
    "hook_name",
    "make_migration",
    "migration_name",
]
