# Copyright Red Hat
#
# schemadrift/migration/registry.py - Schema drift schema registry
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Schema registry and drift detection.

Registering a schema compares it with the latest stored version of that
schema. A schema with no stored version is stored as version 1. A schema
that differs from its stored version (ignoring callables and cosmetic
metadata) is stored as the next version, a migration script is rendered
for the transition, and registration fails with ``SchemaMismatchError``
once every affected schema has been written.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import logging

from schemadrift import (
    META_KEY,
    SCHEMADRIFT_SUBSYSTEM_MIGRATION,
    SchemaMismatchError,
    SchemaNotFoundError,
    StoreNotReadyError,
    ValidationError,
)
from schemadrift.config import DEFAULT_COSMETIC_KEYS, SchemaDriftConfig
from schemadrift.diff.engine import DiffEngine
from schemadrift.diff.operation import OperationList
from schemadrift.diff.options import DiffOptions
from schemadrift.schema.record import Record
from schemadrift.schema.schema import (
    LINK_SCHEMA,
    LINK_SCHEMA_NAME,
    LINK_VERSION,
    Schema,
    find_links,
    link_schema,
    strip_callables,
    strip_cosmetic,
)

from .render import make_migration, migration_name
from .store import FileSystemStore, SchemaStore

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_migration(msg, *args, **kwargs):
    """A wrapper for migration subsystem debug logs."""
    _log.debug(
        msg, *args, extra={"subsystem": SCHEMADRIFT_SUBSYSTEM_MIGRATION}, **kwargs
    )


@dataclass
class Migration:
    """
    A migration generated by a registration pass.
    """

    #: The schema name
    name: str
    #: The stored version migrated from
    old_version: int
    #: The newly stored version
    new_version: int
    #: The unfiltered operations between the two versions
    operations: OperationList
    #: The rendered migration script
    script: str
    #: The location the store wrote the script to
    path: str

    def __str__(self):
        return migration_name(self.name, self.old_version, self.new_version)


def _link_key(link: Dict[str, Any]) -> Tuple[str, str, Optional[int]]:
    return (link[LINK_SCHEMA], link[LINK_SCHEMA_NAME], link.get(LINK_VERSION))


class SchemaRegistry:
    """
    An explicit registry of schemas, optionally backed by a schema store.
    """

    def __init__(
        self,
        store: Optional[SchemaStore] = None,
        options: Optional[DiffOptions] = None,
        cosmetic_keys=DEFAULT_COSMETIC_KEYS,
    ):
        """
        Initialise a new ``SchemaRegistry``.

        :param store: The store to persist schemas and migrations to.
        :type store: ``Optional[SchemaStore]``
        :param options: Options for the diff engine.
        :type options: ``Optional[DiffOptions]``
        :param cosmetic_keys: Metadata keys ignored when checking for drift.
        """
        self.store = store
        self.engine = DiffEngine(options)
        self.cosmetic_keys = tuple(cosmetic_keys)
        self._schemas: Dict[str, Schema] = {}
        self.versions: Dict[str, int] = {}
        self.migrations: List[Migration] = []

    @classmethod
    def from_config(cls, config: SchemaDriftConfig) -> "SchemaRegistry":
        """
        Initialise a ``SchemaRegistry`` with a ``FileSystemStore`` from a
        configuration object.

        :param config: The loaded schemadrift configuration.
        :type config: ``SchemaDriftConfig``
        :returns: A new ``SchemaRegistry``.
        :rtype: ``SchemaRegistry``
        """
        return cls(
            store=FileSystemStore(config.store_path),
            options=DiffOptions.from_config(config),
            cosmetic_keys=config.cosmetic_keys,
        )

    def set_store(self, store: Optional[SchemaStore]):
        """
        Replace the store backing this registry.
        """
        self.store = store

    def verify_store(self) -> SchemaStore:
        """
        Return the configured store.

        :raises StoreNotReadyError: If no store is configured or the store
                                    is not ready.
        """
        if self.store is None:
            raise StoreNotReadyError("No schema store has been configured")
        if not self.store.ready():
            raise StoreNotReadyError(f"Schema store {self.store!r} is not ready")
        return self.store

    def reset_registrations(self):
        """
        Forget all registered schemas, versions and migrations.
        """
        self._schemas.clear()
        self.versions.clear()
        self.migrations.clear()

    def get_registered_schema(self, name: str) -> Schema:
        """
        Return the registered schema ``name``.

        :raises SchemaNotFoundError: If ``name`` has not been registered.
        """
        try:
            return self._schemas[name]
        except KeyError as err:
            raise SchemaNotFoundError(f"Schema {name} has not been registered") from err

    def registered(self) -> List[str]:
        """
        Return the names of all registered schemas.
        """
        return list(self._schemas)

    async def _resolve_links(self, tree: Dict[str, Any], cache: Dict[tuple, Any]):
        """
        Load every schema linked from ``tree`` (recursively) into
        ``cache``.
        """
        store = self.verify_store()
        for link in find_links(tree):
            key = _link_key(link)
            if key in cache:
                continue
            descriptor = Schema(link[LINK_SCHEMA], {META_KEY: {"name": link[LINK_SCHEMA_NAME]}})
            stored = await store.load_schema(descriptor, link.get(LINK_VERSION))
            if stored is None:
                raise SchemaNotFoundError(
                    f"Linked schema {link[LINK_SCHEMA]} version "
                    f"{link.get(LINK_VERSION, 'latest')} is not stored"
                )
            cache[key] = stored.fields
            await self._resolve_links(stored.fields, cache)

    async def _linked_tree(self, stored: Schema) -> Dict[str, Any]:
        cache: Dict[tuple, Any] = {}
        await self._resolve_links(stored.fields, cache)
        return link_schema(stored.fields, lambda link: cache[_link_key(link)])

    def _diff(self, old_tree, new_tree, filtered: bool) -> OperationList:
        if filtered:
            old_tree = strip_cosmetic(old_tree, self.cosmetic_keys)
            new_tree = strip_cosmetic(new_tree, self.cosmetic_keys)
        return self.engine.compute_diff(old_tree, new_tree)

    async def register(self, *schemas: Schema):
        """
        Register ``schemas`` and every schema they embed, embedded schemas
        first.

        Without a store the schemas are only recorded. With a store each
        distinct schema is compared against its latest stored version:

        * no stored version: the schema is stored as version 1.
        * no difference (ignoring callables and cosmetic metadata): no-op.
        * otherwise the schema is stored as the next version and the
          unfiltered differences are rendered to a migration script.

        :raises StoreNotReadyError: If the configured store is not ready.
        :raises SchemaMismatchError: After all files are written, if any
                                     schema differed from its stored version.
        """
        ordered: List[Schema] = []
        for schema in schemas:
            for member in schema.schema_set():
                if all(member.name != s.name for s in ordered):
                    ordered.append(member)

        for schema in ordered:
            self._schemas[schema.name] = schema
            _log_debug_migration("Registered schema %s", schema.name)

        if self.store is None:
            return

        store = self.verify_store()
        drifted: List[Tuple[Schema, Schema, OperationList]] = []

        for schema in ordered:
            if not schema.distinct:
                continue

            stored = await store.load_schema(schema)
            if stored is None:
                self.versions[schema.name] = 1
                await store.save_schema(
                    Schema(schema.name, schema.unlinked_tree(self.versions), version=1)
                )
                _log_info("Stored new schema %s version 1", schema.name)
                continue

            old_tree = await self._linked_tree(stored)
            new_tree = strip_callables(schema.tree())

            if not self._diff(old_tree, new_tree, filtered=True):
                self.versions[schema.name] = stored.version
                _log_debug_migration(
                    "Schema %s matches stored version %d", schema.name, stored.version
                )
                continue

            operations = self._diff(old_tree, new_tree, filtered=False)
            self.versions[schema.name] = stored.version + 1
            drifted.append((schema, stored, operations))
            _log_info(
                "Schema %s differs from stored version %d:\n%s",
                schema.name,
                stored.version,
                operations,
            )

        for schema, stored, operations in drifted:
            new_schema = Schema(
                schema.name,
                schema.unlinked_tree(self.versions),
                version=self.versions[schema.name],
            )
            await store.save_schema(new_schema)
            script = make_migration(stored, new_schema, operations)
            path = await store.save_migration(stored, new_schema, script)
            self.migrations.append(
                Migration(
                    schema.name,
                    stored.version,
                    new_schema.version,
                    operations,
                    script,
                    path,
                )
            )

        if drifted:
            raise SchemaMismatchError(schema.name for schema, _, _ in drifted)

    async def load(self, name: str, record_name: str) -> Record:
        """
        Load record ``record_name`` of the registered schema ``name``.

        :returns: The loaded record.
        :rtype: ``Record``
        """
        schema = self.get_registered_schema(name)
        data = await self.verify_store().load_record(schema, record_name)
        return Record(schema, data)

    async def save(self, name: str, record: Record) -> str:
        """
        Validate and store ``record`` as a record of the registered schema
        ``name``.

        :returns: The record name.
        :rtype: ``str``
        :raises ValidationError: If ``record`` does not conform.
        """
        schema = self.get_registered_schema(name)
        result = record.validate()
        if not result.passed:
            raise ValidationError(f"Cannot save {name} record", result.errors)
        data = record.value()
        record_name = schema.record_name_for(data)
        await self.verify_store().save_record(schema, record_name, data)
        return record_name

    async def delete(self, name: str, record_name: str):
        """
        Delete record ``record_name`` of the registered schema ``name``.
        """
        schema = self.get_registered_schema(name)
        await self.verify_store().delete_record(schema, record_name)


__all__ = [
    "Migration",
    "SchemaRegistry",
]
