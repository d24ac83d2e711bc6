# Copyright Red Hat
#
# schemadrift/migration/store.py - Schema drift schema stores
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Schema, migration and record storage.

File system layout for ``FileSystemStore``::

    <path>/<collection>/.schema/<Name>.<version>.json   schema versions
    <path>/<collection>/<Name>.v<old>.to.v<new>.py      migration scripts
    <path>/<collection>/<record>.json                   records
"""
from abc import ABC, abstractmethod
from copy import deepcopy
from os.path import exists, isdir, join
from stat import S_ISDIR, S_ISLNK
from typing import Any, Dict, List, Optional, Tuple
import json
import logging
import os

import aiofiles
import aiofiles.os

from schemadrift import (
    SCHEMADRIFT_SUBSYSTEM_STORE,
    RecordNotFoundError,
    RecordParseError,
    SchemaDriftError,
    StoreNotReadyError,
)
from schemadrift.schema.schema import Schema

from .render import migration_name

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Per-collection directory holding schema versions
_SCHEMA_DIR = ".schema"

#: Store directory file mode
_STORE_DIR_MODE = 0o755

#: Schema, record and migration file extensions
_JSON_EXT = ".json"
_SCRIPT_EXT = ".py"


def _log_debug_store(msg, *args, **kwargs):
    """A wrapper for store subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SCHEMADRIFT_SUBSYSTEM_STORE}, **kwargs)


class SchemaStore(ABC):
    """
    Abstract interface to schema, migration and record persistence.
    """

    @abstractmethod
    def ready(self) -> bool:
        """
        Return ``True`` if this store can be used.
        """

    @abstractmethod
    async def load_schema(
        self, schema: Schema, version: Optional[int] = None
    ) -> Optional[Schema]:
        """
        Load a stored version of ``schema``.

        :param schema: A descriptor for the schema to load (its name and
                       collection are used).
        :type schema: ``Schema``
        :param version: The version to load, or ``None`` for the latest.
        :type version: ``Optional[int]``
        :returns: The stored schema with its ``version`` set, or ``None``
                  if no matching version is stored.
        :rtype: ``Optional[Schema]``
        """

    @abstractmethod
    async def save_schema(self, schema: Schema) -> Optional[int]:
        """
        Store ``schema.fields`` as version ``schema.version``. Nothing is
        written if the latest stored version holds the same tree.

        :param schema: The schema to store.
        :type schema: ``Schema``
        :returns: The version written, or ``None`` if the write was skipped.
        :rtype: ``Optional[int]``
        :raises SchemaDriftError: If the version is already stored.
        """

    @abstractmethod
    async def save_migration(
        self, old_schema: Schema, new_schema: Schema, script: str
    ) -> str:
        """
        Store a rendered migration script.

        :returns: The location of the stored migration.
        :rtype: ``str``
        """

    @abstractmethod
    async def load_record(self, schema: Schema, record_name: str) -> Dict[str, Any]:
        """
        Load the record ``record_name`` of ``schema``.

        :raises RecordNotFoundError: If the record does not exist.
        """

    @abstractmethod
    async def save_record(self, schema: Schema, record_name: str, data: Dict[str, Any]):
        """
        Store ``data`` as record ``record_name`` of ``schema``.
        """

    @abstractmethod
    async def delete_record(self, schema: Schema, record_name: str):
        """
        Delete the record ``record_name`` of ``schema``.

        :raises RecordNotFoundError: If the record does not exist.
        """


def _check_store_dir(dirpath: str) -> str:
    """
    Check for the presence of a store directory and create it if
    necessary.

    :param dirpath: Path to the directory
    :returns: The directory path
    """
    if exists(dirpath):
        try:
            st = os.lstat(dirpath)
        except OSError as err:
            raise SchemaDriftError(f"Failed to stat store dir {dirpath}: {err}") from err
        if S_ISLNK(st.st_mode) and not isdir(dirpath):
            raise SchemaDriftError(f"Store dir {dirpath} is a dangling symlink")
        if not S_ISLNK(st.st_mode) and not S_ISDIR(st.st_mode):
            raise SchemaDriftError(f"Store dir {dirpath} exists but is not a directory")

    try:
        os.makedirs(dirpath, mode=_STORE_DIR_MODE, exist_ok=True)
    except OSError as err:
        raise SchemaDriftError(f"Failed to create store dir {dirpath}: {err}") from err
    return dirpath


async def _check_store_dir_async(dirpath: str) -> str:
    """
    Like ``_check_store_dir()``, for use from the asynchronous store
    methods.

    :param dirpath: Path to the directory
    :returns: The directory path
    """
    is_dir = await aiofiles.os.path.isdir(dirpath)
    if not is_dir and await aiofiles.os.path.islink(dirpath):
        raise SchemaDriftError(f"Store dir {dirpath} is a dangling symlink")
    if not is_dir and await aiofiles.os.path.exists(dirpath):
        raise SchemaDriftError(f"Store dir {dirpath} exists but is not a directory")

    try:
        await aiofiles.os.makedirs(dirpath, mode=_STORE_DIR_MODE, exist_ok=True)
    except OSError as err:
        raise SchemaDriftError(f"Failed to create store dir {dirpath}: {err}") from err
    return dirpath


def _parse_version(filename: str, name: str) -> Optional[int]:
    """
    Return the version number of schema file ``filename`` for schema
    ``name``, or ``None`` if the file does not belong to ``name``.
    """
    if not filename.startswith(f"{name}.") or not filename.endswith(_JSON_EXT):
        return None
    version = filename[len(name) + 1 : -len(_JSON_EXT)]
    return int(version) if version.isdigit() else None


class FileSystemStore(SchemaStore):
    """
    Store schemas, migrations and records as files beneath a root
    directory.
    """

    def __init__(self, path: str, create: bool = True):
        """
        Initialise a new ``FileSystemStore``.

        :param path: The store root directory.
        :type path: ``str``
        :param create: ``True`` to create ``path`` if it does not exist.
        :type create: ``bool``
        """
        self.path = path
        if create:
            _check_store_dir(path)

    def __repr__(self) -> str:
        return f"FileSystemStore({self.path!r})"

    def ready(self) -> bool:
        return isdir(self.path)

    def _collection_dir(self, schema: Schema) -> str:
        return join(self.path, schema.collection)

    def _schema_dir(self, schema: Schema) -> str:
        return join(self._collection_dir(schema), _SCHEMA_DIR)

    def _schema_path(self, schema: Schema, version: int) -> str:
        return join(self._schema_dir(schema), f"{schema.name}.{version}{_JSON_EXT}")

    def _record_path(self, schema: Schema, record_name: str) -> str:
        if not record_name or os.sep in record_name or record_name.startswith("."):
            raise SchemaDriftError(f"Invalid record name: {record_name!r}")
        return join(self._collection_dir(schema), f"{record_name}{_JSON_EXT}")

    async def versions(self, schema: Schema) -> List[int]:
        """
        Return the stored versions of ``schema`` in ascending order.

        :param schema: The schema descriptor.
        :type schema: ``Schema``
        :returns: A sorted list of version numbers.
        :rtype: ``List[int]``
        """
        schema_dir = self._schema_dir(schema)
        if not await aiofiles.os.path.isdir(schema_dir):
            return []
        filenames = await aiofiles.os.listdir(schema_dir)
        found = (_parse_version(f, schema.name) for f in filenames)
        return sorted(v for v in found if v is not None)

    @staticmethod
    async def _read_text(path: str) -> str:
        async with aiofiles.open(path, "r", encoding="utf8") as fp:
            return await fp.read()

    async def _read_json(self, path: str) -> Any:
        text = await self._read_text(path)
        try:
            return json.loads(text)
        except json.JSONDecodeError as err:
            raise RecordParseError(f"Failed to parse {path}: {err}") from err

    async def load_schema(
        self, schema: Schema, version: Optional[int] = None
    ) -> Optional[Schema]:
        versions = await self.versions(schema)
        if not versions:
            return None
        if version is None:
            version = versions[-1]
        elif version not in versions:
            return None
        path = self._schema_path(schema, version)
        _log_debug_store("Loading schema %s version %d from %s", schema.name, version, path)
        fields = await self._read_json(path)
        return Schema(schema.name, fields, version=version)

    async def save_schema(self, schema: Schema) -> Optional[int]:
        if schema.version is None:
            raise SchemaDriftError(f"Cannot save schema {schema.name} without a version")
        text = json.dumps(schema.fields, indent=2, sort_keys=True)
        versions = await self.versions(schema)
        if versions:
            latest = await self._read_text(self._schema_path(schema, versions[-1]))
            if latest == text:
                _log_debug_store(
                    "Schema %s matches stored version %d: not saving",
                    schema.name,
                    versions[-1],
                )
                return None
        await _check_store_dir_async(self._schema_dir(schema))
        path = self._schema_path(schema, schema.version)
        try:
            async with aiofiles.open(path, "x", encoding="utf8") as fp:
                await fp.write(text)
        except FileExistsError as err:
            raise SchemaDriftError(
                f"Schema {schema.name} version {schema.version} already stored"
            ) from err
        _log_debug_store("Saved schema %s version %d to %s", schema.name, schema.version, path)
        return schema.version

    async def save_migration(
        self, old_schema: Schema, new_schema: Schema, script: str
    ) -> str:
        await _check_store_dir_async(self._collection_dir(new_schema))
        name = migration_name(new_schema.name, old_schema.version, new_schema.version)
        path = join(self._collection_dir(new_schema), f"{name}{_SCRIPT_EXT}")
        async with aiofiles.open(path, "w", encoding="utf8") as fp:
            await fp.write(script)
        _log_info("Wrote migration %s", path)
        return path

    async def load_record(self, schema: Schema, record_name: str) -> Dict[str, Any]:
        path = self._record_path(schema, record_name)
        if not await aiofiles.os.path.exists(path):
            raise RecordNotFoundError(f"No {schema.name} record named {record_name}")
        return await self._read_json(path)

    async def save_record(self, schema: Schema, record_name: str, data: Dict[str, Any]):
        await _check_store_dir_async(self._collection_dir(schema))
        path = self._record_path(schema, record_name)
        async with aiofiles.open(path, "w", encoding="utf8") as fp:
            await fp.write(json.dumps(data, indent=2, sort_keys=True))
        _log_debug_store("Saved %s record %s", schema.name, record_name)

    async def delete_record(self, schema: Schema, record_name: str):
        path = self._record_path(schema, record_name)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError as err:
            raise RecordNotFoundError(
                f"No {schema.name} record named {record_name}"
            ) from err
        _log_debug_store("Deleted %s record %s", schema.name, record_name)


class MemoryStore(SchemaStore):
    """
    Keep schemas, migrations and records in memory.
    """

    def __init__(self):
        self.schemas: Dict[Tuple[str, str], Dict[int, Dict[str, Any]]] = {}
        self.migrations: Dict[str, str] = {}
        self.records: Dict[Tuple[str, str], Dict[str, Any]] = {}

    def ready(self) -> bool:
        return True

    async def load_schema(
        self, schema: Schema, version: Optional[int] = None
    ) -> Optional[Schema]:
        versions = self.schemas.get((schema.collection, schema.name))
        if not versions:
            return None
        if version is None:
            version = max(versions)
        if version not in versions:
            return None
        return Schema(schema.name, deepcopy(versions[version]), version=version)

    async def save_schema(self, schema: Schema) -> Optional[int]:
        if schema.version is None:
            raise SchemaDriftError(f"Cannot save schema {schema.name} without a version")
        versions = self.schemas.setdefault((schema.collection, schema.name), {})
        if versions and versions[max(versions)] == schema.fields:
            return None
        if schema.version in versions:
            raise SchemaDriftError(
                f"Schema {schema.name} version {schema.version} already stored"
            )
        versions[schema.version] = deepcopy(schema.fields)
        return schema.version

    async def save_migration(
        self, old_schema: Schema, new_schema: Schema, script: str
    ) -> str:
        name = migration_name(new_schema.name, old_schema.version, new_schema.version)
        self.migrations[name] = script
        return name

    async def load_record(self, schema: Schema, record_name: str) -> Dict[str, Any]:
        try:
            return deepcopy(self.records[(schema.collection, record_name)])
        except KeyError as err:
            raise RecordNotFoundError(
                f"No {schema.name} record named {record_name}"
            ) from err

    async def save_record(self, schema: Schema, record_name: str, data: Dict[str, Any]):
        self.records[(schema.collection, record_name)] = deepcopy(data)

    async def delete_record(self, schema: Schema, record_name: str):
        try:
            del self.records[(schema.collection, record_name)]
        except KeyError as err:
            raise RecordNotFoundError(
                f"No {schema.name} record named {record_name}"
            ) from err


class NullStore(SchemaStore):
    """
    A placeholder store that is never ready.
    """

    def ready(self) -> bool:
        return False

    def _not_ready(self):
        raise StoreNotReadyError("No schema store is available")

    async def load_schema(self, schema, version=None):
        self._not_ready()

    async def save_schema(self, schema):
        self._not_ready()

    async def save_migration(self, old_schema, new_schema, script):
        self._not_ready()

    async def load_record(self, schema, record_name):
        self._not_ready()

    async def save_record(self, schema, record_name, data):
        self._not_ready()

    async def delete_record(self, schema, record_name):
        self._not_ready()


__all__ = [
    "FileSystemStore",
    "MemoryStore",
    "NullStore",
    "SchemaStore",
]
