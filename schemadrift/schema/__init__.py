# Copyright Red Hat
#
# schemadrift/schema/__init__.py - Schema drift schema package
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Schema package.

Provides schema descriptors, conformance validation, typed records and the
schema-projection change handler used to migrate data between schema
versions.
"""
from .conforms import ValidationResult, conforms, inflate, validate
from .record import Record
from .schema import (
    Schema,
    create_default,
    field_to_data,
    find_links,
    link_schema,
    make_schema_change_handler,
    migrate,
    schema_to_data,
    strip_callables,
    strip_cosmetic,
)

__all__ = [
    "Record",
    "Schema",
    "ValidationResult",
    "conforms",
    "create_default",
    "field_to_data",
    "find_links",
    "inflate",
    "link_schema",
    "make_schema_change_handler",
    "migrate",
    "schema_to_data",
    "strip_callables",
    "strip_cosmetic",
    "validate",
]
