# Copyright Red Hat
#
# tests/_util.py - Schema drift test utilities.
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
from schemadrift.schema import Schema


def _string(required=False):
    field = {"type": "string"}
    if required:
        field["__meta"] = {"required": True}
    return field


def user_v1_fields():
    """The first version of the sample User model."""
    return {
        "__meta": {"recordname": "name"},
        "name": _string(required=True),
        "password": _string(required=True),
    }


def user_v2_fields():
    """User with its credentials nested under ``profile``."""
    return {
        "__meta": {"recordname": "profile.name"},
        "admin": {"type": "boolean", "default": False},
        "profile": {
            "shape": {
                "name": _string(required=True),
                "password": _string(required=True),
            },
        },
    }


def user_v3_fields():
    """User v2 plus an ``allow_chat`` flag."""
    fields = user_v2_fields()
    fields["allow_chat"] = {"type": "boolean", "default": True}
    return fields


def user_v1():
    return Schema("User", user_v1_fields())


def user_v2():
    return Schema("User", user_v2_fields())


def user_v3():
    return Schema("User", user_v3_fields())


def profile_schema(extra=None):
    """A distinct schema embedded by ``account_schema()``."""
    fields = {"bio": {"type": "string", "default": ""}}
    fields.update(extra or {})
    return Schema("Profile", fields)


def account_schema(profile):
    return Schema(
        "Account",
        {
            "__meta": {"recordname": "login"},
            "login": _string(required=True),
            "profile": {"shape": profile},
        },
    )
