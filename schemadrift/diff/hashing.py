# Copyright Red Hat
#
# schemadrift/diff/hashing.py - Schema drift value hashing
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Stable value hashing and handler name generation.
"""
from collections.abc import Mapping
from hashlib import md5, sha1, sha256, sha512
from numbers import Number
from typing import Any, Optional, Tuple
import re

from .optypes import OpType

_HASH_TYPES = {
    "md5": md5,
    "sha1": sha1,
    "sha256": sha256,
    "sha512": sha512,
}

_FIRST_WORD_RE = re.compile(r"^\s*(\w)")
_SEPARATOR_RE = re.compile(r"[_.]+(\w)")


class ValueHasher:
    """
    Compute stable digests for tree values.

    Equal values (as determined by ``equals()`` in strict mode) always hash
    to the same digest: mapping keys are fed in sorted order and keys that
    hold ``None`` are skipped. Values of different types are tagged so that
    ``1``, ``"1"`` and ``True`` hash differently.
    """

    def __init__(self, hash_algorithm: str = "sha256"):
        """
        Initialise a new ``ValueHasher``.

        :param hash_algorithm: The hashlib algorithm to use.
        :type hash_algorithm: ``str``
        """
        if hash_algorithm not in _HASH_TYPES:
            raise ValueError(f"Unknown hash algorithm: {hash_algorithm}")
        self.hash_algorithm = hash_algorithm
        self.hasher = _HASH_TYPES[hash_algorithm]

    def _feed(self, digest, value: Any):
        if value is None:
            digest.update(b"n;")
        elif isinstance(value, bool):
            digest.update(b"b:1;" if value else b"b:0;")
        elif isinstance(value, Number):
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            digest.update(f"d:{value!r};".encode("utf8"))
        elif isinstance(value, str):
            encoded = value.encode("utf8")
            digest.update(f"s:{len(encoded)}:".encode("utf8") + encoded)
        elif isinstance(value, (list, tuple)):
            digest.update(f"l:{len(value)}[".encode("utf8"))
            for item in value:
                self._feed(digest, item)
            digest.update(b"]")
        elif isinstance(value, Mapping):
            keys = sorted(str(key) for key, val in value.items() if val is not None)
            digest.update(f"m:{len(keys)}{{".encode("utf8"))
            lookup = {str(key): val for key, val in value.items()}
            for key in keys:
                self._feed(digest, key)
                self._feed(digest, lookup[key])
            digest.update(b"}")
        elif callable(value):
            name = getattr(value, "__qualname__", type(value).__qualname__)
            digest.update(f"f:{name};".encode("utf8"))
        else:
            digest.update(f"r:{value!r};".encode("utf8"))

    def hash(self, value: Any) -> str:
        """
        Return the hex digest for ``value``.

        :param value: The value to hash.
        :returns: A hexadecimal digest string.
        :rtype: ``str``
        """
        digest = self.hasher(usedforsecurity=False)
        self._feed(digest, value)
        return digest.hexdigest()


_DEFAULT_HASHER = ValueHasher()


def value_hash(value: Any) -> str:
    """
    Return the sha256 hex digest for ``value``.

    :param value: The value to hash.
    :returns: A hexadecimal digest string.
    :rtype: ``str``
    """
    return _DEFAULT_HASHER.hash(value)


def camel_case(key: str, namespace: Optional[str] = None) -> str:
    """
    Convert a dotted key path into a name usable in a handler identifier.

    The first word character is uppercased, as is every word character that
    follows a run of ``.`` or ``_`` separators (which are dropped): so
    ``profile.shape.name`` becomes ``ProfileShapeName``.

    :param key: The key path to convert.
    :type key: ``str``
    :param namespace: An optional key path prefix.
    :type namespace: ``Optional[str]``
    :returns: The converted name.
    :rtype: ``str``
    """
    key = key or ""
    if namespace:
        key = f"{namespace}.{key}"
    key = _FIRST_WORD_RE.sub(lambda m: m.group(1).upper(), key, count=1)
    return _SEPARATOR_RE.sub(lambda m: m.group(1).upper(), key)


def handler_names(
    op_type: OpType,
    key: Optional[str] = None,
    old_key: Optional[str] = None,
    new_key: Optional[str] = None,
) -> Tuple[str, str]:
    """
    Return the ``(fn, rollback)`` handler names for an operation.

    :param op_type: The operation type.
    :type op_type: ``OpType``
    :param key: The key path for add, remove and update operations.
    :type key: ``Optional[str]``
    :param old_key: The source key path for move and rename operations.
    :type old_key: ``Optional[str]``
    :param new_key: The destination key path for move and rename operations.
    :type new_key: ``Optional[str]``
    :returns: A 2-tuple of handler and rollback handler names.
    :rtype: ``Tuple[str, str]``
    """
    if op_type == OpType.MOVE:
        suffix = f"{camel_case(old_key)}To{camel_case(new_key)}"
    elif op_type == OpType.RENAME:
        suffix = f"{camel_case(old_key)}{camel_case(new_key)}"
    else:
        suffix = camel_case(key)
    return (f"{op_type.value}{suffix}", f"rollback{suffix}")


__all__ = [
    "ValueHasher",
    "camel_case",
    "handler_names",
    "value_hash",
]
