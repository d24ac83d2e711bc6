# Copyright Red Hat
#
# schemadrift/diff/similarity.py - Schema drift subtree similarity
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Subtree similarity matching.

Subtrees are compared by the edit distance between their canonical JSON
serializations.
"""
from collections import namedtuple
from typing import Any, List, Optional, Tuple
import json

from .equals import is_tree

#: The best match for a subtree: the dotted path of the matching node
#: relative to the searched tree (``""`` for its root), the node itself,
#: and the edit distance between the two serializations.
SubtreeMatch = namedtuple("SubtreeMatch", ["path", "node", "distance"])


def levenshtein(str_a: str, str_b: str) -> int:
    """
    Return the Levenshtein edit distance between two strings.

    :param str_a: The first string.
    :type str_a: ``str``
    :param str_b: The second string.
    :type str_b: ``str``
    :returns: The minimum number of single character insertions,
              deletions and substitutions that turn ``str_a`` into
              ``str_b``.
    :rtype: ``int``
    """
    if str_a == str_b:
        return 0
    if len(str_a) < len(str_b):
        str_a, str_b = str_b, str_a
    if not str_b:
        return len(str_a)

    previous = list(range(len(str_b) + 1))
    for i, char_a in enumerate(str_a, 1):
        current = [i]
        for j, char_b in enumerate(str_b, 1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (char_a != char_b),
                )
            )
        previous = current
    return previous[-1]


def _describe(value: Any) -> str:
    if callable(value):
        name = getattr(value, "__qualname__", type(value).__qualname__)
        return f"<function {name}>"
    return repr(value)


def serialize(value: Any) -> str:
    """
    Return the canonical serialization of ``value``: JSON with sorted keys
    and callables rendered as ``<function qualname>``.

    :param value: The value to serialize.
    :returns: The serialized string.
    :rtype: ``str``
    """
    return json.dumps(value, sort_keys=True, default=_describe)


def get_roots(tree: Any, path: str = "") -> List[Tuple[str, Any]]:
    """
    Return every non-primitive node of ``tree`` in sorted-key pre-order,
    starting with ``tree`` itself at path ``""``. Nested node paths take
    the form ``.a.b``.

    :param tree: The tree to enumerate.
    :param path: The path prefix for ``tree``.
    :type path: ``str``
    :returns: A list of ``(path, node)`` tuples.
    :rtype: ``List[Tuple[str, Any]]``
    """
    if not is_tree(tree):
        return []
    roots = [(path, tree)]
    for key in sorted(tree):
        roots.extend(get_roots(tree[key], f"{path}.{key}"))
    return roots


def find_subtree(subtree: Any, tree: Any) -> Optional[SubtreeMatch]:
    """
    Find the node of ``tree`` that is most similar to ``subtree``.

    Ties are resolved in favour of the node that comes first in pre-order,
    so a zero distance match on the root of ``tree`` always wins.

    :param subtree: The subtree to search for.
    :param tree: The tree to search.
    :returns: The best match, or ``None`` if ``tree`` is not a tree.
    :rtype: ``Optional[SubtreeMatch]``
    """
    roots = get_roots(tree)
    if not roots:
        return None

    target = serialize(subtree)
    best = None
    for path, node in roots:
        distance = levenshtein(target, serialize(node))
        if best is None or distance < best.distance:
            best = SubtreeMatch(path, node, distance)
        if distance == 0:
            break
    return best


__all__ = [
    "SubtreeMatch",
    "find_subtree",
    "get_roots",
    "levenshtein",
    "serialize",
]
