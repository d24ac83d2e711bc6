# Copyright Red Hat
#
# schemadrift/diff/options.py - Schema drift diff options
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree diff options.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from schemadrift.config import SchemaDriftConfig

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


@dataclass(frozen=True)
class DiffOptions:
    """
    Tree comparison options.
    """

    #: Collapse same-level add/remove pairs with identical values to renames
    detect_renames: bool = True
    #: Collapse identical subtree relocations to moves
    detect_moves: bool = True
    #: Hash algorithm used to pair relocation candidates
    hash_algorithm: str = "sha256"

    def __str__(self):
        """
        Return a human readable string representation of this
        ``DiffOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        return "\n".join(f"{key}={val}" for key, val in self.__dict__.items())

    @classmethod
    def from_config(cls, config: "SchemaDriftConfig") -> "DiffOptions":
        """
        Initialise DiffOptions from a configuration object.

        :param config: The loaded schemadrift configuration.
        :type config: ``SchemaDriftConfig``
        :returns: A new ``DiffOptions`` instance
        :rtype: ``DiffOptions``
        """
        options = cls(
            detect_renames=config.detect_renames,
            detect_moves=config.detect_moves,
            hash_algorithm=config.hash_algorithm,
        )
        _log_debug("Initialised DiffOptions from configuration: %s", repr(options))
        return options
