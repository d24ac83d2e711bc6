# Copyright Red Hat
#
# schemadrift/config.py - Schema drift configuration
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Schemadrift configuration file support.
"""
from configparser import ConfigParser
from dataclasses import dataclass, field
from os.path import exists
from typing import Tuple
import logging

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Default configuration file name
SCHEMADRIFT_CFG_FILE = "schemadrift.conf"

#: Store configuration section
_CFG_STORE = "Store"

#: Store path configuration key
_CFG_STORE_PATH = "Path"

#: Diff configuration section
_CFG_DIFF = "Diff"

#: DetectRenames configuration key
_CFG_DIFF_DETECT_RENAMES = "DetectRenames"

#: DetectMoves configuration key
_CFG_DIFF_DETECT_MOVES = "DetectMoves"

#: HashAlgorithm configuration key
_CFG_DIFF_HASH_ALGORITHM = "HashAlgorithm"

#: Migrations configuration section
_CFG_MIGRATIONS = "Migrations"

#: CosmeticKeys configuration key
_CFG_MIGRATIONS_COSMETIC_KEYS = "CosmeticKeys"

#: Default store location
DEFAULT_STORE_PATH = "./store"

#: Default metadata keys that do not affect stored data
DEFAULT_COSMETIC_KEYS = ("form",)


@dataclass(frozen=True)
class SchemaDriftConfig:
    """
    Schemadrift configuration.
    """

    #: Root directory of the file system schema store
    store_path: str = DEFAULT_STORE_PATH
    #: Collapse same-level add/remove pairs with identical values to renames
    detect_renames: bool = True
    #: Collapse identical subtree relocations to moves
    detect_moves: bool = True
    #: Hash algorithm used to pair relocation candidates
    hash_algorithm: str = "sha256"
    #: Metadata keys ignored when checking for schema drift
    cosmetic_keys: Tuple[str, ...] = field(default=DEFAULT_COSMETIC_KEYS)

    @classmethod
    def from_file(cls, config_file: str) -> "SchemaDriftConfig":
        """
        Load ``SchemaDriftConfig`` from an INI-style configuration file
        located at ``config_file``.

        :param config_file: path to schemadrift.conf
        :type config_file: ``str``.
        :returns: A ``SchemaDriftConfig`` instance initialised from
                  ``config_file``.
        :rtype: ``SchemaDriftConfig``
        """
        if not exists(config_file):
            return SchemaDriftConfig()

        _log_debug("Loading configuration from '%s'", config_file)
        cfg = ConfigParser()
        cfg.read([config_file])

        kwargs = {}
        if cfg.has_section(_CFG_STORE):
            if cfg.has_option(_CFG_STORE, _CFG_STORE_PATH):
                kwargs["store_path"] = cfg[_CFG_STORE][_CFG_STORE_PATH]

        if cfg.has_section(_CFG_DIFF):
            if cfg.has_option(_CFG_DIFF, _CFG_DIFF_DETECT_RENAMES):
                kwargs["detect_renames"] = cfg.getboolean(
                    _CFG_DIFF, _CFG_DIFF_DETECT_RENAMES
                )
            if cfg.has_option(_CFG_DIFF, _CFG_DIFF_DETECT_MOVES):
                kwargs["detect_moves"] = cfg.getboolean(
                    _CFG_DIFF, _CFG_DIFF_DETECT_MOVES
                )
            if cfg.has_option(_CFG_DIFF, _CFG_DIFF_HASH_ALGORITHM):
                kwargs["hash_algorithm"] = cfg[_CFG_DIFF][
                    _CFG_DIFF_HASH_ALGORITHM
                ].strip()

        if cfg.has_section(_CFG_MIGRATIONS):
            if cfg.has_option(_CFG_MIGRATIONS, _CFG_MIGRATIONS_COSMETIC_KEYS):
                keys = cfg[_CFG_MIGRATIONS][_CFG_MIGRATIONS_COSMETIC_KEYS]
                kwargs["cosmetic_keys"] = tuple(
                    key.strip() for key in keys.split(",") if key.strip()
                )

        return SchemaDriftConfig(**kwargs)


__all__ = [
    "SchemaDriftConfig",
    "SCHEMADRIFT_CFG_FILE",
    "DEFAULT_STORE_PATH",
    "DEFAULT_COSMETIC_KEYS",
]
