# Copyright Red Hat
#
# tests/test_config.py - schemadrift configuration tests
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
import os
import tempfile
import unittest

from schemadrift.config import (
    DEFAULT_COSMETIC_KEYS,
    DEFAULT_STORE_PATH,
    SchemaDriftConfig,
)
from schemadrift.diff.options import DiffOptions

_TEST_CONFIG = """[Store]
Path = /var/lib/schemadrift

[Diff]
DetectRenames = no
DetectMoves = yes
HashAlgorithm = sha1

[Migrations]
CosmeticKeys = form, label ,
"""


class TestSchemaDriftConfig(unittest.TestCase):
    def _write_config(self, tempdir, text):
        path = os.path.join(tempdir, "schemadrift.conf")
        with open(path, "w", encoding="utf8") as fp:
            fp.write(text)
        return path

    def test_defaults(self):
        config = SchemaDriftConfig()
        self.assertEqual(config.store_path, DEFAULT_STORE_PATH)
        self.assertTrue(config.detect_renames)
        self.assertTrue(config.detect_moves)
        self.assertEqual(config.hash_algorithm, "sha256")
        self.assertEqual(config.cosmetic_keys, DEFAULT_COSMETIC_KEYS)

    def test_from_file_missing(self):
        config = SchemaDriftConfig.from_file("/nonexistent/schemadrift.conf")
        self.assertEqual(config, SchemaDriftConfig())

    def test_from_file(self):
        with tempfile.TemporaryDirectory(prefix="schemadrift_cfg_") as tempdir:
            config = SchemaDriftConfig.from_file(self._write_config(tempdir, _TEST_CONFIG))
        self.assertEqual(config.store_path, "/var/lib/schemadrift")
        self.assertFalse(config.detect_renames)
        self.assertTrue(config.detect_moves)
        self.assertEqual(config.hash_algorithm, "sha1")
        self.assertEqual(config.cosmetic_keys, ("form", "label"))

    def test_from_file_partial(self):
        with tempfile.TemporaryDirectory(prefix="schemadrift_cfg_") as tempdir:
            path = self._write_config(tempdir, "[Diff]\nDetectMoves = false\n")
            config = SchemaDriftConfig.from_file(path)
        self.assertFalse(config.detect_moves)
        self.assertTrue(config.detect_renames)
        self.assertEqual(config.store_path, DEFAULT_STORE_PATH)

    def test_diff_options_from_config(self):
        config = SchemaDriftConfig(detect_renames=False, hash_algorithm="md5")
        options = DiffOptions.from_config(config)
        self.assertFalse(options.detect_renames)
        self.assertTrue(options.detect_moves)
        self.assertEqual(options.hash_algorithm, "md5")
        self.assertIn("detect_renames=False", str(options))
