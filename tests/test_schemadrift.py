# Copyright Red Hat
#
# tests/test_schemadrift.py - schemadrift package unit tests
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import logging

import schemadrift


log = logging.getLogger()


class SchemaDriftTestsSimple(unittest.TestCase):
    """Test schemadrift module"""

    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)

    def tearDown(self):
        log.debug("Tearing down (%s)", self._testMethodName)
        schemadrift.set_debug_mask(0)

    def test_set_debug_mask(self):
        schemadrift.set_debug_mask(schemadrift.SCHEMADRIFT_DEBUG_ALL)
        self.assertEqual(schemadrift.get_debug_mask(), schemadrift.SCHEMADRIFT_DEBUG_ALL)

    def test_set_debug_mask_bad_mask(self):
        with self.assertRaises(ValueError):
            schemadrift.set_debug_mask(schemadrift.SCHEMADRIFT_DEBUG_ALL + 1)
        with self.assertRaises(ValueError):
            schemadrift.set_debug_mask(-1)

    def test_SubsystemFilter(self):
        # Start with no subsystems enabled
        schemadrift.set_debug_mask(0)
        sf = schemadrift.SubsystemFilter("schemadrift")
        self.assertEqual(sf.enabled_subsystems, set())
        # Enable a couple and ensure new filters initialise from cache
        schemadrift.set_debug_mask(
            schemadrift.SCHEMADRIFT_DEBUG_DIFF | schemadrift.SCHEMADRIFT_DEBUG_STORE
        )
        sf2 = schemadrift.SubsystemFilter("schemadrift")
        self.assertIn(schemadrift.SCHEMADRIFT_SUBSYSTEM_DIFF, sf2.enabled_subsystems)
        self.assertIn(schemadrift.SCHEMADRIFT_SUBSYSTEM_STORE, sf2.enabled_subsystems)
        self.assertNotIn(schemadrift.SCHEMADRIFT_SUBSYSTEM_PATCH, sf2.enabled_subsystems)

    def test_SubsystemFilter_filter(self):
        schemadrift.set_debug_mask(schemadrift.SCHEMADRIFT_DEBUG_DIFF)
        sf = schemadrift.SubsystemFilter("schemadrift")

        def _record(level, subsystem=None):
            record = logging.LogRecord("schemadrift", level, __file__, 1, "msg", (), None)
            if subsystem:
                record.subsystem = subsystem
            return record

        self.assertTrue(sf.filter(_record(logging.INFO, schemadrift.SCHEMADRIFT_SUBSYSTEM_PATCH)))
        self.assertTrue(sf.filter(_record(logging.DEBUG)))
        self.assertTrue(sf.filter(_record(logging.DEBUG, schemadrift.SCHEMADRIFT_SUBSYSTEM_DIFF)))
        self.assertFalse(sf.filter(_record(logging.DEBUG, schemadrift.SCHEMADRIFT_SUBSYSTEM_PATCH)))

    def test_setup_logging(self):
        sd_log = logging.getLogger("schemadrift")
        saved = list(sd_log.handlers)
        try:
            schemadrift.setup_logging(debug_mask=schemadrift.SCHEMADRIFT_DEBUG_SCHEMA)
            self.assertEqual(sd_log.level, logging.DEBUG)
            self.assertEqual(len(sd_log.handlers), 1)
            self.assertEqual(schemadrift.get_debug_mask(), schemadrift.SCHEMADRIFT_DEBUG_SCHEMA)
        finally:
            sd_log.handlers[:] = saved
            sd_log.setLevel(logging.NOTSET)

    def test_SchemaMismatchError_names(self):
        err = schemadrift.SchemaMismatchError(name for name in ("Profile", "Account"))
        self.assertEqual(err.names, ["Profile", "Account"])
        self.assertIn("Profile, Account", str(err))
        self.assertIsInstance(err, schemadrift.SchemaDriftError)

    def test_ValidationError_errors(self):
        err = schemadrift.ValidationError("bad", ["a: required field missing."])
        self.assertEqual(err.errors, ["a: required field missing."])
        self.assertEqual(schemadrift.ValidationError("bad").errors, [])

    def test_error_hierarchy(self):
        for err_class in (
            schemadrift.StructuralMismatchError,
            schemadrift.SchemaNotFoundError,
            schemadrift.StoreNotReadyError,
            schemadrift.NothingToMigrateError,
            schemadrift.RecordNotFoundError,
            schemadrift.RecordParseError,
            schemadrift.UndefinedKeyError,
            schemadrift.DuplicateHandlerError,
        ):
            self.assertTrue(issubclass(err_class, schemadrift.SchemaDriftError))
