# Copyright Red Hat
#
# tests/schema/test_record.py - Typed record tests.
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest

from schemadrift import UndefinedKeyError, ValidationError
from schemadrift.schema.record import Record

from tests._util import user_v2, user_v2_fields


class TestRecord(unittest.TestCase):
    def test_defaults(self):
        record = Record(user_v2())
        self.assertEqual(
            record.value(), {"admin": False, "profile": {"name": None, "password": None}}
        )
        self.assertEqual(record.data, {})

    def test_set_and_get(self):
        record = Record(user_v2())
        result = record.set("profile.name", "bob")
        self.assertTrue(result.passed)
        self.assertEqual(record.get("profile.name"), "bob")
        self.assertEqual(record.data, {"profile": {"name": "bob"}})

    def test_set_invalid_type(self):
        record = Record(user_v2())
        result = record.set("admin", "yes")
        self.assertFalse(result.passed)
        self.assertEqual(result.errors, ["admin: value is not a valid boolean."])
        self.assertIs(record.get("admin"), False)

    def test_set_undefined(self):
        record = Record(user_v2())
        self.assertFalse(record.set("nope", 1).passed)
        with self.assertRaises(UndefinedKeyError):
            record.get("nope")
        with self.assertRaises(UndefinedKeyError):
            record.get("admin.x")

    def test_unset_required(self):
        record = Record(user_v2())
        result = record.set("profile.name", None)
        self.assertEqual(result.errors, ["profile.name: required field cannot be unset."])

    def test_set_shape(self):
        record = Record(user_v2())
        self.assertTrue(record.set("profile", {"name": "a", "password": "b"}).passed)
        self.assertFalse(record.set("profile", {"name": 1}).passed)
        self.assertFalse(record.set("profile", "flat").passed)
        self.assertEqual(record.get("profile"), {"name": "a", "password": "b"})

    def test_assign_raises(self):
        record = Record(user_v2())
        with self.assertRaises(ValidationError) as cm:
            record.assign("admin", 1)
        self.assertEqual(cm.exception.errors, ["admin: value is not a valid boolean."])

    def test_custom_validator(self):
        fields = user_v2_fields()
        fields["profile"]["shape"]["password"]["__meta"]["validate"] = lambda v: len(v) >= 8
        record = Record(fields)
        self.assertFalse(record.set("profile.password", "short").passed)
        self.assertTrue(record.set("profile.password", "long enough").passed)

    def test_choices(self):
        record = Record({"color": {"type": "string", "choices": ["red", "blue"]}})
        self.assertTrue(record.set("color", "red").passed)
        self.assertFalse(record.set("color", "green").passed)

    def test_initial_data(self):
        record = Record(user_v2(), {"profile": {"name": "bob", "password": "pw"}})
        self.assertTrue(record.validate().passed)
        self.assertEqual(record.data, {"profile": {"name": "bob", "password": "pw"}})

    def test_initial_flat_data(self):
        record = Record(user_v2(), {"profile.name": "bob", "admin": True})
        self.assertEqual(record.get("profile.name"), "bob")
        self.assertIs(record.get("admin"), True)

    def test_initial_object_field(self):
        record = Record({"settings": {"type": "object"}}, {"settings": {"a": 1}})
        self.assertEqual(record.get("settings"), {"a": 1})

    def test_initial_data_invalid(self):
        with self.assertRaises(ValidationError):
            Record(user_v2(), {"admin": "no"})

    def test_validate_incomplete(self):
        record = Record(user_v2())
        result = record.validate()
        self.assertFalse(result.passed)
        self.assertIn("profile.name: required field missing.", result.errors)
        self.assertTrue(record.validate(allow_incomplete=True).passed)

    def test_value_is_copy(self):
        record = Record(user_v2())
        record.value()["profile"]["name"] = "x"
        self.assertIsNone(record.get("profile.name"))

    def test_reset(self):
        record = Record(user_v2(), {"admin": True, "profile": {"name": "bob"}})
        record.reset()
        self.assertIs(record.get("admin"), False)
        # Required without a default: kept.
        self.assertEqual(record.get("profile.name"), "bob")

    def test_reset_optional_without_default(self):
        fields = user_v2_fields()
        fields["nick"] = {"type": "string"}
        record = Record(fields, {"nick": "bobby"})
        record.reset()
        self.assertIsNone(record.get("nick"))

    def test_reset_with_payload(self):
        record = Record(user_v2(), {"admin": True})
        record.reset({"profile.password": "pw"})
        self.assertIs(record.get("admin"), False)
        self.assertEqual(record.get("profile.password"), "pw")
        with self.assertRaises(ValidationError):
            record.reset({"admin": "no"})

    def test_update_from_submission(self):
        record = Record(user_v2())
        result = record.update_from_submission(
            {"admin": "true", "profile.name": "bob", "profile.password": "pw"}
        )
        self.assertTrue(result.passed)
        self.assertIs(record.get("admin"), True)
        self.assertEqual(
            record.value(), {"admin": True, "profile": {"name": "bob", "password": "pw"}}
        )

    def test_update_from_submission_coerces_numbers(self):
        record = Record({"age": {"type": "number"}, "name": {"type": "string"}})
        record.update_from_submission({"age": "42", "name": 7})
        self.assertEqual(record.get("age"), 42)
        self.assertEqual(record.get("name"), "7")

    def test_update_from_submission_ignores_undefined(self):
        record = Record(user_v2())
        result = record.update_from_submission(
            {"profile.name": "bob", "profile.password": "pw", "extra": 1}
        )
        self.assertIn("extra: not-in-schema property.", result.warnings)
        self.assertEqual(record.get("profile.name"), "bob")

    def test_update_from_submission_invalid(self):
        record = Record(user_v2())
        with self.assertRaises(ValidationError) as cm:
            record.update_from_submission(
                {"admin": "maybe", "profile.name": "bob", "profile.password": "pw"}
            )
        self.assertEqual(cm.exception.errors, ["admin: value is not a valid boolean."])
        self.assertIn("User", str(cm.exception))
        self.assertIsNone(record.get("profile.name"))
