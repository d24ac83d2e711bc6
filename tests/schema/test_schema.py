# Copyright Red Hat
#
# tests/schema/test_schema.py - Schema descriptor and projection tests.
#
# This file is part of the schemadrift project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest

from schemadrift import SchemaDriftError, SchemaNotFoundError
from schemadrift.diff.engine import create_diff
from schemadrift.schema.schema import (
    Schema,
    create_default,
    field_to_data,
    find_links,
    is_link,
    link_schema,
    make_schema_change_handler,
    migrate,
    schema_to_data,
    strip_callables,
    strip_cosmetic,
)

from tests._util import (
    account_schema,
    profile_schema,
    user_v1,
    user_v1_fields,
    user_v2,
    user_v2_fields,
    user_v3_fields,
)


def _non_empty(value):
    return bool(value)


class TestSchema(unittest.TestCase):
    def test_empty_name(self):
        with self.assertRaises(SchemaDriftError):
            Schema("", {})

    def test_collection(self):
        self.assertEqual(user_v1().collection, "user")
        self.assertEqual(Schema("User", {"__meta": {"name": "people"}}).collection, "people")

    def test_distinct(self):
        self.assertTrue(user_v1().distinct)
        self.assertFalse(Schema("Inline", {"__meta": {"distinct": False}}).distinct)

    def test__str__(self):
        self.assertEqual(str(Schema("User", {}, version=2)), "User v2 (user)")

    def test_field_items(self):
        self.assertEqual([name for name, _ in user_v1().field_items()], ["name", "password"])

    def test_tree_expands_embedded(self):
        account = account_schema(profile_schema())
        tree = account.tree()
        self.assertEqual(tree["profile"]["shape"], {"bio": {"type": "string", "default": ""}})
        self.assertEqual(tree["profile"]["__meta"], {})

    def test_schema_set_children_first(self):
        account = account_schema(profile_schema())
        self.assertEqual([s.name for s in account.schema_set()], ["Profile", "Account"])

    def test_schema_set_self_embedding(self):
        loop = Schema("Loop", {})
        loop.fields["child"] = {"shape": loop}
        with self.assertRaises(SchemaDriftError):
            loop.schema_set()

    def test_unlinked_tree_stubs(self):
        account = account_schema(profile_schema())
        unlinked = account.unlinked_tree({"Profile": 3})
        self.assertEqual(
            unlinked["profile"],
            {"__meta": {"schema": "Profile", "schemaName": "profile", "version": 3}},
        )
        self.assertTrue(is_link(unlinked["profile"]))
        self.assertEqual(len(find_links(unlinked)), 1)

    def test_unlinked_tree_non_distinct_expanded(self):
        inline = Schema("Inline", {"__meta": {"distinct": False}, "x": {"type": "number"}})
        outer = Schema("Outer", {"inner": {"shape": inline}})
        unlinked = outer.unlinked_tree()
        self.assertEqual(unlinked["inner"]["shape"], {"x": {"type": "number"}})
        self.assertEqual(find_links(unlinked), [])

    def test_link_schema_round_trip(self):
        profile = profile_schema()
        account = account_schema(profile)
        unlinked = account.unlinked_tree({"Profile": 1})
        stored = {("Profile", 1): profile.unlinked_tree()}

        linked = link_schema(
            unlinked, lambda link: stored.get((link["schema"], link["version"]))
        )
        self.assertEqual(len(create_diff(linked, strip_callables(account.tree()))), 0)

    def test_link_schema_missing(self):
        unlinked = account_schema(profile_schema()).unlinked_tree({"Profile": 1})
        with self.assertRaises(SchemaNotFoundError):
            link_schema(unlinked, lambda link: None)

    def test_strip_callables(self):
        tree = {"a": {"__meta": {"validate": _non_empty, "required": True}}, "f": len}
        self.assertEqual(strip_callables(tree), {"a": {"__meta": {"required": True}}})

    def test_strip_cosmetic(self):
        tree = {
            "__meta": {"form": ["a"], "name": "x"},
            "a": {"__meta": {"form": {"group": 1}, "validate": _non_empty}, "type": "string"},
            "form": {"type": "string"},
        }
        self.assertEqual(
            strip_cosmetic(tree),
            {
                "__meta": {"name": "x"},
                "a": {"__meta": {}, "type": "string"},
                "form": {"type": "string"},
            },
        )

    def test_record_name_for(self):
        self.assertEqual(user_v1().record_name_for({"name": "bob"}), "bob")
        self.assertEqual(user_v2().record_name_for({"profile": {"name": "al"}}), "al")
        schema = Schema("T", {"__meta": {"recordname": lambda data: data["id"] * 2}})
        self.assertEqual(schema.record_name_for({"id": 2}), "4")

    def test_record_name_for_errors(self):
        with self.assertRaises(SchemaDriftError):
            Schema("T", {}).record_name_for({})
        with self.assertRaises(SchemaDriftError):
            user_v2().record_name_for({"profile": {}})


class TestProjection(unittest.TestCase):
    def test_field_to_data(self):
        self.assertEqual(field_to_data({"type": "boolean", "default": True}), True)
        self.assertIsNone(field_to_data({"type": "string"}))
        self.assertEqual(
            field_to_data({"shape": {"x": {"default": 1}, "y": {}}}), {"x": 1, "y": None}
        )
        self.assertEqual(field_to_data({"shape": profile_schema()}), {"bio": ""})

    def test_schema_to_data(self):
        self.assertEqual(
            schema_to_data(user_v2_fields()),
            {"admin": False, "profile": {"name": None, "password": None}},
        )

    def test_create_default(self):
        self.assertEqual(create_default(user_v2()), {"admin": False, "profile": {}})
        self.assertEqual(create_default(account_schema(profile_schema())), {"profile": {"bio": ""}})


class TestMigrate(unittest.TestCase):
    def test_migrate_v1_to_v2(self):
        data = {"name": "bob", "password": "secret"}
        migrate(data, user_v1(), user_v2())
        self.assertEqual(
            data, {"admin": False, "profile": {"name": None, "password": None}}
        )

    def test_migrate_with_hooks(self):
        saved = {}

        def _save(operation, position):
            saved[position.prop_name] = position.level[position.prop_name]

        def _fill_profile(operation, position):
            position.level[position.prop_name].update(saved)

        hooks = {"removeName": _save, "removePassword": _save, "addProfile": _fill_profile}
        data = migrate({"name": "bob", "password": "pw"}, user_v1(), user_v2(), hooks=hooks)
        self.assertEqual(
            data, {"admin": False, "profile": {"name": "bob", "password": "pw"}}
        )

    def test_migrate_operation_list(self):
        ops = create_diff(user_v2_fields(), user_v3_fields())
        data = {"admin": True, "profile": {"name": "bob"}}
        migrate(data, ops.to_list())
        self.assertEqual(data, {"admin": True, "profile": {"name": "bob"}, "allow_chat": True})
        migrate(data, ops.reverse())
        self.assertEqual(data, {"admin": True, "profile": {"name": "bob"}})

    def test_migrate_nested_field(self):
        fields = user_v2_fields()
        fields["profile"]["shape"]["email"] = {"type": "string", "default": "x@y"}
        data = {"admin": False, "profile": {"name": "bob"}}
        migrate(data, user_v2_fields(), fields)
        self.assertEqual(data["profile"], {"name": "bob", "email": "x@y"})

    def test_migrate_ignores_metadata(self):
        old = user_v1_fields()
        new = user_v1_fields()
        new["name"]["__meta"]["required"] = False
        new["name"]["default"] = "anon"
        new["password"]["type"] = "number"
        data = {"name": "bob", "password": "pw"}
        migrate(data, old, new)
        self.assertEqual(data, {"name": "bob", "password": "pw"})

    def test_migrate_rename(self):
        old = user_v3_fields()
        new = user_v3_fields()
        new["allow_chats"] = new.pop("allow_chat")
        data = {"allow_chat": False}
        migrate(data, old, new)
        self.assertEqual(data, {"allow_chats": False})

    def test_migrate_bad_args(self):
        with self.assertRaises(TypeError):
            migrate({})

    def test_change_handler_policies(self):
        handler = make_schema_change_handler()
        self.assertTrue(handler.ignore_key("name.__meta.required", None))
        self.assertTrue(handler.ignore_key("name.type", None))
        self.assertFalse(handler.ignore_key("profile.shape.name", None))
        self.assertEqual(handler.filter_key_string("profile.shape.name"), "profile.name")
        self.assertEqual(
            handler.transform_value("profile.shape", {"a": {"default": 1}}), {"a": 1}
        )
        self.assertEqual(handler.transform_value("a", {"default": 1}), 1)
