#!/usr/bin/env python3
"""Unit tests for schema document parsing"""
import json
import os
import shutil
import tempfile
import unittest

from schema_model import (
    ArrayField, ForeignRefField, GeneratedField, ObjectField, ScalarField,
    format_field_path, load_schema_dir, load_table_schemas, parse_field,
    parse_table_schema, schema_identity, walk_fields
)
from seed_errors import MissingIdentityError, SchemaError


def table_doc(title, properties, schema_id=None):
    doc = {"title": title, "type": "object", "properties": properties}
    if schema_id:
        doc["$id"] = schema_id
    return doc


class TestParseField(unittest.TestCase):
    """Test mapping of JSON-Schema properties onto field variants"""

    def test_scalar_types(self):
        """Test plain scalar properties"""
        self.assertEqual(parse_field({"type": "string"}, "t.a"), ScalarField("string", None, None))
        self.assertEqual(parse_field({"type": "integer"}, "t.a"), ScalarField("integer", None, None))
        self.assertEqual(parse_field({"type": "string", "format": "uuid"}, "t.a"),
                         ScalarField("string", "uuid", None))

    def test_nullable_type_list(self):
        """Test ["string", "null"] is treated as string"""
        self.assertEqual(parse_field({"type": ["null", "string"]}, "t.a").type, "string")

    def test_enum(self):
        """Test enum members are kept in order"""
        field = parse_field({"type": "string", "enum": ["a", "b"]}, "t.a")
        self.assertEqual(field.enum, ("a", "b"))

    def test_empty_enum_rejected(self):
        """Test an empty enum is a schema error"""
        with self.assertRaises(SchemaError):
            parse_field({"type": "string", "enum": []}, "t.a")

    def test_generated_wins_over_foreign_table(self):
        """Test isGenerated takes precedence"""
        field = parse_field({"type": "integer", "isGenerated": True, "foreignTable": "public.a"}, "t.a")
        self.assertIsInstance(field, GeneratedField)

    def test_foreign_reference_default_key(self):
        """Test foreignColumn defaults to id"""
        self.assertEqual(parse_field({"type": "string", "foreignTable": "public.a"}, "t.a"),
                         ForeignRefField("public.a", "id"))
        self.assertEqual(parse_field({"foreignTable": "public.a", "foreignColumn": "code"}, "t.a"),
                         ForeignRefField("public.a", "code"))

    def test_nested_object(self):
        """Test objects with properties become ObjectField"""
        field = parse_field({"type": "object", "properties": {"x": {"type": "boolean"}}}, "t.a")
        self.assertIsInstance(field, ObjectField)
        self.assertEqual(field.fields["x"], ScalarField("boolean", None, None))

    def test_array_single_and_tuple_items(self):
        """Test both array item forms"""
        single = parse_field({"type": "array", "items": {"type": "integer"}, "minItems": 2}, "t.a")
        self.assertEqual(single, ArrayField((ScalarField("integer", None, None),), 2))
        multi = parse_field({"type": "array", "items": [{"type": "integer"}, {"foreignTable": "p.b"}]}, "t.a")
        self.assertEqual(len(multi.items), 2)
        self.assertIsNone(multi.count)
        self.assertIsInstance(multi.items[1], ForeignRefField)

    def test_non_object_property_rejected(self):
        """Test a property that is not an object is a schema error"""
        with self.assertRaises(SchemaError):
            parse_field("string", "t.a")


class TestTableSchema(unittest.TestCase):
    """Test table-level parsing and identity"""

    def test_identity_from_title(self):
        """Test title is the table key"""
        schema = parse_table_schema(table_doc("public.users", {"id": {"type": "string"}}))
        self.assertEqual(schema.identity, "public.users")
        self.assertFalse(schema.protected)
        self.assertEqual(list(schema.fields), ["id"])

    def test_identity_from_id(self):
        """Test $id is used when there is no title"""
        doc = {"$id": "http://example.com/schemas/public/orders.json", "properties": {}}
        self.assertEqual(schema_identity(doc), "public.orders")

    def test_missing_identity(self):
        """Test a schema with neither title nor $id"""
        with self.assertRaises(MissingIdentityError):
            parse_table_schema({"properties": {}})

    def test_invalid_id(self):
        """Test an $id without namespace segment"""
        with self.assertRaises(SchemaError):
            schema_identity({"$id": "http://example.com/users.json"})

    def test_protected_patterns(self):
        """Test default protected patterns and custom ones"""
        self.assertTrue(parse_table_schema(table_doc("auth.users", {})).protected)
        self.assertTrue(parse_table_schema(table_doc("public.api_auth", {})).protected)
        self.assertFalse(parse_table_schema(table_doc("auth.users", {}), []).protected)
        self.assertTrue(parse_table_schema(table_doc("ref.countries", {}), ["ref.*"]).protected)

    def test_fields_are_read_only(self):
        """Test the field mapping cannot be modified"""
        schema = parse_table_schema(table_doc("public.a", {"x": {"type": "string"}}))
        with self.assertRaises(TypeError):
            schema.fields["y"] = ScalarField("string", None, None)

    def test_load_skips_bad_and_duplicate_schemas(self):
        """Test unusable schemas are skipped while the rest load"""
        docs = [
            table_doc("public.a", {}),
            {"properties": {}},
            table_doc("public.a", {}),
            table_doc("public.b", {"x": "bad"}),
            table_doc("public.c", {}),
        ]
        schemas, skipped = load_table_schemas(docs)
        self.assertEqual([s.identity for s in schemas], ["public.a", "public.c"])
        self.assertEqual(len(skipped), 3)
        self.assertIsInstance(skipped[0][1], MissingIdentityError)


class TestWalkFields(unittest.TestCase):
    """Test the recursive field visitor"""

    def test_visits_nested_and_array_shapes(self):
        """Test every field at any depth is visited once"""
        schema = parse_table_schema(table_doc("public.a", {
            "meta": {"type": "object", "properties": {
                "owner": {"foreignTable": "public.u"},
            }},
            "tags": {"type": "array", "items": {"type": "object", "properties": {
                "ref": {"foreignTable": "public.t"},
            }}},
            "pair": {"type": "array", "items": [{"type": "string"}, {"foreignTable": "public.v"}]},
        }))
        paths = {format_field_path(p): f for p, f in walk_fields(schema.fields)}
        self.assertIsInstance(paths["meta.owner"], ForeignRefField)
        self.assertEqual(paths["tags[].ref"].target, "public.t")
        self.assertEqual(paths["pair[1]"].target, "public.v")
        self.assertIn("pair[0]", paths)


class TestLoadSchemaDir(unittest.TestCase):
    """Test reading exported schema files"""

    def setUp(self):
        self.tmp = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp)

    def test_reads_nested_json_files_in_order(self):
        """Test files in namespace folders are read sorted by path"""
        for ns, name in (("public", "b"), ("auth", "users"), ("public", "a")):
            os.makedirs(os.path.join(self.tmp, ns), exist_ok=True)
            with open(os.path.join(self.tmp, ns, name + ".json"), "w") as f:
                json.dump(table_doc("{0}.{1}".format(ns, name), {}), f)
        docs = load_schema_dir(self.tmp)
        self.assertEqual([d["title"] for d in docs], ["auth.users", "public.a", "public.b"])

    def test_invalid_json(self):
        """Test broken files raise SchemaError"""
        with open(os.path.join(self.tmp, "x.json"), "w") as f:
            f.write("{not json")
        with self.assertRaises(SchemaError):
            load_schema_dir(self.tmp)

    def test_missing_dir(self):
        """Test a missing directory raises SchemaError"""
        with self.assertRaises(SchemaError):
            load_schema_dir(os.path.join(self.tmp, "nope"))


if __name__ == "__main__":
    unittest.main()
