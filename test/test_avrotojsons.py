import json
import os
import sys
import tempfile
import unittest

from jsoncomparison import NO_DIFF, Compare
from jsonschema import Draft7Validator

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from avrotojsonschema.avrotojsons import (BUFFER_PATTERN, AvroToJsonSchemaConverter, convert_avro_to_json_schema,
                                          convert_avro_to_json_schema_string)
from avrotojsonschema.errors import RecursiveTypeError, SchemaResolutionError

INT_SCHEMA = {"type": "integer", "minimum": -2147483648, "maximum": 2147483647}


class TestAvroToJsons(unittest.TestCase):

    def validate_json_schema(self, json_file_path):
        with open(json_file_path, 'r', encoding='utf-8') as file:
            json_schema = json.load(file)
        Draft7Validator.check_schema(json_schema)
        return json_schema

    def create_json_from_avro(self, avro_path, json_path=''):
        if not json_path:
            json_path = avro_path.replace(".avsc", ".json")
        avro_full_path = os.path.join(os.path.dirname(__file__), "avsc", avro_path)
        json_full_path = os.path.join(tempfile.gettempdir(), "avrotojsonschema", json_path)
        dir = os.path.dirname(json_full_path)
        if not os.path.exists(dir):
            os.makedirs(dir, exist_ok=True)

        convert_avro_to_json_schema(avro_full_path, json_full_path)
        actual = self.validate_json_schema(json_full_path)

        # Compare with reference JSON schema if available
        json_ref_path = avro_full_path.replace(".avsc", "-ref.json")
        if os.path.exists(json_ref_path):
            with open(json_ref_path, "r", encoding='utf-8') as ref:
                expected = json.loads(ref.read())
            diff = Compare().check(expected, actual)
            assert diff == NO_DIFF
            self.assertEqual(list(actual["properties"].keys()), list(expected["properties"].keys()))
            self.assertEqual(actual["required"], expected["required"])
        return actual

    def test_convert_address_avro_to_json(self):
        self.create_json_from_avro("address.avsc", "address.json")

    def test_convert_telemetry_avro_to_json(self):
        self.create_json_from_avro("telemetry.avsc", "telemetry.json")

    def test_convert_orders_avro_to_json(self):
        self.create_json_from_avro("orders.avsc", "orders.json")

    def test_convert_recursive_avro_fails(self):
        with self.assertRaises(RecursiveTypeError) as cm:
            self.create_json_from_avro("treenode.avsc", "treenode.json")
        self.assertEqual(cm.exception.cycle_path, ["example.com.tree.TreeNode", "example.com.tree.TreeNode"])

    def test_convert_invalid_json_file_fails(self):
        avro_path = os.path.join(tempfile.gettempdir(), "avrotojsonschema", "broken.avsc")
        os.makedirs(os.path.dirname(avro_path), exist_ok=True)
        with open(avro_path, 'w', encoding='utf-8') as file:
            file.write('{"type": "record", ')
        with self.assertRaises(SchemaResolutionError):
            convert_avro_to_json_schema(avro_path, avro_path.replace(".avsc", ".json"))


class TestAvroToJsonsExamples(unittest.TestCase):
    """End-to-end conversions of small schemas."""

    def setUp(self):
        self.converter = AvroToJsonSchemaConverter()

    def test_record_with_required_int(self):
        avro_schema = {"type": "record", "name": "R", "fields": [{"name": "x", "type": "int"}]}
        self.assertEqual(self.converter.convert(avro_schema), {
            "type": "object",
            "properties": {"x": INT_SCHEMA},
            "required": ["x"]
        })

    def test_enum(self):
        avro_schema = {"type": "enum", "name": "E", "symbols": ["A", "B"]}
        self.assertEqual(self.converter.convert(avro_schema), {"type": "string", "enum": ["A", "B"]})

    def test_array_of_strings(self):
        avro_schema = {"type": "array", "items": "string"}
        self.assertEqual(self.converter.convert(avro_schema), {"type": "array", "items": {"type": "string"}})

    def test_fixed(self):
        avro_schema = {"type": "fixed", "name": "Md5", "size": 16}
        self.assertEqual(self.converter.convert(avro_schema), {
            "type": "string",
            "pattern": "^[\x00-\xff]*$",
            "minLength": 16,
            "maxLength": 16
        })

    def test_int_field_with_zero_default(self):
        avro_schema = {"type": "record", "name": "R", "fields": [{"name": "x", "type": "int", "default": 0}]}
        json_schema = self.converter.convert(avro_schema)
        self.assertEqual(json_schema["properties"]["x"], dict(INT_SCHEMA, default=0))
        self.assertEqual(json_schema["required"], [])

    def test_bytes(self):
        self.assertEqual(self.converter.convert("bytes"), {"type": "string", "pattern": BUFFER_PATTERN})

    def test_primitives(self):
        self.assertEqual(self.converter.convert("null"), {"type": "null"})
        self.assertEqual(self.converter.convert("boolean"), {"type": "boolean"})
        self.assertEqual(self.converter.convert("string"), {"type": "string"})
        self.assertEqual(self.converter.convert("float"), {"type": "number"})
        self.assertEqual(self.converter.convert("double"), {"type": "number"})

    def test_integer_bounds_are_exact(self):
        int_schema = self.converter.convert("int")
        self.assertEqual(int_schema["minimum"], -2147483648)
        self.assertEqual(int_schema["maximum"], 2147483647)
        long_schema = self.converter.convert("long")
        self.assertEqual(long_schema["minimum"], -9223372036854775808)
        self.assertEqual(long_schema["maximum"], 9223372036854775807)
        self.assertIsInstance(long_schema["maximum"], int)
        self.assertIn('9223372036854775807', json.dumps(long_schema))

    def test_map(self):
        self.assertEqual(self.converter.convert({"type": "map", "values": "string"}), {
            "type": "object",
            "additionalProperties": {"type": "string"}
        })

    def test_enum_keeps_symbol_order(self):
        avro_schema = {"type": "enum", "name": "E", "symbols": ["Z", "A", "M"]}
        self.assertEqual(self.converter.convert(avro_schema)["enum"], ["Z", "A", "M"])

    def test_schema_as_json_text(self):
        self.assertEqual(self.converter.convert('{"type": "array", "items": "boolean"}'),
                         {"type": "array", "items": {"type": "boolean"}})

    def test_string_output(self):
        text = convert_avro_to_json_schema_string({"type": "array", "items": "long"})
        self.assertEqual(json.loads(text)["items"]["maximum"], 2**63 - 1)

    def test_generated_schema_validates_instances(self):
        avro_schema = {
            "type": "record",
            "name": "Sample",
            "fields": [
                {"name": "count", "type": "int"},
                {"name": "hash", "type": {"type": "fixed", "name": "Hash", "size": 4}},
                {"name": "note", "type": ["null", "string"], "default": None}
            ]
        }
        validator = Draft7Validator(self.converter.convert(avro_schema))
        self.assertTrue(validator.is_valid({"count": 1, "hash": "\x00\x01\xfe\xff"}))
        self.assertTrue(validator.is_valid({"count": 1, "hash": "abcd", "note": None}))
        self.assertFalse(validator.is_valid({"count": 2**31, "hash": "abcd"}))
        self.assertFalse(validator.is_valid({"count": 1, "hash": "abc"}))
        self.assertFalse(validator.is_valid({"count": 1, "hash": "abc\u0100"}))
        self.assertFalse(validator.is_valid({"hash": "abcd"}))


if __name__ == '__main__':
    unittest.main()
