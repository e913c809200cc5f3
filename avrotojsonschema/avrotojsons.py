import copy
import json
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Union

from avrotojsonschema.errors import (ConversionDepthError, ConverterConfigurationError, SchemaResolutionError,
                                     UnknownLogicalTypeError, UnsupportedTypeError)
from avrotojsonschema.logicaltypes import LogicalTypeConverter, build_logical_type_registry
from avrotojsonschema.typemodel import UNION_ENCODINGS, AvroSchema, TypeKind, TypeNode, resolve_schema

logger = logging.getLogger(__name__)

# Maximum nesting depth of a schema (prevents stack overflow)
MAX_CONVERSION_DEPTH = 200

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Strings restricted to single-byte code points stand in for raw bytes
BUFFER_PATTERN = '^[\u0000-\u00ff]*$'


class AvroToJsonSchemaConverter:
    """
    Converts Avro schemas to JSON Schema.

    The Avro schema is resolved into a TypeNode tree first. Each node is then
    converted by the method registered for its kind, or, for logical types, by
    the converter registered for the logical type name.
    """

    def __init__(self, logical_types: Optional[Mapping[str, LogicalTypeConverter]] = None,
                 wrap_unions: str = 'auto', strict_logical_types: bool = False,
                 max_depth: int = MAX_CONVERSION_DEPTH) -> None:
        if wrap_unions not in UNION_ENCODINGS:
            raise ConverterConfigurationError(
                f"wrap_unions must be one of {', '.join(UNION_ENCODINGS)}, not {wrap_unions!r}")
        if not isinstance(max_depth, int) or isinstance(max_depth, bool) or max_depth < 1:
            raise ConverterConfigurationError(f"max_depth must be a positive integer, not {max_depth!r}")
        self.logical_types = build_logical_type_registry(logical_types)
        self.wrap_unions = wrap_unions
        self.strict_logical_types = strict_logical_types
        self.max_depth = max_depth
        self.kind_converters: Mapping[TypeKind, Callable[..., Dict[str, Any]]] = MappingProxyType({
            TypeKind.RECORD: self.convert_record,
            TypeKind.ENUM: self.convert_enum,
            TypeKind.ARRAY: self.convert_array,
            TypeKind.MAP: self.convert_map,
            TypeKind.UNWRAPPED_UNION: self.convert_union,
            TypeKind.WRAPPED_UNION: self.convert_union,
            TypeKind.FIXED: self.convert_fixed,
            TypeKind.BYTES: self.convert_bytes,
            TypeKind.FLOAT: self.convert_float,
            TypeKind.DOUBLE: self.convert_double,
            TypeKind.BOOLEAN: self.convert_boolean,
            TypeKind.STRING: self.convert_string,
            TypeKind.NULL: self.convert_null,
            TypeKind.LONG: self.convert_long,
            TypeKind.INT: self.convert_int,
        })

    def convert(self, avro_schema: Union[AvroSchema, TypeNode]) -> Dict[str, Any]:
        """
        Convert an Avro schema to a JSON schema.

        Args:
            avro_schema: The Avro schema document, or a TypeNode tree that is
                already resolved.

        Returns:
            The JSON schema as a dict.
        """
        if isinstance(avro_schema, TypeNode):
            avro_type = avro_schema
        else:
            avro_type = resolve_schema(avro_schema,
                                       logical_types=self.logical_types.keys(),
                                       wrap_unions=self.wrap_unions,
                                       strict_logical_types=self.strict_logical_types,
                                       max_depth=self.max_depth)
        try:
            return self.convert_node(avro_type)
        except RecursionError as e:
            raise ConversionDepthError("Avro schema is nested too deeply to convert", cause=e) from e

    def convert_node(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        """
        Convert a resolved type node and everything below it.
        """
        if depth > self.max_depth:
            logger.warning("Maximum conversion depth exceeded at: %s", path)
            raise ConversionDepthError(f"Maximum conversion depth ({self.max_depth}) exceeded", context=path)
        converter = self.resolve_converter(avro_type, path)
        if avro_type.kind == TypeKind.LOGICAL:
            return converter(avro_type)
        return converter(avro_type, path, depth)

    def resolve_converter(self, avro_type: TypeNode, path: str = '') -> Callable[..., Dict[str, Any]]:
        """
        Select the converter for a type node.

        Raises:
            UnknownLogicalTypeError: No converter is registered for the node's logical type.
            UnsupportedTypeError: The node is not of a known kind.
        """
        if not isinstance(avro_type, TypeNode):
            raise UnsupportedTypeError(f"Cannot convert {type(avro_type).__name__} {avro_type!r}", context=path)
        if avro_type.kind == TypeKind.LOGICAL:
            logical_name = avro_type.logical_name or ''
            if logical_name not in self.logical_types:
                raise UnknownLogicalTypeError(logical_name, context=path)
            logger.debug("Converting %s with logical type converter '%s'", path or 'root', logical_name)
            return self.logical_types[logical_name]
        converter = self.kind_converters.get(avro_type.kind)
        if converter is None:
            raise UnsupportedTypeError(f"Avro schema contains unexpected type {avro_type.kind!r}", context=path)
        return converter

    def convert_record(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        """
        Convert an Avro record type to a JSON schema object.

        Fields with a default value carry it as 'default' and are left out of
        'required'. A default of null, 0, false or "" still counts as a default.
        """
        properties: Dict[str, Any] = {}
        required = []
        prefix = path or (avro_type.name or '').rsplit('.', 1)[-1]
        for field in avro_type.fields:
            prop = self.convert_node(field.type, f"{prefix}.{field.name}", depth + 1)
            if field.has_default:
                prop = dict(prop)
                prop['default'] = copy.deepcopy(field.default)
            else:
                required.append(field.name)
            properties[field.name] = prop
        return {
            'type': 'object',
            'properties': properties,
            'required': required
        }

    def convert_enum(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        return {'type': 'string', 'enum': list(avro_type.symbols)}

    def convert_array(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        return {
            'type': 'array',
            'items': self.convert_node(avro_type.items, path + '[]', depth + 1)
        }

    def convert_map(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        return {
            'type': 'object',
            'additionalProperties': self.convert_node(avro_type.values, path + '{}', depth + 1)
        }

    def convert_union(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        """
        Convert an Avro union. Wrapped and unwrapped unions describe the same
        values and convert to the same 'oneOf'.
        """
        return {
            'oneOf': [self.convert_node(t, path, depth + 1) for t in avro_type.types]
        }

    def convert_fixed(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        return self.convert_buffer(avro_type.size, avro_type.size)

    def convert_bytes(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        return self.convert_buffer()

    def convert_float(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        return {'type': 'number'}

    def convert_double(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        return self.convert_float(avro_type)

    def convert_boolean(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        return {'type': 'boolean'}

    def convert_string(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        return {'type': 'string'}

    def convert_null(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        return {'type': 'null'}

    def convert_long(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        return {'type': 'integer', 'minimum': INT64_MIN, 'maximum': INT64_MAX}

    def convert_int(self, avro_type: TypeNode, path: str = '', depth: int = 0) -> Dict[str, Any]:
        return {'type': 'integer', 'minimum': INT32_MIN, 'maximum': INT32_MAX}

    @staticmethod
    def convert_buffer(min_length: Optional[int] = None, max_length: Optional[int] = None) -> Dict[str, Any]:
        """
        JSON schema for a byte sequence: a string of single-byte code points
        with optional length bounds.
        """
        json_schema: Dict[str, Any] = {'type': 'string', 'pattern': BUFFER_PATTERN}
        if max_length is not None:
            json_schema['maxLength'] = max_length
        if min_length is not None:
            json_schema['minLength'] = min_length
        return json_schema


def convert_avro_to_json_schema_string(avro_schema: Union[AvroSchema, TypeNode],
                                       logical_types: Optional[Mapping[str, LogicalTypeConverter]] = None,
                                       wrap_unions: str = 'auto', strict_logical_types: bool = False) -> str:
    """
    Convert an Avro schema to JSON schema text.
    """
    converter = AvroToJsonSchemaConverter(logical_types, wrap_unions, strict_logical_types)
    return json.dumps(converter.convert(avro_schema), indent=4)


def convert_avro_to_json_schema(avro_schema_file: str, json_schema_file: str,
                                logical_types: Optional[Mapping[str, LogicalTypeConverter]] = None,
                                wrap_unions: str = 'auto', strict_logical_types: bool = False) -> Dict[str, Any]:
    """
    Convert an Avro schema file to a JSON schema file.

    :param avro_schema_file: The path to the input Avro schema file.
    :param json_schema_file: The path to the output JSON schema file.
    :param logical_types: Additional or replacement logical type converters.
    :param wrap_unions: Union encoding, 'auto', 'always' or 'never'.
    :param strict_logical_types: Fail on logical types without a registered converter.
    :return: The JSON schema that was written.
    """
    converter = AvroToJsonSchemaConverter(logical_types, wrap_unions, strict_logical_types)

    # Read the Avro schema file
    with open(avro_schema_file, 'r', encoding='utf-8') as file:
        try:
            avro_schema = json.load(file)
        except json.JSONDecodeError as e:
            raise SchemaResolutionError(f"{avro_schema_file} is not valid JSON: {e}", cause=e) from e
        except RecursionError as e:
            raise ConversionDepthError(f"{avro_schema_file} is nested too deeply to read", cause=e) from e

    # Convert the Avro schema to JSON schema
    json_schema = converter.convert(avro_schema)
    logger.debug("Converted %s to JSON schema", avro_schema_file)

    # Write the JSON schema to the output file
    with open(json_schema_file, 'w', encoding='utf-8') as file:
        json.dump(json_schema, file, indent=4)
    return json_schema
