"""
Resolved type model for Avro schemas.

The schema document is first parsed and checked by fastavro. The parsed form
is then turned into a tree of frozen TypeNode values in which every named
type reference is replaced by the node of the referenced definition, so the
converter never has to look up names. Logical type annotations become
LOGICAL nodes wrapping their base type when the caller asked for them;
other annotations are dropped as the Avro specification requires for
unknown logical types.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from fastavro.schema import SchemaParseException, parse_schema

from avrotojsonschema.errors import (ConversionDepthError, ConverterConfigurationError, RecursiveTypeError,
                                     SchemaResolutionError)

logger = logging.getLogger(__name__)

AvroSchema = Union[str, Dict[str, Any], List[Any]]

# Namespace used in TypeNode.type_name for logical types
LOGICAL_NAMESPACE = 'logical'

UNION_ENCODINGS = ('auto', 'always', 'never')


class TypeKind(Enum):
    """The kinds of nodes in a resolved Avro type tree."""
    NULL = 'null'
    BOOLEAN = 'boolean'
    INT = 'int'
    LONG = 'long'
    FLOAT = 'float'
    DOUBLE = 'double'
    STRING = 'string'
    BYTES = 'bytes'
    FIXED = 'fixed'
    ENUM = 'enum'
    ARRAY = 'array'
    MAP = 'map'
    RECORD = 'record'
    UNWRAPPED_UNION = 'unwrapped_union'
    WRAPPED_UNION = 'wrapped_union'
    LOGICAL = 'logical'


PRIMITIVE_KINDS: Dict[str, TypeKind] = {
    'null': TypeKind.NULL,
    'boolean': TypeKind.BOOLEAN,
    'int': TypeKind.INT,
    'long': TypeKind.LONG,
    'float': TypeKind.FLOAT,
    'double': TypeKind.DOUBLE,
    'string': TypeKind.STRING,
    'bytes': TypeKind.BYTES,
}

# JSON value buckets used to decide whether a union needs the wrapped encoding
UNION_BUCKETS: Dict[TypeKind, str] = {
    TypeKind.NULL: 'null',
    TypeKind.BOOLEAN: 'boolean',
    TypeKind.INT: 'number',
    TypeKind.LONG: 'number',
    TypeKind.FLOAT: 'number',
    TypeKind.DOUBLE: 'number',
    TypeKind.STRING: 'string',
    TypeKind.ENUM: 'string',
    TypeKind.BYTES: 'buffer',
    TypeKind.FIXED: 'buffer',
    TypeKind.ARRAY: 'array',
    TypeKind.MAP: 'object',
    TypeKind.RECORD: 'object',
}


class _NoDefault:
    """Marker for record fields without a default value."""

    def __repr__(self) -> str:
        return '<no default>'


NO_DEFAULT = _NoDefault()


@dataclass(frozen=True)
class TypeNode:
    """A node of the resolved type tree. Which attributes are set depends on kind."""
    kind: TypeKind
    name: Optional[str] = None
    fields: Tuple['Field', ...] = ()
    symbols: Tuple[str, ...] = ()
    items: Optional['TypeNode'] = None
    values: Optional['TypeNode'] = None
    size: Optional[int] = None
    types: Tuple['TypeNode', ...] = ()
    type_name: Optional[str] = None
    underlying: Optional['TypeNode'] = None
    attributes: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}), hash=False)

    @property
    def logical_name(self) -> Optional[str]:
        """The logical type name without its namespace, for LOGICAL nodes."""
        if self.type_name is None:
            return None
        return self.type_name.split(':', 1)[-1]


@dataclass(frozen=True)
class Field:
    """A record field."""
    name: str
    type: TypeNode
    default: Any = field(default=NO_DEFAULT, hash=False)

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


def logical_type_node(logical_name: str, underlying: TypeNode,
                      attributes: Optional[Mapping[str, Any]] = None) -> TypeNode:
    """Build a LOGICAL node for the given logical type name."""
    return TypeNode(TypeKind.LOGICAL,
                    type_name=f"{LOGICAL_NAMESPACE}:{logical_name}",
                    underlying=underlying,
                    attributes=MappingProxyType(dict(attributes or {})))


def union_bucket(node: TypeNode) -> str:
    """Return the JSON value bucket a union member falls into."""
    while node.kind == TypeKind.LOGICAL and node.underlying is not None:
        node = node.underlying
    return UNION_BUCKETS.get(node.kind, node.kind.value)


class TypeResolver:
    """Turns a fastavro-parsed schema into a TypeNode tree."""

    def __init__(self, named_schemas: Dict[str, Any], logical_types: Iterable[str] = (),
                 wrap_unions: str = 'auto', strict_logical_types: bool = False) -> None:
        self.named_schemas = named_schemas
        self.logical_types = frozenset(logical_types)
        self.wrap_unions = wrap_unions
        self.strict_logical_types = strict_logical_types
        self.resolved: Dict[str, TypeNode] = {}
        self.resolving: List[str] = []

    def resolve(self, schema: AvroSchema, path: str = '') -> TypeNode:
        if isinstance(schema, list):
            return self.resolve_union(schema, path)
        elif isinstance(schema, dict):
            return self.resolve_dict(schema, path)
        elif isinstance(schema, str):
            if schema in PRIMITIVE_KINDS:
                return TypeNode(PRIMITIVE_KINDS[schema])
            return self.resolve_reference(schema, path)
        raise SchemaResolutionError(f"Unexpected schema construct {schema!r}", context=path)

    def resolve_reference(self, name: str, path: str) -> TypeNode:
        if name in self.resolved:
            return self.resolved[name]
        if name in self.resolving:
            cycle = self.resolving[self.resolving.index(name):] + [name]
            raise RecursiveTypeError(cycle)
        if name not in self.named_schemas:
            raise SchemaResolutionError(f"Unknown type reference {name}", context=path)
        return self.resolve(self.named_schemas[name], path)

    def resolve_union(self, schema: List[Any], path: str) -> TypeNode:
        types = tuple(self.resolve(member, path) for member in schema)
        if self.wrap_unions == 'always':
            wrapped = True
        elif self.wrap_unions == 'never':
            wrapped = False
        else:
            buckets = [union_bucket(t) for t in types]
            wrapped = len(set(buckets)) < len(buckets)
        kind = TypeKind.WRAPPED_UNION if wrapped else TypeKind.UNWRAPPED_UNION
        return TypeNode(kind, types=types)

    def resolve_dict(self, schema: Dict[str, Any], path: str) -> TypeNode:
        schema_type = schema.get('type')
        if isinstance(schema_type, (dict, list)):
            return self.resolve(schema_type, path)
        if not isinstance(schema_type, str):
            raise SchemaResolutionError(f"Avro schema contains unexpected construct {schema}", context=path)

        logical_type = schema.get('logicalType')
        if logical_type is not None and (self.strict_logical_types or logical_type in self.logical_types):
            attributes = {k: v for k, v in schema.items()
                          if k not in ('type', 'logicalType') and not k.startswith('__')}
            node = logical_type_node(logical_type, self.resolve_base(schema, path), attributes)
        else:
            if logical_type is not None:
                logger.warning("Ignoring unregistered logical type '%s' on %s", logical_type, path or schema_type)
            node = self.resolve_base(schema, path)

        if schema_type in ('record', 'error', 'enum', 'fixed'):
            self.resolved[schema['name']] = node
            logger.debug("Resolved named type %s", schema['name'])
        return node

    def resolve_base(self, schema: Dict[str, Any], path: str) -> TypeNode:
        schema_type = schema['type']
        if schema_type in PRIMITIVE_KINDS:
            return TypeNode(PRIMITIVE_KINDS[schema_type])
        if schema_type in ('record', 'error', 'enum', 'fixed') and not schema.get('name'):
            raise SchemaResolutionError(f"Anonymous {schema_type} types are not allowed", context=path)
        if schema_type in ('record', 'error'):
            return self.resolve_record(schema, path)
        elif schema_type == 'enum':
            return TypeNode(TypeKind.ENUM, name=schema['name'], symbols=tuple(schema['symbols']))
        elif schema_type == 'fixed':
            size = schema.get('size')
            if not isinstance(size, int) or isinstance(size, bool) or size < 1:
                raise SchemaResolutionError(f"Fixed type {schema['name']} must have a positive size, not {size!r}", context=path)
            return TypeNode(TypeKind.FIXED, name=schema['name'], size=size)
        elif schema_type == 'array':
            return TypeNode(TypeKind.ARRAY, items=self.resolve(schema['items'], path + '[]'))
        elif schema_type == 'map':
            return TypeNode(TypeKind.MAP, values=self.resolve(schema['values'], path + '{}'))
        return self.resolve_reference(schema_type, path)

    def resolve_record(self, schema: Dict[str, Any], path: str) -> TypeNode:
        name = schema['name']
        prefix = path or name.rsplit('.', 1)[-1]
        if not isinstance(schema.get('fields'), list):
            raise SchemaResolutionError(f"Record {name} has no fields", context=prefix)
        self.resolving.append(name)
        try:
            fields = []
            seen = set()
            for avro_field in schema['fields']:
                field_name = avro_field['name']
                if field_name in seen:
                    raise SchemaResolutionError(f"Duplicate field '{field_name}' in record {name}", context=prefix)
                seen.add(field_name)
                field_type = self.resolve(avro_field['type'], f"{prefix}.{field_name}")
                fields.append(Field(field_name, field_type, avro_field.get('default', NO_DEFAULT)))
        finally:
            self.resolving.pop()
        return TypeNode(TypeKind.RECORD, name=name, fields=tuple(fields))


def schema_depth(schema: Any) -> int:
    """
    Return how deeply types are nested in a schema document.

    Named references are not followed. The walk uses an explicit stack so
    that documents nested deeper than the interpreter's recursion limit can
    still be measured before they are parsed.
    """
    deepest = 0
    stack = [(schema, 0)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        if isinstance(node, list):
            stack.extend((member, depth + 1) for member in node)
        elif isinstance(node, dict):
            if isinstance(node.get('type'), (dict, list)):
                stack.append((node['type'], depth))
            for key in ('items', 'values'):
                if key in node:
                    stack.append((node[key], depth + 1))
            fields = node.get('fields')
            if isinstance(fields, list):
                stack.extend((f['type'], depth + 1) for f in fields if isinstance(f, dict) and 'type' in f)
    return deepest


def resolve_schema(schema: Union[AvroSchema, bytes], logical_types: Iterable[str] = (),
                   wrap_unions: str = 'auto', strict_logical_types: bool = False,
                   max_depth: Optional[int] = None) -> TypeNode:
    """
    Parse an Avro schema document and resolve it into a TypeNode tree.

    Args:
        schema: The Avro schema as a dict, a list (union), a primitive type
            name or JSON text.
        logical_types: Logical type names that should be kept as LOGICAL nodes.
        wrap_unions: 'auto', 'always' or 'never'.
        strict_logical_types: Keep every logical type annotation, registered or not.
        max_depth: Reject documents nested deeper than this before parsing them.

    Returns:
        The root TypeNode.

    Raises:
        SchemaResolutionError: If the schema is not a valid Avro schema.
        ConversionDepthError: If the schema is nested too deeply.
    """
    if wrap_unions not in UNION_ENCODINGS:
        raise ConverterConfigurationError(f"wrap_unions must be one of {', '.join(UNION_ENCODINGS)}, not {wrap_unions!r}")
    if isinstance(schema, bytes):
        schema = schema.decode('utf-8')
    try:
        if isinstance(schema, str) and schema.lstrip().startswith(('{', '[', '"')):
            try:
                schema = json.loads(schema)
            except json.JSONDecodeError as e:
                raise SchemaResolutionError(f"Avro schema is not valid JSON: {e}", cause=e) from e

        if max_depth is not None:
            depth = schema_depth(schema)
            if depth > max_depth:
                logger.warning("Schema nesting depth %d exceeds the maximum of %d", depth, max_depth)
                raise ConversionDepthError(f"Maximum conversion depth ({max_depth}) exceeded")

        named_schemas: Dict[str, Any] = {}
        try:
            parsed = parse_schema(schema, named_schemas)
        except (SchemaParseException, ValueError, KeyError, TypeError, AttributeError) as e:
            raise SchemaResolutionError(f"Invalid Avro schema: {e}", cause=e) from e

        resolver = TypeResolver(named_schemas, logical_types, wrap_unions, strict_logical_types)
        return resolver.resolve(parsed)
    except RecursionError as e:
        raise ConversionDepthError("Avro schema is nested too deeply to resolve", cause=e) from e
