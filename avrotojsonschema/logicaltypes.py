"""
Converters for Avro logical types.

A logical type converter takes the LOGICAL TypeNode and returns the JSON
Schema fragment for it. The built-in converters are deliberately coarse and
ignore attributes such as decimal precision and scale; callers that need
more can register their own converters for the same names.
"""

from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from avrotojsonschema.errors import ConverterConfigurationError
from avrotojsonschema.typemodel import TypeNode

LogicalTypeConverter = Callable[[TypeNode], Dict[str, Any]]

INT64_MAX = 2**63 - 1


def decimal(avro_type: TypeNode) -> Dict[str, Any]:
    return {'type': 'number'}


def date(avro_type: TypeNode) -> Dict[str, Any]:
    return {'type': 'integer', 'minimum': 1, 'maximum': INT64_MAX}


def timestamp_millis(avro_type: TypeNode) -> Dict[str, Any]:
    return {'type': 'integer', 'minimum': 1, 'maximum': INT64_MAX}


DEFAULT_LOGICAL_TYPES: Mapping[str, LogicalTypeConverter] = MappingProxyType({
    'decimal': decimal,
    'date': date,
    'timestamp-millis': timestamp_millis,
})


def build_logical_type_registry(overrides: Optional[Mapping[str, LogicalTypeConverter]] = None,
                                defaults: Mapping[str, LogicalTypeConverter] = DEFAULT_LOGICAL_TYPES
                                ) -> Mapping[str, LogicalTypeConverter]:
    """
    Merge caller-supplied logical type converters over the defaults.

    Args:
        overrides: Mapping of logical type name to converter. Entries replace
            defaults of the same name.
        defaults: The built-in converters.

    Returns:
        A read-only mapping of logical type name to converter.

    Raises:
        ConverterConfigurationError: If a name is not a non-empty string or a
            converter is not callable.
    """
    if overrides is not None and not isinstance(overrides, Mapping):
        raise ConverterConfigurationError(f"logical_types must be a mapping, got {type(overrides).__name__}")
    registry = dict(defaults)
    for name, converter in (overrides or {}).items():
        if not isinstance(name, str) or not name:
            raise ConverterConfigurationError(f"Logical type names must be non-empty strings, got {name!r}")
        if not callable(converter):
            raise ConverterConfigurationError(f"Converter for logical type '{name}' is not callable")
        registry[name] = converter
    return MappingProxyType(registry)
