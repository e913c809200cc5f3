"""
Exceptions raised by the Avro to JSON Schema converter.

All of them derive from AvroToJsonSchemaError so callers can catch the whole
family with a single except clause. A conversion either returns a complete
JSON Schema or raises one of these; partial results are never returned.
"""

from typing import List, Optional


class AvroToJsonSchemaError(Exception):
    """
    Base exception for Avro to JSON Schema conversion failures.

    Attributes:
        message: Human-readable error description
        context: Optional dotted path of the type being converted
        cause: Optional underlying exception that caused this error
    """

    def __init__(self, message: str, context: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        self.message = message
        self.context = context
        self.cause = cause
        full_message = message
        if context:
            full_message = f"{message} (context: {context})"
        super().__init__(full_message)


class SchemaResolutionError(AvroToJsonSchemaError):
    """The Avro schema document could not be parsed or resolved."""


class RecursiveTypeError(SchemaResolutionError):
    """
    Exception raised when a named type refers to itself.

    Attributes:
        cycle_path: List of type names forming the cycle
    """

    def __init__(self, cycle_path: List[str]) -> None:
        self.cycle_path = cycle_path
        cycle_str = ' -> '.join(cycle_path)
        super().__init__(f"Recursive type reference is not supported: {cycle_str}")


class UnknownLogicalTypeError(AvroToJsonSchemaError):
    """
    No converter is registered for a logical type.

    Attributes:
        logical_type: The logical type name that was looked up
    """

    def __init__(self, logical_type: str, context: Optional[str] = None) -> None:
        self.logical_type = logical_type
        super().__init__(f"No converter registered for logical type '{logical_type}'", context=context)


class UnsupportedTypeError(AvroToJsonSchemaError):
    """The type node is not one of the known Avro type kinds."""


class ConversionDepthError(AvroToJsonSchemaError):
    """The schema is nested deeper than the converter allows."""


class ConverterConfigurationError(AvroToJsonSchemaError):
    """The converter was constructed with invalid options."""
