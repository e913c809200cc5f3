import importlib

mod = "avrotojsonschema"
class LazyLoader:
    """
    Lazy loader for the avrotojsonschema API so importing the package stays cheap.
    """
    def __init__(self, mappings):
        self._modules = {}
        self._mappings = mappings

    def _load_module(self, module_name):
        if module_name not in self._modules:
            self._modules[module_name] = importlib.import_module(module_name)
        return self._modules[module_name]

    def __getattr__(self, item):
        if item in self._mappings:
            module_name, attr_name = self._mappings[item]
            module = self._load_module(module_name)
            return getattr(module, attr_name)
        else:
            try:
                return self._load_module(f"{mod}.{item}")
            except ModuleNotFoundError as e:
                raise AttributeError(f"module {mod!r} has no attribute {item!r}") from e

# Define the public names and their corresponding module paths
_mappings = {
    "AvroToJsonSchemaConverter": (f"{mod}.avrotojsons", "AvroToJsonSchemaConverter"),
    "convert_avro_to_json_schema": (f"{mod}.avrotojsons", "convert_avro_to_json_schema"),
    "convert_avro_to_json_schema_string": (f"{mod}.avrotojsons", "convert_avro_to_json_schema_string"),
    "DEFAULT_LOGICAL_TYPES": (f"{mod}.logicaltypes", "DEFAULT_LOGICAL_TYPES"),
    "resolve_schema": (f"{mod}.typemodel", "resolve_schema"),
    "TypeKind": (f"{mod}.typemodel", "TypeKind"),
    "TypeNode": (f"{mod}.typemodel", "TypeNode"),
    "Field": (f"{mod}.typemodel", "Field"),
    "NO_DEFAULT": (f"{mod}.typemodel", "NO_DEFAULT"),
    "AvroToJsonSchemaError": (f"{mod}.errors", "AvroToJsonSchemaError"),
    "SchemaResolutionError": (f"{mod}.errors", "SchemaResolutionError"),
    "RecursiveTypeError": (f"{mod}.errors", "RecursiveTypeError"),
    "UnknownLogicalTypeError": (f"{mod}.errors", "UnknownLogicalTypeError"),
    "UnsupportedTypeError": (f"{mod}.errors", "UnsupportedTypeError"),
    "ConversionDepthError": (f"{mod}.errors", "ConversionDepthError"),
    "ConverterConfigurationError": (f"{mod}.errors", "ConverterConfigurationError"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)
