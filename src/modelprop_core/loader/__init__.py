# src/modelprop_core/loader/__init__.py
from .loaded_model import LoadedModel
from .loader import ModelFileLoader, ModelYamlLoader
from .exceptions import ParsingError, SchemaValidationError

__all__ = [
    "LoadedModel",
    "ModelFileLoader",
    "ModelYamlLoader",
    "ParsingError",
    "SchemaValidationError",
]
