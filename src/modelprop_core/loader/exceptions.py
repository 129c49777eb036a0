# src/modelprop_core/loader/exceptions.py
"""
Defines the diagnosable exceptions for loading model files.

`ParsingError` covers file-system and YAML syntax problems as well as content
that is well-formed but unusable (e.g. an invalid state table).
`SchemaValidationError` reports every Cerberus schema violation at once.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any

from ..errors import DiagnosableError, format_diagnostic_report


class BaseParsingError(DiagnosableError):
    """A local, concrete base class for all model file loading errors."""
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Generic Parsing Error",
            details=str(self),
            suggestion="Please check the format and content of the model file.",
            context={}
        )


@dataclass(eq=False)
class ParsingError(BaseParsingError):
    """Raised for file-system issues, invalid YAML, or unusable file content."""
    details: str
    file_path: Path

    def __str__(self):
        return f"Parsing error in file '{self.file_path}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Model File Error",
            details=self.details,
            suggestion="Ensure the file exists, is readable, contains valid YAML, and that every '!expr' value is a valid Python expression.",
            context={'source_file': self.file_path}
        )


@dataclass(eq=False)
class SchemaValidationError(BaseParsingError):
    """Raised when a model file does not conform to the model file schema."""
    errors: Dict[str, Any]
    file_path: Path

    def __str__(self):
        error_lines = [f"  - In field '{k}': {v}" for k, v in sorted(self.errors.items())]
        return (
            f"YAML schema validation failed for file '{self.file_path}':\n"
            + "\n".join(error_lines)
        )

    def get_diagnostic_report(self) -> str:
        error_list_str = "\n".join(f"  - Field '{k}': {v}" for k, v in sorted(self.errors.items()))
        details = (
            "The structure of the model file does not conform to the required schema.\n"
            f"See details for {len(self.errors)} issue(s) below:\n\n{error_list_str}"
        )
        return format_diagnostic_report(
            error_type="YAML Schema Validation Error",
            details=details,
            suggestion="The file must contain a 'model' mapping, and may contain a 'states' list of {name, length} entries and a 'settings' mapping.",
            context={'source_file': self.file_path}
        )
