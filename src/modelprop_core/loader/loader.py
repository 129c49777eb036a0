# src/modelprop_core/loader/loader.py
"""
Loads a model tree, its state table and its settings from a YAML file.

Formulas are written with the `!expr` tag; every other scalar is a literal:

    model:
      L: 2.0
      mass: {class: Par, value: !expr "3 * L"}
      x: {init: !expr "[0.0, L]"}
    states:
      - {name: x.init, length: 2}
    settings:
      log: false
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import cerberus
import pint
import yaml

from ..config import ConfigParsingError, parse_instantiation_config
from ..evaluation import EquationInfo, StateInfo
from ..expressions import Expression
from ..units import ureg
from .exceptions import ParsingError, SchemaValidationError
from .loaded_model import LoadedModel

logger = logging.getLogger(__name__)

EXPR_TAG = "!expr"


class ModelYamlLoader(yaml.SafeLoader):
    """A safe YAML loader that understands the `!expr` tag."""


def _construct_expression(loader: ModelYamlLoader, node: yaml.Node) -> Union[Expression, List[Expression]]:
    if isinstance(node, yaml.SequenceNode):
        return [Expression.parse(str(item)) for item in loader.construct_sequence(node)]
    return Expression.parse(str(loader.construct_scalar(node)))


ModelYamlLoader.add_constructor(EXPR_TAG, _construct_expression)


class ModelFileLoader:
    """
    Parses and validates one model file.
    Its sole responsibility is to produce a `LoadedModel`; nothing is evaluated here.
    """
    _state_schema = {
        "name": {"type": "string", "required": True, "empty": False},
        "length": {"type": "integer", "required": False, "min": 1, "default": 1},
        "start_index": {"type": "integer", "required": False, "min": 0},
        "unit": {"type": "string", "required": False, "empty": False},
    }

    _schema = {
        "model": {"type": "dict", "required": True},
        "states": {"type": "list", "required": False, "default": [], "schema": {"type": "dict", "schema": _state_schema}},
        "settings": {"type": "dict", "required": False, "default": {}},
    }

    def __init__(self):
        self._validator = cerberus.Validator(self._schema)
        self._validator.allow_unknown = False

    def load(self, yaml_path: Union[str, Path]) -> LoadedModel:
        source = Path(yaml_path).resolve()
        logger.info(f"Loading model file: {source}")
        content = self._load_yaml(source)

        # Only the bookkeeping sections are normalized; the model tree is taken verbatim.
        if "model" not in content:
            raise SchemaValidationError({"model": ["required field"]}, source)
        if not isinstance(content["model"], dict):
            raise SchemaValidationError({"model": ["must be of dict type"]}, source)
        envelope = {k: v for k, v in content.items() if k != "model"}
        envelope["model"] = {}
        if not self._validator.validate(envelope):
            raise SchemaValidationError(self._validator.errors, source)
        validated = self._validator.document

        equation_info = self._build_equation_info(validated.get("states", []), source)
        try:
            config = parse_instantiation_config(validated.get("settings", {}))
        except ConfigParsingError as e:
            raise ParsingError(details=str(e), file_path=source) from e

        logger.debug("Loaded model with %d top-level keys and %d states.", len(content["model"]), len(equation_info))
        return LoadedModel(model=content["model"], equation_info=equation_info, config=config, source_path=source)

    def _build_equation_info(self, raw_states: List[Dict[str, Any]], source: Path) -> EquationInfo:
        infos = []
        next_start = 0
        try:
            for entry in raw_states:
                start = entry.get("start_index", next_start)
                unit = entry.get("unit")
                if unit is not None:
                    ureg.parse_units(unit)
                info = StateInfo(name=entry["name"], start_index=start, length=entry.get("length", 1), unit=unit)
                infos.append(info)
                next_start = info.end_index
            return EquationInfo(tuple(infos))
        except (ValueError, pint.PintError) as e:
            raise ParsingError(details=f"Invalid state table: {e}", file_path=source) from e

    def _load_yaml(self, source: Path) -> Dict[str, Any]:
        """Loads and performs basic sanity checks on a YAML file."""
        if not source.is_file():
            raise ParsingError(details=f"Model file not found at path: {source}", file_path=source)
        try:
            with source.open("r", encoding="utf-8") as f:
                content = yaml.load(f, Loader=ModelYamlLoader)
        except PermissionError as e:
            raise ParsingError(details=f"Permission denied when trying to read file: {e}", file_path=source) from e
        except yaml.YAMLError as e:
            raise ParsingError(details=f"Invalid YAML syntax: {e}", file_path=source) from e
        except SyntaxError as e:
            raise ParsingError(details=f"Invalid '{EXPR_TAG}' expression: {e}", file_path=source) from e
        if content is None:
            raise ParsingError(details="The YAML file is empty or contains no valid content.", file_path=source)
        if not isinstance(content, dict):
            raise ParsingError(details="The root of the YAML file must be a dictionary (mapping).", file_path=source)
        return content
