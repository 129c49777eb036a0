# tests/test_loader.py

"""
Tests for loading model files: the `!expr` tag, the Cerberus-validated state
table and settings, and the diagnosable loading errors.
"""

import numpy as np
import pytest

from modelprop_core import Expression, ModelFileLoader, ModelInstantiator
from modelprop_core.loader import ParsingError, SchemaValidationError


@pytest.fixture
def loader():
    return ModelFileLoader()


def test_load_and_instantiate(tmp_path, loader):
    path = tmp_path / "pendulum.yaml"
    path.write_text("""
model:
  L: 2.0
  mass: {class: Par, value: !expr "3 * L"}
  x:
    init: !expr "[0.5, L]"
  v:
    start: !expr [L, "2 * L"]
states:
  - {name: x.init, length: 2}
  - {name: v.start, length: 2}
settings:
  float_dtype: float64
""")
    loaded = loader.load(path)
    assert isinstance(loaded.model["mass"]["value"], Expression)
    assert isinstance(loaded.model["v"]["start"], list)
    assert loaded.equation_info.nx == 4
    assert loaded.source_path == path.resolve()

    result = ModelInstantiator(config=loaded.config).instantiate(loaded.model, loaded.equation_info)
    np.testing.assert_allclose(result.x_start, [0.5, 2.0, 2.0, 4.0])
    assert result.model["mass"] == pytest.approx(6.0)


def test_explicit_start_indices_and_units(tmp_path, loader):
    path = tmp_path / "m.yaml"
    path.write_text("""
model: {a: 1.0}
states:
  - {name: a, start_index: 0, length: 1, unit: m}
""")
    info = loader.load(path).equation_info
    assert info.x_info[0].unit == "m"


def test_missing_file(tmp_path, loader):
    with pytest.raises(ParsingError):
        loader.load(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path, loader):
    path = tmp_path / "bad.yaml"
    path.write_text("model: [unclosed\n")
    with pytest.raises(ParsingError):
        loader.load(path)


def test_invalid_expression_syntax(tmp_path, loader):
    path = tmp_path / "bad_expr.yaml"
    path.write_text('model: {a: !expr "2 *"}\n')
    with pytest.raises(ParsingError) as excinfo:
        loader.load(path)
    assert "!expr" in excinfo.value.details


def test_missing_model_section(tmp_path, loader):
    path = tmp_path / "no_model.yaml"
    path.write_text("states: []\n")
    with pytest.raises(SchemaValidationError) as excinfo:
        loader.load(path)
    assert "model" in excinfo.value.errors


def test_schema_violation_in_states(tmp_path, loader):
    path = tmp_path / "bad_states.yaml"
    path.write_text("model: {a: 1}\nstates:\n  - {name: a, length: 0}\nextra: 1\n")
    with pytest.raises(SchemaValidationError) as excinfo:
        loader.load(path)
    report = excinfo.value.get_diagnostic_report()
    assert "YAML Schema Validation Error" in report


def test_non_contiguous_state_table(tmp_path, loader):
    path = tmp_path / "gap.yaml"
    path.write_text("model: {a: 1}\nstates:\n  - {name: a, start_index: 2}\n")
    with pytest.raises(ParsingError):
        loader.load(path)


def test_invalid_settings(tmp_path, loader):
    path = tmp_path / "settings.yaml"
    path.write_text("model: {a: 1}\nsettings: {float_dtype: int8}\n")
    with pytest.raises(ParsingError):
        loader.load(path)


def test_undefined_state_unit(tmp_path, loader):
    path = tmp_path / "unit.yaml"
    path.write_text("model: {x: 1.0}\nstates:\n  - {name: x, unit: furlongz}\n")
    with pytest.raises(ParsingError) as excinfo:
        loader.load(path)
    assert "furlongz" in excinfo.value.details
