# tests/test_evaluation/test_state_binder.py

"""
Validation suite for the state descriptor table and the StateVectorBinder.

Covers exact-position writes into the pre-allocated start vector, unit stripping,
uncertain (sample-based) values, length validation, and found-flag bookkeeping.
"""

import numpy as np
import pytest

from modelprop_core import EquationInfo, Particles, Quantity, StateInfo, expr
from modelprop_core.evaluation import (
    EvaluationError,
    LengthMismatchError,
    StateVectorBinder,
    effective_length,
)

# =========================================================================
# === Group 1: State Table
# =========================================================================

def test_from_states_assigns_contiguous_offsets():
    info = EquationInfo.from_states([("a", 1), ("b.c", 3), "d"])
    assert [(s.name, s.start_index, s.length) for s in info.x_info] == [("a", 0, 1), ("b.c", 1, 3), ("d", 4, 1)]
    assert info.x_dict == {"a": 0, "b.c": 1, "d": 2}
    assert info.nx == 5
    assert "b.c" in info and "zzz" not in info


def test_state_table_rejects_duplicates_gaps_and_bad_lengths():
    with pytest.raises(ValueError):
        EquationInfo.from_states([("a", 1), ("a", 1)])
    with pytest.raises(ValueError):
        EquationInfo((StateInfo("a", 0, 1), StateInfo("b", 2, 1)))
    with pytest.raises(ValueError):
        StateInfo("a", 0, 0)


def test_empty_table():
    info = EquationInfo()
    assert info.nx == 0
    assert info.allocate().shape == (0,)

# =========================================================================
# === Group 2: Binding Through the Evaluator
# =========================================================================

def test_two_element_state_is_written_at_its_offset(evaluate):
    info = EquationInfo((StateInfo("w", 0, 3), StateInfo("x.y", 3, 2)))
    model = {"w": [0.0, 0.0, 0.0], "x": {"y": Quantity(np.array([1.5, 2.5]), "m")}}
    _, x_start, binder = evaluate(model, info, np.zeros(5))
    assert x_start[3] == pytest.approx(1.5)
    assert x_start[4] == pytest.approx(2.5)
    assert binder.x_found.tolist() == [True, True]


def test_one_element_value_for_two_element_state_fails(evaluate):
    info = EquationInfo((StateInfo("w", 0, 3), StateInfo("x.y", 3, 2)))
    with pytest.raises(LengthMismatchError) as excinfo:
        evaluate({"w": [0.0, 0.0, 0.0], "x": {"y": 1.0}}, info, np.zeros(5))
    assert excinfo.value.name == "x.y"
    assert excinfo.value.declared == 2
    assert excinfo.value.actual == 1


def test_scalar_state_with_units_is_stripped(evaluate):
    info = EquationInfo.from_states([("phi", 1)])
    _, x_start, _ = evaluate({"phi": Quantity(0.5, "rad")}, info)
    assert x_start[0] == pytest.approx(0.5)


def test_state_value_from_expression_and_scope(evaluate):
    info = EquationInfo.from_states([("mass.init", 1)])
    _, x_start, _ = evaluate({"m0": 3.0, "mass": {"init": expr("2 * m0")}}, info)
    assert x_start[0] == pytest.approx(6.0)


def test_parameter_collapse_does_not_bind_state(evaluate):
    info = EquationInfo.from_states([("p", 1)])
    _, x_start, binder = evaluate({"p": {"class": "Par", "value": 4.0}}, info)
    assert binder.x_found.tolist() == [False]
    assert binder.missing() == ["p"]


def test_leaves_not_in_table_are_ignored(evaluate):
    info = EquationInfo.from_states([("x", 1)])
    _, x_start, binder = evaluate({"x": 1.0, "unrelated": [1, 2, 3]}, info)
    assert x_start.tolist() == [1.0]
    assert binder.missing() == []


def test_written_values_are_copies(evaluate):
    source = np.array([1.0, 2.0])
    info = EquationInfo.from_states([("v", 2)])
    _, x_start, _ = evaluate({"v": source}, info)
    source[0] = 99.0
    assert x_start[0] == pytest.approx(1.0)


def test_sequence_of_expressions_binds_elementwise(evaluate):
    info = EquationInfo.from_states([("s.start", 2)])
    _, x_start, _ = evaluate({"a": 1.0, "s": {"start": [expr("a"), expr("a + 1")]}}, info)
    assert x_start.tolist() == [1.0, 2.0]


def test_unconvertible_state_value_is_evaluation_error(evaluate):
    info = EquationInfo.from_states([("x", 1)])
    with pytest.raises(EvaluationError) as excinfo:
        evaluate({"x": object()}, info)
    assert excinfo.value.path == "x"


def test_sequence_of_constructed_objects_bound_to_state_fails(evaluate):
    info = EquationInfo.from_states([("s", 2)])
    with pytest.raises(EvaluationError) as excinfo:
        evaluate({"s": [expr("Body(a=1)"), expr("Body(a=2)")]}, info)
    assert excinfo.value.path == "s"


def test_sequence_of_constructed_objects_kept_in_object_vector(evaluate):
    info = EquationInfo.from_states([("s", 2)])
    _, x_start, _ = evaluate({"s": [expr("Body(a=1)"), expr("Body(a=2)")]}, info, np.empty(2, dtype=object))
    assert [obj.a for obj in x_start] == [1, 2]

# =========================================================================
# === Group 3: Uncertain Values & Units
# =========================================================================

def test_particles_count_as_one_element():
    p = Particles(np.linspace(0.0, 2.0, 500))
    assert effective_length(p) == 1
    assert effective_length(Quantity(np.array([1.0, 2.0, 3.0]), "m")) == 3
    assert effective_length([1, 2]) == 2
    assert effective_length(4.0) == 1


def test_particles_collapse_to_mean_in_float_vector():
    info = EquationInfo.from_states([("x", 1)])
    binder = StateVectorBinder(info, np.zeros(1))
    binder.bind("x", Particles([1.0, 2.0, 3.0]))
    assert binder.x_start[0] == pytest.approx(2.0)


def test_particles_are_kept_in_object_vector():
    info = EquationInfo.from_states([("x", 1)])
    p = Particles([1.0, 2.0, 3.0])
    binder = StateVectorBinder(info, np.empty(1, dtype=object))
    binder.bind("x", p)
    stored = binder.x_start[0]
    assert isinstance(stored, Particles)
    assert stored is not p
    np.testing.assert_allclose(stored.samples, p.samples)


def test_declared_unit_converts_before_stripping():
    info = EquationInfo.from_states([("len", 1, "mm")])
    binder = StateVectorBinder(info, np.zeros(1))
    binder.bind("len", Quantity(0.25, "m"))
    assert binder.x_start[0] == pytest.approx(250.0)


def test_incompatible_declared_unit_fails():
    info = EquationInfo.from_states([("len", 1, "mm")])
    binder = StateVectorBinder(info, np.zeros(1))
    with pytest.raises(EvaluationError):
        binder.bind("len", Quantity(1.0, "s"))


def test_bind_returns_false_for_unknown_path():
    binder = StateVectorBinder(EquationInfo.from_states(["x"]), np.zeros(1))
    assert binder.bind("y", 1.0) is False
    assert binder.bind("x", 1.0) is True


def test_sequence_holding_particles_counts_as_one_element():
    p = Particles([1.0, 2.0, 3.0])
    assert effective_length([1.0, p]) == 1
    assert effective_length(Quantity(p, "m")) == 1

    info = EquationInfo.from_states([("x", 2)])
    binder = StateVectorBinder(info, np.zeros(2))
    with pytest.raises(LengthMismatchError) as excinfo:
        binder.bind("x", [1.0, p])
    assert excinfo.value.declared == 2
    assert excinfo.value.actual == 1


def test_sequence_holding_particles_is_one_object_element():
    p = Particles([1.0, 2.0, 3.0])
    info = EquationInfo.from_states([("x", 1)])
    binder = StateVectorBinder(info, np.empty(1, dtype=object))
    binder.bind("x", [1.0, p])
    stored = binder.x_start[0]
    assert stored[0] == 1.0
    assert isinstance(stored[1], Particles)
    assert stored[1] is not p


def test_sequence_holding_particles_cannot_fill_float_element():
    info = EquationInfo.from_states([("x", 1)])
    binder = StateVectorBinder(info, np.zeros(1))
    with pytest.raises(EvaluationError) as excinfo:
        binder.bind("x", [1.0, Particles([1.0, 2.0])])
    assert excinfo.value.path == "x"
    assert not binder.x_found[0]


def test_single_particles_in_list_collapses_to_mean():
    info = EquationInfo.from_states([("x", 1)])
    binder = StateVectorBinder(info, np.zeros(1))
    binder.bind("x", [Particles([2.0, 4.0])])
    assert binder.x_start[0] == pytest.approx(3.0)


def test_undefined_declared_unit_is_evaluation_error():
    info = EquationInfo.from_states([("len", 1, "furlongz")])
    binder = StateVectorBinder(info, np.zeros(1))
    with pytest.raises(EvaluationError) as excinfo:
        binder.bind("len", Quantity(1.0, "m"))
    assert excinfo.value.path == "len"
    assert "furlongz" in excinfo.value.details
