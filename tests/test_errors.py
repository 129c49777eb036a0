# tests/test_errors.py

"""
Tests for the report formatter shared by every diagnosable error.
"""

from modelprop_core import EvaluationError, LengthMismatchError
from modelprop_core.errors import format_diagnostic_report


def test_report_lists_only_given_locators():
    report = format_diagnostic_report(
        error_type="State Length Mismatch",
        details="line one\nline two",
        suggestion="",
        context={"path": "x.y", "expression": None},
    )
    assert "Error Type:     State Length Mismatch" in report
    assert "Path:           x.y" in report
    assert "Expression:" not in report
    assert "Suggestion:" not in report
    assert "  line one\n  line two" in report


def test_evaluation_error_report_names_path_and_expression():
    report = EvaluationError(path="m.b", expression="a * q", details="NameError: name 'q' is not defined").get_diagnostic_report()
    assert "Path:           m.b" in report
    assert "Expression:     'a * q'" in report
    assert "NameError" in report


def test_length_mismatch_report_names_state():
    report = LengthMismatchError(name="v", declared=2, actual=3).get_diagnostic_report()
    assert "Path:           v" in report
    assert "length 2" in report and "length 3" in report
