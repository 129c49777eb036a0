# src/modelprop_core/errors.py
"""
Error layers of ModelProp Core.

Internally every failure of a pass is a `DiagnosableError` subclass carrying the
fields needed to explain it: the dotted model path, the offending expression or
state name, the model file. Callers of `propagate_evaluate_and_instantiate` may
catch those directly and inspect the fields.

At the user-facing boundary (`ModelInstantiator`, the model file loader) they
are rendered once by `format_diagnostic_report` and re-raised as a
`ModelPropError` subclass whose message is the finished report.
"""
import logging
from typing import Any, Dict, Protocol, abstractmethod
from typing import runtime_checkable

logger = logging.getLogger(__name__)

_REPORT_WIDTH = 72


class ModelPropError(Exception):
    """Base class of the errors shown to model authors."""


class ModelInstantiationError(ModelPropError):
    """
    A model tree could not be turned into an evaluated model and a filled start
    vector. The message is a rendered report; the underlying
    `DiagnosableError` is chained as `__cause__`. The start vector must be
    treated as invalid.
    """


@runtime_checkable
class Diagnosable(Protocol):
    """Anything that can render a report about a model for its author."""
    def get_diagnostic_report(self) -> str:
        ...


class DiagnosableError(Exception, Diagnosable):
    """
    Base of the structured internal errors. Each subclass names the model
    location it refers to and renders it through `format_diagnostic_report`.
    """
    @abstractmethod
    def get_diagnostic_report(self) -> str:
        raise NotImplementedError


def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Dict[str, Any]
) -> str:
    """
    Renders a report for a model author.

    Args:
        error_type: Short headline, e.g. "State Length Mismatch".
        details: What went wrong; may span several lines.
        suggestion: How to change the model; omitted when empty.
        context: Optional locators. Recognized keys are `path` (dotted model
            path or state name), `expression` and `source_file`.
    """
    title = " ModelProp Core: Actionable Diagnostic Report "
    lines = [
        "\n",
        title.center(_REPORT_WIDTH, "="),
        f"Error Type:     {error_type}",
    ]
    locators = (("path", "Path:           {}"),
                ("source_file", "Source File:    {}"),
                ("expression", "Expression:     '{}'"))
    for key, template in locators:
        if context.get(key):
            lines.append(template.format(context[key]))

    lines.append("\nDetails:")
    lines.extend(f"  {line}" for line in details.splitlines())
    if suggestion:
        lines.append("\nSuggestion:")
        lines.extend(f"  {line}" for line in suggestion.splitlines())

    lines.append("=" * _REPORT_WIDTH)
    return "\n".join(lines)
