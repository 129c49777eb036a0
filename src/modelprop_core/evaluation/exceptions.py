# src/modelprop_core/evaluation/exceptions.py
"""
Defines the custom, diagnosable exceptions for the evaluation subsystem.

`ConflictError`, `EvaluationError` and `LengthMismatchError` abort a traversal
immediately: a half-filled state vector is silently wrong, so no partial result
is ever returned. `MissingStateError` is raised once, after the traversal, and
lists every declared state that no leaf provided a start value for.

The exceptions are dataclasses for their structured fields, but not frozen ones:
the interpreter and `contextlib` assign `__traceback__` (and `add_note` assigns
`__notes__`) on exceptions in flight. Equality and hashing stay identity based.
"""

from dataclasses import dataclass
from typing import Tuple

from ..errors import DiagnosableError, format_diagnostic_report


class InstantiationError(DiagnosableError):
    """
    A concrete base class for all evaluation and instantiation errors, so that
    callers can catch the whole family with one `except InstantiationError:`.
    """
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Generic Instantiation Error",
            details=str(self),
            suggestion="Review the model tree for correctness.",
            context={}
        )


@dataclass(eq=False)
class ConflictError(InstantiationError):
    """Raised when a `_constructor` directive co-occurs with `value`, `init` or `start`."""
    path: str
    conflicting_keys: Tuple[str, ...]

    def __str__(self):
        return (f"Model node '{self.path or '<root>'}': keys {list(self.conflicting_keys)} "
                f"are not allowed in combination with a _constructor.")

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Constructor Directive Conflict",
            details=(f"The node defines a _constructor together with the key(s) "
                     f"{', '.join(self.conflicting_keys)}.\n"
                     f"A constructed object cannot also carry a parameter value or a start value."),
            suggestion="Remove 'value', 'init' and 'start' from the node, or remove its '_constructor'.",
            context={'path': self.path or '<root>'}
        )


@dataclass(eq=False)
class EvaluationError(InstantiationError):
    """Raised when the execution context fails to resolve or run an expression."""
    path: str
    expression: str
    details: str

    def __str__(self):
        return f"Evaluation error for '{self.path or '<root>'}' ('{self.expression}'): {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Expression Evaluation Error",
            details=self.details,
            suggestion=("Check that every identifier in the expression is defined in an enclosing model "
                        "node BEFORE this key (forward references are not supported), or is available "
                        "in the execution context."),
            context={'path': self.path or '<root>', 'expression': self.expression}
        )


@dataclass(eq=False)
class LengthMismatchError(InstantiationError):
    """Raised when an evaluated state start value does not have the declared state length."""
    name: str
    declared: int
    actual: int

    def __str__(self):
        return (f"Length of state '{self.name}' shall be changed from {self.declared} to {self.actual}; "
                f"this is not supported.")

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="State Length Mismatch",
            details=(f"The state was declared with length {self.declared}, "
                     f"but its start value has length {self.actual}.\n"
                     f"The state vector is sized before evaluation and cannot be resized."),
            suggestion="Make the start value match the declared state dimension.",
            context={'path': self.name}
        )


@dataclass(eq=False)
class MissingStateError(InstantiationError):
    """Raised after a traversal when one or more declared states never received a start value."""
    missing: Tuple[str, ...]

    def __str__(self):
        return f"Missing start/init values for variables: {', '.join(self.missing)}"

    def get_diagnostic_report(self) -> str:
        listing = "\n".join(f"  - {name}" for name in self.missing)
        return format_diagnostic_report(
            error_type="Missing State Start Values",
            details=f"{len(self.missing)} declared state(s) were not matched by any model leaf:\n{listing}",
            suggestion="Provide a start (or init) value for each listed state variable in the model.",
            context={}
        )


@dataclass(eq=False)
class StateVectorSizeError(InstantiationError):
    """Raised when a caller-supplied state vector does not have the size the state table requires."""
    expected: int
    actual: int

    def __str__(self):
        return f"State vector has length {self.actual}, expected {self.expected}."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="State Vector Size Error",
            details=str(self),
            suggestion="Allocate the state vector with the total length of all declared states.",
            context={}
        )
