# tests/conftest.py
import pytest
import numpy as np

from modelprop_core import ExecutionContext, EquationInfo, HierarchicalEvaluator
from modelprop_core.evaluation import StateVectorBinder


class ConstructedObject:
    """The object returned by a `RecordingFactory` call."""
    def __init__(self, kind, kwargs):
        self.kind = kind
        self.kwargs = kwargs

    def __getattr__(self, name):
        try:
            return self.__dict__["kwargs"][name]
        except KeyError:
            raise AttributeError(name) from None

    def __repr__(self):
        return f"{self.kind}({self.kwargs})"


class RecordingFactory:
    """A constructor stand-in that records every call."""
    def __init__(self, name: str = "Obj"):
        self.name = name
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        return ConstructedObject(self.name, kwargs)


@pytest.fixture
def factory():
    return RecordingFactory("Body")


@pytest.fixture
def context(factory):
    """An execution context exposing a recording constructor as 'Body' and a helper function."""
    return ExecutionContext({"Body": factory, "double": lambda v: 2 * v})


@pytest.fixture
def evaluate(context):
    """
    Runs one evaluator pass over a model. Returns (result, x_start, binder) so tests
    can inspect the filled state vector and the found flags.
    """
    def _evaluate(model, equation_info=None, x_start=None, path=""):
        equation_info = equation_info if equation_info is not None else EquationInfo()
        x_start = x_start if x_start is not None else np.zeros(equation_info.nx)
        binder = StateVectorBinder(equation_info, x_start)
        result = HierarchicalEvaluator(context, binder).evaluate(model, None, path)
        return result, x_start, binder
    return _evaluate
