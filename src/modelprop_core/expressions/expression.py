# src/modelprop_core/expressions/expression.py

"""
Defines `Expression`, the unevaluated formula leaf of a model tree.

An `Expression` is an immutable pair of a Python `ast` expression tree and a
mapping of placeholder bindings. Parsing uses Python's own grammar, so every
formula a model author writes is plain Python (`"2*L - 3"`, `"np.sin(phi)"`,
`"bar.frame0"`). Substitution never embeds foreign objects into the tree:
identifiers that resolve in a scope are renamed to unique placeholders and the
resolved objects are carried alongside in `bindings`. This keeps the tree
compilable no matter what kind of value was substituted.
"""

import ast
import copy
import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional, Set

logger = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "_mp_bound_"


class _IdentifierVisitor(ast.NodeVisitor):
    """
    Collects the free identifiers (ast.Name in load context) of an expression.
    Attribute chains contribute only their base name, since attribute access is
    performed on the resolved object at evaluation time.
    """
    def __init__(self):
        self.identifiers: Set[str] = set()

    def visit_Name(self, node: ast.Name):
        if isinstance(node.ctx, ast.Load) and not node.id.startswith(PLACEHOLDER_PREFIX):
            self.identifiers.add(node.id)


class Expression:
    """
    An unevaluated formula. Instances are immutable; substitution returns new ones.
    """
    __slots__ = ("_tree", "_bindings", "_code")

    def __init__(self, tree: ast.expr, bindings: Optional[Mapping[str, Any]] = None):
        if not isinstance(tree, ast.expr):
            raise TypeError(f"Expression requires an ast.expr node, got {type(tree).__name__}.")
        self._tree = tree
        self._bindings = MappingProxyType(dict(bindings or {}))
        self._code = None

    @classmethod
    def parse(cls, source: str) -> "Expression":
        """
        Parses a Python expression string.

        Raises:
            SyntaxError: If `source` is not a valid Python expression. Model trees
                         come from an upstream front-end, so this is a caller bug.
        """
        tree = ast.parse(source.strip(), mode="eval")
        return cls(tree.body)

    @classmethod
    def from_ast(cls, node: ast.expr) -> "Expression":
        return cls(copy.deepcopy(node))

    @property
    def tree(self) -> ast.expr:
        """A private copy of the expression tree."""
        return copy.deepcopy(self._tree)

    @property
    def bindings(self) -> Mapping[str, Any]:
        return self._bindings

    @property
    def source(self) -> str:
        return ast.unparse(self._tree)

    @property
    def identifiers(self) -> Set[str]:
        visitor = _IdentifierVisitor()
        visitor.visit(self._tree)
        return visitor.identifiers

    @property
    def is_identifier(self) -> bool:
        """True if the whole expression is a single bare identifier."""
        return isinstance(self._tree, ast.Name) and not self._tree.id.startswith(PLACEHOLDER_PREFIX)

    def compiled(self):
        """Compiles (once) the tree into a code object suitable for `eval`."""
        if self._code is None:
            wrapper = ast.fix_missing_locations(ast.Expression(body=copy.deepcopy(self._tree)))
            self._code = compile(wrapper, filename="<model-expression>", mode="eval")
        return self._code

    def __eq__(self, other):
        if not isinstance(other, Expression):
            return NotImplemented
        # Bound objects are compared by identity; they may be arrays or arbitrary objects.
        return (ast.dump(self._tree) == ast.dump(other._tree)
                and self._bindings.keys() == other._bindings.keys()
                and all(self._bindings[k] is other._bindings[k] for k in self._bindings))

    __hash__ = None

    # Immutable: copies share the instance.
    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __repr__(self):
        if self._bindings:
            bound = ", ".join(f"{k}={v!r}" for k, v in self._bindings.items())
            return f"expr({self.source!r}; {bound})"
        return f"expr({self.source!r})"


def expr(source: str) -> Expression:
    """Shorthand for `Expression.parse(source)`, used when writing model trees by hand."""
    return Expression.parse(source)


def is_expression_sequence(value: Any) -> bool:
    """True for a list/tuple holding at least one `Expression`."""
    return isinstance(value, (list, tuple)) and any(isinstance(v, Expression) for v in value)
