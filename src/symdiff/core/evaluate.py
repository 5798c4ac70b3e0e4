"""Define the core evaluation code."""
from __future__ import annotations

from typing import Callable
from typing import Generic
from typing import TYPE_CHECKING as _TYPE_CHECKING
from typing import TypeVar

from symdiff.core.exceptions import NoEvaluationRuleError
from symdiff.core.expr import Expr
from symdiff.core.expr import forward_graph


__all__ = ["Evaluator"]


_T = TypeVar("_T")


if _TYPE_CHECKING:
    from typing import Sequence

    Rule = Callable[[Expr, Sequence[_T]], _T]


def _generic_rule_error(expr: Expr, argvals: Sequence[_T]) -> _T:
    """Error fallback rule for handling unknown kinds of expression."""
    msg = "No rule for expression of type " + type(expr).__name__
    raise NoEvaluationRuleError(msg)


class Evaluator(Generic[_T]):
    """Objects that evaluate expressions bottom-up.

    An :class:`Evaluator` holds one rule per kind of expression. A rule is
    called with the expression and the already evaluated values of its
    children (an empty list for atoms).

    Examples
    ========

    >>> from symdiff import Constant, Product, Sum, Variable
    >>> from symdiff.core.evaluate import Evaluator
    >>> count_ops = Evaluator[int]()
    >>> count_ops.add_rule(Constant, lambda expr, args: 0)
    >>> count_ops.add_rule(Variable, lambda expr, args: 0)
    >>> count_ops.add_rule(Sum, lambda expr, args: 1 + sum(args))
    >>> x = Variable('x')
    >>> count_ops((x + 1) + x)
    2

    Kinds without a rule use the generic rule which by default raises:

    >>> count_ops(2 * x)  # doctest: +NORMALIZE_WHITESPACE
    Traceback (most recent call last):
        ...
    symdiff.core.exceptions.NoEvaluationRuleError: No rule for expression of type Product
    """

    rules: dict[type[Expr], Rule[_T]]
    generic_rule: Rule[_T]

    def __init__(self) -> None:
        """Create an empty evaluator."""
        self.rules = {}
        self.generic_rule = _generic_rule_error

    def add_rule(self, kind: type[Expr], func: Rule[_T]) -> None:
        """Add an evaluation rule for a particular kind of expression."""
        self.rules[kind] = func

    def add_rule_generic(self, func: Rule[_T]) -> None:
        """Add a generic fallback rule."""
        self.generic_rule = func

    def eval_node(self, expr: Expr, argvals: Sequence[_T]) -> _T:
        """Evaluate one expression given the values of its children."""
        func = self.rules.get(type(expr))
        if func is None:
            return self.generic_rule(expr, argvals)
        return func(expr, argvals)

    def evaluate(self, expr: Expr) -> _T:
        """Evaluate the expression using the registered rules."""
        return self.eval_forward(expr)

    def eval_recursive(self, expr: Expr) -> _T:
        """Evaluate the expression using recursion."""
        argvals = [self.eval_recursive(c) for c in expr.children]
        return self.eval_node(expr, argvals)

    def eval_forward(self, expr: Expr) -> _T:
        """Evaluate the expression using forward evaluation."""
        graph = forward_graph(expr)
        stack = [self.eval_node(atom, []) for atom in graph.atoms]

        for node, indices in graph.operations:
            argvals = [stack[i] for i in indices]
            stack.append(self.eval_node(node, argvals))

        # Now stack is the values of the topological sort of expr and stack[-1]
        # is the value of expr.
        return stack[-1]

    def __call__(self, expr: Expr) -> _T:
        """Short-hand for evaluate."""
        return self.evaluate(expr)
