"""Conversion of expressions to SymPy expressions.

This is defined in its own module so that SymPy will not be imported if it is
not needed.
"""
from __future__ import annotations

from typing import Any

import sympy

from symdiff.core.evaluate import Evaluator
from symdiff.core.expr import Constant
from symdiff.core.expr import Difference
from symdiff.core.expr import Expr
from symdiff.core.expr import NaturalLog
from symdiff.core.expr import Power
from symdiff.core.expr import Product
from symdiff.core.expr import Quotient
from symdiff.core.expr import Sum
from symdiff.core.expr import Variable


def sympy_number(value: float) -> sympy.Basic:
    """Integral values become ``sympy.Integer`` and others ``sympy.Float``."""
    if value.is_integer():
        return sympy.Integer(int(value))
    return sympy.Float(value)


eval_to_sympy = Evaluator[sympy.Basic]()
eval_to_sympy.add_rule(Constant, lambda e, _: sympy_number(e.value))  # type: ignore
eval_to_sympy.add_rule(Variable, lambda e, _: sympy.Symbol(e.name))  # type: ignore
eval_to_sympy.add_rule(Sum, lambda _, a: sympy.Add(*a))
eval_to_sympy.add_rule(Difference, lambda _, a: sympy.Add(a[0], -a[1]))
eval_to_sympy.add_rule(Product, lambda _, a: sympy.Mul(*a))
eval_to_sympy.add_rule(Quotient, lambda _, a: sympy.Mul(a[0], sympy.Pow(a[1], -1)))
eval_to_sympy.add_rule(Power, lambda _, a: sympy.Pow(*a))
eval_to_sympy.add_rule(NaturalLog, lambda _, a: sympy.log(a[0]))


def to_sympy(expr: Expr) -> Any:
    """Convert ``Expr`` to a SymPy expression.

    >>> from symdiff import Variable, ln
    >>> x = Variable('x')
    >>> to_sympy(ln(x) / (x - 1))
    log(x)/(x - 1)
    """
    return eval_to_sympy(expr)
