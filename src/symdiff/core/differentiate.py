"""Core routines for differentiating expressions.

This module implements differentiation by forward accumulation over the graph
of an expression. Each kind of expression has a rule that computes its
derivative from the expression itself and the derivatives of its children.
The rules build their results with the smart constructors so every derivative
comes out with the trivial simplifications already applied.

The three example expressions below show the power rule, the exponential rule
and the simplification of ``ln(e)``:

>>> from symdiff import E, Constant, Variable, diff
>>> x = Variable('x')
>>> f = 5*x**69 + 5*x**420
>>> print(f)
((5 * (x ^ 69)) + (5 * (x ^ 420)))
>>> print(diff(f, x))
((5 * (69 * (x ^ 68))) + (5 * (420 * (x ^ 419))))
>>> print(diff(5**(69*x), x))
(((5 ^ (69 * x)) * ln(5)) * 69)
>>> print(diff(Constant(E)**(69*x), x))
((2.71828 ^ (69 * x)) * 69)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING as _TYPE_CHECKING

from symdiff.core.exceptions import NoDifferentiationRuleError
from symdiff.core.exceptions import UnsupportedDifferentiationError
from symdiff.core.expr import Constant
from symdiff.core.expr import Difference
from symdiff.core.expr import expressify
from symdiff.core.expr import forward_graph
from symdiff.core.expr import NaturalLog
from symdiff.core.expr import Power
from symdiff.core.expr import Product
from symdiff.core.expr import Quotient
from symdiff.core.expr import Sum
from symdiff.core.expr import Variable
from symdiff.core.render import render


__all__ = [
    "DiffProperties",
    "diff",
    "diff_forward",
    "standard_rules",
    "compat_rules",
]


if _TYPE_CHECKING:
    from typing import Any, Callable, Sequence

    from symdiff.core.expr import Expr

    DiffRule = Callable[[Any, Sequence[Expr], Variable], Expr]


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiffProperties:
    """Collection of differentiation rules keyed by kind of expression.

    A rule is called as ``rule(expr, diff_args, sym)`` where *diff_args* are
    the derivatives of the children of *expr* wrt *sym*.
    """

    diff_rules: dict[type[Expr], DiffRule] = field(default_factory=dict)

    def add_diff_rule(self, kind: type[Expr], func: DiffRule) -> None:
        """Add the rule for differentiating expressions of type *kind*."""
        self.diff_rules[kind] = func

    def copy(self) -> DiffProperties:
        """Independent copy that can be modified without affecting this one."""
        return DiffProperties(dict(self.diff_rules))

    def diff_node(self, expr: Expr, diff_args: Sequence[Expr], sym: Variable) -> Expr:
        """Derivative of *expr* given the derivatives of its children."""
        rule = self.diff_rules.get(type(expr))
        if rule is None:
            kind = type(expr).__name__
            msg = "No differentiation rule for expression of type " + kind
            raise NoDifferentiationRuleError(msg)
        return rule(expr, diff_args, sym)


def diff_forward(expression: Expr, sym: Variable, prop: DiffProperties) -> Expr:
    """Derivative of expression wrt sym.

    Uses forward accumulation algorithm.
    """
    graph = forward_graph(expression)

    logger.debug(
        "Differentiating %d subexpressions wrt %s",
        len(graph.atoms) + len(graph.operations),
        sym.name,
    )

    diff_stack = [prop.diff_node(atom, [], sym) for atom in graph.atoms]

    for node, indices in graph.operations:
        diff_args = [diff_stack[i] for i in indices]
        diff_stack.append(prop.diff_node(node, diff_args, sym))

    # At this point diff_stack holds the derivatives of the topological sort
    # of expression and the derivative of expression itself is at the top.
    return diff_stack[-1]


def diff(expr: Expr, sym: Variable, *, compat: bool = False) -> Expr:
    """Differentiate *expr* wrt the :class:`Variable` *sym*.

    >>> from symdiff import Variable, diff, ln
    >>> x, y = Variable('x'), Variable('y')
    >>> print(diff(x**2 - x, x))
    ((2 * x) - 1)
    >>> print(diff(x / (x + 1), x))
    (((x + 1) - x) / ((x + 1) ^ 2))
    >>> print(diff(ln(x**2), x))
    ((1 / (x ^ 2)) * (2 * x))

    Any other variable is treated as independent of *sym*:

    >>> diff(y, x)
    Constant(value=0.0)

    With ``compat=True`` the derivatives of ``Difference`` and ``Quotient``
    are built in the legacy form. A difference differentiates to a sum and
    the numerator of the quotient rule cancels to zero:

    >>> print(diff(x**2 - x, x, compat=True))
    ((2 * x) + 1)
    >>> print(diff(x / (x + 1), x, compat=True))
    ((x - x) / ((x + 1) ^ 2))

    A power is only differentiable if exactly one of base and exponent is
    constant:

    >>> diff(x**x, x)
    Traceback (most recent call last):
        ...
    symdiff.core.exceptions.UnsupportedDifferentiationError: Cannot differentiate (x ^ x): exactly one of base and exponent should be constant
    """
    expr = expressify(expr)
    if not isinstance(sym, Variable):
        raise TypeError("Can only differentiate with respect to a Variable.")
    prop = compat_rules if compat else standard_rules
    return diff_forward(expr, sym, prop)


def diff_constant(expr: Constant, diff_args: Sequence[Expr], sym: Variable) -> Expr:
    return Constant(0)


def diff_variable(expr: Variable, diff_args: Sequence[Expr], sym: Variable) -> Expr:
    if expr.name == sym.name:
        return Constant(1)
    else:
        return Constant(0)


def diff_sum(expr: Sum, diff_args: Sequence[Expr], sym: Variable) -> Expr:
    left_d, right_d = diff_args
    if isinstance(left_d, Constant) and isinstance(right_d, Constant):
        return Constant(left_d.value + right_d.value)
    return Sum.create(left_d, right_d)


def diff_difference(expr: Difference, diff_args: Sequence[Expr], sym: Variable) -> Expr:
    left_d, right_d = diff_args
    if isinstance(left_d, Constant) and isinstance(right_d, Constant):
        return Constant(left_d.value - right_d.value)
    return Difference.create(left_d, right_d)


def diff_difference_compat(
    expr: Difference, diff_args: Sequence[Expr], sym: Variable
) -> Expr:
    left_d, right_d = diff_args
    if isinstance(left_d, Constant) and isinstance(right_d, Constant):
        return Constant(left_d.value - right_d.value)
    # XXX: This is the sum rather than the difference of the derivatives.
    return Sum.create(left_d, right_d)


def diff_product(expr: Product, diff_args: Sequence[Expr], sym: Variable) -> Expr:
    """Product rule :math:`(uv)' = uv' + u'v`."""
    u, v = expr.left, expr.right
    u_d, v_d = diff_args
    return Sum.create(Product.create(u, v_d), Product.create(u_d, v))


def diff_quotient(expr: Quotient, diff_args: Sequence[Expr], sym: Variable) -> Expr:
    """Quotient rule :math:`(u/v)' = (u'v - uv')/v^2`."""
    u, v = expr.left, expr.right
    u_d, v_d = diff_args
    numerator = Difference.create(Product.create(u_d, v), Product.create(u, v_d))
    return Quotient.create(numerator, Power.create(v, Constant(2)))


def diff_quotient_compat(
    expr: Quotient, diff_args: Sequence[Expr], sym: Variable
) -> Expr:
    u, v = expr.left, expr.right
    _, v_d = diff_args
    # XXX: The numerator uv' - v'u is always zero.
    numerator = Difference.create(Product.create(u, v_d), Product.create(v_d, u))
    return Quotient.create(numerator, Power.create(v, Constant(2)))


def diff_power(expr: Power, diff_args: Sequence[Expr], sym: Variable) -> Expr:
    """Power rule for a constant exponent or exponential rule for a constant base.

    :math:`(b^e)' = e b^{e-1} b'` if :math:`e` is constant and
    :math:`(b^e)' = b^e \\ln(b) e'` if :math:`b` is constant.
    """
    base, exponent = expr.base, expr.exponent
    base_d, exponent_d = diff_args

    if not base.is_constant() and isinstance(exponent, Constant):
        new_power = Constant(exponent.value - 1)
        return Product.create(
            Product.create(exponent, Power.create(base, new_power)), base_d
        )

    if isinstance(base, Constant) and not exponent.is_constant():
        return Product.create(
            Product.create(Power.create(base, exponent), NaturalLog.create(base)),
            exponent_d,
        )

    text = render(expr)
    logger.debug("No power rule applies to %s", text)
    msg = (
        f"Cannot differentiate {text}: "
        "exactly one of base and exponent should be constant"
    )
    raise UnsupportedDifferentiationError(msg)


def diff_natural_log(expr: NaturalLog, diff_args: Sequence[Expr], sym: Variable) -> Expr:
    """Chain rule :math:`\\ln(v)' = v'/v`."""
    (v_d,) = diff_args
    return Product.create(Quotient.create(Constant(1), expr.argument), v_d)


standard_rules = DiffProperties()
standard_rules.add_diff_rule(Constant, diff_constant)
standard_rules.add_diff_rule(Variable, diff_variable)
standard_rules.add_diff_rule(Sum, diff_sum)
standard_rules.add_diff_rule(Difference, diff_difference)
standard_rules.add_diff_rule(Product, diff_product)
standard_rules.add_diff_rule(Quotient, diff_quotient)
standard_rules.add_diff_rule(Power, diff_power)
standard_rules.add_diff_rule(NaturalLog, diff_natural_log)

compat_rules = standard_rules.copy()
compat_rules.add_diff_rule(Difference, diff_difference_compat)
compat_rules.add_diff_rule(Quotient, diff_quotient_compat)
