"""Text rendering of expressions.

Every compound expression is rendered fully parenthesized as ``(A op B)`` so
the rendering is unambiguous without any precedence rules:

>>> from symdiff import Variable, ln, render
>>> x, y = Variable('x'), Variable('y')
>>> print(render(x + y))
(x + y)
>>> print(render(ln(x) * y**2 - 1))
((ln(x) * (y ^ 2)) - 1)
"""
from __future__ import annotations

import sys
from typing import TYPE_CHECKING as _TYPE_CHECKING

from symdiff.core.evaluate import Evaluator
from symdiff.core.expr import Constant
from symdiff.core.expr import Difference
from symdiff.core.expr import NaturalLog
from symdiff.core.expr import Power
from symdiff.core.expr import Product
from symdiff.core.expr import Quotient
from symdiff.core.expr import Sum
from symdiff.core.expr import Variable


if _TYPE_CHECKING:
    from typing import IO, Callable, Optional, Sequence

    from symdiff.core.expr import Expr


__all__ = [
    "eval_repr",
    "format_number",
    "render",
    "write",
]


def format_number(value: float) -> str:
    """Format a constant like C's ``%g`` e.g. ``68`` or ``2.71828``."""
    return "%g" % value


def _binop(symbol: str) -> Callable[[Expr, Sequence[str]], str]:
    def rule(expr: Expr, args: Sequence[str]) -> str:
        left, right = args
        return f"({left} {symbol} {right})"

    return rule


eval_repr = Evaluator[str]()
eval_repr.add_rule(Constant, lambda expr, _: format_number(expr.value))  # type: ignore
eval_repr.add_rule(Variable, lambda expr, _: expr.name)  # type: ignore
eval_repr.add_rule(Sum, _binop("+"))
eval_repr.add_rule(Difference, _binop("-"))
eval_repr.add_rule(Product, _binop("*"))
eval_repr.add_rule(Quotient, _binop("/"))
eval_repr.add_rule(Power, _binop("^"))
eval_repr.add_rule(NaturalLog, lambda _, args: f"ln({args[0]})")


def render(expr: Expr) -> str:
    """Fully parenthesized text form of *expr*."""
    return eval_repr(expr)


def write(expr: Expr, stream: Optional[IO[str]] = None) -> int:
    """Write the text form of *expr* to *stream* (default ``sys.stdout``).

    No newline is written. Returns the number of characters written.

    >>> import io
    >>> from symdiff import Variable, write
    >>> buf = io.StringIO()
    >>> write(Variable('x') + 1, buf)
    7
    >>> buf.getvalue()
    '(x + 1)'
    """
    if stream is None:
        stream = sys.stdout
    text = render(expr)
    stream.write(text)
    return len(text)
