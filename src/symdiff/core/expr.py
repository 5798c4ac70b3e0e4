"""symdiff.core.expr module.

This module defines the expression node types and their smart constructors.

Every expression is one of a closed set of immutable node types: the atoms
:class:`Constant` and :class:`Variable` and the compound expressions
:class:`Sum`, :class:`Difference`, :class:`Product`, :class:`Quotient`,
:class:`Power` and :class:`NaturalLog`. Compound expressions should be built
with the ``create`` classmethod of their type (or the arithmetic operators
which call it) so that trivial simplifications are applied before a new node
is allocated.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from functools import wraps
from typing import TYPE_CHECKING as _TYPE_CHECKING
from typing import Any, Callable, Union

from symdiff.core.exceptions import DivisionByZeroError
from symdiff.core.exceptions import ExpressifyError
from symdiff.core.exceptions import LogOfZeroError


if _TYPE_CHECKING:
    from typing import IO, Optional

    Expressifiable = Union["Expr", int, float]
    ExprBinOp = Callable[["Expr", "Expr"], "Expr"]
    ExpressifyBinOp = Callable[["Expr", Expressifiable], "Expr"]


__all__ = [
    "E",
    "E_TOLERANCE",
    "Expr",
    "Constant",
    "Variable",
    "Sum",
    "Difference",
    "Product",
    "Quotient",
    "Power",
    "NaturalLog",
    "expressify",
    "ln",
    "ForwardGraph",
    "topological_sort",
    "forward_graph",
]


E = math.e
E_TOLERANCE = 1e-10


def expressify(obj: Any) -> Expr:
    """Convert a native Python number to an ``Expr``.

    >>> from symdiff import expressify
    >>> two = expressify(2)
    >>> two
    Constant(value=2.0)
    >>> expressify(two) is two
    True

    Only ``int`` and ``float`` are converted. Anything else (including
    ``bool``) raises :class:`ExpressifyError`.
    """
    if isinstance(obj, Expr):
        return obj
    elif isinstance(obj, (int, float)) and not isinstance(obj, bool):
        return Constant(obj)
    else:
        raise ExpressifyError(f"Cannot convert {type(obj).__name__} to Expr.")


def expressify_other(method: ExprBinOp) -> ExpressifyBinOp:
    """Call ``expressify`` on operands in ``__add__`` etc."""

    @wraps(method)
    def expressify_method(self: Expr, other: Expressifiable) -> Expr:
        if not isinstance(other, Expr):
            try:
                other = expressify(other)
            except ExpressifyError:
                return NotImplemented
        return method(self, other)

    return expressify_method


def _is_value(expr: Expr, value: float) -> bool:
    """Test whether *expr* is a :class:`Constant` equal to *value*."""
    return isinstance(expr, Constant) and expr.value == value


def _check_operands(*operands: Any) -> None:
    if not all(isinstance(operand, Expr) for operand in operands):
        raise TypeError("All operands should be Expr.")


class Expr:
    """Base class for all expressions.

    Expressions are built from :class:`Constant` and :class:`Variable` atoms
    using the arithmetic operators which go through the smart constructors:

    >>> from symdiff import Variable, ln
    >>> x = Variable('x')
    >>> expr = 5 * x**2
    >>> print(expr)
    (5 * (x ^ 2))
    >>> print(expr.diff(x))
    (5 * (2 * x))

    The smart constructors only apply identity and annihilator rules involving
    constants. Nothing else is simplified:

    >>> print(x + 0)
    x
    >>> print(x * 0)
    0
    >>> print(x - x)
    (x - x)
    >>> print(ln(x) / x**1)
    (ln(x) / x)

    Every expression is immutable and compares equal to any other expression
    with the same structure:

    >>> x + 1 == Variable('x') + 1
    True

    See Also
    ========

    render: The text form used by ``str``.
    symdiff.core.differentiate.diff: The differentiation engine.
    """

    @property
    def children(self) -> tuple[Expr, ...]:
        """The operands of a compound expression (empty for atoms)."""
        return ()

    def is_constant(self) -> bool:
        """Whether this expression is a :class:`Constant`."""
        return False

    def __str__(self) -> str:
        """Fully parenthesized text form e.g. ``"(x + 1)"``."""
        return self.render()

    def render(self) -> str:
        """Fully parenthesized text form e.g. ``"(x + 1)"``."""
        from symdiff.core.render import render

        return render(self)

    def write(self, stream: Optional[IO[str]] = None) -> int:
        """Write the text form of this expression to *stream*."""
        from symdiff.core.render import write

        return write(self, stream)

    def diff(self, sym: Variable, ntimes: int = 1, *, compat: bool = False) -> Expr:
        """Differentiate this expression wrt *sym* (*ntimes* times).

        >>> from symdiff import Variable
        >>> x = Variable('x')
        >>> print((x**3).diff(x))
        (3 * (x ^ 2))
        >>> print((x**3).diff(x, 2))
        (3 * (2 * x))

        See :func:`symdiff.core.differentiate.diff` for the meaning of
        *compat*.
        """
        from symdiff.core.differentiate import diff

        deriv = self
        for _ in range(ntimes):
            deriv = diff(deriv, sym, compat=compat)
        return deriv

    def to_sympy(self) -> Any:
        """Convert to a SymPy expression.

        >>> # xdoctest: +REQUIRES(module:sympy)
        >>> from symdiff import Variable
        >>> x = Variable('x')
        >>> (x**2 + 1).to_sympy()
        x**2 + 1
        """
        from symdiff.sympy_conversions import to_sympy

        return to_sympy(self)

    def __pos__(self) -> Expr:
        """+Expr -> Expr."""
        return self

    def __neg__(self) -> Expr:
        """-Expr -> Expr."""
        return Product.create(Constant(-1), self)

    @expressify_other
    def __add__(self, other: Expr) -> Expr:
        """Expr + Expr -> Expr."""
        return Sum.create(self, other)

    @expressify_other
    def __radd__(self, other: Expr) -> Expr:
        """Expr + Expr -> Expr."""
        return Sum.create(other, self)

    @expressify_other
    def __sub__(self, other: Expr) -> Expr:
        """Expr - Expr -> Expr."""
        return Difference.create(self, other)

    @expressify_other
    def __rsub__(self, other: Expr) -> Expr:
        """Expr - Expr -> Expr."""
        return Difference.create(other, self)

    @expressify_other
    def __mul__(self, other: Expr) -> Expr:
        """Expr * Expr -> Expr."""
        return Product.create(self, other)

    @expressify_other
    def __rmul__(self, other: Expr) -> Expr:
        """Expr * Expr -> Expr."""
        return Product.create(other, self)

    @expressify_other
    def __truediv__(self, other: Expr) -> Expr:
        """Expr / Expr -> Expr."""
        return Quotient.create(self, other)

    @expressify_other
    def __rtruediv__(self, other: Expr) -> Expr:
        """Expr / Expr -> Expr."""
        return Quotient.create(other, self)

    @expressify_other
    def __pow__(self, other: Expr) -> Expr:
        """Expr ** Expr -> Expr."""
        return Power.create(self, other)

    @expressify_other
    def __rpow__(self, other: Expr) -> Expr:
        """Expr ** Expr -> Expr."""
        return Power.create(other, self)


@dataclass(frozen=True)
class Constant(Expr):
    """A numeric literal.

    >>> from symdiff import Constant, E
    >>> Constant(2)
    Constant(value=2.0)
    >>> print(Constant(2))
    2
    >>> Constant(E).is_const_e()
    True
    """

    value: float

    def __post_init__(self) -> None:
        value = self.value
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError("The value of a Constant should be a number.")
        object.__setattr__(self, "value", float(value))

    def is_constant(self) -> bool:
        """Always ``True`` for a :class:`Constant`."""
        return True

    def is_const_e(self) -> bool:
        """Whether this is the constant ``e`` (within :data:`E_TOLERANCE`)."""
        return abs(self.value - E) < E_TOLERANCE


@dataclass(frozen=True)
class Variable(Expr):
    """A symbol that expressions can be differentiated with respect to."""

    name: str

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise TypeError("The name of a Variable should be a str.")
        if not self.name:
            raise ValueError("The name of a Variable should not be empty.")


@dataclass(frozen=True)
class _BinaryExpr(Expr):
    """Compound expression with a left and right operand."""

    left: Expr
    right: Expr

    def __post_init__(self) -> None:
        _check_operands(self.left, self.right)

    @property
    def children(self) -> tuple[Expr, ...]:
        """The left and right operands."""
        return (self.left, self.right)


@dataclass(frozen=True)
class Sum(_BinaryExpr):
    """The sum ``(left + right)``."""

    @classmethod
    def create(cls, left: Expr, right: Expr) -> Expr:
        """Create ``left + right`` dropping a zero operand.

        >>> from symdiff import Constant, Sum, Variable
        >>> x, y = Variable('x'), Variable('y')
        >>> print(Sum.create(x, y))
        (x + y)
        >>> Sum.create(Constant(0), x) is x
        True
        """
        if _is_value(left, 0):
            return right
        if _is_value(right, 0):
            return left
        return cls(left, right)


@dataclass(frozen=True)
class Difference(_BinaryExpr):
    """The difference ``(left - right)``."""

    @classmethod
    def create(cls, left: Expr, right: Expr) -> Expr:
        """Create ``left - right`` dropping a zero right operand.

        A zero left operand is kept since ``0 - x`` is not ``x``.
        """
        if _is_value(right, 0):
            return left
        return cls(left, right)


@dataclass(frozen=True)
class Product(_BinaryExpr):
    """The product ``(left * right)``."""

    @classmethod
    def create(cls, left: Expr, right: Expr) -> Expr:
        """Create ``left * right``.

        A zero operand annihilates the product and a unit operand is dropped:

        >>> from symdiff import Constant, Product, Variable
        >>> x = Variable('x')
        >>> Product.create(x, Constant(0))
        Constant(value=0.0)
        >>> Product.create(Constant(1), x) is x
        True
        """
        if _is_value(left, 0) or _is_value(right, 0):
            return Constant(0)
        if _is_value(left, 1):
            return right
        if _is_value(right, 1):
            return left
        return cls(left, right)


@dataclass(frozen=True)
class Quotient(_BinaryExpr):
    """The quotient ``(left / right)``."""

    def __post_init__(self) -> None:
        super().__post_init__()
        if _is_value(self.right, 0):
            raise DivisionByZeroError("math error: attempted to divide by zero")

    @classmethod
    def create(cls, left: Expr, right: Expr) -> Expr:
        """Create ``left / right``.

        Raises :class:`DivisionByZeroError` if *right* is the constant 0:

        >>> from symdiff import Constant, Quotient, Variable
        >>> Quotient.create(Variable('x'), Constant(0))
        Traceback (most recent call last):
            ...
        symdiff.core.exceptions.DivisionByZeroError: math error: attempted to divide by zero
        """
        if _is_value(right, 0):
            raise DivisionByZeroError("math error: attempted to divide by zero")
        if _is_value(right, 1):
            return left
        if _is_value(left, 0):
            return Constant(0)
        return cls(left, right)


@dataclass(frozen=True)
class Power(Expr):
    """The power ``(base ^ exponent)``."""

    base: Expr
    exponent: Expr

    def __post_init__(self) -> None:
        _check_operands(self.base, self.exponent)

    @property
    def children(self) -> tuple[Expr, ...]:
        """The base and exponent."""
        return (self.base, self.exponent)

    @classmethod
    def create(cls, base: Expr, exponent: Expr) -> Expr:
        """Create ``base ^ exponent``.

        The exponents 0 and 1 are simplified only for a non-constant base so
        ``2 ^ 0`` is left as it is:

        >>> from symdiff import Constant, Power, Variable
        >>> x = Variable('x')
        >>> Power.create(x, Constant(0))
        Constant(value=1.0)
        >>> print(Power.create(Constant(2), Constant(0)))
        (2 ^ 0)
        """
        if not base.is_constant() and isinstance(exponent, Constant):
            if exponent.value == 0:
                return Constant(1)
            if exponent.value == 1:
                return base
        return cls(base, exponent)


@dataclass(frozen=True)
class NaturalLog(Expr):
    """The natural logarithm ``ln(argument)``."""

    argument: Expr

    def __post_init__(self) -> None:
        _check_operands(self.argument)
        if _is_value(self.argument, 0):
            raise LogOfZeroError("math error: argument of ln is zero")

    @property
    def children(self) -> tuple[Expr, ...]:
        """The argument of the logarithm."""
        return (self.argument,)

    @classmethod
    def create(cls, argument: Expr) -> Expr:
        """Create ``ln(argument)``.

        >>> from symdiff import Constant, E, NaturalLog
        >>> NaturalLog.create(Constant(E))
        Constant(value=1.0)
        >>> NaturalLog.create(Constant(0))
        Traceback (most recent call last):
            ...
        symdiff.core.exceptions.LogOfZeroError: math error: argument of ln is zero
        """
        if isinstance(argument, Constant):
            if argument.value == 0:
                raise LogOfZeroError("math error: argument of ln is zero")
            if argument.is_const_e():
                return Constant(1)
        return cls(argument)


def ln(argument: Expressifiable) -> Expr:
    """Natural logarithm of *argument* through :meth:`NaturalLog.create`.

    >>> from symdiff import Variable, ln
    >>> print(ln(Variable('x')))
    ln(x)
    """
    return NaturalLog.create(expressify(argument))


def topological_sort(expression: Expr) -> list[Expr]:
    """List of subexpressions of an :class:`Expr` sorted topologically.

    >>> from symdiff import Variable
    >>> from symdiff.core.expr import topological_sort
    >>> x, y = Variable('x'), Variable('y')
    >>> xy = x * y
    >>> for e in topological_sort(xy + xy**2):
    ...     print(e)
    x
    y
    (x * y)
    2
    ((x * y) ^ 2)
    ((x * y) + ((x * y) ^ 2))

    No expression appears before any of its children. A subexpression object
    that is used more than once appears only once. Objects are compared by
    identity so equal but distinct objects are all listed.
    """
    #
    # A stack is used rather than recursion so that there is no limit on the
    # depth of the expression.
    #
    def get_children(expr: Expr) -> list[Expr]:
        return list(expr.children)[::-1]

    seen = {id(expression)}
    expressions = []
    stack = [(expression, get_children(expression))]

    while stack:
        top, children = stack[-1]
        while children:
            child = children.pop()
            if id(child) not in seen:
                seen.add(id(child))
                stack.append((child, get_children(child)))
                break
        else:
            stack.pop()
            expressions.append(top)

    return expressions


@dataclass
class ForwardGraph:
    """Representation of an expression as a forward graph.

    ``atoms`` are the leaves of the expression. Each item of ``operations`` is
    a compound subexpression together with the indices of its children in the
    list ``atoms + [node for node, _ in operations]``.
    """

    atoms: list[Expr]
    operations: list[tuple[Expr, list[int]]]


def forward_graph(expr: Expr) -> ForwardGraph:
    """Build a :class:`ForwardGraph` from an :class:`Expr`.

    >>> from symdiff import Variable, ln
    >>> from symdiff.core.expr import forward_graph
    >>> x, y = Variable('x'), Variable('y')
    >>> graph = forward_graph(ln(x + y))
    >>> graph.atoms == [x, y]
    True
    >>> [(str(node), indices) for node, indices in graph.operations]
    [('(x + y)', [0, 1]), ('ln((x + y))', [2])]
    """
    subexpressions = topological_sort(expr)

    atoms = [e for e in subexpressions if not e.children]
    nodes = [e for e in subexpressions if e.children]

    indices = {id(atom): index for index, atom in enumerate(atoms)}
    operations: list[tuple[Expr, list[int]]] = []

    for index, node in enumerate(nodes, len(atoms)):
        arg_indices = [indices[id(child)] for child in node.children]
        operations.append((node, arg_indices))
        indices[id(node)] = index

    return ForwardGraph(atoms, operations)
