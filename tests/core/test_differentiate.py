import logging

from symdiff.core.differentiate import (
    DiffProperties,
    compat_rules,
    diff,
    diff_forward,
    standard_rules,
)
from symdiff.core.exceptions import (
    LogOfZeroError,
    NoDifferentiationRuleError,
    UnsupportedDifferentiationError,
)
from symdiff.core.expr import (
    E,
    Constant,
    Difference,
    Expr,
    NaturalLog,
    Power,
    Product,
    Quotient,
    Sum,
    Variable,
)
from pytest import raises

x = Variable("x")
y = Variable("y")
zero = Constant(0)
one = Constant(1)
two = Constant(2)


def test_diff_atoms() -> None:
    """Test differentiating Constant and Variable."""
    for k in [0, 1, -2, 3.5, E]:
        d = diff(Constant(k), x)
        assert d.is_constant() is True
        assert d == zero
    assert diff(x, x) == one
    assert diff(Variable("x"), x) == one
    assert diff(y, x) == zero
    assert diff(x, y) == zero


def test_diff_sum_difference() -> None:
    """Test differentiating Sum and Difference."""
    assert diff(Sum(x, x), x) == Constant(2)
    assert diff(Sum(x, y), x) == one
    assert diff(Sum(x, Constant(3)), x) == one
    assert diff(Difference(x, x), x) == zero
    assert diff(Difference(Constant(3), x), x) == Constant(-1)
    assert diff(Difference(y, x), y) == one

    x2 = Power(x, two)
    dx2 = Product(two, x)
    assert diff(Sum(x2, x), x) == Sum(dx2, one)
    assert diff(Sum(y, x2), x) == dx2
    assert diff(Difference(x2, x), x) == Difference(dx2, one)
    assert diff(Difference(x, x2), x) == Difference(one, dx2)
    assert diff(Difference(x2, y), x) == dx2


def test_diff_difference_compat() -> None:
    """Test the legacy derivative of a Difference."""
    x2 = Power(x, two)
    dx2 = Product(two, x)
    assert diff(Difference(x2, x), x, compat=True) == Sum(dx2, one)
    assert diff(Difference(x, x), x, compat=True) == zero
    assert diff(Difference(Constant(3), x), x, compat=True) == Constant(-1)


def test_diff_product() -> None:
    """Test the product rule."""
    assert diff(Product(two, x), x) == two
    assert diff(Product(x, two), x) == two
    assert diff(Product(x, y), x) == y
    assert diff(Product(x, y), y) == x
    assert diff(Product(x, x), x) == Sum(x, x)
    assert diff(Product(y, y), x) == zero

    # The undifferentiated factors are used as they are.
    x2 = Power(x, two)
    lnx = NaturalLog(x)
    expected = Sum(Product(x2, Quotient(one, x)), Product(Product(two, x), lnx))
    assert diff(Product(x2, lnx), x) == expected


def test_diff_quotient() -> None:
    """Test the quotient rule."""
    xp1 = Sum(x, one)
    expected = Quotient(Difference(xp1, x), Power(xp1, two))
    assert diff(Quotient(x, xp1), x) == expected

    assert diff(Quotient(x, two), x) == Quotient(two, Power(two, two))
    assert diff(Quotient(one, x), x) == Quotient(
        Difference(zero, one), Power(x, two)
    )
    assert diff(Quotient(y, x), y) == Quotient(x, Power(x, two))


def test_diff_quotient_compat() -> None:
    """Test the legacy derivative of a Quotient."""
    xp1 = Sum(x, one)
    expected = Quotient(Difference(x, x), Power(xp1, two))
    assert diff(Quotient(x, xp1), x, compat=True) == expected
    # A constant numerator gives 0 / x^2 which simplifies to 0.
    assert diff(Quotient(x, two), x, compat=True) == zero


def test_diff_power() -> None:
    """Test the power rule and the exponential rule."""
    assert diff(Power(x, two), x) == Product(two, x)
    assert diff(Power(x, Constant(3)), x) == Product(
        Constant(3), Power(x, two)
    )
    assert diff(Power(x, one), x) == one
    assert diff(Power(x, Constant(0.5)), x) == Product(
        Constant(0.5), Power(x, Constant(-0.5))
    )
    assert diff(Power(y, two), x) == zero

    # Chain rule
    xy = Product(x, y)
    assert diff(Power(xy, two), x) == Product(Product(two, xy), y)

    # Exponential rule
    expr = Power(two, x)
    assert diff(expr, x) == Product(expr, NaturalLog(two))
    assert diff(expr, y) == zero
    e_x = Power(Constant(E), Product(two, x))
    assert diff(e_x, x) == Product(e_x, two)


def test_diff_power_unsupported() -> None:
    """Test that Power needs exactly one constant operand."""
    with raises(UnsupportedDifferentiationError, match=r"\(x \^ x\)"):
        diff(Power(x, x), x)
    with raises(UnsupportedDifferentiationError):
        diff(Power(x, y), x)
    with raises(UnsupportedDifferentiationError):
        diff(Power(two, Constant(3)), x)
    with raises(UnsupportedDifferentiationError):
        diff(Sum(x, Power(x, Sum(x, one))), x)

    # ln(0) is needed for the derivative of 0^x
    with raises(LogOfZeroError):
        diff(Power(zero, x), x)


def test_diff_natural_log() -> None:
    """Test the chain rule for ln."""
    assert diff(NaturalLog(x), x) == Quotient(one, x)
    x2 = Power(x, two)
    assert diff(NaturalLog(x2), x) == Product(Quotient(one, x2), Product(two, x))
    assert diff(NaturalLog(y), x) == zero
    assert diff(NaturalLog(Constant(3)), x) == zero


def test_diff_errors() -> None:
    """Test invalid arguments to diff."""
    raises(TypeError, lambda: diff(x, "x"))  # type: ignore
    raises(TypeError, lambda: diff(x, Sum(x, y)))  # type: ignore
    raises(TypeError, lambda: diff("x", x))  # type: ignore
    assert diff(3, x) == zero  # type: ignore

    # The divisor v^2 of the quotient rule is never zero.
    assert isinstance(diff(Quotient(x, Sum(x, y)), x), Quotient)


def test_Expr_diff() -> None:
    """Test the Expr.diff method."""
    x3 = Power(x, Constant(3))
    assert x3.diff(x) == diff(x3, x)
    assert x3.diff(x, 2) == Product(Constant(3), Product(two, x))
    assert x3.diff(x, 3) == Product(Constant(3), two)
    assert x3.diff(x, 4) == zero
    assert x3.diff(x, 0) is x3
    d = Difference(Power(x, two), x)
    assert d.diff(x, compat=True) == diff(d, x, compat=True)


def test_diff_shared_subexpressions() -> None:
    """Test differentiating an expression with a repeated subexpression."""
    x2 = Power(x, two)
    expr: Expr = x2
    for _ in range(3):
        expr = Product(expr, expr)
    result = diff(expr, x)
    assert isinstance(result, Sum)

    deep: Expr = x
    for _ in range(5000):
        deep = Sum(deep, x)
    assert diff(deep, x) == Constant(5001)


def test_DiffProperties() -> None:
    """Test extending and copying DiffProperties."""
    prop = DiffProperties()
    with raises(NoDifferentiationRuleError):
        diff_forward(x, x, prop)

    prop.add_diff_rule(Variable, lambda e, _, s: one if e == s else zero)
    assert diff_forward(x, x, prop) == one
    with raises(NoDifferentiationRuleError, match="No differentiation rule"):
        diff_forward(Sum(x, x), x, prop)

    prop2 = prop.copy()
    prop2.add_diff_rule(Sum, lambda e, args, s: Sum.create(*args))
    assert diff_forward(Sum(x, x), x, prop2) == Sum(one, one)
    raises(NoDifferentiationRuleError, lambda: diff_forward(Sum(x, x), x, prop))

    assert compat_rules.diff_rules[Sum] is standard_rules.diff_rules[Sum]
    for kind in [Difference, Quotient]:
        assert compat_rules.diff_rules[kind] is not standard_rules.diff_rules[kind]


def test_diff_logging(caplog) -> None:  # type: ignore
    """Test the debug log messages of the differentiation engine."""
    with caplog.at_level(logging.DEBUG, logger="symdiff"):
        diff(Sum(x, y), x)
        with raises(UnsupportedDifferentiationError):
            diff(Power(x, x), x)
    messages = [r.getMessage() for r in caplog.records]
    assert "Differentiating 3 subexpressions wrt x" in messages
    assert "No power rule applies to (x ^ x)" in messages


def test_DiffProperties_missing_rule_deep() -> None:
    """Test the missing rule error for an expression deeper than the stack."""
    deep: Expr = x
    for _ in range(3000):
        deep = Sum(deep, x)

    prop = DiffProperties()
    prop.add_diff_rule(Variable, lambda e, _, s: one if e == s else zero)
    prop.add_diff_rule(Sum, lambda e, args, s: Sum.create(*args))

    with raises(NoDifferentiationRuleError, match="of type NaturalLog"):
        diff_forward(NaturalLog(deep), x, prop)
