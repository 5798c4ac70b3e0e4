"""Module for all symdiff exceptions."""


class SymDiffError(Exception):
    """Superclass for all symdiff exceptions."""

    pass


class DivisionByZeroError(SymDiffError, ZeroDivisionError):
    """Raised when a :class:`Quotient` is created with a zero divisor."""

    pass


class LogOfZeroError(SymDiffError, ValueError):
    """Raised when a :class:`NaturalLog` is created with a zero argument."""

    pass


class UnsupportedDifferentiationError(SymDiffError):
    """Raised when there is no differentiation formula for an expression."""

    pass


class NoEvaluationRuleError(SymDiffError):
    """Raised when an :class:`Evaluator` has no rule for an expression."""

    pass


class NoDifferentiationRuleError(SymDiffError):
    """Raised when :class:`DiffProperties` has no rule for an expression."""

    pass


class ExpressifyError(SymDiffError, TypeError):
    """Raised when an object cannot be expressified."""

    pass
