"""Symbolic differentiation of simple algebraic expressions."""
from __future__ import annotations

import logging

from .core.differentiate import DiffProperties, compat_rules, diff, standard_rules
from .core.exceptions import (
    DivisionByZeroError,
    ExpressifyError,
    LogOfZeroError,
    NoDifferentiationRuleError,
    NoEvaluationRuleError,
    SymDiffError,
    UnsupportedDifferentiationError,
)
from .core.expr import (
    E,
    E_TOLERANCE,
    Constant,
    Difference,
    Expr,
    NaturalLog,
    Power,
    Product,
    Quotient,
    Sum,
    Variable,
    expressify,
    ln,
)
from .core.render import render, write

logging.getLogger(__name__).addHandler(logging.NullHandler())

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
    "diff",
    "render",
    "write",
    "DiffProperties",
    "standard_rules",
    "compat_rules",
    "SymDiffError",
    "DivisionByZeroError",
    "LogOfZeroError",
    "UnsupportedDifferentiationError",
    "NoEvaluationRuleError",
    "NoDifferentiationRuleError",
    "ExpressifyError",
]
