"""Core expression types, evaluation and differentiation."""
