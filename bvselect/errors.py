from __future__ import annotations


class ConfigError(ValueError):
    pass


class NumericDegeneracyError(ArithmeticError):
    """A sampler draw produced (or would consume) a degenerate value.

    Raised for non-finite or non-positive scale/precision parameters and for
    zero gamma rates. The chain that hit it is not retried.
    """


class DegeneratePosteriorError(NumericDegeneracyError):
    """The conditional posterior precision matrix is singular or near-singular."""
