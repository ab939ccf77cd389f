"""Exceptions and warnings raised by adagrp."""
from sklearn.exceptions import ConvergenceWarning

__all__ = ["ConvergenceWarning", "InvalidInputError", "PluginContractError"]


class InvalidInputError(ValueError):
    """Raised when solver inputs are inconsistent or out of range.

    This covers mismatched array dimensions, negative observation or
    adaptive weights, observation weights that sum to zero, malformed group
    partitions and invalid solver parameters. It is always raised before any
    optimization takes place.
    """


class PluginContractError(ValueError):
    """Raised when a link or loss plugin violates its contract.

    A link must return a finite array with the same shape as the linear
    predictor. A loss must return a finite scalar.
    """
