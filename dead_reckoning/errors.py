# -*- coding: utf-8 -*-
"""
Filename: errors.py
Description: Typed failures raised by the estimation core.

             - DimensionMismatch:  wrong-sized measurement / state / velocity
             - NonFiniteInput:     NaN or inf reached the core
             - SingularCovariance: the filter's uncertainty model collapsed

The core never substitutes defaults for bad input; callers decide whether to
skip the sample, reinitialise the estimator or stop.
"""

import numpy as np
from typing import Iterable, Tuple


class EstimationError(Exception):
    """Base class for every failure raised by the estimation core."""


class DimensionMismatch(EstimationError, ValueError):
    """A vector or matrix of the wrong shape was supplied."""

    def __init__(self, name: str, expected, actual):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(f"{name}: expected shape {expected}, got {actual}")


class NonFiniteInput(EstimationError, ValueError):
    """A NaN or infinite value was passed to the core."""

    def __init__(self, name: str, value=None):
        self.name = name
        self.value = value
        super().__init__(f"{name} contains non-finite values: {value!r}")


class SingularCovariance(EstimationError, ArithmeticError):
    """
    The innovation covariance could not be inverted.
    Fatal to the current session: the estimator must be reset.
    """


def require_finite(name: str, value) -> np.ndarray:
    """Return ``value`` as a float array, raising NonFiniteInput on NaN/inf."""
    arr = np.asarray(value, dtype=float)
    if not np.all(np.isfinite(arr)):
        raise NonFiniteInput(name, value)
    return arr


def require_shape(name: str, value, shapes: Iterable[Tuple[int, ...]]) -> np.ndarray:
    """Return ``value`` as a float array if its shape is one of ``shapes``."""
    arr = np.asarray(value, dtype=float)
    shapes = tuple(shapes)
    if arr.shape not in shapes:
        expected = shapes[0] if len(shapes) == 1 else shapes
        raise DimensionMismatch(name, expected, arr.shape)
    return arr
