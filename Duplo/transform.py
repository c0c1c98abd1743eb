# =============================================================================
# module: transform.py
# Purpose: Closed set of feature transforms applied to regressor values
# Key Types/Classes: Transform
# Key Functions: LV, SQ, CB, LN
# Dependencies: numpy, enum, typing, .errors
# =============================================================================

from enum import Enum
from typing import Union

import numpy as np

from .errors import InvalidArgumentError

Number = Union[float, np.ndarray]


# Core transform functions

def LV(x: Number) -> Number:
    """Identity: returns the original value."""
    return x


def SQ(x: Number) -> Number:
    """Square."""
    return np.multiply(x, x)


def CB(x: Number) -> Number:
    """Cube."""
    return np.multiply(np.multiply(x, x), x)


def LN(x: Number) -> Number:
    """Natural logarithm. Non-positive input yields NaN or -inf."""
    with np.errstate(divide='ignore', invalid='ignore'):
        return np.log(x)


_FUNCS = {'LV': LV, 'SQ': SQ, 'CB': CB, 'LN': LN}


class Transform(Enum):
    """
    Feature transform applied to every non-intercept design cell.

    The value of each member is its short tag, used in model identifiers
    (e.g. ``SQ[0,2]``).

    Example
    -------
    >>> Transform.SQUARE.apply(3.0)
    9.0
    >>> Transform.from_name('LN') is Transform.LOG
    True
    """
    IDENTITY = 'LV'
    SQUARE = 'SQ'
    CUBE = 'CB'
    LOG = 'LN'

    @property
    def tag(self) -> str:
        return self.value

    def apply(self, x: Number) -> Number:
        """Evaluate the transform on a scalar or an array."""
        result = _FUNCS[self.value](np.asarray(x, dtype=float))
        if np.ndim(result) == 0:
            return float(result)
        return result

    __call__ = apply

    @classmethod
    def from_name(cls, name: Union[str, 'Transform']) -> 'Transform':
        """
        Resolve a transform by tag (``'SQ'``) or member name (``'square'``).

        Raises
        ------
        InvalidArgumentError
            If the name matches no transform.
        """
        if isinstance(name, Transform):
            return name
        if isinstance(name, str):
            key = name.strip().upper()
            for member in cls:
                if key in (member.value, member.name):
                    return member
        raise InvalidArgumentError(f"Unknown transform '{name}'. Expected one of {[m.value for m in cls]}.")

    def __str__(self) -> str:
        return self.value
