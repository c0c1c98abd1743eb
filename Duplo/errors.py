# =============================================================================
# module: errors.py
# Purpose: Error kinds and exception hierarchy shared across the package
# Key Types/Classes: ErrorKind, DuploError, InvalidArgumentError,
#                    DimensionMismatchError, SingularMatrixError,
#                    DataUnavailableError
# Dependencies: enum
# =============================================================================

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """
    Enumeration of failure categories raised by the modeling engine.

    Members
    -------
    INVALID_ARGUMENT : str
        Non-numeric or malformed input to a constructor or operation.
    DIMENSION_MISMATCH : str
        Incompatible matrix or vector shapes.
    SINGULAR_MATRIX : str
        Inverse attempted on a non-invertible matrix. Local to one model.
    DATA_UNAVAILABLE : str
        Upstream ingestion failure. Fatal for the whole run.
    """
    INVALID_ARGUMENT = "invalid_argument"
    DIMENSION_MISMATCH = "dimension_mismatch"
    SINGULAR_MATRIX = "singular_matrix"
    DATA_UNAVAILABLE = "data_unavailable"


class DuploError(Exception):
    """
    Base class for every error raised by Duplo.

    Parameters
    ----------
    message : str
        Human-readable description.
    kind : ErrorKind, optional
        Failure category; subclasses fix it.
    """
    kind: Optional[ErrorKind] = None

    def __init__(self, message: str = '', kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    def __repr__(self) -> str:
        kind = self.kind.name if self.kind is not None else 'UNKNOWN'
        return f"{type(self).__name__}[{kind}]({self.args[0] if self.args else ''!r})"


class InvalidArgumentError(DuploError, ValueError):
    kind = ErrorKind.INVALID_ARGUMENT


class DimensionMismatchError(DuploError, ValueError):
    kind = ErrorKind.DIMENSION_MISMATCH


class SingularMatrixError(DuploError, ArithmeticError):
    kind = ErrorKind.SINGULAR_MATRIX


class DataUnavailableError(DuploError, RuntimeError):
    kind = ErrorKind.DATA_UNAVAILABLE
