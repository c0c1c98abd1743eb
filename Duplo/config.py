# =============================================================================
# module: config.py
# Purpose: Statistical table constants and pipeline parameters
# Key Types/Classes: DiagnosticConfig, PipelineConfig
# Key Functions: load_config, round_half_up
# Dependencies: yaml, pathlib, typing, .errors
# =============================================================================

import math
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import InvalidArgumentError

# Determine support directory relative to this module file using pathlib
_BASE_DIR = Path(__file__).resolve().parent
_SUPPORT_DIR = _BASE_DIR / 'support'
_DEFAULT_CONFIG_PATH = _SUPPORT_DIR / 'config.yaml'


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


class DiagnosticConfig:
    """
    Table constants used by the residual and regressor diagnostics.

    The defaults are tabulated for one sample size and regressor count; they
    are not universal critical values.

    Parameters
    ----------
    dl : float, default 1.53
        Durbin–Watson lower bound.
    du : float, default 1.74
        Durbin–Watson upper bound.
    fisher_value : float, default 2.98
        Goldfeld–Quandt critical F value.
    x_square : float, default 16.8
        Farrar–Glauber critical chi-square value.
    r_square_tolerance : float, default 0.1
        Gap in |1 - R²| above which the better fit wins outright when ranking.
    """

    def __init__(
        self,
        dl: float = 1.53,
        du: float = 1.74,
        fisher_value: float = 2.98,
        x_square: float = 16.8,
        r_square_tolerance: float = 0.1
    ):
        values = {
            'dl': dl,
            'du': du,
            'fisher_value': fisher_value,
            'x_square': x_square,
            'r_square_tolerance': r_square_tolerance,
        }
        for name, value in values.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidArgumentError(f"{name} must be a finite number, got {value!r}.")
        if not 0 < dl <= du:
            raise InvalidArgumentError(f"Durbin–Watson bounds must satisfy 0 < dl <= du, got dl={dl}, du={du}.")
        if du >= 2:
            raise InvalidArgumentError(f"du must be below 2 so that the band (du, 4 - du) is not empty, got {du}.")
        if r_square_tolerance < 0:
            raise InvalidArgumentError("r_square_tolerance must be non-negative.")

        self.dl = float(dl)
        self.du = float(du)
        self.fisher_value = float(fisher_value)
        self.x_square = float(x_square)
        self.r_square_tolerance = float(r_square_tolerance)

    def to_dict(self) -> Dict[str, float]:
        return {
            'dl': self.dl,
            'du': self.du,
            'fisher_value': self.fisher_value,
            'x_square': self.x_square,
            'r_square_tolerance': self.r_square_tolerance,
        }

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, DiagnosticConfig):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v}" for k, v in self.to_dict().items())
        return f"DiagnosticConfig({args})"


class PipelineConfig:
    """
    Parameters for the end-to-end search.

    Parameters
    ----------
    train_ratio : float, default 0.6
        Share of rows (prefix) used for training; the suffix is held out.
    top_n : int, default 10
        Number of base models carried into the ensemble stage.
    gq_sort_column : int, default 1
        Design-matrix column the Goldfeld–Quandt test sorts by (0 is the
        intercept, so 1 is the first regressor).
    diagnostics : DiagnosticConfig, optional
        Table constants; defaults to ``DiagnosticConfig()``.
    """

    def __init__(
        self,
        train_ratio: float = 0.6,
        top_n: int = 10,
        gq_sort_column: int = 1,
        diagnostics: Optional[DiagnosticConfig] = None
    ):
        if isinstance(train_ratio, bool) or not isinstance(train_ratio, (int, float)) or not 0 < train_ratio < 1:
            raise InvalidArgumentError(f"train_ratio must lie strictly between 0 and 1, got {train_ratio!r}.")
        if isinstance(top_n, bool) or not isinstance(top_n, int) or top_n < 2:
            raise InvalidArgumentError(f"top_n must be an integer >= 2, got {top_n!r}.")
        if isinstance(gq_sort_column, bool) or not isinstance(gq_sort_column, int) or gq_sort_column < 1:
            raise InvalidArgumentError(f"gq_sort_column must be a regressor column (>= 1), got {gq_sort_column!r}.")
        self.train_ratio = float(train_ratio)
        self.top_n = top_n
        self.gq_sort_column = gq_sort_column
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticConfig()

    def train_size(self, n_obs: int) -> int:
        """Number of leading rows used for training out of ``n_obs``."""
        return round_half_up(n_obs * self.train_ratio)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'diagnostics': self.diagnostics.to_dict(),
            'pipeline': {
                'train_ratio': self.train_ratio,
                'top_n': self.top_n,
                'gq_sort_column': self.gq_sort_column,
            },
        }

    def __repr__(self) -> str:
        return (
            f"PipelineConfig(train_ratio={self.train_ratio}, top_n={self.top_n}, "
            f"gq_sort_column={self.gq_sort_column}, diagnostics={self.diagnostics!r})"
        )


def load_config(path: Optional[Union[str, Path]] = None) -> PipelineConfig:
    """
    Read a YAML configuration file into a PipelineConfig.

    Parameters
    ----------
    path : str or Path, optional
        YAML file with optional ``diagnostics`` and ``pipeline`` mappings.
        If None, uses default from support/config.yaml.

    Returns
    -------
    PipelineConfig

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    InvalidArgumentError
        If a section is not a mapping or holds unknown keys.
    """
    file_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with open(file_path) as f:
        spec = yaml.safe_load(f) or {}

    if not isinstance(spec, dict):
        raise InvalidArgumentError(f"Configuration root must be a mapping in {file_path}")

    diag_spec = spec.get('diagnostics') or {}
    pipe_spec = spec.get('pipeline') or {}
    for section, value in (('diagnostics', diag_spec), ('pipeline', pipe_spec)):
        if not isinstance(value, dict):
            raise InvalidArgumentError(f"Key '{section}' must be a mapping in {file_path}")

    try:
        diagnostics = DiagnosticConfig(**diag_spec)
        return PipelineConfig(diagnostics=diagnostics, **pipe_spec)
    except TypeError as exc:
        raise InvalidArgumentError(f"Unknown configuration key in {file_path}: {exc}") from exc
