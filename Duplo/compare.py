# =============================================================================
# module: compare.py
# Purpose: Best-first ordering of fitted regression models and top-N selection
# Key Functions: r_square_distance, compare_models, rank_models, select_top
# Dependencies: functools, math, typing, .config, .model, .errors
# =============================================================================

import functools
import math
from typing import Iterable, List, Optional

from .config import DiagnosticConfig
from .errors import InvalidArgumentError
from .model import RegressionModel


def r_square_distance(model: RegressionModel) -> float:
    """|1 − R²|; an undefined R² ranks last."""
    r2 = model.calculate_r_square()
    if math.isnan(r2):
        return math.inf
    return abs(1 - r2)


def compare_models(
    a: RegressionModel,
    b: RegressionModel,
    config: Optional[DiagnosticConfig] = None,
    sort_column_index: int = 1
) -> int:
    """
    Three-way comparison; negative when ``a`` ranks before ``b``.

    1. If the R² distances differ by more than ``r_square_tolerance`` the
       smaller distance wins.
    2. Otherwise prefer, in order: no autocorrelation, no heteroscedasticity
       flag, no multicollinearity.
    3. Remaining ties return 0 and keep their input order.

    Diagnostics are computed on demand, so unevaluated models are fit here.
    """
    cfg = config or a.config
    da = r_square_distance(a)
    db = r_square_distance(b)
    gap = abs(da - db)
    if gap > cfg.r_square_tolerance:
        return -1 if da < db else 1

    flags = (
        lambda m: m.has_auto_correlation(cfg),
        lambda m: m.has_homoscedasticity(sort_column_index, cfg),
        lambda m: m.has_multi_collinearity(cfg),
    )
    for flag in flags:
        fa, fb = flag(a), flag(b)
        if fa != fb:
            return 1 if fa else -1
    return 0


def rank_models(
    models: Iterable[RegressionModel],
    config: Optional[DiagnosticConfig] = None,
    sort_column_index: int = 1
) -> List[RegressionModel]:
    """Stable best-first ordering of ``models``."""
    key = functools.cmp_to_key(
        lambda a, b: compare_models(a, b, config, sort_column_index)
    )
    return sorted(models, key=key)


def select_top(
    models: Iterable[RegressionModel],
    n: int,
    config: Optional[DiagnosticConfig] = None,
    sort_column_index: int = 1
) -> List[RegressionModel]:
    """
    Return the first ``n`` models of :func:`rank_models`.

    Raises
    ------
    InvalidArgumentError
        If ``n`` is not a non-negative integer.
    """
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise InvalidArgumentError(f"n must be a non-negative integer, got {n!r}.")
    return rank_models(models, config, sort_column_index)[:n]
