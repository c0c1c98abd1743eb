# =============================================================================
# module: model.py
# Purpose: OLS regression model over one feature subset with memoized diagnostics
# Key Types/Classes: RegressionModel
# Key Functions: calculate_coefficients, predict_y, calculate_r_square,
#                calculate_auto_correlation, calculate_homoscedasticity,
#                calculate_multi_collinearity, make_model_id
# Dependencies: numpy, pandas, statsmodels, logging, typing, .matrix, .report,
#               .transform, .config, .test, .testset
# =============================================================================

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from statsmodels.stats.stattools import durbin_watson

from .config import DiagnosticConfig, round_half_up
from .errors import DimensionMismatchError, InvalidArgumentError
from .matrix import Matrix
from .report import ModelReport
from .test import AutocorrTest, ModelTestBase
from .testset import TestSet, ols_testset_func
from .transform import Transform

LOGGER = logging.getLogger(__name__)


def make_model_id(feature_indices: Sequence[int], transform: Transform) -> str:
    """
    Deterministic identifier from (sorted subset indices, transform tag).

    >>> make_model_id((2, 0), Transform.SQUARE)
    'SQ[0,2]'
    """
    idx = ",".join(str(int(i)) for i in sorted(feature_indices))
    return f"{transform.tag}[{idx}]"


class RegressionModel:
    """
    Ordinary least squares model on a design matrix with an intercept column.

    The transform is applied to every design cell except column 0 (the
    intercept) before fitting and predicting. Coefficients and diagnostics are
    computed on first request and cached for the lifetime of the instance.
    The inputs never change after construction, so a cached value is always
    the value a fresh computation would return; there is no invalidation.

    State moves one way only: ``unfit`` -> ``fit``. Every diagnostic fits the
    coefficients first when they are missing.

    Parameters
    ----------
    design : Matrix or array-like
        N×(k+1) raw design matrix whose first column is all ones.
    target : array-like
        N observed target values.
    transform : Transform or str, default Transform.IDENTITY
        Feature transform applied to non-intercept cells.
    model_id : str, optional
        Identifier; derived from ``feature_indices`` and ``transform`` if omitted.
    feature_indices : sequence of int, optional
        Positions of the regressors in the full feature set. Defaults to
        ``range(k)``.
    feature_names : sequence of str, optional
        Labels for the regressors. Defaults to ``x<i+1>`` from feature_indices.
    config : DiagnosticConfig, optional
        Table constants for the diagnostic flags.
    testset_func : callable, optional
        Builds the mapping of tests for :attr:`testset`.

    Raises
    ------
    InvalidArgumentError
        If the design has no regressor column or column 0 is not all ones.
    DimensionMismatchError
        If design rows and target length differ.
    """

    def __init__(
        self,
        design: Union[Matrix, np.ndarray, Sequence[Sequence[float]]],
        target: Any,
        transform: Union[Transform, str] = Transform.IDENTITY,
        model_id: Optional[str] = None,
        feature_indices: Optional[Sequence[int]] = None,
        feature_names: Optional[Sequence[str]] = None,
        config: Optional[DiagnosticConfig] = None,
        testset_func: Callable[['RegressionModel'], Dict[str, ModelTestBase]] = ols_testset_func
    ):
        self.design = design if isinstance(design, Matrix) else Matrix(design)
        n_obs, n_cols = self.design.size()

        if n_cols < 2:
            raise InvalidArgumentError("Design matrix needs an intercept column and at least one regressor.")
        if not np.all(self.design.get_column(0) == 1.0):
            raise InvalidArgumentError("Column 0 of the design matrix must be the intercept (all ones).")

        try:
            y = np.asarray(target, dtype=float).ravel()
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"Target must be numeric: {exc}") from exc
        if y.size != n_obs:
            raise DimensionMismatchError(
                f"Design has {n_obs} rows but target has {y.size} values."
            )
        self._target = Matrix.column(y)

        self.transform = Transform.from_name(transform)
        self.config = config or DiagnosticConfig()
        self.testset_func = testset_func

        k = n_cols - 1
        if feature_indices is None:
            feature_indices = range(k)
        self.feature_indices = tuple(int(i) for i in feature_indices)
        if len(self.feature_indices) != k:
            raise DimensionMismatchError(
                f"{len(self.feature_indices)} feature indices given for {k} regressors."
            )
        if feature_names is None:
            feature_names = [f"x{i + 1}" for i in self.feature_indices]
        self.feature_names = [str(name) for name in feature_names]
        if len(self.feature_names) != k:
            raise DimensionMismatchError(
                f"{len(self.feature_names)} feature names given for {k} regressors."
            )

        self.model_id = model_id or make_model_id(self.feature_indices, self.transform)

        # Memoized results; written only by the calculate_* methods below
        self._cache: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Shape and state
    # ------------------------------------------------------------------

    @property
    def n_obs(self) -> int:
        return self.design.size()[0]

    @property
    def n_regressors(self) -> int:
        return self.design.size()[1] - 1

    @property
    def target(self) -> np.ndarray:
        return self._target.get_column(0)

    @property
    def state(self) -> str:
        return 'fit' if 'coefficients' in self._cache else 'unfit'

    @property
    def is_fitted(self) -> bool:
        return self.state == 'fit'

    @property
    def transformed_design(self) -> Matrix:
        """Design matrix with the transform applied to every non-intercept cell."""
        if 'transformed_design' not in self._cache:
            transform = self.transform
            self._cache['transformed_design'] = self.design.map(
                lambda value, row, col: value if col == 0 else transform.apply(value)
            )
        return self._cache['transformed_design']

    # ------------------------------------------------------------------
    # Fitting and prediction
    # ------------------------------------------------------------------

    def calculate_coefficients(self) -> np.ndarray:
        """
        Solve the normal equation β = (XᵗX)⁻¹Xᵗy on the transformed design.

        Returns
        -------
        numpy.ndarray
            Read-only vector of k+1 coefficients, intercept first.

        Raises
        ------
        SingularMatrixError
            If XᵗX is not invertible (collinear columns, too few rows).
        InvalidArgumentError
            If the transform produced non-finite values (log of a
            non-positive number).
        """
        if 'coefficients' in self._cache:
            return self._cache['coefficients']

        X = self.transformed_design
        if not np.all(np.isfinite(X.to_array())):
            raise InvalidArgumentError(
                f"{self.model_id}: transform '{self.transform.tag}' produced non-finite design values."
            )
        Xt = X.transpose()
        result = (
            Xt.multiply(X)
            .inverse()
            .multiply(Xt)
            .multiply(self._target)
        )
        coefficients = result.get_column(0)
        coefficients.setflags(write=False)
        self._cache['coefficients'] = coefficients
        LOGGER.debug("Fitted %s with coefficients %s", self.model_id, coefficients)
        return coefficients

    @property
    def coefficients(self) -> np.ndarray:
        return self.calculate_coefficients()

    @property
    def params(self) -> pd.Series:
        """Coefficients labelled ``const`` followed by the feature names."""
        return pd.Series(
            self.calculate_coefficients(),
            index=['const'] + self.feature_names,
            name=self.model_id
        )

    def _prepare_rows(self, rows: np.ndarray) -> np.ndarray:
        x = np.array(rows, dtype=float)
        x[:, 0] = 1.0
        x[:, 1:] = self.transform.apply(x[:, 1:])
        return x

    def predict_y(self, raw_row: Sequence[float]) -> float:
        """
        Predict one output from a raw design row ``[1, x1, ..., xk]``.

        The intercept position is used as 1 without any transform; every
        other value is transformed before weighting by its coefficient.

        Raises
        ------
        DimensionMismatchError
            If the row does not have k+1 values.
        """
        try:
            row = np.asarray(raw_row, dtype=float).ravel()
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"Row must be numeric: {exc}") from exc
        coefficients = self.calculate_coefficients()
        if row.size != coefficients.size:
            raise DimensionMismatchError(
                f"{self.model_id} expects rows of {coefficients.size} values, got {row.size}."
            )
        x = self._prepare_rows(row.reshape(1, -1))[0]
        return float(np.dot(coefficients, x))

    def predict(self, raw_rows: Any) -> np.ndarray:
        """Vectorized :meth:`predict_y` over an M×(k+1) array of raw rows."""
        rows = np.asarray(raw_rows, dtype=float)
        if rows.ndim == 1:
            rows = rows.reshape(1, -1)
        coefficients = self.calculate_coefficients()
        if rows.ndim != 2 or rows.shape[1] != coefficients.size:
            raise DimensionMismatchError(
                f"{self.model_id} expects rows of {coefficients.size} values, got shape {rows.shape}."
            )
        return self._prepare_rows(rows) @ coefficients

    def predict_from_features(self, feature_row: Sequence[float]) -> float:
        """
        Predict from a full raw feature row: pick this model's features,
        prepend the intercept, and call :meth:`predict_y`.
        """
        row = np.asarray(feature_row, dtype=float).ravel()
        if self.feature_indices and max(self.feature_indices) >= row.size:
            raise DimensionMismatchError(
                f"{self.model_id} uses feature {max(self.feature_indices)} but the row has {row.size} values."
            )
        return self.predict_y(np.concatenate(([1.0], row[list(self.feature_indices)])))

    def get_all_predictions(self) -> np.ndarray:
        """Fitted values ŷ for every training row, in row order."""
        if 'predictions' not in self._cache:
            coefficients = self.calculate_coefficients()
            predictions = self.transformed_design.to_array() @ coefficients
            predictions.setflags(write=False)
            self._cache['predictions'] = predictions
        return self._cache['predictions']

    @property
    def residuals(self) -> np.ndarray:
        """e = y − ŷ over training rows."""
        if 'residuals' not in self._cache:
            resid = self.target - self.get_all_predictions()
            resid.setflags(write=False)
            self._cache['residuals'] = resid
        return self._cache['residuals']

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def calculate_r_square(self) -> float:
        """R² = 1 − RSS/TSS; NaN when the target is constant."""
        if 'r_square' not in self._cache:
            y = self.target
            rss = float(np.sum(self.residuals ** 2))
            tss = float(np.sum((y - y.mean()) ** 2))
            self._cache['r_square'] = 1 - rss / tss if tss > 0 else float('nan')
        return self._cache['r_square']

    def calculate_auto_correlation(self) -> float:
        """
        Durbin–Watson statistic Σ(eᵢ − eᵢ₋₁)² / Σeᵢ² with residuals in row order.
        """
        if 'dw' not in self._cache:
            with np.errstate(divide='ignore', invalid='ignore'):
                self._cache['dw'] = float(durbin_watson(self.residuals))
        return self._cache['dw']

    def has_auto_correlation(self, config: Optional[DiagnosticConfig] = None) -> bool:
        """True unless dl < DW, du < DW and DW < 4 − du."""
        cfg = config or self.config
        return not AutocorrTest.in_band(self.calculate_auto_correlation(), cfg)

    @property
    def gq_group_size(self) -> int:
        """Rows in each Goldfeld–Quandt group: round(N / 3)."""
        return round_half_up(self.n_obs / 3)

    def calculate_homoscedasticity(self, sort_column_index: int = 1) -> float:
        """
        Goldfeld–Quandt ratio RSS(first third) / RSS(last third).

        Rows are sorted ascending (stable) by the raw design column
        ``sort_column_index``; the first and last ``round(N/3)`` rows form the
        groups and their residuals come from the already fitted model.

        The ratio is cached on the first call. Later calls return that ratio
        even when a different column is requested; a warning is logged.

        Raises
        ------
        InvalidArgumentError
            If the column index is outside the design matrix.
        """
        if 'gq_ratio' in self._cache:
            cached_column = self._cache['gq_column']
            if sort_column_index != cached_column:
                LOGGER.warning(
                    "%s: Goldfeld–Quandt ratio was computed sorting by column %s; "
                    "returning it for requested column %s.",
                    self.model_id, cached_column, sort_column_index
                )
            return self._cache['gq_ratio']

        n_cols = self.design.size()[1]
        if isinstance(sort_column_index, bool) or not isinstance(sort_column_index, (int, np.integer)) \
                or not 0 <= sort_column_index < n_cols:
            raise InvalidArgumentError(
                f"sort_column_index must be in [0, {n_cols}), got {sort_column_index!r}."
            )

        resid = self.residuals
        order = np.argsort(self.design.get_column(sort_column_index), kind='stable')
        size = self.gq_group_size
        first = resid[order[:size]]
        last = resid[order[self.n_obs - size:]]
        with np.errstate(divide='ignore', invalid='ignore'):
            ratio = float(np.divide(np.sum(first ** 2), np.sum(last ** 2)))

        self._cache['gq_column'] = int(sort_column_index)
        self._cache['gq_ratio'] = ratio
        return ratio

    def has_homoscedasticity(
        self,
        sort_column_index: int = 1,
        config: Optional[DiagnosticConfig] = None
    ) -> bool:
        """
        Goldfeld–Quandt flag: True when the ratio exceeds ``fisher_value``,
        i.e. the residual variance differs between the two groups.
        """
        cfg = config or self.config
        return self.calculate_homoscedasticity(sort_column_index) > cfg.fisher_value

    def calculate_multi_collinearity(self) -> float:
        """
        Farrar–Glauber statistic −(N − 1 − (2m + 5)/6)·ln(det R).

        Each raw regressor column is normalized as (x − mean)/√(N·variance)
        and R = ZᵗZ. A non-positive determinant gives +inf; a constant
        regressor gives NaN.
        """
        if 'fg' not in self._cache:
            self.calculate_coefficients()
            X = self.design.to_array()[:, 1:]
            n, m = X.shape
            with np.errstate(divide='ignore', invalid='ignore'):
                Z = (X - X.mean(axis=0)) / np.sqrt(n * X.var(axis=0))
            Zm = Matrix(Z)
            det = Zm.transpose().multiply(Zm).det()
            freedom = n - 1 - (2 * m + 5) / 6
            if np.isnan(det):
                statistic = float('nan')
            elif det <= 0:
                statistic = float('inf')
            else:
                statistic = -freedom * float(np.log(det)) + 0.0
            self._cache['fg'] = statistic
        return self._cache['fg']

    def has_multi_collinearity(self, config: Optional[DiagnosticConfig] = None) -> bool:
        """True when the Farrar–Glauber statistic exceeds ``x_square``."""
        cfg = config or self.config
        return self.calculate_multi_collinearity() > cfg.x_square

    def evaluate(self, sort_column_index: int = 1) -> 'RegressionModel':
        """Populate coefficients and every diagnostic; returns self."""
        self.calculate_coefficients()
        self.calculate_r_square()
        self.calculate_auto_correlation()
        self.calculate_homoscedasticity(sort_column_index)
        self.calculate_multi_collinearity()
        return self

    # ------------------------------------------------------------------
    # Reporting hooks
    # ------------------------------------------------------------------

    @property
    def exog_frame(self) -> pd.DataFrame:
        """Transformed design as a DataFrame with ``const`` and feature columns."""
        return pd.DataFrame(
            self.transformed_design.to_array(),
            columns=['const'] + self.feature_names
        )

    @property
    def formula(self) -> str:
        if self.transform is Transform.IDENTITY:
            terms: List[str] = list(self.feature_names)
        else:
            terms = [f"{self.transform.tag}({name})" for name in self.feature_names]
        return "y ~ " + " + ".join(terms)

    @property
    def testset(self) -> TestSet:
        if 'testset' not in self._cache:
            self._cache['testset'] = TestSet(self.testset_func(self))
        return self._cache['testset']

    @property
    def report(self) -> ModelReport:
        return ModelReport(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.model_id})"
