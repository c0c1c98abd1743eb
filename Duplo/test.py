# =============================================================================
# module: test.py
# Purpose: Diagnostic test framework reporting fit and assumption checks
# Key Types/Classes: ModelTestBase, FitMeasure, ErrorMeasure, AutocorrTest,
#                    HomoscedasticityTest, MultiCollinearityTest
# Dependencies: pandas, numpy, scipy, statsmodels, abc, typing, .config
# =============================================================================
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union
import warnings

import numpy as np
import pandas as pd
from scipy.stats import chi2, f as f_dist
from statsmodels.stats.outliers_influence import variance_inflation_factor

from .config import DiagnosticConfig

# ----------------------------------------------------------------------------
# ModelTestBase class
# ----------------------------------------------------------------------------

class ModelTestBase(ABC):
    """
    Abstract base class for model tests.

    Parameters
    ----------
    alias : Optional[str]
        Custom and human-readable name for the test instance (defaults to class name).
    filter_mode : str, default 'moderate'
        How to evaluate passed results: 'strict' or 'moderate'.
    filter_on : bool, default True
        Whether the test takes part in ``TestSet.filter_pass``.
    """
    category: str = 'base'
    _allowed_modes = {'strict', 'moderate'}

    def __init__(
        self,
        alias: Optional[str] = None,
        filter_mode: str = 'moderate',
        filter_on: bool = True,
    ):
        if filter_mode not in self._allowed_modes:
            raise ValueError(f"filter_mode must be one of {self._allowed_modes}")
        self.alias = alias or ''
        self.filter_mode = filter_mode
        self.filter_on = filter_on

    @property
    def name(self) -> str:
        """
        Display name for the test: alias if provided, else class name.
        """
        return self.alias or type(self).__name__

    @property
    def filter_mode_desc(self) -> str:
        return ''

    @property
    @abstractmethod
    def test_result(self) -> Union[pd.Series, pd.DataFrame]:
        """
        Return a print-friendly result table.
        """
        ...

    @property
    @abstractmethod
    def test_filter(self) -> bool:
        """
        Return True when the model passes this test.
        """
        ...

# ----------------------------------------------------------------------------
# FitMeasure class
# ----------------------------------------------------------------------------
class FitMeasure(ModelTestBase):
    """
    Report R² and adjusted R² for a fitted model.

    Parameters
    ----------
    actual : array-like
        The observed target values.
    predicted : array-like
        The model's in-sample fitted values.
    n_features : int
        Number of predictors, not including the intercept.
    """
    category = 'measure'

    def __init__(
        self,
        actual: Any,
        predicted: Any,
        n_features: int,
        alias: Optional[str] = None,
        filter_mode: str = 'moderate',
        filter_on: bool = False
    ):
        super().__init__(alias=alias, filter_mode=filter_mode, filter_on=filter_on)
        self.actual = np.asarray(actual, dtype=float)
        self.predicted = np.asarray(predicted, dtype=float)
        self.n = len(self.actual)
        self.p = n_features

    @property
    def test_result(self) -> pd.DataFrame:
        """
        Compute R² and adjusted R².

        Example output structure
        ------------------------
        ┌──────────┬─────────┐
        │ Metric   │ Value   │
        ├──────────┼─────────┤
        │ R²       │ 0.87    │
        │ Adj R²   │ 0.85    │
        └──────────┴─────────┘
        """
        ss_res = float(((self.actual - self.predicted) ** 2).sum())
        ss_tot = float(((self.actual - self.actual.mean()) ** 2).sum())
        r2 = 1 - ss_res / ss_tot if ss_tot > 0 else float('nan')
        # adjusted R² = 1 − (1−R²)(n−1)/(n−p−1)
        adj_r2 = 1 - (1 - r2) * (self.n - 1) / (self.n - self.p - 1) if self.n > self.p + 1 else float('nan')
        df = pd.DataFrame(
            [{'Metric': 'R²', 'Value': float(r2)},
             {'Metric': 'Adj R²', 'Value': float(adj_r2)}]
        ).set_index('Metric')
        return df

    @property
    def test_filter(self) -> bool:
        """
        Always pass; reporting only.
        """
        return True


# ----------------------------------------------------------------------------
# ErrorMeasure class
# ----------------------------------------------------------------------------
class ErrorMeasure(ModelTestBase):
    """
    Error diagnostics (ME, MAE, RMSE) for in- or out-of-sample predictions.

    Parameters
    ----------
    actual : array-like
        Observed values.
    predicted : array-like
        Predicted values aligned with ``actual``.
    """
    category = 'measure'

    def __init__(
        self,
        actual: Any,
        predicted: Any,
        alias: Optional[str] = None,
        filter_mode: str = 'moderate',
        filter_on: bool = False
    ):
        super().__init__(alias=alias, filter_mode=filter_mode, filter_on=filter_on)
        self.errors = np.asarray(actual, dtype=float) - np.asarray(predicted, dtype=float)

    @property
    def test_result(self) -> pd.DataFrame:
        """
        Example output structure
        ------------------------
        ┌────────┬─────────┐
        │ Metric │ Value   │
        ├────────┼─────────┤
        │ ME     │ 1.23    │
        │ MAE    │ 0.54    │
        │ RMSE   │ 0.78    │
        └────────┴─────────┘
        """
        if self.errors.size == 0:
            me = mae = rmse = float('nan')
        else:
            abs_err = np.abs(self.errors)
            me = float(abs_err.max())
            mae = float(abs_err.mean())
            rmse = float(np.sqrt((self.errors ** 2).mean()))
        df = pd.DataFrame(
            [{'Metric': 'ME', 'Value': me},
             {'Metric': 'MAE', 'Value': mae},
             {'Metric': 'RMSE', 'Value': rmse}]
        ).set_index('Metric')
        return df

    @property
    def test_filter(self) -> bool:
        return True

# ----------------------------------------------------------------------------
# AutocorrTest class
# ----------------------------------------------------------------------------

class AutocorrTest(ModelTestBase):
    """
    Durbin–Watson check for first-order residual autocorrelation.

    The residuals are free of autocorrelation only when
    ``dl < DW``, ``du < DW`` and ``DW < 4 - du``.

    Parameters
    ----------
    dw : float
        Durbin–Watson statistic.
    config : DiagnosticConfig, optional
        Supplies ``dl`` and ``du``.
    """
    category = 'assumption'

    def __init__(
        self,
        dw: float,
        config: Optional[DiagnosticConfig] = None,
        alias: Optional[str] = None,
        filter_mode: str = 'moderate',
        filter_on: bool = True
    ):
        super().__init__(alias=alias, filter_mode=filter_mode, filter_on=filter_on)
        self.dw = float(dw)
        self.config = config or DiagnosticConfig()

    @property
    def filter_mode_desc(self) -> str:
        return f"Require {self.config.du} < DW < {4 - self.config.du:.2f}."

    @staticmethod
    def in_band(dw: float, config: DiagnosticConfig) -> bool:
        return config.dl < dw and config.du < dw and dw < 4 - config.du

    @property
    def test_result(self) -> pd.DataFrame:
        """
        Example output structure
        ------------------------
        ┌───────────────┬───────────┬──────────────┬────────┐
        │ Test          │ Statistic │ Threshold    │ Passed │
        ├───────────────┼───────────┼──────────────┼────────┤
        │ Durbin–Watson │ 2.01      │ (1.74, 2.26) │ True   │
        └───────────────┴───────────┴──────────────┴────────┘
        """
        thresh = (self.config.du, round(4 - self.config.du, 10))
        records = [{
            'Test': 'Durbin–Watson',
            'Statistic': self.dw,
            'Threshold': thresh,
            'Passed': self.in_band(self.dw, self.config),
        }]
        return pd.DataFrame(records).set_index('Test')

    @property
    def test_filter(self) -> bool:
        return self.in_band(self.dw, self.config)

# ----------------------------------------------------------------------------
# HomoscedasticityTest class
# ----------------------------------------------------------------------------

class HomoscedasticityTest(ModelTestBase):
    """
    Goldfeld–Quandt check comparing residual variance of the lowest and
    highest thirds of the sample.

    Parameters
    ----------
    ratio : float
        RSS(first group) / RSS(last group).
    group_size : int, optional
        Rows per compared group; used for the reported F p-value.
    n_params : int, optional
        Coefficients per model including the intercept; used for the p-value.
    config : DiagnosticConfig, optional
        Supplies ``fisher_value``.
    """
    category = 'assumption'

    def __init__(
        self,
        ratio: float,
        group_size: Optional[int] = None,
        n_params: Optional[int] = None,
        config: Optional[DiagnosticConfig] = None,
        alias: Optional[str] = None,
        filter_mode: str = 'moderate',
        filter_on: bool = True
    ):
        super().__init__(alias=alias, filter_mode=filter_mode, filter_on=filter_on)
        self.ratio = float(ratio)
        self.group_size = group_size
        self.n_params = n_params
        self.config = config or DiagnosticConfig()

    @property
    def filter_mode_desc(self) -> str:
        return f"Require GQ ratio <= {self.config.fisher_value}."

    @property
    def p_value(self) -> float:
        """Upper-tail F probability of the ratio; NaN when degrees of freedom are unavailable."""
        if self.group_size is None or self.n_params is None:
            return float('nan')
        dof = self.group_size - self.n_params
        if dof <= 0 or not np.isfinite(self.ratio):
            return float('nan')
        return float(f_dist.sf(self.ratio, dof, dof))

    @property
    def test_result(self) -> pd.DataFrame:
        """
        Example output structure
        ------------------------
        ┌────────────────┬───────────┬───────────┬─────────┬────────┐
        │ Test           │ Statistic │ Threshold │ P-value │ Passed │
        ├────────────────┼───────────┼───────────┼─────────┼────────┤
        │ Goldfeld–Quandt│ 1.42      │ 2.98      │ 0.31    │ True   │
        └────────────────┴───────────┴───────────┴─────────┴────────┘
        """
        records = [{
            'Test': 'Goldfeld–Quandt',
            'Statistic': self.ratio,
            'Threshold': self.config.fisher_value,
            'P-value': self.p_value,
            'Passed': self.test_filter,
        }]
        return pd.DataFrame(records).set_index('Test')

    @property
    def test_filter(self) -> bool:
        return not self.ratio > self.config.fisher_value

# ----------------------------------------------------------------------------
# MultiCollinearityTest class
# ----------------------------------------------------------------------------

class MultiCollinearityTest(ModelTestBase):
    """
    Farrar–Glauber chi-square check for multicollinearity among regressors.

    Parameters
    ----------
    statistic : float
        −(N − 1 − (2m + 5)/6)·ln(det R).
    n_regressors : int
        Number of non-intercept regressors ``m``.
    exog : array-like, optional
        Design matrix including the intercept column. When given, per-column
        VIFs are reported alongside the statistic.
    config : DiagnosticConfig, optional
        Supplies ``x_square``.
    """
    category = 'assumption'

    def __init__(
        self,
        statistic: float,
        n_regressors: int,
        exog: Optional[Any] = None,
        config: Optional[DiagnosticConfig] = None,
        alias: Optional[str] = None,
        filter_mode: str = 'moderate',
        filter_on: bool = True
    ):
        super().__init__(alias=alias, filter_mode=filter_mode, filter_on=filter_on)
        self.statistic = float(statistic)
        self.n_regressors = n_regressors
        self.exog = None if exog is None else pd.DataFrame(exog)
        self.config = config or DiagnosticConfig()

    @property
    def filter_mode_desc(self) -> str:
        return f"Require Farrar–Glauber statistic <= {self.config.x_square}."

    @property
    def p_value(self) -> float:
        dof = self.n_regressors * (self.n_regressors - 1) / 2
        if dof <= 0 or not np.isfinite(self.statistic):
            return float('nan')
        return float(chi2.sf(self.statistic, dof))

    @property
    def vif(self) -> pd.Series:
        """
        Variance inflation factor per non-intercept column.
        """
        if self.exog is None or self.exog.shape[1] < 2:
            return pd.Series(dtype=float, name='VIF')
        X = self.exog.values
        with warnings.catch_warnings(), np.errstate(divide='ignore', invalid='ignore'):
            warnings.simplefilter('ignore')
            values = {
                col: float(variance_inflation_factor(X, i))
                for i, col in enumerate(self.exog.columns)
                if i > 0
            }
        s = pd.Series(values, name='VIF')
        s.index.name = 'Variable'
        return s

    @property
    def test_result(self) -> pd.DataFrame:
        """
        Example output structure
        ------------------------
        ┌────────────────┬───────────┬───────────┬─────────┬────────┐
        │ Test           │ Statistic │ Threshold │ P-value │ Passed │
        ├────────────────┼───────────┼───────────┼─────────┼────────┤
        │ Farrar–Glauber │ 3.10      │ 16.8      │ 0.21    │ True   │
        └────────────────┴───────────┴───────────┴─────────┴────────┘
        """
        records = [{
            'Test': 'Farrar–Glauber',
            'Statistic': self.statistic,
            'Threshold': self.config.x_square,
            'P-value': self.p_value,
            'Passed': self.test_filter,
        }]
        return pd.DataFrame(records).set_index('Test')

    @property
    def test_filter(self) -> bool:
        return not self.statistic > self.config.x_square


__all__ = [
    'ModelTestBase',
    'FitMeasure',
    'ErrorMeasure',
    'AutocorrTest',
    'HomoscedasticityTest',
    'MultiCollinearityTest',
]
