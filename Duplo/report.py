# Duplo/report.py
import numpy as np
import pandas as pd
from pandas import DataFrame, Series
from typing import Any, Dict, Iterable, Optional, Sequence


class ModelReport:
    """
    Report for one fitted RegressionModel.

    Parameters
    ----------
    model : RegressionModel
        Model whose memoized coefficients and diagnostics are reported.
    sort_column_index : int, default 1
        Goldfeld–Quandt sort column, used only if the ratio is not cached yet.
    """
    def __init__(self, model: Any, sort_column_index: int = 1):
        self.model = model
        self.sort_column_index = sort_column_index

    def summary(self) -> Series:
        """
        Coefficients and the four diagnostics with their flags.

        Keys: model_id, formula, transform, n_obs, coefficients, r_square,
        dw, has_autocorrelation, gq_ratio, gq_flag, fg_statistic,
        has_multicollinearity.
        """
        mdl = self.model
        idx = self.sort_column_index
        return pd.Series({
            'model_id': mdl.model_id,
            'formula': mdl.formula,
            'transform': mdl.transform.tag,
            'n_obs': mdl.n_obs,
            'coefficients': [float(c) for c in mdl.calculate_coefficients()],
            'r_square': mdl.calculate_r_square(),
            'dw': mdl.calculate_auto_correlation(),
            'has_autocorrelation': mdl.has_auto_correlation(),
            'gq_ratio': mdl.calculate_homoscedasticity(idx),
            'gq_flag': mdl.has_homoscedasticity(idx),
            'fg_statistic': mdl.calculate_multi_collinearity(),
            'has_multicollinearity': mdl.has_multi_collinearity(),
        }, name=mdl.model_id)

    def show_params_tbl(self) -> DataFrame:
        """Coefficient per variable with its VIF (NaN for the intercept)."""
        params = self.model.params
        tests = {t.name: t for t in self.model.testset}
        vif = tests['Multicollinearity'].vif if 'Multicollinearity' in tests else pd.Series(dtype=float)
        df = pd.DataFrame({
            'coef': params.values,
            'vif': [float(vif.get(v, np.nan)) if v != 'const' else np.nan for v in params.index],
        }, index=params.index)
        df.index.name = 'variable'
        return df

    def show_test_tbl(self) -> Dict[str, Any]:
        """All test result tables of the model's TestSet keyed by test name."""
        return self.model.testset.all_test_results


class ReportSet:
    """
    Summary table across many fitted models, one row per model id.
    """
    def __init__(self, models: Iterable[Any], sort_column_index: int = 1):
        self._reports = [ModelReport(m, sort_column_index) for m in models]

    def show_summary_set(self) -> DataFrame:
        if not self._reports:
            return pd.DataFrame()
        df = pd.DataFrame([r.summary() for r in self._reports]).set_index('model_id')
        df.index.name = 'Model'
        return df

    def __len__(self) -> int:
        return len(self._reports)


def forecast_table(
    predicted: Sequence[float],
    actual: Sequence[float],
    index: Optional[Sequence[Any]] = None
) -> DataFrame:
    """
    Predicted-vs-actual pairs with their error, one row per observation.
    """
    predicted = np.asarray(predicted, dtype=float)
    actual = np.asarray(actual, dtype=float)
    df = pd.DataFrame(
        {'predicted': predicted, 'actual': actual, 'error': actual - predicted},
        index=index
    )
    df.index.name = 'observation'
    return df
