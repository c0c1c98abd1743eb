# =============================================================================
# module: ensemble.py
# Purpose: Second-stage stacked regressions built from pairs of top models
# Key Types/Classes: PairedModel, EnsembleBuilder
# Key Functions: pairs, build_stacked_models, evaluate, select_best, predict
# Dependencies: numpy, pandas, logging, typing, .model, .subset, .compare,
#               .report, .data, .config
# =============================================================================

import logging
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .compare import select_top
from .config import DiagnosticConfig
from .data import as_feature_columns, as_target
from .errors import DimensionMismatchError, InvalidArgumentError, SingularMatrixError
from .model import RegressionModel
from .report import forecast_table
from .subset import generate_subsets_with_size
from .transform import Transform

LOGGER = logging.getLogger(__name__)


class PairedModel(RegressionModel):
    """
    Stacked model regressing the target on two base models' predictions.

    Parameters
    ----------
    design : array-like
        N×3 design ``[1, ŷ_a, ŷ_b]``.
    target : array-like
        Training target shared with the base models.
    base_models : tuple of RegressionModel
        The pair whose predictions form the regressors.
    config : DiagnosticConfig, optional
        Table constants.
    """

    def __init__(
        self,
        design: Any,
        target: Any,
        base_models: Tuple[RegressionModel, RegressionModel],
        config: Optional[DiagnosticConfig] = None
    ):
        a, b = base_models
        super().__init__(
            design,
            target,
            transform=Transform.IDENTITY,
            model_id=f"STACK({a.model_id}|{b.model_id})",
            feature_indices=(0, 1),
            feature_names=[a.model_id, b.model_id],
            config=config
        )
        self.base_models = (a, b)

    def predict_from_features(self, feature_row: Sequence[float]) -> float:
        """Feed both base predictions for a raw feature row into this model."""
        base = [m.predict_from_features(feature_row) for m in self.base_models]
        return self.predict_y([1.0] + base)


class EnsembleBuilder:
    """
    Pair the top base models, fit a stacked model per pair, and keep the best.

    Parameters
    ----------
    base_models : sequence of RegressionModel
        Fitted first-stage models, best first.
    target : array-like
        Training target the base models were fit on.
    config : DiagnosticConfig, optional
        Table constants for ranking the stacked models.
    sort_column_index : int, default 1
        Goldfeld–Quandt sort column for the stacked models.

    Attributes
    ----------
    stacked_models : list of PairedModel
        One model per pair, in pair order.
    fitted_models : list of PairedModel
        Stacked models whose diagnostics were computed.
    error_log : list of (model_id, error_type, message)
        Stacked models skipped because they could not be fit.
    best_model : PairedModel or None
        Set by :meth:`select_best`.
    """

    def __init__(
        self,
        base_models: Sequence[RegressionModel],
        target: Any,
        config: Optional[DiagnosticConfig] = None,
        sort_column_index: int = 1
    ):
        self.base_models = list(base_models)
        if len(self.base_models) < 2:
            raise InvalidArgumentError(
                f"Stacking needs at least two base models, got {len(self.base_models)}."
            )
        self.target = as_target(target)
        for model in self.base_models:
            if model.n_obs != self.target.size:
                raise DimensionMismatchError(
                    f"{model.model_id} was fit on {model.n_obs} rows but the target has {self.target.size}."
                )
        self.config = config or DiagnosticConfig()
        self.sort_column_index = sort_column_index
        self.stacked_models: List[PairedModel] = []
        self.fitted_models: List[PairedModel] = []
        self.error_log: List[Tuple[str, str, str]] = []
        self.best_model: Optional[PairedModel] = None

    def pairs(self) -> List[Tuple[RegressionModel, RegressionModel]]:
        """Every unordered pair of base models, in binary-counting subset order."""
        return [tuple(s.items) for s in generate_subsets_with_size(self.base_models, 2)]

    def build_stacked_models(self) -> List[PairedModel]:
        intercept = np.ones(self.target.size)
        self.stacked_models = []
        for a, b in self.pairs():
            design = np.column_stack([intercept, a.get_all_predictions(), b.get_all_predictions()])
            self.stacked_models.append(PairedModel(design, self.target, (a, b), config=self.config))
        LOGGER.info("Built %d stacked models from %d base models", len(self.stacked_models), len(self.base_models))
        return self.stacked_models

    def evaluate(self) -> List[PairedModel]:
        """Compute diagnostics for every stacked model, skipping singular pairs."""
        if not self.stacked_models:
            self.build_stacked_models()
        self.fitted_models = []
        self.error_log = []
        for model in self.stacked_models:
            try:
                model.evaluate(self.sort_column_index)
            except (SingularMatrixError, InvalidArgumentError) as exc:
                LOGGER.warning("Skipping stacked model %s: %s", model.model_id, exc)
                self.error_log.append((model.model_id, type(exc).__name__, str(exc)))
                continue
            self.fitted_models.append(model)
        return self.fitted_models

    def select_best(self) -> PairedModel:
        """
        Rank fitted stacked models and keep the first.

        Raises
        ------
        SingularMatrixError
            If no stacked model could be fit.
        """
        if not self.fitted_models:
            self.evaluate()
        if not self.fitted_models:
            raise SingularMatrixError(
                f"None of the {len(self.stacked_models)} stacked models could be fit."
            )
        self.best_model = select_top(self.fitted_models, 1, self.config, self.sort_column_index)[0]
        LOGGER.info(
            "Best stacked model %s (R²=%.4f)",
            self.best_model.model_id, self.best_model.calculate_r_square()
        )
        return self.best_model

    def predict(
        self,
        test_features: Any,
        test_target: Any,
        index: Optional[Sequence[Any]] = None
    ) -> pd.DataFrame:
        """
        Forecast held-out rows with the best stacked model.

        Parameters
        ----------
        test_features : DataFrame, 2-D array or sequence of sequences
            The full feature set (all k vectors) restricted to held-out rows.
        test_target : array-like
            Observed targets for the same rows.
        index : sequence, optional
            Row labels for the output; defaults to 0..M-1.

        Returns
        -------
        pandas.DataFrame
            Columns ``predicted``, ``actual``, ``error``; one row per held-out
            observation in input order.
        """
        columns, _ = as_feature_columns(test_features)
        actual = as_target(test_target)
        rows = np.column_stack(columns)
        if rows.shape[0] != actual.size:
            raise DimensionMismatchError(
                f"{rows.shape[0]} held-out feature rows but {actual.size} held-out targets."
            )
        best = self.best_model or self.select_best()
        predicted = [best.predict_from_features(row) for row in rows]
        return forecast_table(predicted, actual, index=index)
