# =============================================================================
# module: search.py
# Purpose: End-to-end pipeline: model families per transform, diagnostics,
#          top-N selection, stacked ensemble and held-out forecast
# Key Types/Classes: ModelSearch
# Key Functions: build_families, evaluate_models, select_top, build_ensemble,
#                run_search, analyze_errors
# Dependencies: pandas, tqdm, logging, warnings, collections, .data, .family,
#               .compare, .ensemble, .report, .config
# =============================================================================

import logging
import warnings
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd
from tqdm import tqdm

from .compare import select_top
from .config import PipelineConfig, load_config
from .data import DataManager
from .ensemble import EnsembleBuilder, PairedModel
from .errors import InvalidArgumentError, SingularMatrixError
from .family import ModelFamily, produce_all_families
from .model import RegressionModel
from .report import ReportSet
from .transform import Transform

LOGGER = logging.getLogger(__name__)


class ModelSearch:
    """
    Exhaustive subset search over every transform, followed by stacking.

    Parameters
    ----------
    dm : DataManager
        Cleaned features and target with a training/held-out split.
    transforms : iterable of Transform or str, optional
        Transforms to search; all four when omitted.
    config : PipelineConfig, optional
        Pipeline settings and diagnostic constants. Defaults to the bundled
        ``support/config.yaml``.

    Attributes
    ----------
    families : dict
        Transform -> ModelFamily built on the training rows.
    fitted_models : list of RegressionModel
        Models whose coefficients and diagnostics were computed.
    error_log : list of (model_id, error_type, error_message)
        Models skipped because their normal matrix was singular or their
        transformed design was not finite.
    top_models : list of RegressionModel
        Best ``top_n`` fitted models, best first.
    ensemble : EnsembleBuilder or None
    best_model : PairedModel or None
    forecast : pandas.DataFrame or None
        Held-out ``predicted``/``actual``/``error`` table.

    Example
    -------
    >>> dm = DataManager([x1, x2, x3], y)
    >>> search = ModelSearch(dm, transforms=['LV'])
    >>> forecast = search.run_search(top_n=2)
    """

    def __init__(
        self,
        dm: DataManager,
        transforms: Optional[Iterable[Union[Transform, str]]] = None,
        config: Optional[PipelineConfig] = None
    ):
        self.dm = dm
        self.config = config or load_config()
        self.transforms: List[Transform] = (
            list(Transform) if transforms is None
            else [Transform.from_name(t) for t in transforms]
        )
        if not self.transforms:
            raise InvalidArgumentError("At least one transform is required.")
        self.families: Dict[Transform, ModelFamily] = {}
        self.fitted_models: List[RegressionModel] = []
        self.error_log: List[Tuple[str, str, str]] = []
        self.top_models: List[RegressionModel] = []
        self.ensemble: Optional[EnsembleBuilder] = None
        self.best_model: Optional[PairedModel] = None
        self.forecast: Optional[pd.DataFrame] = None

    @classmethod
    def from_data(
        cls,
        features: Any,
        target: Any,
        feature_names: Optional[Iterable[str]] = None,
        transforms: Optional[Iterable[Union[Transform, str]]] = None,
        config: Optional[PipelineConfig] = None
    ) -> 'ModelSearch':
        """Build the DataManager with the configured split ratio, then the search."""
        config = config or load_config()
        dm = DataManager(features, target, feature_names=feature_names, train_ratio=config.train_ratio)
        return cls(dm, transforms=transforms, config=config)

    @property
    def diagnostics(self):
        return self.config.diagnostics

    @property
    def sort_column_index(self) -> int:
        return self.config.gq_sort_column

    def build_families(self) -> Dict[Transform, ModelFamily]:
        """One ModelFamily per transform on the training rows."""
        self.families = produce_all_families(
            self.dm.X_train,
            self.dm.y_train,
            transforms=self.transforms,
            feature_names=self.dm.feature_names,
            config=self.diagnostics
        )
        LOGGER.info(
            "Built %d families with %d models in total",
            len(self.families), sum(len(f) for f in self.families.values())
        )
        return self.families

    def all_models(self) -> List[RegressionModel]:
        """Every model of every family, in transform then subset order."""
        if not self.families:
            self.build_families()
        return [m for family in self.families.values() for m in family]

    def evaluate_models(
        self,
        models: Optional[Iterable[RegressionModel]] = None,
        show_progress: bool = True
    ) -> Tuple[List[RegressionModel], List[Tuple[str, str, str]]]:
        """
        Fit and diagnose each model; skip the ones that cannot be fit.

        Parameters
        ----------
        models : iterable of RegressionModel, optional
            Defaults to :meth:`all_models`.
        show_progress : bool, default True
            Display a tqdm progress bar.

        Returns
        -------
        fitted : list of RegressionModel
        error_log : list of (model_id, error_type, error_message)
        """
        models = list(self.all_models() if models is None else models)
        fitted: List[RegressionModel] = []
        error_log: List[Tuple[str, str, str]] = []

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            for model in tqdm(models, desc="Evaluating models", disable=not show_progress):
                try:
                    model.evaluate(self.sort_column_index)
                except (SingularMatrixError, InvalidArgumentError) as e:
                    LOGGER.warning("Skipping model %s: %s", model.model_id, e)
                    error_log.append((model.model_id, type(e).__name__, str(e)))
                    continue
                fitted.append(model)

        self.fitted_models = fitted
        self.error_log = error_log
        LOGGER.info("Evaluated %d models: %d fitted, %d skipped", len(models), len(fitted), len(error_log))
        return fitted, error_log

    def select_top(self, n: Optional[int] = None) -> List[RegressionModel]:
        """Rank fitted models across all families and keep the best ``n``."""
        n = self.config.top_n if n is None else n
        if not self.fitted_models:
            self.evaluate_models(show_progress=False)
        self.top_models = select_top(self.fitted_models, n, self.diagnostics, self.sort_column_index)
        LOGGER.info("Selected top %d of %d fitted models", len(self.top_models), len(self.fitted_models))
        return self.top_models

    def build_ensemble(self) -> PairedModel:
        """Stack every pair of top models and keep the best stacked model."""
        if not self.top_models:
            self.select_top()
        self.ensemble = EnsembleBuilder(
            self.top_models,
            self.dm.y_train,
            config=self.diagnostics,
            sort_column_index=self.sort_column_index
        )
        self.ensemble.build_stacked_models()
        self.ensemble.evaluate()
        self.error_log.extend(self.ensemble.error_log)
        self.best_model = self.ensemble.select_best()
        return self.best_model

    def run_search(self, top_n: Optional[int] = None, show_progress: bool = True) -> pd.DataFrame:
        """
        Execute the full pipeline and forecast the held-out rows.

        Steps
        -----
        1. Build one family per transform on the training rows.
        2. Evaluate every model, skipping singular ones.
        3. Keep the ``top_n`` best by the comparator.
        4. Stack every pair of top models and keep the best stacked model.
        5. Predict the held-out rows with it.

        Returns
        -------
        pandas.DataFrame
            ``predicted``, ``actual`` and ``error`` per held-out observation,
            indexed by the original row position.
        """
        self.build_families()
        self.evaluate_models(show_progress=show_progress)
        self.select_top(top_n)
        self.build_ensemble()
        self.forecast = self.ensemble.predict(self.dm.X_test, self.dm.y_test, index=self.dm.test_index)
        LOGGER.info("Forecast %d held-out rows with %s", len(self.forecast), self.best_model.model_id)
        return self.forecast

    def report_set(self, models: Optional[Iterable[RegressionModel]] = None) -> ReportSet:
        """ReportSet of the top models, or of ``models`` when given."""
        return ReportSet(self.top_models if models is None else models, self.sort_column_index)

    def analyze_errors(self) -> pd.DataFrame:
        """
        Occurrence count per error type in :attr:`error_log`.

        Example output structure
        ------------------------
        ┌─────────────────────┬──────────────────┐
        │ Error Type          │ Occurrence Count │
        ├─────────────────────┼──────────────────┤
        │ SingularMatrixError │ 3                │
        └─────────────────────┴──────────────────┘
        """
        counter = Counter(err_type for _, err_type, _ in self.error_log)
        return (
            pd.DataFrame.from_records(
                list(counter.items()),
                columns=["Error Type", "Occurrence Count"]
            )
            .sort_values(by="Occurrence Count", ascending=False)
            .reset_index(drop=True)
        )

    def __repr__(self) -> str:
        tags = ",".join(t.tag for t in self.transforms)
        return f"ModelSearch({self.dm!r}, transforms=[{tags}])"
