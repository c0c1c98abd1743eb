# =============================================================================
# module: family.py
# Purpose: Build one regression model per non-empty feature subset
# Key Types/Classes: ModelFamily
# Key Functions: produce_models_family, produce_all_families
# Dependencies: numpy, typing, .subset, .model, .transform, .data, .config
# =============================================================================

from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Union

import numpy as np

from .config import DiagnosticConfig
from .data import as_feature_columns, as_target
from .errors import DimensionMismatchError
from .model import RegressionModel
from .subset import generate_subsets
from .transform import Transform


class ModelFamily:
    """
    All models produced from one FeatureSet under one transform.

    Iterable, sized and indexable in subset-generation order.
    """

    def __init__(
        self,
        transform: Transform,
        models: List[RegressionModel],
        feature_names: Sequence[str]
    ):
        self.transform = transform
        self.models = list(models)
        self.feature_names = list(feature_names)

    @property
    def model_ids(self) -> List[str]:
        return [m.model_id for m in self.models]

    def get(self, model_id: str) -> RegressionModel:
        for model in self.models:
            if model.model_id == model_id:
                return model
        raise KeyError(model_id)

    def __iter__(self) -> Iterator[RegressionModel]:
        return iter(self.models)

    def __len__(self) -> int:
        return len(self.models)

    def __getitem__(self, item: int) -> RegressionModel:
        return self.models[item]

    def __repr__(self) -> str:
        return f"ModelFamily({self.transform.tag}, {len(self.models)} models)"


def produce_models_family(
    feature_columns: Any,
    target: Any,
    transform: Union[Transform, str] = Transform.IDENTITY,
    feature_names: Optional[Sequence[str]] = None,
    config: Optional[DiagnosticConfig] = None
) -> ModelFamily:
    """
    Build one RegressionModel for every non-empty subset of the features.

    The same selection applies to every observation row: the design matrix of
    a model holds the selected columns, in their original order, after a
    constant column of ones.

    Parameters
    ----------
    feature_columns : DataFrame, 2-D array or sequence of sequences
        k feature vectors of length N.
    target : array-like
        N target values.
    transform : Transform or str
        Transform for every model in the family.
    feature_names : sequence of str, optional
        Labels used in model formulas.
    config : DiagnosticConfig, optional
        Table constants handed to each model.

    Returns
    -------
    ModelFamily
        2^k − 1 models in binary-counting subset order.
    """
    columns, names = as_feature_columns(feature_columns, feature_names)
    y = as_target(target)
    n_obs = columns[0].size
    if y.size != n_obs:
        raise DimensionMismatchError(f"Target has {y.size} values but features have {n_obs}.")

    transform = Transform.from_name(transform)
    intercept = np.ones(n_obs)

    models = []
    for subset in generate_subsets(list(range(len(columns)))):
        idx = subset.indices
        design = np.column_stack([intercept] + [columns[i] for i in idx])
        models.append(RegressionModel(
            design,
            y,
            transform=transform,
            feature_indices=idx,
            feature_names=[names[i] for i in idx],
            config=config
        ))
    return ModelFamily(transform, models, names)


def produce_all_families(
    feature_columns: Any,
    target: Any,
    transforms: Optional[Iterable[Union[Transform, str]]] = None,
    feature_names: Optional[Sequence[str]] = None,
    config: Optional[DiagnosticConfig] = None
) -> Dict[Transform, ModelFamily]:
    """One family per transform; all four transforms by default."""
    selected = list(Transform) if transforms is None else [Transform.from_name(t) for t in transforms]
    return {
        t: produce_models_family(feature_columns, target, t, feature_names, config)
        for t in selected
    }
