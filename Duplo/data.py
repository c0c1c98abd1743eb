# =============================================================================
# module: data.py
# Purpose: Validate feature/target inputs, load them concurrently, and split
#          them into training and held-out rows
# Key Types/Classes: DataManager
# Key Functions: as_feature_columns, as_target
# Dependencies: numpy, pandas, concurrent.futures, logging, typing, .config,
#               .errors
# =============================================================================

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import round_half_up
from .errors import DataUnavailableError, DimensionMismatchError, InvalidArgumentError

LOGGER = logging.getLogger(__name__)


def _as_vector(values: Any, label: str) -> np.ndarray:
    if isinstance(values, (str, bytes)):
        raise InvalidArgumentError(f"{label} must be numeric, got a string.")
    try:
        arr = np.array(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"{label} must be numeric: {exc}") from exc
    if arr.ndim != 1:
        raise InvalidArgumentError(f"{label} must be one-dimensional, got shape {arr.shape}.")
    if not np.all(np.isfinite(arr)):
        raise InvalidArgumentError(f"{label} contains NaN or infinite values.")
    arr.setflags(write=False)
    return arr


def as_feature_columns(
    features: Any,
    feature_names: Optional[Sequence[str]] = None
) -> Tuple[List[np.ndarray], List[str]]:
    """
    Normalize feature input to a list of equal-length read-only columns.

    Parameters
    ----------
    features : DataFrame, 2-D array or sequence of sequences
        A DataFrame contributes its columns. Otherwise each element (or each
        row of a 2-D array) is one feature vector.
    feature_names : sequence of str, optional
        Column labels. Defaults to DataFrame column names or ``x1..xk``.

    Raises
    ------
    InvalidArgumentError
        If there are no features, vectors differ in length, or values are
        non-numeric or non-finite.
    """
    if isinstance(features, pd.DataFrame):
        names = [str(c) for c in features.columns]
        raw = [features[c].to_numpy() for c in features.columns]
    else:
        if features is None or isinstance(features, (str, bytes)) or not hasattr(features, '__len__'):
            raise InvalidArgumentError("Features must be a DataFrame or a sequence of feature vectors.")
        raw = list(features)
        names = [f"x{i + 1}" for i in range(len(raw))]

    if not raw:
        raise InvalidArgumentError("At least one feature vector is required.")

    columns = [_as_vector(col, f"Feature {names[i]}") for i, col in enumerate(raw)]
    lengths = {col.size for col in columns}
    if len(lengths) != 1:
        raise InvalidArgumentError(f"Feature vectors must have equal length, got lengths {sorted(lengths)}.")
    if columns[0].size == 0:
        raise InvalidArgumentError("Feature vectors must not be empty.")

    if feature_names is not None:
        names = [str(n) for n in feature_names]
        if len(names) != len(columns):
            raise InvalidArgumentError(
                f"{len(names)} feature names given for {len(columns)} feature vectors."
            )
    return columns, names


def as_target(target: Any) -> np.ndarray:
    """Normalize the target to a read-only 1-D float array."""
    if isinstance(target, pd.DataFrame):
        if target.shape[1] != 1:
            raise InvalidArgumentError("Target DataFrame must have exactly one column.")
        target = target.iloc[:, 0]
    if isinstance(target, pd.Series):
        target = target.to_numpy()
    return _as_vector(target, "Target")


class DataManager:
    """
    Holds one cleaned FeatureSet and target, and splits rows into a training
    prefix and a held-out suffix.

    Parameters
    ----------
    features : DataFrame, 2-D array or sequence of sequences
        Feature vectors of equal length N.
    target : array-like
        N target values.
    feature_names : sequence of str, optional
        Labels for the features.
    train_ratio : float, default 0.6
        Share of leading rows used for training; ``round(N * train_ratio)``.

    Example
    -------
    >>> dm = DataManager([x1, x2, x3], y, train_ratio=0.6)
    >>> dm.train_size, dm.test_size
    (12, 8)
    """

    def __init__(
        self,
        features: Any,
        target: Any,
        feature_names: Optional[Sequence[str]] = None,
        train_ratio: float = 0.6
    ):
        self._features, self.feature_names = as_feature_columns(features, feature_names)
        self._target = as_target(target)
        if self._target.size != self._features[0].size:
            raise DimensionMismatchError(
                f"Target has {self._target.size} values but features have {self._features[0].size}."
            )
        if isinstance(train_ratio, bool) or not isinstance(train_ratio, (int, float)) or not 0 < train_ratio < 1:
            raise InvalidArgumentError(f"train_ratio must lie strictly between 0 and 1, got {train_ratio!r}.")
        self.train_ratio = float(train_ratio)

        train_size = round_half_up(self.n_obs * self.train_ratio)
        if not 0 < train_size < self.n_obs:
            raise InvalidArgumentError(
                f"train_ratio {self.train_ratio} leaves no training or no held-out rows for {self.n_obs} observations."
            )
        self._train_size = train_size

    @classmethod
    def load(
        cls,
        feature_loader: Callable[[], Any],
        target_loader: Callable[[], Any],
        **kwargs: Any
    ) -> 'DataManager':
        """
        Run both loaders concurrently and build a DataManager once both finish.

        Parameters
        ----------
        feature_loader : callable
            Returns the feature vectors (anything ``as_feature_columns`` accepts).
        target_loader : callable
            Returns the target vector.
        **kwargs
            Forwarded to the constructor (feature_names, train_ratio).

        Raises
        ------
        DataUnavailableError
            If either loader raises or returns None. No partial result is kept.
        """
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix='duplo-load') as pool:
            feature_future = pool.submit(feature_loader)
            target_future = pool.submit(target_loader)
            try:
                features = feature_future.result()
                target = target_future.result()
            except Exception as exc:
                LOGGER.error("Data ingestion failed: %s", exc)
                raise DataUnavailableError(f"Data ingestion failed: {exc}") from exc

        if features is None or target is None:
            missing = 'features' if features is None else 'target'
            raise DataUnavailableError(f"Data ingestion returned no {missing}.")

        dm = cls(features, target, **kwargs)
        LOGGER.info(
            "Loaded %d features x %d observations (%d training, %d held out)",
            len(dm.feature_names), dm.n_obs, dm.train_size, dm.test_size
        )
        return dm

    @property
    def n_obs(self) -> int:
        return int(self._target.size)

    @property
    def n_features(self) -> int:
        return len(self._features)

    @property
    def train_size(self) -> int:
        return self._train_size

    @property
    def test_size(self) -> int:
        return self.n_obs - self._train_size

    @property
    def features(self) -> List[np.ndarray]:
        return list(self._features)

    @property
    def target(self) -> np.ndarray:
        return self._target

    @property
    def X_train(self) -> List[np.ndarray]:
        return [col[:self._train_size] for col in self._features]

    @property
    def y_train(self) -> np.ndarray:
        return self._target[:self._train_size]

    @property
    def X_test(self) -> List[np.ndarray]:
        return [col[self._train_size:] for col in self._features]

    @property
    def y_test(self) -> np.ndarray:
        return self._target[self._train_size:]

    @property
    def train_index(self) -> pd.RangeIndex:
        return pd.RangeIndex(0, self._train_size)

    @property
    def test_index(self) -> pd.RangeIndex:
        return pd.RangeIndex(self._train_size, self.n_obs)

    def to_frame(self) -> pd.DataFrame:
        """All observations as a DataFrame with features, ``y`` and a ``sample`` label."""
        df = pd.DataFrame({name: col for name, col in zip(self.feature_names, self._features)})
        df['y'] = self._target
        df['sample'] = ['in'] * self._train_size + ['out'] * self.test_size
        return df

    def __repr__(self) -> str:
        return (
            f"DataManager(features={self.n_features}, n_obs={self.n_obs}, "
            f"train={self.train_size}, test={self.test_size})"
        )
