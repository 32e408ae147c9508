"""
Immutable in-memory table shared by every fold and model task of a run.
"""
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from utils.exceptions import DataValidationError, SchemaMismatch


class Dataset:
    """
    Rectangular table of named numeric feature columns plus one target column.

    Instances are never mutated: `select_features` and `take` build new
    Datasets. Row labels are the positional row indices of the table the
    Dataset was first built from, so subsets keep pointing at the original rows.
    """

    def __init__(self, frame: pd.DataFrame, target: str, features: Optional[Sequence[str]] = None):
        if target not in frame.columns:
            raise DataValidationError(f"Target column '{target}' not found in table.")

        if features is None:
            features = [c for c in frame.columns if c != target]
        features = list(features)

        missing = [f for f in features if f not in frame.columns]
        if missing:
            raise SchemaMismatch(f"Feature columns not found in table: {missing}")
        if target in features:
            raise DataValidationError(f"Target column '{target}' cannot also be a feature.")

        table = frame[features + [target]]
        if table.isna().any().any():
            raise DataValidationError("Table contains missing values; they must be dropped at load time.")

        self._frame = table
        self._target = target
        self._features = tuple(features)

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, target: str, features: Optional[Sequence[str]] = None) -> "Dataset":
        """Build a Dataset with positional row labels 0..N-1."""
        return cls(frame.reset_index(drop=True), target, features)

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame

    @property
    def target(self) -> str:
        return self._target

    @property
    def features(self) -> List[str]:
        return list(self._features)

    @property
    def n_rows(self) -> int:
        return len(self._frame)

    @property
    def X(self) -> pd.DataFrame:
        return self._frame[list(self._features)]

    @property
    def y(self) -> pd.Series:
        return self._frame[self._target]

    @property
    def class_levels(self) -> List:
        """Sorted distinct target values."""
        return sorted(pd.unique(self.y).tolist())

    def select_features(self, names: Iterable[str]) -> "Dataset":
        """New Dataset restricted to `names` (in the given order)."""
        return Dataset(self._frame, self._target, list(names))

    def take(self, rows: Sequence[int]) -> "Dataset":
        """New Dataset holding the given positional rows, keeping their labels."""
        rows = np.asarray(rows, dtype=int)
        return Dataset(self._frame.iloc[rows], self._target, self._features)

    def __len__(self) -> int:
        return self.n_rows

    def __repr__(self) -> str:
        return f"Dataset(rows={self.n_rows}, features={len(self._features)}, target='{self._target}')"
