"""
Seeded k-fold assignment of row indices.

Remainder convention: when N is not divisible by k, the `N mod k` extra rows
go one each to the earliest folds. In stratified mode each class continues
handing out its extra rows cyclically from the fold after the last fold that
received one, which keeps total fold sizes within one row of each other.
"""
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from utils.exceptions import InvalidFoldCount, DataValidationError


@dataclass(frozen=True, eq=False)
class FoldAssignment:
    """Immutable mapping row index -> fold id in 0..k-1."""
    fold_ids: np.ndarray
    k: int
    seed: int
    stratified: bool = False

    def __post_init__(self):
        fold_ids = np.array(self.fold_ids, dtype=int)
        fold_ids.setflags(write=False)
        object.__setattr__(self, 'fold_ids', fold_ids)

    def __eq__(self, other):
        if not isinstance(other, FoldAssignment):
            return NotImplemented
        return (
            self.k == other.k
            and self.seed == other.seed
            and self.stratified == other.stratified
            and np.array_equal(self.fold_ids, other.fold_ids)
        )

    def __hash__(self):
        return hash((self.fold_ids.tobytes(), self.k, self.seed, self.stratified))

    @property
    def n_rows(self) -> int:
        return len(self.fold_ids)

    def test_indices(self, fold: int) -> np.ndarray:
        """Row indices held out in `fold`."""
        self._check_fold(fold)
        return np.flatnonzero(self.fold_ids == fold)

    def train_indices(self, fold: int) -> np.ndarray:
        """Row indices used for training when `fold` is held out."""
        self._check_fold(fold)
        return np.flatnonzero(self.fold_ids != fold)

    def fold_sizes(self) -> List[int]:
        return np.bincount(self.fold_ids, minlength=self.k).tolist()

    def folds(self) -> Iterator[Tuple[int, np.ndarray, np.ndarray]]:
        """Yield (fold id, train indices, test indices) in fold-id order."""
        for fold in range(self.k):
            yield fold, self.train_indices(fold), self.test_indices(fold)

    def _check_fold(self, fold: int) -> None:
        if not 0 <= fold < self.k:
            raise IndexError(f"Fold id {fold} out of range for k={self.k}")


def _slice_sizes(n: int, k: int, offset: int = 0) -> np.ndarray:
    """Block sizes floor(n/k), plus one for `n mod k` folds starting at `offset`."""
    sizes = np.full(k, n // k, dtype=int)
    extra = (offset + np.arange(n % k)) % k
    sizes[extra] += 1
    return sizes


def _assign_blocks(indices: np.ndarray, sizes: np.ndarray, fold_ids: np.ndarray) -> None:
    start = 0
    for fold, size in enumerate(sizes):
        fold_ids[indices[start:start + size]] = fold
        start += size


def partition(n_rows: int, k: int, seed: int,
              stratify_labels: Optional[Sequence] = None) -> FoldAssignment:
    """
    Assign every row index in 0..n_rows-1 to exactly one of k folds.

    Args:
        n_rows: Number of rows.
        k: Number of folds, 2 <= k <= n_rows.
        seed: Seed for the shuffle; identical inputs give identical folds.
        stratify_labels: Optional per-row class labels. When given, each class
            is partitioned independently so every fold keeps the global class
            proportions to within one row per class.

    Raises:
        InvalidFoldCount: k outside [2, n_rows].
        DataValidationError: stratify_labels length differs from n_rows.
    """
    if k < 2 or k > n_rows:
        raise InvalidFoldCount(f"Fold count k={k} must satisfy 2 <= k <= n_rows ({n_rows}).")

    rng = np.random.RandomState(seed)
    fold_ids = np.full(n_rows, -1, dtype=int)

    if stratify_labels is None:
        shuffled = rng.permutation(n_rows)
        _assign_blocks(shuffled, _slice_sizes(n_rows, k), fold_ids)
        return FoldAssignment(fold_ids, k, seed, stratified=False)

    labels = pd.Series(np.asarray(stratify_labels))
    if len(labels) != n_rows:
        raise DataValidationError(
            f"stratify_labels has {len(labels)} entries, expected {n_rows}."
        )

    offset = 0
    for level in sorted(labels.unique().tolist()):
        members = np.flatnonzero((labels == level).to_numpy())
        shuffled = members[rng.permutation(len(members))]
        _assign_blocks(shuffled, _slice_sizes(len(members), k, offset), fold_ids)
        offset = (offset + len(members) % k) % k

    return FoldAssignment(fold_ids, k, seed, stratified=True)
