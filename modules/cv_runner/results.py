"""
Result containers for one cross-validation run.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from modules.evaluation_engine import MetricAggregator
from modules.model_factory import ModelSpec
from utils import constants


@dataclass
class FoldResult:
    """Outcome of one (fold, model) cell. Failed cells carry the error instead of metrics."""
    fold: int
    spec: ModelSpec
    status: str = constants.STATUS_OK
    predictions: Optional[pd.Series] = None
    y_true: Optional[pd.Series] = None
    metrics: Dict[str, float] = field(default_factory=dict)
    confusion: Optional[pd.DataFrame] = None
    importance: Optional[pd.Series] = None
    history: Optional[Any] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    n_train: int = 0
    n_test: int = 0
    training_time_sec: float = 0.0

    @property
    def model_id(self) -> str:
        return self.spec.name

    @property
    def ok(self) -> bool:
        return self.status == constants.STATUS_OK

    @classmethod
    def failed(cls, fold: int, spec: ModelSpec, error: Exception, n_train: int = 0, n_test: int = 0) -> "FoldResult":
        return cls(
            fold=fold,
            spec=spec,
            status=constants.STATUS_FAILED,
            error_type=type(error).__name__,
            error_message=str(error),
            n_train=n_train,
            n_test=n_test,
        )


class CVResults:
    """
    Every FoldResult of one run, kept sorted by (model id, fold id).
    """

    def __init__(self, fold_results: List[FoldResult], class_levels: Optional[List] = None,
                 k: Optional[int] = None):
        self.fold_results = sorted(fold_results, key=lambda r: (r.model_id, r.fold))
        self.class_levels = list(class_levels) if class_levels is not None else None
        self.k = k

    @property
    def model_ids(self) -> List[str]:
        return list(dict.fromkeys(r.model_id for r in self.fold_results))

    @property
    def status(self) -> str:
        """'complete' when every cell succeeded, 'failed' when none did, else 'partial'."""
        n_ok = sum(r.ok for r in self.fold_results)
        if self.fold_results and n_ok == len(self.fold_results):
            return constants.RUN_COMPLETE
        if n_ok == 0:
            return constants.RUN_FAILED
        return constants.RUN_PARTIAL

    def get(self, model_id: str, fold: int) -> FoldResult:
        for result in self.fold_results:
            if result.model_id == model_id and result.fold == fold:
                return result
        raise KeyError((model_id, fold))

    def for_model(self, model_id: str) -> List[FoldResult]:
        return [r for r in self.fold_results if r.model_id == model_id]

    def failures(self) -> List[FoldResult]:
        return [r for r in self.fold_results if not r.ok]

    def confusion(self, model_id: str, fold: int) -> Optional[pd.DataFrame]:
        """Confusion matrix referenced by a results-table `confusion_ref`."""
        return self.get(model_id, fold).confusion

    def results_table(self) -> pd.DataFrame:
        """One row per (model, fold), failed cells included."""
        rows = []
        for r in self.fold_results:
            rows.append({
                'model': r.model_id,
                'fold': r.fold,
                'status': r.status,
                constants.RMSE: r.metrics.get(constants.RMSE, np.nan),
                constants.R2: r.metrics.get(constants.R2, np.nan),
                constants.ACCURACY: r.metrics.get(constants.ACCURACY, np.nan),
                'confusion_ref': (r.model_id, r.fold) if r.confusion is not None else None,
                'error': f"{r.error_type}: {r.error_message}" if r.error_type else None,
            })
        columns = ['model', 'fold', 'status', constants.RMSE, constants.R2, constants.ACCURACY,
                   'confusion_ref', 'error']
        return pd.DataFrame(rows, columns=columns).set_index(['model', 'fold'])

    def summary(self) -> pd.DataFrame:
        """Per-model fold statistics over successful folds."""
        return MetricAggregator.aggregate(self.fold_results)

    def mean_importance(self, model_id: str) -> pd.Series:
        """Importance averaged over the model's successful folds, in feature order."""
        scores = [r.importance for r in self.for_model(model_id) if r.ok and r.importance is not None]
        if not scores:
            return pd.Series(dtype=float, name='importance')
        return pd.concat(scores, axis=1).mean(axis=1).rename('importance')

    def __len__(self) -> int:
        return len(self.fold_results)

    def __repr__(self) -> str:
        return f"CVResults(models={len(self.model_ids)}, cells={len(self)}, status='{self.status}')"
