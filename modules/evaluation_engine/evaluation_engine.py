import logging
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from modules.base.base_engine import BaseEngine
from modules.evaluation_engine.cv_analysis import cv_fold_consistency
from modules.evaluation_engine.metrics import (
    compute_accuracy,
    compute_confusion_matrix,
    compute_r2,
    compute_rmse,
    is_integral,
)
from modules.evaluation_engine.stat_tests import compare_paired
from modules.model_factory import ModelSpec
from utils import constants
from utils.error_handling import handle_engine_errors
from utils.exceptions import ConfigurationError

METRIC_COLUMNS = [constants.RMSE, constants.R2, constants.ACCURACY]


class MetricAggregator(BaseEngine):
    """
    Turns per-fold predictions into metrics and reduces fold metrics per model.

    Reductions walk fold results sorted by (model id, fold id) so the
    floating-point summation order never depends on task completion order.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)

    @handle_engine_errors("Metric Aggregation")
    def execute(self, results) -> pd.DataFrame:
        """Per-model summary table for a CVResults object."""
        summary = self.aggregate(results.fold_results)
        self.logger.info(f"Aggregated {len(results.fold_results)} fold result(s) over {len(summary)} model(s).")
        return summary

    @staticmethod
    def fold_metrics(
        spec: ModelSpec,
        y_true,
        y_pred,
        class_levels: Optional[Sequence] = None,
    ) -> Tuple[Dict[str, float], Optional[pd.DataFrame]]:
        """
        Metrics for one (fold, model) cell.

        Regression cells always get RMSE and R²; when the target is discrete
        they also get accuracy of the rounded predictions. Classification
        cells get accuracy and a confusion matrix over `class_levels`.
        """
        y_true = np.asarray(y_true)
        y_pred = np.asarray(y_pred)

        if spec.is_classification:
            metrics = {
                constants.RMSE: float('nan'),
                constants.R2: float('nan'),
                constants.ACCURACY: compute_accuracy(y_true, y_pred),
            }
            return metrics, compute_confusion_matrix(y_true, y_pred, class_levels)

        metrics = {
            constants.RMSE: compute_rmse(y_true, y_pred),
            constants.R2: compute_r2(y_true, y_pred),
            constants.ACCURACY: float('nan'),
        }
        if is_integral(y_true):
            rounded = np.round(y_pred.astype(float))
            metrics[constants.ACCURACY] = compute_accuracy(y_true.astype(float), rounded)
        return metrics, None

    @staticmethod
    def aggregate(fold_results: Sequence) -> pd.DataFrame:
        """
        Mean/std/min/max of every metric per model over successful folds,
        plus successful and failed fold counts. Undefined (NaN) fold metrics
        are left out of that metric's statistics.
        """
        ordered = sorted(fold_results, key=lambda r: (r.model_id, r.fold))
        rows = []
        model_ids = list(dict.fromkeys(r.model_id for r in ordered))
        for model_id in model_ids:
            cells = [r for r in ordered if r.model_id == model_id]
            ok = [r for r in cells if r.status == constants.STATUS_OK]
            row: Dict[str, Any] = {
                'model': model_id,
                'family': cells[0].spec.family,
                'task': cells[0].spec.task,
                'n_ok': len(ok),
                'n_failed': len(cells) - len(ok),
            }
            for metric in METRIC_COLUMNS:
                values = np.array([r.metrics.get(metric, np.nan) for r in ok], dtype=float)
                values = values[~np.isnan(values)]
                if values.size:
                    row[f'{metric}_mean'] = float(np.mean(values))
                    row[f'{metric}_std'] = float(np.std(values))
                    row[f'{metric}_min'] = float(np.min(values))
                    row[f'{metric}_max'] = float(np.max(values))
                else:
                    for stat in ('mean', 'std', 'min', 'max'):
                        row[f'{metric}_{stat}'] = np.nan
            rows.append(row)
        return pd.DataFrame(rows).set_index('model') if rows else pd.DataFrame()

    @staticmethod
    def fold_consistency(fold_results: Sequence, model_id: str) -> pd.DataFrame:
        """Fold spread table (folds, mean, std, min, max, range) for one model."""
        ok = sorted(
            (r for r in fold_results if r.model_id == model_id and r.status == constants.STATUS_OK),
            key=lambda r: r.fold,
        )
        scores = {m: [r.metrics.get(m, np.nan) for r in ok] for m in METRIC_COLUMNS}
        return cv_fold_consistency(scores)


def _per_fold_metric(results, model_id: str, metric: str) -> pd.Series:
    cells = [r for r in results.fold_results if r.model_id == model_id]
    if not cells:
        raise ConfigurationError(f"Model '{model_id}' is not part of these results.")
    return pd.Series(
        {r.fold: r.metrics.get(metric, np.nan) for r in cells if r.status == constants.STATUS_OK},
        dtype=float,
    ).sort_index()


def compare_models(results, model_a: str, model_b: str, metric: str = constants.RMSE,
                   alpha: float = 0.05) -> Dict[str, Any]:
    """
    Paired comparison of two models over the folds where both succeeded.

    `mean_difference` and Cohen's d are oriented as model_b minus model_a.
    """
    if metric not in METRIC_COLUMNS:
        raise ConfigurationError(f"Unknown metric '{metric}'. Available: {METRIC_COLUMNS}")
    a = _per_fold_metric(results, model_a, metric)
    b = _per_fold_metric(results, model_b, metric)
    shared = a.index.intersection(b.index)
    outcome = compare_paired(a.loc[shared].to_numpy(), b.loc[shared].to_numpy(), alpha=alpha)
    outcome.update({'model_a': model_a, 'model_b': model_b, 'metric': metric})
    return outcome


def pooled_confusion(results, model_id: str) -> pd.DataFrame:
    """Element-wise sum of a classification model's per-fold confusion matrices."""
    matrices = [
        r.confusion for r in sorted(results.fold_results, key=lambda r: r.fold)
        if r.model_id == model_id and r.status == constants.STATUS_OK and r.confusion is not None
    ]
    if not matrices:
        raise ConfigurationError(f"No confusion matrices recorded for model '{model_id}'.")
    pooled = matrices[0].copy()
    for matrix in matrices[1:]:
        pooled = pooled.add(matrix, fill_value=0)
    return pooled.astype(int)
