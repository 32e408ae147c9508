import numpy as np
import pandas as pd
from typing import Dict, Sequence


def cv_fold_consistency(cv_scores: Dict[str, Sequence[float]]) -> pd.DataFrame:
    """
    Summarize CV fold consistency for metrics.
    Expects cv_scores like {"rmse": [...], "r2": [...]} in fold-id order.
    NaN folds (undefined metric) are skipped.
    """
    rows = []
    for metric, scores in cv_scores.items():
        scores = np.asarray(scores, dtype=float)
        scores = scores[~np.isnan(scores)]
        if scores.size == 0:
            continue
        rows.append({
            "metric": metric,
            "folds": len(scores),
            "mean": float(np.mean(scores)),
            "std": float(np.std(scores)),
            "min": float(np.min(scores)),
            "max": float(np.max(scores)),
            "range": float(np.max(scores) - np.min(scores)),
        })
    return pd.DataFrame(rows, columns=["metric", "folds", "mean", "std", "min", "max", "range"])
