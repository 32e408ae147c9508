"""
Per-fold metric definitions.

R² here is the squared Pearson correlation between predictions and targets,
not the coefficient of determination: it lies in [0, 1] and is undefined
(NaN) when either vector is constant.
"""
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix


def compute_rmse(y_true, y_pred) -> float:
    """sqrt(mean((pred - true)^2))."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    return float(np.sqrt(np.mean((y_pred - y_true) ** 2)))


def compute_r2(y_true, y_pred) -> float:
    """Squared Pearson correlation; NaN for zero-variance inputs."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if len(y_true) < 2 or np.std(y_true) == 0 or np.std(y_pred) == 0:
        return float('nan')
    r = np.corrcoef(y_pred, y_true)[0, 1]
    return float(min(max(r ** 2, 0.0), 1.0))


def compute_accuracy(y_true, y_pred) -> float:
    """Fraction of predictions exactly equal to the true label."""
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    if len(y_true) == 0:
        return float('nan')
    return float(np.mean(y_true == y_pred))


def compute_confusion_matrix(y_true, y_pred, levels: Optional[Sequence] = None) -> pd.DataFrame:
    """
    Counts per (true class, predicted class).

    `levels` fixes the row/column set so matrices keep the same shape across
    folds, including levels with no test rows. Predictions outside `levels`
    are not counted.
    """
    if levels is None:
        levels = sorted(set(np.asarray(y_true).tolist()) | set(np.asarray(y_pred).tolist()))
    levels = list(levels)
    matrix = confusion_matrix(y_true, y_pred, labels=levels)
    return pd.DataFrame(
        matrix,
        index=pd.Index(levels, name='true'),
        columns=pd.Index(levels, name='predicted'),
    )


def is_integral(values) -> bool:
    values = np.asarray(values, dtype=float)
    return bool(np.all(np.isfinite(values)) and np.allclose(values, np.round(values)))
