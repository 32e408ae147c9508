from .evaluation_engine import MetricAggregator, compare_models, pooled_confusion
from .metrics import compute_accuracy, compute_confusion_matrix, compute_r2, compute_rmse

__all__ = [
    "MetricAggregator",
    "compare_models",
    "pooled_confusion",
    "compute_accuracy",
    "compute_confusion_matrix",
    "compute_r2",
    "compute_rmse",
]
