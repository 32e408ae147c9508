"""
Cross-Validation Runner Module
==============================

Responsibility:
- Fans out (fold, model) tasks over a joblib worker pool.
- Records fold-local failures as failed cells without stopping the run.
- Collects per-cell predictions, metrics, confusion matrices and importance.
"""

from .cv_runner import CrossValidationRunner
from .results import CVResults, FoldResult

__all__ = ['CrossValidationRunner', 'CVResults', 'FoldResult']
