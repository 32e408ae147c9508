import logging
from typing import List, Tuple

import numpy as np
import pandas as pd

from modules.cv_runner import CrossValidationRunner, CVResults
from modules.data_manager.dataset import Dataset
from modules.model_factory import ModelSpec
from modules.split_engine import FoldAssignment
from utils import constants
from utils.exceptions import ModelTrainingError


class FeatureEvaluator:
    """
    Scores one feature subset with the ranking model.

    Logic:
    1. Restrict the dataset to the subset.
    2. Run cross-validation with the ranking spec, collecting importance.
    3. Average the primary metric and the importance scores over the
       successful folds, in fold-id order.
    """

    def __init__(self, config: dict, logger: logging.Logger, runner: CrossValidationRunner = None):
        self.config = config
        self.logger = logger
        self.runner = runner or CrossValidationRunner(config, logger)

    def evaluate_subset(
        self,
        dataset: Dataset,
        features: List[str],
        fold_assignment: FoldAssignment,
        spec: ModelSpec,
    ) -> Tuple[float, pd.Series, CVResults]:
        """
        Returns:
            (mean primary metric, mean importance per feature in subset order, raw CV results)

        Raises:
            ModelTrainingError: every fold failed, so no importance is available.
        """
        subset = dataset.select_features(features)
        results = self.runner.run(subset, dataset.target, fold_assignment, [spec], collect_importance=True)

        ok = [r for r in results.fold_results if r.ok]
        if not ok:
            reasons = sorted({f"{r.error_type}: {r.error_message}" for r in results.failures()})
            raise ModelTrainingError(
                f"Every fold failed for {spec.name} on {len(features)} feature(s); cannot rank features. {reasons}"
            )

        metric_name = constants.PRIMARY_METRIC[spec.task]
        values = np.array([r.metrics[metric_name] for r in ok], dtype=float)
        metric = float(np.nanmean(values)) if not np.all(np.isnan(values)) else float('nan')

        importance = results.mean_importance(spec.name).reindex(features)
        return metric, importance, results
