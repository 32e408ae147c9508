"""
SplitEngine for the Wine Quality CV Pipeline.

This module turns the run configuration (fold count, seed, stratification)
into a FoldAssignment for the loaded Dataset. The same assignment is reused
by every model family and every feature-elimination step so all comparisons
run against identical folds.
"""
import logging

import pandas as pd

from modules.base.base_engine import BaseEngine
from modules.data_manager.dataset import Dataset
from modules.split_engine.fold_partitioner import FoldAssignment, partition
from utils.error_handling import handle_engine_errors

class SplitEngine(BaseEngine):
    """
    Builds the run's FoldAssignment and reports the class balance per fold.

    Stratification uses the target column. When a class has fewer rows than
    folds, the class cannot appear in every fold; the engine keeps stratifying
    but warns, since classification models may then meet training folds with
    missing levels.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)
        cv_cfg = self.config.get('cv', {})
        self.k = cv_cfg.get('k', 10)
        self.stratify = cv_cfg.get('stratify', False)

    @handle_engine_errors("Fold Partitioning")
    def execute(self, dataset: Dataset) -> FoldAssignment:
        """
        Partition the dataset rows into k folds.

        Returns:
            FoldAssignment covering every row exactly once.
        """
        seed = self.seed_for('split')
        self.logger.info(
            f"Partitioning {dataset.n_rows} rows into {self.k} folds "
            f"(seed={seed}, stratified={self.stratify})..."
        )

        labels = None
        if self.stratify:
            labels = dataset.y.to_numpy()
            counts = dataset.y.value_counts()
            rare = counts[counts < self.k]
            if not rare.empty:
                self.logger.warning(
                    f"{len(rare)} class level(s) have fewer rows than folds ({rare.to_dict()}); "
                    "they cannot appear in every fold."
                )

        assignment = partition(dataset.n_rows, self.k, seed, stratify_labels=labels)
        self.logger.info(f"Fold sizes: {assignment.fold_sizes()}")
        self.logger.debug(f"Fold balance:\n{self.balance_report(dataset, assignment).to_string()}")
        return assignment

    def balance_report(self, dataset: Dataset, assignment: FoldAssignment) -> pd.DataFrame:
        """Share of each target level per fold, with the global share as the last row."""
        target = dataset.y.to_numpy()
        table = pd.crosstab(pd.Series(assignment.fold_ids, name='fold'),
                            pd.Series(target, name=dataset.target), normalize='index')
        overall = pd.Series(target).value_counts(normalize=True).rename('overall')
        return pd.concat([table, overall.to_frame().T]).round(3)
