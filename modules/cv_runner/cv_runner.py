import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from modules.base.base_engine import BaseEngine
from modules.cv_runner.results import CVResults, FoldResult
from modules.data_manager.dataset import Dataset
from modules.evaluation_engine import MetricAggregator
from modules.model_factory import ModelSpec
from modules.split_engine import FoldAssignment
from modules.training_engine import ModelAdapter, get_adapter
from utils import constants
from utils.error_handling import handle_engine_errors
from utils.exceptions import ConfigurationError, DataValidationError, FoldEvaluationError


class CrossValidationRunner(BaseEngine):
    """
    Runs every (fold, model) pair of a k-fold comparison.

    Each pair is an independent task on a joblib pool sized by
    `execution.n_jobs`. A pair that fails for fold-local reasons is recorded
    as a failed cell and the remaining pairs keep running.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)

    def execute(self, table, target_column: str, fold_assignment: FoldAssignment,
                model_specs: Sequence, collect_importance: bool = False) -> CVResults:
        return self.run(table, target_column, fold_assignment, model_specs, collect_importance)

    @handle_engine_errors("Cross-Validation")
    def run(
        self,
        table: Union[Dataset, pd.DataFrame],
        target_column: str,
        fold_assignment: FoldAssignment,
        model_specs: Sequence[Union[ModelSpec, Dict[str, Any]]],
        collect_importance: bool = False,
    ) -> CVResults:
        """
        Evaluate every spec on every fold of `fold_assignment`.

        Args:
            table: Dataset or DataFrame holding the feature columns and target.
            target_column: Name of the target column.
            fold_assignment: Fold id per row, same length as the table.
            model_specs: ModelSpecs (or their dict form) with unique names.
            collect_importance: Also record importance scores for families that provide them.

        Returns:
            CVResults sorted by (model id, fold id).
        """
        specs = self._normalize_specs(model_specs)
        frame = self._frame_of(table, target_column)

        if fold_assignment.n_rows != len(frame):
            raise DataValidationError(
                f"Fold assignment covers {fold_assignment.n_rows} rows but the table has {len(frame)}."
            )

        class_levels = None
        if target_column in frame.columns and any(s.is_classification for s in specs):
            class_levels = sorted(pd.unique(frame[target_column]).tolist())

        tasks = [
            (fold, train_idx, test_idx, spec)
            for fold, train_idx, test_idx in fold_assignment.folds()
            for spec in specs
        ]
        self.logger.info(
            f"Running {len(tasks)} task(s): {fold_assignment.k} folds x {len(specs)} model(s), n_jobs={self.n_jobs}"
        )

        fold_results = Parallel(n_jobs=self.n_jobs)(
            delayed(self._evaluate_cell)(
                frame, target_column, fold, train_idx, test_idx, spec, class_levels, collect_importance
            )
            for fold, train_idx, test_idx, spec in tasks
        )

        results = CVResults(fold_results, class_levels=class_levels, k=fold_assignment.k)
        for failure in results.failures():
            self.logger.warning(
                f"Fold {failure.fold} / {failure.model_id} failed: {failure.error_type}: {failure.error_message}"
            )
        self.logger.info(
            f"Cross-validation finished with status '{results.status}' "
            f"({len(results) - len(results.failures())}/{len(results)} cells ok)."
        )
        return results

    def _evaluate_cell(
        self,
        frame: pd.DataFrame,
        target_column: str,
        fold: int,
        train_idx: np.ndarray,
        test_idx: np.ndarray,
        spec: ModelSpec,
        class_levels: Optional[List],
        collect_importance: bool,
    ) -> FoldResult:
        """Fit on the training rows, predict the held-out rows, derive metrics."""
        adapter: ModelAdapter = get_adapter(spec, self.config, self.logger)
        train = frame.iloc[train_idx]
        test = frame.iloc[test_idx]

        try:
            trained = adapter.fit(train, target_column, spec)
            predictions = adapter.predict(trained, test)
        except FoldEvaluationError as e:
            return FoldResult.failed(fold, spec, e, n_train=len(train), n_test=len(test))

        y_true = test[target_column]
        metrics, confusion = MetricAggregator.fold_metrics(spec, y_true, predictions, class_levels)

        importance = None
        if collect_importance and adapter.supports_importance(spec):
            importance = adapter.importance(trained)

        return FoldResult(
            fold=fold,
            spec=spec,
            predictions=predictions,
            y_true=y_true,
            metrics=metrics,
            confusion=confusion,
            importance=importance,
            history=trained.history,
            n_train=len(train),
            n_test=len(test),
            training_time_sec=trained.training_time_sec,
        )

    @staticmethod
    def _normalize_specs(model_specs: Sequence) -> List[ModelSpec]:
        specs = [s if isinstance(s, ModelSpec) else ModelSpec.from_dict(s) for s in model_specs]
        if not specs:
            raise ConfigurationError("At least one model spec is required.")

        seen = set()
        duplicates = []
        for spec in specs:
            if spec.name in seen:
                duplicates.append(spec.name)
            seen.add(spec.name)
        if duplicates:
            raise ConfigurationError(f"Duplicate model ids in one run: {sorted(set(duplicates))}")

        for spec in specs:
            if not ModelAdapter.capabilities(spec).supports_task(spec.task):
                raise ConfigurationError(f"Model family '{spec.family}' does not support task '{spec.task}'.")
        return specs

    @staticmethod
    def _frame_of(table, target_column: str) -> pd.DataFrame:
        if isinstance(table, Dataset):
            columns = table.features
            if target_column in table.frame.columns and target_column not in columns:
                columns = columns + [target_column]
            return table.frame[columns]
        return table
