import logging
from typing import List, Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from modules.base.base_engine import BaseEngine
from modules.cv_runner import CrossValidationRunner
from modules.data_manager.dataset import Dataset
from modules.model_factory import ModelSpec
from modules.rfe.feature_evaluator import FeatureEvaluator
from modules.rfe.rfe_result import FeatureRanking, RFEResult, RFEStep
from modules.rfe.stopping_criteria import StoppingCriteria
from modules.split_engine import FoldAssignment
from modules.training_engine import ModelAdapter
from utils import constants
from utils.error_handling import handle_engine_errors
from utils.exceptions import ConfigurationError


class FeatureSelector(BaseEngine):
    """
    Recursive backward elimination driven by the ranking model's importance.

    Every step cross-validates the ranking model on the active subset, then
    drops the single feature with the lowest mean importance. Ties go to the
    feature that comes first in the original column order.
    """

    def __init__(self, config: dict, logger: logging.Logger, runner: Optional[CrossValidationRunner] = None):
        super().__init__(config, logger)
        self.fs_config = config.get('feature_selection', {})
        self.evaluator = FeatureEvaluator(config, logger, runner=runner)
        self.show_progress = self.fs_config.get('show_progress', True)

    def execute(self, dataset: Dataset, fold_assignment: FoldAssignment) -> RFEResult:
        return self.run(dataset, fold_assignment)

    def resolve_ranking_spec(self) -> ModelSpec:
        """ModelSpec of the configured ranking model."""
        name = self.fs_config.get('ranking_model')
        for entry in self.config.get('models', []):
            spec = ModelSpec.from_dict(entry)
            if spec.name == name:
                return spec
        raise ConfigurationError(f"Ranking model '{name}' is not among the configured models.")

    @handle_engine_errors("Feature Selection")
    def run(
        self,
        dataset: Dataset,
        fold_assignment: FoldAssignment,
        ranking_spec: Optional[ModelSpec] = None,
        min_features: Optional[int] = None,
    ) -> RFEResult:
        """
        Eliminate features one per step until `min_features` remain.

        Args:
            dataset: Full dataset; its feature order is the tie-break order.
            fold_assignment: Folds reused unchanged at every step.
            ranking_spec: Model that is evaluated and provides importance.
                Defaults to `feature_selection.ranking_model`.
            min_features: Terminal subset size. Defaults to `feature_selection.min_features`.

        Raises:
            ConfigurationError: ranking model provides no importance scores.
            FeatureSetExhausted: elimination would go below one feature.
            ModelTrainingError: every fold failed at some step.
        """
        spec = ranking_spec or self.resolve_ranking_spec()
        if not ModelAdapter.capabilities(spec).importance:
            raise ConfigurationError(
                f"Ranking model '{spec.name}' ({spec.family}) does not provide importance scores."
            )

        criteria = StoppingCriteria(self.config, self.logger, min_features=min_features)
        original_order = dataset.features
        criteria.validate(len(original_order))

        metric_name = constants.PRIMARY_METRIC[spec.task]
        result = RFEResult(ranking_model=spec.name, metric_name=metric_name)
        active: List[str] = list(original_order)
        eliminated: List[RFEStep] = []

        self.logger.info(
            f"Starting feature elimination with {spec.name}: {len(active)} features, "
            f"min_features={criteria.min_features}, metric={metric_name}"
        )

        step = 0
        with tqdm(total=criteria.n_steps(len(active)), desc="RFE", unit="step",
                  disable=not self.show_progress) as pbar:
            while True:
                metric, importance, cv_results = self.evaluator.evaluate_subset(
                    dataset, active, fold_assignment, spec
                )
                record = RFEStep(
                    step=step,
                    n_features=len(active),
                    metric=metric,
                    features=list(active),
                    importance=importance,
                    n_failed_folds=len(cv_results.failures()),
                )
                result.steps.append(record)
                pbar.update(1)

                stop, reason = criteria.should_stop(len(active))
                if stop:
                    self.logger.info(
                        f"  Step {step}: {len(active)} features, {metric_name}={metric:.4f}. Stopping: {reason}"
                    )
                    break

                dropped = self._lowest_importance(importance, active)
                record.eliminated = dropped
                eliminated.append(record)
                self.logger.info(
                    f"  Step {step}: {len(active)} features, {metric_name}={metric:.4f}, "
                    f"dropping '{dropped}' (importance {importance[dropped]:.4g})"
                )
                active = [f for f in active if f != dropped]
                step += 1

        self._select_best(result, metric_name)
        result.ranking = self._build_ranking(result.steps[-1], eliminated)
        self.logger.info(
            f"Best subset: {len(result.best_features)} features, {metric_name}={result.best_metric:.4f}"
        )
        return result

    @staticmethod
    def _lowest_importance(importance: pd.Series, active: List[str]) -> str:
        """First feature (in active order) holding the minimum mean importance."""
        scores = importance.reindex(active).to_numpy(dtype=float)
        # Features without a score are treated as least important
        scores = np.where(np.isnan(scores), -np.inf, scores)
        return active[int(np.argmin(scores))]

    @staticmethod
    def _select_best(result: RFEResult, metric_name: str) -> None:
        """Lowest RMSE or highest accuracy; ties go to the smaller subset."""
        minimize = metric_name in constants.MINIMIZE_METRICS
        best = None
        for record in result.steps:
            if np.isnan(record.metric):
                continue
            if best is None:
                best = record
            elif minimize and record.metric <= best.metric:
                best = record
            elif not minimize and record.metric >= best.metric:
                best = record
        if best is not None:
            result.best_features = list(best.features)
            result.best_metric = best.metric

    @staticmethod
    def _build_ranking(final_step: RFEStep, eliminated: List[RFEStep]) -> FeatureRanking:
        survivors = list(final_step.features)
        last_scores = final_step.importance.reindex(survivors).fillna(-np.inf)
        # Stable sort keeps original column order among equal scores
        order = sorted(range(len(survivors)), key=lambda i: -last_scores.iloc[i])

        rows = []
        for i in order:
            feature = survivors[i]
            rows.append({
                'feature': feature,
                'importance': float(final_step.importance.get(feature, np.nan)),
                'elimination_step': None,
            })
        for record in reversed(eliminated):
            rows.append({
                'feature': record.eliminated,
                'importance': float(record.importance[record.eliminated]),
                'elimination_step': record.step,
            })

        table = pd.DataFrame(rows, columns=['feature', 'importance', 'elimination_step'])
        table['elimination_step'] = table['elimination_step'].astype('Int64')
        table.insert(0, 'rank', range(1, len(table) + 1))
        return FeatureRanking(table)
