import pytest
from unittest.mock import MagicMock

import numpy as np
import pandas as pd

from modules.cv_runner import CrossValidationRunner
from modules.data_manager import Dataset
from modules.model_factory import ModelSpec
from modules.rfe import FeatureEvaluator
from modules.split_engine import partition

@pytest.fixture
def mock_logger():
    return MagicMock()

@pytest.fixture
def config():
    return {'execution': {'n_jobs': 1}, '_internal_seeds': {'model': 2042}}

@pytest.fixture
def dataset():
    rng = np.random.RandomState(11)
    frame = pd.DataFrame(rng.uniform(size=(60, 3)), columns=['x', 'y', 'z'])
    frame['quality'] = 5 * frame['x'] + frame['z']
    return Dataset.from_frame(frame, 'quality')


class TestFeatureEvaluator:

    def test_subset_scores(self, config, mock_logger, dataset):
        evaluator = FeatureEvaluator(config, mock_logger)
        metric, importance, results = evaluator.evaluate_subset(
            dataset, ['z', 'x'], partition(60, 3, seed=0), ModelSpec('linear-regression')
        )
        assert metric == pytest.approx(0.0, abs=1e-8)
        assert importance.index.tolist() == ['z', 'x']
        assert importance['x'] > importance['z']
        assert len(results) == 3

    def test_mean_over_folds(self, config, mock_logger, dataset):
        evaluator = FeatureEvaluator(config, mock_logger)
        metric, _, results = evaluator.evaluate_subset(
            dataset, ['y'], partition(60, 3, seed=0), ModelSpec('linear-regression')
        )
        fold_rmse = [r.metrics['rmse'] for r in results.fold_results]
        assert metric == pytest.approx(np.mean(fold_rmse))

    def test_shared_runner(self, config, mock_logger):
        runner = CrossValidationRunner(config, mock_logger)
        assert FeatureEvaluator(config, mock_logger, runner=runner).runner is runner
