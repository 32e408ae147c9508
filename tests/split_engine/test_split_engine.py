import pytest
from unittest.mock import Mock

import numpy as np
import pandas as pd

from modules.data_manager import Dataset
from modules.split_engine import SplitEngine, partition

@pytest.fixture
def mock_logger():
    """Provides a mock logger instance."""
    return Mock()

@pytest.fixture
def dataset():
    rng = np.random.RandomState(0)
    frame = pd.DataFrame({
        'alcohol': rng.rand(60),
        'ph': rng.rand(60),
        'quality': [5] * 30 + [6] * 27 + [8] * 3,
    })
    return Dataset.from_frame(frame, 'quality')

@pytest.fixture
def base_config():
    return {'cv': {'k': 5, 'seed': 42, 'stratify': False}, '_internal_seeds': {'split': 42}}


class TestSplitEngine:

    def test_matches_partition(self, base_config, mock_logger, dataset):
        """The engine is a thin wrapper around partition with config-driven k and seed."""
        assignment = SplitEngine(base_config, mock_logger).execute(dataset)
        expected = partition(60, 5, seed=42)
        np.testing.assert_array_equal(assignment.fold_ids, expected.fold_ids)
        assert assignment.fold_sizes() == [12] * 5

    def test_stratified_uses_target(self, base_config, mock_logger, dataset):
        base_config['cv']['stratify'] = True
        assignment = SplitEngine(base_config, mock_logger).execute(dataset)
        assert assignment.stratified
        for fold in range(5):
            assert (dataset.y.to_numpy()[assignment.test_indices(fold)] == 5).sum() == 6

    def test_rare_class_warning(self, base_config, mock_logger, dataset):
        base_config['cv']['stratify'] = True
        SplitEngine(base_config, mock_logger).execute(dataset)
        mock_logger.warning.assert_called_once()
        assert "fewer rows than folds" in mock_logger.warning.call_args[0][0]

    def test_balance_report(self, base_config, mock_logger, dataset):
        engine = SplitEngine(base_config, mock_logger)
        assignment = engine.execute(dataset)
        report = engine.balance_report(dataset, assignment)
        assert 'overall' in report.index
        assert len(report) == 6
        np.testing.assert_allclose(report.loc['overall'].sum(), 1.0, atol=1e-3)
