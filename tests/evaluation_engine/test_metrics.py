import math

import pytest
import numpy as np

from modules.evaluation_engine import compute_accuracy, compute_confusion_matrix, compute_r2, compute_rmse
from modules.evaluation_engine.cv_analysis import cv_fold_consistency
from modules.evaluation_engine.stat_tests import compare_paired


class TestRMSE:

    def test_zero_iff_exact(self):
        assert compute_rmse([5, 6, 7], [5, 6, 7]) == 0.0
        assert compute_rmse([5, 6, 7], [5, 6, 7.01]) > 0.0

    def test_known_value(self):
        assert compute_rmse([0, 0, 0, 0], [1, -1, 1, -1]) == pytest.approx(1.0)

    def test_non_negative(self):
        rng = np.random.RandomState(0)
        for _ in range(20):
            assert compute_rmse(rng.normal(size=10), rng.normal(size=10)) >= 0.0


class TestR2:

    def test_squared_pearson_not_determination(self):
        """A shifted, scaled prediction still correlates perfectly."""
        y = np.array([1.0, 2.0, 3.0, 4.0])
        assert compute_r2(y, 10 * y + 100) == pytest.approx(1.0)

    def test_anticorrelated_is_positive(self):
        y = np.array([1.0, 2.0, 3.0, 4.0])
        assert compute_r2(y, -y) == pytest.approx(1.0)

    def test_within_unit_interval(self):
        rng = np.random.RandomState(1)
        for _ in range(20):
            r2 = compute_r2(rng.normal(size=15), rng.normal(size=15))
            assert 0.0 <= r2 <= 1.0

    @pytest.mark.parametrize("y_true, y_pred", [
        ([5, 5, 5], [4, 5, 6]),
        ([4, 5, 6], [5, 5, 5]),
        ([5], [5]),
    ])
    def test_degenerate_is_nan(self, y_true, y_pred):
        assert math.isnan(compute_r2(y_true, y_pred))


class TestClassificationMetrics:

    def test_accuracy(self):
        assert compute_accuracy([1, 2, 3, 4], [1, 2, 0, 0]) == 0.5

    def test_confusion_sums_to_test_size(self):
        y_true = [5, 6, 6, 7, 5]
        y_pred = [5, 6, 5, 7, 7]
        cm = compute_confusion_matrix(y_true, y_pred, levels=[3, 5, 6, 7])
        assert cm.to_numpy().sum() == 5
        assert cm.loc[6, 5] == 1
        assert cm.loc[3].sum() == 0
        assert cm.index.tolist() == [3, 5, 6, 7]
        assert cm.columns.tolist() == [3, 5, 6, 7]

    def test_diagonal_matches_accuracy(self):
        y_true = [0, 1, 1, 0, 1]
        y_pred = [0, 1, 0, 0, 0]
        cm = compute_confusion_matrix(y_true, y_pred, levels=[0, 1])
        assert np.trace(cm.to_numpy()) / cm.to_numpy().sum() == compute_accuracy(y_true, y_pred)


def test_fold_consistency_skips_nan():
    table = cv_fold_consistency({'rmse': [1.0, 2.0, 3.0], 'r2': [np.nan, np.nan]})
    assert table['metric'].tolist() == ['rmse']
    row = table.iloc[0]
    assert row['folds'] == 3
    assert row['mean'] == pytest.approx(2.0)
    assert row['range'] == pytest.approx(2.0)


class TestComparePaired:

    def test_identical_scores(self):
        outcome = compare_paired(np.array([1.0, 2.0, 3.0]), np.array([1.0, 2.0, 3.0]))
        assert outcome['mean_difference'] == 0.0
        assert outcome['significant'] is False

    def test_clear_difference(self):
        base = np.array([1.0, 1.1, 0.9, 1.05, 0.95, 1.0, 1.02, 0.98, 1.01, 0.99])
        outcome = compare_paired(base, base + 0.5 + np.linspace(0, 0.01, 10))
        assert outcome['mean_difference'] > 0.5
        assert outcome['p_value_ttest'] < 0.05
        assert outcome['significant'] is True
        assert outcome['n_pairs'] == 10

    def test_too_few_pairs(self):
        outcome = compare_paired(np.array([1.0, np.nan]), np.array([2.0, 3.0]))
        assert outcome['n_pairs'] == 1
        assert math.isnan(outcome['p_value_ttest'])
