import pytest

import numpy as np
import pandas as pd

from modules.data_manager import Dataset
from utils.exceptions import DataValidationError, SchemaMismatch

@pytest.fixture
def frame():
    return pd.DataFrame({
        'a': [1.0, 2.0, 3.0, 4.0],
        'b': [0.5, 0.1, 0.2, 0.9],
        'c': [10, 20, 30, 40],
        'quality': [5, 6, 5, 7],
    })


class TestDataset:

    def test_default_features_exclude_target(self, frame):
        ds = Dataset(frame, 'quality')
        assert ds.features == ['a', 'b', 'c']
        assert ds.target == 'quality'
        assert len(ds) == 4
        assert ds.class_levels == [5, 6, 7]

    def test_missing_target(self, frame):
        with pytest.raises(DataValidationError):
            Dataset(frame, 'score')

    def test_missing_feature(self, frame):
        with pytest.raises(SchemaMismatch):
            Dataset(frame, 'quality', ['a', 'zzz'])

    def test_target_as_feature(self, frame):
        with pytest.raises(DataValidationError):
            Dataset(frame, 'quality', ['a', 'quality'])

    def test_missing_values_rejected(self, frame):
        frame.loc[1, 'b'] = np.nan
        with pytest.raises(DataValidationError):
            Dataset(frame, 'quality')

    def test_select_features_returns_new_dataset(self, frame):
        ds = Dataset(frame, 'quality')
        subset = ds.select_features(['c', 'a'])
        assert subset.features == ['c', 'a']
        assert list(subset.X.columns) == ['c', 'a']
        assert ds.features == ['a', 'b', 'c']

    def test_take_keeps_row_labels(self, frame):
        ds = Dataset.from_frame(frame, 'quality')
        rows = ds.take([3, 1])
        assert rows.frame.index.tolist() == [3, 1]
        assert rows.y.tolist() == [7, 6]
