import pytest
from unittest.mock import MagicMock

import numpy as np
import pandas as pd

from modules.data_manager import DataManager, Dataset
from utils.exceptions import DataValidationError

HEADER = '"fixed acidity";"alcohol";"quality"\n'

@pytest.fixture
def mock_logger():
    return MagicMock()

@pytest.fixture
def wine_files(tmp_path):
    red = tmp_path / "red.csv"
    white = tmp_path / "white.csv"
    red.write_text(HEADER + "7.4;9.4;5\n7.8;9.8;5\n11.2;9.8;6\n")
    white.write_text(HEADER + "7.0;8.8;6\n6.3;9.5;6\n8.1;10.1;7\n6.2;9.9;4\n")
    return red, white

@pytest.fixture
def base_config(wine_files):
    red, white = wine_files
    return {'data': {'red_path': str(red), 'white_path': str(white), 'separator': ';', 'target_column': 'quality'}}


class TestExecute:

    def test_merged_dataset(self, base_config, mock_logger):
        """Red and white rows are stacked and tagged with the type indicator."""
        dataset = DataManager(base_config, mock_logger).execute()
        assert isinstance(dataset, Dataset)
        assert dataset.n_rows == 7
        assert dataset.features == ['fixed_acidity', 'alcohol', 'type']
        assert dataset.frame['type'].tolist() == [0, 0, 0, 1, 1, 1, 1]
        assert dataset.y.dtype.kind == 'i'
        assert dataset.class_levels == [4, 5, 6, 7]

    def test_label_threshold(self, base_config, mock_logger):
        base_config['data']['label_threshold'] = 6
        dataset = DataManager(base_config, mock_logger).execute()
        assert dataset.y.tolist() == [0, 0, 1, 1, 1, 1, 0]

    def test_schema_mismatch_between_files(self, base_config, wine_files, mock_logger):
        _, white = wine_files
        white.write_text('"fixed acidity";"sugar";"quality"\n7.0;1.2;6\n')
        with pytest.raises(DataValidationError, match="schemas differ"):
            DataManager(base_config, mock_logger).execute()

    def test_missing_target(self, base_config, wine_files, mock_logger):
        red, white = wine_files
        red.write_text('"fixed acidity";"alcohol"\n7.4;9.4\n')
        white.write_text('"fixed acidity";"alcohol"\n7.0;8.8\n')
        with pytest.raises(DataValidationError, match="quality"):
            DataManager(base_config, mock_logger).execute()

    def test_non_integer_target(self, base_config, wine_files, mock_logger):
        red, _ = wine_files
        red.write_text(HEADER + "7.4;9.4;5.5\n")
        with pytest.raises(DataValidationError, match="integer"):
            DataManager(base_config, mock_logger).execute()


def test_infinite_values_rejected(mock_logger):
    manager = DataManager({'data': {}}, mock_logger)
    df = pd.DataFrame({'a': [1.0, np.inf], 'quality': [5, 6]})
    with pytest.raises(DataValidationError, match="infinite"):
        manager.validate_nan_inf(df)


def test_summarize(base_config, mock_logger):
    manager = DataManager(base_config, mock_logger)
    dataset = manager.execute()
    stats, distribution = manager.summarize(dataset)
    assert 'mean' in stats.columns
    assert distribution.sum() == dataset.n_rows
