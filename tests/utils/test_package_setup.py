from unittest.mock import MagicMock

import pandas as pd

import utils  # noqa: F401  (import switches copy-on-write on)
from main import setup_global_determinism


def test_copy_on_write_enabled_on_import():
    assert pd.options.mode.copy_on_write is True


def test_global_determinism_seeds_without_touching_pandas_options():
    logger = MagicMock()
    setup_global_determinism({'cv': {'seed': 7}}, logger)
    assert pd.options.mode.copy_on_write is True
    logger.info.assert_called_once_with("Setting Global Deterministic Seed: 7")
