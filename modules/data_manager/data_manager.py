import re
import warnings
import logging
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from modules.data_manager.dataset import Dataset
from utils.exceptions import DataValidationError, DataCoercionWarning
from utils.error_handling import handle_engine_errors
from utils import constants

class DataManager:
    """
    Loads, validates and merges the red and white wine tables into one Dataset.

    Loading happens once per run; the resulting Dataset is passed by reference
    into every experiment.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.data_cfg = self.config.get('data', {})
        self.target = self.data_cfg.get('target_column', constants.DEFAULT_TARGET_COLUMN)
        self.data: Optional[pd.DataFrame] = None

    @handle_engine_errors("Data Management")
    def execute(self) -> Dataset:
        """
        Execute complete data loading and validation workflow.

        Returns:
            Dataset: merged red + white table with a `type` indicator column.
        """
        self.logger.info("Starting Data Manager execution...")

        red = self.load_table(self.data_cfg['red_path'], "red")
        white = self.load_table(self.data_cfg['white_path'], "white")

        self.data = self.merge(red, white)
        self.validate_columns(self.data)
        self.validate_nan_inf(self.data)
        self.data = self.data.assign(**{self.target: self.data[self.target].round().astype(int)})

        threshold = self.data_cfg.get('label_threshold')
        if threshold is not None:
            self.data = self.derive_quality_label(self.data, threshold)

        dataset = Dataset.from_frame(self.data, self.target)
        self.logger.info(
            f"Dataset ready: {dataset.n_rows} rows, {len(dataset.features)} features, "
            f"target '{self.target}' levels {dataset.class_levels}"
        )
        return dataset

    def load_table(self, path_str: str, source: str) -> pd.DataFrame:
        """
        Read one CSV, normalise its column names and coerce every column to numeric.
        """
        path = Path(path_str)
        if not path.exists():
            raise DataValidationError(f"Data file not found: {path}")

        self.logger.info(f"Loading {source} wine data from {path}")
        sep = self.data_cfg.get('separator', ';')
        try:
            df = pd.read_csv(path, sep=sep)
        except (pd.errors.ParserError, UnicodeDecodeError) as e:
            raise DataValidationError(f"Failed to parse {path}: {e}") from e

        if df.empty:
            raise DataValidationError(f"Loaded {source} table is empty: {path}")

        df.columns = [self.normalize_column_name(c) for c in df.columns]
        df = self.coerce_numeric(df, source)

        if self.data_cfg.get('drop_duplicates', False):
            before = len(df)
            df = df.drop_duplicates(keep='first')
            removed = before - len(df)
            if removed:
                self.logger.info(f"Removed {removed} duplicate row(s) from {source} table.")

        self.logger.info(f"{source.capitalize()} table loaded. Shape: {df.shape}")
        return df

    @staticmethod
    def normalize_column_name(name: str) -> str:
        """'fixed acidity' -> 'fixed_acidity'; 'Quality' -> 'quality'."""
        name = re.sub(r'[^0-9a-zA-Z]+', '_', str(name).strip().strip('"'))
        return name.strip('_').lower()

    def coerce_numeric(self, df: pd.DataFrame, source: str) -> pd.DataFrame:
        """
        Convert every column to numeric. Values that fail conversion become
        missing; rows holding any missing value are dropped. Coercion failures
        raise a DataCoercionWarning rather than disappearing silently.
        """
        coerced = df.apply(pd.to_numeric, errors='coerce')
        failed = coerced.isna() & df.notna()
        n_failed = int(failed.to_numpy().sum())
        if n_failed:
            bad_cols = failed.sum()
            detail = ", ".join(f"{c}={int(n)}" for c, n in bad_cols[bad_cols > 0].items())
            msg = f"{n_failed} value(s) in the {source} table failed numeric conversion ({detail}); rows dropped."
            self.logger.warning(msg)
            warnings.warn(msg, DataCoercionWarning, stacklevel=2)

        incomplete = coerced.isna().any(axis=1)
        if incomplete.any():
            self.logger.warning(f"Dropping {int(incomplete.sum())} incomplete row(s) from {source} table.")
        return coerced[~incomplete].reset_index(drop=True)

    def merge(self, red: pd.DataFrame, white: pd.DataFrame) -> pd.DataFrame:
        """Stack the two tables and add the type indicator (0 = red, 1 = white)."""
        if list(red.columns) != list(white.columns):
            raise DataValidationError(
                f"Red and white schemas differ: {sorted(set(red.columns) ^ set(white.columns))}"
            )
        red = red.assign(**{constants.TYPE_COLUMN: constants.RED_WINE})
        white = white.assign(**{constants.TYPE_COLUMN: constants.WHITE_WINE})
        merged = pd.concat([red, white], ignore_index=True)

        # Target last, type indicator just before it
        features = [c for c in merged.columns if c not in (self.target, constants.TYPE_COLUMN)]
        ordered = features + [constants.TYPE_COLUMN]
        if self.target in merged.columns:
            ordered.append(self.target)
        merged = merged[ordered]
        self.logger.info(f"Merged tables: {len(red)} red + {len(white)} white = {len(merged)} rows.")
        return merged

    def validate_columns(self, df: pd.DataFrame) -> None:
        """Ensure the target exists, is integral and leaves at least one feature."""
        if df is None or df.empty:
            raise DataValidationError("Dataframe is empty or None.")
        if self.target not in df.columns:
            raise DataValidationError(f"Missing required columns in dataset: ['{self.target}']")
        if len(df.columns) < 2:
            raise DataValidationError("Dataset has no feature columns besides the target.")

        target = df[self.target]
        if not np.allclose(target, np.round(target)):
            raise DataValidationError(f"Target column '{self.target}' must hold integer scores.")

    def validate_nan_inf(self, df: pd.DataFrame) -> pd.DataFrame:
        """Check for infinite values and return per-column statistics."""
        stats = []
        for col in df.columns:
            inf_count = int(np.isinf(df[col]).sum())
            stats.append({
                'column': col,
                'inf_count': inf_count,
                'min': df[col].min(),
                'max': df[col].max(),
                'mean': df[col].mean()
            })
            if inf_count > 0:
                raise DataValidationError(f"Column '{col}' contains {inf_count} infinite values.")

        return pd.DataFrame(stats)

    def derive_quality_label(self, df: pd.DataFrame, threshold: int) -> pd.DataFrame:
        """
        Replace the quality score with a binary label: 1 if quality >= threshold.
        """
        labels = (df[self.target] >= threshold).astype(int)
        counts = labels.value_counts().to_dict()
        self.logger.info(f"Binarised '{self.target}' at >= {threshold}: {counts}")
        return df.assign(**{self.target: labels})

    def summarize(self, dataset: Dataset) -> Tuple[pd.DataFrame, pd.Series]:
        """Per-column descriptive statistics and the target distribution."""
        return dataset.frame.describe().T, dataset.y.value_counts().sort_index()
