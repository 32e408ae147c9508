import abc
import time
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd

from modules.data_manager.dataset import Dataset
from modules.model_factory import ModelFactory, ModelSpec
from utils import constants
from utils.exceptions import (
    ConfigurationError,
    InsufficientClassLevels,
    ModelTrainingError,
    SchemaMismatch,
    WineMLException,
)

Table = Union[Dataset, pd.DataFrame]


@dataclass(frozen=True)
class Capabilities:
    regression: bool = True
    classification: bool = True
    importance: bool = False

    def supports_task(self, task: str) -> bool:
        return self.regression if task == constants.REGRESSION else self.classification


# Capability set per model family
CAPABILITIES = {
    constants.LINEAR_REGRESSION: Capabilities(importance=True),
    constants.RANDOM_FOREST: Capabilities(importance=True),
    constants.GRADIENT_BOOSTING: Capabilities(importance=True),
    constants.DECISION_TREE: Capabilities(importance=True),
    constants.SVM_RADIAL: Capabilities(),
    constants.KNN: Capabilities(),
    constants.NEURAL_NET: Capabilities(),
    constants.REGRESSION_SPLINE: Capabilities(classification=False),
}


@dataclass
class TrainedModel:
    """
    Opaque fitted state. Only the adapter that produced it may predict with it.
    """
    spec: ModelSpec
    estimator: Any
    feature_names: List[str]
    classes: Optional[List[Any]] = None
    history: Optional[Any] = None
    extras: Dict[str, Any] = field(default_factory=dict)
    training_time_sec: float = 0.0


def _frame_of(table: Table) -> pd.DataFrame:
    return table.frame if isinstance(table, Dataset) else table


class ModelAdapter(abc.ABC):
    """
    Uniform fit/predict contract over every model family.

    Subclasses implement `_fit_estimator` and `_predict_estimator`; input
    validation, class-level checks and error wrapping live here so every
    family fails the same way.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.seed = config.get('_internal_seeds', {}).get('model', config.get('cv', {}).get('seed'))

    @staticmethod
    def capabilities(spec: ModelSpec) -> Capabilities:
        return CAPABILITIES[spec.family]

    def supports_importance(self, spec: ModelSpec) -> bool:
        return self.capabilities(spec).importance

    def fit(self, train_table: Table, target_column: str, spec: ModelSpec) -> TrainedModel:
        """
        Fit `spec` on `train_table`.

        Raises:
            SchemaMismatch: target column absent or no feature columns.
            InsufficientClassLevels: classification fold with < 2 target levels.
            ConfigurationError: family cannot handle the spec's task.
            ModelTrainingError: the underlying estimator failed.
        """
        if not self.capabilities(spec).supports_task(spec.task):
            raise ConfigurationError(f"Model family '{spec.family}' does not support task '{spec.task}'.")

        frame = _frame_of(train_table)
        if target_column not in frame.columns:
            raise SchemaMismatch(f"Target column '{target_column}' not found in training table.")

        if isinstance(train_table, Dataset):
            features = [f for f in train_table.features if f != target_column]
        else:
            features = [c for c in frame.columns if c != target_column]
        if not features:
            raise SchemaMismatch("Training table has no feature columns.")

        X = frame[features]
        y = frame[target_column]

        classes = None
        if spec.is_classification:
            classes = sorted(pd.unique(y).tolist())
            if len(classes) < 2:
                raise InsufficientClassLevels(
                    f"{spec.name}: training fold holds {len(classes)} distinct target level(s) {classes}; "
                    "classification needs at least 2."
                )

        start_time = time.time()
        try:
            estimator, history, extras = self._fit_estimator(X, y, spec)
        except WineMLException:
            raise
        except Exception as e:
            raise ModelTrainingError(f"Failed to train {spec.name}: {str(e)}") from e
        duration = time.time() - start_time

        self.logger.debug(f"Trained {spec.name} on {len(X)} rows x {len(features)} features in {duration:.2f}s.")
        return TrainedModel(
            spec=spec,
            estimator=estimator,
            feature_names=features,
            classes=classes,
            history=history,
            extras=extras,
            training_time_sec=duration,
        )

    def predict(self, trained_model: TrainedModel, eval_table: Table) -> pd.Series:
        """
        Predict for every row of `eval_table`, resolving feature columns by name.

        Raises:
            SchemaMismatch: a training feature column is missing from eval_table.
        """
        frame = _frame_of(eval_table)
        missing = [f for f in trained_model.feature_names if f not in frame.columns]
        if missing:
            raise SchemaMismatch(f"Missing features required by the model: {missing}")

        X = frame[trained_model.feature_names]
        try:
            preds = self._predict_estimator(trained_model, X)
        except WineMLException:
            raise
        except Exception as e:
            raise ModelTrainingError(f"Prediction failed for {trained_model.spec.name}: {e}") from e
        return pd.Series(np.asarray(preds), index=frame.index, name=trained_model.spec.name)

    def importance(self, trained_model: TrainedModel) -> pd.Series:
        """Importance score per training feature (higher = more important)."""
        spec = trained_model.spec
        if not self.supports_importance(spec):
            raise ConfigurationError(f"Model family '{spec.family}' does not provide importance scores.")
        scores = self._importance(trained_model)
        return pd.Series(np.asarray(scores, dtype=float), index=trained_model.feature_names, name='importance')

    @abc.abstractmethod
    def _fit_estimator(self, X: pd.DataFrame, y: pd.Series, spec: ModelSpec):
        """Return (estimator, history or None, extras dict)."""
        raise NotImplementedError

    @abc.abstractmethod
    def _predict_estimator(self, trained_model: TrainedModel, X: pd.DataFrame) -> np.ndarray:
        raise NotImplementedError

    def _importance(self, trained_model: TrainedModel) -> np.ndarray:
        raise NotImplementedError


class SklearnModelAdapter(ModelAdapter):
    """Adapter for every scikit-learn backed family."""

    def _fit_estimator(self, X: pd.DataFrame, y: pd.Series, spec: ModelSpec):
        model = ModelFactory.create(spec, seed=self.seed)
        model.fit(X, y)
        extras = {'feature_std': X.std(ddof=0).to_numpy()}
        return model, None, extras

    def _predict_estimator(self, trained_model: TrainedModel, X: pd.DataFrame) -> np.ndarray:
        return trained_model.estimator.predict(X)

    def _importance(self, trained_model: TrainedModel) -> np.ndarray:
        estimator = ModelFactory.final_estimator(trained_model.estimator)

        if hasattr(estimator, 'feature_importances_'):
            return estimator.feature_importances_

        coef = np.atleast_2d(estimator.coef_)
        magnitude = np.abs(coef).mean(axis=0)
        if trained_model.spec.is_classification:
            # Logistic variant is fitted on standardised inputs already
            return magnitude
        # Standardised coefficient so the score does not depend on feature units
        return magnitude * trained_model.extras['feature_std']


def get_adapter(spec: ModelSpec, config: dict, logger: logging.Logger) -> ModelAdapter:
    """Adapter instance for the spec's family."""
    if spec.family == constants.NEURAL_NET:
        from modules.training_engine.neural_net import NeuralNetAdapter
        return NeuralNetAdapter(config, logger)
    return SklearnModelAdapter(config, logger)
