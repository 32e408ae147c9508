import inspect
from typing import Dict, Any, List, Optional

from sklearn.ensemble import (
    RandomForestRegressor,
    RandomForestClassifier,
    GradientBoostingRegressor,
    GradientBoostingClassifier,
)
from sklearn.neighbors import KNeighborsRegressor, KNeighborsClassifier
from sklearn.linear_model import LinearRegression, LogisticRegression
from sklearn.svm import SVR, SVC
from sklearn.tree import DecisionTreeRegressor, DecisionTreeClassifier
from sklearn.pipeline import Pipeline, make_pipeline
from sklearn.preprocessing import SplineTransformer, StandardScaler

from modules.model_factory.model_spec import ModelSpec
from utils import constants
from utils.exceptions import ConfigurationError

class ModelFactory:
    """
    Factory for creating scikit-learn estimators from a ModelSpec.
    The neural-net family is trained by its own adapter and is not built here.
    """

    # (family, task) -> estimator class
    ESTIMATORS = {
        (constants.LINEAR_REGRESSION, constants.REGRESSION): LinearRegression,
        (constants.LINEAR_REGRESSION, constants.CLASSIFICATION): LogisticRegression,
        (constants.RANDOM_FOREST, constants.REGRESSION): RandomForestRegressor,
        (constants.RANDOM_FOREST, constants.CLASSIFICATION): RandomForestClassifier,
        (constants.GRADIENT_BOOSTING, constants.REGRESSION): GradientBoostingRegressor,
        (constants.GRADIENT_BOOSTING, constants.CLASSIFICATION): GradientBoostingClassifier,
        (constants.SVM_RADIAL, constants.REGRESSION): SVR,
        (constants.SVM_RADIAL, constants.CLASSIFICATION): SVC,
        (constants.KNN, constants.REGRESSION): KNeighborsRegressor,
        (constants.KNN, constants.CLASSIFICATION): KNeighborsClassifier,
        (constants.DECISION_TREE, constants.REGRESSION): DecisionTreeRegressor,
        (constants.DECISION_TREE, constants.CLASSIFICATION): DecisionTreeClassifier,
        (constants.REGRESSION_SPLINE, constants.REGRESSION): LinearRegression,
    }

    # Distance/kernel based families (and the logistic variant) are fitted on standardised inputs
    SCALED_FAMILIES = {constants.SVM_RADIAL, constants.KNN}

    # Fixed estimator settings per family, overridable through spec params
    FAMILY_DEFAULTS = {
        constants.SVM_RADIAL: {'kernel': 'rbf'},
        constants.LINEAR_REGRESSION: {'max_iter': 1000},
    }

    SPLINE_PARAMS = ('n_knots', 'degree', 'knots', 'extrapolation', 'include_bias')

    @classmethod
    def create(cls, spec: ModelSpec, seed: Optional[int] = None) -> Any:
        """
        Create and return an unfitted estimator for `spec`.

        Args:
            spec: Model family, task and hyperparameters.
            seed: Injected as random_state where the estimator accepts one,
                unless the spec sets random_state itself.
        """
        key = (spec.family, spec.task)
        if key not in cls.ESTIMATORS:
            raise ConfigurationError(
                f"No estimator for family '{spec.family}' with task '{spec.task}'. "
                f"Available: {cls.get_available_models()}"
            )
        model_class = cls.ESTIMATORS[key]

        params = {**cls.FAMILY_DEFAULTS.get(spec.family, {}), **dict(spec.params)}
        if seed is not None:
            params.setdefault('random_state', seed)

        if spec.family == constants.REGRESSION_SPLINE:
            spline_params = {k: params.pop(k) for k in cls.SPLINE_PARAMS if k in params}
            spline = SplineTransformer(**spline_params)
            return make_pipeline(spline, model_class(**cls._filter_params(model_class, params)))

        estimator = model_class(**cls._filter_params(model_class, params))
        if spec.family in cls.SCALED_FAMILIES or model_class is LogisticRegression:
            return make_pipeline(StandardScaler(), estimator)
        return estimator

    @classmethod
    def get_available_models(cls) -> List[str]:
        """Return list of all supported 'family/task' pairs, the neural net included."""
        models = [f"{family}/{task}" for family, task in cls.ESTIMATORS]
        models += [f"{constants.NEURAL_NET}/{task}" for task in constants.TASKS]
        return models

    @staticmethod
    def final_estimator(model: Any) -> Any:
        """Unwrap a pipeline to its last step."""
        if isinstance(model, Pipeline):
            return model.steps[-1][1]
        return model

    @staticmethod
    def _filter_params(model_class, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Remove parameters from `params` that are not accepted by `model_class` constructor.
        """
        sig = inspect.signature(model_class.__init__)

        valid_keys = [
            p.name for p in sig.parameters.values()
            if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
        ]

        # Always allow **kwargs if the model supports it
        has_kwargs = any(p.kind == p.VAR_KEYWORD for p in sig.parameters.values())

        if has_kwargs:
            return params

        return {k: v for k, v in params.items() if k in valid_keys}
