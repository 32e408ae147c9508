from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from utils import constants
from utils.exceptions import ConfigurationError


@dataclass(frozen=True)
class ModelSpec:
    """
    Immutable description of one model variant under test.

    `family` picks the estimator, `task` picks regression or classification,
    `params` holds hyperparameters and `name` is the model id used to key
    results (defaults to "family/task").
    """
    family: str
    task: str = constants.REGRESSION
    params: Dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None

    def __post_init__(self):
        if self.family not in constants.MODEL_FAMILIES:
            raise ConfigurationError(
                f"Unknown model family: {self.family}. Available: {constants.MODEL_FAMILIES}"
            )
        if self.task not in constants.TASKS:
            raise ConfigurationError(f"Unknown task '{self.task}'. Available: {constants.TASKS}")
        # Private copy so callers cannot change a spec after construction
        object.__setattr__(self, 'params', dict(self.params))
        if not self.name:
            object.__setattr__(self, 'name', f"{self.family}/{self.task}")

    def __hash__(self):
        return hash((self.family, self.task, self.name))

    @property
    def is_classification(self) -> bool:
        return self.task == constants.CLASSIFICATION

    @classmethod
    def from_dict(cls, entry: Dict[str, Any]) -> "ModelSpec":
        return cls(
            family=entry['family'],
            task=entry.get('task', constants.REGRESSION),
            params=entry.get('params', {}),
            name=entry.get('name'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'family': self.family, 'task': self.task, 'params': dict(self.params), 'name': self.name}
