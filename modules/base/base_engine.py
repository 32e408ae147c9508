import abc
import logging
from typing import Dict, Any

DEFAULT_SEED = 42

class BaseEngine(abc.ABC):
    """
    Abstract base class for all processing engines.

    Provides common functionality for:
    - Configuration and logger attachment.
    - Access to the propagated component seeds and the worker-pool size.
    """

    def __init__(self, config: Dict[str, Any], logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.n_jobs = self.config.get('execution', {}).get('n_jobs', 1)

    def seed_for(self, component: str) -> int:
        """
        Seed for a named component ('split', 'model', 'nn').
        Falls back to the master cv seed when seeds were not propagated.
        """
        internal = self.config.get('_internal_seeds', {})
        if component in internal:
            return internal[component]
        return self.config.get('cv', {}).get('seed', DEFAULT_SEED)

    @abc.abstractmethod
    def execute(self, *args, **kwargs) -> Any:
        """
        Main execution method for the engine.
        This must be implemented by all subclasses.
        """
        pass
