import logging
from typing import Optional, Tuple

from utils.exceptions import FeatureSetExhausted


class StoppingCriteria:
    """
    Decides when the elimination loop ends.

    The loop is terminal once the active subset is down to `min_features`.
    Elimination from fewer than 2 features is never possible, so a
    `min_features` below 1 can never be reached and is rejected.
    """

    def __init__(self, config: dict, logger: logging.Logger, min_features: Optional[int] = None):
        self.config = config
        self.logger = logger

        self.fs_config = config.get('feature_selection', {})
        self.min_features = min_features if min_features is not None else self.fs_config.get('min_features', 1)

    def validate(self, n_features: int) -> None:
        """Reject a run that would have to eliminate below a single feature."""
        if self.min_features < 1:
            raise FeatureSetExhausted(
                f"min_features={self.min_features} asks for elimination down to no features; "
                "at least 2 features are needed to eliminate one."
            )
        if n_features < 1:
            raise FeatureSetExhausted("No features to evaluate.")

    def should_stop(self, n_features: int) -> Tuple[bool, str]:
        """
        Returns:
            (bool, reason_string)
        """
        if n_features <= self.min_features:
            return True, f"Minimum feature count reached ({self.min_features})"
        if n_features < 2:
            raise FeatureSetExhausted(f"Cannot eliminate from {n_features} feature(s).")
        return False, ""

    def n_steps(self, n_features: int) -> int:
        """Number of evaluated steps for a run starting at `n_features`."""
        return max(n_features - max(self.min_features, 1), 0) + 1
