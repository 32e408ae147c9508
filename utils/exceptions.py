"""
Custom exception hierarchy for the Wine Quality CV Pipeline.
"""

class WineMLException(Exception):
    """Base exception for all system errors."""
    pass

class ConfigurationError(WineMLException):
    """Configuration validation failed."""
    pass

class DataValidationError(WineMLException):
    """Data validation failed."""
    pass

class InvalidFoldCount(ConfigurationError):
    """Fold count outside 2 <= k <= n_rows."""
    pass

class FeatureSetExhausted(ConfigurationError):
    """Elimination requested with fewer than 2 features remaining."""
    pass

class FoldEvaluationError(WineMLException):
    """Failure local to a single (fold, model) pair. Recorded, never fatal to the run."""
    pass

class InsufficientClassLevels(FoldEvaluationError):
    """Classification training fold holds fewer than 2 distinct target levels."""
    pass

class SchemaMismatch(FoldEvaluationError):
    """Feature columns do not match the columns the model was trained on."""
    pass

class ModelTrainingError(FoldEvaluationError):
    """Model training failed."""
    pass

class DataCoercionWarning(UserWarning):
    """A value failed numeric conversion and its row was dropped."""
    pass
