"""
Training Engine Module
======================

Responsibility:
- Uniform fit / predict / importance contract over every model family.
- Capability checks (task support, importance support) per family.
- Input validation: target and feature columns, class levels per fold.
- Neural-net training with early stopping and epoch history.
"""

from .model_adapter import (
    CAPABILITIES,
    Capabilities,
    ModelAdapter,
    SklearnModelAdapter,
    TrainedModel,
    get_adapter,
)

__all__ = [
    'CAPABILITIES',
    'Capabilities',
    'ModelAdapter',
    'SklearnModelAdapter',
    'TrainedModel',
    'get_adapter',
]
