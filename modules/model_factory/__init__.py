from .model_factory import ModelFactory
from .model_spec import ModelSpec

__all__ = ['ModelFactory', 'ModelSpec']
