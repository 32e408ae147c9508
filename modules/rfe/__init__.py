"""
Recursive Feature Elimination (RFE) Module.

This package contains the backward elimination loop, including:
- FeatureSelector: Orchestrates the step-by-step elimination.
- FeatureEvaluator: Cross-validates the ranking model on one subset.
- StoppingCriteria: Decides when the loop is terminal.
- RFEResult / FeatureRanking: Step history, best subset and ranking.
"""

from .feature_selector import FeatureSelector
from .feature_evaluator import FeatureEvaluator
from .stopping_criteria import StoppingCriteria
from .rfe_result import FeatureRanking, RFEResult, RFEStep

__all__ = [
    'FeatureSelector',
    'FeatureEvaluator',
    'StoppingCriteria',
    'FeatureRanking',
    'RFEResult',
    'RFEStep',
]
