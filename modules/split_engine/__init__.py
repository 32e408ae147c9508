"""
Split Engine Module
===================

Responsibility:
- Seeded contiguous and stratified k-fold partitioning.
- Fold balance reporting.
"""

from .fold_partitioner import FoldAssignment, partition
from .split_engine import SplitEngine

__all__ = ['FoldAssignment', 'partition', 'SplitEngine']
