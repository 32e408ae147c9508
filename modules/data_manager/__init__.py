"""
Data Manager Module
===================

Responsibility:
- Loading of the red and white wine CSV files.
- Numeric coercion with DataCoercionWarning on dropped rows.
- Merging into one Dataset with a wine type indicator.
"""

from .data_manager import DataManager
from .dataset import Dataset

__all__ = ['DataManager', 'Dataset']
