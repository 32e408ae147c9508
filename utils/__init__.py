"""
Utility package setup.

Enables pandas Copy-on-Write globally so Dataset views handed to concurrent
fold tasks never share mutable buffers.
"""

import pandas as pd

# Reduce implicit copies across the pipeline.
pd.options.mode.copy_on_write = True
