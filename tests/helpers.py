"""
Shared test doubles for alpha-sim tests.

MockDataRegistry serves in-memory wide tables (symbols x dates) through the
same ``values``/``dates``/``num_dates``/``num_symbols`` surface as
DataRegistry, without touching disk.
"""

import numpy as np
import pandas as pd


class MockDataRegistry:
    """In-memory stand-in for DataRegistry."""

    def __init__(self, data: dict, num_dates: int = None, num_symbols: int = None, dates=None):
        """
        Args:
            data: dataset name -> array-like shaped (num_symbols, num_dates)
            num_dates: Calendar length (default: from the first dataset)
            num_symbols: Symbol count (default: from the first dataset)
            dates: Calendar values (default: 20200101, 20200102, ...)
        """
        self.data = {name: np.asarray(v, dtype=float) for name, v in data.items()}
        first = next(iter(self.data.values()), None)
        self._num_symbols = num_symbols if num_symbols is not None else first.shape[0]
        self._num_dates = num_dates if num_dates is not None else first.shape[1]
        if dates is None:
            dates = 20200101 + np.arange(self._num_dates)
        self._dates = np.asarray(dates, dtype=np.int64)
        self.calls = []

    def values(self, name, di, dtype=float):
        self.calls.append((name, di))
        arr = self.data.get(name)
        if arr is None or di < 0 or di >= arr.shape[1]:
            return None
        return arr[:, di].astype(dtype)

    def get_data(self, name):
        arr = self.data.get(name)
        if arr is None:
            return None
        return pd.DataFrame(arr)

    def has(self, name):
        return name in self.data

    def dates(self):
        return self._dates

    @property
    def num_dates(self):
        return self._num_dates

    @property
    def num_symbols(self):
        return self._num_symbols


def constant_columns(column, num_dates):
    """Repeat one cross section for every date -> (num_symbols, num_dates)."""
    column = np.asarray(column, dtype=float)
    return np.tile(column[:, None], (1, num_dates))
