"""
SignalGrid: dense date x symbol store of raw signal values and validity flags.
"""

import numpy as np


class SignalGrid:
    """
    Owned, contiguous (num_dates, num_symbols) buffers.

    ``values`` starts as NaN and ``valid`` as False. Rows are handed out as
    numpy views so a generation routine can fill a date in place.
    """

    def __init__(self, num_dates: int, num_symbols: int):
        if num_dates <= 0 or num_symbols <= 0:
            raise ValueError(
                f"SignalGrid needs a positive shape, got ({num_dates}, {num_symbols})"
            )
        self.values = np.full((num_dates, num_symbols), np.nan, dtype=np.float64)
        self.valid = np.zeros((num_dates, num_symbols), dtype=bool)

    @property
    def shape(self):
        return self.values.shape

    @property
    def num_dates(self) -> int:
        return self.values.shape[0]

    @property
    def num_symbols(self) -> int:
        return self.values.shape[1]

    def row(self, di: int) -> np.ndarray:
        """Writable view of the raw signal row for date index ``di``."""
        return self.values[di]

    def valid_row(self, di: int) -> np.ndarray:
        """Writable view of the universe mask for date index ``di``."""
        return self.valid[di]
