"""
Moving-average trend: distance of the fast average above the slow one.

Options:
    fast  fast window in days (default 10)
    slow  slow window in days (default 50)
"""

import warnings

import numpy as np

close = dr.get_data("close_t").to_numpy(dtype=float)
fast = int(params.get("fast", 10))
slow = int(params.get("slow", 50))


def generate(di, alpha):
    d = di - delay
    if d + 1 < slow:
        return
    with warnings.catch_warnings():
        # symbols without any price in the window give NaN
        warnings.simplefilter("ignore", RuntimeWarning)
        fast_ma = np.nanmean(close[:, d + 1 - fast:d + 1], axis=1)
        slow_ma = np.nanmean(close[:, d + 1 - slow:d + 1], axis=1)
        alpha[:] = fast_ma / slow_ma - 1
