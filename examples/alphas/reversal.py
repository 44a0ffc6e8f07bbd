"""
Short-term reversal: short recent winners, buy recent losers.

Options:
    window  lookback in days (default 5)
"""

import numpy as np

# Injected by the engine before import: name, dr, params, valid, delay, decay
close = dr.get_data("close_t").to_numpy(dtype=float)
window = int(params.get("window", 5))


def generate(di, alpha):
    d = di - delay
    if d - window < 0:
        return
    with np.errstate(divide="ignore", invalid="ignore"):
        ret = close[:, d] / close[:, d - window] - 1
    alpha[:] = -ret
