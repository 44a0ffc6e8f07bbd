"""
UniverseSelector: marks the tradable symbols of an alpha on each date.

The universe on date ``di`` is the top ``universe`` symbols ranked by the
liquidity dataset sampled ``delay`` dates earlier. Ranking is descending and
stable, so equal liquidity keeps the lower symbol index first. Symbols with
missing liquidity are never selected.
"""

import logging

import numpy as np

from .grid import SignalGrid

logger = logging.getLogger(__name__)

LIQUIDITY_DATA = "adv60_t"


class UniverseSelector:
    """Liquidity-ranked universe mask writer for one alpha."""

    def __init__(
        self,
        dr,
        grid: SignalGrid,
        universe: int,
        delay: int,
        liquidity_data: str = LIQUIDITY_DATA
    ):
        """
        Args:
            dr: DataRegistry (or any object with ``values(name, di)``)
            grid: SignalGrid whose ``valid`` rows are written
            universe: Maximum number of tradable symbols per date
            delay: Lag applied to the liquidity lookup
            liquidity_data: Liquidity dataset name
        """
        self.dr = dr
        self.grid = grid
        self.universe = universe
        self.delay = delay
        self.liquidity_data = liquidity_data

    def rank(self, liquidity: np.ndarray) -> np.ndarray:
        """
        Symbol indices of the selected universe, most liquid first.

        Args:
            liquidity: Liquidity cross section (NaN = missing)

        Returns:
            At most ``universe`` indices
        """
        liquidity = np.asarray(liquidity, dtype=np.float64)
        present = np.flatnonzero(~np.isnan(liquidity))
        order = np.argsort(-liquidity[present], kind="stable")
        return present[order[:self.universe]]

    def update_valid(self, di: int) -> int:
        """
        Write the universe mask for date index ``di``.

        Args:
            di: Date index

        Returns:
            Number of symbols marked valid
        """
        valid = self.grid.valid_row(di)
        valid[:] = False

        liquidity = self.dr.values(self.liquidity_data, di - self.delay)
        if liquidity is None:
            logger.warning(
                f"[UniverseSelector] {self.liquidity_data} unavailable for date index "
                f"{di - self.delay}; no tradable symbols on {di}"
            )
            return 0

        selected = self.rank(liquidity)
        valid[selected] = True
        return len(selected)
