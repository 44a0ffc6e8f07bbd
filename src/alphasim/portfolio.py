"""
PortfolioEngine: turns one date's raw signal row into positions and scores it.

Per date, in order:
1. Validity filter: symbols outside the universe are forced to NaN in the grid
2. Decay smoothing: linearly weighted average over the trailing ``decay``
   dates; missing history is skipped and the divisor is the weight actually
   accumulated
3. Grouping: finite smoothed values bucketed by neutralization group
   (one group for market neutralization, otherwise the ``<mode>_t`` group id
   sampled ``delay`` dates earlier; ids that are missing or <= 0 are ungrouped)
4. Neutralization with iterative capping: demean every group (singleton
   groups are untradeable and go to NaN), then clamp positions above
   ``max_stock_weight * gross`` and demean again, at most MAX_CAP_ITERATIONS
   times
5. Scaling: positions rounded to integral dollars of ``book_size`` gross
6. Return: sum(position * close return) / book_size
7. Turnover: sum(|position - previous position|) / book_size / 2

Nothing here raises on bad numbers; missing data propagates as NaN and a date
whose gross exposure is zero leaves return and turnover NaN.
"""

import logging
from typing import Dict, Optional

import numpy as np

from .config import AlphaConfig
from .grid import SignalGrid

logger = logging.getLogger(__name__)

CLOSE_DATA = "close_t"
MAX_CAP_ITERATIONS = 10
CAP_TOLERANCE = 1.01

Groups = Dict[int, np.ndarray]


def round_half_away(values: np.ndarray) -> np.ndarray:
    """Round to the nearest integer, halves away from zero."""
    return np.copysign(np.floor(np.abs(values) + 0.5), values)


class PortfolioEngine:
    """
    Position construction and performance accounting for one alpha.

    State kept between dates is the latest and previous position rows plus
    the per-date return, turnover and gross exposure series.
    """

    def __init__(
        self,
        dr,
        grid: SignalGrid,
        config: AlphaConfig,
        close_data: str = CLOSE_DATA
    ):
        """
        Args:
            dr: DataRegistry (or any object with ``values(name, di)``)
            grid: SignalGrid of the owning alpha
            config: Alpha configuration
            close_data: Close price dataset name
        """
        self.dr = dr
        self.grid = grid
        self.config = config
        self.close_data = close_data

        num_dates, num_symbols = grid.shape
        self.positions = np.full(num_symbols, np.nan)
        self.previous_positions = np.full(num_symbols, np.nan)
        self.returns = np.full(num_dates, np.nan)
        self.turnover = np.full(num_dates, np.nan)
        self.gross_exposure = np.full(num_dates, np.nan)
        self._last_date: Optional[int] = None

    def smooth(self, di: int) -> np.ndarray:
        """
        Apply the validity filter to row ``di`` and return the smoothed signal.

        Symbols outside the universe are set to NaN in the grid itself, so
        later dates never smooth over untradeable history.
        """
        row = self.grid.row(di)
        row[~self.grid.valid_row(di)] = np.nan
        active = ~np.isnan(row)

        decay = self.config.decay
        if decay <= 1:
            return row.copy()

        total = np.zeros(row.shape[0])
        weight = np.zeros(row.shape[0])
        for j in range(decay):
            if di - j < 0:
                break
            past = self.grid.row(di - j)
            present = ~np.isnan(past)
            total[present] += past[present] * (decay - j)
            weight[present] += decay - j

        smoothed = np.full(row.shape[0], np.nan)
        smoothed[active] = total[active] / weight[active]
        return smoothed

    def group(self, di: int, signal: np.ndarray) -> Groups:
        """
        Bucket symbols with a finite signal by neutralization group.

        Returns:
            Mapping of group id to symbol indices, ordered by group id
        """
        eligible = np.isfinite(signal)
        group_data = self.config.neutralization.group_data

        if group_data is None:
            members = np.flatnonzero(eligible)
            return {1: members} if len(members) else {}

        ids = self.dr.values(group_data, di - self.config.delay)
        if ids is None:
            logger.warning(
                f"[PortfolioEngine] {group_data} unavailable for date index "
                f"{di - self.config.delay}; nothing to neutralize on {di}"
            )
            return {}

        with np.errstate(invalid="ignore"):
            eligible &= np.isfinite(ids) & (ids > 0)
        idx = np.flatnonzero(eligible)
        gids, inverse = np.unique(ids[idx].astype(np.int64), return_inverse=True)
        return {int(gid): idx[inverse == k] for k, gid in enumerate(gids)}

    @staticmethod
    def demean(positions: np.ndarray, groups: Groups) -> float:
        """
        Subtract each group's mean in place.

        Singleton groups cannot be neutralized; their member goes to NaN.

        Returns:
            Gross exposure (sum of absolute positions) over all groups
        """
        gross = 0.0
        for members in groups.values():
            if len(members) == 1:
                positions[members] = np.nan
                continue
            positions[members] -= positions[members].mean()
            gross += np.abs(positions[members]).sum()
        return gross

    def neutralize(self, signal: np.ndarray, groups: Groups):
        """
        Neutralize ``signal`` within ``groups`` and enforce the stock weight cap.

        Each pass demeans every group; if a position exceeds
        ``max_stock_weight * gross`` by more than CAP_TOLERANCE, positions above
        the cap are clamped to it (sign kept) and the pass repeats.

        Returns:
            (positions, gross exposure). Ungrouped symbols are NaN.
        """
        positions = np.full(signal.shape[0], np.nan)
        for members in groups.values():
            positions[members] = signal[members]

        gross = 0.0
        max_weight = self.config.max_stock_weight
        for itry in range(MAX_CAP_ITERATIONS + 1):
            gross = self.demean(positions, groups)
            if gross == 0:
                break
            if max_weight <= 0 or itry == MAX_CAP_ITERATIONS:
                break

            cap = max_weight * gross
            finite = np.isfinite(positions)
            magnitude = np.abs(positions[finite])
            if not (magnitude > cap * CAP_TOLERANCE).any():
                break

            over = np.flatnonzero(finite)[magnitude > cap]
            positions[over] = np.copysign(cap, positions[over])
            logger.debug(f"[PortfolioEngine] pass {itry}: clamped {len(over)} positions to {cap:.6g}")

        return positions, gross

    def scale(self, positions: np.ndarray, gross: float) -> np.ndarray:
        """Rescale to ``book_size`` gross and round to whole units."""
        scaled = np.full(positions.shape[0], np.nan)
        finite = np.isfinite(positions)
        scaled[finite] = round_half_away(positions[finite] / gross * self.config.book_size)
        return scaled

    def daily_return(self, di: int, positions: np.ndarray) -> float:
        """P&L of ``positions`` over close[di - 1] -> close[di], per unit of book."""
        close0 = self.dr.values(self.close_data, di)
        close1 = self.dr.values(self.close_data, di - 1)
        if close0 is None or close1 is None:
            logger.warning(f"[PortfolioEngine] {self.close_data} unavailable around date index {di}")
            return np.nan

        with np.errstate(divide="ignore", invalid="ignore"):
            pnl = positions * (close0 / close1 - 1)
        pnl = pnl[np.isfinite(pnl)]
        return float(pnl.sum()) / self.config.book_size

    def daily_turnover(self, positions: np.ndarray, previous: np.ndarray) -> float:
        """Half the absolute position change per unit of book (NaN counts as flat)."""
        change = np.abs(np.nan_to_num(positions) - np.nan_to_num(previous)).sum()
        return float(change) / self.config.book_size / 2

    def calculate(self, di: int) -> bool:
        """
        Build positions for date index ``di`` and record return and turnover.

        Recalculating the most recent date reuses the same previous-position
        row, so repeated calls give identical results.

        Returns:
            True if the date traded (non-zero gross exposure)
        """
        if di != self._last_date:
            self.previous_positions = self.positions
            self._last_date = di
        previous = self.previous_positions

        self.returns[di] = np.nan
        self.turnover[di] = np.nan
        self.gross_exposure[di] = np.nan

        signal = self.smooth(di)
        groups = self.group(di, signal)
        positions, gross = self.neutralize(signal, groups)

        if gross == 0:
            self.positions = positions
            logger.debug(f"[PortfolioEngine] date index {di}: zero gross exposure, not traded")
            return False

        positions = self.scale(positions, gross)
        self.positions = positions
        self.gross_exposure[di] = gross
        self.returns[di] = self.daily_return(di, positions)
        self.turnover[di] = self.daily_turnover(positions, previous)
        return True
