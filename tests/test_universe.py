"""
Tests for UniverseSelector

Test suite validates:
1. Top-N selection by lagged liquidity
2. Stable tie-break on symbol order
3. Missing liquidity never selected
4. Missing liquidity dataset yields an empty universe
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from alphasim.grid import SignalGrid
from alphasim.universe import UniverseSelector, LIQUIDITY_DATA

from helpers import MockDataRegistry


def make_selector(liquidity, universe, delay=1):
    """Selector over a (num_symbols, num_dates) liquidity table."""
    liquidity = np.asarray(liquidity, dtype=float)
    num_symbols, num_dates = liquidity.shape
    dr = MockDataRegistry({LIQUIDITY_DATA: liquidity})
    grid = SignalGrid(num_dates, num_symbols)
    return UniverseSelector(dr, grid, universe=universe, delay=delay)


class TestUniverseSelection:
    """Test liquidity ranking."""

    def test_selects_most_liquid(self):
        liquidity = np.array([[5.0, 7.0, 1.0, 9.0, 3.0]]).T
        selector = make_selector(np.hstack([liquidity, liquidity]), universe=2)

        assert selector.update_valid(1) == 2
        np.testing.assert_array_equal(selector.grid.valid[1], [False, True, False, True, False])

    def test_ties_keep_symbol_order(self):
        column = np.array([5.0, np.nan, 7.0, 5.0, 1.0])
        liquidity = np.column_stack([column, column])

        selector = make_selector(liquidity, universe=2)
        selector.update_valid(1)
        np.testing.assert_array_equal(np.flatnonzero(selector.grid.valid[1]), [0, 2])

        np.testing.assert_array_equal(selector.rank(column), [2, 0])
        np.testing.assert_array_equal(make_selector(liquidity, universe=3).rank(column), [2, 0, 3])

    def test_count_capped_by_non_missing(self):
        column = np.array([5.0, np.nan, 7.0, np.nan, 1.0])
        selector = make_selector(np.column_stack([column, column]), universe=10)

        assert selector.update_valid(1) == 3
        assert not selector.grid.valid[1, 1]
        assert not selector.grid.valid[1, 3]

    def test_zero_universe_selects_nothing(self):
        column = np.array([5.0, 7.0])
        selector = make_selector(np.column_stack([column, column]), universe=0)

        assert selector.update_valid(1) == 0
        assert not selector.grid.valid[1].any()

    def test_uses_delayed_liquidity(self):
        liquidity = np.array([
            [1.0, 1.0, 9.0],
            [9.0, 9.0, 1.0],
        ])
        selector = make_selector(liquidity, universe=1, delay=2)

        selector.update_valid(2)

        # date index 0 ranks symbol 1 first, not date index 2
        np.testing.assert_array_equal(selector.grid.valid[2], [False, True])
        assert (LIQUIDITY_DATA, 0) in selector.dr.calls

    def test_rewrite_resets_row(self):
        liquidity = np.array([
            [9.0, 1.0],
            [1.0, 9.0],
        ])
        selector = make_selector(liquidity, universe=1, delay=0)
        selector.grid.valid[1] = True

        selector.update_valid(1)

        np.testing.assert_array_equal(selector.grid.valid[1], [False, True])

    def test_missing_dataset_selects_nothing(self):
        dr = MockDataRegistry({"close_t": np.ones((3, 2))})
        grid = SignalGrid(2, 3)
        selector = UniverseSelector(dr, grid, universe=3, delay=1)

        assert selector.update_valid(1) == 0
        assert not grid.valid[1].any()

    def test_other_dates_untouched(self):
        column = np.array([5.0, 7.0, 1.0])
        selector = make_selector(np.column_stack([column] * 4), universe=2)

        selector.update_valid(2)

        assert not selector.grid.valid[1].any()
        assert not selector.grid.valid[3].any()
        assert selector.grid.valid[2].sum() == 2
