"""
Build a synthetic dataset cache for the example configuration.

Writes <out_dir>/{date,symbol,close_t,adv60_t,sector_t,industry_t,subindustry_t}.par
with random-walk prices, a persistent liquidity ranking and nested group ids.

Usage:
    python examples/make_synthetic_cache.py data/cache --dates 500 --symbols 400
"""

import argparse
import logging
from pathlib import Path

import numpy as np
import pandas as pd

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _wide(values: np.ndarray, dates: pd.DatetimeIndex) -> pd.DataFrame:
    """symbols x dates table with one string column per date."""
    return pd.DataFrame(values.T, columns=[d.strftime('%Y%m%d') for d in dates])


def build_cache(out_dir: Path, n_dates: int = 500, n_symbols: int = 400, seed: int = 42) -> None:
    """
    Write a synthetic cache.

    Args:
        out_dir: Destination directory (created if absent)
        n_dates: Number of business days
        n_symbols: Number of symbols
        seed: Random seed for reproducibility
    """
    rng = np.random.default_rng(seed)
    out_dir.mkdir(parents=True, exist_ok=True)

    dates = pd.bdate_range(start='2020-01-01', periods=n_dates)
    symbols = [f'SYM{i:04d}' for i in range(n_symbols)]

    # Prices: random walk with a small per-symbol drift, a few late listings
    drift = rng.normal(0.0002, 0.0005, n_symbols)
    returns = rng.normal(0.0, 0.02, (n_dates, n_symbols)) + drift
    close = 50.0 * np.exp(np.cumsum(returns, axis=0))
    listing = rng.integers(0, n_dates // 4, n_symbols) * (rng.random(n_symbols) < 0.1)
    for i, first in enumerate(listing):
        close[:first, i] = np.nan

    # Liquidity: persistent size factor times noise
    size = rng.lognormal(15, 1.5, n_symbols)
    adv = size * rng.lognormal(0, 0.2, (n_dates, n_symbols))
    adv[np.isnan(close)] = np.nan

    # Groups: 10 sectors, 3 industries per sector, 2 sub-industries per industry
    subindustry = rng.integers(1, 61, n_symbols)
    industry = (subindustry + 1) // 2
    sector = (industry + 2) // 3
    ones = np.ones((n_dates, 1), dtype=np.int64)

    tables = {
        'date': pd.DataFrame({'date': [int(d.strftime('%Y%m%d')) for d in dates]}),
        'symbol': pd.DataFrame({'symbol': symbols}),
        'close_t': _wide(close, dates),
        'adv60_t': _wide(adv, dates),
        'sector_t': _wide(ones * sector, dates),
        'industry_t': _wide(ones * industry, dates),
        'subindustry_t': _wide(ones * subindustry, dates),
    }
    for name, df in tables.items():
        path = out_dir / f'{name}.par'
        df.to_parquet(path, index=False, engine='pyarrow')
        logger.info(f"Wrote {path} {df.shape}")


def main():
    parser = argparse.ArgumentParser(description="Build a synthetic alpha-sim dataset cache")
    parser.add_argument("out_dir", type=str, help="Cache directory to write")
    parser.add_argument("--dates", type=int, default=500, help="Number of business days")
    parser.add_argument("--symbols", type=int, default=400, help="Number of symbols")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()
    build_cache(Path(args.out_dir), args.dates, args.symbols, args.seed)


if __name__ == "__main__":
    main()
