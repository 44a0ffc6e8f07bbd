"""
Report output for simulated alphas.

Each alpha gets a directory under the store path:

    <store_path>/<alpha>/perf.csv      date,return,turnover (traded dates only)
    <store_path>/<alpha>/summary.json  summary statistics

Returns are daily P&L per unit of book size (not compounded), so summary
statistics treat them additively.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

PERF_FILE = "perf.csv"
SUMMARY_FILE = "summary.json"
TRADING_DAYS = 252


class ReportWriter:
    """Writes per-alpha report files under a store directory."""

    def __init__(self, store_path: Union[str, Path]):
        """
        Args:
            store_path: Base directory; created if absent
        """
        self.store_path = Path(store_path)
        self.store_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"[ReportWriter] Initialized with store_path: {self.store_path}")

    def alpha_dir(self, name: str) -> Path:
        path = self.store_path / name
        path.mkdir(parents=True, exist_ok=True)
        return path

    def write_perf(self, name: str, report: pd.DataFrame) -> Path:
        """
        Write ``perf.csv`` for one alpha.

        Floats are written at full double precision.

        Returns:
            Path of the written file
        """
        path = self.alpha_dir(name) / PERF_FILE
        report[["date", "return", "turnover"]].to_csv(path, index=False)
        logger.info(f"[ReportWriter] Wrote {path}: {len(report)} rows")
        return path

    def write_summary(self, name: str, summary: Dict[str, Any]) -> Path:
        """Write ``summary.json`` for one alpha (sorted keys)."""
        path = self.alpha_dir(name) / SUMMARY_FILE
        with open(path, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2, sort_keys=True)
        logger.debug(f"[ReportWriter] Wrote {path}")
        return path


def compute_summary(report: pd.DataFrame) -> Dict[str, Any]:
    """
    Summary statistics of a perf report.

    Returns dict with:
    - annual_return: mean daily return * 252
    - vol: annualized volatility of daily returns
    - sharpe: annual_return / vol
    - max_drawdown: largest peak-to-trough fall of cumulative return
    - hit_rate: fraction of positive days
    - avg_turnover: mean daily turnover
    - n_days, first_date, last_date
    """
    if report.empty:
        return {
            'annual_return': 0.0,
            'vol': 0.0,
            'sharpe': 0.0,
            'max_drawdown': 0.0,
            'hit_rate': 0.0,
            'avg_turnover': 0.0,
            'n_days': 0,
            'first_date': None,
            'last_date': None,
        }

    returns = report['return'].astype(float)
    annual_return = returns.mean() * TRADING_DAYS
    vol = returns.std(ddof=1) * np.sqrt(TRADING_DAYS) if len(returns) > 1 else 0.0
    sharpe = annual_return / vol if vol > 0 else 0.0

    cumulative = returns.cumsum()
    running_max = np.maximum(cumulative.expanding().max(), 0.0)
    max_drawdown = (cumulative - running_max).min()

    return {
        'annual_return': float(annual_return),
        'vol': float(vol),
        'sharpe': float(sharpe),
        'max_drawdown': float(min(max_drawdown, 0.0)),
        'hit_rate': float((returns > 0).mean()),
        'avg_turnover': float(report['turnover'].astype(float).mean()),
        'n_days': int(len(report)),
        'first_date': int(report['date'].iloc[0]),
        'last_date': int(report['date'].iloc[-1]),
    }
