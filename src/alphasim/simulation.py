"""
Simulation: steps a named collection of alphas through a shared calendar.

For each date index 1..num_dates-1 and each alpha (sorted by name), past its
warm-up, the alpha runs universe selection, generation and position
calculation in that order. Alphas never read each other's state; with
``workers > 1`` the alphas of one date run concurrently and the loop waits
for all of them before moving to the next date, so every alpha still sees
its own dates strictly in order.

After the last date each alpha's report is returned and, when a store path
is configured, written to ``<store_path>/<alpha>/perf.csv``.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd

from .alpha import Alpha
from .config import SimulationSettings
from .report import ReportWriter, compute_summary

logger = logging.getLogger(__name__)


class Simulation:
    """Driver owning every alpha of one run."""

    def __init__(
        self,
        dr,
        store_path: Optional[Union[str, Path]] = None,
        workers: int = 1
    ):
        """
        Initialize Simulation.

        Args:
            dr: DataRegistry shared by all alphas
            store_path: Report directory (None: don't write files)
            workers: Number of alphas evaluated concurrently per date
        """
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")

        self.dr = dr
        self.store_path = Path(store_path) if store_path is not None else None
        self.workers = workers
        self.alphas: Dict[str, Alpha] = {}

        logger.info(f"[Simulation] Initialized: store_path={self.store_path}, workers={self.workers}")

    @classmethod
    def from_settings(cls, settings: SimulationSettings, dr) -> "Simulation":
        """Build a simulation and load every alpha listed in ``settings``."""
        sim = cls(dr, store_path=settings.store_path, workers=settings.workers)
        for name, params in sorted(settings.alphas.items()):
            sim.add(Alpha.initialize(name, params, dr))
        return sim

    def add(self, alpha: Alpha) -> Alpha:
        """
        Register an alpha.

        Raises:
            ValueError: Duplicate name, or shape differing from alphas already
                registered
        """
        if alpha.name in self.alphas:
            raise ValueError(f"Alpha '{alpha.name}' already registered")
        for other in self.alphas.values():
            if (other.num_dates, other.num_symbols) != (alpha.num_dates, alpha.num_symbols):
                raise ValueError(
                    f"Alpha '{alpha.name}' shape {(alpha.num_dates, alpha.num_symbols)} differs from "
                    f"'{other.name}' {(other.num_dates, other.num_symbols)}"
                )
        self.alphas[alpha.name] = alpha
        return alpha

    def _ordered(self):
        return [self.alphas[n] for n in sorted(self.alphas)]

    def step(self, di: int, pool: Optional[ThreadPoolExecutor] = None) -> int:
        """
        Process one date index for every alpha.

        Returns:
            Number of alphas that traded on ``di``
        """
        alphas = [a for a in self._ordered() if not a.is_warmup(di)]
        if pool is None or len(alphas) < 2:
            return sum(bool(a.step(di)) for a in alphas)
        # Consuming map() waits for every alpha before the next date starts
        return sum(bool(traded) for traded in pool.map(lambda a: a.step(di), alphas))

    def run(self, write: bool = True) -> Dict[str, pd.DataFrame]:
        """
        Run every alpha over the full calendar.

        Args:
            write: Write perf.csv and summary.json when a store path is set

        Returns:
            Dict of alpha name -> report DataFrame (date, return, turnover)
        """
        if not self.alphas:
            logger.warning("[Simulation] No alphas registered")
            return {}

        num_dates = self.dr.num_dates
        logger.info(f"[Simulation] Running {len(self.alphas)} alpha(s) over {num_dates} dates")

        pool = ThreadPoolExecutor(max_workers=self.workers) if self.workers > 1 else None
        try:
            for di in range(1, num_dates):
                traded = self.step(di, pool)
                logger.debug(f"[Simulation] date index {di}: {traded} alpha(s) traded")
        finally:
            if pool is not None:
                pool.shutdown(wait=True)

        return self.finish(write=write)

    def finish(self, write: bool = True) -> Dict[str, pd.DataFrame]:
        """Collect (and optionally write) every alpha's report."""
        dates = self.dr.dates()
        writer = ReportWriter(self.store_path) if (write and self.store_path is not None) else None

        reports = {}
        for alpha in self._ordered():
            report = alpha.report(dates)
            reports[alpha.name] = report
            summary = compute_summary(report)
            logger.info(
                f"[Simulation] {alpha.name}: days={summary['n_days']}, "
                f"AnnRet={summary['annual_return']:.2%}, Sharpe={summary['sharpe']:.2f}, "
                f"Turnover={summary['avg_turnover']:.2%}, MaxDD={summary['max_drawdown']:.2%}"
            )
            if writer is not None:
                writer.write_perf(alpha.name, report)
                writer.write_summary(alpha.name, {**alpha.describe(), **summary})

        return reports
