"""
Alpha: one independently configured and simulated signal.

Binds a name, an option map, a SignalGrid, a UniverseSelector, a generator
and a PortfolioEngine. The Simulation driver steps it through the calendar:

    update_valid(di) -> generate(di) -> calculate(di)

Dates before ``lookback_days + delay`` are warm-up and never processed.
"""

import logging
from typing import Callable, Mapping, Optional

import numpy as np
import pandas as pd

from .config import AlphaConfig
from .generator import CallableGenerator, ScriptGenerator
from .grid import SignalGrid
from .portfolio import PortfolioEngine
from .universe import UniverseSelector

logger = logging.getLogger(__name__)

SCRIPT_PARAM = "alpha"
REPORT_COLUMNS = ["date", "return", "turnover"]


class Alpha:
    """
    Full state of one simulated strategy.

    Shape (num_dates, num_symbols) comes from the DataRegistry calendar and
    symbol list and is fixed for the Alpha's lifetime.
    """

    def __init__(
        self,
        name: str,
        params: Optional[Mapping[str, str]],
        dr,
        generator: Optional[Callable[[int, np.ndarray], None]] = None
    ):
        """
        Initialize Alpha.

        Args:
            name: Alpha name (also the report directory name)
            params: Flat string-keyed option map
            dr: DataRegistry shared by every alpha of a simulation
            generator: ``generate(di, row)`` callable. When omitted, the script
                named by the ``alpha`` option is loaded.

        Raises:
            ValueError: Malformed options, or no generator available
            RuntimeError: Calendar or symbol list unavailable
            FileNotFoundError: Script named by ``alpha`` does not exist
        """
        self._name = name
        self.params = {str(k): str(v) for k, v in (params or {}).items()}
        self.dr = dr
        self._config = AlphaConfig.from_params(self.params)

        self._num_dates = dr.num_dates
        self._num_symbols = dr.num_symbols

        self.grid = SignalGrid(self._num_dates, self._num_symbols)
        self.universe = UniverseSelector(dr, self.grid, self._config.universe, self._config.delay)
        self.engine = PortfolioEngine(dr, self.grid, self._config)

        logger.info(
            f"[Alpha] {name}: delay={self._config.delay}, decay={self._config.decay}, "
            f"universe={self._config.universe}, lookback_days={self._config.lookback_days}, "
            f"book_size={self._config.book_size}, max_stock_weight={self._config.max_stock_weight}, "
            f"neutralization={self._config.neutralization.value}"
        )

        if generator is not None:
            self.generator = generator if isinstance(generator, CallableGenerator) \
                else CallableGenerator(generator, name)
        elif self.params.get(SCRIPT_PARAM):
            self.generator = ScriptGenerator.load(
                self.params[SCRIPT_PARAM],
                name,
                dr=dr,
                params=self.params,
                valid=self.grid.valid,
                delay=self._config.delay,
                decay=self._config.decay,
            )
        else:
            raise ValueError(f"[Alpha] {name}: no generator given and no '{SCRIPT_PARAM}' script configured")

    @classmethod
    def initialize(cls, name: str, params: Optional[Mapping[str, str]], dr, generator=None) -> "Alpha":
        """
        Build an alpha from its option map.

        Construction errors propagate unlogged; the caller decides how to
        report them.
        """
        return cls(name, params, dr, generator)

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> AlphaConfig:
        return self._config

    @property
    def num_dates(self) -> int:
        return self._num_dates

    @property
    def num_symbols(self) -> int:
        return self._num_symbols

    @property
    def delay(self) -> int:
        return self._config.delay

    @property
    def decay(self) -> int:
        return self._config.decay

    @property
    def lookback_days(self) -> int:
        return self._config.lookback_days

    @property
    def start_date(self) -> int:
        """First date index past warm-up."""
        return self._config.lookback_days + self._config.delay

    @property
    def returns(self) -> np.ndarray:
        return self.engine.returns

    @property
    def turnover(self) -> np.ndarray:
        return self.engine.turnover

    def is_warmup(self, di: int) -> bool:
        return di < self.start_date

    def update_valid(self, di: int) -> int:
        return self.universe.update_valid(di)

    def generate(self, di: int) -> bool:
        return self.generator(di, self.grid.row(di))

    def calculate(self, di: int) -> bool:
        return self.engine.calculate(di)

    def step(self, di: int) -> bool:
        """
        Process date index ``di``: universe, generation, positions.

        Returns:
            True if the date traded; False for warm-up or untraded dates
        """
        if self.is_warmup(di):
            return False
        self.update_valid(di)
        self.generate(di)
        return self.calculate(di)

    def report(self, dates: Optional[np.ndarray] = None) -> pd.DataFrame:
        """
        Performance rows for every date with a finite return.

        Args:
            dates: Calendar (defaults to the registry's)

        Returns:
            DataFrame with columns date, return, turnover
        """
        if dates is None:
            dates = self.dr.dates()
        traded = np.isfinite(self.engine.returns)
        return pd.DataFrame(
            {
                "date": np.asarray(dates)[traded],
                "return": self.engine.returns[traded],
                "turnover": self.engine.turnover[traded],
            },
            columns=REPORT_COLUMNS,
        ).reset_index(drop=True)

    def describe(self) -> dict:
        return {
            "alpha": self._name,
            "script": self.params.get(SCRIPT_PARAM),
            "num_dates": self._num_dates,
            "num_symbols": self._num_symbols,
            "start_date_index": self.start_date,
            "generate_failures": getattr(self.generator, "failures", 0),
            **self._config.describe(),
        }
