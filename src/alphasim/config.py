"""
Configuration for alpha simulations.

Two layers:

- ``AlphaConfig``: the typed fields one alpha consumes, parsed from a flat
  string-keyed option map (unknown keys are ignored).
- ``SimulationSettings``: the run configuration loaded from YAML (cache and
  store paths, worker count, and the option map of every alpha).
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/simulation.yaml")

ParamMap = Dict[str, str]


class Neutralization(Enum):
    """Grouping against which positions are demeaned."""
    MARKET = "market"
    SECTOR = "sector"
    INDUSTRY = "industry"
    SUBINDUSTRY = "subindustry"

    @classmethod
    def parse(cls, value: str) -> "Neutralization":
        key = value.strip().lower().replace("_", "").replace("-", "")
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(
            f"neutralization must be one of {[m.value for m in cls]}, got {value!r}"
        )

    @property
    def group_data(self) -> Optional[str]:
        """Dataset holding per-symbol group ids, None for market neutralization."""
        if self is Neutralization.MARKET:
            return None
        return f"{self.value}_t"


@dataclass
class AlphaConfig:
    """Typed per-alpha simulation parameters."""
    delay: int = 1
    decay: int = 4
    universe: int = 3000
    lookback_days: int = 256
    book_size: float = 2e7
    max_stock_weight: float = 0.1
    neutralization: Neutralization = Neutralization.SUBINDUSTRY

    def __post_init__(self):
        """Validate configuration."""
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")
        if self.decay < 1:
            raise ValueError(f"decay must be >= 1, got {self.decay}")
        if self.universe < 0:
            raise ValueError(f"universe must be >= 0, got {self.universe}")
        if self.lookback_days < 0:
            raise ValueError(f"lookback_days must be >= 0, got {self.lookback_days}")
        if not self.book_size > 0:
            raise ValueError(f"book_size must be > 0, got {self.book_size}")

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "AlphaConfig":
        """
        Parse the recognised keys of an option map.

        Empty values fall back to the default, like an absent key.

        Args:
            params: Flat string-keyed option map

        Returns:
            Validated AlphaConfig

        Raises:
            ValueError: If a recognised value is malformed or out of range
        """
        kwargs = {}
        for key, convert in (
            ("delay", int),
            ("decay", int),
            ("universe", int),
            ("lookback_days", int),
            ("book_size", float),
            ("max_stock_weight", float),
            ("neutralization", Neutralization.parse),
        ):
            raw = params.get(key)
            if raw is None or str(raw).strip() == "":
                continue
            try:
                kwargs[key] = convert(str(raw).strip())
            except ValueError as e:
                raise ValueError(f"Invalid value for '{key}': {raw!r} ({e})") from e
        return cls(**kwargs)

    @property
    def capping_enabled(self) -> bool:
        return self.max_stock_weight > 0

    def describe(self) -> dict:
        return {
            "delay": self.delay,
            "decay": self.decay,
            "universe": self.universe,
            "lookback_days": self.lookback_days,
            "book_size": self.book_size,
            "max_stock_weight": self.max_stock_weight,
            "neutralization": self.neutralization.value,
        }


@dataclass
class SimulationSettings:
    """Run configuration: data locations, execution options and alphas."""
    cache_path: Path
    store_path: Optional[Path] = None
    workers: int = 1
    alphas: Dict[str, ParamMap] = field(default_factory=dict)

    def __post_init__(self):
        self.cache_path = Path(self.cache_path)
        if self.store_path is not None:
            self.store_path = Path(self.store_path)
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

    def select(self, names) -> "SimulationSettings":
        """Restrict the run to the named alphas."""
        missing = [n for n in names if n not in self.alphas]
        if missing:
            raise ValueError(f"Unknown alpha(s): {missing}. Available: {sorted(self.alphas)}")
        return SimulationSettings(
            cache_path=self.cache_path,
            store_path=self.store_path,
            workers=self.workers,
            alphas={n: self.alphas[n] for n in names},
        )


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> dict:
    """Load run configuration from YAML."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _flatten_params(name: str, options) -> ParamMap:
    if options is None:
        return {}
    if not isinstance(options, Mapping):
        raise ValueError(f"Options for alpha '{name}' must be a mapping, got {type(options).__name__}")
    return {str(k): "" if v is None else str(v) for k, v in options.items()}


def load_settings(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> SimulationSettings:
    """
    Build SimulationSettings from a YAML file.

    Relative data paths are taken relative to the working directory.

    Args:
        path: YAML config path

    Returns:
        SimulationSettings
    """
    config = load_config(path)
    data_cfg = config.get("data", {}) or {}
    sim_cfg = config.get("simulation", {}) or {}

    if "cache_path" not in data_cfg:
        raise ValueError(f"data.cache_path missing from {path}")

    alphas = {
        str(name): _flatten_params(str(name), options)
        for name, options in (config.get("alphas", {}) or {}).items()
    }
    if not alphas:
        logger.warning(f"[Config] No alphas defined in {path}")

    settings = SimulationSettings(
        cache_path=data_cfg["cache_path"],
        store_path=data_cfg.get("store_path"),
        workers=int(sim_cfg.get("workers", 1)),
        alphas=alphas,
    )
    logger.info(
        f"[Config] Loaded {path}: cache_path={settings.cache_path}, "
        f"store_path={settings.store_path}, workers={settings.workers}, "
        f"alphas={sorted(settings.alphas)}"
    )
    return settings
