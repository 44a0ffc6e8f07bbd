"""
Generation contract: the boundary where pluggable code fills one date's raw
signal row.

A generator is any callable ``generate(di, row)``. The engine guarantees that
``row`` (length num_symbols) is pre-seeded with NaN and that ``di`` is past the
alpha's warm-up. It does NOT pre-filter symbols outside the universe; that
happens later in the PortfolioEngine.

Exceptions raised by a generator are caught per call, logged, and the row is
reset to NaN so the date simply contributes no P&L.

Scripts
-------
``ScriptGenerator.load`` imports a Python file as a module and exposes the
simulation context as module globals before resolving ``generate``:

    name    alpha name
    dr      the DataRegistry
    params  the alpha's option map (Dict[str, str])
    valid   the alpha's full (num_dates, num_symbols) universe mask
    delay   data lag
    decay   smoothing window

Each alpha imports its own module instance (the module name is derived from
the alpha name), so several alphas may share one script file without sharing
module state.
"""

import importlib.util
import logging
import re
import sys
from pathlib import Path
from typing import Callable, Mapping, Optional, Union

import numpy as np

logger = logging.getLogger(__name__)

GENERATE_FUNC = "generate"


class CallableGenerator:
    """Wraps an in-process ``generate(di, row)`` callable."""

    def __init__(self, func: Callable[[int, np.ndarray], None], name: str = "alpha"):
        if not callable(func):
            raise ValueError(f"[Generator] {name}: generate must be callable, got {type(func).__name__}")
        self.func = func
        self.name = name
        self.failures = 0

    def __call__(self, di: int, row: np.ndarray) -> bool:
        """
        Fill ``row`` for date index ``di``.

        Returns:
            True if the routine returned normally, False if it raised
        """
        row[:] = np.nan
        try:
            self.func(di, row)
        except Exception:
            self.failures += 1
            logger.exception(f"[Generator] {self.name}: generate failed on date index {di}")
            row[:] = np.nan
            return False
        return True


class ScriptGenerator(CallableGenerator):
    """Generator backed by a ``generate`` function defined in a script file."""

    def __init__(self, func, name: str, path: Path, module):
        super().__init__(func, name)
        self.path = path
        self.module = module

    @staticmethod
    def module_name(path: Path, alpha_name: str) -> str:
        safe = re.sub(r"\W", "_", alpha_name)
        return f"alphasim_script_{path.stem}__{safe}"

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        name: str,
        dr=None,
        params: Optional[Mapping[str, str]] = None,
        valid: Optional[np.ndarray] = None,
        delay: int = 0,
        decay: int = 1
    ) -> "ScriptGenerator":
        """
        Import a signal script and bind its ``generate`` function.

        Args:
            path: Script file path
            name: Alpha name
            dr: DataRegistry exposed to the script
            params: Option map exposed to the script
            valid: Universe mask exposed to the script
            delay: Data lag exposed to the script
            decay: Smoothing window exposed to the script

        Returns:
            ScriptGenerator

        Raises:
            FileNotFoundError: If the script does not exist
            ValueError: If the script defines no callable ``generate``
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Alpha: can't open file '{path}': No such file")

        module_name = cls.module_name(path, name)
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ValueError(f"Alpha: can't import '{path}'")
        module = importlib.util.module_from_spec(spec)

        module.name = name
        module.dr = dr
        module.params = dict(params or {})
        module.valid = valid
        module.delay = delay
        module.decay = decay

        # Let the script import helper modules that sit beside it
        script_dir = str(path.resolve().parent)
        sys.path.insert(0, script_dir)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            sys.modules.pop(module_name, None)
            logger.error(f"[Generator] Alpha: failed to load '{path}'")
            raise
        finally:
            try:
                sys.path.remove(script_dir)
            except ValueError:
                pass

        func = getattr(module, GENERATE_FUNC, None)
        if not callable(func):
            sys.modules.pop(module_name, None)
            raise ValueError(f"Alpha: '{GENERATE_FUNC}' function not defined in '{path}'")

        logger.info(f"[Generator] Alpha: '{path}' loaded as {module_name}")
        return cls(func, name, path, module)
