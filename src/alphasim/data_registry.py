"""
DataRegistry: lazy, memoised access to the columnar dataset cache.

Each dataset lives in ``<cache_path>/<name>.par``. Two datasets define the
shape of every simulation:

- ``date``: one row per calendar date (integer YYYYMMDD), in calendar order
- ``symbol``: one row per tradable symbol

Every other dataset (``close_t``, ``adv60_t``, ``sector_t``, ...) is a wide
table with one row per symbol (in ``symbol`` order) and one column per
calendar date (in ``date`` order), so ``values(name, di)`` is the cross
section of ``name`` on date index ``di``.

Datasets are loaded on first reference and cached for the lifetime of the
registry. Loading is serialised so concurrent first access to a name reads
the file once.
"""

import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Set, Union

import numpy as np
import pandas as pd

from .utils_db import (
    dataset_path,
    list_datasets,
    open_readonly_connection,
    read_parquet_table,
    resolve_cache_dir,
)

logger = logging.getLogger(__name__)

DATE_DATA = "date"
SYMBOL_DATA = "symbol"
MISSING_CODE = 0


class DataRegistry:
    """
    Read-only, memoising broker for named cross-sectional time series.

    Failed loads are logged and remembered; the caller receives ``None`` and
    decides how to proceed.
    """

    def __init__(self, cache_path: Union[str, Path]):
        """
        Initialize DataRegistry.

        Args:
            cache_path: Directory holding ``<name>.par`` datasets
        """
        self.cache_path = resolve_cache_dir(cache_path)
        self._tables: Dict[str, pd.DataFrame] = {}
        self._failed: Set[str] = set()
        self._lock = threading.Lock()
        self._conn = None

        logger.info(f"[DataRegistry] Initialized with cache_path: {self.cache_path}")

    def initialize(self) -> "DataRegistry":
        """Eagerly load the calendar and the symbol list."""
        for name in (DATE_DATA, SYMBOL_DATA):
            if self.get_data(name) is None:
                raise RuntimeError(f"[DataRegistry] Required dataset '{name}' unavailable in {self.cache_path}")
        logger.info(f"[DataRegistry] {self.num_dates} dates x {self.num_symbols} symbols")
        return self

    def has(self, name: str) -> bool:
        """True if the backing file for ``name`` exists."""
        return dataset_path(self.cache_path, name).exists()

    def available(self):
        """Names of all datasets present in the cache."""
        return list_datasets(self.cache_path)

    def get_data(self, name: str) -> Optional[pd.DataFrame]:
        """
        Get dataset ``name``, loading it on first access.

        Args:
            name: Dataset name

        Returns:
            DataFrame, or None if the dataset is absent or unreadable
        """
        table = self._tables.get(name)
        if table is not None:
            logger.debug(f"[CACHE] Hit: {name}")
            return table

        with self._lock:
            # Another thread may have finished the load while we waited
            table = self._tables.get(name)
            if table is not None:
                return table
            if name in self._failed:
                return None

            logger.debug(f"[CACHE] Miss: {name}")
            try:
                if self._conn is None:
                    self._conn = open_readonly_connection()
                table = read_parquet_table(self._conn, dataset_path(self.cache_path, name))
            except Exception as e:
                logger.error(f"[DataRegistry] Failed to load '{name}': {e}")
                self._failed.add(name)
                return None

            self._tables[name] = table
            logger.info(f"[DataRegistry] {name} loaded ({table.shape[0]} x {table.shape[1]})")
            return table

    def values(self, name: str, di: int, dtype=float) -> Optional[np.ndarray]:
        """
        Cross section of a wide dataset on date index ``di``.

        Args:
            name: Dataset name
            di: Date index (column position)
            dtype: numpy dtype of the returned array

        Returns:
            Array of length num_symbols, or None if the dataset is missing or
            ``di`` is outside its columns. Missing entries are NaN for float
            dtypes and MISSING_CODE (0) for integer dtypes.
        """
        table = self.get_data(name)
        if table is None:
            return None
        if di < 0 or di >= table.shape[1]:
            logger.debug(f"[DataRegistry] {name}: date index {di} out of range")
            return None
        column = table.iloc[:, di]
        dtype = np.dtype(dtype)
        if np.issubdtype(dtype, np.floating):
            return pd.to_numeric(column, errors="coerce").to_numpy(dtype=dtype, na_value=np.nan)
        if np.issubdtype(dtype, np.integer):
            # Missing or non-numeric codes read as 0 (ungrouped)
            codes = pd.to_numeric(column, errors="coerce")
            missing = int(codes.isna().sum())
            if missing:
                logger.debug(f"[DataRegistry] {name}: {missing} missing codes on date index {di}, read as {MISSING_CODE}")
            return codes.fillna(MISSING_CODE).to_numpy(dtype=dtype)
        return column.to_numpy(dtype=dtype)

    def dates(self) -> np.ndarray:
        """Calendar as an integer array (YYYYMMDD)."""
        return self._required(DATE_DATA).iloc[:, 0].to_numpy(dtype=np.int64)

    def symbols(self) -> np.ndarray:
        """Symbol identifiers in universe order."""
        return self._required(SYMBOL_DATA).iloc[:, 0].to_numpy()

    @property
    def num_dates(self) -> int:
        return len(self._required(DATE_DATA))

    @property
    def num_symbols(self) -> int:
        return len(self._required(SYMBOL_DATA))

    def _required(self, name: str) -> pd.DataFrame:
        table = self.get_data(name)
        if table is None:
            raise RuntimeError(f"[DataRegistry] Required dataset '{name}' unavailable in {self.cache_path}")
        return table

    def clear(self) -> None:
        """Drop every cached dataset and forget failed loads."""
        with self._lock:
            self._tables.clear()
            self._failed.clear()
        logger.debug("[CACHE] Cleared")

    def close(self) -> None:
        """Close the DuckDB connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
