"""
Read-only access utilities for the on-disk dataset cache.

The cache is a directory of parquet files, one per named dataset
(``<cache_path>/<name>.par``). Files are scanned through an in-memory DuckDB
connection so nothing in the cache is ever opened for writing.
"""

import logging
from pathlib import Path
from typing import List, Union
import glob

import duckdb
import pandas as pd

logger = logging.getLogger(__name__)

DATASET_SUFFIX = ".par"


def resolve_cache_dir(cache_path: Union[str, Path]) -> Path:
    """
    Validate the cache directory.

    Args:
        cache_path: Directory holding ``<name>.par`` datasets

    Returns:
        Resolved cache directory

    Raises:
        FileNotFoundError: If the path doesn't exist
        NotADirectoryError: If the path is a file
    """
    path = Path(cache_path)

    if not path.exists():
        raise FileNotFoundError(f"Cache path does not exist: {cache_path}")

    if not path.is_dir():
        raise NotADirectoryError(f"Cache path is not a directory: {cache_path}")

    return path


def dataset_path(cache_dir: Union[str, Path], name: str) -> Path:
    """Path of the parquet file backing dataset ``name``."""
    return Path(cache_dir) / f"{name}{DATASET_SUFFIX}"


def list_datasets(cache_dir: Union[str, Path]) -> List[str]:
    """
    Discover dataset names available in the cache.

    Args:
        cache_dir: Cache directory

    Returns:
        Sorted dataset names (file stem, suffix stripped)
    """
    files = glob.glob(str(Path(cache_dir) / f"*{DATASET_SUFFIX}"))
    names = sorted(Path(f).stem for f in files)
    logger.debug(f"[READ-ONLY] Found datasets: {names}")
    return names


def open_readonly_connection():
    """
    Open an in-memory DuckDB connection used only to scan parquet files.

    Returns:
        DuckDB connection
    """
    conn = duckdb.connect(database=":memory:")
    logger.debug("[READ-ONLY] Opened in-memory DuckDB connection")
    return conn


def _quote_literal(value: str) -> str:
    """Quote a string as a SQL literal."""
    return "'" + value.replace("'", "''") + "'"


def read_parquet_table(conn, path: Union[str, Path]) -> pd.DataFrame:
    """
    Read one parquet file into a DataFrame, preserving column order.

    Args:
        conn: DuckDB connection
        path: Parquet file path

    Returns:
        DataFrame with the file's columns in schema order

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset file not found: {path}")

    query = f"SELECT * FROM read_parquet({_quote_literal(str(path))})"
    logger.debug(f"[READ-ONLY] {query}")
    return conn.execute(query).df()
