"""
Data file lookup and plain-text table reading.

Tables are whitespace-separated numeric columns; lines starting with '#'
are comments.
"""

import os
from pathlib import Path
from typing import Optional, Union

import numpy as np

from uhecr_mc.errors import DataFormatError

DATA_PATH_ENV = 'UHECR_MC_DATA_PATH'


def data_directory() -> Path:
    """
    Directory holding the data tables.

    The UHECR_MC_DATA_PATH environment variable takes precedence over the
    package's own data/ directory.
    """
    env_path = os.getenv(DATA_PATH_ENV)
    if env_path:
        return Path(env_path)
    return Path(__file__).parent.parent / 'data'


def data_path(filename: str) -> Path:
    """Full path of a named data file (existence is not checked)."""
    return data_directory() / filename


def read_table(path: Union[str, Path], n_columns: Optional[int] = None) -> np.ndarray:
    """
    Read a numeric text table.

    Parameters:
        path: File to read
        n_columns: Required number of columns (None accepts any)

    Returns:
        2D array (rows x columns); a single column is returned as 1D

    Raises:
        FileNotFoundError: If the file does not exist
        DataFormatError: If the file is empty, ragged or non-numeric
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    try:
        table = np.loadtxt(path, comments='#', ndmin=2)
    except ValueError as e:
        raise DataFormatError(f"Malformed data file {path}: {e}") from e

    if table.size == 0:
        raise DataFormatError(f"Data file {path} contains no rows")
    if n_columns is not None and table.shape[1] != n_columns:
        raise DataFormatError(
            f"Data file {path} has {table.shape[1]} columns, expected {n_columns}"
        )
    if not np.all(np.isfinite(table)):
        raise DataFormatError(f"Data file {path} contains non-finite values")

    if table.shape[1] == 1:
        return table[:, 0]
    return table


def check_grid(name: str, grid: np.ndarray, values: np.ndarray):
    """
    Validate a tabulated function: strictly increasing grid, equal lengths,
    non-negative values.

    Raises:
        DataFormatError: On any violation
    """
    if grid.ndim != 1 or values.ndim != 1:
        raise DataFormatError(f"{name}: tables must be one-dimensional")
    if len(grid) != len(values):
        raise DataFormatError(
            f"{name}: grid has {len(grid)} points but {len(values)} values"
        )
    if len(grid) < 2:
        raise DataFormatError(f"{name}: at least two grid points required")
    if np.any(np.diff(grid) <= 0):
        raise DataFormatError(f"{name}: grid must be strictly increasing")
    if np.any(values < 0):
        raise DataFormatError(f"{name}: negative values in table")


def freeze(array: np.ndarray) -> np.ndarray:
    """Return a read-only float64 copy."""
    frozen = np.array(array, dtype=np.float64)
    frozen.flags.writeable = False
    return frozen
