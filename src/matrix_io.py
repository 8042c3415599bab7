"""Plain-text matrix persistence.

Matrices are written as whitespace-delimited numeric text, one row per
line. Vectors are written as a single column. Failures to create the
target directory, or attempts to replace an existing file without
``overwrite``, are reported by returning ``False`` rather than raising.
"""

import logging
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)


def save_matrix(
    directory,
    filename: str,
    matrix,
    overwrite: bool = False,
) -> bool:
    """Save a matrix to ``directory/filename``.

    Args:
        directory: Target directory. Created if it does not exist.
        filename: Name of the file inside ``directory``.
        matrix: Array-like of at most two dimensions.
        overwrite: Whether an existing file may be replaced.

    Returns:
        True on success, False if the directory could not be created or
        the file exists and ``overwrite`` is False.
    """
    directory = Path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Couldn't make directory '{directory}': {e}")
        return False

    path = directory / filename
    if path.exists() and not overwrite:
        logger.error(
            f"File '{path}' already exists. Use overwrite=True to replace it."
        )
        return False

    matrix = np.asarray(matrix)
    if matrix.ndim == 0:
        matrix = matrix.reshape(1, 1)
    elif matrix.ndim == 1:
        matrix = matrix.reshape(-1, 1)
    elif matrix.ndim > 2:
        raise ValueError(f"matrix must be at most 2D, got {matrix.ndim}D")

    fmt = "%d" if np.issubdtype(matrix.dtype, np.integer) else "%.18e"
    try:
        np.savetxt(path, matrix, fmt=fmt, delimiter=" ")
    except OSError as e:
        logger.error(f"Couldn't write '{path}': {e}")
        return False

    return True


def load_matrix(path) -> np.ndarray:
    """Load a matrix written by :func:`save_matrix`.

    Returns:
        2D array. A file holding a single column is returned as (N, 1).
    """
    return np.loadtxt(path, ndmin=2)
