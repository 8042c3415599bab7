"""Least-squares solvers used to train the basis-function models."""

import numpy as np


def batch_least_squares(
    A: np.ndarray,
    y: np.ndarray,
    regularization: float = 0.0,
) -> np.ndarray:
    """Ordinary Least Squares solution of y = A @ w.

    Args:
        A: Design matrix (N, P).
        y: Targets (N,).
        regularization: Tikhonov regularization parameter.
            If > 0, solves: (A^T A + λI)^{-1} A^T y

    Returns:
        Estimated weights (P,).
    """
    A = np.asarray(A)
    y = np.asarray(y).ravel()

    if regularization > 0:
        AtA = A.T @ A
        Aty = A.T @ y
        n_params = A.shape[1]
        return np.linalg.solve(AtA + regularization * np.eye(n_params), Aty)

    w_hat, _, _, _ = np.linalg.lstsq(A, y, rcond=None)
    return w_hat


def weighted_least_squares(
    A: np.ndarray,
    y: np.ndarray,
    weights: np.ndarray,
    regularization: float = 0.0,
) -> np.ndarray:
    """Weighted Least Squares solution with per-sample weights.

    Computes:
        w_hat = (A^T W A + λI)^{-1} A^T W y,   W = diag(weights)

    Args:
        A: Design matrix (N, P).
        y: Targets (N,).
        weights: Non-negative per-sample weights (N,).
        regularization: Tikhonov regularization parameter.

    Returns:
        Estimated weights (P,).
    """
    A = np.asarray(A)
    y = np.asarray(y).ravel()
    weights = np.asarray(weights).ravel()

    AtW = A.T * weights
    AtWA = AtW @ A
    AtWy = AtW @ y
    if regularization > 0:
        AtWA = AtWA + regularization * np.eye(A.shape[1])

    try:
        return np.linalg.solve(AtWA, AtWy)
    except np.linalg.LinAlgError:
        # Singular matrix: use pseudoinverse
        return np.linalg.lstsq(AtWA, AtWy, rcond=None)[0]
