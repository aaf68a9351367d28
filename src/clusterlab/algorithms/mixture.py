"""
Gaussian mixture clustering via expectation-maximization.

Components use diagonal covariances. Densities are evaluated in log space
(log-sum-exp normalisation) so that far-away points do not underflow to a
zero total likelihood.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..exceptions import InvalidParameterError
from ..utils.logging_config import get_logger
from .kernel import Array2D, MatrixLike, as_matrix, floor_variances, log_gaussian_density_matrix
from .partitioning import compute_inertia, require_rows, validate_k
from .results import ClusteringResult

logger = get_logger(__name__)

_TINY = np.finfo(np.float64).tiny


def _logsumexp(a: np.ndarray, axis: int) -> np.ndarray:
    m = np.max(a, axis=axis, keepdims=True)
    m = np.where(np.isfinite(m), m, 0.0)
    out = np.log(np.sum(np.exp(a - m), axis=axis, keepdims=True)) + m
    return np.squeeze(out, axis=axis)


def _weighted_log_prob(
    X: Array2D, weights: np.ndarray, means: np.ndarray, variances: np.ndarray
) -> np.ndarray:
    """(n, K) matrix of log(weight_j) + log N(x_i | mean_j, var_j)."""
    K = means.shape[0]
    out = np.empty((X.shape[0], K))
    for j in range(K):
        out[:, j] = np.log(max(weights[j], _TINY)) + log_gaussian_density_matrix(
            X, means[j], variances[j]
        )
    return out


def _e_step(X, weights, means, variances):
    """Return (responsibilities, total log-likelihood)."""
    log_prob = _weighted_log_prob(X, weights, means, variances)
    log_norm = _logsumexp(log_prob, axis=1)
    resp = np.exp(log_prob - log_norm[:, None])
    return resp, float(np.sum(log_norm))


def _m_step(
    X: Array2D,
    resp: np.ndarray,
    weights: np.ndarray,
    means: np.ndarray,
    variances: np.ndarray,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Re-estimate (weights, means, variances) from responsibilities.

    A component with zero total responsibility keeps its previous
    parameters. Weights are returned unnormalised.
    """
    n = X.shape[0]
    weights, means, variances = weights.copy(), means.copy(), variances.copy()
    totals = resp.sum(axis=0)
    for j in range(means.shape[0]):
        if totals[j] <= _TINY:
            logger.debug("Component %d has no responsibility; keeping parameters", j)
            continue
        weights[j] = totals[j] / n
        means[j] = resp[:, j] @ X / totals[j]
        diff = X - means[j]
        variances[j] = floor_variances(resp[:, j] @ (diff * diff) / totals[j])
    return weights, means, variances


def gaussian_mixture(
    X: MatrixLike,
    K: int,
    max_iter: int = 100,
    tol: float = 1e-6,
    seed: Optional[int] = None,
) -> ClusteringResult:
    """
    Diagonal-covariance Gaussian mixture fitted with EM.

    Means start on K distinct randomly sampled rows, weights are uniform and
    variances are 1. Each iteration computes responsibilities (E-step),
    re-estimates weights, means and per-dimension variances (M-step) and
    then the total log-likelihood; iteration stops once the log-likelihood
    changes by less than *tol*.

    A component whose total responsibility is zero keeps its previous mean,
    variance and weight (weights are then renormalised). Zero variances are
    floored to 1.0 by the density kernel.

    Labels are the arg-max responsibility per point. This hard assignment
    discards the soft membership probabilities of the fitted model; those
    are kept in ``metadata["responsibilities"]``.

    Args:
        X: Input data of shape (n_samples, n_features)
        K: Number of components
        max_iter: Maximum EM iterations
        tol: Convergence threshold on the log-likelihood change
        seed: Random seed for the initial means

    Returns:
        ClusteringResult with labels, centroids (component means), inertia
        of the hard assignment and metadata ``weights``, ``variances``,
        ``responsibilities``, ``log_likelihood``, ``log_likelihood_history``

    Raises:
        EmptyDatasetError: If X has no rows
        InvalidKError: If K < 1 or K > n_samples
        InvalidParameterError: If max_iter < 1 or tol < 0
    """
    X = as_matrix(X)
    require_rows(X)
    n, d = X.shape
    validate_k(K, n)
    if max_iter < 1:
        raise InvalidParameterError(f"max_iter must be >= 1, got {max_iter}")
    if tol < 0:
        raise InvalidParameterError(f"tol must be >= 0, got {tol}")

    rng = np.random.default_rng(seed)
    means = X[rng.choice(n, size=K, replace=False)].copy()
    weights = np.full(K, 1.0 / K)
    variances = np.ones((K, d))

    history = []
    prev_ll = -np.inf
    n_iter = 0
    converged = False
    for t in range(1, max_iter + 1):
        n_iter = t
        resp, _ = _e_step(X, weights, means, variances)

        weights, means, variances = _m_step(X, resp, weights, means, variances)
        weights /= weights.sum()

        _, ll = _e_step(X, weights, means, variances)
        history.append(ll)
        if abs(ll - prev_ll) < tol:
            converged = True
            break
        prev_ll = ll

    if not converged:
        logger.warning("Gaussian mixture did not converge within %d iterations", max_iter)

    resp, ll = _e_step(X, weights, means, variances)
    labels = np.argmax(resp, axis=1).astype(int)
    logger.info(
        "Gaussian mixture complete: K=%d, n_iter=%d, log-likelihood=%.4f", K, n_iter, ll
    )

    return ClusteringResult(
        labels=labels,
        algorithm="gaussian_mixture",
        parameters={"k": K, "max_iter": max_iter, "tol": tol, "seed": seed},
        centroids=means,
        inertia=compute_inertia(X, labels, means),
        n_iter=n_iter,
        converged=converged,
        metadata={
            "weights": weights,
            "variances": variances,
            "responsibilities": resp,
            "log_likelihood": ll,
            "log_likelihood_history": history,
        },
    )
