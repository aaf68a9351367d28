"""
Mean shift: flat-kernel mode seeking with post-hoc merging of nearby modes.
"""

from __future__ import annotations

from typing import List

import numpy as np

from ..exceptions import InvalidParameterError
from ..utils.logging_config import get_logger
from .kernel import MatrixLike, as_matrix, pairwise_squared_distances
from .partitioning import assign_to_nearest, compute_inertia, require_rows
from .results import ClusteringResult

logger = get_logger(__name__)


def merge_centers(centers: np.ndarray, threshold: float) -> np.ndarray:
    """
    Greedily group centers lying within *threshold* of a group's first member.

    Centers are scanned in index order; each unused center opens a group that
    absorbs every later unused center within *threshold* of it. Each group is
    replaced by the mean of its members.
    """
    n = centers.shape[0]
    within = pairwise_squared_distances(centers) <= threshold ** 2
    used = np.zeros(n, dtype=bool)
    merged: List[np.ndarray] = []
    for i in range(n):
        if used[i]:
            continue
        group = np.flatnonzero(within[i] & ~used)
        used[group] = True
        merged.append(centers[group].mean(axis=0))
    return np.vstack(merged)


def mean_shift(
    X: MatrixLike,
    bandwidth: float = 1.0,
    max_iter: int = 100,
    tol: float = 1e-6,
) -> ClusteringResult:
    """
    Mean shift clustering with a flat kernel.

    One center starts on every data point and repeatedly moves to the mean of
    the data points within *bandwidth* of it. A center with no such points
    stays where it is; a center that moves less than *tol* is frozen. After
    shifting, centers within ``bandwidth / 2`` of each other are merged into
    one mode, which fixes the number of clusters. Every point is then
    assigned to its nearest mode (ties to the lowest mode index).

    Args:
        X: Input data of shape (n_samples, n_features)
        bandwidth: Flat kernel radius (> 0)
        max_iter: Maximum shift iterations
        tol: Per-center movement below which a center is converged

    Returns:
        ClusteringResult with labels, centroids (the modes), inertia and
        metadata ``n_modes`` and ``shifted_centers``

    Raises:
        EmptyDatasetError: If X has no rows
        InvalidParameterError: If bandwidth <= 0, max_iter < 1 or tol <= 0
    """
    if not bandwidth > 0:
        raise InvalidParameterError(f"bandwidth must be > 0, got {bandwidth}")
    if max_iter < 1:
        raise InvalidParameterError(f"max_iter must be >= 1, got {max_iter}")
    if not tol > 0:
        raise InvalidParameterError(f"tol must be > 0, got {tol}")

    X = as_matrix(X)
    require_rows(X)
    n = X.shape[0]

    centers = X.copy()
    active = np.ones(n, dtype=bool)
    bw_sq = bandwidth ** 2
    n_iter = 0
    for t in range(1, max_iter + 1):
        n_iter = t
        idx = np.flatnonzero(active)
        within = pairwise_squared_distances(centers[idx], X) <= bw_sq   # (a, n)
        counts = within.sum(axis=1)
        # A flat-kernel mean stays within bandwidth of some point in its window,
        # so an empty window only arises from rounding; such a center stays put.
        has_neighbours = counts > 0

        new_centers = centers[idx].copy()
        new_centers[has_neighbours] = (
            within[has_neighbours].astype(np.float64) @ X
        ) / counts[has_neighbours][:, None]

        moved = np.sqrt(np.sum((new_centers - centers[idx]) ** 2, axis=1))
        centers[idx] = new_centers
        active[idx[moved < tol]] = False
        if not active.any():
            break

    converged = not active.any()
    if not converged:
        logger.warning(
            "Mean shift: %d centers still moving after %d iterations",
            int(active.sum()), max_iter,
        )

    modes = merge_centers(centers, bandwidth / 2.0)
    labels = assign_to_nearest(X, modes)
    inertia = compute_inertia(X, labels, modes)
    logger.info("Mean shift complete: %d modes after %d iterations", modes.shape[0], n_iter)

    return ClusteringResult(
        labels=labels,
        algorithm="meanshift",
        parameters={"bandwidth": bandwidth, "max_iter": max_iter, "tol": tol},
        centroids=modes,
        inertia=inertia,
        n_iter=n_iter,
        converged=converged,
        metadata={"n_modes": int(modes.shape[0]), "shifted_centers": centers},
    )
