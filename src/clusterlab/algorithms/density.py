"""
Density-based clustering: DBSCAN and OPTICS.

Neighbourhoods exclude the point itself: a point is a core point when at
least ``min_pts`` *other* points lie within ``eps`` of it.

Both algorithms build the full n×n distance matrix, so memory and time are
O(n²).
"""

from __future__ import annotations

import heapq
import math
from collections import deque
from typing import List

import numpy as np

from ..exceptions import InvalidParameterError
from ..utils.logging_config import get_logger
from .kernel import MatrixLike, as_matrix, pairwise_distances
from .results import NOISE, ClusteringResult, empty_result

logger = get_logger(__name__)


def _neighbourhoods(D: np.ndarray, eps: float) -> List[np.ndarray]:
    """Indices within *eps* of each point, excluding the point itself."""
    within = D <= eps
    np.fill_diagonal(within, False)
    return [np.flatnonzero(row) for row in within]


# ------------------------------------------------------------------
# DBSCAN
# ------------------------------------------------------------------

def dbscan(X: MatrixLike, eps: float = 0.5, min_pts: int = 5) -> ClusteringResult:
    """
    DBSCAN clustering with noise detection.

    Points are visited in input order; each unassigned core point opens a new
    cluster, which is grown breadth-first (FIFO) through chained core points.
    Border points join the first cluster that reaches them and are not
    expanded further. Points never reached stay labelled -1 (noise).

    Args:
        X: Input data of shape (n_samples, n_features)
        eps: Neighbourhood radius (> 0)
        min_pts: Minimum number of other points within eps for a core point

    Returns:
        ClusteringResult with labels (-1 = noise) and metadata
        ``core_indices``, ``n_clusters``, ``n_noise``

    Raises:
        InvalidParameterError: If eps <= 0 or min_pts < 1
    """
    if not eps > 0:
        raise InvalidParameterError(f"eps must be > 0, got {eps}")
    if min_pts < 1:
        raise InvalidParameterError(f"min_pts must be >= 1, got {min_pts}")

    X = as_matrix(X)
    params = {"eps": eps, "min_pts": min_pts}
    n = X.shape[0]
    if n == 0:
        return empty_result("dbscan", params)

    neighbours = _neighbourhoods(pairwise_distances(X), eps)
    is_core = np.array([len(nb) >= min_pts for nb in neighbours], dtype=bool)

    labels = np.full(n, NOISE, dtype=int)
    cluster_id = 0
    for i in range(n):
        if labels[i] != NOISE or not is_core[i]:
            continue
        labels[i] = cluster_id
        queue = deque([i])
        while queue:
            p = queue.popleft()
            if not is_core[p]:
                continue
            for q in neighbours[p]:
                if labels[q] == NOISE:
                    labels[q] = cluster_id
                    queue.append(q)
        cluster_id += 1

    core_indices = np.flatnonzero(is_core).tolist()
    n_noise = int(np.sum(labels == NOISE))
    logger.info("DBSCAN complete: %d clusters, %d noise points", cluster_id, n_noise)

    return ClusteringResult(
        labels=labels,
        algorithm="dbscan",
        parameters=params,
        metadata={
            "core_indices": core_indices,
            "n_clusters": cluster_id,
            "n_noise": n_noise,
        },
    )


# ------------------------------------------------------------------
# OPTICS
# ------------------------------------------------------------------

def _core_distances(D: np.ndarray, min_pts: int, max_eps: float) -> np.ndarray:
    """Distance to the min_pts-th nearest other point; inf if beyond max_eps."""
    n = D.shape[0]
    core = np.full(n, np.inf)
    if n - 1 < min_pts:
        return core
    for i in range(n):
        others = np.delete(D[i], i)
        kth = np.partition(others, min_pts - 1)[min_pts - 1]
        if kth <= max_eps:
            core[i] = kth
    return core


def extract_optics_clusters(
    ordering: List[int],
    reachability: np.ndarray,
    core_distances: np.ndarray,
    threshold: float,
) -> np.ndarray:
    """
    Cut an OPTICS ordering into flat clusters at a reachability threshold.

    Walking the ordering: a point whose reachability exceeds *threshold*
    starts a new cluster when its own core distance is within *threshold*,
    otherwise it is noise; a point with reachability within *threshold* joins
    the current cluster.

    Returns:
        Labels in point-index order (-1 = noise)
    """
    labels = np.full(len(reachability), NOISE, dtype=int)
    cluster_id = NOISE
    for p in ordering:
        if reachability[p] > threshold:
            if core_distances[p] <= threshold:
                cluster_id += 1
                labels[p] = cluster_id
        elif cluster_id != NOISE:
            labels[p] = cluster_id
    return labels


def optics(
    X: MatrixLike,
    min_pts: int = 5,
    max_eps: float = math.inf,
    threshold: float = 0.5,
) -> ClusteringResult:
    """
    OPTICS ordering with threshold-based cluster extraction.

    Produces a visitation ordering plus core and reachability distances, then
    carves clusters with ``extract_optics_clusters``. The seed list is a
    priority queue keyed on (reachability, index), so equal reachabilities
    are processed in index order.

    Args:
        X: Input data of shape (n_samples, n_features)
        min_pts: Neighbour count defining a core point (other points only)
        max_eps: Largest neighbourhood radius considered (default unbounded)
        threshold: Reachability cut used for cluster extraction

    Returns:
        ClusteringResult with labels and metadata ``ordering``,
        ``reachability`` and ``core_distances`` (point-index order, inf where
        undefined) and ``threshold``

    Raises:
        InvalidParameterError: If min_pts < 1, max_eps <= 0 or threshold <= 0
    """
    if min_pts < 1:
        raise InvalidParameterError(f"min_pts must be >= 1, got {min_pts}")
    if not max_eps > 0:
        raise InvalidParameterError(f"max_eps must be > 0, got {max_eps}")
    if not threshold > 0:
        raise InvalidParameterError(f"threshold must be > 0, got {threshold}")

    X = as_matrix(X)
    params = {"min_pts": min_pts, "max_eps": max_eps, "threshold": threshold}
    n = X.shape[0]
    if n == 0:
        return empty_result("optics", params)

    D = pairwise_distances(X)
    core = _core_distances(D, min_pts, max_eps)
    reach = np.full(n, np.inf)
    processed = np.zeros(n, dtype=bool)
    ordering: List[int] = []

    def update(p: int, seeds: list) -> None:
        candidates = np.flatnonzero(~processed & (D[p] <= max_eps))
        for q in candidates:
            new_reach = max(core[p], D[p, q])
            if new_reach < reach[q]:
                reach[q] = new_reach
                heapq.heappush(seeds, (new_reach, int(q)))

    for i in range(n):
        if processed[i]:
            continue
        processed[i] = True
        ordering.append(i)
        if not np.isfinite(core[i]):
            continue
        seeds: list = []
        update(i, seeds)
        while seeds:
            r, q = heapq.heappop(seeds)
            if processed[q] or r > reach[q]:
                continue  # stale entry
            processed[q] = True
            ordering.append(q)
            if np.isfinite(core[q]):
                update(q, seeds)

    labels = extract_optics_clusters(ordering, reach, core, threshold)
    n_clusters = int(labels.max() + 1) if n else 0
    logger.info(
        "OPTICS complete: %d clusters, %d noise points at threshold %.4g",
        n_clusters, int(np.sum(labels == NOISE)), threshold,
    )

    return ClusteringResult(
        labels=labels,
        algorithm="optics",
        parameters=params,
        metadata={
            "ordering": ordering,
            "reachability": reach,
            "core_distances": core,
            "threshold": threshold,
        },
    )
