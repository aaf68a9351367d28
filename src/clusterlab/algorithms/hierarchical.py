"""
Agglomerative hierarchical clustering.

Starts from n singleton clusters and repeatedly merges the closest pair until
K clusters remain. Every merge scans all current pairs, so a run costs O(n³)
time overall; this method is intended for small and medium datasets.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Union

import numpy as np

from ..config import config
from ..exceptions import InvalidParameterError
from ..utils.logging_config import get_logger
from .kernel import MatrixLike, as_matrix, pairwise_distances
from .partitioning import compute_inertia, require_rows, validate_k
from .results import ClusteringResult, LinkageStep

logger = get_logger(__name__)


class Linkage(str, Enum):
    """Cluster-to-cluster distance used to pick the next merge."""

    SINGLE = "single"
    COMPLETE = "complete"
    AVERAGE = "average"
    WARD = "ward"

    @classmethod
    def parse(cls, value: Union["Linkage", str]) -> "Linkage":
        """Accept a Linkage or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as e:
            valid = ", ".join(m.value for m in cls)
            raise InvalidParameterError(
                f"Unknown linkage: {value!r} (expected one of {valid})"
            ) from e


def _merged_distances(
    linkage: Linkage,
    d_ik: np.ndarray,
    d_jk: np.ndarray,
    d_ij: float,
    n_i: int,
    n_j: int,
    n_k: np.ndarray,
) -> np.ndarray:
    """Lance-Williams update: distance from (i ∪ j) to every other cluster k."""
    if linkage is Linkage.SINGLE:
        return np.minimum(d_ik, d_jk)
    if linkage is Linkage.COMPLETE:
        return np.maximum(d_ik, d_jk)
    if linkage is Linkage.AVERAGE:
        return (n_i * d_ik + n_j * d_jk) / (n_i + n_j)
    # Ward
    total = n_i + n_j + n_k
    sq = ((n_i + n_k) * d_ik ** 2 + (n_j + n_k) * d_jk ** 2 - n_k * d_ij ** 2) / total
    return np.sqrt(np.maximum(sq, 0.0))


def agglomerative(
    X: MatrixLike,
    K: int,
    linkage: Union[Linkage, str] = Linkage.SINGLE,
) -> ClusteringResult:
    """
    Agglomerative clustering down to K clusters.

    The closest pair is found by scanning the current clusters in row-major
    order (i < j); on equal distances the first pair found wins. Each merge
    removes both clusters from the list and appends the merged one at the
    end. ``LinkageStep.cluster_a``/``cluster_b`` are positions in the list
    as it was before the merge.

    Args:
        X: Input data of shape (n_samples, n_features)
        K: Number of clusters to stop at
        linkage: "single" (default), "complete", "average" or "ward"

    Returns:
        ClusteringResult with labels (position of each point's cluster in the
        final list), centroids (cluster means), inertia (WCSS) and
        ``metadata["linkage"]``: list of ``n - K`` LinkageStep records

    Raises:
        EmptyDatasetError: If X has no rows
        InvalidKError: If K < 1 or K > n_samples
        InvalidParameterError: If linkage is unknown
    """
    linkage = Linkage.parse(linkage)
    X = as_matrix(X)
    require_rows(X)
    n = X.shape[0]
    validate_k(K, n)
    if n > config.engine.hierarchical_max_points:
        logger.warning(
            "Hierarchical clustering on %d points is O(n^3); expect a long run", n
        )

    clusters: List[List[int]] = [[i] for i in range(n)]
    sizes = np.ones(n, dtype=np.int64)
    CD = pairwise_distances(X)
    steps: List[LinkageStep] = []

    while len(clusters) > K:
        m = len(clusters)
        scan = CD.copy()
        scan[np.tril_indices(m)] = np.inf
        flat = int(np.argmin(scan))
        i, j = divmod(flat, m)
        d_ij = float(CD[i, j])

        keep = [c for c in range(m) if c != i and c != j]
        new_row = _merged_distances(
            linkage, CD[i, keep], CD[j, keep], d_ij,
            int(sizes[i]), int(sizes[j]), sizes[keep],
        )
        merged = clusters[i] + clusters[j]
        steps.append(LinkageStep(i, j, d_ij, len(merged)))

        CD = np.block([
            [CD[np.ix_(keep, keep)], new_row[:, None]],
            [new_row[None, :], np.zeros((1, 1))],
        ])
        sizes = np.append(sizes[keep], sizes[i] + sizes[j])
        clusters = [clusters[c] for c in keep] + [merged]

    labels = np.empty(n, dtype=int)
    for label, members in enumerate(clusters):
        labels[members] = label
    centroids = np.vstack([X[members].mean(axis=0) for members in clusters])
    inertia = compute_inertia(X, labels, centroids)

    logger.info(
        "Hierarchical clustering complete: K=%d, linkage=%s, %d merges",
        K, linkage.value, len(steps),
    )

    return ClusteringResult(
        labels=labels,
        algorithm="hierarchical",
        parameters={"k": K, "linkage": linkage.value},
        centroids=centroids,
        inertia=inertia,
        n_iter=len(steps),
        metadata={"linkage": steps},
    )
