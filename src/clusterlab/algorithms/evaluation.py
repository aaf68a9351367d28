"""
Cluster quality metrics.

Every metric is a pure function of (data, labels) and accepts any labelling,
including ones produced outside this package. Labels are treated as opaque
values: -1 is an ordinary label here, so evaluate noise-free labels only if
noise should be ignored. Metrics that are undefined for the given labelling
return a "not applicable" ``EvaluationResult`` instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..exceptions import DimensionMismatchError, InvalidParameterError
from ..utils.logging_config import get_logger
from .kernel import Array2D, MatrixLike, as_matrix, pairwise_distances
from .partitioning import kmeans, require_rows

logger = get_logger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    """One named metric value plus its qualitative reading."""

    metric: str
    value: Optional[float]
    description: str
    interpretation: str
    applicable: bool = True

    @classmethod
    def not_applicable(cls, metric: str, description: str, reason: str) -> "EvaluationResult":
        """Sentinel for a metric that is mathematically undefined here."""
        return cls(
            metric=metric,
            value=None,
            description=description,
            interpretation=reason,
            applicable=False,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric,
            "value": self.value,
            "description": self.description,
            "interpretation": self.interpretation,
            "applicable": self.applicable,
        }


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _prepare(X: MatrixLike, labels: Sequence) -> tuple[Array2D, np.ndarray, np.ndarray, np.ndarray]:
    """Validate inputs; return (X, unique labels, inverse index, counts)."""
    X = as_matrix(X)
    labels = np.asarray(labels).ravel()
    if labels.shape[0] != X.shape[0]:
        raise DimensionMismatchError(
            f"Got {labels.shape[0]} labels for {X.shape[0]} observations"
        )
    unique, inverse, counts = np.unique(labels, return_inverse=True, return_counts=True)
    return X, unique, inverse.ravel(), counts


def _cluster_centroids(X: Array2D, inverse: np.ndarray, k: int) -> np.ndarray:
    centroids = np.zeros((k, X.shape[1]))
    np.add.at(centroids, inverse, X)
    counts = np.bincount(inverse, minlength=k)
    return centroids / counts[:, None]


def cluster_sizes(labels: Sequence) -> Dict[Any, int]:
    """Map each label to the number of points carrying it."""
    unique, counts = np.unique(np.asarray(labels).ravel(), return_counts=True)
    return {u.item() if hasattr(u, "item") else u: int(c) for u, c in zip(unique, counts)}


# ------------------------------------------------------------------
# Silhouette
# ------------------------------------------------------------------

SILHOUETTE = "silhouette_score"
_SILHOUETTE_DESC = "Average silhouette coefficient across all data points"


def silhouette_samples(X: MatrixLike, labels: Sequence) -> np.ndarray:
    """
    Per-point silhouette coefficients.

    a(i) is the mean distance from i to the other members of its cluster
    (0 for a singleton cluster), b(i) the smallest mean distance from i to
    the members of another cluster. s(i) = (b - a) / max(a, b), and 0 when
    a == b == 0. Requires at least two distinct labels.
    """
    X, unique, inverse, counts = _prepare(X, labels)
    k = unique.shape[0]
    if k < 2:
        raise InvalidParameterError("Silhouette needs at least 2 distinct labels")
    n = X.shape[0]
    rows = np.arange(n)

    onehot = np.zeros((n, k))
    onehot[rows, inverse] = 1.0
    sums = pairwise_distances(X) @ onehot          # (n, k) distance sums per cluster

    own = counts[inverse]
    a = np.where(own > 1, sums[rows, inverse] / np.maximum(own - 1, 1), 0.0)
    mean_other = sums / counts[None, :]
    mean_other[rows, inverse] = np.inf
    b = mean_other.min(axis=1)

    denom = np.maximum(a, b)
    return np.where(denom > 0, (b - a) / np.where(denom > 0, denom, 1.0), 0.0)


def silhouette_score(X: MatrixLike, labels: Sequence) -> EvaluationResult:
    """
    Mean silhouette coefficient (in [-1, 1], higher is better).

    Not applicable when fewer than 2 distinct labels are present.
    """
    _, unique, _, _ = _prepare(X, labels)
    if unique.shape[0] < 2:
        return EvaluationResult.not_applicable(
            SILHOUETTE,
            "Silhouette score for single cluster",
            "Cannot calculate silhouette score with only one cluster",
        )
    score = float(np.mean(silhouette_samples(X, labels)))
    if score > 0.7:
        interpretation = "Excellent clustering"
    elif score > 0.5:
        interpretation = "Good clustering"
    elif score > 0.25:
        interpretation = "Weak clustering"
    else:
        interpretation = "Poor clustering"
    return EvaluationResult(SILHOUETTE, score, _SILHOUETTE_DESC, interpretation)


# ------------------------------------------------------------------
# Davies-Bouldin
# ------------------------------------------------------------------

DAVIES_BOULDIN = "davies_bouldin_index"


def davies_bouldin_index(X: MatrixLike, labels: Sequence) -> EvaluationResult:
    """
    Davies-Bouldin index (>= 0, lower is better).

    For each cluster: the largest (scatter_i + scatter_j) / ||c_i - c_j||
    over the other clusters, where scatter is the mean distance of members
    to their centroid. The index is the mean of those maxima. Two clusters
    with coincident centroids give an infinite ratio.
    """
    X, unique, inverse, counts = _prepare(X, labels)
    k = unique.shape[0]
    if k < 2:
        return EvaluationResult.not_applicable(
            DAVIES_BOULDIN,
            "Davies-Bouldin index for single cluster",
            "Cannot calculate Davies-Bouldin index with only one cluster",
        )

    centroids = _cluster_centroids(X, inverse, k)
    member_dist = np.sqrt(np.sum((X - centroids[inverse]) ** 2, axis=1))
    scatter = np.bincount(inverse, weights=member_dist, minlength=k) / counts

    centroid_dist = pairwise_distances(centroids)
    combined = scatter[:, None] + scatter[None, :]
    with np.errstate(divide="ignore", invalid="ignore"):
        ratios = np.where(centroid_dist > 0, combined / centroid_dist, np.inf)
    np.fill_diagonal(ratios, -np.inf)
    index = float(np.mean(ratios.max(axis=1)))

    if index < 1:
        interpretation = "Excellent clustering"
    elif index < 2:
        interpretation = "Good clustering"
    else:
        interpretation = "Poor clustering"
    return EvaluationResult(
        DAVIES_BOULDIN, index, "Average similarity ratio of clusters", interpretation
    )


# ------------------------------------------------------------------
# Calinski-Harabasz
# ------------------------------------------------------------------

CALINSKI_HARABASZ = "calinski_harabasz_index"
_CH_DESC = "Ratio of between-cluster to within-cluster variance"


def calinski_harabasz_index(X: MatrixLike, labels: Sequence) -> EvaluationResult:
    """
    Calinski-Harabasz index (variance ratio criterion, higher is better).

    (between-cluster SS / (k - 1)) / (within-cluster SS / (n - k)). When the
    within-cluster SS is zero the index is infinite, unless the between-
    cluster SS is zero as well, in which case it is not applicable.
    """
    X, unique, inverse, counts = _prepare(X, labels)
    n, k = X.shape[0], unique.shape[0]
    if k < 2:
        return EvaluationResult.not_applicable(
            CALINSKI_HARABASZ,
            "Calinski-Harabasz index for single cluster",
            "Cannot calculate Calinski-Harabasz index with only one cluster",
        )

    centroids = _cluster_centroids(X, inverse, k)
    overall = X.mean(axis=0)
    between = float(np.sum(counts * np.sum((centroids - overall) ** 2, axis=1)))
    within = float(np.sum((X - centroids[inverse]) ** 2))

    if within == 0.0:
        if between == 0.0:
            return EvaluationResult.not_applicable(
                CALINSKI_HARABASZ, _CH_DESC, "All points coincide; variance ratio undefined"
            )
        index = float("inf")
    else:
        index = (between / (k - 1)) / (within / (n - k))

    if index > 100:
        interpretation = "Excellent clustering"
    elif index > 50:
        interpretation = "Good clustering"
    elif index > 20:
        interpretation = "Fair clustering"
    else:
        interpretation = "Poor clustering"
    return EvaluationResult(CALINSKI_HARABASZ, index, _CH_DESC, interpretation)


# ------------------------------------------------------------------
# Aggregates
# ------------------------------------------------------------------

def evaluate_clustering(X: MatrixLike, labels: Sequence) -> List[EvaluationResult]:
    """Silhouette, Davies-Bouldin and Calinski-Harabasz for one labelling."""
    return [
        silhouette_score(X, labels),
        davies_bouldin_index(X, labels),
        calinski_harabasz_index(X, labels),
    ]


def elbow_wcss(
    X: MatrixLike,
    max_k: int = 10,
    *,
    seed: Optional[int] = None,
    max_iter: int = 100,
) -> List[EvaluationResult]:
    """
    Within-cluster sum of squares of K-means for K = 1..min(max_k, n).

    The caller looks for the bend ("elbow") in the returned curve.

    Raises:
        EmptyDatasetError: If X has no rows
        InvalidParameterError: If max_k < 1
    """
    if max_k < 1:
        raise InvalidParameterError(f"max_k must be >= 1, got {max_k}")
    X = as_matrix(X)
    require_rows(X)

    results = []
    for K in range(1, min(max_k, X.shape[0]) + 1):
        fit = kmeans(X, K, max_iter=max_iter, seed=seed)
        results.append(
            EvaluationResult(
                metric="elbow_wcss",
                value=fit.inertia,
                description=f"Within-Cluster Sum of Squares for k={K}",
                interpretation=f"WCSS value for {K} clusters",
            )
        )
    logger.debug("Elbow sweep computed for K=1..%d", len(results))
    return results


def _pair_count(counts: np.ndarray) -> float:
    """Number of unordered pairs drawn within each group, summed."""
    counts = counts.astype(np.float64)
    return float(np.sum(counts * (counts - 1.0)) / 2.0)


def adjusted_rand_index(labels_a: Sequence, labels_b: Sequence) -> float:
    """
    Chance-corrected agreement between two labelings of the same points.

    Label values are arbitrary; only the induced partitions are compared.
    Identical partitions (including the degenerate cases where neither
    labeling has a pair to disagree on) score 1.0, independent labelings
    score about 0.

    Raises:
        DimensionMismatchError: If the labelings differ in length
    """
    a = np.asarray(labels_a).ravel()
    b = np.asarray(labels_b).ravel()
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatchError(
            f"Labelings differ in length: {a.shape[0]} and {b.shape[0]}"
        )
    n = a.shape[0]
    total_pairs = n * (n - 1) / 2.0
    if total_pairs == 0:
        return 1.0

    a_codes = np.unique(a, return_inverse=True)[1].ravel()
    b_codes = np.unique(b, return_inverse=True)[1].ravel()
    # each distinct (a, b) code pair is one cell of the contingency table
    _, cell_sizes = np.unique(np.stack([a_codes, b_codes], axis=1), axis=0, return_counts=True)

    together_both = _pair_count(cell_sizes)
    together_a = _pair_count(np.bincount(a_codes))
    together_b = _pair_count(np.bincount(b_codes))

    expected = together_a * together_b / total_pairs
    ceiling = (together_a + together_b) / 2.0
    if ceiling == expected:
        return 1.0
    return float((together_both - expected) / (ceiling - expected))
