"""
Result containers returned by the clustering algorithms.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, NamedTuple, Optional

import numpy as np

NOISE = -1


class LinkageStep(NamedTuple):
    """One merge event of an agglomerative run."""

    cluster_a: int
    cluster_b: int
    distance: float
    size: int


@dataclass
class ClusteringResult:
    """Result of a single clustering run."""

    labels: np.ndarray
    algorithm: str
    parameters: Dict[str, Any] = None
    centroids: Optional[np.ndarray] = None
    inertia: Optional[float] = None
    n_iter: int = 0
    converged: bool = True
    metadata: Dict[str, Any] = None

    def __post_init__(self):
        """Initialize parameters/metadata if None."""
        if self.parameters is None:
            self.parameters = {}
        if self.metadata is None:
            self.metadata = {}

    @property
    def n_clusters(self) -> int:
        """Number of distinct non-noise labels."""
        return int(np.unique(self.labels[self.labels != NOISE]).size)

    @property
    def n_noise(self) -> int:
        """Number of points labelled as noise."""
        return int(np.sum(self.labels == NOISE))

    def summary(self) -> Dict[str, Any]:
        """
        Diagnostics bundle for a finished run.

        Returns:
            Dictionary with ``algorithm``, ``n_points``, ``n_clusters``
            (noise excluded), ``n_noise`` and ``cluster_sizes`` (label → size,
            noise included under -1 when present).
        """
        unique, counts = np.unique(self.labels, return_counts=True)
        return {
            "algorithm": self.algorithm,
            "n_points": int(self.labels.shape[0]),
            "n_clusters": self.n_clusters,
            "n_noise": self.n_noise,
            "cluster_sizes": {int(u): int(c) for u, c in zip(unique, counts)},
        }


def empty_result(algorithm: str, parameters: Dict[str, Any]) -> ClusteringResult:
    """Result for a zero-row input (density methods only)."""
    return ClusteringResult(
        labels=np.empty(0, dtype=int),
        algorithm=algorithm,
        parameters=parameters,
    )
