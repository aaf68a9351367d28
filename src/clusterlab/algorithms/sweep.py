"""
Sweep orchestration for K-means across multiple K values.

Runs K-means for every K in a range with optional restarts, keeps the best
restart per K, evaluates it, and optionally reports how stable the
labelling is across restarts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from ..exceptions import InvalidParameterError
from ..utils.logging_config import get_logger
from .evaluation import adjusted_rand_index, evaluate_clustering
from .kernel import MatrixLike, as_matrix
from .partitioning import kmeans, require_rows, validate_k

logger = get_logger(__name__)


@dataclass
class SweepConfig:
    """Configuration for a K sweep."""

    k_min: int = 2
    k_max: int = 10
    max_iter: int = 100
    tol: float = 1e-6
    base_seed: int = 0
    n_restarts: int = 1
    compute_stability: bool = False


@dataclass
class SweepResult:
    """Results from a K sweep, keyed by str(K)."""

    by_k: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def inertia_curve(self) -> List[float]:
        """Best inertia per K, in increasing K order."""
        return [self.by_k[k]["inertia"] for k in sorted(self.by_k, key=int)]

    def best_k_by_silhouette(self) -> Optional[int]:
        """K with the highest applicable silhouette score, or None."""
        best, best_score = None, -np.inf
        for k in sorted(self.by_k, key=int):
            sil = self.by_k[k]["evaluation"][0]
            if sil["applicable"] and sil["value"] > best_score:
                best, best_score = int(k), sil["value"]
        return best


def pairwise_ari(labels_list: List[np.ndarray]) -> np.ndarray:
    """ARI for every unordered pair of labelings."""
    scores = [
        adjusted_rand_index(labels_list[i], labels_list[j])
        for i in range(len(labels_list))
        for j in range(i + 1, len(labels_list))
    ]
    return np.asarray(scores, dtype=np.float64)


def run_sweep(X: MatrixLike, cfg: SweepConfig) -> SweepResult:
    """
    Run K-means for K in [k_min..k_max] with restarts.

    For each K:
    - run ``n_restarts`` restarts with seeds ``base_seed + restart``
    - keep the restart with the lowest inertia
    - evaluate it with silhouette, Davies-Bouldin and Calinski-Harabasz
    - with ``compute_stability`` and more than one restart, report the
      mean/std pairwise ARI and the inertia spread across restarts

    Args:
        X: Input data of shape (n_samples, n_features)
        cfg: SweepConfig

    Returns:
        SweepResult whose ``by_k`` entries hold ``labels``, ``centroids``,
        ``inertia``, ``inertias``, ``n_iter``, ``converged``, ``evaluation``
        (list of metric dicts), ``labels_all`` (None for a single restart)
        and optionally ``stability``

    Raises:
        InvalidParameterError: If k_min > k_max or n_restarts < 1
        InvalidKError: If k_min < 1 or k_max > n_samples
    """
    if cfg.k_min > cfg.k_max:
        raise InvalidParameterError(f"k_min ({cfg.k_min}) must be <= k_max ({cfg.k_max})")
    if cfg.n_restarts < 1:
        raise InvalidParameterError(f"n_restarts must be >= 1, got {cfg.n_restarts}")

    X = as_matrix(X)
    require_rows(X)
    n_samples = X.shape[0]
    validate_k(cfg.k_min, n_samples)
    validate_k(cfg.k_max, n_samples)

    by_k: Dict[str, Dict[str, Any]] = {}
    for K in range(cfg.k_min, cfg.k_max + 1):
        runs = [
            kmeans(X, K, max_iter=cfg.max_iter, tol=cfg.tol, seed=cfg.base_seed + r)
            for r in range(cfg.n_restarts)
        ]
        inertias = [run.inertia for run in runs]
        best = runs[int(np.argmin(inertias))]

        result: Dict[str, Any] = {
            "labels": best.labels,
            "centroids": best.centroids,
            "inertia": best.inertia,
            "inertias": inertias,
            "n_iter": best.n_iter,
            "converged": best.converged,
            "evaluation": [m.to_dict() for m in evaluate_clustering(X, best.labels)],
            "labels_all": [run.labels for run in runs] if cfg.n_restarts > 1 else None,
        }

        if cfg.compute_stability and cfg.n_restarts > 1:
            ari = pairwise_ari([run.labels for run in runs])
            result["stability"] = {
                "stability_ari": {"mean": float(ari.mean()), "std": float(ari.std())},
                "inertia": {"mean": float(np.mean(inertias)), "std": float(np.std(inertias))},
            }

        by_k[str(K)] = result
        logger.debug("Sweep K=%d: best inertia %.4f", K, best.inertia)

    logger.info(
        "Sweep complete: K=%d..%d, %d restart(s) each", cfg.k_min, cfg.k_max, cfg.n_restarts
    )
    return SweepResult(by_k=by_k)
