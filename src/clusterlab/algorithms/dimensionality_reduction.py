"""
Dimensionality reduction for visualising clustered data.

Provides exact PCA (with reconstruction), t-SNE, a lightweight UMAP-style
embedding, and the policy that picks one of them for a given dataset.
Reduction never influences clustering labels.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import numpy as np

from ..config import config
from ..exceptions import InvalidParameterError
from ..utils.logging_config import get_logger
from .kernel import Array2D, MatrixLike, as_matrix, pairwise_squared_distances
from .partitioning import require_rows

logger = get_logger(__name__)

TECHNIQUES = ("pca", "tsne", "umap", "none")

# Extra keyword options accepted by reduce_dimensions, per technique.
_OPTIONS = {
    "pca": frozenset(),
    "tsne": frozenset({"perplexity", "max_iter", "learning_rate"}),
    "umap": frozenset({"n_neighbors", "min_dist", "n_epochs"}),
    "none": frozenset(),
}


@dataclass
class ReductionResult:
    """Lower-dimensional embedding plus technique metadata."""

    embedding: Array2D
    technique: str
    original_dimensions: int
    reduced_dimensions: int
    parameters: Dict[str, Any] = field(default_factory=dict)
    explained_variance: Optional[np.ndarray] = None
    cumulative_variance: Optional[np.ndarray] = None
    components: Optional[np.ndarray] = None
    mean: Optional[np.ndarray] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def _check_components(n_components: int) -> None:
    if n_components < 1:
        raise InvalidParameterError(f"n_components must be >= 1, got {n_components}")


# ------------------------------------------------------------------
# PCA
# ------------------------------------------------------------------

def pca(X: MatrixLike, n_components: int = 2) -> ReductionResult:
    """
    Project data onto its top principal components using SVD.

    Centers the data (no scaling), computes a thin SVD and keeps the first
    *n_components* right singular vectors. Each component's sign is fixed so
    that its largest-magnitude loading is positive, which makes the output
    deterministic.

    Args:
        X: Input data of shape (n_samples, n_features)
        n_components: Number of components, 1 <= n_components <= min(n, d)

    Returns:
        ReductionResult with the projected data, per-component explained
        variance ratio and its running sum, plus ``components`` (k, d) and
        ``mean`` (d,) for ``pca_reconstruct``

    Raises:
        EmptyDatasetError: If X has no rows
        InvalidParameterError: If n_components is out of range
    """
    X = as_matrix(X)
    require_rows(X)
    n, d = X.shape
    _check_components(n_components)
    if n_components > min(n, d):
        raise InvalidParameterError(
            f"n_components ({n_components}) cannot exceed min(n_samples, n_features) "
            f"({min(n, d)})"
        )

    mu = X.mean(axis=0)
    Xc = X - mu
    _, S, Vt = np.linalg.svd(Xc, full_matrices=False)

    pivots = np.argmax(np.abs(Vt), axis=1)
    signs = np.sign(Vt[np.arange(Vt.shape[0]), pivots])
    signs[signs == 0] = 1.0
    Vt = Vt * signs[:, None]

    components = Vt[:n_components]
    Z = Xc @ components.T

    power = S ** 2
    total = power.sum()
    ratio = power / total if total > 0 else np.zeros_like(power)
    explained = ratio[:n_components]

    logger.info(
        "PCA complete: %d -> %d dims, %.1f%% variance retained",
        d, n_components, 100.0 * float(explained.sum()),
    )
    return ReductionResult(
        embedding=Z,
        technique="pca",
        original_dimensions=d,
        reduced_dimensions=n_components,
        parameters={"n_components": n_components, "center": True, "scale": False},
        explained_variance=explained,
        cumulative_variance=np.cumsum(explained),
        components=components,
        mean=mu,
        metadata={"singular_values": S},
    )


def pca_reconstruct(result: ReductionResult) -> Array2D:
    """Map a PCA embedding back to the original feature space."""
    if result.technique != "pca" or result.components is None or result.mean is None:
        raise InvalidParameterError(
            f"Only PCA results can be reconstructed, got technique {result.technique!r}"
        )
    return result.embedding @ result.components + result.mean


# ------------------------------------------------------------------
# t-SNE
# ------------------------------------------------------------------

def _conditional_probabilities(
    D2: np.ndarray, perplexity: float, tol: float = 1e-5, max_tries: int = 50
) -> np.ndarray:
    """
    Row-wise Gaussian affinities p(j|i) calibrated to *perplexity*.

    Binary search over the precision beta = 1 / (2 sigma_i^2) until the
    Shannon entropy (nats) of row i matches log(perplexity).
    """
    n = D2.shape[0]
    P = np.zeros((n, n))
    target = np.log(perplexity)
    for i in range(n):
        others = np.arange(n) != i
        d = D2[i, others]
        d = d - d.min()
        beta, lo, hi = 1.0, 0.0, np.inf
        for _ in range(max_tries):
            p = np.exp(-d * beta)
            sum_p = p.sum()
            entropy = np.log(sum_p) + beta * np.sum(d * p) / sum_p
            if abs(entropy - target) < tol:
                break
            if entropy > target:
                lo = beta
                beta = beta * 2.0 if np.isinf(hi) else (beta + hi) / 2.0
            else:
                hi = beta
                beta = beta / 2.0 if lo == 0.0 else (beta + lo) / 2.0
        P[i, others] = p / sum_p
    return P


def tsne(
    X: MatrixLike,
    n_components: int = 2,
    perplexity: float = 30.0,
    max_iter: int = 1000,
    learning_rate: float = 200.0,
    seed: Optional[int] = None,
) -> ReductionResult:
    """
    t-distributed Stochastic Neighbor Embedding.

    High-dimensional affinities are perplexity-calibrated Gaussians,
    symmetrised as (P + P^T) / 2n; low-dimensional similarities use a
    Student-t kernel. The embedding starts from N(0, 1e-4) noise drawn from
    *seed* and follows gradient descent on KL(P || Q) with momentum,
    per-coordinate gains and early exaggeration.

    Each iteration is O(n^2) in time and memory, so this is unsuitable
    beyond a few thousand points. Perplexity is capped at n - 1.

    Raises:
        EmptyDatasetError: If X has no rows
        InvalidParameterError: If a numeric option is out of range
    """
    _check_components(n_components)
    if not perplexity > 0:
        raise InvalidParameterError(f"perplexity must be > 0, got {perplexity}")
    if max_iter < 1:
        raise InvalidParameterError(f"max_iter must be >= 1, got {max_iter}")
    if not learning_rate > 0:
        raise InvalidParameterError(f"learning_rate must be > 0, got {learning_rate}")

    X = as_matrix(X)
    require_rows(X)
    n, d = X.shape
    if n > config.engine.tsne_max_points:
        logger.warning("t-SNE on %d points is O(n^2) per iteration; expect a long run", n)

    parameters = {
        "n_components": n_components,
        "perplexity": perplexity,
        "max_iter": max_iter,
        "learning_rate": learning_rate,
        "seed": seed,
    }
    rng = np.random.default_rng(seed)
    Y = rng.normal(0.0, 1e-4, size=(n, n_components))
    if n < 2:
        return ReductionResult(Y, "tsne", d, n_components, parameters)

    effective = min(perplexity, float(n - 1))
    if effective < perplexity:
        logger.debug("Perplexity %.1f capped at %.1f for %d points", perplexity, effective, n)

    P = _conditional_probabilities(pairwise_squared_distances(X), effective)
    P = np.maximum((P + P.T) / (2.0 * n), 1e-12)
    np.fill_diagonal(P, 0.0)

    exaggeration_iters = min(250, max_iter // 4)
    velocity = np.zeros_like(Y)
    gains = np.ones_like(Y)
    Q = P
    for t in range(max_iter):
        num = 1.0 / (1.0 + pairwise_squared_distances(Y))
        np.fill_diagonal(num, 0.0)
        Q = np.maximum(num / num.sum(), 1e-12)

        P_eff = P * 12.0 if t < exaggeration_iters else P
        PQ = (P_eff - Q) * num
        grad = 4.0 * (PQ.sum(axis=1)[:, None] * Y - PQ @ Y)

        momentum = 0.5 if t < exaggeration_iters else 0.8
        same_sign = (grad > 0) == (velocity > 0)
        gains = np.where(same_sign, gains * 0.8, gains + 0.2)
        gains = np.maximum(gains, 0.01)
        velocity = momentum * velocity - learning_rate * gains * grad
        Y = Y + velocity
        Y = Y - Y.mean(axis=0)

    off_diag = ~np.eye(n, dtype=bool)
    kl = float(np.sum(P[off_diag] * np.log(P[off_diag] / Q[off_diag])))
    logger.info("t-SNE complete: %d points, KL divergence %.4f", n, kl)

    return ReductionResult(
        embedding=Y,
        technique="tsne",
        original_dimensions=d,
        reduced_dimensions=n_components,
        parameters=parameters,
        metadata={"kl_divergence": kl, "effective_perplexity": effective},
    )


# ------------------------------------------------------------------
# UMAP-lite
# ------------------------------------------------------------------

_UMAP_STEP = 0.01
_NEGATIVE_SAMPLES = 5


def knn_graph(X: Array2D, n_neighbors: int) -> np.ndarray:
    """Indices of each row's nearest other rows, shape (n, min(k, n - 1))."""
    D2 = pairwise_squared_distances(X)
    np.fill_diagonal(D2, np.inf)
    k = min(n_neighbors, X.shape[0] - 1)
    return np.argsort(D2, axis=1, kind="stable")[:, :k]


def umap(
    X: MatrixLike,
    n_neighbors: int = 15,
    min_dist: float = 0.1,
    n_components: int = 2,
    n_epochs: int = 200,
    seed: Optional[int] = None,
) -> ReductionResult:
    """
    Lightweight UMAP-style embedding.

    Builds a k-nearest-neighbour graph, starts from a uniform random layout
    in [-5, 5) and runs *n_epochs* epochs. Each epoch pulls every graph edge
    together until its endpoints are *min_dist* apart and pushes random
    point pairs apart (5 negative samples per point), with a learning rate
    that decays linearly to zero. Updates within an epoch are computed from
    the layout at the start of that epoch.

    This keeps the local-neighbourhood flavour of UMAP without its fuzzy
    simplicial set construction; treat it as a visual aid only.

    Raises:
        EmptyDatasetError: If X has no rows
        InvalidParameterError: If a numeric option is out of range
    """
    _check_components(n_components)
    if n_neighbors < 1:
        raise InvalidParameterError(f"n_neighbors must be >= 1, got {n_neighbors}")
    if min_dist < 0:
        raise InvalidParameterError(f"min_dist must be >= 0, got {min_dist}")
    if n_epochs < 1:
        raise InvalidParameterError(f"n_epochs must be >= 1, got {n_epochs}")

    X = as_matrix(X)
    require_rows(X)
    n, d = X.shape

    graph = knn_graph(X, n_neighbors)
    heads = np.repeat(np.arange(n), graph.shape[1])
    tails = graph.ravel()

    rng = np.random.default_rng(seed)
    E = rng.uniform(-5.0, 5.0, size=(n, n_components))

    for epoch in range(n_epochs):
        alpha = (1.0 - epoch / n_epochs) * _UMAP_STEP
        delta = np.zeros_like(E)

        diff = E[tails] - E[heads]
        dist = np.maximum(np.linalg.norm(diff, axis=1), 1e-10)
        pull = diff * (np.maximum(0.0, dist - min_dist) / dist)[:, None]
        np.add.at(delta, heads, alpha * pull)
        np.add.at(delta, tails, -alpha * pull)

        src = np.repeat(np.arange(n), _NEGATIVE_SAMPLES)
        dst = rng.integers(0, n, size=src.shape[0])
        keep = src != dst
        src, dst = src[keep], dst[keep]
        diff = E[src] - E[dst]
        dist = np.maximum(np.linalg.norm(diff, axis=1), 1e-10)
        push = diff * (min_dist / (dist * (dist + min_dist)))[:, None]
        np.add.at(delta, src, alpha * push)
        np.add.at(delta, dst, -alpha * push)

        E = E + delta

    logger.info("UMAP-lite complete: %d points, %d epochs", n, n_epochs)
    return ReductionResult(
        embedding=E,
        technique="umap",
        original_dimensions=d,
        reduced_dimensions=n_components,
        parameters={
            "n_neighbors": n_neighbors,
            "min_dist": min_dist,
            "n_components": n_components,
            "n_epochs": n_epochs,
            "seed": seed,
        },
        metadata={"n_edges": int(heads.shape[0])},
    )


# ------------------------------------------------------------------
# Technique selection
# ------------------------------------------------------------------

def auto_select_technique(X: MatrixLike, target_dimensions: int = 2) -> Tuple[str, str]:
    """
    Pick a reduction technique from the dataset's shape.

    Returns:
        Tuple of (technique, human-readable reason)
    """
    _check_components(target_dimensions)
    X = as_matrix(X)
    require_rows(X)
    n, d = X.shape

    if d <= target_dimensions:
        return "none", "Data already has no more dimensions than requested"
    if d <= 3:
        return "pca", "Data already low-dimensional - PCA is exact and cheap"
    if n < 50:
        return "pca", "Small dataset - PCA is most reliable"
    if d > 50 and n > 1000:
        return (
            "umap",
            "High-dimensional data with many samples - UMAP preserves both local "
            "and global structure",
        )
    if n > 500:
        return "tsne", "Medium-sized dataset - t-SNE good for visualization"
    return "pca", "Default choice for linear dimensionality reduction"


def reduce_dimensions(
    X: MatrixLike,
    technique: Optional[str] = None,
    n_components: int = 2,
    seed: Optional[int] = None,
    **options: Any,
) -> ReductionResult:
    """
    Run one reduction technique, choosing it automatically if not given.

    Args:
        X: Input data of shape (n_samples, n_features)
        technique: "pca", "tsne", "umap", "none" or None for auto-selection
        n_components: Target dimensionality
        seed: Random seed for the stochastic techniques
        **options: Technique-specific options (e.g. ``perplexity`` for t-SNE,
            ``n_neighbors`` for UMAP)

    Returns:
        ReductionResult; when auto-selected, ``parameters["selection_reason"]``
        says why. An auto-selected PCA keeps at most min(n_samples,
        n_features) components and then records ``requested_n_components``.

    Raises:
        InvalidParameterError: For an unknown technique or option
    """
    reason = None
    if technique is None:
        technique, reason = auto_select_technique(X, n_components)
        logger.info("Auto-selected %s: %s", technique, reason)
    technique = str(technique).lower()
    if technique not in TECHNIQUES:
        raise InvalidParameterError(
            f"Unknown technique: {technique!r} (expected one of {', '.join(TECHNIQUES)})"
        )
    unknown = set(options) - _OPTIONS[technique]
    if unknown:
        raise InvalidParameterError(
            f"Unsupported options for {technique}: {', '.join(sorted(unknown))}"
        )

    if technique == "pca":
        k = n_components
        if reason is not None:
            # an automatic choice must not fail on fewer rows than components
            k = min(n_components, *as_matrix(X).shape)
            if k < n_components:
                logger.warning(
                    "Capping PCA at %d components (requested %d) for this input", k, n_components
                )
        result = pca(X, k)
        if k != n_components:
            result.parameters["requested_n_components"] = n_components
    elif technique == "tsne":
        result = tsne(X, n_components, seed=seed, **options)
    elif technique == "umap":
        result = umap(X, n_components=n_components, seed=seed, **options)
    else:
        M = as_matrix(X)
        require_rows(M)
        result = ReductionResult(
            embedding=M,
            technique="none",
            original_dimensions=M.shape[1],
            reduced_dimensions=M.shape[1],
        )

    if reason is not None:
        result.parameters["selection_reason"] = reason
    return result
