"""
Spectral clustering on a fully connected Gaussian similarity graph.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..exceptions import InvalidParameterError
from ..utils.logging_config import get_logger
from .kernel import Array2D, MatrixLike, as_matrix, pairwise_squared_distances
from .partitioning import kmeans, require_rows, validate_k
from .results import ClusteringResult

logger = get_logger(__name__)


def similarity_matrix(X: Array2D, sigma: float) -> np.ndarray:
    """W_ij = exp(-||x_i - x_j||² / (2σ²)) with a zero diagonal."""
    W = np.exp(-pairwise_squared_distances(X) / (2.0 * sigma ** 2))
    np.fill_diagonal(W, 0.0)
    return W


def normalized_laplacian(W: np.ndarray) -> np.ndarray:
    """
    Symmetric normalised Laplacian L = I - D^-1/2 W D^-1/2.

    Nodes with zero degree (isolated at this sigma) get an identity row.
    """
    degree = W.sum(axis=1)
    isolated = degree <= 0
    if isolated.any():
        logger.debug("%d isolated nodes in similarity graph", int(isolated.sum()))
    inv_sqrt = np.zeros_like(degree)
    inv_sqrt[~isolated] = 1.0 / np.sqrt(degree[~isolated])
    return np.eye(W.shape[0]) - inv_sqrt[:, None] * W * inv_sqrt[None, :]


def spectral_embedding(X: Array2D, K: int, sigma: float) -> tuple[np.ndarray, np.ndarray]:
    """
    Rows of the K eigenvectors of the normalised Laplacian with the smallest
    eigenvalues, each row scaled to unit length.

    Returns:
        Tuple of (embedding of shape (n, K), the K eigenvalues)
    """
    L = normalized_laplacian(similarity_matrix(X, sigma))
    eigenvalues, eigenvectors = np.linalg.eigh(L)
    U = eigenvectors[:, :K]
    norms = np.linalg.norm(U, axis=1, keepdims=True)
    U = U / np.maximum(norms, 1e-12)
    return U, eigenvalues[:K]


def spectral_clustering(
    X: MatrixLike,
    K: int,
    sigma: float = 1.0,
    seed: Optional[int] = None,
    max_iter: int = 100,
) -> ClusteringResult:
    """
    Spectral clustering (normalised Laplacian, Ng-Jordan-Weiss style).

    Builds an n×n Gaussian similarity matrix, takes the K smallest
    eigenvectors of its normalised Laplacian and clusters their rows with
    K-means. Memory is O(n²) and the eigendecomposition O(n³).

    Args:
        X: Input data of shape (n_samples, n_features)
        K: Number of clusters
        sigma: Gaussian kernel width (> 0)
        seed: Random seed for the K-means step
        max_iter: Maximum K-means iterations

    Returns:
        ClusteringResult with labels and metadata ``eigenvalues`` and
        ``embedding``; centroids are not defined for this method

    Raises:
        EmptyDatasetError: If X has no rows
        InvalidKError: If K < 1 or K > n_samples
        InvalidParameterError: If sigma <= 0
    """
    if not sigma > 0:
        raise InvalidParameterError(f"sigma must be > 0, got {sigma}")
    X = as_matrix(X)
    require_rows(X)
    validate_k(K, X.shape[0])

    U, eigenvalues = spectral_embedding(X, K, sigma)
    inner = kmeans(U, K, max_iter=max_iter, seed=seed)
    logger.info("Spectral clustering complete: K=%d, sigma=%.4g", K, sigma)

    return ClusteringResult(
        labels=inner.labels,
        algorithm="spectral",
        parameters={"k": K, "sigma": sigma, "seed": seed, "max_iter": max_iter},
        n_iter=inner.n_iter,
        converged=inner.converged,
        metadata={"eigenvalues": eigenvalues, "embedding": U},
    )
