"""
Tests for spectral clustering.
"""

import numpy as np
import pytest
from sklearn.metrics import adjusted_rand_score

from clusterlab.algorithms.spectral import (
    normalized_laplacian,
    similarity_matrix,
    spectral_clustering,
)
from clusterlab.exceptions import EmptyDatasetError, InvalidKError, InvalidParameterError


def test_similarity_matrix_zero_diagonal(two_pairs):
    W = similarity_matrix(two_pairs, sigma=1.0)
    np.testing.assert_array_equal(np.diag(W), np.zeros(4))
    np.testing.assert_allclose(W, W.T)
    assert W[0, 1] == pytest.approx(np.exp(-0.5))


def test_normalized_laplacian_isolated_node():
    W = np.array([[0.0, 1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
    L = normalized_laplacian(W)
    np.testing.assert_allclose(L[2], [0.0, 0.0, 1.0])
    np.testing.assert_allclose(L[:2, :2], [[1.0, -1.0], [-1.0, 1.0]])


def test_spectral_two_pairs(two_pairs):
    result = spectral_clustering(two_pairs, 2, sigma=1.0, seed=0)
    assert result.labels[0] == result.labels[1]
    assert result.labels[2] == result.labels[3]
    assert result.labels[0] != result.labels[2]
    assert result.centroids is None


def test_spectral_recovers_blobs(blobs):
    X, y = blobs
    result = spectral_clustering(X, 3, sigma=1.0, seed=0)
    assert adjusted_rand_score(y, result.labels) == pytest.approx(1.0)
    eigenvalues = result.metadata["eigenvalues"]
    assert eigenvalues.shape == (3,)
    assert np.all(eigenvalues > -1e-8)
    assert result.metadata["embedding"].shape == (90, 3)


def test_spectral_separates_rings():
    """Concentric rings are not linearly separable but are graph-separable."""
    angles = np.tile(np.linspace(0, 2 * np.pi, 60, endpoint=False), 2)
    radii = np.repeat([1.0, 5.0], 60)
    X = np.column_stack([radii * np.cos(angles), radii * np.sin(angles)])
    result = spectral_clustering(X, 2, sigma=0.5, seed=0)
    assert adjusted_rand_score(np.repeat([0, 1], 60), result.labels) == pytest.approx(1.0)


def test_spectral_validation(two_pairs):
    with pytest.raises(InvalidParameterError, match="sigma"):
        spectral_clustering(two_pairs, 2, sigma=0.0)
    with pytest.raises(InvalidKError):
        spectral_clustering(two_pairs, 5)
    with pytest.raises(EmptyDatasetError):
        spectral_clustering(np.empty((0, 2)), 1)
