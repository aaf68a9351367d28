"""
Tests for mean shift clustering.
"""

import numpy as np
import pytest

from clusterlab.algorithms.mean_shift import mean_shift, merge_centers
from clusterlab.exceptions import EmptyDatasetError, InvalidParameterError


def test_mean_shift_two_pairs(two_pairs):
    result = mean_shift(two_pairs, bandwidth=2.0)
    np.testing.assert_array_equal(result.labels, [0, 0, 1, 1])
    np.testing.assert_allclose(result.centroids, [[0.0, 0.5], [10.0, 10.5]])
    assert result.metadata["n_modes"] == 2
    assert result.converged
    assert result.inertia == pytest.approx(1.0)


def test_mean_shift_huge_bandwidth_single_mode(two_pairs):
    result = mean_shift(two_pairs, bandwidth=100.0)
    assert result.n_clusters == 1
    np.testing.assert_allclose(result.centroids[0], two_pairs.mean(axis=0))


def test_mean_shift_tiny_bandwidth_every_point_a_mode(two_pairs):
    result = mean_shift(two_pairs, bandwidth=0.1)
    assert result.n_clusters == 4
    np.testing.assert_allclose(result.centroids, two_pairs)


def test_mean_shift_finds_blobs(blobs):
    X, y = blobs
    result = mean_shift(X, bandwidth=3.0)
    assert result.n_clusters == 3
    for blob in range(3):
        assert len(np.unique(result.labels[y == blob])) == 1


def test_mean_shift_label_length(rng):
    X = rng.standard_normal((40, 3))
    result = mean_shift(X, bandwidth=1.5, max_iter=5)
    assert result.labels.shape == (40,)
    assert result.n_iter <= 5


def test_merge_centers_groups_in_index_order():
    centers = np.array([[0.0], [0.4], [0.8], [5.0]])
    merged = merge_centers(centers, threshold=0.5)
    # 0 absorbs 1 but not 2 (0.8 away from the group's first member)
    np.testing.assert_allclose(merged, [[0.2], [0.8], [5.0]])


@pytest.mark.parametrize("bandwidth", [0.0, -2.0])
def test_mean_shift_invalid_bandwidth(two_pairs, bandwidth):
    with pytest.raises(InvalidParameterError, match="bandwidth"):
        mean_shift(two_pairs, bandwidth=bandwidth)


def test_mean_shift_invalid_max_iter(two_pairs):
    with pytest.raises(InvalidParameterError, match="max_iter"):
        mean_shift(two_pairs, max_iter=0)


def test_mean_shift_empty():
    with pytest.raises(EmptyDatasetError):
        mean_shift(np.empty((0, 2)))
