"""
Tests for DBSCAN and OPTICS.
"""

import numpy as np
import pytest

from clusterlab.algorithms.density import dbscan, extract_optics_clusters, optics
from clusterlab.algorithms.kernel import pairwise_distances
from clusterlab.algorithms.results import NOISE
from clusterlab.exceptions import InvalidParameterError


# ------------------------------------------------------------------
# DBSCAN
# ------------------------------------------------------------------


def test_dbscan_two_pairs(two_pairs):
    """eps=2, min_pts=1 on two separated pairs: 2 clusters, no noise."""
    result = dbscan(two_pairs, eps=2.0, min_pts=1)
    np.testing.assert_array_equal(result.labels, [0, 0, 1, 1])
    assert result.n_clusters == 2
    assert result.n_noise == 0
    assert result.metadata["core_indices"] == [0, 1, 2, 3]


def test_dbscan_eps_beyond_max_distance_single_cluster(rng):
    X = rng.standard_normal((25, 3))
    eps = pairwise_distances(X).max() + 1.0
    result = dbscan(X, eps=eps, min_pts=3)
    assert result.n_clusters == 1
    assert result.n_noise == 0
    assert result.labels.shape == (25,)


def test_dbscan_min_pts_above_n_all_noise(two_pairs):
    result = dbscan(two_pairs, eps=100.0, min_pts=5)
    np.testing.assert_array_equal(result.labels, [NOISE] * 4)
    assert result.n_clusters == 0
    assert result.metadata["core_indices"] == []


def test_dbscan_isolated_point_is_noise():
    X = np.array([[0.0, 0.0], [0.5, 0.0], [1.0, 0.0], [50.0, 50.0]])
    result = dbscan(X, eps=0.6, min_pts=1)
    np.testing.assert_array_equal(result.labels, [0, 0, 0, NOISE])


def test_dbscan_border_point_goes_to_first_cluster():
    """
    A border point reachable from two clusters joins the one discovered first.

    Point 3 lies within eps of core points 2 and 4, which belong to
    different clusters; it is not core itself.
    """
    X = np.array([[0.0], [0.4], [0.8], [1.7], [2.6], [3.0], [3.4]])
    result = dbscan(X, eps=0.95, min_pts=3)
    assert result.metadata["core_indices"] == [2, 4]
    np.testing.assert_array_equal(result.labels, [0, 0, 0, 0, 1, 1, 1])
    assert result.n_clusters == 2


def test_dbscan_chains_through_core_points():
    X = np.arange(10, dtype=float).reshape(-1, 1)
    result = dbscan(X, eps=1.0, min_pts=2)
    # ends have one neighbour and join as border points
    np.testing.assert_array_equal(result.labels, np.zeros(10, dtype=int))


def test_dbscan_empty_input():
    result = dbscan(np.empty((0, 2)), eps=1.0, min_pts=2)
    assert result.labels.shape == (0,)
    assert result.n_clusters == 0


@pytest.mark.parametrize("eps", [0.0, -1.0])
def test_dbscan_invalid_eps(two_pairs, eps):
    with pytest.raises(InvalidParameterError, match="eps"):
        dbscan(two_pairs, eps=eps, min_pts=1)


def test_dbscan_invalid_min_pts(two_pairs):
    with pytest.raises(InvalidParameterError, match="min_pts"):
        dbscan(two_pairs, eps=1.0, min_pts=0)


# ------------------------------------------------------------------
# OPTICS
# ------------------------------------------------------------------


def test_optics_two_pairs(two_pairs):
    result = optics(two_pairs, min_pts=1, threshold=2.0)
    assert result.n_clusters == 2
    assert result.n_noise == 0
    assert sorted(result.metadata["ordering"]) == [0, 1, 2, 3]
    assert result.labels[0] == result.labels[1]
    assert result.labels[2] == result.labels[3]


def test_optics_ordering_visits_neighbours_first(two_pairs):
    result = optics(two_pairs, min_pts=1, threshold=2.0)
    assert result.metadata["ordering"] == [0, 1, 2, 3]
    reach = result.metadata["reachability"]
    assert np.isinf(reach[0])
    assert reach[1] == pytest.approx(1.0)


def test_optics_matches_dbscan_on_blobs(blobs):
    """With threshold == eps, OPTICS recovers the same core clusters as DBSCAN."""
    X, y = blobs
    opt = optics(X, min_pts=4, threshold=1.5)
    db = dbscan(X, eps=1.5, min_pts=4)
    assert opt.n_clusters == db.n_clusters == 3
    for blob in range(3):
        assert len(np.unique(opt.labels[y == blob][opt.labels[y == blob] != NOISE])) == 1


def test_optics_min_pts_above_n_all_noise(two_pairs):
    result = optics(two_pairs, min_pts=10)
    np.testing.assert_array_equal(result.labels, [NOISE] * 4)
    assert np.all(np.isinf(result.metadata["core_distances"]))


def test_optics_max_eps_limits_reachability(two_pairs):
    result = optics(two_pairs, min_pts=1, max_eps=2.0, threshold=5.0)
    reach = result.metadata["reachability"]
    # the far pair is never reached from the near pair
    assert np.isinf(reach[2])
    assert result.n_clusters == 2


def test_extract_optics_clusters_threshold():
    ordering = [0, 1, 2, 3, 4]
    reach = np.array([np.inf, 0.2, 0.3, 5.0, 0.1])
    core = np.array([0.2, 0.2, 0.3, 0.4, 9.0])
    labels = extract_optics_clusters(ordering, reach, core, threshold=1.0)
    np.testing.assert_array_equal(labels, [0, 0, 0, 1, 1])

    core[3] = 2.0
    labels = extract_optics_clusters(ordering, reach, core, threshold=1.0)
    np.testing.assert_array_equal(labels, [0, 0, 0, NOISE, 0])


def test_optics_invalid_parameters(two_pairs):
    with pytest.raises(InvalidParameterError):
        optics(two_pairs, min_pts=0)
    with pytest.raises(InvalidParameterError):
        optics(two_pairs, max_eps=0.0)
    with pytest.raises(InvalidParameterError):
        optics(two_pairs, threshold=-1.0)
