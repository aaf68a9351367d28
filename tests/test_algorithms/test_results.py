"""
Tests for result containers.
"""

import numpy as np

from clusterlab.algorithms.results import NOISE, ClusteringResult, empty_result


def test_summary_counts_clusters_and_noise():
    result = ClusteringResult(labels=np.array([0, 0, 1, NOISE, 1, 1]), algorithm="dbscan")
    assert result.n_clusters == 2
    assert result.n_noise == 1
    assert result.summary() == {
        "algorithm": "dbscan",
        "n_points": 6,
        "n_clusters": 2,
        "n_noise": 1,
        "cluster_sizes": {-1: 1, 0: 2, 1: 3},
    }


def test_defaults_are_fresh_dicts():
    a = ClusteringResult(labels=np.zeros(2, dtype=int), algorithm="kmeans")
    b = ClusteringResult(labels=np.zeros(2, dtype=int), algorithm="kmeans")
    a.metadata["x"] = 1
    assert b.metadata == {}
    assert a.parameters == {}


def test_empty_result():
    result = empty_result("dbscan", {"eps": 1.0})
    assert result.labels.shape == (0,)
    assert result.summary()["n_points"] == 0
    assert result.n_clusters == 0
