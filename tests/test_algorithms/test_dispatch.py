"""
Tests for the algorithm dispatcher.
"""

import math

import numpy as np
import pytest

from clusterlab.algorithms import dispatch
from clusterlab.algorithms.dispatch import (
    PARAMS_TYPES,
    Algorithm,
    DBSCANParams,
    GaussianMixtureParams,
    HierarchicalParams,
    KMeansParams,
    OPTICSParams,
    run_clustering,
)
from clusterlab.algorithms.results import ClusteringResult
from clusterlab.exceptions import InvalidKError, InvalidParameterError


# ------------------------------------------------------------------
# Algorithm names
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    "name, expected",
    [
        ("kmeans", Algorithm.KMEANS),
        ("K-Means", Algorithm.KMEANS),
        ("hierarchical", Algorithm.HIERARCHICAL),
        ("DBSCAN", Algorithm.DBSCAN),
        ("optics", Algorithm.OPTICS),
        ("meanshift", Algorithm.MEAN_SHIFT),
        ("mean_shift", Algorithm.MEAN_SHIFT),
        ("gmm", Algorithm.GAUSSIAN_MIXTURE),
        ("gaussian_mixture", Algorithm.GAUSSIAN_MIXTURE),
        ("spectral", Algorithm.SPECTRAL),
    ],
)
def test_algorithm_parse(name, expected):
    assert Algorithm.parse(name) is expected


def test_algorithm_parse_unknown():
    with pytest.raises(InvalidParameterError, match="Unsupported algorithm"):
        Algorithm.parse("birch")


def test_every_algorithm_has_params():
    assert set(PARAMS_TYPES) == set(Algorithm)


# ------------------------------------------------------------------
# Parameter bags
# ------------------------------------------------------------------


def test_from_dict_defaults():
    assert DBSCANParams.from_dict(None) == DBSCANParams(eps=0.5, min_pts=5)
    assert KMeansParams.from_dict({}) == KMeansParams()


def test_from_dict_accepts_camel_case_keys():
    params = DBSCANParams.from_dict({"eps": 2, "minPts": 1})
    assert params == DBSCANParams(eps=2, min_pts=1)
    params = GaussianMixtureParams.from_dict({"k": 2, "maxIterations": 5, "tolerance": 1e-3})
    assert params.max_iter == 5
    assert params.tol == 1e-3
    assert OPTICSParams.from_dict({"maxEps": 3.0}).max_eps == 3.0


def test_from_dict_none_values_use_defaults():
    assert KMeansParams.from_dict({"k": None, "seed": None}).k == 3


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(InvalidParameterError, match="Unknown parameter 'bandwidth'"):
        KMeansParams.from_dict({"k": 2, "bandwidth": 1.0})


def test_params_are_frozen():
    params = KMeansParams()
    with pytest.raises(AttributeError):
        params.k = 5


def test_optics_default_max_eps_unbounded():
    assert math.isinf(OPTICSParams().max_eps)


# ------------------------------------------------------------------
# run_clustering
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    "algorithm, params",
    [
        ("kmeans", {"k": 2, "seed": 0}),
        ("hierarchical", {"k": 2, "linkage": "complete"}),
        ("dbscan", {"eps": 2.0, "min_pts": 1}),
        ("optics", {"min_pts": 1, "threshold": 2.0}),
        ("meanshift", {"bandwidth": 2.0}),
        ("gmm", {"k": 2, "seed": 0}),
        ("spectral", {"k": 2, "seed": 0}),
    ],
)
def test_run_clustering_every_algorithm_splits_pairs(two_pairs, algorithm, params):
    result = run_clustering(two_pairs, algorithm, params)
    assert isinstance(result, ClusteringResult)
    assert result.labels.shape == (4,)
    assert result.labels[0] == result.labels[1]
    assert result.labels[2] == result.labels[3]
    assert result.labels[0] != result.labels[2]
    assert result.n_noise == 0


def test_run_clustering_with_dataclass(two_pairs):
    result = run_clustering(two_pairs, Algorithm.HIERARCHICAL, HierarchicalParams(k=1))
    assert len(result.metadata["linkage"]) == 3


def test_run_clustering_wrong_params_type(two_pairs):
    with pytest.raises(InvalidParameterError, match="expects KMeansParams"):
        run_clustering(two_pairs, "kmeans", DBSCANParams())


def test_run_clustering_propagates_algorithm_errors(two_pairs):
    with pytest.raises(InvalidKError):
        run_clustering(two_pairs, "kmeans", {"k": 10})
    with pytest.raises(InvalidParameterError, match="eps"):
        run_clustering(two_pairs, "dbscan", {"eps": -1})


def test_run_clustering_uses_configured_default_seed(two_pairs, monkeypatch):
    monkeypatch.setattr(dispatch.config.engine, "default_seed", 123)
    result = run_clustering(two_pairs, "kmeans", {"k": 2})
    assert result.parameters["seed"] == 123

    explicit = run_clustering(two_pairs, "kmeans", {"k": 2, "seed": 5})
    assert explicit.parameters["seed"] == 5


def test_run_clustering_label_length_for_all_algorithms():
    rng = np.random.default_rng(42)
    X = rng.standard_normal((30, 3))
    for algorithm in Algorithm:
        params = {"k": 3} if "k" in PARAMS_TYPES[algorithm].__dataclass_fields__ else {}
        result = run_clustering(X, algorithm, params)
        assert result.labels.shape == (30,), algorithm
