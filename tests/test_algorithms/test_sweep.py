"""
Tests for sweep orchestration.
"""

import numpy as np
import pytest

from clusterlab.algorithms.sweep import SweepConfig, SweepResult, pairwise_ari, run_sweep
from clusterlab.exceptions import InvalidKError, InvalidParameterError


def test_sweep_config_defaults():
    """Test SweepConfig default values."""
    cfg = SweepConfig()
    assert cfg.k_min == 2
    assert cfg.k_max == 10
    assert cfg.max_iter == 100
    assert cfg.base_seed == 0
    assert cfg.n_restarts == 1
    assert cfg.compute_stability is False


def test_run_sweep_basic(blobs):
    """Test basic sweep without stability metrics."""
    X, _ = blobs
    cfg = SweepConfig(k_min=2, k_max=5, n_restarts=1)

    result = run_sweep(X, cfg)

    assert isinstance(result, SweepResult)
    assert sorted(result.by_k, key=int) == ["2", "3", "4", "5"]
    entry = result.by_k["3"]
    assert entry["labels"].shape == (90,)
    assert entry["centroids"].shape == (3, 2)
    assert entry["labels_all"] is None
    assert "stability" not in entry
    assert [m["metric"] for m in entry["evaluation"]] == [
        "silhouette_score",
        "davies_bouldin_index",
        "calinski_harabasz_index",
    ]


def test_run_sweep_picks_true_k_by_silhouette(blobs):
    X, _ = blobs
    result = run_sweep(X, SweepConfig(k_min=2, k_max=6, n_restarts=3))
    assert result.best_k_by_silhouette() == 3


def test_run_sweep_keeps_lowest_inertia_restart(blobs):
    X, _ = blobs
    result = run_sweep(X, SweepConfig(k_min=4, k_max=4, n_restarts=4))
    entry = result.by_k["4"]
    assert entry["inertia"] == pytest.approx(min(entry["inertias"]))
    assert len(entry["labels_all"]) == 4


def test_inertia_curve_non_increasing_on_blobs(blobs):
    X, _ = blobs
    curve = run_sweep(X, SweepConfig(k_min=1, k_max=4, n_restarts=3)).inertia_curve()
    assert len(curve) == 4
    assert np.all(np.diff(curve) <= 1e-9)


def test_run_sweep_with_stability(blobs):
    """Test sweep with stability metrics."""
    X, _ = blobs
    cfg = SweepConfig(k_min=2, k_max=3, n_restarts=3, compute_stability=True)

    result = run_sweep(X, cfg)

    stability = result.by_k["3"]["stability"]
    assert stability["stability_ari"]["mean"] == pytest.approx(1.0)
    assert stability["stability_ari"]["std"] == pytest.approx(0.0)
    assert stability["inertia"]["std"] >= 0.0


def test_stability_requires_restarts(blobs):
    X, _ = blobs
    result = run_sweep(X, SweepConfig(k_min=2, k_max=2, compute_stability=True))
    assert "stability" not in result.by_k["2"]


def test_pairwise_ari():
    labels = [np.array([0, 0, 1, 1]), np.array([1, 1, 0, 0]), np.array([0, 1, 0, 1])]
    scores = pairwise_ari(labels)
    assert scores.shape == (3,)
    assert scores[0] == pytest.approx(1.0)


def test_run_sweep_validation(two_pairs):
    with pytest.raises(InvalidParameterError, match="k_min"):
        run_sweep(two_pairs, SweepConfig(k_min=3, k_max=2))
    with pytest.raises(InvalidKError):
        run_sweep(two_pairs, SweepConfig(k_min=2, k_max=5))
    with pytest.raises(InvalidParameterError, match="n_restarts"):
        run_sweep(two_pairs, SweepConfig(k_min=1, k_max=2, n_restarts=0))
