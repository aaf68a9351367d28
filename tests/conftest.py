"""
Pytest configuration and shared fixtures.

This file is automatically discovered by pytest and provides fixtures
available to all test modules.
"""

import numpy as np
import pytest


@pytest.fixture
def two_pairs():
    """Four points forming two tight, well-separated pairs."""
    return np.array([[0.0, 0.0], [0.0, 1.0], [10.0, 10.0], [10.0, 11.0]])


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def blobs():
    """
    Three well-separated Gaussian blobs in 2-D.

    Returns:
        Tuple of (X of shape (90, 2), true labels of shape (90,))
    """
    rng = np.random.default_rng(0)
    centers = np.array([[0.0, 0.0], [8.0, 8.0], [-8.0, 8.0]])
    X = np.vstack([c + 0.5 * rng.standard_normal((30, 2)) for c in centers])
    y = np.repeat(np.arange(3), 30)
    return X, y
