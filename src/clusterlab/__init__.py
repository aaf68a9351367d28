"""
clusterlab - Core Package

An in-memory numeric engine for unsupervised learning over tabular data.

This package provides:
- Clustering algorithms (K-means, hierarchical, DBSCAN, OPTICS, mean shift,
  Gaussian mixture, spectral) behind a single dispatcher
- Cluster quality metrics
- Dimensionality reduction for visualisation
"""

__version__ = "0.1.0"

from .algorithms import ClusteringResult, run_clustering
from .exceptions import (
    ClusteringError,
    DimensionMismatchError,
    EmptyDatasetError,
    InvalidKError,
    InvalidParameterError,
)

# Explicitly import subpackages so clusterlab.algorithms etc. are discoverable
from . import algorithms
from . import utils

__all__ = [
    "ClusteringResult",
    "run_clustering",
    "ClusteringError",
    "DimensionMismatchError",
    "EmptyDatasetError",
    "InvalidKError",
    "InvalidParameterError",
    "algorithms",
    "utils",
]
