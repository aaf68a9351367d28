"""
Error taxonomy for the clustering engine.

Every error subclasses ``ValueError``: they all describe bad input detected
before an algorithm starts iterating. Mathematically undefined metrics are
not errors; see ``EvaluationResult.not_applicable``.
"""


class ClusteringError(ValueError):
    """Base class for all clusterlab input errors."""


class InvalidParameterError(ClusteringError):
    """An algorithm parameter lies outside its valid domain."""


class InvalidKError(ClusteringError):
    """Requested cluster count is outside ``[1, n_samples]``."""


class DimensionMismatchError(ClusteringError):
    """Vectors or arrays have incompatible shapes."""


class EmptyDatasetError(ClusteringError):
    """Zero-row input where at least one row is required."""
