"""
Algorithm Core Library - clustering, evaluation and dimensionality reduction.

Every function here is pure with respect to its inputs: the caller's matrix
is copied on entry and each call keeps its own random generator.
"""

from .results import NOISE, ClusteringResult, LinkageStep
from .kernel import (
    as_matrix,
    squared_distance,
    distance,
    mean,
    variance,
    covariance_diagonal,
    gaussian_density,
    log_gaussian_density,
    pairwise_distances,
)
from .partitioning import kmeans
from .density import dbscan, optics, extract_optics_clusters
from .hierarchical import Linkage, agglomerative
from .mean_shift import mean_shift
from .mixture import gaussian_mixture
from .spectral import spectral_clustering
from .evaluation import (
    EvaluationResult,
    silhouette_score,
    silhouette_samples,
    davies_bouldin_index,
    calinski_harabasz_index,
    evaluate_clustering,
    elbow_wcss,
    adjusted_rand_index,
    cluster_sizes,
)
from .dimensionality_reduction import (
    ReductionResult,
    pca,
    pca_reconstruct,
    tsne,
    umap,
    auto_select_technique,
    reduce_dimensions,
)
from .dispatch import (
    Algorithm,
    KMeansParams,
    HierarchicalParams,
    DBSCANParams,
    OPTICSParams,
    MeanShiftParams,
    GaussianMixtureParams,
    SpectralParams,
    run_clustering,
)
from .sweep import SweepConfig, SweepResult, run_sweep

__all__ = [
    # Results
    "NOISE",
    "ClusteringResult",
    "LinkageStep",
    # Kernel
    "as_matrix",
    "squared_distance",
    "distance",
    "mean",
    "variance",
    "covariance_diagonal",
    "gaussian_density",
    "log_gaussian_density",
    "pairwise_distances",
    # Clustering
    "kmeans",
    "dbscan",
    "optics",
    "extract_optics_clusters",
    "Linkage",
    "agglomerative",
    "mean_shift",
    "gaussian_mixture",
    "spectral_clustering",
    # Evaluation
    "EvaluationResult",
    "silhouette_score",
    "silhouette_samples",
    "davies_bouldin_index",
    "calinski_harabasz_index",
    "evaluate_clustering",
    "elbow_wcss",
    "adjusted_rand_index",
    "cluster_sizes",
    # Dimensionality reduction
    "ReductionResult",
    "pca",
    "pca_reconstruct",
    "tsne",
    "umap",
    "auto_select_technique",
    "reduce_dimensions",
    # Dispatch
    "Algorithm",
    "KMeansParams",
    "HierarchicalParams",
    "DBSCANParams",
    "OPTICSParams",
    "MeanShiftParams",
    "GaussianMixtureParams",
    "SpectralParams",
    "run_clustering",
    # Sweep orchestration
    "SweepConfig",
    "SweepResult",
    "run_sweep",
]
