"""
Single entry point that runs a clustering algorithm chosen by name.

Each algorithm has a frozen parameter dataclass. Parameter bags (plain
dicts, e.g. decoded request bodies) are turned into those dataclasses with
``from_dict``, which also accepts the camelCase keys used by older clients
and rejects anything it does not recognise.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from ..config import config
from ..exceptions import InvalidParameterError
from ..utils.logging_config import get_logger
from .density import dbscan, optics
from .hierarchical import Linkage, agglomerative
from .kernel import MatrixLike
from .mean_shift import mean_shift
from .mixture import gaussian_mixture
from .partitioning import kmeans
from .results import ClusteringResult
from .spectral import spectral_clustering

logger = get_logger(__name__)


class Algorithm(str, Enum):
    """Supported clustering algorithms."""

    KMEANS = "kmeans"
    HIERARCHICAL = "hierarchical"
    DBSCAN = "dbscan"
    OPTICS = "optics"
    MEAN_SHIFT = "meanshift"
    GAUSSIAN_MIXTURE = "gaussian_mixture"
    SPECTRAL = "spectral"

    @classmethod
    def parse(cls, value: Union["Algorithm", str]) -> "Algorithm":
        """Accept an Algorithm, its value, or a known alias (case-insensitive)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        key = _ALGORITHM_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError as e:
            valid = ", ".join(m.value for m in cls)
            raise InvalidParameterError(
                f"Unsupported algorithm: {value!r} (expected one of {valid})"
            ) from e


_ALGORITHM_ALIASES = {
    "k-means": "kmeans",
    "k_means": "kmeans",
    "agglomerative": "hierarchical",
    "mean_shift": "meanshift",
    "mean-shift": "meanshift",
    "gmm": "gaussian_mixture",
    "gaussian-mixture": "gaussian_mixture",
}

_KEY_ALIASES = {
    "minPts": "min_pts",
    "maxEps": "max_eps",
    "maxIterations": "max_iter",
    "tolerance": "tol",
    "numClusters": "k",
    "n_clusters": "k",
}


class _FromDict:
    """``from_dict`` constructor shared by the parameter dataclasses."""

    @classmethod
    def from_dict(cls, bag: Optional[Mapping[str, Any]] = None):
        """
        Build parameters from a bag, falling back to defaults.

        Keys set to None are treated as absent.

        Raises:
            InvalidParameterError: If the bag contains an unknown key
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in (bag or {}).items():
            name = _KEY_ALIASES.get(key, key)
            if name not in known:
                raise InvalidParameterError(
                    f"Unknown parameter {key!r} for {cls.__name__} "
                    f"(expected one of {', '.join(sorted(known))})"
                )
            if value is not None:
                kwargs[name] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class KMeansParams(_FromDict):
    k: int = 3
    max_iter: int = 100
    tol: float = 1e-6
    seed: Optional[int] = None


@dataclass(frozen=True)
class HierarchicalParams(_FromDict):
    k: int = 3
    linkage: str = Linkage.SINGLE.value


@dataclass(frozen=True)
class DBSCANParams(_FromDict):
    eps: float = 0.5
    min_pts: int = 5


@dataclass(frozen=True)
class OPTICSParams(_FromDict):
    min_pts: int = 5
    max_eps: float = math.inf
    threshold: float = 0.5


@dataclass(frozen=True)
class MeanShiftParams(_FromDict):
    bandwidth: float = 1.0
    max_iter: int = 100
    tol: float = 1e-6


@dataclass(frozen=True)
class GaussianMixtureParams(_FromDict):
    k: int = 3
    max_iter: int = 100
    tol: float = 1e-6
    seed: Optional[int] = None


@dataclass(frozen=True)
class SpectralParams(_FromDict):
    k: int = 3
    sigma: float = 1.0
    seed: Optional[int] = None
    max_iter: int = 100


Params = Union[
    KMeansParams,
    HierarchicalParams,
    DBSCANParams,
    OPTICSParams,
    MeanShiftParams,
    GaussianMixtureParams,
    SpectralParams,
]

PARAMS_TYPES = {
    Algorithm.KMEANS: KMeansParams,
    Algorithm.HIERARCHICAL: HierarchicalParams,
    Algorithm.DBSCAN: DBSCANParams,
    Algorithm.OPTICS: OPTICSParams,
    Algorithm.MEAN_SHIFT: MeanShiftParams,
    Algorithm.GAUSSIAN_MIXTURE: GaussianMixtureParams,
    Algorithm.SPECTRAL: SpectralParams,
}


def resolve_params(
    algorithm: Algorithm, params: Union[Params, Mapping[str, Any], None]
) -> Params:
    """
    Turn *params* into the dataclass *algorithm* expects.

    Stochastic algorithms without an explicit seed get
    ``config.engine.default_seed``.
    """
    expected = PARAMS_TYPES[algorithm]
    if params is None or isinstance(params, Mapping):
        params = expected.from_dict(params)
    elif not isinstance(params, expected):
        raise InvalidParameterError(
            f"{algorithm.value} expects {expected.__name__}, got {type(params).__name__}"
        )
    if getattr(params, "seed", 0) is None and config.engine.default_seed is not None:
        params = replace(params, seed=config.engine.default_seed)
    return params


def run_clustering(
    X: MatrixLike,
    algorithm: Union[Algorithm, str],
    params: Union[Params, Mapping[str, Any], None] = None,
) -> ClusteringResult:
    """
    Run one clustering algorithm on X.

    Args:
        X: Input data of shape (n_samples, n_features)
        algorithm: Algorithm member, value or alias (e.g. "gmm")
        params: Matching parameter dataclass, a parameter bag, or None for
            defaults

    Returns:
        The algorithm's ClusteringResult

    Raises:
        InvalidParameterError: For an unknown algorithm, an unknown parameter
            key or parameters of the wrong type; algorithm-specific
            validation errors propagate unchanged
    """
    algorithm = Algorithm.parse(algorithm)
    p = resolve_params(algorithm, params)
    logger.debug("Dispatching %s with %s", algorithm.value, p)

    match algorithm:
        case Algorithm.KMEANS:
            return kmeans(X, p.k, max_iter=p.max_iter, tol=p.tol, seed=p.seed)
        case Algorithm.HIERARCHICAL:
            return agglomerative(X, p.k, linkage=p.linkage)
        case Algorithm.DBSCAN:
            return dbscan(X, eps=p.eps, min_pts=p.min_pts)
        case Algorithm.OPTICS:
            return optics(X, min_pts=p.min_pts, max_eps=p.max_eps, threshold=p.threshold)
        case Algorithm.MEAN_SHIFT:
            return mean_shift(X, bandwidth=p.bandwidth, max_iter=p.max_iter, tol=p.tol)
        case Algorithm.GAUSSIAN_MIXTURE:
            return gaussian_mixture(X, p.k, max_iter=p.max_iter, tol=p.tol, seed=p.seed)
        case Algorithm.SPECTRAL:
            return spectral_clustering(
                X, p.k, sigma=p.sigma, seed=p.seed, max_iter=p.max_iter
            )
    raise InvalidParameterError(f"Unsupported algorithm: {algorithm!r}")
