"""
Configuration management for clusterlab.

Loads configuration from environment variables (typically from a .env file).
Uses python-dotenv to load .env automatically.

Usage:
    from clusterlab.config import config

    # Logging level used by setup_logging()
    level = config.engine.log_level

    # Default seed handed to stochastic algorithms by the dispatcher
    seed = config.engine.default_seed
"""

import os
from dataclasses import dataclass
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

# Look for .env in project root (parent of src/)
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    """Read an integer environment variable, ``default`` when unset or blank."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class EngineConfig:
    """Engine-wide defaults and warning thresholds."""
    log_level: str = "INFO"
    default_seed: Optional[int] = None
    tsne_max_points: int = 5000
    hierarchical_max_points: int = 2000

    def __post_init__(self):
        """Validate thresholds."""
        self.log_level = (self.log_level or "INFO").upper()
        if self.tsne_max_points < 1:
            raise ValueError(
                f"tsne_max_points must be >= 1, got {self.tsne_max_points}"
            )
        if self.hierarchical_max_points < 1:
            raise ValueError(
                "hierarchical_max_points must be >= 1, "
                f"got {self.hierarchical_max_points}"
            )


class Config:
    """
    Application configuration loaded from environment variables.

    Environment variables can be set:
    1. In a .env file in the project root
    2. In the system environment
    3. In a container/deployment environment
    """

    def __init__(self):
        """Load configuration from environment."""
        self.engine = EngineConfig(
            log_level=os.getenv("CLUSTERLAB_LOG_LEVEL", "INFO"),
            default_seed=_int_env("CLUSTERLAB_DEFAULT_SEED", None),
            tsne_max_points=_int_env("CLUSTERLAB_TSNE_MAX_POINTS", 5000),
            hierarchical_max_points=_int_env(
                "CLUSTERLAB_HIERARCHICAL_MAX_POINTS", 2000
            ),
        )


# Global config instance
config = Config()
