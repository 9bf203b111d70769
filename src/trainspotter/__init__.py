"""
Trainspotter — Starlink train visibility predictions for Python.

Finds the windows in the coming week when freshly launched Starlink
satellites are lit by the Sun over a dark sky for a given observer, and
ranks them by how good the view should be.
"""

from __future__ import annotations

__version__ = "0.1.0.dev0"

from trainspotter.config import EngineConfig
from trainspotter.core.launch import BoosterInfo, LaunchGroup, LaunchSnapshot
from trainspotter.core.observer import ObserverLocation
from trainspotter.core.passes import Pass, PassFinder
from trainspotter.core.propagation import PropagationError, look_angles, propagate
from trainspotter.core.quality import QualityReport, assess_quality
from trainspotter.core.scoring import DEFAULT_WEIGHTS, PredictionWeights, score_pass
from trainspotter.core.tle import ElementSet, is_fresh, validate_tle
from trainspotter.data.providers import UpstreamError
from trainspotter.data.spacex import SpaceXClient
from trainspotter.engine.engine import CacheStats, PredictionEngine, PredictionUnavailableError

__all__ = [
    "__version__",
    "EngineConfig",
    "BoosterInfo",
    "LaunchGroup",
    "LaunchSnapshot",
    "ObserverLocation",
    "Pass",
    "PassFinder",
    "PropagationError",
    "look_angles",
    "propagate",
    "QualityReport",
    "assess_quality",
    "DEFAULT_WEIGHTS",
    "PredictionWeights",
    "score_pass",
    "ElementSet",
    "is_fresh",
    "validate_tle",
    "UpstreamError",
    "SpaceXClient",
    "CacheStats",
    "PredictionEngine",
    "PredictionUnavailableError",
]
