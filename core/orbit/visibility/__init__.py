"""可见性计算模块"""

from .base import DEFAULT_MIN_ELEVATION, Pass, QualityTier, VisibilityEvaluator, VisibilitySample, evaluate
from .pass_finder import DEFAULT_TIME_STEP, PassFinder, find_passes
from .pass_quality import PassQuality, PassQualityClassifier, classify, tier_for_elevation
from .window_cache import DEFAULT_CACHE_TTL, PassCache, make_cache_key

__all__ = [
    'DEFAULT_MIN_ELEVATION',
    'DEFAULT_TIME_STEP',
    'DEFAULT_CACHE_TTL',
    'Pass',
    'QualityTier',
    'VisibilityEvaluator',
    'VisibilitySample',
    'evaluate',
    'PassFinder',
    'find_passes',
    'PassQuality',
    'PassQualityClassifier',
    'classify',
    'tier_for_elevation',
    'PassCache',
    'make_cache_key',
]
