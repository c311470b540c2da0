"""轨道传播器"""

from .kepler_propagator import (
    GeodeticPosition,
    KeplerPropagator,
    propagate,
    solve_kepler,
)

__all__ = [
    'GeodeticPosition',
    'KeplerPropagator',
    'propagate',
    'solve_kepler',
]
