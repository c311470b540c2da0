"""
核心模块 - 卫星轨道传播与过境预测引擎

包含数据模型、轨道传播、可见性计算与过境预测服务
"""

from .exceptions import (
    SatPassError,
    ValidationError,
    NumericConvergenceError,
    SearchCancelledError,
    CatalogError,
)
from .models.orbital_elements import OrbitalElements
from .models.observer import ObserverLocation
from .models.catalog import SatelliteCatalog

__all__ = [
    'SatPassError', 'ValidationError', 'NumericConvergenceError',
    'SearchCancelledError', 'CatalogError',
    'OrbitalElements',
    'ObserverLocation',
    'SatelliteCatalog',
]
