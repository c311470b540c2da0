"""核心数据模型"""

from .orbital_elements import OrbitalElements, OPERATIONAL_STATUS, parse_timestamp
from .observer import ObserverLocation, DEFAULT_OBSERVER
from .catalog import SatelliteCatalog, DEFAULT_CONSTELLATION, DEFAULT_EPOCH

__all__ = [
    'OrbitalElements', 'OPERATIONAL_STATUS', 'parse_timestamp',
    'ObserverLocation', 'DEFAULT_OBSERVER',
    'SatelliteCatalog', 'DEFAULT_CONSTELLATION', 'DEFAULT_EPOCH',
]
