"""
观测者位置模型 - 定义地面观测点（农场）的地理位置
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple
import math

from ..exceptions import ValidationError
from ..orbit.utils import EARTH_RADIUS_KM, geodetic_to_ecef


@dataclass(frozen=True)
class ObserverLocation:
    """
    观测者位置

    Attributes:
        latitude_deg: 纬度（度，-90~90）
        longitude_deg: 经度（度，-180~180）
        elevation_m: 海拔高度（米）
        name: 位置名称
    """
    latitude_deg: float
    longitude_deg: float
    elevation_m: float = 0.0
    name: str = ""

    def __post_init__(self):
        """初始化后验证"""
        for attr in ('latitude_deg', 'longitude_deg', 'elevation_m'):
            value = getattr(self, attr)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValidationError(f"must be a finite number, got {value!r}", field=attr)
        if not (-90 <= self.latitude_deg <= 90):
            raise ValidationError(f"Latitude must be in [-90, 90], got {self.latitude_deg}", field="latitude_deg")
        if not (-180 <= self.longitude_deg <= 180):
            raise ValidationError(f"Longitude must be in [-180, 180], got {self.longitude_deg}", field="longitude_deg")

    @property
    def radius_km(self) -> float:
        """到地心的距离（千米）"""
        return EARTH_RADIUS_KM + self.elevation_m / 1000.0

    def get_ecef_position(self) -> Tuple[float, float, float]:
        """
        获取地心固定坐标系(ECEF)中的位置

        Returns:
            (x, y, z) in km
        """
        return geodetic_to_ecef(self.latitude_deg, self.longitude_deg, self.radius_km)

    def cache_key(self) -> Tuple[float, float, float]:
        """用于结果缓存的键（名称不影响计算结果）"""
        return (self.latitude_deg, self.longitude_deg, self.elevation_m)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'latitude_deg': self.latitude_deg,
            'longitude_deg': self.longitude_deg,
            'elevation_m': self.elevation_m,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ObserverLocation':
        for required in ('latitude_deg', 'longitude_deg'):
            if required not in data:
                raise ValidationError("missing required field", field=required)
        return cls(
            latitude_deg=data['latitude_deg'],
            longitude_deg=data['longitude_deg'],
            elevation_m=data.get('elevation_m', 0.0),
            name=data.get('name', ''),
        )


# 默认观测点：亚利桑那州凤凰城农场
DEFAULT_OBSERVER = ObserverLocation(
    latitude_deg=33.4484,
    longitude_deg=-112.0740,
    elevation_m=331.0,
    name="Phoenix, Arizona (Farm Location)",
)
