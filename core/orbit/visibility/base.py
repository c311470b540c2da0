"""
可见性计算基础

提供观测者-卫星仰角计算以及可见性采样、过境记录的数据结构
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple
import math

from ...exceptions import ValidationError
from ...models.observer import ObserverLocation
from ..propagator.kepler_propagator import GeodeticPosition
from ..utils import EARTH_RADIUS_KM, MIN_LOS_DISTANCE_KM, clamp, geodetic_to_ecef

# 默认最小可见仰角（度）
DEFAULT_MIN_ELEVATION = 10.0


class QualityTier(Enum):
    """过境质量等级"""
    EXCELLENT = "excellent"
    VERY_GOOD = "very-good"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class VisibilitySample:
    """
    单时刻可见性采样

    Attributes:
        timestamp: 采样时刻
        position: 卫星星下点位置
        elevation_deg: 仰角（度，负值表示在地平线以下）
        is_visible: 仰角是否达到最小可见仰角
        slant_range_km: 观测者到卫星的直线距离（千米）
    """
    timestamp: Optional[datetime]
    position: GeodeticPosition
    elevation_deg: float
    is_visible: bool
    slant_range_km: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'position': self.position.to_dict(),
            'elevation_deg': self.elevation_deg,
            'is_visible': self.is_visible,
            'slant_range_km': self.slant_range_km,
        }


@dataclass(frozen=True)
class Pass:
    """
    过境记录（一次连续可见时段）

    Attributes:
        satellite_id: 卫星ID
        start_time: 过境开始时间
        end_time: 过境结束时间
        duration_minutes: 持续时间（分钟）
        peak_elevation_deg: 最大仰角（度）
        quality_tier: 质量等级
        data_opportunity_score: 数据获取机会评分（0-100）
        peak_time: 最大仰角出现时刻
        in_progress: 搜索开始时已处于可见状态（开始时间为搜索开始时间）
        direction: 星下点运动方向（"N→S"或"S→N"）
        recommendation: 数据获取建议
    """
    satellite_id: str
    start_time: datetime
    end_time: datetime
    duration_minutes: float
    peak_elevation_deg: float
    quality_tier: Optional[QualityTier] = None
    data_opportunity_score: Optional[int] = None
    peak_time: Optional[datetime] = None
    in_progress: bool = False
    direction: str = ""
    recommendation: str = ""

    def with_quality(self, quality) -> 'Pass':
        """附加质量评估结果，返回新对象"""
        return replace(
            self,
            quality_tier=quality.tier,
            data_opportunity_score=quality.score,
            recommendation=quality.recommendation,
        )

    def __lt__(self, other):
        """用于排序"""
        return (self.start_time, self.satellite_id) < (other.start_time, other.satellite_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'satellite_id': self.satellite_id,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
            'duration_minutes': self.duration_minutes,
            'peak_elevation_deg': self.peak_elevation_deg,
            'peak_time': self.peak_time.isoformat() if self.peak_time else None,
            'quality_tier': self.quality_tier.value if self.quality_tier else None,
            'data_opportunity_score': self.data_opportunity_score,
            'recommendation': self.recommendation,
            'in_progress': self.in_progress,
            'direction': self.direction,
        }


class VisibilityEvaluator:
    """
    可见性评估器

    球形地球近似下计算卫星相对观测者的仰角。观测者"天顶"方向取
    观测点的地心径向，仅对完美球面上的观测者严格成立。
    """

    def __init__(self, min_elevation: float = DEFAULT_MIN_ELEVATION):
        """
        初始化

        Args:
            min_elevation: 最小仰角（度）
        """
        if not (-90.0 <= min_elevation <= 90.0):
            raise ValidationError(f"must be in [-90, 90], got {min_elevation}", field="min_elevation_deg")
        self.min_elevation = min_elevation

    def calculate_elevation(
        self,
        sat_pos: Tuple[float, float, float],
        ground_pos: Tuple[float, float, float]
    ) -> Tuple[float, float]:
        """
        计算仰角

        Args:
            sat_pos: 卫星位置 (x, y, z) in km
            ground_pos: 地面位置 (x, y, z) in km

        Returns:
            (仰角（度）, 视线距离（千米）)，卫星在地平线以下时仰角为负值
        """
        # 观测者到卫星的视线向量
        dx = sat_pos[0] - ground_pos[0]
        dy = sat_pos[1] - ground_pos[1]
        dz = sat_pos[2] - ground_pos[2]
        distance = math.sqrt(dx * dx + dy * dy + dz * dz)

        # 两点重合时定义为天顶
        if distance < MIN_LOS_DISTANCE_KM:
            return 90.0, distance

        # 观测者天顶单位向量（地心径向）
        gx, gy, gz = ground_pos
        g_norm = math.sqrt(gx * gx + gy * gy + gz * gz)
        if g_norm == 0.0:
            return 90.0, distance
        up_x, up_y, up_z = gx / g_norm, gy / g_norm, gz / g_norm

        cos_zenith = (dx * up_x + dy * up_y + dz * up_z) / distance

        # 浮点舍入可能使点积略超出[-1, 1]
        elevation = math.degrees(math.asin(clamp(cos_zenith, -1.0, 1.0)))

        return elevation, distance

    def evaluate(
        self,
        position: GeodeticPosition,
        observer: ObserverLocation,
        min_elevation: Optional[float] = None
    ) -> VisibilitySample:
        """
        评估卫星对观测者的可见性

        Args:
            position: 卫星星下点位置
            observer: 观测者位置
            min_elevation: 最小仰角（度），默认使用构造参数

        Returns:
            VisibilitySample: 可见性采样
        """
        threshold = self.min_elevation if min_elevation is None else min_elevation

        sat_ecef = geodetic_to_ecef(
            position.latitude_deg,
            position.longitude_deg,
            EARTH_RADIUS_KM + position.altitude_km
        )
        elevation, distance = self.calculate_elevation(sat_ecef, observer.get_ecef_position())

        return VisibilitySample(
            timestamp=position.timestamp,
            position=position,
            elevation_deg=elevation,
            is_visible=elevation >= threshold,
            slant_range_km=distance,
        )


_default_evaluator = VisibilityEvaluator()


def evaluate(
    position: GeodeticPosition,
    observer: ObserverLocation,
    min_elevation_deg: float = DEFAULT_MIN_ELEVATION
) -> VisibilitySample:
    """计算单时刻仰角与可见性"""
    return _default_evaluator.evaluate(position, observer, min_elevation_deg)
