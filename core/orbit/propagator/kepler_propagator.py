"""
开普勒轨道传播器

二体、球形地球近似下的卫星位置计算：
- 由平近点角求解开普勒方程得到偏近点角
- 由偏近点角得到真近点角
- 轨道平面坐标经3-1-3旋转得到地心坐标，再转换为经纬度

简化假设（用于可视化和教学，不用于任务规划）：
- 轨道半径固定为地球半径+轨道高度，不随真近点角变化
- 不建模地球自转、J2摄动和大气折射
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
import math

from ...exceptions import NumericConvergenceError, ValidationError
from ...models.orbital_elements import OrbitalElements
from ..utils import (
    EARTH_RADIUS_KM, TWO_PI,
    ecef_to_geodetic, ensure_utc, minutes_between, perifocal_to_ecef
)

# 开普勒方程迭代默认参数
DEFAULT_MAX_ITERATIONS = 50
DEFAULT_TOLERANCE = 1e-10  # 弧度


@dataclass(frozen=True)
class GeodeticPosition:
    """
    卫星星下点位置

    Attributes:
        latitude_deg: 纬度（度，-90~90）
        longitude_deg: 经度（度，(-180, 180]）
        altitude_km: 轨道高度（千米）
        timestamp: 对应时刻
        x_km, y_km, z_km: 地心坐标（千米）
    """
    latitude_deg: float
    longitude_deg: float
    altitude_km: float
    timestamp: Optional[datetime] = None
    x_km: float = 0.0
    y_km: float = 0.0
    z_km: float = 0.0

    @property
    def ecef(self) -> Tuple[float, float, float]:
        return (self.x_km, self.y_km, self.z_km)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'latitude_deg': self.latitude_deg,
            'longitude_deg': self.longitude_deg,
            'altitude_km': self.altitude_km,
            'x_km': self.x_km,
            'y_km': self.y_km,
            'z_km': self.z_km,
        }


def solve_kepler(
    mean_anomaly: float,
    eccentricity: float,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    tolerance: float = DEFAULT_TOLERANCE
) -> float:
    """
    求解开普勒方程 E - e*sin(E) = M

    使用不动点迭代 E <- M + e*sin(E)，仅对小偏心率收敛较快。
    在限定迭代次数内未达到容差时抛出异常，而不是返回截断结果。

    Args:
        mean_anomaly: 平近点角（弧度）
        eccentricity: 偏心率
        max_iterations: 最大迭代次数
        tolerance: 收敛容差（弧度）

    Returns:
        偏近点角（弧度）

    Raises:
        NumericConvergenceError: 迭代未收敛
    """
    eccentric_anomaly = mean_anomaly
    residual = float('inf')

    for iteration in range(1, max_iterations + 1):
        next_value = mean_anomaly + eccentricity * math.sin(eccentric_anomaly)
        residual = abs(next_value - eccentric_anomaly)
        eccentric_anomaly = next_value
        if residual <= tolerance:
            return eccentric_anomaly

    raise NumericConvergenceError(
        f"Kepler solver did not converge for e={eccentricity}, M={mean_anomaly:.6f} rad "
        f"after {max_iterations} iterations (residual {residual:.3e} rad)",
        iterations=max_iterations,
        residual=residual,
    )


def true_anomaly_from_eccentric(eccentric_anomaly: float, eccentricity: float) -> float:
    """由偏近点角计算真近点角（弧度）"""
    return 2 * math.atan2(
        math.sqrt(1 + eccentricity) * math.sin(eccentric_anomaly / 2),
        math.sqrt(1 - eccentricity) * math.cos(eccentric_anomaly / 2)
    )


class KeplerPropagator:
    """
    开普勒轨道传播器

    无状态：仅保存求解器参数，每次调用都是纯计算。
    """

    def __init__(
        self,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        tolerance: float = DEFAULT_TOLERANCE
    ):
        """
        初始化传播器

        Args:
            max_iterations: 开普勒方程最大迭代次数
            tolerance: 开普勒方程收敛容差（弧度）
        """
        if max_iterations < 1:
            raise ValidationError(f"must be >= 1, got {max_iterations}", field="max_iterations")
        if not tolerance > 0:
            raise ValidationError(f"must be > 0, got {tolerance}", field="tolerance")
        self.max_iterations = max_iterations
        self.tolerance = tolerance

    def mean_anomaly_at(self, elements: OrbitalElements, t: datetime) -> float:
        """
        计算指定时刻的平近点角

        Returns:
            平近点角（弧度，[0, 2π)）
        """
        delta_minutes = minutes_between(elements.epoch, t)
        mean_anomaly = math.radians(elements.mean_anomaly_deg) + elements.mean_motion_rad_per_min * delta_minutes
        # Python取模对负的时间差同样返回[0, 2π)
        return mean_anomaly % TWO_PI

    def propagate(self, elements: OrbitalElements, t: datetime) -> GeodeticPosition:
        """
        传播到指定时间

        Args:
            elements: 轨道根数
            t: 目标时间

        Returns:
            GeodeticPosition: 星下点位置

        Raises:
            NumericConvergenceError: 高偏心率导致开普勒方程不收敛
        """
        t = ensure_utc(t)
        e = elements.eccentricity

        mean_anomaly = self.mean_anomaly_at(elements, t)
        eccentric_anomaly = solve_kepler(mean_anomaly, e, self.max_iterations, self.tolerance)
        true_anomaly = true_anomaly_from_eccentric(eccentric_anomaly, e)

        # 固定轨道半径
        radius = EARTH_RADIUS_KM + elements.altitude_km

        x_orbit = radius * math.cos(true_anomaly)
        y_orbit = radius * math.sin(true_anomaly)

        x, y, z = perifocal_to_ecef(
            x_orbit,
            y_orbit,
            math.radians(elements.raan_deg),
            math.radians(elements.inclination_deg),
            math.radians(elements.arg_perigee_deg),
        )

        latitude, longitude, _ = ecef_to_geodetic(x, y, z)

        return GeodeticPosition(
            latitude_deg=latitude,
            longitude_deg=longitude,
            altitude_km=elements.altitude_km,
            timestamp=t,
            x_km=x,
            y_km=y,
            z_km=z,
        )

    def propagate_range(
        self,
        elements: OrbitalElements,
        start_time: datetime,
        end_time: datetime,
        time_step: timedelta = timedelta(seconds=60)
    ) -> List[GeodeticPosition]:
        """
        传播时间序列（包含结束时刻）

        Args:
            elements: 轨道根数
            start_time: 开始时间
            end_time: 结束时间
            time_step: 时间步长

        Returns:
            List[GeodeticPosition]: 位置序列
        """
        if time_step <= timedelta(0):
            raise ValidationError(f"must be positive, got {time_step}", field="time_step")

        start_time = ensure_utc(start_time)
        end_time = ensure_utc(end_time)

        positions = []
        index = 0
        current_time = start_time
        while current_time <= end_time:
            positions.append(self.propagate(elements, current_time))
            index += 1
            current_time = start_time + index * time_step

        return positions

    def ground_track(
        self,
        elements: OrbitalElements,
        start_time: datetime,
        duration: Optional[timedelta] = None,
        time_step: timedelta = timedelta(seconds=60)
    ) -> List[Tuple[datetime, float, float]]:
        """
        获取星下点轨迹

        Args:
            elements: 轨道根数
            start_time: 开始时间
            duration: 轨迹时长，默认一个轨道周期
            time_step: 时间步长

        Returns:
            List of (timestamp, latitude, longitude)
        """
        if duration is None:
            duration = timedelta(minutes=elements.period_minutes)

        start_time = ensure_utc(start_time)
        positions = self.propagate_range(elements, start_time, start_time + duration, time_step)
        return [(p.timestamp, p.latitude_deg, p.longitude_deg) for p in positions]


_default_propagator = KeplerPropagator()


def propagate(elements: OrbitalElements, t: datetime) -> GeodeticPosition:
    """使用默认求解参数传播到指定时间"""
    return _default_propagator.propagate(elements, t)
