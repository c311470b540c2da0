"""
轨道工具函数

提供轨道计算相关的共享工具函数和常量（球形地球、二体近似）
"""

import math
from datetime import datetime, timezone
from typing import Tuple

# =============================================================================
# 轨道常数
# =============================================================================

# 地球平均半径（千米），球形地球近似
EARTH_RADIUS_KM = 6371.0

TWO_PI = 2.0 * math.pi

# 视线向量长度低于该值视为两点重合（千米）
MIN_LOS_DISTANCE_KM = 1e-9


# =============================================================================
# 通用工具函数
# =============================================================================

def clamp(value: float, min_val: float, max_val: float) -> float:
    """
    将值限制在指定范围内

    Args:
        value: 输入值
        min_val: 最小值
        max_val: 最大值

    Returns:
        限制在[min_val, max_val]范围内的值
    """
    return max(min_val, min(max_val, value))


def normalize_longitude(longitude_deg: float) -> float:
    """
    将经度规范化到(-180, 180]

    Args:
        longitude_deg: 经度（度）

    Returns:
        规范化后的经度（度）
    """
    lon = math.fmod(longitude_deg, 360.0)
    if lon <= -180.0:
        lon += 360.0
    elif lon > 180.0:
        lon -= 360.0
    return lon


def ensure_utc(dt: datetime) -> datetime:
    """无时区的datetime按UTC处理，其余转换到UTC"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def minutes_between(start: datetime, end: datetime) -> float:
    """两个时刻之间的分钟数（end - start）"""
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / 60.0


# =============================================================================
# 坐标转换
# =============================================================================

def geodetic_to_ecef(
    latitude_deg: float,
    longitude_deg: float,
    radius_km: float
) -> Tuple[float, float, float]:
    """
    球面经纬度转换为地心固定坐标(ECEF)

    Args:
        latitude_deg: 纬度（度）
        longitude_deg: 经度（度）
        radius_km: 到地心距离（千米）

    Returns:
        (x, y, z) in km
    """
    lat = math.radians(latitude_deg)
    lon = math.radians(longitude_deg)

    x = radius_km * math.cos(lat) * math.cos(lon)
    y = radius_km * math.cos(lat) * math.sin(lon)
    z = radius_km * math.sin(lat)

    return x, y, z


def ecef_to_geodetic(x: float, y: float, z: float) -> Tuple[float, float, float]:
    """
    ECEF坐标转换为球面经纬度

    Returns:
        (latitude_deg, longitude_deg, radius_km)
    """
    r = math.sqrt(x * x + y * y + z * z)
    if r == 0.0:
        return 0.0, 0.0, 0.0

    latitude = math.degrees(math.asin(clamp(z / r, -1.0, 1.0)))
    longitude = normalize_longitude(math.degrees(math.atan2(y, x)))

    return latitude, longitude, r


def perifocal_to_ecef(
    x_orbit: float,
    y_orbit: float,
    raan: float,
    inclination: float,
    arg_perigee: float
) -> Tuple[float, float, float]:
    """
    轨道平面坐标旋转到地心坐标（3-1-3旋转：ω, i, Ω）

    地球自转不建模，因此该坐标系同时作为ECEF使用。

    Args:
        x_orbit, y_orbit: 轨道平面内坐标（近地点方向为x轴）
        raan: 升交点赤经（弧度）
        inclination: 轨道倾角（弧度）
        arg_perigee: 近地点幅角（弧度）

    Returns:
        (x, y, z)
    """
    # 绕z轴旋转近地点幅角
    x_p = x_orbit * math.cos(arg_perigee) - y_orbit * math.sin(arg_perigee)
    y_p = x_orbit * math.sin(arg_perigee) + y_orbit * math.cos(arg_perigee)

    # 绕x轴旋转倾角，再绕z轴旋转升交点赤经
    cos_raan = math.cos(raan)
    sin_raan = math.sin(raan)
    cos_i = math.cos(inclination)

    x = x_p * cos_raan - y_p * cos_i * sin_raan
    y = x_p * sin_raan + y_p * cos_i * cos_raan
    z = y_p * math.sin(inclination)

    return x, y, z


def great_circle_distance_km(
    lat1_deg: float,
    lon1_deg: float,
    lat2_deg: float,
    lon2_deg: float,
    radius_km: float = EARTH_RADIUS_KM
) -> float:
    """
    两点间大圆距离（haversine公式）

    Returns:
        距离（千米）
    """
    d_lat = math.radians(lat2_deg - lat1_deg)
    d_lon = math.radians(lon2_deg - lon1_deg)
    a = (math.sin(d_lat / 2) ** 2 +
         math.cos(math.radians(lat1_deg)) * math.cos(math.radians(lat2_deg)) *
         math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(max(0.0, 1 - a)))
    return radius_km * c
