"""
轨道工具函数测试

测试坐标转换、经度规范化和轨道常量
"""

import pytest
import math
from datetime import datetime, timedelta, timezone

from core.orbit.utils import (
    EARTH_RADIUS_KM,
    clamp,
    ecef_to_geodetic,
    ensure_utc,
    geodetic_to_ecef,
    great_circle_distance_km,
    minutes_between,
    normalize_longitude,
    perifocal_to_ecef,
)


class TestConstants:
    """测试轨道常量"""

    def test_earth_radius_constant(self):
        """测试地球平均半径常数值"""
        assert EARTH_RADIUS_KM == 6371.0


class TestClampFunction:
    """测试clamp函数"""

    def test_clamp_within_range(self):
        """测试范围内的值保持不变"""
        assert clamp(50, 0, 100) == 50

    def test_clamp_below_min(self):
        """测试低于最小值时返回最小值"""
        assert clamp(-10, 0, 100) == 0

    def test_clamp_above_max(self):
        """测试高于最大值时返回最大值"""
        assert clamp(150, 0, 100) == 100

    def test_clamp_at_boundaries(self):
        """测试边界值"""
        assert clamp(0, 0, 100) == 0
        assert clamp(100, 0, 100) == 100


class TestNormalizeLongitude:
    """测试经度规范化"""

    @pytest.mark.parametrize("value,expected", [
        (0.0, 0.0),
        (180.0, 180.0),
        (-180.0, 180.0),
        (190.0, -170.0),
        (-190.0, 170.0),
        (540.0, 180.0),
        (-725.0, -5.0),
    ])
    def test_normalize(self, value, expected):
        """测试规范化到(-180, 180]"""
        assert normalize_longitude(value) == pytest.approx(expected)


class TestTimeHelpers:
    """测试时间工具"""

    def test_ensure_utc_naive(self):
        """测试无时区时间按UTC处理"""
        assert ensure_utc(datetime(2024, 1, 1)).tzinfo == timezone.utc

    def test_ensure_utc_converts_offset(self):
        """测试带偏移时间转换到UTC"""
        t = datetime(2024, 1, 1, 8, tzinfo=timezone(timedelta(hours=8)))
        assert ensure_utc(t) == datetime(2024, 1, 1, 0, tzinfo=timezone.utc)
        assert ensure_utc(t).hour == 0

    def test_minutes_between(self):
        """测试分钟差，可为负"""
        a = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert minutes_between(a, a + timedelta(minutes=90)) == pytest.approx(90.0)
        assert minutes_between(a + timedelta(seconds=30), a) == pytest.approx(-0.5)


class TestCoordinateConversions:
    """测试坐标转换"""

    @pytest.mark.parametrize("lat,lon", [
        (0.0, 0.0),
        (33.4484, -112.074),
        (-45.0, 170.0),
        (89.0, -10.0),
    ])
    def test_geodetic_ecef_round_trip(self, lat, lon):
        """测试经纬度与ECEF互转一致"""
        x, y, z = geodetic_to_ecef(lat, lon, 7000.0)
        lat2, lon2, r = ecef_to_geodetic(x, y, z)
        assert lat2 == pytest.approx(lat, abs=1e-9)
        assert lon2 == pytest.approx(lon, abs=1e-9)
        assert r == pytest.approx(7000.0)

    def test_north_pole(self):
        """测试北极位于z轴"""
        x, y, z = geodetic_to_ecef(90.0, 0.0, 1.0)
        assert z == pytest.approx(1.0)
        assert math.hypot(x, y) == pytest.approx(0.0, abs=1e-12)

    def test_origin(self):
        """测试原点不产生除零错误"""
        assert ecef_to_geodetic(0.0, 0.0, 0.0) == (0.0, 0.0, 0.0)

    def test_perifocal_identity(self):
        """测试零角度旋转为恒等变换"""
        assert perifocal_to_ecef(1.0, 2.0, 0.0, 0.0, 0.0) == pytest.approx((1.0, 2.0, 0.0))

    def test_perifocal_polar_orbit(self):
        """测试极轨道上的y轴旋转到z轴"""
        x, y, z = perifocal_to_ecef(0.0, 1.0, 0.0, math.pi / 2, 0.0)
        assert (x, y, z) == pytest.approx((0.0, 0.0, 1.0), abs=1e-12)

    def test_perifocal_preserves_length(self):
        """测试旋转保持向量长度"""
        x, y, z = perifocal_to_ecef(3.0, 4.0, 1.1, 1.7, 0.3)
        assert math.sqrt(x * x + y * y + z * z) == pytest.approx(5.0)


class TestGreatCircleDistance:
    """测试大圆距离"""

    def test_same_point(self):
        """测试同一点距离为0"""
        assert great_circle_distance_km(10.0, 20.0, 10.0, 20.0) == pytest.approx(0.0)

    def test_quarter_circumference(self):
        """测试赤道到极点为四分之一周长"""
        expected = math.pi * EARTH_RADIUS_KM / 2
        assert great_circle_distance_km(0.0, 0.0, 90.0, 0.0) == pytest.approx(expected)

    def test_antipodal(self):
        """测试对跖点为半周长"""
        expected = math.pi * EARTH_RADIUS_KM
        assert great_circle_distance_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(expected)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
