"""
过境预测服务测试

测试位置与可见性查询、过境预测缓存、下次过境、即将过境和星座状态
"""

import threading
from datetime import timedelta

import pytest

from core.config import EngineConfig
from core.exceptions import CatalogError, SearchCancelledError, ValidationError
from core.models.catalog import SatelliteCatalog
from core.tracking import NextPassInfo, PassPredictor, SatelliteStatus
from simulator.clock import SimulationClock


@pytest.fixture
def predictor(default_catalog):
    return PassPredictor(default_catalog)


class TestPassPredictorQueries:
    """测试位置与可见性查询"""

    def test_default_catalog(self):
        """测试未指定目录时使用内置星座"""
        assert "SMAP" in PassPredictor().catalog

    def test_get_position(self, predictor, epoch):
        """测试位置查询"""
        position = predictor.get_position("SMAP", epoch)
        assert position.latitude_deg == pytest.approx(0.0, abs=1e-9)
        assert position.longitude_deg == pytest.approx(62.5)

    def test_unknown_satellite(self, predictor, epoch):
        """测试未知卫星"""
        with pytest.raises(CatalogError):
            predictor.get_position("HUBBLE", epoch)

    def test_time_required_without_clock(self, predictor):
        """测试无仿真时钟时必须给出时间"""
        with pytest.raises(ValidationError) as exc_info:
            predictor.get_position("SMAP")
        assert exc_info.value.field == "time"

    def test_clock_supplies_time(self, default_catalog, epoch):
        """测试省略时间时取仿真时钟当前时间"""
        clock = SimulationClock(epoch + timedelta(minutes=40))
        predictor = PassPredictor(default_catalog, clock=clock)
        assert predictor.get_position("SMAP").timestamp == epoch + timedelta(minutes=40)

    def test_get_visibility_during_pass(self, predictor, phoenix, epoch):
        """测试过境期间可见"""
        sample = predictor.get_visibility("SMAP", phoenix, epoch + timedelta(minutes=40))
        assert sample.is_visible
        assert sample.elevation_deg > 80.0

    def test_get_visibility_threshold_override(self, predictor, phoenix, epoch):
        """测试覆盖最小仰角"""
        t = epoch + timedelta(minutes=40)
        assert not predictor.get_visibility("SMAP", phoenix, t, min_elevation=90.0).is_visible


class TestPassPredictorFindPasses:
    """测试过境预测"""

    def test_uses_config_defaults(self, default_catalog, phoenix, epoch):
        """测试省略参数时使用配置"""
        predictor = PassPredictor(default_catalog, EngineConfig(horizon_hours=2))
        passes = predictor.find_passes("SMAP", phoenix, epoch)
        # 第二次过境约在134分钟开始，超出2小时
        assert len(passes) == 1
        assert all(p.start_time < epoch + timedelta(hours=2) for p in passes)

    def test_results_cached(self, predictor, phoenix, epoch):
        """测试重复查询命中缓存"""
        first = predictor.find_passes("SMAP", phoenix, epoch)
        second = predictor.find_passes("SMAP", phoenix, epoch)
        assert first == second
        stats = predictor.cache.get_statistics()
        assert stats['hits'] == 1
        assert stats['misses'] == 1

    def test_cache_bypass(self, predictor, phoenix, epoch):
        """测试关闭缓存"""
        predictor.find_passes("SMAP", phoenix, epoch, use_cache=False)
        assert len(predictor.cache) == 0

    def test_predict_extended_capped(self, predictor, phoenix, epoch):
        """测试扩展预测最多15次过境"""
        passes = predictor.predict_extended("SMAP", phoenix, epoch)
        assert len(passes) == 15
        assert passes == sorted(passes)

    def test_cancellation(self, predictor, phoenix, epoch):
        """测试取消搜索"""
        event = threading.Event()
        event.set()
        with pytest.raises(SearchCancelledError):
            predictor.find_passes("SMAP", phoenix, epoch, cancel_event=event)

    def test_clock_jump_invalidates_cache(self, default_catalog, phoenix, epoch):
        """测试仿真时钟跳变清空缓存"""
        clock = SimulationClock(epoch)
        predictor = PassPredictor(default_catalog, clock=clock)
        predictor.find_passes("SMAP", phoenix)
        assert len(predictor.cache) == 1

        clock.set_time(epoch + timedelta(hours=1))
        assert len(predictor.cache) == 0

        predictor.find_passes("SMAP", phoenix)
        clock.set_multiplier(100.0)
        assert len(predictor.cache) == 0

    def test_cache_bounded_as_clock_advances(self, default_catalog, phoenix, epoch):
        """测试仿真时钟持续推进时缓存不会无限增长"""
        clock = SimulationClock(epoch)
        predictor = PassPredictor(default_catalog, EngineConfig(horizon_hours=2), clock=clock)
        sizes = []
        for _ in range(30):
            predictor.find_passes("SMAP", phoenix)
            sizes.append(len(predictor.cache))
            clock.advance(timedelta(minutes=1))
        assert max(sizes) <= 11
        assert predictor.cache.get_statistics()['invalidations'] > 0

    def test_close_unsubscribes(self, default_catalog, phoenix, epoch):
        """测试关闭后不再响应时钟事件"""
        clock = SimulationClock(epoch)
        predictor = PassPredictor(default_catalog, clock=clock)
        predictor.find_passes("SMAP", phoenix)
        predictor.close()
        clock.set_time(epoch + timedelta(hours=1))
        assert len(predictor.cache) == 1


class TestNextPass:
    """测试下次过境"""

    def test_next_pass_in_future(self, predictor, phoenix, epoch):
        """测试下次过境在未来"""
        info = predictor.next_pass("SMAP", phoenix, epoch)
        assert isinstance(info, NextPassInfo)
        assert not info.currently_visible
        assert info.minutes_until == pytest.approx(36.0, abs=1.0)
        assert info.minutes_remaining is None
        assert "UTC" in info.describe()

    def test_currently_visible(self, predictor, phoenix, epoch):
        """测试查询时刻正在过境"""
        info = predictor.next_pass("SMAP", phoenix, epoch + timedelta(minutes=40))
        assert info.currently_visible
        assert info.minutes_until == 0.0
        assert info.minutes_remaining == pytest.approx(5.0, abs=1.0)
        assert info.describe().startswith("Currently visible")
        assert info.to_dict()['pass']['in_progress'] is True

    def test_no_pass(self, phoenix, epoch, smap_elements):
        """测试轨道面远离观测点时返回None"""
        from core.models.orbital_elements import OrbitalElements

        far = OrbitalElements.from_dict({**smap_elements.to_dict(), 'raan_deg': 0.0})
        predictor = PassPredictor(SatelliteCatalog([far]))
        assert predictor.next_pass("SMAP", phoenix, epoch) is None


class TestUpcomingAndStatus:
    """测试即将过境与星座状态"""

    def test_upcoming_sorted_and_filtered(self, predictor, phoenix, epoch):
        """测试即将过境按时间排序并过滤低仰角"""
        passes = predictor.upcoming_passes(phoenix, epoch, window=timedelta(hours=6))
        assert passes
        assert passes == sorted(passes)
        for p in passes:
            assert epoch < p.start_time < epoch + timedelta(hours=6)
            assert p.peak_elevation_deg >= 20.0
        assert {p.satellite_id for p in passes} >= {"SMAP"}

    def test_upcoming_min_peak(self, predictor, phoenix, epoch):
        """测试提高最小仰角减少结果"""
        loose = predictor.upcoming_passes(phoenix, epoch, window=timedelta(hours=6), min_peak_deg=10.0)
        strict = predictor.upcoming_passes(phoenix, epoch, window=timedelta(hours=6), min_peak_deg=70.0)
        assert len(strict) <= len(loose)
        assert all(p.peak_elevation_deg >= 70.0 for p in strict)

    def test_constellation_status(self, predictor, phoenix, epoch):
        """测试星座状态覆盖全部卫星"""
        statuses = predictor.constellation_status(phoenix, epoch + timedelta(minutes=40))
        assert [s.satellite_id for s in statuses] == list(predictor.catalog)
        assert all(isinstance(s, SatelliteStatus) for s in statuses)
        smap = statuses[0]
        assert smap.is_visible
        assert smap.next_pass.currently_visible
        assert smap.to_dict()['position']['altitude_km'] == 685.0
