"""
过境提醒测试
"""

from datetime import timedelta

import pytest

from core.models.catalog import SatelliteCatalog
from core.orbit.visibility import Pass
from core.tracking import PassAlert, PassAlertMonitor, PassPredictor, select_imminent_passes
from simulator.clock import SimulationClock


def _pass(epoch, start_min, end_min, peak, sat_id="SMAP"):
    return Pass(
        satellite_id=sat_id,
        start_time=epoch + timedelta(minutes=start_min),
        end_time=epoch + timedelta(minutes=end_min),
        duration_minutes=float(end_min - start_min),
        peak_elevation_deg=peak,
    )


@pytest.fixture
def smap_predictor(smap_elements):
    return PassPredictor(SatelliteCatalog([smap_elements]))


class TestSelectImminentPasses:
    """测试即将开始过境的筛选"""

    def test_window_and_peak_filter(self, epoch):
        """测试开始时间在(now, now+lead]内且仰角达标"""
        passes = [
            _pass(epoch, 0, 5, 80.0),      # 已开始
            _pass(epoch, 10, 18, 25.0),    # 仰角不足
            _pass(epoch, 12, 20, 45.0, "GPM"),
            _pass(epoch, 15, 22, 60.0),    # 恰好在提前量边界
            _pass(epoch, 16, 24, 70.0),    # 超出提前量
        ]
        selected = select_imminent_passes(passes, epoch, timedelta(minutes=15), 30.0)
        assert [(p.satellite_id, p.start_time) for p in selected] == [
            ("GPM", epoch + timedelta(minutes=12)),
            ("SMAP", epoch + timedelta(minutes=15)),
        ]

    def test_empty(self, epoch):
        """测试无过境"""
        assert select_imminent_passes([], epoch, timedelta(minutes=15), 30.0) == []


class TestPassAlertMonitor:
    """测试提醒监视器"""

    def test_alert_before_pass(self, smap_predictor, phoenix, epoch):
        """测试过境开始前提醒"""
        monitor = PassAlertMonitor(smap_predictor, phoenix)
        alerts = monitor.check(epoch + timedelta(minutes=25))
        assert len(alerts) == 1
        alert = alerts[0]
        assert isinstance(alert, PassAlert)
        assert alert.satellite_name == "SMAP (Soil Moisture)"
        assert 10.0 <= alert.minutes_until <= 12.0
        assert alert.message.startswith("SMAP (Soil Moisture) pass in 1")
        assert alert.to_dict()['pass']['satellite_id'] == "SMAP"

    def test_no_alert_too_early(self, smap_predictor, phoenix, epoch):
        """测试提前量之外不提醒"""
        assert PassAlertMonitor(smap_predictor, phoenix).check(epoch) == []

    def test_alert_only_once(self, smap_predictor, phoenix, epoch):
        """测试同一过境只提醒一次"""
        monitor = PassAlertMonitor(smap_predictor, phoenix)
        assert len(monitor.check(epoch + timedelta(minutes=25))) == 1
        assert monitor.check(epoch + timedelta(minutes=30)) == []

    def test_reset_allows_repeat(self, smap_predictor, phoenix, epoch):
        """测试清空记录后可再次提醒"""
        monitor = PassAlertMonitor(smap_predictor, phoenix)
        monitor.check(epoch + timedelta(minutes=25))
        monitor.reset()
        assert len(monitor.check(epoch + timedelta(minutes=30))) == 1

    def test_next_orbit_alerted(self, smap_predictor, phoenix, epoch):
        """测试下一圈的过境再次提醒"""
        monitor = PassAlertMonitor(smap_predictor, phoenix)
        first = monitor.check(epoch + timedelta(minutes=25))
        second = monitor.check(epoch + timedelta(minutes=25 + 98.5))
        assert len(first) == 1
        assert len(second) == 1
        assert second[0].pass_.start_time > first[0].pass_.end_time

    def test_min_peak_filters(self, smap_predictor, phoenix, epoch):
        """测试最小仰角过高时不提醒"""
        monitor = PassAlertMonitor(smap_predictor, phoenix, min_peak_deg=90.0)
        assert monitor.check(epoch + timedelta(minutes=25)) == []

    def test_custom_lead_time(self, smap_predictor, phoenix, epoch):
        """测试自定义提前量"""
        monitor = PassAlertMonitor(smap_predictor, phoenix, lead_time=timedelta(minutes=60))
        assert len(monitor.check(epoch)) == 1

    def test_clock_driven_checks_keep_cache_bounded(self, smap_elements, phoenix, epoch):
        """测试仿真时钟驱动的周期检查不会使结果缓存无限增长"""
        clock = SimulationClock(epoch)
        predictor = PassPredictor(SatelliteCatalog([smap_elements]), clock=clock)
        monitor = PassAlertMonitor(predictor, phoenix)

        sizes = []
        for _ in range(20):
            monitor.check()
            sizes.append(len(predictor.cache))
            clock.advance(timedelta(minutes=1))

        # 10分钟有效期内每分钟一个条目
        assert max(sizes) <= 11
        assert sizes[-1] == sizes[-2]
