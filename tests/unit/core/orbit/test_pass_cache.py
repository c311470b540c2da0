"""
过境结果缓存测试

测试有效期、时段末端失效、整体失效和时段查询
"""

from datetime import timedelta

import pytest

from core.models.observer import ObserverLocation
from core.orbit.visibility import Pass, PassCache, make_cache_key


def _pass(epoch, sat_id, start_min, end_min):
    return Pass(
        satellite_id=sat_id,
        start_time=epoch + timedelta(minutes=start_min),
        end_time=epoch + timedelta(minutes=end_min),
        duration_minutes=float(end_min - start_min),
        peak_elevation_deg=45.0,
    )


@pytest.fixture
def key(phoenix, epoch):
    return make_cache_key("SMAP", phoenix, epoch, timedelta(hours=24), timedelta(seconds=60), 10.0, None)


class TestMakeCacheKey:
    """测试缓存键"""

    def test_name_does_not_affect_key(self, epoch):
        """测试观测点名称不影响缓存键"""
        a = ObserverLocation(latitude_deg=1.0, longitude_deg=2.0, name="a")
        b = ObserverLocation(latitude_deg=1.0, longitude_deg=2.0, name="b")
        args = (epoch, timedelta(hours=1), timedelta(seconds=60), 10, None)
        assert make_cache_key("S", a, *args) == make_cache_key("S", b, *args)

    def test_parameters_distinguish_keys(self, phoenix, epoch):
        """测试不同搜索参数得到不同缓存键"""
        base = make_cache_key("S", phoenix, epoch, timedelta(hours=1), timedelta(seconds=60), 10.0, None)
        assert base != make_cache_key("S", phoenix, epoch, timedelta(hours=1), timedelta(seconds=30), 10.0, None)
        assert base != make_cache_key("S", phoenix, epoch, timedelta(hours=1), timedelta(seconds=60), 20.0, None)
        assert base != make_cache_key("S", phoenix, epoch, timedelta(hours=1), timedelta(seconds=60), 10.0, 1)


class TestPassCache:
    """测试缓存读写与失效"""

    def test_miss_then_hit(self, key, epoch):
        """测试未命中后写入再命中"""
        cache = PassCache()
        assert cache.get(key, epoch) is None
        passes = [_pass(epoch, "SMAP", 36, 45)]
        cache.put(key, passes, epoch, epoch + timedelta(hours=24), epoch)
        assert cache.get(key, epoch + timedelta(minutes=5)) == passes
        stats = cache.get_statistics()
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['hit_rate'] == pytest.approx(0.5)
        assert stats['cached_passes'] == 1

    def test_returned_list_is_a_copy(self, key, epoch):
        """测试修改返回列表不影响缓存"""
        cache = PassCache()
        cache.put(key, [_pass(epoch, "SMAP", 36, 45)], epoch, epoch + timedelta(hours=1), epoch)
        cache.get(key, epoch).clear()
        assert len(cache.get(key, epoch)) == 1

    def test_empty_result_is_cached(self, key, epoch):
        """测试空结果同样缓存"""
        cache = PassCache()
        cache.put(key, [], epoch, epoch + timedelta(hours=1), epoch)
        assert cache.get(key, epoch) == []

    def test_ttl_expiry(self, key, epoch):
        """测试超过有效期后失效"""
        cache = PassCache(ttl=timedelta(minutes=10))
        cache.put(key, [], epoch, epoch + timedelta(hours=24), epoch)
        assert cache.get(key, epoch + timedelta(minutes=10)) == []
        assert cache.get(key, epoch + timedelta(minutes=11)) is None

    def test_window_end_expiry(self, key, epoch):
        """测试仿真时间越过搜索时段末端后失效"""
        cache = PassCache(ttl=timedelta(hours=5))
        cache.put(key, [], epoch, epoch + timedelta(hours=1), epoch)
        assert cache.get(key, epoch + timedelta(minutes=61)) is None

    def test_clock_moved_backwards(self, key, epoch):
        """测试仿真时间回拨后失效"""
        cache = PassCache()
        cache.put(key, [], epoch, epoch + timedelta(hours=1), epoch + timedelta(minutes=5))
        assert cache.get(key, epoch) is None

    def test_expire_removes_stale_entries(self, phoenix, epoch):
        """测试清除失效条目"""
        cache = PassCache(ttl=timedelta(minutes=10))
        old = make_cache_key("A", phoenix, epoch, timedelta(hours=1), timedelta(seconds=60), 10.0, None)
        new = make_cache_key("B", phoenix, epoch, timedelta(hours=1), timedelta(seconds=60), 10.0, None)
        cache.put(old, [], epoch, epoch + timedelta(hours=1), epoch)
        cache.put(new, [], epoch, epoch + timedelta(hours=1), epoch + timedelta(minutes=5))
        assert len(cache) == 2
        assert cache.expire(epoch + timedelta(minutes=12)) == 1
        assert len(cache) == 1
        assert cache.get(new, epoch + timedelta(minutes=12)) == []
        assert cache.get_statistics()['invalidations'] == 1

    def test_put_prunes_expired_entries(self, phoenix, epoch):
        """测试写入时清除超过有效期或时段末端的条目"""
        cache = PassCache(ttl=timedelta(minutes=10))
        stale = make_cache_key("A", phoenix, epoch, timedelta(hours=1), timedelta(seconds=60), 10.0, None)
        short = make_cache_key("B", phoenix, epoch, timedelta(minutes=8), timedelta(seconds=60), 10.0, None)
        fresh = make_cache_key("C", phoenix, epoch, timedelta(hours=1), timedelta(seconds=60), 10.0, None)
        cache.put(stale, [], epoch, epoch + timedelta(hours=1), epoch)
        cache.put(short, [], epoch, epoch + timedelta(minutes=8), epoch + timedelta(minutes=4))
        cache.put(fresh, [], epoch, epoch + timedelta(hours=1), epoch + timedelta(minutes=6))
        assert len(cache) == 3

        latest = make_cache_key("D", phoenix, epoch, timedelta(hours=1), timedelta(seconds=60), 10.0, None)
        cache.put(latest, [], epoch, epoch + timedelta(hours=1), epoch + timedelta(minutes=11))
        # A超过有效期，B越过时段末端
        assert len(cache) == 2
        assert cache.get(fresh, epoch + timedelta(minutes=11)) == []
        assert cache.get_statistics()['invalidations'] == 2

    def test_size_bounded_with_moving_start(self, phoenix, epoch):
        """测试搜索开始时间逐分钟推进时缓存规模有界"""
        cache = PassCache(ttl=timedelta(minutes=10))
        sizes = []
        for minute in range(30):
            t = epoch + timedelta(minutes=minute)
            key = make_cache_key("SMAP", phoenix, t, timedelta(hours=24), timedelta(seconds=60), 10.0, None)
            cache.put(key, [], t, t + timedelta(hours=24), t)
            sizes.append(len(cache))
        # 有效期内最多保留最近11分钟的结果
        assert max(sizes) == 11
        assert sizes[-1] == 11
        assert cache.get_statistics()['invalidations'] == 19

    def test_invalidate_all(self, key, epoch):
        """测试整体失效"""
        cache = PassCache()
        cache.put(key, [_pass(epoch, "SMAP", 36, 45)], epoch, epoch + timedelta(hours=1), epoch)
        cache.invalidate_all()
        assert len(cache) == 0
        assert cache.get(key, epoch) is None


class TestPassesInRange:
    """测试时段查询"""

    def test_overlapping_passes(self, phoenix, epoch):
        """测试返回与范围重叠的过境并按起止时间去重"""
        cache = PassCache()
        k1 = make_cache_key("SMAP", phoenix, epoch, timedelta(hours=6), timedelta(seconds=60), 10.0, None)
        k2 = make_cache_key("SMAP", phoenix, epoch, timedelta(hours=6), timedelta(seconds=60), 10.0, 1)
        passes = [_pass(epoch, "SMAP", 36, 45), _pass(epoch, "SMAP", 134, 143), _pass(epoch, "SMAP", 233, 241)]
        cache.put(k1, passes, epoch, epoch + timedelta(hours=6), epoch)
        cache.put(k2, passes[:1], epoch, epoch + timedelta(hours=6), epoch)

        found = cache.passes_in_range("SMAP", phoenix, epoch + timedelta(minutes=40), epoch + timedelta(minutes=140))
        assert [p.start_time for p in found] == [passes[0].start_time, passes[1].start_time]

    def test_unknown_satellite(self, phoenix, epoch):
        """测试没有缓存的卫星返回空列表"""
        assert PassCache().passes_in_range("NONE", phoenix, epoch, epoch + timedelta(hours=1)) == []
