"""
过境结果缓存

按 (卫星, 观测者, 搜索时段参数) 缓存过境搜索结果：
- 读多写少：读操作不加锁，写操作在锁内构造新字典后整体替换引用，
  读者不会看到部分写入的状态
- 仿真时钟越过缓存时段末端或超过缓存有效期后条目失效，写入时一并清除
- 仿真时钟跳变或倍速变化时由调用方整体失效
"""

import bisect
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Hashable, List, Optional, Tuple

from ...models.observer import ObserverLocation
from ..utils import ensure_utc
from .base import Pass

logger = logging.getLogger(__name__)

# 缓存有效期（仿真时间）
DEFAULT_CACHE_TTL = timedelta(minutes=10)

CacheKey = Tuple[Hashable, ...]


@dataclass(frozen=True)
class CacheEntry:
    """缓存条目"""
    passes: Tuple[Pass, ...]
    window_start: datetime
    window_end: datetime
    cached_at: datetime


def make_cache_key(
    satellite_id: str,
    observer: ObserverLocation,
    start_time: datetime,
    horizon: timedelta,
    time_step: timedelta,
    min_elevation: float,
    max_count: Optional[int]
) -> CacheKey:
    """构造缓存键"""
    return (
        satellite_id,
        observer.cache_key(),
        ensure_utc(start_time),
        horizon,
        time_step,
        float(min_elevation),
        max_count,
    )


class PassCache:
    """
    过境结果缓存

    核心特性：
    1. O(1)键查询
    2. 原子的整体替换写入
    3. 按卫星-观测者的时间索引，支持时段查询
    """

    def __init__(self, ttl: timedelta = DEFAULT_CACHE_TTL):
        """
        初始化

        Args:
            ttl: 条目有效期（仿真时间）
        """
        self.ttl = ttl
        self._write_lock = threading.Lock()

        # 主索引: key -> CacheEntry
        self._entries: Dict[CacheKey, CacheEntry] = {}

        # 时间索引: (sat_id, observer_key) -> (按开始时间排序的过境, 开始时间列表)
        self._time_index: Dict[Tuple[str, Hashable], Tuple[List[Pass], List[datetime]]] = {}

        self._hits = 0
        self._misses = 0
        self._invalidations = 0

    def get(self, key: CacheKey, now: datetime) -> Optional[List[Pass]]:
        """
        读取缓存

        Args:
            key: 缓存键
            now: 当前仿真时间

        Returns:
            过境列表，未命中或已失效时返回None
        """
        entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry, ensure_utc(now)):
            self._misses += 1
            return None
        self._hits += 1
        return list(entry.passes)

    def put(
        self,
        key: CacheKey,
        passes: List[Pass],
        window_start: datetime,
        window_end: datetime,
        now: datetime
    ) -> None:
        """
        写入缓存（整体替换）

        Args:
            key: 缓存键
            passes: 过境列表
            window_start: 搜索时段开始
            window_end: 搜索时段结束
            now: 当前仿真时间
        """
        entry = CacheEntry(
            passes=tuple(passes),
            window_start=ensure_utc(window_start),
            window_end=ensure_utc(window_end),
            cached_at=ensure_utc(now),
        )
        with self._write_lock:
            # 写入时清除已过期条目
            entries = {k: v for k, v in self._entries.items() if not self._is_expired(v, entry.cached_at)}
            pruned = len(self._entries) - len(entries)
            entries[key] = entry
            self._entries = entries
            self._time_index = self._build_time_index(entries)
            self._invalidations += pruned
        if pruned:
            logger.debug(f"Pruned {pruned} expired pass results")

    def expire(self, now: datetime) -> int:
        """
        清除已失效条目

        Args:
            now: 当前仿真时间

        Returns:
            int: 清除的条目数
        """
        now = ensure_utc(now)
        with self._write_lock:
            entries = {k: v for k, v in self._entries.items() if self._is_fresh(v, now)}
            removed = len(self._entries) - len(entries)
            if removed:
                self._entries = entries
                self._time_index = self._build_time_index(entries)
                self._invalidations += removed
        if removed:
            logger.debug(f"Expired {removed} cached pass results")
        return removed

    def invalidate_all(self) -> None:
        """仿真时钟跳变或倍速变化时清空缓存"""
        with self._write_lock:
            removed = len(self._entries)
            self._entries = {}
            self._time_index = {}
            self._invalidations += removed
        if removed:
            logger.info(f"Invalidated {removed} cached pass results")

    def passes_in_range(
        self,
        satellite_id: str,
        observer: ObserverLocation,
        start: datetime,
        end: datetime
    ) -> List[Pass]:
        """
        获取缓存中与时间范围重叠的过境
        时间复杂度: O(log n + k)

        Args:
            satellite_id: 卫星ID
            observer: 观测者位置
            start: 开始时间
            end: 结束时间

        Returns:
            List[Pass]: 时间范围内的过境
        """
        start = ensure_utc(start)
        end = ensure_utc(end)
        all_passes, time_list = self._time_index.get((satellite_id, observer.cache_key()), ([], []))
        if not all_passes:
            return []

        # 开始时间早于start的过境仍可能与范围重叠，从头部扫描到右边界
        right = bisect.bisect_left(time_list, end)
        return [p for p in all_passes[:right] if p.end_time > start]

    def get_statistics(self) -> dict:
        """
        获取缓存统计信息

        Returns:
            dict: 统计信息
        """
        entries = self._entries
        lookups = self._hits + self._misses
        return {
            'entries': len(entries),
            'cached_passes': sum(len(e.passes) for e in entries.values()),
            'hits': self._hits,
            'misses': self._misses,
            'hit_rate': self._hits / lookups if lookups > 0 else 0.0,
            'invalidations': self._invalidations,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def _is_fresh(self, entry: CacheEntry, now: datetime) -> bool:
        if now < entry.cached_at:
            # 仿真时钟回拨
            return False
        return not self._is_expired(entry, now)

    def _is_expired(self, entry: CacheEntry, now: datetime) -> bool:
        return now > entry.window_end or now - entry.cached_at > self.ttl

    @staticmethod
    def _build_time_index(
        entries: Dict[CacheKey, CacheEntry]
    ) -> Dict[Tuple[str, Hashable], Tuple[List[Pass], List[datetime]]]:
        grouped: Dict[Tuple[str, Hashable], Dict[Tuple[datetime, datetime], Pass]] = {}
        for key, entry in entries.items():
            bucket = grouped.setdefault((key[0], key[1]), {})
            for p in entry.passes:
                # 不同搜索参数可能得到同一过境，按起止时间去重
                bucket.setdefault((p.start_time, p.end_time), p)

        index = {}
        for group_key, bucket in grouped.items():
            ordered = sorted(bucket.values(), key=lambda p: p.start_time)
            index[group_key] = (ordered, [p.start_time for p in ordered])
        return index
