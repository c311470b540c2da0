"""
过境预测服务

组合卫星目录、轨道传播器、可见性评估器、过境搜索器与结果缓存，
对外提供位置查询、可见性查询、过境预测和星座状态汇总。

时间参数省略时取仿真时钟当前时间；未配置仿真时钟时必须显式给出。
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
import logging
import threading

from ..config import EngineConfig
from ..exceptions import ValidationError
from ..models.catalog import SatelliteCatalog
from ..models.observer import ObserverLocation
from ..orbit.propagator.kepler_propagator import GeodeticPosition, KeplerPropagator
from ..orbit.utils import ensure_utc, minutes_between
from ..orbit.visibility.base import Pass, VisibilityEvaluator, VisibilitySample
from ..orbit.visibility.pass_finder import PassFinder
from ..orbit.visibility.window_cache import PassCache, make_cache_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NextPassInfo:
    """
    下次过境摘要

    Attributes:
        satellite_id: 卫星ID
        pass_: 过境记录（正在过境时为当前过境）
        currently_visible: 查询时刻是否正在过境
        minutes_until: 距过境开始的分钟数（正在过境时为0）
        minutes_remaining: 正在过境时剩余可见分钟数
    """
    satellite_id: str
    pass_: Pass
    currently_visible: bool
    minutes_until: float
    minutes_remaining: Optional[float] = None

    def describe(self) -> str:
        """单行文字描述"""
        if self.currently_visible:
            return f"Currently visible ({round(self.minutes_remaining)}m remaining)"
        return (
            f"{self.pass_.start_time:%b %d %H:%M} UTC "
            f"({round(self.pass_.peak_elevation_deg)}° elev, {round(self.pass_.duration_minutes)}m)"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'satellite_id': self.satellite_id,
            'currently_visible': self.currently_visible,
            'minutes_until': self.minutes_until,
            'minutes_remaining': self.minutes_remaining,
            'pass': self.pass_.to_dict(),
        }


@dataclass(frozen=True)
class SatelliteStatus:
    """单颗卫星的实时状态"""
    satellite_id: str
    name: str
    status: str
    timestamp: datetime
    position: GeodeticPosition
    elevation_deg: float
    is_visible: bool
    next_pass: Optional[NextPassInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'satellite_id': self.satellite_id,
            'name': self.name,
            'status': self.status,
            'timestamp': self.timestamp.isoformat(),
            'position': self.position.to_dict(),
            'elevation_deg': self.elevation_deg,
            'is_visible': self.is_visible,
            'next_pass': self.next_pass.to_dict() if self.next_pass else None,
        }


class PassPredictor:
    """
    过境预测服务

    搜索结果按 (卫星, 观测者, 搜索参数) 缓存；配置了仿真时钟时，
    时钟跳变或倍速变化会清空缓存。
    """

    def __init__(
        self,
        catalog: Optional[SatelliteCatalog] = None,
        config: Optional[EngineConfig] = None,
        cache: Optional[PassCache] = None,
        clock=None
    ):
        """
        初始化

        Args:
            catalog: 卫星目录，默认使用内置星座
            config: 引擎配置
            cache: 过境结果缓存
            clock: 仿真时钟（simulator.clock.SimulationClock）
        """
        self.catalog = catalog if catalog is not None else SatelliteCatalog.default()
        self.config = config or EngineConfig()
        self.propagator = KeplerPropagator(
            max_iterations=self.config.kepler_max_iterations,
            tolerance=self.config.kepler_tolerance,
        )
        self.evaluator = VisibilityEvaluator(self.config.min_elevation_deg)
        self.finder = PassFinder(
            self.propagator,
            self.evaluator,
            cancel_check_interval=self.config.cancel_check_interval,
        )
        self.cache = cache if cache is not None else PassCache(self.config.cache_ttl)
        self.clock = clock
        self._unsubscribe = None
        if clock is not None:
            self._unsubscribe = clock.subscribe(self._on_clock_event)

    def close(self) -> None:
        """取消时钟订阅"""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_clock_event(self, event) -> None:
        logger.info(f"Clock {event.event_type.value}, invalidating pass cache")
        self.cache.invalidate_all()

    def resolve_time(self, t: Optional[datetime]) -> datetime:
        if t is not None:
            return ensure_utc(t)
        if self.clock is not None:
            return self.clock.now()
        raise ValidationError("a time is required when no simulation clock is configured", field="time")

    def get_position(self, satellite_id: str, t: Optional[datetime] = None) -> GeodeticPosition:
        """
        查询卫星星下点位置

        Raises:
            CatalogError: 卫星不在目录中
        """
        elements = self.catalog.get_elements(satellite_id)
        return self.propagator.propagate(elements, self.resolve_time(t))

    def get_visibility(
        self,
        satellite_id: str,
        observer: ObserverLocation,
        t: Optional[datetime] = None,
        min_elevation: Optional[float] = None
    ) -> VisibilitySample:
        """查询卫星对观测者的仰角与可见性"""
        position = self.get_position(satellite_id, t)
        threshold = self.config.min_elevation_deg if min_elevation is None else min_elevation
        return self.evaluator.evaluate(position, observer, threshold)

    def find_passes(
        self,
        satellite_id: str,
        observer: ObserverLocation,
        start: Optional[datetime] = None,
        horizon: Optional[timedelta] = None,
        time_step: Optional[timedelta] = None,
        min_elevation: Optional[float] = None,
        max_count: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
        use_cache: bool = True
    ) -> List[Pass]:
        """
        预测过境，省略的参数取配置默认值

        Args:
            satellite_id: 卫星ID
            observer: 观测者位置
            start: 搜索开始时间
            horizon: 搜索时长
            time_step: 时间步长
            min_elevation: 最小仰角（度）
            max_count: 最多返回的过境数量
            cancel_event: 取消标志
            use_cache: 是否使用结果缓存

        Returns:
            List[Pass]: 按时间排序的过境列表

        Raises:
            CatalogError: 卫星不在目录中
            ValidationError: 参数非法
            SearchCancelledError: 搜索被取消
        """
        elements = self.catalog.get_elements(satellite_id)
        start = self.resolve_time(start)
        horizon = self.config.horizon if horizon is None else horizon
        time_step = self.config.time_step if time_step is None else time_step
        min_elevation = self.config.min_elevation_deg if min_elevation is None else min_elevation
        max_count = self.config.max_count if max_count is None else max_count

        key = make_cache_key(satellite_id, observer, start, horizon, time_step, min_elevation, max_count)
        now = self.clock.now() if self.clock is not None else start

        if use_cache:
            cached = self.cache.get(key, now)
            if cached is not None:
                return cached

        passes = self.finder.find_passes(
            elements, observer, start, horizon, time_step, min_elevation, max_count, cancel_event
        )

        if use_cache:
            self.cache.put(key, passes, start, start + horizon, now)

        return passes

    def predict_extended(
        self,
        satellite_id: str,
        observer: ObserverLocation,
        start: Optional[datetime] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> List[Pass]:
        """扩展预测（默认7天，最多15次过境）"""
        return self.find_passes(
            satellite_id,
            observer,
            start,
            horizon=self.config.extended_horizon,
            max_count=self.config.extended_max_passes,
            cancel_event=cancel_event,
        )

    def next_pass(
        self,
        satellite_id: str,
        observer: ObserverLocation,
        at: Optional[datetime] = None
    ) -> Optional[NextPassInfo]:
        """
        查询下次过境

        查询时刻正在过境时返回当前过境及剩余时间，否则返回搜索时长内的
        下一次过境，都没有时返回None。
        """
        at = self.resolve_time(at)
        passes = self.find_passes(
            satellite_id, observer, at, horizon=self.config.next_pass_horizon, max_count=1
        )
        if not passes:
            return None

        first = passes[0]
        if first.in_progress:
            return NextPassInfo(
                satellite_id=satellite_id,
                pass_=first,
                currently_visible=True,
                minutes_until=0.0,
                minutes_remaining=minutes_between(at, first.end_time),
            )
        return NextPassInfo(
            satellite_id=satellite_id,
            pass_=first,
            currently_visible=False,
            minutes_until=minutes_between(at, first.start_time),
        )

    def upcoming_passes(
        self,
        observer: ObserverLocation,
        at: Optional[datetime] = None,
        window: Optional[timedelta] = None,
        min_peak_deg: Optional[float] = None
    ) -> List[Pass]:
        """
        全部卫星在时间窗内即将开始的过境，按开始时间排序

        Args:
            observer: 观测者位置
            at: 查询时刻
            window: 时间窗，默认24小时
            min_peak_deg: 最小过境仰角，默认20度
        """
        at = self.resolve_time(at)
        window = self.config.upcoming_window if window is None else window
        min_peak = self.config.upcoming_min_peak_deg if min_peak_deg is None else min_peak_deg
        window_end = at + window

        upcoming: List[Pass] = []
        for satellite_id in self.catalog:
            for p in self.find_passes(satellite_id, observer, at, horizon=window):
                if at < p.start_time < window_end and p.peak_elevation_deg >= min_peak:
                    upcoming.append(p)

        upcoming.sort()
        return upcoming

    def constellation_status(
        self,
        observer: ObserverLocation,
        at: Optional[datetime] = None
    ) -> List[SatelliteStatus]:
        """全部卫星的当前位置、可见性与下次过境"""
        at = self.resolve_time(at)
        statuses = []
        for elements in self.catalog.satellites():
            sample = self.get_visibility(elements.satellite_id, observer, at)
            statuses.append(SatelliteStatus(
                satellite_id=elements.satellite_id,
                name=elements.name,
                status=elements.status,
                timestamp=at,
                position=sample.position,
                elevation_deg=sample.elevation_deg,
                is_visible=sample.is_visible,
                next_pass=self.next_pass(elements.satellite_id, observer, at),
            ))
        return statuses
