"""
过境搜索器

按固定时间步长扫描搜索时段，检测可见性的上升沿（过境开始）与
下降沿（过境结束），记录每段可见时段内的最大仰角。

时间分辨率由步长决定：短于约2倍步长的过境可能被漏检或测量不准，
对于过境时长为数分钟的低轨卫星，这是可接受的折中。
"""

from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple
import logging
import threading

from ...exceptions import SearchCancelledError, ValidationError
from ...models.observer import ObserverLocation
from ...models.orbital_elements import OrbitalElements
from ..propagator.kepler_propagator import KeplerPropagator
from ..utils import ensure_utc
from .base import DEFAULT_MIN_ELEVATION, Pass, VisibilityEvaluator
from .pass_quality import PassQualityClassifier

logger = logging.getLogger(__name__)

DEFAULT_TIME_STEP = timedelta(seconds=60)

# 每隔多少个采样点检查一次取消标志
DEFAULT_CANCEL_CHECK_INTERVAL = 256

# 采样函数: 时刻 -> (仰角, 星下点纬度或None)
SampleFunc = Callable[[datetime], Tuple[float, Optional[float]]]


class PassFinder:
    """
    过境搜索器

    无共享可变状态，可在后台线程中运行。
    """

    def __init__(
        self,
        propagator: Optional[KeplerPropagator] = None,
        evaluator: Optional[VisibilityEvaluator] = None,
        classifier: Optional[PassQualityClassifier] = None,
        cancel_check_interval: int = DEFAULT_CANCEL_CHECK_INTERVAL
    ):
        """
        初始化过境搜索器

        Args:
            propagator: 轨道传播器
            evaluator: 可见性评估器
            classifier: 过境质量分级器
            cancel_check_interval: 取消检查间隔（采样点数）
        """
        if cancel_check_interval < 1:
            raise ValidationError(
                f"must be >= 1, got {cancel_check_interval}", field="cancel_check_interval"
            )
        self.propagator = propagator or KeplerPropagator()
        self.evaluator = evaluator or VisibilityEvaluator()
        self.classifier = classifier or PassQualityClassifier()
        self.cancel_check_interval = cancel_check_interval

    def find_passes(
        self,
        elements: OrbitalElements,
        observer: ObserverLocation,
        start_time: datetime,
        horizon: timedelta,
        time_step: timedelta = DEFAULT_TIME_STEP,
        min_elevation: float = DEFAULT_MIN_ELEVATION,
        max_count: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> List[Pass]:
        """
        搜索卫星对观测者的过境

        Args:
            elements: 轨道根数
            observer: 观测者位置
            start_time: 搜索开始时间
            horizon: 搜索时长
            time_step: 时间步长
            min_elevation: 最小仰角（度）
            max_count: 最多返回的过境数量，None表示不限
            cancel_event: 取消标志

        Returns:
            List[Pass]: 按时间排序的过境列表，可能为空

        Raises:
            ValidationError: 步长或时长非法
            SearchCancelledError: 搜索被取消
        """
        def sample(t: datetime) -> Tuple[float, Optional[float]]:
            position = self.propagator.propagate(elements, t)
            result = self.evaluator.evaluate(position, observer, min_elevation)
            return result.elevation_deg, position.latitude_deg

        return self._scan(
            sample,
            elements.satellite_id,
            start_time,
            horizon,
            time_step,
            min_elevation,
            max_count,
            cancel_event,
            operational=elements.is_operational,
        )

    def scan(
        self,
        elevation_fn: Callable[[datetime], float],
        satellite_id: str,
        start_time: datetime,
        horizon: timedelta,
        time_step: timedelta = DEFAULT_TIME_STEP,
        min_elevation: float = DEFAULT_MIN_ELEVATION,
        max_count: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
        operational: bool = True
    ) -> List[Pass]:
        """
        对任意仰角函数执行过境扫描

        Args:
            elevation_fn: 仰角函数，接收时间返回仰角（度）
            satellite_id: 卫星ID
            其余参数同find_passes

        Returns:
            List[Pass]: 过境列表
        """
        return self._scan(
            lambda t: (elevation_fn(t), None),
            satellite_id,
            start_time,
            horizon,
            time_step,
            min_elevation,
            max_count,
            cancel_event,
            operational=operational,
        )

    def _scan(
        self,
        sample_fn: SampleFunc,
        satellite_id: str,
        start_time: datetime,
        horizon: timedelta,
        time_step: timedelta,
        min_elevation: float,
        max_count: Optional[int],
        cancel_event: Optional[threading.Event],
        operational: bool
    ) -> List[Pass]:
        """扫描主循环"""
        if time_step <= timedelta(0):
            raise ValidationError(f"must be positive, got {time_step}", field="time_step")
        if horizon < timedelta(0):
            raise ValidationError(f"must not be negative, got {horizon}", field="horizon")
        if not (-90.0 <= min_elevation <= 90.0):
            raise ValidationError(f"must be in [-90, 90], got {min_elevation}", field="min_elevation_deg")
        if max_count is not None and max_count < 0:
            raise ValidationError(f"must not be negative, got {max_count}", field="max_count")

        passes: List[Pass] = []
        if max_count == 0:
            return passes

        start_time = ensure_utc(start_time)
        sample_count = horizon // time_step + 1

        in_pass = False
        pass_start = peak_time = None
        peak_elevation = 0.0
        start_latitude = last_latitude = None
        in_progress = False
        last_time = start_time
        evaluated = 0

        for index in range(sample_count):
            if (cancel_event is not None
                    and index % self.cancel_check_interval == 0
                    and cancel_event.is_set()):
                raise SearchCancelledError(
                    f"pass search for {satellite_id} cancelled after {index} samples",
                    samples_evaluated=index,
                )

            # 用步长倍数计算时刻，避免累加误差
            timestamp = start_time + index * time_step
            elevation, latitude = sample_fn(timestamp)
            evaluated += 1
            last_time = timestamp

            if elevation >= min_elevation:
                if not in_pass:
                    # 过境开始
                    in_pass = True
                    pass_start = timestamp
                    peak_elevation = elevation
                    peak_time = timestamp
                    start_latitude = latitude
                    in_progress = index == 0
                elif elevation > peak_elevation:
                    peak_elevation = elevation
                    peak_time = timestamp
                last_latitude = latitude
            elif in_pass:
                # 过境结束
                in_pass = False
                passes.append(self._build_pass(
                    satellite_id, pass_start, timestamp, peak_elevation, peak_time,
                    in_progress, start_latitude, last_latitude, operational
                ))
                if max_count is not None and len(passes) >= max_count:
                    break

        # 搜索结束时仍可见，以最后采样时刻截断
        if in_pass and last_time > pass_start:
            passes.append(self._build_pass(
                satellite_id, pass_start, last_time, peak_elevation, peak_time,
                in_progress, start_latitude, last_latitude, operational
            ))

        logger.debug(
            f"Pass scan {satellite_id}: {evaluated} samples, "
            f"step {time_step.total_seconds():.0f}s, {len(passes)} passes found"
        )

        return passes

    def _build_pass(
        self,
        satellite_id: str,
        start: datetime,
        end: datetime,
        peak_elevation: float,
        peak_time: datetime,
        in_progress: bool,
        start_latitude: Optional[float],
        end_latitude: Optional[float],
        operational: bool
    ) -> Pass:
        """构造过境记录并附加质量评估"""
        direction = ""
        if start_latitude is not None and end_latitude is not None and end_latitude != start_latitude:
            direction = "S→N" if end_latitude > start_latitude else "N→S"

        pass_ = Pass(
            satellite_id=satellite_id,
            start_time=start,
            end_time=end,
            duration_minutes=(end - start).total_seconds() / 60.0,
            peak_elevation_deg=peak_elevation,
            peak_time=peak_time,
            in_progress=in_progress,
            direction=direction,
        )
        return pass_.with_quality(self.classifier.classify(pass_, operational))


def find_passes(
    elements: OrbitalElements,
    observer: ObserverLocation,
    start_time: datetime,
    horizon: timedelta,
    time_step: timedelta = DEFAULT_TIME_STEP,
    min_elevation: float = DEFAULT_MIN_ELEVATION,
    max_count: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None
) -> List[Pass]:
    """使用默认组件搜索过境"""
    return PassFinder().find_passes(
        elements, observer, start_time, horizon, time_step, min_elevation, max_count, cancel_event
    )
