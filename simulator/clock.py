"""
仿真时钟

维护仿真时间与时间倍速，由调用方驱动推进，不读取系统时钟。
时间跳变（set_time）与倍速变化（set_multiplier）会通知订阅者，
过境预测服务据此整体失效缓存。
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, List
import logging
import threading

from core.exceptions import ValidationError
from core.orbit.utils import ensure_utc

logger = logging.getLogger(__name__)


class ClockEventType(Enum):
    """时钟事件类型"""
    TIME_JUMP = "time_jump"
    MULTIPLIER_CHANGED = "multiplier_changed"


@dataclass(frozen=True)
class ClockEvent:
    """时钟事件"""
    event_type: ClockEventType
    previous_time: datetime
    current_time: datetime
    multiplier: float


ClockListener = Callable[[ClockEvent], None]


class SimulationClock:
    """
    仿真时钟

    Attributes:
        multiplier: 时间倍速（仿真秒/真实秒）
    """

    def __init__(self, start_time: datetime, multiplier: float = 1.0):
        _check_multiplier(multiplier)
        self._time = ensure_utc(start_time)
        self.multiplier = float(multiplier)
        self._listeners: List[ClockListener] = []
        self._lock = threading.Lock()

    def now(self) -> datetime:
        """当前仿真时间"""
        return self._time

    def advance(self, real_elapsed: timedelta) -> datetime:
        """
        按真实流逝时间推进仿真时间

        Args:
            real_elapsed: 真实流逝时间

        Returns:
            datetime: 推进后的仿真时间
        """
        if real_elapsed < timedelta(0):
            raise ValidationError(f"must not be negative, got {real_elapsed}", field="real_elapsed")
        with self._lock:
            self._time = self._time + real_elapsed * self.multiplier
            return self._time

    def set_time(self, t: datetime) -> None:
        """跳转到指定仿真时间"""
        t = ensure_utc(t)
        with self._lock:
            previous = self._time
            self._time = t
        if t != previous:
            logger.info(f"Simulation time jumped from {previous.isoformat()} to {t.isoformat()}")
            self._notify(ClockEvent(ClockEventType.TIME_JUMP, previous, t, self.multiplier))

    def set_multiplier(self, multiplier: float) -> None:
        """修改时间倍速"""
        _check_multiplier(multiplier)
        with self._lock:
            changed = float(multiplier) != self.multiplier
            self.multiplier = float(multiplier)
            current = self._time
        if changed:
            logger.info(f"Simulation time multiplier set to {multiplier}")
            self._notify(ClockEvent(ClockEventType.MULTIPLIER_CHANGED, current, current, self.multiplier))

    def subscribe(self, listener: ClockListener) -> Callable[[], None]:
        """
        订阅时钟事件

        Returns:
            取消订阅函数
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: ClockEvent) -> None:
        for listener in list(self._listeners):
            listener(event)


def _check_multiplier(multiplier: float) -> None:
    if not multiplier > 0:
        raise ValidationError(f"must be > 0, got {multiplier}", field="multiplier")
