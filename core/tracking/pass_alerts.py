"""
过境提醒

在高质量过境开始前发出提醒，每次过境只提醒一次。
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional
import logging

from ..models.observer import ObserverLocation
from ..orbit.utils import ensure_utc, minutes_between
from ..orbit.visibility.base import Pass
from .pass_predictor import PassPredictor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PassAlert:
    """过境提醒"""
    satellite_id: str
    satellite_name: str
    pass_: Pass
    minutes_until: float

    @property
    def message(self) -> str:
        return (
            f"{self.satellite_name} pass in {round(self.minutes_until)} minutes "
            f"({round(self.pass_.peak_elevation_deg)}° elevation)"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'satellite_id': self.satellite_id,
            'satellite_name': self.satellite_name,
            'minutes_until': self.minutes_until,
            'message': self.message,
            'pass': self.pass_.to_dict(),
        }


def select_imminent_passes(
    passes: Iterable[Pass],
    now: datetime,
    lead_time: timedelta,
    min_peak_deg: float
) -> List[Pass]:
    """
    筛选即将开始的高质量过境

    开始时间严格晚于now且不晚于now + lead_time，最大仰角不低于min_peak_deg
    """
    now = ensure_utc(now)
    latest = now + lead_time
    return sorted(
        p for p in passes
        if now < p.start_time <= latest and p.peak_elevation_deg >= min_peak_deg
    )


class PassAlertMonitor:
    """
    过境提醒监视器

    由调用方周期性调用check()。已提醒的过境按 (卫星, 开始时间) 记录；
    重新预测得到的同一过境（与已提醒过境时段重叠）不会重复提醒。
    """

    def __init__(
        self,
        predictor: PassPredictor,
        observer: ObserverLocation,
        lead_time: Optional[timedelta] = None,
        min_peak_deg: Optional[float] = None
    ):
        self.predictor = predictor
        self.observer = observer
        self.lead_time = predictor.config.alert_lead_time if lead_time is None else lead_time
        self.min_peak_deg = predictor.config.alert_min_peak_deg if min_peak_deg is None else min_peak_deg
        self._notified: Dict[str, List[Pass]] = {}

    def check(self, now: Optional[datetime] = None) -> List[PassAlert]:
        """
        检查并返回新的过境提醒

        Args:
            now: 当前时间，默认取预测服务的仿真时钟
        """
        now = self.predictor.resolve_time(now)
        self._forget_finished(now)

        alerts = []
        for elements in self.predictor.catalog.satellites():
            passes = self.predictor.predict_extended(elements.satellite_id, self.observer, now)
            for p in select_imminent_passes(passes, now, self.lead_time, self.min_peak_deg):
                if self._already_notified(p):
                    continue
                self._notified.setdefault(p.satellite_id, []).append(p)
                alert = PassAlert(
                    satellite_id=elements.satellite_id,
                    satellite_name=elements.name,
                    pass_=p,
                    minutes_until=minutes_between(now, p.start_time),
                )
                logger.info(f"Pass alert: {alert.message}")
                alerts.append(alert)

        alerts.sort(key=lambda a: a.pass_.start_time)
        return alerts

    def reset(self) -> None:
        """清空已提醒记录"""
        self._notified.clear()

    def _already_notified(self, candidate: Pass) -> bool:
        for p in self._notified.get(candidate.satellite_id, []):
            if p.start_time == candidate.start_time:
                return True
            if p.start_time < candidate.end_time and candidate.start_time < p.end_time:
                return True
        return False

    def _forget_finished(self, now: datetime) -> None:
        for satellite_id in list(self._notified):
            remaining = [p for p in self._notified[satellite_id] if p.end_time >= now]
            if remaining:
                self._notified[satellite_id] = remaining
            else:
                del self._notified[satellite_id]
