"""
轨道根数模型 - 定义单颗卫星的简化开普勒轨道参数

轨道根数在加载目录时一次性构造并校验，之后不可变。
所有校验错误在构造阶段以ValidationError抛出，传播阶段不再校验。
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
import math

from ..exceptions import ValidationError
from ..orbit.utils import ensure_utc


OPERATIONAL_STATUS = "operational"


def _require_finite(name: str, value: Any) -> float:
    """校验数值字段为有限实数"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"must be a number, got {value!r}", field=name)
    if not math.isfinite(value):
        raise ValidationError(f"must be finite, got {value!r}", field=name)
    return float(value)


def parse_timestamp(value: Any, field_name: str = "epoch") -> datetime:
    """
    解析时间戳（datetime或ISO-8601字符串），统一为UTC

    Raises:
        ValidationError: 无法解析时抛出
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        try:
            # 处理ISO格式时间字符串中的Z后缀
            return ensure_utc(datetime.fromisoformat(value.replace('Z', '+00:00')))
        except ValueError as e:
            raise ValidationError(f"invalid ISO-8601 timestamp {value!r}: {e}", field=field_name)
    raise ValidationError(f"expected datetime or ISO-8601 string, got {value!r}", field=field_name)


@dataclass(frozen=True)
class OrbitalElements:
    """
    简化开普勒轨道根数

    Attributes:
        satellite_id: 卫星ID
        name: 卫星名称
        altitude_km: 轨道高度（千米，>0）
        inclination_deg: 轨道倾角（度，0-180）
        period_minutes: 轨道周期（分钟，>0）
        eccentricity: 偏心率（0 <= e < 1，假设为小偏心率）
        raan_deg: 升交点赤经（度）
        arg_perigee_deg: 近地点幅角（度）
        mean_anomaly_deg: 历元时刻平近点角（度）
        epoch: 历元时刻（UTC）
        status: 运行状态（"operational"或如"operational-degraded"）
        description: 任务描述
        data_products: 数据产品列表
    """
    satellite_id: str
    name: str
    altitude_km: float
    inclination_deg: float
    period_minutes: float
    epoch: datetime
    eccentricity: float = 0.0
    raan_deg: float = 0.0
    arg_perigee_deg: float = 0.0
    mean_anomaly_deg: float = 0.0
    status: str = OPERATIONAL_STATUS
    description: str = ""
    data_products: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """构造后校验并规范化"""
        if not isinstance(self.satellite_id, str) or not self.satellite_id.strip():
            raise ValidationError("must be a non-empty string", field="satellite_id")

        altitude = _require_finite("altitude_km", self.altitude_km)
        if altitude <= 0:
            raise ValidationError(f"must be > 0, got {altitude}", field="altitude_km")

        inclination = _require_finite("inclination_deg", self.inclination_deg)
        if not (0.0 <= inclination <= 180.0):
            raise ValidationError(f"must be in [0, 180], got {inclination}", field="inclination_deg")

        period = _require_finite("period_minutes", self.period_minutes)
        if period <= 0:
            raise ValidationError(f"must be > 0, got {period}", field="period_minutes")

        eccentricity = _require_finite("eccentricity", self.eccentricity)
        if not (0.0 <= eccentricity < 1.0):
            raise ValidationError(f"must satisfy 0 <= e < 1, got {eccentricity}", field="eccentricity")

        # 冻结dataclass只能通过object.__setattr__规范化字段
        object.__setattr__(self, 'altitude_km', altitude)
        object.__setattr__(self, 'inclination_deg', inclination)
        object.__setattr__(self, 'period_minutes', period)
        object.__setattr__(self, 'eccentricity', eccentricity)
        object.__setattr__(self, 'raan_deg', _require_finite("raan_deg", self.raan_deg))
        object.__setattr__(self, 'arg_perigee_deg', _require_finite("arg_perigee_deg", self.arg_perigee_deg))
        object.__setattr__(self, 'mean_anomaly_deg', _require_finite("mean_anomaly_deg", self.mean_anomaly_deg))
        object.__setattr__(self, 'epoch', parse_timestamp(self.epoch))
        object.__setattr__(self, 'data_products', tuple(self.data_products))
        if not self.name:
            object.__setattr__(self, 'name', self.satellite_id)

    @property
    def is_operational(self) -> bool:
        """卫星是否处于完全正常运行状态"""
        return self.status == OPERATIONAL_STATUS

    @property
    def mean_motion_rad_per_min(self) -> float:
        """平均运动（弧度/分钟）"""
        return 2 * math.pi / self.period_minutes

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            'satellite_id': self.satellite_id,
            'name': self.name,
            'altitude_km': self.altitude_km,
            'inclination_deg': self.inclination_deg,
            'period_minutes': self.period_minutes,
            'eccentricity': self.eccentricity,
            'raan_deg': self.raan_deg,
            'arg_perigee_deg': self.arg_perigee_deg,
            'mean_anomaly_deg': self.mean_anomaly_deg,
            'epoch': self.epoch.isoformat(),
            'status': self.status,
            'description': self.description,
            'data_products': list(self.data_products),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], satellite_id: Optional[str] = None) -> 'OrbitalElements':
        """
        从字典创建

        Args:
            data: 轨道根数字典
            satellite_id: 卫星ID（目录以ID为键时使用）

        Raises:
            ValidationError: 缺少必需字段或字段非法
        """
        sat_id = data.get('satellite_id', data.get('id', satellite_id))
        for required in ('altitude_km', 'inclination_deg', 'period_minutes', 'epoch'):
            if required not in data:
                raise ValidationError("missing required field", field=required)

        return cls(
            satellite_id=sat_id,
            name=data.get('name', sat_id),
            altitude_km=data['altitude_km'],
            inclination_deg=data['inclination_deg'],
            period_minutes=data['period_minutes'],
            epoch=data['epoch'],
            eccentricity=data.get('eccentricity', 0.0),
            raan_deg=data.get('raan_deg', 0.0),
            arg_perigee_deg=data.get('arg_perigee_deg', 0.0),
            mean_anomaly_deg=data.get('mean_anomaly_deg', 0.0),
            status=data.get('status', OPERATIONAL_STATUS),
            description=data.get('description', ''),
            data_products=tuple(data.get('data_products', ())),
        )
