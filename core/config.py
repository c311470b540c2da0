"""
引擎配置模块

管理过境预测引擎的默认参数，支持从配置文件和环境变量覆盖。
合并顺序：默认值 -> 配置文件（JSON/YAML/INI）-> 环境变量（SATPASS_前缀）
"""

from dataclasses import asdict, dataclass, fields
from datetime import timedelta
from typing import Any, Dict, Optional
import logging

from utils.config_loader import ConfigLoader, deep_merge

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "SATPASS_"


@dataclass(frozen=True)
class EngineConfig:
    """
    过境预测引擎配置

    Attributes:
        min_elevation_deg: 最小可见仰角（度）
        step_seconds: 过境搜索步长（秒）
        horizon_hours: 默认搜索时长（小时）
        max_passes: 默认最多返回过境数，0表示不限
        extended_horizon_days: 扩展预测时长（天）
        extended_max_passes: 扩展预测最多过境数
        next_pass_horizon_hours: 下次过境搜索时长（小时）
        kepler_max_iterations: 开普勒方程最大迭代次数
        kepler_tolerance: 开普勒方程收敛容差（弧度）
        cache_ttl_minutes: 结果缓存有效期（仿真分钟）
        alert_lead_minutes: 过境提醒提前量（分钟）
        alert_min_peak_deg: 触发提醒的最小过境仰角（度）
        upcoming_min_peak_deg: 近期过境列表的最小仰角（度）
        upcoming_window_hours: 近期过境列表时长（小时）
        cancel_check_interval: 取消检查间隔（采样点数）
        log_level: 日志级别
    """
    min_elevation_deg: float = 10.0
    step_seconds: float = 60.0
    horizon_hours: float = 24.0
    max_passes: int = 0
    extended_horizon_days: float = 7.0
    extended_max_passes: int = 15
    next_pass_horizon_hours: float = 24.0
    kepler_max_iterations: int = 50
    kepler_tolerance: float = 1e-10
    cache_ttl_minutes: float = 10.0
    alert_lead_minutes: float = 15.0
    alert_min_peak_deg: float = 30.0
    upcoming_min_peak_deg: float = 20.0
    upcoming_window_hours: float = 24.0
    cancel_check_interval: int = 256
    log_level: str = "INFO"

    def __post_init__(self):
        """校验配置值"""
        if not (-90.0 <= self.min_elevation_deg <= 90.0):
            raise ValidationError(f"must be in [-90, 90], got {self.min_elevation_deg}", field="min_elevation_deg")
        for name in ('step_seconds', 'horizon_hours', 'extended_horizon_days',
                     'next_pass_horizon_hours', 'kepler_tolerance', 'cache_ttl_minutes',
                     'upcoming_window_hours'):
            if not getattr(self, name) > 0:
                raise ValidationError(f"must be > 0, got {getattr(self, name)}", field=name)
        for name in ('max_passes', 'extended_max_passes', 'alert_lead_minutes'):
            if getattr(self, name) < 0:
                raise ValidationError(f"must not be negative, got {getattr(self, name)}", field=name)
        for name in ('kepler_max_iterations', 'cancel_check_interval'):
            if getattr(self, name) < 1:
                raise ValidationError(f"must be >= 1, got {getattr(self, name)}", field=name)

    @property
    def time_step(self) -> timedelta:
        return timedelta(seconds=self.step_seconds)

    @property
    def horizon(self) -> timedelta:
        return timedelta(hours=self.horizon_hours)

    @property
    def extended_horizon(self) -> timedelta:
        return timedelta(days=self.extended_horizon_days)

    @property
    def next_pass_horizon(self) -> timedelta:
        return timedelta(hours=self.next_pass_horizon_hours)

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(minutes=self.cache_ttl_minutes)

    @property
    def alert_lead_time(self) -> timedelta:
        return timedelta(minutes=self.alert_lead_minutes)

    @property
    def upcoming_window(self) -> timedelta:
        return timedelta(hours=self.upcoming_window_hours)

    @property
    def max_count(self) -> Optional[int]:
        """max_passes为0时不限数量"""
        return self.max_passes or None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EngineConfig':
        """
        从字典创建，忽略未知字段，字符串值按字段类型转换

        Raises:
            ValidationError: 字段值无法转换或非法
        """
        kwargs = {}
        for f in fields(cls):
            if f.name not in data or data[f.name] is None:
                continue
            kwargs[f.name] = _coerce(f.name, data[f.name], type(getattr(_DEFAULTS, f.name)))

        unknown = set(data) - {f.name for f in fields(cls)}
        if unknown:
            logger.warning(f"Ignoring unknown engine config keys: {sorted(unknown)}")

        return cls(**kwargs)


def _coerce(name: str, value: Any, target: type) -> Any:
    """将配置值（可能来自INI或环境变量的字符串）转换为目标类型"""
    try:
        if target is int:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"{value} is not an integer")
            return int(value)
        if target is float:
            return float(value)
        return str(value).upper() if name == 'log_level' else str(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"invalid value {value!r}: {e}", field=name)


_DEFAULTS = EngineConfig()


def load_engine_config(
    path: Optional[str] = None,
    env_prefix: str = ENV_PREFIX,
    overrides: Optional[Dict[str, Any]] = None
) -> EngineConfig:
    """
    加载引擎配置

    Args:
        path: 配置文件路径（可选）。文件可以直接包含配置项，
              也可以将其放在"engine"节下
        env_prefix: 环境变量前缀
        overrides: 最高优先级的覆盖值

    Returns:
        EngineConfig: 合并后的配置

    Raises:
        ConfigLoadError: 配置文件无法加载
        ValidationError: 配置值非法
    """
    loader = ConfigLoader()
    merged: Dict[str, Any] = {}

    if path:
        file_config = loader.load(path) or {}
        if isinstance(file_config.get('engine'), dict):
            file_config = file_config['engine']
        merged = deep_merge(merged, file_config)

    merged = deep_merge(merged, loader.load_from_env(env_prefix))

    if overrides:
        merged.update({k: v for k, v in overrides.items() if v is not None})

    return EngineConfig.from_dict(merged)
