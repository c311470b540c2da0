"""
过境质量分级

根据最大仰角划分质量等级，并综合仰角、持续时间和卫星健康状态
给出数据获取机会评分（0-100）
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple
import math

from .base import Pass, QualityTier

# 仰角分级阈值（度），从高到低匹配
TIER_THRESHOLDS: List[Tuple[float, QualityTier]] = [
    (60.0, QualityTier.EXCELLENT),
    (45.0, QualityTier.VERY_GOOD),
    (30.0, QualityTier.GOOD),
    (15.0, QualityTier.FAIR),
]

# 满分持续时间（分钟）
FULL_SCORE_DURATION_MINUTES = 15.0

# 非正常运行卫星的健康分
DEGRADED_HEALTH_SCORE = 0.5


@dataclass(frozen=True)
class PassQuality:
    """
    过境质量评估结果

    Attributes:
        tier: 质量等级
        score: 数据获取机会评分（0-100）
        recommendation: 建议
        factors: 各分项评分（百分制）
    """
    tier: QualityTier
    score: int
    recommendation: str
    factors: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'quality_tier': self.tier.value,
            'data_opportunity_score': self.score,
            'recommendation': self.recommendation,
            'factors': dict(self.factors),
        }


def tier_for_elevation(peak_elevation_deg: float) -> QualityTier:
    """按最大仰角确定质量等级"""
    for threshold, tier in TIER_THRESHOLDS:
        if peak_elevation_deg >= threshold:
            return tier
    return QualityTier.POOR


def _round_half_up(value: float) -> int:
    # 0.5向上取整，避免内置round的银行家舍入
    return int(math.floor(value + 0.5))


def _recommendation(overall: float) -> str:
    if overall > 0.8:
        return "highly recommended"
    if overall > 0.6:
        return "recommended"
    if overall > 0.4:
        return "consider"
    return "not recommended"


class PassQualityClassifier:
    """过境质量分级器（纯函数，无状态）"""

    def classify(self, pass_: Pass, operational: bool = True) -> PassQuality:
        """
        评估过境质量

        Args:
            pass_: 过境记录
            operational: 卫星是否正常运行

        Returns:
            PassQuality: 质量评估结果
        """
        elevation_score = min(max(pass_.peak_elevation_deg, 0.0) / 90.0, 1.0)
        duration_score = min(max(pass_.duration_minutes, 0.0) / FULL_SCORE_DURATION_MINUTES, 1.0)
        health_score = 1.0 if operational else DEGRADED_HEALTH_SCORE

        overall = (elevation_score + duration_score + health_score) / 3

        return PassQuality(
            tier=tier_for_elevation(pass_.peak_elevation_deg),
            score=_round_half_up(overall * 100),
            recommendation=_recommendation(overall),
            factors={
                'elevation': _round_half_up(elevation_score * 100),
                'duration': _round_half_up(duration_score * 100),
                'health': _round_half_up(health_score * 100),
            },
        )


def classify(pass_: Pass, operational: bool = True) -> PassQuality:
    """评估过境质量"""
    return PassQualityClassifier().classify(pass_, operational)
