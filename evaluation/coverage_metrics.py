"""
过境覆盖统计模块

统计时间窗内过境的次数、可见时长、覆盖率、重访间隔与质量分布
"""

from typing import Any, Dict, List, Optional, Sequence
from dataclasses import dataclass, field
from datetime import datetime
import numpy as np

from core.exceptions import ValidationError
from core.orbit.utils import ensure_utc
from core.orbit.visibility.base import Pass, QualityTier


@dataclass
class PassStatistics:
    """
    过境统计数据类

    Attributes:
        pass_count: 过境次数
        total_visible_minutes: 累计可见时长（分钟，重叠部分只计一次）
        mean_pass_minutes: 平均单次过境时长（分钟）
        coverage_fraction: 可见时长占时间窗比例 (0-1)
        mean_revisit_gap_minutes: 平均重访间隔（分钟）
        max_revisit_gap_minutes: 最大不可见间隔（分钟，含时间窗首尾）
        mean_peak_elevation_deg: 平均最大仰角（度）
        best_peak_elevation_deg: 最高过境仰角（度）
        tier_counts: 各质量等级过境次数
    """
    pass_count: int = 0
    total_visible_minutes: float = 0.0
    mean_pass_minutes: float = 0.0
    coverage_fraction: float = 0.0
    mean_revisit_gap_minutes: float = 0.0
    max_revisit_gap_minutes: float = 0.0
    mean_peak_elevation_deg: float = 0.0
    best_peak_elevation_deg: float = 0.0
    tier_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            'pass_count': self.pass_count,
            'total_visible_minutes': self.total_visible_minutes,
            'mean_pass_minutes': self.mean_pass_minutes,
            'coverage_fraction': self.coverage_fraction,
            'mean_revisit_gap_minutes': self.mean_revisit_gap_minutes,
            'max_revisit_gap_minutes': self.max_revisit_gap_minutes,
            'mean_peak_elevation_deg': self.mean_peak_elevation_deg,
            'best_peak_elevation_deg': self.best_peak_elevation_deg,
            'tier_counts': dict(self.tier_counts),
        }

    def __str__(self) -> str:
        """字符串表示"""
        return (
            f"PassStatistics(\n"
            f"  过境次数: {self.pass_count}\n"
            f"  累计可见: {self.total_visible_minutes:.1f} 分钟\n"
            f"  覆盖率: {self.coverage_fraction:.2%}\n"
            f"  平均重访间隔: {self.mean_revisit_gap_minutes:.1f} 分钟\n"
            f"  最大间隔: {self.max_revisit_gap_minutes:.1f} 分钟\n"
            f"  平均最大仰角: {self.mean_peak_elevation_deg:.1f} 度\n"
            f")"
        )


class PassStatisticsCalculator:
    """过境统计计算器"""

    def __init__(self, window_start: datetime, window_end: datetime):
        """
        初始化

        Args:
            window_start: 统计时间窗开始
            window_end: 统计时间窗结束
        """
        self.window_start = ensure_utc(window_start)
        self.window_end = ensure_utc(window_end)
        if self.window_end <= self.window_start:
            raise ValidationError("window end must be after window start", field="window_end")
        self.window_minutes = (self.window_end - self.window_start).total_seconds() / 60.0

    def calculate(self, passes: Sequence[Pass]) -> PassStatistics:
        """
        计算统计指标

        Args:
            passes: 过境列表（可来自多颗卫星）

        Returns:
            PassStatistics: 统计结果
        """
        tier_counts = {tier.value: 0 for tier in QualityTier}
        if not passes:
            return PassStatistics(
                max_revisit_gap_minutes=self.window_minutes,
                tier_counts=tier_counts,
            )

        durations = np.array([p.duration_minutes for p in passes], dtype=float)
        peaks = np.array([p.peak_elevation_deg for p in passes], dtype=float)
        for p in passes:
            if p.quality_tier is not None:
                tier_counts[p.quality_tier.value] += 1

        intervals = self._merged_intervals(passes)
        visible = float(np.sum(intervals[:, 1] - intervals[:, 0])) if len(intervals) else 0.0

        # 相邻可见时段之间的间隔
        revisit_gaps = intervals[1:, 0] - intervals[:-1, 1] if len(intervals) > 1 else np.array([])

        # 最大间隔包含时间窗首尾的不可见时段
        if len(intervals):
            edges = np.array([intervals[0, 0], self.window_minutes - intervals[-1, 1]])
            all_gaps = np.concatenate([revisit_gaps, edges])
        else:
            all_gaps = np.array([self.window_minutes])

        return PassStatistics(
            pass_count=len(passes),
            total_visible_minutes=visible,
            mean_pass_minutes=float(np.mean(durations)),
            coverage_fraction=visible / self.window_minutes,
            mean_revisit_gap_minutes=float(np.mean(revisit_gaps)) if len(revisit_gaps) else 0.0,
            max_revisit_gap_minutes=float(np.max(all_gaps)),
            mean_peak_elevation_deg=float(np.mean(peaks)),
            best_peak_elevation_deg=float(np.max(peaks)),
            tier_counts=tier_counts,
        )

    def calculate_per_satellite(self, passes: Sequence[Pass]) -> Dict[str, PassStatistics]:
        """按卫星分组计算统计指标"""
        grouped: Dict[str, List[Pass]] = {}
        for p in passes:
            grouped.setdefault(p.satellite_id, []).append(p)
        return {sat_id: self.calculate(items) for sat_id, items in grouped.items()}

    def _merged_intervals(self, passes: Sequence[Pass]) -> np.ndarray:
        """裁剪到时间窗并合并重叠的可见时段，返回相对时间窗开始的分钟数 (n, 2)"""
        raw = np.array([
            [
                (p.start_time - self.window_start).total_seconds() / 60.0,
                (p.end_time - self.window_start).total_seconds() / 60.0,
            ]
            for p in passes
        ], dtype=float)
        raw = np.clip(raw, 0.0, self.window_minutes)
        raw = raw[raw[:, 1] > raw[:, 0]]
        if len(raw) == 0:
            return raw.reshape(0, 2)

        raw = raw[np.argsort(raw[:, 0])]
        merged = [raw[0].copy()]
        for start, end in raw[1:]:
            if start <= merged[-1][1]:
                merged[-1][1] = max(merged[-1][1], end)
            else:
                merged.append(np.array([start, end]))
        return np.array(merged)


def calculate_pass_statistics(
    passes: Sequence[Pass],
    window_start: datetime,
    window_end: datetime,
    satellite_id: Optional[str] = None
) -> PassStatistics:
    """
    计算过境统计指标

    Args:
        passes: 过境列表
        window_start: 时间窗开始
        window_end: 时间窗结束
        satellite_id: 仅统计指定卫星（可选）
    """
    if satellite_id is not None:
        passes = [p for p in passes if p.satellite_id == satellite_id]
    return PassStatisticsCalculator(window_start, window_end).calculate(passes)
