"""
仿真模块

提供驱动过境预测的仿真时钟
"""

from .clock import ClockEvent, ClockEventType, SimulationClock

__all__ = [
    'SimulationClock',
    'ClockEvent',
    'ClockEventType',
]
