"""过境预测服务与过境提醒"""

from .pass_predictor import NextPassInfo, PassPredictor, SatelliteStatus
from .pass_alerts import PassAlert, PassAlertMonitor, select_imminent_passes

__all__ = [
    'PassPredictor',
    'NextPassInfo',
    'SatelliteStatus',
    'PassAlert',
    'PassAlertMonitor',
    'select_imminent_passes',
]
