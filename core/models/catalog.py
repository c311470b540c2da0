"""
卫星目录 - 卫星ID到轨道根数的只读映射

目录在启动时一次性加载（默认星座、JSON或YAML文件），加载时完成全部校验。
"""

from datetime import datetime, timezone
from pathlib import Path
from collections.abc import Mapping
from typing import Any, Dict, Iterator, List, Union
from types import MappingProxyType
import logging

import yaml

from utils.json_utils import load_json, save_json

from ..exceptions import CatalogError, ValidationError
from .orbital_elements import OrbitalElements

logger = logging.getLogger(__name__)


# 默认目录的参考历元
DEFAULT_EPOCH = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)

# NASA农业观测星座（高度/倾角/周期取自任务公开参数，
# 升交点赤经为示意值。地球自转不建模时星下点轨迹是固定的大圆，
# 这里让各轨道面从默认观测点附近不同距离经过，平近点角使各卫星相位互不相同）
DEFAULT_CONSTELLATION: Dict[str, Dict[str, Any]] = {
    'SMAP': {
        'name': 'SMAP (Soil Moisture)',
        'altitude_km': 685.0,
        'inclination_deg': 98.1,
        'period_minutes': 98.5,
        'raan_deg': 62.5,
        'mean_anomaly_deg': 0.0,
        'description': 'Soil moisture monitoring every 2-3 days',
        'data_products': ['L3 Surface Moisture', 'L4 Root Zone Moisture'],
    },
    'LANDSAT8': {
        'name': 'Landsat 8 (Optical)',
        'altitude_km': 705.0,
        'inclination_deg': 98.2,
        'period_minutes': 99.0,
        'raan_deg': 58.5,
        'mean_anomaly_deg': 45.0,
        'description': 'High-resolution optical imagery every 16 days',
        'data_products': ['True Color', 'NDVI', 'Land Surface Temperature'],
    },
    'TERRA': {
        'name': 'Terra (MODIS)',
        'altitude_km': 705.0,
        'inclination_deg': 98.2,
        'period_minutes': 98.9,
        'raan_deg': 69.5,
        'mean_anomaly_deg': 90.0,
        'description': 'Daily global vegetation monitoring',
        'data_products': ['NDVI', 'EVI', 'Land Surface Temperature'],
    },
    'AQUA': {
        'name': 'Aqua (MODIS)',
        'altitude_km': 705.0,
        'inclination_deg': 98.2,
        'period_minutes': 98.9,
        'raan_deg': 52.5,
        'mean_anomaly_deg': 270.0,
        'description': 'Afternoon overpass for vegetation monitoring',
        'data_products': ['NDVI', 'EVI', 'Sea Surface Temperature'],
    },
    'GPM': {
        'name': 'GPM (Precipitation)',
        'altitude_km': 407.0,
        'inclination_deg': 65.0,
        'period_minutes': 92.8,
        'raan_deg': 89.9,
        'mean_anomaly_deg': 180.0,
        'description': 'Global precipitation monitoring',
        'data_products': ['Precipitation Rate', 'Snow Water Equivalent'],
    },
}


class SatelliteCatalog(Mapping):
    """
    卫星目录

    不可变的 satellite_id -> OrbitalElements 映射，保持加载顺序。
    """

    def __init__(self, elements: List[OrbitalElements]):
        """
        初始化

        Args:
            elements: 轨道根数列表

        Raises:
            ValidationError: 卫星ID重复
        """
        entries: Dict[str, OrbitalElements] = {}
        for item in elements:
            if item.satellite_id in entries:
                raise ValidationError(
                    f"duplicate satellite id {item.satellite_id!r}", field="satellite_id"
                )
            entries[item.satellite_id] = item
        self._entries = MappingProxyType(entries)

    def __getitem__(self, satellite_id: str) -> OrbitalElements:
        return self._entries[satellite_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get_elements(self, satellite_id: str) -> OrbitalElements:
        """
        获取卫星轨道根数

        Raises:
            CatalogError: 卫星不在目录中
        """
        try:
            return self._entries[satellite_id]
        except KeyError:
            raise CatalogError(
                f"unknown satellite {satellite_id!r}; known: {', '.join(self._entries)}"
            ) from None

    def satellites(self) -> List[OrbitalElements]:
        """按加载顺序返回全部轨道根数"""
        return list(self._entries.values())

    @classmethod
    def default(cls) -> 'SatelliteCatalog':
        """默认NASA农业观测星座"""
        elements = [
            OrbitalElements.from_dict({**data, 'epoch': DEFAULT_EPOCH}, satellite_id=sat_id)
            for sat_id, data in DEFAULT_CONSTELLATION.items()
        ]
        return cls(elements)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            'satellites': [item.to_dict() for item in self._entries.values()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SatelliteCatalog':
        """
        从字典创建，支持两种格式：
        - {'satellites': [{...}, ...]}
        - {'satellites': {'SMAP': {...}, ...}}
        """
        if not isinstance(data, dict) or 'satellites' not in data:
            raise ValidationError("catalog must contain a 'satellites' section", field="satellites")

        raw = data['satellites'] or []
        if isinstance(raw, dict):
            elements = [OrbitalElements.from_dict(sat, satellite_id=sat_id) for sat_id, sat in raw.items()]
        elif isinstance(raw, list):
            elements = [OrbitalElements.from_dict(sat) for sat in raw]
        else:
            raise ValidationError("must be a list or mapping", field="satellites")

        return cls(elements)

    def save(self, filepath: Union[str, Path]) -> None:
        """保存到JSON或YAML文件（按扩展名）"""
        path = Path(filepath)
        if path.suffix.lower() not in (".yaml", ".yml"):
            save_json(self.to_dict(), path)
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, allow_unicode=True, sort_keys=False)

    @classmethod
    def load(cls, filepath: Union[str, Path]) -> 'SatelliteCatalog':
        """
        从JSON或YAML文件加载

        Raises:
            FileNotFoundError: 文件不存在
            ValidationError: 内容非法
        """
        path = Path(filepath)
        try:
            if path.suffix.lower() in (".yaml", ".yml"):
                with open(path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            else:
                data = load_json(path)
        except (ValueError, yaml.YAMLError) as e:
            # JSONDecodeError与UnicodeDecodeError均为ValueError子类
            raise ValidationError(f"cannot parse {path}: {e}", field="catalog") from e

        catalog = cls.from_dict(data)
        logger.info(f"Loaded {len(catalog)} satellites from {path}")
        return catalog
