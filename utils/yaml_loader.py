"""
YAML场景配置解析器

- 从YAML文件加载过境预测场景
- 解析场景时间范围、观测者、卫星目录与引擎配置
- 转换为Scenario对象
"""

import yaml
import os
from dataclasses import dataclass
from typing import Dict, Any, List, Tuple, Optional
from datetime import datetime, timedelta

from core.config import EngineConfig
from core.exceptions import ValidationError
from core.models.catalog import SatelliteCatalog
from core.models.observer import ObserverLocation, DEFAULT_OBSERVER
from core.models.orbital_elements import parse_timestamp


@dataclass(frozen=True)
class Scenario:
    """
    过境预测场景

    Attributes:
        name: 场景名称
        start_time: 搜索开始时间
        horizon: 搜索时长
        observer: 观测者位置
        catalog: 卫星目录
        config: 引擎配置
    """
    name: str
    start_time: datetime
    horizon: timedelta
    observer: ObserverLocation
    catalog: SatelliteCatalog
    config: EngineConfig

    @property
    def end_time(self) -> datetime:
        return self.start_time + self.horizon


class YamlLoader:
    """
    YAML场景配置加载器

    场景文件格式：

        scenario:
          name: Phoenix daily passes
          duration:
            start: "2024-01-01T00:00:00Z"
            end: "2024-01-02T00:00:00Z"
        observer:
          latitude_deg: 33.4484
          longitude_deg: -112.0740
          elevation_m: 331
        satellites:            # 省略时使用内置星座
          - satellite_id: SMAP
            ...
        engine:                # 可选，覆盖引擎配置
          min_elevation_deg: 15
    """

    def __init__(self):
        """初始化加载器"""
        self._loaded_config: Optional[Dict[str, Any]] = None
        self._file_path: Optional[str] = None

    def load(self, file_path: str) -> Dict[str, Any]:
        """
        加载YAML文件

        Args:
            file_path: YAML文件路径

        Returns:
            Dict[str, Any]: 解析后的配置字典

        Raises:
            FileNotFoundError: 文件不存在
            yaml.YAMLError: YAML解析错误
        """
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"YAML文件不存在: {file_path}")

        with open(file_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}

        self._loaded_config = config
        self._file_path = file_path

        return config

    def parse_scenario_basic_info(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        解析场景基本信息

        Args:
            config: 配置字典

        Returns:
            Dict[str, Any]: 场景名称与时间范围
        """
        if 'scenario' not in config:
            return {}

        scenario = config['scenario']
        result = {
            'name': scenario.get('name', 'Unnamed Scenario'),
        }

        duration = scenario.get('duration') or {}
        if 'start' in duration:
            result['start_time'] = parse_timestamp(duration['start'], 'duration.start')
        if 'end' in duration:
            result['end_time'] = parse_timestamp(duration['end'], 'duration.end')

        return result

    def parse_observer(self, config: Dict[str, Any]) -> ObserverLocation:
        """解析观测者，省略时使用默认观测点"""
        observer = config.get('observer')
        if not observer:
            return DEFAULT_OBSERVER
        return ObserverLocation.from_dict(observer)

    def parse_catalog(self, config: Dict[str, Any]) -> SatelliteCatalog:
        """解析卫星目录，省略时使用内置星座"""
        if not config.get('satellites'):
            return SatelliteCatalog.default()
        return SatelliteCatalog.from_dict({'satellites': config['satellites']})

    def parse_engine_config(self, config: Dict[str, Any]) -> EngineConfig:
        """解析引擎配置"""
        return EngineConfig.from_dict(config.get('engine') or {})

    def validate_schema(self, config: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        验证配置模式

        Args:
            config: 配置字典

        Returns:
            Tuple[bool, List[str]]: (是否有效, 错误列表)
        """
        errors = []

        if 'scenario' not in config:
            errors.append("缺少必需的 'scenario' 根节点")
            return False, errors

        scenario = config['scenario']

        if 'name' not in scenario:
            errors.append("scenario 缺少 'name' 字段")

        if 'duration' not in scenario:
            errors.append("scenario 缺少 'duration' 字段")
        else:
            duration = scenario['duration']
            if 'start' not in duration:
                errors.append("duration 缺少 'start' 字段")
            if 'end' not in duration:
                errors.append("duration 缺少 'end' 字段")

        observer = config.get('observer')
        if observer is not None:
            for key in ('latitude_deg', 'longitude_deg'):
                if key not in observer:
                    errors.append(f"observer 缺少 '{key}' 字段")

        return len(errors) == 0, errors

    def load_scenario(self, file_path: str) -> Scenario:
        """
        加载YAML文件并转换为Scenario对象

        Args:
            file_path: YAML文件路径

        Returns:
            Scenario: 过境预测场景

        Raises:
            FileNotFoundError: 文件不存在
            ValidationError: 场景内容非法或YAML解析失败
        """
        try:
            config = self.load(file_path)
        except yaml.YAMLError as e:
            raise ValidationError(f"YAML解析错误: {e}", field="scenario") from e

        valid, errors = self.validate_schema(config)
        if not valid:
            raise ValidationError("; ".join(errors), field="scenario")

        basic_info = self.parse_scenario_basic_info(config)
        start_time = basic_info['start_time']
        end_time = basic_info['end_time']
        if end_time <= start_time:
            raise ValidationError("end must be after start", field="duration")

        return Scenario(
            name=basic_info['name'],
            start_time=start_time,
            horizon=end_time - start_time,
            observer=self.parse_observer(config),
            catalog=self.parse_catalog(config),
            config=self.parse_engine_config(config),
        )

    def get_loaded_config(self) -> Optional[Dict[str, Any]]:
        """获取最后加载的配置"""
        return self._loaded_config

    def get_file_path(self) -> Optional[str]:
        """获取最后加载的文件路径"""
        return self._file_path
