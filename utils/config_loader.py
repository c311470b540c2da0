"""
通用配置加载器

功能：
- 加载JSON/YAML/INI配置文件
- 从带前缀的环境变量读取覆盖值（标量按YAML规则解析类型）
- 深度合并多来源配置
"""

import json
import os
from configparser import ConfigParser, Error as ConfigParserError
from typing import Dict, Any, Optional
from pathlib import Path

import yaml

from .json_utils import load_json


class ConfigLoadError(Exception):
    """配置加载错误"""
    pass


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    深度合并两个字典

    Args:
        base: 基础字典
        override: 覆盖字典

    Returns:
        Dict[str, Any]: 合并后的新字典
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


class ConfigLoader:
    """
    通用配置加载器

    支持多种格式的配置文件加载
    """

    FORMAT_MAP = {
        ".json": "json",
        ".yaml": "yaml",
        ".yml": "yaml",
        ".ini": "ini",
        ".conf": "ini",
        ".cfg": "ini",
    }

    def __init__(self):
        """初始化加载器"""
        self._loaded_config: Optional[Dict[str, Any]] = None
        self._file_path: Optional[str] = None

    def load(self, path: str, format: str = "auto") -> Dict[str, Any]:
        """
        加载配置文件

        Args:
            path: 配置文件路径
            format: 文件格式 ("auto", "json", "yaml", "ini")

        Returns:
            Dict[str, Any]: 配置字典（空文件返回空字典）

        Raises:
            ConfigLoadError: 文件不存在、格式不支持、解析失败或顶层不是映射
        """
        if not os.path.exists(path):
            raise ConfigLoadError(f"配置文件不存在: {path}")

        if format == "auto":
            format = self._detect_format(path)

        if format == "json":
            config = self._load_json(path)
        elif format == "yaml":
            config = self._load_yaml(path)
        elif format == "ini":
            config = self._load_ini(path)
        else:
            raise ConfigLoadError(f"不支持的配置格式: {format}")

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigLoadError(f"配置文件顶层必须是映射: {path}")

        self._loaded_config = config
        self._file_path = path

        return config

    def _detect_format(self, path: str) -> str:
        """根据文件扩展名检测格式"""
        ext = Path(path).suffix.lower()
        if ext in self.FORMAT_MAP:
            return self.FORMAT_MAP[ext]
        raise ConfigLoadError(f"无法自动检测文件格式: {ext}")

    def _load_json(self, path: str) -> Any:
        """加载JSON文件"""
        try:
            return load_json(path)
        except FileNotFoundError as e:
            raise ConfigLoadError(f"配置文件不存在: {e}")
        except json.JSONDecodeError as e:
            raise ConfigLoadError(f"JSON解析错误: {e}")

    def _load_yaml(self, path: str) -> Any:
        """加载YAML文件"""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"YAML解析错误: {e}")

    def _load_ini(self, path: str) -> Dict[str, Any]:
        """加载INI文件，每个节转换为一个子字典"""
        try:
            parser = ConfigParser()
            parser.read(path, encoding='utf-8')
            return {section: dict(parser.items(section)) for section in parser.sections()}
        except ConfigParserError as e:
            raise ConfigLoadError(f"INI解析错误: {e}")

    def load_from_env(self, prefix: str) -> Dict[str, Any]:
        """
        从环境变量加载配置

        SATPASS_MIN_ELEVATION_DEG=15 -> {'min_elevation_deg': 15}

        Args:
            prefix: 环境变量前缀（不区分大小写）

        Returns:
            Dict[str, Any]: 配置字典
        """
        result = {}
        prefix_lower = prefix.lower()

        for key, value in os.environ.items():
            key_lower = key.lower()
            if key_lower.startswith(prefix_lower) and len(key_lower) > len(prefix_lower):
                result[key_lower[len(prefix_lower):]] = self._parse_env_value(value)

        return result

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """按YAML标量规则解析环境变量值，无法解析时保留原字符串"""
        try:
            parsed = yaml.safe_load(value)
        except yaml.YAMLError:
            return value
        if isinstance(parsed, (dict, list)) or parsed is None:
            return value
        return parsed

    def get_loaded_config(self) -> Optional[Dict[str, Any]]:
        """获取最后加载的配置"""
        return self._loaded_config

    def get_file_path(self) -> Optional[str]:
        """获取最后加载的文件路径"""
        return self._file_path
