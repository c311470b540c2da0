"""
日志管理模块

功能：
- 控制台日志输出到stderr（stdout留给命令输出）
- 文件日志（可按日期/小时轮转）
- 结构化日志（JSON格式，时间戳为UTC）
- configure_logging() 为整个引擎的logger层级统一配置处理器
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Dict, Any, Optional, Union


class LoggerConfigError(Exception):
    """日志配置错误"""
    pass


LOG_FORMATS = ("text", "json")


class JsonFormatter(logging.Formatter):
    """JSON格式日志格式化器"""

    def format(self, record: logging.LogRecord) -> str:
        """格式化日志记录为JSON"""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage()
        }

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """文本格式日志格式化器"""

    def __init__(self, fmt: Optional[str] = None):
        super().__init__(
            fmt=fmt or "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def _make_formatter(format: str) -> logging.Formatter:
    if format not in LOG_FORMATS:
        raise LoggerConfigError(f"无效的日志格式: {format}. 有效值: {list(LOG_FORMATS)}")
    return JsonFormatter() if format == "json" else TextFormatter()


class Logger:
    """
    日志管理器

    包装一个标准库logger，负责其处理器与级别。name为空字符串时
    配置根logger，各模块通过logging.getLogger(__name__)获得的logger
    都会传播到这里。
    """

    LEVEL_MAP = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL
    }

    def __init__(self, name: str, level: str = "INFO"):
        """
        初始化日志管理器

        Args:
            name: Logger名称
            level: 日志级别 (DEBUG, INFO, WARNING, ERROR, CRITICAL)

        Raises:
            LoggerConfigError: 无效的日志级别
        """
        level = level.upper()
        if level not in self.LEVEL_MAP:
            raise LoggerConfigError(f"无效的日志级别: {level}. 有效值: {list(self.LEVEL_MAP.keys())}")

        self.name = name
        self.level = level
        self._logger = logging.getLogger(name)
        self._logger.setLevel(self.LEVEL_MAP[level])

        # 清除已有处理器，重复配置时不会重复输出
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()
        if name:
            self._logger.propagate = False

    @property
    def handlers(self):
        return list(self._logger.handlers)

    def add_console_handler(self, format: str = "text", stream=None) -> "Logger":
        """
        添加控制台处理器

        Args:
            format: 格式类型 ("text", "json")
            stream: 输出流，默认stderr

        Returns:
            Logger: 自身，支持链式调用
        """
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setLevel(self.LEVEL_MAP[self.level])
        handler.setFormatter(_make_formatter(format))
        self._logger.addHandler(handler)
        return self

    def add_file_handler(
        self,
        path: str,
        rotation: str = "none",
        format: str = "text",
        backup_count: int = 7
    ) -> "Logger":
        """
        添加文件处理器

        Args:
            path: 日志文件路径
            rotation: 轮转策略 ("none", "daily", "hourly")
            format: 格式类型 ("text", "json")
            backup_count: 保留的备份文件数量

        Returns:
            Logger: 自身，支持链式调用
        """
        rotation_map = {"daily": "midnight", "hourly": "H"}
        if rotation != "none" and rotation not in rotation_map:
            raise LoggerConfigError(f"无效的轮转策略: {rotation}")

        Path(path).parent.mkdir(parents=True, exist_ok=True)

        if rotation == "none":
            handler = logging.FileHandler(path, encoding="utf-8")
        else:
            handler = TimedRotatingFileHandler(
                path,
                when=rotation_map[rotation],
                interval=1,
                backupCount=backup_count,
                encoding="utf-8"
            )

        handler.setLevel(self.LEVEL_MAP[self.level])
        handler.setFormatter(_make_formatter(format))
        self._logger.addHandler(handler)
        return self

    def _log(self, level: int, message: Union[str, Dict[str, Any]]) -> None:
        """
        内部日志方法

        Args:
            level: 日志级别
            message: 日志消息（字符串，或带"message"键的结构化字典）
        """
        if isinstance(message, dict):
            extra = {"extra_data": message}
            self._logger.log(level, message.get("message", ""), extra=extra)
        else:
            self._logger.log(level, message)

    def debug(self, message: Union[str, Dict[str, Any]]) -> None:
        self._log(logging.DEBUG, message)

    def info(self, message: Union[str, Dict[str, Any]]) -> None:
        self._log(logging.INFO, message)

    def warning(self, message: Union[str, Dict[str, Any]]) -> None:
        self._log(logging.WARNING, message)

    def error(self, message: Union[str, Dict[str, Any]]) -> None:
        self._log(logging.ERROR, message)

    def set_level(self, level: str) -> None:
        """
        设置日志级别

        Args:
            level: 日志级别
        """
        level = level.upper()
        if level not in self.LEVEL_MAP:
            raise LoggerConfigError(f"无效的日志级别: {level}")

        self.level = level
        self._logger.setLevel(self.LEVEL_MAP[level])

        for handler in self._logger.handlers:
            handler.setLevel(self.LEVEL_MAP[level])


def configure_logging(
    level: str = "INFO",
    format: str = "text",
    log_file: Optional[str] = None,
    rotation: str = "none",
    stream=None
) -> Logger:
    """
    配置引擎日志（根logger）

    Args:
        level: 日志级别
        format: 格式类型 ("text", "json")
        log_file: 日志文件路径（可选）
        rotation: 文件轮转策略
        stream: 控制台输出流，默认stderr

    Returns:
        Logger: 根日志管理器

    Raises:
        LoggerConfigError: 级别、格式或轮转策略无效
    """
    logger = Logger("", level).add_console_handler(format, stream=stream)
    if log_file:
        logger.add_file_handler(log_file, rotation=rotation, format=format)
    return logger
