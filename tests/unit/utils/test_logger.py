"""
Logger模块的单元测试

测试处理器配置、级别过滤、JSON结构化日志和引擎级日志配置
"""

import io
import json
import logging
import os
import tempfile
from unittest import TestCase

import pytest


class TestLogger(TestCase):
    """Logger测试类"""

    def setUp(self):
        """测试前准备"""
        self.temp_dir = tempfile.mkdtemp()
        self._loggers = []

    def tearDown(self):
        """测试后清理"""
        import shutil
        for logger in self._loggers:
            for handler in logger.handlers:
                logger._logger.removeHandler(handler)
                handler.close()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _make(self, name: str = "satpass.test", level: str = "INFO"):
        from utils.logger import Logger

        logger = Logger(name, level=level)
        self._loggers.append(logger)
        return logger

    def _get_temp_log_path(self) -> str:
        """获取临时日志文件路径"""
        return os.path.join(self.temp_dir, "satpass.log")

    def _read(self, path: str) -> str:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    # ==================== 基础功能测试 ====================

    def test_logger_init(self):
        """测试Logger初始化"""
        logger = self._make()
        self.assertEqual(logger.name, "satpass.test")
        self.assertEqual(logger.level, "INFO")
        self.assertFalse(logger._logger.propagate)

    def test_logger_level_case_insensitive(self):
        """测试日志级别不区分大小写"""
        logger = self._make(level="debug")
        self.assertEqual(logger.level, "DEBUG")

    def test_console_handler_defaults_to_stderr(self):
        """测试控制台处理器默认输出到stderr"""
        import sys

        logger = self._make()
        logger.add_console_handler()
        stream_handlers = [h for h in logger.handlers if isinstance(h, logging.StreamHandler)]
        self.assertEqual(len(stream_handlers), 1)
        self.assertIs(stream_handlers[0].stream, sys.stderr)

    def test_console_handler_custom_stream(self):
        """测试控制台处理器输出到指定流"""
        stream = io.StringIO()
        logger = self._make()
        logger.add_console_handler(stream=stream)
        logger.info("Pass scan SMAP: 1441 samples")
        self.assertIn("Pass scan SMAP", stream.getvalue())

    def test_add_file_handler(self):
        """测试添加文件处理器并创建目录"""
        log_path = os.path.join(self.temp_dir, "logs", "engine.log")
        logger = self._make()
        logger.add_file_handler(log_path)

        self.assertTrue(any(isinstance(h, logging.FileHandler) for h in logger.handlers))
        self.assertTrue(os.path.exists(log_path))

    def test_reconfigure_replaces_handlers(self):
        """测试重复配置同名logger时不重复输出"""
        stream = io.StringIO()
        self._make().add_console_handler(stream=stream)
        logger = self._make()
        logger.add_console_handler(stream=stream)
        logger.info("once")
        self.assertEqual(stream.getvalue().count("once"), 1)

    # ==================== 日志级别测试 ====================

    def test_log_levels_written(self):
        """测试各级别日志写入"""
        log_path = self._get_temp_log_path()
        logger = self._make(level="DEBUG")
        logger.add_file_handler(log_path)

        logger.debug("kepler iteration")
        logger.info("catalog loaded")
        logger.warning("unknown config key")
        logger.error("search failed")

        content = self._read(log_path)
        for word in ("DEBUG", "INFO", "WARNING", "ERROR"):
            self.assertIn(word, content)
        self.assertIn("catalog loaded", content)

    def test_log_level_filtering(self):
        """测试日志级别过滤"""
        log_path = self._get_temp_log_path()
        logger = self._make(level="WARNING")
        logger.add_file_handler(log_path)

        logger.debug("debug")
        logger.info("info")
        logger.warning("warning")
        logger.error("error")

        content = self._read(log_path)
        self.assertNotIn("debug", content)
        self.assertNotIn("info", content)
        self.assertIn("warning", content)
        self.assertIn("error", content)

    def test_set_level(self):
        """测试修改级别同时作用于处理器"""
        log_path = self._get_temp_log_path()
        logger = self._make(level="WARNING")
        logger.add_file_handler(log_path)
        logger.set_level("debug")
        logger.debug("now visible")
        self.assertIn("now visible", self._read(log_path))

    def test_invalid_log_level(self):
        """测试无效日志级别"""
        from utils.logger import LoggerConfigError

        with self.assertRaises(LoggerConfigError):
            self._make(level="LOUD")
        logger = self._make()
        with self.assertRaises(LoggerConfigError):
            logger.set_level("LOUD")

    # ==================== 结构化日志测试 ====================

    def test_log_structured_data(self):
        """测试结构化日志数据"""
        log_path = self._get_temp_log_path()
        logger = self._make()
        logger.add_file_handler(log_path, format="json")

        logger.info({"message": "Pass alert", "satellite_id": "SMAP", "minutes_until": 11})

        entry = json.loads(self._read(log_path).strip())
        self.assertEqual(entry["message"], "Pass alert")
        self.assertEqual(entry["satellite_id"], "SMAP")
        self.assertEqual(entry["minutes_until"], 11)
        self.assertEqual(entry["level"], "INFO")
        self.assertEqual(entry["logger"], "satpass.test")
        self.assertTrue(entry["timestamp"].endswith("+00:00"))

    def test_json_includes_exception(self):
        """测试JSON日志包含异常信息"""
        from utils.logger import JsonFormatter

        try:
            raise ArithmeticError("did not converge")
        except ArithmeticError:
            import sys
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
        entry = json.loads(JsonFormatter().format(record))
        self.assertIn("did not converge", entry["exception"])

    def test_log_unicode_message(self):
        """测试Unicode消息日志"""
        log_path = self._get_temp_log_path()
        logger = self._make()
        logger.add_file_handler(log_path)

        logger.info("凤凰城农场 过境 85°")

        self.assertIn("凤凰城农场", self._read(log_path))

    # ==================== 配置错误测试 ====================

    def test_invalid_format(self):
        """测试无效格式"""
        from utils.logger import LoggerConfigError

        with self.assertRaises(LoggerConfigError):
            self._make().add_console_handler(format="xml")

    def test_invalid_rotation(self):
        """测试无效轮转策略"""
        from utils.logger import LoggerConfigError

        with self.assertRaises(LoggerConfigError):
            self._make().add_file_handler(self._get_temp_log_path(), rotation="weekly")

    def test_file_handler_rotation_daily(self):
        """测试按日轮转"""
        from logging.handlers import TimedRotatingFileHandler

        log_path = self._get_temp_log_path()
        logger = self._make()
        logger.add_file_handler(log_path, rotation="daily")
        logger.info("test message")

        self.assertTrue(any(isinstance(h, TimedRotatingFileHandler) for h in logger.handlers))
        self.assertTrue(os.path.exists(log_path))


class TestConfigureLogging(TestCase):
    """引擎日志配置测试"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        root = logging.getLogger()
        self._saved = (root.level, list(root.handlers))

    def tearDown(self):
        import shutil
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            if handler not in self._saved[1]:
                handler.close()
        root.setLevel(self._saved[0])
        for handler in self._saved[1]:
            root.addHandler(handler)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_module_loggers_propagate_to_root(self):
        """测试各模块logger输出到统一配置的处理器"""
        from utils.logger import configure_logging

        stream = io.StringIO()
        log_path = os.path.join(self.temp_dir, "engine.jsonl")
        configure_logging("DEBUG", format="json", log_file=log_path, stream=stream)

        logging.getLogger("core.orbit.visibility.pass_finder").debug("Pass scan SMAP: 10 samples")

        console_entry = json.loads(stream.getvalue().strip())
        self.assertEqual(console_entry["logger"], "core.orbit.visibility.pass_finder")
        with open(log_path, encoding="utf-8") as f:
            self.assertIn("Pass scan SMAP", f.read())

    def test_level_applies(self):
        """测试级别过滤"""
        from utils.logger import configure_logging

        stream = io.StringIO()
        configure_logging("WARNING", stream=stream)
        logging.getLogger("core.tracking").info("hidden")
        logging.getLogger("core.tracking").warning("shown")
        self.assertNotIn("hidden", stream.getvalue())
        self.assertIn("shown", stream.getvalue())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
