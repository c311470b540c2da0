"""
Pytest 配置文件

定义自定义命令行选项和共享 fixtures
"""

import os
from datetime import datetime, timezone

import pytest


def pytest_addoption(parser):
    """添加自定义命令行选项"""
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="启用多日长时段过境扫描测试"
    )


def pytest_configure(config):
    """注册自定义标记"""
    config.addinivalue_line("markers", "slow: 多日长时段过境扫描测试，使用 --slow 选项启用")


def pytest_collection_modifyitems(config, items):
    """未指定 --slow 时跳过长时段测试"""
    if config.getoption("--slow"):
        return
    skip_slow = pytest.mark.skip(reason="长时段扫描测试，使用 --slow 选项启用")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


EPOCH = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def epoch():
    """测试参考历元"""
    return EPOCH


@pytest.fixture
def smap_elements(epoch):
    """SMAP卫星轨道根数"""
    from core.models.orbital_elements import OrbitalElements

    return OrbitalElements(
        satellite_id="SMAP",
        name="SMAP (Soil Moisture)",
        altitude_km=685.0,
        inclination_deg=98.1,
        period_minutes=98.5,
        raan_deg=62.5,
        epoch=epoch,
    )


@pytest.fixture
def phoenix():
    """凤凰城观测点"""
    from core.models.observer import DEFAULT_OBSERVER

    return DEFAULT_OBSERVER


@pytest.fixture
def default_catalog():
    """内置星座目录"""
    from core.models.catalog import SatelliteCatalog

    return SatelliteCatalog.default()


@pytest.fixture
def clean_env(monkeypatch):
    """清除SATPASS_前缀的环境变量"""
    for key in list(os.environ):
        if key.upper().startswith("SATPASS_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
