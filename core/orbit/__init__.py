"""
轨道计算模块 - 包含轨道传播器和可见性计算

子模块按需导入（数据模型依赖本包的几何工具函数）：
- core.orbit.propagator.kepler_propagator: 开普勒轨道传播
- core.orbit.visibility: 仰角计算、过境搜索、质量分级、结果缓存
"""
