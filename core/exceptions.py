"""
异常定义

轨道传播与过境预测引擎的错误分类：
- ValidationError: 轨道根数或观测者坐标非法（加载/构造时立即抛出，传播期间不会出现）
- NumericConvergenceError: 开普勒方程迭代在限定次数内未收敛
- SearchCancelledError: 过境搜索被调用方协作式取消
- CatalogError: 卫星目录中不存在指定卫星

注意：过境搜索结果为空不是错误，返回空列表即可。
"""

from typing import Optional


class SatPassError(Exception):
    """引擎异常基类"""
    pass


class ValidationError(SatPassError, ValueError):
    """
    输入校验错误

    Attributes:
        field: 出错字段名（用于表现层逐字段提示）
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def __str__(self) -> str:
        message = super().__str__()
        if self.field:
            return f"{self.field}: {message}"
        return message


class NumericConvergenceError(SatPassError, ArithmeticError):
    """
    数值迭代不收敛

    Attributes:
        iterations: 已执行的迭代次数
        residual: 最后一次迭代的残差（弧度）
    """

    def __init__(self, message: str, iterations: int = 0, residual: float = float('nan')):
        super().__init__(message)
        self.iterations = iterations
        self.residual = residual


class SearchCancelledError(SatPassError):
    """过境搜索被取消"""

    def __init__(self, message: str = "pass search cancelled", samples_evaluated: int = 0):
        super().__init__(message)
        self.samples_evaluated = samples_evaluated


class CatalogError(SatPassError, KeyError):
    """卫星目录查询错误"""

    def __str__(self) -> str:
        # KeyError默认会给消息加引号
        return str(self.args[0]) if self.args else ""
