"""评分辅助函数：截断、四舍五入、统计量"""

import math
from typing import Sequence


def clamp_score(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """
    将分数截断到 [low, high]。

    NaN 视为最低分，保证输出永远落在区间内。
    """
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """四舍五入（0.5 向上取整），与前端 Math.round 一致"""
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def compute_stats(values: Sequence[float]) -> dict:
    """
    计算一组数值的统计信息（总体方差）。

    Args:
        values: 非空浮点数序列

    Returns:
        {"mean": float, "variance": float, "std": float, "min": float, "max": float}
    """
    n = len(values)
    mean = sum(values) / n
    # 乘法溢出得到 inf，float ** 会抛 OverflowError
    variance = sum((x - mean) * (x - mean) for x in values) / n
    return {
        "mean": mean,
        "variance": variance,
        "std": math.sqrt(variance),
        "min": min(values),
        "max": max(values),
    }
