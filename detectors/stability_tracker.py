"""身体稳定度跟踪模块，维护鼻尖水平位置的时间窗口并计算摇摆幅度"""

import logging
import math
from collections import deque
from typing import Deque, Tuple

from models.data_models import StabilityResult
from models.scoring import clamp_score

logger = logging.getLogger(__name__)


class StabilityTracker:
    """
    维护最近 window_ms 毫秒内的 (x, timestamp) 样本，输出实时摇摆稳定度。

    每个录制会话持有独立实例，会话之间必须调用 clear()。
    """

    def __init__(self, window_ms: float = 3000.0, min_samples: int = 10, sway_gain: float = 10.0):
        """初始化窗口长度和预热样本数"""
        self.window_ms = window_ms
        self.min_samples = min_samples
        self.sway_gain = sway_gain
        self._buffer: Deque[Tuple[float, float]] = deque()

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def samples(self) -> Tuple[Tuple[float, float], ...]:
        return tuple(self._buffer)

    def update(self, x: float, timestamp: float) -> StabilityResult:
        """
        加入一个样本并返回当前稳定度。

        公式: sway = (max(x) - min(x)) * 100，stability = 100 - sway * 10

        样本数不足 min_samples 时返回 (100, 0)。时间戳早于最新样本的输入被忽略，
        不写入缓冲区。

        Args:
            x: 鼻尖水平坐标（归一化）
            timestamp: 时间戳（毫秒）

        Returns:
            StabilityResult(stability, sway_amount)
        """
        if not (math.isfinite(x) and math.isfinite(timestamp)):
            logger.debug("忽略无效样本: x=%r, timestamp=%r", x, timestamp)
            return self._compute()

        if self._buffer and timestamp < self._buffer[-1][1]:
            logger.debug("忽略乱序样本: %.1f < %.1f", timestamp, self._buffer[-1][1])
            return self._compute()

        self._buffer.append((x, timestamp))

        cutoff = timestamp - self.window_ms
        while self._buffer and self._buffer[0][1] < cutoff:
            self._buffer.popleft()

        return self._compute()

    def _compute(self) -> StabilityResult:
        if len(self._buffer) < self.min_samples:
            return StabilityResult(stability=100.0, sway_amount=0.0)

        xs = [x for x, _ in self._buffer]
        sway_percent = (max(xs) - min(xs)) * 100.0

        return StabilityResult(
            stability=clamp_score(100.0 - sway_percent * self.sway_gain),
            sway_amount=sway_percent,
        )

    def clear(self):
        """清空窗口缓冲区"""
        self._buffer.clear()
