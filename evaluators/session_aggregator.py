"""会话汇总模块，将整段录制的帧样本归约为汇总指标"""

import math
from typing import List, Sequence

from models.data_models import FrameSample, SessionSummary
from models.scoring import clamp_score, compute_stats, round_half_up

# 姿势等级下限（含）
GRADE_A_MIN = 80
GRADE_B_MIN = 60


def posture_grade(average_posture: float) -> str:
    """A: >= 80，B: >= 60，其余 C"""
    if average_posture >= GRADE_A_MIN:
        return "A"
    if average_posture >= GRADE_B_MIN:
        return "B"
    return "C"


def _percent(count: int, total: int) -> int:
    if total == 0:
        return 0
    return round_half_up(clamp_score(count / total * 100.0))


def _mean_score(values: List[float]) -> int:
    if not values:
        return 0
    return round_half_up(clamp_score(sum(values) / len(values)))


def head_stability(deviations: Sequence[float]) -> int:
    """
    会话头部稳定度（整段批量计算，区别于实时摇摆稳定度）。

    公式: 100 - sqrt(总体方差) * 5，截断到 [0,100]
    """
    finite = [d for d in deviations if math.isfinite(d)]
    if not finite:
        return 0
    stats = compute_stats(finite)
    return round_half_up(clamp_score(100.0 - stats["std"] * 5.0))


def aggregate_session(samples: Sequence[FrameSample]) -> SessionSummary:
    """
    汇总会话样本。

    空序列返回全 0 和等级 C；不修改输入，重复调用结果一致。

    Args:
        samples: 按时间顺序的帧样本

    Returns:
        SessionSummary
    """
    n = len(samples)
    if n == 0:
        return SessionSummary(
            average_eye_contact=0,
            smile_percentage=0,
            session_head_stability=0,
            average_posture=0,
            hands_visible_percent=0,
            average_body_stability=0,
            posture_grade="C",
        )

    eye_contact_frames = sum(1 for s in samples if s.eye_contact)
    smiling_frames = sum(1 for s in samples if s.smiling)

    posture_scores = [s.posture_score for s in samples if s.posture_score is not None]
    hands_flags = [s.hands_visible for s in samples if s.hands_visible is not None]
    stabilities = [s.body_stability for s in samples if s.body_stability is not None]

    average_posture = _mean_score(posture_scores)

    return SessionSummary(
        average_eye_contact=_percent(eye_contact_frames, n),
        smile_percentage=_percent(smiling_frames, n),
        session_head_stability=head_stability([s.head_deviation for s in samples]),
        average_posture=average_posture,
        hands_visible_percent=_percent(sum(1 for h in hands_flags if h), len(hands_flags)),
        average_body_stability=_mean_score(stabilities),
        posture_grade=posture_grade(average_posture),
    )
