"""摇摆曲线分析：由会话样本生成摇摆时间线、检测突变并给出稳定等级"""

from typing import List, Sequence

from models.data_models import FrameSample, SwayGrade, SwayPoint

SPIKE_SWAY_THRESHOLD = 30.0
SPIKE_CHANGE_THRESHOLD = 20.0

_GRADES = (
    (10.0, "A", "Very Stable"),
    (20.0, "B", "Mostly Stable"),
)


def build_sway_timeline(samples: Sequence[FrameSample]) -> List[SwayPoint]:
    """
    生成摇摆时间线。

    sway 为鼻尖水平位置相对会话平均位置的有符号偏移（画面宽度百分比），
    time 为距会话开始的秒数。没有 nose_x 的样本被跳过。
    """
    tracked = [s for s in samples if s.nose_x is not None]
    if not tracked:
        return []

    center = sum(s.nose_x for s in tracked) / len(tracked)
    return [
        SwayPoint(
            time=round(s.timestamp / 1000.0, 2),
            sway=round((s.nose_x - center) * 100.0, 2),
        )
        for s in tracked
    ]


def find_sway_spikes(
    points: Sequence[SwayPoint],
    sway_threshold: float = SPIKE_SWAY_THRESHOLD,
    change_threshold: float = SPIKE_CHANGE_THRESHOLD,
) -> List[float]:
    """返回摇摆突变点的时间：|sway| 超过 30 或相邻点变化超过 20（首点不计）"""
    if len(points) < 2:
        return []

    spikes = []
    for prev, point in zip(points, points[1:]):
        change = abs(point.sway - prev.sway)
        if change > change_threshold or abs(point.sway) > sway_threshold:
            spikes.append(point.time)
    return spikes


def sway_grade(points: Sequence[SwayPoint]) -> SwayGrade:
    """按平均 |sway| 分级：< 10 为 A，< 20 为 B，其余 C"""
    if not points:
        return SwayGrade(grade="A", label="Very Stable", average_sway=0.0)

    average = sum(abs(p.sway) for p in points) / len(points)
    for upper, grade, label in _GRADES:
        if average < upper:
            return SwayGrade(grade=grade, label=label, average_sway=round(average, 2))
    return SwayGrade(grade="C", label="Too Much Movement", average_sway=round(average, 2))
