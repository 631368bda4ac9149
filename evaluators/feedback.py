"""反馈生成模块：回放时间轴事件、亮点/改进点、HUD 提示文字"""

from typing import List, Sequence

from detectors.posture_analyzer import (
    HANDS_CROSSED,
    HANDS_VISIBLE,
    ISSUE_GOOD,
    ISSUE_LEANING,
    ISSUE_SHRUGGED,
    ISSUE_SLOUCHING,
)
from models.data_models import FeedbackItem, FrameSample, HudState, SessionSummary, TimelineEvent

EVENT_EYE_CONTACT = "eye_contact"
EVENT_POSTURE = "posture"
EVENT_SWAY = "sway"

POOR_POSTURE_THRESHOLD = 70
SWAY_EVENT_THRESHOLD = 60
HUD_SWAY_WARNING_THRESHOLD = 70

GOOD_EYE_CONTACT = 70
GOOD_POSTURE = 80
GOOD_HANDS_VISIBLE = 70

# HUD 文字映射
_POSTURE_LABELS = {
    ISSUE_GOOD: "Good Posture",
    ISSUE_SHRUGGED: "Relax Shoulders",
    ISSUE_SLOUCHING: "Stand Straight",
    ISSUE_LEANING: "Stop Leaning",
}

_HANDS_LABELS = {
    HANDS_VISIBLE: "Hands Visible",
    HANDS_CROSSED: "Arms Crossed",
}


def build_timeline_events(samples: Sequence[FrameSample], stride: int = 100) -> List[TimelineEvent]:
    """
    每隔 stride 个样本检查一次，生成回放时间轴事件（按时间排序）。

    事件类型: eye_contact（视线离开）、posture（姿势分 < 70）、sway（稳定度 < 60）
    """
    if stride < 1:
        raise ValueError(f"stride 必须为正整数: {stride}")

    events: List[TimelineEvent] = []
    for sample in samples[::stride]:
        time_sec = int(sample.timestamp // 1000)

        if not sample.eye_contact:
            events.append(TimelineEvent(time=time_sec, type=EVENT_EYE_CONTACT, msg="Looking away"))
        if sample.posture_score is not None and sample.posture_score < POOR_POSTURE_THRESHOLD:
            events.append(TimelineEvent(time=time_sec, type=EVENT_POSTURE, msg="Poor posture detected"))
        if sample.body_stability is not None and sample.body_stability < SWAY_EVENT_THRESHOLD:
            events.append(TimelineEvent(time=time_sec, type=EVENT_SWAY, msg="Swaying detected"))

    return sorted(events, key=lambda e: e.time)


def performance_at(events: Sequence[TimelineEvent], time_sec: float) -> str:
    """时间点附近 3 秒内无事件为 good，一个为 warning，多个为 bad"""
    nearby = sum(1 for e in events if abs(e.time - time_sec) < 3)
    if nearby == 0:
        return "good"
    if nearby == 1:
        return "warning"
    return "bad"


def build_glows_and_grows(summary: SessionSummary) -> List[FeedbackItem]:
    """根据汇总指标生成亮点和改进建议，指标为 0 时视为无数据"""
    items: List[FeedbackItem] = []

    if summary.average_eye_contact >= GOOD_EYE_CONTACT:
        items.append(FeedbackItem(
            type="glow", text=f"Excellent eye contact at {summary.average_eye_contact}%",
        ))
    if summary.average_posture >= GOOD_POSTURE:
        items.append(FeedbackItem(type="glow", text="Strong posture maintained throughout the pitch"))
    if summary.hands_visible_percent >= GOOD_HANDS_VISIBLE:
        items.append(FeedbackItem(
            type="glow",
            text=f"Hands visible {summary.hands_visible_percent}% of the time - open body language",
        ))

    if 0 < summary.average_eye_contact < GOOD_EYE_CONTACT:
        items.append(FeedbackItem(type="grow", text="Look at the camera more often", timestamp=15))

    return items


def posture_label(issue: str) -> str:
    return _POSTURE_LABELS.get(issue, "Stop Leaning")


def hands_label(status: str) -> str:
    return _HANDS_LABELS.get(status, "Show Hands")


def hud_messages(hud: HudState) -> List[str]:
    """HUD 提示文字列表"""
    messages = [
        "Eye Contact" if hud.eye_contact else "Look at Camera",
        posture_label(hud.posture_issue),
        hands_label(hud.hands_status),
    ]
    if hud.body_stability < HUD_SWAY_WARNING_THRESHOLD:
        messages.append("Stop Swaying!")
    return messages
