"""练习会话模块：持有帧样本缓冲区和稳定度窗口，会话结束时生成报告"""

import logging
from typing import Callable, List, Optional

from evaluators.feedback import build_glows_and_grows, build_timeline_events
from evaluators.frame_evaluator import FrameMetricExtractor
from evaluators.session_aggregator import aggregate_session
from evaluators.sway_analyzer import build_sway_timeline, find_sway_spikes, sway_grade
from models.data_models import (
    FaceLandmarks,
    FrameMetrics,
    FrameSample,
    HudState,
    PoseLandmarks,
    SessionReport,
)

logger = logging.getLogger(__name__)


class PracticeSession:
    """
    一次录制练习。

    每个会话拥有独立的 FrameMetricExtractor（及其稳定度窗口），
    start() 会清空上一次录制的全部状态。
    """

    def __init__(
        self,
        extractor_factory: Callable[[], FrameMetricExtractor] = FrameMetricExtractor,
        hud_interval_ms: float = 300.0,
    ):
        self._extractor_factory = extractor_factory
        self.hud_interval_ms = hud_interval_ms
        self.extractor = extractor_factory()
        self._samples: List[FrameSample] = []
        self._start_ms: Optional[float] = None
        self._last_hud_ms: Optional[float] = None
        self._last_metrics: Optional[FrameMetrics] = None
        self.hud = HudState()
        self.report = None

    @property
    def is_recording(self) -> bool:
        return self._start_ms is not None

    @property
    def samples(self) -> List[FrameSample]:
        """当前缓冲区的副本"""
        return list(self._samples)

    @property
    def last_metrics(self) -> Optional[FrameMetrics]:
        return self._last_metrics

    def start(self, now_ms: float) -> None:
        """开始新的录制，重建提取器并清空缓冲区"""
        self.extractor = self._extractor_factory()
        self._samples = []
        self._start_ms = now_ms
        self._last_hud_ms = None
        self._last_metrics = None
        self.hud = HudState()
        self.report = None
        logger.info("练习会话开始")

    def process(
        self,
        face: Optional[FaceLandmarks],
        pose: Optional[PoseLandmarks],
        now_ms: float,
    ) -> FrameMetrics:
        """
        处理一帧关键点。

        Args:
            face: 人脸关键点（可为 None）
            pose: 人体姿态关键点（可为 None）
            now_ms: 当前时间（毫秒，与 start() 使用同一时钟）

        Returns:
            FrameMetrics（时间戳为相对会话开始的毫秒数）
        """
        if self._start_ms is None:
            self.start(now_ms)

        timestamp = now_ms - self._start_ms
        metrics = self.extractor.extract(face, pose, timestamp)
        self._last_metrics = metrics

        sample = self.extractor.to_sample(metrics)
        if sample is not None:
            if self._samples and sample.timestamp < self._samples[-1].timestamp:
                logger.warning("丢弃乱序样本: %.0f < %.0f", sample.timestamp, self._samples[-1].timestamp)
            else:
                self._samples.append(sample)

        if self._last_hud_ms is None or timestamp - self._last_hud_ms > self.hud_interval_ms:
            self._last_hud_ms = timestamp
            self.hud = self._build_hud(metrics)

        return metrics

    @staticmethod
    def _build_hud(metrics: FrameMetrics) -> HudState:
        default = HudState()
        face = metrics.face
        body = metrics.body
        return HudState(
            eye_contact=face.is_looking_at_camera if face else default.eye_contact,
            eye_score=face.eye_contact_score if face else default.eye_score,
            smiling=face.is_smiling if face else default.smiling,
            posture_score=body.posture_score if body else default.posture_score,
            posture_issue=body.posture_issue if body else default.posture_issue,
            hands_status=body.hands_status if body else default.hands_status,
            body_stability=body.body_stability if body else default.body_stability,
        )

    def stop(self) -> SessionReport:
        """结束录制并生成报告，缓冲区可为空或仅有少量样本"""
        samples = list(self._samples)
        self.report = build_report(samples)
        self._start_ms = None
        self.extractor.reset()
        logger.info(
            "练习会话结束: %d 帧, 眼神交流 %d%%",
            self.report.frame_count,
            self.report.summary.average_eye_contact,
        )
        return self.report


def build_report(samples: List[FrameSample]) -> SessionReport:
    """由帧样本生成完整会话报告"""
    summary = aggregate_session(samples)
    timeline = build_sway_timeline(samples)
    duration = samples[-1].timestamp / 1000.0 if samples else 0.0

    return SessionReport(
        summary=summary,
        frame_count=len(samples),
        duration_seconds=round(duration, 2),
        sway_timeline=timeline,
        sway_spikes=find_sway_spikes(timeline),
        sway_grade=sway_grade(timeline),
        timeline_events=build_timeline_events(samples),
        feedback=build_glows_and_grows(summary),
    )
