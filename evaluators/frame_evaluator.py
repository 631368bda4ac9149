"""单帧指标汇总模块"""

import logging
from typing import Optional

from detectors.expression_analyzer import ExpressionAnalyzer
from detectors.eye_contact_analyzer import EyeContactAnalyzer
from detectors.head_pose_analyzer import HeadPoseAnalyzer
from detectors.posture_analyzer import HANDS_VISIBLE, PostureAnalyzer
from detectors.stability_tracker import StabilityTracker
from models.data_models import (
    BodyMetrics,
    FaceLandmarks,
    FaceMetrics,
    FrameMetrics,
    FrameSample,
    PoseLandmarks,
)

logger = logging.getLogger(__name__)


class FrameMetricExtractor:
    """汇总各分析模块的输出，生成单帧指标和会话样本。"""

    def __init__(
        self,
        eye_contact_analyzer: Optional[EyeContactAnalyzer] = None,
        expression_analyzer: Optional[ExpressionAnalyzer] = None,
        head_pose_analyzer: Optional[HeadPoseAnalyzer] = None,
        posture_analyzer: Optional[PostureAnalyzer] = None,
        stability_tracker: Optional[StabilityTracker] = None,
        eye_contact_threshold: float = 70.0,
        head_deviation_threshold: float = 15.0,
    ):
        self.eye_contact_analyzer = eye_contact_analyzer or EyeContactAnalyzer()
        self.expression_analyzer = expression_analyzer or ExpressionAnalyzer()
        self.head_pose_analyzer = head_pose_analyzer or HeadPoseAnalyzer()
        self.posture_analyzer = posture_analyzer or PostureAnalyzer()
        self.stability_tracker = stability_tracker or StabilityTracker()
        self.eye_contact_threshold = eye_contact_threshold
        self.head_deviation_threshold = head_deviation_threshold

    @classmethod
    def from_config(cls, config: dict) -> "FrameMetricExtractor":
        """根据阈值配置创建提取器（配置键见 main._DEFAULTS）"""
        return cls(
            expression_analyzer=ExpressionAnalyzer(smile_threshold=config["smile_threshold"]),
            posture_analyzer=PostureAnalyzer(
                shrug_threshold=config["shrug_threshold"],
                lean_threshold=config["lean_threshold"],
                slouch_threshold=config["slouch_threshold"],
                hand_visibility_threshold=config["hand_visibility_threshold"],
                crossed_arms_distance=config["crossed_arms_distance"],
            ),
            stability_tracker=StabilityTracker(
                window_ms=config["stability_window_ms"],
                min_samples=config["stability_min_samples"],
            ),
            eye_contact_threshold=config["eye_contact_threshold"],
            head_deviation_threshold=config["head_deviation_threshold"],
        )

    def analyze_face(self, face: FaceLandmarks) -> FaceMetrics:
        """计算面部指标。"""
        eye_contact_score = self.eye_contact_analyzer.calculate_eye_contact(face)
        head_deviation = self.head_pose_analyzer.calculate_deviation(face)
        return FaceMetrics(
            eye_contact_score=eye_contact_score,
            is_smiling=self.expression_analyzer.is_smiling(face),
            head_pose_deviation=head_deviation,
            is_looking_at_camera=(
                eye_contact_score > self.eye_contact_threshold
                and head_deviation < self.head_deviation_threshold
            ),
        )

    def analyze_body(self, pose: PoseLandmarks, timestamp: float) -> BodyMetrics:
        """计算身体指标，鼻尖水平位置同时写入稳定度窗口。"""
        posture = self.posture_analyzer.analyze(pose)
        nose_x = pose.nose.x
        stability = self.stability_tracker.update(nose_x, timestamp)
        return BodyMetrics(
            posture_score=posture.posture_score,
            posture_issue=posture.posture_issue,
            hands_status=posture.hands_status,
            body_stability=stability.stability,
            sway_amount=stability.sway_amount,
            nose_x=nose_x,
        )

    def extract(
        self,
        face: Optional[FaceLandmarks],
        pose: Optional[PoseLandmarks],
        timestamp: float,
    ) -> FrameMetrics:
        """
        计算单帧指标。

        两个模态互相独立：某一模态缺失或计算出错时该模态为 None，
        另一模态照常输出。本方法不抛出异常。

        Args:
            face: 人脸关键点（可为 None）
            pose: 人体姿态关键点（可为 None）
            timestamp: 帧时间戳（毫秒）

        Returns:
            FrameMetrics
        """
        face_metrics = None
        if face is not None:
            try:
                face_metrics = self.analyze_face(face)
            except (AttributeError, TypeError, ValueError, ArithmeticError):
                logger.warning("面部指标计算失败 (t=%.0f)", timestamp, exc_info=True)

        body_metrics = None
        if pose is not None:
            try:
                body_metrics = self.analyze_body(pose, timestamp)
            except (AttributeError, TypeError, ValueError, ArithmeticError):
                logger.warning("身体指标计算失败 (t=%.0f)", timestamp, exc_info=True)

        return FrameMetrics(timestamp=timestamp, face=face_metrics, body=body_metrics)

    @staticmethod
    def to_sample(metrics: FrameMetrics) -> Optional[FrameSample]:
        """
        将单帧指标转换为会话样本。

        未检测到人脸时返回 None；身体字段在有姿态数据时填充，
        抱臂不计为双手可见。
        """
        if metrics.face is None:
            return None

        body = metrics.body
        return FrameSample(
            timestamp=metrics.timestamp,
            eye_contact=metrics.face.is_looking_at_camera,
            smiling=metrics.face.is_smiling,
            head_deviation=metrics.face.head_pose_deviation,
            posture_score=body.posture_score if body else None,
            hands_visible=(body.hands_status == HANDS_VISIBLE) if body else None,
            body_stability=body.body_stability if body else None,
            nose_x=body.nose_x if body else None,
        )

    def reset(self):
        """清空稳定度窗口"""
        self.stability_tracker.clear()
