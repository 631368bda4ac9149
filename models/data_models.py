"""核心数据模型定义"""

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class LandmarkPoint:
    """归一化关键点，x/y 相对画面取值 [0,1]，z 为深度，visibility 为置信度"""
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None


@dataclass(frozen=True)
class FaceLandmarks:
    """人脸关键点（按语义角色命名），由原始 478/468 点数组构建"""
    nose_tip: LandmarkPoint
    nose_bridge: LandmarkPoint
    forehead: LandmarkPoint
    chin: LandmarkPoint
    left_cheek: LandmarkPoint
    right_cheek: LandmarkPoint
    left_eye_inner: LandmarkPoint
    left_eye_outer: LandmarkPoint
    right_eye_inner: LandmarkPoint
    right_eye_outer: LandmarkPoint
    left_iris: Optional[LandmarkPoint]
    right_iris: Optional[LandmarkPoint]
    points: Tuple[LandmarkPoint, ...]
    blendshapes: Dict[str, float] = field(default_factory=dict)

    @property
    def has_iris(self) -> bool:
        return self.left_iris is not None and self.right_iris is not None


@dataclass(frozen=True)
class PoseLandmarks:
    """人体姿态关键点（33 点，按语义角色命名）"""
    nose: LandmarkPoint
    left_ear: LandmarkPoint
    right_ear: LandmarkPoint
    left_shoulder: LandmarkPoint
    right_shoulder: LandmarkPoint
    left_elbow: LandmarkPoint
    right_elbow: LandmarkPoint
    left_wrist: LandmarkPoint
    right_wrist: LandmarkPoint
    left_hip: LandmarkPoint
    right_hip: LandmarkPoint
    points: Tuple[LandmarkPoint, ...]


@dataclass(frozen=True)
class DetectionResult:
    """单帧检测结果，未检测到的模态为 None"""
    face: Optional[FaceLandmarks]
    pose: Optional[PoseLandmarks]
    timestamp: float


@dataclass(frozen=True)
class FaceMetrics:
    """面部瞬时指标"""
    eye_contact_score: float
    is_smiling: bool
    head_pose_deviation: float
    is_looking_at_camera: bool


@dataclass(frozen=True)
class PostureResult:
    """姿势分析结果"""
    posture_score: float
    posture_issue: str
    left_hand_visible: bool
    right_hand_visible: bool
    hands_status: str


@dataclass(frozen=True)
class StabilityResult:
    """滑动窗口稳定度（实时摇摆稳定度）"""
    stability: float
    sway_amount: float


@dataclass(frozen=True)
class BodyMetrics:
    """身体瞬时指标"""
    posture_score: float
    posture_issue: str
    hands_status: str
    body_stability: float
    sway_amount: float
    nose_x: float


@dataclass(frozen=True)
class FrameMetrics:
    """单帧指标，face/body 任一模态可缺失"""
    timestamp: float
    face: Optional[FaceMetrics]
    body: Optional[BodyMetrics]


@dataclass(frozen=True)
class FrameSample:
    """会话缓冲区中的单帧记录"""
    timestamp: float
    eye_contact: bool
    smiling: bool
    head_deviation: float
    posture_score: Optional[float] = None
    hands_visible: Optional[bool] = None
    body_stability: Optional[float] = None
    nose_x: Optional[float] = None


@dataclass(frozen=True)
class SessionSummary:
    """会话汇总指标"""
    average_eye_contact: int
    smile_percentage: int
    session_head_stability: int
    average_posture: int
    hands_visible_percent: int
    average_body_stability: int
    posture_grade: str

    def to_dict(self) -> dict:
        """导出为前端/存储层使用的字段名"""
        return {
            "averageEyeContact": self.average_eye_contact,
            "smilePercentage": self.smile_percentage,
            "stabilityScore": self.session_head_stability,
            "averagePosture": self.average_posture,
            "handsVisiblePercent": self.hands_visible_percent,
            "averageBodyStability": self.average_body_stability,
            "postureGrade": self.posture_grade,
        }


@dataclass(frozen=True)
class SwayPoint:
    """摇摆曲线上的一个点，time 单位秒，sway 为画面宽度百分比（有符号）"""
    time: float
    sway: float


@dataclass(frozen=True)
class SwayGrade:
    grade: str
    label: str
    average_sway: float


@dataclass(frozen=True)
class TimelineEvent:
    """回放时间轴事件"""
    time: int
    type: str
    msg: str


@dataclass(frozen=True)
class FeedbackItem:
    """亮点 (glow) / 改进点 (grow)"""
    type: str
    text: str
    timestamp: Optional[int] = None


@dataclass(frozen=True)
class HudState:
    """实时 HUD 状态"""
    eye_contact: bool = False
    eye_score: float = 0.0
    smiling: bool = False
    posture_score: float = 100.0
    posture_issue: str = "good"
    hands_status: str = "hidden"
    body_stability: float = 100.0


@dataclass
class SessionReport:
    """会话结束后的完整报告"""
    summary: SessionSummary
    frame_count: int
    duration_seconds: float
    sway_timeline: List[SwayPoint]
    sway_spikes: List[float]
    sway_grade: SwayGrade
    timeline_events: List[TimelineEvent]
    feedback: List[FeedbackItem]

    def to_dict(self) -> dict:
        return {
            "summary": self.summary.to_dict(),
            "frameCount": self.frame_count,
            "durationSeconds": self.duration_seconds,
            "swayData": [asdict(p) for p in self.sway_timeline],
            "swaySpikes": list(self.sway_spikes),
            "swayGrade": asdict(self.sway_grade),
            "timelineEvents": [asdict(e) for e in self.timeline_events],
            "feedback": [asdict(f) for f in self.feedback],
        }
