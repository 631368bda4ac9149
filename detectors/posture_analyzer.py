"""姿势分析模块，判断耸肩/驼背/侧倾，并检测双手可见性与抱臂"""

import math

from models.data_models import LandmarkPoint, PoseLandmarks, PostureResult
from models.scoring import clamp_score

# 姿势问题标签
ISSUE_GOOD = "good"
ISSUE_SHRUGGED = "shoulders_shrugged"
ISSUE_SLOUCHING = "slouching"
ISSUE_LEANING = "leaning"

# 双手状态标签
HANDS_VISIBLE = "visible"
HANDS_HIDDEN = "hidden"
HANDS_CROSSED = "crossed"


class PostureAnalyzer:
    """根据肩、耳、鼻、腕关键点计算姿势分数和双手状态"""

    def __init__(
        self,
        shrug_threshold: float = 0.08,
        lean_threshold: float = 0.05,
        slouch_threshold: float = 0.1,
        hand_visibility_threshold: float = 0.5,
        crossed_arms_distance: float = 0.15,
        shrug_penalty: float = 30.0,
        lean_penalty: float = 20.0,
        slouch_penalty: float = 25.0,
    ):
        """初始化阈值和扣分值"""
        self.shrug_threshold = shrug_threshold
        self.lean_threshold = lean_threshold
        self.slouch_threshold = slouch_threshold
        self.hand_visibility_threshold = hand_visibility_threshold
        self.crossed_arms_distance = crossed_arms_distance
        self.shrug_penalty = shrug_penalty
        self.lean_penalty = lean_penalty
        self.slouch_penalty = slouch_penalty

    def analyze(self, pose: PoseLandmarks) -> PostureResult:
        """
        分析单帧姿势。

        扣分规则（可叠加，最后截断到 [0,100]）:
            - 耸肩: 肩部平均 y 与耳部平均 y 的距离 < 0.08，扣 30
            - 侧倾: 左右肩 y 差 > 0.05，扣 20，仅在尚无问题时标记
            - 驼背: 肩部平均 z 比鼻尖 z 靠后超过 0.1，扣 25，覆盖侧倾标记

        Args:
            pose: 人体姿态关键点

        Returns:
            PostureResult(posture_score, posture_issue, left_hand_visible,
                          right_hand_visible, hands_status)
        """
        score = 100.0
        issue = ISSUE_GOOD

        shoulder_y = (pose.left_shoulder.y + pose.right_shoulder.y) / 2.0
        ear_y = (pose.left_ear.y + pose.right_ear.y) / 2.0
        if shoulder_y - ear_y < self.shrug_threshold:
            score -= self.shrug_penalty
            issue = ISSUE_SHRUGGED

        if abs(pose.left_shoulder.y - pose.right_shoulder.y) > self.lean_threshold:
            score -= self.lean_penalty
            if issue == ISSUE_GOOD:
                issue = ISSUE_LEANING

        shoulder_z = (pose.left_shoulder.z + pose.right_shoulder.z) / 2.0
        if shoulder_z - pose.nose.z > self.slouch_threshold:
            score -= self.slouch_penalty
            issue = ISSUE_SLOUCHING

        left_visible = self.is_hand_visible(pose.left_wrist)
        right_visible = self.is_hand_visible(pose.right_wrist)

        return PostureResult(
            posture_score=clamp_score(score),
            posture_issue=issue,
            left_hand_visible=left_visible,
            right_hand_visible=right_visible,
            hands_status=self._hands_status(pose, left_visible, right_visible),
        )

    def is_hand_visible(self, wrist: LandmarkPoint) -> bool:
        """有置信度时按置信度判断，否则看坐标是否在画面内"""
        if wrist.visibility is not None:
            return wrist.visibility > self.hand_visibility_threshold
        return 0.0 <= wrist.x <= 1.0 and 0.0 <= wrist.y <= 1.0

    def _hands_status(self, pose: PoseLandmarks, left_visible: bool, right_visible: bool) -> str:
        if left_visible and right_visible:
            wrist_distance = math.hypot(
                pose.left_wrist.x - pose.right_wrist.x,
                pose.left_wrist.y - pose.right_wrist.y,
            )
            if wrist_distance < self.crossed_arms_distance:
                return HANDS_CROSSED
        if left_visible or right_visible:
            return HANDS_VISIBLE
        return HANDS_HIDDEN
