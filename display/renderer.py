"""界面渲染模块 - 在视频帧上绘制面部网格、人体骨架和实时 HUD。"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from evaluators.feedback import HUD_SWAY_WARNING_THRESHOLD, hands_label, posture_label
from evaluators.frame_evaluator import FrameMetricExtractor
from models.data_models import (
    DetectionResult,
    FaceLandmarks,
    FrameMetrics,
    HudState,
    LandmarkPoint,
    PoseLandmarks,
)

logger = logging.getLogger(__name__)

# 面部轮廓索引（闭合环）
FACE_OVAL = (
    10, 338, 297, 332, 284, 251, 389, 356, 454, 323, 361, 288, 397, 365, 379, 378,
    400, 377, 152, 148, 176, 149, 150, 136, 172, 58, 132, 93, 234, 127, 162, 21,
    54, 103, 67, 109,
)
EYE_CONTOURS = (
    (33, 7, 163, 144, 145, 153, 154, 155, 133, 173, 157, 158, 159, 160, 161, 246),
    (263, 249, 390, 373, 374, 380, 381, 382, 362, 398, 384, 385, 386, 387, 388, 466),
)
LIPS = (
    61, 146, 91, 181, 84, 17, 314, 405, 321, 375, 291, 409, 270, 269, 267, 0,
    37, 39, 40, 185,
)

# 上半身骨架连线
POSE_CONNECTIONS = (
    (7, 0), (0, 8),
    (11, 12), (11, 13), (13, 15), (12, 14), (14, 16),
    (11, 23), (12, 24), (23, 24),
)

# BGR 颜色
_MESH_COLOR = (241, 102, 99)
_EYE_COLOR = (94, 197, 34)
_LIPS_COLOR = (68, 68, 239)
_IRIS_COLOR = (255, 255, 0)
_SKELETON_COLOR = (255, 200, 0)
_GOOD_COLOR = (0, 255, 0)
_WARN_COLOR = (0, 191, 255)
_BAD_COLOR = (0, 0, 255)


def format_value(v: float) -> str:
    """格式化浮点数为一位小数字符串。"""
    return f"{v:.1f}"


def _to_pixel(point: LandmarkPoint, w: int, h: int) -> Optional[Tuple[int, int]]:
    """归一化坐标转像素坐标，坐标非有限值时返回 None"""
    if not (math.isfinite(point.x) and math.isfinite(point.y)):
        return None
    return int(point.x * w), int(point.y * h)


class OverlayRenderer:
    """在视频帧上绘制关键点叠加层和实时指标。"""

    def __init__(self, draw_points: bool = True, draw_hud: bool = True):
        self.draw_points = draw_points
        self.draw_hud = draw_hud

    def render(
        self,
        frame: np.ndarray,
        detection: Optional[DetectionResult],
        hud: Optional[HudState] = None,
    ) -> np.ndarray:
        """渲染叠加层，返回新帧图像（不修改输入帧）。"""
        output = frame.copy()

        if detection is not None:
            if detection.face is not None:
                self._draw_face(output, detection.face)
            if detection.pose is not None:
                self._draw_pose(output, detection.pose)

        if self.draw_hud and hud is not None:
            self._draw_hud(output, hud, face_detected=detection is not None and detection.face is not None)

        return output

    def safe_render(
        self,
        frame: np.ndarray,
        detection: Optional[DetectionResult],
        hud: Optional[HudState] = None,
    ) -> np.ndarray:
        """
        render() 的容错版本，供实时帧循环使用。

        绘制失败只记录日志并返回未绘制的帧副本。
        """
        try:
            return self.render(frame, detection, hud)
        except (cv2.error, ValueError, TypeError, OverflowError, IndexError):
            timestamp = detection.timestamp if detection is not None else float("nan")
            logger.warning("叠加层绘制失败 (t=%.0f)", timestamp, exc_info=True)
            return frame.copy()

    def draw_and_extract(
        self,
        frame: np.ndarray,
        detection: DetectionResult,
        extractor: FrameMetricExtractor,
        hud: Optional[HudState] = None,
    ) -> Tuple[np.ndarray, FrameMetrics]:
        """
        先计算单帧指标，再尽力绘制叠加层。

        绘制失败只记录日志并返回未绘制的帧副本，指标不受影响。
        """
        metrics = extractor.extract(detection.face, detection.pose, detection.timestamp)
        return self.safe_render(frame, detection, hud), metrics

    def _draw_face(self, frame: np.ndarray, face: FaceLandmarks) -> None:
        """绘制面部关键点、轮廓和虹膜中心。"""
        h, w = frame.shape[:2]
        pixels = [_to_pixel(p, w, h) for p in face.points]

        if self.draw_points:
            for pixel in pixels:
                if pixel is not None:
                    cv2.circle(frame, pixel, 1, _MESH_COLOR, -1)

        self._draw_loop(frame, pixels, FACE_OVAL, _MESH_COLOR, 2)
        for contour in EYE_CONTOURS:
            self._draw_loop(frame, pixels, contour, _EYE_COLOR, 1)
        self._draw_loop(frame, pixels, LIPS, _LIPS_COLOR, 1)

        if face.has_iris:
            for iris in (face.left_iris, face.right_iris):
                pixel = _to_pixel(iris, w, h)
                if pixel is not None:
                    cv2.circle(frame, pixel, 2, _IRIS_COLOR, -1)

    @staticmethod
    def _draw_loop(
        frame: np.ndarray,
        pixels: List[Optional[Tuple[int, int]]],
        indices: Sequence[int],
        color: Tuple[int, int, int],
        thickness: int,
    ) -> None:
        loop = [pixels[i] for i in indices]
        # 轮廓上有无效点时整条不画
        if any(p is None for p in loop):
            return
        pts = np.array(loop, dtype=np.int32)
        cv2.polylines(frame, [pts], True, color, thickness)

    @staticmethod
    def _draw_pose(frame: np.ndarray, pose: PoseLandmarks) -> None:
        """绘制上半身骨架。"""
        h, w = frame.shape[:2]
        pixels = [_to_pixel(p, w, h) for p in pose.points]

        for start, end in POSE_CONNECTIONS:
            if pixels[start] is not None and pixels[end] is not None:
                cv2.line(frame, pixels[start], pixels[end], _SKELETON_COLOR, 2)
        for idx in {i for pair in POSE_CONNECTIONS for i in pair}:
            if pixels[idx] is not None:
                cv2.circle(frame, pixels[idx], 4, _SKELETON_COLOR, -1)

    @staticmethod
    def _hud_lines(hud: HudState, face_detected: bool) -> List[Tuple[str, Tuple[int, int, int]]]:
        """HUD 文字及颜色。"""
        if not face_detected:
            eye_line = ("No Face Detected", _BAD_COLOR)
        elif hud.eye_contact:
            eye_line = (f"Eye Contact {format_value(hud.eye_score)}", _GOOD_COLOR)
        else:
            eye_line = (f"Look at Camera {format_value(hud.eye_score)}", _WARN_COLOR)

        posture_color = _GOOD_COLOR if hud.posture_score >= 80 else _WARN_COLOR
        hands_color = {
            "visible": _GOOD_COLOR,
            "crossed": _WARN_COLOR,
        }.get(hud.hands_status, _BAD_COLOR)

        lines = [
            eye_line,
            (posture_label(hud.posture_issue), posture_color),
            (hands_label(hud.hands_status), hands_color),
        ]
        if hud.smiling:
            lines.append(("Smiling", _GOOD_COLOR))
        if hud.body_stability < HUD_SWAY_WARNING_THRESHOLD:
            lines.append(("Stop Swaying!", _BAD_COLOR))
        return lines

    def _draw_hud(self, frame: np.ndarray, hud: HudState, face_detected: bool) -> None:
        """在左上角绘制 HUD。"""
        y = 30
        for text, color in self._hud_lines(hud, face_detected):
            cv2.putText(
                frame, text, (10, y),
                cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2,
            )
            y += 30
