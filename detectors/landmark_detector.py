"""人脸/人体关键点检测模块，基于 MediaPipe Tasks (FaceLandmarker + PoseLandmarker)"""

import logging
import os
from typing import Optional

import cv2
import mediapipe as mp
import numpy as np

from detectors.landmark_mapper import build_face_landmarks, build_pose_landmarks
from models.data_models import DetectionResult, FaceLandmarks, PoseLandmarks

logger = logging.getLogger(__name__)

# 模型默认路径
DEFAULT_FACE_MODEL_PATH = "models/mediapipe/face_landmarker.task"
DEFAULT_POSE_MODEL_PATH = "models/mediapipe/pose_landmarker_lite.task"


class LandmarkDetector:
    """使用 MediaPipe FaceLandmarker / PoseLandmarker（VIDEO 模式）检测关键点"""

    def __init__(
        self,
        face_model_path: str = DEFAULT_FACE_MODEL_PATH,
        pose_model_path: str = DEFAULT_POSE_MODEL_PATH,
        min_detection_confidence: float = 0.5,
        enable_pose: bool = True,
    ):
        """
        加载 MediaPipe 模型。

        Raises:
            FileNotFoundError: 模型文件不存在时抛出
        """
        if not os.path.exists(face_model_path):
            raise FileNotFoundError(f"人脸模型文件不存在: {face_model_path}")
        if enable_pose and not os.path.exists(pose_model_path):
            raise FileNotFoundError(f"姿态模型文件不存在: {pose_model_path}")

        vision = mp.tasks.vision
        base_options = mp.tasks.BaseOptions

        self._face_landmarker = vision.FaceLandmarker.create_from_options(
            vision.FaceLandmarkerOptions(
                base_options=base_options(model_asset_path=face_model_path),
                running_mode=vision.RunningMode.VIDEO,
                num_faces=1,
                min_face_detection_confidence=min_detection_confidence,
                output_face_blendshapes=True,
            )
        )

        self._pose_landmarker = None
        if enable_pose:
            self._pose_landmarker = vision.PoseLandmarker.create_from_options(
                vision.PoseLandmarkerOptions(
                    base_options=base_options(model_asset_path=pose_model_path),
                    running_mode=vision.RunningMode.VIDEO,
                    num_poses=1,
                    min_pose_detection_confidence=min_detection_confidence,
                )
            )

        self._last_timestamp_ms = -1

    def _next_timestamp(self, timestamp_ms: float) -> int:
        """VIDEO 模式要求时间戳严格递增"""
        ts = int(timestamp_ms)
        if ts <= self._last_timestamp_ms:
            ts = self._last_timestamp_ms + 1
        self._last_timestamp_ms = ts
        return ts

    def detect(self, frame: np.ndarray, timestamp_ms: float) -> DetectionResult:
        """
        检测单帧图像中的人脸和人体关键点。

        Args:
            frame: BGR 格式的 OpenCV 图像帧
            timestamp_ms: 单调递增的帧时间戳（毫秒）

        Returns:
            DetectionResult，未检测到的模态为 None
        """
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)
        ts = self._next_timestamp(timestamp_ms)

        return DetectionResult(
            face=self._detect_face(mp_image, ts),
            pose=self._detect_pose(mp_image, ts),
            timestamp=timestamp_ms,
        )

    def _detect_face(self, mp_image, ts: int) -> Optional[FaceLandmarks]:
        results = self._face_landmarker.detect_for_video(mp_image, ts)
        if not results.face_landmarks:
            return None

        blendshapes = None
        if results.face_blendshapes:
            blendshapes = results.face_blendshapes[0]

        try:
            return build_face_landmarks(results.face_landmarks[0], blendshapes)
        except ValueError as e:
            logger.warning("人脸关键点无效，跳过该帧: %s", e)
            return None

    def _detect_pose(self, mp_image, ts: int) -> Optional[PoseLandmarks]:
        if self._pose_landmarker is None:
            return None

        results = self._pose_landmarker.detect_for_video(mp_image, ts)
        if not results.pose_landmarks:
            return None

        try:
            return build_pose_landmarks(results.pose_landmarks[0])
        except ValueError as e:
            logger.warning("姿态关键点无效，跳过该帧: %s", e)
            return None

    def close(self):
        """释放 MediaPipe 资源"""
        self._face_landmarker.close()
        if self._pose_landmarker is not None:
            self._pose_landmarker.close()
