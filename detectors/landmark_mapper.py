"""
将 MediaPipe 原始关键点数组映射为按语义角色命名的记录。

人脸网格 468 点（未开启虹膜细化）或 478 点（468 网格 + 10 虹膜点）；
人体姿态固定 33 点。原始点可以是 MediaPipe NormalizedLandmark、
(x, y[, z[, visibility]]) 元组，或形状为 (N, 2..4) 的 numpy 数组。
"""

from typing import Iterable, Mapping, Optional, Sequence, Union

import numpy as np

from models.data_models import FaceLandmarks, LandmarkPoint, PoseLandmarks

FACE_MESH_SIZE = 468
FACE_MESH_WITH_IRIS_SIZE = 478
POSE_SIZE = 33

# 人脸关键点索引常量
FACE_INDICES = {
    "nose_tip": 1,
    "nose_bridge": 4,
    "forehead": 10,
    "chin": 152,
    "left_cheek": 234,
    "right_cheek": 454,
    "left_eye_inner": 133,
    "left_eye_outer": 33,
    "right_eye_inner": 362,
    "right_eye_outer": 263,
}

IRIS_INDICES = {
    "left_iris": 468,
    "right_iris": 473,
}

# 人体姿态关键点索引常量
POSE_INDICES = {
    "nose": 0,
    "left_ear": 7,
    "right_ear": 8,
    "left_shoulder": 11,
    "right_shoulder": 12,
    "left_elbow": 13,
    "right_elbow": 14,
    "left_wrist": 15,
    "right_wrist": 16,
    "left_hip": 23,
    "right_hip": 24,
}

RawPoint = Union[LandmarkPoint, Sequence[float], np.ndarray, object]


def to_point(raw: RawPoint) -> LandmarkPoint:
    """将 MediaPipe landmark、元组/数组行或 LandmarkPoint 统一转换为 LandmarkPoint"""
    if isinstance(raw, LandmarkPoint):
        return raw
    if isinstance(raw, (tuple, list, np.ndarray)):
        if len(raw) < 2:
            raise ValueError(f"关键点坐标维度不足: {raw!r}")
        z = float(raw[2]) if len(raw) > 2 else 0.0
        visibility = float(raw[3]) if len(raw) > 3 and raw[3] is not None else None
        return LandmarkPoint(x=float(raw[0]), y=float(raw[1]), z=z, visibility=visibility)

    visibility = getattr(raw, "visibility", None)
    return LandmarkPoint(
        x=float(raw.x),
        y=float(raw.y),
        z=float(getattr(raw, "z", 0.0) or 0.0),
        visibility=float(visibility) if visibility is not None else None,
    )


def _to_blendshape_dict(blendshapes) -> dict:
    if blendshapes is None:
        return {}
    if isinstance(blendshapes, Mapping):
        return {str(k): float(v) for k, v in blendshapes.items()}
    return {c.category_name: float(c.score) for c in blendshapes}


def build_face_landmarks(
    points: Sequence[RawPoint],
    blendshapes: Optional[Union[Mapping[str, float], Iterable]] = None,
) -> FaceLandmarks:
    """
    从原始人脸关键点数组构建 FaceLandmarks。

    Args:
        points: 468 点或 478 点（含虹膜）
        blendshapes: {名称: 分数} 字典，或 MediaPipe Category 列表

    Raises:
        ValueError: 关键点数量不符合人脸网格尺寸
    """
    n = len(points)
    if n not in (FACE_MESH_SIZE, FACE_MESH_WITH_IRIS_SIZE):
        raise ValueError(f"人脸关键点数量异常: {n}")

    pts = tuple(to_point(p) for p in points)
    roles = {name: pts[idx] for name, idx in FACE_INDICES.items()}

    if n == FACE_MESH_WITH_IRIS_SIZE:
        iris = {name: pts[idx] for name, idx in IRIS_INDICES.items()}
    else:
        iris = {name: None for name in IRIS_INDICES}

    return FaceLandmarks(
        **roles,
        **iris,
        points=pts,
        blendshapes=_to_blendshape_dict(blendshapes),
    )


def build_pose_landmarks(points: Sequence[RawPoint]) -> PoseLandmarks:
    """
    从原始 33 点姿态数组构建 PoseLandmarks。

    Raises:
        ValueError: 关键点数量不是 33
    """
    n = len(points)
    if n != POSE_SIZE:
        raise ValueError(f"姿态关键点数量异常: {n}")

    pts = tuple(to_point(p) for p in points)
    roles = {name: pts[idx] for name, idx in POSE_INDICES.items()}
    return PoseLandmarks(**roles, points=pts)
