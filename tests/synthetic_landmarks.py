"""测试用合成关键点：正面人脸和站立上半身"""

from detectors.landmark_mapper import (
    FACE_MESH_SIZE,
    FACE_MESH_WITH_IRIS_SIZE,
    POSE_SIZE,
    build_face_landmarks,
    build_pose_landmarks,
)

# 正面人脸的基准坐标（归一化）
NOSE_TIP = (0.5, 0.5)
LEFT_EYE_OUTER = (0.42, 0.4)
LEFT_EYE_INNER = (0.47, 0.4)
RIGHT_EYE_INNER = (0.53, 0.4)
RIGHT_EYE_OUTER = (0.58, 0.4)
EYE_WIDTH = 0.05


def make_face_points(iris=True, iris_offset=0.0, nose_dx=0.0, nose_dy=0.0, eye_shift=0.0):
    """
    生成 478（含虹膜）或 468 个人脸关键点元组。

    iris_offset: 虹膜相对眼眶中心的水平偏移
    nose_dx / nose_dy: 鼻尖偏移（模拟转头/抬头）
    eye_shift: 眼眶整体水平偏移（无虹膜回退分支使用）
    """
    size = FACE_MESH_WITH_IRIS_SIZE if iris else FACE_MESH_SIZE
    pts = [(0.5, 0.5, 0.0)] * size

    pts[1] = (NOSE_TIP[0] + nose_dx, NOSE_TIP[1] + nose_dy, -0.05)
    pts[4] = (0.5, 0.45, -0.04)
    pts[10] = (0.5, 0.3, 0.0)
    pts[152] = (0.5, 0.7, 0.0)
    pts[234] = (0.4, 0.5, 0.0)
    pts[454] = (0.6, 0.5, 0.0)
    pts[33] = (LEFT_EYE_OUTER[0] + eye_shift, LEFT_EYE_OUTER[1], 0.0)
    pts[133] = (LEFT_EYE_INNER[0] + eye_shift, LEFT_EYE_INNER[1], 0.0)
    pts[362] = (RIGHT_EYE_INNER[0] + eye_shift, RIGHT_EYE_INNER[1], 0.0)
    pts[263] = (RIGHT_EYE_OUTER[0] + eye_shift, RIGHT_EYE_OUTER[1], 0.0)

    if iris:
        left_center = (LEFT_EYE_OUTER[0] + LEFT_EYE_INNER[0]) / 2 + eye_shift
        right_center = (RIGHT_EYE_INNER[0] + RIGHT_EYE_OUTER[0]) / 2 + eye_shift
        pts[468] = (left_center + iris_offset, 0.4, 0.0)
        pts[473] = (right_center + iris_offset, 0.4, 0.0)

    return pts


def make_face(iris=True, iris_offset=0.0, nose_dx=0.0, nose_dy=0.0, eye_shift=0.0, smile=(0.0, 0.0)):
    """生成 FaceLandmarks，smile 为 (mouthSmileLeft, mouthSmileRight)"""
    blendshapes = {"mouthSmileLeft": smile[0], "mouthSmileRight": smile[1]}
    return build_face_landmarks(
        make_face_points(iris, iris_offset, nose_dx, nose_dy, eye_shift),
        blendshapes,
    )


def make_pose_points(
    nose_x=0.5,
    nose_z=0.0,
    ear_y=0.4,
    shoulder_y=0.6,
    shoulder_tilt=0.0,
    shoulder_z=0.0,
    left_wrist=(0.3, 0.8, 0.0, 0.9),
    right_wrist=(0.7, 0.8, 0.0, 0.9),
):
    """
    生成 33 个姿态关键点元组 (x, y, z, visibility)。

    shoulder_tilt: 左肩相对右肩的 y 偏移
    """
    pts = [(0.5, 0.9, 0.0, 0.9)] * POSE_SIZE

    pts[0] = (nose_x, 0.35, nose_z, 0.99)
    pts[7] = (0.45, ear_y, 0.0, 0.9)
    pts[8] = (0.55, ear_y, 0.0, 0.9)
    pts[11] = (0.35, shoulder_y + shoulder_tilt, shoulder_z, 0.99)
    pts[12] = (0.65, shoulder_y, shoulder_z, 0.99)
    pts[13] = (0.3, 0.7, 0.0, 0.9)
    pts[14] = (0.7, 0.7, 0.0, 0.9)
    pts[15] = left_wrist
    pts[16] = right_wrist
    pts[23] = (0.4, 0.95, 0.0, 0.8)
    pts[24] = (0.6, 0.95, 0.0, 0.8)
    return pts


def make_pose(**kwargs):
    """生成 PoseLandmarks，参数同 make_pose_points"""
    return build_pose_landmarks(make_pose_points(**kwargs))
