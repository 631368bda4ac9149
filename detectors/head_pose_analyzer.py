"""头部姿态分析模块，根据鼻尖相对面部中心的偏移估计转头/抬头程度"""

import math

from models.data_models import FaceLandmarks


class HeadPoseAnalyzer:
    """
    计算头部姿态偏移量。

    输出是可比较的偏移分数（上限 90），并非标定过的欧拉角。
    """

    def __init__(
        self,
        horizontal_weight: float = 100.0,
        vertical_weight: float = 50.0,
        scale: float = 30.0,
        max_deviation: float = 90.0,
    ):
        self.horizontal_weight = horizontal_weight
        self.vertical_weight = vertical_weight
        self.scale = scale
        self.max_deviation = max_deviation

    def calculate_deviation(self, face: FaceLandmarks) -> float:
        """
        估计头部偏移。

        公式: min(90, (|nose.x - cheek_mid.x| * 100 + |nose.y - face_mid.y| * 50) * 30)

        Args:
            face: 人脸关键点

        Returns:
            非负偏移量
        """
        nose = face.nose_tip

        face_center_x = (face.left_cheek.x + face.right_cheek.x) / 2.0
        horizontal = abs(nose.x - face_center_x) * self.horizontal_weight

        face_center_y = (face.forehead.y + face.chin.y) / 2.0
        vertical = abs(nose.y - face_center_y) * self.vertical_weight

        deviation = (horizontal + vertical) * self.scale
        if math.isnan(deviation):
            return self.max_deviation
        return min(self.max_deviation, deviation)
