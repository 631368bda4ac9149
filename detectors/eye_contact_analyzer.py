"""眼神交流分析模块，根据虹膜相对眼眶的位置估计是否注视镜头"""

from models.data_models import FaceLandmarks, LandmarkPoint
from models.scoring import clamp_score


class EyeContactAnalyzer:
    """计算眼神交流分数 (0-100)"""

    def __init__(self, iris_gain: float = 200.0, fallback_gain: float = 500.0):
        """初始化偏移量到分数的映射系数"""
        self.iris_gain = iris_gain
        self.fallback_gain = fallback_gain

    @staticmethod
    def _iris_offset(iris: LandmarkPoint, inner: LandmarkPoint, outer: LandmarkPoint) -> float:
        """
        虹膜中心相对眼眶中心的归一化水平偏移。

        公式: |iris.x - (inner.x + outer.x) / 2| / |outer.x - inner.x|

        眼宽为零时返回 inf（分数随之降为 0）。
        """
        eye_width = abs(outer.x - inner.x)
        center_x = (inner.x + outer.x) / 2.0
        offset = abs(iris.x - center_x)
        if eye_width == 0.0:
            return float("inf") if offset > 0.0 else 0.0
        return offset / eye_width

    def calculate_eye_contact(self, face: FaceLandmarks) -> float:
        """
        计算眼神交流分数。

        有虹膜关键点时按左右眼虹膜偏移均值计算：100 - min(100, deviation * 200)；
        否则回退为眼眶中心与面部中心的水平偏移：100 - deviation * 500。

        Args:
            face: 人脸关键点

        Returns:
            [0, 100] 区间的分数
        """
        if not face.has_iris:
            return self._fallback_score(face)

        left = self._iris_offset(face.left_iris, face.left_eye_inner, face.left_eye_outer)
        right = self._iris_offset(face.right_iris, face.right_eye_inner, face.right_eye_outer)
        deviation = (left + right) / 2.0

        return clamp_score(100.0 - min(100.0, deviation * self.iris_gain))

    def _fallback_score(self, face: FaceLandmarks) -> float:
        """未开启虹膜细化时的粗略估计"""
        left_center_x = (face.left_eye_inner.x + face.left_eye_outer.x) / 2.0
        right_center_x = (face.right_eye_inner.x + face.right_eye_outer.x) / 2.0
        face_center_x = (face.nose_tip.x + face.nose_bridge.x) / 2.0

        deviation = abs((left_center_x + right_center_x) / 2.0 - face_center_x)
        return clamp_score(100.0 - min(100.0, deviation * self.fallback_gain))
