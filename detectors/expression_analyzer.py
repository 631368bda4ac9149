"""表情分析模块，根据 blendshape 分数判断是否微笑"""

from models.data_models import FaceLandmarks

SMILE_LEFT = "mouthSmileLeft"
SMILE_RIGHT = "mouthSmileRight"


class ExpressionAnalyzer:
    """根据嘴角上扬 blendshape 输出微笑信号"""

    def __init__(self, smile_threshold: float = 0.3):
        self.smile_threshold = smile_threshold

    def calculate_smile_score(self, face: FaceLandmarks) -> float:
        """左右嘴角 blendshape 分数均值，缺失项按 0 计"""
        left = face.blendshapes.get(SMILE_LEFT, 0.0)
        right = face.blendshapes.get(SMILE_RIGHT, 0.0)
        return (left + right) / 2.0

    def is_smiling(self, face: FaceLandmarks) -> bool:
        return self.calculate_smile_score(face) > self.smile_threshold
