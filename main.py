"""演讲练习教练入口文件：摄像头/视频实时分析并输出会话报告"""

import argparse
import json
import logging
import sys
import time

import cv2

from detectors.landmark_detector import (
    DEFAULT_FACE_MODEL_PATH,
    DEFAULT_POSE_MODEL_PATH,
    LandmarkDetector,
)
from display.renderer import OverlayRenderer
from evaluators.frame_evaluator import FrameMetricExtractor
from session.practice_session import PracticeSession

logger = logging.getLogger(__name__)

# 默认阈值
_DEFAULTS = {
    "eye_contact_threshold": 70.0,
    "head_deviation_threshold": 15.0,
    "smile_threshold": 0.3,
    "shrug_threshold": 0.08,
    "lean_threshold": 0.05,
    "slouch_threshold": 0.1,
    "hand_visibility_threshold": 0.5,
    "crossed_arms_distance": 0.15,
    "stability_window_ms": 3000.0,
    "stability_min_samples": 10,
    "hud_interval_ms": 300.0,
    "face_model_path": DEFAULT_FACE_MODEL_PATH,
    "pose_model_path": DEFAULT_POSE_MODEL_PATH,
}


def load_config(config_path=None):
    """从 JSON 配置文件加载阈值参数，缺失字段使用默认值。"""
    config = dict(_DEFAULTS)

    if config_path is None:
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("配置文件不存在 %s，使用默认阈值", config_path)
        return config
    except json.JSONDecodeError:
        logger.warning("配置文件格式错误 %s，使用默认阈值", config_path)
        return config

    return merge_config(config, data)


def merge_config(config, data):
    """用 data 中的非空已知字段覆盖 config，返回新字典。"""
    merged = dict(config)
    if not isinstance(data, dict):
        return merged
    for key in _DEFAULTS:
        if key in data and data[key] is not None:
            merged[key] = data[key]
    return merged


def build_session(config):
    """按配置创建练习会话。"""
    return PracticeSession(
        extractor_factory=lambda: FrameMetricExtractor.from_config(config),
        hud_interval_ms=config["hud_interval_ms"],
    )


def _now_ms():
    return time.monotonic() * 1000.0


class CoachSystem:
    """演讲练习主程序，协调关键点检测、指标计算、叠加层渲染和会话汇总。"""

    def __init__(self, config_path=None, source=0, detector=None, show_window=True):
        self.config = load_config(config_path)
        self.source = source
        self.show_window = show_window
        self._cap = None

        self.detector = detector
        if self.detector is None:
            self.detector = LandmarkDetector(
                face_model_path=self.config["face_model_path"],
                pose_model_path=self.config["pose_model_path"],
            )
        self.session = build_session(self.config)
        self.renderer = OverlayRenderer()

    def run(self):
        """启动检测循环，结束时返回会话报告。"""
        self._cap = cv2.VideoCapture(self.source)

        if not self._cap.isOpened():
            logger.error("无法打开视频源: %s", self.source)
            sys.exit(1)

        self.session.start(_now_ms())
        try:
            self._main_loop()
        finally:
            report = self.stop()
        return report

    def _main_loop(self):
        """视频流处理主循环。"""
        while True:
            ret, frame = self._cap.read()
            if not ret:
                if isinstance(self.source, str):
                    # 视频文件读取完毕
                    break
                continue

            rendered = self.process_frame(frame, _now_ms())

            if self.show_window:
                cv2.imshow("Pitch Coach", rendered)
                # 按 q 退出
                if cv2.waitKey(1) & 0xFF == ord("q"):
                    break

    def process_frame(self, frame, now_ms):
        """处理单帧：检测 -> 指标 -> 渲染，返回渲染后的帧。"""
        try:
            detection = self.detector.detect(frame, now_ms)
        except (RuntimeError, ValueError):
            logger.warning("关键点检测失败，跳过该帧", exc_info=True)
            return frame.copy()
        self.session.process(detection.face, detection.pose, now_ms)
        return self.renderer.safe_render(frame, detection, self.session.hud)

    def stop(self):
        """释放视频源和窗口，返回会话报告。"""
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        if self.show_window:
            cv2.destroyAllWindows()
        self.detector.close()
        return self.session.stop()


def _parse_source(value):
    """数字解析为摄像头编号，其余视为视频文件路径。"""
    return int(value) if value.isdigit() else value


def main():
    parser = argparse.ArgumentParser(description="演讲练习教练 - 肢体语言实时分析")
    parser.add_argument(
        "--source",
        type=str,
        default="0",
        help="摄像头编号或视频文件路径",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON 阈值配置文件路径",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="会话报告 JSON 输出路径",
    )
    parser.add_argument(
        "--no-window",
        action="store_true",
        help="不显示预览窗口",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        system = CoachSystem(
            config_path=args.config,
            source=_parse_source(args.source),
            show_window=not args.no_window,
        )
    except FileNotFoundError as e:
        logger.error("初始化失败: %s", e)
        sys.exit(1)

    report = system.run()
    payload = json.dumps(report.to_dict(), ensure_ascii=False, indent=2)
    print(payload)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(payload)


if __name__ == "__main__":
    main()
