"""Flask Web 服务 - 演讲练习教练实时分析"""

import datetime
import logging
import threading
import time

import cv2
from flask import Flask, Response, jsonify, request

from detectors.landmark_detector import LandmarkDetector
from detectors.posture_analyzer import HANDS_CROSSED, ISSUE_GOOD
from display.renderer import OverlayRenderer
from evaluators.feedback import HUD_SWAY_WARNING_THRESHOLD, hud_messages, posture_label
from main import _DEFAULTS, build_session, merge_config

logger = logging.getLogger(__name__)

app = Flask(__name__)


def _now_ms():
    return time.monotonic() * 1000.0


class WebCoachSystem:
    """Web 版练习系统，支持 MJPEG 视频流推送、实时 HUD 数据和会话报告 API。"""

    MAX_LOG_ENTRIES = 200

    def __init__(self, detector_factory=None):
        self._cap = None
        self._thread = None
        self._running = False
        self._lock = threading.Lock()
        self._latest_frame = None
        self._latest_data = self._empty_data()
        self._last_report = None
        self._logs = []
        self._log_lock = threading.Lock()
        self._prev_state = {"face_detected": True, "posture_issue": ISSUE_GOOD, "arms_crossed": False, "swaying": False}
        self.config = dict(_DEFAULTS)
        self._detector_factory = detector_factory or self._default_detector
        self.detector = None
        self.session = build_session(self.config)
        self.renderer = OverlayRenderer()

    @staticmethod
    def _empty_data():
        return {
            "face_detected": False,
            "eye_contact": False, "eye_score": 0.0, "smiling": False,
            "posture_score": 100.0, "posture_issue": ISSUE_GOOD,
            "hands_status": "hidden", "body_stability": 100.0,
            "head_deviation": 0.0, "sway_amount": 0.0,
            "messages": [], "frame_count": 0, "recording": False,
        }

    def _default_detector(self):
        return LandmarkDetector(
            face_model_path=self.config["face_model_path"],
            pose_model_path=self.config["pose_model_path"],
        )

    def start(self, source=0):
        """启动摄像头和处理线程，开始新的练习会话。"""
        if self._running:
            return True

        if self.detector is None:
            try:
                self.detector = self._detector_factory()
            except FileNotFoundError as e:
                self._add_log("danger", f"模型加载失败: {e}")
                return False

        self._cap = cv2.VideoCapture(source)
        if not self._cap.isOpened():
            self._add_log("danger", "无法打开摄像头")
            return False

        self.session = build_session(self.config)
        self.session.start(_now_ms())
        self._running = True
        self._add_log("info", "练习开始，摄像头已开启")
        self._thread = threading.Thread(target=self._process_loop, daemon=True)
        self._thread.start()
        return True

    def stop(self):
        """停止录制并返回会话报告。"""
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self._cap and self._cap.isOpened():
            self._cap.release()
        self._cap = None

        with self._lock:
            report = self.session.stop()
            self._last_report = report
            self._latest_data = self._empty_data()
        self._add_log("info", f"练习结束，共 {report.frame_count} 帧")
        return report

    def _process_loop(self):
        """后台处理循环。"""
        while self._running:
            if not self._cap or not self._cap.isOpened():
                break
            ret, frame = self._cap.read()
            if not ret:
                continue
            self.process_frame(frame, _now_ms())

    def process_frame(self, frame, now_ms):
        """处理单帧并更新最新画面和 HUD 数据，练习已停止时丢弃该帧。"""
        try:
            detection = self.detector.detect(frame, now_ms)
        except (RuntimeError, ValueError):
            logger.warning("关键点检测失败，跳过该帧", exc_info=True)
            return

        with self._lock:
            # stop() 可能在检测期间完成
            if not self._running:
                return
            metrics = self.session.process(detection.face, detection.pose, now_ms)
            hud = self.session.hud
            frame_count = len(self.session.samples)

        rendered = self.renderer.safe_render(frame, detection, hud)

        data = {
            "face_detected": metrics.face is not None,
            "eye_contact": hud.eye_contact,
            "eye_score": round(hud.eye_score, 1),
            "smiling": hud.smiling,
            "posture_score": round(hud.posture_score, 1),
            "posture_issue": hud.posture_issue,
            "hands_status": hud.hands_status,
            "body_stability": round(hud.body_stability, 1),
            "head_deviation": round(metrics.face.head_pose_deviation, 2) if metrics.face else 0.0,
            "sway_amount": round(metrics.body.sway_amount, 2) if metrics.body else 0.0,
            "messages": hud_messages(hud),
            "frame_count": frame_count,
            "recording": True,
        }

        _, jpeg = cv2.imencode(".jpg", rendered, [cv2.IMWRITE_JPEG_QUALITY, 80])
        with self._lock:
            if not self._running:
                return
            self._latest_data = data
            self._latest_frame = jpeg.tobytes()

        self._check_state_changes(data)

    def _add_log(self, level, message):
        """添加一条系统日志。level: info / warning / danger"""
        entry = {
            "time": datetime.datetime.now().strftime("%H:%M:%S"),
            "level": level,
            "message": message,
        }
        with self._log_lock:
            self._logs.append(entry)
            if len(self._logs) > self.MAX_LOG_ENTRIES:
                self._logs = self._logs[-self.MAX_LOG_ENTRIES:]

    def _check_state_changes(self, data):
        """检测 HUD 状态变化并记录日志。"""
        prev = self._prev_state

        face_detected = data.get("face_detected", False)
        if face_detected and not prev.get("face_detected"):
            self._add_log("info", "检测到人脸")
        elif not face_detected and prev.get("face_detected"):
            self._add_log("warning", "人脸丢失")

        issue = data.get("posture_issue", ISSUE_GOOD)
        if issue != prev.get("posture_issue"):
            level = "info" if issue == ISSUE_GOOD else "warning"
            self._add_log(level, f"姿势: {posture_label(issue)}")

        arms_crossed = data.get("hands_status") == HANDS_CROSSED
        if arms_crossed and not prev.get("arms_crossed"):
            self._add_log("warning", "检测到抱臂")
        elif not arms_crossed and prev.get("arms_crossed"):
            self._add_log("info", "抱臂解除")

        swaying = data.get("body_stability", 100.0) < HUD_SWAY_WARNING_THRESHOLD
        if swaying and not prev.get("swaying"):
            self._add_log("danger", f"⚠️ 身体摇摆过大！(稳定度={data.get('body_stability', 0):.0f})")
        elif not swaying and prev.get("swaying"):
            self._add_log("info", "身体恢复稳定")

        self._prev_state = {
            "face_detected": face_detected,
            "posture_issue": issue,
            "arms_crossed": arms_crossed,
            "swaying": swaying,
        }

    def get_logs(self, since=0):
        """获取日志，since 为起始索引。"""
        with self._log_lock:
            return self._logs[since:], len(self._logs)

    def get_frame(self):
        with self._lock:
            return self._latest_frame

    def get_data(self):
        with self._lock:
            return dict(self._latest_data)

    def get_report(self):
        with self._lock:
            return self._last_report

    def update_config(self, data):
        """动态更新阈值配置，从下一次练习开始生效。"""
        if not isinstance(data, dict):
            return
        self.config = merge_config(self.config, data)
        if self.detector is not None and (
            data.get("face_model_path") or data.get("pose_model_path")
        ):
            self.detector.close()
            self.detector = None


# 全局练习系统实例
system = WebCoachSystem()


# ---- Flask 路由 ----

@app.route("/api/start", methods=["POST"])
def api_start():
    ok = system.start()
    return jsonify({"success": ok, "message": "练习已开始" if ok else "无法启动练习"})


@app.route("/api/stop", methods=["POST"])
def api_stop():
    report = system.stop()
    return jsonify({"success": True, "message": "练习已结束", "report": report.to_dict()})


@app.route("/api/data")
def api_data():
    return jsonify(system.get_data())


@app.route("/api/summary")
def api_summary():
    report = system.get_report()
    if report is None:
        return jsonify({"success": False, "message": "暂无练习报告"}), 404
    return jsonify({"success": True, "report": report.to_dict()})


@app.route("/api/config", methods=["POST"])
def api_config():
    data = request.get_json(force=True)
    system.update_config(data)
    return jsonify({"success": True, "message": "配置已更新"})


@app.route("/api/logs")
def api_logs():
    since = request.args.get("since", 0, type=int)
    logs, total = system.get_logs(since)
    return jsonify({"logs": logs, "total": total})


@app.route("/video_feed")
def video_feed():
    def generate():
        while True:
            frame = system.get_frame()
            if frame is not None:
                yield (b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + frame + b"\r\n")
            time.sleep(0.03)
    return Response(generate(), mimetype="multipart/x-mixed-replace; boundary=frame")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(host="0.0.0.0", port=5000, debug=False, threaded=True)
