"""web_app Flask 接口与 WebCoachSystem 单元测试"""

import logging
import sys
from unittest.mock import MagicMock

import numpy as np
import pytest

sys.modules.setdefault("mediapipe", MagicMock())

import web_app  # noqa: E402
from models.data_models import DetectionResult  # noqa: E402
from web_app import WebCoachSystem  # noqa: E402
from detectors.landmark_mapper import build_face_landmarks  # noqa: E402
from synthetic_landmarks import make_face, make_face_points, make_pose  # noqa: E402


class StubDetector:
    def __init__(self, face=None, pose=None):
        self.face = face
        self.pose = pose
        self.closed = False

    def detect(self, frame, timestamp_ms):
        return DetectionResult(face=self.face, pose=self.pose, timestamp=timestamp_ms)

    def close(self):
        self.closed = True


def _frame():
    return np.zeros((120, 160, 3), dtype=np.uint8)


def _messages(system):
    logs, _ = system.get_logs()
    return [entry["message"] for entry in logs]


@pytest.fixture
def system():
    coach = WebCoachSystem(detector_factory=StubDetector)
    coach.detector = StubDetector(face=make_face(), pose=make_pose())
    coach._running = True
    return coach


@pytest.fixture
def client(monkeypatch, system):
    monkeypatch.setattr(web_app, "system", system)
    web_app.app.config["TESTING"] = True
    with web_app.app.test_client() as c:
        yield c


class TestProcessFrame:
    def test_updates_latest_data(self, system):
        system.process_frame(_frame(), 1000.0)
        data = system.get_data()
        assert data["face_detected"] is True
        assert data["eye_contact"] is True
        assert data["eye_score"] == 100.0
        assert data["posture_issue"] == "good"
        assert data["hands_status"] == "visible"
        assert data["messages"] == ["Eye Contact", "Good Posture", "Hands Visible"]
        assert data["frame_count"] == 1
        assert data["recording"] is True

    def test_encodes_jpeg_frame(self, system):
        assert system.get_frame() is None
        system.process_frame(_frame(), 0.0)
        assert system.get_frame().startswith(b"\xff\xd8")

    def test_face_lost_logged(self, system):
        system.detector = StubDetector(pose=make_pose())
        system.process_frame(_frame(), 0.0)
        assert "人脸丢失" in _messages(system)
        assert system.get_data()["face_detected"] is False

    def test_crossed_arms_logged(self, system):
        pose = make_pose(left_wrist=(0.48, 0.7, 0.0, 0.9), right_wrist=(0.52, 0.7, 0.0, 0.9))
        system.detector = StubDetector(face=make_face(), pose=pose)
        system.process_frame(_frame(), 0.0)
        assert "检测到抱臂" in _messages(system)

    def test_posture_change_logged(self, system):
        system.detector = StubDetector(face=make_face(), pose=make_pose(shoulder_z=0.15))
        system.process_frame(_frame(), 0.0)
        assert "姿势: Stand Straight" in _messages(system)

    def test_detector_error_skips_frame(self, system):
        system.detector = MagicMock()
        system.detector.detect.side_effect = RuntimeError("graph failed")
        system.process_frame(_frame(), 0.0)
        assert system.get_data()["frame_count"] == 0

    def test_nan_face_point_keeps_streaming(self, system):
        points = make_face_points()
        points[0] = (float("nan"), 0.5, 0.0)
        system.detector = StubDetector(face=build_face_landmarks(points), pose=make_pose())
        system.process_frame(_frame(), 0.0)
        assert system.get_data()["face_detected"] is True
        assert system.get_data()["frame_count"] == 1
        assert system.get_frame().startswith(b"\xff\xd8")

    def test_render_failure_keeps_streaming(self, system, monkeypatch, caplog):
        def _broken(*args, **kwargs):
            raise ValueError("bad frame")

        monkeypatch.setattr(system.renderer, "render", _broken)
        with caplog.at_level(logging.WARNING):
            system.process_frame(_frame(), 0.0)
        assert system.get_data()["frame_count"] == 1
        assert system.get_frame() is not None
        assert "叠加层绘制失败" in caplog.text

    def test_frame_after_stop_is_dropped(self, system):
        system.process_frame(_frame(), 0.0)
        report = system.stop()
        system.process_frame(_frame(), 100.0)

        assert report.frame_count == 1
        assert system.session.is_recording is False
        assert len(system.session.samples) == 1
        assert system.get_data()["recording"] is False


class TestSystemState:
    def test_log_is_capped(self, system):
        for i in range(WebCoachSystem.MAX_LOG_ENTRIES + 50):
            system._add_log("info", str(i))
        logs, total = system.get_logs()
        assert total == WebCoachSystem.MAX_LOG_ENTRIES
        assert logs[-1]["message"] == str(WebCoachSystem.MAX_LOG_ENTRIES + 49)

    def test_update_config_ignores_non_dict(self, system):
        before = dict(system.config)
        system.update_config(["smile_threshold"])
        assert system.config == before

    def test_model_path_change_closes_detector(self, system):
        detector = system.detector
        system.update_config({"face_model_path": "other.task"})
        assert detector.closed
        assert system.detector is None
        assert system.config["face_model_path"] == "other.task"

    def test_start_fails_without_models(self):
        def _missing():
            raise FileNotFoundError("face_landmarker.task")

        coach = WebCoachSystem(detector_factory=_missing)
        assert coach.start() is False
        assert any("模型加载失败" in m for m in _messages(coach))

    def test_stop_produces_report(self, system):
        for i in range(3):
            system.process_frame(_frame(), i * 100.0)
        report = system.stop()
        assert report.frame_count == 3
        assert system.get_report() is report
        assert system.get_data()["recording"] is False


class TestRoutes:
    def test_data(self, client):
        resp = client.get("/api/data")
        assert resp.status_code == 200
        assert resp.get_json()["face_detected"] is False

    def test_summary_before_session(self, client):
        resp = client.get("/api/summary")
        assert resp.status_code == 404
        assert resp.get_json()["success"] is False

    def test_stop_then_summary(self, client, system):
        system.process_frame(_frame(), 0.0)
        resp = client.post("/api/stop")
        body = resp.get_json()
        assert body["success"] is True
        assert body["report"]["frameCount"] == 1
        assert body["report"]["summary"]["averageEyeContact"] == 100

        summary = client.get("/api/summary").get_json()
        assert summary["report"]["frameCount"] == 1

    def test_config(self, client, system):
        resp = client.post("/api/config", json={"smile_threshold": 0.5, "unknown": 1})
        assert resp.get_json()["success"] is True
        assert system.config["smile_threshold"] == 0.5
        assert "unknown" not in system.config

    def test_logs_since(self, client, system):
        system._add_log("info", "a")
        system._add_log("info", "b")
        body = client.get("/api/logs?since=1").get_json()
        assert body["total"] == 2
        assert [e["message"] for e in body["logs"]] == ["b"]

    def test_start_failure(self, client, monkeypatch, system):
        system.detector = None
        system._running = False
        monkeypatch.setattr(system, "_detector_factory", MagicMock(side_effect=FileNotFoundError("x")))
        body = client.post("/api/start").get_json()
        assert body["success"] is False
