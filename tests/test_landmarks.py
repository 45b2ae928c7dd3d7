"""Tests for joint identifiers and landmark frames."""

import pytest

from repcoach.exercise_analysis.landmarks import (
    BILATERAL_PARTS,
    LANDMARK_NAMES,
    Frame,
    Joint,
    LandmarkSample,
    Side,
    bilateral_joint,
)


class TestLandmarks:

    def test_mediapipe_order(self):
        assert len(LANDMARK_NAMES) == 33
        assert LANDMARK_NAMES[0] == "nose"
        assert LANDMARK_NAMES[11] == "left_shoulder"
        assert LANDMARK_NAMES[32] == "right_foot_index"

    def test_bilateral_parts(self):
        assert {"shoulder", "elbow", "wrist", "hip", "knee", "ankle"} <= BILATERAL_PARTS
        assert "nose" not in BILATERAL_PARTS
        assert bilateral_joint("knee", Side.RIGHT) == Joint.RIGHT_KNEE

    def test_confidence_out_of_range(self):
        with pytest.raises(ValueError):
            LandmarkSample(0.0, 0.0, 1.2)

    def test_from_landmark_dict(self):
        frame = Frame.from_landmark_dict({
            "nose": [0.5, 0.1, -0.2, 0.95],
            "left_hip": [0.4, 0.6, 0.7],
            "right_hip": [0.6, 0.6],
            "left_knee": [0.4, 0.8, 0.0, 1.3],
            "tail": [0.0, 0.0, 0.0, 1.0],
        }, timestamp=2.0)
        assert frame.timestamp == 2.0
        assert frame.get(Joint.NOSE).confidence == pytest.approx(0.95)
        assert frame.get(Joint.LEFT_HIP).confidence == pytest.approx(0.7)
        assert frame.get(Joint.RIGHT_HIP).confidence == 1.0
        assert frame.get(Joint.LEFT_KNEE).confidence == 1.0
        assert len(frame.samples) == 4

    def test_frame_is_partial_and_frozen(self):
        frame = Frame(timestamp=0.0, samples={Joint.NOSE: LandmarkSample(0.1, 0.2, 0.5)})
        assert Joint.NOSE in frame
        assert Joint.LEFT_EYE not in frame
        assert frame.get(Joint.LEFT_EYE) is None
        assert frame.is_confident(Joint.NOSE, 0.5)
        assert not frame.is_confident(Joint.NOSE, 0.6)
        with pytest.raises(TypeError):
            frame.samples[Joint.LEFT_EYE] = LandmarkSample(0.0, 0.0, 1.0)

    def test_timestamp_defaults_to_none(self):
        assert Frame.from_landmark_dict({"nose": [0.5, 0.1]}).timestamp is None
        assert Frame().timestamp is None

    def test_short_and_non_finite_entries_skipped(self):
        frame = Frame.from_landmark_dict({
            "nose": [0.5],
            "left_eye": [],
            "left_hip": [float("nan"), 0.6, 0.0, 0.9],
            "right_hip": [0.6, float("inf"), 0.0, 0.9],
            "left_knee": [0.4, 0.8, 0.0, float("nan")],
            "right_knee": [0.6, 0.8, 0.0, 0.9],
        })
        assert set(frame.samples) == {Joint.LEFT_KNEE, Joint.RIGHT_KNEE}
        assert frame.get(Joint.LEFT_KNEE).confidence == 0.0

    def test_non_finite_sample_rejected(self):
        with pytest.raises(ValueError):
            LandmarkSample(float("nan"), 0.0, 0.5)
