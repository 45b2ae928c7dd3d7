"""Shared fixtures: bundled profiles and synthetic landmark frames.

Frames are built in pixel-like coordinates with y growing downward, the
same convention the detector uses for normalized image coordinates.
"""

import math

import pytest

from repcoach.exercise_analysis.landmarks import Frame, Joint, LandmarkSample
from repcoach.exercise_analysis.profiles import get_profile


def _both_sides(points, confidence):
    samples = {}
    for part, (x, y) in points.items():
        for side in ("left", "right"):
            samples[Joint(f"{side}_{part}")] = LandmarkSample(x, y, confidence)
    return samples


def make_pushup_frame(elbow_angle, timestamp=0.0, confidence=0.9, sagging=False, drop=()):
    """
    Side-view plank with the given elbow angle on both arms.

    Straight plank: shoulder, hip, knee and ankle are collinear with the hips
    well above the ankles. `sagging` drops the hips below the ankle line.
    """
    points = {
        "shoulder": (100.0, 60.0),
        "hip": (250.0, 95.0),
        "knee": (325.0, 112.5),
        "ankle": (400.0, 130.0),
        "elbow": (100.0, 120.0),
    }
    if sagging:
        points["hip"] = (250.0, 140.0)
        points["knee"] = (325.0, 135.0)
    rad = math.radians(elbow_angle)
    ex, ey = points["elbow"]
    points["wrist"] = (ex + 60.0 * math.sin(rad), ey - 60.0 * math.cos(rad))
    samples = _both_sides(points, confidence)
    for joint in drop:
        samples.pop(joint, None)
    return Frame(timestamp=timestamp, samples=samples)


def make_situp_frame(torso_angle, timestamp=0.0, confidence=0.9, head_offset=0.0,
                     nose_confidence=None, drop=()):
    """
    Side-view situp with the torso raised `torso_angle` degrees off the floor.

    Knees are bent to about 98 degrees. The nose sits on the hip-shoulder line
    extended, shifted sideways by `head_offset` pixels.
    """
    hip = (200.0, 300.0)
    rad = math.radians(torso_angle)
    ux, uy = -math.cos(rad), -math.sin(rad)
    points = {
        "hip": hip,
        "knee": (280.0, 230.0),
        "ankle": (360.0, 300.0),
        "shoulder": (hip[0] + 100.0 * ux, hip[1] + 100.0 * uy),
    }
    samples = _both_sides(points, confidence)
    # Perpendicular to the torso
    px, py = uy, -ux
    nose = (hip[0] + 130.0 * ux + head_offset * px, hip[1] + 130.0 * uy + head_offset * py)
    samples[Joint.NOSE] = LandmarkSample(
        nose[0], nose[1], confidence if nose_confidence is None else nose_confidence)
    for joint in drop:
        samples.pop(joint, None)
    return Frame(timestamp=timestamp, samples=samples)


@pytest.fixture
def pushup_profile():
    return get_profile("pushup")


@pytest.fixture
def situp_profile():
    return get_profile("situp")


@pytest.fixture
def pushup_frame():
    return make_pushup_frame


@pytest.fixture
def situp_frame():
    return make_situp_frame
