"""End-to-end tests for the exercise session.

Covers:
  - Pushup and situp frame sequences producing counts and messages
  - Bad form never counting
  - Start/stop/reset lifecycle and ignored frames
  - Missing landmarks and degenerate geometry leaving the counter untouched
"""

import pytest

from repcoach.exercise_analysis.form_validator import ViolationKind
from repcoach.exercise_analysis.landmarks import Frame, Joint
from repcoach.exercise_analysis.profiles import ProfileConfigError, RepPhase
from repcoach.exercise_analysis.session import ExerciseSession


@pytest.fixture
def pushup_session(pushup_profile):
    session = ExerciseSession(pushup_profile)
    session.start()
    return session


@pytest.fixture
def situp_session(situp_profile):
    session = ExerciseSession(situp_profile)
    session.start()
    return session


def _run(session, make_frame, angles, dt, **kwargs):
    return [session.on_frame(make_frame(angle, timestamp=i * dt, **kwargs)) for i, angle in enumerate(angles)]


# ============================================================================
# Test: Pushups
# ============================================================================

class TestPushupSession:

    def test_one_good_pushup(self, pushup_session, pushup_frame):
        statuses = _run(pushup_session, pushup_frame, [170, 120, 80, 120, 170], dt=0.1)
        assert pushup_session.count == 1
        assert statuses[2].phase == RepPhase.CONTRACTED
        assert statuses[2].phase_label == "down"
        assert statuses[2].message == "Down position detected. Push up!"
        assert statuses[-1].rep_completed
        assert statuses[-1].message == "Pushup #1 completed! Keep going!"
        assert statuses[-1].phase_label == "up"

    def test_hold_messages_include_angle(self, pushup_session, pushup_frame):
        status = pushup_session.on_frame(pushup_frame(170, timestamp=0.0))
        assert status.message == "Ready position - Go down! (Angle: 170°)"
        status = pushup_session.on_frame(pushup_frame(80, timestamp=0.1))
        status = pushup_session.on_frame(pushup_frame(85, timestamp=0.2))
        assert status.message == "In down position - Push up! (Angle: 85°)"

    def test_sagging_pushups_never_count(self, pushup_session, pushup_frame):
        statuses = _run(pushup_session, pushup_frame, [170, 80, 170] * 3, dt=0.1, sagging=True)
        assert pushup_session.count == 0
        assert all(not s.is_form_valid for s in statuses)
        assert statuses[-1].message == "Fix form: Keep your body straight - hips are sagging"

    def test_too_fast_pushup_not_counted(self, pushup_session, pushup_frame):
        _run(pushup_session, pushup_frame, [170, 80, 170], dt=0.01)
        assert pushup_session.count == 0

    def test_angles_reported(self, pushup_session, pushup_frame):
        status = pushup_session.on_frame(pushup_frame(130, timestamp=0.0))
        assert status.angles["primary"] == pytest.approx(130.0)
        assert status.angles["body_line"] == pytest.approx(180.0)

    def test_status_to_dict(self, pushup_session, pushup_frame):
        data = pushup_session.on_frame(pushup_frame(130, timestamp=0.5)).to_dict()
        assert data["exercise"] == "pushup"
        assert data["phase"] == "extended"
        assert data["is_form_valid"] is True
        assert data["violations"] == []
        assert data["timestamp"] == 0.5

    def test_frames_without_timestamps_count(self, pushup_session, pushup_frame):
        for angle in (170, 80, 170):
            landmarks = {j.value: [s.x, s.y, 0.0, s.confidence] for j, s in pushup_frame(angle).samples.items()}
            pushup_session.on_frame(Frame.from_landmark_dict(landmarks))
        assert pushup_session.count == 1

    def test_frames_sharing_one_timestamp_count(self, pushup_session, pushup_frame):
        for angle in (170, 80, 170):
            pushup_session.on_frame(pushup_frame(angle, timestamp=3.0))
        assert pushup_session.count == 1


# ============================================================================
# Test: Situps
# ============================================================================

class TestSitupSession:

    def test_good_situps(self, situp_session, situp_frame):
        statuses = _run(situp_session, situp_frame, [10, 50, 100, 60, 30] * 2, dt=0.5)
        assert situp_session.count == 2
        assert statuses[4].message == "Situp #1 completed! Excellent form!"
        assert statuses[2].phase_label == "up"

    def test_misaligned_head_blocks_count(self, situp_session, situp_frame):
        statuses = _run(situp_session, situp_frame, [10, 50, 100, 60, 30], dt=0.5, head_offset=80.0)
        assert situp_session.count == 0
        assert statuses[-1].validity.kinds == (ViolationKind.OUT_OF_ALIGNMENT,)
        assert statuses[-1].message == "Fix form before continuing: Keep head aligned with torso"

    def test_form_break_mid_rep(self, situp_session, situp_frame):
        situp_session.on_frame(situp_frame(10, timestamp=0.0))
        situp_session.on_frame(situp_frame(100, timestamp=0.5))
        status = situp_session.on_frame(situp_frame(30, timestamp=1.0, head_offset=80.0))
        assert status.count == 0
        assert status.phase == RepPhase.CONTRACTED
        status = situp_session.on_frame(situp_frame(30, timestamp=1.5))
        assert status.rep_completed
        assert status.count == 1


# ============================================================================
# Test: Lifecycle
# ============================================================================

class TestLifecycle:

    def test_idle_before_start(self, pushup_profile, pushup_frame):
        session = ExerciseSession(pushup_profile)
        assert not session.is_active
        assert session.status.message == "Press start to begin detection"
        status = session.on_frame(pushup_frame(80, timestamp=0.0))
        assert status is session.status
        assert not status.active
        assert session.count == 0

    def test_frames_ignored_after_stop(self, pushup_session, pushup_frame):
        _run(pushup_session, pushup_frame, [170, 80, 170], dt=0.1)
        status = pushup_session.stop()
        assert status.message == "Detection stopped. Total pushups: 1"
        _run(pushup_session, pushup_frame, [170, 80, 170] * 2, dt=0.1)
        assert pushup_session.count == 1
        assert pushup_session.status is status

    def test_start_resets_count(self, pushup_session, pushup_frame):
        _run(pushup_session, pushup_frame, [170, 80, 170], dt=0.1)
        status = pushup_session.start()
        assert status.count == 0
        assert status.phase == RepPhase.EXTENDED
        assert status.message == "Detection started. Get into pushup position!"

    def test_reset_keeps_session_running(self, pushup_session, pushup_frame):
        _run(pushup_session, pushup_frame, [170, 80, 170], dt=0.1)
        status = pushup_session.reset()
        assert status.count == 0
        assert status.active
        assert status.message == "Counter reset. Continue your workout!"

    def test_for_exercise(self):
        assert ExerciseSession.for_exercise("situp").profile.name == "situp"
        with pytest.raises(ProfileConfigError):
            ExerciseSession.for_exercise("plank")


# ============================================================================
# Test: Missing landmarks and degenerate frames
# ============================================================================

class TestUntrustedFrames:

    def test_missing_landmarks_leave_counter_untouched(self, pushup_session, pushup_frame):
        pushup_session.on_frame(pushup_frame(170, timestamp=0.0))
        pushup_session.on_frame(pushup_frame(80, timestamp=0.1))
        before = pushup_session._counter.state
        status = pushup_session.on_frame(Frame(timestamp=0.2))
        assert pushup_session._counter.state == before
        assert status.validity.landmarks_missing
        assert status.message == "Position yourself so your arms and body are fully visible"
        assert status.angles == {}

    def test_missing_landmarks_mid_rep(self, pushup_session, pushup_frame):
        pushup_session.on_frame(pushup_frame(170, timestamp=0.0))
        pushup_session.on_frame(pushup_frame(80, timestamp=0.1))
        pushup_session.on_frame(pushup_frame(170, timestamp=0.2, confidence=0.05))
        assert pushup_session.count == 0
        status = pushup_session.on_frame(pushup_frame(170, timestamp=0.3))
        assert status.rep_completed

    def test_degenerate_primary_angle_skips_counter(self, pushup_session, pushup_frame):
        frame = pushup_frame(170, timestamp=0.0)
        samples = dict(frame.samples)
        for side in ("left", "right"):
            samples[Joint(f"{side}_wrist")] = samples[Joint(f"{side}_elbow")]
        before = pushup_session._counter.state
        status = pushup_session.on_frame(Frame(timestamp=0.0, samples=samples))
        assert pushup_session._counter.state == before
        assert "primary" not in status.angles
        assert status.message == "Position yourself so your arms and body are fully visible"
