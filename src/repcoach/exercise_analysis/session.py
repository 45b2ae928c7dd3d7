"""
Exercise session: the per-frame facade the presentation layer drives.

Each frame is validated, its primary angle measured and fed to the rep
counter, and a SessionStatus is returned. The status is a plain value; the
caller decides what overlay, sound or haptic effect it triggers.
"""
from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Mapping, Optional

from .form_validator import FormValidator, ValidityVerdict
from .landmarks import Frame
from .profiles import ExerciseProfile, RepPhase, get_profile
from .rep_counter import RepCounter

# --- Logger Setup ---
logger = logging.getLogger("ExerciseSession")
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False
logger.setLevel(logging.INFO)


@dataclass(frozen=True)
class SessionStatus:
    """Latest analysis result for one exercise session."""
    exercise: str
    phase: RepPhase
    phase_label: str
    count: int
    validity: ValidityVerdict
    message: str
    angles: Mapping[str, float] = field(default_factory=dict)
    rep_completed: bool = False
    phase_changed: bool = False
    active: bool = False
    timestamp: Optional[float] = None

    @property
    def is_form_valid(self) -> bool:
        return self.validity.is_valid

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "exercise": self.exercise,
            "phase": self.phase.value,
            "phase_label": self.phase_label,
            "count": self.count,
            "is_form_valid": self.is_form_valid,
            "violations": [v.kind.value for v in self.validity.violations],
            "message": self.message,
            "angles": dict(self.angles),
            "rep_completed": self.rep_completed,
            "phase_changed": self.phase_changed,
            "active": self.active,
            "timestamp": self.timestamp,
        }


# --- Feedback Templates ---
class StatusMessages:
    """Formats the profile's message templates."""

    def __init__(self, profile: ExerciseProfile):
        self._templates = profile.messages

    def format(self, key: str, **values) -> str:
        try:
            return self._templates[key].format(**values)
        except (KeyError, IndexError, ValueError) as e:
            logger.warning(f"Bad message template '{key}': {e}")
            return self._templates.get(key, key)

    def for_frame(self, phase: RepPhase, count: int, verdict: ValidityVerdict,
                  angle: Optional[float], rep_completed: bool, phase_changed: bool) -> str:
        if verdict.landmarks_missing:
            return verdict.first_message
        if not verdict.is_valid:
            return self.format("invalid_form", violation=verdict.first_message)
        if rep_completed:
            return self.format("rep_completed", count=count)
        if phase_changed:
            return self.format("contracted", count=count)
        if angle is None:
            return self.format("missing_landmarks")
        key = "hold_contracted" if phase == RepPhase.CONTRACTED else "hold_extended"
        return self.format(key, angle=angle, count=count)


class ExerciseSession:
    """
    Runs one exercise profile over a stream of frames.

    Frames are processed one at a time by a single caller. Frames delivered
    while the session is stopped are ignored.
    """

    def __init__(self, profile: ExerciseProfile):
        self.profile = profile
        self._validator = FormValidator(profile)
        self._counter = RepCounter(profile)
        self._messages = StatusMessages(profile)
        self._active = False
        self._status = self._make_status(self._messages.format("idle"))

    @classmethod
    def for_exercise(cls, name: str, config_path: str = None) -> "ExerciseSession":
        return cls(get_profile(name, config_path))

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def count(self) -> int:
        return self._counter.count

    def _make_status(self, message: str, validity: ValidityVerdict = None, **extra) -> SessionStatus:
        phase = self._counter.phase
        return SessionStatus(
            exercise=self.profile.name,
            phase=phase,
            phase_label=self.profile.phase_label(phase),
            count=self._counter.count,
            validity=validity if validity is not None else ValidityVerdict(False),
            message=message,
            active=self._active,
            **extra,
        )

    def start(self) -> SessionStatus:
        """Start (or restart) counting from zero."""
        self._counter.reset()
        self._active = True
        self._status = self._make_status(self._messages.format("started"))
        logger.info(f"[SESSION] {self.profile.name} started")
        return self._status

    def stop(self) -> SessionStatus:
        self._active = False
        self._status = self._make_status(self._messages.format("stopped", count=self._counter.count))
        logger.info(f"[SESSION] {self.profile.name} stopped after {self._counter.count} reps")
        return self._status

    def reset(self) -> SessionStatus:
        self._counter.reset()
        self._status = self._make_status(self._messages.format("reset"))
        return self._status

    def on_frame(self, frame: Frame) -> SessionStatus:
        """
        Analyze one frame and return the updated status.

        Never raises on frame content: missing joints and degenerate geometry
        surface in the returned status.
        """
        if not self._active:
            return self._status

        verdict = self._validator.validate(frame)
        angles: Dict[str, float] = {}
        angle = None
        update = None
        if not verdict.landmarks_missing:
            angles.update(self._validator.constraint_angles(frame))
            angle = self._validator.primary_angle(frame)
            if angle is None:
                logger.warning(f"[SESSION] {self.profile.name}: degenerate primary angle at t={frame.timestamp}, frame ignored")
            else:
                angles["primary"] = angle
                update = self._counter.update(angle, verdict.is_valid, frame.timestamp)

        rep_completed = bool(update and update.rep_completed)
        phase_changed = bool(update and update.phase_changed)
        message = self._messages.for_frame(
            self._counter.phase, self._counter.count, verdict, angle, rep_completed, phase_changed)
        self._status = self._make_status(
            message,
            validity=verdict,
            angles=angles,
            rep_completed=rep_completed,
            phase_changed=phase_changed,
            timestamp=frame.timestamp,
        )
        return self._status
