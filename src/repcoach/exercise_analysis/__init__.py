"""
Exercise analysis package for form validation and repetition counting.
"""

from .landmarks import Frame, Joint, LandmarkSample, Side
from .pose_utils import AngleMeasurement, angle_at
from .profiles import (
    ExerciseProfile,
    MovementDirection,
    ProfileConfigError,
    RepPhase,
    available_exercises,
    get_profile,
)
from .form_validator import FormValidator, ValidityVerdict, Violation, ViolationKind, validate
from .rep_counter import RepCounter, RepCounterState
from .session import ExerciseSession, SessionStatus

__all__ = [
    'Frame',
    'Joint',
    'LandmarkSample',
    'Side',
    'AngleMeasurement',
    'angle_at',
    'ExerciseProfile',
    'MovementDirection',
    'ProfileConfigError',
    'RepPhase',
    'available_exercises',
    'get_profile',
    'FormValidator',
    'ValidityVerdict',
    'Violation',
    'ViolationKind',
    'validate',
    'RepCounter',
    'RepCounterState',
    'ExerciseSession',
    'SessionStatus',
]
