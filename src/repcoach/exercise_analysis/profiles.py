"""
Exercise profiles: per-exercise configuration consumed by the form validator,
the rep counter and the session.

Each exercise is data. Adding an exercise means adding an entry to the profile
config, not a new analyzer class.
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .config_utils import load_profile_config
from .landmarks import BILATERAL_PARTS, Joint

HORIZONTAL = "horizontal"

_LANDMARK_VALUES = frozenset(joint.value for joint in Joint)

DEFAULT_MESSAGES = {
    "idle": "Press start to begin detection",
    "started": "Detection started.",
    "stopped": "Detection stopped. Total reps: {count}",
    "reset": "Counter reset.",
    "missing_landmarks": "Make sure your whole body is visible",
    "contracted": "Halfway there!",
    "rep_completed": "Rep #{count} completed!",
    "hold_contracted": "Return to the start position (Angle: {angle:.0f}°)",
    "hold_extended": "Ready - start the movement (Angle: {angle:.0f}°)",
    "invalid_form": "Fix form: {violation}",
}


class ProfileConfigError(ValueError):
    """Raised when an exercise profile is malformed or inconsistent."""


class RepPhase(Enum):
    EXTENDED = "extended"
    CONTRACTED = "contracted"


class MovementDirection(Enum):
    """Which way the primary angle moves when the body contracts."""
    DECREASING = "decreasing"  # e.g. pushup: elbow closes on the way down
    INCREASING = "increasing"  # e.g. situp: torso rises off the floor


def _check_joint_name(name: str, where: str) -> None:
    if name not in BILATERAL_PARTS and name not in _LANDMARK_VALUES:
        raise ProfileConfigError(f"{where}: undefined joint '{name}'")


@dataclass(frozen=True)
class AngleSpec:
    """
    Joint triple whose middle joint is the vertex.

    Names are either bilateral parts ("elbow"), resolved on each visible side,
    or explicit landmarks ("nose"). `first` may be HORIZONTAL, a virtual point
    on the floor line pointing away from the `away_from` joint.
    """
    first: str
    vertex: str
    last: str
    full_range: bool = False
    away_from: Optional[str] = None

    def __post_init__(self):
        if self.first == HORIZONTAL:
            if self.away_from is None:
                raise ProfileConfigError("Horizontal reference angle needs 'away_from'")
            _check_joint_name(self.away_from, "angle reference")
        else:
            _check_joint_name(self.first, "angle")
        _check_joint_name(self.vertex, "angle")
        _check_joint_name(self.last, "angle")

    @property
    def joint_names(self) -> Tuple[str, ...]:
        names = [self.vertex, self.last]
        names.insert(0, self.away_from if self.first == HORIZONTAL else self.first)
        return tuple(names)

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "AngleSpec":
        joints = cfg.get("joints")
        if not joints or len(joints) != 3:
            raise ProfileConfigError(f"Angle needs exactly three joints, got {joints}")
        return cls(joints[0], joints[1], joints[2],
                   full_range=bool(cfg.get("full_range", False)),
                   away_from=cfg.get("away_from"))


@dataclass(frozen=True)
class AngleRangeConstraint:
    """Angle over a joint triple must stay within [min_degrees, max_degrees]."""
    name: str
    angle: AngleSpec
    min_degrees: float
    max_degrees: float
    min_message: str
    max_message: str

    def __post_init__(self):
        if self.min_degrees >= self.max_degrees:
            raise ProfileConfigError(
                f"Constraint '{self.name}': min {self.min_degrees} must be below max {self.max_degrees}")

    @property
    def joint_names(self) -> Tuple[str, ...]:
        return self.angle.joint_names


@dataclass(frozen=True)
class DisplacementConstraint:
    """
    `joint` must sit beyond `reference` along `axis` by more than `min_distance`
    lengths of the `scale` segment (the torso by default). With image
    coordinates (y grows downward) a positive y displacement means the joint
    is above the reference.
    """
    name: str
    joint: str
    reference: str
    min_distance: float
    message: str
    axis: str = "y"
    scale: Tuple[str, str] = ("shoulder", "hip")

    def __post_init__(self):
        for name in (self.joint, self.reference) + tuple(self.scale):
            _check_joint_name(name, f"constraint '{self.name}'")
        if len(self.scale) != 2:
            raise ProfileConfigError(f"Constraint '{self.name}': scale needs exactly two joints")
        if self.axis not in ("x", "y"):
            raise ProfileConfigError(f"Constraint '{self.name}': axis must be 'x' or 'y'")

    @property
    def joint_names(self) -> Tuple[str, ...]:
        return (self.joint, self.reference) + tuple(self.scale)


@dataclass(frozen=True)
class AlignmentConstraint:
    """`joint` must lie within `tolerance` segment lengths of the line start-end."""
    name: str
    joint: str
    line_start: str
    line_end: str
    tolerance: float
    message: str

    def __post_init__(self):
        for name in (self.joint, self.line_start, self.line_end):
            _check_joint_name(name, f"constraint '{self.name}'")
        if self.tolerance <= 0:
            raise ProfileConfigError(f"Constraint '{self.name}': tolerance must be positive")

    @property
    def joint_names(self) -> Tuple[str, ...]:
        return (self.joint, self.line_start, self.line_end)


Constraint = Union[AngleRangeConstraint, DisplacementConstraint, AlignmentConstraint]


def _constraint_from_config(cfg: Mapping[str, Any]) -> Constraint:
    kind = cfg.get("type")
    name = cfg.get("name", kind)
    try:
        if kind == "angle_range":
            return AngleRangeConstraint(
                name=name,
                angle=AngleSpec.from_config(cfg),
                min_degrees=float(cfg["min"]),
                max_degrees=float(cfg["max"]),
                min_message=cfg.get("min_message") or cfg.get("message") or f"{name} below minimum",
                max_message=cfg.get("max_message") or cfg.get("message") or f"{name} above maximum",
            )
        if kind == "displacement":
            return DisplacementConstraint(
                name=name,
                joint=cfg["joint"],
                reference=cfg["reference"],
                min_distance=float(cfg["min_distance"]),
                message=cfg.get("message") or f"{name} too small",
                axis=cfg.get("axis", "y"),
                scale=tuple(cfg.get("scale", ("shoulder", "hip"))),
            )
        if kind == "alignment":
            start, end = cfg["line"]
            return AlignmentConstraint(
                name=name,
                joint=cfg["joint"],
                line_start=start,
                line_end=end,
                tolerance=float(cfg["tolerance"]),
                message=cfg.get("message") or f"{name} out of alignment",
            )
    except ProfileConfigError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise ProfileConfigError(f"Constraint '{name}' is malformed: {e}") from e
    raise ProfileConfigError(f"Unknown constraint type: {kind}")


@dataclass(frozen=True)
class ExerciseProfile:
    """Immutable description of how one exercise is validated and counted."""
    name: str
    primary_angle: AngleSpec
    direction: MovementDirection
    contract_threshold: float
    extend_threshold: float
    min_threshold_gap: float
    confidence_floor: float = 0.3
    required_joints: Tuple[Joint, ...] = ()
    bilateral_parts: Tuple[str, ...] = ()
    initial_phase: RepPhase = RepPhase.EXTENDED
    min_phase_duration: float = 0.0
    constraints: Tuple[Constraint, ...] = ()
    display_name: str = ""
    phase_labels: Mapping[str, str] = field(default_factory=dict)
    messages: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not 0.0 <= self.confidence_floor <= 1.0:
            raise ProfileConfigError(f"{self.name}: confidence floor must be in [0, 1]")
        for part in self.bilateral_parts:
            if part not in BILATERAL_PARTS:
                raise ProfileConfigError(f"{self.name}: '{part}' is not a bilateral body part")
        for threshold in (self.contract_threshold, self.extend_threshold):
            if not 0.0 <= threshold <= 360.0:
                raise ProfileConfigError(f"{self.name}: threshold {threshold} outside [0, 360]")
        if self.min_threshold_gap <= 0:
            raise ProfileConfigError(f"{self.name}: min_threshold_gap must be positive")
        if self.direction == MovementDirection.DECREASING:
            gap = self.extend_threshold - self.contract_threshold
        else:
            gap = self.contract_threshold - self.extend_threshold
        if gap < self.min_threshold_gap:
            raise ProfileConfigError(
                f"{self.name}: thresholds contract={self.contract_threshold}, extend={self.extend_threshold} "
                f"leave a gap of {gap} for a {self.direction.value} movement; need at least {self.min_threshold_gap}")
        if self.min_phase_duration < 0:
            raise ProfileConfigError(f"{self.name}: min_phase_duration cannot be negative")
        # Every joint the geometry reads has to pass the landmark gate first
        gated = set(self.bilateral_parts) | {j.value for j in self.required_joints}
        for source in (self.primary_angle,) + tuple(self.constraints):
            missing = [n for n in source.joint_names if n not in gated]
            if missing:
                raise ProfileConfigError(
                    f"{self.name}: joints {missing} are used but not listed as required")
        object.__setattr__(self, "phase_labels", MappingProxyType(dict(self.phase_labels)))
        object.__setattr__(self, "messages", MappingProxyType({**DEFAULT_MESSAGES, **self.messages}))

    def is_past_contract(self, angle: float) -> bool:
        if self.direction == MovementDirection.DECREASING:
            return angle < self.contract_threshold
        return angle > self.contract_threshold

    def is_past_extend(self, angle: float) -> bool:
        if self.direction == MovementDirection.DECREASING:
            return angle > self.extend_threshold
        return angle < self.extend_threshold

    def phase_label(self, phase: RepPhase) -> str:
        return self.phase_labels.get(phase.value, phase.value)

    @classmethod
    def from_config(cls, name: str, cfg: Mapping[str, Any]) -> "ExerciseProfile":
        try:
            required = tuple(Joint(j) for j in cfg.get("required_joints", []))
        except ValueError as e:
            raise ProfileConfigError(f"{name}: {e}") from e
        try:
            direction = MovementDirection(cfg["direction"])
            initial_phase = RepPhase(cfg.get("initial_phase", RepPhase.EXTENDED.value))
            return cls(
                name=name,
                display_name=cfg.get("display_name", name.title()),
                primary_angle=AngleSpec.from_config(cfg["primary_angle"]),
                direction=direction,
                contract_threshold=float(cfg["contract_threshold"]),
                extend_threshold=float(cfg["extend_threshold"]),
                min_threshold_gap=float(cfg["min_threshold_gap"]),
                confidence_floor=float(cfg.get("confidence_floor", 0.3)),
                required_joints=required,
                bilateral_parts=tuple(cfg.get("bilateral_parts", [])),
                initial_phase=initial_phase,
                min_phase_duration=float(cfg.get("min_phase_duration", 0.0)),
                constraints=tuple(_constraint_from_config(c) for c in cfg.get("constraints", [])),
                phase_labels=cfg.get("phase_labels", {}),
                messages=cfg.get("messages", {}),
            )
        except ProfileConfigError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise ProfileConfigError(f"Profile '{name}' is malformed: {e}") from e


def available_exercises(config_path: str = None) -> List[str]:
    return sorted(load_profile_config(config_path).get("exercises", {}))


def load_profiles(config_path: str = None) -> Dict[str, ExerciseProfile]:
    """Build and validate every profile in the config file."""
    exercises = load_profile_config(config_path).get("exercises", {})
    return {name: ExerciseProfile.from_config(name, cfg) for name, cfg in exercises.items()}


def get_profile(name: str, config_path: str = None) -> ExerciseProfile:
    exercises = load_profile_config(config_path).get("exercises", {})
    if name not in exercises:
        raise ProfileConfigError(
            f"Unsupported exercise type: {name} (available: {', '.join(sorted(exercises))})")
    return ExerciseProfile.from_config(name, exercises[name])
