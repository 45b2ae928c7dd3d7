"""
Form validation: decides per frame whether the body configuration satisfies
an exercise profile's structural constraints.
"""
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Dict, Optional, Sequence, Tuple

from .landmarks import BILATERAL_PARTS, Frame, Joint, Side, bilateral_joint
from .pose_utils import (
    AngleMeasurement,
    angle_at,
    calculate_length,
    horizontal_reference,
    mean_angle,
    point_line_distance,
)
from .profiles import (
    HORIZONTAL,
    AlignmentConstraint,
    AngleRangeConstraint,
    AngleSpec,
    DisplacementConstraint,
    ExerciseProfile,
)

logger = logging.getLogger("FormValidator")

# Sides are tried in this order; a profile without bilateral parts is measured once
_SIDES = (Side.LEFT, Side.RIGHT)


class ViolationKind(Enum):
    MISSING_OR_LOW_CONFIDENCE_LANDMARK = "missing_or_low_confidence_landmark"
    ANGLE_BELOW_RANGE = "angle_below_range"
    ANGLE_ABOVE_RANGE = "angle_above_range"
    INSUFFICIENT_DISPLACEMENT = "insufficient_displacement"
    OUT_OF_ALIGNMENT = "out_of_alignment"


@dataclass(frozen=True)
class Violation:
    kind: ViolationKind
    constraint: str
    message: str


@dataclass(frozen=True)
class ValidityVerdict:
    """Result of validating one frame. Recomputed every frame, never stored."""
    is_valid: bool
    violations: Tuple[Violation, ...] = ()

    @property
    def kinds(self) -> Tuple[ViolationKind, ...]:
        return tuple(v.kind for v in self.violations)

    @property
    def first_message(self) -> Optional[str]:
        return self.violations[0].message if self.violations else None

    @property
    def landmarks_missing(self) -> bool:
        return ViolationKind.MISSING_OR_LOW_CONFIDENCE_LANDMARK in self.kinds


def _resolve(name: str, side: Optional[Side]) -> Joint:
    if name in BILATERAL_PARTS:
        return bilateral_joint(name, side)
    return Joint(name)


def visible_sides(frame: Frame, profile: ExerciseProfile) -> Tuple[Optional[Side], ...]:
    """
    Sides on which every bilateral part of the profile clears the confidence floor.

    Returns (None,) for a profile without bilateral parts, and () when no side
    is usable.
    """
    if not profile.bilateral_parts:
        return (None,)
    return tuple(
        side for side in _SIDES
        if all(frame.is_confident(bilateral_joint(part, side), profile.confidence_floor)
               for part in profile.bilateral_parts)
    )


def measure_angle(frame: Frame, spec: AngleSpec, sides: Sequence[Optional[Side]]) -> Tuple[AngleMeasurement, ...]:
    """Measure an angle spec on each given side."""
    measurements = []
    for side in sides:
        vertex = frame.position(_resolve(spec.vertex, side))
        last = frame.position(_resolve(spec.last, side))
        if spec.first == HORIZONTAL:
            first = horizontal_reference(vertex, frame.position(_resolve(spec.away_from, side)))
        else:
            first = frame.position(_resolve(spec.first, side))
        measurements.append(angle_at(first, vertex, last, spec.full_range))
    return tuple(measurements)


def _segment_length(frame: Frame, start: str, end: str, side: Optional[Side]) -> float:
    return calculate_length(frame.position(_resolve(start, side)), frame.position(_resolve(end, side)))


def _check_angle_range(frame, constraint: AngleRangeConstraint, sides) -> Optional[Violation]:
    angle = mean_angle(measure_angle(frame, constraint.angle, sides))
    if angle is None:
        logger.debug(f"[FORM] {constraint.name}: degenerate geometry")
        return Violation(ViolationKind.ANGLE_BELOW_RANGE, constraint.name, constraint.min_message)
    if angle < constraint.min_degrees:
        return Violation(ViolationKind.ANGLE_BELOW_RANGE, constraint.name, constraint.min_message)
    if angle > constraint.max_degrees:
        return Violation(ViolationKind.ANGLE_ABOVE_RANGE, constraint.name, constraint.max_message)
    return None


def _check_displacement(frame, constraint: DisplacementConstraint, sides) -> Optional[Violation]:
    axis = 0 if constraint.axis == "x" else 1
    displacements = []
    start, end = constraint.scale
    for side in sides:
        # Scale segment makes the distance independent of image resolution
        scale = _segment_length(frame, start, end, side)
        if scale <= 0:
            continue
        joint = frame.position(_resolve(constraint.joint, side))
        reference = frame.position(_resolve(constraint.reference, side))
        displacements.append((reference[axis] - joint[axis]) / scale)
    if not displacements:
        return Violation(ViolationKind.INSUFFICIENT_DISPLACEMENT, constraint.name, constraint.message)
    displacement = sum(displacements) / len(displacements)
    if displacement <= constraint.min_distance:
        return Violation(ViolationKind.INSUFFICIENT_DISPLACEMENT, constraint.name, constraint.message)
    return None


def _check_alignment(frame, constraint: AlignmentConstraint, sides) -> Optional[Violation]:
    offsets = []
    for side in sides:
        length = _segment_length(frame, constraint.line_start, constraint.line_end, side)
        if length <= 0:
            continue
        distance = point_line_distance(
            frame.position(_resolve(constraint.joint, side)),
            frame.position(_resolve(constraint.line_start, side)),
            frame.position(_resolve(constraint.line_end, side)),
        )
        offsets.append(distance / length)
    if not offsets or sum(offsets) / len(offsets) > constraint.tolerance:
        return Violation(ViolationKind.OUT_OF_ALIGNMENT, constraint.name, constraint.message)
    return None


_CHECKS = {
    AngleRangeConstraint: _check_angle_range,
    DisplacementConstraint: _check_displacement,
    AlignmentConstraint: _check_alignment,
}


def validate(frame: Frame, profile: ExerciseProfile) -> ValidityVerdict:
    """
    Validate a frame against a profile.

    Missing or low-confidence landmarks short-circuit to a single
    MISSING_OR_LOW_CONFIDENCE_LANDMARK violation; otherwise every structural
    constraint is evaluated and each failure is reported in profile order.
    """
    sides = visible_sides(frame, profile)
    required_ok = all(frame.is_confident(j, profile.confidence_floor) for j in profile.required_joints)
    if not sides or not required_ok:
        return ValidityVerdict(False, (Violation(
            ViolationKind.MISSING_OR_LOW_CONFIDENCE_LANDMARK,
            "landmarks",
            profile.messages["missing_landmarks"],
        ),))

    violations = []
    for constraint in profile.constraints:
        violation = _CHECKS[type(constraint)](frame, constraint, sides)
        if violation is not None:
            violations.append(violation)
    return ValidityVerdict(not violations, tuple(violations))


class FormValidator:
    """Validator bound to one exercise profile."""

    def __init__(self, profile: ExerciseProfile):
        self.profile = profile

    def validate(self, frame: Frame) -> ValidityVerdict:
        verdict = validate(frame, self.profile)
        if not verdict.is_valid:
            logger.debug(f"[FORM] {self.profile.name} violations: {[v.constraint for v in verdict.violations]}")
        return verdict

    def visible_sides(self, frame: Frame) -> Tuple[Optional[Side], ...]:
        return visible_sides(frame, self.profile)

    def primary_angle(self, frame: Frame) -> Optional[float]:
        """
        Primary movement angle averaged over the visible sides, or None when
        it cannot be trusted (no usable side or only degenerate geometry).
        """
        sides = self.visible_sides(frame)
        if not sides:
            return None
        return mean_angle(measure_angle(frame, self.profile.primary_angle, sides))

    def constraint_angles(self, frame: Frame) -> Dict[str, float]:
        """Secondary angle readings keyed by constraint name, for overlays."""
        sides = self.visible_sides(frame)
        if not sides:
            return {}
        readings = {}
        for constraint in self.profile.constraints:
            if isinstance(constraint, AngleRangeConstraint):
                angle = mean_angle(measure_angle(frame, constraint.angle, sides))
                if angle is not None:
                    readings[constraint.name] = angle
        return readings
