"""
Hysteresis repetition counter.

Two phases, EXTENDED and CONTRACTED, separated by a dead zone between the
profile's contract and extend thresholds. A repetition is counted only on the
CONTRACTED -> EXTENDED transition, and no transition happens on a tick whose
form is invalid.
"""
from dataclasses import dataclass, replace
import logging
from typing import Optional

from .profiles import ExerciseProfile, RepPhase

logger = logging.getLogger("RepCounter")


@dataclass
class RepCounterState:
    phase: RepPhase
    count: int = 0
    last_angle: Optional[float] = None
    phase_started_at: Optional[float] = None


@dataclass(frozen=True)
class RepUpdate:
    """Outcome of one counter tick."""
    state: RepCounterState
    rep_completed: bool = False
    phase_changed: bool = False


class RepCounter:
    def __init__(self, profile: ExerciseProfile):
        self.profile = profile
        self._state = RepCounterState(phase=profile.initial_phase)

    @property
    def state(self) -> RepCounterState:
        return replace(self._state)

    @property
    def count(self) -> int:
        return self._state.count

    @property
    def phase(self) -> RepPhase:
        return self._state.phase

    def reset(self) -> None:
        self._state = RepCounterState(phase=self.profile.initial_phase)
        logger.debug(f"[REP] {self.profile.name} counter reset")

    def _phase_too_short(self, timestamp: Optional[float]) -> bool:
        started = self._state.phase_started_at
        # A clock that has not advanced since the phase began cannot time it
        if timestamp is None or started is None or timestamp <= started:
            return False
        return timestamp - started < self.profile.min_phase_duration

    def update(self, angle: float, form_valid: bool, timestamp: Optional[float] = None) -> RepUpdate:
        """
        Feed one (angle, form validity) observation.

        Args:
            angle: Primary movement angle in degrees
            form_valid: Whether the frame's form is valid; False freezes the phase
            timestamp: Frame time in seconds, used for the minimum phase duration

        Returns:
            RepUpdate with a snapshot of the state after this tick
        """
        state = self._state
        state.last_angle = angle
        if state.phase_started_at is None and timestamp is not None:
            state.phase_started_at = timestamp

        if not form_valid:
            return RepUpdate(self.state)

        new_phase = None
        if state.phase == RepPhase.EXTENDED and self.profile.is_past_contract(angle):
            new_phase = RepPhase.CONTRACTED
        elif state.phase == RepPhase.CONTRACTED and self.profile.is_past_extend(angle):
            new_phase = RepPhase.EXTENDED
        if new_phase is None:
            return RepUpdate(self.state)

        if self._phase_too_short(timestamp):
            logger.debug(f"[REP] {self.profile.name}: {state.phase.value} -> {new_phase.value} held back, phase too short")
            return RepUpdate(self.state)

        rep_completed = new_phase == RepPhase.EXTENDED
        if rep_completed:
            state.count += 1
            logger.info(f"[REP] {self.profile.name} rep #{state.count} completed (angle={angle:.1f})")
        else:
            logger.debug(f"[REP] {self.profile.name} contracted (angle={angle:.1f})")
        state.phase = new_phase
        state.phase_started_at = timestamp
        return RepUpdate(self.state, rep_completed=rep_completed, phase_changed=True)
