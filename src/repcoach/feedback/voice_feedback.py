import logging
import queue
import threading
import time
from typing import Callable, Optional

import pyttsx3

from ..exercise_analysis.session import SessionStatus

logger = logging.getLogger("VoiceFeedback")


class VoiceFeedback:
    """Spoken feedback for rep completions and persistent form violations."""

    def __init__(self, rate: int = 150, volume: float = 1.0, engine=None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize the voice feedback system.

        Args:
            rate: Speech rate (words per minute)
            volume: Speech volume (0.0 to 1.0)
            engine: Text-to-speech engine; a pyttsx3 engine is created when omitted
            clock: Time source used for the cooldown
        """
        self.engine = engine if engine is not None else pyttsx3.init()
        self.engine.setProperty('rate', rate)
        self.engine.setProperty('volume', volume)
        self._clock = clock

        self._tts_queue = queue.Queue()
        self._tts_thread = threading.Thread(target=self._tts_worker, daemon=True)
        self._tts_thread.start()

        self.last_feedback_time = float("-inf")
        self.feedback_cooldown = 4.0  # seconds between form corrections
        self._last_feedback_message = None
        self._last_violation = None
        self._violation_persist_count = 0
        self._violation_debounce_threshold = 3  # frames

    def generate_feedback(self, status: SessionStatus) -> Optional[str]:
        """
        Decide what, if anything, to say for the latest session status.

        Rep completions are always announced. A form violation is spoken only
        after it persists for a few frames, and not more often than the cooldown.
        """
        if not status.active:
            return None
        if status.rep_completed:
            self._reset_violation()
            return str(status.count)

        violation = status.validity.first_message
        if violation is None:
            self._reset_violation()
            self._last_feedback_message = None
            return None

        # Debounce logic: only speak if violation persists for threshold frames
        if violation == self._last_violation:
            self._violation_persist_count += 1
        else:
            self._violation_persist_count = 1
            self._last_violation = violation
        if self._violation_persist_count < self._violation_debounce_threshold:
            return None

        now = self._clock()
        if now - self.last_feedback_time < self.feedback_cooldown:
            return None
        if violation == self._last_feedback_message:
            return None
        self._last_feedback_message = violation
        self.last_feedback_time = now
        return violation

    def _reset_violation(self) -> None:
        self._violation_persist_count = 0
        self._last_violation = None

    def speak_async(self, message: str) -> None:
        """Queue the message to be spoken by the background TTS thread."""
        self._tts_queue.put(message)

    def _tts_worker(self):
        while True:
            msg = self._tts_queue.get()
            if msg is None:
                break  # Allow for clean shutdown
            try:
                self.engine.say(msg)
                self.engine.runAndWait()
            except RuntimeError as e:
                logger.warning(f"Speech failed: {e}")

    def close(self) -> None:
        self._tts_queue.put(None)
        self._tts_thread.join(timeout=1.0)
