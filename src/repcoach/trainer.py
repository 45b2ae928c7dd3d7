import logging
import time
from typing import Dict, Optional

import cv2
import numpy as np

from .exercise_analysis.landmarks import Frame
from .exercise_analysis.session import ExerciseSession, SessionStatus
from .pose_detection.base_detector import BasePoseDetector

logger = logging.getLogger("Trainer")

WINDOW_NAME = "Rep Coach"

# Skeleton connections drawn on the overlay
SKELETON = [
    ("left_shoulder", "right_shoulder"),
    ("left_shoulder", "left_elbow"), ("left_elbow", "left_wrist"),
    ("right_shoulder", "right_elbow"), ("right_elbow", "right_wrist"),
    ("left_shoulder", "left_hip"), ("right_shoulder", "right_hip"),
    ("left_hip", "right_hip"),
    ("left_hip", "left_knee"), ("left_knee", "left_ankle"),
    ("right_hip", "right_knee"), ("right_knee", "right_ankle"),
]

GREEN = (0, 255, 0)
RED = (0, 0, 255)


class RepCoachTrainer:
    """Capture loop: camera or video frames in, pose detection, session analysis, overlay out."""

    def __init__(self, session: ExerciseSession, pose_detector: BasePoseDetector,
                 voice_feedback=None, min_frame_interval: float = 0.1, show: bool = True):
        """
        Initialize the trainer.

        Args:
            session: Exercise session to drive
            pose_detector: Source of landmark frames
            voice_feedback: Optional VoiceFeedback for spoken cues
            min_frame_interval: Frames arriving sooner than this (seconds) after
                the last analyzed frame are dropped
            show: Whether to open an OpenCV window
        """
        self.session = session
        self.pose_detector = pose_detector
        self.voice_feedback = voice_feedback
        self.min_frame_interval = min_frame_interval
        self.show = show

        self.cap = None
        self.is_running = False
        self._last_processed_at = None

    def start(self, camera_id: int = 0) -> None:
        """Run the trainer on a live camera until 'q' is pressed."""
        self.cap = cv2.VideoCapture(camera_id)
        if not self.cap.isOpened():
            raise RuntimeError("Failed to open camera")
        self._run(clock=lambda: time.monotonic())

    def run_video(self, video_path: str) -> int:
        """Analyze a video file; frame times come from the file, not the wall clock."""
        self.cap = cv2.VideoCapture(video_path)
        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open video: {video_path}")
        frames = self._run(clock=lambda: self.cap.get(cv2.CAP_PROP_POS_MSEC) / 1000.0)
        logger.info(f"Video analysis complete. Processed {frames} frames.")
        return frames

    def _run(self, clock) -> int:
        self.session.start()
        self.is_running = True
        frame_count = 0
        try:
            while self.is_running:
                ret, image = self.cap.read()
                if not ret:
                    break
                frame_count += 1
                result = self.process_frame(image, clock())
                if result is None:
                    continue
                self._display_results(image, result)
                if self.show and cv2.waitKey(1) & 0xFF == ord('q'):
                    break
        except KeyboardInterrupt:
            logger.info("KeyboardInterrupt received. Exiting gracefully...")
        finally:
            self.stop()
        return frame_count

    def stop(self) -> None:
        """Stop the trainer and release resources."""
        self.is_running = False
        status = self.session.stop()
        logger.info(status.message)
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        if self.show:
            cv2.destroyAllWindows()

    def process_frame(self, image: np.ndarray, timestamp: float) -> Optional[Dict]:
        """
        Process a single image.

        Args:
            image: Input BGR image
            timestamp: Capture time in seconds

        Returns:
            Dictionary with the landmarks and session status, or None if the
            image was dropped by the frame rate limit
        """
        if (self._last_processed_at is not None
                and timestamp - self._last_processed_at < self.min_frame_interval):
            return None
        self._last_processed_at = timestamp

        landmarks = self.pose_detector.detect(image, timestamp * 1000.0)
        if landmarks is None:
            return {"landmarks": None, "status": self.session.status, "error": "No pose detected"}

        status = self.session.on_frame(landmarks)
        feedback = None
        if self.voice_feedback is not None:
            feedback = self.voice_feedback.generate_feedback(status)
            if feedback:
                self.voice_feedback.speak_async(feedback)
        return {"landmarks": landmarks, "status": status, "feedback": feedback}

    def _display_results(self, image: np.ndarray, result: Dict) -> None:
        draw_overlay(image, result.get("landmarks"), result["status"], result.get("error"))
        if self.show:
            cv2.imshow(WINDOW_NAME, image)


def draw_overlay(image: np.ndarray, landmarks: Optional[Frame], status: SessionStatus,
                 error: Optional[str] = None) -> np.ndarray:
    """Draw skeleton, count, phase, form verdict and angles onto the image in place."""
    height, width = image.shape[:2]
    color = GREEN if status.is_form_valid else RED

    if landmarks is not None:
        points = {}
        for joint, sample in landmarks.samples.items():
            points[joint.value] = (int(sample.x * width), int(sample.y * height))
            cv2.circle(image, points[joint.value], 4, color, -1)
        for a, b in SKELETON:
            if a in points and b in points:
                cv2.line(image, points[a], points[b], color, 2)

    lines = [
        (f"{status.exercise.title()}s: {status.count}", GREEN),
        (f"Phase: {status.phase_label}", GREEN),
        (error or status.message, RED if error else color),
    ]
    for name, value in status.angles.items():
        lines.append((f"{name}: {value:.0f} deg", (255, 255, 0)))
    for idx, (text, text_color) in enumerate(lines):
        # Hershey fonts have no degree sign
        text = text.replace("°", " deg")
        cv2.putText(image, text, (10, 30 + 30 * idx), cv2.FONT_HERSHEY_SIMPLEX, 0.6, text_color, 2)
    return image
