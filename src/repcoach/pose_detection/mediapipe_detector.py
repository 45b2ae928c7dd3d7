import logging
from typing import Optional

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.tasks import python as mp_python
from mediapipe.tasks.python import vision

from ..exercise_analysis.landmarks import Frame
from .base_detector import BasePoseDetector  # Abstract base class

logger = logging.getLogger("PoseDetector")


class MediaPipePoseDetector(BasePoseDetector):
    """MediaPipe Pose Landmarker implementation of pose detection (single person, video mode)."""

    def __init__(self, model_path: str, min_detection_confidence: float = 0.5, min_tracking_confidence: float = 0.5):
        """
        Initialize the MediaPipe pose landmarker.

        Args:
            model_path: Path to a pose landmarker .task model asset
            min_detection_confidence: Minimum confidence for pose detection
            min_tracking_confidence: Minimum confidence for pose tracking
        """
        options = vision.PoseLandmarkerOptions(
            base_options=mp_python.BaseOptions(model_asset_path=model_path),
            running_mode=vision.RunningMode.VIDEO,
            num_poses=1,
            min_pose_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        self._landmarker = vision.PoseLandmarker.create_from_options(options)
        self._last_timestamp_ms = -1
        logger.info(f"MediaPipe pose landmarker loaded from {model_path}")

    def detect(self, frame: np.ndarray, timestamp_ms: float) -> Optional[Frame]:
        """
        Detect pose landmarks using MediaPipe.

        Args:
            frame: Input image as numpy array (BGR)
            timestamp_ms: Capture time in milliseconds

        Returns:
            Frame in normalized image coordinates, or None if no pose was found
        """
        # Video mode requires strictly increasing timestamps
        ts = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = ts

        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
        result = self._landmarker.detect_for_video(image, ts)

        if not result.pose_landmarks:
            return None
        return self.to_frame(result.pose_landmarks[0], ts)

    def close(self) -> None:
        self._landmarker.close()
