from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np

from ..exercise_analysis.landmarks import LANDMARK_NAMES, Frame


class BasePoseDetector(ABC):
    """Base class for pose detection implementations."""

    @abstractmethod
    def detect(self, frame: np.ndarray, timestamp_ms: float) -> Optional[Frame]:
        """
        Detect pose landmarks in the given image.

        Args:
            frame: Input image as numpy array (BGR)
            timestamp_ms: Capture time of the image in milliseconds

        Returns:
            Landmark Frame, or None if no pose was detected
        """
        pass

    def close(self) -> None:
        """Release detector resources."""

    @staticmethod
    def to_frame(landmarks: Sequence, timestamp_ms: float) -> Frame:
        """
        Convert detector landmarks to a Frame.

        Args:
            landmarks: Landmarks in MediaPipe index order, each with x, y and
                visibility attributes (normalized image coordinates)
            timestamp_ms: Capture time in milliseconds

        Returns:
            Frame with positions in normalized image space
        """
        coords = {}
        for name, landmark in zip(LANDMARK_NAMES, landmarks):
            visibility = getattr(landmark, "visibility", None)
            coords[name] = [landmark.x, landmark.y, 0.0, 1.0 if visibility is None else visibility]
        return Frame.from_landmark_dict(coords, timestamp=timestamp_ms / 1000.0)
