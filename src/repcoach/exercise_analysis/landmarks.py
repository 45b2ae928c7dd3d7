"""
landmarks.py - Joint identifiers and the per-instant landmark frame.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple


class Joint(Enum):
    """Pose landmarks, in MediaPipe index order."""
    NOSE = "nose"
    LEFT_EYE_INNER = "left_eye_inner"
    LEFT_EYE = "left_eye"
    LEFT_EYE_OUTER = "left_eye_outer"
    RIGHT_EYE_INNER = "right_eye_inner"
    RIGHT_EYE = "right_eye"
    RIGHT_EYE_OUTER = "right_eye_outer"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    MOUTH_LEFT = "mouth_left"
    MOUTH_RIGHT = "mouth_right"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_WRIST = "right_wrist"
    LEFT_PINKY = "left_pinky"
    RIGHT_PINKY = "right_pinky"
    LEFT_INDEX = "left_index"
    RIGHT_INDEX = "right_index"
    LEFT_THUMB = "left_thumb"
    RIGHT_THUMB = "right_thumb"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_ANKLE = "left_ankle"
    RIGHT_ANKLE = "right_ankle"
    LEFT_HEEL = "left_heel"
    RIGHT_HEEL = "right_heel"
    LEFT_FOOT_INDEX = "left_foot_index"
    RIGHT_FOOT_INDEX = "right_foot_index"


class Side(Enum):
    LEFT = "left"
    RIGHT = "right"


LANDMARK_NAMES: List[str] = [joint.value for joint in Joint]

# Part names that exist on both sides of the body, e.g. "elbow" -> left_elbow/right_elbow
BILATERAL_PARTS = frozenset(
    name.split("_", 1)[1] for name in LANDMARK_NAMES if name.startswith("left_")
)


def bilateral_joint(part: str, side: Side) -> Joint:
    """Resolve a bilateral part name ("knee") to the joint on the given side."""
    return Joint(f"{side.value}_{part}")


@dataclass(frozen=True)
class LandmarkSample:
    """A single joint position with the detector's confidence in it."""
    x: float
    y: float
    confidence: float

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Landmark confidence must be in [0, 1], got {self.confidence}")
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise ValueError(f"Landmark position must be finite, got ({self.x}, {self.y})")

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Frame:
    """
    One time-stamped snapshot of the joints visible in a camera frame.

    The mapping is partial: a joint the detector did not report is simply absent.
    A frame without a timestamp carries no clock; duration checks are skipped.
    """
    timestamp: Optional[float] = None
    samples: Mapping[Joint, LandmarkSample] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the mapping so a frame cannot be altered after creation
        object.__setattr__(self, "samples", MappingProxyType(dict(self.samples)))

    def get(self, joint: Joint) -> Optional[LandmarkSample]:
        return self.samples.get(joint)

    def __contains__(self, joint: Joint) -> bool:
        return joint in self.samples

    def is_confident(self, joint: Joint, min_confidence: float) -> bool:
        sample = self.samples.get(joint)
        return sample is not None and sample.confidence >= min_confidence

    def position(self, joint: Joint) -> Tuple[float, float]:
        return self.samples[joint].position

    @classmethod
    def from_landmark_dict(
        cls,
        landmarks: Mapping[str, Sequence[float]],
        timestamp: Optional[float] = None,
    ) -> "Frame":
        """
        Build a frame from the detector layout {name: [x, y, z, visibility]}.

        Args:
            landmarks: Landmark coordinates keyed by name. A value may also be
                [x, y, visibility] or [x, y] (confidence 1.0).
            timestamp: Capture time of the frame in seconds, or None

        Returns:
            Frame holding the recognised joints. Unknown names and entries
            without two finite coordinates are skipped.
        """
        samples: Dict[Joint, LandmarkSample] = {}
        for name, coords in landmarks.items():
            try:
                joint = Joint(name)
            except ValueError:
                continue
            if len(coords) < 2:
                continue
            x, y = float(coords[0]), float(coords[1])
            if not (math.isfinite(x) and math.isfinite(y)):
                continue
            if len(coords) >= 4:
                confidence = coords[3]
            elif len(coords) == 3:
                confidence = coords[2]
            else:
                confidence = 1.0
            confidence = float(confidence)
            confidence = min(1.0, max(0.0, confidence)) if math.isfinite(confidence) else 0.0
            samples[joint] = LandmarkSample(x, y, confidence)
        return cls(timestamp=timestamp, samples=samples)
