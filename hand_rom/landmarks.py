"""Landmark index maps for the 21-point hand model and the 33-point body pose model."""

from typing import Dict, Optional, Sequence

HAND_LANDMARK_COUNT = 21
MIN_POSE_LANDMARKS = 17  # everything up to the wrists must be present

HAND_LANDMARKS: Dict[str, int] = {
    'wrist': 0,
    'thumb_cmc': 1,
    'thumb_mcp': 2,
    'thumb_ip': 3,
    'thumb_tip': 4,
    'index_mcp': 5,
    'index_pip': 6,
    'index_dip': 7,
    'index_tip': 8,
    'middle_mcp': 9,
    'middle_pip': 10,
    'middle_dip': 11,
    'middle_tip': 12,
    'ring_mcp': 13,
    'ring_pip': 14,
    'ring_dip': 15,
    'ring_tip': 16,
    'pinky_mcp': 17,
    'pinky_pip': 18,
    'pinky_dip': 19,
    'pinky_tip': 20,
}

POSE_LANDMARKS: Dict[str, int] = {
    'left_shoulder': 11,
    'right_shoulder': 12,
    'left_elbow': 13,
    'right_elbow': 14,
    'left_wrist': 15,
    'right_wrist': 16,
    'left_pinky': 17,
    'right_pinky': 18,
    'left_index': 19,
    'right_index': 20,
    'left_thumb': 21,
    'right_thumb': 22,
    'left_hip': 23,
    'right_hip': 24,
}


def get_landmark(landmarks: Optional[Sequence], index: int):
    """Return landmarks[index] or None when the list is absent or too short."""
    if not landmarks or index < 0 or index >= len(landmarks):
        return None
    return landmarks[index]


def visibility_of(landmark, default: float = 1.0) -> float:
    """Visibility score of a landmark, `default` when the tracker did not report one."""
    if landmark is None:
        return 0.0
    value = getattr(landmark, "visibility", None)
    if value is None and isinstance(landmark, dict):
        value = landmark.get("visibility")
    return default if value is None else float(value)


def has_hand(landmarks: Optional[Sequence]) -> bool:
    return bool(landmarks) and len(landmarks) >= HAND_LANDMARK_COUNT


def has_pose(landmarks: Optional[Sequence]) -> bool:
    return bool(landmarks) and len(landmarks) >= MIN_POSE_LANDMARKS
