"""
Wrist radial/ulnar deviation.

Positive signed angles are radial deviation (toward the thumb), negative
angles ulnar deviation (toward the little finger).
"""

import logging
from typing import Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, DeviationConfig
from .geometry import add, angle_between_vectors, as_vector, cross, scale, subtract
from .landmarks import HAND_LANDMARKS, POSE_LANDMARKS, get_landmark, visibility_of
from .models import HandType, MotionFrame, WristDeviationResult
from .utils import round2
from .wrist import determine_hand_type

logger = logging.getLogger(__name__)


def _hand_axis_points(pose_landmarks: Sequence, hand_landmarks: Sequence, side: str, config: DeviationConfig):
    """Index/little finger reference points, from the hand model when it is visible enough."""
    index_mcp = get_landmark(hand_landmarks, HAND_LANDMARKS['index_mcp'])
    pinky_mcp = get_landmark(hand_landmarks, HAND_LANDMARKS['pinky_mcp'])
    if (index_mcp is not None and pinky_mcp is not None
            and visibility_of(index_mcp, default=0.0) > config.min_hand_visibility
            and visibility_of(pinky_mcp, default=0.0) > config.min_hand_visibility):
        return index_mcp, pinky_mcp

    index_tip = get_landmark(pose_landmarks, POSE_LANDMARKS[f'{side}_index'])
    pinky_tip = get_landmark(pose_landmarks, POSE_LANDMARKS[f'{side}_pinky'])
    if index_tip is None or pinky_tip is None:
        return None
    return index_tip, pinky_tip


def calculate_wrist_deviation(
    pose_landmarks: Sequence,
    hand_landmarks: Sequence,
    is_left_hand: bool,
    config: DeviationConfig = DEFAULT_CONFIG.deviation,
) -> float:
    """Signed deviation angle in degrees, clamped to [-max_ulnar, +max_radial]; 0 when unmeasurable."""
    side = 'left' if is_left_hand else 'right'
    elbow = get_landmark(pose_landmarks, POSE_LANDMARKS[f'{side}_elbow'])
    wrist = get_landmark(pose_landmarks, POSE_LANDMARKS[f'{side}_wrist'])
    if elbow is None or wrist is None:
        logger.debug("Missing %s elbow or wrist landmarks for deviation", side)
        return 0.0

    points = _hand_axis_points(pose_landmarks, hand_landmarks, side, config)
    if points is None:
        logger.debug("Missing %s finger landmarks for deviation", side)
        return 0.0

    forearm = subtract(wrist, elbow)
    hand_midpoint = scale(add(*points), 0.5)
    hand_axis = hand_midpoint - as_vector(wrist)

    angle = angle_between_vectors(forearm, hand_axis)
    cross_z = float(cross(forearm, hand_axis)[2])
    sign = -cross_z if is_left_hand else cross_z
    signed_angle = angle if sign >= 0 else -angle
    return round2(max(-config.max_ulnar, min(config.max_radial, signed_angle)))


def split_deviation(signed_angle: float) -> Tuple[float, float]:
    """(radial, ulnar) magnitudes of a signed deviation; at most one is non-zero."""
    if signed_angle > 0:
        return signed_angle, 0.0
    if signed_angle < 0:
        return 0.0, -signed_angle
    return 0.0, 0.0


def check_reproducibility(values: Sequence[float], tolerance: float) -> bool:
    """True when every value lies within `tolerance` of the set's mean."""
    if len(values) < 2:
        return True
    mean = sum(values) / len(values)
    return all(abs(v - mean) <= tolerance for v in values)


def _frame_confidence(hand_landmarks: Sequence) -> Optional[float]:
    index_mcp = get_landmark(hand_landmarks, HAND_LANDMARKS['index_mcp'])
    pinky_mcp = get_landmark(hand_landmarks, HAND_LANDMARKS['pinky_mcp'])
    if index_mcp is None or pinky_mcp is None:
        return None
    return (visibility_of(index_mcp, default=0.0) + visibility_of(pinky_mcp, default=0.0)) / 2


def process_wrist_deviation_data(
    frames: Sequence[MotionFrame],
    hand_type: Optional[HandType] = None,
    config: DeviationConfig = DEFAULT_CONFIG.deviation,
) -> WristDeviationResult:
    """
    Maximum radial and ulnar deviation over a recording.

    Only frames whose index/little MCP visibility averages above the threshold
    are used. The result is reproducible when the radial and the ulnar
    readings each stay within the tolerance of their own mean.
    """
    if hand_type is None or hand_type == HandType.UNKNOWN:
        hand_type = HandType.RIGHT
        for frame in frames:
            detected = determine_hand_type(frame.hand_landmarks, frame.pose_landmarks)
            if detected != HandType.UNKNOWN:
                hand_type = detected
                break
    is_left_hand = hand_type == HandType.LEFT

    deviations = []
    confidences = []
    for frame in frames:
        confidence = _frame_confidence(frame.hand_landmarks)
        if confidence is None or confidence <= config.min_hand_visibility:
            continue
        deviations.append(calculate_wrist_deviation(frame.pose_landmarks, frame.hand_landmarks, is_left_hand, config))
        confidences.append(confidence)

    if not deviations:
        logger.info("No frames with sufficient hand visibility for deviation")
        return WristDeviationResult(hand_type=hand_type)

    splits = [split_deviation(d) for d in deviations]
    radial = [r for r, _ in splits if r > 0]
    ulnar = [u for _, u in splits if u > 0]
    max_radial = max(radial, default=0.0)
    max_ulnar = max(ulnar, default=0.0)
    tolerance = config.reproducibility_tolerance

    return WristDeviationResult(
        radial_deviation=max_radial,
        ulnar_deviation=max_ulnar,
        max_radial_deviation=max_radial,
        max_ulnar_deviation=max_ulnar,
        total_deviation_rom=max_radial + max_ulnar,
        reproducibility_valid=check_reproducibility(radial, tolerance) and check_reproducibility(ulnar, tolerance),
        confidence=sum(confidences) / len(confidences),
        frame_count=len(deviations),
        hand_type=hand_type,
    )
