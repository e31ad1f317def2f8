"""
Wrist flexion/extension from elbow-referenced forearm and hand vectors.

The elbow/wrist/shoulder pose landmarks used for a recording are pinned in a
caller-owned `SessionLock`, so one recording never switches arms between
frames. Create one lock per recording and never share it between patients.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np
from pydantic import BaseModel

from .config import DEFAULT_CONFIG, WristConfig
from .geometry import EPSILON, as_vector, cross, magnitude, normalize, subtract
from .landmarks import HAND_LANDMARKS, POSE_LANDMARKS, get_landmark, has_hand, has_pose, visibility_of
from .models import ElbowWristAngles, HandType, MotionFrame, WristResults

logger = logging.getLogger(__name__)


class SessionLock(BaseModel):
    """Pose landmark selection pinned for the duration of one recording."""

    elbow_index: Optional[int] = None
    wrist_index: Optional[int] = None
    shoulder_index: Optional[int] = None
    hand_type: Optional[HandType] = None
    locked: bool = False

    def reset(self) -> None:
        """Forget the current selection; call before every new recording."""
        self.elbow_index = None
        self.wrist_index = None
        self.shoulder_index = None
        self.hand_type = None
        self.locked = False

    def acquire(self, hand_type: HandType) -> "SessionLock":
        """Lock the anatomical side for `hand_type`, re-locking if the hand type changed."""
        if self.locked and self.hand_type != hand_type:
            logger.warning("Hand type changed %s -> %s mid-recording, resetting session lock",
                           self.hand_type.value, hand_type.value)
            self.reset()
        if not self.locked:
            side = 'left' if hand_type == HandType.LEFT else 'right'
            self.elbow_index = POSE_LANDMARKS[f'{side}_elbow']
            self.wrist_index = POSE_LANDMARKS[f'{side}_wrist']
            self.shoulder_index = POSE_LANDMARKS[f'{side}_shoulder']
            self.hand_type = hand_type
            self.locked = True
            logger.debug("Session locked: %s hand -> elbow %d", hand_type.value, self.elbow_index)
        return self


def determine_hand_type(
    hand_landmarks: Sequence,
    pose_landmarks: Sequence,
    config: WristConfig = DEFAULT_CONFIG.wrist,
) -> HandType:
    """
    Classify the tracked hand against the body centreline between the shoulders.

    The camera is front-facing and mirrored, so a hand on the left of the image
    is the patient's right hand. Hands close to the centreline fall back to
    whichever shoulder the tracker sees better.
    """
    hand_wrist = get_landmark(hand_landmarks, HAND_LANDMARKS['wrist'])
    left_shoulder = get_landmark(pose_landmarks, POSE_LANDMARKS['left_shoulder'])
    right_shoulder = get_landmark(pose_landmarks, POSE_LANDMARKS['right_shoulder'])
    left_elbow = get_landmark(pose_landmarks, POSE_LANDMARKS['left_elbow'])
    right_elbow = get_landmark(pose_landmarks, POSE_LANDMARKS['right_elbow'])
    if None in (hand_wrist, left_shoulder, right_shoulder, left_elbow, right_elbow):
        return HandType.UNKNOWN

    body_center_x = (left_shoulder.x + right_shoulder.x) / 2
    offset = hand_wrist.x - body_center_x
    if offset < -config.hand_type_center_band:
        return HandType.RIGHT
    if offset > config.hand_type_center_band:
        return HandType.LEFT

    if visibility_of(right_shoulder, default=0.0) > visibility_of(left_shoulder, default=0.0):
        return HandType.LEFT
    return HandType.RIGHT


def calculate_anatomical_wrist_angle(elbow, wrist, middle_mcp, config: WristConfig = DEFAULT_CONFIG.wrist) -> float:
    """
    Signed wrist bend in degrees, positive for flexion, clamped to ±max_angle.

    The raw forearm/hand angle is measured against a calibrated neutral centre;
    deviations inside the neutral tolerance read as 0 and the rest is scaled by
    the sensitivity factor.
    """
    forearm = subtract(wrist, elbow)
    hand = subtract(middle_mcp, wrist)
    if magnitude(forearm) < EPSILON or magnitude(hand) < EPSILON:
        return 0.0

    u_forearm = normalize(forearm)
    u_hand = normalize(hand)
    raw_angle = float(np.degrees(np.arccos(np.clip(np.dot(u_forearm, u_hand), -1.0, 1.0))))

    deviation = abs(raw_angle - config.neutral_center)
    if deviation <= config.neutral_tolerance:
        return 0.0

    bend = (deviation - config.neutral_tolerance) * config.sensitivity_scale
    direction = float(np.sign(cross(u_forearm, u_hand)[2] + 1e-9))
    if as_vector(wrist)[0] < as_vector(elbow)[0]:
        direction = -direction
    if raw_angle < config.neutral_center:
        direction = -direction

    return float(np.clip(bend * direction, -config.max_angle, config.max_angle))


def calculate_wrist_angle(
    hand_landmarks: Sequence,
    pose_landmarks: Sequence,
    hand_type: Optional[HandType] = None,
    session: Optional[SessionLock] = None,
    config: WristConfig = DEFAULT_CONFIG.wrist,
) -> ElbowWristAngles:
    """
    Wrist flexion/extension for one frame.

    `hand_type` selects the arm; when omitted the session's locked hand type is
    reused, or it is determined from the frame. Missing or low-visibility
    landmarks produce an undetected, all-zero result.
    """
    result = ElbowWristAngles(hand_type=hand_type or HandType.UNKNOWN)
    if not has_hand(hand_landmarks) or not has_pose(pose_landmarks):
        return result

    if session is None:
        session = SessionLock()
    if hand_type is None or hand_type == HandType.UNKNOWN:
        if session.locked:
            hand_type = session.hand_type
        else:
            hand_type = determine_hand_type(hand_landmarks, pose_landmarks, config)
            if hand_type == HandType.UNKNOWN:
                hand_type = HandType.RIGHT
    session.acquire(hand_type)
    result.hand_type = hand_type

    elbow = get_landmark(pose_landmarks, session.elbow_index)
    pose_wrist = get_landmark(pose_landmarks, session.wrist_index)
    shoulder = get_landmark(pose_landmarks, session.shoulder_index)
    if elbow is None or pose_wrist is None or shoulder is None:
        return result
    if visibility_of(elbow) <= config.min_pose_visibility or visibility_of(pose_wrist) <= config.min_pose_visibility:
        logger.debug("Elbow/wrist visibility too low for %s hand", hand_type.value)
        return result

    result.elbow_detected = True
    result.confidence = min(visibility_of(elbow), visibility_of(pose_wrist), visibility_of(shoulder))

    signed_angle = calculate_anatomical_wrist_angle(
        elbow,
        hand_landmarks[HAND_LANDMARKS['wrist']],
        hand_landmarks[HAND_LANDMARKS['middle_mcp']],
        config,
    )
    result.forearm_to_hand_angle = 180.0 + signed_angle

    if abs(signed_angle) <= config.signed_neutral_zone:
        return result
    if signed_angle > 0:
        result.wrist_flexion_angle = signed_angle
    else:
        result.wrist_extension_angle = -signed_angle
    return result


def calculate_wrist_angles_for_frames(
    frames: Sequence[MotionFrame],
    session: Optional[SessionLock] = None,
    hand_type: Optional[HandType] = None,
    config: WristConfig = DEFAULT_CONFIG.wrist,
) -> List[ElbowWristAngles]:
    """Per-frame results for a recording, in frame order."""
    if session is None:
        session = SessionLock()

    results = []
    for frame in frames:
        frame_hand_type = hand_type
        if frame_hand_type is None or frame_hand_type == HandType.UNKNOWN:
            frame_hand_type = determine_hand_type(frame.hand_landmarks, frame.pose_landmarks, config)
            if frame_hand_type == HandType.UNKNOWN:
                frame_hand_type = HandType.RIGHT
        results.append(calculate_wrist_angle(frame.hand_landmarks, frame.pose_landmarks,
                                             frame_hand_type, session, config))
    return results


def calculate_max_wrist_angles(
    frames: Sequence[MotionFrame],
    session: Optional[SessionLock] = None,
    hand_type: Optional[HandType] = None,
    config: WristConfig = DEFAULT_CONFIG.wrist,
) -> ElbowWristAngles:
    """
    Maximum flexion, extension and raw angle across a recording, each tracked
    independently. Hand type and confidence come from the most confident frame.
    """
    best = ElbowWristAngles()
    for frame_result in calculate_wrist_angles_for_frames(frames, session, hand_type, config):
        if not frame_result.elbow_detected:
            continue
        if frame_result.confidence > best.confidence or not best.elbow_detected:
            best.hand_type = frame_result.hand_type
            best.confidence = frame_result.confidence
            best.elbow_detected = True
        best.wrist_flexion_angle = max(best.wrist_flexion_angle, frame_result.wrist_flexion_angle)
        best.wrist_extension_angle = max(best.wrist_extension_angle, frame_result.wrist_extension_angle)
        best.forearm_to_hand_angle = max(best.forearm_to_hand_angle, frame_result.forearm_to_hand_angle)
    return best


def calculate_wrist_results(
    frames: Sequence[MotionFrame],
    session: Optional[SessionLock] = None,
    hand_type: Optional[HandType] = None,
    config: WristConfig = DEFAULT_CONFIG.wrist,
) -> WristResults:
    """Summary used for persistence: maxima, total arc, hand type and mean confidence."""
    detected = [r for r in calculate_wrist_angles_for_frames(frames, session, hand_type, config) if r.elbow_detected]
    if not detected:
        return WristResults(frame_count=len(frames))

    max_flexion = max(r.wrist_flexion_angle for r in detected)
    max_extension = max(r.wrist_extension_angle for r in detected)
    summary = WristResults(
        max_flexion=max_flexion,
        max_extension=max_extension,
        total_rom=max_flexion + max_extension,
        frame_count=len(frames),
        hand_type=detected[0].hand_type,
        average_confidence=sum(r.confidence for r in detected) / len(detected),
    )
    logger.info("Wrist %s: flexion %.1f°, extension %.1f° over %d/%d frames",
                summary.hand_type.value, max_flexion, max_extension, len(detected), len(frames))
    return summary
