"""
Finger range-of-motion (TAM) calculation.

Per-frame MCP/PIP/DIP flexion angles with anatomical clamping, and a
sequence-level maximum that gates noisy tracking through visibility and
temporal-consistency checks.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .config import DEFAULT_CONFIG, FingerConfig, TemporalConfig, VisibilityConfig
from .geometry import EPSILON, angle_between, all_present, magnitude, subtract
from .landmarks import has_hand, visibility_of
from .models import AnatomicalValidation, Finger, FingerROMSummary, FingerVisibility, JointAngles, MotionFrame
from .utils import mean_of_last, mean_of_top, round2

logger = logging.getLogger(__name__)

# (proximal, joint, distal) hand landmark indices for each joint
FINGER_LANDMARKS: Dict[Finger, Dict[str, Tuple[int, int, int]]] = {
    Finger.INDEX: {'MCP': (0, 5, 6), 'PIP': (5, 6, 7), 'DIP': (6, 7, 8)},
    Finger.MIDDLE: {'MCP': (0, 9, 10), 'PIP': (9, 10, 11), 'DIP': (10, 11, 12)},
    Finger.RING: {'MCP': (0, 13, 14), 'PIP': (13, 14, 15), 'DIP': (14, 15, 16)},
    Finger.PINKY: {'MCP': (0, 17, 18), 'PIP': (17, 18, 19), 'DIP': (18, 19, 20)},
}


def to_finger(finger: Union[Finger, str]) -> Finger:
    if isinstance(finger, Finger):
        return finger
    try:
        return Finger(str(finger).upper())
    except ValueError:
        raise ValueError(f"Unknown finger: {finger}")


def finger_landmark_indices(finger: Union[Finger, str]) -> List[int]:
    """Unique landmark indices touched by a finger's three joint triplets, in order."""
    indices: List[int] = []
    for triplet in FINGER_LANDMARKS[to_finger(finger)].values():
        for idx in triplet:
            if idx not in indices:
                indices.append(idx)
    return indices


def calculate_flexion_angle(p1, p2, p3) -> float:
    """Flexion at p2: 0 for a straight joint, growing as the joint bends."""
    if magnitude(subtract(p1, p2)) < EPSILON or magnitude(subtract(p3, p2)) < EPSILON:
        return 0.0
    return max(0.0, 180.0 - angle_between(p1, p2, p3))


def validate_anatomical_limits(angles: JointAngles, config: FingerConfig = DEFAULT_CONFIG.finger) -> AnatomicalValidation:
    """Clamp each joint into its physiological range and recompute TAM."""
    corrected = angles.model_copy()
    violations: List[str] = []
    for joint, field in (('MCP', 'mcp_angle'), ('PIP', 'pip_angle'), ('DIP', 'dip_angle')):
        limit = config.anatomical_limits[joint]
        value = getattr(angles, field)
        if value > limit.max:
            violations.append(f"{joint}: {value:.1f}° > {limit.max:g}°")
            setattr(corrected, field, float(limit.max))
        elif value < limit.min:
            setattr(corrected, field, float(limit.min))
    corrected.total_active_rom = round2(corrected.mcp_angle + corrected.pip_angle + corrected.dip_angle)
    return AnatomicalValidation(is_valid=not violations, corrected_angles=corrected, violations=violations)


def calculate_finger_rom(
    landmarks: Sequence,
    finger: Union[Finger, str],
    finger_confidence: Optional[float] = None,
    config: FingerConfig = DEFAULT_CONFIG.finger,
) -> JointAngles:
    """
    Joint angles for one finger in one frame.

    Returns all-zero angles when the caller-supplied tracking confidence is
    below the configured threshold or the landmark set is incomplete.
    """
    finger = to_finger(finger)
    if finger_confidence is not None and finger_confidence < config.confidence_threshold:
        logger.debug("%s tracking unreliable (%.0f%%), skipping frame", finger.value, finger_confidence * 100)
        return JointAngles()

    joints = FINGER_LANDMARKS[finger]
    if not all_present(landmarks, finger_landmark_indices(finger)):
        return JointAngles()

    mcp, pip, dip = (
        calculate_flexion_angle(*(landmarks[i] for i in joints[name]))
        for name in ('MCP', 'PIP', 'DIP')
    )
    initial = JointAngles(
        mcp_angle=round2(mcp),
        pip_angle=round2(pip),
        dip_angle=round2(dip),
        total_active_rom=round2(mcp + pip + dip),
    )

    validation = validate_anatomical_limits(initial, config)
    if not validation.is_valid:
        logger.debug("%s anatomical limits exceeded: %s", finger.value, ", ".join(validation.violations))
    return validation.corrected_angles


def assess_finger_visibility(
    landmarks: Sequence,
    finger: Union[Finger, str],
    config: VisibilityConfig = DEFAULT_CONFIG.finger.visibility,
) -> FingerVisibility:
    """Whether a finger is clearly visible in one frame; missing scores count as visible."""
    if not has_hand(landmarks):
        return FingerVisibility(is_visible=False, avg_visibility=0.0, reason="No landmarks")

    indices = finger_landmark_indices(finger)
    scores = [visibility_of(landmarks[i]) for i in indices]
    avg_visibility = sum(scores) / len(scores)
    visible_ratio = sum(1 for s in scores if s >= config.min_landmark_visibility) / len(scores)

    is_visible = avg_visibility >= config.min_finger_visibility and visible_ratio >= config.min_visible_landmark_ratio
    if is_visible:
        reason = f"Clearly visible ({avg_visibility * 100:.1f}% avg visibility)"
    else:
        visible = int(round(visible_ratio * len(scores)))
        reason = (f"Poor visibility ({avg_visibility * 100:.1f}% avg visibility, "
                  f"{visible}/{len(scores)} landmarks visible)")
    return FingerVisibility(is_visible=is_visible, avg_visibility=avg_visibility, reason=reason)


def validate_temporal_consistency(
    current: float,
    history: Sequence[float],
    config: TemporalConfig = DEFAULT_CONFIG.finger.temporal,
) -> bool:
    """A value is consistent when it stays within the per-frame change limit of the last accepted one."""
    if not history:
        return True
    return abs(current - history[-1]) <= config.max_rom_change_per_frame


def apply_smoothing_filter(history: Sequence[float], config: TemporalConfig = DEFAULT_CONFIG.finger.temporal) -> float:
    """Standalone helper for live display: rolling mean of the last accepted values."""
    return mean_of_last(list(history), config.smoothing_window_size)


def require_consistent_frames(
    current: float,
    history: Sequence[float],
    config: TemporalConfig = DEFAULT_CONFIG.finger.temporal,
) -> Tuple[bool, float]:
    """
    Standalone helper, not used by the sequence aggregation: compare a value
    against the last few accepted values and return (is_valid, quality).
    """
    if len(history) < config.consistency_frame_count:
        return True, 0.5

    recent = history[-config.consistency_frame_count:]
    variations = [abs(value - current) for value in recent]
    avg_variation = sum(variations) / len(variations)
    is_valid = max(variations) <= config.max_rom_change_per_frame
    quality = max(0.0, 1.0 - avg_variation / config.max_rom_change_per_frame)
    return is_valid, quality


def calculate_temporal_quality(history: Sequence[float], config: TemporalConfig = DEFAULT_CONFIG.finger.temporal) -> float:
    """Mean of the in-tolerance transition ratio and a smoothness term, in [0, 1]."""
    if len(history) < 2:
        return 0.5

    changes = [abs(history[i] - history[i - 1]) for i in range(1, len(history))]
    transition_quality = sum(1 for c in changes if c <= config.max_rom_change_per_frame) / len(changes)
    smoothness_quality = max(0.0, 1.0 - (sum(changes) / len(changes)) / config.max_rom_change_per_frame)
    return (transition_quality + smoothness_quality) / 2


def _finger_max_rom(
    frames: Sequence[MotionFrame],
    finger: Finger,
    config: FingerConfig,
    smoothing: bool,
) -> Tuple[JointAngles, float]:
    temporal = config.temporal
    hands = [frame.hand_landmarks for frame in frames]

    assessments = [assess_finger_visibility(lm, finger, config.visibility) for lm in hands]
    visible_frames = sum(1 for a in assessments if a.is_visible)
    visible_ratio = visible_frames / len(assessments) if assessments else 0.0
    clearly_visible = visible_ratio >= config.visibility.min_visible_frame_ratio
    apply_temporal = not (clearly_visible and config.visibility.bypass_temporal_if_visible)

    logger.debug("%s visibility: %d/%d frames clearly visible, temporal filter %s",
                 finger.value, visible_frames, len(assessments), "on" if apply_temporal else "bypassed")

    history: Dict[str, List[float]] = {'total': [], 'mcp': [], 'pip': [], 'dip': []}
    for frame_index, landmarks in enumerate(hands):
        if not has_hand(landmarks):
            continue
        rom = calculate_finger_rom(landmarks, finger, config=config)
        values = {
            'total': rom.total_active_rom,
            'mcp': rom.mcp_angle,
            'pip': rom.pip_angle,
            'dip': rom.dip_angle,
        }

        if apply_temporal:
            rejected = [key for key, value in values.items()
                        if not validate_temporal_consistency(value, history[key], temporal)]
            if rejected:
                logger.debug("%s frame %d rejected (TAM=%.1f°), inconsistent: %s",
                             finger.value, frame_index, rom.total_active_rom, ", ".join(rejected))
                continue

        for key, value in values.items():
            history[key].append(value)

    if apply_temporal and smoothing and len(history['total']) >= temporal.min_valid_frames:
        top = temporal.top_values_for_smoothing
        result = JointAngles(
            mcp_angle=round2(mean_of_top(history['mcp'], top)),
            pip_angle=round2(mean_of_top(history['pip'], top)),
            dip_angle=round2(mean_of_top(history['dip'], top)),
            total_active_rom=round2(mean_of_top(history['total'], top)),
        )
        quality = calculate_temporal_quality(history['total'], temporal)
        logger.info("%s: %d valid frames, quality %.0f%%, TAM %.2f° (smoothed)",
                    finger.value, len(history['total']), quality * 100, result.total_active_rom)
        return result, quality

    result = JointAngles(
        mcp_angle=round2(max(history['mcp'], default=0.0)),
        pip_angle=round2(max(history['pip'], default=0.0)),
        dip_angle=round2(max(history['dip'], default=0.0)),
        total_active_rom=round2(max(history['total'], default=0.0)),
    )
    if not apply_temporal:
        quality = 1.0
    elif len(history['total']) >= temporal.min_valid_frames:
        quality = calculate_temporal_quality(history['total'], temporal)
    else:
        quality = temporal.insufficient_data_quality
    logger.info("%s: %d frames, TAM %.2f° (raw maximum)", finger.value, len(history['total']), result.total_active_rom)
    return result, quality


def calculate_all_fingers_max_rom(
    frames: Sequence[MotionFrame],
    config: FingerConfig = DEFAULT_CONFIG.finger,
    smoothing: bool = True,
) -> FingerROMSummary:
    """
    Maximum joint angles for the four long fingers across a motion recording.

    Fingers visible in most frames report the raw per-frame maximum. Others go
    through the temporal-consistency filter and, with enough accepted frames,
    the mean of the largest few values. `smoothing=False` reports the filtered
    maximum instead (used when replaying a stored recording frame by frame).
    """
    results: Dict[str, JointAngles] = {}
    temporal_quality: Dict[str, float] = {}
    for finger in Finger:
        angles, quality = _finger_max_rom(frames, finger, config, smoothing)
        results[finger.value.lower()] = angles
        temporal_quality[finger.value.lower()] = quality
    return FingerROMSummary(temporal_quality=temporal_quality, **results)
