"""
Kapandji thumb opposition scoring.

The thumb tip is matched against ten ordered anatomical targets. Final
scoring walks the targets in order and stops at the first one the thumb has
not reached; live guidance uses a progressive target state machine.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from .config import DEFAULT_CONFIG, KapandjiConfig
from .geometry import as_vector, average_points, distance
from .landmarks import HAND_LANDMARK_COUNT, HAND_LANDMARKS
from .models import KapandjiScore, KapandjiTarget, MotionFrame, TargetState

logger = logging.getLogger(__name__)

THUMB_TIP = HAND_LANDMARKS['thumb_tip']
# Wrist and the middle/ring/little MCPs approximate the distal palmar crease
PALMAR_CREASE_LANDMARKS = (0, 9, 13, 17)

KAPANDJI_TARGETS: List[KapandjiTarget] = [
    KapandjiTarget(score=1, name='Index Proximal Phalanx', key='indexProximalPhalanx', landmark_index=6,
                   description='Touch radial side of index proximal phalanx'),
    KapandjiTarget(score=2, name='Index Middle Phalanx', key='indexMiddlePhalanx', landmark_index=7,
                   description='Touch radial side of index middle phalanx'),
    KapandjiTarget(score=3, name='Index Finger Tip', key='indexTip', landmark_index=8,
                   description='Touch tip of index finger'),
    KapandjiTarget(score=4, name='Middle Finger Tip', key='middleTip', landmark_index=12,
                   description='Touch tip of middle finger'),
    KapandjiTarget(score=5, name='Ring Finger Tip', key='ringTip', landmark_index=16,
                   description='Touch tip of ring finger'),
    KapandjiTarget(score=6, name='Little Finger Tip', key='littleTip', landmark_index=20,
                   description='Touch tip of little finger'),
    KapandjiTarget(score=7, name='Little DIP Joint Crease', key='littleDipCrease', landmark_index=19,
                   description='Touch little finger DIP joint crease'),
    KapandjiTarget(score=8, name='Little PIP Joint Crease', key='littlePipCrease', landmark_index=18,
                   description='Touch little finger PIP joint crease'),
    KapandjiTarget(score=9, name='Little MCP Joint Crease', key='littleMcpCrease', landmark_index=17,
                   description='Touch little finger MCP joint crease'),
    KapandjiTarget(score=10, name='Distal Palmar Crease', key='distalPalmarCrease', landmark_index=-1,
                   description='Touch distal palmar crease'),
]


def _require_hand(landmarks: Sequence) -> None:
    if landmarks is None or len(landmarks) != HAND_LANDMARK_COUNT:
        count = 0 if landmarks is None else len(landmarks)
        raise ValueError(f"Hand landmarks must contain exactly {HAND_LANDMARK_COUNT} points, got {count}")


def get_target_position(target: KapandjiTarget, landmarks: Sequence) -> np.ndarray:
    """Resolved 3D position of a target for one frame."""
    _require_hand(landmarks)
    if target.landmark_index < 0:
        return average_points(landmarks[i] for i in PALMAR_CREASE_LANDMARKS)
    return as_vector(landmarks[target.landmark_index])


def check_target_achievement(
    thumb_tip,
    target: KapandjiTarget,
    landmarks: Sequence,
    config: KapandjiConfig = DEFAULT_CONFIG.kapandji,
) -> bool:
    return distance(thumb_tip, get_target_position(target, landmarks)) < config.achievement_threshold


def empty_score() -> KapandjiScore:
    return KapandjiScore(details={target.key: False for target in KAPANDJI_TARGETS})


def calculate_kapandji_score(
    landmarks: Sequence,
    config: KapandjiConfig = DEFAULT_CONFIG.kapandji,
    sequential: Optional[bool] = None,
) -> KapandjiScore:
    """
    Score one frame of hand landmarks.

    In sequential mode (the default) a target only counts when every lower
    target was reached in the same frame, so a noisy contact with a distant
    target cannot skip levels.

    Raises:
        ValueError: if `landmarks` is not exactly 21 points.
    """
    _require_hand(landmarks)
    if sequential is None:
        sequential = config.sequential

    thumb_tip = landmarks[THUMB_TIP]
    score = empty_score()
    for target in KAPANDJI_TARGETS:
        if check_target_achievement(thumb_tip, target, landmarks, config):
            score.max_score = max(score.max_score, target.score)
            score.reached_landmarks.append(target.name)
            score.details[target.key] = True
        elif sequential:
            break
    return score


def calculate_max_kapandji_score(
    frames: Sequence[MotionFrame],
    config: KapandjiConfig = DEFAULT_CONFIG.kapandji,
    sequential: Optional[bool] = None,
) -> KapandjiScore:
    """Best per-frame score across a recording; frames without a full hand are skipped."""
    best = empty_score()
    scored = 0
    for frame in frames:
        if len(frame.hand_landmarks) != HAND_LANDMARK_COUNT:
            continue
        scored += 1
        frame_score = calculate_kapandji_score(frame.hand_landmarks, config, sequential)
        if frame_score.max_score > best.max_score:
            best = frame_score
    logger.info("Kapandji score %d/10 over %d of %d frames", best.max_score, scored, len(frames))
    return best


def target_bound_index(best_ever_score: Optional[int], config: KapandjiConfig = DEFAULT_CONFIG.kapandji) -> int:
    """Index of the last target a patient is guided to in this attempt."""
    if best_ever_score:
        return min(best_ever_score, len(KAPANDJI_TARGETS)) - 1
    return config.default_target_bound - 1


def initialize_target_state() -> TargetState:
    return TargetState()


def get_current_target(state: TargetState) -> KapandjiTarget:
    return KAPANDJI_TARGETS[state.current_target_index]


def update_target_state(
    state: TargetState,
    landmarks: Sequence,
    best_ever_score: Optional[int] = None,
    config: KapandjiConfig = DEFAULT_CONFIG.kapandji,
) -> TargetState:
    """
    Advance the guided-assessment state by one frame and return the new state.

    Only the current target is tested. Achieved targets are never removed and
    the target index never moves backwards. Frames without a full hand leave
    the state unchanged.
    """
    if landmarks is None or len(landmarks) != HAND_LANDMARK_COUNT:
        return state

    bound = target_bound_index(best_ever_score, config)
    target = get_current_target(state)
    reached = check_target_achievement(landmarks[THUMB_TIP], target, landmarks, config)

    new_state = state.model_copy(deep=True)
    if reached and target.score not in state.achieved_targets:
        new_state.achieved_targets.append(target.score)
        new_state.max_score_achieved = max(state.max_score_achieved, target.score)
        if state.current_target_index < bound:
            new_state.current_target_index = state.current_target_index + 1
            new_state.is_target_reached = False
            logger.debug("Kapandji target %d achieved, advancing to %d", target.score, target.score + 1)
        else:
            new_state.is_target_reached = True
            logger.debug("Kapandji target %d achieved, attempt complete", target.score)
    else:
        completed = target.score in state.achieved_targets and state.current_target_index >= bound
        new_state.is_target_reached = reached or completed
    return new_state


def get_progress_message(state: TargetState, best_ever_score: Optional[int] = None,
                         config: KapandjiConfig = DEFAULT_CONFIG.kapandji) -> str:
    target = get_current_target(state)
    goal = min(best_ever_score, len(KAPANDJI_TARGETS)) if best_ever_score else config.default_target_bound

    if state.max_score_achieved >= goal:
        if best_ever_score:
            return f"Excellent! You've matched your best score of {best_ever_score}/10!"
        return f"Excellent! You've reached target {goal}/10!"
    if state.is_target_reached:
        return f"Target {target.score} achieved! {target.description}"
    return f"Target {target.score}/{goal}: {target.description}"
