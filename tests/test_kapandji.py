import pytest

from builders import frames_from, make_hand, touch
from hand_rom.kapandji import (
    KAPANDJI_TARGETS,
    calculate_kapandji_score,
    calculate_max_kapandji_score,
    get_current_target,
    get_progress_message,
    get_target_position,
    initialize_target_state,
    target_bound_index,
    update_target_state,
)
from hand_rom.models import Landmark


def pinch_index_tip():
    """Thumb on the index tip with the index PIP and DIP curled close by."""
    hand = make_hand()
    tip = hand[8]
    hand[6] = Landmark(x=tip.x + 0.02, y=tip.y + 0.02, z=0.0)
    hand[7] = Landmark(x=tip.x + 0.01, y=tip.y + 0.01, z=0.0)
    return touch(hand, 8)


def test_catalog_is_ordered():
    assert [t.score for t in KAPANDJI_TARGETS] == list(range(1, 11))
    assert KAPANDJI_TARGETS[-1].landmark_index == -1


def test_palm_target_is_average_of_palm_landmarks(straight_hand):
    position = get_target_position(KAPANDJI_TARGETS[-1], straight_hand)
    expected_x = sum(straight_hand[i].x for i in (0, 9, 13, 17)) / 4
    assert position[0] == pytest.approx(expected_x)


def test_wrong_landmark_count_raises(straight_hand):
    with pytest.raises(ValueError):
        calculate_kapandji_score(straight_hand[:20])
    with pytest.raises(ValueError):
        get_target_position(KAPANDJI_TARGETS[0], straight_hand + straight_hand[:1])


def test_open_hand_scores_zero(straight_hand):
    score = calculate_kapandji_score(straight_hand)
    assert score.max_score == 0
    assert score.reached_landmarks == []
    assert not any(score.details.values())


def test_thumb_on_index_tip_scores_at_least_three():
    score = calculate_kapandji_score(pinch_index_tip())
    assert score.max_score >= 3
    assert score.details["indexProximalPhalanx"]
    assert score.details["indexMiddlePhalanx"]
    assert score.details["indexTip"]


def test_sequential_rule_blocks_skipped_levels(straight_hand):
    hand = touch(straight_hand, 12)
    assert calculate_kapandji_score(hand).max_score == 0
    assert calculate_kapandji_score(hand, sequential=False).max_score == 4


def test_sequential_scores_imply_lower_targets_reached():
    for hand in (pinch_index_tip(), touch(make_hand(), 7), touch(make_hand(), 6)):
        score = calculate_kapandji_score(hand)
        for target in KAPANDJI_TARGETS[:score.max_score]:
            assert score.details[target.key]


def test_max_score_over_sequence_skips_incomplete_frames(straight_hand):
    frames = frames_from([straight_hand, pinch_index_tip(), straight_hand[:10]])
    best = calculate_max_kapandji_score(frames)
    assert best.max_score == 3
    assert "Index Finger Tip" in best.reached_landmarks


def test_target_bound():
    assert target_bound_index(None) == 2
    assert target_bound_index(0) == 2
    assert target_bound_index(7) == 6
    assert target_bound_index(14) == 9


def test_target_state_progresses_and_completes(straight_hand):
    state = initialize_target_state()
    assert state.current_target_index == 0
    assert get_current_target(state).score == 1

    state = update_target_state(state, touch(straight_hand, 6))
    assert state.achieved_targets == [1]
    assert state.current_target_index == 1
    assert state.max_score_achieved == 1

    state = update_target_state(state, touch(straight_hand, 7))
    assert state.current_target_index == 2

    state = update_target_state(state, touch(straight_hand, 8))
    assert state.current_target_index == 2
    assert state.is_target_reached
    assert state.achieved_targets == [1, 2, 3]
    assert state.max_score_achieved == 3

    # Terminal for the attempt even after the thumb moves away
    state = update_target_state(state, straight_hand)
    assert state.is_target_reached
    assert state.achieved_targets == [1, 2, 3]


def test_target_state_never_regresses(straight_hand):
    frames = [touch(straight_hand, 6), straight_hand, touch(straight_hand, 6), touch(straight_hand, 7), straight_hand]
    state = initialize_target_state()
    previous_index = 0
    previous_achieved = []
    for hand in frames:
        state = update_target_state(state, hand, best_ever_score=10)
        assert state.current_target_index >= previous_index
        assert set(previous_achieved) <= set(state.achieved_targets)
        assert len(state.achieved_targets) == len(set(state.achieved_targets))
        previous_index = state.current_target_index
        previous_achieved = list(state.achieved_targets)
    assert state.achieved_targets == [1, 2, 3]


def test_update_does_not_mutate_previous_state(straight_hand):
    state = initialize_target_state()
    new_state = update_target_state(state, touch(straight_hand, 6))
    assert state.achieved_targets == []
    assert new_state.achieved_targets == [1]


def test_incomplete_frame_leaves_state_unchanged(straight_hand):
    state = initialize_target_state()
    assert update_target_state(state, straight_hand[:5]) is state


def test_progress_messages(straight_hand):
    state = initialize_target_state()
    assert get_progress_message(state) == "Target 1/3: Touch radial side of index proximal phalanx"
    state = update_target_state(state, touch(straight_hand, 6), best_ever_score=1)
    assert state.is_target_reached
    assert get_progress_message(state, best_ever_score=1) == "Excellent! You've matched your best score of 1/10!"
