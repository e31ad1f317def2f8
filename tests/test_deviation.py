import pytest

from builders import frames_from, make_hand, make_pose, rotate
from hand_rom.deviation import (
    calculate_wrist_deviation,
    check_reproducibility,
    process_wrist_deviation_data,
    split_deviation,
)
from hand_rom.models import HandType, Landmark

# Pose wrists of the mirrored default pose, elbows sit 0.2 above them
WRISTS = {"right": (0.35, 0.7), "left": (0.65, 0.7)}


def deviated_hand(degrees, side="right", visibility=0.9):
    """Hand whose MCP midpoint lies on the forearm axis rotated by `degrees`."""
    wx, wy = WRISTS[side]
    dx, dy = rotate((0.0, 0.1), degrees)
    mx, my = wx + dx, wy + dy
    hand = make_hand(wrist=(wx, wy + 0.01), visibility=visibility)
    hand[5] = Landmark(x=mx - 0.02, y=my, z=0.0, visibility=visibility)
    hand[17] = Landmark(x=mx + 0.02, y=my, z=0.0, visibility=visibility)
    return hand


def test_neutral_wrist_has_no_deviation(pose):
    assert calculate_wrist_deviation(pose, deviated_hand(0), is_left_hand=False) == 0.0
    result = process_wrist_deviation_data(frames_from([deviated_hand(0)] * 3, pose))
    assert result.radial_deviation == 0
    assert result.ulnar_deviation == 0
    assert result.reproducibility_valid
    assert result.confidence == pytest.approx(0.9)


def test_right_hand_signs(pose):
    assert calculate_wrist_deviation(pose, deviated_hand(20), False) == pytest.approx(20.0, abs=0.01)
    assert calculate_wrist_deviation(pose, deviated_hand(-20), False) == pytest.approx(-20.0, abs=0.01)


def test_left_hand_signs_are_mirrored(pose):
    assert calculate_wrist_deviation(pose, deviated_hand(20, "left"), True) == pytest.approx(-20.0, abs=0.01)
    assert calculate_wrist_deviation(pose, deviated_hand(-20, "left"), True) == pytest.approx(20.0, abs=0.01)


def test_deviation_is_clamped(pose):
    assert calculate_wrist_deviation(pose, deviated_hand(40), False) == 25.0
    assert calculate_wrist_deviation(pose, deviated_hand(-50), False) == -35.0


def test_missing_pose_gives_zero(straight_hand):
    assert calculate_wrist_deviation([], straight_hand, False) == 0.0


def test_pose_fingers_used_when_hand_is_poorly_visible():
    pose = make_pose(overrides={18: (0.32, 0.8), 20: (0.32, 0.8)})
    angle = calculate_wrist_deviation(pose, deviated_hand(-20, visibility=0.5), False)
    assert angle == pytest.approx(16.7, abs=0.01)


def test_split_deviation():
    assert split_deviation(12.5) == (12.5, 0.0)
    assert split_deviation(-8.0) == (0.0, 8.0)
    assert split_deviation(0.0) == (0.0, 0.0)


def test_check_reproducibility():
    assert check_reproducibility([], 5)
    assert check_reproducibility([14.0], 5)
    assert check_reproducibility([12.0, 18.0], 5)
    assert not check_reproducibility([8.0, 22.0], 5)


def test_recording_maxima_and_reproducibility(pose):
    frames = frames_from([deviated_hand(d) for d in (12, 18, 0, -10, -14)], pose)
    result = process_wrist_deviation_data(frames)
    assert result.hand_type == HandType.RIGHT
    assert result.max_radial_deviation == pytest.approx(18.0, abs=0.01)
    assert result.max_ulnar_deviation == pytest.approx(14.0, abs=0.01)
    assert result.radial_deviation == result.max_radial_deviation
    assert result.total_deviation_rom == pytest.approx(32.0, abs=0.02)
    assert result.frame_count == 5
    assert result.reproducibility_valid


def test_inconsistent_readings_are_not_reproducible(pose):
    frames = frames_from([deviated_hand(d) for d in (8, 22)], pose)
    result = process_wrist_deviation_data(frames, HandType.RIGHT)
    assert result.max_radial_deviation == pytest.approx(22.0, abs=0.01)
    assert not result.reproducibility_valid


def test_poorly_visible_frames_are_rejected(pose):
    frames = frames_from([deviated_hand(20, visibility=0.5)] * 4, pose)
    result = process_wrist_deviation_data(frames)
    assert result.frame_count == 0
    assert result.confidence == 0
    assert not result.reproducibility_valid
    assert result.total_deviation_rom == 0
