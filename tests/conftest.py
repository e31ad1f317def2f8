import pytest

from builders import make_hand, make_pose


@pytest.fixture
def straight_hand():
    return make_hand()


@pytest.fixture
def pose():
    return make_pose()
