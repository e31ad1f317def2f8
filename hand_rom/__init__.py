"""
Hand ROM Engine
---------------
Turns recorded hand and body-pose landmark sequences into clinical range-of-motion
measurements: finger TAM, Kapandji thumb opposition, wrist flexion/extension and
wrist radial/ulnar deviation.
"""

from .models import (
    AssessmentResult,
    ElbowWristAngles,
    Finger,
    FingerROMSummary,
    HandType,
    JointAngles,
    KapandjiScore,
    Landmark,
    MotionFrame,
    MotionSequence,
    TargetState,
    WristDeviationResult,
    WristResults,
)
from .config import DEFAULT_CONFIG, EngineConfig
from .finger_rom import calculate_finger_rom, calculate_all_fingers_max_rom
from .kapandji import (
    KAPANDJI_TARGETS,
    calculate_kapandji_score,
    calculate_max_kapandji_score,
    initialize_target_state,
    update_target_state,
)
from .wrist import SessionLock, determine_hand_type, calculate_wrist_angle, calculate_max_wrist_angles
from .deviation import calculate_wrist_deviation, process_wrist_deviation_data
from .analyzer import AssessmentAnalyzer
from .utils import result_to_json

__version__ = "0.1.0"
