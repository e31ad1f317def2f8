from pydantic import BaseModel, Field
from typing import Dict, Tuple


class JointLimit(BaseModel):
    min: float
    max: float


class TemporalConfig(BaseModel):
    max_rom_change_per_frame: float = 30.0  # degrees
    consistency_frame_count: int = 3
    smoothing_window_size: int = 5
    min_valid_frames: int = 10
    temporal_quality_threshold: float = 0.8
    top_values_for_smoothing: int = 3
    insufficient_data_quality: float = 0.3


class VisibilityConfig(BaseModel):
    min_landmark_visibility: float = 0.7
    min_finger_visibility: float = 0.8  # average over the finger's landmarks
    min_visible_landmark_ratio: float = 0.8
    min_visible_frame_ratio: float = 0.8
    bypass_temporal_if_visible: bool = True


class FingerConfig(BaseModel):
    confidence_threshold: float = 0.7
    anatomical_limits: Dict[str, JointLimit] = Field(default_factory=lambda: {
        "MCP": JointLimit(min=0, max=95),
        "PIP": JointLimit(min=0, max=115),
        "DIP": JointLimit(min=0, max=90),
    })
    temporal: TemporalConfig = Field(default_factory=TemporalConfig)
    visibility: VisibilityConfig = Field(default_factory=VisibilityConfig)


class KapandjiConfig(BaseModel):
    achievement_threshold: float = 0.055  # normalized units
    default_target_bound: int = 3  # first-time patients are guided to score 3
    sequential: bool = True


class WristConfig(BaseModel):
    min_pose_visibility: float = 0.3
    hand_type_center_band: float = 0.05
    # Calibration values observed on the reference dataset
    neutral_center: float = 55.0
    neutral_tolerance: float = 3.0
    sensitivity_scale: float = 3.0
    signed_neutral_zone: float = 3.0
    max_angle: float = 90.0


class DeviationConfig(BaseModel):
    min_hand_visibility: float = 0.7
    reproducibility_tolerance: float = 5.0
    max_radial: float = 25.0
    max_ulnar: float = 35.0


class EngineConfig(BaseModel):
    finger: FingerConfig = Field(default_factory=FingerConfig)
    kapandji: KapandjiConfig = Field(default_factory=KapandjiConfig)
    wrist: WristConfig = Field(default_factory=WristConfig)
    deviation: DeviationConfig = Field(default_factory=DeviationConfig)


DEFAULT_CONFIG = EngineConfig()

# Normal active ranges used for clinical interpretation (degrees)
NORMAL_TAM_RANGES: Dict[str, Tuple[float, float]] = {
    "INDEX": (220, 260),
    "MIDDLE": (230, 270),
    "RING": (220, 260),
    "PINKY": (200, 240),
}
NORMAL_WRIST_FLEXION = 80.0
NORMAL_WRIST_EXTENSION = 70.0
NORMAL_RADIAL_DEVIATION = 20.0
NORMAL_ULNAR_DEVIATION = 30.0
