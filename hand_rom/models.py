from enum import Enum
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import List, Dict, Optional, Union


class HandType(str, Enum):
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    UNKNOWN = "UNKNOWN"


class Finger(str, Enum):
    INDEX = "INDEX"
    MIDDLE = "MIDDLE"
    RING = "RING"
    PINKY = "PINKY"


class Landmark(BaseModel):
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None  # tracker confidence in [0, 1]


class MotionFrame(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hand_landmarks: List[Landmark] = Field(
        default_factory=list,
        validation_alias=AliasChoices("hand_landmarks", "handLandmarks", "landmarks"),
    )
    pose_landmarks: List[Landmark] = Field(
        default_factory=list,
        validation_alias=AliasChoices("pose_landmarks", "poseLandmarks"),
    )
    timestamp: float = 0.0

    @field_validator("hand_landmarks", "pose_landmarks", mode="before")
    @classmethod
    def _missing_landmarks_as_empty(cls, value):
        # Trackers send null when nothing was detected in a frame
        return [] if value is None else value


class MotionSequence(BaseModel):
    frames: List[MotionFrame]
    hand_type: HandType = HandType.UNKNOWN  # laterality context, when known
    best_ever_kapandji: Optional[int] = None


class JointAngles(BaseModel):
    mcp_angle: float = 0.0
    pip_angle: float = 0.0
    dip_angle: float = 0.0
    total_active_rom: float = 0.0


class AnatomicalValidation(BaseModel):
    is_valid: bool
    corrected_angles: JointAngles
    violations: List[str] = Field(default_factory=list)


class FingerVisibility(BaseModel):
    is_visible: bool
    avg_visibility: float
    reason: str


class FingerROMSummary(BaseModel):
    index: JointAngles
    middle: JointAngles
    ring: JointAngles
    pinky: JointAngles
    temporal_quality: Dict[str, float] = Field(default_factory=dict)

    def for_finger(self, finger: Finger) -> JointAngles:
        return getattr(self, finger.value.lower())


class KapandjiTarget(BaseModel):
    score: int
    name: str
    key: str
    landmark_index: int  # -1 for the palm-average target
    description: str


class KapandjiScore(BaseModel):
    max_score: int = 0
    reached_landmarks: List[str] = Field(default_factory=list)
    details: Dict[str, bool] = Field(default_factory=dict)


class TargetState(BaseModel):
    current_target_index: int = 0
    achieved_targets: List[int] = Field(default_factory=list)
    is_target_reached: bool = False
    max_score_achieved: int = 0


class ElbowWristAngles(BaseModel):
    forearm_to_hand_angle: float = 0.0
    wrist_flexion_angle: float = 0.0
    wrist_extension_angle: float = 0.0
    elbow_detected: bool = False
    hand_type: HandType = HandType.UNKNOWN
    confidence: float = 0.0


class WristResults(BaseModel):
    max_flexion: float = 0.0
    max_extension: float = 0.0
    total_rom: float = 0.0
    frame_count: int = 0
    hand_type: HandType = HandType.UNKNOWN
    average_confidence: float = 0.0


class WristDeviationResult(BaseModel):
    radial_deviation: float = 0.0
    ulnar_deviation: float = 0.0
    max_radial_deviation: float = 0.0
    max_ulnar_deviation: float = 0.0
    total_deviation_rom: float = 0.0
    reproducibility_valid: bool = False
    confidence: float = 0.0
    frame_count: int = 0
    hand_type: HandType = HandType.UNKNOWN


class ClinicalInterpretation(BaseModel):
    level: str
    description: str
    clinical_meaning: str = ""
    percentage: Optional[float] = None


class FingerTAMInterpretation(BaseModel):
    finger: Finger
    rom: float
    level: str
    description: str
    percentage: float  # of the upper normal bound, capped at 100


class TAMInterpretation(BaseModel):
    overall_score: int
    overall: ClinicalInterpretation
    functional_implications: str
    fingers: List[FingerTAMInterpretation]


class KapandjiInterpretation(BaseModel):
    score: int
    level: str
    description: str
    clinical_meaning: str
    landmarks: List[str] = Field(default_factory=list)


class AssessmentResult(BaseModel):
    assessment_type: str  # tam, kapandji, wrist_flexion_extension, wrist_deviation
    result: Union[FingerROMSummary, KapandjiScore, WristResults, WristDeviationResult]
    interpretation: Optional[Union[TAMInterpretation, KapandjiInterpretation, ClinicalInterpretation]] = None
    frame_count: int = 0
    notes: List[str] = Field(default_factory=list)
