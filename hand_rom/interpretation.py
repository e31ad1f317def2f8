"""
Clinical interpretation of measured ranges of motion.

Bands follow AMA normal values for the wrist and published TAM norms for the
fingers.
"""

from typing import Dict, List, Optional, Tuple

from .config import (
    NORMAL_RADIAL_DEVIATION,
    NORMAL_TAM_RANGES,
    NORMAL_ULNAR_DEVIATION,
    NORMAL_WRIST_EXTENSION,
    NORMAL_WRIST_FLEXION,
)
from .kapandji import KAPANDJI_TARGETS
from .models import (
    ClinicalInterpretation,
    Finger,
    FingerROMSummary,
    FingerTAMInterpretation,
    KapandjiInterpretation,
    KapandjiScore,
    TAMInterpretation,
    WristDeviationResult,
    WristResults,
)

# (minimum percentage of normal, level, finger description)
TAM_LEVELS: List[Tuple[float, str, str]] = [
    (90, 'Excellent', 'Near-normal ROM'),
    (75, 'Good', 'Good functional ROM'),
    (60, 'Fair', 'Adequate ROM'),
    (40, 'Limited', 'Limited ROM'),
    (0, 'Severely Limited', 'Severely limited ROM'),
]

TAM_OVERALL: Dict[str, Tuple[str, str, str]] = {
    'Excellent': (
        'Excellent hand function',
        'Near-normal or normal finger flexion across all digits. Excellent functional capacity.',
        'Full grip strength and dexterity. Suitable for all daily activities and occupational tasks.',
    ),
    'Good': (
        'Good hand function',
        'Good functional range with minor limitations. Most daily activities achievable.',
        'Adequate grip strength. May have minor limitations with fine motor tasks or power grip.',
    ),
    'Fair': (
        'Fair hand function',
        'Moderate functional limitations. Some difficulty with grip and manipulation tasks.',
        'May require adaptive strategies. Difficulty with tight grips or small object manipulation.',
    ),
    'Limited': (
        'Limited hand function',
        'Significant functional limitations. Substantial difficulty with most hand activities.',
        'Requires assistive devices or adaptive techniques. Limited grip strength and dexterity.',
    ),
    'Severely Limited': (
        'Severely limited hand function',
        'Severely compromised hand function. Major limitations in all activities.',
        'Significant functional impairment. May require surgical intervention or intensive therapy.',
    ),
}

# (minimum score, level, description, clinical meaning)
KAPANDJI_LEVELS: List[Tuple[int, str, str, str]] = [
    (9, 'Excellent', 'Excellent thumb opposition function',
     'Near-normal or normal thumb opposition. Excellent functional capacity for pinch and grip activities.'),
    (7, 'Good', 'Good thumb opposition function',
     'Good functional capacity with minor limitations. Suitable for most daily activities.'),
    (5, 'Fair', 'Fair thumb opposition function',
     'Moderate functional limitations. May require adaptive strategies for some activities.'),
    (3, 'Poor', 'Poor thumb opposition function',
     'Significant functional limitations. Difficulty with pinch and grip activities.'),
    (0, 'Severe Limitation', 'Severe thumb opposition limitation',
     'Severely limited functional capacity. May require surgical intervention or intensive therapy.'),
]


def _tam_level(percentage: float) -> Tuple[str, str]:
    for threshold, level, description in TAM_LEVELS:
        if percentage >= threshold:
            return level, description
    return TAM_LEVELS[-1][1], TAM_LEVELS[-1][2]


def interpret_finger_tam(finger: Finger, rom: float) -> FingerTAMInterpretation:
    normal_max = NORMAL_TAM_RANGES[finger.value][1]
    percentage = round(rom / normal_max * 100)
    level, description = _tam_level(percentage)
    return FingerTAMInterpretation(
        finger=finger,
        rom=rom,
        level=level,
        description=description,
        percentage=max(0, min(100, percentage)),
    )


def interpret_tam(summary: FingerROMSummary, total_active_rom: Optional[float] = None) -> TAMInterpretation:
    fingers = [interpret_finger_tam(f, summary.for_finger(f).total_active_rom) for f in Finger]
    average_percentage = sum(f.percentage for f in fingers) / len(fingers)
    level, _ = _tam_level(average_percentage)
    description, meaning, implications = TAM_OVERALL[level]

    if total_active_rom:
        overall_score = round(total_active_rom / 4)
    else:
        overall_score = round(sum(f.rom for f in fingers) / 4)

    return TAMInterpretation(
        overall_score=overall_score,
        overall=ClinicalInterpretation(
            level=level,
            description=description,
            clinical_meaning=meaning,
            percentage=average_percentage,
        ),
        functional_implications=implications,
        fingers=fingers,
    )


def interpret_kapandji(score: int) -> KapandjiInterpretation:
    for threshold, level, description, meaning in KAPANDJI_LEVELS:
        if score >= threshold:
            break
    return KapandjiInterpretation(
        score=score,
        level=level,
        description=description,
        clinical_meaning=meaning,
        landmarks=[t.name for t in KAPANDJI_TARGETS[:max(0, score)]],
    )


def achieved_landmarks(score: KapandjiScore) -> List[str]:
    """Catalog names of every target marked reached, in catalog order."""
    return [t.name for t in KAPANDJI_TARGETS if score.details.get(t.key)]


def interpret_wrist(results: WristResults) -> ClinicalInterpretation:
    if results.max_flexion >= 60 and results.max_extension >= 50:
        return ClinicalInterpretation(level='Normal', description='Excellent wrist mobility')
    if results.max_flexion >= 40 or results.max_extension >= 30:
        return ClinicalInterpretation(level='Moderate', description='Some limitation present')
    return ClinicalInterpretation(level='Limited', description='Significant mobility restriction')


def wrist_percentages(results: WristResults) -> Dict[str, float]:
    return {
        'flexion': min(results.max_flexion / NORMAL_WRIST_FLEXION * 100, 100),
        'extension': min(results.max_extension / NORMAL_WRIST_EXTENSION * 100, 100),
    }


def interpret_deviation(result: WristDeviationResult) -> ClinicalInterpretation:
    radial = result.max_radial_deviation
    ulnar = result.max_ulnar_deviation
    total = result.total_deviation_rom
    if radial >= 18 and ulnar >= 25 and total >= 45:
        return ClinicalInterpretation(level='Normal', description='Excellent wrist deviation mobility')
    if radial >= 12 and ulnar >= 18 and total >= 30:
        return ClinicalInterpretation(level='Moderate', description='Some deviation limitation present')
    return ClinicalInterpretation(level='Limited', description='Significant deviation restriction')


def deviation_percentages(result: WristDeviationResult) -> Dict[str, float]:
    # Capped at 150% so tracking overshoot stays visible without dominating
    return {
        'radial': min(result.max_radial_deviation / NORMAL_RADIAL_DEVIATION * 100, 150),
        'ulnar': min(result.max_ulnar_deviation / NORMAL_ULNAR_DEVIATION * 100, 150),
    }


def deviation_quality_score(result: WristDeviationResult, target_frames: int = 150) -> int:
    """0-100 measurement quality: confidence (60), frame coverage (20), plausible range (20)."""
    score = result.confidence * 60
    score += min(result.frame_count / target_frames, 1) * 20
    plausible = result.max_radial_deviation <= 40 and result.max_ulnar_deviation <= 50
    score += 20 if plausible else 10
    return min(round(score), 100)
