from typing import Optional

from .config import DEFAULT_CONFIG, EngineConfig
from .deviation import process_wrist_deviation_data
from .finger_rom import calculate_all_fingers_max_rom
from .interpretation import interpret_deviation, interpret_kapandji, interpret_tam, interpret_wrist
from .kapandji import calculate_max_kapandji_score
from .models import AssessmentResult, Finger, MotionSequence
from .wrist import SessionLock, calculate_wrist_results


class AssessmentAnalyzer:
    @staticmethod
    def assess_tam(sequence: MotionSequence, config: EngineConfig = DEFAULT_CONFIG,
                   smoothing: bool = True) -> AssessmentResult:
        """
        Total active motion for the four long fingers.
        Notes flag fingers whose temporal quality fell below the configured threshold.
        """
        summary = calculate_all_fingers_max_rom(sequence.frames, config.finger, smoothing=smoothing)
        result = AssessmentResult(
            assessment_type="tam",
            result=summary,
            interpretation=interpret_tam(summary),
            frame_count=len(sequence.frames),
        )
        threshold = config.finger.temporal.temporal_quality_threshold
        for finger in Finger:
            quality = summary.temporal_quality.get(finger.value.lower(), 0.0)
            if quality < threshold:
                result.notes.append(f"Low temporal quality for {finger.value.lower()} finger: {quality:.2f}")
        if not sequence.frames:
            result.notes.append("No motion frames recorded.")
        return result

    @staticmethod
    def assess_kapandji(sequence: MotionSequence, config: EngineConfig = DEFAULT_CONFIG) -> AssessmentResult:
        score = calculate_max_kapandji_score(sequence.frames, config.kapandji)
        result = AssessmentResult(
            assessment_type="kapandji",
            result=score,
            interpretation=interpret_kapandji(score.max_score),
            frame_count=len(sequence.frames),
        )
        if sequence.best_ever_kapandji and score.max_score < sequence.best_ever_kapandji:
            result.notes.append(f"Score below previous best of {sequence.best_ever_kapandji}/10.")
        return result

    @staticmethod
    def assess_wrist_flexion_extension(sequence: MotionSequence, config: EngineConfig = DEFAULT_CONFIG,
                                       session: Optional[SessionLock] = None) -> AssessmentResult:
        """
        Wrist flexion/extension maxima. A fresh session lock is used unless the
        caller supplies the one owned by the current recording.
        """
        if session is None:
            session = SessionLock()
        wrist = calculate_wrist_results(sequence.frames, session, sequence.hand_type, config.wrist)
        result = AssessmentResult(
            assessment_type="wrist_flexion_extension",
            result=wrist,
            interpretation=interpret_wrist(wrist),
            frame_count=len(sequence.frames),
        )
        if wrist.average_confidence == 0:
            result.notes.append("Unable to detect elbow landmarks.")
        return result

    @staticmethod
    def assess_wrist_deviation(sequence: MotionSequence, config: EngineConfig = DEFAULT_CONFIG) -> AssessmentResult:
        deviation = process_wrist_deviation_data(sequence.frames, sequence.hand_type, config.deviation)
        result = AssessmentResult(
            assessment_type="wrist_deviation",
            result=deviation,
            interpretation=interpret_deviation(deviation),
            frame_count=len(sequence.frames),
        )
        if deviation.frame_count == 0:
            result.notes.append("No frames with sufficient hand visibility.")
        elif not deviation.reproducibility_valid:
            result.notes.append("Deviation readings not reproducible within "
                                f"{config.deviation.reproducibility_tolerance:g}°.")
        return result

    @staticmethod
    def assess(assessment_type: str, sequence: MotionSequence, config: EngineConfig = DEFAULT_CONFIG,
               session: Optional[SessionLock] = None) -> AssessmentResult:
        """Main entry point for assessment analysis."""
        kind = assessment_type.lower().replace("-", "_").replace(" ", "_")
        if kind in ('tam', 'finger_rom'):
            return AssessmentAnalyzer.assess_tam(sequence, config)
        elif kind == 'kapandji':
            return AssessmentAnalyzer.assess_kapandji(sequence, config)
        elif kind in ('wrist_flexion_extension', 'wrist'):
            return AssessmentAnalyzer.assess_wrist_flexion_extension(sequence, config, session)
        elif kind in ('wrist_deviation', 'deviation'):
            return AssessmentAnalyzer.assess_wrist_deviation(sequence, config)
        else:
            raise ValueError(f"Unknown assessment type: {assessment_type}")
