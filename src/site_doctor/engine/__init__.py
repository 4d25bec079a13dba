"""Engine package - Threshold decision and posture scoring."""

from site_doctor.engine.scoring import ScoringEngine
from site_doctor.engine.threshold import ThresholdDecision, should_notify

__all__ = ["ScoringEngine", "ThresholdDecision", "should_notify"]
