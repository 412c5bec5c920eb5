from friction.patterns import InteractionTracker, detect_interaction_pattern
from friction.severity import weight_severity

__all__ = ["InteractionTracker", "detect_interaction_pattern", "weight_severity"]
