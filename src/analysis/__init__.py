"""
Training metrics for ingested rides.

Provides:
- Training load (TSS, intensity factor, workout classification)
- Efficiency factor
- Stream-derived peak power and heart rate completeness
- VO2 max estimation from power and body weight
"""

from analysis.calculations import (
    PEAK_5MIN_SECONDS, PEAK_20MIN_SECONDS,
    intensity_factor, training_stress_score, classify_workout_type,
    efficiency_factor, peak_power, hr_completeness,
    acsm_vo2max, estimate_vo2max_from_ftp, estimate_vo2max_from_peak_power
)

__all__ = [
    # Window sizes
    'PEAK_5MIN_SECONDS',
    'PEAK_20MIN_SECONDS',

    # Training load
    'intensity_factor',
    'training_stress_score',
    'classify_workout_type',
    'efficiency_factor',

    # Streams
    'peak_power',
    'hr_completeness',

    # VO2 max
    'acsm_vo2max',
    'estimate_vo2max_from_ftp',
    'estimate_vo2max_from_peak_power',
]
