"""
Core training-load and stream calculations used by the ingestion pipeline.
"""
import pandas as pd

from models.activity import CyclingActivityType, VO2MaxMethod


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
PEAK_5MIN_SECONDS = 300
PEAK_20MIN_SECONDS = 1200

# ACSM leg-ergometry: VO2 = 10.8 * W / kg + 7
ACSM_POWER_COEFFICIENT = 10.8
ACSM_RESTING_COMPONENT = 7.0
FTP_FROM_20MIN = 0.95
FTP_TO_VO2MAX_POWER = 0.80


# ---------------------------------------------------------------------------
# Core calculations
# ---------------------------------------------------------------------------
def intensity_factor(np_value: float, ftp: float) -> float:
    """Calculate Intensity Factor (IF), rounded to two decimals."""
    if ftp <= 0 or np_value <= 0:
        return 0.0
    return round(np_value / ftp, 2)


def training_stress_score(duration_sec: float, np_value: float, ftp: float) -> int:
    """Calculate Training Stress Score (TSS)."""
    if ftp <= 0 or np_value <= 0 or duration_sec <= 0:
        return 0
    if_value = np_value / ftp
    return round((duration_sec * np_value * if_value) / (ftp * 3600) * 100)


def classify_workout_type(if_value: float) -> CyclingActivityType:
    """Classify a ride by intensity factor using standard training zones."""
    if if_value >= 1.05:
        return CyclingActivityType.VO2MAX
    if if_value >= 0.88:
        return CyclingActivityType.THRESHOLD
    if if_value >= 0.75:
        return CyclingActivityType.FUN
    if if_value > 0:
        return CyclingActivityType.RECOVERY
    return CyclingActivityType.UNKNOWN


def efficiency_factor(np_value: float, avg_heart_rate: float) -> float | None:
    """Calculate Efficiency Factor (NP / average HR)."""
    if np_value <= 0 or avg_heart_rate <= 0:
        return None
    return round(np_value / avg_heart_rate, 2)


# ---------------------------------------------------------------------------
# Stream analysis
# ---------------------------------------------------------------------------
def peak_power(
    watts: list[float] | None,
    time: list[float] | None,
    window_seconds: int,
) -> int:
    """
    Best average power over any window of elapsed time.

    The power stream is placed on a 1-second grid using the time stream;
    seconds without a sample count as zero power. Returns 0 when there is no
    data or the ride is shorter than the window.
    """
    if not watts or not time or window_seconds <= 0:
        return 0

    n = min(len(watts), len(time))
    power = pd.Series(watts[:n], index=pd.Index([int(t) for t in time[:n]]), dtype=float)
    power = power[~power.index.duplicated(keep="last")].sort_index()

    start, end = int(power.index[0]), int(power.index[-1])
    if end - start + 1 < window_seconds:
        return 0

    grid = power.reindex(range(start, end + 1)).fillna(0.0)
    rolling = grid.rolling(window=window_seconds, min_periods=window_seconds).mean().dropna()
    if rolling.empty:
        return 0
    return int(round(float(rolling.max())))


def hr_completeness(heartrate: list[float] | None) -> int:
    """Percentage (0-100) of heart rate samples that carry a reading."""
    if not heartrate:
        return 0
    hr = pd.Series(heartrate, dtype=float)
    valid = int((hr.fillna(0.0) > 0).sum())
    return round(valid / len(hr) * 100)


# ---------------------------------------------------------------------------
# VO2 max estimation
# ---------------------------------------------------------------------------
def acsm_vo2max(power: float, weight_kg: float) -> float:
    """Apply the ACSM cycling formula, rounded to one decimal."""
    return round((ACSM_POWER_COEFFICIENT * power) / weight_kg + ACSM_RESTING_COMPONENT, 1)


def estimate_vo2max_from_ftp(ftp: float, weight_kg: float) -> float | None:
    """Estimate VO2 max from FTP, assuming FTP sits at 80% of VO2 max power."""
    if ftp <= 0 or weight_kg <= 0:
        return None
    return acsm_vo2max(ftp / FTP_TO_VO2MAX_POWER, weight_kg)


def estimate_vo2max_from_peak_power(
    power: float,
    weight_kg: float,
    method: VO2MaxMethod = VO2MaxMethod.PEAK_5MIN,
) -> float | None:
    """
    Estimate VO2 max from a peak power effort.

    A 5-minute peak is treated as VO2 max power directly. A 20-minute peak is
    first converted to FTP (95%) and then to VO2 max power.
    """
    if power <= 0 or weight_kg <= 0:
        return None

    if method == VO2MaxMethod.PEAK_20MIN:
        return estimate_vo2max_from_ftp(power * FTP_FROM_20MIN, weight_kg)
    if method == VO2MaxMethod.FTP_DERIVED:
        return estimate_vo2max_from_ftp(power, weight_kg)
    return acsm_vo2max(power, weight_kg)
