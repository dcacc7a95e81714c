# focos/services/classifier.py
#
# Maps FIRMS confidence / FRP readings to the coarse intensity buckets
# used by fire_reports.intensity.

from ..models.fire_reports import Intensity

CONFIDENCE_LOW = "low"
CONFIDENCE_NOMINAL = "nominal"
CONFIDENCE_HIGH = "high"

# Fire radiative power (MW) above which a detection is always "extreme"
EXTREME_FRP_MW = 100.0

_CONFIDENCE_ALIASES = {
    "h": CONFIDENCE_HIGH,
    "high": CONFIDENCE_HIGH,
    "l": CONFIDENCE_LOW,
    "low": CONFIDENCE_LOW,
}

_INTENSITY_BY_CONFIDENCE = {
    CONFIDENCE_HIGH: Intensity.HIGH,
    CONFIDENCE_NOMINAL: Intensity.MEDIUM,
    CONFIDENCE_LOW: Intensity.LOW,
}


def normalize_confidence(value) -> str:
    """
    'h' / 'high' -> high, 'l' / 'low' -> low, anything else
    (including 'n', empty, None, numeric MODIS values) -> nominal.
    """
    if value is None:
        return CONFIDENCE_NOMINAL
    return _CONFIDENCE_ALIASES.get(str(value).strip().lower(), CONFIDENCE_NOMINAL)


def confidence_to_intensity(confidence: str, frp: float) -> Intensity:
    if frp > EXTREME_FRP_MW:
        return Intensity.EXTREME
    return _INTENSITY_BY_CONFIDENCE.get(normalize_confidence(confidence), Intensity.MEDIUM)


def describe_hotspot(hotspot) -> str:
    """Human readable summary stored in fire_reports.description."""
    detected = hotspot.detected_at
    period = "day" if hotspot.daynight == "D" else "night"
    return (
        f"Satellite detection ({hotspot.satellite}). "
        f"Confidence: {hotspot.confidence}. "
        f"FRP: {hotspot.frp:.1f} MW. "
        f"Acquired {detected:%Y-%m-%d %H:%M} UTC ({period})."
    )
