"""
Turns raw admin payloads into well-formed device configurations.

Nothing here touches storage. Screen, layout and URL content never cause a
rejection: out-of-range numbers are clamped and anything unusable falls back
to its default. The only hard failure is a missing or empty device id.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from signage_api.schemas.signage import (
    DEFAULT_LAYOUT,
    LAYOUTS,
    SCREEN_NUMERIC_FIELDS,
    DeviceConfig,
    ScreenConfig,
)
from signage_api.services.errors import InvalidIdentifier

# wire name -> attribute name
_SCREEN_WIRE_NAMES = {
    "splitRatio": "split_ratio",
    "gapPx": "gap_px",
    "paddingPx": "padding_px",
}


def _finite_number(value: Any) -> Decimal | None:
    # Decimal holds arbitrarily large JSON integers exactly.
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = Decimal(value)
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not number.is_finite():
        return None
    return number


def clamp_int(value: Any, default: int, low: int, high: int) -> int:
    number = _finite_number(value)
    if number is None:
        return default
    number = min(max(number, Decimal(low)), Decimal(high))
    return int(number.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _url(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def normalize_device_id(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidIdentifier("deviceId must be a non-empty string")
    return value


def normalize_screen(raw: Any) -> ScreenConfig:
    if not isinstance(raw, dict):
        raw = {}
    values: dict[str, Any] = {
        "orientation": "column" if raw.get("orientation") == "column" else "row",
    }
    for wire_name, attr in _SCREEN_WIRE_NAMES.items():
        default, low, high = SCREEN_NUMERIC_FIELDS[attr]
        values[attr] = clamp_int(raw.get(wire_name), default, low, high)
    return ScreenConfig(**values)


def normalize_config(raw: Any) -> DeviceConfig:
    if not isinstance(raw, dict):
        raw = {}
    layout = raw.get("layout")
    return DeviceConfig(
        web_url=_url(raw.get("webUrl")),
        video_url=_url(raw.get("videoUrl")),
        layout=layout if layout in LAYOUTS else DEFAULT_LAYOUT,
        screen=normalize_screen(raw.get("screen")),
    )


def normalize_payload(payload: Any) -> tuple[str, DeviceConfig]:
    """Validate an upsert body of the form ``{deviceId, webUrl, videoUrl, layout, screen}``."""
    if not isinstance(payload, dict):
        raise InvalidIdentifier("deviceId is required")
    if "deviceId" not in payload:
        raise InvalidIdentifier("deviceId is required")
    device_id = normalize_device_id(payload.get("deviceId"))
    return device_id, normalize_config(payload)

