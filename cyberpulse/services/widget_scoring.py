"""Widget scoring strategies: raw signal value to maturity points."""

from __future__ import annotations

import math
from enum import Enum
from typing import Any

import structlog

from cyberpulse.errors import ConfigurationError

logger = structlog.get_logger()


class ScoringType(str, Enum):
    """The closed set of widget scoring strategies."""

    YES_NO = "yesno"
    RANGE = "range"
    PERCENTAGE = "percentage"
    PERCENTAGE_INVERSE = "percentage_inverse"


# Configuration keys each strategy needs
REQUIRED_CONFIG: dict[ScoringType, tuple[str, ...]] = {
    ScoringType.YES_NO: (),
    ScoringType.RANGE: ("min", "max"),
    ScoringType.PERCENTAGE: ("scale", "max_points"),
    ScoringType.PERCENTAGE_INVERSE: ("scale", "max_points"),
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require(config: dict[str, Any], scoring_type: ScoringType) -> None:
    missing = [k for k in REQUIRED_CONFIG[scoring_type] if config.get(k) is None]
    if missing:
        raise ConfigurationError(
            f"Scoring type '{scoring_type.value}' is missing configuration: {', '.join(missing)}"
        )


def score_widget(scoring_type: str, config: dict[str, Any] | None, value: Any) -> float:
    """Apply a scoring strategy, raising ConfigurationError when misconfigured.

    Args:
        scoring_type: One of the ScoringType values.
        config: Strategy parameters (yes_value/no_value, min/max/points/fallback,
            scale/max_points).
        value: Raw value from the fetcher or the manual override.

    Returns:
        Points before rounding and clamping to the widget's points available.
        Values of the wrong type score 0.
    """
    try:
        kind = ScoringType(scoring_type)
    except ValueError:
        raise ConfigurationError(f"Unknown scoring type '{scoring_type}'") from None

    config = config or {}
    _require(config, kind)

    if kind is ScoringType.YES_NO:
        points = config.get("yes_value", 0) if value is True else config.get("no_value", 0)
        return max(0.0, float(points))

    if not _is_number(value):
        return 0.0

    if kind is ScoringType.RANGE:
        if config["min"] <= value <= config["max"]:
            return max(0.0, float(config.get("points", 0)))
        return max(0.0, float(config.get("fallback", 0)))

    if kind is ScoringType.PERCENTAGE:
        raw = value * config["scale"]
    else:
        # Lower is better, e.g. share of unencrypted devices.
        raw = (100 - value) * config["scale"]
    return max(0.0, min(float(raw), float(config["max_points"])))


def calculate_widget_score(scoring_type: str, config: dict[str, Any] | None, value: Any) -> float:
    """Score a widget value, treating any misconfiguration as 0 points."""
    try:
        return score_widget(scoring_type, config, value)
    except ConfigurationError as exc:
        logger.warning("widget_config_error", scoring_type=scoring_type, error=str(exc))
        return 0.0


def clamp_points(points: float, points_available: float) -> int:
    """Round half up and clamp a widget's contribution to [0, points_available].

    The result is whole points, so a fractional ceiling rounds down.
    """
    rounded = math.floor(points + 0.5)
    return max(0, min(rounded, math.floor(points_available)))
