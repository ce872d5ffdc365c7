"""
hazards.py
~~~~~~~~~~
Locally derived risk flags, as opposed to official alerts.

Pure function over a normalized bundle.  Every rule is independent, several
may fire at once, and the output order always follows the rule table:

    UV ≥ 8                                       UV Risk         High
    6 ≤ UV < 8                                   UV Risk         Moderate
    thunderstorm now or in next 12 hourly points Lightning Risk  Moderate
    ≥ 3 of next 24 hourly points rain ≥ 10 mm/h  Flood Risk      Moderate
    temp > 85 °F, humidity < 30 %, wind > 15 mph Fire Danger     High
    temp < 32 °F                                 Extreme Cold    Severe if < 0 °F, else Moderate

A missing UV index never triggers a UV rule.  Temperature rules compare the
unrounded ``temperature_raw`` so 85.4 °F is hotter than 85 °F.
"""

from __future__ import annotations

from typing import Final, Iterable, Mapping

from .models import CurrentWeather, Hazard, HourlyForecast

UV_HIGH: Final = 8.0
UV_MODERATE: Final = 6.0
LIGHTNING_WINDOW_H: Final = 12
FLOOD_WINDOW_H: Final = 24
FLOOD_RAIN_MM_H: Final = 10.0
FLOOD_MIN_HOURS: Final = 3
FIRE_TEMP_F: Final = 85.0
FIRE_HUMIDITY_PCT: Final = 30.0
FIRE_WIND_MPH: Final = 15.0
FREEZING_F: Final = 32.0
SEVERE_COLD_F: Final = 0.0


def _uv(uv: float | None) -> Hazard | None:
    if uv is None:
        return None
    if uv >= UV_HIGH:
        return {
            "type": "UV Risk",
            "level": "High",
            "description": f"UV index {uv:g}: avoid midday sun, use SPF 30+ and cover up.",
            "icon": "sun",
        }
    if uv >= UV_MODERATE:
        return {
            "type": "UV Risk",
            "level": "Moderate",
            "description": f"UV index {uv:g}: seek shade around midday and wear sunscreen.",
            "icon": "sun",
        }
    return None


def _lightning(current: Mapping, hourly: list[HourlyForecast]) -> Hazard | None:
    if current.get("thunderstorm") or any(
        h["thunderstorm"] for h in hourly[:LIGHTNING_WINDOW_H]
    ):
        return {
            "type": "Lightning Risk",
            "level": "Moderate",
            "description": "Thunderstorms now or within 12 hours. Stay indoors when thunder roars.",
            "icon": "cloud-lightning",
        }
    return None


def _flood(hourly: list[HourlyForecast]) -> Hazard | None:
    heavy = sum(1 for h in hourly[:FLOOD_WINDOW_H] if h["precipitation"] >= FLOOD_RAIN_MM_H)
    if heavy >= FLOOD_MIN_HOURS:
        return {
            "type": "Flood Risk",
            "level": "Moderate",
            "description": (
                f"Heavy rain (≥{FLOOD_RAIN_MM_H:g} mm/h) forecast for {heavy} of the next "
                f"{FLOOD_WINDOW_H} hours. Watch for flooding in low-lying areas."
            ),
            "icon": "cloud-rain",
        }
    return None


def _temperature(current: Mapping) -> float:
    return float(current.get("temperature_raw", current["temperature"]))


def _fire(current: Mapping) -> Hazard | None:
    if (
        _temperature(current) > FIRE_TEMP_F
        and current["humidity"] < FIRE_HUMIDITY_PCT
        and current["wind_speed"] > FIRE_WIND_MPH
    ):
        return {
            "type": "Fire Danger",
            "level": "High",
            "description": "Hot, dry and windy: fires can start and spread quickly. Avoid open burning.",
            "icon": "flame",
        }
    return None


def _cold(current: Mapping) -> Hazard | None:
    temp = _temperature(current)
    if temp >= FREEZING_F:
        return None
    return {
        "type": "Extreme Cold",
        "level": "Severe" if temp < SEVERE_COLD_F else "Moderate",
        "description": f"Temperature {current['temperature']}°F: risk of frostbite and hypothermia.",
        "icon": "snowflake",
    }


def derive_hazards(
    current: CurrentWeather | Mapping,
    hourly: Iterable[HourlyForecast] = (),
) -> list[Hazard]:
    """
    Evaluate every rule against *current* and the upcoming *hourly* points.

    Args:
        current: Canonical current conditions.
        hourly:  Canonical hourly points starting at the current hour.

    Returns:
        Fired hazards in rule-table order (possibly empty).
    """
    hours = list(hourly)
    candidates = (
        _uv(current.get("uv_index")),
        _lightning(current, hours),
        _flood(hours),
        _fire(current),
        _cold(current),
    )
    return [h for h in candidates if h is not None]


__all__ = ["derive_hazards"]
