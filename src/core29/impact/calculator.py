"""Journey impact calculator: time, CO2 and calories versus driving the same distance.

Pure functions only: no I/O, no clock. Every figure is rounded to 2 decimals
with round-half-up on the scaled value, and the vs-drive deltas are taken
from the already-rounded components.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from enum import Enum

from core29.exceptions import ValidationError

MAX_DISTANCE_KM = 500.0


class TransportMode(str, Enum):
    WALK = "walk"
    CYCLE = "cycle"
    E_SCOOTER = "e-scooter"
    BUS = "bus"
    TRAIN = "train"
    DRIVE = "drive"
    BOAT = "boat"
    PLANE = "plane"


@dataclass(frozen=True)
class ModeConfig:
    speed_kmh: float
    overhead_min: float
    co2_g_per_km: float
    calories_per_km: float


MODE_CONFIG: dict[TransportMode, ModeConfig] = {
    TransportMode.WALK: ModeConfig(speed_kmh=5, overhead_min=0, co2_g_per_km=0, calories_per_km=50),
    TransportMode.CYCLE: ModeConfig(speed_kmh=15, overhead_min=0, co2_g_per_km=0, calories_per_km=30),
    TransportMode.E_SCOOTER: ModeConfig(speed_kmh=18, overhead_min=0, co2_g_per_km=20, calories_per_km=10),
    TransportMode.BUS: ModeConfig(speed_kmh=20, overhead_min=5, co2_g_per_km=80, calories_per_km=0),
    TransportMode.TRAIN: ModeConfig(speed_kmh=35, overhead_min=8, co2_g_per_km=40, calories_per_km=0),
    TransportMode.DRIVE: ModeConfig(speed_kmh=30, overhead_min=3, co2_g_per_km=170, calories_per_km=0),
    TransportMode.BOAT: ModeConfig(speed_kmh=25, overhead_min=15, co2_g_per_km=120, calories_per_km=0),
    TransportMode.PLANE: ModeConfig(speed_kmh=800, overhead_min=90, co2_g_per_km=255, calories_per_km=0),
}


@dataclass(frozen=True)
class JourneyCalculation:
    time_min: float
    co2_g: float
    calories_kcal: float
    drive_time_min: float
    drive_co2_g: float
    vs_drive_co2_saved_g: float
    vs_drive_time_delta_min: float
    vs_drive_calories_delta_kcal: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def round2(value: float) -> float:
    """Round half up to 2 decimals (-0.005 -> -0.0, 0.005 -> 0.01)."""
    rounded = math.floor(value * 100 + 0.5) / 100
    # Normalise -0.0 so equal results compare and serialise identically.
    return rounded + 0.0


def parse_mode(mode: str | TransportMode) -> TransportMode:
    """Coerce a raw mode string, raising ValidationError for unknown values."""
    if isinstance(mode, TransportMode):
        return mode
    try:
        return TransportMode(mode)
    except ValueError:
        valid = ", ".join(m.value for m in TransportMode)
        raise ValidationError(f"mode must be one of: {valid}") from None


def validate_distance(distance_km: float, max_distance_km: float = MAX_DISTANCE_KM) -> float:
    """Distance must be a finite number in (0, max_distance_km]."""
    if isinstance(distance_km, bool) or not isinstance(distance_km, (int, float)):
        raise ValidationError("distance_km must be a number")
    if not math.isfinite(distance_km) or distance_km <= 0 or distance_km > max_distance_km:
        raise ValidationError(f"distance_km must be between 0 and {max_distance_km:g}")
    return float(distance_km)


def _trip(distance_km: float, config: ModeConfig) -> tuple[float, float, float]:
    time_min = round2(distance_km / config.speed_kmh * 60 + config.overhead_min)
    co2_g = round2(distance_km * config.co2_g_per_km)
    calories_kcal = round2(distance_km * config.calories_per_km)
    return time_min, co2_g, calories_kcal


def calculate_journey(distance_km: float, mode: str | TransportMode) -> JourneyCalculation:
    """Compute a journey's impact and its deltas against the same-distance drive."""
    distance_km = validate_distance(distance_km)
    chosen = MODE_CONFIG[parse_mode(mode)]

    time_min, co2_g, calories_kcal = _trip(distance_km, chosen)
    drive_time_min, drive_co2_g, _ = _trip(distance_km, MODE_CONFIG[TransportMode.DRIVE])

    return JourneyCalculation(
        time_min=time_min,
        co2_g=co2_g,
        calories_kcal=calories_kcal,
        drive_time_min=drive_time_min,
        drive_co2_g=drive_co2_g,
        # Negative for boat/plane: they emit more than driving.
        vs_drive_co2_saved_g=round2(drive_co2_g - co2_g),
        vs_drive_time_delta_min=round2(time_min - drive_time_min),
        # Driving burns nothing, so the delta is the absolute figure.
        vs_drive_calories_delta_kcal=calories_kcal,
    )


def get_impact_equivalents(co2_saved_g: float) -> dict[str, float]:
    """Everyday comparisons for an amount of CO2 saved (display only)."""
    return {
        "phone_charges": round2(co2_saved_g / 8.22),
        "kettle_boils": round2(co2_saved_g / 70),
        "km_driving_avoided": round2(co2_saved_g / MODE_CONFIG[TransportMode.DRIVE].co2_g_per_km),
        "trees_year_fraction": round2(co2_saved_g / 22000),
        "led_bulb_hours": round2(co2_saved_g / 4.1),
    }


def get_calorie_equivalents(calories: float) -> dict[str, float]:
    """Activity comparisons for calories burned (display only)."""
    return {
        "jogging_minutes": round2(calories / 10),
        "swimming_minutes": round2(calories / 8),
        "yoga_minutes": round2(calories / 4),
        "chocolate_bars": round2(calories / 230),
    }
