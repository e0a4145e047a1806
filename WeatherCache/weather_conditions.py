"""Classification of OpenWeather condition codes and measured intensities."""
from enum import Enum, IntEnum
from typing import Optional


class ConditionCategory(Enum):
    """Semantic weather category for a provider condition code."""
    CLEAR = "clear"
    THUNDERSTORM = "thunderstorm"
    DRIZZLE = "drizzle"
    RAIN = "rain"
    SNOW = "snow"
    ATMOSPHERE = "atmosphere"
    CLOUDS = "clouds"
    UNKNOWN = "unknown"


class _LabeledCondition(IntEnum):
    """Condition detail keyed by provider code, with a human label."""

    def __new__(cls, code: int, label: str):
        member = int.__new__(cls, code)
        member._value_ = code
        member.label = label
        return member


class ThunderstormCondition(_LabeledCondition):
    WITH_LIGHT_RAIN = (200, "Thunderstorm (Light Rain)")
    WITH_RAIN = (201, "Thunderstorm (Normal Rain)")
    WITH_HEAVY_RAIN = (202, "Thunderstorm (Heavy Rain)")
    LIGHT = (210, "Light Thunderstorm")
    NORMAL = (211, "Moderate Thunderstorm")
    HEAVY = (212, "Heavy Thunderstorm")
    RAGGED = (221, "Thunderstorm (Ragged, Unstable Conditions)")
    WITH_LIGHT_DRIZZLE = (230, "Thunderstorm (Light Drizzle)")
    WITH_DRIZZLE = (231, "Thunderstorm (Drizzle)")
    WITH_HEAVY_DRIZZLE = (232, "Thunderstorm (Heavy Drizzle)")


class DrizzleCondition(_LabeledCondition):
    LIGHT = (300, "Light Drizzle")
    MODERATE = (301, "Moderate Drizzle")
    HEAVY = (302, "Heavy Drizzle")
    LIGHT_DRIZZLE_RAIN = (310, "Drizzle, Light Rain")
    DRIZZLE_RAIN = (311, "Drizzle, Rain")
    HEAVY_DRIZZLE_RAIN = (312, "Drizzle, Heavy Rain")
    WITH_SHOWER_RAIN = (313, "Drizzle, Rain Shower")
    WITH_HEAVY_SHOWER_RAIN = (314, "Drizzle, Heavy Rain Shower")
    SHOWER = (321, "Drizzle Shower")


class RainCondition(_LabeledCondition):
    LIGHT = (500, "Light Rain")
    MODERATE = (501, "Moderate Rain")
    HEAVY = (502, "Heavy Rain")
    VERY_HEAVY = (503, "Very Heavy Rain")
    EXTREME = (504, "Extreme Rain")
    FREEZING = (511, "Freezing Rain")
    LIGHT_SHOWER = (520, "Rain (Light Shower)")
    SHOWER = (521, "Rain (Moderate Shower)")
    HEAVY_SHOWER = (522, "Rain (Heavy Shower)")
    RAGGED_SHOWER = (531, "Rain (Ragged, Unstable Conditions)")


class SnowCondition(_LabeledCondition):
    LIGHT = (600, "Light Snow")
    MODERATE = (601, "Moderate Snow")
    HEAVY = (602, "Heavy Snow")
    SLEET = (611, "Sleet")
    LIGHT_SLEET_SHOWER = (612, "Sleet (Light Shower)")
    SLEET_SHOWER = (613, "Sleet (Moderate Shower)")
    LIGHT_RAIN_AND_SNOW = (615, "Snow & Light Rain")
    RAIN_AND_SNOW = (616, "Snow & Moderate Rain")
    LIGHT_SHOWER = (620, "Light Snow Shower")
    SHOWER = (621, "Moderate Snow Shower")
    HEAVY_SHOWER = (622, "Heavy Snow Shower")


class AtmosphereCondition(_LabeledCondition):
    MIST = (701, "Mist")
    SMOKE = (711, "Smoke")
    HAZE = (721, "Haze")
    SAND_DUST_SWIRLS = (731, "Sand & Dust Swirls")
    FOG = (741, "Fog")
    SAND = (751, "Sand")
    DUST = (761, "Dust")
    ASH = (762, "Ash")
    SQUALL = (771, "Squall")
    TORNADO = (781, "Tornado")


class ClearCondition(_LabeledCondition):
    CLEAR_SKY = (800, "Clear Sky")


class CloudCondition(_LabeledCondition):
    FEW = (801, "Few Clouds")
    SCATTERED = (802, "Scattered Clouds")
    BROKEN = (803, "Broken Clouds")
    OVERCAST = (804, "Overcast")


_DETAILS = {
    ConditionCategory.THUNDERSTORM: ThunderstormCondition,
    ConditionCategory.DRIZZLE: DrizzleCondition,
    ConditionCategory.RAIN: RainCondition,
    ConditionCategory.SNOW: SnowCondition,
    ConditionCategory.ATMOSPHERE: AtmosphereCondition,
    ConditionCategory.CLEAR: ClearCondition,
    ConditionCategory.CLOUDS: CloudCondition,
}


def classify(code: int) -> ConditionCategory:
    """
    Map a provider condition code to exactly one category.

    Codes outside every known range classify as UNKNOWN.
    """
    if 200 <= code <= 299:
        return ConditionCategory.THUNDERSTORM
    if 300 <= code <= 399:
        return ConditionCategory.DRIZZLE
    if 500 <= code <= 599:
        return ConditionCategory.RAIN
    if 600 <= code <= 699:
        return ConditionCategory.SNOW
    if 700 <= code <= 799:
        return ConditionCategory.ATMOSPHERE
    if code == 800:
        return ConditionCategory.CLEAR
    if 801 <= code <= 804:
        return ConditionCategory.CLOUDS
    return ConditionCategory.UNKNOWN


def sub_bucket(code: int) -> Optional[_LabeledCondition]:
    """
    Return the detailed condition for a code, e.g. RainCondition.HEAVY for 502.

    None when the code sits in a category range but is not a documented code.
    """
    details = _DETAILS.get(classify(code))
    if details is None:
        return None
    try:
        return details(code)
    except ValueError:
        return None


class RainDensity(Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"
    EXTREME = "extreme"

    @classmethod
    def from_millimeters(cls, amount: float) -> "RainDensity":
        if amount < 2.5:
            return cls.LIGHT
        if amount < 7.5:
            return cls.MEDIUM
        if amount < 50.0:
            return cls.HEAVY
        return cls.EXTREME


class SnowDensity(Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"
    EXTREME = "extreme"

    @classmethod
    def from_millimeters(cls, amount: float) -> "SnowDensity":
        if amount < 1.0:
            return cls.LIGHT
        if amount < 2.5:
            return cls.MEDIUM
        if amount < 5.0:
            return cls.HEAVY
        return cls.EXTREME


class WindDirection(Enum):
    """16-point compass direction; value is the sector centre in degrees."""
    N = 0.0
    NNE = 22.5
    NE = 45.0
    ENE = 67.5
    E = 90.0
    ESE = 112.5
    SE = 135.0
    SSE = 157.5
    S = 180.0
    SSW = 202.5
    SW = 225.0
    WSW = 247.5
    W = 270.0
    WNW = 292.5
    NW = 315.0
    NNW = 337.5

    @classmethod
    def from_degrees(cls, degrees: float) -> "WindDirection":
        # Sectors are 22.5 degrees wide, centred on each compass point.
        index = int(((degrees % 360.0) + 11.25) // 22.5) % 16
        return list(cls)[index]


class WindSpeedCategory(Enum):
    NONE = "none"
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"
    EXTREME = "extreme"

    @classmethod
    def from_meters_per_second(cls, speed: float) -> "WindSpeedCategory":
        if speed < 1:
            return cls.NONE
        if speed < 3:
            return cls.SLOW
        if speed < 8:
            return cls.NORMAL
        if speed < 15:
            return cls.FAST
        return cls.EXTREME


class PressureCondition(Enum):
    VERY_LOW = "very low"
    LOW = "low"
    BELOW_NORMAL = "below normal"
    NORMAL = "normal"
    HIGH = "high"

    @classmethod
    def from_hectopascals(cls, pressure: float) -> "PressureCondition":
        if pressure <= 980:
            return cls.VERY_LOW
        if pressure <= 1000:
            return cls.LOW
        if pressure <= 1010:
            return cls.BELOW_NORMAL
        if pressure <= 1020:
            return cls.NORMAL
        return cls.HIGH


class TemperatureModifier(Enum):
    COLD = "cold"
    NORMAL = "normal"
    HOT = "hot"

    @classmethod
    def from_kelvin(cls, temperature: float) -> "TemperatureModifier":
        if temperature < 288.15:
            return cls.COLD
        if temperature < 298.15:
            return cls.NORMAL
        return cls.HOT
