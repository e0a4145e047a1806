"""Tests for condition classification and intensity categories."""
import pytest
from weather_conditions import (
    AtmosphereCondition,
    ConditionCategory,
    PressureCondition,
    RainCondition,
    RainDensity,
    SnowDensity,
    TemperatureModifier,
    WindDirection,
    WindSpeedCategory,
    classify,
    sub_bucket,
)


@pytest.mark.parametrize("code,category", [
    (200, ConditionCategory.THUNDERSTORM),
    (232, ConditionCategory.THUNDERSTORM),
    (300, ConditionCategory.DRIZZLE),
    (502, ConditionCategory.RAIN),
    (511, ConditionCategory.RAIN),
    (600, ConditionCategory.SNOW),
    (741, ConditionCategory.ATMOSPHERE),
    (800, ConditionCategory.CLEAR),
    (801, ConditionCategory.CLOUDS),
    (804, ConditionCategory.CLOUDS),
])
def test_classify_known_codes(code, category):
    """Test documented codes map to their category."""
    assert classify(code) is category


@pytest.mark.parametrize("code", [0, 100, 404, 805, 900, -1])
def test_classify_unknown_codes(code):
    """Test codes outside every range classify as UNKNOWN."""
    assert classify(code) is ConditionCategory.UNKNOWN


def test_every_code_has_one_category():
    """Test classification is total over a wide code range."""
    for code in range(0, 1000):
        assert isinstance(classify(code), ConditionCategory)


def test_sub_bucket():
    """Test detailed conditions and their labels."""
    assert sub_bucket(502) is RainCondition.HEAVY
    assert sub_bucket(511) is RainCondition.FREEZING
    assert sub_bucket(511).label == "Freezing Rain"
    assert sub_bucket(781) is AtmosphereCondition.TORNADO
    # in the rain range but not a documented code
    assert sub_bucket(599) is None
    assert sub_bucket(404) is None


def test_rain_density_thresholds():
    """Test rain density boundaries."""
    assert RainDensity.from_millimeters(0.0) is RainDensity.LIGHT
    assert RainDensity.from_millimeters(2.5) is RainDensity.MEDIUM
    assert RainDensity.from_millimeters(7.5) is RainDensity.HEAVY
    assert RainDensity.from_millimeters(50.0) is RainDensity.EXTREME


def test_snow_density_thresholds():
    """Test snow density boundaries."""
    assert SnowDensity.from_millimeters(0.5) is SnowDensity.LIGHT
    assert SnowDensity.from_millimeters(1.0) is SnowDensity.MEDIUM
    assert SnowDensity.from_millimeters(2.5) is SnowDensity.HEAVY
    assert SnowDensity.from_millimeters(5.0) is SnowDensity.EXTREME


@pytest.mark.parametrize("degrees,direction", [
    (0, WindDirection.N),
    (11.24, WindDirection.N),
    (11.25, WindDirection.NNE),
    (93, WindDirection.E),
    (200, WindDirection.SSW),
    (350, WindDirection.N),
    (360, WindDirection.N),
    (-90, WindDirection.W),
])
def test_wind_direction(degrees, direction):
    """Test degrees map to the 16-point compass."""
    assert WindDirection.from_degrees(degrees) is direction


def test_wind_speed_category():
    """Test wind speed category boundaries."""
    assert WindSpeedCategory.from_meters_per_second(0.5) is WindSpeedCategory.NONE
    assert WindSpeedCategory.from_meters_per_second(1) is WindSpeedCategory.SLOW
    assert WindSpeedCategory.from_meters_per_second(3.13) is WindSpeedCategory.NORMAL
    assert WindSpeedCategory.from_meters_per_second(8) is WindSpeedCategory.FAST
    assert WindSpeedCategory.from_meters_per_second(15) is WindSpeedCategory.EXTREME


def test_pressure_condition():
    """Test pressure condition boundaries."""
    assert PressureCondition.from_hectopascals(960) is PressureCondition.VERY_LOW
    assert PressureCondition.from_hectopascals(990) is PressureCondition.LOW
    assert PressureCondition.from_hectopascals(1005) is PressureCondition.BELOW_NORMAL
    assert PressureCondition.from_hectopascals(1014) is PressureCondition.NORMAL
    assert PressureCondition.from_hectopascals(1030) is PressureCondition.HIGH


def test_temperature_modifier():
    """Test cold/normal/hot split on feels-like Kelvin."""
    assert TemperatureModifier.from_kelvin(280.0) is TemperatureModifier.COLD
    assert TemperatureModifier.from_kelvin(288.15) is TemperatureModifier.NORMAL
    assert TemperatureModifier.from_kelvin(298.15) is TemperatureModifier.HOT
