"""Unit conversion for provider-native measurements - pure functions, no state."""
from dataclasses import dataclass
from enum import Enum
from typing import Union


class _LinearUnit(Enum):
    """
    Base for unit enums. Each member maps linearly onto its dimension's base unit:

        base = value * coefficient + constant
    """

    def __init__(self, symbol: str, coefficient: float, constant: float):
        self.symbol = symbol
        self.coefficient = coefficient
        self.constant = constant

    def to_base(self, value: float) -> float:
        return value * self.coefficient + self.constant

    def from_base(self, value: float) -> float:
        return (value - self.constant) / self.coefficient


class TemperatureUnit(_LinearUnit):
    KELVIN = ("K", 1.0, 0.0)
    CELSIUS = ("°C", 1.0, 273.15)
    FAHRENHEIT = ("°F", 5.0 / 9.0, 459.67 * 5.0 / 9.0)


class PressureUnit(_LinearUnit):
    # base: pascal
    HECTOPASCALS = ("hPa", 100.0, 0.0)
    MILLIBARS = ("mbar", 100.0, 0.0)
    KILOPASCALS = ("kPa", 1000.0, 0.0)
    INCHES_OF_MERCURY = ("inHg", 3386.389, 0.0)
    MILLIMETERS_OF_MERCURY = ("mmHg", 133.322387415, 0.0)


class SpeedUnit(_LinearUnit):
    # base: metres per second
    METERS_PER_SECOND = ("m/s", 1.0, 0.0)
    KILOMETERS_PER_HOUR = ("km/h", 1.0 / 3.6, 0.0)
    MILES_PER_HOUR = ("mph", 0.44704, 0.0)
    KNOTS = ("kn", 1852.0 / 3600.0, 0.0)


class PrecipitationUnit(_LinearUnit):
    """Precipitation depth over the reporting period (1h or 3h)."""
    # base: millimetres
    MILLIMETERS = ("mm", 1.0, 0.0)
    CENTIMETERS = ("cm", 10.0, 0.0)
    INCHES = ("in", 25.4, 0.0)


class DistanceUnit(_LinearUnit):
    # base: metres
    METERS = ("m", 1.0, 0.0)
    KILOMETERS = ("km", 1000.0, 0.0)
    MILES = ("mi", 1609.344, 0.0)


class ConcentrationUnit(_LinearUnit):
    # base: micrograms per cubic metre
    MICROGRAMS_PER_CUBIC_METER = ("µg/m³", 1.0, 0.0)
    MILLIGRAMS_PER_CUBIC_METER = ("mg/m³", 1000.0, 0.0)


Unit = Union[
    TemperatureUnit, PressureUnit, SpeedUnit, PrecipitationUnit, DistanceUnit, ConcentrationUnit
]


def convert(value: float, from_unit: Unit, to_unit: Unit) -> float:
    """
    Convert a value between two units of the same dimension.

    Args:
        value: Numeric value expressed in from_unit
        from_unit: Unit of the given value
        to_unit: Target unit

    Returns:
        The value expressed in to_unit

    Raises:
        ValueError: If the units measure different dimensions
    """
    if type(from_unit) is not type(to_unit):
        raise ValueError(f"Cannot convert {from_unit!r} to {to_unit!r}")
    if from_unit is to_unit:
        return float(value)
    return to_unit.from_base(from_unit.to_base(value))


@dataclass(frozen=True)
class Measurement:
    """A value tagged with its unit."""
    value: float
    unit: Unit

    def converted(self, to_unit: Unit) -> "Measurement":
        return Measurement(convert(self.value, self.unit, to_unit), to_unit)

    def __str__(self) -> str:
        return f"{self.value:.2f} {self.unit.symbol}"


# OpenWeather "standard" units, as returned when no `units` parameter is sent.
PROVIDER_TEMPERATURE = TemperatureUnit.KELVIN
PROVIDER_PRESSURE = PressureUnit.HECTOPASCALS
PROVIDER_SPEED = SpeedUnit.METERS_PER_SECOND
PROVIDER_PRECIPITATION = PrecipitationUnit.MILLIMETERS
PROVIDER_DISTANCE = DistanceUnit.METERS
PROVIDER_CONCENTRATION = ConcentrationUnit.MICROGRAMS_PER_CUBIC_METER


class UnitSystem(Enum):
    """Display unit systems, named after OpenWeather's `units` vocabulary."""

    STANDARD = "standard"
    METRIC = "metric"
    IMPERIAL = "imperial"

    @property
    def temperature(self) -> TemperatureUnit:
        return {
            UnitSystem.STANDARD: TemperatureUnit.KELVIN,
            UnitSystem.METRIC: TemperatureUnit.CELSIUS,
            UnitSystem.IMPERIAL: TemperatureUnit.FAHRENHEIT,
        }[self]

    @property
    def pressure(self) -> PressureUnit:
        if self is UnitSystem.IMPERIAL:
            return PressureUnit.INCHES_OF_MERCURY
        return PressureUnit.HECTOPASCALS

    @property
    def speed(self) -> SpeedUnit:
        if self is UnitSystem.IMPERIAL:
            return SpeedUnit.MILES_PER_HOUR
        return SpeedUnit.METERS_PER_SECOND

    @property
    def precipitation(self) -> PrecipitationUnit:
        if self is UnitSystem.IMPERIAL:
            return PrecipitationUnit.INCHES
        return PrecipitationUnit.MILLIMETERS

    @property
    def distance(self) -> DistanceUnit:
        return {
            UnitSystem.STANDARD: DistanceUnit.METERS,
            UnitSystem.METRIC: DistanceUnit.KILOMETERS,
            UnitSystem.IMPERIAL: DistanceUnit.MILES,
        }[self]

    @property
    def concentration(self) -> ConcentrationUnit:
        return ConcentrationUnit.MICROGRAMS_PER_CUBIC_METER


def temperature_from_provider(kelvin: float, units: UnitSystem) -> Measurement:
    return Measurement(convert(kelvin, PROVIDER_TEMPERATURE, units.temperature), units.temperature)


def pressure_from_provider(hpa: float, units: UnitSystem) -> Measurement:
    return Measurement(convert(hpa, PROVIDER_PRESSURE, units.pressure), units.pressure)


def speed_from_provider(meters_per_second: float, units: UnitSystem) -> Measurement:
    return Measurement(convert(meters_per_second, PROVIDER_SPEED, units.speed), units.speed)


def precipitation_from_provider(millimeters: float, units: UnitSystem) -> Measurement:
    return Measurement(
        convert(millimeters, PROVIDER_PRECIPITATION, units.precipitation), units.precipitation
    )


def distance_from_provider(meters: float, units: UnitSystem) -> Measurement:
    return Measurement(convert(meters, PROVIDER_DISTANCE, units.distance), units.distance)


def concentration_from_provider(micrograms: float, units: UnitSystem) -> Measurement:
    return Measurement(
        convert(micrograms, PROVIDER_CONCENTRATION, units.concentration), units.concentration
    )
