"""Weather domain model - normalized records decoded from provider payloads."""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Dict, Optional, Tuple

from measurement_units import (
    Measurement,
    PrecipitationUnit,
    PressureUnit,
    SpeedUnit,
    TemperatureUnit,
)
from weather_conditions import (
    ConditionCategory,
    PressureCondition,
    RainDensity,
    SnowDensity,
    TemperatureModifier,
    WindDirection,
    WindSpeedCategory,
    classify,
    sub_bucket,
)

EARTH_RADIUS_METERS = 6371008.8


class DataKind(Enum):
    """The three independently cached kinds of weather data."""
    CURRENT = "current"
    FORECAST = "forecast"
    POLLUTION = "pollution"


@dataclass(frozen=True)
class Coordinate:
    """Latitude/longitude in decimal degrees."""
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")

    def distance_to(self, other: "Coordinate") -> float:
        """Great-circle distance in metres (haversine)."""
        lat1, lat2 = math.radians(self.latitude), math.radians(other.latitude)
        dlat = lat2 - lat1
        dlon = math.radians(other.longitude - self.longitude)
        a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(a)))


@dataclass(frozen=True)
class WeatherCondition:
    """A provider condition entry (`weather[]`) with its classification."""
    code: int
    main: str
    description: str
    icon: str

    @property
    def category(self) -> ConditionCategory:
        return classify(self.code)

    @property
    def detail(self):
        return sub_bucket(self.code)

    @property
    def icon_url(self) -> str:
        return f"https://openweathermap.org/img/wn/{self.icon}@2x.png"


@dataclass(frozen=True)
class Wind:
    speed: Measurement
    direction: float  # meteorological degrees, 0-360
    gust: Optional[Measurement] = None

    @property
    def cardinal_direction(self) -> WindDirection:
        return WindDirection.from_degrees(self.direction)

    @property
    def speed_category(self) -> WindSpeedCategory:
        return WindSpeedCategory.from_meters_per_second(
            self.speed.converted(SpeedUnit.METERS_PER_SECOND).value
        )


@dataclass(frozen=True)
class Precipitation:
    """Rain or snow volume for the last hour and/or last three hours."""
    one_hour: Optional[Measurement] = None
    three_hour: Optional[Measurement] = None

    @property
    def amount(self) -> Optional[Measurement]:
        return self.one_hour if self.one_hour is not None else self.three_hour

    def millimeters(self) -> Optional[float]:
        amount = self.amount
        if amount is None:
            return None
        return amount.converted(PrecipitationUnit.MILLIMETERS).value


@dataclass(frozen=True)
class _Sample:
    """Fields shared by current conditions and forecast entries."""
    temperature: Measurement
    feels_like: Measurement
    temp_min: Measurement
    temp_max: Measurement
    pressure: Measurement
    humidity: float  # fraction, 0-1
    conditions: Tuple[WeatherCondition, ...] = ()
    sea_level: Optional[Measurement] = None
    ground_level: Optional[Measurement] = None
    wind: Optional[Wind] = None
    clouds: Optional[float] = None  # fraction, 0-1
    rain: Optional[Precipitation] = None
    snow: Optional[Precipitation] = None
    visibility: Optional[Measurement] = None

    @property
    def primary_condition(self) -> Optional[WeatherCondition]:
        return self.conditions[0] if self.conditions else None

    @property
    def rain_density(self) -> Optional[RainDensity]:
        amount = self.rain.millimeters() if self.rain else None
        return RainDensity.from_millimeters(amount) if amount is not None else None

    @property
    def snow_density(self) -> Optional[SnowDensity]:
        amount = self.snow.millimeters() if self.snow else None
        return SnowDensity.from_millimeters(amount) if amount is not None else None

    @property
    def pressure_condition(self) -> PressureCondition:
        return PressureCondition.from_hectopascals(
            self.pressure.converted(PressureUnit.HECTOPASCALS).value
        )

    @property
    def temperature_modifier(self) -> TemperatureModifier:
        return TemperatureModifier.from_kelvin(
            self.feels_like.converted(TemperatureUnit.KELVIN).value
        )


@dataclass(frozen=True)
class CurrentConditions(_Sample):
    """Normalized snapshot of a current-conditions payload."""
    coordinate: Optional[Coordinate] = None
    sunrise: Optional[datetime] = None
    sunset: Optional[datetime] = None
    observed_at: Optional[datetime] = None
    timezone_offset: int = 0  # seconds east of UTC
    country: Optional[str] = None
    code: Optional[int] = None

    def is_daytime(self, at: Optional[datetime] = None) -> bool:
        """True when `at` (default now) falls between sunrise and sunset, by time of day."""
        if self.sunrise is None or self.sunset is None:
            return True
        at = at or datetime.now(timezone.utc)
        reference = at.astimezone(timezone.utc)
        sunrise = self.sunrise.astimezone(timezone.utc).replace(
            year=reference.year, month=reference.month, day=reference.day
        )
        sunset = self.sunset.astimezone(timezone.utc).replace(
            year=reference.year, month=reference.month, day=reference.day
        )
        return sunrise < reference < sunset


@dataclass(frozen=True)
class ForecastEntry(_Sample):
    """One forecast sample, typically one per 3-hour provider step."""
    timestamp: datetime = field(default=datetime.fromtimestamp(0, timezone.utc))
    precipitation_probability: float = 0.0  # 0-1
    date_text: Optional[str] = None


@dataclass(frozen=True)
class ForecastSeries:
    """Forecast entries ordered by timestamp, one entry per timestamp."""
    entries: Tuple[ForecastEntry, ...]
    coordinate: Optional[Coordinate] = None
    sunrise: Optional[datetime] = None
    sunset: Optional[datetime] = None

    @classmethod
    def from_entries(cls, entries, **kwargs) -> "ForecastSeries":
        # Later samples replace earlier ones sharing a timestamp.
        by_time: Dict[datetime, ForecastEntry] = {}
        for entry in entries:
            by_time[entry.timestamp] = entry
        ordered = tuple(by_time[key] for key in sorted(by_time))
        return cls(entries=ordered, **kwargs)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


class AirQualityIndex(IntEnum):
    UNKNOWN = -1
    GOOD = 1
    FAIR = 2
    MODERATE = 3
    POOR = 4
    VERY_POOR = 5

    @classmethod
    def from_value(cls, value) -> "AirQualityIndex":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def label(self) -> str:
        if self is AirQualityIndex.UNKNOWN:
            return "Unknown"
        return f"{int(self)}: {self.name.replace('_', ' ').title()}"


class Pollutant(Enum):
    CARBON_MONOXIDE = "co"
    NITROGEN_MONOXIDE = "no"
    NITROGEN_DIOXIDE = "no2"
    OZONE = "o3"
    SULPHUR_DIOXIDE = "so2"
    FINE_PARTICULATE = "pm2_5"
    COARSE_PARTICULATE = "pm10"
    AMMONIA = "nh3"

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


@dataclass(frozen=True)
class PollutionReading:
    timestamp: datetime
    air_quality: AirQualityIndex
    components: Dict[Pollutant, Measurement] = field(default_factory=dict)


@dataclass(frozen=True)
class AirPollution:
    """Air pollution readings for a coordinate, ordered by timestamp."""
    readings: Tuple[PollutionReading, ...]
    coordinate: Optional[Coordinate] = None

    @property
    def latest(self) -> Optional[PollutionReading]:
        return self.readings[-1] if self.readings else None
