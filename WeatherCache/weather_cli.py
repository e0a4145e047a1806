"""Command line front end: fetch, cache and print weather for a location."""
import argparse
import logging
import signal
import sys
import time
from datetime import datetime
from typing import List, Optional, Sequence

from downloader import SingleFlightDownloader
from location_cache import LocationCache, TrackedLocation
from measurement_units import UnitSystem
from openweather_provider import OpenWeatherProvider
from payload_store import DirectoryPayloadStore, InMemoryPayloadStore
from weather_data import AirPollution, Coordinate, CurrentConditions, DataKind, ForecastEntry, ForecastSeries
from weather_errors import ConfigurationError, WeatherError
from weather_service import WeatherService, WeatherSnapshot
from weather_settings import WeatherSettings, load_settings

KIND_CHOICES = ["current", "forecast", "pollution", "five-day", "all"]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("weather-cache", description="Fetch and cache OpenWeather data")
    parser.add_argument("--lat", type=float, help="Latitude (defaults to WEATHER_LAT)")
    parser.add_argument("--lon", type=float, help="Longitude (defaults to WEATHER_LON)")
    parser.add_argument("--name", default=None, help="Display name for the location")
    parser.add_argument("--kind", choices=KIND_CHOICES, default="current")
    parser.add_argument("--units", choices=[system.value for system in UnitSystem], default=None)
    parser.add_argument("--lang", default=None, help="Language code for condition descriptions")
    parser.add_argument("--force", action="store_true", help="Download even when the cache is fresh")
    parser.add_argument("--cache-dir", default=None, help="Directory to persist payloads in")
    parser.add_argument("--cache-ttl", type=float, default=None, help="Seconds before cached data is stale")
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds")
    parser.add_argument("--refresh", type=float, default=60.0, help="Seconds between refreshes with --loop")
    parser.add_argument("--loop", action="store_true", help="Keep refreshing until interrupted")
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def setup_logging(log_file: Optional[str], verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers
    )


def build_settings(args: argparse.Namespace) -> WeatherSettings:
    """Load settings from the environment and apply command line overrides."""
    settings = load_settings()
    if (args.lat is None) != (args.lon is None):
        raise ConfigurationError("--lat and --lon must be given together")
    if args.lat is not None:
        try:
            settings.coordinate = Coordinate(args.lat, args.lon)
        except ValueError as e:
            raise ConfigurationError(f"Invalid coordinates: {e}") from e
    if args.units:
        settings.units = UnitSystem(args.units)
    if args.lang:
        settings.language = args.lang
    if args.cache_ttl is not None:
        settings.staleness_threshold = args.cache_ttl
    if args.timeout is not None:
        settings.timeout = args.timeout
    return settings


def build_service(settings: WeatherSettings, cache_dir: Optional[str] = None) -> WeatherService:
    provider = OpenWeatherProvider(
        api_key=settings.api_key,
        units=settings.units,
        language=settings.language,
        base_url=settings.base_url,
    )
    store = DirectoryPayloadStore(cache_dir) if cache_dir else InMemoryPayloadStore()
    service = WeatherService(
        provider=provider,
        downloader=SingleFlightDownloader(timeout=settings.timeout),
        cache=LocationCache(store=store, staleness_threshold=settings.staleness_threshold),
    )
    logging.info(f"Weather service ready (cache ttl={settings.staleness_threshold}s)")
    return service


def location_id_for(coordinate: Coordinate) -> str:
    """Stable id so a persisted cache is found again on the next run."""
    return f"{coordinate.latitude:.4f}_{coordinate.longitude:.4f}"


def format_current(weather: CurrentConditions) -> str:
    condition = weather.primary_condition
    condition_text = condition.description.title()[:18] if condition else "N/A"
    line = (
        f"{weather.temperature.value:+.0f}{weather.temperature.unit.symbol} {condition_text}  "
        f"Feels {weather.feels_like.value:+.0f}{weather.feels_like.unit.symbol}  "
        f"Hum {weather.humidity * 100:.0f}%"
    )
    if weather.wind is not None:
        line += f"  Wind {weather.wind.speed.value:.1f}{weather.wind.speed.unit.symbol} {weather.wind.cardinal_direction.name}"
    return line


def format_forecast(series: ForecastSeries) -> str:
    if not series.entries:
        return "Forecast: no entries"
    first, last = series.entries[0].timestamp, series.entries[-1].timestamp
    return f"Forecast: {len(series)} entries {first:%a %H:%M} - {last:%a %H:%M} UTC"


def format_forecast_entry(entry: ForecastEntry) -> str:
    condition = entry.primary_condition
    local_time = entry.timestamp.astimezone()
    return (
        f"{local_time:%a %d %b %H:%M}  {entry.temperature.value:+.0f}{entry.temperature.unit.symbol}  "
        f"{condition.main if condition else 'N/A'}  Rain {entry.precipitation_probability * 100:.0f}%"
    )


def format_pollution(pollution: AirPollution) -> str:
    reading = pollution.latest
    if reading is None:
        return "Air quality: no readings"
    parts = [f"Air quality {reading.air_quality.label}"]
    for pollutant, measurement in reading.components.items():
        parts.append(f"{pollutant.value.upper()} {measurement.value:.1f}")
    return "  ".join(parts)


FORMATTERS = {
    DataKind.CURRENT: format_current,
    DataKind.FORECAST: format_forecast,
    DataKind.POLLUTION: format_pollution,
}


def format_snapshot(snapshot: WeatherSnapshot) -> str:
    if snapshot.record is None:
        return f"{snapshot.kind.value}: unavailable ({snapshot.error})"
    line = FORMATTERS[snapshot.kind](snapshot.record)
    if snapshot.stale:
        updated = snapshot.last_updated.astimezone().strftime("%H:%M:%S")
        line += f"  [stale, last updated {updated}]"
    return line


def run_once(service: WeatherService, location: TrackedLocation, kind: str, force: bool) -> List[str]:
    """Fetch the requested kind(s) and return the lines to print."""
    if kind == "five-day":
        entries = service.request_five_day_forecast(location, force=force)
        if not entries:
            return ["Five day forecast: no entries"]
        return [format_forecast_entry(entry) for entry in entries]
    if kind == "all":
        snapshots = service.refresh_location(location, force=force)
        return [format_snapshot(snapshots[data_kind]) for data_kind in DataKind]
    return [format_snapshot(service.latest(location, DataKind(kind), force=force))]


def weather_loop(service: WeatherService, location: TrackedLocation, args: argparse.Namespace) -> bool:
    """Print weather once, or until interrupted with --loop. Returns False if the last run failed."""
    frame = 0
    force = args.force
    while True:
        frame += 1
        logging.debug(f"Frame {frame}: fetching weather")
        ok = True
        try:
            lines = run_once(service, location, args.kind, force)
            print(f"{location.name or location.location_id} @ {datetime.now():%H:%M:%S}")
            for line in lines:
                print(f"  {line}")
        except WeatherError as err:
            logging.error(f"Weather fetch failed: {err}")
            ok = False
        # Only the first round is forced; later rounds follow the cache policy.
        force = False

        if not args.loop:
            return ok
        time.sleep(max(args.refresh, 1.0))


def signal_handler(signum, frame):
    logging.info(f"Received signal {signum}, shutting down")
    raise KeyboardInterrupt()


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    try:
        settings = build_settings(args)
    except ConfigurationError as e:
        raise SystemExit(str(e)) from e
    if settings.coordinate is None:
        raise SystemExit("Missing coordinates: pass --lat/--lon or set WEATHER_LAT/WEATHER_LON")

    service = build_service(settings, args.cache_dir)
    location = TrackedLocation(
        coordinate=settings.coordinate,
        name=args.name,
        location_id=location_id_for(settings.coordinate),
    )
    service.restore_location(location)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    ok = True
    try:
        ok = weather_loop(service, location, args)
    except KeyboardInterrupt:
        logging.info("Stopping weather updates")
    finally:
        service.close()

    if not ok:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
