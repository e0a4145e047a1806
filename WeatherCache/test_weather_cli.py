"""Tests for the command line front end."""
import json
from unittest.mock import Mock, patch

import pytest
import weather_cli
from location_cache import TrackedLocation
from measurement_units import UnitSystem
from openweather_decoders import decode_current, decode_pollution
from weather_data import Coordinate, DataKind
from weather_errors import ConfigurationError, TransportError
from weather_service import WeatherService, WeatherSnapshot
from weather_settings import WeatherSettings


def test_parse_args_defaults():
    """Test default arguments."""
    args = weather_cli.parse_args([])

    assert args.kind == "current"
    assert args.lat is None
    assert args.loop is False
    assert args.force is False
    assert args.cache_dir is None


def test_parse_args_overrides():
    """Test command line options are parsed."""
    args = weather_cli.parse_args([
        "--lat", "38.82", "--lon", "82.78", "--kind", "five-day", "--units", "imperial",
        "--force", "--cache-dir", "/tmp/cache", "--cache-ttl", "120", "--loop", "--refresh", "30",
    ])

    assert args.lat == 38.82
    assert args.kind == "five-day"
    assert args.units == "imperial"
    assert args.cache_ttl == 120
    assert args.refresh == 30


def test_build_settings_applies_overrides():
    """Test command line values override the environment."""
    args = weather_cli.parse_args(["--lat", "38.82", "--lon", "82.78", "--units", "imperial", "--lang", "fr"])

    with patch("weather_cli.load_settings", return_value=WeatherSettings(api_key="k")):
        settings = weather_cli.build_settings(args)

    assert settings.coordinate == Coordinate(38.82, 82.78)
    assert settings.units is UnitSystem.IMPERIAL
    assert settings.language == "fr"


def test_build_settings_requires_both_coordinates():
    """Test --lat without --lon is rejected."""
    args = weather_cli.parse_args(["--lat", "38.82"])

    with patch("weather_cli.load_settings", return_value=WeatherSettings(api_key="k")):
        with pytest.raises(ConfigurationError):
            weather_cli.build_settings(args)


def test_build_service_with_cache_dir(tmp_path):
    """Test --cache-dir selects a directory store."""
    service = weather_cli.build_service(WeatherSettings(api_key="k", staleness_threshold=60), str(tmp_path))

    assert service.cache.staleness_threshold == 60
    assert service.cache.store.directory == str(tmp_path)
    service.close()


def test_format_current(current_payload):
    """Test the current conditions summary line."""
    current = decode_current(json.dumps(current_payload).encode())

    line = weather_cli.format_current(current)

    assert line.startswith("+22°C Broken Clouds")
    assert "Hum 65%" in line
    assert "Wind 3.1m/s E" in line


def test_format_pollution(pollution_payload):
    """Test the air quality summary line."""
    pollution = decode_pollution(json.dumps(pollution_payload).encode())

    assert weather_cli.format_pollution(pollution).startswith("Air quality 2: Fair")


def test_format_snapshot_marks_stale(current_payload):
    """Test stale snapshots say when they were last updated."""
    record = decode_current(json.dumps(current_payload).encode())
    snapshot = WeatherSnapshot(
        kind=DataKind.CURRENT, record=record, downloaded_at=1684929600.0,
        stale=True, error=TransportError("Network error"),
    )

    assert "[stale, last updated" in weather_cli.format_snapshot(snapshot)


def test_format_snapshot_unavailable():
    """Test snapshots without a record show the error."""
    snapshot = WeatherSnapshot(kind=DataKind.POLLUTION, error=TransportError("Network error"))

    assert weather_cli.format_snapshot(snapshot) == "pollution: unavailable (Network error)"


def test_run_once_dispatches_kinds():
    """Test each --kind calls the matching service operation."""
    service = Mock(spec=WeatherService)
    location = TrackedLocation(coordinate=Coordinate(0, 0))
    service.request_five_day_forecast.return_value = []
    service.latest.return_value = WeatherSnapshot(kind=DataKind.FORECAST, error=TransportError("x"))
    service.refresh_location.return_value = {
        kind: WeatherSnapshot(kind=kind, error=TransportError("x")) for kind in DataKind
    }

    assert weather_cli.run_once(service, location, "five-day", False) == ["Five day forecast: no entries"]
    assert len(weather_cli.run_once(service, location, "all", True)) == 3
    weather_cli.run_once(service, location, "forecast", True)

    service.refresh_location.assert_called_once_with(location, force=True)
    service.latest.assert_called_once_with(location, DataKind.FORECAST, force=True)


def test_weather_loop_single_run_reports_failure(capsys):
    """Test a failed one-shot run returns False and logs instead of printing."""
    service = Mock(spec=WeatherService)
    service.latest.side_effect = TransportError("Network error")
    args = weather_cli.parse_args([])

    assert weather_cli.weather_loop(service, TrackedLocation(coordinate=Coordinate(0, 0)), args) is False
    assert capsys.readouterr().out == ""


def test_location_id_is_stable():
    """Test the same coordinate maps to the same cache id across runs."""
    assert weather_cli.location_id_for(Coordinate(38.82, 82.78)) == "38.8200_82.7800"


def test_main_requires_coordinates():
    """Test main() exits when no coordinate is configured."""
    with patch("weather_cli.load_settings", return_value=WeatherSettings(api_key="k")), \
            patch("weather_cli.setup_logging"):
        with pytest.raises(SystemExit, match="Missing coordinates"):
            weather_cli.main([])
