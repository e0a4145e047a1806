"""Shared pytest fixtures: sample OpenWeather payloads."""
import pytest


@pytest.fixture
def current_payload():
    """Sample /weather response at (38.82, 82.78)."""
    return {
        "coord": {"lon": 82.78, "lat": 38.82},
        "weather": [
            {
                "id": 803,
                "main": "Clouds",
                "description": "broken clouds",
                "icon": "04d"
            }
        ],
        "base": "stations",
        "main": {
            "temp": 295.15,
            "feels_like": 294.8,
            "temp_min": 293.15,
            "temp_max": 297.15,
            "pressure": 1014,
            "humidity": 65,
            "sea_level": 1014,
            "grnd_level": 960
        },
        "visibility": 10000,
        "wind": {"speed": 3.13, "deg": 93, "gust": 5.2},
        "rain": {"1h": 2.93},
        "clouds": {"all": 53},
        "dt": 1684929490,
        "sys": {"country": "CN", "sunrise": 1684880000, "sunset": 1684933000},
        "timezone": 21600,
        "name": "Testville",
        "id": 123,
        "cod": 200
    }


def _forecast_item(dt, temp=290.15, code=500):
    return {
        "dt": dt,
        "main": {
            "temp": temp,
            "feels_like": temp - 0.5,
            "temp_min": temp - 1,
            "temp_max": temp + 1,
            "pressure": 1012,
            "humidity": 70
        },
        "weather": [{"id": code, "main": "Rain", "description": "light rain", "icon": "10d"}],
        "clouds": {"all": 90},
        "wind": {"speed": 4.0, "deg": 200},
        "pop": 0.4,
        "dt_txt": "2023-05-24 12:00:00"
    }


@pytest.fixture
def forecast_payload():
    """Sample /forecast response: eight 3-hour steps starting 2023-05-24 12:00 UTC."""
    start = 1684929600
    return {
        "cod": "200",
        "message": 0,
        "cnt": 8,
        "list": [_forecast_item(start + step * 10800, temp=290.15 + step) for step in range(8)],
        "city": {
            "id": 123,
            "name": "Testville",
            "coord": {"lat": 38.82, "lon": 82.78},
            "country": "CN",
            "timezone": 21600,
            "sunrise": 1684880000,
            "sunset": 1684933000
        }
    }


@pytest.fixture
def pollution_payload():
    """Sample /air_pollution response."""
    return {
        "coord": {"lon": 82.78, "lat": 38.82},
        "list": [
            {
                "main": {"aqi": 2},
                "components": {
                    "co": 201.94,
                    "no": 0.02,
                    "no2": 0.77,
                    "o3": 68.66,
                    "so2": 0.64,
                    "pm2_5": 0.5,
                    "pm10": 0.54,
                    "nh3": 0.12
                },
                "dt": 1684929490
            }
        ]
    }
