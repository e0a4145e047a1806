"""Weather service: cache-aware downloads for tracked locations."""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional

from downloader import SingleFlightDownloader
from forecast_aggregator import five_day_forecast
from location_cache import CacheAction, LocationCache, TrackedLocation
from weather_data import DataKind, ForecastEntry
from weather_errors import (
    ConfigurationError,
    DecodeError,
    DownloadCancelled,
    DownloadError,
    DownloadInProgress,
    MissingCoordinates,
    ResolutionError,
    WeatherError,
)
from weather_provider import WeatherProviderBase

# Failures that may be answered with an older cached payload.
FALLBACK_ERRORS = (DownloadError, DecodeError, DownloadInProgress)


@dataclass
class WeatherSnapshot:
    """
    What a caller should display for one data kind.

    `stale` is set when `record` comes from an older cached payload because
    the refresh failed; `error` then explains why. A snapshot with no record
    and an error means nothing could be shown yet.
    """
    kind: DataKind
    record: Any = None
    downloaded_at: Optional[float] = None
    stale: bool = False
    error: Optional[WeatherError] = None

    @property
    def last_updated(self) -> Optional[datetime]:
        if self.downloaded_at is None:
            return None
        return datetime.fromtimestamp(self.downloaded_at, tz=timezone.utc)


class WeatherService:
    """
    Service that wraps a weather provider with per-location caching.

    Each (location, kind) payload is reused while younger than the cache's
    staleness threshold (default: 10 minutes) and downloaded again after.
    Concurrent requests for the same URL share one network request.
    """

    def __init__(
        self,
        provider: WeatherProviderBase,
        downloader: Optional[SingleFlightDownloader] = None,
        cache: Optional[LocationCache] = None,
        tz: Optional[tzinfo] = None
    ):
        """
        Initialize weather service.

        Args:
            provider: Weather provider used to build URLs and decode payloads
            downloader: Single-flight downloader (a default one is created if omitted)
            cache: Location cache holding the freshness policy and store
            tz: Zone used for five day forecast calendar days (defaults to local)
        """
        self.provider = provider
        self.downloader = downloader or SingleFlightDownloader()
        self.cache = cache or LocationCache()
        self.tz = tz

    def request_data(
        self,
        location: TrackedLocation,
        kind: DataKind,
        force: bool = False,
        cancel_event: Optional[threading.Event] = None
    ):
        """
        Get a decoded record, downloading only when the cache is not fresh.

        Args:
            location: Tracked location to get data for
            kind: Data kind to get
            force: Download even if the cached payload is fresh
            cancel_event: Optional event that aborts the download when set

        Returns:
            CurrentConditions, ForecastSeries or AirPollution depending on kind

        Raises:
            ConfigurationError: If the provider has no API key
            MissingCoordinates: If the location has no coordinate yet
            ResolutionError: If the request URL cannot be built
            DownloadInProgress: If the same request is already running
            DownloadCancelled: If cancel_event was set
            DownloadError: On transport, status or content type failures
            DecodeError: If the payload cannot be decoded
        """
        try:
            self.provider.ensure_configured()

            resolution = self.cache.resolve(location, kind, force=force)
            if resolution.action is CacheAction.RETURN_CACHED:
                return self.provider.decode(kind, resolution.payload)

            if location.coordinate is None:
                raise MissingCoordinates("Location has no coordinates yet")

            try:
                url = self.provider.build_url(kind, location.coordinate)
            except ConfigurationError:
                raise
            except (ValueError, KeyError) as e:
                raise ResolutionError(f"Could not build request URL: {e}") from e

            logging.info(f"Fetching {kind.value} data for {location.name or location.location_id}...")
            raw = self.downloader.fetch(url, cancel_event=cancel_event)
            record = self.provider.decode(kind, raw)
            self.cache.record_download(location, kind, raw)
            logging.info(f"Weather fetch successful: {kind.value} for {location.name or location.location_id}")
            return record
        except WeatherError as e:
            e.with_context(kind=kind, location_id=location.location_id)
            raise

    def request_five_day_forecast(
        self,
        location: TrackedLocation,
        reference_time: Optional[datetime] = None,
        force: bool = False,
        cancel_event: Optional[threading.Event] = None
    ) -> List[ForecastEntry]:
        """
        Get one forecast entry per upcoming day, matched to the reference hour.

        Returns:
            Up to five entries sorted by timestamp; fewer when the feed is short
        """
        series = self.request_data(location, DataKind.FORECAST, force=force, cancel_event=cancel_event)
        now = datetime.fromtimestamp(self.cache.clock(), tz=timezone.utc)
        return five_day_forecast(series, reference_time=reference_time, now=now, tz=self.tz)

    def latest(
        self,
        location: TrackedLocation,
        kind: DataKind,
        force: bool = False,
        cancel_event: Optional[threading.Event] = None
    ) -> WeatherSnapshot:
        """
        Get the latest record, falling back to the cached payload on failure.

        Download, decode and in-progress failures return the last cached
        record marked stale. Configuration, resolution and cancellation
        errors always propagate, as does any failure with nothing cached.

        Returns:
            WeatherSnapshot: Latest record (may be stale)
        """
        try:
            record = self.request_data(location, kind, force=force, cancel_event=cancel_event)
        except FALLBACK_ERRORS as e:
            cached = location.slot(kind)
            if cached.is_empty:
                logging.error(f"Weather fetch failed, no cache available: {e}")
                raise
            if isinstance(e, DownloadInProgress):
                logging.info(f"{e}; showing cached {kind.value} data")
            else:
                age = cached.age(self.cache.clock())
                logging.warning(f"Weather fetch failed, using stale cache (age: {age:.1f}s): {e}")
            return WeatherSnapshot(
                kind=kind,
                record=self.provider.decode(kind, cached.payload),
                downloaded_at=cached.downloaded_at,
                stale=True,
                error=e,
            )
        return WeatherSnapshot(kind=kind, record=record, downloaded_at=location.slot(kind).downloaded_at)

    def refresh_location(
        self,
        location: TrackedLocation,
        force: bool = False,
        kinds: Optional[Iterable[DataKind]] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Dict[DataKind, WeatherSnapshot]:
        """
        Refresh several data kinds of a location concurrently.

        Failures never escape: a kind that could not be refreshed and has
        nothing cached comes back as a snapshot with no record and the error.

        Returns:
            Dict mapping each requested kind to its snapshot
        """
        kinds = list(kinds) if kinds is not None else list(DataKind)
        if not kinds:
            return {}

        snapshots: Dict[DataKind, WeatherSnapshot] = {}
        with ThreadPoolExecutor(max_workers=len(kinds), thread_name_prefix="refresh") as executor:
            futures = {
                kind: executor.submit(self.latest, location, kind, force, cancel_event)
                for kind in kinds
            }
            for kind, future in futures.items():
                try:
                    snapshots[kind] = future.result()
                except DownloadCancelled as e:
                    logging.info(f"Refresh cancelled: {e}")
                    snapshots[kind] = WeatherSnapshot(kind=kind, error=e)
                except WeatherError as e:
                    logging.error(f"Refresh failed: {e}")
                    snapshots[kind] = WeatherSnapshot(kind=kind, error=e)
        return snapshots

    def restore_location(self, location: TrackedLocation) -> int:
        """Load persisted payloads for a location into its cache slots."""
        return self.cache.restore(location)

    def close(self) -> None:
        self.downloader.close()
