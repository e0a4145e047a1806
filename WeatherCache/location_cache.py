"""Tracked locations and the per-kind freshness policy for their cached payloads."""
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from payload_store import EMPTY_PAYLOAD, CachedPayload, InMemoryPayloadStore, PayloadStore
from weather_data import Coordinate, DataKind

DEFAULT_STALENESS_SECONDS = 600


class TrackedLocation:
    """
    A user-tracked location and its three cached payload slots.

    Each slot holds (payload, downloaded_at) and is replaced as a whole under
    the location's lock, so readers never see a new timestamp with an old
    payload or the reverse.
    """

    def __init__(
        self,
        coordinate: Optional[Coordinate] = None,
        name: Optional[str] = None,
        location_id: Optional[str] = None,
        is_gps: bool = False,
        is_default: bool = False
    ):
        self.location_id = location_id or uuid.uuid4().hex
        self.coordinate = coordinate
        self.name = name
        self.is_gps = is_gps
        self.is_default = is_default
        self._slots: Dict[DataKind, CachedPayload] = {kind: EMPTY_PAYLOAD for kind in DataKind}
        # Reentrant: held around a slot write plus its write-through to the store.
        self.lock = threading.RLock()

    def __repr__(self) -> str:
        return (
            f"TrackedLocation(id={self.location_id!r}, name={self.name!r}, "
            f"coordinate={self.coordinate!r}, gps={self.is_gps}, default={self.is_default})"
        )

    def slot(self, kind: DataKind) -> CachedPayload:
        with self.lock:
            return self._slots[kind]

    def slots(self) -> Dict[DataKind, CachedPayload]:
        with self.lock:
            return dict(self._slots)

    def store(self, kind: DataKind, payload: bytes, downloaded_at: float) -> None:
        with self.lock:
            self._slots[kind] = CachedPayload(payload, downloaded_at)


class CacheState(Enum):
    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"


class CacheAction(Enum):
    RETURN_CACHED = "return_cached"
    DOWNLOAD = "download"


@dataclass(frozen=True)
class Resolution:
    """Decision for a cache lookup; payload is set for RETURN_CACHED."""
    action: CacheAction
    payload: Optional[bytes] = None
    downloaded_at: Optional[float] = None


class LocationCache:
    """
    Freshness policy for tracked locations' cached payloads.

    Every (location, kind) pair ages independently. A payload younger than the
    staleness threshold is fresh and reused; older payloads are kept for
    fallback display but trigger a new download.
    """

    def __init__(
        self,
        store: Optional[PayloadStore] = None,
        staleness_threshold: float = DEFAULT_STALENESS_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize location cache.

        Args:
            store: Persistence collaborator the cache writes through to
            staleness_threshold: Seconds after which a payload is stale
            clock: Returns the current UNIX time
        """
        self.store = store or InMemoryPayloadStore()
        self.staleness_threshold = staleness_threshold
        self.clock = clock

    def state(self, location: TrackedLocation, kind: DataKind, now: Optional[float] = None) -> CacheState:
        return self._state(location.slot(kind), self.clock() if now is None else now)

    def _state(self, cached: CachedPayload, now: float) -> CacheState:
        if cached.is_empty or cached.downloaded_at is None:
            return CacheState.EMPTY
        if cached.age(now) < self.staleness_threshold:
            return CacheState.FRESH
        return CacheState.STALE

    def resolve(self, location: TrackedLocation, kind: DataKind, force: bool = False) -> Resolution:
        """
        Decide whether to reuse the cached payload or download a new one.

        Returns RETURN_CACHED only when not forced and the payload is fresh.
        """
        cached = location.slot(kind)
        now = self.clock()
        state = self._state(cached, now)

        if not force and state is CacheState.FRESH:
            logging.debug(
                f"Using cached {kind.value} data for {location.location_id} "
                f"(age: {cached.age(now):.1f}s, TTL: {self.staleness_threshold}s)"
            )
            return Resolution(CacheAction.RETURN_CACHED, cached.payload, cached.downloaded_at)

        if force:
            logging.debug(f"Forced {kind.value} download for {location.location_id}")
        elif state is CacheState.STALE:
            logging.info(
                f"Cache expired for {kind.value} data of {location.location_id} "
                f"(age: {cached.age(now):.1f}s >= TTL: {self.staleness_threshold}s)"
            )
        return Resolution(CacheAction.DOWNLOAD)

    def record_download(
        self,
        location: TrackedLocation,
        kind: DataKind,
        payload: bytes,
        downloaded_at: Optional[float] = None
    ) -> None:
        """
        Replace the slot's payload and timestamp together and persist them.

        Both writes happen under the location's lock, so concurrent writers
        leave memory and the store holding the same last write.
        """
        downloaded_at = self.clock() if downloaded_at is None else downloaded_at
        with location.lock:
            location.store(kind, payload, downloaded_at)
            self.store.set_cached_payload(location, kind, payload, downloaded_at)

    def restore(self, location: TrackedLocation) -> int:
        """
        Load persisted payloads into an empty-slotted location.

        Returns:
            Number of slots restored
        """
        restored = 0
        for kind in DataKind:
            entry = self.store.get_cached_entry(location, kind)
            if entry is None or entry.is_empty or entry.downloaded_at is None:
                continue
            location.store(kind, entry.payload, entry.downloaded_at)
            restored += 1
        logging.debug(f"Restored {restored} cached payloads for {location.location_id}")
        return restored
