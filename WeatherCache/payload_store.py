"""Persistence for downloaded payloads - the storage collaborator of the cache."""
import base64
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from weather_data import DataKind


@dataclass(frozen=True)
class CachedPayload:
    """Last downloaded payload for one data kind and when it was downloaded."""
    payload: Optional[bytes] = None
    downloaded_at: Optional[float] = None  # UNIX timestamp

    @property
    def is_empty(self) -> bool:
        return self.payload is None

    def age(self, now: float) -> Optional[float]:
        if self.downloaded_at is None:
            return None
        return now - self.downloaded_at


EMPTY_PAYLOAD = CachedPayload()


class PayloadStore(ABC):
    """Storage interface for cached payloads, keyed by location and data kind."""

    @abstractmethod
    def get_cached_entry(self, location, kind: DataKind) -> Optional[CachedPayload]:
        """Return the stored payload and its download time, or None."""
        pass

    @abstractmethod
    def set_cached_payload(self, location, kind: DataKind, payload: bytes, downloaded_at: float) -> None:
        """Store a payload together with its download time."""
        pass

    def get_cached_payload(self, location, kind: DataKind) -> Optional[bytes]:
        entry = self.get_cached_entry(location, kind)
        return entry.payload if entry is not None else None


class InMemoryPayloadStore(PayloadStore):
    """Process-local store, mainly for tests and one-shot CLI runs."""

    def __init__(self):
        self._entries: Dict[Tuple[str, DataKind], CachedPayload] = {}
        self._lock = threading.Lock()

    def get_cached_entry(self, location, kind: DataKind) -> Optional[CachedPayload]:
        with self._lock:
            return self._entries.get((location.location_id, kind))

    def set_cached_payload(self, location, kind: DataKind, payload: bytes, downloaded_at: float) -> None:
        with self._lock:
            self._entries[(location.location_id, kind)] = CachedPayload(payload, downloaded_at)


class DirectoryPayloadStore(PayloadStore):
    """
    Stores each (location, kind) payload as a JSON file in a directory.

    Files are written to a temporary name and renamed into place, so a reader
    sees either the previous entry or the new one, never a mix.
    """

    def __init__(self, directory: str):
        self.directory = directory
        os.makedirs(directory, exist_ok=True)

    def _path(self, location, kind: DataKind) -> str:
        safe_id = "".join(c if c.isalnum() or c in "-_" else "_" for c in str(location.location_id))
        return os.path.join(self.directory, f"{safe_id}.{kind.value}.json")

    def get_cached_entry(self, location, kind: DataKind) -> Optional[CachedPayload]:
        path = self._path(location, kind)
        try:
            with open(path, "r", encoding="utf-8") as handle:
                record = json.load(handle)
            return CachedPayload(
                payload=base64.b64decode(record["payload"]),
                downloaded_at=float(record["downloaded_at"]),
            )
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as e:
            logging.warning(f"Ignoring unreadable cache file {path}: {e}")
            return None

    def set_cached_payload(self, location, kind: DataKind, payload: bytes, downloaded_at: float) -> None:
        path = self._path(location, kind)
        record = {
            "location_id": location.location_id,
            "kind": kind.value,
            "downloaded_at": downloaded_at,
            "payload": base64.b64encode(payload).decode("ascii"),
        }
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(record, handle)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logging.debug(f"Persisted {kind.value} payload for {location.location_id} to {path}")
