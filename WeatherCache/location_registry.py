"""Registry of tracked locations: one GPS location, at most one default."""
import logging
import threading
from typing import Dict, List, Optional

from location_cache import TrackedLocation
from weather_data import Coordinate
from weather_errors import LocationError

# One mile; smaller GPS jitter does not move the tracked location.
GPS_RELOCATION_METERS = 1609.344


class LocationRegistry:
    """
    Keeps the set of locations the user tracks.

    There is exactly one GPS location once a fix has been reported, and zero
    or one default location. The GPS location cannot be removed.
    """

    def __init__(self, relocation_threshold: float = GPS_RELOCATION_METERS):
        self.relocation_threshold = relocation_threshold
        self._locations: Dict[str, TrackedLocation] = {}
        self._lock = threading.Lock()

    def add_location(self, name: Optional[str], coordinate: Optional[Coordinate]) -> TrackedLocation:
        location = TrackedLocation(coordinate=coordinate, name=name)
        with self._lock:
            self._locations[location.location_id] = location
        logging.info(f"Tracking location {name or location.location_id} at {coordinate}")
        return location

    def get(self, location_id: str) -> TrackedLocation:
        with self._lock:
            return self._get(location_id)

    def _get(self, location_id: str) -> TrackedLocation:
        try:
            return self._locations[location_id]
        except KeyError:
            raise LocationError(f"Unknown location: {location_id}", location_id=location_id) from None

    def locations(self) -> List[TrackedLocation]:
        with self._lock:
            return list(self._locations.values())

    def rename(self, location_id: str, name: Optional[str]) -> TrackedLocation:
        with self._lock:
            location = self._get(location_id)
            location.name = name
        return location

    @property
    def gps_location(self) -> Optional[TrackedLocation]:
        with self._lock:
            return self._gps()

    def _gps(self) -> Optional[TrackedLocation]:
        for location in self._locations.values():
            if location.is_gps:
                return location
        return None

    def update_gps_location(self, coordinate: Coordinate, name: Optional[str] = None) -> TrackedLocation:
        """
        Report a GPS fix.

        The first fix creates the GPS location. Later fixes move it only when
        the new coordinate is at least the relocation threshold away; the
        cached payloads are kept either way and age out normally.

        Returns:
            TrackedLocation: The GPS location
        """
        with self._lock:
            location = self._gps()
            if location is None:
                location = TrackedLocation(coordinate=coordinate, name=name, is_gps=True)
                self._locations[location.location_id] = location
                logging.info(f"GPS location created at {coordinate}")
                return location

            if location.coordinate is None:
                moved = None
            else:
                moved = location.coordinate.distance_to(coordinate)
            if moved is None or moved >= self.relocation_threshold:
                location.coordinate = coordinate
                logging.info(f"GPS location moved to {coordinate}" + (f" ({moved:.0f} m)" if moved is not None else ""))
            else:
                logging.debug(f"GPS fix {moved:.0f} m away, below {self.relocation_threshold} m; not relocating")
            if name is not None:
                location.name = name
            return location

    def set_default(self, location_id: str) -> TrackedLocation:
        with self._lock:
            location = self._get(location_id)
            for other in self._locations.values():
                other.is_default = False
            location.is_default = True
        logging.info(f"Default location set to {location.name or location_id}")
        return location

    @property
    def default_location(self) -> Optional[TrackedLocation]:
        with self._lock:
            for location in self._locations.values():
                if location.is_default:
                    return location
        return None

    def remove(self, location_id: str) -> TrackedLocation:
        """
        Stop tracking a location.

        Raises:
            LocationError: If the id is unknown or names the GPS location
        """
        with self._lock:
            location = self._get(location_id)
            if location.is_gps:
                raise LocationError("The GPS location cannot be deleted", location_id=location_id)
            del self._locations[location_id]
        logging.info(f"Stopped tracking location {location.name or location_id}")
        return location
