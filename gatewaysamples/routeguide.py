"""Route guide service: features on a map, routes and location notes."""

from __future__ import annotations

import json
import math
import random
import threading
import time
from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from os import PathLike
from typing import Optional, Union

COORD_FACTOR = 1e7
EARTH_RADIUS_M = 6371000.0


def _int32(value: int) -> int:
    """Wrap an integer to the signed 32-bit range."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


@dataclass(frozen=True)
class Point:
    """A location in E7 coordinates (degrees multiplied by 10**7)."""

    latitude: int = 0
    longitude: int = 0


@dataclass(frozen=True)
class Rectangle:
    """A latitude-longitude rectangle given by two opposite corners."""

    lo: Point
    hi: Point


@dataclass(frozen=True)
class Feature:
    """A named place; an empty name means nothing is known there."""

    name: str = ""
    location: Optional[Point] = None


@dataclass(frozen=True)
class RouteNote:
    """A message left at a location."""

    location: Point
    message: str = ""


@dataclass(frozen=True)
class RouteSummary:
    """Statistics about a traversed route."""

    point_count: int = 0
    feature_count: int = 0
    distance: int = 0
    elapsed_time: int = 0


def to_radians(num: float) -> float:
    """Convert degrees to radians."""
    return num * math.pi / 180.0


def calc_distance(p1: Point, p2: Point) -> int:
    """Distance in whole metres between two points, by the haversine formula."""
    lat1 = to_radians(p1.latitude / COORD_FACTOR)
    lat2 = to_radians(p2.latitude / COORD_FACTOR)
    lng1 = to_radians(p1.longitude / COORD_FACTOR)
    lng2 = to_radians(p2.longitude / COORD_FACTOR)
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return _int32(int(EARTH_RADIUS_M * c))


def in_range(point: Point, rect: Rectangle) -> bool:
    """Whether the point lies inside the rectangle, edges included."""
    left = min(rect.lo.longitude, rect.hi.longitude)
    right = max(rect.lo.longitude, rect.hi.longitude)
    top = max(rect.lo.latitude, rect.hi.latitude)
    bottom = min(rect.lo.latitude, rect.hi.latitude)
    return left <= point.longitude <= right and bottom <= point.latitude <= top


def serialize(point: Point) -> str:
    """Key for a point, as "latitude longitude"."""
    return f"{point.latitude} {point.longitude}"


def random_point(rng: Optional[random.Random] = None) -> Point:
    """A random point on whole-degree coordinates."""
    source = rng if rng is not None else random
    lat = (source.randrange(180) - 90) * 10_000_000
    lng = (source.randrange(360) - 180) * 10_000_000
    return Point(lat, lng)


def _lookup(mapping: dict, key: str):
    """Find a key ignoring case, as lenient JSON decoding does."""
    if key in mapping:
        return mapping[key]
    lowered = key.lower()
    for candidate, value in mapping.items():
        if isinstance(candidate, str) and candidate.lower() == lowered:
            return value
    return None


def _point_from_json(data) -> Optional[Point]:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"point must be an object, got {data!r}")
    return Point(
        latitude=int(_lookup(data, "latitude") or 0),
        longitude=int(_lookup(data, "longitude") or 0),
    )


def load_features(path: Union[str, PathLike]) -> list[Feature]:
    """Read a JSON list of features from a file."""
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError("feature database must be a JSON list")
    features = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError(f"feature must be an object, got {entry!r}")
        features.append(
            Feature(
                name=_lookup(entry, "name") or "",
                location=_point_from_json(_lookup(entry, "location")),
            )
        )
    return features


@dataclass
class RouteGuideServer:
    """Serves feature lookups, route summaries and route chat."""

    features: list[Feature] = field(default_factory=list)
    _notes: dict[str, list[RouteNote]] = field(
        default_factory=lambda: defaultdict(list), init=False, repr=False
    )
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def get_feature(self, point: Point) -> Feature:
        """The feature at the point, or an unnamed feature there."""
        for feature in self.features:
            if feature.location == point:
                return feature
        return Feature(location=point)

    def list_features(self, rect: Rectangle) -> Iterator[Feature]:
        """Yield every feature inside the rectangle."""
        for feature in self.features:
            location = feature.location or Point()
            if in_range(location, rect):
                yield feature

    def record_route(self, points: Iterable[Point]) -> RouteSummary:
        """Summarise a route: points, known features visited, distance, time."""
        point_count = feature_count = distance = 0
        last: Optional[Point] = None
        start = time.monotonic()
        for point in points:
            point_count = _int32(point_count + 1)
            feature_count = _int32(
                feature_count + sum(1 for f in self.features if f.location == point)
            )
            if last is not None:
                distance = _int32(distance + calc_distance(last, point))
            last = point
        elapsed = int(time.monotonic() - start)
        return RouteSummary(point_count, feature_count, distance, elapsed)

    def route_chat(self, notes: Iterable[RouteNote]) -> Iterator[RouteNote]:
        """For each incoming note, yield every note so far at its location."""
        for note in notes:
            key = serialize(note.location)
            with self._lock:
                self._notes[key].append(note)
                snapshot = list(self._notes[key])
            yield from snapshot