"""Read a GPX track file into a workout record.

Parsing is namespace-agnostic: elements are matched with the `{*}`
wildcard so GPX 1.0, GPX 1.1 and Garmin TrackPointExtension payloads are
all read the same way. Distances use the Haversine formula on a sphere
of radius 6371 km.
"""

import math
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime
from datetime import timezone
from zoneinfo import ZoneInfo


EARTH_RADIUS_KM = 6371.0
METERS_TO_MILES = 0.000621371
TYPE_MAP = {
	"running": "Run",
	"cycling": "Ride",
	"swimming": "Swim",
	"walk": "Walk",
	"hiking": "Hike",
	"workout": "Workout",
	"other": "Workout",
}


#============================================
class GpxParseError(RuntimeError):
	"""
	Raised when a GPX file cannot be read or parsed.
	"""


#============================================
@dataclass(frozen=True)
class TrackPoint:
	lat: float
	lon: float
	ele: float | None
	time: datetime | None
	hr: int | None = None
	cad: int | None = None


#============================================
@dataclass(frozen=True)
class TrackStats:
	distance_meters: int
	moving_time_seconds: int
	elevation_gain_meters: int
	average_heartrate: int | None
	max_heartrate: int | None
	average_cadence: int | None


#============================================
@dataclass(frozen=True)
class WorkoutRecord:
	name: str
	activity_type: str
	start_utc: datetime
	start_local: datetime
	distance_meters: int
	moving_time_seconds: int
	elevation_gain_meters: int
	average_heartrate: int | None
	max_heartrate: int | None
	average_cadence: int | None
	point_count: int

	@property
	def distance_miles(self) -> float:
		return meters_to_miles(self.distance_meters)

	@property
	def duration_minutes(self) -> float:
		return seconds_to_minutes(self.moving_time_seconds)


#============================================
def meters_to_miles(meters: float) -> float:
	return meters * METERS_TO_MILES


#============================================
def seconds_to_minutes(seconds: float) -> float:
	return seconds / 60.0


#============================================
def map_activity_type(gpx_type: str) -> str:
	"""
	Map a GPX track type to the stored activity type; unknown types are Workout.
	"""
	return TYPE_MAP.get((gpx_type or "").strip().lower(), "Workout")


#============================================
def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
	"""
	Great-circle distance between two coordinates in kilometers.
	"""
	d_lat = math.radians(lat2 - lat1)
	d_lon = math.radians(lon2 - lon1)
	a = (
		math.sin(d_lat / 2) ** 2
		+ math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
	)
	c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
	return EARTH_RADIUS_KM * c


#============================================
def parse_gpx_time(text: str | None) -> datetime | None:
	"""
	Parse an ISO 8601 GPX timestamp into an aware UTC datetime.
	"""
	if not text:
		return None
	value = datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
	if value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value.astimezone(timezone.utc)


#============================================
def _optional_float(text: str | None) -> float | None:
	if text is None or not text.strip():
		return None
	return float(text)


#============================================
def _optional_int(text: str | None) -> int | None:
	if text is None or not text.strip():
		return None
	return int(float(text))


#============================================
def parse_trackpoint(element: ET.Element) -> TrackPoint:
	"""
	Read one trkpt element, including heart rate and cadence extensions.
	"""
	return TrackPoint(
		lat=float(element.attrib["lat"]),
		lon=float(element.attrib["lon"]),
		ele=_optional_float(element.findtext("{*}ele")),
		time=parse_gpx_time(element.findtext("{*}time")),
		hr=_optional_int(element.findtext("{*}extensions//{*}hr")),
		cad=_optional_int(element.findtext("{*}extensions//{*}cad")),
	)


#============================================
def calculate_track_stats(points: list[TrackPoint]) -> TrackStats:
	"""
	Sum distance, time gaps and positive climbs over consecutive points.

	Heart rate and cadence come from every point after the first.
	"""
	if len(points) < 2:
		return TrackStats(0, 0, 0, None, None, None)
	total_km = 0.0
	elevation_gain = 0.0
	moving_seconds = 0.0
	heart_rates = []
	cadences = []
	for prev, curr in zip(points, points[1:]):
		total_km += haversine_km(prev.lat, prev.lon, curr.lat, curr.lon)
		if prev.ele is not None and curr.ele is not None and curr.ele > prev.ele:
			elevation_gain += curr.ele - prev.ele
		if prev.time is not None and curr.time is not None:
			moving_seconds += (curr.time - prev.time).total_seconds()
		if curr.hr:
			heart_rates.append(curr.hr)
		if curr.cad:
			cadences.append(curr.cad)
	return TrackStats(
		distance_meters=round(total_km * 1000),
		moving_time_seconds=round(moving_seconds),
		elevation_gain_meters=round(elevation_gain),
		average_heartrate=round(sum(heart_rates) / len(heart_rates)) if heart_rates else None,
		max_heartrate=max(heart_rates) if heart_rates else None,
		average_cadence=round(sum(cadences) / len(cadences)) if cadences else None,
	)


#============================================
def parse_gpx_file(path: str, tz: ZoneInfo) -> WorkoutRecord:
	"""
	Parse a GPX file into a WorkoutRecord with local start time in tz.
	"""
	if not os.path.isfile(path):
		raise GpxParseError(f"File not found: {path}")
	try:
		root = ET.parse(path).getroot()
	except (ET.ParseError, OSError) as error:
		raise GpxParseError(f"Failed to parse GPX file: {error}") from error

	track = root.find("{*}trk")
	if track is None:
		raise GpxParseError("Failed to parse GPX file: no <trk> element")
	try:
		points = [parse_trackpoint(element) for element in track.iter("{*}trkpt")]
		start_utc = parse_gpx_time(root.findtext("{*}metadata/{*}time"))
	except (KeyError, ValueError) as error:
		raise GpxParseError(f"Failed to parse GPX file: {error}") from error
	if start_utc is None and points:
		start_utc = points[0].time
	if start_utc is None:
		raise GpxParseError("Failed to parse GPX file: no start time")

	stats = calculate_track_stats(points)
	return WorkoutRecord(
		name=(track.findtext("{*}name") or "").strip() or "Workout",
		activity_type=map_activity_type(track.findtext("{*}type") or ""),
		start_utc=start_utc,
		start_local=start_utc.astimezone(tz),
		distance_meters=stats.distance_meters,
		moving_time_seconds=stats.moving_time_seconds,
		elevation_gain_meters=stats.elevation_gain_meters,
		average_heartrate=stats.average_heartrate,
		max_heartrate=stats.max_heartrate,
		average_cadence=stats.average_cadence,
		point_count=len(points),
	)
