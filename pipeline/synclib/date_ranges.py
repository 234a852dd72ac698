"""Local-day and Sunday-week boundaries in a named civil timezone.

Boundaries are expressed twice: as timezone-aware local datetimes for
display and Notion date filters, and as UTC instants for GitHub queries.
All conversion goes through zoneinfo so daylight-saving transitions are
handled by the timezone database.
"""

from dataclasses import dataclass
from datetime import date
from datetime import datetime
from datetime import time
from datetime import timedelta
from datetime import timezone
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError


DEFAULT_TIMEZONE = "America/New_York"
WEEKS_PER_YEAR = 52
END_OF_DAY = time(23, 59, 59, 999000)


#============================================
class InvalidArgumentError(ValueError):
	"""
	Raised when a week number or date argument is out of range.
	"""


#============================================
@dataclass(frozen=True)
class DateRange:
	start_local: datetime
	end_local: datetime
	start_utc: datetime
	end_utc: datetime

	def local_date_keys(self) -> list[str]:
		"""
		Return every local YYYY-MM-DD key covered by the range.
		"""
		keys = []
		current = self.start_local.date()
		last = self.end_local.date()
		while current <= last:
			keys.append(current.isoformat())
			current += timedelta(days=1)
		return keys


#============================================
@dataclass(frozen=True)
class WeekDescriptor:
	week_number: int
	start_date: date
	end_date: date

	@property
	def label(self) -> str:
		start_text = self.start_date.strftime("%b %d")
		end_text = self.end_date.strftime("%b %d")
		return f"Week {self.week_number:02d} ({start_text} - {end_text})"


#============================================
def resolve_timezone(name: str) -> ZoneInfo:
	"""
	Resolve a timezone name with a safe fallback.
	"""
	try:
		return ZoneInfo(name or DEFAULT_TIMEZONE)
	except (ZoneInfoNotFoundError, ValueError):
		return ZoneInfo(DEFAULT_TIMEZONE)


#============================================
def first_week_sunday(year: int) -> date:
	"""
	Return the Sunday on or before January 1 of the year.
	"""
	jan_first = date(year, 1, 1)
	# isoweekday: Monday=1 .. Sunday=7
	days_since_sunday = jan_first.isoweekday() % 7
	return jan_first - timedelta(days=days_since_sunday)


#============================================
def local_midnight(day: date, tz: ZoneInfo) -> datetime:
	return datetime.combine(day, time(0, 0, 0), tzinfo=tz)


#============================================
def local_end_of_day(day: date, tz: ZoneInfo) -> datetime:
	return datetime.combine(day, END_OF_DAY, tzinfo=tz)


#============================================
def validate_week_number(week_number) -> int:
	"""
	Return the week number when it lies in [1, 52].
	"""
	if isinstance(week_number, bool) or not isinstance(week_number, int):
		raise InvalidArgumentError(f"Week number must be an integer: {week_number!r}")
	if week_number < 1 or week_number > WEEKS_PER_YEAR:
		raise InvalidArgumentError(
			f"Week number must be between 1 and {WEEKS_PER_YEAR}: {week_number}"
		)
	return week_number


#============================================
def week_boundaries(year: int, week_number: int, tz: ZoneInfo) -> tuple[datetime, datetime]:
	"""
	Compute local Sunday 00:00 and Saturday 23:59:59.999 for one week.
	"""
	validate_week_number(week_number)
	start_day = first_week_sunday(year) + timedelta(days=(week_number - 1) * 7)
	end_day = start_day + timedelta(days=6)
	return local_midnight(start_day, tz), local_end_of_day(end_day, tz)


#============================================
def day_boundaries(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
	"""
	Compute local 00:00 and 23:59:59.999 for one day.
	"""
	return local_midnight(day, tz), local_end_of_day(day, tz)


#============================================
def to_utc_search_range(local_start: datetime, local_end: datetime) -> tuple[datetime, datetime]:
	"""
	Convert local boundaries to UTC instants for API queries.
	"""
	if local_start.tzinfo is None or local_end.tzinfo is None:
		raise InvalidArgumentError("Local boundaries must be timezone-aware")
	start_utc = local_start.astimezone(timezone.utc)
	end_utc = local_end.astimezone(timezone.utc)
	return start_utc, end_utc


#============================================
def build_range(local_start: datetime, local_end: datetime) -> DateRange:
	start_utc, end_utc = to_utc_search_range(local_start, local_end)
	return DateRange(
		start_local=local_start,
		end_local=local_end,
		start_utc=start_utc,
		end_utc=end_utc,
	)


#============================================
def week_range(year: int, week_number: int, tz: ZoneInfo) -> DateRange:
	start, end = week_boundaries(year, week_number, tz)
	return build_range(start, end)


#============================================
def day_range(day: date, tz: ZoneInfo) -> DateRange:
	start, end = day_boundaries(day, tz)
	return build_range(start, end)


#============================================
def list_weeks(year: int) -> list[WeekDescriptor]:
	"""
	List all selectable Sunday-Saturday weeks for the year.
	"""
	first_sunday = first_week_sunday(year)
	weeks = []
	for week_number in range(1, WEEKS_PER_YEAR + 1):
		start_day = first_sunday + timedelta(days=(week_number - 1) * 7)
		weeks.append(
			WeekDescriptor(
				week_number=week_number,
				start_date=start_day,
				end_date=start_day + timedelta(days=6),
			)
		)
	return weeks


#============================================
def local_date_key(instant: datetime, tz: ZoneInfo) -> str:
	"""
	Convert an instant to its local civil YYYY-MM-DD key.
	"""
	if instant.tzinfo is None:
		instant = instant.replace(tzinfo=timezone.utc)
	return instant.astimezone(tz).date().isoformat()
