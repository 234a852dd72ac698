import os
import sys
from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from zoneinfo import ZoneInfo

import pytest

import git_file_utils


REPO_ROOT = git_file_utils.get_repo_root()
PIPELINE_DIR = os.path.join(REPO_ROOT, "pipeline")
if PIPELINE_DIR not in sys.path:
	sys.path.insert(0, PIPELINE_DIR)

from synclib import date_ranges


NEW_YORK = ZoneInfo("America/New_York")


#============================================
def test_first_week_sunday_on_or_before_jan_first() -> None:
	"""
	Week 1 starts on the Sunday on or before January 1.
	"""
	for year in range(2020, 2031):
		sunday = date_ranges.first_week_sunday(year)
		jan_first = date(year, 1, 1)
		assert sunday.isoweekday() == 7
		assert sunday <= jan_first
		assert (jan_first - sunday).days < 7


#============================================
def test_first_week_sunday_when_year_starts_on_sunday() -> None:
	"""
	A year that begins on Sunday starts week 1 on January 1.
	"""
	assert date_ranges.first_week_sunday(2023) == date(2023, 1, 1)
	assert date_ranges.first_week_sunday(2025) == date(2024, 12, 29)


#============================================
def test_week_boundaries_span_sunday_to_saturday() -> None:
	"""
	Week boundaries run from Sunday 00:00 to Saturday 23:59:59.999 local.
	"""
	start, end = date_ranges.week_boundaries(2025, 1, NEW_YORK)
	assert start == datetime(2024, 12, 29, 0, 0, 0, tzinfo=NEW_YORK)
	assert end == datetime(2025, 1, 4, 23, 59, 59, 999000, tzinfo=NEW_YORK)
	assert start.isoweekday() == 7
	assert end.isoweekday() == 6


#============================================
def test_week_range_across_daylight_saving_start() -> None:
	"""
	UTC conversion uses each boundary's own offset across a DST change.
	"""
	week = date_ranges.week_range(2025, 11, NEW_YORK)
	assert week.start_local.date() == date(2025, 3, 9)
	assert week.start_utc == datetime(2025, 3, 9, 5, 0, 0, tzinfo=timezone.utc)
	assert week.end_utc == datetime(2025, 3, 16, 3, 59, 59, 999000, tzinfo=timezone.utc)


#============================================
def test_day_range_utc_boundaries() -> None:
	"""
	A single local day maps to a 24 hour UTC window.
	"""
	day = date_ranges.day_range(date(2025, 3, 10), NEW_YORK)
	assert day.start_utc == datetime(2025, 3, 10, 4, 0, 0, tzinfo=timezone.utc)
	assert day.end_utc == datetime(2025, 3, 11, 3, 59, 59, 999000, tzinfo=timezone.utc)
	assert day.local_date_keys() == ["2025-03-10"]


#============================================
def test_week_range_local_date_keys() -> None:
	"""
	A week range covers seven local date keys.
	"""
	week = date_ranges.week_range(2025, 2, NEW_YORK)
	keys = week.local_date_keys()
	assert len(keys) == 7
	assert keys[0] == "2025-01-05"
	assert keys[-1] == "2025-01-11"


#============================================
@pytest.mark.parametrize("week_number", [0, 53, -1, True, "5", 2.0])
def test_invalid_week_number_raises(week_number) -> None:
	"""
	Week numbers outside 1-52 or non-integers are rejected.
	"""
	with pytest.raises(date_ranges.InvalidArgumentError):
		date_ranges.week_boundaries(2025, week_number, NEW_YORK)


#============================================
def test_list_weeks_has_52_consecutive_sundays() -> None:
	"""
	The week list holds 52 entries starting on consecutive Sundays.
	"""
	weeks = date_ranges.list_weeks(2025)
	assert len(weeks) == 52
	assert weeks[0].week_number == 1
	assert weeks[-1].week_number == 52
	for previous, current in zip(weeks, weeks[1:]):
		assert current.start_date - previous.start_date == timedelta(days=7)
	for week in weeks:
		assert week.start_date.isoweekday() == 7
		assert week.end_date - week.start_date == timedelta(days=6)
	assert weeks[0].label == "Week 01 (Dec 29 - Jan 04)"
	assert weeks[-1].label == "Week 52 (Dec 21 - Dec 27)"


#============================================
def test_to_utc_search_range_requires_aware_datetimes() -> None:
	"""
	Naive local boundaries cannot be converted.
	"""
	with pytest.raises(date_ranges.InvalidArgumentError):
		date_ranges.to_utc_search_range(datetime(2025, 1, 1), datetime(2025, 1, 2))


#============================================
def test_local_date_key_uses_local_civil_day() -> None:
	"""
	An instant late in the UTC day can still fall on the previous local day.
	"""
	instant = datetime(2025, 3, 11, 2, 30, 0, tzinfo=timezone.utc)
	assert date_ranges.local_date_key(instant, NEW_YORK) == "2025-03-10"
	assert date_ranges.local_date_key(instant, ZoneInfo("UTC")) == "2025-03-11"


#============================================
def test_resolve_timezone_falls_back_to_default() -> None:
	"""
	Unknown timezone names fall back to the default zone.
	"""
	assert date_ranges.resolve_timezone("Not/AZone").key == date_ranges.DEFAULT_TIMEZONE
	assert date_ranges.resolve_timezone("Europe/Paris").key == "Europe/Paris"
