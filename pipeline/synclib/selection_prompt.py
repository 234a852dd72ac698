"""Interactive date or week selection for the driver scripts.

The drivers only see resolve_selection(); it returns a Selection holding
the resolved local/UTC DateRange, so tests can feed answers through a
scripted input function instead of a terminal.
"""

import re
from dataclasses import dataclass
from datetime import date
from zoneinfo import ZoneInfo

from synclib import date_ranges


DATE_INPUT_RE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{2})$")
PREVIEW_WEEK_COUNT = 5


#============================================
class DateInputError(ValueError):
	"""
	Raised when a DD-MM-YY answer is malformed or names no real day.
	"""


#============================================
class SelectionError(RuntimeError):
	"""
	Raised when the chosen option or week number is invalid.
	"""


#============================================
@dataclass(frozen=True)
class Selection:
	mode: str
	label: str
	date_range: date_ranges.DateRange
	week_number: int | None = None
	selected_date: date | None = None


#============================================
def parse_date_input(text: str) -> date:
	"""
	Parse a DD-MM-YY answer into a date in the 2000s.
	"""
	match = DATE_INPUT_RE.match((text or "").strip())
	if not match:
		raise DateInputError("Invalid format. Please use DD-MM-YY (e.g., 15-03-25)")
	day_value = int(match.group(1))
	month_value = int(match.group(2))
	year_value = 2000 + int(match.group(3))
	try:
		return date(year_value, month_value, day_value)
	except ValueError as error:
		raise DateInputError("Invalid date. Please check day, month, and year.") from error


#============================================
def parse_week_input(text: str) -> int:
	"""
	Parse a week-number answer, rejecting values outside 1-52.
	"""
	try:
		week_number = int((text or "").strip())
	except ValueError as error:
		raise SelectionError(f"Invalid week number: {text!r}") from error
	try:
		return date_ranges.validate_week_number(week_number)
	except date_ranges.InvalidArgumentError as error:
		raise SelectionError(f"Invalid week number: {week_number}") from error


#============================================
def date_selection(selected: date, tz: ZoneInfo) -> Selection:
	return Selection(
		mode="date",
		label=f"Date {selected.strftime('%a %b %d %Y')}",
		date_range=date_ranges.day_range(selected, tz),
		selected_date=selected,
	)


#============================================
def week_selection(year: int, week_number: int, tz: ZoneInfo) -> Selection:
	week_range = date_ranges.week_range(year, week_number, tz)
	start_text = week_range.start_local.strftime("%a %b %d %Y")
	end_text = week_range.end_local.strftime("%a %b %d %Y")
	return Selection(
		mode="week",
		label=f"Week {week_number} ({start_text} - {end_text})",
		date_range=week_range,
		week_number=week_number,
	)


#============================================
def resolve_selection(
	year: int,
	tz: ZoneInfo,
	action_text: str,
	input_fn=input,
	print_fn=print,
) -> Selection:
	"""
	Ask for a single date or a week number and resolve its boundaries.
	"""
	print_fn("Choose your selection method:")
	print_fn("  1. Enter a specific Date (DD-MM-YY format)")
	print_fn("  2. Select by week number")
	option = (input_fn("? Choose option (1 or 2): ") or "").strip()

	if option == "1":
		while True:
			answer = input_fn("? Enter Date in DD-MM-YY format (e.g., 15-03-25): ")
			try:
				selected = parse_date_input(answer)
			except DateInputError as error:
				print_fn(str(error))
				continue
			return date_selection(selected, tz)

	if option == "2":
		weeks = date_ranges.list_weeks(year)
		print_fn("Available weeks:")
		for week in weeks[:PREVIEW_WEEK_COUNT]:
			print_fn(f"  {week.week_number} - {week.label}")
		print_fn("  ...")
		print_fn(f"  {weeks[-1].week_number} - {weeks[-1].label}")
		answer = input_fn(f"? Which week to {action_text}? (enter week number): ")
		week_number = parse_week_input(answer)
		return week_selection(year, week_number, tz)

	raise SelectionError("Invalid option. Please choose 1 or 2.")


#============================================
def confirm(question: str, input_fn=input) -> bool:
	"""
	Ask a y/n question; only 'y' proceeds.
	"""
	answer = input_fn(f"? {question} (y/n): ")
	return (answer or "").strip().lower() == "y"
