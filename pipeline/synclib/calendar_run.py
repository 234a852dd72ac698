import sys
from datetime import datetime

from synclib import calendar_client
from synclib import date_ranges
from synclib import notion_store
from synclib import pipeline_settings
from synclib import selection_prompt


#============================================
def open_connections(settings: dict, tz_name: str, store, database_id: str, log_fn):
	"""
	Build the calendar client and check both Notion and the calendars.

	Exits with code 1 when either side is unreachable.
	"""
	log_fn("Testing connections.")
	try:
		calendar = calendar_client.build_calendar_client(settings, tz_name, log_fn=log_fn)
		database_title = store.test_connection(database_id)
		calendar_count = calendar.test_connection()
	except (calendar_client.CalendarRequestError, notion_store.StoreRequestError) as error:
		log_fn(f"Connection failed: {error}")
		sys.exit(1)
	log_fn(f"Notion connection successful; database: {database_title}")
	log_fn(f"Calendar connection successful; {calendar_count} calendar(s) visible")
	return calendar


#============================================
def choose_date_keys(settings: dict, tz_name: str, log_fn) -> list[str] | None:
	"""
	Resolve the selected period and confirm it.

	Returns the local date keys, or None when the user cancels.
	"""
	tz = date_ranges.resolve_timezone(tz_name)
	year = pipeline_settings.get_setting_int(settings, ["selection", "year"], datetime.now(tz).year)
	try:
		selection = selection_prompt.resolve_selection(year, tz, "create calendar events")
	except selection_prompt.SelectionError as error:
		log_fn(f"Selection error: {error}")
		sys.exit(1)
	date_keys = selection.date_range.local_date_keys()
	log_fn(f"Creating calendar events for {selection.label}")
	log_fn(f"Date range: {date_keys[0]} - {date_keys[-1]}")
	if not selection_prompt.confirm("Proceed with creating calendar events for this period?"):
		log_fn("Operation cancelled.")
		return None
	return date_keys


#============================================
def prepare_calendar_run(settings: dict, tz_name: str, store, database_id: str, log_fn):
	"""
	Shared start of both calendar projection scripts.

	Returns (calendar, date_keys), or None when the period is not confirmed.
	"""
	calendar = open_connections(settings, tz_name, store, database_id, log_fn)
	date_keys = choose_date_keys(settings, tz_name, log_fn)
	if date_keys is None:
		return None
	return calendar, date_keys
