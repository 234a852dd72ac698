#!/usr/bin/env python3
import argparse
import sys

from synclib import calendar_client
from synclib import calendar_run
from synclib import console_log
from synclib import date_ranges
from synclib import notion_store
from synclib import pipeline_settings
from synclib import selection_prompt


log_step = console_log.make_log_step("update_workout_calendar")


#============================================
def parse_args() -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Create calendar events for workout rows stored in Notion."
	)
	parser.add_argument(
		"--settings",
		default=pipeline_settings.DEFAULT_SETTINGS_PATH,
		help="Path to YAML settings file.",
	)
	return parser.parse_args()


#============================================
def project_workouts(store, calendar, workouts: list) -> int:
	"""
	Create one timed event per workout and flag it; failed rows are skipped.
	"""
	created = 0
	for workout in workouts:
		try:
			calendar.create_workout_event(workout)
			store.mark_calendar_created(workout.page_id)
		except (calendar_client.CalendarRequestError, notion_store.StoreRequestError) as error:
			log_step(f"Failed to create event for {workout.name}: {error}")
			continue
		created += 1
	return created


#============================================
def main() -> None:
	"""
	Project unflagged workout rows for a selected period onto the workout calendar.
	"""
	args = parse_args()
	settings, settings_path = pipeline_settings.load_settings(args.settings)
	log_step(f"Using settings file: {settings_path}")
	tz_name = pipeline_settings.get_timezone_name(settings, date_ranges.DEFAULT_TIMEZONE)

	store = notion_store.NotionStore(
		pipeline_settings.get_secret(settings, ["notion", "token"], "NOTION_TOKEN"),
		workout_database_id=pipeline_settings.get_secret(
			settings,
			["notion", "workout_database_id"],
			"NOTION_WORKOUT_DATABASE_ID",
		),
		log_fn=log_step,
	)
	prepared = calendar_run.prepare_calendar_run(
		settings,
		tz_name,
		store,
		store.workout_database_id,
		log_step,
	)
	if prepared is None:
		return
	calendar, date_keys = prepared

	try:
		workouts = store.query_unprojected_workouts(date_keys[0], date_keys[-1])
	except notion_store.StoreRequestError as error:
		log_step(f"Reading workouts failed: {error}")
		sys.exit(1)
	if not workouts:
		log_step("No workouts found without calendar events for this period.")
		return
	log_step(f"Found {len(workouts)} workout sessions")
	for index, workout in enumerate(workouts, start=1):
		log_step(f"  {index}. {workout.name} - {workout.date_key}")
	if not selection_prompt.confirm("Proceed with creating these calendar events?"):
		log_step("Operation cancelled.")
		return

	created = project_workouts(store, calendar, workouts)
	log_step(f"Created {created} of {len(workouts)} calendar event(s).")


if __name__ == "__main__":
	main()
