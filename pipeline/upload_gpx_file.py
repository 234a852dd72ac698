#!/usr/bin/env python3
import argparse

from synclib import console_log
from synclib import date_ranges
from synclib import gpx_import
from synclib import notion_store
from synclib import pipeline_settings


log_step = console_log.make_log_step("upload_gpx_file")


#============================================
def parse_args() -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Parse a GPX track and save it as a workout row in Notion."
	)
	parser.add_argument(
		"gpx_path",
		nargs="?",
		default="",
		help="Path to the GPX file; prompted for when omitted.",
	)
	parser.add_argument(
		"--settings",
		default=pipeline_settings.DEFAULT_SETTINGS_PATH,
		help="Path to YAML settings file.",
	)
	return parser.parse_args()


#============================================
def format_workout_report(workout: gpx_import.WorkoutRecord) -> list[str]:
	"""
	Build the human-readable workout summary lines.
	"""
	minutes, seconds = divmod(workout.moving_time_seconds, 60)
	lines = [
		f"Name: {workout.name}",
		f"Type: {workout.activity_type}",
		f"Date: {workout.start_local.strftime('%a %b %d %Y %H:%M')}",
		f"Distance: {workout.distance_meters / 1000:.2f}km ({workout.distance_miles:.2f} mi)",
		f"Duration: {minutes}min {seconds}s",
		f"Elevation Gain: {workout.elevation_gain_meters}m",
	]
	if workout.average_heartrate is not None:
		lines.append(f"Avg HR: {workout.average_heartrate}bpm")
	if workout.max_heartrate is not None:
		lines.append(f"Max HR: {workout.max_heartrate}bpm")
	if workout.average_cadence is not None:
		lines.append(f"Avg Cadence: {workout.average_cadence}spm")
	lines.append(f"Track Points: {workout.point_count}")
	return lines


#============================================
def main() -> None:
	"""
	Import one GPX file as a workout record.
	"""
	args = parse_args()
	gpx_path = args.gpx_path.strip()
	if not gpx_path:
		gpx_path = input("? Enter the path to your GPX file: ").strip()
		if not gpx_path:
			log_step("No file path provided. Exiting.")
			return
	settings, settings_path = pipeline_settings.load_settings(args.settings)
	log_step(f"Using settings file: {settings_path}")
	tz_name = pipeline_settings.get_timezone_name(settings, date_ranges.DEFAULT_TIMEZONE)
	tz = date_ranges.resolve_timezone(tz_name)

	log_step(f"Parsing GPX file: {gpx_path}")
	try:
		workout = gpx_import.parse_gpx_file(gpx_path, tz)
	except gpx_import.GpxParseError as error:
		log_step(f"Failed: {error}")
		return
	log_step("GPX file parsed successfully.")
	for line in format_workout_report(workout):
		log_step(f"  {line}")

	store = notion_store.NotionStore(
		pipeline_settings.get_secret(settings, ["notion", "token"], "NOTION_TOKEN"),
		workout_database_id=pipeline_settings.get_secret(
			settings,
			["notion", "workout_database_id"],
			"NOTION_WORKOUT_DATABASE_ID",
		),
		log_fn=log_step,
	)
	log_step("Testing Notion connection.")
	try:
		store.test_connection(store.workout_database_id)
	except notion_store.StoreRequestError as error:
		log_step(f"Notion connection failed: {error}")
		return

	try:
		store.create_workout_record(workout)
	except notion_store.StoreRequestError as error:
		log_step(f"Failed to create workout record: {error}")
		return
	log_step(
		f"Saved: {workout.name} | {workout.activity_type} | "
		+ f"{workout.distance_meters / 1000:.2f}km"
	)


if __name__ == "__main__":
	main()
