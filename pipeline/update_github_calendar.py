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


log_step = console_log.make_log_step("update_github_calendar")


#============================================
def parse_args() -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Create calendar events for GitHub activity rows stored in Notion."
	)
	parser.add_argument(
		"--settings",
		default=pipeline_settings.DEFAULT_SETTINGS_PATH,
		help="Path to YAML settings file.",
	)
	return parser.parse_args()


#============================================
def project_activities(store, calendar, activities: list) -> dict[str, int]:
	"""
	Create one all-day event per row and flag it; failed rows are skipped.
	"""
	counts = {"Work": 0, "Personal": 0, "failed": 0}
	for activity in activities:
		try:
			calendar.create_activity_event(activity)
			store.mark_calendar_created(activity.page_id)
		except (calendar_client.CalendarRequestError, notion_store.StoreRequestError) as error:
			log_step(f"Failed to project {activity.repo_full_name} {activity.date_key}: {error}")
			counts["failed"] += 1
			continue
		if activity.project_type == "Work":
			counts["Work"] += 1
		else:
			counts["Personal"] += 1
	return counts


#============================================
def main() -> None:
	"""
	Project unflagged GitHub activity rows for a selected period onto calendars.
	"""
	args = parse_args()
	settings, settings_path = pipeline_settings.load_settings(args.settings)
	log_step(f"Using settings file: {settings_path}")
	tz_name = pipeline_settings.get_timezone_name(settings, date_ranges.DEFAULT_TIMEZONE)

	store = notion_store.NotionStore(
		pipeline_settings.get_secret(settings, ["notion", "token"], "NOTION_TOKEN"),
		github_database_id=pipeline_settings.get_secret(
			settings,
			["notion", "github_database_id"],
			"NOTION_GITHUB_DATABASE_ID",
		),
		log_fn=log_step,
	)
	prepared = calendar_run.prepare_calendar_run(
		settings,
		tz_name,
		store,
		store.github_database_id,
		log_step,
	)
	if prepared is None:
		return
	calendar, date_keys = prepared

	try:
		activities = store.query_unprojected_activities(date_keys[0], date_keys[-1])
	except notion_store.StoreRequestError as error:
		log_step(f"Reading GitHub activities failed: {error}")
		sys.exit(1)
	if not activities:
		log_step("No GitHub activities found without calendar events for this period.")
		log_step("Run collect_github_activity.py first to gather GitHub data.")
		return
	log_step(f"Found {len(activities)} GitHub activities")
	for activity in activities:
		log_step(
			f"{activity.date_key} {activity.repo_full_name} [{activity.project_type}]: "
			+ f"{activity.commit_count} commit(s)"
		)
	if not selection_prompt.confirm("Proceed with creating these calendar events?"):
		log_step("Operation cancelled.")
		return

	counts = project_activities(store, calendar, activities)
	created = counts["Work"] + counts["Personal"]
	log_step(f"Created {created} of {len(activities)} calendar event(s).")
	log_step(f"Work events: {counts['Work']}, Personal events: {counts['Personal']}")
	if counts["failed"]:
		log_step(f"Failed events: {counts['failed']}")


if __name__ == "__main__":
	main()
