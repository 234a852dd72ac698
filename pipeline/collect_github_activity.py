#!/usr/bin/env python3
import argparse
import sys
from datetime import datetime

from synclib import activity_aggregator
from synclib import activity_source
from synclib import console_log
from synclib import date_ranges
from synclib import github_client
from synclib import notion_store
from synclib import pipeline_settings
from synclib import selection_prompt


log_step = console_log.make_log_step("collect_github_activity")


#============================================
def parse_args() -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Collect GitHub commit activity for a day or week into Notion."
	)
	parser.add_argument(
		"--settings",
		default=pipeline_settings.DEFAULT_SETTINGS_PATH,
		help="Path to YAML settings file.",
	)
	return parser.parse_args()


#============================================
def resolve_year(settings: dict, tz) -> int:
	"""
	Read the selectable year, defaulting to the current local year.
	"""
	return pipeline_settings.get_setting_int(settings, ["selection", "year"], datetime.now(tz).year)


#============================================
def resolve_work_repositories(settings: dict, client, work_prefixes: list[str]) -> list[str]:
	"""
	Combine configured work repositories with discovered ones when enabled.
	"""
	repos = pipeline_settings.get_setting_list(settings, ["github", "work_repositories"])
	discover = pipeline_settings.get_setting_bool(
		settings,
		["github", "discover_work_repositories"],
		False,
	)
	if discover and work_prefixes:
		log_step("Discovering work repositories from prefixes.")
		for name in activity_source.discover_work_repositories(client, work_prefixes, log_fn=log_step):
			if name not in repos:
				repos.append(name)
	return repos


#============================================
def save_summaries(store, summaries: list) -> int:
	"""
	Create one record per summary; failed rows are logged and skipped.
	"""
	saved = 0
	for summary in summaries:
		try:
			store.create_activity_record(summary)
		except notion_store.StoreRequestError as error:
			log_step(
				f"Failed to save {summary.repo_full_name} {summary.local_date_key}: {error}"
			)
			continue
		saved += 1
	return saved


#============================================
def print_summaries(summaries: list) -> None:
	for summary in summaries:
		log_step(
			f"{summary.local_date_key} {summary.repo_full_name} [{summary.project_type}]: "
			+ f"{summary.commit_count} commit(s), +{summary.lines_added}/-{summary.lines_deleted}"
		)


#============================================
def main() -> None:
	"""
	Collect a selected day or week of commits and save per-day repository rows.
	"""
	args = parse_args()
	settings, settings_path = pipeline_settings.load_settings(args.settings)
	log_step(f"Using settings file: {settings_path}")
	tz_name = pipeline_settings.get_timezone_name(settings, date_ranges.DEFAULT_TIMEZONE)
	tz = date_ranges.resolve_timezone(tz_name)

	token = pipeline_settings.get_secret(settings, ["github", "token"], "GITHUB_TOKEN")
	client = github_client.GitHubClient(token, log_fn=log_step)
	store = notion_store.NotionStore(
		pipeline_settings.get_secret(settings, ["notion", "token"], "NOTION_TOKEN"),
		github_database_id=pipeline_settings.get_secret(
			settings,
			["notion", "github_database_id"],
			"NOTION_GITHUB_DATABASE_ID",
		),
		log_fn=log_step,
	)

	log_step("Testing connections.")
	try:
		login = client.get_authenticated_login()
		database_title = store.test_connection(store.github_database_id)
	except (github_client.GitHubRequestError, notion_store.StoreRequestError) as error:
		log_step(f"Connection test failed: {error}")
		sys.exit(1)
	log_step(f"GitHub connection successful as {login}; Notion database: {database_title}")
	identity = pipeline_settings.get_github_username(settings, login)

	try:
		selection = selection_prompt.resolve_selection(resolve_year(settings, tz), tz, "collect")
	except selection_prompt.SelectionError as error:
		log_step(f"Selection error: {error}")
		sys.exit(1)
	date_range = selection.date_range
	log_step(f"Selected {selection.label}")
	log_step(
		f"Local range ({tz_name}): {date_range.start_local.isoformat()} -> "
		+ date_range.end_local.isoformat()
	)
	log_step(
		f"UTC range: {date_range.start_utc.isoformat()} -> {date_range.end_utc.isoformat()}"
	)
	if not selection_prompt.confirm(f"Proceed with collecting activity for {selection.label}?"):
		log_step("Operation cancelled.")
		return

	work_prefixes = pipeline_settings.get_setting_list(settings, ["github", "work_prefixes"])
	work_repositories = resolve_work_repositories(settings, client, work_prefixes)
	commits = activity_source.fetch_commits(
		client,
		identity,
		date_range.start_utc,
		date_range.end_utc,
		work_repositories,
		work_prefixes=work_prefixes,
		squash_scope=pipeline_settings.get_squash_expansion_scope(settings),
		log_fn=log_step,
	)
	if not commits:
		log_step(f"No commits found for {selection.label}")
		return

	summaries = activity_aggregator.group_and_summarize(commits, tz, work_prefixes)
	summaries = activity_aggregator.filter_to_date_keys(summaries, date_range.local_date_keys())
	summaries.sort(key=lambda item: (item.local_date_key, item.repo_full_name))
	log_step(f"Collected {len(commits)} commit(s) into {len(summaries)} daily record(s).")
	print_summaries(summaries)

	saved = save_summaries(store, summaries)
	log_step(f"Saved {saved} of {len(summaries)} record(s) to Notion.")
	usage = client.api_usage_snapshot()
	log_step(f"GitHub API usage: calls={usage.get('api_call_count', 0)}")


if __name__ == "__main__":
	main()
