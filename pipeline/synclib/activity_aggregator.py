from dataclasses import dataclass
from datetime import datetime
from datetime import timezone
from zoneinfo import ZoneInfo

from synclib import activity_source
from synclib import date_ranges


#============================================
@dataclass(frozen=True)
class ActivitySummary:
	repo_full_name: str
	local_date_key: str
	commit_count: int
	pull_request_count: int
	commit_messages: str
	pr_titles: str
	changed_file_count: int
	files_list: str
	lines_added: int
	lines_deleted: int
	total_changes: int
	project_type: str
	span_start: datetime
	span_end: datetime
	duration_minutes: int


#============================================
def first_line(message: str) -> str:
	lines = (message or "").splitlines()
	if not lines:
		return ""
	return lines[0].strip()


#============================================
def commit_instant(commit: activity_source.CommitRecord) -> datetime:
	"""
	Return the commit author instant as an aware UTC datetime.
	"""
	value = commit.author_date
	if value is None:
		return datetime(1970, 1, 1, tzinfo=timezone.utc)
	if value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value.astimezone(timezone.utc)


#============================================
def activity_instant(commit: activity_source.CommitRecord) -> datetime:
	"""
	Return the instant that decides the commit's local day and span.
	"""
	if commit.activity_date is None:
		return commit_instant(commit)
	if commit.activity_date.tzinfo is None:
		return commit.activity_date.replace(tzinfo=timezone.utc)
	return commit.activity_date.astimezone(timezone.utc)


#============================================
def format_commit_message(commit: activity_source.CommitRecord, tz: ZoneInfo) -> str:
	"""
	Render the first message line with the local time of day.
	"""
	time_text = commit_instant(commit).astimezone(tz).strftime("%H:%M:%S")
	return f"{first_line(commit.message)} ({time_text})"


#============================================
def span_minutes(span_start: datetime, span_end: datetime) -> int:
	"""
	Round the span to whole minutes, half up, with a floor of one.
	"""
	minutes = (span_end - span_start).total_seconds() / 60.0
	rounded = int(minutes + 0.5)
	return max(1, rounded)


#============================================
def group_commits(commits, tz: ZoneInfo) -> dict[tuple[str, str], list]:
	"""
	Group commits by (repository, local date key) in input order.
	"""
	groups: dict[tuple[str, str], list] = {}
	for commit in commits:
		day_key = date_ranges.local_date_key(activity_instant(commit), tz)
		key = (commit.repo_full_name, day_key)
		if key not in groups:
			groups[key] = []
		groups[key].append(commit)
	return groups


#============================================
def summarize_group(
	repo_full_name: str,
	day_key: str,
	commits: list,
	tz: ZoneInfo,
	work_prefixes=(),
) -> ActivitySummary:
	"""
	Reduce one non-empty commit group to a summary record.
	"""
	lines_added = 0
	lines_deleted = 0
	files: list[str] = []
	pr_numbers = set()
	pr_labels: list[str] = []
	messages = []
	for commit in commits:
		lines_added += commit.additions or 0
		lines_deleted += commit.deletions or 0
		for filename in commit.changed_files:
			if filename not in files:
				files.append(filename)
		for pull in commit.pull_requests:
			pr_numbers.add(pull.number)
			if pull.label not in pr_labels:
				pr_labels.append(pull.label)
		messages.append(format_commit_message(commit, tz))
	instants = [activity_instant(commit) for commit in commits]
	span_start = min(instants)
	span_end = max(instants)
	return ActivitySummary(
		repo_full_name=repo_full_name,
		local_date_key=day_key,
		commit_count=len(commits),
		pull_request_count=len(pr_numbers),
		commit_messages=", ".join(messages),
		pr_titles=", ".join(pr_labels),
		changed_file_count=len(files),
		files_list=", ".join(files),
		lines_added=lines_added,
		lines_deleted=lines_deleted,
		total_changes=lines_added + lines_deleted,
		project_type=activity_source.classify_project(repo_full_name, work_prefixes),
		span_start=span_start,
		span_end=span_end,
		duration_minutes=span_minutes(span_start, span_end),
	)


#============================================
def group_and_summarize(commits, tz: ZoneInfo, work_prefixes=()) -> list[ActivitySummary]:
	"""
	Reduce commits to one ActivitySummary per (repository, local day).

	Output order follows first appearance of each key; callers should sort
	by (repo_full_name, local_date_key) when they need a stable order.
	"""
	summaries = []
	for (repo_full_name, day_key), group in group_commits(commits, tz).items():
		if not group:
			continue
		summaries.append(summarize_group(repo_full_name, day_key, group, tz, work_prefixes))
	return summaries


#============================================
def filter_to_date_keys(summaries, date_keys) -> list[ActivitySummary]:
	"""
	Keep summaries whose local day is one of the selected days.
	"""
	allowed = set(date_keys)
	return [summary for summary in summaries if summary.local_date_key in allowed]
