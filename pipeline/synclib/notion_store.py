"""Notion database rows for GitHub activity summaries and workouts.

Each public method maps one in-memory record to one Notion API call.
Failures surface as StoreRequestError so the drivers can skip a single
record and keep going.
"""

from dataclasses import dataclass

import httpx
from notion_client import Client
from notion_client.errors import HTTPResponseError
from notion_client.errors import RequestTimeoutError


NOTION_VERSION = "2022-06-28"
RICH_TEXT_LIMIT = 2000
CALENDAR_CREATED = "Calendar Created"

# GitHub activity database schema (property names)
ACTIVITY_SCHEMA = {
	"repository": "Repository",
	"date": "Date",
	"commit_count": "Commits Count",
	"commit_messages": "Commit Messages",
	"pr_titles": "PR Titles",
	"pr_count": "PRs Count",
	"files_changed": "Files Changed",
	"files_list": "Files List",
	"lines_added": "Lines Added",
	"lines_deleted": "Lines Deleted",
	"total_changes": "Total Changes",
	"project_type": "Project Type",
	"calendar_created": CALENDAR_CREATED,
}

# Workout database schema (property names)
WORKOUT_SCHEMA = {
	"name": "Name",
	"date": "Date",
	"activity_type": "Activity Type",
	"distance_mi": "Distance (mi)",
	"duration_min": "Duration (min)",
	"elevation_m": "Elevation Gain (m)",
	"avg_hr": "Avg HR",
	"max_hr": "Max HR",
	"avg_cadence": "Avg Cadence",
	"calendar_created": CALENDAR_CREATED,
}


#============================================
class StoreRequestError(RuntimeError):
	"""
	Raised when one Notion API call fails.
	"""


#============================================
@dataclass(frozen=True)
class StoredActivity:
	page_id: str
	repo_full_name: str
	date_key: str
	commit_count: int
	commit_messages: str
	pr_titles: str
	pull_request_count: int
	changed_file_count: int
	lines_added: int
	lines_deleted: int
	project_type: str

	@property
	def total_changes(self) -> int:
		return self.lines_added + self.lines_deleted


#============================================
@dataclass(frozen=True)
class StoredWorkout:
	page_id: str
	name: str
	activity_type: str
	date_key: str
	start_time: str
	duration_minutes: float
	distance_miles: float


#============================================
def trim_to_char_limit(text: str, char_limit: int = RICH_TEXT_LIMIT) -> str:
	"""
	Trim text to a maximum character count.
	"""
	clean = (text or "").strip()
	if len(clean) <= char_limit:
		return clean
	return clean[:char_limit - 3].rstrip() + "..."


#============================================
def title_property(text: str) -> dict:
	return {"title": [{"text": {"content": trim_to_char_limit(text)}}]}


#============================================
def rich_text_property(text: str) -> dict:
	return {"rich_text": [{"text": {"content": trim_to_char_limit(text)}}]}


#============================================
def number_property(value) -> dict:
	return {"number": value}


#============================================
def plain_text(prop: dict | None, kind: str) -> str:
	"""
	Join the plain_text segments of a title or rich_text property.
	"""
	segments = (prop or {}).get(kind) or []
	return "".join(segment.get("plain_text", "") for segment in segments)


#============================================
def number_value(prop: dict | None, default_value=0):
	value = (prop or {}).get("number")
	if value is None:
		return default_value
	return value


#============================================
def build_activity_properties(summary) -> dict:
	"""
	Map an ActivitySummary onto the GitHub activity row schema.
	"""
	return {
		ACTIVITY_SCHEMA["repository"]: title_property(summary.repo_full_name or "Unknown Repository"),
		ACTIVITY_SCHEMA["date"]: {"date": {"start": summary.local_date_key}},
		ACTIVITY_SCHEMA["commit_count"]: number_property(summary.commit_count),
		ACTIVITY_SCHEMA["commit_messages"]: rich_text_property(summary.commit_messages),
		ACTIVITY_SCHEMA["pr_titles"]: rich_text_property(summary.pr_titles),
		ACTIVITY_SCHEMA["pr_count"]: number_property(summary.pull_request_count),
		ACTIVITY_SCHEMA["files_changed"]: number_property(summary.changed_file_count),
		ACTIVITY_SCHEMA["files_list"]: rich_text_property(summary.files_list),
		ACTIVITY_SCHEMA["lines_added"]: number_property(summary.lines_added),
		ACTIVITY_SCHEMA["lines_deleted"]: number_property(summary.lines_deleted),
		ACTIVITY_SCHEMA["total_changes"]: number_property(summary.total_changes),
		ACTIVITY_SCHEMA["project_type"]: {"select": {"name": summary.project_type or "Personal"}},
		ACTIVITY_SCHEMA["calendar_created"]: {"checkbox": False},
	}


#============================================
def build_workout_properties(workout) -> dict:
	"""
	Map a WorkoutRecord onto the workout row schema.
	"""
	properties = {
		WORKOUT_SCHEMA["name"]: title_property(workout.name or "Workout"),
		WORKOUT_SCHEMA["date"]: {"date": {"start": workout.start_local.isoformat()}},
		WORKOUT_SCHEMA["activity_type"]: {"select": {"name": workout.activity_type}},
		WORKOUT_SCHEMA["distance_mi"]: number_property(round(workout.distance_miles, 2)),
		WORKOUT_SCHEMA["duration_min"]: number_property(round(workout.duration_minutes, 1)),
		WORKOUT_SCHEMA["elevation_m"]: number_property(workout.elevation_gain_meters),
		WORKOUT_SCHEMA["calendar_created"]: {"checkbox": False},
	}
	# optional sensor values are omitted rather than written as null
	if workout.average_heartrate is not None:
		properties[WORKOUT_SCHEMA["avg_hr"]] = number_property(workout.average_heartrate)
	if workout.max_heartrate is not None:
		properties[WORKOUT_SCHEMA["max_hr"]] = number_property(workout.max_heartrate)
	if workout.average_cadence is not None:
		properties[WORKOUT_SCHEMA["avg_cadence"]] = number_property(workout.average_cadence)
	return properties


#============================================
def build_unprojected_filter(start_date: str, end_date: str) -> dict:
	"""
	Filter rows dated within [start_date, end_date] not yet on a calendar.
	"""
	return {
		"and": [
			{"property": "Date", "date": {"on_or_after": start_date}},
			{"property": "Date", "date": {"on_or_before": end_date}},
			{"property": CALENDAR_CREATED, "checkbox": {"equals": False}},
		]
	}


#============================================
def page_to_activity(page: dict) -> StoredActivity:
	props = page.get("properties") or {}
	date_prop = (props.get(ACTIVITY_SCHEMA["date"]) or {}).get("date") or {}
	select_prop = (props.get(ACTIVITY_SCHEMA["project_type"]) or {}).get("select") or {}
	return StoredActivity(
		page_id=page.get("id") or "",
		repo_full_name=plain_text(props.get(ACTIVITY_SCHEMA["repository"]), "title") or "Unknown Repository",
		date_key=(date_prop.get("start") or "")[:10],
		commit_count=int(number_value(props.get(ACTIVITY_SCHEMA["commit_count"]))),
		commit_messages=plain_text(props.get(ACTIVITY_SCHEMA["commit_messages"]), "rich_text"),
		pr_titles=plain_text(props.get(ACTIVITY_SCHEMA["pr_titles"]), "rich_text"),
		pull_request_count=int(number_value(props.get(ACTIVITY_SCHEMA["pr_count"]))),
		changed_file_count=int(number_value(props.get(ACTIVITY_SCHEMA["files_changed"]))),
		lines_added=int(number_value(props.get(ACTIVITY_SCHEMA["lines_added"]))),
		lines_deleted=int(number_value(props.get(ACTIVITY_SCHEMA["lines_deleted"]))),
		project_type=select_prop.get("name") or "Personal",
	)


#============================================
def page_to_workout(page: dict) -> StoredWorkout:
	props = page.get("properties") or {}
	date_prop = (props.get(WORKOUT_SCHEMA["date"]) or {}).get("date") or {}
	select_prop = (props.get(WORKOUT_SCHEMA["activity_type"]) or {}).get("select") or {}
	start_time = date_prop.get("start") or ""
	return StoredWorkout(
		page_id=page.get("id") or "",
		name=plain_text(props.get(WORKOUT_SCHEMA["name"]), "title") or "Workout",
		activity_type=select_prop.get("name") or "Workout",
		date_key=start_time[:10],
		start_time=start_time,
		duration_minutes=float(number_value(props.get(WORKOUT_SCHEMA["duration_min"]), 30)),
		distance_miles=float(number_value(props.get(WORKOUT_SCHEMA["distance_mi"]))),
	)


#============================================
class NotionStore:
	"""
	Notion-backed record store for activity and workout rows.
	"""

	def __init__(
		self,
		token: str,
		github_database_id: str = "",
		workout_database_id: str = "",
		log_fn=None,
		client=None,
	):
		self.github_database_id = github_database_id
		self.workout_database_id = workout_database_id
		self.log_fn = log_fn
		if client is None:
			client = Client(auth=token, notion_version=NOTION_VERSION)
		self.client = client

	#============================================
	def log(self, message: str) -> None:
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def call_api(self, context: str, call_fn):
		"""
		Run one Notion call, converting client errors to StoreRequestError.
		"""
		try:
			return call_fn()
		except (HTTPResponseError, RequestTimeoutError, httpx.HTTPError) as error:
			raise StoreRequestError(f"Notion API error while {context}: {error}") from error

	#============================================
	def require_database(self, database_id: str, kind: str) -> str:
		if not database_id:
			raise StoreRequestError(f"No Notion database configured for {kind} records.")
		return database_id

	#============================================
	def test_connection(self, database_id: str) -> str:
		"""
		Retrieve the database and return its title; used as the connectivity check.
		"""
		database_id = self.require_database(database_id, "this script's")
		response = self.call_api(
			"retrieving database",
			lambda: self.client.databases.retrieve(database_id=database_id),
		)
		titles = response.get("title") or []
		if titles:
			return titles[0].get("plain_text", "") or database_id
		return database_id

	#============================================
	def create_activity_record(self, summary) -> dict:
		database_id = self.require_database(self.github_database_id, "GitHub activity")
		properties = build_activity_properties(summary)
		response = self.call_api(
			f"creating GitHub record {summary.repo_full_name}",
			lambda: self.client.pages.create(
				parent={"database_id": database_id},
				properties=properties,
			),
		)
		self.log(f"Created GitHub record: {summary.repo_full_name} {summary.local_date_key}")
		return response

	#============================================
	def create_workout_record(self, workout) -> dict:
		database_id = self.require_database(self.workout_database_id, "workout")
		properties = build_workout_properties(workout)
		response = self.call_api(
			f"creating workout record {workout.name}",
			lambda: self.client.pages.create(
				parent={"database_id": database_id},
				properties=properties,
			),
		)
		self.log(f"Created workout record: {workout.name}")
		return response

	#============================================
	def query_all_pages(self, database_id: str, query_filter: dict) -> list[dict]:
		"""
		Run a filtered query and follow pagination cursors.
		"""
		pages = []
		start_cursor = None
		while True:
			params = {
				"database_id": database_id,
				"filter": query_filter,
				"sorts": [{"property": "Date", "direction": "ascending"}],
			}
			if start_cursor:
				params["start_cursor"] = start_cursor
			response = self.call_api(
				"querying database",
				lambda: self.client.databases.query(**params),
			)
			pages.extend(response.get("results") or [])
			if not response.get("has_more"):
				break
			start_cursor = response.get("next_cursor")
			if not start_cursor:
				break
		return pages

	#============================================
	def query_unprojected_activities(self, start_date: str, end_date: str) -> list[StoredActivity]:
		database_id = self.require_database(self.github_database_id, "GitHub activity")
		self.log(f"Reading GitHub activities from {start_date} to {end_date}")
		pages = self.query_all_pages(database_id, build_unprojected_filter(start_date, end_date))
		return [page_to_activity(page) for page in pages]

	#============================================
	def query_unprojected_workouts(self, start_date: str, end_date: str) -> list[StoredWorkout]:
		database_id = self.require_database(self.workout_database_id, "workout")
		self.log(f"Reading workouts from {start_date} to {end_date}")
		pages = self.query_all_pages(database_id, build_unprojected_filter(start_date, end_date))
		return [page_to_workout(page) for page in pages]

	#============================================
	def mark_calendar_created(self, page_id: str) -> None:
		self.call_api(
			f"marking page {page_id} as projected",
			lambda: self.client.pages.update(
				page_id=page_id,
				properties={CALENDAR_CREATED: {"checkbox": True}},
			),
		)
