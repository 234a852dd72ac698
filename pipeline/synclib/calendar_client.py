from dataclasses import dataclass
from datetime import date
from datetime import datetime
from datetime import timedelta
from urllib.parse import quote

import requests

from synclib import pipeline_settings


TOKEN_URL = "https://oauth2.googleapis.com/token"
CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
WORK_IDENTITY = "work"
PERSONAL_IDENTITY = "personal"


#============================================
class CalendarRequestError(RuntimeError):
	"""
	Raised when a Google Calendar or OAuth call fails.
	"""


#============================================
@dataclass(frozen=True)
class CalendarIdentity:
	name: str
	client_id: str
	client_secret: str
	refresh_token: str
	calendar_id: str = "primary"


#============================================
def format_activity_title(activity) -> str:
	"""
	Build "repo: N commits (+a/-d lines)" for one activity row.
	"""
	repo_name = activity.repo_full_name.split("/")[-1]
	lines_info = ""
	if activity.total_changes > 0:
		lines_info = f" (+{activity.lines_added}/-{activity.lines_deleted} lines)"
	return f"{repo_name}: {activity.commit_count} commits{lines_info}"


#============================================
def format_activity_description(activity) -> str:
	lines = [
		activity.repo_full_name,
		f"{activity.commit_count} commits",
	]
	if activity.total_changes > 0:
		lines.append(f"+{activity.lines_added}/-{activity.lines_deleted} lines")
	if activity.pr_titles:
		lines.append(f"PR: {activity.pr_titles}")
	lines.append("")
	lines.append("Commits:")
	lines.append(activity.commit_messages)
	return "\n".join(lines)


#============================================
def format_workout_title(workout) -> str:
	if workout.distance_miles > 0:
		return f"{workout.activity_type} - {workout.distance_miles:.2f} miles"
	return workout.name


#============================================
def format_workout_description(workout) -> str:
	lines = [
		workout.name,
		f"Duration: {round(workout.duration_minutes)} minutes",
	]
	if workout.distance_miles > 0:
		lines.append(f"Distance: {workout.distance_miles:.2f} miles")
	lines.append(f"Activity Type: {workout.activity_type}")
	lines.append(f"Activity ID: {workout.page_id}")
	return "\n".join(lines)


#============================================
def build_all_day_event(activity) -> dict:
	"""
	Build an all-day event body; the API end date is exclusive.
	"""
	event_day = date.fromisoformat(activity.date_key)
	return {
		"summary": format_activity_title(activity),
		"description": format_activity_description(activity),
		"start": {"date": event_day.isoformat()},
		"end": {"date": (event_day + timedelta(days=1)).isoformat()},
	}


#============================================
def build_timed_event(workout, time_zone: str) -> dict:
	"""
	Build a timed event from the workout start and duration.
	"""
	start = datetime.fromisoformat(workout.start_time.replace("Z", "+00:00"))
	end = start + timedelta(minutes=workout.duration_minutes)
	start_payload = {"dateTime": start.isoformat()}
	end_payload = {"dateTime": end.isoformat()}
	if start.tzinfo is None:
		start_payload["timeZone"] = time_zone
		end_payload["timeZone"] = time_zone
	return {
		"summary": format_workout_title(workout),
		"description": format_workout_description(workout),
		"start": start_payload,
		"end": end_payload,
	}


#============================================
class CalendarClient:
	"""
	Google Calendar v3 client for one or two calendar identities.
	"""

	def __init__(
		self,
		identities: dict[str, CalendarIdentity],
		workout_identity: str = WORK_IDENTITY,
		time_zone: str = "America/New_York",
		timeout_seconds: int = 30,
		log_fn=None,
		session=None,
	):
		if not identities:
			raise CalendarRequestError("No calendar identities configured.")
		self.identities = dict(identities)
		self.workout_identity = workout_identity
		self.time_zone = time_zone
		self.timeout_seconds = timeout_seconds
		self.log_fn = log_fn
		self.session = session or requests.Session()
		self._access_tokens: dict[str, str] = {}

	#============================================
	def log(self, message: str) -> None:
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def resolve_identity(self, name: str) -> CalendarIdentity:
		"""
		Pick the named identity, falling back to personal, then any identity.
		"""
		if name in self.identities:
			return self.identities[name]
		if PERSONAL_IDENTITY in self.identities:
			return self.identities[PERSONAL_IDENTITY]
		return next(iter(self.identities.values()))

	#============================================
	def identity_for_project(self, project_type: str) -> CalendarIdentity:
		if project_type == "Work":
			return self.resolve_identity(WORK_IDENTITY)
		return self.resolve_identity(PERSONAL_IDENTITY)

	#============================================
	def get_access_token(self, identity: CalendarIdentity) -> str:
		"""
		Exchange the identity's refresh token for an access token once per run.
		"""
		if identity.name in self._access_tokens:
			return self._access_tokens[identity.name]
		try:
			resp = self.session.post(
				TOKEN_URL,
				data={
					"client_id": identity.client_id,
					"client_secret": identity.client_secret,
					"grant_type": "refresh_token",
					"refresh_token": identity.refresh_token,
				},
				timeout=self.timeout_seconds,
			)
		except requests.exceptions.RequestException as error:
			raise CalendarRequestError(f"Token refresh failed for {identity.name}: {error}") from error
		if resp.status_code != 200:
			raise CalendarRequestError(
				f"Token refresh failed for {identity.name}: {resp.status_code} {resp.text}"
			)
		access_token = resp.json().get("access_token", "")
		if not access_token:
			raise CalendarRequestError(f"Token refresh for {identity.name} returned no access token")
		self._access_tokens[identity.name] = access_token
		return access_token

	#============================================
	def request(self, identity: CalendarIdentity, method: str, path: str, body: dict | None = None) -> dict:
		access_token = self.get_access_token(identity)
		url = f"{CALENDAR_API_BASE}{path}"
		try:
			resp = self.session.request(
				method,
				url,
				headers={"Authorization": f"Bearer {access_token}"},
				json=body,
				timeout=self.timeout_seconds,
			)
		except requests.exceptions.RequestException as error:
			raise CalendarRequestError(f"Calendar request {method} {path} failed: {error}") from error
		if resp.status_code < 200 or resp.status_code >= 300:
			raise CalendarRequestError(
				f"Calendar request {method} {path} failed: {resp.status_code} {resp.text}"
			)
		if not resp.content:
			return {}
		return resp.json()

	#============================================
	def test_connection(self) -> int:
		"""
		List calendars of every identity; returns the total count.
		"""
		total = 0
		for identity in self.identities.values():
			payload = self.request(identity, "GET", "/users/me/calendarList")
			total += len(payload.get("items") or [])
		return total

	#============================================
	def insert_event(self, identity: CalendarIdentity, event: dict) -> dict:
		calendar_id = quote(identity.calendar_id, safe="")
		return self.request(identity, "POST", f"/calendars/{calendar_id}/events", event)

	#============================================
	def create_activity_event(self, activity) -> dict:
		"""
		Create an all-day event on the calendar matching the project type.
		"""
		identity = self.identity_for_project(activity.project_type)
		event = build_all_day_event(activity)
		response = self.insert_event(identity, event)
		self.log(f"Created {identity.name} calendar event: {event['summary']}")
		return response

	#============================================
	def create_workout_event(self, workout) -> dict:
		"""
		Create a timed event on the workout calendar identity.
		"""
		identity = self.resolve_identity(self.workout_identity)
		event = build_timed_event(workout, self.time_zone)
		response = self.insert_event(identity, event)
		self.log(f"Created {identity.name} calendar event: {event['summary']}")
		return response


#============================================
def build_identities(identity_settings: dict[str, dict]) -> dict[str, CalendarIdentity]:
	"""
	Build CalendarIdentity objects from pipeline_settings.get_calendar_identities output.
	"""
	identities = {}
	for name, config in identity_settings.items():
		if not config.get("refresh_token"):
			continue
		identities[name] = CalendarIdentity(
			name=name,
			client_id=config.get("client_id", ""),
			client_secret=config.get("client_secret", ""),
			refresh_token=config.get("refresh_token", ""),
			calendar_id=config.get("calendar_id", "primary") or "primary",
		)
	return identities


#============================================
def build_calendar_client(settings: dict, time_zone: str, log_fn=None) -> CalendarClient:
	"""
	Build a CalendarClient from the calendar section of the settings.
	"""
	identities = build_identities(pipeline_settings.get_calendar_identities(settings))
	return CalendarClient(
		identities,
		workout_identity=pipeline_settings.get_setting_str(
			settings,
			["calendar", "workout_identity"],
			WORK_IDENTITY,
		),
		time_zone=time_zone,
		timeout_seconds=pipeline_settings.get_setting_int(
			settings,
			["calendar", "timeout_seconds"],
			30,
		),
		log_fn=log_fn,
	)
