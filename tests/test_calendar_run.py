import os
import sys
from datetime import date
from zoneinfo import ZoneInfo

import pytest

import git_file_utils


REPO_ROOT = git_file_utils.get_repo_root()
PIPELINE_DIR = os.path.join(REPO_ROOT, "pipeline")
if PIPELINE_DIR not in sys.path:
	sys.path.insert(0, PIPELINE_DIR)

from synclib import calendar_client
from synclib import calendar_run
from synclib import notion_store
from synclib import selection_prompt


NEW_YORK = ZoneInfo("America/New_York")
SETTINGS = {"timezone": "America/New_York", "selection": {"year": 2025}}


#============================================
class FakeCalendar:
	def test_connection(self):
		return 2


#============================================
class FakeStore:
	def __init__(self, error=None):
		self.error = error
		self.checked = []

	def test_connection(self, database_id):
		self.checked.append(database_id)
		if self.error is not None:
			raise self.error
		return "Workouts"


#============================================
@pytest.fixture
def fake_calendar(monkeypatch):
	calendar = FakeCalendar()
	monkeypatch.setattr(
		calendar_client,
		"build_calendar_client",
		lambda settings, tz_name, log_fn=None: calendar,
	)
	return calendar


#============================================
def test_prepare_calendar_run_returns_calendar_and_keys(fake_calendar, monkeypatch) -> None:
	"""
	A confirmed week yields the calendar client and its seven local date keys.
	"""
	seen = {}

	def resolve_selection(year, tz, action):
		seen["year"] = year
		seen["action"] = action
		return selection_prompt.week_selection(2025, 11, tz)

	questions = []
	monkeypatch.setattr(selection_prompt, "resolve_selection", resolve_selection)
	monkeypatch.setattr(selection_prompt, "confirm", lambda question: questions.append(question) or True)
	store = FakeStore()
	messages = []
	prepared = calendar_run.prepare_calendar_run(SETTINGS, "America/New_York", store, "db-workout", messages.append)
	calendar, date_keys = prepared
	assert calendar is fake_calendar
	assert len(date_keys) == 7
	assert store.checked == ["db-workout"]
	assert seen == {"year": 2025, "action": "create calendar events"}
	assert questions == ["Proceed with creating calendar events for this period?"]
	assert "Calendar connection successful; 2 calendar(s) visible" in messages


#============================================
def test_prepare_calendar_run_cancel_returns_none(fake_calendar, monkeypatch) -> None:
	"""
	Declining the period confirmation stops before any rows are read.
	"""
	selection = selection_prompt.date_selection(date(2025, 3, 10), NEW_YORK)
	monkeypatch.setattr(selection_prompt, "resolve_selection", lambda year, tz, action: selection)
	monkeypatch.setattr(selection_prompt, "confirm", lambda question: False)
	messages = []
	prepared = calendar_run.prepare_calendar_run(SETTINGS, "America/New_York", FakeStore(), "db", messages.append)
	assert prepared is None
	assert messages[-1] == "Operation cancelled."


#============================================
def test_prepare_calendar_run_exits_on_store_failure(fake_calendar) -> None:
	"""
	An unreachable Notion database ends the run with exit code 1.
	"""
	store = FakeStore(error=notion_store.StoreRequestError("unauthorized"))
	with pytest.raises(SystemExit) as error:
		calendar_run.prepare_calendar_run(SETTINGS, "America/New_York", store, "db", lambda message: None)
	assert error.value.code == 1


#============================================
def test_prepare_calendar_run_exits_on_selection_error(fake_calendar, monkeypatch) -> None:
	"""
	An invalid selection ends the run with exit code 1.
	"""
	def resolve_selection(year, tz, action):
		raise selection_prompt.SelectionError("week out of range")

	monkeypatch.setattr(selection_prompt, "resolve_selection", resolve_selection)
	with pytest.raises(SystemExit) as error:
		calendar_run.prepare_calendar_run(SETTINGS, "America/New_York", FakeStore(), "db", lambda message: None)
	assert error.value.code == 1
