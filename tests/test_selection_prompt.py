import os
import sys
from datetime import date
from datetime import datetime
from datetime import timezone
from zoneinfo import ZoneInfo

import pytest

import git_file_utils


REPO_ROOT = git_file_utils.get_repo_root()
PIPELINE_DIR = os.path.join(REPO_ROOT, "pipeline")
if PIPELINE_DIR not in sys.path:
	sys.path.insert(0, PIPELINE_DIR)

from synclib import selection_prompt


NEW_YORK = ZoneInfo("America/New_York")


#============================================
def make_input(answers: list[str]):
	"""
	Build an input function that replays scripted answers and records prompts.
	"""
	remaining = list(answers)
	prompts = []

	def input_fn(prompt: str) -> str:
		prompts.append(prompt)
		return remaining.pop(0)

	input_fn.prompts = prompts
	return input_fn


#============================================
def test_parse_date_input_valid() -> None:
	"""
	DD-MM-YY answers map into the 2000s.
	"""
	assert selection_prompt.parse_date_input("15-03-25") == date(2025, 3, 15)
	assert selection_prompt.parse_date_input("1-1-24") == date(2024, 1, 1)


#============================================
def test_parse_date_input_rejects_impossible_day() -> None:
	"""
	A well-formed but impossible day is rejected.
	"""
	with pytest.raises(selection_prompt.DateInputError) as error:
		selection_prompt.parse_date_input("31-02-25")
	assert "Invalid date" in str(error.value)


#============================================
@pytest.mark.parametrize("text", ["2025-03-15", "15/03/25", "15-03-2025", "", "abc"])
def test_parse_date_input_rejects_bad_format(text: str) -> None:
	"""
	Anything other than DD-MM-YY is a format error.
	"""
	with pytest.raises(selection_prompt.DateInputError) as error:
		selection_prompt.parse_date_input(text)
	assert "Invalid format" in str(error.value)


#============================================
def test_resolve_selection_date_reprompts_until_valid() -> None:
	"""
	Option 1 re-prompts on invalid dates and resolves the valid one.
	"""
	input_fn = make_input(["1", "31-02-25", "bad", "10-03-25"])
	printed = []
	selection = selection_prompt.resolve_selection(
		2025,
		NEW_YORK,
		"collect",
		input_fn=input_fn,
		print_fn=printed.append,
	)
	assert selection.mode == "date"
	assert selection.selected_date == date(2025, 3, 10)
	assert selection.date_range.start_utc == datetime(2025, 3, 10, 4, 0, tzinfo=timezone.utc)
	assert len(input_fn.prompts) == 4
	assert "Invalid date. Please check day, month, and year." in printed


#============================================
def test_resolve_selection_week() -> None:
	"""
	Option 2 lists weeks and resolves the chosen week number.
	"""
	input_fn = make_input(["2", "11"])
	printed = []
	selection = selection_prompt.resolve_selection(
		2025,
		NEW_YORK,
		"collect",
		input_fn=input_fn,
		print_fn=printed.append,
	)
	assert selection.mode == "week"
	assert selection.week_number == 11
	assert selection.date_range.start_local.date() == date(2025, 3, 9)
	assert input_fn.prompts[-1] == "? Which week to collect? (enter week number): "
	assert "  ..." in printed
	assert any(line.startswith("  52 - Week 52") for line in printed)


#============================================
@pytest.mark.parametrize("answers", [["3"], [""], ["2", "53"], ["2", "0"], ["2", "x"]])
def test_resolve_selection_invalid_choices_raise(answers: list[str]) -> None:
	"""
	An unknown option or an out-of-range week raises SelectionError.
	"""
	with pytest.raises(selection_prompt.SelectionError):
		selection_prompt.resolve_selection(
			2025,
			NEW_YORK,
			"collect",
			input_fn=make_input(answers),
			print_fn=lambda _line: None,
		)


#============================================
def test_confirm_only_accepts_y() -> None:
	"""
	Only a 'y' answer proceeds.
	"""
	assert selection_prompt.confirm("Proceed?", input_fn=lambda _p: "y")
	assert selection_prompt.confirm("Proceed?", input_fn=lambda _p: " Y ")
	assert not selection_prompt.confirm("Proceed?", input_fn=lambda _p: "yes")
	assert not selection_prompt.confirm("Proceed?", input_fn=lambda _p: "")
