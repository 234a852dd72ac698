import os
import sys
from datetime import datetime
from datetime import timezone

import pytest

import git_file_utils


REPO_ROOT = git_file_utils.get_repo_root()
PIPELINE_DIR = os.path.join(REPO_ROOT, "pipeline")
if PIPELINE_DIR not in sys.path:
	sys.path.insert(0, PIPELINE_DIR)

from synclib import activity_source
from synclib import github_client


START = datetime(2025, 3, 10, 4, 0, tzinfo=timezone.utc)
END = datetime(2025, 3, 11, 3, 59, 59, 999000, tzinfo=timezone.utc)


#============================================
def raw_commit(sha: str, repo: str, hour: int = 14, message: str = "") -> dict:
	return {
		"sha": sha,
		"repo_full_name": repo,
		"message": message or f"commit {sha}",
		"author_date": datetime(2025, 3, 10, hour, 0, tzinfo=timezone.utc),
	}


#============================================
class FakeGitHub:
	"""
	In-memory stand-in for GitHubClient.
	"""

	def __init__(self, search=None, repo_commits=None, details=None, pulls=None, pull_commits=None):
		self.search = search or []
		self.repo_commits = repo_commits or {}
		self.details = details or {}
		self.pulls = pulls or {}
		self.pull_commits = pull_commits or {}
		self.calls = []

	def search_commits(self, identity, start_utc, end_utc):
		self.calls.append(("search", identity))
		if isinstance(self.search, Exception):
			raise self.search
		return list(self.search)

	def list_repo_commits(self, repo, identity, start_utc, end_utc):
		self.calls.append(("repo", repo))
		value = self.repo_commits.get(repo, [])
		if isinstance(value, Exception):
			raise value
		return list(value)

	def get_commit_detail(self, repo, sha):
		self.calls.append(("detail", sha))
		value = self.details.get(sha)
		if isinstance(value, Exception):
			raise value
		if value is None:
			return {"sha": sha, "repo_full_name": repo, "additions": 0, "deletions": 0, "files": []}
		return value

	def list_commit_pulls(self, repo, sha):
		self.calls.append(("pulls", sha))
		return list(self.pulls.get(sha, []))

	def list_pull_commits(self, repo, number):
		self.calls.append(("pull_commits", number))
		return list(self.pull_commits.get(number, []))

	def list_accessible_repos(self):
		return ["acme/api", "acme/web", "me/dotfiles"]


#============================================
def test_classify_project_prefixes() -> None:
	"""
	Repositories matching a configured prefix are Work.
	"""
	prefixes = ["acme/", "partner/shared-"]
	assert activity_source.classify_project("acme/api", prefixes) == "Work"
	assert activity_source.classify_project("partner/shared-lib", prefixes) == "Work"
	assert activity_source.classify_project("partner/other", prefixes) == "Personal"
	assert activity_source.classify_project("acme/api", []) == "Personal"


#============================================
def test_merge_commit_lists_dedupes_by_sha_search_first() -> None:
	"""
	Commits in both lists appear once, with the search entry kept.
	"""
	search = [raw_commit("a1", "org/r1", message="from search"), raw_commit("b2", "org/r1")]
	listed = [raw_commit("a1", "org/r1", message="from listing"), raw_commit("c3", "org/r2")]
	merged = activity_source.merge_commit_lists(search, listed)
	assert [item["sha"] for item in merged] == ["a1", "b2", "c3"]
	assert merged[0]["message"] == "from search"


#============================================
def test_fetch_commits_shared_shas_counted_once() -> None:
	"""
	N shared commits between search and listing produce unique output.
	"""
	shared = [raw_commit(f"s{i}", "acme/api") for i in range(3)]
	client = FakeGitHub(
		search=shared + [raw_commit("only-search", "me/tool")],
		repo_commits={"acme/api": shared + [raw_commit("only-repo", "acme/api")]},
	)
	records = activity_source.fetch_commits(
		client,
		"alice",
		START,
		END,
		["acme/api"],
		work_prefixes=["acme/"],
	)
	shas = [record.sha for record in records]
	assert len(shas) == len(set(shas)) == 5
	assert "only-search" in shas
	assert "only-repo" in shas


#============================================
def test_fetch_commits_skips_failing_repository() -> None:
	"""
	A repository listing failure skips that repository only.
	"""
	client = FakeGitHub(
		search=[raw_commit("a1", "org/r1")],
		repo_commits={
			"acme/private": github_client.GitHubRequestError("not found", status=404),
			"acme/api": [raw_commit("b2", "acme/api")],
		},
	)
	messages = []
	records = activity_source.fetch_commits(
		client,
		"alice",
		START,
		END,
		["acme/private", "acme/api"],
		log_fn=messages.append,
	)
	assert [record.sha for record in records] == ["a1", "b2"]
	assert any(message.startswith("Skipping acme/private") for message in messages)


#============================================
def test_fetch_commits_search_failure_keeps_repo_listing() -> None:
	"""
	A failed search is treated as empty and repository listings still run.
	"""
	client = FakeGitHub(
		search=github_client.GitHubRequestError("boom", status=500),
		repo_commits={"acme/api": [raw_commit("b2", "acme/api")]},
	)
	records = activity_source.fetch_commits(client, "alice", START, END, ["acme/api"])
	assert [record.sha for record in records] == ["b2"]


#============================================
def test_enrich_commit_uses_detail_stats_and_pull_titles() -> None:
	"""
	Detail stats and pull request references are attached to the record.
	"""
	client = FakeGitHub(
		details={
			"a1": {
				"sha": "a1",
				"repo_full_name": "org/r1",
				"message": "Fix parser\n\nlong body",
				"author_date": datetime(2025, 3, 10, 14, 0, tzinfo=timezone.utc),
				"additions": 10,
				"deletions": 2,
				"files": ["a.py", "b.py", "a.py"],
			}
		},
		pulls={"a1": [{"number": 7, "title": "Parser fixes", "state": "closed", "url": ""}]},
	)
	records = activity_source.enrich_commit(client, raw_commit("a1", "org/r1"), squash_scope="off")
	assert len(records) == 1
	record = records[0]
	assert record.additions == 10
	assert record.deletions == 2
	assert record.changed_files == ("a.py", "b.py")
	assert record.pull_requests[0].label == "Parser fixes (#7)"
	assert record.message.startswith("Fix parser")


#============================================
def test_enrich_commit_detail_failure_keeps_commit_with_zero_stats() -> None:
	"""
	A failed detail fetch keeps the commit unexpanded with zero stats.
	"""
	client = FakeGitHub(
		details={"a1": github_client.GitHubRequestError("server error", status=502)},
		pulls={"a1": [{"number": 3, "title": "Squash", "state": "closed", "url": ""}]},
		pull_commits={3: [raw_commit("p1", "acme/api"), raw_commit("p2", "acme/api")]},
	)
	records = activity_source.enrich_commit(
		client,
		raw_commit("a1", "acme/api"),
		squash_scope="all",
	)
	assert [record.sha for record in records] == ["a1"]
	assert records[0].additions == 0
	assert records[0].deletions == 0
	assert ("pull_commits", 3) not in client.calls


#============================================
def test_squash_expansion_copies_parent_stats() -> None:
	"""
	One PR with three commits expands into three records sharing the parent stats.
	"""
	pr_commits = [raw_commit(f"p{i}", "acme/api", hour=10 + i) for i in range(3)]
	client = FakeGitHub(
		details={
			"sq": {
				"sha": "sq",
				"repo_full_name": "acme/api",
				"message": "Feature (#42)",
				"author_date": datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc),
				"additions": 30,
				"deletions": 6,
				"files": ["x.py"],
			}
		},
		pulls={"sq": [{"number": 42, "title": "Feature", "state": "closed", "url": ""}]},
		pull_commits={42: pr_commits},
	)
	records = activity_source.enrich_commit(
		client,
		raw_commit("sq", "acme/api"),
		squash_scope="work",
		work_prefixes=["acme/"],
	)
	assert [record.sha for record in records] == ["p0", "p1", "p2"]
	for record in records:
		assert record.additions == 30
		assert record.deletions == 6
		assert record.changed_files == ("x.py",)
		assert record.pull_requests[0].number == 42
		assert record.activity_date == datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc)
	assert records[1].author_date == datetime(2025, 3, 10, 11, 0, tzinfo=timezone.utc)


#============================================
@pytest.mark.parametrize(
	"pulls,pull_commits",
	[
		([], {}),
		(
			[
				{"number": 1, "title": "One", "state": "closed", "url": ""},
				{"number": 2, "title": "Two", "state": "closed", "url": ""},
			],
			{1: [{"sha": "x"}, {"sha": "y"}], 2: [{"sha": "z"}, {"sha": "w"}]},
		),
		([{"number": 5, "title": "Solo", "state": "closed", "url": ""}], {5: [{"sha": "only"}]}),
	],
)
def test_squash_expansion_not_applied(pulls, pull_commits) -> None:
	"""
	Zero PRs, several PRs, or a single-commit PR leave the commit as is.
	"""
	client = FakeGitHub(pulls={"sq": pulls}, pull_commits=pull_commits)
	records = activity_source.enrich_commit(
		client,
		raw_commit("sq", "acme/api"),
		squash_scope="all",
	)
	assert [record.sha for record in records] == ["sq"]


#============================================
def test_squash_expansion_scope_work_skips_personal() -> None:
	"""
	With the work scope, personal repositories are never expanded.
	"""
	client = FakeGitHub(
		pulls={"sq": [{"number": 9, "title": "Mine", "state": "closed", "url": ""}]},
		pull_commits={9: [raw_commit("p1", "me/tool"), raw_commit("p2", "me/tool")]},
	)
	records = activity_source.enrich_commit(
		client,
		raw_commit("sq", "me/tool"),
		squash_scope="work",
		work_prefixes=["acme/"],
	)
	assert [record.sha for record in records] == ["sq"]


#============================================
def test_fetch_commits_rejects_unknown_scope() -> None:
	"""
	An unknown squash scope is a configuration error.
	"""
	with pytest.raises(ValueError):
		activity_source.fetch_commits(FakeGitHub(), "alice", START, END, [], squash_scope="maybe")


#============================================
def test_discover_work_repositories_filters_by_prefix() -> None:
	"""
	Only accessible repositories with a work prefix are returned.
	"""
	repos = activity_source.discover_work_repositories(FakeGitHub(), ["acme/"])
	assert repos == ["acme/api", "acme/web"]
