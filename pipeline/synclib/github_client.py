from datetime import datetime
from datetime import timezone

import requests
from github import Auth
from github import Github
from github.GithubException import GithubException


#============================================
class GitHubRequestError(RuntimeError):
	"""
	Raised when one GitHub API call fails.
	"""

	def __init__(self, message: str, status: int | None = None):
		super().__init__(message)
		self.status = status


#============================================
def normalize_datetime(value: datetime) -> datetime:
	"""
	Normalize datetime to timezone-aware UTC.
	"""
	if value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value.astimezone(timezone.utc)


#============================================
def format_search_instant(value: datetime) -> str:
	"""
	Format an instant for a committer-date search qualifier.
	"""
	return normalize_datetime(value).strftime("%Y-%m-%dT%H:%M:%SZ")


#============================================
def build_commit_search_query(identity: str, start_utc: datetime, end_utc: datetime) -> str:
	start_text = format_search_instant(start_utc)
	end_text = format_search_instant(end_utc)
	return f"author:{identity} committer-date:{start_text}..{end_text}"


#============================================
def repo_name_from_commit_url(url: str) -> str:
	"""
	Extract owner/repo from a commit html_url or API url.
	"""
	text = (url or "").strip()
	for marker in ("/commit/", "/commits/"):
		if marker in text:
			text = text.split(marker, 1)[0]
			break
	if "://" in text:
		# drop scheme and host
		text = text.split("://", 1)[1].partition("/")[2]
	parts = [part for part in text.split("/") if part]
	if len(parts) < 2:
		return ""
	return f"{parts[-2]}/{parts[-1]}"


#============================================
def commit_to_dict(commit_obj, repo_full_name: str = "") -> dict:
	"""
	Normalize a PyGithub commit listing item to a plain dict.
	"""
	git_commit = getattr(commit_obj, "commit", None)
	author = getattr(git_commit, "author", None)
	author_date = getattr(author, "date", None)
	if author_date is not None:
		author_date = normalize_datetime(author_date)
	full_name = repo_full_name or repo_name_from_commit_url(getattr(commit_obj, "html_url", ""))
	return {
		"sha": getattr(commit_obj, "sha", "") or "",
		"repo_full_name": full_name,
		"message": getattr(git_commit, "message", "") or "",
		"author_date": author_date,
	}


#============================================
def commit_detail_to_dict(commit_obj, repo_full_name: str) -> dict:
	"""
	Normalize a full commit payload with stats and file names.
	"""
	record = commit_to_dict(commit_obj, repo_full_name)
	stats = getattr(commit_obj, "stats", None)
	record["additions"] = int(getattr(stats, "additions", 0) or 0)
	record["deletions"] = int(getattr(stats, "deletions", 0) or 0)
	files = getattr(commit_obj, "files", None) or []
	record["files"] = [getattr(file_obj, "filename", "") for file_obj in files]
	return record


#============================================
def pull_to_dict(pull_obj) -> dict:
	return {
		"number": getattr(pull_obj, "number", 0),
		"title": getattr(pull_obj, "title", "") or "",
		"state": getattr(pull_obj, "state", "") or "",
		"url": getattr(pull_obj, "html_url", "") or "",
	}


#============================================
class GitHubClient:
	"""
	Thin PyGithub wrapper for the activity collector.
	"""

	def __init__(self, token: str, log_fn=None):
		self.log_fn = log_fn
		self._api_call_count = 0
		self._api_calls_by_context: dict[str, int] = {}
		# commit objects from get_commit_detail, reused once by list_commit_pulls
		self._commit_objects: dict[tuple[str, str], object] = {}
		self.client = self._build_github_client(token)

	#============================================
	def _build_github_client(self, token: str):
		"""
		Create Github client with retry disabled.
		"""
		if token:
			return Github(auth=Auth.Token(token), retry=None)
		return Github(retry=None)

	#============================================
	def log(self, message: str) -> None:
		"""
		Emit one log line when logger is configured.
		"""
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def record_api_call(self, context: str) -> None:
		"""
		Track one outbound GitHub API call.
		"""
		self._api_call_count += 1
		if context not in self._api_calls_by_context:
			self._api_calls_by_context[context] = 0
		self._api_calls_by_context[context] += 1

	#============================================
	def api_usage_snapshot(self) -> dict:
		"""
		Return API call counters for reporting.
		"""
		return {
			"api_call_count": self._api_call_count,
			"api_calls_by_context": dict(self._api_calls_by_context),
		}

	#============================================
	def call_api(self, context: str, call_fn):
		"""
		Run one API call once, converting client errors to GitHubRequestError.
		"""
		self.record_api_call(context)
		try:
			return call_fn()
		except GithubException as error:
			status = getattr(error, "status", None)
			data = getattr(error, "data", None)
			detail = ""
			if isinstance(data, dict):
				detail = str(data.get("message", "") or "")
			raise GitHubRequestError(
				f"GitHub API error while {context}: {status} {detail}".rstrip(),
				status=status,
			) from error
		except requests.exceptions.RequestException as error:
			raise GitHubRequestError(f"GitHub request failed while {context}: {error}") from error

	#============================================
	def get_authenticated_login(self) -> str:
		"""
		Return the login of the token owner; used as the connectivity check.
		"""
		return self.call_api("GET /user", lambda: self.client.get_user().login)

	#============================================
	def get_repo(self, full_name: str):
		"""
		Get one repository handle without fetching it.
		"""
		return self.client.get_repo(full_name, lazy=True)

	#============================================
	def search_commits(self, identity: str, start_utc: datetime, end_utc: datetime) -> list[dict]:
		"""
		Search commits authored by identity inside the committer-date window.
		"""
		query = build_commit_search_query(identity, start_utc, end_utc)
		self.log(f"Commit search query: {query}")
		return self.call_api(
			"GET /search/commits",
			lambda: [
				commit_to_dict(commit_obj)
				for commit_obj in self.client.search_commits(
					query,
					sort="committer-date",
					order="desc",
				)
			],
		)

	#============================================
	def list_repo_commits(
		self,
		repo_full_name: str,
		identity: str,
		start_utc: datetime,
		end_utc: datetime,
	) -> list[dict]:
		"""
		List one repository's commits by identity inside the window.
		"""
		since = normalize_datetime(start_utc)
		until = normalize_datetime(end_utc)
		return self.call_api(
			f"GET /repos/{repo_full_name}/commits",
			lambda: [
				commit_to_dict(commit_obj, repo_full_name)
				for commit_obj in self.get_repo(repo_full_name).get_commits(
					author=identity,
					since=since,
					until=until,
				)
			],
		)

	#============================================
	def get_commit_detail(self, repo_full_name: str, sha: str) -> dict:
		"""
		Fetch one commit with stats and changed files.
		"""
		commit_obj = self.call_api(
			f"GET /repos/{repo_full_name}/commits/{{sha}}",
			lambda: self.get_repo(repo_full_name).get_commit(sha),
		)
		self._commit_objects[(repo_full_name, sha)] = commit_obj
		return commit_detail_to_dict(commit_obj, repo_full_name)

	#============================================
	def list_commit_pulls(self, repo_full_name: str, sha: str) -> list[dict]:
		"""
		List pull requests associated with one commit.

		Reuses the commit fetched by get_commit_detail when there is one.
		"""
		commit_obj = self._commit_objects.pop((repo_full_name, sha), None)
		if commit_obj is None:
			commit_obj = self.call_api(
				f"GET /repos/{repo_full_name}/commits/{{sha}}",
				lambda: self.get_repo(repo_full_name).get_commit(sha),
			)
		return self.call_api(
			f"GET /repos/{repo_full_name}/commits/{{sha}}/pulls",
			lambda: [pull_to_dict(pull_obj) for pull_obj in commit_obj.get_pulls()],
		)

	#============================================
	def list_pull_commits(self, repo_full_name: str, number: int) -> list[dict]:
		"""
		List the individual commits of one pull request.
		"""
		return self.call_api(
			f"GET /repos/{repo_full_name}/pulls/{{number}}/commits",
			lambda: [
				commit_to_dict(commit_obj, repo_full_name)
				for commit_obj in self.get_repo(repo_full_name).get_pull(number).get_commits()
			],
		)

	#============================================
	def list_accessible_repos(self) -> list[str]:
		"""
		List full names of repositories the token can read.
		"""
		return self.call_api(
			"GET /user/repos",
			lambda: [
				repo_obj.full_name
				for repo_obj in self.client.get_user().get_repos(type="all")
			],
		)
