"""Collect authored commits from GitHub for one UTC window.

Commits come from two places: the commit search endpoint, which only
sees indexed repositories, and direct per-repository listings for the
configured work repositories. Both lists are merged by sha, then each
commit is enriched with stats, files and associated pull requests.

A commit that is the only commit of exactly one pull request's squash
merge is replaced by that pull request's individual commits. Every
expanded commit carries the squashed commit's aggregate line and file
statistics, because per-commit stats inside the pull request are never
fetched. Summing stats over expanded commits therefore counts the
squashed totals once per expanded commit.

Expanded commits keep their own author dates for display, but are filed
under the squashed commit's date through activity_date, so a pull
request merged on the selected day is reported on that day.
"""

from dataclasses import dataclass
from dataclasses import replace
from datetime import datetime

from synclib import github_client


WORK = "Work"
PERSONAL = "Personal"
SQUASH_SCOPES = ("work", "all", "off")


#============================================
@dataclass(frozen=True)
class PullRequestRef:
	number: int
	title: str
	state: str = ""
	url: str = ""

	@property
	def label(self) -> str:
		return f"{self.title} (#{self.number})"


#============================================
@dataclass(frozen=True)
class CommitRecord:
	sha: str
	repo_full_name: str
	author_date: datetime | None
	message: str = ""
	additions: int = 0
	deletions: int = 0
	changed_files: tuple[str, ...] = ()
	pull_requests: tuple[PullRequestRef, ...] = ()
	# day attribution for commits expanded out of a squash merge
	activity_date: datetime | None = None


#============================================
def _log(log_fn, message: str) -> None:
	if log_fn is not None:
		log_fn(message)


#============================================
def classify_project(repo_full_name: str, work_prefixes) -> str:
	"""
	Tag a repository Work when its name starts with a work prefix.
	"""
	for prefix in work_prefixes or ():
		if prefix and repo_full_name.startswith(prefix):
			return WORK
	return PERSONAL


#============================================
def merge_commit_lists(primary: list[dict], secondary: list[dict]) -> list[dict]:
	"""
	Union two raw commit lists by sha; entries from primary always win.
	"""
	merged = []
	seen_shas = set()
	for item in list(primary) + list(secondary):
		sha = item.get("sha") or ""
		if not sha or sha in seen_shas:
			continue
		seen_shas.add(sha)
		merged.append(item)
	return merged


#============================================
def collect_raw_commits(
	client,
	identity: str,
	start_utc: datetime,
	end_utc: datetime,
	work_repositories: list[str],
	log_fn=None,
) -> list[dict]:
	"""
	Gather search results plus per-repository listings, deduplicated by sha.
	"""
	try:
		search_items = client.search_commits(identity, start_utc, end_utc) or []
	except github_client.GitHubRequestError as error:
		_log(log_fn, f"Commit search failed: {error}")
		search_items = []
	_log(log_fn, f"Commit search returned {len(search_items)} commit(s).")
	repo_names = sorted({item.get("repo_full_name") or "" for item in search_items} - {""})
	if repo_names:
		_log(log_fn, f"Repositories from search: {', '.join(repo_names)}")

	work_items = []
	for repo_full_name in work_repositories:
		try:
			items = client.list_repo_commits(repo_full_name, identity, start_utc, end_utc) or []
		except github_client.GitHubRequestError as error:
			if error.status in (403, 404, 409):
				_log(log_fn, f"Skipping {repo_full_name} (no access): {error}")
			else:
				_log(log_fn, f"Listing commits failed for {repo_full_name}: {error}")
			continue
		if items:
			_log(log_fn, f"Found {len(items)} commit(s) in {repo_full_name}")
		work_items.extend(items)

	merged = merge_commit_lists(search_items, work_items)
	_log(log_fn, f"Total unique commits (search + work repos): {len(merged)}")
	return merged


#============================================
def should_expand(repo_full_name: str, scope: str, work_prefixes) -> bool:
	if scope == "all":
		return True
	if scope == "work":
		return classify_project(repo_full_name, work_prefixes) == WORK
	return False


#============================================
def build_commit_record(raw: dict, detail: dict | None, pulls: list[dict]) -> CommitRecord:
	"""
	Combine a discovered commit, its optional detail payload, and its pull requests.
	"""
	source = detail or raw
	files = []
	for filename in (detail or {}).get("files") or []:
		if filename and filename not in files:
			files.append(filename)
	pull_refs = tuple(
		PullRequestRef(
			number=int(pull.get("number") or 0),
			title=pull.get("title") or "",
			state=pull.get("state") or "",
			url=pull.get("url") or "",
		)
		for pull in pulls
	)
	return CommitRecord(
		sha=raw.get("sha") or "",
		repo_full_name=raw.get("repo_full_name") or "",
		author_date=source.get("author_date") or raw.get("author_date"),
		message=source.get("message") or raw.get("message") or "",
		additions=int((detail or {}).get("additions") or 0),
		deletions=int((detail or {}).get("deletions") or 0),
		changed_files=tuple(files),
		pull_requests=pull_refs,
	)


#============================================
def expand_squashed_commit(client, record: CommitRecord, log_fn=None) -> list[CommitRecord]:
	"""
	Replace a one-PR commit with the PR's individual commits when it has several.
	"""
	if len(record.pull_requests) != 1:
		return [record]
	pull = record.pull_requests[0]
	try:
		pr_commits = client.list_pull_commits(record.repo_full_name, pull.number) or []
	except github_client.GitHubRequestError as error:
		_log(log_fn, f"Listing commits for PR #{pull.number} failed: {error}")
		return [record]
	if len(pr_commits) <= 1:
		return [record]
	_log(
		log_fn,
		f"Expanding squashed commit {record.sha[:7]} into "
		+ f"{len(pr_commits)} commits from PR #{pull.number}",
	)
	expanded = []
	for item in pr_commits:
		expanded.append(
			replace(
				record,
				sha=item.get("sha") or "",
				author_date=item.get("author_date") or record.author_date,
				activity_date=record.activity_date or record.author_date,
				message=item.get("message") or "",
			)
		)
	return expanded


#============================================
def enrich_commit(
	client,
	raw: dict,
	squash_scope: str = "work",
	work_prefixes=(),
	log_fn=None,
) -> list[CommitRecord]:
	"""
	Fetch detail and PRs for one discovered commit and expand squash merges.
	"""
	repo_full_name = raw.get("repo_full_name") or ""
	sha = raw.get("sha") or ""
	try:
		detail = client.get_commit_detail(repo_full_name, sha)
	except github_client.GitHubRequestError as error:
		_log(log_fn, f"Fetching commit {sha[:7]} in {repo_full_name} failed: {error}")
		detail = None
	try:
		pulls = client.list_commit_pulls(repo_full_name, sha) or []
	except github_client.GitHubRequestError as error:
		_log(log_fn, f"Fetching PRs for commit {sha[:7]} failed: {error}")
		pulls = []
	record = build_commit_record(raw, detail, pulls)
	if detail is None:
		return [record]
	if not should_expand(repo_full_name, squash_scope, work_prefixes):
		return [record]
	return expand_squashed_commit(client, record, log_fn=log_fn)


#============================================
def fetch_commits(
	client,
	identity: str,
	start_utc: datetime,
	end_utc: datetime,
	work_repositories: list[str],
	work_prefixes=(),
	squash_scope: str = "work",
	log_fn=None,
) -> list[CommitRecord]:
	"""
	Return enriched CommitRecords for the window, unique by sha.
	"""
	if squash_scope not in SQUASH_SCOPES:
		raise ValueError(f"Unknown squash expansion scope: {squash_scope}")
	raw_commits = collect_raw_commits(
		client,
		identity,
		start_utc,
		end_utc,
		work_repositories,
		log_fn=log_fn,
	)
	records = []
	seen_shas = set()
	for raw in raw_commits:
		for record in enrich_commit(
			client,
			raw,
			squash_scope=squash_scope,
			work_prefixes=work_prefixes,
			log_fn=log_fn,
		):
			if not record.sha or record.sha in seen_shas:
				continue
			seen_shas.add(record.sha)
			records.append(record)
	return records


#============================================
def discover_work_repositories(client, work_prefixes, log_fn=None) -> list[str]:
	"""
	List readable repositories whose names match a work prefix.
	"""
	try:
		names = client.list_accessible_repos() or []
	except github_client.GitHubRequestError as error:
		_log(log_fn, f"Listing accessible repositories failed: {error}")
		return []
	matches = [name for name in names if classify_project(name, work_prefixes) == WORK]
	_log(log_fn, f"Found {len(matches)} work repositories")
	return matches
