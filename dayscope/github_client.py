# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""GitHub REST API client for finding pull requests that need action."""

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from dayscope.models import PullRequestRecord, Repository, ReviewComment

# Set up logging
logger = logging.getLogger(__name__)


class GitHubConnectionError(Exception):
    """Raised when GitHub is unavailable or a request fails."""
    pass


class GitHubAuthError(Exception):
    """Raised when authentication fails."""
    pass


# Action reason -> display label
ACTION_LABELS = {
    "fix_needed": "Fixes Needed",
    "changes_requested": "Changes Requested",
    "has_comments": "Has Review Comments",
    "review_ready": "Review Needed",
    "review_ongoing": "Review In Progress",
    "qa_needed": "QA Needed",
}


class GitHubClient:
    """
    Handles communication with the GitHub REST API.
    Uses a personal access token.
    """

    BASE_URL = "https://api.github.com"

    def __init__(self, token: str, repositories: List[Repository], base_url: str = BASE_URL):
        """
        Initialize GitHub client.

        Args:
            token: Personal access token
            repositories: Repositories to monitor
            base_url: API base URL (GitHub Enterprise installs differ)
        """
        self.base_url = base_url.rstrip('/')
        self.repositories = repositories

        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': '2022-11-28',
        })

    def _get(self, endpoint: str) -> Any:
        try:
            response = self.session.get(f"{self.base_url}{endpoint}", timeout=30)
        except requests.exceptions.Timeout:
            raise GitHubConnectionError("Connection to GitHub timed out")
        except requests.exceptions.RequestException as e:
            raise GitHubConnectionError(f"Failed to connect to GitHub: {str(e)}")

        if response.status_code == 401:
            raise GitHubAuthError("GitHub authentication failed. Check your token.")
        if response.status_code == 403:
            if response.headers.get('X-RateLimit-Remaining') == '0':
                raise GitHubConnectionError("GitHub rate limit exceeded")
            raise GitHubConnectionError("GitHub access forbidden. Check repository permissions.")
        if response.status_code == 404:
            raise GitHubConnectionError(f"GitHub resource not found: {endpoint}")
        if response.status_code >= 400:
            raise GitHubConnectionError(f"GitHub API error: {response.status_code}")

        return response.json()

    def get_authenticated_user(self) -> str:
        return self._get("/user").get('login', '')

    def fetch_actionable_pull_requests(self) -> List[PullRequestRecord]:
        """
        Fetch open pull requests that need the authenticated user's action.

        A repository that fails is logged and skipped.

        Returns:
            PullRequestRecords sorted oldest first

        Raises:
            GitHubAuthError: If the token is rejected
            GitHubConnectionError: If the user cannot be resolved
        """
        username = self.get_authenticated_user()
        actionable: List[PullRequestRecord] = []

        for repository in self.repositories:
            try:
                pulls = self._get(
                    f"/repos/{repository.full_name}/pulls"
                    f"?state=open&sort=updated&direction=desc&per_page=100"
                )
            except GitHubConnectionError as e:
                logger.error(f"Failed to fetch PRs for {repository.full_name}: {e}")
                continue

            for pr_data in pulls:
                record = self._actionable_record(repository, pr_data, username)
                if record is not None:
                    actionable.append(record)

        actionable.sort(key=lambda r: r.created_at)
        logger.info(f"Found {len(actionable)} actionable pull requests for {username}")
        return actionable

    def _actionable_record(self, repository: Repository, pr_data: Dict[str, Any],
                           username: str) -> Optional[PullRequestRecord]:
        number = pr_data.get('number')
        is_author = _login(pr_data.get('user')) == username.lower()
        is_assigned = any(_login(a) == username.lower() for a in pr_data.get('assignees') or [])

        reviews: List[Dict[str, Any]] = []
        if is_author or (is_assigned and has_label(pr_data, "review_ready")):
            try:
                reviews = self._get(f"/repos/{repository.full_name}/pulls/{number}/reviews")
            except GitHubConnectionError as e:
                logger.error(f"Failed to fetch reviews for PR #{number}: {e}")

        reason = action_reason(pr_data, reviews, username, is_author, is_assigned)
        if reason is None:
            return None

        detailed = pr_data
        try:
            detailed = self._get(f"/repos/{repository.full_name}/pulls/{number}")
        except GitHubConnectionError as e:
            logger.error(f"Failed to fetch details for PR #{number}: {e}")

        excerpts: List[ReviewComment] = []
        if reason == "has_comments":
            try:
                comments = self._get(
                    f"/repos/{repository.full_name}/pulls/{number}/comments?per_page=50"
                )
                excerpts = [
                    ReviewComment(body=c.get('body', ''), author=_login(c.get('user')),
                                  created_at=c.get('created_at', ''))
                    for c in comments if not _is_bot(_login(c.get('user')))
                ]
            except GitHubConnectionError as e:
                logger.error(f"Failed to fetch review comments for PR #{number}: {e}")

        return parse_pull_request(detailed, repository, reason, excerpts)


def _login(user: Optional[Dict[str, Any]]) -> str:
    return (user or {}).get('login', '').lower()


def _is_bot(login: str) -> bool:
    return login.endswith("[bot]") or "bot" in login


def has_label(pr_data: Dict[str, Any], name: str) -> bool:
    return any(label.get('name', '').lower() == name.lower() for label in pr_data.get('labels') or [])


def _latest_reviews(reviews: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    latest: Dict[str, Dict[str, Any]] = {}
    for review in reviews:
        login = _login(review.get('user'))
        existing = latest.get(login)
        if existing is None or review.get('submitted_at', '') > existing.get('submitted_at', ''):
            latest[login] = review
    return latest


def has_changes_requested(reviews: List[Dict[str, Any]]) -> bool:
    """Check whether any reviewer's latest review requests changes."""
    return any(r.get('state') == "CHANGES_REQUESTED" for r in _latest_reviews(reviews).values())


def has_unaddressed_review_comments(reviews: List[Dict[str, Any]], pr_data: Dict[str, Any]) -> bool:
    """
    Check for human review comments the author has not responded to.

    A reviewer who is back in requested_reviewers has been re-requested, so
    their comments count as addressed.
    """
    commenters = {
        _login(r.get('user')) for r in reviews
        if not _is_bot(_login(r.get('user')))
        and r.get('state') in ("COMMENTED", "CHANGES_REQUESTED")
    }
    if not commenters:
        return False
    pending = {_login(r) for r in pr_data.get('requested_reviewers') or []}
    return any(reviewer not in pending for reviewer in commenters)


def has_user_reviewed(reviews: List[Dict[str, Any]], username: str) -> bool:
    return any(
        _login(r.get('user')) == username.lower()
        and r.get('state') in ("APPROVED", "CHANGES_REQUESTED", "COMMENTED")
        for r in reviews
    )


def action_reason(pr_data: Dict[str, Any], reviews: List[Dict[str, Any]], username: str,
                  is_author: bool, is_assigned: bool) -> Optional[str]:
    """
    Decide why a pull request needs the user's attention.

    Returns:
        Action reason key, or None when the PR needs no action
    """
    if is_author:
        if has_label(pr_data, "fix_needed"):
            return "fix_needed"
        if has_changes_requested(reviews):
            return "changes_requested"
        if has_unaddressed_review_comments(reviews, pr_data) and not has_label(pr_data, "review_done"):
            return "has_comments"
        return None

    if is_assigned and not has_label(pr_data, "fix_needed"):
        if has_label(pr_data, "review_ready") and not has_user_reviewed(reviews, username):
            return "review_ready"
        requested = {_login(r) for r in pr_data.get('requested_reviewers') or []}
        if has_label(pr_data, "review_ongoing") and username.lower() in requested:
            return "review_ongoing"
        if (has_label(pr_data, "qa_by_dev") or has_label(pr_data, "qa_by_done")) \
                and not has_label(pr_data, "qa_done"):
            return "qa_needed"

    return None


def parse_pull_request(pr_data: Dict[str, Any], repository: Optional[Repository] = None,
                       reason: Optional[str] = None,
                       review_comments: Optional[List[ReviewComment]] = None) -> PullRequestRecord:
    """
    Parse GitHub API pull request data into a PullRequestRecord.

    Args:
        pr_data: Raw pull request data
        repository: Repository the PR belongs to
        reason: Action reason key
        review_comments: Review comment excerpts

    Returns:
        PullRequestRecord
    """
    return PullRequestRecord(
        id=pr_data.get('id', 0),
        number=pr_data.get('number', 0),
        title=pr_data.get('title', ''),
        url=pr_data.get('html_url', ''),
        created_at=pr_data.get('created_at', ''),
        draft=bool(pr_data.get('draft', False)),
        author=(pr_data.get('user') or {}).get('login', ''),
        body=pr_data.get('body') or '',
        additions=pr_data.get('additions'),
        deletions=pr_data.get('deletions'),
        changed_files=pr_data.get('changed_files'),
        commits=pr_data.get('commits'),
        comments=pr_data.get('comments'),
        review_comments=pr_data.get('review_comments'),
        labels=[label.get('name', '') for label in pr_data.get('labels') or []],
        repository=repository,
        action_reason=reason,
        action_label=ACTION_LABELS.get(reason, '') if reason else '',
        review_comment_excerpts=review_comments or [],
    )


def parse_repositories(value: str) -> Tuple[List[Repository], List[str]]:
    """
    Parse a comma-separated "owner/repo" list.

    Returns:
        Tuple of (repositories, invalid_entries)
    """
    repositories = []
    invalid = []
    for entry in (value or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        owner, _, repo = entry.partition("/")
        if not owner or not repo or "/" in repo:
            invalid.append(entry)
            continue
        repositories.append(Repository(owner=owner, repo=repo))
    return repositories, invalid
