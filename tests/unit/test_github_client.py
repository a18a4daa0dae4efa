# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Unit tests for GitHub Client."""

import pytest
import requests
from unittest.mock import Mock, patch

from dayscope.github_client import (
    GitHubAuthError,
    GitHubClient,
    GitHubConnectionError,
    action_reason,
    has_changes_requested,
    has_unaddressed_review_comments,
    parse_pull_request,
    parse_repositories,
)
from dayscope.models import Repository


REPO = Repository(owner="acme", repo="app")


def response(status_code=200, payload=None, headers=None):
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_response.json.return_value = payload
    mock_response.headers = headers or {}
    return mock_response


def pr_payload(number, author="alice", labels=(), assignees=(), created_at="2026-01-01T00:00:00Z"):
    return {
        'id': 1000 + number,
        'number': number,
        'title': f"PR {number}",
        'html_url': f"https://github.com/acme/app/pull/{number}",
        'created_at': created_at,
        'user': {'login': author},
        'labels': [{'name': name} for name in labels],
        'assignees': [{'login': login} for login in assignees],
        'requested_reviewers': [],
    }


def review(login, state, submitted_at="2026-01-02T00:00:00Z"):
    return {'user': {'login': login}, 'state': state, 'submitted_at': submitted_at}


class TestGitHubClientInit:
    """Tests for GitHubClient initialization."""

    def test_sets_headers(self):
        client = GitHubClient(token="ghp_test", repositories=[REPO])

        assert client.session.headers['Authorization'] == 'Bearer ghp_test'
        assert client.session.headers['Accept'] == 'application/vnd.github+json'

    def test_strips_trailing_slash(self):
        client = GitHubClient(token="t", repositories=[], base_url="https://ghe.example.com/api/v3/")

        assert client.base_url == "https://ghe.example.com/api/v3"


class TestGet:
    """Tests for error mapping."""

    def setup_method(self):
        self.client = GitHubClient(token="t", repositories=[REPO])

    def test_unauthorized(self):
        with patch.object(self.client.session, 'get', return_value=response(401)):
            with pytest.raises(GitHubAuthError):
                self.client.get_authenticated_user()

    def test_rate_limited(self):
        limited = response(403, headers={'X-RateLimit-Remaining': '0'})
        with patch.object(self.client.session, 'get', return_value=limited):
            with pytest.raises(GitHubConnectionError, match="rate limit"):
                self.client.get_authenticated_user()

    def test_not_found(self):
        with patch.object(self.client.session, 'get', return_value=response(404)):
            with pytest.raises(GitHubConnectionError, match="not found"):
                self.client.get_authenticated_user()

    def test_timeout(self):
        with patch.object(self.client.session, 'get', side_effect=requests.exceptions.Timeout()):
            with pytest.raises(GitHubConnectionError, match="timed out"):
                self.client.get_authenticated_user()


class TestFetchActionablePullRequests:
    """Tests for fetch_actionable_pull_requests."""

    def test_returns_actionable_prs_oldest_first(self):
        client = GitHubClient(token="t", repositories=[REPO])
        authored = pr_payload(1, author="me", labels=["fix_needed"], created_at="2026-01-05T00:00:00Z")
        review_request = pr_payload(2, author="bob", labels=["review_ready"], assignees=["me"],
                                    created_at="2026-01-01T00:00:00Z")
        ignored = pr_payload(3, author="bob")
        routes = {
            "/user": {'login': 'me'},
            "/repos/acme/app/pulls?state=open&sort=updated&direction=desc&per_page=100":
                [authored, review_request, ignored],
            "/repos/acme/app/pulls/1/reviews": [],
            "/repos/acme/app/pulls/2/reviews": [],
            "/repos/acme/app/pulls/1": dict(authored, additions=10, deletions=2, changed_files=1),
            "/repos/acme/app/pulls/2": review_request,
        }

        def fake_get(url, timeout=None):
            return response(payload=routes[url.replace(client.base_url, "")])

        with patch.object(client.session, 'get', side_effect=fake_get):
            records = client.fetch_actionable_pull_requests()

        assert [record.number for record in records] == [2, 1]
        assert records[0].action_reason == "review_ready"
        assert records[0].action_label == "Review Needed"
        assert records[1].action_label == "Fixes Needed"
        assert records[1].additions == 10
        assert records[1].repository == REPO

    def test_failing_repository_is_skipped(self):
        broken = Repository(owner="acme", repo="gone")
        client = GitHubClient(token="t", repositories=[broken])

        def fake_get(url, timeout=None):
            if url.endswith("/user"):
                return response(payload={'login': 'me'})
            return response(404)

        with patch.object(client.session, 'get', side_effect=fake_get):
            assert client.fetch_actionable_pull_requests() == []


class TestActionReason:
    """Tests for action reason detection."""

    def test_author_with_changes_requested(self):
        reviews = [review("bob", "CHANGES_REQUESTED")]

        assert action_reason(pr_payload(1, author="me"), reviews, "me", True, False) == "changes_requested"

    def test_latest_review_wins(self):
        reviews = [
            review("bob", "CHANGES_REQUESTED", "2026-01-01T00:00:00Z"),
            review("bob", "APPROVED", "2026-01-03T00:00:00Z"),
        ]

        assert not has_changes_requested(reviews)

    def test_author_with_review_comments(self):
        reviews = [review("bob", "COMMENTED")]

        assert action_reason(pr_payload(1, author="me"), reviews, "me", True, False) == "has_comments"

    def test_bot_comments_do_not_count(self):
        reviews = [review("ci-bot", "COMMENTED")]

        assert not has_unaddressed_review_comments(reviews, pr_payload(1))

    def test_rerequested_reviewer_counts_as_addressed(self):
        pr = pr_payload(1)
        pr['requested_reviewers'] = [{'login': 'bob'}]

        assert not has_unaddressed_review_comments([review("bob", "COMMENTED")], pr)

    def test_review_done_label_suppresses_comments(self):
        pr = pr_payload(1, author="me", labels=["review_done"])

        assert action_reason(pr, [review("bob", "COMMENTED")], "me", True, False) is None

    def test_assignee_already_reviewed(self):
        pr = pr_payload(2, labels=["review_ready"], assignees=["me"])

        assert action_reason(pr, [review("me", "APPROVED")], "me", False, True) is None

    def test_assignee_qa_needed(self):
        pr = pr_payload(2, labels=["qa_by_dev"], assignees=["me"])

        assert action_reason(pr, [], "me", False, True) == "qa_needed"

    def test_unrelated_pr(self):
        assert action_reason(pr_payload(3), [], "me", False, False) is None


class TestParsing:
    """Tests for parsing helpers."""

    def test_parse_pull_request(self):
        record = parse_pull_request(pr_payload(4, labels=["review_ready"]), REPO, "review_ready")

        assert record.id == 1004
        assert record.url == "https://github.com/acme/app/pull/4"
        assert record.labels == ["review_ready"]
        assert record.action_label == "Review Needed"
        assert record.body == ""

    def test_parse_repositories(self):
        repositories, invalid = parse_repositories("acme/app, acme/api,broken, a/b/c,")

        assert [r.full_name for r in repositories] == ["acme/app", "acme/api"]
        assert invalid == ["broken", "a/b/c"]
