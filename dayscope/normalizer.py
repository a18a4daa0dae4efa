# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Normalization of pull request and issue records into work items."""

import logging
from typing import Dict, List, Optional
from urllib.parse import urlsplit

from dayscope.models import (
    IssueRecord,
    ItemKind,
    PullRequestRecord,
    RANK_NONE,
    RANK_URGENT,
    WorkItem,
    WorkflowState,
)

# Set up logging
logger = logging.getLogger(__name__)


class ItemNormalizer:
    """
    Converts heterogeneous source records into WorkItems.

    Issues linked to a pull request through an attachment are merged with that
    pull request into a single item.
    """

    # Linear priority value -> source priority rank
    # Linear uses: 0 = No Priority, 1 = Urgent, 2 = High, 3 = Medium, 4 = Low
    PRIORITY_TO_RANK = {1: 0, 2: 1, 3: 2, 4: 3, 0: 4}

    # Legacy sort bands
    BAND_URGENT = 1
    BAND_PULL_REQUEST = 2
    BAND_IN_PROGRESS = 3
    BAND_BACKLOG = 4

    # PR reasons where the user owns follow-up work on the branch
    AUTHOR_ACTION_REASONS = {"fix_needed", "changes_requested", "has_comments"}

    def normalize(self, pull_requests: List[PullRequestRecord],
                  issues: List[IssueRecord]) -> List[WorkItem]:
        """
        Merge and normalize source records.

        Args:
            pull_requests: Actionable pull request records
            issues: Issue tracker records

        Returns:
            List of WorkItems, issue-bearing items first, with unique ids
        """
        prs_by_url: Dict[str, PullRequestRecord] = {}
        for pr in pull_requests:
            prs_by_url.setdefault(normalize_pr_url(pr.url), pr)

        items: List[WorkItem] = []
        linked_pr_ids = set()
        seen_ids = set()

        for issue in issues:
            if self.is_dropped(issue):
                logger.debug(f"Dropping canceled issue {issue.identifier}")
                continue

            linked_pr = None
            linked_url = find_linked_pr_url(issue)
            if linked_url:
                linked_pr = prs_by_url.get(normalize_pr_url(linked_url))

            item = self._build_issue_item(issue, linked_pr)
            if item.id in seen_ids:
                logger.warning(f"Duplicate work item id {item.id}, keeping first occurrence")
                continue

            if linked_pr is not None:
                if linked_pr.id in linked_pr_ids:
                    logger.debug(f"PR {linked_pr.url} already linked, {issue.identifier} kept as issue only")
                    item = self._build_issue_item(issue, None)
                else:
                    linked_pr_ids.add(linked_pr.id)
                    logger.debug(f"Linked {issue.identifier} to PR {linked_pr.url}")

            seen_ids.add(item.id)
            items.append(item)

        # Standalone PRs, oldest first
        standalone = [pr for pr in pull_requests if pr.id not in linked_pr_ids]
        for pr in sorted(standalone, key=lambda p: p.created_at or ""):
            item = self._build_pr_item(pr)
            if item.id in seen_ids:
                logger.warning(f"Duplicate work item id {item.id}, keeping first occurrence")
                continue
            seen_ids.add(item.id)
            items.append(item)

        logger.info(
            f"Normalized {len(pull_requests)} pull requests and {len(issues)} issues "
            f"into {len(items)} work items"
        )
        return items

    def is_dropped(self, issue: IssueRecord) -> bool:
        """Canceled issues are dropped unless their state marks them stale."""
        return issue.state_type.lower() == "canceled" and not _is_stale(issue)

    def source_priority_rank(self, issue: Optional[IssueRecord]) -> int:
        if issue is None:
            return RANK_NONE
        return self.PRIORITY_TO_RANK.get(issue.priority, RANK_NONE)

    def workflow_state(self, pr: Optional[PullRequestRecord],
                       issue: Optional[IssueRecord]) -> WorkflowState:
        """
        Derive the workflow state from source state and labels.

        Args:
            pr: Pull request record, if any
            issue: Issue record, if any

        Returns:
            WorkflowState
        """
        if issue is not None:
            if _is_stale(issue):
                return WorkflowState.STALE
            if any(r.lower() == "blocks" for r in issue.inverse_relation_types):
                return WorkflowState.BLOCKED
        if pr is not None and pr.draft:
            return WorkflowState.DRAFT
        if issue is not None:
            if "review" in issue.state_name.lower():
                return WorkflowState.IN_REVIEW
            if issue.state_type.lower() == "started":
                return WorkflowState.IN_PROGRESS
            return WorkflowState.NOT_STARTED
        if pr is not None and pr.action_reason in self.AUTHOR_ACTION_REASONS:
            return WorkflowState.IN_PROGRESS
        return WorkflowState.IN_REVIEW

    def legacy_sort_priority(self, kind: ItemKind, rank: int,
                             issue: Optional[IssueRecord]) -> int:
        """
        Compute the banded fallback sort key.

        100s = urgent linked, 200s = PR only, 300s = in progress linked,
        400s = backlog linked; the priority rank is added within the band.
        """
        if kind == ItemKind.PULL_REQUEST_ONLY:
            band = self.BAND_PULL_REQUEST
        elif rank == RANK_URGENT:
            band = self.BAND_URGENT
        elif issue is not None and issue.state_type.lower() == "started":
            band = self.BAND_IN_PROGRESS
        else:
            band = self.BAND_BACKLOG
        return band * 100 + rank

    def _build_issue_item(self, issue: IssueRecord,
                          pr: Optional[PullRequestRecord]) -> WorkItem:
        kind = ItemKind.PULL_REQUEST_WITH_LINKED_ISSUE if pr else ItemKind.ISSUE_ONLY
        rank = self.source_priority_rank(issue)
        source_ids = [issue.id]
        if pr is not None:
            source_ids.append(str(pr.id))
            source_ids.append(_pr_item_id(pr))
        return WorkItem(
            id=issue.identifier or issue.id,
            kind=kind,
            title=issue.title or (pr.title if pr else ""),
            source_priority_rank=rank,
            workflow_state=self.workflow_state(pr, issue),
            legacy_sort_priority=self.legacy_sort_priority(kind, rank, issue),
            url=issue.url or (pr.url if pr else ""),
            pull_request=pr,
            issue=issue,
            source_ids=tuple(source_ids),
        )

    def _build_pr_item(self, pr: PullRequestRecord) -> WorkItem:
        kind = ItemKind.PULL_REQUEST_ONLY
        return WorkItem(
            id=_pr_item_id(pr),
            kind=kind,
            title=pr.title,
            source_priority_rank=RANK_NONE,
            workflow_state=self.workflow_state(pr, None),
            legacy_sort_priority=self.legacy_sort_priority(kind, RANK_NONE, None),
            url=pr.url,
            pull_request=pr,
            source_ids=(str(pr.id),),
        )


def _pr_item_id(pr: PullRequestRecord) -> str:
    return f"pr-{pr.id}"


def _is_stale(issue: IssueRecord) -> bool:
    return "stale" in issue.state_name.lower()


def is_pr_url(url: str) -> bool:
    """Check whether a URL points at a GitHub pull request."""
    return bool(url) and "github.com" in url and "/pull/" in url


def find_linked_pr_url(issue: IssueRecord) -> Optional[str]:
    """
    Find the first attachment URL that points at a pull request.

    Args:
        issue: Issue record with attachments

    Returns:
        Attachment URL, or None when the issue links no pull request
    """
    for url in issue.attachment_urls:
        if is_pr_url(url):
            return url
    return None


def normalize_pr_url(url: str) -> str:
    """
    Normalize a pull request URL for matching.

    Drops scheme differences, query, fragment, trailing slashes and any
    sub-path after the PR number (e.g. "/files").

    Args:
        url: Pull request URL

    Returns:
        Normalized "host/owner/repo/pull/number" string
    """
    parts = urlsplit(url.strip())
    host = parts.netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    segments = [s for s in parts.path.split("/") if s]
    if "pull" in segments:
        pull_index = segments.index("pull")
        segments = segments[:pull_index + 2]
    return "/".join([host] + segments).lower()
