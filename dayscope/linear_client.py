# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Linear GraphQL client for fetching assigned issues."""

import logging
from typing import Any, Dict, List

import requests

from dayscope.models import IssueComment, IssueRecord

# Set up logging
logger = logging.getLogger(__name__)


class LinearConnectionError(Exception):
    """Raised when Linear is unavailable or returns an error."""
    pass


class LinearAuthError(Exception):
    """Raised when authentication fails."""
    pass


ASSIGNED_ISSUES_QUERY = """
query {
  viewer {
    assignedIssues(
      filter: { state: { type: { in: ["started", "unstarted"] } } }
      first: 100
    ) {
      nodes {
        id
        identifier
        title
        description
        url
        priority
        priorityLabel
        estimate
        createdAt
        updatedAt
        state { name type }
        attachments { nodes { url sourceType } }
        comments(first: 10) { nodes { body createdAt } }
        inverseRelations(first: 10) { nodes { type } }
      }
    }
  }
}
"""


class LinearClient:
    """
    Handles communication with the Linear GraphQL API.
    """

    API_URL = "https://api.linear.app/graphql"

    def __init__(self, api_key: str, api_url: str = API_URL):
        """
        Initialize Linear client.

        Args:
            api_key: Personal API key
            api_url: GraphQL endpoint
        """
        self.api_url = api_url
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': api_key,
            'Content-Type': 'application/json',
        })

    def _query(self, query: str) -> Dict[str, Any]:
        try:
            response = self.session.post(self.api_url, json={'query': query}, timeout=30)
        except requests.exceptions.Timeout:
            raise LinearConnectionError("Connection to Linear timed out")
        except requests.exceptions.RequestException as e:
            raise LinearConnectionError(f"Failed to connect to Linear: {str(e)}")

        if response.status_code == 401:
            raise LinearAuthError("Linear authentication failed. Check your API key.")
        if response.status_code >= 400:
            raise LinearConnectionError(f"Linear API error: {response.status_code}")

        result = response.json()
        errors = result.get('errors') or []
        if errors:
            raise LinearConnectionError(errors[0].get('message', 'Unknown Linear error'))
        return result

    def fetch_assigned_issues(self) -> List[IssueRecord]:
        """
        Fetch started and unstarted issues assigned to the viewer.

        Returns:
            List of IssueRecords in API order

        Raises:
            LinearConnectionError: If Linear is unavailable
            LinearAuthError: If authentication fails
        """
        result = self._query(ASSIGNED_ISSUES_QUERY)
        nodes = (((result.get('data') or {}).get('viewer') or {})
                 .get('assignedIssues') or {}).get('nodes') or []
        issues = [parse_issue(node) for node in nodes]
        logger.info(f"Fetched {len(issues)} assigned Linear issues")
        return issues


def _nodes(container: Any) -> List[Dict[str, Any]]:
    if not isinstance(container, dict):
        return []
    return container.get('nodes') or []


def parse_issue(data: Dict[str, Any]) -> IssueRecord:
    """
    Parse a Linear issue node into an IssueRecord.

    Args:
        data: Raw issue node

    Returns:
        IssueRecord
    """
    state = data.get('state') or {}
    return IssueRecord(
        id=data.get('id', ''),
        identifier=data.get('identifier', ''),
        title=data.get('title', ''),
        url=data.get('url', ''),
        description=data.get('description') or '',
        priority=data.get('priority') or 0,
        priority_label=data.get('priorityLabel') or 'No priority',
        estimate=data.get('estimate'),
        state_name=state.get('name', ''),
        state_type=state.get('type', ''),
        attachment_urls=[a.get('url', '') for a in _nodes(data.get('attachments')) if a.get('url')],
        comments=[
            IssueComment(body=c.get('body', ''), created_at=c.get('createdAt', ''))
            for c in _nodes(data.get('comments'))
        ],
        inverse_relation_types=[r.get('type', '') for r in _nodes(data.get('inverseRelations'))],
        created_at=data.get('createdAt', ''),
        updated_at=data.get('updatedAt', ''),
    )
