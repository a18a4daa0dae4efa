# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""OpenAI-compatible client for batched effort estimation."""

import json
import logging
import math
from typing import Dict, List

import requests

from dayscope.effort import TaskDescriptor, snap_hours
from dayscope.models import EffortEstimate

# Set up logging
logger = logging.getLogger(__name__)


class EstimatorError(Exception):
    """Raised when the estimation service is unavailable or returns garbage."""
    pass


PROMPT_TEMPLATE = """You are estimating work effort for a software engineer's daily tasks.
Given these items with their descriptions and context, estimate hours for each.
Use only these values: 0.5, 1, 2, 4, or 8.

Guidelines for PR reviews (use diff stats as primary signal):
- Tiny (<100 lines, 1-3 files): 0.5h
- Small (100-400 lines, 3-8 files): 0.5h
- Medium (400-1000 lines, 8-15 files): 0.5h
- Large (1000-2000 lines, 15-30 files): 1h
- Very large (>2000 lines or >30 files): 2h
- Add time for: "Changes Requested" (re-review), complex domains
- Reduce time for: simple refactors, config changes, test-only changes, styling

Guidelines for "Has Review Comments" PRs (responding to reviewer feedback):
- Read the review comments provided and estimate based on their complexity
- Simple comments (typos, naming, small tweaks): 0.5h total
- Medium comments (logic changes, refactors): 0.5-1h
- Complex comments (architectural changes, rethink approach): 1-2h

Guidelines for issues:
- If story points provided: 1pt=0.5h, 2pt=1h, 3pt=2h, 5pt=4h, 8pt=8h
- Bug fixes: 1-2h for clear issues, 2-4h for debugging needed
- New features: Consider scope from description, 2-8h typically
- "In Progress" items may need less time than "To Do" items

Items:
{items}

Respond with ONLY a JSON array, no other text. Format: [{{"id": "item_id", "hours": 2, "reasoning": "brief 5-10 word reason"}}, ...]
Use the IDs exactly as provided."""


class OpenAIEstimatorClient:
    """
    Calls a chat-completions endpoint once per batch of task descriptors.
    """

    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL,
                 base_url: str = DEFAULT_BASE_URL, timeout: int = 30):
        """
        Initialize the estimator client.

        Args:
            api_key: API key for the completion service
            model: Model name
            base_url: API base URL (OpenAI-compatible)
            timeout: Request timeout in seconds
        """
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {api_key}',
            'Content-Type': 'application/json',
        })

    def estimate(self, descriptors: List[TaskDescriptor]) -> Dict[str, EffortEstimate]:
        """
        Estimate effort for a batch of tasks with a single request.

        Args:
            descriptors: Task descriptors

        Returns:
            Mapping of id to EffortEstimate for every id the service answered

        Raises:
            EstimatorError: If the request fails or the response cannot be parsed
        """
        if not descriptors:
            return {}

        prompt = build_prompt(descriptors)
        logger.info(f"Requesting effort estimates for {len(descriptors)} items")

        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                json={
                    'model': self.model,
                    'messages': [{'role': 'user', 'content': prompt}],
                    'temperature': 0.3,
                    'max_tokens': 2000,
                },
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            raise EstimatorError("Estimation request timed out")
        except requests.exceptions.RequestException as e:
            raise EstimatorError(f"Estimation request failed: {str(e)}")

        if response.status_code != 200:
            raise EstimatorError(f"Estimation API error: {response.status_code} - {response.text}")

        try:
            content = response.json()['choices'][0]['message']['content']
        except (ValueError, KeyError, IndexError, TypeError):
            raise EstimatorError("Estimation API returned an unexpected payload")

        return parse_estimates(content)


def describe(descriptor: TaskDescriptor) -> str:
    """Render one descriptor as prompt text."""
    d = descriptor
    parts = [f"ID: {d.id}"]

    if d.is_pull_request:
        parts.append(f'[PR] "{d.title}"')
        parts.append(f"Repo: {d.repo}, Action needed: {d.reason}")
        if d.pr_additions is not None or d.pr_deletions is not None:
            parts.append(
                f"Diff: +{d.pr_additions or 0} -{d.pr_deletions or 0} lines, "
                f"{d.pr_changed_files or 0} files, {d.pr_commits or 0} commits"
            )
        if d.pr_comments or d.pr_review_comments:
            parts.append(
                f"Discussion: {d.pr_comments or 0} comments, "
                f"{d.pr_review_comments or 0} review comments"
            )
        if d.review_comments:
            comments = "\n".join(f'  - {author}: "{body}"' for author, body in d.review_comments)
            parts.append(f"Review comments to address:\n{comments}")
        if d.pr_body:
            parts.append(f"PR description: {d.pr_body}")
        if d.issue_identifier:
            parts.append(f"Linked issue: {d.issue_identifier} ({d.priority_label}, {d.state_name})")
    else:
        parts.append(f'[Issue] "{d.title}" ({d.issue_identifier})')
        parts.append(f"Priority: {d.priority_label}, State: {d.state_name}")

    if d.story_points:
        parts.append(f"Story points: {d.story_points:g}")
    if d.description:
        parts.append(f"Description: {d.description}")
    if d.recent_comments:
        parts.append(f"Recent comments: {d.recent_comments}")

    return "\n".join(parts)


def build_prompt(descriptors: List[TaskDescriptor]) -> str:
    return PROMPT_TEMPLATE.format(items="\n\n".join(describe(d) for d in descriptors))


def parse_estimates(content: str) -> Dict[str, EffortEstimate]:
    """
    Parse the JSON array returned by the model.

    Markdown code fences around the array are tolerated. Entries without a
    usable id or numeric hours are skipped.

    Args:
        content: Raw message content

    Returns:
        Mapping of id to EffortEstimate

    Raises:
        EstimatorError: If the content is not a JSON array
    """
    text = (content or "").strip()
    if text.startswith("```"):
        text = text.strip("`").strip()
        if text.lower().startswith("json"):
            text = text[4:].strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise EstimatorError(f"Could not parse estimation response: {str(e)}")

    if not isinstance(data, list):
        raise EstimatorError("Estimation response is not a JSON array")

    estimates = {}
    for entry in data:
        if not isinstance(entry, dict) or 'id' not in entry:
            continue
        try:
            hours = float(entry.get('hours'))
        except (TypeError, ValueError):
            logger.debug(f"Skipping estimate without numeric hours: {entry}")
            continue
        if not math.isfinite(hours) or hours <= 0:
            logger.debug(f"Skipping estimate with unusable hours: {entry}")
            continue
        estimates[str(entry['id'])] = EffortEstimate(
            hours=snap_hours(hours),
            reasoning=str(entry.get('reasoning') or "Estimated"),
        )

    logger.debug(f"Parsed {len(estimates)} estimates")
    return estimates
