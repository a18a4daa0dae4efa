# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""JSON-backed storage of planning preferences."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dayscope.models import ItemOrderPreference

# Set up logging
logger = logging.getLogger(__name__)


@dataclass
class PlanningPreferences:
    """User preferences re-supplied to every planning run."""
    custom_order: ItemOrderPreference = field(default_factory=ItemOrderPreference)
    custom_hours: Dict[str, float] = field(default_factory=dict)
    prioritized_ids: List[str] = field(default_factory=list)
    excluded_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'custom_order': self.custom_order.to_dict(),
            'custom_hours': dict(self.custom_hours),
            'prioritized_ids': list(self.prioritized_ids),
            'excluded_ids': list(self.excluded_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlanningPreferences":
        stored_hours = data.get('custom_hours') or {}
        if not isinstance(stored_hours, dict):
            logger.warning(f"Ignoring stored custom hours that are not a mapping: {stored_hours!r}")
            stored_hours = {}

        custom_hours = {}
        for key, value in stored_hours.items():
            try:
                custom_hours[str(key)] = float(value)
            except (TypeError, ValueError):
                logger.warning(f"Ignoring invalid stored hours for {key}: {value!r}")
        return cls(
            custom_order=ItemOrderPreference.from_dict(data.get('custom_order')),
            custom_hours=custom_hours,
            prioritized_ids=_id_list(data, 'prioritized_ids'),
            excluded_ids=_id_list(data, 'excluded_ids'),
        )


def _id_list(data: dict, key: str) -> List[str]:
    ids = data.get(key) or []
    if not isinstance(ids, list):
        logger.warning(f"Ignoring stored {key} that is not a list: {ids!r}")
        return []
    return [str(i) for i in ids]


class PreferenceStore:
    """
    Reads and writes planning preferences as a JSON file.
    """

    def __init__(self, path: Optional[str] = None):
        """
        Initialize the store.

        Args:
            path: JSON file path (default: .dayscope/preferences.json)
        """
        if path is None:
            path = os.path.join(os.getcwd(), '.dayscope', 'preferences.json')
        self.path = Path(path)

    def load(self) -> PlanningPreferences:
        """
        Load preferences; a missing or unreadable file yields defaults.

        Returns:
            PlanningPreferences
        """
        if not self.path.exists():
            return PlanningPreferences()

        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not read preferences from {self.path}: {e}")
            return PlanningPreferences()

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed preferences file {self.path}")
            return PlanningPreferences()

        return PlanningPreferences.from_dict(data)

    def save(self, preferences: PlanningPreferences) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump(preferences.to_dict(), f, indent=2)
        logger.debug(f"Saved preferences to {self.path}")
