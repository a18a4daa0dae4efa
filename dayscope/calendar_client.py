# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Google Calendar REST client and event selection for planning."""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from dayscope.models import CalendarEvent

# Set up logging
logger = logging.getLogger(__name__)


class CalendarConnectionError(Exception):
    """Raised when the calendar service is unavailable."""
    pass


class CalendarAuthError(Exception):
    """Raised when the access token is rejected."""
    pass


class GoogleCalendarClient:
    """
    Reads today's events from Google Calendar with an OAuth access token.
    """

    BASE_URL = "https://www.googleapis.com/calendar/v3"

    def __init__(self, access_token: str, calendar_id: str = "primary", base_url: str = BASE_URL):
        self.calendar_id = calendar_id
        self.base_url = base_url.rstrip('/')
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {access_token}',
            'Accept': 'application/json',
        })

    def fetch_events(self, day: Optional[date] = None) -> List[CalendarEvent]:
        """
        Fetch the events of a day (local time), excluding cancelled ones.

        Args:
            day: Day to fetch (default: today)

        Returns:
            List of CalendarEvents ordered by start time

        Raises:
            CalendarConnectionError: If the calendar is unavailable
            CalendarAuthError: If authentication fails
        """
        day = day or date.today()
        start_of_day = datetime.combine(day, time.min).astimezone()
        end_of_day = start_of_day + timedelta(days=1)

        try:
            response = self.session.get(
                f"{self.base_url}/calendars/{self.calendar_id}/events",
                params={
                    'timeMin': start_of_day.isoformat(),
                    'timeMax': end_of_day.isoformat(),
                    'singleEvents': 'true',
                    'orderBy': 'startTime',
                },
                timeout=30,
            )
        except requests.exceptions.Timeout:
            raise CalendarConnectionError("Connection to Google Calendar timed out")
        except requests.exceptions.RequestException as e:
            raise CalendarConnectionError(f"Failed to connect to Google Calendar: {str(e)}")

        if response.status_code in (401, 403):
            raise CalendarAuthError(f"Calendar authentication failed: {response.status_code}")
        if response.status_code >= 400:
            raise CalendarConnectionError(f"Calendar API error: {response.status_code}")

        events = []
        for event_data in response.json().get('items', []):
            if event_data.get('status') == 'cancelled':
                continue
            events.append(parse_event(event_data))

        logger.info(f"Fetched {len(events)} calendar events for {day.isoformat()}")
        return events


def parse_event(data: Dict[str, Any]) -> CalendarEvent:
    """
    Parse a Google Calendar event resource.

    Args:
        data: Raw event resource

    Returns:
        CalendarEvent with duration in minutes (0 for all-day events)
    """
    start_data = data.get('start') or {}
    end_data = data.get('end') or {}
    is_all_day = not start_data.get('dateTime')
    start = start_data.get('dateTime') or start_data.get('date') or ''
    end = end_data.get('dateTime') or end_data.get('date') or ''

    duration_minutes = 0
    if not is_all_day and start and end:
        delta = _parse_timestamp(end) - _parse_timestamp(start)
        duration_minutes = max(0, round(delta.total_seconds() / 60))

    response_status = None
    for attendee in data.get('attendees') or []:
        if attendee.get('self'):
            response_status = attendee.get('responseStatus')
            break

    return CalendarEvent(
        id=data.get('id', ''),
        summary=data.get('summary') or '(No title)',
        start=start,
        end=end,
        duration_minutes=duration_minutes,
        is_all_day=is_all_day,
        response_status=response_status,
    )


def _parse_timestamp(value: str) -> datetime:
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def select_planning_events(events: List[CalendarEvent], include_all_day: bool = False,
                           include_declined: bool = False) -> List[CalendarEvent]:
    """
    Default event selection for planning: drop all-day and declined events.

    Args:
        events: Candidate events
        include_all_day: Keep all-day events
        include_declined: Keep events the user declined

    Returns:
        Selected events in input order
    """
    return [
        event for event in events
        if (include_all_day or not event.is_all_day)
        and (include_declined or event.response_status != "declined")
    ]
