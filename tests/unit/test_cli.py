# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Unit tests for CLI interface."""

import json
import os

import pytest
from click.testing import CliRunner
from unittest.mock import patch

from dayscope.cli import Config, cli
from dayscope.models import CalendarEvent, IssueRecord, PullRequestRecord
from dayscope.sources import SourceSnapshot


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def env(tmp_path):
    return {
        'LINEAR_API_KEY': 'lin_test',
        'DAYSCOPE_PREFERENCES': str(tmp_path / 'preferences.json'),
    }


def snapshot():
    return SourceSnapshot(
        pull_requests=[
            PullRequestRecord(id=9, number=3, title="Bump deps",
                              url="https://github.com/acme/app/pull/3", action_label="Review Needed"),
        ],
        issues=[
            IssueRecord(id="uuid-1", identifier="ENG-1", title="Outage", priority=1,
                        priority_label="Urgent", state_type="started", state_name="In Progress"),
            IssueRecord(id="uuid-2", identifier="ENG-2", title="Docs", priority=4,
                        priority_label="Low", state_type="unstarted", state_name="Todo"),
        ],
        events=[CalendarEvent(id="e", summary="Standup", start="", end="", duration_minutes=30)],
    )


class TestConfig:
    """Tests for Config validation."""

    def test_requires_a_source(self):
        with patch.dict(os.environ, {}, clear=True):
            is_valid, error = Config().validate()

        assert not is_valid
        assert "GITHUB_TOKEN or LINEAR_API_KEY" in error

    def test_github_requires_repositories(self):
        with patch.dict(os.environ, {'GITHUB_TOKEN': 'ghp'}, clear=True):
            is_valid, error = Config().validate()

        assert not is_valid
        assert "GITHUB_REPOSITORIES" in error

    def test_invalid_repository_entry(self):
        with patch.dict(os.environ, {'GITHUB_TOKEN': 'ghp', 'GITHUB_REPOSITORIES': 'acme'}, clear=True):
            is_valid, error = Config().validate()

        assert not is_valid
        assert "acme" in error

    def test_invalid_max_hours(self):
        with patch.dict(os.environ, {'LINEAR_API_KEY': 'k', 'DAYSCOPE_MAX_HOURS': 'zero'}, clear=True):
            is_valid, _ = Config().validate()

        assert not is_valid

    def test_valid(self):
        environ = {'GITHUB_TOKEN': 'ghp', 'GITHUB_REPOSITORIES': 'acme/app'}
        with patch.dict(os.environ, environ, clear=True):
            config = Config()
            assert config.validate() == (True, None)

        assert config.calendar_id == 'primary'
        assert config.max_hours == '6'


class TestPlanCommand:
    """Tests for the plan command."""

    def test_prints_plan(self, runner, env):
        with patch.dict(os.environ, env, clear=True), \
                patch('dayscope.cli.fetch_work_items', return_value=snapshot()):
            result = runner.invoke(cli, ['plan', '--hours', '4'])

        assert result.exit_code == 0, result.output
        assert "# Daily Plan - " in result.output
        assert "[ENG-1] Outage" in result.output
        assert "- Meetings: 0.5h" in result.output
        assert "- Available: 3.5h of 4h requested" in result.output

    def test_writes_output_file(self, runner, env, tmp_path):
        output = tmp_path / "plan.md"
        with patch.dict(os.environ, env, clear=True), \
                patch('dayscope.cli.fetch_work_items', return_value=snapshot()):
            result = runner.invoke(cli, ['plan', '-o', str(output), '--no-calendar'])

        assert result.exit_code == 0, result.output
        assert output.read_text().startswith("# Daily Plan - ")

    def test_source_errors_become_warnings(self, runner, env):
        failing = SourceSnapshot(errors=["Linear: down"])
        with patch.dict(os.environ, env, clear=True), \
                patch('dayscope.cli.fetch_work_items', return_value=failing):
            result = runner.invoke(cli, ['plan'])

        assert result.exit_code == 0, result.output
        assert "## Warnings" in result.output
        assert "No actionable items for today." in result.output

    def test_missing_config_exits(self, runner):
        with patch.dict(os.environ, {}, clear=True):
            result = runner.invoke(cli, ['plan'])

        assert result.exit_code == 1
        assert "Configuration Error" in result.output


class TestItemsCommand:
    """Tests for the items command."""

    def test_lists_by_category(self, runner, env):
        with patch.dict(os.environ, env, clear=True), \
                patch('dayscope.cli.fetch_work_items', return_value=snapshot()):
            result = runner.invoke(cli, ['items'])

        assert result.exit_code == 0, result.output
        assert result.output.index("Urgent") < result.output.index("Pull Requests")
        assert "[pr-9] Bump deps" in result.output

    def test_pinned_item_leads_its_category(self, runner, env):
        with open(env['DAYSCOPE_PREFERENCES'], 'w') as f:
            json.dump({'prioritized_ids': ['ENG-2']}, f)
        issues = SourceSnapshot(issues=[
            IssueRecord(id="uuid-1", identifier="ENG-1", title="first", priority=2, state_type="unstarted"),
            IssueRecord(id="uuid-2", identifier="ENG-2", title="second", priority=2, state_type="unstarted"),
        ])
        with patch.dict(os.environ, env, clear=True), \
                patch('dayscope.cli.fetch_work_items', return_value=issues):
            result = runner.invoke(cli, ['items'])

        assert result.exit_code == 0, result.output
        assert result.output.index("[ENG-2] second") < result.output.index("[ENG-1] first")
        assert "[ENG-2] second - not_started (pinned)" in result.output

    def test_flags_match_source_ids(self, runner, env):
        with open(env['DAYSCOPE_PREFERENCES'], 'w') as f:
            json.dump({'excluded_ids': ['uuid-1'], 'custom_hours': {'uuid-1': 3}}, f)
        issues = SourceSnapshot(issues=[
            IssueRecord(id="uuid-1", identifier="ENG-1", title="first", priority=2, state_type="unstarted"),
        ])
        with patch.dict(os.environ, env, clear=True), \
                patch('dayscope.cli.fetch_work_items', return_value=issues):
            result = runner.invoke(cli, ['items'])

        assert result.exit_code == 0, result.output
        assert "[ENG-1] first - not_started (excluded, 3h)" in result.output


class TestPreferenceCommands:
    """Tests for commands that edit stored preferences."""

    def read_preferences(self, env):
        with open(env['DAYSCOPE_PREFERENCES']) as f:
            return json.load(f)

    def test_pin_and_unpin(self, runner, env):
        with patch.dict(os.environ, env, clear=True):
            runner.invoke(cli, ['pin', 'ENG-2'])
            assert self.read_preferences(env)['prioritized_ids'] == ['ENG-2']

            runner.invoke(cli, ['pin', 'ENG-2', '--remove'])
            assert self.read_preferences(env)['prioritized_ids'] == []

    def test_exclude(self, runner, env):
        with patch.dict(os.environ, env, clear=True):
            result = runner.invoke(cli, ['exclude', 'ENG-1'])

        assert result.exit_code == 0
        assert self.read_preferences(env)['excluded_ids'] == ['ENG-1']

    def test_set_hours_and_clear(self, runner, env):
        with patch.dict(os.environ, env, clear=True):
            result = runner.invoke(cli, ['set-hours', 'ENG-1', '3'])
            assert "Set ENG-1 to 3h" in result.output
            assert self.read_preferences(env)['custom_hours'] == {'ENG-1': 3.0}

            runner.invoke(cli, ['set-hours', 'ENG-1', '0'])
            assert self.read_preferences(env)['custom_hours'] == {}

    def test_move_within_category(self, runner, env):
        issues = SourceSnapshot(issues=[
            IssueRecord(id="uuid-3", identifier="ENG-3", title="A", priority=2, state_type="unstarted"),
            IssueRecord(id="uuid-4", identifier="ENG-4", title="B", priority=2, state_type="unstarted"),
        ])
        with patch.dict(os.environ, env, clear=True), \
                patch('dayscope.cli.fetch_work_items', return_value=issues):
            result = runner.invoke(cli, ['move', 'ENG-4', '--before', 'ENG-3'])

        assert result.exit_code == 0, result.output
        assert self.read_preferences(env)['custom_order'] == {'todo_high': ['ENG-4', 'ENG-3']}

    def test_move_across_categories_is_ignored(self, runner, env):
        with patch.dict(os.environ, env, clear=True), \
                patch('dayscope.cli.fetch_work_items', return_value=snapshot()):
            result = runner.invoke(cli, ['move', 'ENG-2', '--before', 'ENG-1'])

        assert result.exit_code == 0
        assert "Order unchanged" in result.output
