"""Tests for flow CLI commands."""

import json

import pytest
from click.testing import CliRunner

from dataknobs_flow import load_flow, render_mermaid, render_text
from dataknobs_flow.cli.main import cli

LOOP_CONFIG = {
    "name": "loop",
    "start": "draft",
    "activities": [
        {"id": "draft", "to": "review"},
        {
            "id": "review",
            "conditions": {
                "branches": [{"when": "approved", "to": "$end"}],
                "otherwise": "draft",
            },
        },
    ],
}


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def nested_file(nested_config, write_config):
    """Nested flow written as YAML."""
    return str(write_config(nested_config))


class TestCLIMain:
    """Test main CLI command."""

    def test_cli_version(self, runner):
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert '0.1.0' in result.output

    def test_cli_help(self, runner):
        result = runner.invoke(cli, ['--help'])
        assert result.exit_code == 0
        for command in ('validate', 'show', 'simulate', 'schema'):
            assert command in result.output


class TestValidateCommand:
    """Test the validate command."""

    def test_valid_file(self, runner, nested_file):
        result = runner.invoke(cli, ['validate', nested_file])
        assert result.exit_code == 0
        assert 'Flow definition is valid' in result.output

    def test_details(self, runner, nested_file):
        result = runner.invoke(cli, ['validate', nested_file, '--details'])
        assert result.exit_code == 0
        assert 'Name: nested' in result.output
        assert 'Activities: 5' in result.output
        assert 'Conditions: 5' in result.output
        assert 'Version: 1.0.0' in result.output
        assert 'Description' not in result.output

    def test_details_show_description_and_metadata(self, runner, nested_config, write_config):
        config = dict(nested_config, version='2.1', description='Nested routing', metadata={'owner': 'ops'})
        result = runner.invoke(cli, ['validate', str(write_config(config)), '-d'])
        assert result.exit_code == 0
        assert 'Version: 2.1' in result.output
        assert 'Description: Nested routing' in result.output
        assert 'Metadata: {"owner": "ops"}' in result.output

    def test_invalid_schema(self, runner, write_config):
        path = write_config({'name': 'broken', 'activities': []})
        result = runner.invoke(cli, ['validate', str(path)])
        assert result.exit_code == 1
        assert 'Error loading flow' in result.output

    def test_unsound_graph(self, runner, write_config):
        path = write_config({'name': 'no end', 'start': 'a', 'activities': [{'id': 'a', 'to': 'a'}]})
        result = runner.invoke(cli, ['validate', str(path)])
        assert result.exit_code == 1
        assert 'Error loading flow' in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ['validate', str(tmp_path / 'missing.yaml')])
        assert result.exit_code == 2

    @pytest.mark.parametrize('name', ['flow.yaml', 'flow.json'])
    def test_undecodable_file(self, runner, tmp_path, name):
        path = tmp_path / name
        path.write_bytes(b'\xff\xfe')
        result = runner.invoke(cli, ['validate', str(path)])
        assert result.exit_code == 1
        assert 'Error loading flow' in result.output

    def test_directory_path(self, runner, tmp_path):
        path = tmp_path / 'dir.yaml'
        path.mkdir()
        result = runner.invoke(cli, ['validate', str(path)])
        assert result.exit_code == 1
        assert 'Error loading flow' in result.output


class TestShowCommand:
    """Test the show command."""

    def test_text(self, runner, nested_config, nested_file):
        result = runner.invoke(cli, ['show', nested_file])
        assert result.exit_code == 0
        assert result.output == render_text(load_flow(nested_config))

    def test_mermaid(self, runner, nested_config, nested_file):
        result = runner.invoke(cli, ['show', nested_file, '--format', 'mermaid'])
        assert result.exit_code == 0
        assert result.output == render_mermaid(load_flow(nested_config))

    def test_tree(self, runner, nested_file):
        result = runner.invoke(cli, ['show', nested_file, '-f', 'tree'])
        assert result.exit_code == 0
        assert 'START' in result.output
        assert 'if 3000' in result.output
        assert 'otherwise' in result.output

    def test_tree_shows_descriptions(self, runner, write_config):
        config = {
            'name': 'orders',
            'version': '3.0',
            'description': 'Order routing',
            'start': 'ship',
            'activities': [
                {'id': 'ship', 'to': '$end', 'description': 'Send it', 'metadata': {'team': 'dock'}},
            ],
        }
        result = runner.invoke(cli, ['show', str(write_config(config)), '-f', 'tree'])
        assert result.exit_code == 0
        assert 'orders v3.0 - Order routing' in result.output
        assert 'ship - Send it' in result.output
        assert 'metadata: {"team": "dock"}' in result.output


class TestSimulateCommand:
    """Test the simulate command."""

    def test_json_output(self, runner, nested_file):
        result = runner.invoke(cli, [
            'simulate', nested_file, '-c', '100=true', '-c', '200=yes', '-f', 'json',
        ])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data['flow'] == 'nested'
        assert data['finished'] is True
        assert data['steps'] == 5
        assert data['events'][0] == {'kind': 'enter_from_start', 'from': None, 'to': 1}
        assert data['events'][-1] == {'kind': 'reach_end', 'from': 5, 'to': None}

    def test_default_value(self, runner, nested_file):
        result = runner.invoke(cli, [
            'simulate', nested_file, '--default', 'true', '-c', '200=false', '-f', 'json',
        ])
        assert result.exit_code == 0
        events = json.loads(result.output)['events']
        assert events[1] == {'kind': 'transition', 'from': 1, 'to': 3}

    def test_table_output(self, runner, nested_file):
        result = runner.invoke(cli, ['simulate', nested_file, '-c', '100=false'])
        assert result.exit_code == 0
        assert 'nested - Simulation' in result.output
        assert 'Moves: 2' in result.output
        assert 'Flow finished' in result.output

    def test_start_at(self, runner, nested_file):
        result = runner.invoke(cli, ['simulate', nested_file, '--start-at', '3', '-f', 'json'])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data['steps'] == 2
        assert [event['kind'] for event in data['events']] == ['transition', 'transition', 'reach_end']
        assert data['events'][0]['from'] == 3

    def test_start_at_unknown_activity(self, runner, nested_file):
        result = runner.invoke(cli, ['simulate', nested_file, '-s', '42'])
        assert result.exit_code == 1
        assert 'Unknown activity' in result.output

    @pytest.mark.parametrize('condition', ['100=maybe', '100', '=true'])
    def test_bad_condition(self, runner, nested_file, condition):
        result = runner.invoke(cli, ['simulate', nested_file, '-c', condition])
        assert result.exit_code == 2

    def test_max_steps(self, runner, write_config):
        path = write_config(LOOP_CONFIG)
        result = runner.invoke(cli, ['simulate', str(path), '--max-steps', '4'])
        assert result.exit_code == 0
        assert 'Moves: 4' in result.output
        assert 'Flow not finished after 4 moves' in result.output

    def test_loop_exits_when_approved(self, runner, write_config):
        path = write_config(LOOP_CONFIG)
        result = runner.invoke(cli, ['simulate', str(path), '-c', 'approved=true', '-f', 'json'])
        data = json.loads(result.output)
        assert data['finished'] is True
        assert data['events'][-1] == {'kind': 'reach_end', 'from': 'review', 'to': None}


class TestSchemaCommand:
    """Test the schema command."""

    def test_schema(self, runner):
        result = runner.invoke(cli, ['schema'])
        assert result.exit_code == 0
        schema = json.loads(result.output)
        assert 'activities' in schema['properties']
