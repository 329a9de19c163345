"""Tests for CLI interface."""

import json

import pytest
import yaml
from unittest.mock import AsyncMock, MagicMock, Mock, patch
from click.testing import CliRunner

from repo_migrate import __version__
from repo_migrate.cli.main import cli, _load_config
from repo_migrate.migration.actions import StartPipeline
from repo_migrate.migration.engine import ActionResult, MigrationState, MigrationSummary
from repo_migrate.migration.exceptions import ActionFailedError
from repo_migrate.migration.plan import MigrationPlan
from repo_migrate.migration.repositories import RepositoryMigrationResult


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep loguru sinks away from the runner's streams."""
    with patch('repo_migrate.cli.main.setup_logging'):
        yield


def _plan(tmp_path, version=__version__):
    path = tmp_path / 'migration.json'
    MigrationPlan(
        version=version,
        actions=[StartPipeline(repository='acme-gh/api', branch='main')],
    ).save(path)
    return path


class TestCLI:
    """Test CLI commands."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_cli_help(self):
        """Test CLI help command."""
        result = self.runner.invoke(cli, ['--help'])

        assert result.exit_code == 0
        assert 'Repository Migration Tool' in result.output
        for command in ('init', 'describe', 'migrate', 'new-plan', 'validate'):
            assert command in result.output

    def test_cli_version(self):
        """Test CLI version command."""
        result = self.runner.invoke(cli, ['--version'])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_init_command(self, tmp_path):
        """Test init command."""
        config_path = tmp_path / 'config.yaml'

        result = self.runner.invoke(cli, ['init', '--output', str(config_path)])

        assert result.exit_code == 0
        assert 'Configuration template created' in result.output
        assert set(yaml.safe_load(config_path.read_text())) >= {
            'bitbucket',
            'github',
            'git',
        }

    def test_describe_command(self, tmp_path):
        """Test describe prints the plan listing."""
        path = _plan(tmp_path)

        result = self.runner.invoke(cli, ['describe', str(path)])

        assert result.exit_code == 0
        assert 'There are 1 actions to be done during migration:' in result.output
        assert '1. Start pipeline for acme-gh/api on branch main' in result.output

    def test_describe_version_mismatch(self, tmp_path):
        """Test describe refuses plans from other versions."""
        path = _plan(tmp_path, version='0.0.1')

        result = self.runner.invoke(cli, ['describe', str(path)])

        assert result.exit_code == 1
        assert 'Cannot read migration plan' in result.output

    def test_new_plan_command(self, tmp_path):
        """Test an empty plan is written."""
        path = tmp_path / 'plan.json'

        result = self.runner.invoke(cli, ['new-plan', '-o', str(path)])

        assert result.exit_code == 0
        assert json.loads(path.read_text()) == {'version': __version__, 'actions': []}

    def test_new_plan_declined_overwrite(self, tmp_path):
        """Test declining overwrite keeps the file and exits cleanly."""
        path = tmp_path / 'plan.json'
        path.write_text('keep me')

        result = self.runner.invoke(cli, ['new-plan', '-o', str(path)], input='n\n')

        assert result.exit_code == 0
        assert 'Not overwriting' in result.output
        assert path.read_text() == 'keep me'

    @patch('repo_migrate.cli.main._load_config')
    @patch('repo_migrate.cli.main.Migrator')
    def test_migrate_command_success(self, mock_migrator_class, mock_load_config, tmp_path, config):
        """Test successful migrate command."""
        mock_load_config.return_value = config
        summary = MigrationSummary(
            state=MigrationState.COMPLETED,
            duration_seconds=3.5,
            actions=[
                ActionResult(
                    index=1,
                    type='migrate_repositories',
                    description='Migrate 2 repositories:\n  - acme/api\n  - acme/broken',
                    success=True,
                    elapsed_seconds=3.4,
                )
            ],
            repository_failures=[
                RepositoryMigrationResult(
                    full_name='acme/broken',
                    success=False,
                    error_message='clone failed',
                    work_dir=tmp_path / 'acme_broken-x',
                )
            ],
        )
        mock_migrator_class.return_value.migrate = AsyncMock(return_value=summary)

        result = self.runner.invoke(cli, ['migrate', str(_plan(tmp_path)), '--yes'])

        assert result.exit_code == 0
        assert 'Migration Summary' in result.output
        assert 'acme/broken: clone failed' in result.output
        assert 'Migration completed' in result.output
        args, kwargs = mock_migrator_class.call_args
        assert kwargs['config'] is config
        assert args[1]('listing') is True

    @patch('repo_migrate.cli.main._load_config')
    def test_migrate_command_declined(self, mock_load_config, tmp_path, config):
        """Test declining the prompt exits cleanly without changes."""
        mock_load_config.return_value = config

        with patch('repo_migrate.migration.context.MigrationContext.from_config') as mock_from_config:
            result = self.runner.invoke(cli, ['migrate', str(_plan(tmp_path))], input='n\n')

        assert result.exit_code == 0
        assert 'Start pipeline for acme-gh/api on branch main' in result.output
        assert 'Migration cancelled' in result.output
        mock_from_config.assert_not_called()

    @patch('repo_migrate.cli.main._load_config')
    @patch('repo_migrate.cli.main.Migrator')
    def test_migrate_command_action_failure(self, mock_migrator_class, mock_load_config, tmp_path, config):
        """Test a failing action exits with status 1."""
        mock_load_config.return_value = config
        migrator = mock_migrator_class.return_value
        migrator.summary = MigrationSummary(state=MigrationState.FAILED)
        migrator.migrate = AsyncMock(
            side_effect=ActionFailedError(1, 'Start pipeline', tmp_path / 'm.json', RuntimeError('boom'))
        )

        result = self.runner.invoke(cli, ['migrate', str(_plan(tmp_path)), '--yes'])

        assert result.exit_code == 1
        assert 'Migration failed' in result.output
        assert 'boom' in result.output

    @patch('repo_migrate.cli.main._load_config')
    def test_migrate_command_config_not_found(self, mock_load_config, tmp_path):
        """Test migrate command when config is not found."""
        mock_load_config.side_effect = FileNotFoundError('Configuration file not found')

        result = self.runner.invoke(cli, ['migrate', str(_plan(tmp_path))])

        assert result.exit_code == 1
        assert 'Configuration file not found' in result.output

    @patch('repo_migrate.cli.main._load_config')
    def test_validate_command_success(self, mock_load_config, config):
        """Test successful validate command."""
        mock_load_config.return_value = config
        clients = {}
        for name in ('BitbucketClient', 'GitHubClient', 'CircleCIClient'):
            client = MagicMock()
            client.test_connection.return_value = True
            clients[name] = client

        with patch('repo_migrate.cli.main.BitbucketClient', return_value=clients['BitbucketClient']), \
                patch('repo_migrate.cli.main.GitHubClient', return_value=clients['GitHubClient']), \
                patch('repo_migrate.cli.main.CircleCIClient', return_value=clients['CircleCIClient']):
            result = self.runner.invoke(cli, ['validate'])

        assert result.exit_code == 0
        assert 'Connectivity validation passed' in result.output
        for client in clients.values():
            client.test_connection.assert_called_once()

    @patch('repo_migrate.cli.main._load_config')
    def test_validate_command_connection_failure(self, mock_load_config, config):
        """Test validate exits with 1 when a host is unreachable."""
        mock_load_config.return_value = config
        failing = MagicMock()
        failing.test_connection.return_value = False
        working = MagicMock()
        working.test_connection.return_value = True

        with patch('repo_migrate.cli.main.BitbucketClient', return_value=failing), \
                patch('repo_migrate.cli.main.GitHubClient', return_value=working), \
                patch('repo_migrate.cli.main.CircleCIClient', return_value=working):
            result = self.runner.invoke(cli, ['validate'])

        assert result.exit_code == 1
        assert 'Connectivity validation failed' in result.output


class TestConfigLoading:
    """Test configuration loading functions."""

    @patch('repo_migrate.config.config.Config.from_file')
    def test_load_config_with_file(self, mock_from_file):
        """Test loading config from specified file."""
        mock_config = Mock()
        mock_from_file.return_value = mock_config

        mock_ctx = Mock()
        mock_ctx.obj = {'config_path': '/path/to/config.yaml'}

        assert _load_config(mock_ctx) is mock_config
        mock_from_file.assert_called_once_with('/path/to/config.yaml')

    @patch('repo_migrate.config.config.Config.from_file')
    def test_load_config_default_locations(self, mock_from_file, tmp_path, monkeypatch):
        """Test loading config from default locations."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / 'config.yml').write_text('{}')
        mock_ctx = Mock()
        mock_ctx.obj = {}

        _load_config(mock_ctx)

        mock_from_file.assert_called_once_with('config.yml')

    @patch('repo_migrate.config.config.Config.from_env')
    def test_load_config_nothing_found(self, mock_from_env, tmp_path, monkeypatch):
        """Test a helpful error when no configuration exists."""
        monkeypatch.chdir(tmp_path)
        mock_from_env.side_effect = ValueError('field required')
        mock_ctx = Mock()
        mock_ctx.obj = {}

        with pytest.raises(FileNotFoundError, match='repo-migrate init'):
            _load_config(mock_ctx)
