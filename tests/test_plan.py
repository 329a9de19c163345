"""Tests for the migration plan document."""

import json

import pytest

from repo_migrate import __version__
from repo_migrate.migration.actions import (
    AddMembersToTeam,
    AssignRepositoriesToTeam,
    CreateContext,
    CreateTeam,
    MigrateRepositories,
    MoveEnvironmentalVariables,
    SetRepositoryDefaultBranch,
    StartPipeline,
)
from repo_migrate.migration.exceptions import (
    MigrationCancelled,
    PlanParseError,
    PlanVersionMismatchError,
)
from repo_migrate.migration.plan import MigrationPlan
from repo_migrate.models.circleci import EnvVar
from repo_migrate.models.team import TeamRepositoryPermission

from factories import make_repository


def _every_action():
    return [
        MigrateRepositories(repositories=[make_repository('api'), make_repository('web')]),
        CreateTeam(name='Developers', repositories=['acme-gh/api']),
        AddMembersToTeam(team_name='Developers', team_slug='developers', members=['alice']),
        AssignRepositoriesToTeam(
            team_name='Developers',
            team_slug='developers',
            permission=TeamRepositoryPermission.TRIAGE,
            repositories=['acme-gh/api'],
        ),
        SetRepositoryDefaultBranch(repository='acme-gh/api', branch='main'),
        MoveEnvironmentalVariables(
            from_repository='acme/api', to_repository='acme-gh/api', env_vars=['A', 'B']
        ),
        CreateContext(name='deploy', variables=[EnvVar(name='TOKEN', value='s3cr3t')]),
        StartPipeline(repository='acme-gh/api', branch='main'),
    ]


def _write(path, data):
    path.write_text(json.dumps(data))
    return path


class TestMigrationPlan:
    """Test plan save and load."""

    def test_round_trip(self, tmp_path):
        """Test every action survives save and load unchanged."""
        plan = MigrationPlan(actions=_every_action())
        path = tmp_path / 'migration.json'

        plan.save(path)
        loaded = MigrationPlan.load(path)

        assert loaded == plan
        assert [type(action) for action in loaded.actions] == [
            type(action) for action in plan.actions
        ]

    def test_file_format(self, tmp_path):
        """Test actions are tagged with their type."""
        path = MigrationPlan(actions=_every_action()).save(tmp_path / 'migration.json')

        data = json.loads(path.read_text())
        assert data['version'] == __version__
        assert [action['type'] for action in data['actions']] == [
            'migrate_repositories',
            'create_team',
            'add_members_to_team',
            'assign_repositories_to_team',
            'set_repository_default_branch',
            'move_environmental_variables',
            'create_context',
            'start_pipeline',
        ]
        assert data['actions'][3]['permission'] == 'triage'
        assert data['actions'][6]['variables'] == [{'name': 'TOKEN', 'value': 's3cr3t'}]

    def test_describe(self):
        """Test plan listing."""
        plan = MigrationPlan(actions=[StartPipeline(repository='acme-gh/api', branch='main')])

        assert plan.describe() == (
            'There are 1 actions to be done during migration:\n'
            '1. Start pipeline for acme-gh/api on branch main'
        )

    def test_version_mismatch(self, tmp_path):
        """Test plans from another version are refused."""
        path = _write(tmp_path / 'plan.json', {'version': '0.0.1', 'actions': []})

        with pytest.raises(PlanVersionMismatchError) as exc_info:
            MigrationPlan.load(path)

        assert exc_info.value.expected == __version__
        assert exc_info.value.found == '0.0.1'
        assert str(exc_info.value) == (
            'Migration file version is not compatible with current version, '
            f'expected: {__version__}, found: 0.0.1'
        )

    def test_version_checked_before_actions(self, tmp_path):
        """Test a version mismatch wins over unknown actions."""
        path = _write(
            tmp_path / 'plan.json',
            {'version': '9.9.9', 'actions': [{'type': 'delete_everything'}]},
        )

        with pytest.raises(PlanVersionMismatchError):
            MigrationPlan.load(path)

    def test_version_is_compared_as_string(self, tmp_path):
        """Test versions are compared exactly."""
        path = _write(tmp_path / 'plan.json', {'version': '0.1', 'actions': []})

        with pytest.raises(PlanVersionMismatchError):
            MigrationPlan.load(path, expected_version='0.1.0')

    @pytest.mark.parametrize(
        'content',
        [
            'not json',
            '[]',
            '{"actions": []}',
            '{"version": 1, "actions": []}',
        ],
    )
    def test_malformed_file(self, tmp_path, content):
        """Test malformed files are parse errors."""
        path = tmp_path / 'plan.json'
        path.write_text(content)

        with pytest.raises(PlanParseError):
            MigrationPlan.load(path)

    def test_unknown_action(self, tmp_path):
        """Test unknown action types are parse errors."""
        path = _write(
            tmp_path / 'plan.json',
            {'version': __version__, 'actions': [{'type': 'delete_everything'}]},
        )

        with pytest.raises(PlanParseError) as exc_info:
            MigrationPlan.load(path)

        assert exc_info.value.path == path

    def test_missing_file(self, tmp_path):
        """Test missing files are parse errors."""
        with pytest.raises(PlanParseError, match='Cannot read migration file'):
            MigrationPlan.load(tmp_path / 'missing.json')

    def test_save_refuses_overwrite(self, tmp_path):
        """Test declining overwrite keeps the file."""
        path = tmp_path / 'migration.json'
        path.write_text('keep me')
        asked = []

        def decline(p):
            asked.append(p)
            return False

        with pytest.raises(MigrationCancelled):
            MigrationPlan().save(path, confirm_overwrite=decline)

        assert asked == [path]
        assert path.read_text() == 'keep me'

    def test_save_without_prompt_refuses_overwrite(self, tmp_path):
        """Test overwriting needs an explicit confirmation."""
        path = tmp_path / 'migration.json'
        path.write_text('keep me')

        with pytest.raises(MigrationCancelled):
            MigrationPlan().save(path)

    def test_save_confirmed_overwrite(self, tmp_path):
        """Test confirmed overwrite replaces the file."""
        path = tmp_path / 'migration.json'
        path.write_text('old')

        MigrationPlan().save(path, confirm_overwrite=lambda p: True)

        assert MigrationPlan.load(path).actions == []
