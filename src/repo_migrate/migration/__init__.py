"""Migration plan, actions and execution engine."""

from .actions import (
    Action,
    AddMembersToTeam,
    AssignRepositoriesToTeam,
    BaseAction,
    CreateContext,
    CreateTeam,
    MigrateRepositories,
    MoveEnvironmentalVariables,
    SetRepositoryDefaultBranch,
    StartPipeline,
    describe_actions,
)
from .context import MigrationContext
from .engine import ActionResult, MigrationState, MigrationSummary, Migrator
from .plan import MigrationPlan
from .repositories import (
    RepositoryBatchResult,
    RepositoryMigrationResult,
    RepositoryMigrator,
)
from .retry import ExportOutcome, export_until_consistent

__all__ = [
    'Action',
    'AddMembersToTeam',
    'AssignRepositoriesToTeam',
    'BaseAction',
    'CreateContext',
    'CreateTeam',
    'MigrateRepositories',
    'MoveEnvironmentalVariables',
    'SetRepositoryDefaultBranch',
    'StartPipeline',
    'describe_actions',
    'MigrationContext',
    'ActionResult',
    'MigrationState',
    'MigrationSummary',
    'Migrator',
    'MigrationPlan',
    'RepositoryBatchResult',
    'RepositoryMigrationResult',
    'RepositoryMigrator',
    'ExportOutcome',
    'export_until_consistent',
]
