"""Actions a migration plan is made of.

Actions are a closed set of frozen pydantic models. Each one knows how to
describe itself without doing any I/O and how to run against the clients
held by a :class:`~repo_migrate.migration.context.MigrationContext`. The
``type`` field tags every action in the plan file.
"""

from abc import ABC, abstractmethod
from typing import Annotated, List, Literal, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from ..models.circleci import EnvVar
from ..models.repository import Repository
from ..models.team import TeamRepositoryPermission
from .context import MigrationContext
from .repositories import RepositoryBatchResult
from .retry import export_until_consistent


def _bullets(items: List[str]) -> str:
    return ''.join(f'\n  - {item}' for item in items)


class BaseAction(BaseModel, ABC):
    """Common interface of every plan action."""

    model_config = ConfigDict(frozen=True, extra='forbid')

    @abstractmethod
    def describe(self) -> str:
        """Human-readable description shown before confirmation."""

    @abstractmethod
    async def run(self, context: MigrationContext) -> Optional[RepositoryBatchResult]:
        """Perform the action.

        Args:
            context: Clients and settings of the run

        Returns:
            Batch result for repository migrations, None otherwise
        """

    @property
    def log(self):
        return logger.bind(component=type(self).__name__)


class MigrateRepositories(BaseAction):
    """Mirror repositories from the source host to the destination host."""

    type: Literal['migrate_repositories'] = 'migrate_repositories'
    repositories: List[Repository] = Field(..., description='Repositories to mirror')

    def describe(self) -> str:
        return f'Migrate {len(self.repositories)} repositories:' + _bullets(
            [repository.full_name for repository in self.repositories]
        )

    async def run(self, context: MigrationContext) -> RepositoryBatchResult:
        return await context.repositories.migrate_all(self.repositories)


class CreateTeam(BaseAction):
    """Create a destination team with access to some repositories."""

    type: Literal['create_team'] = 'create_team'
    name: str = Field(..., description='Team name')
    repositories: List[str] = Field(
        default_factory=list, description='Owner-qualified repository names'
    )

    def describe(self) -> str:
        return (
            f"Create team named '{self.name}' with access to "
            f'{len(self.repositories)} repositories:' + _bullets(self.repositories)
        )

    async def run(self, context: MigrationContext) -> None:
        team = await context.destination.create_team(self.name, self.repositories)
        self.log.info(f'Created team {team.name} ({team.slug})')


class AddMembersToTeam(BaseAction):
    """Add members to a team one by one."""

    type: Literal['add_members_to_team'] = 'add_members_to_team'
    team_name: str
    team_slug: str
    members: List[str] = Field(default_factory=list, description='User logins')

    def describe(self) -> str:
        return f'Add {len(self.members)} members to {self.team_name} team:' + _bullets(
            self.members
        )

    async def run(self, context: MigrationContext) -> None:
        for member in self.members:
            await context.destination.update_team_membership(self.team_slug, member)
            self.log.info(f'Added {member} to {self.team_name}')


class AssignRepositoriesToTeam(BaseAction):
    """Grant a team a permission level on repositories."""

    type: Literal['assign_repositories_to_team'] = 'assign_repositories_to_team'
    team_name: str
    team_slug: str
    permission: TeamRepositoryPermission
    repositories: List[str] = Field(
        default_factory=list, description='Owner-qualified repository names'
    )

    def describe(self) -> str:
        return (
            f'Assign {len(self.repositories)} repositories to team '
            f'{self.team_name} ({self.permission.label}):' + _bullets(self.repositories)
        )

    async def run(self, context: MigrationContext) -> None:
        for repository in self.repositories:
            await context.destination.assign_repository_to_team(
                self.team_slug, self.permission, repository
            )
            self.log.info(
                f'Granted {self.team_name} {self.permission.label} on {repository}'
            )


class SetRepositoryDefaultBranch(BaseAction):
    """Change the default branch of a destination repository."""

    type: Literal['set_repository_default_branch'] = 'set_repository_default_branch'
    repository: str = Field(..., description='Owner-qualified repository name')
    branch: str

    def describe(self) -> str:
        return (
            f"Set default branch of '{self.repository}' repository to '{self.branch}'"
        )

    async def run(self, context: MigrationContext) -> None:
        await context.destination.set_repository_default_branch(
            self.repository, self.branch
        )


class MoveEnvironmentalVariables(BaseAction):
    """Copy CircleCI project variables to the destination project."""

    type: Literal['move_environmental_variables'] = 'move_environmental_variables'
    from_repository: str = Field(..., description='Source project')
    to_repository: str = Field(..., description='Destination project')
    env_vars: List[str] = Field(default_factory=list, description='Variable names')

    def describe(self) -> str:
        return (
            f"Move environmental variables from '{self.from_repository}' project "
            f"to '{self.to_repository}' project\n  Envs: {', '.join(self.env_vars)}"
        )

    async def run(self, context: MigrationContext) -> None:
        ci = context.require_ci()
        await export_until_consistent(
            ci,
            self.from_repository,
            self.to_repository,
            self.env_vars,
            max_attempts=context.export_max_attempts,
            delay=context.export_retry_delay,
        )


class CreateContext(BaseAction):
    """Create a CircleCI context and fill in its variables."""

    type: Literal['create_context'] = 'create_context'
    name: str = Field(..., description='Context name')
    variables: List[EnvVar] = Field(default_factory=list)

    def describe(self) -> str:
        lines = ''.join(f'\n  {variable.name}' for variable in self.variables)
        return (
            f"Create context named '{self.name}' with "
            f'{len(self.variables)} variables:' + lines
        )

    async def run(self, context: MigrationContext) -> None:
        ci = context.require_ci()
        created = await ci.create_context(self.name)
        self.log.info(f'Created context {created.name} ({created.id})')

        for variable in self.variables:
            await ci.add_context_variable(created.id, variable.name, variable.value)


class StartPipeline(BaseAction):
    """Trigger the first CircleCI build of a destination project."""

    type: Literal['start_pipeline'] = 'start_pipeline'
    repository: str = Field(..., description='Destination project')
    branch: str

    def describe(self) -> str:
        return f'Start pipeline for {self.repository} on branch {self.branch}'

    async def run(self, context: MigrationContext) -> None:
        await context.require_ci().start_pipeline(self.repository, self.branch)


Action = Annotated[
    Union[
        MigrateRepositories,
        CreateTeam,
        AddMembersToTeam,
        AssignRepositoriesToTeam,
        SetRepositoryDefaultBranch,
        MoveEnvironmentalVariables,
        CreateContext,
        StartPipeline,
    ],
    Field(discriminator='type'),
]


def describe_actions(actions: List[BaseAction]) -> str:
    """Numbered listing of actions, as shown to the operator."""
    lines = [f'There are {len(actions)} actions to be done during migration:']
    lines.extend(
        f'{index}. {action.describe()}' for index, action in enumerate(actions, 1)
    )
    return '\n'.join(lines)
