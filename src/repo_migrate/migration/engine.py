"""Migration engine - loads, confirms and replays a migration plan."""

import time
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from loguru import logger
from pydantic import BaseModel, Field

from .. import __version__
from ..config.config import Config
from .context import MigrationContext
from .exceptions import ActionFailedError, ConfigurationError
from .plan import MigrationPlan
from .repositories import RepositoryBatchResult, RepositoryMigrationResult


class MigrationState(str, Enum):
    """Engine state."""

    IDLE = 'idle'
    PLAN_LOADED = 'plan_loaded'
    CONFIRMED = 'confirmed'
    EXECUTING = 'executing'
    COMPLETED = 'completed'
    ABORTED = 'aborted'
    FAILED = 'failed'


class ActionResult(BaseModel):
    """Outcome of one action of the plan."""

    index: int = Field(..., description='1-based position in the plan')
    type: str = Field(..., description='Action type tag')
    description: str = Field(..., description='Action description')
    success: bool = Field(..., description='Action completed')
    elapsed_seconds: float = Field(default=0.0, description='Wall-clock duration')
    error_message: Optional[str] = Field(
        default=None, description='Error message if failed'
    )


class MigrationSummary(BaseModel):
    """Summary of a migration run."""

    plan_path: Optional[Path] = Field(default=None, description='Plan file')
    state: MigrationState = Field(default=MigrationState.IDLE)

    # Timing
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = Field(
        default=None, description='Migration completion time'
    )
    duration_seconds: float = Field(default=0.0, description='Wall-clock duration')

    actions: List[ActionResult] = Field(default_factory=list)
    repository_failures: List[RepositoryMigrationResult] = Field(
        default_factory=list, description='Repositories that could not be mirrored'
    )

    @property
    def succeeded(self) -> bool:
        return self.state == MigrationState.COMPLETED


class Migrator:
    """Runs a migration plan file from start to end.

    The plan is loaded and version-checked, its description is handed to
    ``confirm`` and, once confirmed, every action runs in plan order. Only
    repository migrations run work concurrently, inside their own action.
    A failing repository is reported in the summary; any other failing
    action stops the run with :class:`ActionFailedError`.
    """

    def __init__(
        self,
        plan_path: Union[str, Path],
        confirm: Callable[[str], bool],
        config: Optional[Config] = None,
        context: Optional[MigrationContext] = None,
        version: str = __version__,
    ):
        """Initialize migrator.

        Args:
            plan_path: Plan file to replay
            confirm: Receives the plan listing, returns True to proceed
            config: Configuration to build clients from when no context is given
            context: Ready-made clients, used as is
            version: Version the plan must carry
        """
        self.plan_path = Path(plan_path)
        self.confirm = confirm
        self.config = config
        self.context = context
        self.version = version

        self.state = MigrationState.IDLE
        self.summary = MigrationSummary(plan_path=self.plan_path)
        self.logger = logger.bind(component='Migrator')

    def load_plan(self) -> MigrationPlan:
        """Load and version-check the plan file."""
        plan = MigrationPlan.load(self.plan_path, expected_version=self.version)
        self._set_state(MigrationState.PLAN_LOADED)
        return plan

    async def migrate(self) -> MigrationSummary:
        """Load, confirm and execute the plan.

        Returns:
            Run summary; its state is ``aborted`` when confirmation was declined

        Raises:
            PlanError: If the plan cannot be loaded
            ConfigurationError: If the API clients cannot be built
            ActionFailedError: If an action fails
        """
        started = time.perf_counter()
        self.summary = MigrationSummary(plan_path=self.plan_path)

        plan = self.load_plan()
        description = plan.describe()
        self.logger.debug(f'Plan {self.plan_path}:\n{description}')

        if not self.confirm(description):
            self.logger.info('Migration declined, nothing was changed')
            self._set_state(MigrationState.ABORTED)
            self._finish(started)
            return self.summary

        self._set_state(MigrationState.CONFIRMED)

        owns_context = self.context is None
        try:
            context = self._get_context()
        except Exception as e:
            self.logger.error(f'Cannot build API clients: {e}')
            self._set_state(MigrationState.FAILED)
            self._finish(started)
            raise

        try:
            await self.execute(plan, context, started)
        finally:
            if owns_context:
                context.close()
                self.context = None

        return self.summary

    async def execute(
        self,
        plan: MigrationPlan,
        context: MigrationContext,
        started: Optional[float] = None,
    ) -> MigrationSummary:
        """Run every action of a plan in order.

        Args:
            plan: Plan to run
            context: Clients used by the actions
            started: ``time.perf_counter`` value the run started at

        Returns:
            Run summary

        Raises:
            ActionFailedError: If an action fails
        """
        if started is None:
            started = time.perf_counter()

        self._set_state(MigrationState.EXECUTING)
        total = len(plan.actions)

        for index, action in enumerate(plan.actions, 1):
            description = action.describe()
            self.logger.info(f'[{index}/{total}] {description.splitlines()[0]}')
            action_started = time.perf_counter()

            try:
                outcome = await action.run(context)
            except Exception as e:
                self.summary.actions.append(
                    ActionResult(
                        index=index,
                        type=action.type,
                        description=description,
                        success=False,
                        elapsed_seconds=time.perf_counter() - action_started,
                        error_message=str(e),
                    )
                )
                self.logger.error(f'Action {index} failed: {e}')
                self._set_state(MigrationState.FAILED)
                self._finish(started)
                raise ActionFailedError(index, description, self.plan_path, e) from e

            if isinstance(outcome, RepositoryBatchResult):
                self.summary.repository_failures.extend(outcome.failed)

            self.summary.actions.append(
                ActionResult(
                    index=index,
                    type=action.type,
                    description=description,
                    success=True,
                    elapsed_seconds=time.perf_counter() - action_started,
                )
            )

        self._set_state(MigrationState.COMPLETED)
        self._finish(started)

        self.logger.info(
            f'Migration completed in {self.summary.duration_seconds:.1f}s: '
            f'{total} actions, {len(self.summary.repository_failures)} '
            'repository failures'
        )
        return self.summary

    def _get_context(self) -> MigrationContext:
        if self.context is None:
            if self.config is None:
                raise ConfigurationError('No configuration to build API clients from')
            self.context = MigrationContext.from_config(self.config)
        return self.context

    def _set_state(self, state: MigrationState) -> None:
        self.logger.debug(f'State {self.state.value} -> {state.value}')
        self.state = state
        self.summary.state = state

    def _finish(self, started: float) -> None:
        self.summary.completed_at = datetime.now()
        self.summary.duration_seconds = time.perf_counter() - started
