"""Versioned migration plan document."""

import json
from pathlib import Path
from typing import Callable, List, Optional, Union

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from .. import __version__
from .actions import Action, describe_actions
from .exceptions import MigrationCancelled, PlanParseError, PlanVersionMismatchError

log = logger.bind(component='MigrationPlan')


class MigrationPlan(BaseModel):
    """Ordered list of actions stamped with the tool version that wrote it."""

    version: str = Field(default=__version__, description='Tool version')
    actions: List[Action] = Field(default_factory=list, description='Actions in order')

    def describe(self) -> str:
        return describe_actions(self.actions)

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        expected_version: str = __version__,
    ) -> 'MigrationPlan':
        """Read a plan file.

        The version is compared before the actions are validated, so a plan
        written by another release is reported as such even when its
        actions no longer parse.

        Args:
            path: Plan file
            expected_version: Version the plan must carry

        Returns:
            Loaded plan

        Raises:
            PlanParseError: If the file is unreadable or has the wrong shape
            PlanVersionMismatchError: If the plan version differs
        """
        path = Path(path)

        try:
            raw = json.loads(path.read_text(encoding='utf-8'))
        except OSError as e:
            raise PlanParseError(f'Cannot read migration file {path}: {e}', path) from e
        except ValueError as e:
            raise PlanParseError(f'Migration file {path} is not valid JSON: {e}', path) from e

        if not isinstance(raw, dict) or not isinstance(raw.get('version'), str):
            raise PlanParseError(
                f'Migration file {path} has no version field', path
            )

        if raw['version'] != expected_version:
            raise PlanVersionMismatchError(expected_version, raw['version'], path)

        try:
            plan = cls.model_validate(raw)
        except ValidationError as e:
            raise PlanParseError(f'Invalid migration file {path}:\n{e}', path) from e

        log.debug(f'Loaded {len(plan.actions)} actions from {path}')
        return plan

    def save(
        self,
        path: Union[str, Path],
        confirm_overwrite: Optional[Callable[[Path], bool]] = None,
    ) -> Path:
        """Write the plan as indented JSON.

        Args:
            path: Destination file
            confirm_overwrite: Asked when the file exists; overwriting is
                refused when it is missing or answers False

        Returns:
            Written path

        Raises:
            MigrationCancelled: If overwriting was not confirmed
        """
        path = Path(path)

        if path.exists() and not (confirm_overwrite and confirm_overwrite(path)):
            raise MigrationCancelled(f'Not overwriting existing file {path}')

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2) + '\n', encoding='utf-8')
        log.info(f'Saved migration plan with {len(self.actions)} actions to {path}')
        return path
