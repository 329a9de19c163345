"""Exceptions raised by the migration core."""

from pathlib import Path
from typing import Optional, Sequence


class MigrationError(Exception):
    """Base exception for migration errors."""

    pass


class PlanError(MigrationError):
    """The migration plan file cannot be used."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class PlanParseError(PlanError):
    """The plan file is not valid JSON in the expected shape."""

    pass


class PlanVersionMismatchError(PlanError):
    """The plan was written by a different version of the tool."""

    def __init__(self, expected: str, found: str, path: Optional[Path] = None):
        super().__init__(
            'Migration file version is not compatible with current version, '
            f'expected: {expected}, found: {found}',
            path=path,
        )
        self.expected = expected
        self.found = found


class MigrationCancelled(MigrationError):
    """The operator declined a confirmation prompt."""

    pass


class ConfigurationError(MigrationError):
    """A required configuration section is missing."""

    pass


class CredentialError(MigrationError):
    """SSH key material could not be staged on disk."""

    pass


class GitError(MigrationError):
    """A git subprocess exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        returncode: Optional[int] = None,
        stderr: str = '',
    ):
        """Initialize git error.

        Args:
            message: Error message
            command: Command line that failed, without secrets
            returncode: Exit status of the process, None on timeout
            stderr: Captured standard error output
        """
        if stderr:
            message = f'{message}\noutput: {stderr.strip()}'
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr


class ActionFailedError(MigrationError):
    """An action of the plan failed and the run was aborted."""

    def __init__(
        self,
        index: int,
        description: str,
        plan_path: Optional[Path],
        cause: BaseException,
    ):
        """Initialize action failure.

        Args:
            index: 1-based position of the action in the plan
            description: Human-readable description of the action
            plan_path: Plan file the action came from
            cause: Underlying error
        """
        super().__init__(
            f'Action {index} of {plan_path or "<in-memory plan>"} failed: '
            f'{description.splitlines()[0]}\n{type(cause).__name__}: {cause}'
        )
        self.index = index
        self.description = description
        self.plan_path = plan_path
        self.cause = cause
