"""Concurrent mirroring of a batch of repositories."""

import asyncio
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from ..api.exceptions import APIError
from ..api.github import GitHubClient
from ..config.config import GitConfig
from ..git.credentials import StagedKeys, staged_ssh_keys
from ..git.mirror import GitMirror
from ..models.repository import Repository
from .exceptions import GitError


class RepositoryMigrationResult(BaseModel):
    """Outcome of mirroring one repository."""

    full_name: str = Field(..., description='Source repository full name')
    success: bool = Field(..., description='Repository was mirrored')
    destination: Optional[str] = Field(
        default=None, description='Destination repository full name'
    )
    error_message: Optional[str] = Field(
        default=None, description='Error message if failed'
    )
    work_dir: Optional[Path] = Field(
        default=None, description='Clone directory kept for investigation'
    )


class RepositoryBatchResult(BaseModel):
    """Outcome of a MigrateRepositories action."""

    results: List[RepositoryMigrationResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> List[RepositoryMigrationResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[RepositoryMigrationResult]:
        return [r for r in self.results if not r.success]


class RepositoryMigrator:
    """Mirrors repositories from the source host to GitHub."""

    def __init__(
        self,
        destination: GitHubClient,
        git_config: GitConfig,
        mirror: Optional[GitMirror] = None,
    ):
        """Initialize repository migrator.

        Args:
            destination: Destination GitHub client
            git_config: Keys and temp directory settings
            mirror: Git mirror runner, built from ``git_config`` if None
        """
        self.destination = destination
        self.git_config = git_config
        self.mirror = mirror or GitMirror(
            git_binary=git_config.git_binary, timeout=git_config.timeout
        )
        self.logger = logger.bind(component='RepositoryMigrator')

    async def migrate_all(
        self, repositories: List[Repository]
    ) -> RepositoryBatchResult:
        """Mirror every repository concurrently.

        A failing repository is recorded and does not affect the others.
        Failing to stage the keys aborts the whole batch.

        Args:
            repositories: Repositories to mirror

        Returns:
            Result per repository, in input order

        Raises:
            CredentialError: If the SSH keys cannot be staged
        """
        self.logger.info(f'Migrating {len(repositories)} repositories')

        with staged_ssh_keys(
            self.git_config.pull_ssh_key,
            self.git_config.push_ssh_key,
            self.git_config.temp_dir,
        ) as keys:
            results = await asyncio.gather(
                *(self.migrate_repository(repository, keys) for repository in repositories)
            )

        batch = RepositoryBatchResult(results=list(results))
        self._log_summary(batch)
        return batch

    async def migrate_repository(
        self, repository: Repository, keys: StagedKeys
    ) -> RepositoryMigrationResult:
        """Clone, create and push one repository.

        The clone directory is removed on success and kept on failure.
        """
        log = self.logger.bind(repository=repository.full_name)
        work_dir: Optional[Path] = None

        try:
            work_dir = Path(
                tempfile.mkdtemp(
                    prefix=f'{repository.full_name.replace("/", "_")}-',
                    dir=self.git_config.temp_dir,
                )
            )
            mirror_dir = work_dir / f'{repository.slug}.git'

            log.info(f'[1/4] Cloning {repository.full_name}')
            await self.mirror.clone_mirror(
                repository.clone_link, mirror_dir, keys.pull_key
            )

            log.info(f'[2/4] Creating {repository.slug} repository in GitHub')
            destination = await self.destination.create_repository(repository.slug)

            log.info(f'[3/4] Mirroring {repository.full_name} to {destination.full_name}')
            await self.mirror.push_mirror(mirror_dir, destination.ssh_url, keys.push_key)

        except (GitError, APIError, OSError) as e:
            log.error(f'Failed to migrate repository {repository.full_name}: {e}')
            return self._failed(repository, e, work_dir)
        except Exception as e:
            log.opt(exception=e).error(
                f'Unexpected error migrating repository {repository.full_name}: {e}'
            )
            return self._failed(repository, e, work_dir)

        log.info(f'[4/4] Deleting {repository.full_name} from temp directory')
        try:
            shutil.rmtree(work_dir)
        except OSError as e:
            log.warning(f'Failed to remove clone directory {work_dir}: {e}')

        log.info(f'Migrated {repository.full_name} successfully')
        return RepositoryMigrationResult(
            full_name=repository.full_name,
            success=True,
            destination=destination.full_name,
        )

    def _failed(
        self, repository: Repository, error: Exception, work_dir: Optional[Path]
    ) -> RepositoryMigrationResult:
        if work_dir is not None:
            self.logger.bind(repository=repository.full_name).info(
                f'Clone directory kept for investigation: {work_dir}'
            )
        return RepositoryMigrationResult(
            full_name=repository.full_name,
            success=False,
            error_message=str(error) or type(error).__name__,
            work_dir=work_dir,
        )

    def _log_summary(self, batch: RepositoryBatchResult) -> None:
        self.logger.info(
            f'Repository migration finished: {len(batch.succeeded)} succeeded, '
            f'{len(batch.failed)} failed'
        )
        for failure in batch.failed:
            self.logger.error(f'  {failure.full_name}: {failure.error_message}')
