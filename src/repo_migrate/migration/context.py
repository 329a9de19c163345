"""Collaborators shared by every action of a run."""

from dataclasses import dataclass
from typing import Optional

from ..api.circleci import CircleCIClient
from ..api.github import GitHubClient
from ..config.config import Config
from .exceptions import ConfigurationError
from .repositories import RepositoryMigrator
from .retry import DEFAULT_MAX_ATTEMPTS


@dataclass
class MigrationContext:
    """Clients and settings handed to each action."""

    destination: GitHubClient
    repositories: RepositoryMigrator
    ci: Optional[CircleCIClient] = None
    export_max_attempts: int = DEFAULT_MAX_ATTEMPTS
    export_retry_delay: float = 0.0

    @classmethod
    def from_config(cls, config: Config) -> 'MigrationContext':
        """Build every client from the run configuration."""
        destination = GitHubClient(config.github)
        context = cls(
            destination=destination,
            repositories=RepositoryMigrator(destination, config.git),
        )

        if config.circleci is not None:
            context.ci = CircleCIClient(config.circleci, config.github.web_url)
            context.export_max_attempts = config.circleci.export_max_attempts
            context.export_retry_delay = config.circleci.export_retry_delay

        return context

    def require_ci(self) -> CircleCIClient:
        """Return the CircleCI client or fail if CircleCI is not configured."""
        if self.ci is None:
            raise ConfigurationError(
                'CircleCI is not configured; add a circleci section to the configuration'
            )
        return self.ci

    def close(self) -> None:
        """Close every HTTP session."""
        for client in (self.destination, self.ci):
            if client is not None:
                client.close()
