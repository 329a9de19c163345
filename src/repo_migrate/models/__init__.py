"""Data models for source, destination and CI entities."""

from .repository import Repository, GitHubRepository
from .team import Team, TeamPrivacy, TeamRepositoryPermission
from .circleci import Context, ContextVariable, EnvVar, ProjectEnvVar

__all__ = [
    'Repository',
    'GitHubRepository',
    'Team',
    'TeamPrivacy',
    'TeamRepositoryPermission',
    'Context',
    'ContextVariable',
    'EnvVar',
    'ProjectEnvVar',
]
