"""GitHub API client (destination host)."""

from typing import List

from ..config.config import GitHubConfig
from ..models.repository import GitHubRepository
from ..models.team import Team, TeamPrivacy, TeamRepositoryPermission
from .client import APIClient
from .exceptions import UnprocessableEntityError


class GitHubClient(APIClient):
    """Client for the destination GitHub organization."""

    connection_check_endpoint = '/user'

    def __init__(self, config: GitHubConfig):
        """Initialize GitHub client.

        Args:
            config: GitHub organization configuration
        """
        super().__init__(
            config.api_url,
            timeout=config.timeout,
            basic_auth=(config.username, config.token),
            headers={'Accept': 'application/vnd.github+json'},
        )
        self.config = config
        self.organization = config.organization_name

    async def create_repository(self, name: str) -> GitHubRepository:
        """Create a private repository in the organization.

        An existing repository with the same name is returned instead, so
        re-running against a partially migrated organization succeeds.

        Args:
            name: Repository name without owner

        Returns:
            Created or existing repository
        """
        body = {
            'name': name,
            'auto_init': False,
            'private': True,
            'visibility': 'private',
        }

        try:
            response = await self.post_async(f'/orgs/{self.organization}/repos', body)
        except UnprocessableEntityError:
            self.logger.info(f'Repository {name} already exists, reusing it')
            return await self.get_repository(name)

        return GitHubRepository(**response.data)

    async def get_repository(self, name: str) -> GitHubRepository:
        """Fetch a repository of the organization by name."""
        response = await self.get_async(f'/repos/{self.organization}/{name}')
        return GitHubRepository(**response.data)

    def get_repositories(self) -> List[GitHubRepository]:
        """List every repository of the organization."""
        items = self.get_paginated(f'/orgs/{self.organization}/repos')
        return [GitHubRepository(**item) for item in items]

    def get_teams(self) -> List[Team]:
        """List teams of the organization, secret teams excluded."""
        items = self.get_paginated(f'/orgs/{self.organization}/teams')
        teams = [Team(**item) for item in items]
        return [team for team in teams if team.privacy != TeamPrivacy.SECRET]

    async def create_team(self, name: str, repositories: List[str]) -> Team:
        """Create a closed team with access to the given repositories.

        Args:
            name: Team name
            repositories: Owner-qualified repository names

        Returns:
            Created team
        """
        body = {
            'name': name,
            'repo_names': list(repositories),
            'privacy': TeamPrivacy.CLOSED.value,
        }
        response = await self.post_async(f'/orgs/{self.organization}/teams', body)
        return Team(**response.data)

    async def update_team_membership(self, team_slug: str, member: str) -> None:
        """Add a user to a team as a regular member."""
        await self.put_async(
            f'/orgs/{self.organization}/teams/{team_slug}/memberships/{member}',
            {'role': 'member'},
        )

    async def assign_repository_to_team(
        self,
        team_slug: str,
        permission: TeamRepositoryPermission,
        repository: str,
    ) -> None:
        """Grant a team a permission level on a repository.

        Args:
            team_slug: Team slug
            permission: Permission to grant
            repository: Owner-qualified repository name
        """
        await self.put_async(
            f'/orgs/{self.organization}/teams/{team_slug}/repos/{repository}',
            {'permission': TeamRepositoryPermission(permission).value},
        )

    async def set_repository_default_branch(
        self, repository: str, branch: str
    ) -> GitHubRepository:
        """Change the default branch of a repository."""
        response = await self.patch_async(
            f'/repos/{repository}', {'default_branch': branch}
        )
        return GitHubRepository(**response.data)
