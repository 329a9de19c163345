"""Bitbucket Cloud API client (source host)."""

from typing import Any, Dict, List, Optional

from ..config.config import BitbucketConfig
from ..models.repository import Repository
from .client import APIClient
from .exceptions import NotFoundError


class BitbucketClient(APIClient):
    """Read-only client for the source Bitbucket workspace."""

    connection_check_endpoint = '/user'

    def __init__(self, config: BitbucketConfig):
        """Initialize Bitbucket client.

        Args:
            config: Bitbucket workspace configuration
        """
        super().__init__(
            config.api_url,
            timeout=config.timeout,
            basic_auth=(config.username, config.password),
        )
        self.config = config

    def get_all_pages(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Follow Bitbucket ``next`` links until the last page.

        Args:
            endpoint: First page endpoint
            params: Query parameters for the first page

        Returns:
            Values of every page
        """
        values = []
        url: Optional[str] = endpoint

        while url:
            response = self.get(url, params=params)
            page = response.data or {}
            values.extend(page.get('values', []))
            url = page.get('next')
            # the next link already carries the query string
            params = None

        return values

    def get_projects(self) -> List[Dict[str, Any]]:
        """List projects of the workspace."""
        return self.get_all_pages(f'/workspaces/{self.config.workspace_name}/projects')

    def get_project_repositories(self, project_key: str) -> List[Repository]:
        """List repositories of one project as plan entries.

        Args:
            project_key: Bitbucket project key

        Returns:
            Repositories with their SSH clone links
        """
        payloads = self.get_all_pages(
            f'/repositories/{self.config.workspace_name}',
            params={'q': f'project.key="{project_key}"', 'pagelen': 100},
        )
        return [Repository.from_bitbucket(payload) for payload in payloads]

    def get_repository(self, full_name: str) -> Optional[Repository]:
        """Fetch one repository, or None if it does not exist."""
        try:
            response = self.get(f'/repositories/{full_name}')
        except NotFoundError:
            return None

        return Repository.from_bitbucket(response.data)

    def get_repository_branches(self, full_name: str) -> List[str]:
        """List branch names of a repository."""
        branches = self.get_all_pages(
            f'/repositories/{full_name}/refs/branches', params={'pagelen': 100}
        )
        return [branch['name'] for branch in branches]
