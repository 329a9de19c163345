"""Repository entity models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Repository(BaseModel):
    """Source repository recorded in a migration plan."""

    model_config = ConfigDict(frozen=True)

    clone_link: str = Field(..., description='SSH clone URL on the source host')
    name: str = Field(..., description='Display name')
    full_name: str = Field(..., description='Workspace-qualified name')

    @property
    def slug(self) -> str:
        """Repository name without the workspace prefix."""
        return self.full_name.split('/', 1)[-1]

    @classmethod
    def from_bitbucket(cls, payload: Dict[str, Any]) -> 'Repository':
        """Build a plan entry from a Bitbucket repository payload.

        Raises:
            ValueError: If the repository exposes no SSH clone link
        """
        clone_link = get_ssh_clone_link(payload)
        if clone_link is None:
            raise ValueError(f'missing SSH clone url for {payload.get("full_name")}')

        return cls(
            clone_link=clone_link,
            name=payload['name'],
            full_name=payload['full_name'],
        )


def get_ssh_clone_link(payload: Dict[str, Any]) -> Optional[str]:
    """Return the SSH entry of a Bitbucket ``links.clone`` list."""
    for link in payload.get('links', {}).get('clone', []):
        if link.get('name') == 'ssh':
            return link.get('href')
    return None


class GitHubRepository(BaseModel):
    """Repository as returned by the GitHub API."""

    id: int = Field(..., description='Repository ID')
    name: str = Field(..., description='Repository name')
    full_name: str = Field(..., description='Owner-qualified name')
    ssh_url: str = Field(..., description='SSH push URL')
    default_branch: Optional[str] = Field(
        default=None, description='Default branch name, None for empty repositories'
    )

    def __str__(self) -> str:
        return self.full_name
