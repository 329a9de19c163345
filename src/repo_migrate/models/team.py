"""Team entity models."""

from enum import Enum

from pydantic import BaseModel, Field


class TeamRepositoryPermission(str, Enum):
    """Permission a team is granted on a repository."""

    PULL = 'pull'
    TRIAGE = 'triage'
    PUSH = 'push'
    MAINTAIN = 'maintain'
    ADMIN = 'admin'

    @property
    def label(self) -> str:
        """Name shown to operators."""
        return {
            TeamRepositoryPermission.PULL: 'read',
            TeamRepositoryPermission.PUSH: 'write',
        }.get(self, self.value)

    def __str__(self) -> str:
        return self.label


class TeamPrivacy(str, Enum):
    """Team visibility within the organization."""

    SECRET = 'secret'
    CLOSED = 'closed'


class Team(BaseModel):
    """GitHub team."""

    id: int = Field(..., description='Team ID')
    name: str = Field(..., description='Team name')
    slug: str = Field(..., description='URL-safe team name')
    privacy: TeamPrivacy = Field(default=TeamPrivacy.CLOSED, description='Privacy')

    def __str__(self) -> str:
        return self.name
