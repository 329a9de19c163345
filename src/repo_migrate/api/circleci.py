"""CircleCI API client."""

from typing import List

from ..config.config import CircleCIConfig
from ..models.circleci import Context, ContextVariable, ProjectEnvVar
from .client import APIClient
from .exceptions import NotFoundError


class CircleCIClient(APIClient):
    """Client for the CircleCI v1.1 and v2 APIs."""

    connection_check_endpoint = '/v2/me'

    def __init__(self, config: CircleCIConfig, destination_web_url: str):
        """Initialize CircleCI client.

        Args:
            config: CircleCI configuration
            destination_web_url: Web URL of the destination host, used to
                name export targets
        """
        super().__init__(
            config.api_url,
            timeout=config.timeout,
            headers={'Circle-Token': config.token},
        )
        self.config = config
        self.destination_web_url = destination_web_url.rstrip('/')

    async def export_environment(
        self, from_repository: str, to_repository: str, env_vars: List[str]
    ) -> None:
        """Ask CircleCI to copy project variables to another project.

        A successful response does not mean the variables are readable on
        the destination yet.

        Args:
            from_repository: Source repository full name
            to_repository: Destination repository full name
            env_vars: Names of the variables to copy
        """
        endpoint = (
            f'/v1.1/project/{self.config.source_vcs}/{from_repository}'
            '/info/export-environment'
        )
        body = {
            'projects': [f'{self.destination_web_url}/{to_repository}'],
            'env-vars': list(env_vars),
        }
        await self.post_async(endpoint, body)

    async def get_env_vars(self, repository: str) -> List[ProjectEnvVar]:
        """List variables of a destination project; unknown projects have none."""
        endpoint = f'/v2/project/{self.config.destination_vcs}/{repository}/envvar'

        try:
            response = await self.get_async(endpoint)
        except NotFoundError:
            return []

        return [ProjectEnvVar(**item) for item in (response.data or {}).get('items', [])]

    async def create_context(self, name: str) -> Context:
        """Create a context owned by the destination organization."""
        body = {'name': name, 'owner': {'id': self.config.destination_org_id}}
        response = await self.post_async('/v2/context', body)
        return Context(**response.data)

    async def add_context_variable(
        self, context_id: str, name: str, value: str
    ) -> ContextVariable:
        """Create or update a variable of a context."""
        response = await self.put_async(
            f'/v2/context/{context_id}/environment-variable/{name}', {'value': value}
        )
        return ContextVariable(**response.data)

    async def start_pipeline(self, repository: str, branch: str) -> None:
        """Follow a destination project, which triggers its first build."""
        await self.post_async(
            f'/v1.1/project/{self.config.destination_vcs}/{repository}/follow',
            {'branch': branch},
        )
