"""Best-effort export of CircleCI variables to an eventually consistent project."""

import asyncio
from dataclasses import dataclass
from typing import List

from loguru import logger

from ..api.circleci import CircleCIClient

DEFAULT_MAX_ATTEMPTS = 5

log = logger.bind(component='EnvironmentExport')


@dataclass(frozen=True)
class ExportOutcome:
    """What the export loop observed."""

    attempts: int
    requested: int
    observed: int

    @property
    def consistent(self) -> bool:
        return self.observed >= self.requested


async def export_until_consistent(
    ci: CircleCIClient,
    from_repository: str,
    to_repository: str,
    env_vars: List[str],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    delay: float = 0.0,
) -> ExportOutcome:
    """Export variables, then poll the destination until they show up.

    The export endpoint can answer with success before the variables are
    readable on the destination. Each attempt issues the export and reads
    back the destination's variables; attempts stop once the count reaches
    the requested count or the budget is spent. Running out of attempts is
    logged and still returns normally.

    Args:
        ci: CircleCI client
        from_repository: Source project
        to_repository: Destination project
        env_vars: Variable names to export
        max_attempts: Attempt budget
        delay: Seconds to sleep between attempts

    Returns:
        Export outcome
    """
    requested = len(env_vars)
    observed = 0
    attempts = 0

    while observed < requested and attempts < max_attempts:
        if attempts and delay:
            await asyncio.sleep(delay)

        await ci.export_environment(from_repository, to_repository, env_vars)
        observed = len(await ci.get_env_vars(to_repository))
        attempts += 1

        log.debug(
            f'Export attempt {attempts}/{max_attempts}: '
            f'{observed}/{requested} variables visible on {to_repository}'
        )

    outcome = ExportOutcome(attempts=attempts, requested=requested, observed=observed)

    if not outcome.consistent:
        log.warning(
            f'Only {observed} of {requested} variables are visible on '
            f'{to_repository} after {attempts} attempts, continuing'
        )

    return outcome
