"""Mirror clone and mirror push through the git binary."""

import asyncio
import os
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from ..migration.exceptions import GitError


def build_ssh_command(key_path: Path) -> str:
    """Build a transport command pinned to a single private key.

    Host key checking and the operator's own SSH configuration are both
    disabled; the key is single-purpose and lives only for one run.

    Args:
        key_path: Private key file

    Returns:
        Value for ``core.sshCommand``
    """
    return (
        f"ssh -i '{Path(key_path).resolve()}' -o IdentitiesOnly=yes "
        "-o StrictHostKeyChecking=no -o UserKnownHostsFile='/dev/null' "
        "-F '/dev/null'"
    )


class GitMirror:
    """Runs ``git clone --mirror`` and ``git push --mirror``."""

    def __init__(self, git_binary: str = 'git', timeout: int = 3600):
        """Initialize git mirror.

        Args:
            git_binary: Git executable
            timeout: Seconds allowed for each git process
        """
        self.git_binary = git_binary
        self.timeout = timeout
        self.logger = logger.bind(component='GitMirror')

    async def clone_mirror(
        self, source_url: str, target_dir: Path, key_path: Path
    ) -> None:
        """Clone every ref of a remote repository into a bare directory.

        Args:
            source_url: Remote to clone
            target_dir: Directory to create
            key_path: Key used to authenticate against the source

        Raises:
            GitError: If git fails or times out
        """
        self.logger.info(f'Cloning {source_url} into {target_dir}')
        await self._run_git(
            ['clone', '--mirror', source_url, str(target_dir)],
            key_path,
            description=f'Error when cloning {source_url} into {target_dir}',
        )

    async def push_mirror(
        self, repository_dir: Path, destination_url: str, key_path: Path
    ) -> None:
        """Push every ref of a mirror clone to a remote.

        Args:
            repository_dir: Mirror clone directory
            destination_url: Remote to push to
            key_path: Key used to authenticate against the destination

        Raises:
            GitError: If git fails or times out
        """
        self.logger.info(f'Pushing {repository_dir} to {destination_url}')
        await self._run_git(
            ['push', '--mirror', destination_url],
            key_path,
            cwd=repository_dir,
            description=f'Error when pushing {repository_dir} to {destination_url}',
        )

    async def _run_git(
        self,
        args: Sequence[str],
        key_path: Path,
        description: str,
        cwd: Optional[Path] = None,
    ) -> None:
        cmd: List[str] = [
            self.git_binary,
            '-c',
            f'core.sshCommand={build_ssh_command(key_path)}',
            *args,
        ]
        self.logger.debug(f'Executing git command: {" ".join(cmd)}')

        env = dict(os.environ)
        # never block on a credential prompt
        env['GIT_TERMINAL_PROMPT'] = '0'

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=env,
            )
        except OSError as e:
            raise GitError(f'{description}: cannot start git: {e}', command=cmd) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise GitError(
                f'{description}: timed out after {self.timeout} seconds', command=cmd
            )

        stderr_text = stderr.decode(errors='replace') if stderr else ''

        self.logger.debug(f'Git command return code: {process.returncode}')
        if stdout:
            self.logger.debug(f'Git stdout: {stdout.decode(errors="replace")}')

        if process.returncode != 0:
            raise GitError(
                f'{description}: exit status {process.returncode}',
                command=cmd,
                returncode=process.returncode,
                stderr=stderr_text,
            )
