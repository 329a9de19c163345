"""Short-lived staging of SSH private keys for git transport."""

import os
import shutil
import stat
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from loguru import logger

from ..migration.exceptions import CredentialError

KEY_FILE_MODE = stat.S_IRUSR  # 0o400

log = logger.bind(component='CredentialStaging')


@dataclass(frozen=True)
class StagedKeys:
    """Paths of the staged key files."""

    directory: Path
    pull_key: Path
    push_key: Path


def write_key_file(directory: Path, name: str, key: str) -> Path:
    """Write one private key readable by the owner only.

    Args:
        directory: Private directory to write into
        name: File name
        key: Key material

    Returns:
        Path of the key file

    Raises:
        CredentialError: If the file cannot be written or restricted
    """
    path = directory / name

    # ssh refuses keys without a trailing newline
    if not key.endswith('\n'):
        key += '\n'

    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, 'w', encoding='utf-8') as key_file:
            key_file.write(key)
        os.chmod(path, KEY_FILE_MODE)
    except OSError as e:
        raise CredentialError(f'Cannot store {name} SSH key in {directory}: {e}') from e

    return path


def remove_directory(directory: Path) -> None:
    """Delete a staging directory, logging instead of raising on failure."""
    try:
        shutil.rmtree(directory)
        log.debug(f'Removed credential directory {directory}')
    except FileNotFoundError:
        pass
    except OSError as e:
        log.warning(f'Failed to remove credential directory {directory}: {e}')


@contextmanager
def staged_ssh_keys(
    pull_key: str, push_key: str, temp_dir: Optional[str] = None
) -> Iterator[StagedKeys]:
    """Materialize the pull and push keys for the duration of a block.

    The directory is created with mode 0700 and removed with everything in
    it when the block exits, whatever the outcome.

    Args:
        pull_key: Key allowed to read from the source host
        push_key: Key allowed to write to the destination host
        temp_dir: Parent directory, system temp directory if None

    Yields:
        Staged key paths
    """
    try:
        directory = Path(tempfile.mkdtemp(prefix='repo-migrate-keys-', dir=temp_dir))
    except OSError as e:
        raise CredentialError(f'Cannot create credential directory: {e}') from e

    try:
        keys = StagedKeys(
            directory=directory,
            pull_key=write_key_file(directory, 'pull', pull_key),
            push_key=write_key_file(directory, 'push', push_key),
        )
        log.debug(f'Staged SSH keys in {directory}')
        yield keys
    finally:
        remove_directory(directory)
