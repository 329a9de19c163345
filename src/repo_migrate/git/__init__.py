"""Git operations module for repository migration."""

from .credentials import StagedKeys, staged_ssh_keys
from .mirror import GitMirror, build_ssh_command

__all__ = ['GitMirror', 'StagedKeys', 'build_ssh_command', 'staged_ssh_keys']
