"""Shared fixtures."""

import pytest

from repo_migrate.config.config import (
    BitbucketConfig,
    CircleCIConfig,
    Config,
    GitConfig,
    GitHubConfig,
)
from factories import PULL_KEY, PUSH_KEY


@pytest.fixture
def git_config(tmp_path):
    """Git settings writing everything under the test's temp directory."""
    return GitConfig(
        pull_ssh_key=PULL_KEY,
        push_ssh_key=PUSH_KEY,
        temp_dir=str(tmp_path / 'work'),
        timeout=60,
    )


@pytest.fixture
def config(git_config):
    """Complete configuration with CircleCI enabled."""
    return Config(
        bitbucket=BitbucketConfig(
            username='bb-user', password='bb-password', workspace_name='acme'
        ),
        github=GitHubConfig(
            username='gh-user', token='gh-token', organization_name='acme-gh'
        ),
        circleci=CircleCIConfig(
            token='ci-token',
            source_org_id='bb-org-id',
            destination_org_id='gh-org-id',
            export_retry_delay=0,
        ),
        git=git_config,
    )
