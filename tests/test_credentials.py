"""Tests for SSH key staging."""

import stat

import pytest
from unittest.mock import patch

from repo_migrate.git.credentials import staged_ssh_keys, write_key_file
from repo_migrate.migration.exceptions import CredentialError

from factories import PULL_KEY, PUSH_KEY


class TestStagedKeys:
    """Test staged key lifecycle."""

    def test_keys_are_owner_read_only(self, tmp_path):
        """Test key files are written with mode 0400."""
        with staged_ssh_keys(PULL_KEY, PUSH_KEY, str(tmp_path)) as keys:
            assert keys.directory.parent == tmp_path
            for path in (keys.pull_key, keys.push_key):
                assert stat.S_IMODE(path.stat().st_mode) == 0o400
            assert keys.pull_key.read_text() == PULL_KEY + '\n'
            assert keys.push_key.read_text() == PUSH_KEY + '\n'
            assert stat.S_IMODE(keys.directory.stat().st_mode) == 0o700

    def test_directory_removed_after_block(self, tmp_path):
        """Test the directory is deleted on normal exit."""
        with staged_ssh_keys(PULL_KEY, PUSH_KEY, str(tmp_path)) as keys:
            directory = keys.directory

        assert not directory.exists()
        assert list(tmp_path.iterdir()) == []

    def test_directory_removed_on_error(self, tmp_path):
        """Test the directory is deleted when the block raises."""
        with pytest.raises(RuntimeError):
            with staged_ssh_keys(PULL_KEY, PUSH_KEY, str(tmp_path)) as keys:
                directory = keys.directory
                raise RuntimeError('clone exploded')

        assert not directory.exists()

    def test_chmod_failure(self, tmp_path):
        """Test permission failures abort staging and clean up."""
        with patch(
            'repo_migrate.git.credentials.os.chmod', side_effect=PermissionError('denied')
        ):
            with pytest.raises(CredentialError, match='Cannot store pull SSH key'):
                with staged_ssh_keys(PULL_KEY, PUSH_KEY, str(tmp_path)):
                    pytest.fail('block must not run without credentials')

        assert list(tmp_path.iterdir()) == []

    def test_cleanup_failure_is_not_raised(self, tmp_path):
        """Test cleanup errors are logged, not raised."""
        with patch(
            'repo_migrate.git.credentials.shutil.rmtree', side_effect=OSError('busy')
        ):
            with staged_ssh_keys(PULL_KEY, PUSH_KEY, str(tmp_path)):
                pass


def test_write_key_file_refuses_existing_file(tmp_path):
    """Test an existing key file is never overwritten."""
    (tmp_path / 'pull').write_text('old')

    with pytest.raises(CredentialError):
        write_key_file(tmp_path, 'pull', PULL_KEY)
