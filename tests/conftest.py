"""Tests configurations and fixtures."""

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem

WORKSPACE_ROOT = '/workspace'


@pytest.fixture
def workspace(fs: 'FakeFilesystem') -> Path:
    """Provide an empty workspace root on a fake filesystem.

    The fake filesystem also contains an `/etc/passwd` file outside the
    workspace, so traversal attempts target a file that really exists.

    Returns:
        Path of the workspace root.
    """
    fs.create_dir(WORKSPACE_ROOT)
    fs.create_file('/etc/passwd', contents='root:x:0:0::/root:/bin/sh\n')

    return Path(WORKSPACE_ROOT)


@pytest.fixture
def write_file(fs: 'FakeFilesystem', workspace: Path) -> 'Callable[[str, str], Path]':
    """Provide a factory writing files inside the workspace.

    Returns:
        Callable taking a relative path and a content, returning the
        absolute path of the created file.
    """
    def write(name: str, content: str) -> Path:
        """Create a file under the workspace root.

        Args:
            name: Path relative to the workspace root.
            content: Text content of the file.

        Returns:
            Absolute path of the created file.
        """
        path = workspace / name
        fs.create_file(path, contents=content)
        return path

    return write
