"""File and directory helpers for the .titular workspace."""

from pathlib import Path

WORKSPACE_DIR = '.titular'


def get_project_root() -> Path:
    """Find the project root by searching upwards from the current directory.

    Stops at the first directory containing a marker file, falling back to
    the current directory when none is found.
    """
    current_path = Path.cwd()
    markers = {'.git', 'pyproject.toml', WORKSPACE_DIR, 'requirements.txt'}

    for parent in [current_path] + list(current_path.parents):
        if any((parent / marker).exists() for marker in markers):
            return parent

    return current_path


def get_workspace_path() -> Path:
    """Return the .titular directory in the project root."""
    return get_project_root() / WORKSPACE_DIR


def get_logs_path() -> Path:
    """Return the path to the logs directory in .titular."""
    return get_workspace_path() / 'logs'


def init_titular(storage_name: str = 'recipes') -> Path:
    """Create the .titular directory tree and return the storage path."""
    workspace = get_workspace_path()
    storage_dir = workspace / storage_name

    storage_dir.mkdir(parents=True, exist_ok=True)
    (workspace / 'logs').mkdir(parents=True, exist_ok=True)

    # Keep generated files out of source control
    gitignore = workspace / '.gitignore'
    if not gitignore.exists():
        gitignore.write_text('# Automatically created by titular\n*\n')

    return storage_dir
