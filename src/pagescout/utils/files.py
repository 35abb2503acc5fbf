"""Utility functions for file and directory management in pagescout."""

from pathlib import Path

WORKDIR_NAME = '.pagescout'


def get_project_root() -> Path:
    """Find the project root by searching upwards from the Current Working Directory.

    Stops at the first directory containing a marker file.
    """
    # Start where the user ran the command
    current_path = Path.cwd()

    markers = {'.git', 'pyproject.toml', WORKDIR_NAME, 'requirements.txt'}

    for parent in [current_path] + list(current_path.parents):
        if any((parent / marker).exists() for marker in markers):
            return parent

    # No markers found (e.g. running in /tmp)
    return current_path


def get_logs_path() -> Path:
    """Return the path to the logs directory in .pagescout."""
    return get_project_root() / WORKDIR_NAME / 'logs'


def get_exports_path() -> Path:
    """Return the path to the CSV exports directory in .pagescout."""
    return get_project_root() / WORKDIR_NAME / 'exports'


def init_workdir() -> Path:
    """Create the .pagescout directory tree and return its path."""
    workdir = get_project_root() / WORKDIR_NAME

    get_logs_path().mkdir(parents=True, exist_ok=True)
    get_exports_path().mkdir(parents=True, exist_ok=True)

    # Keep generated files out of source control
    gitignore = workdir / '.gitignore'
    if not gitignore.exists():
        gitignore.write_text('# Automatically created by pagescout\n*\n')

    return workdir
