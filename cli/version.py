"""
Version information for the field extractor CLI.

The version is BASE_VERSION, with the short git commit hash appended as local
version metadata when the package runs from a git checkout.
"""

import subprocess
import sys
from pathlib import Path
from typing import Optional, List


BASE_VERSION = "1.0.0"


def _run_git(args: List[str]) -> Optional[str]:
    """Run a git command in the repository root, returning stripped stdout or None."""
    try:
        result = subprocess.run(
            ["git"] + args,
            cwd=Path(__file__).parent.parent,
            capture_output=True,
            text=True,
            timeout=5
        )
    except (subprocess.TimeoutExpired, subprocess.SubprocessError, FileNotFoundError):
        return None

    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def get_git_commit_hash(short: bool = True) -> Optional[str]:
    """
    Get the current git commit hash.

    Args:
        short: If True, return the abbreviated hash

    Returns:
        Commit hash or None outside a git checkout
    """
    return _run_git(["rev-parse", "--short", "HEAD"] if short else ["rev-parse", "HEAD"])


def get_version(include_commit: bool = True) -> str:
    """Version string, e.g. "1.0.0" or "1.0.0+a1b2c3d"."""
    commit = get_git_commit_hash() if include_commit else None
    return f"{BASE_VERSION}+{commit}" if commit else BASE_VERSION


def get_version_info() -> dict:
    commit_hash = get_git_commit_hash(short=False)
    return {
        "version": get_version(),
        "base_version": BASE_VERSION,
        "commit_hash": commit_hash,
        "python_version": sys.version.split()[0],
        "git_available": commit_hash is not None,
    }


__version__ = BASE_VERSION
