"""
tokenledger.version — semantic version string and VCS describe helper.

Kept dependency-free so it can be imported during packaging and very early at
process startup.

Usage:
    from tokenledger.version import __version__, git_describe, version_metadata
"""

from __future__ import annotations

import os
import subprocess
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

# Bump this when making a tagged release (semver).
__version__ = "0.1.0"


def _repo_root() -> Optional[Path]:
    """Nearest ancestor of this file holding a .git entry, or None (installed copy)."""
    for p in Path(__file__).resolve().parents:
        if (p / ".git").exists():
            return p
    return None


@lru_cache(maxsize=1)
def git_describe() -> str:
    """
    Return a best-effort 'git describe' style string.

    Resolution order:
      1) Environment override TOKENLEDGER_GIT_DESCRIBE (containers, CI).
      2) `git describe --tags --dirty --always` run in the checkout holding
         this package, if there is one.
      3) `<__version__>+local`.
    """
    override = os.getenv("TOKENLEDGER_GIT_DESCRIBE")
    if override:
        return override.strip()

    root = _repo_root()
    if root is not None:
        try:
            out = subprocess.check_output(
                ["git", "describe", "--tags", "--dirty", "--always"],
                cwd=str(root),
                stderr=subprocess.DEVNULL,
            )
            desc = out.decode("utf-8", "replace").strip()
            if desc:
                return desc
        except (OSError, subprocess.CalledProcessError):
            pass

    return f"{__version__}+local"


@lru_cache(maxsize=1)
def version_metadata() -> Dict[str, str]:
    """Structured version info for logs and `tokenledger --version`."""
    desc = git_describe()
    return {
        "version": __version__,
        "describe": desc,
        "dirty": "true" if desc.endswith("-dirty") else "false",
    }


__all__ = ["__version__", "git_describe", "version_metadata"]
