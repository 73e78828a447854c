"""Build metadata reported by the health endpoint.

CI sets VAULT_VERSION and VAULT_COMMIT. Local runs fall back to ``dev`` and
the checked-out git revision.
"""

import os
import subprocess


def _git_short_sha() -> str:
    try:
        return subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"],  # noqa: S607
            text=True,
            stderr=subprocess.DEVNULL,
        ).strip()
    except (FileNotFoundError, subprocess.CalledProcessError):
        return "dev"


APP_VERSION: str = os.environ.get("VAULT_VERSION", "dev")
GIT_COMMIT: str = os.environ.get("VAULT_COMMIT") or _git_short_sha()
