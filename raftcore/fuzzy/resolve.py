"""Resolution of data directories relative to the running program."""

from __future__ import annotations

import os
import sys


def resolve_directory(path: str, create: bool) -> str:
    """Return ``path`` made absolute against the program's directory.

    An absolute path is returned unchanged. With ``create`` the directory is
    made if it does not exist; otherwise the caller is responsible for it.
    """
    if os.path.isabs(path):
        resolved = path
    else:
        exec_dir = os.path.abspath(os.path.dirname(sys.argv[0]))
        resolved = os.path.join(exec_dir, path)
    if create and not os.path.exists(resolved):
        os.makedirs(resolved, mode=0o744, exist_ok=True)
    return resolved