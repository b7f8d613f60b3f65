"""Shared utilities for Tool Farm."""

import shutil
from pathlib import Path


def copy_tree(src: str | Path, dst: str | Path) -> None:
    """Recursively overlay ``src`` onto ``dst``.

    Files that exist in both trees are overwritten by the ``src`` copy;
    anything only present in ``dst`` is left untouched.
    """
    shutil.copytree(src, dst, dirs_exist_ok=True)
