"""File helpers."""

import os
import shutil
from pathlib import Path


def copy_atomic(src: Path, dst: Path) -> None:
    """Copy bytes to dst through a temp file in dst's directory.

    dst is either left as it was or fully replaced.
    """
    dst = Path(dst)
    temp_file = dst.parent / f".{dst.name}.tmp"
    try:
        shutil.copyfile(src, temp_file)
        os.replace(temp_file, dst)
    finally:
        if temp_file.exists():
            temp_file.unlink()
