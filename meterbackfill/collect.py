"""CSV file discovery."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from _typeshed import StrPath


class CollectError(OSError):
    pass


def _raise(error: OSError):
    msg = f'Cannot walk {error.filename}: {error.strerror or error}'
    raise CollectError(msg) from error


def collect_files(root: StrPath) -> list[Path]:
    """
    Every regular file beneath `root`, sorted by its full path.

    The MeterMan tree (`YYYY/MM/YYYY-MM-DD`) sorts into chronological order,
    which the accumulation relies on.

    Parameters
    ----------
    root : StrPath

    Returns
    -------
    list[Path]

    Raises
    ------
    CollectError
        If `root` or one of its subdirectories cannot be listed.
    """
    root = Path(root)
    if not root.is_dir():
        msg = f'Not a directory: {root}'
        raise CollectError(msg)

    files = [
        path
        for directory, _, names in root.walk(on_error=_raise)
        for path in (directory / name for name in names)
        if path.is_file() and not path.is_symlink()
    ]

    # compare whole strings, not path components
    return sorted(files, key=str)
