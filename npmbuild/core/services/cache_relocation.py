"""
npm cache relocation — move the in-tree npm cache into the cache layer.

npm is pointed at ``<cache layer>/npm-cache`` with ``--cache``.  An
application that ships its own ``npm-cache`` directory gets its
entries moved there first, so npm finds them and the cache layer
carries them to the next build.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

NPM_CACHE_DIR = "npm-cache"


def relocate_npm_cache(working_dir: Path, cache_dir: Path) -> int:
    """Move every entry of ``<working_dir>/npm-cache`` into ``<cache_dir>/npm-cache``.

    Same-named entries already in the destination are replaced.  The
    emptied source directory is removed, so a second call is a no-op.

    Returns:
        Number of entries moved (0 when there is no in-tree cache).

    Raises:
        OSError: If the source cannot be listed or an entry cannot be moved.
    """
    source = working_dir / NPM_CACHE_DIR

    try:
        entries = sorted(os.listdir(source))
    except FileNotFoundError:
        return 0

    destination = cache_dir / NPM_CACHE_DIR
    destination.mkdir(parents=True, exist_ok=True)

    for entry in entries:
        _move(source / entry, destination / entry)

    source.rmdir()
    logger.debug("Moved %d npm cache entries into %s", len(entries), destination)
    return len(entries)


def _move(src: Path, dst: Path) -> None:
    """Move ``src`` onto ``dst``; the old ``dst`` goes only once ``src`` has arrived."""
    staged = dst.with_name(f".{dst.name}.incoming")
    _remove(staged)

    try:
        os.replace(src, staged)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        shutil.move(src, staged)

    _remove(dst)
    os.replace(staged, dst)


def _remove(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)
