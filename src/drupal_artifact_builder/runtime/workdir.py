"""Scoped working-directory helpers."""
from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


@contextmanager
def preserve_cwd(path: Path | None = None) -> Iterator[Path]:
    """Optionally chdir into ``path``; restore the original cwd on exit.

    Restoration happens on every exit path, including exceptions.
    """
    original_cwd = Path.cwd()
    if path is not None:
        os.chdir(path)
    try:
        yield Path.cwd()
    finally:
        if Path.cwd() != original_cwd:
            logger.debug("Restoring working directory to %s", original_cwd)
        os.chdir(original_cwd)
