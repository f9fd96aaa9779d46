# services/artifact_resolver.py

"""
Artifact resolver - finds the packaged app in a build output directory
"""

import logging
import os
from pathlib import Path
from typing import Optional, Sequence, Union

from buildserver.core.config import settings

logger = logging.getLogger(__name__)


def resolve_artifact(
        directory: Union[str, Path],
        extensions: Optional[Sequence[str]] = None
) -> Optional[Path]:
    """Return the newest file whose name ends with a package extension.

    Files with the same modification time are ordered by name, so the result
    does not depend on directory listing order. Returns None when nothing
    matches or the directory cannot be read.
    """
    suffixes = tuple(extensions if extensions is not None else settings.artifact_extensions)
    candidates = []

    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                if not entry.name.endswith(suffixes) or not entry.is_file():
                    continue
                candidates.append((entry.stat().st_mtime, entry.name))
    except OSError as e:
        logger.warning(f"Could not read artifact directory {directory}: {e}")
        return None

    if not candidates:
        logger.debug(f"No artifact matching {suffixes} in {directory}")
        return None

    # Newest first, then alphabetical
    _, name = min(candidates, key=lambda c: (-c[0], c[1]))
    return Path(directory).resolve() / name
