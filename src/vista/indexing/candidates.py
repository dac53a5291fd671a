"""Filesystem discovery of images to index."""

import logging
from datetime import datetime, timezone
from pathlib import Path

from vista.constants.files import IMAGE_EXTENSIONS
from vista.models import Candidate

logger = logging.getLogger(__name__)


def is_image(path: Path) -> bool:
    """Check whether a path has a supported image extension (case-insensitive)."""
    return path.suffix.lower() in IMAGE_EXTENSIONS


def discover_images(root: Path) -> list[Candidate]:
    """Walk ``root`` recursively and return one Candidate per image file.

    The file name is the record id, the full path is the content reference
    and the file's modification time (UTC) is the source timestamp. Results
    are sorted by path so repeated scans produce the same order.

    Args:
        root: Directory to scan.

    Returns:
        Candidates for every .jpg, .jpeg and .png file under root. Empty if
        root does not exist.
    """
    root = Path(root)
    if not root.is_dir():
        logger.warning(f"Image directory not found: {root}")
        return []

    candidates = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or not is_image(path):
            continue
        try:
            mtime = path.stat().st_mtime
        except OSError as e:
            logger.warning(f"Skipping unreadable image {path}: {e}")
            continue
        candidates.append(
            Candidate(
                id=path.name,
                content_ref=str(path),
                source_modified_at=datetime.fromtimestamp(mtime, timezone.utc),
            )
        )

    logger.debug(f"Discovered {len(candidates)} images under {root}")
    return candidates
