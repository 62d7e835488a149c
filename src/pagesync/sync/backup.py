"""Pre-sync backups of the HTML tree."""

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from ..metadata.ids import format_timestamp

logger = logging.getLogger(__name__)

HTML_SUFFIXES = (".html", ".htm")


def iter_html_files(root: Path, exclude: Optional[Path] = None) -> Iterator[Path]:
    """
    Yield HTML files under root in sorted order.

    Args:
        root: Directory to walk
        exclude: Directory whose contents are skipped (the backup root)
    """
    excluded = exclude.resolve() if exclude is not None else None
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in HTML_SUFFIXES:
            continue
        if excluded is not None and path.resolve().is_relative_to(excluded):
            continue
        yield path


def create_backup(html_dir: Path, backup_root: Path, timestamp: Optional[datetime] = None) -> Path:
    """
    Copy every HTML file under html_dir into a timestamped backup directory.

    The backup root may live inside html_dir; its contents are never part
    of the tree that is backed up or patched.

    Args:
        html_dir: Directory of HTML files about to be patched
        backup_root: Directory that receives ``backup-<timestamp>/``
        timestamp: Backup time (now if omitted)

    Returns:
        The backup directory

    Raises:
        ValueError: If html_dir is inside (or equal to) backup_root
    """
    source = html_dir.resolve()
    root = backup_root.resolve()
    if source.is_relative_to(root):
        raise ValueError(f"Backup directory {root} must not contain the HTML directory {source}")

    stamp = format_timestamp(timestamp or datetime.now(timezone.utc)).replace(":", "-").replace(".", "-")
    target = root / f"backup-{stamp}"

    count = 0
    for path in iter_html_files(source, exclude=root):
        destination = target / path.relative_to(source)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, destination)
        count += 1

    target.mkdir(parents=True, exist_ok=True)
    logger.info(f"Backed up {count} HTML file(s) to {target}")
    return target
