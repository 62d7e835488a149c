"""Directory-level sync-back driver."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from ..models.config import SyncConfig
from ..models.events import SyncResult
from .backup import HTML_SUFFIXES, create_backup
from .parser import SyncBlockParser
from .reconciler import Reconciler

logger = logging.getLogger(__name__)


class SyncBack:
    """
    Reconciles a directory of edited Markdown files into their HTML sources.

    ``docs/intro.md`` under the markdown directory maps to
    ``docs/intro.html`` (or ``.htm``) under the HTML directory. Markdown
    files without any selector marker (such as the README index) are
    ignored. Outside dry-run mode every HTML file is backed up before the
    first write.

    Example:
        result = await SyncBack(SyncConfig(markdown_dir=Path("content"), html_dir=Path("site"))).run()
        print(f"{result.files_updated} file(s) updated, {len(result.warnings)} warning(s)")
    """

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        reconciler: Optional[Reconciler] = None,
    ):
        self._config = config or SyncConfig()
        self._reconciler = reconciler or Reconciler()
        self._parser = SyncBlockParser()

    def html_path_for(self, markdown_path: Path) -> Optional[Path]:
        """HTML file corresponding to a Markdown file, if one exists."""
        relative = markdown_path.relative_to(self._config.markdown_dir).with_suffix("")
        for suffix in HTML_SUFFIXES:
            candidate = self._config.html_dir / relative.with_name(relative.name + suffix)
            if candidate.is_file():
                return candidate
        return None

    async def run(self) -> SyncResult:
        """
        Reconcile every Markdown file.

        Returns:
            SyncResult with per-file errors, changes and warnings

        Raises:
            FileNotFoundError: If the markdown or HTML directory is missing
            ValueError: If the backup directory contains the HTML directory
        """
        cfg = self._config
        for label, directory in (("Markdown", cfg.markdown_dir), ("HTML", cfg.html_dir)):
            if not directory.is_dir():
                raise FileNotFoundError(f"{label} directory not found: {directory}")

        result = SyncResult(dry_run=cfg.dry_run)
        markdown_files = sorted(cfg.markdown_dir.rglob("*.md"))
        logger.info(f"Found {len(markdown_files)} markdown file(s) in {cfg.markdown_dir}")

        if not cfg.dry_run:
            result.backup_path = await asyncio.to_thread(create_backup, cfg.html_dir, cfg.backup_dir)

        for markdown_path in markdown_files:
            label = markdown_path.relative_to(cfg.markdown_dir).as_posix()
            try:
                await self._sync_file(markdown_path, label, result)
            except (OSError, UnicodeDecodeError) as e:
                result.files_with_errors += 1
                result.file_errors[label] = str(e)
                logger.error(f"Failed to sync {label}: {e}")

        logger.info(
            f"Sync complete: {result.files_processed} processed, {result.files_updated} updated, "
            f"{len(result.changes)} change(s), {len(result.warnings)} warning(s)"
        )
        return result

    async def _sync_file(self, markdown_path: Path, label: str, result: SyncResult) -> None:
        text = await asyncio.to_thread(markdown_path.read_text, encoding="utf-8")
        blocks = self._parser.parse(text)
        if not blocks:
            logger.debug(f"Skipping {label}: no selector markers")
            return

        result.files_processed += 1
        html_path = self.html_path_for(markdown_path)
        if html_path is None:
            raise FileNotFoundError(f"No HTML file for {label} in {self._config.html_dir}")

        html = await asyncio.to_thread(html_path.read_text, encoding="utf-8")
        outcome = self._reconciler.reconcile(html, blocks, file_label=label)
        result.changes.extend(outcome.changes)
        result.warnings.extend(outcome.warnings)

        if not outcome.changed:
            logger.debug(f"{label}: no changes")
            return

        result.files_updated += 1
        if self._config.dry_run:
            logger.info(f"[dry-run] Would update {html_path} ({len(outcome.changes)} change(s))")
            return

        await asyncio.to_thread(html_path.write_text, outcome.html, encoding="utf-8")
        logger.info(f"Updated {html_path} ({len(outcome.changes)} change(s))")
