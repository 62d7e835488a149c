"""Sync-back: reconcile edited Markdown into the original HTML."""

from .backup import create_backup, iter_html_files
from .parser import SyncBlockParser, infer_type, parse_sync_blocks
from .reconciler import Reconciler, Reconciliation
from .runner import SyncBack

__all__ = [
    "Reconciler",
    "Reconciliation",
    "SyncBack",
    "SyncBlockParser",
    "create_backup",
    "infer_type",
    "iter_html_files",
    "parse_sync_blocks",
]
